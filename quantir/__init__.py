# Copyright 2025 Ant Group Co., Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
quantir: textual assembly codec for a quantum-gate instruction set.

    import quantir

    block = quantir.parse_module(
        "%r = quantum.alloc -> register<4>\\n"
        "quantum.h %r[0, 2] : register<4>\\n"
    )
    print(quantir.format_block(block))
"""

from __future__ import annotations

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("quantir")
except PackageNotFoundError:
    # Source checkout without an installed distribution
    __version__ = "0.0.0-dev"

from quantir import dialects as dialects
from quantir.config import QuantirConfig, load_config
from quantir.dialects.quantum import (
    OpDef,
    Slot,
    parse_type,
    print_type,
    slot_operands,
    verify,
)
from quantir.ir.diagnostics import CollectingSink, Diagnostic, SourceLocation
from quantir.ir.errors import (
    ConfigError,
    InvalidConstructionInvariant,
    ParseError,
    QuantirError,
    VerificationError,
)
from quantir.ir.graph import Block, Operation, Value
from quantir.ir.parser import ParserConfig, parse_module, parse_operation
from quantir.ir.printer import format_block, print_operation
from quantir.ir.typing import TypeContext, get_default_context
from quantir.logging_config import disable_logging, setup_logging

__all__ = [
    "Block",
    "CollectingSink",
    "ConfigError",
    "Diagnostic",
    "InvalidConstructionInvariant",
    "OpDef",
    "Operation",
    "ParseError",
    "ParserConfig",
    "QuantirConfig",
    "QuantirError",
    "Slot",
    "SourceLocation",
    "TypeContext",
    "Value",
    "VerificationError",
    "__version__",
    "dialects",
    "disable_logging",
    "format_block",
    "get_default_context",
    "load_config",
    "parse_module",
    "parse_operation",
    "parse_type",
    "print_operation",
    "print_type",
    "setup_logging",
    "slot_operands",
    "verify",
]
