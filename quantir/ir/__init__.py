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

"""Dialect-independent IR core: types, values, instructions, text codec.

    import quantir.ir as qir
    import quantir.ir.typing as qirt
"""

from __future__ import annotations

from . import typing as typing
from .attributes import (
    DYNAMIC,
    EMPTY_ACCESSORS,
    AccessorArray,
    Constant,
    Dynamic,
    SymbolRef,
)
from .diagnostics import CollectingSink, Diagnostic, SourceLocation
from .graph import Block, Operation, OperationState, Value
from .parser import AsmParser, ParserConfig, parse_module, parse_operation
from .printer import AsmPrinter, BlockPrinter, format_block, print_operation
from .typing import TypeContext, get_default_context

__all__ = [
    "DYNAMIC",
    "EMPTY_ACCESSORS",
    "AccessorArray",
    "AsmParser",
    "AsmPrinter",
    "Block",
    "BlockPrinter",
    "CollectingSink",
    "Constant",
    "Diagnostic",
    "Dynamic",
    "Operation",
    "OperationState",
    "ParserConfig",
    "SourceLocation",
    "SymbolRef",
    "TypeContext",
    "Value",
    "format_block",
    "get_default_context",
    "parse_module",
    "parse_operation",
    "print_operation",
    "typing",
]
