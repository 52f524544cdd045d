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

"""Registry for instruction kinds and dialect type keywords.

This module decouples dialect definitions from the assembly parser and
printer. Dialects register their instruction kinds and type keywords here,
and the parser looks them up by mnemonic or keyword.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from quantir.ir.diagnostics import SourceLocation
    from quantir.ir.graph import Operation, OperationState
    from quantir.ir.parser import AsmParser
    from quantir.ir.printer import AsmPrinter
    from quantir.ir.typing import BaseType

logger = logging.getLogger(__name__)


class OpFormat(Protocol):
    """What the parser and printer need from an instruction kind."""

    name: str

    def parse(self, parser: AsmParser) -> OperationState: ...

    def print(self, printer: AsmPrinter, op: Operation) -> None: ...


TypeParserFn = Callable[["AsmParser", str, "SourceLocation"], "BaseType"]

# Key: mnemonic (str), Value: instruction kind
_OP_REGISTRY: dict[str, OpFormat] = {}

# Key: type keyword (str), Value: parser for the text following the keyword
_TYPE_PARSERS: dict[str, TypeParserFn] = {}


# ==============================================================================
# Instruction Kinds
# ==============================================================================


def register_op(opdef: Any, *, replace: bool = False) -> None:
    """Register an instruction kind under its mnemonic.

    Args:
        opdef: Object providing `name`, `parse(parser)` and `print(printer, op)`.
        replace: Allow overriding an existing registration.
    """
    if opdef.name in _OP_REGISTRY and not replace:
        raise ValueError(f"instruction kind '{opdef.name}' is already registered")
    _OP_REGISTRY[opdef.name] = opdef
    logger.debug("registered instruction kind %s", opdef.name)


def unregister_op(name: str) -> None:
    _OP_REGISTRY.pop(name, None)


def get_op(name: str) -> Any | None:
    """Get the instruction kind registered for a mnemonic."""
    return _OP_REGISTRY.get(name)


def list_ops() -> list[str]:
    """List all registered mnemonics."""
    return sorted(_OP_REGISTRY)


# ==============================================================================
# Type Keywords
# ==============================================================================


def register_type_parser(keyword: str, fn: TypeParserFn) -> None:
    """Register the parser for a dialect type keyword.

    Args:
        keyword: Leading keyword of the type (e.g. "register").
        fn: Called as ``fn(parser, keyword, location)`` after the keyword has
            been consumed; returns the interned type.
    """
    if keyword in _TYPE_PARSERS and _TYPE_PARSERS[keyword] is not fn:
        raise ValueError(f"type keyword '{keyword}' is already registered")
    _TYPE_PARSERS[keyword] = fn


def get_type_parser(keyword: str) -> TypeParserFn | None:
    return _TYPE_PARSERS.get(keyword)


def list_type_keywords() -> list[str]:
    return sorted(_TYPE_PARSERS)
