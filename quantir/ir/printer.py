# Copyright 2025 Ant Group Co., Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Printer for quantir assembly, the inverse of `quantir.ir.parser`."""

from __future__ import annotations

import json
import math
from collections.abc import Collection, Iterable, Mapping
from typing import Any

import numpy as np

from quantir.ir.attributes import SymbolRef
from quantir.ir.graph import ANONYMOUS_PREFIX, Block, Operation, Value
from quantir.ir.registry import get_op
from quantir.ir.typing import BaseType


def format_attribute(value: Any) -> str:
    """Format a tag value as a literal the parser reads back unchanged."""
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)):
        value = float(value)
        if not math.isfinite(value):
            raise ValueError(f"cannot print non-finite float {value}")
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, SymbolRef):
        return str(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_attribute(v) for v in value) + "]"
    raise TypeError(f"cannot print attribute of type {type(value).__name__}")


class AsmPrinter:
    """Accumulates the text of one instruction."""

    def __init__(self, names: Mapping[Value, str] | None = None) -> None:
        self._chunks: list[str] = []
        self._names = names or {}

    def write(self, text: str) -> None:
        self._chunks.append(text)

    def getvalue(self) -> str:
        return "".join(self._chunks)

    def value_name(self, value: Value) -> str:
        return self._names.get(value, value.name)

    def print_operand(self, value: Value) -> None:
        self.write(self.value_name(value))

    def print_operands(self, values: Iterable[Value]) -> None:
        self.write(", ".join(self.value_name(v) for v in values))

    def print_type(self, type_: BaseType) -> None:
        self.write(str(type_))

    def print_type_list(self, types: Iterable[BaseType]) -> None:
        self.write(", ".join(str(t) for t in types))

    def print_attribute(self, value: Any) -> None:
        self.write(format_attribute(value))

    def print_optional_attr_dict(
        self, attrs: Mapping[str, Any], elided: Collection[str] = ()
    ) -> None:
        """Print `` {key = literal, ...}`` for tags not in `elided`, if any."""
        items = [(k, v) for k, v in attrs.items() if k not in elided]
        if not items:
            return
        inner = ", ".join(f"{k} = {format_attribute(v)}" for k, v in items)
        self.write(f" {{{inner}}}")

    def print_optional_arrow_type_list(self, types: Iterable[BaseType]) -> None:
        types = list(types)
        if types:
            self.write(" -> ")
            self.print_type_list(types)


def print_operation(op: Operation, names: Mapping[Value, str] | None = None) -> str:
    """Return the canonical instruction text of `op`, without result bindings.

    Args:
        op: Operation to print.
        names: Display names overriding `Value.name`, e.g. for unnamed values.
    """
    opdef = get_op(op.opcode)
    if opdef is None:
        raise ValueError(f"no instruction kind registered for '{op.opcode}'")
    printer = AsmPrinter(names)
    opdef.print(printer, op)
    return printer.getvalue()


class BlockPrinter:
    """Format a Block as canonical assembly, one instruction per line.

    Unnamed results are printed without a binding unless a later instruction
    uses them; those get a fresh `%N` name that is not taken in the block.
    """

    def __init__(self, *, indent_size: int = 0):
        self.indent_size = indent_size

    def format(self, block: Block) -> str:
        names = self._display_names(block)
        lines: list[str] = []
        for op in block.operations:
            self._write(lines, self._format_operation(op, names))
        return "\n".join(lines)

    def _write(self, lines: list[str], text: str) -> None:
        lines.append(" " * self.indent_size + text)

    def _display_names(self, block: Block) -> dict[Value, str]:
        names: dict[Value, str] = {}
        counter = 0
        for op in block.operations:
            if all(v.is_anonymous and not v.uses for v in op.results):
                continue
            for value in op.results:
                if not value.is_anonymous:
                    continue
                while f"%{counter}" in block.values:
                    counter += 1
                names[value] = f"%{counter}"
                counter += 1
        return names

    def _format_operation(self, op: Operation, names: Mapping[Value, str]) -> str:
        body = print_operation(op, names)
        bound = [names.get(v, v.name) for v in op.results]
        if not bound or any(name.startswith(ANONYMOUS_PREFIX) for name in bound):
            return body
        return f"{', '.join(bound)} = {body}"


def format_block(block: Block, **kwargs: Any) -> str:
    """Convenience helper that returns `BlockPrinter(**kwargs).format(block)`."""
    return BlockPrinter(**kwargs).format(block)
