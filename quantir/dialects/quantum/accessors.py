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

"""Inline register slices: ``%r[start, length, stride]``.

Each component is an integer literal or an SSA value of type ``index``.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from quantir.ir.attributes import (
    DYNAMIC,
    EMPTY_ACCESSORS,
    INT64_MAX,
    INT64_MIN,
    AccessorArray,
    AccessorElement,
    Constant,
    Dynamic,
)
from quantir.ir.errors import ExpectedOperandOrInteger, VerificationError
from quantir.ir.graph import Value
from quantir.ir.lexer import COMMA, INT, LSQB, RSQB
from quantir.ir.parser import AsmParser, UnresolvedOperand
from quantir.ir.printer import AsmPrinter


def parse_accessor_list(
    parser: AsmParser,
) -> tuple[AccessorArray, list[UnresolvedOperand]]:
    """Parse an optional ``[elem, ...]`` after a register operand.

    Returns:
        The accessor array and the references it consumes, in textual order.
        Without a ``[`` both are empty; ``[]`` is the same as no accessor.
    """
    if parser.parse_optional(LSQB) is None:
        return EMPTY_ACCESSORS, []
    if parser.parse_optional(RSQB) is not None:
        return EMPTY_ACCESSORS, []

    elements: list[AccessorElement] = []
    refs: list[UnresolvedOperand] = []
    while True:
        ref = parser.parse_optional_operand()
        if ref is not None:
            refs.append(ref)
            elements.append(DYNAMIC)
        else:
            tok = parser.peek()
            if tok.kind != INT:
                raise parser.emit_error(
                    ExpectedOperandOrInteger(
                        f"expected SSA value or integer, found {tok}", tok.location
                    )
                )
            value = int(tok.text)
            if not INT64_MIN <= value <= INT64_MAX:
                raise parser.emit_error(
                    ExpectedOperandOrInteger(
                        f"integer {value} does not fit in int64", tok.location
                    )
                )
            parser.advance()
            elements.append(Constant(value))

        if len(elements) == AccessorArray.MAX_ELEMENTS:
            break
        if parser.parse_optional(COMMA) is None:
            break
    parser.expect(RSQB)
    return AccessorArray(elements), refs


def print_accessor_list(
    printer: AsmPrinter, array: Sequence[AccessorElement], operands: Iterator[Value]
) -> None:
    """Print `array`, taking one value from `operands` per dynamic component."""
    if not array:
        return
    parts: list[str] = []
    for element in array:
        if isinstance(element, Dynamic):
            value = next(operands, None)
            if value is None:
                raise VerificationError(
                    "accessor has more dynamic components than reference operands"
                )
            parts.append(printer.value_name(value))
        else:
            parts.append(str(element.value))
    printer.write("[" + ", ".join(parts) + "]")
