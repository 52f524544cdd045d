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

"""Call form of parametric circuit instructions.

    mnemonic @callee(N, %a[acc], %b, ...) [{tags}] [: types] -> type

All argument operands come first, followed by the accessor references of
every argument in textual order. Segment sizes are
``[num_args, num_accessor_refs]``; the accessor arrays are kept in the
``accessors`` tag, one per argument.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

from quantir.dialects.quantum.accessors import parse_accessor_list, print_accessor_list
from quantir.dialects.quantum.operands import SEGMENT_SIZES_ATTR, segment_sizes
from quantir.ir.attributes import AccessorArray
from quantir.ir.errors import OperandTypeCountMismatch, VerificationError
from quantir.ir.graph import Operation, OperationState
from quantir.ir.lexer import ARROW, COMMA, LPAR, RPAR
from quantir.ir.parser import AsmParser, UnresolvedOperand
from quantir.ir.printer import AsmPrinter
from quantir.ir.typing import IndexType

if TYPE_CHECKING:
    from quantir.dialects.quantum.ops import OpDef

CALLEE_ATTR = "callee"
COUNT_ATTR = "n"
CALL_ACCESSORS_ATTR = "accessors"


def parse_call_form(parser: AsmParser, opdef: OpDef) -> OperationState:
    callee = parser.parse_symbol_ref()
    parser.expect(LPAR)
    count = parser.parse_integer("argument count")

    args: list[UnresolvedOperand] = []
    refs: list[UnresolvedOperand] = []
    arrays: list[AccessorArray] = []
    while parser.parse_optional(COMMA) is not None:
        args.append(parser.parse_operand())
        array, arg_refs = parse_accessor_list(parser)
        arrays.append(array)
        refs.extend(arg_refs)
    parser.expect(RPAR)

    attrs: dict[str, Any] = {
        CALLEE_ATTR: callee,
        COUNT_ATTR: count,
        CALL_ACCESSORS_ATTR: tuple(arrays),
        SEGMENT_SIZES_ATTR: np.array([len(args), len(refs)], dtype=np.int32),
    }
    parser.parse_optional_attr_dict(attrs, reserved=opdef.structural_attrs)

    types_loc = parser.location
    types = parser.parse_optional_colon_type_list()
    if len(types) != len(args):
        raise parser.emit_error(
            OperandTypeCountMismatch(len(args), len(types), types_loc)
        )
    index = IndexType.get(parser.context)
    values = parser.resolve_operands(args + refs, types + [index] * len(refs))

    parser.expect(ARROW)
    result = parser.parse_type()
    return OperationState(opdef.name, values, attrs, [result])


def print_call_form(printer: AsmPrinter, op: Operation, opdef: OpDef) -> None:
    sizes = segment_sizes(op)
    if len(sizes) != 2:
        raise VerificationError(
            f"'{op.opcode}' has {len(sizes)} operand segments, expected 2"
        )
    if len(op.results) != 1:
        raise VerificationError(f"'{op.opcode}' must have exactly one result")

    num_args = sizes[0]
    args = op.operands[:num_args]
    refs = iter(op.operands[num_args:])
    arrays = op.attrs.get(CALL_ACCESSORS_ATTR, ())

    printer.write(f"{opdef.name} {op.attrs[CALLEE_ATTR]}({int(op.attrs[COUNT_ATTR])}")
    for i, arg in enumerate(args):
        printer.write(", ")
        printer.print_operand(arg)
        if i < len(arrays):
            print_accessor_list(printer, arrays[i], refs)
    printer.write(")")

    printer.print_optional_attr_dict(op.attrs, elided=opdef.structural_attrs)
    if args:
        printer.write(" : ")
        printer.print_type_list(v.type for v in args)
    printer.write(" -> ")
    printer.print_type(op.results[0].type)
