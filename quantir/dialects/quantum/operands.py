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

"""Generic instruction format of the quantum dialect.

    mnemonic [(angle)] %a[acc], %b, ... [{tags}] [: types] [-> types]

Operands fill the slots of the instruction kind in order. A register-eligible
slot may be followed by an accessor list (see `accessors`); its references
are stored right after the slot's main operand and are typed ``index``, so
they do not appear in the type list.

Physical operands are grouped into segments: one per slot holding the main
operand (size 0 or 1) and, for register-eligible slots, one more holding the
accessor references. The segment sizes are stored in the
``operand_segment_sizes`` tag.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np

from quantir.dialects.quantum.accessors import parse_accessor_list, print_accessor_list
from quantir.ir.attributes import EMPTY_ACCESSORS
from quantir.ir.errors import (
    MissingRotationParameter,
    OperandCountMismatch,
    OperandTypeCountMismatch,
    VerificationError,
)
from quantir.ir.graph import Operation, OperationState
from quantir.ir.lexer import COMMA, LPAR, RPAR
from quantir.ir.parser import AsmParser, UnresolvedOperand
from quantir.ir.printer import AsmPrinter, format_attribute
from quantir.ir.typing import BaseType, IndexType

if TYPE_CHECKING:
    from quantir.dialects.quantum.ops import OpDef

logger = logging.getLogger(__name__)

SEGMENT_SIZES_ATTR = "operand_segment_sizes"
ROTATION_ATTR = "phi"


def segment_sizes(op: Operation) -> list[int]:
    sizes = op.attrs.get(SEGMENT_SIZES_ATTR)
    if sizes is None:
        raise VerificationError(f"'{op.opcode}' has no '{SEGMENT_SIZES_ATTR}' tag")
    return [int(s) for s in sizes]


def _pin_types(
    pinned: list[bool], types: list[BaseType], parser: AsmParser
) -> list[BaseType]:
    index = IndexType.get(parser.context)
    it = iter(types)
    return [index if p else next(it) for p in pinned]


# ==============================================================================
# --- Parsing
# ==============================================================================


def _parse_rotation(
    parser: AsmParser,
    opdef: OpDef,
    operands: list[UnresolvedOperand],
    pinned: list[bool],
    sizes: list[int],
    attrs: dict[str, Any],
) -> None:
    lpar = parser.parse_optional(LPAR)
    if lpar is None:
        return

    angle = parser.parse_optional_float()
    if angle is not None:
        attrs[ROTATION_ATTR] = angle
    else:
        ref = parser.parse_optional_operand()
        if ref is not None:
            operands.append(ref)
            pinned.append(False)
            sizes[0] = 1
        elif parser.config.allow_missing_rotation_parameter:
            parser.emit_warning(
                f"'{opdef.name}' has no rotation angle", parser.location
            )
            logger.warning("accepted '%s' without rotation angle", opdef.name)
        else:
            raise parser.emit_error(
                MissingRotationParameter(
                    f"'{opdef.name}' expects a rotation angle or value inside '()'",
                    parser.location,
                )
            )
    parser.expect(RPAR)


def parse_operand_group(parser: AsmParser, opdef: OpDef) -> OperationState:
    """Parse everything after the mnemonic of a generic-form instruction."""
    operands: list[UnresolvedOperand] = []
    pinned: list[bool] = []
    sizes = [0] * opdef.num_segments
    attrs: dict[str, Any] = {}

    first = 0
    if opdef.rotation:
        first = 1
        _parse_rotation(parser, opdef, operands, pinned, sizes, attrs)

    start_loc = parser.location
    slot = first
    ref = parser.parse_optional_operand()
    while ref is not None:
        if slot >= len(opdef.slots):
            raise parser.emit_error(
                OperandCountMismatch(
                    f"'{opdef.name}' expects at most "
                    f"{len(opdef.slots) - first} operands",
                    ref.location,
                )
            )
        seg = opdef.segment_index(slot)
        operands.append(ref)
        pinned.append(False)
        sizes[seg] = 1
        if opdef.slots[slot].register:
            array, refs = parse_accessor_list(parser)
            attrs[opdef.accessor_attr_name(slot)] = array
            operands.extend(refs)
            pinned.extend([True] * len(refs))
            sizes[seg + 1] = len(refs)
        slot += 1
        if parser.parse_optional(COMMA) is None:
            break
        ref = parser.parse_operand()

    given = slot - first
    if given < opdef.min_operands:
        raise parser.emit_error(
            OperandCountMismatch(
                f"'{opdef.name}' expects at least {opdef.min_operands} operands, "
                f"got {given}",
                start_loc,
            )
        )
    for i in range(slot, len(opdef.slots)):
        if opdef.slots[i].register:
            attrs[opdef.accessor_attr_name(i)] = EMPTY_ACCESSORS
    attrs[SEGMENT_SIZES_ATTR] = np.array(sizes, dtype=np.int32)

    parser.parse_optional_attr_dict(attrs, reserved=opdef.structural_attrs)

    types_loc = parser.location
    types = parser.parse_optional_colon_type_list()
    expected = pinned.count(False)
    if len(types) != expected:
        raise parser.emit_error(
            OperandTypeCountMismatch(expected, len(types), types_loc)
        )
    values = parser.resolve_operands(operands, _pin_types(pinned, types, parser))
    result_types = parser.parse_optional_arrow_type_list()
    return OperationState(opdef.name, values, attrs, result_types)


# ==============================================================================
# --- Printing
# ==============================================================================


def print_operand_group(printer: AsmPrinter, op: Operation, opdef: OpDef) -> None:
    """Print `op` in generic form; the exact inverse of `parse_operand_group`."""
    sizes = segment_sizes(op)
    if len(sizes) != opdef.num_segments:
        raise VerificationError(
            f"'{op.opcode}' has {len(sizes)} operand segments, "
            f"expected {opdef.num_segments}"
        )
    operands = iter(op.operands)
    main_types: list[BaseType] = []

    printer.write(opdef.name)
    first = 0
    if opdef.rotation:
        first = 1
        if ROTATION_ATTR in op.attrs:
            printer.write(f"({format_attribute(float(op.attrs[ROTATION_ATTR]))})")
        elif sizes[0]:
            angle = next(operands)
            main_types.append(angle.type)
            printer.write("(")
            printer.print_operand(angle)
            printer.write(")")

    sep = " "
    for slot in range(first, len(opdef.slots)):
        seg = opdef.segment_index(slot)
        if not sizes[seg]:
            continue
        main = next(operands)
        main_types.append(main.type)
        printer.write(sep)
        printer.print_operand(main)
        sep = ", "
        if opdef.slots[slot].register:
            array = op.attrs.get(opdef.accessor_attr_name(slot), EMPTY_ACCESSORS)
            print_accessor_list(printer, array, operands)

    printer.print_optional_attr_dict(op.attrs, elided=opdef.structural_attrs)
    if main_types:
        printer.write(" : ")
        printer.print_type_list(main_types)
    printer.print_optional_arrow_type_list(op.result_types)
