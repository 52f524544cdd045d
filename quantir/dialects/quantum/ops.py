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

"""
Instruction kinds of the quantum dialect.

An `OpDef` describes the operand slots of an instruction kind. The same
description drives parsing, printing, programmatic construction and
verification, so the three can never disagree about segment layout.

Example:
--------
    >>> block = Block()
    >>> r = block.add_input("%r", RegisterType.get(4))
    >>> n = block.add_input("%n", IndexType.get())
    >>> op = H.build(block, [r], accessors={"trgt": [0, n, 1]})
    >>> print_operation(op)
    'quantum.h %r[0, %n, 1] : register<4>'
    >>> op.attrs["operand_segment_sizes"].tolist()
    [1, 1]
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import cached_property
from typing import Any

import numpy as np

from quantir.dialects.quantum.call import (
    CALL_ACCESSORS_ATTR,
    CALLEE_ATTR,
    COUNT_ATTR,
    parse_call_form,
    print_call_form,
)
from quantir.dialects.quantum.operands import (
    ROTATION_ATTR,
    SEGMENT_SIZES_ATTR,
    parse_operand_group,
    print_operand_group,
    segment_sizes,
)
from quantir.ir.attributes import (
    DYNAMIC,
    EMPTY_ACCESSORS,
    AccessorArray,
    AccessorElement,
    Constant,
    SymbolRef,
)
from quantir.ir.errors import InvalidConstructionInvariant, VerificationError
from quantir.ir.graph import Block, Operation, OperationState, Value
from quantir.ir.parser import AsmParser
from quantir.ir.printer import AsmPrinter
from quantir.ir.registry import get_op, register_op
from quantir.ir.typing import BaseType, IndexType

__all__ = [
    "CALLEE_ATTR",
    "CALL_ACCESSORS_ATTR",
    "COUNT_ATTR",
    "QUANTUM_OPS",
    "ROTATION_ATTR",
    "SEGMENT_SIZES_ATTR",
    "OpDef",
    "Slot",
    "SlotOperands",
    "slot_operands",
    "verify",
]

AccessorComponent = int | AccessorElement | Value


@dataclass(frozen=True)
class Slot:
    """A logical operand position of an instruction kind.

    Attributes:
        name: Slot name; register-eligible slots store their accessor array
            in the ``<name>_accessors`` tag.
        register: The operand may carry an accessor list.
        optional: The operand may be omitted (trailing slots only).
    """

    name: str
    register: bool = False
    optional: bool = False


@dataclass(frozen=True)
class SlotOperands:
    """Physical operands of one slot after regrouping."""

    name: str
    main: Value | None
    accessor_refs: tuple[Value, ...] = ()
    accessors: AccessorArray = EMPTY_ACCESSORS


@dataclass(frozen=True)
class OpDef:
    """Instruction kind: mnemonic plus slot layout.

    Attributes:
        name: Mnemonic (e.g. "quantum.h").
        slots: Ordered operand slots.
        rotation: Slot 0 is the rotation angle, written as ``(angle)`` right
            after the mnemonic.
        call_form: Variadic ``@callee(N, args...)`` form; takes no slots.
        summary: One-line description.
    """

    name: str
    slots: tuple[Slot, ...] = ()
    rotation: bool = False
    call_form: bool = False
    summary: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise InvalidConstructionInvariant("instruction kind needs a mnemonic")
        object.__setattr__(self, "slots", tuple(self.slots))
        if self.call_form and (self.slots or self.rotation):
            raise InvalidConstructionInvariant(
                f"{self.name}: call-form instructions take no slots"
            )
        names = [s.name for s in self.slots]
        if len(set(names)) != len(names):
            raise InvalidConstructionInvariant(f"{self.name}: duplicate slot names")
        if self.rotation and (not self.slots or self.slots[0].register):
            raise InvalidConstructionInvariant(
                f"{self.name}: rotation kinds need a plain angle slot first"
            )
        seen_optional = False
        for slot in self.slots[self._first_operand_slot :]:
            if slot.optional:
                seen_optional = True
            elif seen_optional:
                raise InvalidConstructionInvariant(
                    f"{self.name}: required slot '{slot.name}' follows an optional one"
                )

    # =========================================================================
    # Layout
    # =========================================================================

    @property
    def _first_operand_slot(self) -> int:
        return 1 if self.rotation else 0

    @cached_property
    def num_segments(self) -> int:
        if self.call_form:
            return 2
        return len(self.slots) + sum(1 for s in self.slots if s.register)

    def segment_index(self, slot_index: int) -> int:
        """Index of the main segment of a slot; its accessor segment follows."""
        return slot_index + sum(1 for s in self.slots[:slot_index] if s.register)

    def accessor_attr_name(self, slot_index: int) -> str:
        return f"{self.slots[slot_index].name}_accessors"

    @cached_property
    def accessor_attr_names(self) -> tuple[str, ...]:
        return tuple(
            self.accessor_attr_name(i)
            for i, s in enumerate(self.slots)
            if s.register
        )

    @cached_property
    def structural_attrs(self) -> frozenset[str]:
        """Tags owned by the instruction format; elided when printing."""
        if self.call_form:
            return frozenset(
                {CALLEE_ATTR, COUNT_ATTR, CALL_ACCESSORS_ATTR, SEGMENT_SIZES_ATTR}
            )
        names = {SEGMENT_SIZES_ATTR, *self.accessor_attr_names}
        if self.rotation:
            names.add(ROTATION_ATTR)
        return frozenset(names)

    @cached_property
    def min_operands(self) -> int:
        return sum(
            1 for s in self.slots[self._first_operand_slot :] if not s.optional
        )

    @cached_property
    def max_operands(self) -> int | None:
        """Upper bound on physical operands; None for the call form."""
        if self.call_form:
            return None
        return sum(
            1 + (AccessorArray.MAX_ELEMENTS if s.register else 0) for s in self.slots
        )

    def describe(self) -> str:
        """Slot map such as ``gate, ctrl*, trgt*?``."""
        if self.call_form:
            return "@callee(N, args...)"
        parts = []
        for s in self.slots:
            suffix = ("*" if s.register else "") + ("?" if s.optional else "")
            parts.append(s.name + suffix)
        if self.rotation:
            parts[0] = f"({parts[0]})"
        return ", ".join(parts)

    # =========================================================================
    # Text format
    # =========================================================================

    def parse(self, parser: AsmParser) -> OperationState:
        if self.call_form:
            return parse_call_form(parser, self)
        return parse_operand_group(parser, self)

    def print(self, printer: AsmPrinter, op: Operation) -> None:
        if self.call_form:
            print_call_form(printer, op, self)
        else:
            print_operand_group(printer, op, self)

    # =========================================================================
    # Construction
    # =========================================================================

    def _check_user_attrs(self, attrs: Mapping[str, Any] | None) -> dict[str, Any]:
        attrs = dict(attrs or {})
        reserved = self.structural_attrs & attrs.keys()
        if reserved:
            raise InvalidConstructionInvariant(
                f"{self.name}: attributes {sorted(reserved)} are reserved"
            )
        return attrs

    def build(
        self,
        block: Block,
        operands: Sequence[Value | None],
        *,
        accessors: Mapping[str, Sequence[AccessorComponent]] | None = None,
        phi: float | Value | None = None,
        attrs: Mapping[str, Any] | None = None,
        result_types: Sequence[BaseType] = (),
        result_names: Sequence[str] | None = None,
    ) -> Operation:
        """Create a generic-form instruction and append it to `block`.

        Args:
            block: Block receiving the instruction.
            operands: Main operands of the slots after the rotation angle;
                trailing optional slots may be omitted or None.
            accessors: Accessor components per register-eligible slot name.
                Ints are constants; `Value`s of type ``index`` are references.
            phi: Rotation angle, as a literal or a value.
            attrs: Extra tags; structural tag names are rejected.
            result_types: Types of the results.
            result_names: Optional result names.
        """
        if self.call_form:
            raise InvalidConstructionInvariant(f"{self.name}: use build_call()")
        accessors = dict(accessors or {})
        register_slots = {s.name for s in self.slots if s.register}
        unknown = set(accessors) - register_slots
        if unknown:
            raise InvalidConstructionInvariant(
                f"{self.name}: no register-eligible slot named {sorted(unknown)}"
            )

        tags = self._check_user_attrs(attrs)
        physical: list[Value] = []
        sizes = [0] * self.num_segments

        first = self._first_operand_slot
        if self.rotation:
            if isinstance(phi, Value):
                physical.append(phi)
                sizes[0] = 1
            elif phi is not None:
                if not math.isfinite(phi):
                    raise InvalidConstructionInvariant(
                        f"{self.name}: rotation angle must be finite, got {phi}"
                    )
                tags[ROTATION_ATTR] = float(phi)
        elif phi is not None:
            raise InvalidConstructionInvariant(f"{self.name} takes no rotation angle")

        if len(operands) > len(self.slots) - first:
            raise InvalidConstructionInvariant(
                f"{self.name}: expected at most {len(self.slots) - first} operands, "
                f"got {len(operands)}"
            )

        absent = False
        for i in range(first, len(self.slots)):
            slot = self.slots[i]
            seg = self.segment_index(i)
            value = operands[i - first] if i - first < len(operands) else None
            if value is None:
                if not slot.optional:
                    raise InvalidConstructionInvariant(
                        f"{self.name}: missing operand for slot '{slot.name}'"
                    )
                if slot.name in accessors:
                    raise InvalidConstructionInvariant(
                        f"{self.name}: accessor given for absent slot '{slot.name}'"
                    )
                absent = True
            elif absent:
                raise InvalidConstructionInvariant(
                    f"{self.name}: slot '{slot.name}' follows an absent slot"
                )
            else:
                physical.append(value)
                sizes[seg] = 1
            if slot.register:
                array, refs = _split_accessor(self.name, accessors.get(slot.name, ()))
                tags[self.accessor_attr_name(i)] = array
                physical.extend(refs)
                sizes[seg + 1] = len(refs)

        tags[SEGMENT_SIZES_ATTR] = np.array(sizes, dtype=np.int32)
        state = OperationState(self.name, physical, tags, list(result_types))
        return block.create_operation(state, result_names)

    def build_call(
        self,
        block: Block,
        callee: str | SymbolRef,
        count: int,
        args: Sequence[Value],
        result_type: BaseType,
        *,
        accessors: Sequence[Sequence[AccessorComponent]] | None = None,
        attrs: Mapping[str, Any] | None = None,
        result_name: str | None = None,
    ) -> Operation:
        """Create a call-form instruction and append it to `block`."""
        if not self.call_form:
            raise InvalidConstructionInvariant(f"{self.name}: use build()")
        if accessors is None:
            accessors = [()] * len(args)
        if len(accessors) != len(args):
            raise InvalidConstructionInvariant(
                f"{self.name}: {len(accessors)} accessor lists for "
                f"{len(args)} arguments"
            )
        if not isinstance(callee, SymbolRef):
            callee = SymbolRef(callee)

        arrays: list[AccessorArray] = []
        refs: list[Value] = []
        for components in accessors:
            array, arg_refs = _split_accessor(self.name, components)
            arrays.append(array)
            refs.extend(arg_refs)

        tags = self._check_user_attrs(attrs)
        tags.update(
            {
                CALLEE_ATTR: callee,
                COUNT_ATTR: int(count),
                CALL_ACCESSORS_ATTR: tuple(arrays),
                SEGMENT_SIZES_ATTR: np.array([len(args), len(refs)], dtype=np.int32),
            }
        )
        state = OperationState(self.name, [*args, *refs], tags, [result_type])
        names = [result_name] if result_name is not None else None
        return block.create_operation(state, names)

    # =========================================================================
    # Regrouping and verification
    # =========================================================================

    def slot_operands(self, op: Operation) -> list[SlotOperands]:
        sizes = segment_sizes(op)
        if self.call_form:
            num_args = sizes[0]
            arrays = op.attrs.get(CALL_ACCESSORS_ATTR, ())
            pos = num_args
            groups = []
            for i, arg in enumerate(op.operands[:num_args]):
                array = arrays[i] if i < len(arrays) else EMPTY_ACCESSORS
                refs = op.operands[pos : pos + array.num_dynamic]
                pos += array.num_dynamic
                groups.append(SlotOperands(f"arg{i}", arg, tuple(refs), array))
            return groups

        groups = []
        pos = 0
        for i, slot in enumerate(self.slots):
            seg = self.segment_index(i)
            main = op.operands[pos] if sizes[seg] else None
            pos += sizes[seg]
            if not slot.register:
                groups.append(SlotOperands(slot.name, main))
                continue
            n = sizes[seg + 1]
            groups.append(
                SlotOperands(
                    slot.name,
                    main,
                    tuple(op.operands[pos : pos + n]),
                    op.attrs.get(self.accessor_attr_name(i), EMPTY_ACCESSORS),
                )
            )
            pos += n
        return groups

    def verify(self, op: Operation) -> None:
        """Check segment bookkeeping and accessor references of `op`.

        Raises:
            VerificationError: On the first violated invariant.
        """

        def fail(message: str) -> VerificationError:
            return VerificationError(f"'{op.opcode}': {message}")

        if op.opcode != self.name:
            raise fail(f"verified against kind '{self.name}'")
        sizes = segment_sizes(op)
        if len(sizes) != self.num_segments:
            raise fail(f"{len(sizes)} operand segments, expected {self.num_segments}")
        if any(s < 0 for s in sizes):
            raise fail("negative operand segment size")
        if sum(sizes) != len(op.operands):
            raise fail(
                f"operand segment sizes sum to {sum(sizes)} but there are "
                f"{len(op.operands)} operands"
            )

        def check_refs(refs: Sequence[Value], array: Any, what: str) -> None:
            if not isinstance(array, AccessorArray):
                raise fail(f"{what} is not an accessor array")
            if len(array) > AccessorArray.MAX_ELEMENTS:
                raise fail(
                    f"{what} has more than {AccessorArray.MAX_ELEMENTS} components"
                )
            if array.num_dynamic != len(refs):
                raise fail(
                    f"{what} has {array.num_dynamic} dynamic components but "
                    f"{len(refs)} reference operands"
                )
            for ref in refs:
                if not isinstance(ref.type, IndexType):
                    raise fail(f"accessor reference {ref.name} is not of type index")

        if self.call_form:
            arrays = op.attrs.get(CALL_ACCESSORS_ATTR)
            if (
                not isinstance(arrays, tuple)
                or len(arrays) != sizes[0]
                or not all(isinstance(a, AccessorArray) for a in arrays)
            ):
                raise fail("needs one accessor array per argument")
            if not isinstance(op.attrs.get(CALLEE_ATTR), SymbolRef):
                raise fail("callee is not a symbol reference")
            if len(op.results) != 1:
                raise fail("must have exactly one result")
            if sum(a.num_dynamic for a in arrays) != sizes[1]:
                raise fail("accessor references do not match the accessor segment")
            for group, array in zip(self.slot_operands(op), arrays, strict=True):
                check_refs(group.accessor_refs, array, f"accessor of {group.name}")
            return

        if self.rotation and ROTATION_ATTR in op.attrs and sizes[0]:
            raise fail("rotation angle given both as literal and as value")
        absent = False
        groups = self.slot_operands(op)
        for i, (slot, group) in enumerate(zip(self.slots, groups, strict=True)):
            seg = self.segment_index(i)
            if sizes[seg] > 1:
                raise fail(f"slot '{slot.name}' has {sizes[seg]} main operands")
            angle_slot = self.rotation and i == 0
            if group.main is None and not angle_slot:
                if not slot.optional:
                    raise fail(f"missing operand for slot '{slot.name}'")
                absent = True
            elif group.main is not None and absent and not angle_slot:
                raise fail(f"slot '{slot.name}' follows an absent slot")
            if slot.register:
                if group.main is None and group.accessor_refs:
                    raise fail(f"accessor references for absent slot '{slot.name}'")
                check_refs(
                    group.accessor_refs,
                    op.attrs.get(self.accessor_attr_name(i)),
                    self.accessor_attr_name(i),
                )


def _split_accessor(
    opname: str, components: Sequence[AccessorComponent]
) -> tuple[AccessorArray, list[Value]]:
    elements: list[AccessorElement] = []
    refs: list[Value] = []
    for component in components:
        if isinstance(component, Value):
            if not isinstance(component.type, IndexType):
                raise InvalidConstructionInvariant(
                    f"{opname}: accessor reference {component.name} must be of "
                    f"type index, got {component.type}"
                )
            elements.append(DYNAMIC)
            refs.append(component)
        elif isinstance(component, Constant):
            elements.append(component)
        elif isinstance(component, int) and not isinstance(component, bool):
            elements.append(Constant(component))
        else:
            raise InvalidConstructionInvariant(
                f"{opname}: accessor components must be ints or index values, "
                f"got {component!r}"
            )
    return AccessorArray(elements), refs


def _lookup(op: Operation) -> OpDef:
    opdef = get_op(op.opcode)
    if not isinstance(opdef, OpDef):
        raise VerificationError(f"unknown instruction kind '{op.opcode}'")
    return opdef


def slot_operands(op: Operation) -> list[SlotOperands]:
    """Regroup the physical operands of `op` into its logical slots."""
    return _lookup(op).slot_operands(op)


def verify(op: Operation) -> None:
    """Verify `op` against its registered instruction kind."""
    _lookup(op).verify(op)


# ==============================================================================
# --- Instruction Set
# ==============================================================================

_TRGT = (Slot("trgt", register=True),)
_CTRL_TRGT = (Slot("ctrl", register=True), Slot("trgt", register=True))
_ANGLE_TRGT = (Slot("phi"), Slot("trgt", register=True))

ALLOC = OpDef("quantum.alloc", summary="allocate a qubit or a register")
DEALLOC = OpDef(
    "quantum.dealloc", (Slot("reg", register=True),), summary="release qubits"
)
H = OpDef("quantum.h", _TRGT, summary="Hadamard")
X = OpDef("quantum.x", _TRGT, summary="Pauli X")
Y = OpDef("quantum.y", _TRGT, summary="Pauli Y")
Z = OpDef("quantum.z", _TRGT, summary="Pauli Z")
S = OpDef("quantum.s", _TRGT, summary="phase")
T = OpDef("quantum.t", _TRGT, summary="pi/8")
RX = OpDef("quantum.rx", _ANGLE_TRGT, rotation=True, summary="rotation about X")
RY = OpDef("quantum.ry", _ANGLE_TRGT, rotation=True, summary="rotation about Y")
RZ = OpDef("quantum.rz", _ANGLE_TRGT, rotation=True, summary="rotation about Z")
CX = OpDef("quantum.cx", _CTRL_TRGT, summary="controlled X")
CZ = OpDef("quantum.cz", _CTRL_TRGT, summary="controlled Z")
SWAP = OpDef("quantum.swap", _CTRL_TRGT, summary="swap two qubits")
MEASURE = OpDef("quantum.measure", _TRGT, summary="measure in the Z basis")
APPLY = OpDef(
    "quantum.apply",
    (
        Slot("gate"),
        Slot("trgt", register=True),
        Slot("ctrl", register=True, optional=True),
    ),
    summary="apply a gate value",
)
CTRL = OpDef(
    "quantum.ctrl",
    (Slot("gate"), Slot("ctrl", register=True), Slot("trgt", register=True)),
    summary="apply a gate value under control qubits",
)
PCIRCUIT = OpDef(
    "quantum.pcircuit", call_form=True, summary="instantiate a parametric circuit"
)

QUANTUM_OPS: tuple[OpDef, ...] = (
    ALLOC,
    DEALLOC,
    H,
    X,
    Y,
    Z,
    S,
    T,
    RX,
    RY,
    RZ,
    CX,
    CZ,
    SWAP,
    MEASURE,
    APPLY,
    CTRL,
    PCIRCUIT,
)

for _opdef in QUANTUM_OPS:
    register_op(_opdef)
