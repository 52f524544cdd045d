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
Block IR: Operation List + SSA Values.

A `Block` is a flat list of operations over SSA values. It also serves as
the value scope of the assembly parser: names are resolved against
`Block.values`, and a use of a name that has not been defined yet creates a
free value (a block input) typed from the instruction's type list.

Example:
--------
    from quantir.dialects.quantum import ops
    from quantir.dialects.quantum.types import RegisterType
    from quantir.ir.graph import Block

    block = Block()
    reg = block.add_input("%r", RegisterType.get(4))
    ops.H.build(block, [reg], accessors={"trgt": [0, 2]})

    print(block)
    # Output:
    # quantum.h %r[0, 2] : register<4>

Operations are records: operands, results and tags are fixed when the
operation is created.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar

import numpy as np

from quantir.ir import serde
from quantir.ir.typing import BaseType

# Names of unnamed values; `%#` never lexes as a value name.
ANONYMOUS_PREFIX = "%#"


@dataclass
class Value:
    """SSA value in the IR.

    Attributes:
        name: Unique SSA name including the sigil (e.g. "%0", "%q")
        type: Type of this value
        defining_op: Operation that produces this value (None for inputs)
        uses: Operations that consume this value
    """

    name: str
    type: BaseType
    defining_op: Operation | None = None
    uses: dict[Operation, None] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"Value({self.name}: {self.type})"

    def __str__(self) -> str:
        return self.name

    def __hash__(self) -> int:
        return id(self)

    def __eq__(self, other: object) -> bool:
        return self is other

    def add_use(self, op: Operation) -> None:
        self.uses[op] = None

    @property
    def num_uses(self) -> int:
        return len(self.uses)

    @property
    def is_free(self) -> bool:
        """True if this value is a block input, not defined by an operation."""
        return self.defining_op is None

    @property
    def is_anonymous(self) -> bool:
        """True if the value was created without a name."""
        return self.name.startswith(ANONYMOUS_PREFIX)


def _freeze(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        value = value.copy()
        value.flags.writeable = False
    return value


@dataclass
class OperationState:
    """Everything needed to create an operation, before results exist."""

    opcode: str
    operands: list[Value] = field(default_factory=list)
    attrs: dict[str, Any] = field(default_factory=dict)
    result_types: list[BaseType] = field(default_factory=list)


@dataclass(eq=False)
class Operation:
    """Instruction record.

    Attributes:
        opcode: Instruction mnemonic (e.g. "quantum.h")
        operands: Physical operands, including accessor references
        results: Result values
        attrs: Named tags (segment sizes, accessor arrays, user tags, ...)
    """

    opcode: str
    operands: Sequence[Value]
    results: Sequence[Value] = ()
    attrs: Mapping[str, Any] = field(default_factory=dict)
    name: str = ""

    def __post_init__(self) -> None:
        self.operands = tuple(self.operands)
        self.results = tuple(self.results)
        self.attrs = MappingProxyType({k: _freeze(v) for k, v in self.attrs.items()})

        for output in self.results:
            output.defining_op = self
        for operand in self.operands:
            operand.add_use(self)

    def __hash__(self) -> int:
        return id(self)

    def __repr__(self) -> str:
        inputs_str = ", ".join(str(v) for v in self.operands)
        outputs_str = ", ".join(str(v) for v in self.results)
        return f"Operation({self.opcode}: {inputs_str} -> {outputs_str})"

    def __str__(self) -> str:
        from quantir.ir.printer import print_operation

        return print_operation(self)

    @property
    def operand_types(self) -> list[BaseType]:
        return [v.type for v in self.operands]

    @property
    def result_types(self) -> list[BaseType]:
        return [v.type for v in self.results]


@serde.register_class
class Block:
    """Flat list of operations plus the SSA values they define and use."""

    _serde_kind: ClassVar[str] = "quantir.Block"

    def __init__(self) -> None:
        self.operations: list[Operation] = []
        self.values: dict[str, Value] = {}
        self.inputs: list[Value] = []
        self._value_counter = 0
        self._op_counter = 0

    def _gen_value_name(self) -> str:
        while True:
            name = f"{ANONYMOUS_PREFIX}{self._value_counter}"
            self._value_counter += 1
            if name not in self.values:
                return name

    def lookup(self, name: str) -> Value | None:
        """Resolve a textual value name; unnamed values are never found."""
        if name.startswith(ANONYMOUS_PREFIX):
            return None
        return self.values.get(name)

    def add_value(self, type: BaseType, name: str | None = None) -> Value:
        """Create a new SSA value.

        Args:
            type: Type of the value
            name: Optional custom name (anonymous if None)
        """
        if name is None:
            name = self._gen_value_name()

        if name in self.values:
            raise ValueError(f"Value {name} already exists")

        value = Value(name, type)
        self.values[name] = value
        return value

    def add_input(self, name: str, type: BaseType) -> Value:
        """Add a free value that no operation in this block defines."""
        value = self.add_value(type, name=name)
        self.inputs.append(value)
        return value

    def discard_inputs(self, start: int) -> None:
        """Drop unused inputs added after the first `start` inputs."""
        for value in self.inputs[start:]:
            if value.uses:
                raise ValueError(f"Value {value.name} is in use")
            del self.values[value.name]
        del self.inputs[start:]

    def create_operation(
        self, state: OperationState, result_names: Sequence[str] | None = None
    ) -> Operation:
        """Create an operation from `state` and append it to the block.

        Args:
            state: Opcode, operands, tags and result types
            result_names: Optional names for the results (anonymous if None)
        """
        if result_names is None:
            result_names = [None] * len(state.result_types)  # type: ignore[list-item]
        if len(result_names) != len(state.result_types):
            raise ValueError(
                f"{state.opcode}: {len(result_names)} result names for "
                f"{len(state.result_types)} result types"
            )
        results = [
            self.add_value(t, name)
            for t, name in zip(state.result_types, result_names, strict=True)
        ]
        op = Operation(
            opcode=state.opcode,
            operands=state.operands,
            results=results,
            attrs=state.attrs,
            name=f"op{self._op_counter}",
        )
        self._op_counter += 1
        self.operations.append(op)
        return op

    def __iter__(self) -> Iterator[Operation]:
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def __repr__(self) -> str:
        return f"Block({len(self.operations)} ops, {len(self.values)} values)"

    def __str__(self) -> str:
        from quantir.ir.printer import format_block

        return format_block(self)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_json(self) -> dict[str, Any]:
        return {
            "inputs": [
                {"name": v.name, "type": serde.to_json(v.type)} for v in self.inputs
            ],
            "operations": [
                {
                    "opcode": op.opcode,
                    "operands": [v.name for v in op.operands],
                    "results": [
                        {"name": v.name, "type": serde.to_json(v.type)}
                        for v in op.results
                    ],
                    "attrs": {k: serde.to_json(v) for k, v in op.attrs.items()},
                }
                for op in self.operations
            ],
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Block:
        block = cls()
        for inp in data["inputs"]:
            block.add_input(inp["name"], serde.from_json(inp["type"]))
        for op_data in data["operations"]:
            state = OperationState(
                opcode=op_data["opcode"],
                operands=[block.values[name] for name in op_data["operands"]],
                attrs={k: serde.from_json(v) for k, v in op_data["attrs"].items()},
                result_types=[serde.from_json(r["type"]) for r in op_data["results"]],
            )
            block.create_operation(state, [r["name"] for r in op_data["results"]])
        return block
