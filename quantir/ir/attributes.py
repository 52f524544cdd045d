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

"""Attribute values stored on operations.

An accessor describes a slice ``[start, length, stride]`` of a register
operand. Each written component is either a `Constant` or `Dynamic`; a
`Dynamic` component stands for the next pending reference operand of the
owning instruction, in textual order. Components that were not written are
not recorded.

Examples::

    >>> AccessorArray([0, DYNAMIC, 1])
    AccessorArray([0, DYNAMIC, 1])
    >>> AccessorArray([0, DYNAMIC, 1]).num_dynamic
    1
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, overload

from quantir.ir import serde
from quantir.ir.errors import InvalidConstructionInvariant

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


@serde.register_class
@dataclass(frozen=True)
class Constant:
    """A compile-time accessor component."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidConstructionInvariant(
                f"accessor constant must be an int, got {type(self.value).__name__}"
            )
        if not INT64_MIN <= self.value <= INT64_MAX:
            raise InvalidConstructionInvariant(
                f"accessor constant {self.value} does not fit in int64"
            )

    def __str__(self) -> str:
        return str(self.value)

    _serde_kind: ClassVar[str] = "quantir.Constant"

    def to_json(self) -> dict[str, Any]:
        return {"value": self.value}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Constant:
        return cls(data["value"])


@serde.register_class
class Dynamic:
    """Marker for an accessor component supplied by a reference operand."""

    _instance: ClassVar[Dynamic | None] = None

    def __new__(cls) -> Dynamic:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DYNAMIC"

    _serde_kind: ClassVar[str] = "quantir.Dynamic"

    def to_json(self) -> dict[str, Any]:
        return {}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Dynamic:
        return cls()


DYNAMIC = Dynamic()

AccessorElement = Constant | Dynamic


def _as_element(value: AccessorElement | int) -> AccessorElement:
    if isinstance(value, (Constant, Dynamic)):
        return value
    return Constant(value)


@serde.register_class
class AccessorArray(Sequence):
    """Immutable list of at most three accessor components."""

    MAX_ELEMENTS: ClassVar[int] = 3

    def __init__(self, elements: Iterable[AccessorElement | int] = ()):
        elems = tuple(_as_element(e) for e in elements)
        if len(elems) > self.MAX_ELEMENTS:
            raise InvalidConstructionInvariant(
                f"accessor list has at most {self.MAX_ELEMENTS} components, "
                f"got {len(elems)}"
            )
        self._elements = elems

    @overload
    def __getitem__(self, index: int) -> AccessorElement: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[AccessorElement, ...]: ...

    def __getitem__(self, index: int | slice) -> Any:
        return self._elements[index]

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[AccessorElement]:
        return iter(self._elements)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AccessorArray):
            return False
        return self._elements == other._elements

    def __hash__(self) -> int:
        return hash(("AccessorArray", self._elements))

    def __repr__(self) -> str:
        inner = ", ".join(
            "DYNAMIC" if isinstance(e, Dynamic) else str(e) for e in self._elements
        )
        return f"AccessorArray([{inner}])"

    @property
    def num_dynamic(self) -> int:
        """Number of reference operands this accessor consumes."""
        return sum(1 for e in self._elements if isinstance(e, Dynamic))

    @property
    def start(self) -> AccessorElement | None:
        return self._elements[0] if len(self._elements) > 0 else None

    @property
    def length(self) -> AccessorElement | None:
        return self._elements[1] if len(self._elements) > 1 else None

    @property
    def stride(self) -> AccessorElement | None:
        return self._elements[2] if len(self._elements) > 2 else None

    _serde_kind: ClassVar[str] = "quantir.AccessorArray"

    def to_json(self) -> dict[str, Any]:
        return {"elements": [serde.to_json(e) for e in self._elements]}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> AccessorArray:
        return cls(serde.from_json(e) for e in data["elements"])


EMPTY_ACCESSORS = AccessorArray()


@serde.register_class
@dataclass(frozen=True)
class SymbolRef:
    """Reference to a named symbol, printed as ``@name``."""

    name: str

    def __str__(self) -> str:
        return f"@{self.name}"

    _serde_kind: ClassVar[str] = "quantir.SymbolRef"

    def to_json(self) -> dict[str, Any]:
        return {"name": self.name}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> SymbolRef:
        return cls(data["name"])
