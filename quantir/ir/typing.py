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
quantir Core Typing System.

===========================
Interning
===========================
Every type is owned by a `TypeContext`. The context is a content-addressed map
from a structural key ``(type class, parameters)`` to the single live instance
for that key, so within one context::

    RegisterType.get(4) is RegisterType.get(4)

Types are never constructed directly; each class exposes a ``get`` classmethod
that goes through `TypeContext.intern`. Parameters are validated before the
instance is created. A violation raises `InvalidConstructionInvariant` and
leaves the context untouched.

The context is append-only. Entries are never removed or rewritten, and the
insert path takes a lock, so interning from several threads is safe.

===========================
Builtin Types
===========================
The instruction grammar needs a few types that do not belong to any dialect:

    - `index`: type of every accessor reference operand.
    - `iN` (N in 1..64): signless integers.
    - `f16`, `f32`, `f64`: floats, e.g. for rotation angles passed as values.

Dialect types (see `quantir.dialects.quantum.types`) subclass `BaseType` the
same way.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, ClassVar, TypeVar

from quantir.ir import serde
from quantir.ir.errors import InvalidConstructionInvariant

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="BaseType")

# ==============================================================================
# --- Base Type
# ==============================================================================


class BaseType:
    """Base class for all interned quantir types."""

    _context: TypeContext
    _params: tuple[Any, ...]

    def __init__(self, *args: Any, **kwargs: Any):
        raise TypeError(
            f"{type(self).__name__} cannot be instantiated directly, "
            f"use {type(self).__name__}.get()"
        )

    @classmethod
    def verify(cls, *params: Any) -> None:
        """Check construction invariants; raise InvalidConstructionInvariant."""

    @property
    def context(self) -> TypeContext:
        return self._context

    @property
    def params(self) -> tuple[Any, ...]:
        return self._params

    @property
    def key(self) -> tuple[Any, ...]:
        return (type(self), self._params)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, BaseType):
            return False
        return self.key == other.key

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._params))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __repr__(self) -> str:
        return str(self)

    # --- Serde methods ---
    def to_json(self) -> dict[str, Any]:
        return {}


# ==============================================================================
# --- Type Registry
# ==============================================================================


class TypeContext:
    """Registry that interns types by structural key."""

    def __init__(self, name: str = "default"):
        self.name = name
        self._storage: dict[tuple[Any, ...], BaseType] = {}
        self._lock = threading.Lock()

    def intern(self, cls: type[T], *params: Any) -> T:
        """Return the unique instance of `cls` with `params`, creating it if needed."""
        cls.verify(*params)
        for param in params:
            if isinstance(param, BaseType) and param.context is not self:
                raise InvalidConstructionInvariant(
                    f"{cls.__name__} parameter {param} belongs to context "
                    f"'{param.context.name}', not '{self.name}'"
                )

        key = (cls, params)
        found = self._storage.get(key)
        if found is not None:
            return found  # type: ignore[return-value]

        with self._lock:
            found = self._storage.get(key)
            if found is None:
                found = object.__new__(cls)
                object.__setattr__(found, "_context", self)
                object.__setattr__(found, "_params", params)
                self._storage[key] = found
                logger.debug("interned %s in context '%s'", found, self.name)
        return found  # type: ignore[return-value]

    def interned(self) -> list[BaseType]:
        """Snapshot of every type interned so far, in creation order."""
        with self._lock:
            return list(self._storage.values())

    def __contains__(self, key: tuple[Any, ...]) -> bool:
        return key in self._storage

    def __len__(self) -> int:
        return len(self._storage)

    def __repr__(self) -> str:
        return f"TypeContext({self.name!r}, {len(self)} types)"


_default_context = TypeContext()


def get_default_context() -> TypeContext:
    """Process-wide context used when callers do not pass one."""
    return _default_context


def _ctx(context: TypeContext | None) -> TypeContext:
    return context if context is not None else _default_context


# ==============================================================================
# --- Builtin Types
# ==============================================================================


@serde.register_class
class IndexType(BaseType):
    """Machine-sized index; the type of accessor reference operands."""

    @classmethod
    def get(cls, context: TypeContext | None = None) -> IndexType:
        return _ctx(context).intern(cls)

    def __str__(self) -> str:
        return "index"

    _serde_kind: ClassVar[str] = "quantir.IndexType"

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> IndexType:
        return cls.get()


@serde.register_class
class IntegerType(BaseType):
    """Signless integer of a fixed bit width, printed as ``iN``."""

    @classmethod
    def verify(cls, *params: Any) -> None:
        (width,) = params
        if not isinstance(width, int) or not 1 <= width <= 64:
            raise InvalidConstructionInvariant(
                f"integer width must be in [1, 64], got {width}"
            )

    @classmethod
    def get(cls, width: int, context: TypeContext | None = None) -> IntegerType:
        return _ctx(context).intern(cls, width)

    @property
    def width(self) -> int:
        return self._params[0]

    def __str__(self) -> str:
        return f"i{self.width}"

    _serde_kind: ClassVar[str] = "quantir.IntegerType"

    def to_json(self) -> dict[str, Any]:
        return {"width": self.width}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> IntegerType:
        return cls.get(data["width"])


@serde.register_class
class FloatType(BaseType):
    """IEEE 754 float, printed as ``f16``, ``f32`` or ``f64``."""

    @classmethod
    def verify(cls, *params: Any) -> None:
        (width,) = params
        if width not in (16, 32, 64):
            raise InvalidConstructionInvariant(
                f"float width must be 16, 32 or 64, got {width}"
            )

    @classmethod
    def get(cls, width: int, context: TypeContext | None = None) -> FloatType:
        return _ctx(context).intern(cls, width)

    @property
    def width(self) -> int:
        return self._params[0]

    def __str__(self) -> str:
        return f"f{self.width}"

    _serde_kind: ClassVar[str] = "quantir.FloatType"

    def to_json(self) -> dict[str, Any]:
        return {"width": self.width}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> FloatType:
        return cls.get(data["width"])


# ==============================================================================
# --- Predefined Builtin Type Instances (default context)
# ==============================================================================

index = IndexType.get()
i1 = IntegerType.get(1)
i32 = IntegerType.get(32)
i64 = IntegerType.get(64)
f32 = FloatType.get(32)
f64 = FloatType.get(64)
