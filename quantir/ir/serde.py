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
JSON-based serialization for quantir types, attributes and blocks.

Each serializable class registers itself with `@register_class` and provides
its own `to_json` / `from_json` pair.

Usage:
    from quantir.ir import serde

    @serde.register_class
    class MyAttr:
        _serde_kind = "mydialect.MyAttr"

        def to_json(self) -> dict:
            return {"field": self.field}

        @classmethod
        def from_json(cls, data: dict) -> "MyAttr":
            return cls(data["field"])

    data = serde.to_json(MyAttr(...))
    obj = serde.from_json(data)

Interned types deserialize into the default `TypeContext`.
"""

from __future__ import annotations

import base64
import gzip
import json
from typing import Any, ClassVar, Protocol, TypeVar, runtime_checkable

import numpy as np

# =============================================================================
# Class Registry
# =============================================================================

# Global registry: kind string -> class
_CLASS_REGISTRY: dict[str, type] = {}

T = TypeVar("T")


def register_class(cls: type[T]) -> type[T]:
    """Decorator to register a class for JSON serialization.

    The class must define:
    - `_serde_kind: ClassVar[str]` - unique identifier for this type
    - `to_json(self) -> dict` - serialize instance to JSON-compatible dict
    - `from_json(cls, data: dict) -> Self` - deserialize from dict
    """
    kind = getattr(cls, "_serde_kind", None)
    if kind is None:
        raise ValueError(
            f"{cls.__name__} must define `_serde_kind` class variable "
            "for serialization registration"
        )
    if kind in _CLASS_REGISTRY:
        existing = _CLASS_REGISTRY[kind]
        if existing is not cls:
            raise ValueError(
                f"Duplicate _serde_kind '{kind}': "
                f"already registered by {existing.__name__}"
            )
    _CLASS_REGISTRY[kind] = cls
    return cls


def get_registered_class(kind: str) -> type | None:
    """Get the class registered for a given kind string."""
    return _CLASS_REGISTRY.get(kind)


def list_registered_kinds() -> list[str]:
    """List all registered kind strings."""
    return list(_CLASS_REGISTRY.keys())


@runtime_checkable
class JsonSerializable(Protocol):
    """Protocol for types that can be serialized to JSON."""

    _serde_kind: ClassVar[str]

    def to_json(self) -> dict[str, Any]: ...

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> JsonSerializable: ...


# =============================================================================
# Core Serialization Functions
# =============================================================================


def to_json(obj: Any) -> dict[str, Any]:
    """Serialize an object to a JSON-compatible dict.

    Supported: registered classes, None/bool/int/float/str, numpy integer and
    float scalars, numeric numpy arrays, lists, tuples and string-keyed dicts.

    Raises:
        TypeError: If object cannot be serialized
    """
    if hasattr(obj, "_serde_kind") and hasattr(obj, "to_json"):
        data: dict[str, Any] = obj.to_json()
        data["_kind"] = obj._serde_kind
        return data

    if obj is None:
        return {"_kind": "_null"}
    if isinstance(obj, bool):  # Must check before int (bool is subclass of int)
        return {"_kind": "_bool", "v": obj}
    if isinstance(obj, int):
        return {"_kind": "_int", "v": obj}
    if isinstance(obj, float):
        return {"_kind": "_float", "v": obj}
    if isinstance(obj, str):
        return {"_kind": "_str", "v": obj}

    if isinstance(obj, np.integer):
        return {"_kind": "_int", "v": int(obj)}
    if isinstance(obj, np.floating):
        return {"_kind": "_float", "v": float(obj)}

    # Segment-size vectors and other dense integer arrays
    if isinstance(obj, np.ndarray):
        if obj.dtype == np.object_:
            raise TypeError("Cannot serialize numpy object arrays")
        return {
            "_kind": "_ndarray",
            "dtype": str(obj.dtype),
            "shape": list(obj.shape),
            "data": base64.b64encode(obj.tobytes()).decode("ascii"),
        }

    if isinstance(obj, (list, tuple)):
        return {
            "_kind": "_list" if isinstance(obj, list) else "_tuple",
            "items": [to_json(item) for item in obj],
        }
    if isinstance(obj, dict):
        if any(not isinstance(k, str) for k in obj.keys()):
            raise TypeError("Only dicts with string keys can be serialized")
        return {
            "_kind": "_dict",
            "items": {k: to_json(v) for k, v in obj.items()},
        }

    raise TypeError(
        f"Cannot serialize object of type {type(obj).__name__}. "
        "Ensure the class is decorated with @serde.register_class "
        "and implements to_json()/from_json()."
    )


def from_json(data: dict[str, Any]) -> Any:
    """Deserialize an object from a JSON-compatible dict.

    Raises:
        ValueError: If `_kind` is missing or unknown
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected dict, got {type(data).__name__}")

    kind = data.get("_kind")
    if kind is None:
        raise ValueError("Missing '_kind' field in JSON data")

    if kind == "_null":
        return None
    if kind == "_bool":
        return bool(data["v"])
    if kind == "_int":
        return int(data["v"])
    if kind == "_float":
        return float(data["v"])
    if kind == "_str":
        return str(data["v"])

    if kind == "_list":
        return [from_json(item) for item in data["items"]]
    if kind == "_tuple":
        return tuple(from_json(item) for item in data["items"])
    if kind == "_dict":
        return {k: from_json(v) for k, v in data["items"].items()}

    if kind == "_ndarray":
        dtype = np.dtype(data["dtype"])
        shape = tuple(data["shape"])
        buffer = base64.b64decode(data["data"])
        return np.frombuffer(buffer, dtype=dtype).reshape(shape).copy()

    if kind in _CLASS_REGISTRY:
        cls = _CLASS_REGISTRY[kind]
        data_copy = {k: v for k, v in data.items() if k != "_kind"}
        return cls.from_json(data_copy)  # type: ignore[attr-defined]

    raise ValueError(
        f"Unknown type kind: '{kind}'. "
        "Ensure the class is registered with @serde.register_class "
        "and the module is imported."
    )


# =============================================================================
# Wire Format
# =============================================================================


def dumps(obj: Any, *, compress: bool = False, indent: int | None = None) -> bytes:
    """Serialize object to bytes (JSON, optionally gzip compressed)."""
    separators = (",", ":") if indent is None else None
    json_str = json.dumps(to_json(obj), separators=separators, indent=indent)
    data = json_str.encode("utf-8")
    if compress:
        data = gzip.compress(data)
    return data


def loads(data: bytes, *, compressed: bool = False) -> Any:
    """Deserialize object from bytes produced by `dumps`."""
    if compressed:
        data = gzip.decompress(data)
    return from_json(json.loads(data.decode("utf-8")))
