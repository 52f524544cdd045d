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
Quantum dialect types and their text form.

===========================
Type Grammar
===========================
    qubit
    register<N>        N > 1, a register of N qubits
    register<>         register of unknown size
    gate1              single-qubit unitary
    gate2              two-qubit unitary
    cgate<N, base>     `base` controlled by N > 0 qubits
    cgate<base>        `base` controlled by an unknown number of qubits
    circuit

The base of a controlled gate must be `gate1`, `gate2` or `circuit`.

All types are interned in a `TypeContext`::

    >>> RegisterType.get(4) is RegisterType.get(4)
    True
    >>> print_type(ControlledGateType.get(Gate1Type.get(), 2))
    'cgate<2, gate1>'
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar

from quantir.ir import serde
from quantir.ir.diagnostics import DiagnosticSink, SourceLocation
from quantir.ir.errors import (
    InvalidBaseType,
    InvalidConstructionInvariant,
    MalformedType,
)
from quantir.ir.lexer import BARE_ID, COMMA, INT, LESS, MORE
from quantir.ir.parser import AsmParser
from quantir.ir.registry import register_type_parser
from quantir.ir.typing import (
    BaseType,
    FloatType,
    IndexType,
    IntegerType,
    TypeContext,
    _ctx,
)

# ==============================================================================
# --- Quantum Types
# ==============================================================================


class QuantumType(BaseType):
    """Base class for types of the quantum dialect."""

    def __str__(self) -> str:
        return print_type(self)


@serde.register_class
class QubitType(QuantumType):
    """A single qubit."""

    @classmethod
    def get(cls, context: TypeContext | None = None) -> QubitType:
        return _ctx(context).intern(cls)

    _serde_kind: ClassVar[str] = "quantum.QubitType"

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> QubitType:
        return cls.get()


@serde.register_class
class RegisterType(QuantumType):
    """A register of qubits, with an optional static size."""

    @classmethod
    def verify(cls, *params: Any) -> None:
        (size,) = params
        if size is None:
            return
        if isinstance(size, bool) or not isinstance(size, int) or size <= 1:
            raise InvalidConstructionInvariant(
                f"register size must be an integer > 1, got {size!r}"
            )

    @classmethod
    def get(
        cls, size: int | None = None, context: TypeContext | None = None
    ) -> RegisterType:
        return _ctx(context).intern(cls, size)

    @property
    def size(self) -> int | None:
        return self._params[0]

    _serde_kind: ClassVar[str] = "quantum.RegisterType"

    def to_json(self) -> dict[str, Any]:
        return {"size": self.size}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> RegisterType:
        return cls.get(data["size"])


@serde.register_class
class Gate1Type(QuantumType):
    """Marker type of single-qubit gates."""

    @classmethod
    def get(cls, context: TypeContext | None = None) -> Gate1Type:
        return _ctx(context).intern(cls)

    _serde_kind: ClassVar[str] = "quantum.Gate1Type"

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Gate1Type:
        return cls.get()


@serde.register_class
class Gate2Type(QuantumType):
    """Marker type of two-qubit gates."""

    @classmethod
    def get(cls, context: TypeContext | None = None) -> Gate2Type:
        return _ctx(context).intern(cls)

    _serde_kind: ClassVar[str] = "quantum.Gate2Type"

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Gate2Type:
        return cls.get()


@serde.register_class
class CircuitType(QuantumType):
    """A callable circuit body."""

    @classmethod
    def get(cls, context: TypeContext | None = None) -> CircuitType:
        return _ctx(context).intern(cls)

    _serde_kind: ClassVar[str] = "quantum.CircuitType"

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> CircuitType:
        return cls.get()


CONTROLLABLE_BASES: tuple[type[QuantumType], ...] = (Gate1Type, Gate2Type, CircuitType)


@serde.register_class
class ControlledGateType(QuantumType):
    """A gate or circuit controlled by an optional number of qubits."""

    @classmethod
    def verify(cls, *params: Any) -> None:
        base, num_ctrls = params
        if not isinstance(base, CONTROLLABLE_BASES):
            raise InvalidConstructionInvariant(
                f"controlled gate base must be gate1, gate2 or circuit, got {base!r}"
            )
        if num_ctrls is None:
            return
        if (
            isinstance(num_ctrls, bool)
            or not isinstance(num_ctrls, int)
            or num_ctrls <= 0
        ):
            raise InvalidConstructionInvariant(
                f"number of controls must be an integer > 0, got {num_ctrls!r}"
            )

    @classmethod
    def get(
        cls,
        base: BaseType,
        num_ctrls: int | None = None,
        context: TypeContext | None = None,
    ) -> ControlledGateType:
        if context is None and isinstance(base, BaseType):
            context = base.context
        return _ctx(context).intern(cls, base, num_ctrls)

    @property
    def base(self) -> QuantumType:
        return self._params[0]

    @property
    def num_ctrls(self) -> int | None:
        return self._params[1]

    _serde_kind: ClassVar[str] = "quantum.ControlledGateType"

    def to_json(self) -> dict[str, Any]:
        return {"base": serde.to_json(self.base), "num_ctrls": self.num_ctrls}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> ControlledGateType:
        return cls.get(serde.from_json(data["base"]), data["num_ctrls"])


# ==============================================================================
# --- Printing
# ==============================================================================


def _print_register(t: RegisterType) -> str:
    return f"register<{t.size if t.size is not None else ''}>"


def _print_cgate(t: ControlledGateType) -> str:
    if t.num_ctrls is None:
        return f"cgate<{print_type(t.base)}>"
    return f"cgate<{t.num_ctrls}, {print_type(t.base)}>"


_TYPE_PRINTERS: dict[type, Callable[[Any], str]] = {
    QubitType: lambda t: "qubit",
    RegisterType: _print_register,
    Gate1Type: lambda t: "gate1",
    Gate2Type: lambda t: "gate2",
    ControlledGateType: _print_cgate,
    CircuitType: lambda t: "circuit",
    IndexType: str,
    IntegerType: str,
    FloatType: str,
}


def print_type(t: BaseType) -> str:
    """Return the canonical text of `t`."""
    printer = _TYPE_PRINTERS.get(type(t))
    if printer is None:
        raise TypeError(f"unrecognized type in printer: {type(t).__name__}")
    return printer(t)


# ==============================================================================
# --- Parsing
# ==============================================================================


def _malformed(
    parser: AsmParser,
    keyword: str,
    location: SourceLocation,
    message: str | None = None,
) -> MalformedType:
    error = MalformedType(keyword, message, location)
    parser.emit_error(error)
    return error


def _parse_simple(cls: Any) -> Callable[[AsmParser, str, SourceLocation], BaseType]:
    def parse(parser: AsmParser, keyword: str, loc: SourceLocation) -> BaseType:
        return cls.get(parser.context)

    return parse


def _parse_register(parser: AsmParser, keyword: str, loc: SourceLocation) -> BaseType:
    if parser.parse_optional(LESS) is None:
        raise _malformed(parser, keyword, parser.location)
    size_tok = parser.parse_optional(INT)
    if parser.parse_optional(MORE) is None:
        raise _malformed(parser, keyword, parser.location)
    if size_tok is None:
        return RegisterType.get(None, parser.context)
    size = int(size_tok.text)
    if size <= 1:
        raise _malformed(
            parser, keyword, size_tok.location, f"register size must be > 1, got {size}"
        )
    return RegisterType.get(size, parser.context)


def _parse_cgate(parser: AsmParser, keyword: str, loc: SourceLocation) -> BaseType:
    if parser.parse_optional(LESS) is None:
        raise _malformed(parser, keyword, parser.location)

    num_tok = parser.parse_optional(INT)
    if num_tok is not None and parser.parse_optional(COMMA) is None:
        raise _malformed(parser, keyword, parser.location)

    base_loc = parser.location
    if parser.peek().kind != BARE_ID:
        raise _malformed(parser, keyword, base_loc)
    base = parser.parse_type()
    if parser.parse_optional(MORE) is None:
        raise _malformed(parser, keyword, parser.location)

    num_ctrls = None
    if num_tok is not None:
        num_ctrls = int(num_tok.text)
        if num_ctrls <= 0:
            raise _malformed(
                parser,
                keyword,
                num_tok.location,
                f"number of controls must be > 0, got {num_ctrls}",
            )
    if not isinstance(base, CONTROLLABLE_BASES):
        raise parser.emit_error(
            InvalidBaseType(
                "base type of controlled gate must be gate1, gate2 or circuit, "
                f"got '{base}'",
                base_loc,
            )
        )
    return ControlledGateType.get(base, num_ctrls, parser.context)


_TYPE_PARSERS: dict[str, Callable[[AsmParser, str, SourceLocation], BaseType]] = {
    "qubit": _parse_simple(QubitType),
    "register": _parse_register,
    "gate1": _parse_simple(Gate1Type),
    "gate2": _parse_simple(Gate2Type),
    "cgate": _parse_cgate,
    "circuit": _parse_simple(CircuitType),
}

for _keyword, _fn in _TYPE_PARSERS.items():
    register_type_parser(_keyword, _fn)


def parse_type(
    text: str,
    context: TypeContext | None = None,
    *,
    sink: DiagnosticSink | None = None,
) -> BaseType:
    """Parse a complete type from `text`.

    Raises:
        UnknownType: Unrecognized keyword.
        MalformedType: Bad bracket or argument sequence after the keyword.
        InvalidBaseType: Controlled gate over a type that cannot be controlled.
        UnexpectedToken: Text remains after the type.
    """
    parser = AsmParser(text, context=context, sink=sink)
    result = parser.parse_type()
    parser.expect_end()
    return result


# ==============================================================================
# --- Predefined Type Instances (default context)
# ==============================================================================

qubit = QubitType.get()
gate1 = Gate1Type.get()
gate2 = Gate2Type.get()
circuit = CircuitType.get()
