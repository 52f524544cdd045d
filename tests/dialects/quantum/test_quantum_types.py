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

"""Tests for quantum dialect types: construction, printing and parsing."""

from __future__ import annotations

import pytest

from quantir.dialects.quantum.types import (
    CircuitType,
    ControlledGateType,
    Gate1Type,
    Gate2Type,
    QubitType,
    RegisterType,
    circuit,
    gate1,
    gate2,
    parse_type,
    print_type,
    qubit,
)
from quantir.ir.errors import (
    InvalidBaseType,
    InvalidConstructionInvariant,
    MalformedType,
    UnexpectedToken,
    UnknownType,
)
from quantir.ir.typing import BaseType, IndexType, i32, index


class TestConstruction:
    def test_singletons(self):
        assert QubitType.get() is qubit
        assert Gate1Type.get() is gate1
        assert Gate2Type.get() is gate2
        assert CircuitType.get() is circuit

    def test_register(self):
        assert RegisterType.get(4) is RegisterType.get(4)
        assert RegisterType.get(4).size == 4
        assert RegisterType.get().size is None
        assert RegisterType.get() is not RegisterType.get(2)

    @pytest.mark.parametrize("size", [1, 0, -3, True, "4"])
    def test_register_size(self, size):
        with pytest.raises(InvalidConstructionInvariant):
            RegisterType.get(size)

    def test_controlled_gate(self):
        t = ControlledGateType.get(gate2, 3)
        assert t.base is gate2
        assert t.num_ctrls == 3
        assert ControlledGateType.get(gate2, 3) is t
        assert ControlledGateType.get(circuit).num_ctrls is None

    @pytest.mark.parametrize("base", [qubit, RegisterType.get(2), index])
    def test_controlled_gate_base(self, base):
        with pytest.raises(InvalidConstructionInvariant, match="gate1, gate2"):
            ControlledGateType.get(base, 1)

    def test_controlled_gate_count(self):
        with pytest.raises(InvalidConstructionInvariant, match="> 0"):
            ControlledGateType.get(gate1, 0)

    def test_controlled_gate_is_not_a_base(self):
        inner = ControlledGateType.get(gate1, 1)
        with pytest.raises(InvalidConstructionInvariant):
            ControlledGateType.get(inner, 1)

    def test_context_follows_base(self, ctx):
        base = Gate1Type.get(ctx)
        t = ControlledGateType.get(base, 2)
        assert t.context is ctx
        assert t.base is base

    def test_failed_get_leaves_context_clean(self, ctx):
        with pytest.raises(InvalidConstructionInvariant):
            RegisterType.get(1, ctx)
        assert len(ctx) == 0

    def test_equal_params_of_wrong_type_are_rejected(self):
        RegisterType.get(4)
        ControlledGateType.get(gate1, 1)
        with pytest.raises(InvalidConstructionInvariant):
            RegisterType.get(4.0)
        with pytest.raises(InvalidConstructionInvariant):
            ControlledGateType.get(gate1, True)


class TestPrint:
    @pytest.mark.parametrize(
        "t,text",
        [
            (qubit, "qubit"),
            (RegisterType.get(4), "register<4>"),
            (RegisterType.get(), "register<>"),
            (gate1, "gate1"),
            (gate2, "gate2"),
            (circuit, "circuit"),
            (ControlledGateType.get(gate1, 2), "cgate<2, gate1>"),
            (ControlledGateType.get(gate1), "cgate<gate1>"),
            (ControlledGateType.get(circuit, 1), "cgate<1, circuit>"),
            (index, "index"),
            (i32, "i32"),
        ],
    )
    def test_canonical_text(self, t, text):
        assert print_type(t) == text
        assert str(t) == text

    def test_unregistered_class(self, ctx):
        class Opaque(BaseType):
            def __str__(self) -> str:
                return "opaque"

        with pytest.raises(TypeError, match="Opaque"):
            print_type(ctx.intern(Opaque))


class TestParse:
    @pytest.mark.parametrize(
        "text",
        [
            "qubit",
            "register<4>",
            "register<>",
            "gate1",
            "gate2",
            "circuit",
            "cgate<2, gate1>",
            "cgate<gate1>",
            "cgate<7, gate2>",
            "cgate<circuit>",
            "index",
        ],
    )
    def test_canonical_roundtrip(self, text):
        assert print_type(parse_type(text)) == text

    @pytest.mark.parametrize(
        "text,canonical",
        [
            ("register < 4 >", "register<4>"),
            ("cgate<2,gate1>", "cgate<2, gate1>"),
            ("cgate< gate2 >", "cgate<gate2>"),
        ],
    )
    def test_whitespace_is_insignificant(self, text, canonical):
        assert print_type(parse_type(text)) == canonical

    def test_interned(self):
        assert parse_type("register<4>") is RegisterType.get(4)
        assert parse_type("cgate<2, gate1>") is ControlledGateType.get(gate1, 2)

    def test_parse_into_context(self, ctx):
        t = parse_type("cgate<2, gate1>", ctx)
        assert t.context is ctx
        assert t.base is Gate1Type.get(ctx)
        assert t is not ControlledGateType.get(gate1, 2)

    def test_unknown_keyword(self):
        with pytest.raises(UnknownType, match="unrecognized type 'qbit'"):
            parse_type("qbit")

    @pytest.mark.parametrize(
        "text,column",
        [
            ("register", 9),
            ("register<4", 11),
            ("register<a>", 10),
            ("cgate", 6),
            ("cgate<2 gate1>", 9),
            ("cgate<gate1", 12),
            ("cgate<>", 7),
            ("cgate<2,>", 9),
            ("cgate<2, >", 10),
        ],
    )
    def test_malformed(self, text, column):
        with pytest.raises(MalformedType) as exc:
            parse_type(text)
        keyword = text.split("<")[0]
        assert exc.value.keyword == keyword
        assert exc.value.message == f"error during '{keyword}' type parsing"
        assert exc.value.location.column == column

    def test_register_size_too_small(self, sink):
        with pytest.raises(MalformedType, match="register size must be > 1, got 1"):
            parse_type("register<1>", sink=sink)
        assert sink.errors[0].location.column == 10

    def test_zero_controls(self):
        with pytest.raises(MalformedType, match="number of controls must be > 0"):
            parse_type("cgate<0, gate1>")

    def test_invalid_base(self, sink):
        with pytest.raises(InvalidBaseType) as exc:
            parse_type("cgate<3, qubit>", sink=sink)
        assert exc.value.location.column == 10
        assert "'qubit'" in exc.value.message
        assert len(sink.errors) == 1

    def test_nested_cgate_is_invalid_base(self):
        with pytest.raises(InvalidBaseType):
            parse_type("cgate<cgate<1, gate1>>")

    def test_nested_error_propagates(self):
        with pytest.raises(MalformedType, match="register size"):
            parse_type("cgate<register<1>>")

    def test_trailing_text(self):
        with pytest.raises(UnexpectedToken, match="end of input"):
            parse_type("qubit qubit")

    def test_builtin_in_cgate_base_rejected(self):
        with pytest.raises(InvalidBaseType):
            parse_type("cgate<1, index>")
        assert IndexType.get() is index
