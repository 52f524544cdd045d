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

"""Tests for the call form of parametric circuit instructions."""

import pytest

from quantir.dialects.quantum.operands import segment_sizes
from quantir.dialects.quantum.types import circuit
from quantir.ir.attributes import DYNAMIC, EMPTY_ACCESSORS, AccessorArray, SymbolRef
from quantir.ir.errors import (
    InvalidAttribute,
    MissingDelimiter,
    OperandTypeCountMismatch,
    UnexpectedToken,
)
from quantir.ir.parser import parse_operation
from quantir.ir.printer import print_operation


def test_call_with_accessors():
    op = parse_operation(
        "%c = quantum.pcircuit @body(2, %a[0, %i], %b, %r[%j]) "
        ": register<4>, qubit, register<2> -> circuit"
    )
    assert op.attrs["callee"] == SymbolRef("body")
    assert op.attrs["n"] == 2
    assert op.attrs["accessors"] == (
        AccessorArray([0, DYNAMIC]),
        EMPTY_ACCESSORS,
        AccessorArray([DYNAMIC]),
    )
    assert [v.name for v in op.operands] == ["%a", "%b", "%r", "%i", "%j"]
    assert segment_sizes(op) == [3, 2]
    assert op.results[0].type is circuit
    assert print_operation(op) == (
        "quantum.pcircuit @body(2, %a[0, %i], %b, %r[%j]) "
        ": register<4>, qubit, register<2> -> circuit"
    )


def test_call_without_args():
    op = parse_operation("quantum.pcircuit @f(0) -> circuit")
    assert op.attrs["accessors"] == ()
    assert segment_sizes(op) == [0, 0]
    assert print_operation(op) == "quantum.pcircuit @f(0) -> circuit"


def test_call_without_accessors_has_empty_arrays():
    op = parse_operation("quantum.pcircuit @f(1, %a, %b) : qubit, qubit -> circuit")
    assert op.attrs["accessors"] == (EMPTY_ACCESSORS, EMPTY_ACCESSORS)
    assert print_operation(op) == (
        "quantum.pcircuit @f(1, %a, %b) : qubit, qubit -> circuit"
    )


def test_user_tags():
    text = 'quantum.pcircuit @f(1, %a) {tag = "x"} : qubit -> circuit'
    assert print_operation(parse_operation(text)) == text


@pytest.mark.parametrize("key", ["callee", "n", "accessors"])
def test_structural_tags_reserved(key):
    with pytest.raises(InvalidAttribute, match="reserved"):
        parse_operation(f"quantum.pcircuit @f(0) {{{key} = 1}} -> circuit")


def test_type_count_must_match_args():
    with pytest.raises(OperandTypeCountMismatch) as exc:
        parse_operation("quantum.pcircuit @f(1, %a[%i]) : qubit, index -> circuit")
    assert (exc.value.expected, exc.value.got) == (1, 2)


def test_missing_callee():
    with pytest.raises(UnexpectedToken, match="expected symbol reference"):
        parse_operation("quantum.pcircuit (1) -> circuit")


def test_missing_count():
    with pytest.raises(UnexpectedToken, match="expected argument count"):
        parse_operation("quantum.pcircuit @f(%a) : qubit -> circuit")


def test_missing_result():
    with pytest.raises(UnexpectedToken, match="expected '->'"):
        parse_operation("quantum.pcircuit @f(0)")


def test_unclosed_call():
    with pytest.raises(MissingDelimiter, match="expected '\\)'"):
        parse_operation("quantum.pcircuit @f(1, %a : qubit -> circuit")
