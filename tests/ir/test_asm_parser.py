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

"""Tests for the shared parse primitives and the value scope."""

from __future__ import annotations

import pytest

from quantir.dialects.quantum import ops
from quantir.dialects.quantum.types import QubitType, RegisterType, qubit
from quantir.ir.attributes import SymbolRef
from quantir.ir.errors import (
    InvalidAttribute,
    MissingDelimiter,
    RedefinedValue,
    ResultCountMismatch,
    UnexpectedCharacter,
    UnexpectedToken,
    UnknownOperation,
    UnknownType,
    ValueTypeMismatch,
)
from quantir.ir.graph import Block
from quantir.ir.lexer import COLON, RPAR
from quantir.ir.parser import AsmParser, ParserConfig, parse_module, parse_operation
from quantir.ir.typing import FloatType, IndexType, IntegerType


class TestCursor:
    def test_peek_and_advance_stop_at_end(self):
        parser = AsmParser("a b")
        assert parser.peek(1).text == "b"
        assert parser.peek(5).text == ""
        parser.advance()
        parser.advance()
        assert parser.at_end()
        assert parser.advance().kind == "$END"
        assert parser.at_end()

    def test_expect_reports_to_sink(self, sink):
        parser = AsmParser("x", sink=sink)
        with pytest.raises(UnexpectedToken, match="expected ':', found 'x'"):
            parser.expect(COLON)
        assert len(sink.errors) == 1
        assert str(sink.errors[0]) == "1:1: error: expected ':', found 'x'"

    def test_expect_missing_delimiter(self):
        parser = AsmParser("")
        with pytest.raises(MissingDelimiter, match="found end of input"):
            parser.expect(RPAR)

    def test_tokenize_error_is_reported(self, sink):
        with pytest.raises(UnexpectedCharacter):
            AsmParser("quantum.h #", sink=sink)
        assert sink.errors[0].location.column == 11


class TestLiterals:
    def test_float_accepts_integers(self):
        parser = AsmParser("1 2.5 x")
        assert parser.parse_optional_float() == 1.0
        assert parser.parse_optional_float() == 2.5
        assert parser.parse_optional_float() is None

    def test_keyword(self):
        parser = AsmParser("foo bar")
        assert parser.parse_optional_keyword("bar") is None
        assert parser.parse_optional_keyword() == "foo"
        assert parser.parse_optional_keyword("bar") == "bar"

    def test_symbol_ref(self):
        assert AsmParser("@body").parse_symbol_ref() == SymbolRef("body")

    def test_integer_what(self):
        with pytest.raises(UnexpectedToken, match="expected argument count"):
            AsmParser("%x").parse_integer("argument count")


class TestTypes:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("index", IndexType.get()),
            ("i1", IntegerType.get(1)),
            ("i64", IntegerType.get(64)),
            ("f32", FloatType.get(32)),
        ],
    )
    def test_builtin(self, text, expected):
        assert AsmParser(text).parse_type() is expected

    def test_builtin_in_context(self, ctx):
        t = AsmParser("i8", context=ctx).parse_type()
        assert t.context is ctx
        assert t is IntegerType.get(8, ctx)

    @pytest.mark.parametrize("text", ["i0", "i65", "f8", "tensor"])
    def test_unknown(self, text):
        with pytest.raises(UnknownType, match=f"unrecognized type '{text}'"):
            AsmParser(text).parse_type()

    def test_not_a_keyword(self):
        with pytest.raises(UnexpectedToken, match="expected type, found '%x'"):
            AsmParser("%x").parse_type()

    def test_type_lists(self):
        parser = AsmParser(": qubit, index -> i1")
        assert parser.parse_optional_colon_type_list() == [
            QubitType.get(),
            IndexType.get(),
        ]
        assert parser.parse_optional_colon_type_list() == []
        assert parser.parse_optional_arrow_type_list() == [IntegerType.get(1)]
        assert parser.parse_optional_arrow_type_list() == []


class TestAttrDict:
    def test_literals(self):
        attrs: dict = {}
        parser = AsmParser(
            r'{a = 1, b = -2.5, s = "hi\n", f = @g, t = true, u = false, '
            r"l = [1, [2]], e = []}"
        )
        parser.parse_optional_attr_dict(attrs)
        assert parser.at_end()
        assert attrs == {
            "a": 1,
            "b": -2.5,
            "s": "hi\n",
            "f": SymbolRef("g"),
            "t": True,
            "u": False,
            "l": (1, (2,)),
            "e": (),
        }

    def test_absent_and_empty(self):
        attrs: dict = {}
        parser = AsmParser("{} x")
        parser.parse_optional_attr_dict(attrs)
        parser.parse_optional_attr_dict(attrs)
        assert attrs == {}
        assert parser.peek().text == "x"

    def test_reserved_key(self):
        with pytest.raises(InvalidAttribute, match="'phi' is reserved") as exc:
            AsmParser("{x = 1, phi = 2}").parse_optional_attr_dict({}, {"phi"})
        assert exc.value.location.column == 9

    def test_duplicate_key(self):
        with pytest.raises(InvalidAttribute, match="occurs more than once"):
            AsmParser("{x = 1, x = 2}").parse_optional_attr_dict({})

    def test_bad_value(self):
        with pytest.raises(InvalidAttribute, match="expected attribute value"):
            AsmParser("{x = %v}").parse_optional_attr_dict({})

    def test_unterminated(self):
        with pytest.raises(MissingDelimiter, match="expected '}'"):
            AsmParser("{x = 1").parse_optional_attr_dict({})


class TestOperations:
    def test_unknown_operation(self, sink):
        with pytest.raises(UnknownOperation, match="unknown operation 'quantum.nope'"):
            parse_operation("quantum.nope %q", sink=sink)
        assert len(sink.errors) == 1

    def test_expected_kind(self):
        with pytest.raises(UnknownOperation, match="expected 'quantum.h'"):
            parse_operation("quantum.x %q : qubit", ops.H)

    def test_missing_mnemonic(self):
        with pytest.raises(UnexpectedToken, match="expected operation name"):
            parse_operation("%a = ")

    def test_trailing_text(self):
        with pytest.raises(UnexpectedToken, match="found 'quantum.x'"):
            parse_operation("quantum.h %q : qubit quantum.x")

    def test_unnamed_results_are_anonymous(self):
        block = Block()
        parse_operation("quantum.alloc -> qubit", block=block)
        op = parse_operation("quantum.alloc -> register<2>", block=block)
        assert [v.name for v in op.results] == ["%#1"]
        assert op.results[0].is_anonymous
        assert op.results[0].defining_op is op

    def test_unnamed_result_does_not_take_a_name(self):
        block = parse_module(
            "quantum.measure %q : qubit -> i1\n%0 = quantum.alloc -> qubit"
        )
        assert block.lookup("%0").defining_op is block.operations[1]

    def test_unnamed_result_is_not_a_free_value(self):
        block = parse_module("quantum.measure %q : qubit -> i1\nquantum.h %0 : qubit")
        assert [v.name for v in block.inputs] == ["%q", "%0"]
        assert block.inputs[1].type is qubit

    def test_result_count_mismatch(self):
        with pytest.raises(
            ResultCountMismatch,
            match="operation defines 0 results but was provided 2 to bind",
        ) as exc:
            parse_operation("%a, %b = quantum.h %q : qubit")
        assert exc.value.location.column == 1

    def test_redefinition(self):
        text = "%r = quantum.alloc -> register<4>\n%r = quantum.alloc -> qubit"
        with pytest.raises(RedefinedValue, match="redefinition of value '%r'") as exc:
            parse_module(text)
        assert exc.value.location.line == 2

    def test_free_values_become_inputs(self):
        block = parse_module("quantum.h %q : qubit\nquantum.x %q : qubit")
        assert [v.name for v in block.inputs] == ["%q"]
        assert block.inputs[0].num_uses == 2
        assert block.inputs[0].is_free

    def test_value_type_mismatch(self):
        text = "quantum.h %q : qubit\nquantum.x %q : register<4>"
        with pytest.raises(ValueTypeMismatch) as exc:
            parse_module(text)
        assert exc.value.message == (
            "use of value '%q' expects different type than prior uses: "
            "'register<4>' vs 'qubit'"
        )
        assert (exc.value.location.line, exc.value.location.column) == (2, 11)

    def test_failed_parse_leaves_block_untouched(self):
        block = Block()
        parse_operation("quantum.h %a : qubit", block=block)
        with pytest.raises(UnexpectedToken):
            parse_operation("quantum.cx %a, %b : qubit, qubit -> ,", block=block)
        assert [v.name for v in block.inputs] == ["%a"]
        assert block.lookup("%b") is None
        assert len(block) == 1

    def test_parse_into_existing_block(self):
        block = Block()
        reg = block.add_input("%r", RegisterType.get(3))
        op = parse_operation("quantum.h %r : register<3>", block=block)
        assert op.operands == (reg,)

    def test_config_is_frozen(self):
        with pytest.raises(AttributeError):
            ParserConfig().allow_missing_rotation_parameter = True  # type: ignore[misc]
