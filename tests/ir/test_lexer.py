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

"""Tests for the assembly tokenizer."""

import pytest

from quantir.ir.errors import UnexpectedCharacter
from quantir.ir.lexer import EOF, tokenize


def kinds(text: str) -> list[str]:
    return [t.kind for t in tokenize(text)]


def test_instruction_tokens():
    toks = tokenize("%r = quantum.h %r[0, %n, 1] : register<4>")
    assert [t.text for t in toks[:-1]] == [
        "%r", "=", "quantum.h", "%r", "[", "0", ",", "%n", ",", "1", "]",
        ":", "register", "<", "4", ">",
    ]  # fmt: skip
    assert toks[0].kind == "VALUE_ID"
    assert toks[2].kind == "BARE_ID"
    assert toks[-1].kind == EOF


def test_numbers():
    assert kinds("1.5 2 1e3 -4 -0.25 3.") == [
        "FLOAT", "INT", "FLOAT", "INT", "FLOAT", "FLOAT", EOF,
    ]  # fmt: skip


def test_punctuation():
    assert kinds("-> ( ) { } = @f \"s\"") == [
        "ARROW", "LPAR", "RPAR", "LBRACE", "RBRACE", "EQUAL",
        "SYMBOL_ID", "STRING", EOF,
    ]  # fmt: skip


def test_arrow_is_not_negative_number():
    assert kinds("->-1") == ["ARROW", "INT", EOF]


def test_comments_and_locations():
    toks = tokenize("// header\n  quantum.x %q // trailing\n")
    assert [t.text for t in toks[:-1]] == ["quantum.x", "%q"]
    assert (toks[0].location.line, toks[0].location.column) == (2, 3)
    assert toks[1].location.offset == 22
    assert str(toks[1].location) == "2:13"


def test_eof_location():
    toks = tokenize("qubit\n")
    assert toks[-1].kind == EOF
    assert (toks[-1].location.line, toks[-1].location.column) == (2, 1)
    assert str(toks[-1]) == "end of input"


def test_unexpected_character():
    with pytest.raises(UnexpectedCharacter) as exc:
        tokenize("quantum.h\n  %q # nope")
    assert exc.value.location.line == 2
    assert exc.value.location.column == 6
    assert "'#'" in exc.value.message
