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

"""Tokenizer for quantir assembly.

The token grammar is compiled once by `lark` with the basic lexer. Parsing
itself is recursive descent in `quantir.ir.parser`, which needs optional
lookahead on a flat token stream rather than a parse tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from lark import Lark
from lark.exceptions import UnexpectedCharacters

from quantir.ir.diagnostics import SourceLocation
from quantir.ir.errors import UnexpectedCharacter

TOKEN_GRAMMAR = r"""
start: _token*

_token: VALUE_ID | SYMBOL_ID | BARE_ID | FLOAT | INT | STRING
      | ARROW | LPAR | RPAR | LSQB | RSQB | LBRACE | RBRACE
      | LESS | MORE | COMMA | COLON | EQUAL

VALUE_ID: /%[A-Za-z0-9_$.]+/
SYMBOL_ID: /@[A-Za-z_][A-Za-z0-9_$.]*/
BARE_ID: /[A-Za-z_][A-Za-z0-9_$.]*/
FLOAT: /-?[0-9]+\.[0-9]*([eE][-+]?[0-9]+)?/
     | /-?[0-9]+[eE][-+]?[0-9]+/
INT: /-?[0-9]+/
STRING: /"(\\.|[^"\\\n])*"/
ARROW: "->"
LPAR: "("
RPAR: ")"
LSQB: "["
RSQB: "]"
LBRACE: "{"
RBRACE: "}"
LESS: "<"
MORE: ">"
COMMA: ","
COLON: ":"
EQUAL: "="

COMMENT: /\/\/[^\n]*/

%import common.WS
%ignore WS
%ignore COMMENT
"""

# Token kinds (terminal names of TOKEN_GRAMMAR)
VALUE_ID = "VALUE_ID"
SYMBOL_ID = "SYMBOL_ID"
BARE_ID = "BARE_ID"
FLOAT = "FLOAT"
INT = "INT"
STRING = "STRING"
ARROW = "ARROW"
LPAR = "LPAR"
RPAR = "RPAR"
LSQB = "LSQB"
RSQB = "RSQB"
LBRACE = "LBRACE"
RBRACE = "RBRACE"
LESS = "LESS"
MORE = "MORE"
COMMA = "COMMA"
COLON = "COLON"
EQUAL = "EQUAL"

# Kind of the synthetic token appended after the last real token.
EOF = "$END"


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    location: SourceLocation

    def __str__(self) -> str:
        return f"'{self.text}'" if self.kind != EOF else "end of input"


@lru_cache(maxsize=1)
def _token_lexer() -> Lark:
    return Lark(TOKEN_GRAMMAR, parser="lalr", lexer="basic")


def tokenize(text: str) -> list[Token]:
    """Split `text` into tokens, ending with an `EOF` token.

    Raises:
        UnexpectedCharacter: If `text` contains a character no token starts with.
    """
    tokens: list[Token] = []
    try:
        for tok in _token_lexer().lex(text):
            loc = SourceLocation(tok.line, tok.column, tok.start_pos)
            tokens.append(Token(tok.type, str(tok.value), loc))
    except UnexpectedCharacters as e:
        loc = SourceLocation(e.line, e.column, e.pos_in_stream)
        raise UnexpectedCharacter(
            f"unexpected character {text[e.pos_in_stream]!r}", loc
        ) from None
    tokens.append(Token(EOF, "", _end_location(text)))
    return tokens


def _end_location(text: str) -> SourceLocation:
    line = text.count("\n") + 1
    column = len(text) - (text.rfind("\n") + 1) + 1
    return SourceLocation(line, column, len(text))
