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

"""Recursive-descent parser for quantir assembly.

`AsmParser` walks the token stream produced by `quantir.ir.lexer` and offers
two families of primitives:

- ``parse_optional_*`` consume the construct if it is present and return
  ``None`` otherwise, without reporting anything;
- ``parse_*`` / ``expect`` require the construct and raise a `ParseError`
  at the current token when it is missing.

Every error is reported to the parser's diagnostic sink before it is raised.
Instruction-specific syntax lives in the instruction kinds registered in
`quantir.ir.registry`; this module only handles what all instructions share:
result bindings, types, tag dictionaries and the value scope.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Collection, Sequence
from dataclasses import dataclass
from typing import Any

from quantir.ir.attributes import SymbolRef
from quantir.ir.diagnostics import (
    CollectingSink,
    Diagnostic,
    DiagnosticSink,
    SourceLocation,
)
from quantir.ir.errors import (
    InvalidAttribute,
    MissingDelimiter,
    ParseError,
    RedefinedValue,
    ResultCountMismatch,
    UnexpectedCharacter,
    UnexpectedToken,
    UnknownOperation,
    UnknownType,
    ValueTypeMismatch,
)
from quantir.ir.graph import Block, Operation, Value
from quantir.ir.lexer import (
    ARROW,
    BARE_ID,
    COLON,
    COMMA,
    EOF,
    EQUAL,
    FLOAT,
    INT,
    LBRACE,
    LESS,
    LPAR,
    LSQB,
    MORE,
    RBRACE,
    RPAR,
    RSQB,
    STRING,
    SYMBOL_ID,
    VALUE_ID,
    Token,
    tokenize,
)
from quantir.ir.registry import OpFormat, get_op, get_type_parser
from quantir.ir.typing import (
    BaseType,
    FloatType,
    IndexType,
    IntegerType,
    TypeContext,
    get_default_context,
)

logger = logging.getLogger(__name__)

_DELIMITERS = frozenset({LPAR, RPAR, LSQB, RSQB, LBRACE, RBRACE, LESS, MORE})

_DESCRIPTIONS = {
    VALUE_ID: "SSA value",
    SYMBOL_ID: "symbol reference",
    BARE_ID: "identifier",
    INT: "integer",
    FLOAT: "float",
    STRING: "string",
    ARROW: "'->'",
    LPAR: "'('",
    RPAR: "')'",
    LSQB: "'['",
    RSQB: "']'",
    LBRACE: "'{'",
    RBRACE: "'}'",
    LESS: "'<'",
    MORE: "'>'",
    COMMA: "','",
    COLON: "':'",
    EQUAL: "'='",
    EOF: "end of input",
}

_INTEGER_TYPE_RE = re.compile(r"i([1-9][0-9]?)")
_FLOAT_TYPE_WIDTHS = {"f16": 16, "f32": 32, "f64": 64}


@dataclass(frozen=True)
class ParserConfig:
    """Policy knobs for the assembly parser.

    Attributes:
        allow_missing_rotation_parameter: Accept ``()`` after a rotation
            mnemonic with a warning instead of failing.
    """

    allow_missing_rotation_parameter: bool = False


@dataclass(frozen=True)
class UnresolvedOperand:
    """A value reference that has been read but not yet bound to a `Value`."""

    name: str
    location: SourceLocation


class AsmParser:
    """Token cursor plus the parse primitives shared by all instructions."""

    def __init__(
        self,
        text: str,
        *,
        context: TypeContext | None = None,
        config: ParserConfig | None = None,
        block: Block | None = None,
        sink: DiagnosticSink | None = None,
    ):
        self.context = context if context is not None else get_default_context()
        self.config = config if config is not None else ParserConfig()
        self.block = block if block is not None else Block()
        self.sink = sink if sink is not None else CollectingSink()
        try:
            self._tokens = tokenize(text)
        except UnexpectedCharacter as e:
            self.emit_error(e)
            raise
        self._pos = 0

    # =========================================================================
    # Token cursor
    # =========================================================================

    def peek(self, offset: int = 0) -> Token:
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def advance(self) -> Token:
        tok = self._tokens[self._pos]
        if tok.kind != EOF:
            self._pos += 1
        return tok

    @property
    def location(self) -> SourceLocation:
        return self.peek().location

    def at_end(self) -> bool:
        return self.peek().kind == EOF

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def emit_error(self, error: ParseError) -> ParseError:
        """Report `error` to the sink and return it so the caller can raise it."""
        self.sink.emit(Diagnostic("error", error.location, error.message))
        return error

    def emit_warning(self, message: str, location: SourceLocation) -> None:
        self.sink.emit(Diagnostic("warning", location, message))

    # =========================================================================
    # Punctuation
    # =========================================================================

    def parse_optional(self, kind: str) -> Token | None:
        """Consume the current token if it is of `kind`."""
        if self.peek().kind == kind:
            return self.advance()
        return None

    def expect(self, kind: str, what: str | None = None) -> Token:
        """Consume a token of `kind` or fail.

        Missing brackets, parentheses and angle brackets raise
        `MissingDelimiter`; anything else raises `UnexpectedToken`.
        """
        tok = self.peek()
        if tok.kind == kind:
            return self.advance()
        what = what or _DESCRIPTIONS.get(kind, kind)
        error_cls = MissingDelimiter if kind in _DELIMITERS else UnexpectedToken
        raise self.emit_error(error_cls(f"expected {what}, found {tok}", tok.location))

    def expect_end(self) -> None:
        self.expect(EOF)

    # =========================================================================
    # Literals and references
    # =========================================================================

    def parse_optional_operand(self) -> UnresolvedOperand | None:
        tok = self.parse_optional(VALUE_ID)
        if tok is None:
            return None
        return UnresolvedOperand(tok.text, tok.location)

    def parse_operand(self) -> UnresolvedOperand:
        tok = self.expect(VALUE_ID)
        return UnresolvedOperand(tok.text, tok.location)

    def parse_optional_integer(self) -> int | None:
        tok = self.parse_optional(INT)
        return int(tok.text) if tok is not None else None

    def parse_integer(self, what: str = "integer") -> int:
        return int(self.expect(INT, what).text)

    def parse_optional_float(self) -> float | None:
        """Parse a FLOAT or INT literal as a float."""
        tok = self.peek()
        if tok.kind not in (FLOAT, INT):
            return None
        self.advance()
        return self._finite_float(tok)

    def _finite_float(self, tok: Token) -> float:
        value = float(tok.text)
        if not math.isfinite(value):
            raise self.emit_error(
                InvalidAttribute(
                    f"floating point literal {tok} is out of range", tok.location
                )
            )
        return value

    def parse_optional_keyword(self, keyword: str | None = None) -> str | None:
        tok = self.peek()
        if tok.kind != BARE_ID or (keyword is not None and tok.text != keyword):
            return None
        self.advance()
        return tok.text

    def parse_symbol_ref(self) -> SymbolRef:
        tok = self.expect(SYMBOL_ID)
        return SymbolRef(tok.text[1:])

    # =========================================================================
    # Types
    # =========================================================================

    def parse_type(self) -> BaseType:
        """Parse a builtin type or a type registered by a dialect."""
        tok = self.peek()
        if tok.kind != BARE_ID:
            raise self.emit_error(
                UnexpectedToken(f"expected type, found {tok}", tok.location)
            )
        self.advance()
        keyword = tok.text

        builtin = self._builtin_type(keyword)
        if builtin is not None:
            return builtin

        type_parser = get_type_parser(keyword)
        if type_parser is None:
            raise self.emit_error(
                UnknownType(f"unrecognized type '{keyword}'", tok.location)
            )
        return type_parser(self, keyword, tok.location)

    def _builtin_type(self, keyword: str) -> BaseType | None:
        if keyword == "index":
            return IndexType.get(self.context)
        if keyword in _FLOAT_TYPE_WIDTHS:
            return FloatType.get(_FLOAT_TYPE_WIDTHS[keyword], self.context)
        m = _INTEGER_TYPE_RE.fullmatch(keyword)
        if m is not None and int(m.group(1)) <= 64:
            return IntegerType.get(int(m.group(1)), self.context)
        return None

    def parse_type_list(self) -> list[BaseType]:
        types = [self.parse_type()]
        while self.parse_optional(COMMA) is not None:
            types.append(self.parse_type())
        return types

    def parse_optional_colon_type_list(self) -> list[BaseType]:
        if self.parse_optional(COLON) is None:
            return []
        return self.parse_type_list()

    def parse_optional_arrow_type_list(self) -> list[BaseType]:
        if self.parse_optional(ARROW) is None:
            return []
        return self.parse_type_list()

    # =========================================================================
    # Tag dictionaries
    # =========================================================================

    def parse_optional_attr_dict(
        self, attrs: dict[str, Any], reserved: Collection[str] = ()
    ) -> None:
        """Parse ``{key = literal, ...}`` into `attrs` if present.

        Keys in `reserved` belong to the instruction format and cannot be
        written by hand; a key may appear only once.
        """
        if self.parse_optional(LBRACE) is None:
            return
        if self.parse_optional(RBRACE) is not None:
            return

        while True:
            key_tok = self.expect(BARE_ID, "attribute name")
            key = key_tok.text
            if key in reserved:
                raise self.emit_error(
                    InvalidAttribute(
                        f"attribute '{key}' is reserved by the instruction format",
                        key_tok.location,
                    )
                )
            if key in attrs:
                raise self.emit_error(
                    InvalidAttribute(
                        f"attribute '{key}' occurs more than once",
                        key_tok.location,
                    )
                )
            self.expect(EQUAL)
            attrs[key] = self.parse_attribute_value()
            if self.parse_optional(COMMA) is None:
                break
        self.expect(RBRACE)

    def parse_attribute_value(self) -> Any:
        tok = self.peek()
        if tok.kind == INT:
            self.advance()
            return int(tok.text)
        if tok.kind == FLOAT:
            self.advance()
            return self._finite_float(tok)
        if tok.kind == STRING:
            self.advance()
            try:
                return json.loads(tok.text)
            except ValueError:
                raise self.emit_error(
                    InvalidAttribute(f"invalid string literal {tok}", tok.location)
                ) from None
        if tok.kind == SYMBOL_ID:
            return self.parse_symbol_ref()
        if tok.kind == BARE_ID and tok.text in ("true", "false"):
            self.advance()
            return tok.text == "true"
        if tok.kind == LSQB:
            self.advance()
            items: list[Any] = []
            if self.parse_optional(RSQB) is None:
                items.append(self.parse_attribute_value())
                while self.parse_optional(COMMA) is not None:
                    items.append(self.parse_attribute_value())
                self.expect(RSQB)
            return tuple(items)
        raise self.emit_error(
            InvalidAttribute(f"expected attribute value, found {tok}", tok.location)
        )

    # =========================================================================
    # Value scope
    # =========================================================================

    def resolve_operands(
        self, operands: Sequence[UnresolvedOperand], types: Sequence[BaseType]
    ) -> list[Value]:
        """Bind references to values of the current block.

        A name seen for the first time becomes a free value of the given type.
        """
        values: list[Value] = []
        for ref, type_ in zip(operands, types, strict=True):
            value = self.block.lookup(ref.name)
            if value is None:
                value = self.block.add_input(ref.name, type_)
            elif value.type != type_:
                raise self.emit_error(
                    ValueTypeMismatch(
                        f"use of value '{ref.name}' expects different type than "
                        f"prior uses: '{type_}' vs '{value.type}'",
                        ref.location,
                    )
                )
            values.append(value)
        return values

    # =========================================================================
    # Instructions
    # =========================================================================

    def parse_operation(self, opdef: OpFormat | None = None) -> Operation:
        """Parse ``[%r0, %r1 =] mnemonic ...`` and append it to the block.

        Nothing is added to the block when parsing fails.
        """
        mark = len(self.block.inputs)
        try:
            return self._parse_operation(opdef)
        except ParseError:
            self.block.discard_inputs(mark)
            raise

    def _parse_operation(self, opdef: OpFormat | None) -> Operation:
        result_toks: list[Token] = []
        if self.peek().kind == VALUE_ID:
            result_toks.append(self.advance())
            while self.parse_optional(COMMA) is not None:
                result_toks.append(self.expect(VALUE_ID, "result name"))
            self.expect(EQUAL)

        name_tok = self.expect(BARE_ID, "operation name")
        if opdef is None:
            opdef = get_op(name_tok.text)
            if opdef is None:
                raise self.emit_error(
                    UnknownOperation(
                        f"unknown operation '{name_tok.text}'", name_tok.location
                    )
                )
        elif name_tok.text != opdef.name:
            raise self.emit_error(
                UnknownOperation(
                    f"expected '{opdef.name}', found '{name_tok.text}'",
                    name_tok.location,
                )
            )

        state = opdef.parse(self)

        if result_toks and len(result_toks) != len(state.result_types):
            raise self.emit_error(
                ResultCountMismatch(
                    f"operation defines {len(state.result_types)} results but "
                    f"was provided {len(result_toks)} to bind",
                    result_toks[0].location,
                )
            )
        seen: set[str] = set()
        for tok in result_toks:
            if tok.text in seen or self.block.lookup(tok.text) is not None:
                raise self.emit_error(
                    RedefinedValue(f"redefinition of value '{tok.text}'", tok.location)
                )
            seen.add(tok.text)

        names = [tok.text for tok in result_toks] if result_toks else None
        op = self.block.create_operation(state, names)
        logger.debug("parsed %s with %d operands", op.opcode, len(op.operands))
        return op

    def parse_block(self) -> Block:
        while not self.at_end():
            self.parse_operation()
        return self.block


# =============================================================================
# Public entry points
# =============================================================================


def parse_operation(
    text: str,
    opdef: OpFormat | None = None,
    *,
    context: TypeContext | None = None,
    config: ParserConfig | None = None,
    block: Block | None = None,
    sink: DiagnosticSink | None = None,
) -> Operation:
    """Parse exactly one instruction from `text`.

    Args:
        text: Instruction text, optionally with a result binding.
        opdef: Expected instruction kind; looked up by mnemonic if None.
        block: Value scope; the new operation is appended to it.
    """
    parser = AsmParser(text, context=context, config=config, block=block, sink=sink)
    op = parser.parse_operation(opdef)
    parser.expect_end()
    return op


def parse_module(
    text: str,
    *,
    context: TypeContext | None = None,
    config: ParserConfig | None = None,
    block: Block | None = None,
    sink: DiagnosticSink | None = None,
) -> Block:
    """Parse a sequence of instructions into a `Block`."""
    parser = AsmParser(text, context=context, config=config, block=block, sink=sink)
    return parser.parse_block()
