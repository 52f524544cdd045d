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

"""Exception hierarchy for quantir.

Parse errors carry the location of the offending token and abort the current
construct immediately; there is no recovery inside an instruction. Contract
violations by callers building types or records programmatically raise
`InvalidConstructionInvariant` instead.
"""

from __future__ import annotations

from quantir.ir.diagnostics import UNKNOWN_LOCATION, SourceLocation


class QuantirError(Exception):
    """Base class for all quantir errors."""


class InvalidConstructionInvariant(QuantirError):
    """A type or instruction was built with parameters that violate its invariants."""


class VerificationError(QuantirError):
    """An instruction record does not satisfy its structural invariants."""


class ConfigError(QuantirError):
    """A configuration file is missing, unreadable or malformed."""


class ParseError(QuantirError):
    """Base class for errors reported while parsing assembly text."""

    def __init__(self, message: str, location: SourceLocation = UNKNOWN_LOCATION):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"


class UnexpectedCharacter(ParseError):
    pass


class UnexpectedToken(ParseError):
    pass


class MissingDelimiter(ParseError):
    """A bracket, parenthesis or angle bracket was expected but not found."""


class UnknownType(ParseError):
    pass


class MalformedType(ParseError):
    def __init__(
        self,
        keyword: str,
        message: str | None = None,
        location: SourceLocation = UNKNOWN_LOCATION,
    ):
        super().__init__(message or f"error during '{keyword}' type parsing", location)
        self.keyword = keyword


class InvalidBaseType(ParseError):
    pass


class ExpectedOperandOrInteger(ParseError):
    pass


class OperandTypeCountMismatch(ParseError):
    def __init__(
        self, expected: int, got: int, location: SourceLocation = UNKNOWN_LOCATION
    ):
        super().__init__(
            f"number of provided operand types ({got}) "
            f"doesn't match expected ({expected})",
            location,
        )
        self.expected = expected
        self.got = got


class OperandCountMismatch(ParseError):
    pass


class MissingRotationParameter(ParseError):
    pass


class UnknownOperation(ParseError):
    pass


class InvalidAttribute(ParseError):
    pass


class ResultCountMismatch(ParseError):
    pass


class RedefinedValue(ParseError):
    pass


class ValueTypeMismatch(ParseError):
    pass
