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

"""Source locations and diagnostic sinks used by the assembly parser."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal, Protocol

logger = logging.getLogger(__name__)

Severity = Literal["error", "warning", "note"]


@dataclass(frozen=True)
class SourceLocation:
    """A position in the parsed text (1-based line and column)."""

    line: int
    column: int
    offset: int = 0

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


UNKNOWN_LOCATION = SourceLocation(0, 0)


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    location: SourceLocation
    message: str

    def __str__(self) -> str:
        return f"{self.location}: {self.severity}: {self.message}"


class DiagnosticSink(Protocol):
    """Receives `(position, message)` reports from the parser."""

    def emit(self, diagnostic: Diagnostic) -> None: ...


@dataclass
class CollectingSink:
    """Sink that keeps every diagnostic and forwards it to the logger."""

    diagnostics: list[Diagnostic] = field(default_factory=list)

    def emit(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        if diagnostic.severity == "error":
            logger.debug("diagnostic: %s", diagnostic)
        else:
            logger.warning("%s", diagnostic)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == "error"]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == "warning"]

    def clear(self) -> None:
        self.diagnostics.clear()
