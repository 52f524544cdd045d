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

"""Quantum dialect: qubit/register/gate types and gate instructions.

Importing this package registers its type keywords and instruction kinds.
"""

from __future__ import annotations

from . import ops as ops
from . import types as types
from .ops import OpDef, Slot, SlotOperands, slot_operands, verify
from .types import (
    CircuitType,
    ControlledGateType,
    Gate1Type,
    Gate2Type,
    QubitType,
    RegisterType,
    parse_type,
    print_type,
)

__all__ = [
    "CircuitType",
    "ControlledGateType",
    "Gate1Type",
    "Gate2Type",
    "OpDef",
    "QubitType",
    "RegisterType",
    "Slot",
    "SlotOperands",
    "ops",
    "parse_type",
    "print_type",
    "slot_operands",
    "types",
    "verify",
]
