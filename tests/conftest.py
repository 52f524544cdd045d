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

import logging

import pytest

import quantir  # noqa: F401  registers the quantum dialect
from quantir.ir.diagnostics import CollectingSink
from quantir.ir.graph import Block
from quantir.ir.registry import unregister_op
from quantir.ir.typing import TypeContext
from quantir.logging_config import QUANTIR_LOGGER_NAME


@pytest.fixture
def ctx() -> TypeContext:
    """A fresh, empty type context."""
    return TypeContext("test")


@pytest.fixture
def block() -> Block:
    return Block()


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
def restore_quantir_logger():
    """Undo handler/level/propagation changes made to the quantir logger."""
    logger = logging.getLogger(QUANTIR_LOGGER_NAME)
    handlers = logger.handlers[:]
    level = logger.level
    propagate = logger.propagate
    yield logger
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def extra_op_names():
    """Names of instruction kinds a test registers; removed afterwards."""
    names: list[str] = []
    yield names
    for name in names:
        unregister_op(name)
