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

"""Tests for the type registry and builtin types."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from quantir.ir.errors import InvalidConstructionInvariant
from quantir.ir.typing import (
    FloatType,
    IndexType,
    IntegerType,
    TypeContext,
    get_default_context,
    i32,
    index,
)


class TestBuiltinTypes:
    def test_str(self):
        assert str(IndexType.get()) == "index"
        assert str(IntegerType.get(1)) == "i1"
        assert str(IntegerType.get(64)) == "i64"
        assert str(FloatType.get(16)) == "f16"

    def test_predefined_instances_are_interned(self):
        assert IndexType.get() is index
        assert IntegerType.get(32) is i32
        assert index.context is get_default_context()

    @pytest.mark.parametrize("width", [0, 65, -1])
    def test_integer_width_bounds(self, ctx, width):
        with pytest.raises(InvalidConstructionInvariant):
            IntegerType.get(width, ctx)
        assert len(ctx) == 0

    def test_float_widths(self, ctx):
        with pytest.raises(InvalidConstructionInvariant):
            FloatType.get(8, ctx)
        assert FloatType.get(64, ctx).width == 64

    def test_cannot_instantiate_directly(self):
        with pytest.raises(TypeError, match="get()"):
            IndexType()

    def test_immutable(self):
        with pytest.raises(AttributeError):
            i32.width = 8  # type: ignore[misc]


class TestTypeContext:
    def test_intern_is_idempotent(self, ctx):
        a = IntegerType.get(8, ctx)
        b = IntegerType.get(8, ctx)
        assert a is b
        assert len(ctx) == 1
        assert (IntegerType, (8,)) in ctx

    def test_contexts_are_independent(self, ctx):
        local = IntegerType.get(8, ctx)
        default = IntegerType.get(8)
        assert local is not default
        assert local == default
        assert hash(local) == hash(default)
        assert local.context is ctx

    def test_failed_construction_keeps_earlier_entries(self, ctx):
        first = IntegerType.get(16, ctx)
        with pytest.raises(InvalidConstructionInvariant):
            IntegerType.get(100, ctx)
        assert ctx.interned() == [first]
        assert IntegerType.get(16, ctx) is first

    def test_interned_preserves_creation_order(self, ctx):
        types = [IndexType.get(ctx), FloatType.get(32, ctx), IntegerType.get(2, ctx)]
        assert ctx.interned() == types

    def test_concurrent_interning(self, ctx):
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: IntegerType.get(7, ctx), range(64)))
        assert all(r is results[0] for r in results)
        assert len(ctx) == 1

    def test_debug_log_on_insert(self, ctx, caplog):
        caplog.set_level(logging.DEBUG, logger="quantir.ir.typing")
        IntegerType.get(3, ctx)
        IntegerType.get(3, ctx)
        messages = [r.getMessage() for r in caplog.records]
        assert messages.count("interned i3 in context 'test'") == 1

    def test_repr(self, ctx):
        IndexType.get(ctx)
        assert repr(ctx) == "TypeContext('test', 1 types)"
