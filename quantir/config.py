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

"""YAML configuration for quantir tools.

Example file::

    parser:
      allow_missing_rotation_parameter: false
    ops:
      - name: quantum.ccx
        summary: Toffoli
        slots:
          - {name: c0, register: true}
          - {name: c1, register: true}
          - {name: trgt, register: true}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from quantir.dialects.quantum.ops import OpDef, Slot
from quantir.ir.errors import ConfigError, InvalidConstructionInvariant
from quantir.ir.parser import ParserConfig
from quantir.ir.registry import get_op, register_op

logger = logging.getLogger(__name__)

_SLOT_KEYS = {"name", "register", "optional"}
_OP_KEYS = {"name", "slots", "rotation", "summary"}


@dataclass(frozen=True)
class QuantirConfig:
    """Parsed configuration: parser policy plus extra instruction kinds."""

    parser: ParserConfig = field(default_factory=ParserConfig)
    ops: tuple[OpDef, ...] = ()

    @classmethod
    def from_dict(cls, config: dict[str, Any] | None) -> QuantirConfig:
        """Validate a raw config dictionary."""
        if config is None:
            return cls()
        if not isinstance(config, dict):
            raise ConfigError("configuration must be a mapping")
        unknown = set(config) - {"parser", "ops"}
        if unknown:
            raise ConfigError(f"unknown configuration sections: {sorted(unknown)}")

        parser_cfg = config.get("parser")
        if parser_cfg is None:
            parser_cfg = {}
        if not isinstance(parser_cfg, dict):
            raise ConfigError("'parser' section must be a mapping")
        known = {f.name for f in fields(ParserConfig)}
        unknown = set(parser_cfg) - known
        if unknown:
            raise ConfigError(f"unknown parser options: {sorted(unknown)}")
        for key, value in parser_cfg.items():
            if not isinstance(value, bool):
                raise ConfigError(f"parser option '{key}' must be true or false")

        ops_cfg = config.get("ops")
        if ops_cfg is None:
            ops_cfg = []
        if not isinstance(ops_cfg, list):
            raise ConfigError("'ops' section must be a list")
        ops = tuple(_op_from_dict(op_cfg) for op_cfg in ops_cfg)
        names = [op.name for op in ops]
        if len(set(names)) != len(names):
            raise ConfigError("duplicate instruction kind in 'ops'")

        return cls(parser=ParserConfig(**parser_cfg), ops=ops)

    def to_dict(self) -> dict[str, Any]:
        return {
            "parser": {
                f.name: getattr(self.parser, f.name) for f in fields(ParserConfig)
            },
            "ops": [_op_to_dict(op) for op in self.ops],
        }

    def register_ops(self, *, replace: bool = False) -> None:
        """Add the configured instruction kinds to the registry.

        Raises:
            ConfigError: A kind is already registered and `replace` is False.
        """
        for opdef in self.ops:
            existing = get_op(opdef.name)
            if existing == opdef:
                continue
            if existing is not None and not replace:
                raise ConfigError(
                    f"instruction kind '{opdef.name}' is already registered"
                )
            register_op(opdef, replace=True)
            logger.info("registered instruction kind %s from config", opdef.name)


def _flag(name: Any, cfg: dict[str, Any], key: str) -> bool:
    value = cfg.get(key, False)
    if not isinstance(value, bool):
        raise ConfigError(f"{name}: '{key}' must be true or false")
    return value


def _op_from_dict(op_cfg: Any) -> OpDef:
    if not isinstance(op_cfg, dict) or "name" not in op_cfg:
        raise ConfigError("each entry of 'ops' needs a 'name'")
    name = op_cfg["name"]
    unknown = set(op_cfg) - _OP_KEYS
    if unknown:
        raise ConfigError(f"{name}: unknown keys {sorted(unknown)}")

    slots_cfg = op_cfg.get("slots")
    if slots_cfg is None:
        slots_cfg = []
    if not isinstance(slots_cfg, list):
        raise ConfigError(f"{name}: 'slots' must be a list")

    slots = []
    for slot_cfg in slots_cfg:
        if not isinstance(slot_cfg, dict) or "name" not in slot_cfg:
            raise ConfigError(f"{name}: each slot needs a 'name'")
        unknown = set(slot_cfg) - _SLOT_KEYS
        if unknown:
            raise ConfigError(f"{name}: unknown slot keys {sorted(unknown)}")
        slots.append(
            Slot(
                name=str(slot_cfg["name"]),
                register=_flag(name, slot_cfg, "register"),
                optional=_flag(name, slot_cfg, "optional"),
            )
        )

    try:
        return OpDef(
            name=str(name),
            slots=tuple(slots),
            rotation=_flag(name, op_cfg, "rotation"),
            summary=str(op_cfg.get("summary", "")),
        )
    except InvalidConstructionInvariant as e:
        raise ConfigError(str(e)) from e


def _op_to_dict(opdef: OpDef) -> dict[str, Any]:
    data: dict[str, Any] = {"name": opdef.name}
    if opdef.summary:
        data["summary"] = opdef.summary
    data["slots"] = [
        {"name": s.name, "register": s.register, "optional": s.optional}
        for s in opdef.slots
    ]
    data["rotation"] = opdef.rotation
    return data


def load_config(path: str | Path) -> QuantirConfig:
    """Read and validate a YAML configuration file."""
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    return QuantirConfig.from_dict(raw)


def sample_config() -> QuantirConfig:
    """Configuration written by ``quantir config gen``."""
    ccx = OpDef(
        "quantum.ccx",
        (
            Slot("c0", register=True),
            Slot("c1", register=True),
            Slot("trgt", register=True),
        ),
        summary="Toffoli",
    )
    return QuantirConfig(parser=ParserConfig(), ops=(ccx,))
