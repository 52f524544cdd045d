#!/usr/bin/env python3
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

"""
Command-line interface for quantir assembly files.

Examples:
    # Reprint a file in canonical form
    quantir fmt circuit.qir -o circuit.canon.qir

    # Fail if a file is not canonical
    quantir fmt circuit.qir --check

    # Parse and print a single type
    quantir type "cgate<2, gate1>"

    # List instruction kinds, including those from a config file
    quantir -c quantir.yaml ops

    # Dump the parsed module as JSON
    quantir dump circuit.qir

    # Generate a sample config file
    quantir config gen -o quantir.yaml
"""

import argparse
import sys

import yaml

from quantir.config import QuantirConfig, load_config, sample_config
from quantir.dialects.quantum.ops import OpDef
from quantir.dialects.quantum.types import parse_type, print_type
from quantir.ir import serde
from quantir.ir.errors import ConfigError, ParseError
from quantir.ir.parser import parse_module
from quantir.ir.printer import format_block
from quantir.ir.registry import get_op, list_ops
from quantir.logging_config import setup_logging


def _load(args: argparse.Namespace) -> QuantirConfig:
    if not args.config:
        return QuantirConfig()
    config = load_config(args.config)
    config.register_ops()
    return config


def _read(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def _write(path: str | None, text: str) -> None:
    if path:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    else:
        sys.stdout.write(text)


def cmd_fmt(args: argparse.Namespace, config: QuantirConfig) -> int:
    """Reprint a module in canonical form."""
    source = _read(args.file)
    block = parse_module(source, config=config.parser)
    text = format_block(block) + "\n" if block.operations else ""
    if args.check:
        if text != source:
            print(f"{args.file}: not in canonical form", file=sys.stderr)
            return 1
        return 0
    _write(args.output, text)
    return 0


def cmd_type(args: argparse.Namespace, config: QuantirConfig) -> int:
    """Parse and reprint a type."""
    print(print_type(parse_type(args.text)))
    return 0


def cmd_ops(args: argparse.Namespace, config: QuantirConfig) -> int:
    """List instruction kinds with their slot maps."""
    for name in list_ops():
        opdef = get_op(name)
        if isinstance(opdef, OpDef):
            print(f"{name:<20} {opdef.describe():<28} {opdef.summary}".rstrip())
        else:
            print(name)
    return 0


def cmd_dump(args: argparse.Namespace, config: QuantirConfig) -> int:
    """Print the JSON serialization of a parsed module."""
    block = parse_module(_read(args.file), config=config.parser)
    print(serde.dumps(block, indent=2).decode("utf-8"))
    return 0


def cmd_config_gen(args: argparse.Namespace, config: QuantirConfig) -> int:
    """Generate a sample configuration."""
    yaml_content = yaml.dump(sample_config().to_dict(), sort_keys=False)
    if args.output:
        _write(args.output, yaml_content)
        print(f"Config written to {args.output}")
    else:
        print(yaml_content)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quantir",
        description="quantir assembly tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=str, help="Config YAML")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Enable logging at this level",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'fmt' subcommand
    fmt_parser = subparsers.add_parser("fmt", help="Reprint in canonical form")
    fmt_parser.add_argument("file", help="Input file ('-' for stdin)")
    fmt_parser.add_argument("-o", "--output", type=str, help="Output file path")
    fmt_parser.add_argument(
        "--check",
        action="store_true",
        help="Exit with 1 if the file is not in canonical form",
    )

    # 'type' subcommand
    type_parser = subparsers.add_parser("type", help="Parse and print a type")
    type_parser.add_argument("text", help="Type text, e.g. 'register<4>'")

    # 'ops' subcommand
    subparsers.add_parser("ops", help="List instruction kinds")

    # 'dump' subcommand
    dump_parser = subparsers.add_parser("dump", help="Dump a module as JSON")
    dump_parser.add_argument("file", help="Input file ('-' for stdin)")

    # 'config' subcommand
    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_subparsers = config_parser.add_subparsers(
        dest="config_command", help="Config commands"
    )
    gen_parser = config_subparsers.add_parser("gen", help="Generate sample config")
    gen_parser.add_argument("-o", "--output", type=str, help="Output file path")

    return parser


_COMMANDS = {
    "fmt": cmd_fmt,
    "type": cmd_type,
    "ops": cmd_ops,
    "dump": cmd_dump,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        setup_logging(level=args.log_level, force=True)

    if args.command == "config":
        if args.config_command != "gen":
            parser.print_help()
            return 1
        return cmd_config_gen(args, QuantirConfig())
    if args.command not in _COMMANDS:
        parser.print_help()
        return 1

    source_name = getattr(args, "file", None) or "<text>"
    try:
        config = _load(args)
        return _COMMANDS[args.command](args, config)
    except ParseError as e:
        loc = e.location
        print(
            f"{source_name}:{loc.line}:{loc.column}: error: {e.message}",
            file=sys.stderr,
        )
        return 1
    except (ConfigError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
