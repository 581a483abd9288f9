"""Command line tool for inspecting codecs and converting wire documents."""

from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Any

from surreal_codec.codecs import Codec, RecordCodec, TransparentCodec, VariantCodec
from surreal_codec.config import CodecConfig, get_config
from surreal_codec.errors import ConfigurationError, DeserializeError, ParsingFieldFailed
from surreal_codec.registry import CodecRegistry
from surreal_codec.types import FieldDefinition, VariantShape
from surreal_codec.values import render, to_json

logger = logging.getLogger(__name__)


def load_type(target: str) -> Any:
    """Import ``package.module:TypeName``."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Expected 'module:Type', got {target!r}")
    obj: Any = importlib.import_module(module_name)
    for part in attr.split("."):
        obj = getattr(obj, part)
    return obj


def _field_flags(f: FieldDefinition) -> list[str]:
    flags = []
    if f.skip_serializing:
        flags.append("skip_serializing")
    if f.skip_deserializing:
        flags.append("skip_deserializing")
    if f.default_on_absent:
        flags.append("default_on_absent")
    return flags


def _describe_fields(fields: list[FieldDefinition]) -> list[dict[str, Any]]:
    return [
        {
            "name": f.name,
            "wire_name": f.wire_name,
            "type": f.codec.name,
            "shape": f.shape.value,
            "flags": _field_flags(f),
        }
        for f in fields
    ]


def describe_codec(codec: Codec) -> dict[str, Any]:
    """Summarise a codec's wire layout as plain data."""
    if isinstance(codec, RecordCodec):
        return {"kind": "record", "name": codec.name, "fields": _describe_fields(codec.fields)}
    if isinstance(codec, TransparentCodec):
        return {"kind": "transparent", "name": codec.name, "fields": _describe_fields([codec.field])}
    if isinstance(codec, VariantCodec):
        return {
            "kind": "sum_type",
            "name": codec.name,
            "encoding": codec.encoding.value,
            "variants": [
                {
                    "name": v.name,
                    "wire_name": v.wire_name,
                    "shape": v.shape.value,
                    "fields": _describe_fields(v.fields),
                }
                for v in codec.variants
            ],
        }
    return {"kind": codec.shape.value, "name": codec.name}


def _print_fields(fields: list[dict[str, Any]], indent: str) -> None:
    for f in fields:
        flags = f" [{', '.join(f['flags'])}]" if f["flags"] else ""
        print(f"{indent}{f['name']} -> {f['wire_name']}: {f['type']} ({f['shape']}){flags}")


def print_description(info: dict[str, Any]) -> None:
    if info["kind"] in ("record", "transparent"):
        print(f"{info['kind']} {info['name']}")
        _print_fields(info["fields"], "  ")
    elif info["kind"] == "sum_type":
        print(f"sum type {info['name']} ({info['encoding']})")
        for v in info["variants"]:
            print(f"  {v['name']} -> {v['wire_name']} ({v['shape']})")
            if v["shape"] != VariantShape.UNIT.value:
                _print_fields(v["fields"], "    ")
    else:
        print(f"{info['kind']} {info['name']}")


def cmd_describe(registry: CodecRegistry, tp: Any, args: argparse.Namespace) -> int:
    codec = registry.codec_for(tp)
    info = describe_codec(codec)
    if args.json:
        print(json.dumps(info, indent=2))
    else:
        print_description(info)
    return 0


def cmd_convert(registry: CodecRegistry, tp: Any, args: argparse.Namespace) -> int:
    path = Path(args.file)
    if not path.exists():
        print(f"Error: {args.file} not found", file=sys.stderr)
        return 1

    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            print(f"Error: Invalid JSON in {args.file}: {e}", file=sys.stderr)
            return 1

    try:
        value = registry.deserialize(tp, data)
    except ParsingFieldFailed as e:
        print(f"Error at {'.'.join(e.path)}: {e.root_cause}", file=sys.stderr)
        return 1
    except DeserializeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    wire = registry.serialize(value, tp)
    if args.json:
        print(json.dumps(to_json(wire), indent=2))
    else:
        print(render(wire))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="surreal-codec",
        description="Inspect record/sum type codecs and convert wire documents",
    )
    parser.add_argument(
        "--camel-case",
        action="store_true",
        default=None,
        help="Use camelCase wire names (overrides SURREAL_CODEC_USE_CAMEL_CASE)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    sub = parser.add_subparsers(dest="command", required=True)

    describe = sub.add_parser("describe", help="Show the wire layout of a type")
    describe.add_argument("type", help="Type to describe, as module:Type")
    describe.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    describe.set_defaults(func=cmd_describe)

    convert = sub.add_parser("convert", help="Deserialize a JSON document and serialize it back")
    convert.add_argument("type", help="Target type, as module:Type")
    convert.add_argument("file", help="JSON file holding the wire value")
    convert.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    convert.set_defaults(func=cmd_convert)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    config: CodecConfig = get_config()
    if args.camel_case:
        config = config.model_copy(update={"use_camel_case": True})

    logging.basicConfig(
        level="DEBUG" if args.verbose else config.log_level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        tp = load_type(args.type)
    except (ImportError, AttributeError, ValueError) as e:
        print(f"Error: Cannot load type {args.type!r}: {e}", file=sys.stderr)
        return 1
    logger.debug("loaded %s from %s", tp, args.type)

    registry = CodecRegistry(config)
    try:
        return args.func(registry, tp, args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
