from __future__ import annotations

import argparse
import enum
import json
import logging
import sys
from typing import Any, Optional

from . import __version__
from .codec import Codec
from .config import load_config
from .errors import ConfigError, DecodeError
from .logging_config import configure_logging
from .store import Store
from .values import EnumValue

_MISSING = object()


def _json_default(value: Any) -> Any:
    if isinstance(value, EnumValue):
        return {"enum": value.enum, "name": value.name, "args": list(value.args)}
    if isinstance(value, enum.Enum):
        return f"{type(value).__name__}.{value.name}"
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return repr(value)


def build_store(args: argparse.Namespace) -> Store:
    config = load_config(
        args.config,
        directory=args.dir,
        format=args.format,
        use_crc=False if args.no_crc else None,
    )
    return Store.from_config(config)


def cmd_get(args: argparse.Namespace) -> int:
    store = build_store(args)
    if args.raw:
        value = store.read_string(args.name)
        if value is None:
            print(f"error: no readable record named {args.name!r}", file=sys.stderr)
            return 1
        print(value)
        return 0
    obj = store.read_object(args.name, _MISSING)
    if obj is _MISSING:
        print(f"error: no readable record named {args.name!r}", file=sys.stderr)
        return 1
    print(json.dumps(obj, indent=2, sort_keys=True, default=_json_default))
    return 0


def cmd_set(args: argparse.Namespace) -> int:
    store = build_store(args)
    if args.string:
        ok = store.write_string(args.name, args.value)
    else:
        try:
            value = json.loads(args.value)
        except ValueError as e:
            print(f"error: value is not valid JSON ({e}); use --string for plain text", file=sys.stderr)
            return 2
        ok = store.write_object(args.name, value)
    if not ok:
        print(f"error: failed to write {args.name!r}", file=sys.stderr)
        return 1
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    build_store(args).delete(args.name)
    return 0


def cmd_exists(args: argparse.Namespace) -> int:
    found = build_store(args).exists(args.name)
    print("yes" if found else "no")
    return 0 if found else 1


def cmd_list(args: argparse.Namespace) -> int:
    for name in build_store(args).names():
        print(name)
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    store = build_store(args)
    codec = Codec(store.storage_format)
    bad = 0
    for name in store.names():
        payload = store.read_string(name)
        if payload is not None and _decodes(codec, payload):
            print(f"{name}\tok")
        else:
            bad += 1
            print(f"{name}\tcorrupt")
    return 1 if bad else 0


def _decodes(codec: Codec, payload: str) -> bool:
    try:
        codec.decode(payload)
    except DecodeError:
        return False
    return True


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="savestash", description="Inspect and edit a savestash store")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-c", "--config", help="Path to store YAML config")
    p.add_argument("--dir", help="Store directory (overrides config and SAVESTASH_DIR)")
    p.add_argument("--format", choices=["text", "binary"], help="Payload format")
    p.add_argument("--no-crc", action="store_true", help="Records carry no digest")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="cmd")

    get_p = sub.add_parser("get", help="Print a stored object as JSON")
    get_p.add_argument("name")
    get_p.add_argument("--raw", action="store_true", help="Print the stored payload string as-is")
    get_p.set_defaults(func=cmd_get)

    set_p = sub.add_parser("set", help="Store a JSON value")
    set_p.add_argument("name")
    set_p.add_argument("value")
    set_p.add_argument("--string", action="store_true", help="Store VALUE as a plain string")
    set_p.set_defaults(func=cmd_set)

    del_p = sub.add_parser("delete", help="Remove a record")
    del_p.add_argument("name")
    del_p.set_defaults(func=cmd_delete)

    exists_p = sub.add_parser("exists", help="Exit 0 if a valid record exists")
    exists_p.add_argument("name")
    exists_p.set_defaults(func=cmd_exists)

    list_p = sub.add_parser("list", help="List stored names")
    list_p.set_defaults(func=cmd_list)

    verify_p = sub.add_parser("verify", help="Check every record decodes and passes its digest")
    verify_p.set_defaults(func=cmd_verify)
    return p


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.debug else logging.WARNING)
    if not hasattr(args, "func"):
        parser.print_help()
        return 2
    try:
        return args.func(args)
    except (ConfigError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
