#!/usr/bin/env python3
"""
srvkit command line.

Usage:
    srvkit serve [--watch]
    srvkit config get server.http.port
    srvkit config dump
    srvkit --conf-dir /etc/myapp --conf-file app.properties serve
"""

import argparse
import sys
from collections.abc import Sequence
from typing import Any, TextIO

import yaml

from .bootstrap import AppContext
from .config import CONF_DIR_ENV, CONF_FILE_ENV, ConfigSnapshot, ConfigStore
from .exceptions import SrvError, iter_causes
from .version import version_string


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="srvkit",
        description="Configuration-driven HTTP/HTTPS server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=version_string()
    )
    parser.add_argument(
        "--conf-dir", help=f"configuration directory (overrides {CONF_DIR_ENV})"
    )
    parser.add_argument(
        "--conf-file", help=f"configuration file name (overrides {CONF_FILE_ENV})"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="start the configured listeners")
    serve.add_argument(
        "--watch", action="store_true", help="reload configuration when it changes"
    )

    config = commands.add_parser("config", help="inspect the configuration")
    config_commands = config.add_subparsers(dest="config_command", required=True)
    get = config_commands.add_parser("get", help="print the value at a dotted path")
    get.add_argument("path")
    config_commands.add_parser("dump", help="print the whole configuration")
    return parser


def _render(value: Any) -> str:
    if isinstance(value, ConfigSnapshot):
        value = value.to_dict()
    if isinstance(value, (dict, list)):
        return yaml.safe_dump(value, default_flow_style=False, sort_keys=True).rstrip()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _config_command(store: ConfigStore, args: argparse.Namespace, out: TextIO) -> int:
    store.initialize()
    if args.config_command == "dump":
        print(_render(store.snapshot), file=out)
        return 0
    value = store.get_value(args.path)
    if value is None:
        print(f"{args.path}: not set", file=sys.stderr)
        return 1
    print(_render(value), file=out)
    return 0


def _serve(store: ConfigStore, args: argparse.Namespace) -> int:
    ctx = AppContext(store)
    ctx.init()
    ctx.registry.load_entry_points()
    ctx.install_fatal_handler()
    ctx.start_web()
    if args.watch:
        ctx.watch_config()
    ctx.serve_forever()
    return 0


def main(argv: Sequence[str] | None = None, out: TextIO | None = None) -> int:
    """Entry point of the ``srvkit`` command."""
    args = build_parser().parse_args(argv)
    store = ConfigStore(conf_dir=args.conf_dir, conf_file=args.conf_file)
    try:
        if args.command == "config":
            return _config_command(store, args, out or sys.stdout)
        return _serve(store, args)
    except SrvError as e:
        print(f"srvkit: {e}", file=sys.stderr)
        for cause in list(iter_causes(e))[1:]:
            print(f"  caused by: {cause}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
