from __future__ import annotations

import argparse
import os
import subprocess
import sys
from dataclasses import replace
from pathlib import Path

import yaml

from envfile import registry
from envfile.config import load_options
from envfile.log import configure_logging
from envfile.parser import DEFAULT_OPTIONS, ParseOptions, read_entries
from envfile.util import dump_json, redact_value, write_text_atomic


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("path", type=Path, help="The .env file to read.")
    common.add_argument("--options", type=Path, default=None, help="YAML option profile (overwrite, strip_quotes, ...).")
    common.add_argument("--no-overwrite", action="store_true", help="Keep variables that are already set.")
    common.add_argument("--keep-quotes", action="store_true", help="Do not strip matching outer quotes from values.")
    common.add_argument("--no-trim", action="store_true", help="Do not trim whitespace around keys and values.")

    p = argparse.ArgumentParser(prog="envfile", description="Parse .env files and load them into the environment.")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR (default: $LOG_LEVEL or WARNING).")
    sub = p.add_subparsers(dest="cmd", required=True)

    show = sub.add_parser("show", parents=[common], help="Print the parsed entries without touching the environment.")
    show.add_argument("--reveal", action="store_true", help="Print values of secret-looking keys too.")
    show.add_argument("--format", choices=("yaml", "json"), default="yaml")
    show.add_argument("--out", type=Path, default=None, help="Write the output to this file instead of stdout.")

    sub.add_parser("load", parents=[common], help="Load the file and print the keys that were set.")

    run = sub.add_parser("run", parents=[common], help="Load the file, then run a command with that environment.")
    run.add_argument("command", nargs=argparse.REMAINDER, help="Command to run, optionally after '--'.")

    args = p.parse_args(argv)
    if args.cmd == "run":
        if args.command and args.command[0] == "--":
            args.command = args.command[1:]
        if not args.command:
            p.error("run: missing command")
    return args


def _options(args: argparse.Namespace) -> ParseOptions:
    opts = load_options(args.options) if args.options else DEFAULT_OPTIONS
    overrides: dict[str, bool] = {}
    if args.no_overwrite:
        overrides["overwrite"] = False
    if args.keep_quotes:
        overrides["strip_quotes"] = False
    if args.no_trim:
        overrides["trim_whitespace"] = False
    return replace(opts, **overrides)


def _show(args: argparse.Namespace, opts: ParseOptions) -> int:
    try:
        entries = read_entries(args.path, opts)
    except OSError as exc:
        print(f"envfile: cannot read {args.path}: {exc.strerror or exc}", file=sys.stderr)
        return 1

    values: dict[str, str] = {}
    for entry in entries:
        values[entry.key] = entry.value if args.reveal else redact_value(entry.key, entry.value)

    if args.format == "json":
        text = dump_json(values)
    else:
        text = yaml.safe_dump(values, sort_keys=False, allow_unicode=True, default_flow_style=False)

    if args.out:
        write_text_atomic(args.out, text)
    else:
        sys.stdout.write(text)
    return 0


def _load(args: argparse.Namespace, opts: ParseOptions) -> bool:
    if registry.load(args.path, opts) != registry.DotenvError.SUCCESS:
        print(f"envfile: {registry.get_last_error()}", file=sys.stderr)
        return False
    return True


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(args.log_level)

    try:
        opts = _options(args)
    except (OSError, ValueError) as exc:
        print(f"envfile: bad option profile {args.options}: {exc}", file=sys.stderr)
        return 1

    if args.cmd == "show":
        return _show(args, opts)

    if args.cmd == "load":
        if not _load(args, opts):
            return 1
        for key in registry.get_loaded_keys():
            print(key)
        return 0

    if args.cmd == "run":
        if not _load(args, opts):
            return 1
        try:
            return subprocess.run(args.command, env=dict(os.environ)).returncode
        except FileNotFoundError:
            print(f"envfile: command not found: {args.command[0]}", file=sys.stderr)
            return 127

    raise RuntimeError(f"unhandled cmd={args.cmd!r}")


if __name__ == "__main__":
    sys.exit(main())
