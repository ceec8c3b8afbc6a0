#!/usr/bin/env -S uv --quiet run --script
# /// script
# requires-python = ">=3.11"
# dependencies = []
# ///
"""Display PATH-like environment variables, one entry per line."""
from __future__ import annotations

import argparse
import os
import re
import sys
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TextIO

DEFAULT_VARIABLES = ("PATH",)
DEFAULT_PATTERN = ".*"
DEFAULT_SEPARATOR = ":"


class EnvPathError(Exception):
    pass


class InvalidPattern(EnvPathError, ValueError):
    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"invalid regex {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class UnsetVariable(EnvPathError, LookupError):
    def __init__(self, name: str) -> None:
        super().__init__(f"environment variable {name} is unset")
        self.name = name


class UndecodableValue(EnvPathError, ValueError):
    def __init__(self, name: str | None) -> None:
        if name is None:
            message = (
                "could not read value of an environment variable whose key is unreadable too... "
                "fix your env!"
            )
        else:
            message = f"could not read value of environment variable {name}"
        super().__init__(message)
        self.name = name


@dataclass(frozen=True)
class Config:
    variable_names: tuple[str, ...] = ()
    pattern: re.Pattern[str] = re.compile(DEFAULT_PATTERN)
    unique: bool = False
    all_variables: bool = False
    separator: str = DEFAULT_SEPARATOR
    fail_on_unset: bool = False
    verbose: bool = False


def _debug(verbose: bool, message: str) -> None:
    if verbose:
        print(f"[envpath] {message}", file=sys.stderr)


def _separator(raw: str) -> str:
    if len(raw) != 1:
        raise argparse.ArgumentTypeError(f"separator must be a single character, got {raw!r}")
    return raw


def compile_pattern(raw: str) -> re.Pattern[str]:
    try:
        return re.compile(raw)
    except re.error as exc:
        raise InvalidPattern(raw, str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="envpath",
        description="Display PATH-like environment variables, one entry per line.",
    )
    parser.add_argument("vars", nargs="*", metavar="VAR", help="Variables to display (default: PATH)")
    parser.add_argument(
        "-r",
        "--regex",
        default=DEFAULT_PATTERN,
        metavar="PATTERN",
        help=f"Only display entries matching this regex (default: {DEFAULT_PATTERN})",
    )
    parser.add_argument(
        "-s",
        "--sep",
        type=_separator,
        default=DEFAULT_SEPARATOR,
        metavar="CHAR",
        help=f"Entry separator (default: {DEFAULT_SEPARATOR})",
    )
    parser.add_argument(
        "-u",
        "--unique",
        action="store_true",
        help="Do not print the same entry twice (preserves entry order)",
    )
    parser.add_argument(
        "-a",
        "--all-vars",
        action="store_true",
        help="Display all set variables instead of VAR",
    )
    parser.add_argument("--fail-unset", action="store_true", help="Fail if a VAR is unset")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print diagnostics to stderr")
    return parser


def parse_config(argv: Sequence[str] | None = None) -> Config:
    args = build_parser().parse_args(argv)
    return Config(
        variable_names=tuple(args.vars),
        pattern=compile_pattern(args.regex),
        unique=args.unique,
        all_variables=args.all_vars,
        separator=args.sep,
        fail_on_unset=args.fail_unset,
        verbose=args.verbose,
    )


def _decode(text: str) -> str | None:
    # os.environ decodes with the locale; recover the raw bytes and require UTF-8.
    try:
        return os.fsencode(text).decode("utf-8")
    except UnicodeError:
        return None


def read_named(
    names: Iterable[str],
    fail_on_unset: bool = False,
    environ: Mapping[str, str] | None = None,
    verbose: bool = False,
) -> list[str]:
    if environ is None:
        environ = os.environ
    values: list[str] = []
    for name in names:
        raw = environ.get(name)
        if raw is None:
            if fail_on_unset:
                raise UnsetVariable(name)
            _debug(verbose, f"skip unset var={name}")
            continue
        value = _decode(raw)
        if value is None:
            raise UndecodableValue(name)
        values.append(value)
    return values


def read_all(environ: Mapping[str, str] | None = None) -> list[str]:
    if environ is None:
        environ = os.environ
    values: list[str] = []
    for key, raw in environ.items():
        value = _decode(raw)
        if value is None:
            raise UndecodableValue(_decode(key))
        values.append(value)
    return values


def read_values(config: Config, environ: Mapping[str, str] | None = None) -> list[str]:
    if environ is None:
        environ = os.environ
    if config.all_variables:
        _debug(config.verbose, f"mode=all vars={len(environ)}")
        return read_all(environ)

    names = config.variable_names or DEFAULT_VARIABLES
    _debug(config.verbose, f"mode=named vars={','.join(names)}")
    return read_named(names, config.fail_on_unset, environ, config.verbose)


def split_entries(values: Iterable[str], separator: str = DEFAULT_SEPARATOR) -> list[str]:
    # str.split keeps empty entries at boundaries and between repeated separators.
    entries: list[str] = []
    for value in values:
        entries.extend(value.split(separator))
    return entries


def select_entries(values: Iterable[str], config: Config) -> list[str]:
    entries = split_entries(values, config.separator)
    matched = [entry for entry in entries if config.pattern.search(entry)]
    if config.unique:
        matched = list(dict.fromkeys(matched))
    return matched


def print_entries(entries: Iterable[str], stream: TextIO | None = None) -> int:
    if stream is None:
        stream = sys.stdout
    count = 0
    for entry in entries:
        stream.write(f"{entry}\n")
        count += 1
    return count


def run(config: Config, environ: Mapping[str, str] | None = None, stream: TextIO | None = None) -> int:
    values = read_values(config, environ)
    entries = select_entries(values, config)
    printed = print_entries(entries, stream)
    if config.verbose:
        total = len(split_entries(values, config.separator))
        _debug(config.verbose, f"values={len(values)} entries={total} printed={printed}")
    return printed


def _silence_stdout() -> None:
    # Point the stdout fd at devnull so the interpreter's final flush cannot fail again.
    try:
        fd = sys.stdout.fileno()
    except (AttributeError, OSError, ValueError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, fd)
    os.close(devnull)


def main(argv: Sequence[str] | None = None) -> int:
    if sys.stdout is sys.__stdout__ and hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")
    try:
        config = parse_config(argv)
        run(config)
    except EnvPathError as exc:
        print(f"[fatal] {exc}", file=sys.stderr)
        return 1
    except BrokenPipeError:
        _silence_stdout()
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
