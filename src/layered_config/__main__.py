from __future__ import annotations

import argparse
import importlib
import logging
import sys
from typing import Optional, Sequence

from pydantic import BaseModel

from layered_config.loader import LayeredConfigLoader
from layered_config.logging import LoggingObserver, LoggingSettings, init_logging
from layered_config.models import (
    CreatedDefaultFile,
    Defaults,
    Dotenv,
    Environment,
    FileSource,
    LoadedValue,
    LoadRequest,
    Source,
)

logger = logging.getLogger(__name__)

EXIT_LOADED = 0
EXIT_FAILED = 1
EXIT_CREATED_DEFAULT = 3

_FILE_FORMATS = ("json", "toml", "yaml")


def parse_source(spec: str) -> Source:
    """Parse `defaults`, `env[:PREFIX]`, `dotenv[:PATH]` or `FORMAT:PATH[?]`."""
    kind, _, arg = spec.partition(":")
    if kind == "defaults" and not arg:
        return Defaults()
    if kind == "env":
        return Environment(prefix=arg)
    if kind == "dotenv":
        return Dotenv(path=arg or ".env")
    if kind in _FILE_FORMATS and arg:
        required = not arg.endswith("?")
        return FileSource(format=kind, path=arg.rstrip("?"), required=required)  # type: ignore[arg-type]
    raise argparse.ArgumentTypeError(f"Invalid config source: {spec!r}")


def parse_file_source(spec: str) -> FileSource:
    source = parse_source(spec)
    if not isinstance(source, FileSource):
        raise argparse.ArgumentTypeError(f"Fallback must be a file source: {spec!r}")
    return source


def import_model(target: str) -> type[BaseModel]:
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise argparse.ArgumentTypeError(f"Expected MODULE:CLASS, got: {target!r}")
    try:
        model = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise argparse.ArgumentTypeError(f"Cannot import {target!r}: {e}") from e
    if not isinstance(model, type) or not issubclass(model, BaseModel):
        raise argparse.ArgumentTypeError(f"{target!r} is not a pydantic model")
    return model


def prompt_create_default(path: str) -> bool:
    while True:
        answer = input(f'Would you like to create a default config file at "{path}"? (y/n) ').strip()
        if answer == "y":
            return True
        if answer == "n":
            return False


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="layered-config", description="Layered configuration loader")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Root log level (default: INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    # Command: check
    check_parser = subparsers.add_parser("check", help="Load a config model and report the outcome")
    check_parser.add_argument("model", type=import_model, help="Config model as MODULE:CLASS")
    check_parser.add_argument(
        "--source",
        dest="sources",
        action="append",
        type=parse_source,
        default=None,
        help="Config source, earlier wins: defaults, env[:PREFIX], dotenv[:PATH], json|toml|yaml:PATH[?]",
    )
    check_parser.add_argument(
        "--nested-delimiter",
        default=None,
        help="Split env/dotenv keys into nested fields on this delimiter (e.g. __)",
    )
    check_parser.add_argument(
        "--fallback",
        type=parse_file_source,
        default=None,
        help="Default config file to create when a required setting is missing",
    )
    check_parser.add_argument(
        "--confirm",
        action="store_true",
        help="Ask before creating the default config file",
    )
    return parser


def _with_delimiter(sources: Sequence[Source], delimiter: Optional[str]) -> tuple[Source, ...]:
    if delimiter is None:
        return tuple(sources)
    out: list[Source] = []
    for source in sources:
        if isinstance(source, Environment):
            source = Environment(prefix=source.prefix, nested_delimiter=delimiter)
        elif isinstance(source, Dotenv):
            source = Dotenv(path=source.path, prefix=source.prefix, nested_delimiter=delimiter)
        out.append(source)
    return tuple(out)


def _check(args: argparse.Namespace) -> int:
    sources = _with_delimiter(args.sources or [Defaults()], args.nested_delimiter)
    loader = LayeredConfigLoader(
        args.model,
        observer=LoggingObserver(),
        confirm=prompt_create_default if args.confirm else None,
    )
    outcome = loader.load(LoadRequest(sources=sources, fallback=args.fallback))

    if isinstance(outcome, LoadedValue):
        print(outcome.value.model_dump_json(indent=2))
        return EXIT_LOADED
    if isinstance(outcome, CreatedDefaultFile):
        logger.info("Created default config file at \"%s\". Fill it in and rerun.", outcome.path)
        return EXIT_CREATED_DEFAULT
    logger.error("Loading config failed with: %s", outcome.error)
    return EXIT_FAILED


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    init_logging(LoggingSettings(level=args.log_level))

    if args.command == "check":
        return _check(args)
    return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
