from __future__ import annotations

import argparse
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Sequence

from .config import InspectConfig, load_inspect_config
from .reader import SnapshotError, SnapshotReader, inspect_snapshot
from .report import render_json, render_record_line, render_tables

_LOGGER = logging.getLogger("snapshot_inspect")

EXIT_OK = 0
EXIT_SNAPSHOT_ERROR = 1
EXIT_USAGE = 2


def _configure_logging(level: int) -> None:
    _LOGGER.setLevel(level)
    if _LOGGER.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    _LOGGER.addHandler(handler)


@contextmanager
def _open_input(path: str) -> Iterator[BinaryIO]:
    if path == "-":
        yield sys.stdin.buffer
        return
    with open(path, "rb") as f:
        yield f


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        config = load_inspect_config(
            Path(args.config) if args.config else None,
            prefix_depth=getattr(args, "depth", None),
            key_separator=getattr(args, "separator", None),
            key_record_type=getattr(args, "key_type", None),
            output_format=getattr(args, "format", None),
        )
    except (OSError, ValueError) as exc:
        _configure_logging(logging.INFO)
        _LOGGER.error("config.invalid error=%s", exc)
        return EXIT_USAGE
    _configure_logging(config.log_level_value)

    try:
        with _open_input(args.path) as stream:
            if args.command == "records":
                _list_records(stream)
            else:
                _print_stats(stream, config)
    except SnapshotError as exc:
        _LOGGER.error("snapshot.failed code=%s offset=%d error=%s", exc.code, exc.offset, exc)
        return EXIT_SNAPSHOT_ERROR
    except OSError as exc:
        _LOGGER.error("snapshot.read_failed path=%s error=%s", args.path, exc)
        return EXIT_SNAPSHOT_ERROR
    return EXIT_OK


def _print_stats(stream: BinaryIO, config: InspectConfig) -> None:
    result = inspect_snapshot(stream, config=config)
    if config.output_format == "json":
        sys.stdout.write(render_json(result) + "\n")
    else:
        sys.stdout.write(render_tables(result))


def _list_records(stream: BinaryIO) -> None:
    reader = SnapshotReader(stream)
    header = reader.read_header()
    sys.stdout.write(f"# header last_index={header.last_index} bytes={reader.header_bytes}\n")
    for record in reader.records():
        sys.stdout.write(render_record_line(record) + "\n")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="snapshot-inspect",
        description="Break down the space used by records in a Consul state snapshot.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("path", nargs="?", default="-", help="snapshot state file (default: stdin)")
    common.add_argument("--config", default=None, help="JSON config file")

    stats = sub.add_parser("stats", parents=[common], help="summarize space by type and key prefix")
    stats.add_argument("--depth", type=int, default=None, help="key prefix segments to keep")
    stats.add_argument("--separator", default=None, help="key path separator")
    stats.add_argument("--key-type", default=None, help="record type carrying Key fields")
    stats.add_argument("--format", choices=("table", "json"), default=None)
    sub.add_parser("records", parents=[common], help="list every record with its size")
    return parser.parse_args(argv)

