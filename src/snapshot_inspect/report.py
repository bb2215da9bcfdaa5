from __future__ import annotations

import json
from typing import Any

from .bytefmt import byte_size
from .models import REPORT_VERSION, KeyPrefixSummary, SnapshotReport, TypeStatSummary
from .reader import InspectionResult, Record

__all__ = [
    "build_report",
    "canonical_json",
    "render_json",
    "render_record_line",
    "render_tables",
]

_COUNT_WIDTH = 8
_SIZE_WIDTH = 12


def build_report(result: InspectionResult) -> SnapshotReport:
    unknown = set(result.unknown_tags)
    types: list[TypeStatSummary] = [
        {
            "tag": stat.tag,
            "name": stat.name,
            "known": stat.tag not in unknown,
            "count": stat.count,
            "total_bytes": stat.total_bytes,
        }
        for stat in result.stats.type_stats()
    ]
    prefixes: list[KeyPrefixSummary] = [
        {"prefix": stat.prefix, "count": stat.count, "total_bytes": stat.total_bytes}
        for stat in result.stats.key_prefix_stats()
    ]
    return {
        "report_version": REPORT_VERSION,
        "last_index": result.header.last_index,
        "header_bytes": result.header_bytes,
        "record_bytes": result.record_bytes,
        "total_records": result.stats.total_records,
        "prefix_depth": result.stats.prefix_depth,
        "types": types,
        "key_prefixes": prefixes,
        "unknown_tags": sorted(unknown),
    }


def canonical_json(value: Any) -> str:
    try:
        return json.dumps(
            value,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=True,
            allow_nan=False,
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"non-canonical report: {exc}") from exc


def render_json(result: InspectionResult) -> str:
    return canonical_json(build_report(result))


def _printable(text: str) -> str:
    # Keys decoded from raw bytes may carry surrogate escapes.
    return text.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")


def _table(
    title: str,
    label: str,
    label_width: int,
    rows: list[tuple[str, int, int]],
    total_bytes: int,
) -> list[str]:
    rule = "-" * (label_width + _COUNT_WIDTH + _SIZE_WIDTH + 2)
    columns = " ".join(("-" * label_width, "-" * _COUNT_WIDTH, "-" * _SIZE_WIDTH))
    lines = [
        rule,
        title,
        rule,
        f"{label:>{label_width}} {'Count':>{_COUNT_WIDTH}} {'Total Size':>{_SIZE_WIDTH}}",
        columns,
    ]
    for name, count, size in rows:
        lines.append(
            f"{_printable(name):>{label_width}} {count:>{_COUNT_WIDTH}d} {byte_size(size):>{_SIZE_WIDTH}}"
        )
    lines.append(columns)
    lines.append(
        f"{'':>{label_width}} {'TOTAL:':>{_COUNT_WIDTH}} {byte_size(total_bytes):>{_SIZE_WIDTH}}"
    )
    return lines


def render_tables(result: InspectionResult) -> str:
    stats = result.stats
    lines = _table(
        "RECORD SUMMARY",
        "Record Type",
        30,
        [(s.name, s.count, s.total_bytes) for s in stats.type_stats()],
        stats.total_bytes,
    )
    prefixes = stats.key_prefix_stats()
    if prefixes:
        lines.append("")
        lines.extend(
            _table(
                "KEY SIZE BREAKDOWN",
                "Key Prefix",
                22,
                [(s.prefix, s.count, s.total_bytes) for s in prefixes],
                stats.key_prefix_total_bytes,
            )
        )
    return "\n".join(lines) + "\n"


def render_record_line(record: Record) -> str:
    """One listing line: offset, size, type name and the KV key if present."""
    line = f"{record.offset:>12d} {record.size:>8d} {record.name}"
    key = _full_key(record)
    if key is not None:
        line += f" {_printable(key)}"
    return line


def _full_key(record: Record) -> str | None:
    match record.value:
        case {"Key": str(key)} if key:
            return key
        case _:
            return None
