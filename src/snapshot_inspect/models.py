from __future__ import annotations

from typing import TypedDict

REPORT_VERSION = 1


class TypeStatSummary(TypedDict):
    tag: int
    name: str
    known: bool
    count: int
    total_bytes: int


class KeyPrefixSummary(TypedDict):
    prefix: str
    count: int
    total_bytes: int


class SnapshotReport(TypedDict):
    report_version: int
    last_index: int
    header_bytes: int
    record_bytes: int
    total_records: int
    prefix_depth: int
    types: list[TypeStatSummary]
    key_prefixes: list[KeyPrefixSummary]
    unknown_tags: list[int]
