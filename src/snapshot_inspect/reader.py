"""
Streaming snapshot reader.

A snapshot is one msgpack-encoded header followed by (tag byte, msgpack
value) records until end of stream. Nothing in the stream records a length,
so the size of each record is measured by counting the bytes the decoder
pulls through a ByteCounter.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Mapping

from .byte_counter import ByteCounter, ReadableStream
from .codec import Value, ValueDecodeError, ValueDecoder
from .config import InspectConfig
from .registry import DEFAULT_REGISTRY, REGISTRY_SOURCE_HINT, RecordTypeRegistry
from .stats import StatsAccumulator


__all__ = [
    "InspectionResult",
    "MalformedHeaderError",
    "ReaderState",
    "Record",
    "SnapshotError",
    "SnapshotHeader",
    "SnapshotReader",
    "TruncatedRecordError",
    "inspect_snapshot",
]

_LOGGER = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Base error for unrecoverable snapshot decoding failures."""

    def __init__(self, code: str, message: str, offset: int) -> None:
        super().__init__(message)
        self.code = code
        self.offset = offset


class MalformedHeaderError(SnapshotError):
    """The leading header record could not be decoded."""

    def __init__(self, message: str, offset: int) -> None:
        super().__init__("MALFORMED_HEADER", message, offset)


class TruncatedRecordError(SnapshotError):
    """A record started but its payload is cut off or malformed."""

    def __init__(self, message: str, offset: int, tag: int | None = None) -> None:
        super().__init__("TRUNCATED_RECORD", message, offset)
        self.tag = tag


class ReaderState(enum.Enum):
    AWAITING_HEADER = "awaiting_header"
    READING_RECORDS = "reading_records"
    DONE = "done"


@dataclass(frozen=True)
class SnapshotHeader:
    # Last raft index that affects the data.
    last_index: int


@dataclass(frozen=True)
class Record:
    tag: int
    name: str
    known: bool
    offset: int
    size: int
    value: Value


class SnapshotReader:
    def __init__(
        self,
        stream: ReadableStream,
        *,
        registry: RecordTypeRegistry = DEFAULT_REGISTRY,
        decoder_factory: Callable[[ReadableStream], ValueDecoder] = ValueDecoder,
    ) -> None:
        self._counter = ByteCounter(stream)
        self._decoder = decoder_factory(self._counter)
        self._registry = registry
        self._state = ReaderState.AWAITING_HEADER
        self._header: SnapshotHeader | None = None
        self._header_bytes = 0
        self._names: dict[int, tuple[str, bool]] = {}
        self._unknown_tags: list[int] = []

    @property
    def state(self) -> ReaderState:
        return self._state

    @property
    def header(self) -> SnapshotHeader | None:
        return self._header

    @property
    def header_bytes(self) -> int:
        return self._header_bytes

    @property
    def bytes_read(self) -> int:
        return self._counter.bytes_read

    @property
    def unknown_tags(self) -> tuple[int, ...]:
        return tuple(self._unknown_tags)

    def read_header(self) -> SnapshotHeader:
        if self._state is not ReaderState.AWAITING_HEADER:
            raise RuntimeError(f"header already consumed (state={self._state.value})")
        try:
            raw = self._decoder.decode()
        except ValueDecodeError as exc:
            raise MalformedHeaderError(f"cannot decode snapshot header: {exc}", 0) from exc

        self._header = _parse_header(raw, self._counter.bytes_read)
        self._header_bytes = self._counter.bytes_read
        self._state = ReaderState.READING_RECORDS
        _LOGGER.debug(
            "snapshot.header last_index=%d bytes=%d", self._header.last_index, self._header_bytes
        )
        return self._header

    def records(self) -> Iterator[Record]:
        """Yield records in stream order until a clean end of stream."""
        if self._state is ReaderState.AWAITING_HEADER:
            self.read_header()
        while self._state is ReaderState.READING_RECORDS:
            offset = self._counter.bytes_read
            tag_byte = self._counter.read(1)
            if not tag_byte:
                self._state = ReaderState.DONE
                _LOGGER.debug("snapshot.done bytes=%d", offset)
                return
            tag = tag_byte[0]
            name, known = self._resolve_name(tag)

            try:
                value = self._decoder.decode()
            except ValueDecodeError as exc:
                raise TruncatedRecordError(
                    f"cannot decode {name} record at offset {offset}: {exc}", offset, tag
                ) from exc

            size = self._counter.bytes_read - offset
            yield Record(tag=tag, name=name, known=known, offset=offset, size=size, value=value)

    def run(self, accumulator: StatsAccumulator) -> StatsAccumulator:
        for record in self.records():
            accumulator.add(record.tag, record.name, record.size, record.value)
        return accumulator

    def _resolve_name(self, tag: int) -> tuple[str, bool]:
        cached = self._names.get(tag)
        if cached is not None:
            return cached
        name = self._registry.lookup(tag)
        known = name is not None
        if name is None:
            name = self._registry.placeholder_name(tag)
            self._unknown_tags.append(tag)
            _LOGGER.warning(
                "snapshot.unknown_type tag=%d name=%s hint=%s",
                tag,
                name,
                f"record type table probably needs updating from {REGISTRY_SOURCE_HINT}",
            )
        self._names[tag] = (name, known)
        return name, known


def _parse_header(raw: Value, offset: int) -> SnapshotHeader:
    if not isinstance(raw, Mapping):
        raise MalformedHeaderError(
            f"snapshot header must be a mapping, got {type(raw).__name__}", offset
        )
    last_index = raw.get("LastIndex", 0)
    if isinstance(last_index, bool) or not isinstance(last_index, int) or last_index < 0:
        raise MalformedHeaderError("snapshot header LastIndex must be a non-negative integer", offset)
    return SnapshotHeader(last_index=last_index)


@dataclass(frozen=True)
class InspectionResult:
    header: SnapshotHeader
    stats: StatsAccumulator
    header_bytes: int
    bytes_read: int
    unknown_tags: tuple[int, ...]

    @property
    def record_bytes(self) -> int:
        return self.bytes_read - self.header_bytes


def inspect_snapshot(
    stream: ReadableStream,
    *,
    config: InspectConfig | None = None,
    registry: RecordTypeRegistry = DEFAULT_REGISTRY,
) -> InspectionResult:
    """Consume a whole snapshot stream and return its size breakdown.

    Raises SnapshotError subclasses on any decode failure; nothing is
    returned for a partially read stream.
    """
    cfg = config or InspectConfig()
    accumulator = StatsAccumulator(
        prefix_depth=cfg.prefix_depth,
        separator=cfg.key_separator,
        key_record_tag=registry.tag_for(cfg.key_record_type),
    )
    reader = SnapshotReader(stream, registry=registry)
    header = reader.read_header()
    reader.run(accumulator)
    return InspectionResult(
        header=header,
        stats=accumulator,
        header_bytes=reader.header_bytes,
        bytes_read=reader.bytes_read,
        unknown_tags=reader.unknown_tags,
    )
