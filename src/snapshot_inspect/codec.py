"""
Value decoder adapter.

Wraps ``msgpack.Unpacker`` so that one call decodes exactly one value and
never pulls bytes past the end of that value from the underlying stream.
"""
from __future__ import annotations

from typing import Any, Union

import msgpack

from .byte_counter import ReadableStream


__all__ = [
    "Value",
    "ValueDecodeError",
    "ValueDecoder",
]

# Dynamically-typed tree produced by the decoder. Arrays decode as tuples so
# they stay usable as map keys; map keys are not limited to strings.
Value = Union[
    None,
    bool,
    int,
    float,
    str,
    bytes,
    "tuple[Value, ...]",
    "dict[Any, Value]",
    msgpack.ExtType,
    msgpack.Timestamp,
]


class ValueDecodeError(ValueError):
    """The stream did not contain one complete, well-formed value."""


class ValueDecoder:
    def __init__(self, stream: ReadableStream) -> None:
        # read_size=1 keeps the unpacker from buffering bytes that belong to
        # the next record; tag bytes are read from the same stream directly.
        self._unpacker = msgpack.Unpacker(
            stream,
            read_size=1,
            raw=False,
            use_list=False,
            strict_map_key=False,
            unicode_errors="surrogateescape",
        )

    def decode(self) -> Value:
        try:
            return self._unpacker.unpack()
        except msgpack.OutOfData as exc:
            raise ValueDecodeError("unexpected end of stream inside value") from exc
        except (msgpack.UnpackException, ValueError, TypeError) as exc:
            raise ValueDecodeError(f"invalid value encoding: {exc}") from exc
