from __future__ import annotations

from typing import Protocol


class ReadableStream(Protocol):
    def read(self, size: int = -1, /) -> bytes:
        ...


class ByteCounter:
    """Readable wrapper that tracks how many bytes were consumed through it.

    The decoder reads through this object, so differencing ``bytes_read``
    before and after a decode yields the exact encoded size of the value.
    """

    def __init__(self, stream: ReadableStream) -> None:
        self._stream = stream
        self._read = 0

    @property
    def bytes_read(self) -> int:
        return self._read

    def read(self, size: int = -1, /) -> bytes:
        data = self._stream.read(size)
        if data is None:
            raise BlockingIOError("source returned no data (non-blocking stream)")
        self._read += len(data)
        return data
