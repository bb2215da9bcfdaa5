from __future__ import annotations

BYTE = 1
KILOBYTE = 1 << 10
MEGABYTE = 1 << 20
GIGABYTE = 1 << 30
TERABYTE = 1 << 40

_UNITS = (
    (TERABYTE, "TB"),
    (GIGABYTE, "GB"),
    (MEGABYTE, "MB"),
    (KILOBYTE, "KB"),
    (BYTE, "B"),
)


def byte_size(num_bytes: int) -> str:
    """Human-readable size such as ``10MB`` or ``12.5KB``.

    Picks the largest binary unit that keeps the value >= 1, renders one
    decimal place and drops a trailing ``.0``.
    """
    if num_bytes < 0:
        raise ValueError("byte count must be >= 0")
    if num_bytes == 0:
        return "0"
    for factor, unit in _UNITS:
        if num_bytes >= factor:
            text = f"{num_bytes / factor:.1f}"
            return text.removesuffix(".0") + unit
    raise AssertionError("unreachable")
