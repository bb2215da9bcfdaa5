from __future__ import annotations

from dataclasses import dataclass

from .codec import Value

__all__ = [
    "DEFAULT_PREFIX_DEPTH",
    "DEFAULT_KEY_SEPARATOR",
    "KeyPrefixStat",
    "StatsAccumulator",
    "TypeStat",
    "key_prefix",
]

DEFAULT_PREFIX_DEPTH = 2
DEFAULT_KEY_SEPARATOR = "/"


@dataclass
class TypeStat:
    tag: int
    name: str
    count: int = 0
    total_bytes: int = 0


@dataclass
class KeyPrefixStat:
    prefix: str
    count: int = 0
    total_bytes: int = 0


def key_prefix(
    value: Value,
    depth: int = DEFAULT_PREFIX_DEPTH,
    separator: str = DEFAULT_KEY_SEPARATOR,
) -> str | None:
    """Return the first ``depth`` segments of ``value["Key"]``.

    Keys with fewer segments than ``depth`` are used as-is. Values that are
    not mappings, lack a string ``Key`` field, or carry an empty key yield
    ``None`` and are left out of the prefix breakdown.
    """
    match value:
        case {"Key": str(key)} if key:
            return separator.join(key.split(separator)[:depth])
        case _:
            return None


class StatsAccumulator:
    def __init__(
        self,
        *,
        prefix_depth: int = DEFAULT_PREFIX_DEPTH,
        separator: str = DEFAULT_KEY_SEPARATOR,
        key_record_tag: int | None = None,
    ) -> None:
        if prefix_depth < 1:
            raise ValueError("prefix_depth must be a positive integer")
        if not separator:
            raise ValueError("separator must be a non-empty string")
        self._prefix_depth = prefix_depth
        self._separator = separator
        self._key_record_tag = key_record_tag
        self._types: dict[int, TypeStat] = {}
        self._prefixes: dict[str, KeyPrefixStat] = {}

    @property
    def prefix_depth(self) -> int:
        return self._prefix_depth

    @property
    def key_record_tag(self) -> int | None:
        return self._key_record_tag

    def add(self, tag: int, name: str, size: int, value: Value = None) -> None:
        stat = self._types.get(tag)
        if stat is None:
            stat = self._types[tag] = TypeStat(tag=tag, name=name)
        stat.count += 1
        stat.total_bytes += size

        if tag != self._key_record_tag:
            return
        prefix = key_prefix(value, self._prefix_depth, self._separator)
        if prefix is None:
            return
        kstat = self._prefixes.get(prefix)
        if kstat is None:
            kstat = self._prefixes[prefix] = KeyPrefixStat(prefix=prefix)
        kstat.count += 1
        kstat.total_bytes += size

    def type_stats(self) -> list[TypeStat]:
        return sorted(self._types.values(), key=lambda s: (-s.total_bytes, s.name, s.tag))

    def key_prefix_stats(self) -> list[KeyPrefixStat]:
        return sorted(self._prefixes.values(), key=lambda s: (-s.total_bytes, s.prefix))

    def type_stat(self, tag: int) -> TypeStat | None:
        return self._types.get(tag)

    def prefix_stat(self, prefix: str) -> KeyPrefixStat | None:
        return self._prefixes.get(prefix)

    @property
    def total_records(self) -> int:
        return sum(stat.count for stat in self._types.values())

    @property
    def total_bytes(self) -> int:
        return sum(stat.total_bytes for stat in self._types.values())

    @property
    def key_prefix_total_bytes(self) -> int:
        return sum(stat.total_bytes for stat in self._prefixes.values())
