from __future__ import annotations

import pytest

from snapshot_inspect.stats import KeyPrefixStat, StatsAccumulator, TypeStat, key_prefix


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ({"Key": "a/b/c"}, "a/b"),
        ({"Key": "a/b/c/d/e"}, "a/b"),
        ({"Key": "a/b"}, "a/b"),
        ({"Key": "single"}, "single"),
        ({"Key": "trailing/"}, "trailing/"),
        ({"Key": ""}, None),
        ({"Key": b"a/b/c"}, None),
        ({"Key": 7}, None),
        ({"Other": "a/b/c"}, None),
        ({1: "x", None: "y", "Key": "svc/web/1"}, "svc/web"),
        ("a/b/c", None),
        (["Key", "a/b/c"], None),
        (None, None),
    ],
)
def test_key_prefix(value, expected) -> None:
    assert key_prefix(value) == expected


def test_key_prefix_custom_depth_and_separator() -> None:
    assert key_prefix({"Key": "a.b.c.d"}, depth=3, separator=".") == "a.b.c"
    assert key_prefix({"Key": "a/b/c"}, depth=1) == "a"


def test_accumulates_types_and_prefixes() -> None:
    acc = StatsAccumulator(key_record_tag=2)
    acc.add(0, "Register", 10, {"Node": "n1"})
    acc.add(0, "Register", 20, {"Node": "n2"})
    acc.add(2, "KVS", 50, {"Key": "foo/bar/baz"})
    acc.add(2, "KVS", 5, {"Key": "foo/bar"})
    acc.add(2, "KVS", 7, {"NoKey": True})

    assert acc.type_stats() == [
        TypeStat(tag=2, name="KVS", count=3, total_bytes=62),
        TypeStat(tag=0, name="Register", count=2, total_bytes=30),
    ]
    assert acc.key_prefix_stats() == [KeyPrefixStat(prefix="foo/bar", count=2, total_bytes=55)]
    assert acc.total_bytes == 92
    assert acc.total_records == 5
    assert acc.key_prefix_total_bytes == 55


def test_prefixes_only_for_key_record_type() -> None:
    acc = StatsAccumulator(key_record_tag=2)
    acc.add(5, "Tombstone", 12, {"Key": "foo/bar/baz"})
    assert acc.key_prefix_stats() == []
    assert acc.type_stat(5) == TypeStat(tag=5, name="Tombstone", count=1, total_bytes=12)


def test_first_name_wins_for_a_tag() -> None:
    acc = StatsAccumulator()
    acc.add(9, "Autopilot", 3)
    acc.add(9, "ignored", 4)
    assert acc.type_stat(9) == TypeStat(tag=9, name="Autopilot", count=2, total_bytes=7)


def test_sorted_by_size_descending() -> None:
    acc = StatsAccumulator(key_record_tag=2)
    acc.add(2, "KVS", 1, {"Key": "small/x"})
    acc.add(2, "KVS", 100, {"Key": "big/y"})
    acc.add(2, "KVS", 10, {"Key": "mid/z"})
    assert [s.prefix for s in acc.key_prefix_stats()] == ["big/y", "mid/z", "small/x"]


def test_rejects_bad_settings() -> None:
    with pytest.raises(ValueError):
        StatsAccumulator(prefix_depth=0)
    with pytest.raises(ValueError):
        StatsAccumulator(separator="")
