from __future__ import annotations

import gzip
import json
from pathlib import Path

import pytest

from iconpack.cache import ContentAddressedCache
from iconpack.cache import decode_entry
from iconpack.cache import encode_entry
from iconpack.cache import fingerprint
from iconpack.errors import CacheWriteError


def test_fingerprint_is_lowercase_sha1_hex() -> None:
    key = fingerprint(b"<svg/>", "vector")
    assert len(key) == 40
    assert key == key.lower()
    int(key, 16)


def test_fingerprint_depends_on_source_and_identifier() -> None:
    base = fingerprint(b"<svg/>", '{"mode":"vector"}')
    assert fingerprint(b"<svg/>", '{"mode":"vector"}') == base
    assert fingerprint(b"<svg />", '{"mode":"vector"}') != base
    assert fingerprint(b"<svg/>", '{"mode":"raster"}') != base


def test_fingerprint_is_unambiguous_across_the_boundary() -> None:
    assert fingerprint(b"ab", "c") != fingerprint(b"a", "bc")


def test_get_missing_entry_is_a_miss(cache: ContentAddressedCache) -> None:
    assert cache.get("0" * 40) is None


def test_put_then_get(cache: ContentAddressedCache) -> None:
    payload = {"kind": "vector", "markup": "<path/>", "view_box": "0 0 24 24"}
    path = cache.put("a" * 40, payload)

    assert path == cache.path_for("a" * 40)
    assert path.name.endswith(".json.gzip")
    assert cache.get("a" * 40) == payload
    assert json.loads(gzip.decompress(path.read_bytes())) == payload


def test_put_creates_directory_and_leaves_no_temp_files(tmp_path: Path) -> None:
    cache = ContentAddressedCache(tmp_path / "nested" / "cache")
    cache.put("b" * 40, {"x": 1})
    cache.put("b" * 40, {"x": 1})

    assert [p.name for p in (tmp_path / "nested" / "cache").iterdir()] == ["b" * 40 + ".json.gzip"]


def test_encoding_is_byte_stable() -> None:
    assert encode_entry({"b": 1, "a": 2}) == encode_entry({"a": 2, "b": 1})


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"not gzip at all",
        gzip.compress(b"{not json", mtime=0),
        gzip.compress(b"[1, 2, 3]", mtime=0),
        gzip.compress(b'{"kind": "vector"}', mtime=0)[:-6],
    ],
    ids=["empty", "garbage", "bad-json", "not-an-object", "truncated"],
)
def test_corrupt_entries_are_misses(cache: ContentAddressedCache, data: bytes) -> None:
    key = "c" * 40
    cache.directory.mkdir(parents=True)
    cache.path_for(key).write_bytes(data)

    assert decode_entry(data) is None
    assert cache.get(key) is None


def test_put_overwrites_corrupt_entry(cache: ContentAddressedCache) -> None:
    key = "d" * 40
    cache.directory.mkdir(parents=True)
    cache.path_for(key).write_bytes(b"\x1f\x8bgarbage")

    cache.put(key, {"ok": True})

    assert cache.get(key) == {"ok": True}


def test_unwritable_directory_raises_cache_write_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")
    cache = ContentAddressedCache(blocker)

    with pytest.raises(CacheWriteError):
        cache.put("e" * 40, {"ok": True})


def test_unserializable_payload_raises_cache_write_error(cache: ContentAddressedCache) -> None:
    with pytest.raises(CacheWriteError):
        cache.put("f" * 40, {"bytes": b"\x00"})
