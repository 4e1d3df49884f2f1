"""Unit tests for the embedded page store."""

import struct

import pytest

from pagestore import PageStore, StoreClosedError, StoreLockedError
from pagestore.bloom import Bloom
from pagestore.const import DATA_FILE, LOCK_FILE

pack = struct.Struct("<Q").pack


def test_put_get(tmp_path) -> None:
    with PageStore(tmp_path / "s") as s:
        s.put(pack(1), b"one")
        s.put(pack(2), b"two")
        assert s.get(pack(1)) == b"one"
        assert s.get(pack(2)) == b"two"
        assert s.get(pack(3)) is None
        assert pack(1) in s


def test_layout_on_disk(tmp_path) -> None:
    PageStore(tmp_path / "s").close()
    assert (tmp_path / "s" / DATA_FILE).is_file()
    assert (tmp_path / "s" / LOCK_FILE).is_file()


def test_overwrite_returns_newest(tmp_path) -> None:
    with PageStore(tmp_path / "s") as s:
        s.put(pack(7), b"old")
        s.put(pack(7), b"new")
        assert s.get(pack(7)) == b"new"
        assert len(s) == 1
        assert dict(s.items()) == {pack(7): b"new"}


def test_reopen_keeps_data(tmp_path) -> None:
    with PageStore(tmp_path / "s") as s:
        for i in range(500):
            s.put(pack(i), f"value_{i}".encode())

    with PageStore(tmp_path / "s") as s:
        assert s.entry_count == 500
        assert len(s) == 500
        assert s.get(pack(0)) == b"value_0"
        assert s.get(pack(499)) == b"value_499"
        s.put(pack(500), b"value_500")
        assert s.get(pack(500)) == b"value_500"


def test_key_length_checked(tmp_path) -> None:
    with PageStore(tmp_path / "s") as s:
        with pytest.raises(ValueError):
            s.put(b"short", b"v")


def test_second_handle_is_locked_out(tmp_path) -> None:
    with PageStore(tmp_path / "s"):
        with pytest.raises(StoreLockedError):
            PageStore(tmp_path / "s")
    # released on close
    PageStore(tmp_path / "s").close()


def test_closed_store_rejects_ops(tmp_path) -> None:
    s = PageStore(tmp_path / "s")
    s.close()
    assert s.closed
    with pytest.raises(StoreClosedError):
        s.put(pack(0), b"v")
    with pytest.raises(StoreClosedError):
        s.get(pack(0))
    s.close()


def test_foreign_file_rejected(tmp_path) -> None:
    d = tmp_path / "s"
    d.mkdir()
    (d / DATA_FILE).write_bytes(b"not a page store at all, definitely not")
    with pytest.raises(ValueError, match="Invalid store file"):
        PageStore(d)
    # a failed open must not keep the lock
    (d / DATA_FILE).unlink()
    PageStore(d).close()


def test_key_size_mismatch(tmp_path) -> None:
    PageStore(tmp_path / "s", key_size=8).close()
    with pytest.raises(ValueError, match="Key size mismatch"):
        PageStore(tmp_path / "s", key_size=4)


def test_bloom_survives_bytes_roundtrip() -> None:
    b = Bloom.for_capacity(1000, 0.01)
    keys = [pack(i) for i in range(1000)]
    for k in keys:
        b.add(k)
    again = Bloom.from_bytes(b.k, bytes(b.bits))
    assert again.m == b.m
    assert all(k in again for k in keys)


def test_bloom_rejects_bad_sizes() -> None:
    with pytest.raises(ValueError):
        Bloom(0, 3)
    with pytest.raises(ValueError):
        Bloom(64, 3, bytearray(2))


def test_reset_starts_from_empty_file(tmp_path) -> None:
    with PageStore(tmp_path / "s") as s:
        for i in range(100):
            s.put(pack(i), b"x" * 32)
    with PageStore(tmp_path / "s", reset=True) as s:
        assert s.entry_count == 0
        assert len(s) == 0
        assert s.get(pack(0)) is None
        s.put(pack(0), b"y" * 32)
    with PageStore(tmp_path / "s") as s:
        assert dict(s.items()) == {pack(0): b"y" * 32}


def test_reset_requires_the_lock(tmp_path) -> None:
    with PageStore(tmp_path / "s") as s:
        s.put(pack(1), b"kept")
        with pytest.raises(StoreLockedError):
            PageStore(tmp_path / "s", reset=True)
        assert s.get(pack(1)) == b"kept"


def test_put_past_file_limit_raises_oserror(tmp_path, file_size_limit) -> None:
    """A write the file system refuses is an OSError; the file is left as it was."""
    s = PageStore(tmp_path / "s", segments=16, expected_items=16)
    data_file = tmp_path / "s" / DATA_FILE
    s.put(pack(0), b"a" * 32)
    s.flush()
    size_before = data_file.stat().st_size

    with file_size_limit(size_before + 100):
        s.put(pack(1), b"b" * 32)  # 60-byte entry still fits
        with pytest.raises(OSError):
            s.put(pack(2), b"c" * 32)

    assert data_file.stat().st_size == size_before + 60
    assert s.get(pack(2)) is None
    # the store is still usable once there is room again
    s.put(pack(3), b"d" * 32)
    s.close()

    with PageStore(tmp_path / "s") as s:
        assert len(s) == 3
        assert s.get(pack(1)) == b"b" * 32
        assert s.get(pack(3)) == b"d" * 32
