# ==================================================
# pagestore/store.py   (cross‑platform)
# ==================================================
from __future__ import annotations
import mmap, os, struct, hashlib
from pathlib import Path
from typing import Iterator, Optional, Tuple

from .const import *
from .bloom import Bloom

# ── cross‑platform whole‑file, non‑blocking locks ─────────────
try:
    import fcntl                                      # Unix / WSL / macOS
    def _lock(f):
        fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    def _unlock(f):
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
except ImportError:                                   # native Windows
    import msvcrt
    def _lock(f):
        f.seek(0)
        msvcrt.locking(f.fileno(), msvcrt.LK_NBLCK, 1)
    def _unlock(f):
        f.seek(0)
        msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, 1)
# ───────────────────────────────────────────────────


class StoreError(Exception):
    pass


class StoreLockedError(StoreError):
    # another handle (this process or another one) owns the store directory
    pass


class StoreClosedError(StoreError):
    pass


def _key_hash(key: bytes) -> int:
    return struct.unpack("<Q", hashlib.blake2b(key, digest_size=8).digest())[0]


class PageStore:
    """Append‑only persistent hash map kept in one mmap'd file per directory.

    Layout of ``<directory>/pages.shs``::

        header (32) | bucket table (8 * segments) | bloom bits | entries ...

    Every ``put`` appends an entry and makes it the head of its bucket chain,
    so a later put of the same key shadows the earlier one; shadowed entries
    are never compacted, so open with ``reset=True`` to start from an empty
    file. A put is only durable once ``flush`` (header rewrite, msync,
    fsync) has returned.
    """
    def __init__(self, directory: str | os.PathLike,
                 key_size: int = 8,
                 segments: int = DEFAULT_SEGMENTS,
                 expected_items: int = DEFAULT_EXPECTED_ITEMS,
                 bloom_fp: float = 0.01,
                 reset: bool = False):
        self.directory  = Path(directory)
        self.path       = self.directory / DATA_FILE
        self.key_size   = key_size
        self.segments   = segments
        self.expected_items = expected_items
        self.bloom_fp   = bloom_fp
        self.entry_count = 0
        self.file = None
        self.mm   = None

        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock_file = open(self.directory / LOCK_FILE, "a+b")
        try:
            _lock(self._lock_file)
        except OSError as exc:
            self._lock_file.close()
            raise StoreLockedError(f"Store {self.directory} is locked by another handle") from exc

        try:
            if reset and self.path.exists():
                # only done under the lock, so no other handle has it mapped
                self.path.unlink()
            if self.path.exists():
                self._open_existing()
            else:
                self._create_new()
        except BaseException:
            self._release()
            raise

    # ------------------------------------------------------------------
    def _create_new(self):
        self.bloom = Bloom.for_capacity(self.expected_items, self.bloom_fp)
        with open(self.path, "wb") as f:
            f.write(self._pack_header().ljust(HEADER_SIZE, b"\0"))
            f.write(b"\0" * (BUCKET_SIZE * self.segments))
            f.write(self.bloom.bits)
        self.file = open(self.path, "r+b", buffering=0)
        self.mm   = mmap.mmap(self.file.fileno(), 0)
        self._header_dirty = False

    def _open_existing(self):
        self.file = open(self.path, "r+b", buffering=0)
        if os.fstat(self.file.fileno()).st_size < HEADER_SIZE:
            raise ValueError("Invalid store file")
        self.mm   = mmap.mmap(self.file.fileno(), 0)
        magic, ver, key_sz, seg_cnt, bloom_bytes, bloom_k, entries = struct.unpack_from(
            HEADER_FMT, self.mm, 0)
        if magic != MAGIC:
            raise ValueError("Invalid store file")
        if key_sz != self.key_size:
            raise ValueError("Key size mismatch")
        self.segments    = seg_cnt
        self.entry_count = entries
        bloom_off        = self._bloom_offset()
        bloom_raw        = self.mm[bloom_off:bloom_off + bloom_bytes]
        self.bloom       = Bloom.from_bytes(bloom_k, bloom_raw)
        self._header_dirty = False

    def _pack_header(self) -> bytes:
        return struct.pack(HEADER_FMT, MAGIC, VERSION_MINOR, self.key_size,
                           self.segments, len(self.bloom.bits), self.bloom.k,
                           self.entry_count)

    # ------------------------------------------------------------------
    def _segment_of(self, h: int) -> int:
        return h % self.segments

    def _bucket_offset(self, segment: int) -> int:
        return HEADER_SIZE + segment * BUCKET_SIZE

    def _bloom_offset(self) -> int:
        return HEADER_SIZE + BUCKET_SIZE * self.segments

    def _check_open(self):
        if self.mm is None:
            raise StoreClosedError(f"Store {self.directory} is closed")

    # ------------------------------------------------------------------
    def get(self, key: bytes) -> Optional[bytes]:
        self._check_open()
        if key not in self.bloom:
            return None
        h_int    = _key_hash(key)
        entry_of = struct.unpack_from(BUCKET_FMT, self.mm, self._bucket_offset(self._segment_of(h_int)))[0]
        while entry_of:
            nxt, e_hash, val_sz = struct.unpack_from(ENTRY_HDR_FMT, self.mm, entry_of)
            key_off = entry_of + ENTRY_HDR_SIZE
            if e_hash == h_int and self.mm[key_off:key_off + self.key_size] == key:
                val_off = key_off + self.key_size
                return bytes(self.mm[val_off: val_off + val_sz])
            entry_of = nxt
        return None

    def __contains__(self, key: bytes) -> bool:
        return self.get(key) is not None

    # ------------------------------------------------------------------
    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        """Yield the live ``(key, value)`` pairs, shadowed entries skipped."""
        self._check_open()
        for seg in range(self.segments):
            seen = set()
            entry_of = struct.unpack_from(BUCKET_FMT, self.mm, self._bucket_offset(seg))[0]
            while entry_of:
                nxt, _, val_sz = struct.unpack_from(ENTRY_HDR_FMT, self.mm, entry_of)
                key_off = entry_of + ENTRY_HDR_SIZE
                key = bytes(self.mm[key_off:key_off + self.key_size])
                if key not in seen:
                    seen.add(key)
                    val_off = key_off + self.key_size
                    yield key, bytes(self.mm[val_off: val_off + val_sz])
                entry_of = nxt

    def __len__(self) -> int:
        return sum(1 for _ in self.items())

    # ------------------------------------------------------------------
    def put(self, key: bytes, value: bytes):
        """
        Append‑only insert.
        • key must be exactly `self.key_size` bytes.
        • a newer value for an existing key shadows the older one.
        """
        self._check_open()
        if len(key) != self.key_size:
            raise ValueError("Key length mismatch")
        value = bytes(value)

        h_int          = _key_hash(key)
        bucket_ptr_off = self._bucket_offset(self._segment_of(h_int))
        bucket_head    = struct.unpack_from(BUCKET_FMT, self.mm, bucket_ptr_off)[0]

        eof   = self.mm.size()
        entry = (
                struct.pack(ENTRY_HDR_FMT, bucket_head, h_int, len(value))
                + key + value
        )
        # the entry goes through write() so a full disk surfaces as OSError,
        # never as SIGBUS on a page of the mapping with no backing blocks
        try:
            self._append(eof, entry)
        except OSError:
            self.file.truncate(eof)
            raise
        self.mm.resize(eof + len(entry))

        # new entry becomes the bucket head
        struct.pack_into(BUCKET_FMT, self.mm, bucket_ptr_off, eof)

        # bloom bytes go straight into the mapped region, flush only rewrites the header
        bloom_off = self._bloom_offset()
        for i in self.bloom.add(key):
            self.mm[bloom_off + i] = self.bloom.bits[i]
        self.entry_count += 1
        self._header_dirty = True

    def _append(self, offset: int, data: bytes):
        self.file.seek(offset)
        view = memoryview(data)
        while view:
            n = self.file.write(view)
            view = view[n:]

    # ------------------------------------------------------------------
    def flush(self):
        self._check_open()
        if self._header_dirty:
            header = self._pack_header()
            self.mm[0:len(header)] = header
            self._header_dirty = False
        self.mm.flush()
        os.fsync(self.file.fileno())    # appended entries and the new file size

    # ------------------------------------------------------------------
    def _release(self):
        if self.mm is not None:
            self.mm.close()
            self.mm = None
        if self.file is not None:
            self.file.close()
            self.file = None
        if self._lock_file is not None:
            try:
                _unlock(self._lock_file)
            finally:
                self._lock_file.close()
                self._lock_file = None

    def close(self):
        if self.mm is None and self._lock_file is None:
            return
        try:
            if self.mm is not None:
                self.flush()
        finally:
            self._release()

    @property
    def closed(self) -> bool:
        return self.mm is None

    def __enter__(self) -> "PageStore":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
