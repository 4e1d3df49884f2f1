# pagebench/index_store.py   – thin helper around PageStore
from __future__ import annotations
import logging
import struct
from pathlib import Path
from typing import Iterator, Optional, Tuple

from pagestore import PageStore, StoreError

from .digest import DIGEST_SIZE
from .errors import StoreOpenError, StoreWriteError

log = logging.getLogger(__name__)

KEY_SIZE = 8
_KEY = struct.Struct("<Q")


# ── key codec ────────────────────────────────────────────────
def encode_index(index: int) -> bytes:
    """8-byte little-endian key for a page index."""
    if not 0 <= index < 1 << 64:
        raise ValueError(f"Page index out of range: {index}")
    return _KEY.pack(index)


def decode_index(key: bytes) -> int:
    if len(key) != KEY_SIZE:
        raise ValueError(f"Page key must be {KEY_SIZE} bytes, got {len(key)}")
    return _KEY.unpack(key)[0]


# ── adapter ──────────────────────────────────────────────────
class IndexStore:
    """
    Owns the page store for one run and maps page index -> digest.

    Every put is flushed before it returns. A failed put raises
    StoreWriteError, which ends the run: there is no retry and no resume.
    """

    def __init__(self, directory: Path, reset: bool = False):
        self.directory = Path(directory)
        self.reset = reset
        self._store: Optional[PageStore] = None

    def open(self) -> "IndexStore":
        try:
            self._store = PageStore(self.directory, key_size=KEY_SIZE, reset=self.reset)
        except (StoreError, OSError, ValueError) as exc:
            raise StoreOpenError(f"Cannot open store at {self.directory}: {exc}") from exc
        log.info("opened page store %s (%d entries)", self.directory, self._store.entry_count)
        return self

    @property
    def store(self) -> PageStore:
        if self._store is None:
            raise StoreWriteError(f"Store at {self.directory} is not open")
        return self._store

    def put_page_digest(self, index: int, digest: bytes) -> None:
        """Store `digest` under page `index` and flush it to disk."""
        if len(digest) != DIGEST_SIZE:
            raise StoreWriteError(
                f"Update error: digest for page {index} is {len(digest)} bytes, "
                f"expected {DIGEST_SIZE}"
            )
        try:
            key = encode_index(index)
            store = self.store
            store.put(key, digest)
            store.flush()                        # immediate durability
        except StoreWriteError:
            raise
        except (StoreError, OSError, ValueError) as exc:
            raise StoreWriteError(f"Update error: page {index}: {exc}") from exc

    def get_page_digest(self, index: int) -> Optional[bytes]:
        """Digest stored for page `index`; None if absent."""
        return self.store.get(encode_index(index))

    def records(self) -> Iterator[Tuple[int, bytes]]:
        """All (index, digest) pairs, in index order."""
        pairs = [(decode_index(k), v) for k, v in self.store.items()]
        return iter(sorted(pairs))

    def close(self) -> None:
        if self._store is not None:
            try:
                self._store.close()
            except (StoreError, OSError, ValueError) as exc:
                raise StoreWriteError(f"Close error: {self.directory}: {exc}") from exc
            finally:
                self._store = None

    def __enter__(self) -> "IndexStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
