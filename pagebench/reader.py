# pagebench/reader.py
from __future__ import annotations
import errno
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from .config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .errors import (
    ConfigError,
    FileReadError,
    InputNotFoundError,
    InputPermissionError,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
    index: int
    data: bytes  # exactly the bytes read for this page, never the whole buffer


def _open_error(path: Path, exc: OSError) -> FileReadError:
    if isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
        return InputNotFoundError(f"Open error: {path}: no such file")
    if isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
        return InputPermissionError(f"Open error: {path}: permission denied")
    return FileReadError(f"Open error: {path}: {exc}")


class PageReader:
    """
    Reads a file as consecutive fixed-size pages.

    A single buffer is reused for every read; each Page carries a copy of
    only the bytes read into it, so a short last page is hashed without any
    leftover bytes from the page before it. Pages are numbered from 0 and
    the sequence ends at the first empty read.
    """

    def __init__(self, path: Path, page_size: int = DEFAULT_PAGE_SIZE):
        if not 0 < page_size <= MAX_PAGE_SIZE:
            raise ConfigError(
                f"Page size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}"
            )
        self.path = Path(path)
        self.page_size = page_size
        self.size: Optional[int] = None
        self._f: Optional[BinaryIO] = None
        try:
            self._buf = bytearray(page_size)
        except MemoryError:
            raise ConfigError(f"Page size {page_size} does not fit in memory") from None
        self._view = memoryview(self._buf)
        self._next_index = 0
        self._done = False

    def open(self) -> "PageReader":
        try:
            self._f = open(self.path, "rb")
        except OSError as exc:
            raise _open_error(self.path, exc) from exc
        try:
            self.size = os.fstat(self._f.fileno()).st_size
        except OSError as exc:
            self.close()
            raise FileReadError(f"File Stat: {self.path}: {exc}") from exc
        log.debug("opened %s (%d bytes, page size %d)", self.path, self.size, self.page_size)
        return self

    def next_page(self) -> Optional[Page]:
        """
        Read the next page; None once the input is exhausted.
        """
        if self._f is None:
            raise FileReadError(f"Read error: {self.path} is not open")
        if self._done:
            return None
        try:
            count = self._f.readinto(self._buf)
        except OSError as exc:
            raise FileReadError(f"Read error: {self.path}: {exc}") from exc
        if not count:
            # EOF
            self._done = True
            return None
        page = Page(self._next_index, self._view[:count].tobytes())
        self._next_index += 1
        return page

    def __iter__(self) -> Iterator[Page]:
        while True:
            page = self.next_page()
            if page is None:
                return
            yield page

    def close(self) -> None:
        if self._f is not None:
            self._f.close()
            self._f = None

    def __enter__(self) -> "PageReader":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
