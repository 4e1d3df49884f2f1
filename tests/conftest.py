"""Shared fixtures for the pagehash-bench tests."""

import os
import signal
from contextlib import contextmanager
from pathlib import Path

import pytest

from pagebench.index_store import IndexStore


@pytest.fixture
def make_file(tmp_path):
    """Return a factory writing `data` to a file under tmp_path."""

    def _make(data: bytes, name: str = "input.bin") -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _make


@pytest.fixture
def random_bytes():
    """Return a factory for n bytes of random data."""
    return os.urandom


@pytest.fixture
def index_store(tmp_path):
    """An opened IndexStore in its own directory, closed after the test."""
    store = IndexStore(tmp_path / "db").open()
    yield store
    store.close()


@pytest.fixture
def file_size_limit():
    """
    Context manager capping the size of files this process may write.

    Writes past the cap fail with EFBIG, the same way a full disk fails
    with ENOSPC, so the real store code hits a genuine OSError.
    """
    resource = pytest.importorskip("resource")

    @contextmanager
    def _limit(nbytes: int):
        old_limit = resource.getrlimit(resource.RLIMIT_FSIZE)
        old_handler = signal.signal(signal.SIGXFSZ, signal.SIG_IGN)
        resource.setrlimit(resource.RLIMIT_FSIZE, (nbytes, old_limit[1]))
        try:
            yield
        finally:
            resource.setrlimit(resource.RLIMIT_FSIZE, old_limit)
            signal.signal(signal.SIGXFSZ, old_handler)

    return _limit
