# pagebench/digest.py
from __future__ import annotations
import hashlib
from typing import Final

DIGEST_SIZE: Final[int] = 32


def page_digest(data: bytes | bytearray | memoryview) -> bytes:
    """
    SHA-256 of one page, as 32 raw bytes.
    """
    return hashlib.sha256(data).digest()
