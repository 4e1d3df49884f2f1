# ==================================================
# pagestore/bloom.py
# ==================================================
from __future__ import annotations
from math import log, ceil
from hashlib import blake2b
import struct

class Bloom:
    """Fixed-size bloom filter; the bit array never grows once created."""

    def __init__(self, m: int, k: int, bits: bytearray | None = None):
        if m <= 0 or k <= 0:
            raise ValueError("Bloom filter needs m > 0 and k > 0")
        self.m = m
        self.k = k
        self.bits = bits if bits is not None else bytearray((m+7)//8)
        if len(self.bits) * 8 < m:
            raise ValueError("Bloom bit array shorter than m")

    @classmethod
    def for_capacity(cls, n_items: int, fp_rate: float = 0.01) -> "Bloom":
        n_items = max(1, n_items)  # prevent ÷0
        m = ceil(-(n_items * log(fp_rate)) / (log(2) ** 2))
        m = (m + 7) // 8 * 8  # whole bytes, so from_bytes() recovers the same m
        k = max(1, round((m / n_items) * log(2)))
        return cls(m, k)

    @classmethod
    def from_bytes(cls, k: int, data: bytes) -> "Bloom":
        return cls(len(data) * 8, k, bytearray(data))
    # -- hashing helpers ---------------------------------------------------
    def _hashes(self, key: bytes):
        h = blake2b(key, digest_size=16).digest()
        h1, h2 = struct.unpack("<QQ", h)
        for i in range(self.k):
            yield (h1 + i * h2) % self.m
    # ----------------------------------------------------------------------
    def add(self, key: bytes) -> set[int]:
        """Set the key's bits; returns the byte indices that were touched."""
        touched = set()
        for bit in self._hashes(key):
            self.bits[bit // 8] |= 1 << (bit & 7)
            touched.add(bit // 8)
        return touched

    def __contains__(self, key: bytes):
        return all(self.bits[bit//8] & (1 << (bit & 7)) for bit in self._hashes(key))
