# ==================================================
# pagestore/const.py
# ==================================================
MAGIC = b"PGS1"           # 4‑byte magic + version major «1»
HEADER_FMT = "<4sHHLLHQ"  # magic, version_minor (H), key_size (H), segment_count (L),
                          # bloom_bytes (L), bloom_k (H), entry_count (Q)
HEADER_SIZE = 32          # bytes (4+2+2+4+4+2+8 = 26, padded)
BUCKET_FMT = "<Q"         # 8‑byte offset of first entry in segment (0 = empty)
BUCKET_SIZE = 8
ENTRY_HDR_FMT = "<QQL"    # next_offset, key_hash, value_size
ENTRY_HDR_SIZE = 8+8+4    # 20 bytes, packed
VERSION_MINOR = 1

DATA_FILE = "pages.shs"
LOCK_FILE = "LOCK"

DEFAULT_SEGMENTS = 4096
DEFAULT_EXPECTED_ITEMS = 1 << 16
