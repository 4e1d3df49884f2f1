# pagebench/cli.py
#
# Usage: pagehash-bench --pgsz <pagesize> <inputfile>
#
from __future__ import annotations
import argparse
import logging
import os
import sys
from typing import List, Optional

from . import __version__
from .config import DB_DIR_ENV, DEFAULT_DB_DIR, DEFAULT_PAGE_SIZE, BenchConfig
from .errors import BenchError
from .index_store import IndexStore
from .logging_config import configure_logging
from .pipeline import ThroughputPipeline
from .report import echo_lines, render

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pagehash-bench",
        description="Hash a file page by page (SHA-256) into a local page store "
                    "and report the throughput.",
    )
    p.add_argument("input", help="file to read")
    p.add_argument("--pgsz", type=int, default=DEFAULT_PAGE_SIZE, help="page size in bytes")
    p.add_argument("--cmethod", type=int, default=0,
                   help="compression method: 0 = gzip, 1 = lz4 (not applied to page data)")
    p.add_argument("--terse", action=argparse.BooleanOptionalAction, default=True,
                   help="terse output; --no-terse adds per-page timings")
    p.add_argument("--loglevel", type=int, default=0,
                   help="0 = error, 1 = warn, 2 = info, 3 = debug")
    p.add_argument("-H", "--header", action="store_true", help="print a header line")
    p.add_argument("--db-dir", default=os.environ.get(DB_DIR_ENV, str(DEFAULT_DB_DIR)),
                   help=f"page store directory (default ${DB_DIR_ENV} or {DEFAULT_DB_DIR}); "
                        "emptied at the start of every run unless --keep-db")
    p.add_argument("--keep-db", action="store_true",
                   help="reuse the records already in --db-dir; the data file then keeps "
                        "growing, since overwritten pages are never compacted")
    p.add_argument("--max-pages", type=int, default=0,
                   help="stop after this many pages (0 = whole file)")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def run(cfg: BenchConfig) -> int:
    for line in echo_lines(cfg):
        print(line)

    with IndexStore(cfg.db_dir, reset=not cfg.keep_db) as store:
        stats = ThroughputPipeline(cfg, store).run()

    for line in render(cfg, stats):
        print(line)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = BenchConfig.from_args(args)
        configure_logging(cfg.log_level.to_logging())
        log.debug("config: %s", cfg.to_dict())
        return run(cfg)
    except BenchError as exc:
        log.debug("run aborted", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
