# pagebench/pipeline.py
from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List

import numpy as np

from .config import BenchConfig
from .digest import page_digest
from .index_store import IndexStore
from .reader import PageReader

log = logging.getLogger(__name__)


@dataclass
class RunStats:
    """
    What one run measured. Not persisted.
    """

    pages: int
    file_size: int  # from the file's metadata at open time
    bytes_hashed: int  # what the pages actually covered; < file_size after --max-pages
    elapsed: float  # seconds
    page_times: List[float] = field(default_factory=list)  # only when not terse

    @property
    def rate(self) -> float:
        """
        Average bytes hashed per second; 0 when the clock did not advance.
        """
        if self.elapsed <= 0:
            return 0.0
        return self.bytes_hashed / self.elapsed

    def page_time_summary(self) -> Dict[str, float]:
        """
        Mean / p50 / p99 / max seconds per page, empty if nothing was sampled.
        """
        if not self.page_times:
            return {}
        t = np.asarray(self.page_times, dtype=float)
        p50, p99 = np.percentile(t, [50, 99])
        return {
            "mean": float(t.mean()),
            "p50": float(p50),
            "p99": float(p99),
            "max": float(t.max()),
        }


class ThroughputPipeline:
    """
    Read -> hash -> store, one page at a time, on a single thread.

    Any error from the reader or the store propagates out of run(); the
    reader is closed on the way out, the store stays with its owner.
    """

    def __init__(
        self,
        config: BenchConfig,
        store: IndexStore,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.config = config
        self.store = store
        self.clock = clock

    def run(self) -> RunStats:
        cfg = self.config
        sample = not cfg.terse
        page_times: List[float] = []
        page_count = 0
        bytes_hashed = 0

        with PageReader(cfg.input_path, cfg.page_size) as reader:
            file_size = reader.size
            start = self.clock()
            for page in reader:
                t0 = self.clock() if sample else 0.0
                self.store.put_page_digest(page_count, page_digest(page.data))
                page_count += 1
                bytes_hashed += len(page.data)
                if sample:
                    page_times.append(self.clock() - t0)
                if cfg.max_pages and page_count >= cfg.max_pages:
                    log.info("stopping after %d pages (max pages reached)", page_count)
                    break
            end = self.clock()

        stats = RunStats(
            pages=page_count,
            file_size=file_size,
            bytes_hashed=bytes_hashed,
            elapsed=end - start,
            page_times=page_times,
        )
        log.info(
            "run done: %d pages, %d of %d bytes, %.6fs",
            stats.pages, stats.bytes_hashed, stats.file_size, stats.elapsed,
        )
        return stats
