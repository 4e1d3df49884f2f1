# pagebench/report.py
from __future__ import annotations
from typing import List

import humanize

from . import __version__
from .config import BenchConfig
from .pipeline import RunStats


def format_elapsed(seconds: float) -> str:
    if seconds < 1e-3:
        return f"{seconds * 1e6:.3f}µs"
    if seconds < 1:
        return f"{seconds * 1e3:.3f}ms"
    return f"{seconds:.3f}s"


def echo_lines(cfg: BenchConfig) -> List[str]:
    return [
        f"Page Size: {cfg.page_size}",
        f"Input file: {cfg.input_path}",
    ]


def header_line(cfg: BenchConfig) -> str:
    return (
        f"# pagehash-bench {__version__} digest=sha256 "
        f"page_size={cfg.page_size} cmethod={cfg.compress_method.name.lower()} "
        f"store={cfg.db_dir}"
    )


def summary_line(stats: RunStats) -> str:
    size = humanize.naturalsize(stats.bytes_hashed)
    if stats.bytes_hashed < stats.file_size:
        size += f" (of {humanize.naturalsize(stats.file_size)})"
    return (
        f"Computed SHA256 on {stats.pages} pages "
        f"FileSz: {size} "
        f"in time {format_elapsed(stats.elapsed)} "
        f"at rate of {humanize.naturalsize(int(stats.rate))}/sec"
    )


def detail_line(stats: RunStats) -> str:
    """
    Per-page timings; only meaningful when they were sampled (non-terse runs).
    """
    s = stats.page_time_summary()
    if not s:
        return "Per page: no pages processed"
    per_sec = stats.pages / stats.elapsed if stats.elapsed > 0 else 0.0
    return (
        f"Per page: mean {format_elapsed(s['mean'])} "
        f"p50 {format_elapsed(s['p50'])} "
        f"p99 {format_elapsed(s['p99'])} "
        f"max {format_elapsed(s['max'])} "
        f"({humanize.intcomma(int(per_sec))} pages/sec)"
    )


def render(cfg: BenchConfig, stats: RunStats) -> List[str]:
    lines = []
    if cfg.print_header:
        lines.append(header_line(cfg))
    lines.append(summary_line(stats))
    if not cfg.terse:
        lines.append(detail_line(stats))
    return lines
