# pagebench/config.py
from __future__ import annotations
import logging
from dataclasses import dataclass, asdict
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict

from .errors import ConfigError

DEFAULT_PAGE_SIZE = 8192
MAX_PAGE_SIZE = 1 << 30
DEFAULT_DB_DIR = Path("/tmp/pagebench")
DB_DIR_ENV = "PAGEBENCH_DB_DIR"


class CompressMethod(IntEnum):
    # accepted on the command line, never applied to page data
    GZIP = 0
    LZ4 = 1


class LogLevel(IntEnum):
    ERROR = 0
    WARN = 1
    INFO = 2
    DEBUG = 3

    @classmethod
    def parse(cls, value: int) -> "LogLevel":
        if value < 0:
            raise ConfigError(f"Log level must be >= 0, got {value}")
        return cls(min(value, cls.DEBUG))

    def to_logging(self) -> int:
        return {
            LogLevel.ERROR: logging.ERROR,
            LogLevel.WARN: logging.WARNING,
            LogLevel.INFO: logging.INFO,
            LogLevel.DEBUG: logging.DEBUG,
        }[self]


@dataclass(frozen=True)
class BenchConfig:
    """
    Settings for one run, built once from the command line.
    """

    input_path: Path
    page_size: int = DEFAULT_PAGE_SIZE
    compress_method: CompressMethod = CompressMethod.GZIP
    terse: bool = True
    log_level: LogLevel = LogLevel.ERROR
    print_header: bool = False
    db_dir: Path = DEFAULT_DB_DIR
    max_pages: int = 0  # 0 = no limit
    keep_db: bool = False

    def validate(self) -> "BenchConfig":
        """
        Raise ConfigError on the first invalid setting; returns self.
        """
        if not 0 < self.page_size <= MAX_PAGE_SIZE:
            raise ConfigError(
                f"Page size must be between 1 and {MAX_PAGE_SIZE}, got {self.page_size}"
            )
        if self.max_pages < 0:
            raise ConfigError(f"Max pages must be >= 0, got {self.max_pages}")
        if not isinstance(self.compress_method, CompressMethod):
            raise ConfigError("Wrong compression method supplied")
        return self

    @classmethod
    def from_args(cls, args: Any) -> "BenchConfig":
        """
        Build and validate a config from an argparse namespace.
        """
        try:
            method = CompressMethod(args.cmethod)
        except ValueError:
            raise ConfigError(
                f"Wrong compression method supplied: {args.cmethod} "
                f"(expected one of {[m.value for m in CompressMethod]})"
            ) from None
        return cls(
            input_path=Path(args.input),
            page_size=args.pgsz,
            compress_method=method,
            terse=args.terse,
            log_level=LogLevel.parse(args.loglevel),
            print_header=args.header,
            db_dir=Path(args.db_dir),
            max_pages=args.max_pages,
            keep_db=args.keep_db,
        ).validate()

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["input_path"] = str(self.input_path)
        d["db_dir"] = str(self.db_dir)
        d["compress_method"] = self.compress_method.name
        d["log_level"] = self.log_level.name
        return d
