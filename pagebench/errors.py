"""
Errors raised by the benchmark.

Every one of them is fatal for a run: components raise, nothing retries,
and cli.main() is the only place that catches them.
"""


class BenchError(Exception):
    # root of everything cli.main() reports and exits 1 on
    pass


class ConfigError(BenchError):
    # bad argument value (page size, compression method, ...)
    pass


class FileReadError(BenchError):
    # input file could not be opened, stat'ed or read
    pass


class InputNotFoundError(FileReadError):
    pass


class InputPermissionError(FileReadError):
    pass


class StoreOpenError(BenchError):
    # store directory unusable, locked by another handle, or not a page store
    pass


class StoreWriteError(BenchError):
    # a single page record could not be written and flushed
    pass
