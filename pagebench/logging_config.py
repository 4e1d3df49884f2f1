"""Logging setup for the command line tool."""

import logging
import sys


def configure_logging(level: int = logging.ERROR) -> None:
    # Configure root logger once; stderr keeps stdout to the report lines.
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
