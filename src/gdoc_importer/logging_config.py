"""Logging configuration for gdoc-importer."""

import os
import sys
from typing import TextIO

from loguru import logger

from gdoc_importer.config import LOG_FORMAT, LOG_LEVEL_ENV


def configure_logging(*, verbose: bool = False, sink: TextIO | None = None) -> None:
    """Send loguru output to stderr (or ``sink``).

    The level is DEBUG with ``verbose``, else $GDOC_IMPORT_LOG_LEVEL, else INFO.
    """
    logger.remove()
    level = "DEBUG" if verbose else os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    logger.add(sys.stderr if sink is None else sink, level=level, format=LOG_FORMAT)
