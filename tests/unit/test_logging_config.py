"""Tests for logging configuration."""

import io
import sys
from collections.abc import Iterator

import pytest
from loguru import logger

from gdoc_importer.config import LOG_LEVEL_ENV
from gdoc_importer.logging_config import configure_logging


@pytest.fixture(autouse=True)
def _restore_logger() -> Iterator[None]:
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_default_level_is_info(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
    out = io.StringIO()
    configure_logging(sink=out)

    logger.debug("hidden")
    logger.info("shown")

    assert "hidden" not in out.getvalue()
    assert "shown" in out.getvalue()


def test_verbose_enables_debug(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(LOG_LEVEL_ENV, "error")
    out = io.StringIO()
    configure_logging(verbose=True, sink=out)

    logger.debug("details")

    assert "details" in out.getvalue()


def test_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(LOG_LEVEL_ENV, "warning")
    out = io.StringIO()
    configure_logging(sink=out)

    logger.info("quiet")
    logger.warning("loud")

    assert "quiet" not in out.getvalue()
    assert "loud" in out.getvalue()
