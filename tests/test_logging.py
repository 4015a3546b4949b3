"""Tests for log level resolution."""

from __future__ import annotations

import logging

from aidersync.config.schema import LoggingConfig
from aidersync.logging import TRACE, VERBOSE, get_logger, level_for


class TestLevelFor:
    def test_default_is_info(self) -> None:
        assert level_for(None) == logging.INFO
        assert level_for(LoggingConfig()) == logging.INFO

    def test_verbose_wins_over_level(self) -> None:
        assert level_for(LoggingConfig(level="ERROR", verbose=3)) == VERBOSE

    def test_verbosity_map(self) -> None:
        assert level_for(LoggingConfig(verbose=0)) == logging.ERROR
        assert level_for(LoggingConfig(verbose=4)) == TRACE
        assert level_for(LoggingConfig(verbose=9)) == TRACE

    def test_level_names(self) -> None:
        assert level_for(LoggingConfig(level="warn")) == logging.WARNING
        assert level_for(LoggingConfig(level="bogus")) == logging.INFO


def test_child_logger_name() -> None:
    assert get_logger("sync").name == "aidersync.sync"
    assert get_logger().name == "aidersync"
