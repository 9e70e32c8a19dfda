"""Tests for the application logger."""

import logging
import logging.handlers

import pytest

from daygo_cli.utils.logger import get_logger, parse_level, reset_logger


def test_parse_level():
    assert parse_level("debug") == logging.DEBUG
    assert parse_level("WARN") == logging.WARNING
    assert parse_level(logging.ERROR) == logging.ERROR
    with pytest.raises(ValueError):
        parse_level("loud")


def test_logger_writes_to_rotating_file(tmp_path):
    path = tmp_path / "logs" / "daygo.log"
    logger = get_logger("INFO", path)

    handlers = [h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(handlers) == 1
    assert not logger.propagate

    logger.getChild("tasks").info("inserted task %s", "abc")
    logger.getChild("tasks").debug("hidden")
    handlers[0].flush()

    text = path.read_text(encoding="utf-8")
    assert "INFO     [daygo_cli.tasks] inserted task abc" in text
    assert "hidden" not in text


def test_later_calls_only_change_level(tmp_path):
    first = get_logger("WARNING", tmp_path / "a.log")
    second = get_logger("DEBUG", tmp_path / "b.log")
    assert first is second
    assert second.level == logging.DEBUG
    assert not (tmp_path / "b.log").exists()


def test_default_location(tmp_path):
    logger = get_logger()
    logger.warning("hello")
    for handler in logger.handlers:
        handler.flush()
    assert "hello" in (tmp_path / "daygo.log").read_text(encoding="utf-8")


def test_file_handler_added_next_to_foreign_handlers(tmp_path):
    capture = logging.NullHandler()
    logging.getLogger("daygo_cli").addHandler(capture)
    try:
        path = tmp_path / "daygo.log"
        logger = get_logger("INFO", path)
        logger.info("still written")
        for handler in logger.handlers:
            handler.flush()
        assert capture in logger.handlers
        assert "still written" in path.read_text(encoding="utf-8")
    finally:
        logging.getLogger("daygo_cli").removeHandler(capture)


def test_reset_keeps_foreign_handlers(tmp_path):
    capture = logging.NullHandler()
    logger = get_logger("INFO", tmp_path / "daygo.log")
    logger.addHandler(capture)
    try:
        reset_logger()
        assert capture in logger.handlers
        assert not [
            h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
    finally:
        logger.removeHandler(capture)
