"""Log setup shared by the editor and the tools."""

from __future__ import annotations

import logging

import pytest

from mapregions.logging_config import LOGGER_NAMESPACE, parse_level, setup_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger(LOGGER_NAMESPACE)
    saved_level = logger.level
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(saved_level)


@pytest.mark.parametrize(
    "given, expected",
    [("DEBUG", logging.DEBUG), ("warning", logging.WARNING), (" Info ", logging.INFO), (logging.ERROR, logging.ERROR)],
)
def test_parse_level(given, expected):
    assert parse_level(given) == expected


def test_parse_level_rejects_unknown_names():
    with pytest.raises(ValueError):
        parse_level("LOUD")


def test_level_name_from_command_line(package_logger):
    logger = setup_logging("warning")
    assert logger is package_logger
    assert logger.level == logging.WARNING
    assert [handler.level for handler in logger.handlers] == [logging.WARNING]


def test_repeat_setup_replaces_handlers(package_logger, tmp_path):
    setup_logging("INFO")
    setup_logging("INFO")
    assert len(package_logger.handlers) == 1

    log_file = tmp_path / "editor.log"
    setup_logging("DEBUG", log_file)
    assert len(package_logger.handlers) == 2
    logging.getLogger("mapregions.wad").info("Opened %s", "MAP01.wad")
    for handler in package_logger.handlers:
        handler.flush()
    assert "mapregions.wad - INFO - Opened MAP01.wad" in log_file.read_text(encoding="utf-8")
