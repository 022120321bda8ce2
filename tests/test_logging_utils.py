import logging
from logging.handlers import RotatingFileHandler

import pytest

from kanban_desktop import logging_utils
from kanban_desktop.logging_utils import (
    LOGGER_NAME,
    build_rotating_file_handler,
    configure_logging,
    resolve_log_level,
    resolve_logs_dir,
)


@pytest.fixture
def restore_package_logger():
    logger = logging.getLogger(LOGGER_NAME)
    saved = (logger.level, logger.propagate, list(logger.handlers))
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(saved[0])
    logger.propagate = saved[1]
    for handler in saved[2]:
        logger.addHandler(handler)


def test_env_override_wins(tmp_path, monkeypatch):
    monkeypatch.setenv("KANBAN_DESKTOP_LOG_DIR", str(tmp_path / "custom"))
    assert resolve_logs_dir() == tmp_path / "custom"
    assert (tmp_path / "custom").is_dir()


def test_xdg_state_home_used(tmp_path, monkeypatch):
    monkeypatch.delenv("KANBAN_DESKTOP_LOG_DIR", raising=False)
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    assert resolve_logs_dir() == tmp_path / "state" / "kanban-desktop" / "logs"


def test_falls_back_to_cache_when_state_unusable(tmp_path, monkeypatch):
    blocker = tmp_path / "state"
    blocker.write_text("", encoding="utf-8")
    monkeypatch.delenv("KANBAN_DESKTOP_LOG_DIR", raising=False)
    monkeypatch.setenv("XDG_STATE_HOME", str(blocker))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))

    assert resolve_logs_dir() == tmp_path / "cache" / "kanban-desktop" / "logs"


def test_rotating_handler_retention(tmp_path):
    handler = build_rotating_file_handler(tmp_path, "app.log", retention=3)
    try:
        assert isinstance(handler, RotatingFileHandler)
        assert handler.backupCount == 2
        assert handler.baseFilename == str(tmp_path / "app.log")
    finally:
        handler.close()


def test_retention_has_a_floor(tmp_path):
    handler = build_rotating_file_handler(tmp_path, "app.log", retention=0)
    try:
        assert handler.backupCount == 0
    finally:
        handler.close()


def test_resolve_log_level():
    assert resolve_log_level(True) == logging.DEBUG
    assert resolve_log_level(False) == logging.INFO


def test_configure_logging_writes_to_file(tmp_path, restore_package_logger):
    logger = configure_logging(True, log_dir=tmp_path)
    logging.getLogger(f"{LOGGER_NAME}.workspace").debug("placed window")
    for handler in logger.handlers:
        handler.flush()

    assert logger.level == logging.DEBUG
    assert "placed window" in (tmp_path / logging_utils.LOG_FILENAME).read_text(encoding="utf-8")


def test_configure_logging_replaces_previous_handlers(tmp_path, restore_package_logger):
    configure_logging(False, log_dir=tmp_path)
    logger = configure_logging(False, log_dir=tmp_path)
    assert len(logger.handlers) == 2
    assert logger.level == logging.INFO
