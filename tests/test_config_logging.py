import logging

import pytest

from regdesk.core.config import Settings
from regdesk.core.logging import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_settings_defaults():
    s = Settings(_env_file=None)
    assert s.SESSION_TTL_HOURS == 24
    assert s.APPROVAL_TIME_WINDOW_SECONDS == 60
    assert "Khana" in s.GROUPS


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("GROUPS", '["Andoni", "Opobo"]')
    monkeypatch.setenv("SESSION_TTL_HOURS", "2")
    monkeypatch.setenv("MAIL_API_URL", "https://mail.example/send")

    s = Settings(_env_file=None)
    assert s.GROUPS == ["Andoni", "Opobo"]
    assert s.SESSION_TTL_HOURS == 2
    assert s.MAIL_API_URL == "https://mail.example/send"


def test_setup_logging_does_not_duplicate_handlers(tmp_path, restore_root_logger):
    log_file = tmp_path / "regdesk.log"
    logger1 = setup_logging("DEBUG", log_file=str(log_file))
    count = len(logger1.handlers)
    logger2 = setup_logging("DEBUG", log_file=str(log_file))

    assert logger1 is logger2
    assert len(logger2.handlers) == count == 2

    logging.getLogger("regdesk.test").info("hello")
    for handler in logger2.handlers:
        handler.flush()
    assert "hello" in log_file.read_text()
