"""Tests for logging setup."""

import logging

import pytest


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    llm = logging.getLogger("tools.agent_sdk_client")
    saved = (list(root.handlers), root.level, list(llm.handlers))
    yield
    for handler in root.handlers + llm.handlers:
        if handler not in saved[0] and handler not in saved[2]:
            handler.close()
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    llm.handlers[:] = saved[2]


def test_creates_rotating_log_files(tmp_path, restore_logging):
    from config.logging_config import setup_logging

    setup_logging(level=logging.DEBUG, log_dir=tmp_path / "logs", console_enabled=False)
    logging.getLogger("workflow.graph").info("pipeline message")
    logging.getLogger("tools.agent_sdk_client").debug("sdk message")
    for handler in logging.getLogger().handlers + logging.getLogger("tools.agent_sdk_client").handlers:
        handler.flush()

    main_log = (tmp_path / "logs" / "eduforge.log").read_text(encoding="utf-8")
    llm_log = (tmp_path / "logs" / "llm_calls.log").read_text(encoding="utf-8")
    assert "pipeline message" in main_log
    assert "sdk message" in llm_log


def test_reinit_does_not_duplicate_handlers(tmp_path, restore_logging):
    from config.logging_config import setup_logging

    setup_logging(log_dir=tmp_path, console_enabled=False)
    setup_logging(log_dir=tmp_path, console_enabled=False)
    assert len(logging.getLogger().handlers) == 1
    assert len(logging.getLogger("tools.agent_sdk_client").handlers) == 1
