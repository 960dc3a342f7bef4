"""Logging setup: console, rotating run log and a separate Agent SDK call log."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAIN_LOG_FILE = "eduforge.log"
LLM_LOG_FILE = "llm_calls.log"

_MAX_LOG_BYTES = 10 * 1024 * 1024
_LOG_BACKUPS = 5

# Logs every request at INFO; research fetches would flood the run log
_NOISY_LOGGERS = ("httpx", "httpcore")


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        str(path), maxBytes=_MAX_LOG_BYTES, backupCount=_LOG_BACKUPS, encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _reset_handlers(logger: logging.Logger):
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str | Path] = None,
    console_enabled: bool = True,
) -> None:
    """Configure application-wide logging.

    Safe to call more than once: handlers installed by a previous call
    are closed and replaced.

    Args:
        level: Level for the console and the main log file.
        log_dir: Directory for log files. Defaults to ./data/logs.
        console_enabled: Whether to also log to stderr.
    """
    log_dir = Path(log_dir or "./data/logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    _reset_handlers(root_logger)

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)
    root_logger.addHandler(_rotating_handler(log_dir / MAIN_LOG_FILE, level, formatter))

    # One line per model call, kept at DEBUG whatever the run level is
    llm_logger = logging.getLogger("tools.agent_sdk_client")
    llm_logger.setLevel(logging.DEBUG)
    _reset_handlers(llm_logger)
    llm_logger.addHandler(_rotating_handler(log_dir / LLM_LOG_FILE, logging.DEBUG, formatter))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.getLogger(__name__).debug("Logging initialized: level=%s, dir=%s", level, log_dir)
