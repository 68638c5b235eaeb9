"""Logging setup for respondent conversations.

Each conversation writes to ``$RESPONDENT_HOME/logs/<conversation>.log``. The
logger is isolated (no propagation) and avoids duplicate handlers across
repeated initializations.
"""

from __future__ import annotations

import logging
from pathlib import Path

from respondent.config import LogLevel, respondent_home

_LOGGER_PREFIX = "respondent.conversation"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def conversation_log_path(conversation_id: str, base_dir: Path | None = None) -> Path:
    return (base_dir or respondent_home() / "logs") / f"{conversation_id}.log"


def configure_conversation_logger(
    conversation_id: str,
    *,
    log_level: LogLevel | str = LogLevel.INFO,
    base_dir: Path | None = None,
) -> logging.Logger:
    """Configure and return a file logger scoped to a conversation.

    Subsequent calls with the same conversation_id return the same logger
    without duplicating handlers; only the level is updated.
    """

    logger = logging.getLogger(f"{_LOGGER_PREFIX}.{conversation_id}")
    level = _to_logging_level(log_level)
    logger.setLevel(level)
    logger.propagate = False

    if not logger.handlers:
        path = conversation_log_path(conversation_id, base_dir)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)

    return logger


def close_conversation_logger(conversation_id: str) -> None:
    """Detach and close the file handlers of a conversation logger."""

    logger = logging.getLogger(f"{_LOGGER_PREFIX}.{conversation_id}")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _to_logging_level(value: LogLevel | str) -> int:
    # Unrecognized names fall back to WARNING rather than failing startup.
    name = value.value if isinstance(value, LogLevel) else value
    if not isinstance(name, str):
        return logging.WARNING
    return logging.getLevelNamesMapping().get(name.upper(), logging.WARNING)


__all__ = [
    "close_conversation_logger",
    "configure_conversation_logger",
    "conversation_log_path",
]
