"""Logging for the Grouper agent.

Records are written as JSON lines to a rotating file. The console gets the
same JSON, or a short text line when LOG_FORMAT=text. Identifiers passed as
`extra={"sender_id": ..., "group_id": ...}` become top-level JSON keys.
"""

import json
import logging
import logging.config
import logging.handlers
import os
from datetime import datetime, timezone
from pathlib import Path

from .config import DEFAULT_LOG_PATH, env_flag

# Identifiers lifted from `extra=` onto the JSON record
CONTEXT_FIELDS = (
    "event_id",
    "sender_id",
    "conversation_id",
    "group_id",
    "action_id",
)

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

QUIET_LOGGERS = ("httpx", "httpcore", "anthropic", "aiosqlite")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str, ensure_ascii=False)


def _console_formatter() -> str:
    return "text" if os.getenv("LOG_FORMAT", "json").lower() == "text" else "json"


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
) -> None:
    """
    Configure root logging for the agent process.

    Args:
        log_level: Level name. Falls back to LOG_LEVEL, then to DEBUG when
                   DEBUG_LOGS is truthy, then INFO.
        log_file: Rotating JSON log file. Defaults to 04_logs/app.log.
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL") or (
            "DEBUG" if env_flag(os.getenv("DEBUG_LOGS")) else "INFO"
        )
    log_file = log_file or str(DEFAULT_LOG_PATH)
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": "grouper.logging_config.JSONFormatter"},
                "text": {"format": TEXT_FORMAT},
            },
            "handlers": {
                "file": {
                    "class": "logging.handlers.RotatingFileHandler",
                    "filename": log_file,
                    "maxBytes": 5 * 1024 * 1024,
                    "backupCount": 3,
                    "formatter": "json",
                    "encoding": "utf-8",
                },
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": _console_formatter(),
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
            "root": {
                "level": log_level.upper(),
                "handlers": ["file", "console"],
            },
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger; call as `get_logger(__name__)`."""
    return logging.getLogger(name)
