"""Logging setup shared by the server and every workboard component.

Component modules log through ``logging.getLogger("workboard.<component>")``;
``setup_logging`` attaches the handlers once on the ``workboard`` logger.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "workboard.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# httpx logs every request at INFO; dashboard polling would flood the file
QUIET_LOGGERS = ("httpx", "httpcore")

_REDACTIONS = [
    (re.compile(r"gh[po]_[a-zA-Z0-9]{36}"), "[GITHUB_TOKEN]"),
    (re.compile(r"github_pat_[a-zA-Z0-9_]{82}"), "[GITHUB_TOKEN]"),
    (re.compile(r"Bearer [a-zA-Z0-9._-]+"), "Bearer [REDACTED]"),
    (re.compile(r"Basic [a-zA-Z0-9+/=]+"), "Basic [REDACTED]"),  # Jira email:token
    (re.compile(r"token=[a-zA-Z0-9._-]+"), "token=[REDACTED]"),
    (re.compile(r"x-access-token:[^@\s]+@"), "x-access-token:[REDACTED]@"),
]


def setup_logging(
    log_dir: str | Path | None = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    level: str | None = None,
    console: bool = True,
) -> logging.Logger:
    """Attach a rotating file handler (and optionally the console) to ``workboard``.

    ``WORKBOARD_LOG_DIR`` and ``WORKBOARD_LOG_LEVEL`` are read when
    ``log_dir`` or ``level`` is not given. Calling it again replaces the
    handlers instead of stacking them.

    Returns:
        The ``workboard`` logger.
    """
    log_dir = Path(log_dir or os.environ.get("WORKBOARD_LOG_DIR", DEFAULT_LOG_DIR))
    log_dir.mkdir(parents=True, exist_ok=True)

    level = level or os.environ.get("WORKBOARD_LOG_LEVEL", DEFAULT_LOG_LEVEL)
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("workboard")
    logger.setLevel(log_level)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            log_dir / log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info("Workboard logging initialized (level=%s, file=%s)", level, log_dir / log_file)
    return logger


def truncate_output(output: str, max_length: int = 5000) -> str:
    """Cut long git output down to ``max_length`` characters for a log line."""
    if len(output) <= max_length:
        return output
    return output[:max_length] + f"\n... [truncated, {len(output) - max_length} more chars]"


def sanitize_for_log(text: str) -> str:
    """Redact GitHub tokens and Jira/HTTP credentials from upstream error text."""
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text
