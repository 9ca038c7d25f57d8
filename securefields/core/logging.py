"""
Logging Helpers
===============

The library itself only calls ``logging.getLogger("securefields.<area>")``
and never attaches handlers. Applications that want ready-made output use
get_secure_logger() or configure_root_logger(); every handler built here
carries a SecureLogFilter.

Security Features:
- key=value secrets, envelope text and long hex strings are redacted
- Size-capped rotating log files
- Optional one-JSON-object-per-line file output
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Final, Optional, Pattern

from securefields.core.config import LoggingConfig


_KEY_VALUE_TAIL: Final[str] = r'\s*[=:]\s*["\']?[^\s"\']+["\']?'

# (label, pattern); each match is replaced by "label=[REDACTED]"
_REDACTIONS: Final[tuple[tuple[str, Pattern[str]], ...]] = (
    ("passphrase", re.compile(r"(?i)(passphrase|password|passwd|pwd)" + _KEY_VALUE_TAIL)),
    ("token", re.compile(r"(?i)(token|bearer)" + _KEY_VALUE_TAIL)),
    ("secret", re.compile(r"(?i)(secret|private[_-]?key)" + _KEY_VALUE_TAIL)),
    # envelope text is base64
    ("base64_secret", re.compile(r"[A-Za-z0-9+/]{40,}={0,2}")),
    ("hex_secret", re.compile(r"(?i)(?:0x)?[a-f0-9]{32,}")),
)

_REDACTED: Final[str] = "[REDACTED]"

_CONSOLE_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_FILE_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"


class SecureLogFilter(logging.Filter):
    """Rewrites a record's message and string arguments; never drops a record."""

    def __init__(self, name: str = "", additional_patterns: Optional[list[Pattern[str]]] = None) -> None:
        super().__init__(name)
        self._extra = list(additional_patterns or [])

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str) and record.msg:
            record.msg = self.sanitize(record.msg)

        if isinstance(record.args, dict):
            record.args = {key: self._scrub(arg) for key, arg in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self._scrub(arg) for arg in record.args)

        return True

    def sanitize(self, text: str) -> str:
        """Return text with every known secret shape redacted."""
        for label, pattern in _REDACTIONS:
            text = pattern.sub(f"{label}={_REDACTED}", text)
        for pattern in self._extra:
            text = pattern.sub(_REDACTED, text)
        return text

    def _scrub(self, arg: Any) -> Any:
        return self.sanitize(arg) if isinstance(arg, str) else arg


class StructuredLogFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class SecureRotatingFileHandler(RotatingFileHandler):
    """
    UTF-8 rotating file handler.

    Creates the parent directory and refuses file names containing ``..``.
    """

    def __init__(self, filename: str | Path, maxBytes: int = 10 * 1024 * 1024, backupCount: int = 5) -> None:
        path = Path(filename)
        if ".." in path.parts:
            raise ValueError("Log path cannot contain path traversal sequences")

        path = path.resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(str(path), maxBytes=maxBytes, backupCount=backupCount, encoding="utf-8")


def _build_handlers(config: LoggingConfig, log_file: Path, enable_json: bool) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []

    if config.enable_console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        handlers.append(console)

    if config.enable_file:
        rotating = SecureRotatingFileHandler(
            log_file,
            maxBytes=config.max_file_size_bytes,
            backupCount=config.backup_count,
        )
        rotating.setFormatter(
            StructuredLogFormatter() if enable_json
            else logging.Formatter(_FILE_FORMAT, datefmt=config.date_format)
        )
        handlers.append(rotating)

    redactor = SecureLogFilter()
    for handler in handlers:
        handler.setLevel(logging.DEBUG)
        handler.addFilter(redactor)

    return handlers


def get_secure_logger(
    name: str,
    config: Optional[LoggingConfig] = None,
    log_dir: Optional[Path] = None,
    enable_json: bool = False,
) -> logging.Logger:
    """
    Return a non-propagating logger with redacting handlers.

    Handlers are attached on the first call for a name only. When file
    output is enabled, a file named after the logger is written under
    log_dir, or under config.log_dir if log_dir is None.
    """
    config = config or LoggingConfig()
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(config.level.upper())
    log_file = (log_dir or config.log_dir) / f"{name.replace('.', '_')}.log"
    for handler in _build_handlers(config, log_file, enable_json):
        logger.addHandler(handler)
    logger.propagate = False

    return logger


def configure_root_logger(config: Optional[LoggingConfig] = None, log_dir: Optional[Path] = None) -> None:
    """
    Replace the root logger's handlers with redacting ones.

    Call once at application startup; ``securefields.*`` loggers propagate
    to the root. File output goes to log_dir, or config.log_dir if None.
    """
    config = config or LoggingConfig()
    root = logging.getLogger()
    root.setLevel(config.level.upper())
    root.handlers.clear()

    log_file = (log_dir or config.log_dir) / "securefields.log"
    for handler in _build_handlers(config, log_file, enable_json=False):
        root.addHandler(handler)
