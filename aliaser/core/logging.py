"""
Secure Logging Module
=====================

Provides security-aware logging with secret filtering.

Security Features:
- Automatic secret/sensitive data filtering
- Rotating log files with size limits
- Optional structured (JSON) output
- Engine modules log under the "aliaser" namespace and never
  pass passwords, keys or record content to the logger
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, Optional, Pattern

if TYPE_CHECKING:
    from aliaser.core.config import AliaserConfig

ROOT_LOGGER_NAME: Final[str] = "aliaser"

_REDACTED_TEXT: Final[str] = "[REDACTED]"


def _assignment(keys: str) -> Pattern[str]:
    """``key=value`` / ``key: value`` for any of the alternated key names."""
    return re.compile(rf'(?i)({keys})\s*[=:]\s*["\']?[^\s"\']+["\']?')


# (label, pattern); a match is replaced by "label=[REDACTED]"
_SENSITIVE_PATTERNS: Final[tuple[tuple[str, Pattern[str]], ...]] = (
    ("password", _assignment(r"password|passwd|pwd")),
    ("api_key", _assignment(r"api[_-]?key|apikey")),
    ("token", _assignment(r"token|bearer")),
    ("secret", _assignment(r"secret|private[_-]?key")),
    ("salt", _assignment(r"salt|nonce")),
    ("argon2_hash", re.compile(r"\$argon2(?:id|i|d)\$\S+")),
    # Long base64 or hex runs are treated as key material
    ("base64_secret", re.compile(r"[A-Za-z0-9+/]{40,}={0,2}")),
    ("hex_secret", re.compile(r"(?i)(?:0x)?[a-f0-9]{32,}")),
)

_CONSOLE_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_FILE_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"


class SecureLogFilter(logging.Filter):
    """
    Redacts secret-looking text from a record's message and string args.

    Records are never dropped. Engine code does not log secrets in the
    first place; this catches whatever a collaborator passes through
    the same handlers.
    """

    def __init__(self, name: str = "", additional_patterns: Optional[list[Pattern[str]]] = None) -> None:
        super().__init__(name)
        self._additional_patterns = list(additional_patterns or [])

    def redact(self, text: str) -> str:
        for label, pattern in _SENSITIVE_PATTERNS:
            text = pattern.sub(f"{label}={_REDACTED_TEXT}", text)
        for pattern in self._additional_patterns:
            text = pattern.sub(_REDACTED_TEXT, text)
        return text

    def _redact_arg(self, value: Any) -> Any:
        return self.redact(value) if isinstance(value, str) else value

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str) and record.msg:
            record.msg = self.redact(record.msg)

        if isinstance(record.args, dict):
            record.args = {k: self._redact_arg(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self._redact_arg(arg) for arg in record.args)
        return True


class StructuredLogFormatter(logging.Formatter):
    """Formatter that outputs logs in JSON format for easy parsing."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def _make_file_handler(
    log_file: Path,
    max_file_size: int,
    backup_count: int,
) -> RotatingFileHandler:
    """Rotating file handler whose parent directory is created owner-only."""
    log_path = Path(log_file).resolve()
    log_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    return RotatingFileHandler(
        str(log_path),
        mode="a",
        maxBytes=max_file_size,
        backupCount=backup_count,
        encoding="utf-8",
    )


def get_secure_logger(
    name: str = ROOT_LOGGER_NAME,
    log_dir: Optional[Path] = None,
    level: str = "INFO",
    enable_console: bool = True,
    enable_file: bool = True,
    enable_json: bool = False,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Create a secure logger with automatic secret filtering.

    Child loggers (``aliaser.vault``, ``aliaser.storage``...) propagate
    into the logger configured here, so configuring ``aliaser`` once
    covers the whole engine.

    Args:
        name: Logger name
        log_dir: Directory for log files (file output disabled if None)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Whether to output to stderr
        enable_file: Whether to output to a rotating file
        enable_json: Whether to use JSON format for file output
        max_file_size: Maximum log file size before rotation
        backup_count: Number of backup files to keep

    Returns:
        Configured secure logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, level.upper()))

    secure_filter = SecureLogFilter()

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        console_handler.addFilter(secure_filter)
        logger.addHandler(console_handler)

    if enable_file and log_dir:
        file_handler = _make_file_handler(
            Path(log_dir) / f"{name.replace('.', '_')}.log",
            max_file_size,
            backup_count,
        )
        file_handler.setLevel(logging.DEBUG)

        if enable_json:
            file_handler.setFormatter(StructuredLogFormatter())
        else:
            file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

        file_handler.addFilter(secure_filter)
        logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def configure_logging(config: AliaserConfig) -> logging.Logger:
    """Configure the engine's logger namespace from an AliaserConfig."""
    log_config = config.logging
    return get_secure_logger(
        ROOT_LOGGER_NAME,
        log_dir=config.paths.log_dir,
        level=log_config.level,
        enable_console=log_config.enable_console,
        enable_file=log_config.enable_file,
        enable_json=log_config.enable_json,
        max_file_size=log_config.max_file_size_bytes,
        backup_count=log_config.backup_count,
    )
