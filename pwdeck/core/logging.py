"""
Vault Logging
=============

Logger factory for the vault engine with secret redaction.

Engine modules log through logging.getLogger("pwdeck.<area>") and only
report non-secret facts: sizes, cost parameters, outcomes. Handlers
installed here carry a SecureLogFilter as a second line of defense
against a credential slipping into a message.

Redaction Rules:
- key=value pairs whose key names a password, key, token or secret
- long base64 runs (40+ chars) and hex runs (32+ chars), which cover
  derived keys, salts and nonces printed by mistake
"""

from __future__ import annotations

import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Final, Iterable, Optional, Pattern

if TYPE_CHECKING:
    from pwdeck.core.config import SecureConfig


_ASSIGNMENT: Final[str] = r'\s*[=:]\s*["\']?[^\s"\']+["\']?'

# (label, pattern); the label replaces the whole match
_REDACTIONS: Final[tuple[tuple[str, Pattern[str]], ...]] = (
    ("password", re.compile(r"(?i)(?:master[_-]?)?(?:password|passwd|pwd)" + _ASSIGNMENT)),
    ("key", re.compile(r"(?i)(?:master|vault|derived|api)[_-]?key" + _ASSIGNMENT)),
    ("token", re.compile(r"(?i)(?:token|bearer)" + _ASSIGNMENT)),
    ("secret", re.compile(r"(?i)(?:secret|private[_-]?key)" + _ASSIGNMENT)),
    ("base64_secret", re.compile(r"[A-Za-z0-9+/]{40,}={0,2}")),
    ("hex_secret", re.compile(r"(?i)(?:0x)?[0-9a-f]{32,}")),
)

REDACTED: Final[str] = "[REDACTED]"

_DEFAULT_MAX_BYTES: Final[int] = 10 * 1024 * 1024  # 10 MB
_STDERR_FORMAT: Final[str] = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_FILE_FORMAT: Final[str] = (
    "%(asctime)s %(levelname)-8s %(name)s [%(funcName)s:%(lineno)d] %(message)s"
)


def redact(text: str, extra: Iterable[Pattern[str]] = ()) -> str:
    """Return text with every secret-looking fragment replaced."""
    for label, pattern in _REDACTIONS:
        text = pattern.sub(f"{label}={REDACTED}", text)
    for pattern in extra:
        text = pattern.sub(REDACTED, text)
    return text


class SecureLogFilter(logging.Filter):
    """
    Scrub log records before any handler formats them.

    Both the message template and string arguments are scrubbed. The
    record is never dropped.
    """

    def __init__(self, name: str = "", extra_patterns: Optional[list[Pattern[str]]] = None) -> None:
        super().__init__(name)
        self._extra = tuple(extra_patterns or ())

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg, self._extra)

        args = record.args
        if isinstance(args, dict):
            record.args = {key: self._scrub(value) for key, value in args.items()}
        elif isinstance(args, tuple):
            record.args = tuple(self._scrub(value) for value in args)

        return True

    def _scrub(self, value: object) -> object:
        return redact(value, self._extra) if isinstance(value, str) else value


class SecureRotatingFileHandler(RotatingFileHandler):
    """Size-rotated log file; the parent directory is created on demand."""

    def __init__(
        self,
        filename: str | Path,
        mode: str = "a",
        maxBytes: int = _DEFAULT_MAX_BYTES,
        backupCount: int = 5,
        encoding: str = "utf-8",
    ) -> None:
        requested = Path(filename)
        if ".." in requested.parts:
            raise ValueError(f"Refusing log path with '..' component: {requested}")

        target = requested.resolve()
        target.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(
            str(target), mode=mode, maxBytes=maxBytes, backupCount=backupCount, encoding=encoding
        )


def get_secure_logger(
    name: str,
    log_dir: Optional[Path] = None,
    level: str = "INFO",
    enable_console: bool = True,
    enable_file: bool = True,
    max_file_size: int = _DEFAULT_MAX_BYTES,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Return the named logger with redacting handlers attached.

    A logger that already has real handlers is returned untouched, so
    calling this twice does not duplicate output. The package-level
    NullHandler does not count.

    Args:
        name: Logger name, normally "pwdeck"
        log_dir: Directory for "<name>.log"; no file output without it
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        enable_console: Attach a stderr handler
        enable_file: Attach a rotating file handler (needs log_dir)
        max_file_size: Rotation threshold in bytes
        backup_count: Rotated files to keep
    """
    logger = logging.getLogger(name)
    if any(not isinstance(handler, logging.NullHandler) for handler in logger.handlers):
        return logger

    logger.setLevel(level.upper())
    scrubber = SecureLogFilter()

    handlers: list[logging.Handler] = []
    if enable_console:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(logging.Formatter(_STDERR_FORMAT, datefmt="%H:%M:%S"))
        handlers.append(stderr_handler)
    if enable_file and log_dir:
        file_handler = SecureRotatingFileHandler(
            Path(log_dir) / f"{name.replace('.', '_')}.log",
            maxBytes=max_file_size,
            backupCount=backup_count,
        )
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(logging.DEBUG)
        handler.addFilter(scrubber)
        logger.addHandler(handler)

    # Records stop here; the root logger never sees engine output
    logger.propagate = False
    return logger


def configure_logging(config: Optional["SecureConfig"] = None) -> logging.Logger:
    """
    Set up the "pwdeck" logger from configuration.

    Every engine logger ("pwdeck.vault", ...) propagates into it. Call
    once at application startup.
    """
    if config is None:
        from pwdeck.core.config import SecureConfig
        config = SecureConfig.get_instance()

    settings = config.logging
    return get_secure_logger(
        "pwdeck",
        log_dir=config.paths.log_dir,
        level=settings.level,
        enable_console=settings.enable_console,
        enable_file=settings.enable_file,
        max_file_size=settings.max_file_size_bytes,
        backup_count=settings.backup_count,
    )
