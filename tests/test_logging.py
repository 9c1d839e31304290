"""Tests for the secret-filtering logging setup."""

import io
import logging

import pytest

from pwdeck import AuthenticationError, Vault
from pwdeck.core.config import LoggingConfig, PathConfig, SecureConfig
from pwdeck.core.logging import (
    SecureLogFilter,
    SecureRotatingFileHandler,
    configure_logging,
    get_secure_logger,
)


def _record(msg, *args):
    return logging.LogRecord("pwdeck.test", logging.INFO, __file__, 1, msg, args, None)


class TestSecureLogFilter:

    @pytest.mark.parametrize("message", [
        "password=hunter2",
        "master_key: abc123",
        "token=deadbeef",
        "secret='s3cr3t'",
    ])
    def test_redacts_message(self, message):
        record = _record(message)
        SecureLogFilter().filter(record)
        assert "[REDACTED]" in record.getMessage()

    def test_redacts_args(self):
        record = _record("derived %s", "a" * 64)
        SecureLogFilter().filter(record)
        assert "a" * 64 not in record.getMessage()

    def test_keeps_plain_messages(self):
        record = _record("Loaded vault (%d groups, %d entries)", 2, 3)
        assert SecureLogFilter().filter(record)
        assert record.getMessage() == "Loaded vault (2 groups, 3 entries)"


class TestHandlers:

    def test_rejects_path_traversal(self, tmp_path):
        with pytest.raises(ValueError):
            SecureRotatingFileHandler(tmp_path / ".." / "escape.log")

    def test_file_logging(self, tmp_path):
        logger = get_secure_logger("pwdeck", log_dir=tmp_path, enable_console=False)
        logger.info("password=hunter2")
        for handler in logger.handlers:
            handler.flush()

        content = (tmp_path / "pwdeck.log").read_text(encoding="utf-8")
        assert "hunter2" not in content
        assert "[REDACTED]" in content

    def test_handlers_added_once(self, tmp_path):
        first = get_secure_logger("pwdeck", log_dir=tmp_path)
        installed = [h for h in first.handlers if not isinstance(h, logging.NullHandler)]
        assert get_secure_logger("pwdeck", log_dir=tmp_path).handlers == first.handlers
        assert len(installed) == 2


class TestLibraryDefaults:

    def test_package_logger_has_null_handler(self):
        handlers = logging.getLogger("pwdeck").handlers
        assert any(isinstance(h, logging.NullHandler) for h in handlers)

    def test_engine_warnings_stay_off_stderr(self, fast_params, monkeypatch, capsys):
        # Stop at the package logger so pytest's root handlers cannot mask lastResort
        monkeypatch.setattr(logging.getLogger("pwdeck"), "propagate", False)
        buf = io.BytesIO()
        with Vault.new("master password", fast_params) as vault:
            vault.sync(buf)

        with pytest.raises(AuthenticationError):
            Vault.from_file(buf, "wrong password")

        assert capsys.readouterr().err == ""


class TestConfigureLogging:

    def test_from_config(self, tmp_path):
        config = SecureConfig(
            paths=PathConfig(data_dir=tmp_path / "data", log_dir=tmp_path / "logs"),
            logging=LoggingConfig(level="DEBUG", enable_console=False, enable_file=True),
        )
        logger = configure_logging(config)

        assert logger.name == "pwdeck"
        assert logger.level == logging.DEBUG
        assert not logger.propagate
        logging.getLogger("pwdeck.vault").debug("Synced vault (%d bytes)", 120)
        for handler in logger.handlers:
            handler.flush()
        assert "Synced vault (120 bytes)" in (tmp_path / "logs" / "pwdeck.log").read_text(encoding="utf-8")

    def test_uses_global_config(self, monkeypatch):
        monkeypatch.setenv("PWDECK_LOGGING__LEVEL", "WARNING")
        assert configure_logging().level == logging.WARNING
