"""
Shared pytest fixtures for the pwdeck test suite.

Autouse fixtures below isolate tests from the environment:
  - Config singleton -> rebuilt per test, PWDECK_* variables removed
  - "pwdeck" logger  -> handlers dropped, propagation restored
"""

import logging
import os

import pytest

from pwdeck.core.config import SecureConfig
from pwdeck.core.crypto.kdf import ScryptParams
from pwdeck.core.generator.generator import DICEWARE_WORDLIST_SIZE


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Drop PWDECK_* overrides and the cached config for every test."""
    for name in list(os.environ):
        if name.startswith("PWDECK_"):
            monkeypatch.delenv(name)
    SecureConfig.reset_instance()
    yield
    SecureConfig.reset_instance()


@pytest.fixture(autouse=True)
def _isolate_pwdeck_logger():
    """Undo configure_logging()/get_secure_logger() side effects."""
    yield
    logger = logging.getLogger("pwdeck")
    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            continue
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fast_params():
    """Cheap scrypt parameters so vault tests stay fast."""
    return ScryptParams(log_n=4, r=8, p=1)


@pytest.fixture
def wordlist(tmp_path):
    """A full-size diceware wordlist with one distinct word per line."""
    path = tmp_path / "wordlist.txt"
    path.write_text(
        "\n".join(f"word{i:04d}" for i in range(DICEWARE_WORDLIST_SIZE)) + "\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def vault_path(tmp_path):
    return tmp_path / "vault.pwd"
