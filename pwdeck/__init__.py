"""
pwdeck - Encrypted Password Vault Engine
========================================

Turns a master password and a set of credential entries into a single
opaque, tamper-evident file, and back.

Security Notice:
- No secrets are logged
- Fail-closed design: any verification failure aborts the load
- Secrets are wiped from memory on close (best effort)
"""

import logging

from pwdeck.core.config import SecureConfig
from pwdeck.core.errors import (
    AuthenticationError,
    EmptyPasswordError,
    InvalidVaultFileError,
    TruncatedVaultError,
    VaultError,
    WordlistError,
)
from pwdeck.core.generator import Diceware, Random, generate_password
from pwdeck.core.logging import configure_logging, get_secure_logger
from pwdeck.core.vault import Entry, Schema, Vault

__version__ = "0.1.0"

# Silent until the application calls configure_logging() or sets up its own handlers
logging.getLogger("pwdeck").addHandler(logging.NullHandler())

__all__ = [
    "SecureConfig",
    "AuthenticationError",
    "EmptyPasswordError",
    "InvalidVaultFileError",
    "TruncatedVaultError",
    "VaultError",
    "WordlistError",
    "Diceware",
    "Random",
    "generate_password",
    "configure_logging",
    "get_secure_logger",
    "Entry",
    "Schema",
    "Vault",
    "__version__",
]
