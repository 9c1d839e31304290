"""
Vault Error Taxonomy
====================

Every failure the storage engine reports is a subclass of VaultError,
except raw I/O failures from the caller's file handle, which propagate
as the OSError they already are.

Security Notes:
    - AuthenticationError never says WHY decryption failed. Wrong
      password, bit corruption and truncation all look the same.
    - InvalidVaultFileError is raised before any key derivation.
"""

from __future__ import annotations


class VaultError(Exception):
    """Base class for vault engine errors."""
    pass


class AuthenticationError(VaultError):
    """
    Raised when the ciphertext fails AEAD verification.

    The message is fixed so callers cannot distinguish a wrong
    password from a tampered or corrupted file.
    """

    def __init__(self) -> None:
        super().__init__("Authentication failed")


class InvalidVaultFileError(VaultError, ValueError):
    """Raised when the header or decrypted payload is malformed."""
    pass


class TruncatedVaultError(VaultError, OSError):
    """Raised when the vault file ends inside a fixed-width header field."""
    pass


class EmptyPasswordError(VaultError, ValueError):
    """Raised when an entry with an empty password is inserted."""

    def __init__(self) -> None:
        super().__init__("Entry password cannot be empty")


class WordlistError(VaultError):
    """Raised when a diceware wordlist cannot be used."""
    pass
