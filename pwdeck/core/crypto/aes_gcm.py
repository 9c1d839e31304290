"""
Vault Payload Cipher
====================

AES-256-GCM over the serialized schema, keyed by the scrypt output.

Parameters:
    - key: 32 bytes
    - nonce: 12 bytes, chosen by the caller and stored in the header
    - tag: 16 bytes, appended to the ciphertext
    - associated data: none

WARNING:
    A (key, nonce) pair must never encrypt twice. Under GCM a repeat
    reveals the XOR of the two plaintexts and enables tag forgery.
    The vault draws a new nonce on every write.
"""

from __future__ import annotations

import secrets
from typing import Final

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from pwdeck.core.errors import AuthenticationError

AES_KEY_SIZE: Final[int] = 32
AES_NONCE_SIZE: Final[int] = 12
AES_TAG_SIZE: Final[int] = 16


class AesGcmCipher:
    """
    Stateless AES-256-GCM wrapper.

    Decryption has exactly one failure signal, AuthenticationError,
    whatever went wrong (wrong key, flipped bit, short input).

    Usage:
        cipher = AesGcmCipher()
        nonce = cipher.generate_nonce()
        sealed = cipher.encrypt(key, nonce, plaintext)
        assert cipher.decrypt(key, nonce, sealed) == plaintext
    """

    __slots__ = ()

    @staticmethod
    def generate_nonce() -> bytes:
        """12 random bytes from the OS CSPRNG."""
        return secrets.token_bytes(AES_NONCE_SIZE)

    def encrypt(self, key: bytes, nonce: bytes, plaintext: bytes | bytearray) -> bytes:
        """
        Seal plaintext; returns ciphertext || tag.

        Raises:
            ValueError: On a wrong key or nonce length
        """
        _check_sizes(key, nonce)
        return AESGCM(key).encrypt(nonce, plaintext, None)

    def decrypt(self, key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
        """
        Verify and open ciphertext || tag.

        Raises:
            ValueError: On a wrong key or nonce length
            AuthenticationError: If verification fails for any reason
        """
        _check_sizes(key, nonce)
        if len(ciphertext) < AES_TAG_SIZE:
            raise AuthenticationError()

        try:
            return AESGCM(key).decrypt(nonce, ciphertext, None)
        except InvalidTag:
            raise AuthenticationError() from None


def _check_sizes(key: bytes, nonce: bytes) -> None:
    if len(key) != AES_KEY_SIZE:
        raise ValueError(f"AES-256 key must be {AES_KEY_SIZE} bytes, got {len(key)}")
    if len(nonce) != AES_NONCE_SIZE:
        raise ValueError(f"GCM nonce must be {AES_NONCE_SIZE} bytes, got {len(nonce)}")
