"""
pwdeck Cryptographic Core
=========================

Architecture:
    1. scrypt: master password + salt -> 256-bit vault key
    2. AES-256-GCM: authenticated encryption of the vault schema

Security Properties:
    - All encryption is authenticated (AEAD)
    - The vault key never touches disk (only salt and cost params do)
    - Secure RNG for salts and nonces

WARNING: This module handles sensitive cryptographic material.
         Incorrect usage can compromise security.
"""

from pwdeck.core.crypto.aes_gcm import AesGcmCipher
from pwdeck.core.crypto.kdf import (
    DEFAULT_PARAMS,
    ScryptParams,
    derive_key,
    validate_params,
)

__all__ = [
    "AesGcmCipher",
    "DEFAULT_PARAMS",
    "ScryptParams",
    "derive_key",
    "validate_params",
]
