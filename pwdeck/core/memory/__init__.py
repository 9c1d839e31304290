"""
pwdeck Memory Security Module
=============================

Provides secure memory handling primitives for master passwords,
derived keys and entry passwords.

Components:
- secure_memory.py: Secure buffer implementations
- zeroization.py: Memory wiping utilities

WARNING:
- Python's memory model doesn't guarantee secure erasure
- These are best-effort mitigations
"""

from pwdeck.core.memory.secure_memory import (
    SecureBuffer,
    SecureString,
)
from pwdeck.core.memory.zeroization import (
    secure_zero,
    ZeroizeContext,
)

__all__ = [
    "SecureBuffer",
    "SecureString",
    "secure_zero",
    "ZeroizeContext",
]
