"""
Memory Zeroization Utilities
============================

Provides the secure-erase primitive used by every secret buffer.

Security Properties:
- Explicit zeroization (no GC reliance)
- Writes go through ctypes.memset and cannot be elided
- Exception-safe cleanup via ZeroizeContext

Limitations:
- Only mutable buffers (bytearray) can be erased
- Copies Python made earlier (bytes, str) are untouched
- Pages already swapped out or captured in a crash dump are untouched
"""

from __future__ import annotations

import ctypes
from contextlib import contextmanager
from typing import Final, Iterator


# Pattern written before the final zero pass
_SCRUB_PATTERN: Final[int] = 0xFF


def secure_zero(data: bytearray) -> None:
    """
    Securely zero a byte buffer in place.

    Args:
        data: Mutable byte buffer to zero

    Security Notes:
        - This is best-effort; Python may hold other copies
        - Buffer must be mutable (bytearray, not bytes)
        - The buffer always ends up as all zero bytes
    """
    size = len(data)
    if size == 0:
        return

    try:
        addr = ctypes.addressof((ctypes.c_char * size).from_buffer(data))
        ctypes.memset(addr, 0, size)
        ctypes.memset(addr, _SCRUB_PATTERN, size)
        ctypes.memset(addr, 0, size)
    except (TypeError, ValueError, BufferError):
        # Fallback: Python-level zeroing
        for i in range(size):
            data[i] = 0


@contextmanager
def ZeroizeContext(*buffers: bytearray) -> Iterator[None]:
    """
    Context manager that zeroizes buffers on exit.

    Always zeroizes, whether exit is normal or exceptional.

    Usage:
        plaintext = bytearray(schema.to_json_bytes())

        with ZeroizeContext(plaintext):
            ciphertext = cipher.encrypt(key, nonce, plaintext)
        # plaintext is now zeroed
    """
    try:
        yield
    finally:
        for buf in buffers:
            secure_zero(buf)
