"""
Secret Buffers
==============

Containers for the master password, the derived vault key and entry
passwords. Each one owns a bytearray that is zeroed when the secret is
no longer needed.

Guarantees:
- wipe() zeroes the backing bytearray and is safe to repeat
- context-manager exit and garbage collection both wipe
- pages are mlock()ed where the OS allows it, so they stay out of swap
- equality runs in constant time

Not Covered:
- bytes/str copies the interpreter made along the way
- memory already swapped out or captured in a core dump
"""

from __future__ import annotations

import ctypes
import hmac
import platform
from typing import Any, Final, Optional

from pwdeck.core.memory.zeroization import secure_zero


_SYSTEM: Final[str] = platform.system()

# Largest secret a buffer will hold
MAX_BUFFER_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB


def _libc() -> Optional[ctypes.CDLL]:
    if _SYSTEM == "Linux":
        return ctypes.CDLL("libc.so.6", use_errno=True)
    if _SYSTEM == "Darwin":
        return ctypes.CDLL("libc.dylib", use_errno=True)
    return None


def _set_page_lock(buffer: bytearray, locked: bool) -> bool:
    """
    mlock()/munlock() the pages under buffer (VirtualLock on Windows).

    Returns True on success. Failure is normal for unprivileged
    processes with a low RLIMIT_MEMLOCK and is not an error.
    """
    size = len(buffer)
    if size == 0:
        return False
    try:
        address = ctypes.c_void_p(ctypes.addressof((ctypes.c_char * size).from_buffer(buffer)))
        length = ctypes.c_size_t(size)
        if _SYSTEM == "Windows":
            kernel32 = ctypes.windll.kernel32
            call = kernel32.VirtualLock if locked else kernel32.VirtualUnlock
            return bool(call(address, length))
        libc = _libc()
        if libc is None:
            return False
        call = libc.mlock if locked else libc.munlock
        return call(address, length) == 0
    except (OSError, AttributeError, TypeError, ValueError, BufferError):
        return False


class SecureBuffer:
    """
    Fixed-length secret bytes.

    len() is the length of the secret itself; nothing is padded.

    Usage:
        with SecureBuffer.from_bytes(derived_key) as key:
            cipher.encrypt(key.data, nonce, plaintext)
        # key is zeroed here

    Security Notes:
        - .data hands out a bytes copy; keep it short-lived
        - from_bytes() copies its argument and leaves the source alone
    """

    __slots__ = ("_buffer", "_wiped", "_locked", "__weakref__")

    def __init__(self, size: int = 0, lock_memory: bool = True) -> None:
        """
        Allocate a zero-filled buffer.

        Args:
            size: Length in bytes
            lock_memory: Attempt to pin the pages in RAM
        """
        if not 0 <= size <= MAX_BUFFER_SIZE:
            raise ValueError(f"Buffer size must be between 0 and {MAX_BUFFER_SIZE}, got {size}")

        self._buffer = bytearray(size)
        self._wiped = False
        self._locked = lock_memory and _set_page_lock(self._buffer, True)

    @classmethod
    def from_bytes(
        cls,
        data: bytes | bytearray | memoryview,
        lock_memory: bool = True,
    ) -> "SecureBuffer":
        """Copy data into a new buffer."""
        buf = cls(len(data), lock_memory=lock_memory)
        buf._buffer[:] = data
        return buf

    @property
    def data(self) -> bytes:
        """
        The secret as bytes.

        Raises:
            ValueError: After wipe()
        """
        if self._wiped:
            raise ValueError("SecureBuffer was wiped")
        return bytes(self._buffer)

    @property
    def is_wiped(self) -> bool:
        return self._wiped

    @property
    def is_locked(self) -> bool:
        """True while the pages are pinned in RAM."""
        return self._locked

    def wipe(self) -> None:
        """Zero the content and release the page lock."""
        if self._wiped:
            return
        secure_zero(self._buffer)
        if self._locked:
            _set_page_lock(self._buffer, False)
            self._locked = False
        self._wiped = True

    def __enter__(self) -> "SecureBuffer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.wipe()

    def __del__(self) -> None:
        # Interpreter shutdown may have torn down module globals already
        try:
            self.wipe()
        except Exception:
            pass

    def __len__(self) -> int:
        return len(self._buffer)

    def __eq__(self, other: Any) -> bool:
        """Constant-time content comparison."""
        if not isinstance(other, SecureBuffer):
            return NotImplemented
        if self._wiped or other._wiped:
            return self is other
        return hmac.compare_digest(self._buffer, other._buffer)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self._wiped:
            return "SecureBuffer(WIPED)"
        return f"SecureBuffer(size={len(self._buffer)}, locked={self._locked})"


class SecureString:
    """
    UTF-8 text kept in a SecureBuffer.

    Equality compares the stored bytes in constant time. str() is masked
    and repr() shows only the byte length.

    Usage:
        master = SecureString(prompt_result)
        key = derive_key(master.get_bytes(), salt, params)
        master.wipe()

    Security Notes:
        - The str handed to the constructor is immutable and cannot be
          erased; only the copy held here is
    """

    __slots__ = ("_buffer", "__weakref__")

    def __init__(self, value: str | bytes = "", lock_memory: bool = True) -> None:
        """
        Args:
            value: Text, or its UTF-8 encoding
            lock_memory: Attempt to pin the pages in RAM
        """
        scratch = bytearray(value.encode("utf-8") if isinstance(value, str) else value)
        try:
            self._buffer = SecureBuffer.from_bytes(scratch, lock_memory=lock_memory)
        finally:
            secure_zero(scratch)

    def get(self) -> str:
        """Decode the secret (creates an unwipeable str)."""
        return self._buffer.data.decode("utf-8")

    def get_bytes(self) -> bytes:
        return self._buffer.data

    @property
    def is_wiped(self) -> bool:
        return self._buffer.is_wiped

    def wipe(self) -> None:
        self._buffer.wipe()

    def __enter__(self) -> "SecureString":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.wipe()

    def __del__(self) -> None:
        try:
            self.wipe()
        except Exception:
            pass

    def __len__(self) -> int:
        """Length of the UTF-8 encoding in bytes."""
        return len(self._buffer)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, SecureString):
            return NotImplemented
        return self._buffer == other._buffer

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self._buffer.is_wiped:
            return "SecureString(WIPED)"
        return f"SecureString(len={len(self._buffer)})"

    def __str__(self) -> str:
        return "********"
