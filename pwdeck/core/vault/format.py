"""
Vault File Format
=================

Binary layout of a vault file.

File Format:
    HEADER (53 bytes, no separators):
        - COST_EXPONENT: 1 byte (scrypt log2(N))
        - BLOCK_FACTOR: 4 bytes (scrypt r, little-endian)
        - PARALLELISM: 4 bytes (scrypt p, little-endian)
        - NONCE: 12 bytes (AES-GCM nonce of this write)
        - SALT: 32 bytes (scrypt salt)
    CIPHERTEXT: remaining bytes (AES-GCM output, tag included)

There is no magic number and no format version: the cost parameters
are the only self-description. Changing this layout makes existing
vaults unreadable.
"""

from __future__ import annotations

import io
import os
import struct
from dataclasses import dataclass
from typing import BinaryIO, Final, Tuple

from pwdeck.core.crypto.aes_gcm import AES_NONCE_SIZE
from pwdeck.core.crypto.kdf import SALT_SIZE, ScryptParams, validate_params
from pwdeck.core.errors import TruncatedVaultError

# Field widths
COST_EXPONENT_SIZE: Final[int] = 1
BLOCK_FACTOR_SIZE: Final[int] = 4
PARALLELISM_SIZE: Final[int] = 4
NONCE_SIZE: Final[int] = AES_NONCE_SIZE
HEADER_SIZE: Final[int] = (
    COST_EXPONENT_SIZE + BLOCK_FACTOR_SIZE + PARALLELISM_SIZE + NONCE_SIZE + SALT_SIZE
)


@dataclass(frozen=True, slots=True)
class VaultHeader:
    """
    Unencrypted vault header.

    Attributes:
        params: scrypt cost parameters used to derive the key
        nonce: Nonce of the ciphertext that follows (not secret, unique)
        salt: scrypt salt (not secret)
    """

    params: ScryptParams
    nonce: bytes
    salt: bytes

    def __post_init__(self) -> None:
        if len(self.nonce) != NONCE_SIZE:
            raise ValueError(f"Nonce must be exactly {NONCE_SIZE} bytes")
        if len(self.salt) != SALT_SIZE:
            raise ValueError(f"Salt must be exactly {SALT_SIZE} bytes")

    def to_bytes(self) -> bytes:
        """Serialize the header in on-disk field order."""
        return b"".join([
            struct.pack("<B", self.params.log_n),
            struct.pack("<I", self.params.r),
            struct.pack("<I", self.params.p),
            self.nonce,
            self.salt,
        ])

    @classmethod
    def read(cls, reader: BinaryIO) -> "VaultHeader":
        """
        Parse a header field by field.

        Cost parameters are validated as soon as they are read, so a
        bad header never reaches key derivation.

        Raises:
            TruncatedVaultError: If the stream ends inside a field
            InvalidVaultFileError: If the cost parameters are out of range
        """
        log_n = struct.unpack("<B", _read_exact(reader, COST_EXPONENT_SIZE, "cost exponent"))[0]
        r = struct.unpack("<I", _read_exact(reader, BLOCK_FACTOR_SIZE, "block factor"))[0]
        p = struct.unpack("<I", _read_exact(reader, PARALLELISM_SIZE, "parallelism factor"))[0]
        params = validate_params(ScryptParams(log_n=log_n, r=r, p=p))

        nonce = _read_exact(reader, NONCE_SIZE, "nonce")
        salt = _read_exact(reader, SALT_SIZE, "salt")

        return cls(params=params, nonce=nonce, salt=salt)

    def __repr__(self) -> str:
        return (
            f"VaultHeader(log_n={self.params.log_n}, r={self.params.r}, "
            f"p={self.params.p})"
        )


def _read_exact(reader: BinaryIO, size: int, field_name: str) -> bytes:
    data = reader.read(size)
    if data is None or len(data) != size:
        got = 0 if data is None else len(data)
        raise TruncatedVaultError(
            f"Vault file truncated: expected {size} bytes for {field_name}, got {got}"
        )
    return data


def read_vault(vault_file: BinaryIO) -> Tuple[VaultHeader, bytes]:
    """
    Read a whole vault file into its header and ciphertext.

    Reads from offset 0 when the handle is seekable.

    Returns:
        (header, ciphertext) tuple

    Raises:
        OSError: If reading the file fails
        TruncatedVaultError: If the file is shorter than the header
        InvalidVaultFileError: If the cost parameters are out of range
    """
    if vault_file.seekable():
        vault_file.seek(0)
    reader = io.BytesIO(vault_file.read())

    header = VaultHeader.read(reader)
    ciphertext = reader.read()

    return header, ciphertext


def write_vault(vault_file: BinaryIO, header: VaultHeader, ciphertext: bytes) -> int:
    """
    Replace the entire file content with header + ciphertext.

    Writes from offset 0 and truncates to the new length. This is not
    crash-atomic; Vault.save() offers a temp-file-and-rename path.

    Returns:
        Number of bytes written

    Raises:
        OSError: If writing fails
    """
    payload = header.to_bytes() + ciphertext

    vault_file.seek(0)
    vault_file.write(payload)
    vault_file.truncate()
    vault_file.flush()
    _fsync(vault_file)

    return len(payload)


def _fsync(vault_file: BinaryIO) -> None:
    """fsync when the handle is backed by a real descriptor."""
    try:
        fd = vault_file.fileno()
    except (AttributeError, io.UnsupportedOperation):
        return
    os.fsync(fd)
