"""
Key Derivation Functions
========================

Password-based key derivation for the vault key.

Implements:
    - scrypt (memory-hard) with parameters persisted per vault

The cost parameters travel in every vault header, so raising the
defaults later never breaks decryption of older vaults: a loaded vault
always derives with the parameters it was written with.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from pwdeck.core.errors import InvalidVaultFileError

# Output sizes
KEY_SIZE: Final[int] = 32  # 256 bits for AES-256
SALT_SIZE: Final[int] = 32

# Current defaults for fresh vaults
SCRYPT_LOG_N: Final[int] = 11
SCRYPT_R: Final[int] = 8
SCRYPT_P: Final[int] = 1

# Supported bounds
MIN_LOG_N: Final[int] = 1
MAX_LOG_N: Final[int] = 24
MAX_R_TIMES_P: Final[int] = 1 << 30
MAX_SCRYPT_MEMORY: Final[int] = 1 << 30  # 1 GiB
# Block mixes (N * r * p): one lane at the 1 GiB memory ceiling
MAX_SCRYPT_WORK: Final[int] = MAX_SCRYPT_MEMORY // 128


@dataclass(frozen=True, slots=True)
class ScryptParams:
    """
    scrypt cost parameters.

    Attributes:
        log_n: CPU/memory cost exponent (N = 2 ** log_n)
        r: Block size factor
        p: Parallelism factor
    """

    log_n: int = SCRYPT_LOG_N
    r: int = SCRYPT_R
    p: int = SCRYPT_P

    @property
    def n(self) -> int:
        return 1 << self.log_n

    @property
    def memory_cost(self) -> int:
        """scrypt working memory in bytes: the N-block table plus p lanes."""
        return 128 * self.r * (self.n + self.p)

    @property
    def work(self) -> int:
        """Sequential BlockMix count, proportional to derivation time."""
        return self.n * self.r * self.p


DEFAULT_PARAMS: Final[ScryptParams] = ScryptParams()


def validate_params(params: ScryptParams) -> ScryptParams:
    """
    Check cost parameters are within supported bounds.

    Must run before derive_key(): out-of-range parameters can make the
    derivation itself fail expensively.

    Raises:
        InvalidVaultFileError: If any parameter is out of range
    """
    if not MIN_LOG_N <= params.log_n <= MAX_LOG_N:
        raise InvalidVaultFileError(
            f"scrypt cost exponent must be in [{MIN_LOG_N}, {MAX_LOG_N}], got {params.log_n}"
        )
    if params.r < 1:
        raise InvalidVaultFileError(f"scrypt block size must be positive, got {params.r}")
    if params.p < 1:
        raise InvalidVaultFileError(f"scrypt parallelism must be positive, got {params.p}")
    if params.r * params.p >= MAX_R_TIMES_P:
        raise InvalidVaultFileError("scrypt r * p is too large")
    # RFC 7914: N must be less than 2 ** (128 * r / 8)
    if params.log_n >= 16 * params.r:
        raise InvalidVaultFileError(
            f"scrypt cost exponent {params.log_n} too large for block size {params.r}"
        )
    if params.memory_cost > MAX_SCRYPT_MEMORY:
        raise InvalidVaultFileError(
            f"scrypt memory cost {params.memory_cost} exceeds {MAX_SCRYPT_MEMORY} bytes"
        )
    if params.work > MAX_SCRYPT_WORK:
        raise InvalidVaultFileError(
            f"scrypt work factor N*r*p = {params.work} exceeds {MAX_SCRYPT_WORK}"
        )
    return params


def derive_key(
    password: bytes,
    salt: bytes,
    params: ScryptParams = DEFAULT_PARAMS,
) -> bytes:
    """
    Derive the vault key from the master password using scrypt.

    Args:
        password: Master password as UTF-8 bytes
        salt: 32-byte random salt stored in the vault header
        params: Cost parameters (validated here as well)

    Returns:
        32-byte derived key

    Raises:
        InvalidVaultFileError: If params are out of range
        ValueError: If the salt has the wrong size
    """
    if len(salt) != SALT_SIZE:
        raise ValueError(f"Salt must be exactly {SALT_SIZE} bytes")
    validate_params(params)

    kdf = Scrypt(
        salt=salt,
        length=KEY_SIZE,
        n=params.n,
        r=params.r,
        p=params.p,
    )
    return kdf.derive(password)
