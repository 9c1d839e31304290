"""
Engine Configuration
====================

Frozen configuration for the vault engine, built from defaults plus
PWDECK_* environment variables.

Sections:
- paths: data, log and vault file locations (per-OS defaults)
- kdf: scrypt cost for newly created vaults
- logging: level, rotation, console/file toggles

Loaded vaults never consult the kdf section; they keep the cost
parameters stored in their own header.
"""

from __future__ import annotations

import hashlib
import os
import platform
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Final, Optional

from pwdeck.core.crypto.kdf import (
    SCRYPT_LOG_N,
    SCRYPT_P,
    SCRYPT_R,
    ScryptParams,
    validate_params,
)
from pwdeck.core.errors import InvalidVaultFileError


APP_NAME: Final[str] = "pwdeck"
VAULT_FILE_NAME: Final[str] = "vault.pwd"
VAULT_PATH_ENV: Final[str] = "PWDECK_VAULT"

# Fresh vaults may not be configured below this cost exponent
MIN_CONFIG_LOG_N: Final[int] = 10

# Environment keys containing any of these fragments are never read
_SECRET_FRAGMENTS: Final[frozenset[str]] = frozenset({
    "password", "secret", "key", "token", "private", "credential", "salt",
})

_LOG_LEVELS: Final[frozenset[str]] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def _looks_secret(config_key: str) -> bool:
    lowered = config_key.lower()
    return any(fragment in lowered for fragment in _SECRET_FRAGMENTS)


def _env_path(variable: str, fallback: Path) -> Path:
    return Path(os.environ.get(variable) or fallback)


def _default_data_dir() -> Path:
    """Per-user data directory: XDG on Linux, Application Support on macOS."""
    system = platform.system()
    home = Path.home()
    if system == "Windows":
        return _env_path("LOCALAPPDATA", home / "AppData" / "Local") / APP_NAME
    if system == "Darwin":
        return home / "Library" / "Application Support" / APP_NAME
    return _env_path("XDG_DATA_HOME", home / ".local" / "share") / APP_NAME


def _default_log_dir() -> Path:
    system = platform.system()
    home = Path.home()
    if system == "Windows":
        return _env_path("LOCALAPPDATA", home / "AppData" / "Local") / APP_NAME / "Logs"
    if system == "Darwin":
        return home / "Library" / "Logs" / APP_NAME
    return _env_path("XDG_STATE_HOME", home / ".local" / "state") / APP_NAME / "logs"


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class PathConfig:
    """
    Filesystem locations.

    vault_path defaults to <data_dir>/vault.pwd. All paths must be
    absolute.
    """

    data_dir: Path = field(default_factory=_default_data_dir)
    log_dir: Path = field(default_factory=_default_log_dir)
    vault_path: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.vault_path is None:
            object.__setattr__(self, "vault_path", self.data_dir / VAULT_FILE_NAME)

        for name in ("data_dir", "log_dir", "vault_path"):
            value = getattr(self, name)
            if not value.is_absolute():
                raise ValueError(f"{name} must be absolute, got {value}")


@dataclass(frozen=True, slots=True)
class KdfConfig:
    """scrypt cost parameters used for fresh vaults."""

    log_n: int = SCRYPT_LOG_N
    r: int = SCRYPT_R
    p: int = SCRYPT_P

    def __post_init__(self) -> None:
        if self.log_n < MIN_CONFIG_LOG_N:
            raise ValueError(f"scrypt cost exponent must be at least {MIN_CONFIG_LOG_N}")
        try:
            validate_params(self.to_params())
        except InvalidVaultFileError as e:
            raise ValueError(f"Invalid KDF configuration: {e}") from e

    def to_params(self) -> ScryptParams:
        return ScryptParams(log_n=self.log_n, r=self.r, p=self.p)


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    level: str = "INFO"
    max_file_size_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    enable_console: bool = True
    enable_file: bool = False

    def __post_init__(self) -> None:
        if self.level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level {self.level!r}")


# env key (after prefix) -> (section, field, converter)
_ENV_FIELDS: Final[dict[str, tuple[str, str, Callable[[str], Any]]]] = {
    "paths.data_dir": ("paths", "data_dir", Path),
    "paths.log_dir": ("paths", "log_dir", Path),
    "paths.vault_path": ("paths", "vault_path", Path),
    "vault": ("paths", "vault_path", lambda raw: Path(raw).expanduser().absolute()),
    "kdf.log_n": ("kdf", "log_n", int),
    "kdf.r": ("kdf", "r", int),
    "kdf.p": ("kdf", "p", int),
    "logging.level": ("logging", "level", str),
    "logging.enable_console": ("logging", "enable_console", _as_bool),
    "logging.enable_file": ("logging", "enable_file", _as_bool),
}


class SecureConfig:
    """
    Immutable engine configuration with a process-wide instance.

    Usage:
        config = SecureConfig.get_instance()
        vault_path = config.paths.vault_path
        params = config.kdf.to_params()
    """

    __slots__ = ("_paths", "_kdf", "_logging", "_frozen", "_config_hash")

    _instance: Optional[SecureConfig] = None

    def __init__(
        self,
        paths: Optional[PathConfig] = None,
        kdf: Optional[KdfConfig] = None,
        logging: Optional[LoggingConfig] = None,
    ) -> None:
        object.__setattr__(self, "_frozen", False)
        object.__setattr__(self, "_paths", paths or PathConfig())
        object.__setattr__(self, "_kdf", kdf or KdfConfig())
        object.__setattr__(self, "_logging", logging or LoggingConfig())
        digest = hashlib.sha256(
            f"{self._paths}|{self._kdf}|{self._logging}".encode("utf-8")
        ).hexdigest()
        object.__setattr__(self, "_config_hash", digest[:16])
        object.__setattr__(self, "_frozen", True)

    @property
    def paths(self) -> PathConfig:
        return self._paths

    @property
    def kdf(self) -> KdfConfig:
        return self._kdf

    @property
    def logging(self) -> LoggingConfig:
        return self._logging

    @property
    def config_hash(self) -> str:
        """Short fingerprint of the effective settings, safe to log."""
        return self._config_hash

    @classmethod
    def load(cls, env_prefix: str = "PWDECK") -> SecureConfig:
        """
        Build a configuration from defaults and environment overrides.

        Nested keys use a double underscore; PWDECK_VAULT names the
        vault file directly:

            PWDECK_VAULT=~/secrets.pwd
            PWDECK_KDF__LOG_N=14
            PWDECK_LOGGING__LEVEL=DEBUG
            PWDECK_PATHS__LOG_DIR=/var/log/pwdeck

        Raises:
            ValueError: If an override is malformed or out of range
        """
        overrides = cls._env_overrides(env_prefix)
        sections: dict[str, dict[str, Any]] = {"paths": {}, "kdf": {}, "logging": {}}
        # Table order decides conflicts: PWDECK_VAULT beats PWDECK_PATHS__VAULT_PATH
        for config_key, (section, name, convert) in _ENV_FIELDS.items():
            if config_key in overrides:
                sections[section][name] = convert(overrides[config_key])

        return cls(
            paths=PathConfig(**sections["paths"]) if sections["paths"] else None,
            kdf=KdfConfig(**sections["kdf"]) if sections["kdf"] else None,
            logging=LoggingConfig(**sections["logging"]) if sections["logging"] else None,
        )

    @staticmethod
    def _env_overrides(prefix: str) -> dict[str, str]:
        """Map PREFIX_SECTION__FIELD variables to "section.field" keys."""
        head = f"{prefix.upper()}_"
        found: dict[str, str] = {}
        for variable, value in os.environ.items():
            if not variable.startswith(head):
                continue
            config_key = variable[len(head):].lower().replace("__", ".")
            if _looks_secret(config_key):
                continue
            found[config_key] = value
        return found

    @classmethod
    def get_instance(cls) -> SecureConfig:
        """Process-wide configuration, loaded on first use."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the cached instance (tests)."""
        cls._instance = None

    def ensure_directories(self) -> None:
        """Create data and log directories (0700) and the vault's parent."""
        private = (self._paths.data_dir, self._paths.log_dir)
        for directory in private:
            directory.mkdir(parents=True, exist_ok=True)
            if platform.system() != "Windows":
                directory.chmod(stat.S_IRWXU)

        # A custom vault location may be a shared directory; leave its mode alone
        self._paths.vault_path.parent.mkdir(parents=True, exist_ok=True)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise AttributeError("SecureConfig is immutable")
        super().__setattr__(name, value)

    def __repr__(self) -> str:
        return f"SecureConfig(hash={self._config_hash})"
