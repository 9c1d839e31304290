"""
Password Vault
==============

Owns the decrypted schema and the secrets needed to write it back.

Read Flow:
    1. Parse and validate the header (cost params, nonce, salt)
    2. Derive the key with the stored params
    3. Decrypt and verify the ciphertext
    4. Deserialize the schema

Write Flow:
    1. Serialize the schema
    2. Encrypt under a fresh nonce
    3. Rewrite the whole file: header + ciphertext

Invariant: key == scrypt(master_password, salt, params) for the life of
the object. Only salt and params are ever persisted.
"""

from __future__ import annotations

import logging
import os
import secrets
import tempfile
from contextlib import ExitStack
from pathlib import Path
from typing import BinaryIO, Optional

from pwdeck.core.config import SecureConfig
from pwdeck.core.crypto.aes_gcm import AesGcmCipher
from pwdeck.core.crypto.kdf import SALT_SIZE, ScryptParams, derive_key, validate_params
from pwdeck.core.errors import (
    AuthenticationError,
    EmptyPasswordError,
    InvalidVaultFileError,
    VaultError,
)
from pwdeck.core.memory import SecureBuffer, SecureString, ZeroizeContext
from pwdeck.core.vault.format import VaultHeader, read_vault, write_vault
from pwdeck.core.vault.schema import Entry, Schema

_log = logging.getLogger("pwdeck.vault")


class Vault:
    """
    The password vault.

    Usage:
        vault = Vault.new("master password")
        vault.insert_entry("github", Entry("GitHub", "octocat", "hunter2"))
        vault.save(path)

        with Vault.load(path, "master password") as vault:
            for entry in vault.schema().entries("github"):
                ...
        # master password, key and entry passwords are wiped

    Security Notes:
        - Every sync() uses a new random nonce
        - close() (or leaving the with block) wipes all secrets
        - The master password is kept so the key invariant can be
          re-established; it is never written anywhere
    """

    __slots__ = (
        "_schema", "_master_password", "_key", "_salt", "_params",
        "_last_nonce", "_cipher", "_closed", "__weakref__",
    )

    def __init__(
        self,
        schema: Schema,
        master_password: SecureString,
        key: SecureBuffer,
        salt: bytes,
        params: ScryptParams,
        last_nonce: Optional[bytes] = None,
    ) -> None:
        """Assemble a vault. Use Vault.new() or Vault.from_file()."""
        self._schema = schema
        self._master_password = master_password
        self._key = key
        self._salt = salt
        self._params = params
        self._last_nonce = last_nonce
        self._cipher = AesGcmCipher()
        self._closed = False

    @classmethod
    def new(
        cls,
        master_password: str,
        params: Optional[ScryptParams] = None,
    ) -> "Vault":
        """
        Create an empty vault with a fresh random salt.

        Args:
            master_password: The master password
            params: scrypt cost parameters; configured defaults if None

        Raises:
            InvalidVaultFileError: If params are out of range
        """
        if params is None:
            params = SecureConfig.get_instance().kdf.to_params()
        validate_params(params)

        salt = secrets.token_bytes(SALT_SIZE)

        with ExitStack() as cleanup:
            master = SecureString(master_password)
            cleanup.callback(master.wipe)
            key = _derive(master, salt, params)

            vault = cls(Schema(), master, key, salt, params)
            cleanup.pop_all()

        _log.debug("Created vault (log_n=%d, r=%d, p=%d)", params.log_n, params.r, params.p)
        return vault

    @classmethod
    def from_file(cls, vault_file: BinaryIO, master_password: str) -> "Vault":
        """
        Open a vault from a file handle.

        Args:
            vault_file: Binary handle opened for reading
            master_password: The master password

        Returns:
            The decrypted vault

        Raises:
            OSError: If reading fails
            TruncatedVaultError: If the file is shorter than the header
            InvalidVaultFileError: If the header or schema is malformed
            AuthenticationError: If the password is wrong or the
                ciphertext was modified
        """
        try:
            header, ciphertext = read_vault(vault_file)
        except InvalidVaultFileError as e:
            _log.warning("Rejected vault header: %s", e)
            raise

        with ExitStack() as cleanup:
            master = SecureString(master_password)
            cleanup.callback(master.wipe)
            key = _derive(master, header.salt, header.params)
            cleanup.callback(key.wipe)

            try:
                plaintext = bytearray(AesGcmCipher().decrypt(key.data, header.nonce, ciphertext))
            except AuthenticationError:
                _log.warning("Vault authentication failed")
                raise

            with ZeroizeContext(plaintext):
                schema = Schema.from_json_bytes(plaintext)

            vault = cls(schema, master, key, header.salt, header.params, last_nonce=header.nonce)
            cleanup.pop_all()

        _log.debug(
            "Loaded vault (%d groups, %d entries)", len(schema), schema.entry_count
        )
        return vault

    @classmethod
    def load(cls, path: Path | str, master_password: str) -> "Vault":
        """Open the vault stored at path."""
        with open(path, "rb") as vault_file:
            return cls.from_file(vault_file, master_password)

    def insert_entry(self, group: str, entry: Entry) -> None:
        """
        Append an entry to a group.

        Raises:
            EmptyPasswordError: If the entry password is empty; the
                schema is left unchanged
        """
        self._ensure_open()
        if not isinstance(entry, Entry):
            raise TypeError("entry must be an Entry")
        if len(entry.password) == 0:
            raise EmptyPasswordError()

        self._schema.add(group, entry)

    def add_password(self, entry: Entry) -> None:
        """Insert an entry under the group named after the entry."""
        self.insert_entry(entry.name, entry)

    def schema(self) -> Schema:
        """Read-only view of the decrypted entries."""
        self._ensure_open()
        return self._schema

    def sync(self, vault_file: BinaryIO) -> None:
        """
        Encrypt the schema and replace the whole file content.

        Rewrites from offset 0 and truncates. Not crash-atomic: an
        interrupted write leaves a damaged file. Prefer save() when
        the vault lives at a filesystem path.

        Raises:
            OSError: If writing fails
        """
        self._ensure_open()
        nonce = self._fresh_nonce()

        plaintext = self._schema.to_json_bytes()
        with ZeroizeContext(plaintext):
            ciphertext = self._cipher.encrypt(self._key.data, nonce, plaintext)

        header = VaultHeader(params=self._params, nonce=nonce, salt=self._salt)
        written = write_vault(vault_file, header, ciphertext)
        self._last_nonce = nonce

        _log.debug("Synced vault (%d bytes, %d entries)", written, self._schema.entry_count)

    def save(self, path: Path | str) -> None:
        """
        Write the vault to path via a temporary file and an atomic rename.

        The temporary file is created next to the target (mode 0600),
        fully written and fsynced, then moved over the target. A crash
        leaves either the old or the new vault, never a mix.
        """
        path = Path(path)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        try:
            with os.fdopen(fd, "w+b") as tmp_file:
                self.sync(tmp_file)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    @property
    def params(self) -> ScryptParams:
        """scrypt cost parameters of this vault."""
        return self._params

    @property
    def salt(self) -> bytes:
        return self._salt

    @property
    def is_closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Wipe the master password, key and every entry password."""
        if self._closed:
            return
        self._closed = True
        self._schema.wipe()
        self._master_password.wipe()
        self._key.wipe()
        _log.debug("Closed vault")

    def _fresh_nonce(self) -> bytes:
        nonce = self._cipher.generate_nonce()
        while nonce == self._last_nonce:
            nonce = self._cipher.generate_nonce()
        return nonce

    def _ensure_open(self) -> None:
        if self._closed:
            raise VaultError("Vault has been closed")

    def __enter__(self) -> "Vault":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __del__(self) -> None:
        try:
            self.close()
        except Exception:
            pass

    def __repr__(self) -> str:
        """Safe representation."""
        if self._closed:
            return "Vault(CLOSED)"
        return (
            f"Vault(groups={len(self._schema)}, entries={self._schema.entry_count}, "
            f"log_n={self._params.log_n})"
        )


def _derive(master: SecureString, salt: bytes, params: ScryptParams) -> SecureBuffer:
    """Derive the vault key into a SecureBuffer."""
    return SecureBuffer.from_bytes(derive_key(master.get_bytes(), salt, params))
