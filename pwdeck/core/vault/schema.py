"""
Vault Schema
============

The decrypted content of a vault: credential entries grouped by
service name, in insertion order.

Serialized Form (JSON, UTF-8):
    {"passwords": {"<group>": [{"id": ..., "name": ..., "username": ...,
                                "password": ...}, ...]}}

Group names are case-sensitive. Order inside a group is display order
and survives a round trip.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from pwdeck.core.errors import InvalidVaultFileError
from pwdeck.core.generator import GenerationMethod, Random, generate_password
from pwdeck.core.memory import SecureString

# Length used when no generation method is given
DEFAULT_GENERATED_LENGTH = 32


def _new_entry_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class Entry:
    """
    A single credential record.

    The id is generated at construction and never changes. A plain str
    password is moved into a SecureString. An empty password is allowed
    here; the vault rejects it at insertion.

    Attributes:
        name: Display name (usually the service)
        username: Account name or label
        password: The secret, held in a SecureString
        id: Unique identifier (uuid4 hex)
    """

    name: str
    username: str
    password: SecureString = field(repr=False)
    id: str = field(default_factory=_new_entry_id)

    def __post_init__(self) -> None:
        if isinstance(self.password, (str, bytes)):
            object.__setattr__(self, "password", SecureString(self.password))
        elif not isinstance(self.password, SecureString):
            raise TypeError("password must be a str or SecureString")

    @classmethod
    def generate(
        cls,
        name: str,
        username: str,
        method: Optional[GenerationMethod] = None,
    ) -> "Entry":
        """
        Build an entry with a generated password.

        Args:
            name: Display name
            username: Account name
            method: Random(...) or Diceware(...); Random(32) by default
        """
        if method is None:
            method = Random(DEFAULT_GENERATED_LENGTH)
        return cls(name=name, username=username, password=generate_password(method))

    def to_dict(self) -> dict[str, str]:
        """Plain representation for serialization (contains the secret)."""
        return {
            "id": self.id,
            "name": self.name,
            "username": self.username,
            "password": self.password.get(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Entry":
        for key in ("id", "name", "username", "password"):
            if not isinstance(data[key], str):
                raise TypeError(f"Entry field {key!r} must be a string")
        return cls(
            name=data["name"],
            username=data["username"],
            password=data["password"],
            id=data["id"],
        )

    def wipe(self) -> None:
        """Wipe the password from memory."""
        self.password.wipe()


class Schema(Mapping[str, Tuple[Entry, ...]]):
    """
    Read-only mapping of group name to its ordered entries.

    Indexing returns tuples so callers cannot reorder or mutate a
    group. A group that was never written holds no entries: entries()
    and get(group, ()) return an empty tuple for it. schema[group]
    keeps the Mapping contract and raises KeyError, so `in`, keys() and
    len() only ever report groups that exist.

    Usage:
        for group, entries in vault.schema().items():
            for entry in entries:
                print(group, entry.username)
    """

    __slots__ = ("_groups",)

    def __init__(self, groups: Optional[Mapping[str, Iterable[Entry]]] = None) -> None:
        self._groups: dict[str, list[Entry]] = {}
        if groups:
            for group, entries in groups.items():
                for entry in entries:
                    self.add(group, entry)

    def __getitem__(self, group: str) -> Tuple[Entry, ...]:
        """Entries of an existing group; KeyError if absent (see entries())."""
        return tuple(self._groups[group])

    def __iter__(self) -> Iterator[str]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def entries(self, group: str) -> Tuple[Entry, ...]:
        """Entries of a group; an absent group is the empty tuple."""
        return tuple(self._groups.get(group, ()))

    def all_entries(self) -> Iterator[Tuple[str, Entry]]:
        """Yield (group, entry) pairs in display order."""
        for group, entries in self._groups.items():
            for entry in entries:
                yield group, entry

    @property
    def entry_count(self) -> int:
        return sum(len(entries) for entries in self._groups.values())

    def add(self, group: str, entry: Entry) -> None:
        """
        Append an entry to a group, creating the group if needed.

        No validation happens here; Vault.insert_entry() owns the rules.
        """
        if not isinstance(group, str):
            raise TypeError("group must be a string")
        self._groups.setdefault(group, []).append(entry)

    def to_json_bytes(self) -> bytearray:
        """
        Serialize to UTF-8 JSON.

        Returns a bytearray so the caller can zero it after use.
        """
        document = {
            "passwords": {
                group: [entry.to_dict() for entry in entries]
                for group, entries in self._groups.items()
            }
        }
        return bytearray(json.dumps(document, ensure_ascii=False).encode("utf-8"))

    @classmethod
    def from_json_bytes(cls, data: bytes | bytearray) -> "Schema":
        """
        Deserialize from UTF-8 JSON.

        Raises:
            InvalidVaultFileError: If the document is not a valid schema
        """
        try:
            document = json.loads(bytes(data).decode("utf-8"))
            groups = document["passwords"]
            if not isinstance(groups, dict):
                raise TypeError("passwords must be an object")

            schema = cls()
            for group, entries in groups.items():
                if not isinstance(entries, list):
                    raise TypeError(f"group {group!r} must be a list")
                for item in entries:
                    schema.add(group, Entry.from_dict(item))
            return schema
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as e:
            raise InvalidVaultFileError(f"Invalid vault schema: {e}") from e

    def wipe(self) -> None:
        """Wipe every entry password."""
        for _, entry in self.all_entries():
            entry.wipe()

    def __repr__(self) -> str:
        """Safe representation."""
        return f"Schema(groups={len(self._groups)}, entries={self.entry_count})"
