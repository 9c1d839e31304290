"""
pwdeck Vault Module
===================

Encrypted vault storage: one file, one master password, many entries.

Components:
- vault.py: Vault lifecycle (new, from_file, insert, sync, close)
- schema.py: Entry records and the grouped Schema
- format.py: Binary header layout and whole-file rewrite
"""

from pwdeck.core.vault.format import HEADER_SIZE, VaultHeader, read_vault, write_vault
from pwdeck.core.vault.schema import Entry, Schema
from pwdeck.core.vault.vault import Vault

__all__ = [
    "HEADER_SIZE",
    "VaultHeader",
    "read_vault",
    "write_vault",
    "Entry",
    "Schema",
    "Vault",
]
