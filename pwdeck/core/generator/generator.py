"""
Password Generation
===================

Two interchangeable strategies for new entry passwords:

    - Random(length): characters drawn from lowercase, uppercase,
      digits and a 16-symbol special set with weights 2:2:2:1
    - Diceware(wordlist, words): words picked from a 7776-line
      wordlist by five simulated six-sided dice rolls each

All randomness comes from the secrets module (OS CSPRNG).
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass
from pathlib import Path
from typing import Final, List, Union

from pwdeck.core.errors import WordlistError
from pwdeck.core.memory import SecureString

# Character classes
LOWERCASE: Final[str] = string.ascii_lowercase
UPPERCASE: Final[str] = string.ascii_uppercase
DIGITS: Final[str] = string.digits
SPECIAL_CHARS: Final[str] = "!#$%&*+-_./:=?~`"

# Category draw: 0-1 lowercase, 2-3 uppercase, 4-5 digit, 6 special
_CATEGORY_DRAWS: Final[int] = 7

# Diceware
DICE_PER_WORD: Final[int] = 5
DICE_SIDES: Final[int] = 6
DICEWARE_WORDLIST_SIZE: Final[int] = DICE_SIDES ** DICE_PER_WORD  # 7776


@dataclass(frozen=True, slots=True)
class Random:
    """Random characters; `length` is the exact output length."""

    length: int

    def generate(self) -> SecureString:
        return generate_password(self)


@dataclass(frozen=True, slots=True)
class Diceware:
    """Diceware passphrase of `words` words from the `wordlist` file."""

    wordlist: Union[str, Path]
    words: int

    def generate(self) -> SecureString:
        return generate_password(self)


GenerationMethod = Union[Random, Diceware]


def generate_password(method: GenerationMethod) -> SecureString:
    """
    Generate a password with the given method.

    Raises:
        ValueError: If the requested length is negative
        WordlistError: If the diceware wordlist is unusable
        TypeError: If method is not Random or Diceware
    """
    if isinstance(method, Random):
        return _random_password(method.length)
    elif isinstance(method, Diceware):
        return _diceware_password(method.wordlist, method.words)
    raise TypeError(f"Unknown generation method: {type(method).__name__}")


def _random_char() -> str:
    category = secrets.randbelow(_CATEGORY_DRAWS)
    if category < 2:
        return secrets.choice(LOWERCASE)
    elif category < 4:
        return secrets.choice(UPPERCASE)
    elif category < 6:
        return secrets.choice(DIGITS)
    return secrets.choice(SPECIAL_CHARS)


def _random_password(length: int) -> SecureString:
    if length < 0:
        raise ValueError("Password length cannot be negative")
    return SecureString("".join(_random_char() for _ in range(length)))


def _load_wordlist(path: Union[str, Path]) -> List[str]:
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise WordlistError(f"Cannot read diceware wordlist {path}: {e}") from e

    # Only "\n" separates words; other Unicode line breaks are word content
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    lines = [line[:-1] if line.endswith("\r") else line for line in lines]

    if len(lines) < DICEWARE_WORDLIST_SIZE:
        raise WordlistError(
            f"Diceware wordlist needs at least {DICEWARE_WORDLIST_SIZE} lines, "
            f"got {len(lines)}"
        )
    return lines


def roll_dice_index() -> int:
    """Five uniform rolls in [0, 5] read as a base-6 number (0..7775)."""
    index = 0
    for _ in range(DICE_PER_WORD):
        index = index * DICE_SIDES + secrets.randbelow(DICE_SIDES)
    return index


def _diceware_password(wordlist: Union[str, Path], words: int) -> SecureString:
    if words < 0:
        raise ValueError("Word count cannot be negative")
    lines = _load_wordlist(wordlist)
    return SecureString(" ".join(lines[roll_dice_index()] for _ in range(words)))
