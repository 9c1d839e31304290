"""
Password generators consumed when building new entries.
"""

from pwdeck.core.generator.generator import (
    Diceware,
    GenerationMethod,
    Random,
    generate_password,
)

__all__ = [
    "Diceware",
    "GenerationMethod",
    "Random",
    "generate_password",
]
