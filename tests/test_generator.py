"""Tests for random and diceware password generation."""

import pytest

import pwdeck.core.generator.generator as generator_mod
from pwdeck.core.errors import WordlistError
from pwdeck.core.generator import Diceware, Random, generate_password
from pwdeck.core.generator.generator import (
    DIGITS,
    LOWERCASE,
    SPECIAL_CHARS,
    UPPERCASE,
    roll_dice_index,
)

ALPHABET = set(LOWERCASE + UPPERCASE + DIGITS + SPECIAL_CHARS)


# ── Random ──────────────────────────────────────────────────────────


class TestRandom:

    @pytest.mark.parametrize("length", [0, 1, 25, 32, 128])
    def test_exact_length(self, length):
        assert len(generate_password(Random(length)).get()) == length

    def test_alphabet(self):
        assert set(generate_password(Random(500)).get()) <= ALPHABET

    def test_all_classes_appear(self):
        chars = set(generate_password(Random(2000)).get())
        for charset in (LOWERCASE, UPPERCASE, DIGITS, SPECIAL_CHARS):
            assert chars & set(charset)

    def test_special_set(self):
        assert SPECIAL_CHARS == "!#$%&*+-_./:=?~`"
        assert len(SPECIAL_CHARS) == 16

    def test_method_generate(self):
        assert len(Random(12).generate()) == 12

    def test_negative_length(self):
        with pytest.raises(ValueError):
            generate_password(Random(-1))

    def test_outputs_differ(self):
        assert generate_password(Random(32)).get() != generate_password(Random(32)).get()


# ── Diceware ────────────────────────────────────────────────────────


class TestDiceware:

    def test_word_count(self, wordlist):
        words = generate_password(Diceware(wordlist, 5)).get().split(" ")
        assert len(words) == 5
        assert all(word.startswith("word") for word in words)

    def test_zero_words(self, wordlist):
        assert generate_password(Diceware(wordlist, 0)).get() == ""

    def test_accepts_str_path(self, wordlist):
        assert len(Diceware(str(wordlist), 3).generate().get().split(" ")) == 3

    def test_negative_words(self, wordlist):
        with pytest.raises(ValueError):
            generate_password(Diceware(wordlist, -1))

    def test_missing_wordlist(self, tmp_path):
        with pytest.raises(WordlistError):
            generate_password(Diceware(tmp_path / "missing.txt", 5))

    def test_short_wordlist(self, tmp_path):
        path = tmp_path / "short.txt"
        path.write_text("\n".join(f"w{i}" for i in range(7775)), encoding="utf-8")
        with pytest.raises(WordlistError):
            generate_password(Diceware(path, 5))

    def test_dice_read_as_base_six(self, monkeypatch):
        rolls = iter([1, 2, 3, 4, 5])
        monkeypatch.setattr(generator_mod.secrets, "randbelow", lambda n: next(rolls))
        assert roll_dice_index() == 1865

    def test_word_picked_by_dice(self, wordlist, monkeypatch):
        rolls = iter([1, 2, 3, 4, 5])
        monkeypatch.setattr(generator_mod.secrets, "randbelow", lambda n: next(rolls))
        assert generate_password(Diceware(wordlist, 1)).get() == "word1865"

    @pytest.mark.parametrize("separator", ["\x0b", "\x0c", "\x1c", "\x85", "\u2028", "\u2029"])
    def test_only_newline_separates_words(self, tmp_path, monkeypatch, separator):
        words = [f"w{i}" for i in range(7776)]
        words[3] = f"odd{separator}word"
        path = tmp_path / "wordlist.txt"
        path.write_text("\n".join(words) + "\n", encoding="utf-8", newline="")

        rolls = iter([0, 0, 0, 0, 5, 0, 0, 0, 0, 3])
        monkeypatch.setattr(generator_mod.secrets, "randbelow", lambda n: next(rolls))
        assert generate_password(Diceware(path, 2)).get() == f"w5 odd{separator}word"

    def test_crlf_wordlist(self, tmp_path, monkeypatch):
        path = tmp_path / "wordlist.txt"
        path.write_bytes(b"".join(f"w{i}\r\n".encode("ascii") for i in range(7776)))

        rolls = iter([1, 2, 3, 4, 5])
        monkeypatch.setattr(generator_mod.secrets, "randbelow", lambda n: next(rolls))
        assert generate_password(Diceware(path, 1)).get() == "w1865"

    def test_index_range(self):
        for _ in range(200):
            assert 0 <= roll_dice_index() < 7776


def test_unknown_method():
    with pytest.raises(TypeError):
        generate_password("random")
