"""Tests for secure buffers and zeroization."""

import pytest

from pwdeck.core.memory import SecureBuffer, SecureString, ZeroizeContext, secure_zero


class TestSecureZero:

    def test_zeroes_in_place(self):
        data = bytearray(b"super secret")
        secure_zero(data)
        assert data == bytearray(len(b"super secret"))

    def test_empty_buffer(self):
        data = bytearray()
        secure_zero(data)
        assert data == bytearray()

    def test_context_zeroes_on_exception(self):
        first = bytearray(b"one")
        second = bytearray(b"two")
        with pytest.raises(RuntimeError):
            with ZeroizeContext(first, second):
                raise RuntimeError("boom")
        assert first == bytearray(3)
        assert second == bytearray(3)


class TestSecureBuffer:

    def test_exact_length(self):
        assert len(SecureBuffer.from_bytes(b"x" * 32)) == 32

    def test_data_is_a_copy(self):
        buf = SecureBuffer.from_bytes(b"key material")
        assert buf.data == b"key material"
        assert isinstance(buf.data, bytes)

    def test_wipe(self):
        buf = SecureBuffer.from_bytes(b"key material")
        buf.wipe()
        assert buf.is_wiped
        assert not buf.is_locked
        with pytest.raises(ValueError):
            buf.data

    def test_wipe_idempotent(self):
        buf = SecureBuffer.from_bytes(b"abc")
        buf.wipe()
        buf.wipe()
        assert buf.is_wiped

    def test_context_manager(self):
        with SecureBuffer.from_bytes(b"abc") as buf:
            assert buf.data == b"abc"
        assert buf.is_wiped

    def test_negative_size(self):
        with pytest.raises(ValueError):
            SecureBuffer(-1)

    def test_equality(self):
        assert SecureBuffer.from_bytes(b"abc") == SecureBuffer.from_bytes(b"abc")
        assert SecureBuffer.from_bytes(b"abc") != SecureBuffer.from_bytes(b"abd")

    def test_wiped_buffers_not_equal(self):
        a = SecureBuffer.from_bytes(b"abc")
        b = SecureBuffer.from_bytes(b"abc")
        a.wipe()
        assert a != b
        assert a == a

    def test_unhashable(self):
        with pytest.raises(TypeError):
            hash(SecureBuffer.from_bytes(b"abc"))

    def test_repr_hides_content(self):
        buf = SecureBuffer.from_bytes(b"hunter2")
        assert "hunter2" not in repr(buf)
        buf.wipe()
        assert repr(buf) == "SecureBuffer(WIPED)"


class TestSecureString:

    def test_get(self):
        assert SecureString("hunter2").get() == "hunter2"

    def test_from_bytes(self):
        assert SecureString(b"hunter2").get() == "hunter2"

    def test_len_is_utf8_bytes(self):
        assert len(SecureString("pässwörd")) == len("pässwörd".encode("utf-8"))

    def test_empty(self):
        assert len(SecureString()) == 0
        assert SecureString().get() == ""

    def test_wipe(self):
        value = SecureString("hunter2")
        value.wipe()
        assert value.is_wiped
        with pytest.raises(ValueError):
            value.get()

    def test_context_manager(self):
        with SecureString("hunter2") as value:
            assert value.get_bytes() == b"hunter2"
        assert value.is_wiped

    def test_equality(self):
        assert SecureString("a") == SecureString("a")
        assert SecureString("a") != SecureString("b")
        assert SecureString("a") != "a"

    def test_masked_str_and_repr(self):
        value = SecureString("hunter2")
        assert str(value) == "********"
        assert repr(value) == "SecureString(len=7)"
        value.wipe()
        assert repr(value) == "SecureString(WIPED)"
