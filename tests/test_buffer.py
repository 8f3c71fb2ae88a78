import pytest

from trojango.golog.buffer import Buffer


def test_append_data():
    buf = Buffer()
    data = b"Hello"
    buf.append(data)
    assert buf.to_bytes() == data


def test_append_single_byte():
    buf = Buffer()
    buf.append_byte(ord("H"))
    assert len(buf) == 1
    assert buf.to_bytes()[0] == ord("H")


def test_append_single_byte_as_bytes():
    buf = Buffer()
    buf.append_byte(b"H")
    assert buf.to_bytes() == b"H"


def test_append_int():
    buf = Buffer()
    repr_ = b"012345"
    buf.append_int(12345, len(repr_))
    assert buf.to_bytes() == repr_


def test_append_int_without_padding():
    buf = Buffer()
    buf.append_int(7, 0)
    buf.append_int(42, 1)
    assert buf.to_bytes() == b"742"


def test_append_int_negative_rejected():
    with pytest.raises(ValueError):
        Buffer().append_int(-1, 2)


def test_reset():
    buf = Buffer()
    buf.append(b"Hello")
    buf.reset()
    assert len(buf) == 0


def test_reset_and_replace():
    buf = Buffer()
    buf.append(b"Hello")
    buf.reset()
    buf.append(b"World")
    assert buf.to_bytes() == b"World"
    assert bytes(buf) == b"World"