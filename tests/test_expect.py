import io

import pytest

from sshsudo.errors import ExpectReadError
from sshsudo.expect import expect_only


def test_matches_prefix_and_leaves_rest_unread():
    stream = io.BytesIO(b"READY\nhello\n")
    assert expect_only(stream, b"READY\n") is True
    assert stream.read() == b"hello\n"


def test_carriage_returns_are_transparent():
    for data in (b"READY\r\n", b"\rR\rE\rA\rD\rY\r\r\n", b"RE\r\r\r\rADY\n"):
        assert expect_only(io.BytesIO(data), b"READY\n") is True


def test_empty_expected_reads_nothing():
    stream = io.BytesIO(b"anything")
    assert expect_only(stream, b"") is True
    assert stream.tell() == 0


def test_mismatch_stops_at_first_wrong_byte():
    stream = io.BytesIO(b"XYZ")
    assert expect_only(stream, b"XA") is False
    assert stream.read() == b"Z"


def test_banner_before_marker_is_a_mismatch():
    assert expect_only(io.BytesIO(b"Welcome!\nREADY\n"), b"READY\n") is False


def test_stream_ending_early_is_no_match():
    assert expect_only(io.BytesIO(b"REA"), b"READY\n") is False
    assert expect_only(io.BytesIO(b""), b"READY\n") is False


def test_read_failure_is_raised_with_cause():
    class Broken:
        def read(self, size=-1):
            raise OSError("connection reset")

    with pytest.raises(ExpectReadError) as exc_info:
        expect_only(Broken(), b"READY\n")
    assert isinstance(exc_info.value.__cause__, OSError)


def test_timeout_surfaces_as_read_error():
    import socket

    class Slow:
        def read(self, size=-1):
            raise socket.timeout("timed out")

    with pytest.raises(ExpectReadError):
        expect_only(Slow(), b"x")
