from __future__ import annotations

import io

import pytest

from duo_cosign.cli.input import InputError, read_auth_request, read_input_line


def test_reads_line_without_terminator() -> None:
    assert read_input_line(io.BytesIO(b"alice\nrest\n")) == "alice"


def test_longest_line_that_fits_the_buffer() -> None:
    line = b"a" * 511
    assert read_input_line(io.BytesIO(line + b"\n")) == "a" * 511


def test_line_too_long() -> None:
    with pytest.raises(InputError, match="too long"):
        read_input_line(io.BytesIO(b"a" * 512 + b"\n"))


@pytest.mark.parametrize("raw", [b"", b"alice"])
def test_end_of_stream_before_terminator(raw: bytes) -> None:
    with pytest.raises(InputError, match="end of input"):
        read_input_line(io.BytesIO(raw))


def test_empty_line_rejected() -> None:
    with pytest.raises(InputError, match="empty"):
        read_input_line(io.BytesIO(b"\n"))


def test_invalid_utf8_rejected() -> None:
    with pytest.raises(InputError, match="UTF-8"):
        read_input_line(io.BytesIO(b"\xff\xfe\n"))


def test_auth_request_field_order() -> None:
    request = read_auth_request(io.BytesIO(b"alice\npasscode\n123456\n"))
    assert (request.user, request.factor, request.data) == ("alice", "passcode", "123456")

    request.wipe()
    assert (request.user, request.factor, request.data) == ("", "", "")


def test_auth_request_missing_third_line() -> None:
    with pytest.raises(InputError):
        read_auth_request(io.BytesIO(b"alice\npush\n"))
