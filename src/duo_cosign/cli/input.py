"""Fixed-schema line reader for the caller's stdin contract."""

from __future__ import annotations

from typing import BinaryIO

from duo_cosign.outcomes import AuthRequest

INPUT_BUFFER_SIZE = 512


class InputError(ValueError):
    """Raised when a stdin line is missing or malformed."""


def read_input_line(stream: BinaryIO) -> str:
    """Read one newline-terminated line, terminator included, of at most 512 bytes."""
    raw = stream.readline(INPUT_BUFFER_SIZE)
    if not raw.endswith(b"\n"):
        if len(raw) >= INPUT_BUFFER_SIZE:
            raise InputError("line too long")
        raise InputError("unexpected end of input")

    try:
        line = raw[:-1].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InputError("line is not valid UTF-8") from exc
    if not line:
        raise InputError("empty input line")
    return line


def read_auth_request(stream: BinaryIO) -> AuthRequest:
    user = read_input_line(stream)
    factor = read_input_line(stream)
    data = read_input_line(stream)
    return AuthRequest(user=user, factor=factor, data=data)
