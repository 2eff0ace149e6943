"""Caller-facing stdout protocol and stderr diagnostics."""

from __future__ import annotations

import re
from typing import TextIO

from duo_cosign.errors import ProtocolError

AUTH_PENDING = "Authentication pending"
AUTH_FAILED = "Authentication failed"
ACCESS_DENIED = "Access denied"

_SENSITIVE_FIELDS = (
    "skey",
    "passcode",
    "authorization",
    "sig",
    "secret",
)
_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def sanitize_error_text(value: str) -> str:
    redacted = re.sub(r"(?i)(Basic\s+)([A-Za-z0-9+/=]+)", r"\1[REDACTED]", value)
    for field in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf"(?i)\b({field}\s*[=:]\s*)([^,&\s]+)",
            r"\1[REDACTED]",
            redacted,
        )
    return redacted


def print_error(stderr: TextIO, prefix: str, message: str, *, code: int) -> int:
    print(f"{prefix}: {sanitize_error_text(message)}", file=stderr)
    return code


def _single_line(value: str, what: str) -> str:
    if "\n" in value or "\r" in value:
        raise ProtocolError(f"{what} must not contain a line break")
    return value


class ProtocolWriter:
    """Writes `$name=value` variable lines and bare status lines."""

    def __init__(self, stdout: TextIO) -> None:
        self._stdout = stdout

    def variable(self, name: str, value: str) -> None:
        if not _NAME_RE.match(name):
            raise ProtocolError(f"invalid variable name: {name!r}")
        print(f"${name}={_single_line(value, name)}", file=self._stdout)

    def status(self, line: str) -> None:
        print(_single_line(line, "status line"), file=self._stdout)

    def emit(self, *variables: tuple[str, str], status: str | None = None) -> None:
        """Validate every line first, then write variables followed by the status line."""
        lines = []
        for name, value in variables:
            if not _NAME_RE.match(name):
                raise ProtocolError(f"invalid variable name: {name!r}")
            lines.append(f"${name}={_single_line(value, name)}")
        if status is not None:
            lines.append(_single_line(status, "status line"))
        for line in lines:
            print(line, file=self._stdout)
