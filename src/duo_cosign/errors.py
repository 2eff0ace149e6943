"""Connector error types."""

from __future__ import annotations


class DuoCosignError(RuntimeError):
    """Base connector error."""


class DuoUnavailableError(DuoCosignError):
    """Duo API could not be reached or returned an unreadable response."""


class DuoRequestError(DuoUnavailableError):
    """Duo API returned a structured failure response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: int | None = None,
        detail: str | None = None,
        body: object | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.detail = detail
        self.body = body


class SignatureError(DuoCosignError):
    """Request could not be signed."""


class DeviceSerializationError(DuoCosignError):
    """Device list could not be encoded as JSON."""


class ProtocolError(DuoCosignError):
    """Output would violate the caller's line protocol."""
