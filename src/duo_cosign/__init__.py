"""duo-cosign public surface."""

from duo_cosign.client import DuoClient
from duo_cosign.devices import Device, serialize_device_list
from duo_cosign.errors import (
    DeviceSerializationError,
    DuoCosignError,
    DuoRequestError,
    DuoUnavailableError,
    ProtocolError,
    SignatureError,
)
from duo_cosign.outcomes import (
    AuthOutcome,
    AuthRequest,
    AuthResult,
    PreauthOutcome,
    PreauthResult,
)
from duo_cosign.signing import build_auth_headers, build_request_to_sign, sign_request

__all__ = [
    "DuoCosignError",
    "DuoUnavailableError",
    "DuoRequestError",
    "SignatureError",
    "DeviceSerializationError",
    "ProtocolError",
    "DuoClient",
    "Device",
    "serialize_device_list",
    "AuthRequest",
    "AuthResult",
    "AuthOutcome",
    "PreauthResult",
    "PreauthOutcome",
    "build_request_to_sign",
    "sign_request",
    "build_auth_headers",
]
