"""Canonical request-to-sign builder and HMAC signer for Duo API requests.

Canonical form (signature version 2), one field per line:
- RFC 2822 date
- upper-case HTTP method
- lower-case API host
- request path
- parameters sorted by key, each key and value percent-encoded, joined by "&"
"""

from __future__ import annotations

import base64
from email.utils import formatdate
from urllib.parse import quote

from cryptography.hazmat.primitives import hashes, hmac

from duo_cosign.errors import SignatureError

SIGNATURE_VERSION = 2


def _quote(value: str) -> str:
    return quote(value, safe="~")


def canonicalize_params(params: dict[str, str]) -> str:
    for key, value in params.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise SignatureError(f"parameter {key!r} must be a string")
    return "&".join(f"{_quote(key)}={_quote(params[key])}" for key in sorted(params))


def build_request_to_sign(
    *,
    method: str,
    host: str,
    path: str,
    params: dict[str, str],
    date: str,
) -> bytes:
    if not host:
        raise SignatureError("host must be a non-empty string")
    if not path.startswith("/"):
        raise SignatureError("path must be absolute")
    lines = [date, method.upper(), host.lower(), path, canonicalize_params(params)]
    return "\n".join(lines).encode("utf-8")


def sign_request(canonical: bytes, skey: str) -> str:
    mac = hmac.HMAC(skey.encode("utf-8"), hashes.SHA1())
    mac.update(canonical)
    return mac.finalize().hex()


def build_auth_headers(
    *,
    ikey: str,
    skey: str,
    method: str,
    host: str,
    path: str,
    params: dict[str, str],
    date: str | None = None,
) -> dict[str, str]:
    """Return the Date and Authorization headers for a signed request."""
    if not ikey or not skey:
        raise SignatureError("ikey and skey are required to sign requests")
    request_date = date or formatdate()
    canonical = build_request_to_sign(
        method=method,
        host=host,
        path=path,
        params=params,
        date=request_date,
    )
    signature = sign_request(canonical, skey)
    token = base64.b64encode(f"{ikey}:{signature}".encode("utf-8")).decode("ascii")
    return {"Date": request_date, "Authorization": f"Basic {token}"}
