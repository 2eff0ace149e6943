"""Typed client for the Duo Auth API v2 endpoints."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import ValidationError

from duo_cosign.devices import Device
from duo_cosign.errors import DuoRequestError, DuoUnavailableError
from duo_cosign.outcomes import (
    AuthOutcome,
    AuthRequest,
    AuthResult,
    PreauthOutcome,
    PreauthResult,
)
from duo_cosign.signing import build_auth_headers, canonicalize_params

ASYNC_FACTORS = frozenset({"push", "phone"})


@dataclass
class DuoClient:
    ikey: str
    skey: str
    api_host: str
    timeout: float = 10.0
    retries: int = 2

    def __post_init__(self) -> None:
        try:
            import requests
            from requests.adapters import HTTPAdapter
            from urllib3.util.retry import Retry
        except Exception as exc:  # pragma: no cover
            raise DuoUnavailableError(f"requests stack unavailable: {exc}") from exc

        self._session = requests.Session()
        # POST is never retried: a replayed auth would send a second push.
        retry = Retry(
            total=max(0, int(self.retries)),
            connect=max(0, int(self.retries)),
            read=max(0, int(self.retries)),
            status=max(0, int(self.retries)),
            status_forcelist=(429, 500, 502, 503, 504),
            backoff_factor=0.2,
            allowed_methods=("GET",),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self._session.mount("https://", adapter)
        self._closed = False

    def __enter__(self) -> "DuoClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        if not self._closed:
            self._session.close()
            self._closed = True

    def _url(self, path: str) -> str:
        return f"https://{self.api_host.strip().rstrip('/')}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        signed: bool = True,
    ) -> object:
        params = params or {}
        encoded = canonicalize_params(params)
        headers: dict[str, str] = {}
        if signed:
            headers.update(
                build_auth_headers(
                    ikey=self.ikey,
                    skey=self.skey,
                    method=method,
                    host=self.api_host,
                    path=path,
                    params=params,
                )
            )

        url = self._url(path)
        body: str | None = None
        if method.upper() == "GET":
            if encoded:
                url = f"{url}?{encoded}"
        else:
            body = encoded
            headers["Content-Type"] = "application/x-www-form-urlencoded"

        try:
            response = self._session.request(
                method,
                url,
                data=body,
                headers=headers,
                timeout=self.timeout,
            )
        except Exception as exc:  # pragma: no cover
            raise DuoUnavailableError(str(exc)) from exc

        try:
            payload = response.json()
        except Exception as exc:
            raise DuoUnavailableError(
                f"duo request failed: {response.status_code} non-JSON response"
            ) from exc
        if not isinstance(payload, dict):
            raise DuoUnavailableError(f"duo request failed: {response.status_code} unexpected body")

        if response.status_code >= 400 or payload.get("stat") != "OK":
            raw_code = payload.get("code")
            code = raw_code if isinstance(raw_code, int) else None
            message = payload.get("message")
            detail = payload.get("message_detail")
            text = f"duo request failed: {response.status_code} {code} {message}"
            if isinstance(detail, str):
                text = f"{text} ({detail})"
            raise DuoRequestError(
                text,
                status_code=response.status_code,
                code=code,
                detail=detail if isinstance(detail, str) else None,
                body=payload,
            )
        return payload.get("response")

    @staticmethod
    def _timestamp(response: object) -> int:
        if not isinstance(response, dict) or not isinstance(response.get("time"), int):
            raise DuoUnavailableError("duo response missing time")
        return response["time"]

    def ping(self) -> int:
        return self._timestamp(self._request("GET", "/auth/v2/ping", signed=False))

    def check(self) -> int:
        return self._timestamp(self._request("GET", "/auth/v2/check"))

    def preauth(self, user: str) -> PreauthOutcome:
        response = self._request("POST", "/auth/v2/preauth", params={"username": user})
        if not isinstance(response, dict):
            raise DuoUnavailableError("duo preauth response is not an object")

        result = PreauthResult.from_api(response.get("result"))
        status_msg = response.get("status_msg")
        devices: list[Device] = []
        if result is PreauthResult.AUTH_REQUIRED:
            raw_devices = response.get("devices") or []
            if not isinstance(raw_devices, list):
                raise DuoUnavailableError("duo preauth devices is not a list")
            try:
                devices = [Device.model_validate(raw) for raw in raw_devices]
            except ValidationError as exc:
                raise DuoUnavailableError(f"invalid device in preauth response: {exc}") from exc
        return PreauthOutcome(
            result=result,
            devices=devices,
            status_msg=status_msg if isinstance(status_msg, str) else None,
        )

    def auth(self, request: AuthRequest) -> AuthOutcome:
        params = {"username": request.user, "factor": request.factor}
        if request.factor == "passcode":
            params["passcode"] = request.data
        else:
            params["device"] = request.data
        if request.factor in ASYNC_FACTORS:
            params["async"] = "1"

        response = self._request("POST", "/auth/v2/auth", params=params)
        if not isinstance(response, dict):
            raise DuoUnavailableError("duo auth response is not an object")

        if "async" in params:
            txid = response.get("txid")
            return AuthOutcome(
                result=AuthResult.PENDING,
                txid=txid if isinstance(txid, str) else "",
            )
        return self._auth_outcome(response)

    def auth_status(self, txid: str) -> AuthOutcome:
        response = self._request("GET", "/auth/v2/auth_status", params={"txid": txid})
        if not isinstance(response, dict):
            raise DuoUnavailableError("duo auth_status response is not an object")
        return self._auth_outcome(response, txid=txid)

    @staticmethod
    def _auth_outcome(response: dict, *, txid: str | None = None) -> AuthOutcome:
        raw_result = response.get("result")
        if raw_result == AuthResult.ALLOWED.value:
            result = AuthResult.ALLOWED
        elif raw_result == AuthResult.PENDING.value and txid is not None:
            result = AuthResult.PENDING
        else:
            result = AuthResult.FAILED
        status = response.get("status")
        status_msg = response.get("status_msg")
        return AuthOutcome(
            result=result,
            status=status if isinstance(status, str) else None,
            status_msg=status_msg if isinstance(status_msg, str) else None,
            txid=txid,
        )


__all__ = ["DuoClient", "ASYNC_FACTORS"]
