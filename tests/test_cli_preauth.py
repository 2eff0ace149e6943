from __future__ import annotations

import io
import json

import pytest

from duo_cosign.cli.main import main
from duo_cosign.devices import Device
from duo_cosign.errors import DeviceSerializationError, DuoRequestError
from duo_cosign.outcomes import PreauthOutcome, PreauthResult


class _Client:
    def __init__(self, outcome) -> None:  # noqa: ANN001
        self._outcome = outcome
        self.users: list[str] = []

    def __enter__(self) -> "_Client":
        return self

    def __exit__(self, *exc_info) -> None:  # noqa: ANN002
        return None

    def preauth(self, user: str) -> PreauthOutcome:
        self.users.append(user)
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome


def _run(monkeypatch, tmp_path, outcome, args=("alice",), factor_name=None):  # noqa: ANN001
    config_path = tmp_path / "config.toml"
    body = 'ikey = "DI"\nskey = "secret"\napi_host = "api-test.duosecurity.com"\n'
    if factor_name:
        body += f'factor_name = "{factor_name}"\n'
    config_path.write_text(body, encoding="utf-8")
    monkeypatch.delenv("DUO_COSIGN_API_HOST", raising=False)
    client = _Client(outcome)
    monkeypatch.setattr("duo_cosign.cli.main.DuoClient", lambda **kwargs: client)

    out = io.StringIO()
    err = io.StringIO()
    rc = main(["--config", str(config_path), "preauth", *args], stdout=out, stderr=err)
    return rc, out.getvalue(), err.getvalue(), client


def _devices() -> list[Device]:
    return [
        Device(device="DP1", type="phone", display_name="iOS (XXX-XXX-0100)", capabilities=["push"]),
        Device(device="DP2", type="phone", display_name="Landline"),
        Device(device="DT3", type="token"),
    ]


def test_auth_required_emits_devices_then_factor_name(monkeypatch, tmp_path) -> None:
    outcome = PreauthOutcome(result=PreauthResult.AUTH_REQUIRED, devices=_devices())
    rc, out, _, client = _run(monkeypatch, tmp_path, outcome, factor_name="push")

    assert rc == 0
    assert client.users == ["alice"]
    lines = out.splitlines()
    assert len(lines) == 2
    name, value = lines[0].split("=", 1)
    assert name == "$duo_devices_json"
    decoded = json.loads(value)
    assert len(decoded) == 3
    assert [item["device"] for item in decoded] == ["DP1", "DP2", "DT3"]
    assert lines[1] == "push"


def test_auth_required_uses_default_factor_name(monkeypatch, tmp_path) -> None:
    outcome = PreauthOutcome(result=PreauthResult.AUTH_REQUIRED, devices=[])
    rc, out, _, _ = _run(monkeypatch, tmp_path, outcome)
    assert rc == 0
    assert out == "$duo_devices_json=[]\nduo\n"


def test_serialization_failure_denies(monkeypatch, tmp_path) -> None:
    def _fail(devices):  # noqa: ANN001
        raise DeviceSerializationError("failed to JSON serialize device list")

    monkeypatch.setattr("duo_cosign.cli.personas.serialize_device_list", _fail)
    outcome = PreauthOutcome(result=PreauthResult.AUTH_REQUIRED, devices=_devices())
    rc, out, err, _ = _run(monkeypatch, tmp_path, outcome)

    assert rc == 1
    assert out == "Access denied\n"
    assert "failed to JSON serialize device list" in err


@pytest.mark.parametrize(
    ("result", "message"),
    [
        (PreauthResult.USER_ALLOWED, "user alice configured to bypass 2f"),
        (PreauthResult.USER_NOT_ENROLLED, "user alice not enrolled"),
    ],
)
def test_silent_branches_exit_zero_with_no_output(monkeypatch, tmp_path, result, message) -> None:  # noqa: ANN001
    rc, out, err, _ = _run(monkeypatch, tmp_path, PreauthOutcome(result=result))
    assert rc == 0
    assert out == ""
    assert message in err


@pytest.mark.parametrize("result", [PreauthResult.USER_DENIED, PreauthResult.OTHER])
def test_denied_and_unknown_results(monkeypatch, tmp_path, result) -> None:  # noqa: ANN001
    rc, out, _, _ = _run(monkeypatch, tmp_path, PreauthOutcome(result=result))
    assert rc == 1
    assert out == "Access denied\n"


def test_client_error_denies(monkeypatch, tmp_path) -> None:
    error = DuoRequestError("duo request failed: 401 40101 Missing request credentials", status_code=401)
    rc, out, err, _ = _run(monkeypatch, tmp_path, error)
    assert rc == 1
    assert out == "Access denied\n"
    assert "preauth failed for user alice" in err


def test_missing_user_is_usage_error(monkeypatch, tmp_path) -> None:
    rc, out, err, client = _run(monkeypatch, tmp_path, PreauthOutcome(result=PreauthResult.USER_DENIED), args=())
    assert rc == 2
    assert out == ""
    assert "usage" in err
    assert client.users == []
