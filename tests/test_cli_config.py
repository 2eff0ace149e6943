from __future__ import annotations

import pytest

from duo_cosign.cli.config import ConfigError, load_config

_BASE = 'ikey = "DIXXXXXXXXXXXXXXXXXX"\nskey = "secret"\napi_host = "api-test.duosecurity.com"\n'


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    monkeypatch.delenv("DUO_COSIGN_CONFIG", raising=False)
    monkeypatch.delenv("DUO_COSIGN_API_HOST", raising=False)


def test_duo_table_is_parsed(tmp_path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text("[duo]\n" + _BASE + 'factor_name = "push"\n', encoding="utf-8")

    config = load_config(config_path)

    assert config.ikey == "DIXXXXXXXXXXXXXXXXXX"
    assert config.skey == "secret"
    assert config.api_host == "api-test.duosecurity.com"
    assert config.factor_name == "push"
    assert config.display_factor_name == "push"
    assert config.timeout == 10.0
    assert config.retries == 2
    assert config.path == str(config_path)


def test_top_level_keys_and_default_factor_name(tmp_path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(_BASE, encoding="utf-8")

    config = load_config(config_path)

    assert config.factor_name is None
    assert config.display_factor_name == "duo"


def test_missing_file_is_an_error(tmp_path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "missing.toml")


def test_missing_skey_is_an_error(tmp_path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text('ikey = "DI"\napi_host = "api-test.duosecurity.com"\n', encoding="utf-8")
    with pytest.raises(ConfigError, match="skey"):
        load_config(config_path)


def test_invalid_toml_is_an_error(tmp_path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text("ikey = \n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid TOML"):
        load_config(config_path)


def test_env_api_host_overrides_config_file(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(_BASE, encoding="utf-8")
    monkeypatch.setenv("DUO_COSIGN_API_HOST", "api-env.duosecurity.com")
    assert load_config(config_path).api_host == "api-env.duosecurity.com"


def test_env_config_path_used_when_no_path_given(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "env.toml"
    config_path.write_text(_BASE, encoding="utf-8")
    monkeypatch.setenv("DUO_COSIGN_CONFIG", str(config_path))
    assert load_config().path == str(config_path)


@pytest.mark.parametrize(
    "extra",
    [
        "timeout = 0\n",
        'timeout = "fast"\n',
        "retries = -1\n",
        "retries = true\n",
        "factor_name = 3\n",
    ],
)
def test_invalid_values_rejected(tmp_path, extra: str) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(_BASE + extra, encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(config_path)


def test_duo_must_be_a_table(tmp_path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text('duo = "nope"\n', encoding="utf-8")
    with pytest.raises(ConfigError, match="table"):
        load_config(config_path)
