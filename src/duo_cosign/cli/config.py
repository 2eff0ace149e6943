"""Configuration helpers for the duo-cosign connector."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path("/etc/duo_cosign/config.toml")
DEFAULT_FACTOR_NAME = "duo"
CONFIG_PATH_ENV_VAR = "DUO_COSIGN_CONFIG"
API_HOST_ENV_VAR = "DUO_COSIGN_API_HOST"


@dataclass(frozen=True)
class DuoConfig:
    path: str
    ikey: str
    skey: str
    api_host: str
    factor_name: str | None = None
    timeout: float = 10.0
    retries: int = 2

    @property
    def display_factor_name(self) -> str:
        return self.factor_name or DEFAULT_FACTOR_NAME


class ConfigError(ValueError):
    """Raised when connector config is missing or invalid."""


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"failed to read config {path}: {exc.strerror or exc}") from exc

    try:  # Python 3.11+
        import tomllib  # type: ignore[attr-defined]
        try:
            return tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc
    except ModuleNotFoundError:
        try:
            import tomli
        except ModuleNotFoundError as exc:
            raise ConfigError("toml parser unavailable; install tomli for Python < 3.11") from exc
        try:
            return tomli.loads(raw)
        except tomli.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc


def _required_str(source: dict[str, Any], field_name: str) -> str:
    value = source.get(field_name)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{field_name} must be a non-empty string")
    return value.strip()


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path:
        return Path(path)
    env_path = os.getenv(CONFIG_PATH_ENV_VAR)
    if env_path and env_path.strip():
        return Path(env_path.strip())
    return DEFAULT_CONFIG_PATH


def load_config(path: str | Path | None = None) -> DuoConfig:
    config_path = resolve_config_path(path)
    if not config_path.exists():
        raise ConfigError(f"config file not found: {config_path}")

    parsed = _load_toml(config_path)
    section = parsed.get("duo")
    if isinstance(section, dict):
        source = section
    elif section is None:
        source = parsed
    else:
        raise ConfigError("[duo] must be a table")

    ikey = _required_str(source, "ikey")
    skey = _required_str(source, "skey")

    env_api_host = os.getenv(API_HOST_ENV_VAR)
    if env_api_host and env_api_host.strip():
        api_host = env_api_host.strip()
    else:
        api_host = _required_str(source, "api_host")

    factor_name_raw = source.get("factor_name")
    if factor_name_raw is None:
        factor_name = None
    elif isinstance(factor_name_raw, str):
        factor_name = factor_name_raw.strip() or None
    else:
        raise ConfigError("factor_name must be a string")
    if factor_name is not None and ("\n" in factor_name or "\r" in factor_name):
        raise ConfigError("factor_name must be a single line")

    timeout_raw = source.get("timeout", 10.0)
    if isinstance(timeout_raw, bool) or not isinstance(timeout_raw, (int, float)):
        raise ConfigError("timeout must be a number")
    timeout = float(timeout_raw)
    if timeout <= 0:
        raise ConfigError("timeout must be > 0")

    retries = source.get("retries", 2)
    if isinstance(retries, bool) or not isinstance(retries, int) or retries < 0:
        raise ConfigError("retries must be an integer >= 0")

    return DuoConfig(
        path=str(config_path),
        ikey=ikey,
        skey=skey,
        api_host=api_host,
        factor_name=factor_name,
        timeout=timeout,
        retries=retries,
    )
