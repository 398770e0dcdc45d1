"""Client configuration: load and validate config.toml."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

DEFAULT_API_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 60.0
API_URL_ENV = "DOCSTREAM_API_BASE_URL"


class ConfigError(Exception):
    """Raised when config.toml is malformed or has fields of the wrong type."""


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings and defaults for queries."""

    api_base_url: str = DEFAULT_API_BASE_URL
    company_id: str | None = None
    stream: bool = True
    timeout: float = DEFAULT_TIMEOUT


def get_config_path() -> Path:
    """Return the path to config.toml, respecting XDG_CONFIG_HOME."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "docstream" / "config.toml"


def _expect(data: dict[str, object], key: str, types: type | tuple[type, ...], path: Path) -> None:
    value = data.get(key)
    if value is None:
        return
    # bool is an int subclass, so check it separately
    if isinstance(value, bool) != (types is bool) or not isinstance(value, types):
        msg = f"Field '{key}' in {path} has the wrong type: {value!r}"
        raise ConfigError(msg)


def load_config(path: Path | None = None) -> ClientConfig:
    """Load the client config, applying the environment override.

    A missing file yields the defaults.
    Raises ConfigError on parse errors or mistyped fields.
    """
    path = path if path is not None else get_config_path()
    config = ClientConfig()

    if path.exists():
        try:
            data = tomllib.loads(path.read_text())
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {path}: {e}"
            raise ConfigError(msg) from e

        _expect(data, "api_base_url", str, path)
        _expect(data, "company_id", str, path)
        _expect(data, "stream", bool, path)
        _expect(data, "timeout", (int, float), path)
        config = ClientConfig(
            api_base_url=data.get("api_base_url", DEFAULT_API_BASE_URL),
            company_id=data.get("company_id") or None,
            stream=data.get("stream", True),
            timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
        )

    env_url = os.environ.get(API_URL_ENV)
    if env_url:
        config = replace(config, api_base_url=env_url)
    return replace(config, api_base_url=config.api_base_url.rstrip("/"))
