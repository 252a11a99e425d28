"""Configuration loading utilities."""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

from bitcoind_rpc.config.schema import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_SCHEME,
    ClientConfig,
)

DEFAULTS: dict[str, Any] = {
    "scheme": DEFAULT_SCHEME,
    "host": DEFAULT_HOST,
    "port": DEFAULT_PORT,
    "user": "",
    "password": "",
}


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".bitcoind-rpc" / "config.json"


def expand_url(config: ClientConfig) -> ClientConfig:
    """
    Split ``config.url`` into scheme/host/port/user/password.

    Components present in the URL overwrite the same fields of ``config``;
    components the URL lacks leave the existing values alone.
    """
    if not config.url:
        return config
    parts = urlsplit(config.url)
    found: dict[str, Any] = {}
    if parts.scheme:
        found["scheme"] = parts.scheme
    if parts.hostname:
        found["host"] = parts.hostname
    try:
        port = parts.port
    except ValueError as e:
        raise ValueError(f"Invalid port in connection url: {e}") from e
    if port is not None:
        found["port"] = port
    if parts.username is not None:
        found["user"] = unquote(parts.username)
    if parts.password is not None:
        found["password"] = unquote(parts.password)
    return config.model_copy(update=found)


def apply_defaults(config: ClientConfig) -> ClientConfig:
    """Fill every connection field that is still unset."""
    missing = {
        name: value
        for name, value in DEFAULTS.items()
        if getattr(config, name) is None
    }
    return config.model_copy(update=missing)


def resolve_config(
    config: "ClientConfig | Mapping[str, Any] | None" = None,
    **overrides: Any,
) -> ClientConfig:
    """
    Build the final connection configuration.

    Args:
        config: A ClientConfig or a mapping using the documented keys
            (``url``, ``scheme``, ``host``, ``port``, ``user``, ``pass``,
            ``ca``, ``handler``, ``timeout``).
        overrides: Extra keys merged over ``config`` before resolution.

    Returns:
        ClientConfig with scheme, host, port, user and password all set.
    """
    if isinstance(config, ClientConfig):
        data: dict[str, Any] = config.model_dump(by_alias=False, exclude_unset=True)
    else:
        data = dict(config or {})
    data.update(overrides)
    cfg = ClientConfig.model_validate(data)
    return apply_defaults(expand_url(cfg))


def load_config(config_path: Path | None = None) -> ClientConfig:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded (unresolved) configuration; an empty one when the file is absent.
    """
    path = config_path or get_config_path()

    if not path.exists():
        return ClientConfig()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("top-level JSON value must be an object")
        return ClientConfig.model_validate(convert_keys(data))
    except (json.JSONDecodeError, ValueError) as e:
        raise ValueError(
            f"Failed to load config from {path}: {e}. "
            "Fix the file or remove it to use defaults."
        ) from e


def convert_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Convert camelCase keys to snake_case for Pydantic."""
    return {camel_to_snake(k): v for k, v in data.items()}


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)
