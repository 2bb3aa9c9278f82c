"""Load toolloop settings from layered TOML files and the environment.

Files are merged lowest priority first: the user file
(``$XDG_CONFIG_HOME/toolloop/config.toml``), ``./toolloop.toml``, the file
named by ``$TOOLLOOP_CONFIG``, then an explicit ``path``. Programmatic
``overrides`` sit on top of all files.

After validation the environment fills in what files leave open: API keys
from each provider's ``api_key_env``, and a global network timeout from
``TOOLLOOP_TIMEOUT_MS`` (falling back to ``OPENAI_TIMEOUT_MS``).
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from toolloop.core.errors import ConfigError

from .schema import ToolloopConfig

CONFIG_ENV_VAR = "TOOLLOOP_CONFIG"
TIMEOUT_ENV_VARS = ("TOOLLOOP_TIMEOUT_MS", "OPENAI_TIMEOUT_MS")
CONFIG_FILE_NAME = "toolloop.toml"


def _config_sources(path: str | Path | None) -> list[Path]:
    config_home = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    candidates = [
        Path(config_home) / "toolloop" / "config.toml",
        Path.cwd() / CONFIG_FILE_NAME,
    ]
    sources = [p for p in candidates if p.is_file()]

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        if not Path(env_path).is_file():
            msg = f"{CONFIG_ENV_VAR} points to non-existent file: {env_path}"
            raise ConfigError(msg)
        sources.append(Path(env_path))

    if path is not None:
        if not Path(path).is_file():
            msg = f"Config file not found: {path}"
            raise ConfigError(msg)
        sources.append(Path(path))
    return sources


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {path}: {e}"
        raise ConfigError(msg) from e
    except OSError as e:
        msg = f"Cannot read config file {path}: {e}"
        raise ConfigError(msg) from e


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge tables recursively; scalars and lists in ``override`` replace."""
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        result[key] = value
    return result


def _env_timeout_seconds() -> float | None:
    for var in TIMEOUT_ENV_VARS:
        raw = os.environ.get(var)
        if raw is None:
            continue
        if not raw.strip().isdecimal() or int(raw) <= 0:
            msg = f"Invalid {var} value {raw!r} - must be a positive number"
            raise ConfigError(msg)
        return int(raw) / 1000
    return None


def _apply_environment(config: ToolloopConfig) -> None:
    timeout = _env_timeout_seconds()
    for provider in config.providers.values():
        if provider.api_key is None and provider.api_key_env:
            provider.api_key = os.environ.get(provider.api_key_env)
        if timeout is not None:
            provider.timeout_seconds = timeout


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ToolloopConfig:
    """Build a validated :class:`ToolloopConfig`.

    Raises :class:`ConfigError` for a missing or unreadable file, bad TOML,
    a schema violation, or a malformed timeout variable.
    """
    merged: dict[str, Any] = {}
    for source in _config_sources(path):
        merged = _deep_merge(merged, _read_toml(source))
    merged = _deep_merge(merged, overrides or {})

    try:
        config = ToolloopConfig.model_validate(merged)
    except ValidationError as e:
        msg = f"Configuration validation failed: {e}"
        raise ConfigError(msg) from e

    _apply_environment(config)
    return config
