"""YAML + environment variable config loader."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, cast

import structlog
import yaml
from pydantic import ValidationError

from stream_harness.config.models import HarnessConfig
from stream_harness.errors import ConfigurationError

logger = structlog.get_logger()

# Matches ${VAR} or ${VAR:-default}
_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-((?:[^}\\]|\\.)*))?}")

BUILTIN_DEFAULTS = Path(__file__).parent / "defaults" / "harness.yaml"


def _resolve_env_str(value: str) -> str:
    def _replace(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)
        env_val = os.environ.get(var_name)
        if env_val is not None:
            return env_val
        if default is not None:
            return default.replace("\\}", "}")
        msg = f"Environment variable '{var_name}' is not set and no default provided"
        raise ConfigurationError(msg)

    return _ENV_PATTERN.sub(_replace, value)


def resolve_env_vars(data: Any) -> Any:
    """Recursively resolve ${VAR} and ${VAR:-default} in parsed YAML data."""
    if isinstance(data, str):
        return _resolve_env_str(data)
    if isinstance(data, dict):
        return {k: resolve_env_vars(v) for k, v in data.items()}
    if isinstance(data, list):
        return [resolve_env_vars(item) for item in data]
    return data


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML mapping from *path* with env references resolved."""
    p = Path(path)
    if not p.exists():
        msg = f"Config file not found: {p}"
        raise ConfigurationError(msg)
    try:
        with p.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        msg = f"Failed to parse YAML in {p}"
        mark = getattr(exc, "problem_mark", None)
        if mark is not None:
            msg += f" at line {mark.line + 1}, column {mark.column + 1}"
        raise ConfigurationError(f"{msg}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping at top level in {p}, got {type(data).__name__}"
        raise ConfigurationError(msg)
    return cast(dict[str, Any], resolve_env_vars(data))


def overlay(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return *base* with *override* laid over it, section by section.

    Nested mappings merge key by key; any other override value, including
    null, replaces what was there.  Neither argument is modified.
    """
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = overlay(current, value)
        result[key] = value
    return result


def load_harness_config(path: str | Path | None = None) -> HarnessConfig:
    """Load harness config from built-in defaults, optionally merged with a file."""
    data = load_yaml(BUILTIN_DEFAULTS)
    if path is not None:
        data = overlay(data, load_yaml(path))
    try:
        config = HarnessConfig.model_validate(data)
    except ValidationError as exc:
        source = path or "built-in defaults"
        msg = f"Invalid harness config ({source}):\n{exc}"
        raise ConfigurationError(msg) from exc
    logger.debug("config.loaded", source=str(path or "defaults"))
    return config
