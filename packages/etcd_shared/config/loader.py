"""Settings loader with a fixed precedence cascade.

Later layers win:

1. Built-in defaults (``BUILTIN_DEFAULTS``)
2. YAML file (``~/.config/etcd-sdk/etcd.yaml`` unless a path is given)
3. ``ETCD_``-prefixed environment variables, ``__`` separating nested keys,
   e.g. ``ETCD_CLIENT__ENDPOINTS=10.0.0.1:2379,10.0.0.2:2379``
4. CLI params

``None`` values in CLI params mean "not given" and never override a lower
layer.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .defaults import BUILTIN_DEFAULTS
from .models import DEFAULT_CONFIG_PATH, EtcdSettings

ENV_PREFIX = "ETCD_"
# Credential values are taken verbatim from the environment.
RAW_STRING_PATHS: frozenset[tuple[str, ...]] = frozenset(
    {("client", "user"), ("client", "password")}
)


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
) -> EtcdSettings:
    """Load and validate ``EtcdSettings`` through the full cascade.

    :raises ValueError: for unreadable config files or values that fail
        validation (``pydantic.ValidationError`` is a ``ValueError``).
    """
    return EtcdSettings.model_validate(
        load_config(cli_params=cli_params, environ=environ, config_path=config_path)
    )


def load_config(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
    defaults: Mapping[str, Any] | None = None,
    env_prefix: str = ENV_PREFIX,
) -> dict[str, Any]:
    """Return the merged plain-dict configuration without validation."""
    layers = (
        copy.deepcopy(dict(BUILTIN_DEFAULTS if defaults is None else defaults)),
        _load_file_config(config_path),
        _load_env_config(os.environ if environ is None else environ, env_prefix),
        _drop_unset(cli_params or {}),
    )
    merged: dict[str, Any] = {}
    for layer in layers:
        merged = _merge_dicts(merged, layer)
    return merged


def _load_file_config(path: str | Path | None) -> dict[str, Any]:
    """Read the YAML config file; a missing file contributes nothing."""
    resolved = DEFAULT_CONFIG_PATH if path is None else Path(path).expanduser()
    if not resolved.is_file():
        return {}
    with resolved.open("r", encoding="utf-8") as handle:
        try:
            parsed = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in config file {resolved}: {exc}") from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config file must contain a top-level mapping: {resolved}")
    return parsed


def _load_env_config(environ: Mapping[str, str], prefix: str) -> dict[str, Any]:
    """Map ``PREFIX_A__B=value`` variables onto ``{"a": {"b": value}}``."""
    output: dict[str, Any] = {}
    for key, raw_value in environ.items():
        if not key.startswith(prefix):
            continue
        path = [part.lower() for part in key[len(prefix) :].split("__") if part]
        if path:
            value = (
                raw_value
                if tuple(path) in RAW_STRING_PATHS
                else _coerce_scalar(raw_value)
            )
            _set_nested(output, path, value)
    return output


def _set_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    cursor = target
    for segment in path[:-1]:
        child = cursor.get(segment)
        if not isinstance(child, dict):
            child = cursor[segment] = {}
        cursor = child
    cursor[path[-1]] = value


def _drop_unset(params: Mapping[str, Any]) -> dict[str, Any]:
    """Remove ``None`` leaves so unset CLI options fall through."""
    output: dict[str, Any] = {}
    for key, value in params.items():
        if isinstance(value, Mapping):
            nested = _drop_unset(value)
            if nested:
                output[str(key)] = nested
        elif value is not None:
            output[str(key)] = value
    return output


def _merge_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge mappings; ``override`` wins on conflicts."""
    result = copy.deepcopy(dict(base))
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            result[key] = _merge_dicts(current, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _coerce_scalar(raw: str) -> Any:
    """Coerce env strings into bool, null, JSON, int or float when obvious."""
    value = raw.strip()
    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    if value.startswith(("{", "[")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return raw
    for convert in (int, float):
        try:
            return convert(value)
        except ValueError:
            continue
    return raw
