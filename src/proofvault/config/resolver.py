"""Layering of configuration sources."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Iterable, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import VaultConfig

ENV_PREFIX = "PROOFVAULT__"


def resolve_with_precedence(
    *,
    defaults: VaultConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> VaultConfig:
    """Merge defaults, file, environment, and CLI overrides in increasing precedence.

    Override keys may be nested mappings or dotted paths such as
    ``"uploads.destination"``.

    Raises:
        ConfigError: If an override is malformed or the merged values are invalid.
    """
    merged: Dict[str, Any] = defaults.model_dump(mode="python")
    layers = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for label, layer in layers:
        if layer:
            merged = merge_mappings(merged, expand_dotted(layer, source_name=label))

    try:
        return VaultConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def overrides_from_env(env: Mapping[str, str]) -> Dict[str, Any]:
    """Collect ``PROOFVAULT__SECTION__KEY`` variables into a nested mapping.

    Values are parsed as YAML scalars so ``true`` and ``42`` keep their types.
    """
    overrides: Dict[str, Any] = {}
    for key, raw_value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        segments = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
        if not segments:
            continue
        try:
            value = yaml.safe_load(raw_value)
        except yaml.YAMLError:
            value = raw_value
        _set_path(overrides, segments, value, source_name="environment")
    return overrides


def flatten_for_env(config: VaultConfig) -> Dict[str, str]:
    """Render the config as ``PROOFVAULT__SECTION__KEY`` environment variables."""
    flat: Dict[str, str] = {}

    def _walk(path: list[str], value: Any) -> None:
        if isinstance(value, dict):
            for child_key, child in value.items():
                _walk([*path, str(child_key)], child)
            return
        name = ENV_PREFIX + "__".join(part.upper() for part in path)
        if isinstance(value, list):
            flat[name] = yaml.safe_dump(value, default_flow_style=True).strip()
        elif value is None:
            flat[name] = "null"
        elif isinstance(value, bool):
            flat[name] = "true" if value else "false"
        else:
            flat[name] = str(value)

    _walk([], config.model_dump(mode="python"))
    return flat


def expand_dotted(source: Mapping[str, Any], *, source_name: str) -> Dict[str, Any]:
    """Turn dotted keys into nested mappings."""
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")
    expanded: Dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = expand_dotted(value, source_name=source_name)
        _set_path(expanded, key.split("."), value, source_name=source_name)
    return expanded


def merge_mappings(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Return ``base`` deep-merged with ``overrides``; neither input is modified."""
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = merge_mappings(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _set_path(target: Dict[str, Any], path: Iterable[str], value: Any, *, source_name: str) -> None:
    segments = list(path)
    node = target
    for segment in segments[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(
                f"{source_name.capitalize()} override for {'.'.join(segments)} "
                "conflicts with an existing value."
            )
        node = child
    leaf = segments[-1]
    existing = node.get(leaf)
    if isinstance(value, MappingABC) and isinstance(existing, MappingABC):
        node[leaf] = merge_mappings(existing, value)
    else:
        node[leaf] = value


__all__ = [
    "ENV_PREFIX",
    "expand_dotted",
    "flatten_for_env",
    "merge_mappings",
    "overrides_from_env",
    "resolve_with_precedence",
]
