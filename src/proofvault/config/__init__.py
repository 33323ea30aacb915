"""Configuration management for proofvault."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import VaultConfig
from .resolver import flatten_for_env, overrides_from_env, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.proofvault/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # proofvault configuration file
    # Edit by hand or with `proofvault config set KEY --value VALUE`.
    """
)


class ConfigManager:
    """Read and write the configuration file and resolve effective settings."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> VaultConfig:
        """Return the effective configuration.

        A missing file is treated as empty; it is not created on load.

        Args:
            cli_overrides: Highest-precedence overrides, dotted keys allowed.
            include_env: Whether ``PROOFVAULT__*`` variables are applied.
            env_overrides: Environment mapping used instead of the process environment.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        env_data = None
        if include_env:
            env_data = overrides_from_env(env_overrides if env_overrides is not None else self._env)
        return resolve_with_precedence(
            defaults=VaultConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=env_data,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored on disk."""
        if not self._config_path.exists():
            return {}
        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def ensure_exists(self) -> Path:
        """Write a default configuration file if none exists yet."""
        if not self._config_path.exists():
            self.save(VaultConfig())
        return self._config_path

    def save(self, config: VaultConfig | Mapping[str, Any]) -> None:
        """Persist ``config`` with a header and update timestamp."""
        if isinstance(config, VaultConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(data, sort_keys=False)
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8"
        )

    def read_text(self) -> str:
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")


__all__ = [
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "VaultConfig",
    "flatten_for_env",
    "overrides_from_env",
    "resolve_with_precedence",
]
