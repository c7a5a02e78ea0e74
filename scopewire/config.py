"""
Config system - layered container configuration with validation.
"""

from typing import Any, Dict, Optional, get_type_hints
from dataclasses import dataclass, fields
from pathlib import Path
import logging
import os
import json

from dotenv import dotenv_values

from .errors import ConfigError
from .scopes import resolve_scope_type

logger = logging.getLogger("scopewire.config")


@dataclass(frozen=True)
class ContainerConfig:
    """
    Container configuration.

    Attributes:
        detect_mixed_scopes: Flag injections of a narrower scope into a wider one
        wire_scoped_proxy: Inject a scoped proxy instead of the mixed-scope bean
        default_scope: Scope name used by register() when none is given
        proxy_class_suffix: Suffix of generated scoped proxy class names
    """

    detect_mixed_scopes: bool = False
    wire_scoped_proxy: bool = False
    default_scope: str = "singleton"
    proxy_class_suffix: str = "ScopedProxy"

    def __post_init__(self):
        # fail at load time, not at first registration
        resolve_scope_type(self.default_scope)
        if not self.proxy_class_suffix:
            raise ConfigError("Config field 'proxy_class_suffix' must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class ConfigLoader:
    """
    Loads and merges container configuration with precedence:
    overrides > environment variables > .env file > config files > defaults
    """

    def __init__(self, env_prefix: str = "SCOPEWIRE_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[list[str]] = None,
        env_prefix: str = "SCOPEWIRE_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from multiple sources.

        Args:
            paths: Config file paths (glob patterns supported; YAML or JSON)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        for pattern in paths or ():
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader.config_data.update(overrides)

        return loader

    def _load_from_files(self, pattern: str):
        """Load config from JSON or YAML files."""
        from glob import glob

        for path_str in sorted(glob(pattern)):
            path = Path(path_str)

            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)
            else:
                logger.warning(f"Ignoring config file with unknown suffix: {path}")

    def _load_json_file(self, path: Path):
        """Load config from JSON file."""
        with open(path) as f:
            self._merge(json.load(f), source=str(path))

    def _load_yaml_file(self, path: Path):
        """Load config from YAML file."""
        import yaml
        with open(path) as f:
            data = yaml.safe_load(f)
            if data:
                self._merge(data, source=str(path))

    def _merge(self, data: Any, source: str):
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {source} must contain a mapping")
        # files may nest the settings under a "container" section
        section = data.get("container", data)
        if not isinstance(section, dict):
            raise ConfigError(f"Section 'container' in {source} must be a mapping")
        self.config_data.update(section)

    def _load_env_file(self, path: str):
        """Load config from .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return

        for key, value in dotenv_values(env_path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_key(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_key(key, value)

    def _set_key(self, key: str, value: str):
        """Convert SCOPEWIRE_WIRE_SCOPED_PROXY to wire_scoped_proxy."""
        self.config_data[key[len(self.env_prefix):].lower()] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes", "on", "1"):
            return True
        if value.lower() in ("false", "no", "off", "0"):
            return False
        return value

    def get(self, key: str, default: Any = None) -> Any:
        return self.config_data.get(key, default)

    def to_config(self) -> ContainerConfig:
        """
        Build a validated ContainerConfig.

        Unknown keys are ignored with a warning.

        Raises:
            ConfigError: If a value has the wrong type
        """
        hints = get_type_hints(ContainerConfig)
        kwargs: Dict[str, Any] = {}

        known = {f.name for f in fields(ContainerConfig)}
        for key in sorted(set(self.config_data) - known):
            logger.warning(f"Unknown container config key '{key}' ignored")

        for field_info in fields(ContainerConfig):
            if field_info.name not in self.config_data:
                continue
            value = self.config_data[field_info.name]
            expected = hints[field_info.name]
            if expected is bool and isinstance(value, str):
                value = self._parse_value(value)
            if not isinstance(value, expected):
                raise ConfigError(
                    f"Config field '{field_info.name}' expected {expected.__name__}, "
                    f"got {type(value).__name__}"
                )
            kwargs[field_info.name] = value

        return ContainerConfig(**kwargs)

    def to_dict(self) -> dict:
        """Export all config as dictionary."""
        return self.config_data.copy()
