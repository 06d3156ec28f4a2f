"""
Config system - typed injector configuration with layered sources.

Merge precedence (later overrides earlier):
defaults < .env file < environment variables < manual overrides
"""

from typing import Any, Dict, Optional, Type, TypeVar, get_type_hints
from dataclasses import dataclass, fields, is_dataclass, MISSING
from pathlib import Path
import json
import logging
import os

from dotenv import dotenv_values


T = TypeVar("T")


class ConfigError(Exception):
    """Raised when configuration validation fails."""
    pass


@dataclass
class InjectorConfig:
    """Runtime options for an :class:`~depinject.core.Injector`."""

    thread_safe: bool = True  # guard resolution with a per-injector lock
    diagnostics: bool = False  # attach the logging diagnostic listener
    log_level: str = "DEBUG"
    validate_on_start: bool = False  # static graph check before eager bootstrap

    @property
    def log_level_value(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        if not isinstance(level, int):
            raise ConfigError(f"Unknown log level: {self.log_level!r}")
        return level


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources.

    Environment keys are matched by prefix and lower-cased after it is
    stripped: ``DEPINJECT_THREAD_SAFE=false`` becomes ``thread_safe=False``.
    """

    def __init__(self, env_prefix: str = "DEPINJECT_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        env_prefix: str = "DEPINJECT_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        environ: Optional[Dict[str, str]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from all sources.

        Args:
            env_prefix: Prefix for environment variables
            env_file: Path to .env file (missing file is ignored)
            overrides: Manual overrides (highest precedence)
            environ: Environment mapping, defaults to ``os.environ``

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env(os.environ if environ is None else environ)

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_env_file(self, path: str):
        """Load prefixed keys from a .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return

        for key, value in dotenv_values(env_path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _load_from_env(self, environ):
        """Load config from environment variables."""
        for key, value in environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert DEPINJECT_SECTION__KEY to a nested dict entry."""
        key = key[len(self.env_prefix):]

        # Double underscore separates nested keys
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            current = current.setdefault(part, {})

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes", "1"):
            return True
        if value.lower() in ("false", "no", "0"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current = self.config_data

        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current

    def to_dict(self) -> dict:
        """Export all config as dictionary."""
        return self.config_data.copy()

    def build(self, config_class: Type[T] = InjectorConfig) -> T:
        """Instantiate a dataclass config, validating field types."""
        if not is_dataclass(config_class):
            raise ConfigError(f"{config_class!r} is not a dataclass")

        hints = get_type_hints(config_class)
        kwargs = {}

        for field_info in fields(config_class):
            field_name = field_info.name

            if field_name in self.config_data:
                value = self.config_data[field_name]
                expected = hints.get(field_name, Any)
                if expected is not Any and not isinstance(value, expected):
                    raise ConfigError(
                        f"Config field '{field_name}' expected {expected.__name__}, "
                        f"got {type(value).__name__}"
                    )
                kwargs[field_name] = value
            elif field_info.default is MISSING and field_info.default_factory is MISSING:
                raise ConfigError(f"Required config field '{field_name}' not provided")

        return config_class(**kwargs)


def load_config(env_file: Optional[str] = ".env", **overrides: Any) -> InjectorConfig:
    """Shortcut: load :class:`InjectorConfig` from the standard sources."""
    return ConfigLoader.load(env_file=env_file, overrides=overrides or None).build(InjectorConfig)
