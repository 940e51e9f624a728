"""
Config system - Layered typed configuration with validation.

Merge precedence (later overrides earlier):
defaults < YAML file < .env file < RM_* environment variables < overrides
"""

from typing import Any, Dict, Optional, get_args, get_origin
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
import json
import logging
import os
import types

import yaml
from dotenv import dotenv_values

from .faults import ConfigInvalidFault


@dataclass(frozen=True)
class RoutemarkConfig:
    """
    Process-wide routemark settings.

    Attributes:
        strict_bindings: Raise on a second, different verb binding of one
            method. When False the last binding wins and a warning is logged.
        default_instantiation: "singleton" or "per_request" controller instances
        text_content_type: Content type for str method results
        json_content_type: Content type for JSON method results
        content_types: Extra short-name -> MIME mappings for ContentType()
        views_dir: Template directory for the Jinja2 view renderer
        log_level: Level used by configure_logging()
    """
    strict_bindings: bool = True
    default_instantiation: str = "singleton"
    text_content_type: str = "text/plain; charset=utf-8"
    json_content_type: str = "application/json; charset=utf-8"
    content_types: Dict[str, str] = field(default_factory=dict)
    views_dir: Optional[str] = None
    log_level: str = "INFO"

    def __post_init__(self):
        if self.default_instantiation not in ("singleton", "per_request"):
            raise ConfigInvalidFault(
                "default_instantiation",
                f"expected 'singleton' or 'per_request', got {self.default_instantiation!r}",
            )


class ConfigLoader:
    """
    Loads and merges routemark configuration from multiple sources.

    Example:
        config = ConfigLoader.load(path="routemark.yaml", env_file=".env")
        set_config(config.build())
    """

    def __init__(self, env_prefix: str = "RM_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        path: Optional[str] = None,
        env_prefix: str = "RM_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration with proper merge strategy.

        Args:
            path: YAML or JSON config file (routemark.yaml is picked up if present)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)
        """
        loader = cls(env_prefix=env_prefix)

        if path is None and Path("routemark.yaml").exists():
            path = "routemark.yaml"
        if path:
            loader._load_file(Path(path))

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_file(self, path: Path):
        """Load config from a YAML or JSON file."""
        if not path.exists():
            return
        with open(path) as f:
            if path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        if data:
            self._merge_dict(self.config_data, data)

    def _load_env_file(self, path: str):
        """Load prefixed keys from a .env file."""
        if not Path(path).exists():
            return
        for key, value in dotenv_values(path).items():
            if key.startswith(self.env_prefix) and value is not None:
                self._set_nested(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert RM_CONTENT_TYPES__CSV=text/csv to nested dict."""
        key = key[len(self.env_prefix):]
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

    def build(self) -> RoutemarkConfig:
        """Instantiate and validate a RoutemarkConfig from the merged data."""
        kwargs = {}
        for field_info in fields(RoutemarkConfig):
            if field_info.name not in self.config_data:
                continue
            value = self.config_data[field_info.name]
            if not self._check_type(value, field_info.type):
                raise ConfigInvalidFault(
                    field_info.name,
                    f"expected {field_info.type}, got {type(value).__name__}",
                )
            kwargs[field_info.name] = value
        return RoutemarkConfig(**kwargs)

    def _check_type(self, value: Any, expected_type: Any) -> bool:
        """Basic type checking."""
        origin = get_origin(expected_type)
        if origin is types.UnionType or str(origin) == "typing.Union":
            if value is None:
                return True
            args = get_args(expected_type)
            if args:
                return self._check_type(value, args[0])

        if origin:
            return isinstance(value, origin)

        try:
            return isinstance(value, expected_type)
        except TypeError:
            return True

    def to_dict(self) -> dict:
        """Export all config as dictionary."""
        return self.config_data.copy()


_active_config = RoutemarkConfig()


def get_config() -> RoutemarkConfig:
    """Return the active process-wide configuration."""
    return _active_config


def set_config(config: Optional[RoutemarkConfig] = None, **changes: Any) -> RoutemarkConfig:
    """
    Install a configuration (or a modified copy of the active one).

    Returns the previously active configuration so callers can restore it.
    """
    global _active_config
    previous = _active_config
    base = config if config is not None else _active_config
    _active_config = replace(base, **changes) if changes else base
    return previous


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the ``routemark`` logger hierarchy with a stream handler."""
    level = (level or _active_config.log_level).upper()
    logger = logging.getLogger("routemark")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level)
