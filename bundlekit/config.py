"""
Config system - Layered bundling configuration.

Merge order (later overrides earlier):
1. Defaults (``BundlingConfig`` field defaults)
2. Config files (JSON or YAML, glob patterns supported)
3. ``.env`` file
4. Environment variables (``BUNDLEKIT_`` prefix, ``__`` for nesting)
5. Manual overrides

Example config (YAML)::

    bundling:
      enabled: true
      minimize: true
      noMinimize: ["~/css/vendor/already-tiny.css"]
      replacements:
        rtl: false
      bundles:
        Base:
          - ~/css/reset.css
          - ~/lib/select2-{version}.css
        Site:
          - dynamic://CssBundle.Base
          - ~/css/site{!rtl}.css
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from glob import glob
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import dotenv_values

from .faults import ConfigInvalidFault

__all__ = ["BundlingConfig", "ConfigLoader"]

logger = logging.getLogger("bundlekit.config")

# Wire-format (camelCase) option names accepted alongside field names
_ALIASES = {
    "noMinimize": "no_minimize",
    "useMinifiedSiblingFiles": "use_minified_files",
    "useMinifiedFiles": "use_minified_files",
    "useMinCSS": "use_minified_files",
    "webRoot": "web_root",
    "basePath": "base_path",
    "dynamicPath": "dynamic_path",
}


@dataclass
class BundlingConfig:
    """
    Bundling options.

    Attributes:
        enabled: Serve bundles instead of individual sources.
        bundles: Bundle key -> ordered raw source references.
        replacements: Values for ``{key}`` / ``{!key}`` placeholders.
        minimize: Minify sources while materializing bundles.
        no_minimize: Source references that are never minified.
        use_minified_files: Prefer ``x.min.css`` beside ``x.css`` over
            running the minifier.
        web_root: Directory static sources are read from.
        base_path: URL path the application is mounted at.
        dynamic_path: Route (below ``base_path``) dynamic scripts are
            served from.
    """
    enabled: bool = False
    bundles: Dict[str, List[str]] = field(default_factory=dict)
    replacements: Dict[str, Any] = field(default_factory=dict)
    minimize: bool = False
    no_minimize: List[str] = field(default_factory=list)
    use_minified_files: bool = False
    web_root: str = "wwwroot"
    base_path: str = "/"
    dynamic_path: str = "DynJS.axd"

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "BundlingConfig":
        """
        Build and validate a config from a plain mapping.

        Raises:
            ConfigInvalidFault: if an option has the wrong shape.
        """
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = _ALIASES.get(key, key)
            if name in known:
                values[name] = value
            else:
                logger.debug("Ignoring unknown bundling option %r", key)

        config = cls(**values)
        config.validate()
        return config

    def validate(self) -> None:
        for name in ("enabled", "minimize", "use_minified_files"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigInvalidFault(name, "expected a boolean")

        if self.bundles is None:
            self.bundles = {}
        if not isinstance(self.bundles, Mapping):
            raise ConfigInvalidFault("bundles", "expected a mapping of bundle key to source list")
        for key, sources in self.bundles.items():
            if sources is None:
                continue
            if isinstance(sources, str) or not isinstance(sources, (list, tuple)):
                raise ConfigInvalidFault(f"bundles.{key}", "expected a list of source references")
            if not all(isinstance(s, str) or s is None for s in sources):
                raise ConfigInvalidFault(f"bundles.{key}", "source references must be strings")

        if self.replacements is None:
            self.replacements = {}
        if not isinstance(self.replacements, Mapping):
            raise ConfigInvalidFault("replacements", "expected a mapping")

        if self.no_minimize is None:
            self.no_minimize = []
        if isinstance(self.no_minimize, str) or not all(isinstance(s, str) for s in self.no_minimize):
            raise ConfigInvalidFault("no_minimize", "expected a list of source references")
        self.no_minimize = list(self.no_minimize)

        for name in ("web_root", "base_path", "dynamic_path"):
            if not isinstance(getattr(self, name), str):
                raise ConfigInvalidFault(name, "expected a string")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "bundles": {key: list(sources or []) for key, sources in self.bundles.items()},
            "replacements": dict(self.replacements),
            "minimize": self.minimize,
            "no_minimize": list(self.no_minimize),
            "use_minified_files": self.use_minified_files,
            "web_root": self.web_root,
            "base_path": self.base_path,
            "dynamic_path": self.dynamic_path,
        }


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources with precedence:
    overrides > environment variables > .env file > config files > defaults
    """

    def __init__(self, env_prefix: str = "BUNDLEKIT_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[List[str]] = None,
        env_prefix: str = "BUNDLEKIT_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from multiple sources with proper merge strategy.

        Args:
            paths: Config file paths (glob patterns supported)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        for pattern in paths or []:
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_from_files(self, pattern: str):
        """Load config from JSON or YAML files."""
        matches = sorted(glob(pattern))
        if not matches:
            logger.warning("No config file matches %s", pattern)

        for path_str in matches:
            path = Path(path_str)
            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)
            else:
                logger.warning("Unsupported config file type: %s", path)

    def _load_json_file(self, path: Path):
        """Load config from JSON file."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
            if data:
                self._merge_dict(self.config_data, data)

    def _load_yaml_file(self, path: Path):
        """Load config from YAML file."""
        import yaml
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            if data:
                self._merge_dict(self.config_data, data)

    def _load_env_file(self, path: str):
        """Load prefixed keys from a .env file."""
        if not Path(path).exists():
            return

        for key, value in dotenv_values(path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert BUNDLEKIT_BUNDLING__MINIMIZE to nested dict."""
        key = key[len(self.env_prefix):]

        # Split by double underscore for nested keys
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

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

    def get_bundling_config(self, section: str = "bundling") -> BundlingConfig:
        """
        Build the bundling config from *section*, or from the root when
        the section is absent.
        """
        data = self.get(section)
        if data is None:
            data = self.config_data
        if not isinstance(data, dict):
            raise ConfigInvalidFault(section, "expected a mapping")
        return BundlingConfig.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return self.config_data
