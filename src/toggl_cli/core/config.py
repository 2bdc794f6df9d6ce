"""Configuration management for the Toggl client."""

import copy
import os
from pathlib import Path
from typing import Any, Optional

import yaml  # type: ignore[import-untyped]
from jsonschema import ValidationError, validate  # type: ignore[import-untyped]

LOCAL_CONFIG_NAME = ".toggl.yml"
CONFIG_ENV_VAR = "TOGGL_CONFIG"


def default_config_path() -> Path:
    """Path of the global config file, honoring $TOGGL_CONFIG."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".config" / "toggl-cli" / "config.yml"


def find_local_config(start: Optional[Path] = None) -> Optional[Path]:
    """Find the nearest local config file in ``start`` or one of its parents."""
    directory = (start or Path.cwd()).resolve()
    for candidate in [directory, *directory.parents]:
        path = candidate / LOCAL_CONFIG_NAME
        if path.is_file():
            return path
    return None


class ConfigManager:
    """Manage application configuration.

    The global file holds user-wide settings. A ``.toggl.yml`` in the working
    directory or any parent overrides it for that directory tree, typically
    to set the default project and description of a code base.
    """

    DEFAULT_CONFIG: dict[str, Any] = {
        "version": "1.0",
        "defaults": {
            "description": None,
            "project": None,
            "billable": None,
            "tags": [],
        },
        "picker": {
            "fzf": False,
            "fzf_command": "fzf",
            "history_size": 50,
        },
        "api": {
            "base_url": "https://api.track.toggl.com/api/v9",
            "proxy": None,
            "timeout": 30,
        },
        "advanced": {
            "log_level": "WARNING",
            "always_exit_zero": False,
        },
    }

    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "version": {"type": "string"},
            "defaults": {
                "type": "object",
                "properties": {
                    "description": {"type": ["string", "null"]},
                    "project": {"type": ["string", "integer", "null"]},
                    "billable": {"type": ["boolean", "null"]},
                    "tags": {"type": "array", "items": {"type": "string"}},
                },
            },
            "picker": {
                "type": "object",
                "properties": {
                    "fzf": {"type": "boolean"},
                    "fzf_command": {"type": "string", "minLength": 1},
                    "history_size": {"type": "integer", "minimum": 1, "maximum": 1000},
                },
            },
            "api": {
                "type": "object",
                "properties": {
                    "base_url": {"type": "string"},
                    "proxy": {"type": ["string", "null"]},
                    "timeout": {"type": "integer", "minimum": 1, "maximum": 600},
                },
            },
            "advanced": {
                "type": "object",
                "properties": {
                    "log_level": {
                        "type": "string",
                        "enum": ["DEBUG", "INFO", "WARNING", "ERROR"],
                    },
                    "always_exit_zero": {"type": "boolean"},
                },
            },
        },
        "required": ["version"],
    }

    def __init__(self, config_path: Optional[Path] = None, local_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Global config file. Defaults to $TOGGL_CONFIG or
                ~/.config/toggl-cli/config.yml
            local_path: Local config file. Defaults to the nearest
                .toggl.yml above the working directory
        """
        self.config_path = config_path or default_config_path()
        self.local_path = local_path if local_path is not None else find_local_config()
        self._global: dict[str, Any] = {}
        self._config: dict[str, Any] = {}
        self._load()

    @property
    def active_path(self) -> Path:
        """File that settings of the current directory come from."""
        return self.local_path or self.config_path

    def _load(self) -> None:
        """Load the global and local files and merge them over the defaults."""
        self._global = self._read(self.config_path)
        self._config = self._merge_with_defaults(self._global)
        if self.local_path is not None:
            self._deep_merge(self._config, self._read(self.local_path))
        self.validate()

    def _read(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        with open(path, encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}")
        if not isinstance(loaded, dict):
            raise ValueError(f"Invalid configuration in {path}: expected a mapping")
        return loaded

    def _merge_with_defaults(self, config: dict[str, Any]) -> dict[str, Any]:
        """Merge config with defaults to ensure all keys exist.

        Args:
            config: User configuration

        Returns:
            Merged configuration with all default keys
        """
        result = copy.deepcopy(self.DEFAULT_CONFIG)
        self._deep_merge(result, config)
        return result

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> None:
        """Deep merge override into base dictionary (in-place)."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., 'picker.fzf')
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get('picker.history_size')
            50
            >>> config.get('nonexistent.key', 'default')
            'default'
        """
        keys = key.split(".")
        value: Any = self._config
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
            if value is None:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a value in the global file using dot notation.

        Raises:
            ValueError: If configuration is invalid after setting

        Example:
            >>> config.set('picker.fzf', True)
        """
        updated = copy.deepcopy(self._global)
        section = updated
        keys = key.split(".")
        for k in keys[:-1]:
            if not isinstance(section.get(k), dict):
                section[k] = {}
            section = section[k]
        section[keys[-1]] = value

        self._check(self._merge_with_defaults(updated))
        self._global = updated
        self._config = self._merge_with_defaults(self._global)
        if self.local_path is not None:
            self._deep_merge(self._config, self._read(self.local_path))
        self.save()

    def _check(self, config: dict[str, Any]) -> None:
        try:
            validate(instance=config, schema=self.CONFIG_SCHEMA)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e.message}")

    def validate(self) -> bool:
        """Validate the merged configuration against the schema.

        Returns:
            True if valid

        Raises:
            ValueError: If configuration is invalid
        """
        self._check(self._config)
        return True

    def save(self) -> None:
        """Save the global settings to the global file."""
        self._write(self.config_path, {"version": self.DEFAULT_CONFIG["version"], **self._global})

    def init(self, path: Optional[Path] = None) -> Path:
        """Create a config file with the default settings.

        Args:
            path: File to create. Defaults to the global file.

        Returns:
            Path of the created file

        Raises:
            FileExistsError: If the file already exists
        """
        path = path or self.config_path
        if path.exists():
            raise FileExistsError(f"Configuration already exists: {path}")
        if path.name == LOCAL_CONFIG_NAME:
            template = {
                "version": self.DEFAULT_CONFIG["version"],
                "defaults": copy.deepcopy(self.DEFAULT_CONFIG["defaults"]),
            }
        else:
            template = copy.deepcopy(self.DEFAULT_CONFIG)
        self._write(path, template)
        return path

    def delete(self) -> Path:
        """Delete the active config file.

        Returns:
            Path of the deleted file

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = self.active_path
        if not path.exists():
            raise FileNotFoundError(f"No configuration file at {path}")
        path.unlink()
        return path

    def _write(self, path: Path, data: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def to_dict(self) -> dict[str, Any]:
        """Get the merged configuration as dictionary.

        Returns:
            Copy of configuration dictionary
        """
        return copy.deepcopy(self._config)
