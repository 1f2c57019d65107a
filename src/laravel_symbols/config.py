# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Configuration loading and validation for Laravel symbol resolution."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".laravel_symbols.yml"


class Config:
    """Configuration for the Laravel symbol engine.

    Loads configuration from .laravel_symbols.yml in the project root with
    validation and defaults. All paths are relative to the project root.
    """

    DEFAULTS = {
        # Cache TTLs (seconds)
        "completion_ttl_seconds": 30,
        "external_ttl_seconds": 60,
        # External route query (php artisan route:list --json)
        "use_route_query": False,
        "route_query_timeout_seconds": 15,
        "warm_up_routes": True,
        "sail_enabled": True,
        "command_prefix": "",
        "php_binary": "php",
        # Source locations
        "route_files": [
            "routes/web.php",
            "routes/api.php",
            "routes/auth.php",
            "routes/channels.php",
            "routes/console.php",
        ],
        "template_root": "resources/views",
        # Lowercase root first, legacy capitalized root second
        "component_roots": ["resources/js/pages", "resources/js/Pages"],
        "component_extensions": [".vue", ".tsx", ".jsx", ".ts", ".js", ".svelte"],
        "config_dir": "config",
        "lang_dirs": ["lang", "resources/lang"],
        "locale": "en",
        "env_files": [
            ".env",
            ".env.example",
            ".env.local",
            ".env.production",
            ".env.staging",
            ".env.testing",
        ],
        "models_root": "app/Models",
        "controllers_root": "app/Http/Controllers",
        "livewire_roots": ["app/Livewire", "app/Http/Livewire"],
        "migrations_dir": "database/migrations",
        # Scanning behaviour
        "max_scan_depth": 12,
        "nested_keys": "flatten",
        "watch_files": False,
    }

    NESTED_KEY_MODES = ("flatten", "qualified")

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses
                .laravel_symbols.yml in the current directory.
        """
        if config_path is None:
            config_path = Path.cwd() / CONFIG_FILENAME

        self.config_path = config_path
        self._config: Dict[str, Any] = {}
        self._load_config()

    @classmethod
    def for_project(cls, project_root: Path) -> "Config":
        """Load the configuration file that lives in a project root."""
        return cls(config_path=Path(project_root) / CONFIG_FILENAME)

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "Config":
        """Build a configuration from an in-memory dict (validated like a file)."""
        config = cls.__new__(cls)
        config.config_path = None
        config._config = cls.DEFAULTS.copy()
        config._validate_and_merge(values)
        return config

    def _load_config(self) -> None:
        """Load and validate configuration from file."""
        if not self.config_path.exists():
            logger.info(f"Configuration file not found at {self.config_path}, using defaults")
            self._config = self.DEFAULTS.copy()
            return

        try:
            with open(self.config_path, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f)

            if loaded_config is None:
                logger.warning("Configuration file is empty, using defaults")
                self._config = self.DEFAULTS.copy()
                return

            if not isinstance(loaded_config, dict):
                logger.warning(
                    f"Configuration file must contain a YAML dictionary, "
                    f"got {type(loaded_config)}, using defaults"
                )
                self._config = self.DEFAULTS.copy()
                return

            self._config = self.DEFAULTS.copy()
            self._validate_and_merge(loaded_config)

        except yaml.YAMLError as e:
            logger.warning(
                f"Error parsing configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self.DEFAULTS.copy()
        except OSError as e:
            logger.warning(
                f"Unable to read configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self.DEFAULTS.copy()

    def _validate_and_merge(self, loaded_config: Dict[str, Any]) -> None:
        """Validate loaded configuration and merge with defaults.

        Invalid parameters are logged as warnings and defaults are used.
        """
        for key, value in loaded_config.items():
            if key not in self.DEFAULTS:
                logger.warning(f"Unknown configuration parameter '{key}', ignoring")
                continue

            if not self._validate_parameter(key, value):
                logger.warning(
                    f"Invalid value for '{key}': {value}, using default {self.DEFAULTS[key]}"
                )
                continue

            self._config[key] = value

    def _validate_parameter(self, key: str, value: Any) -> bool:
        """Validate a configuration parameter.

        Returns:
            True if valid, False if invalid
        """
        expected_type = type(self.DEFAULTS[key])
        # bool is a subclass of int; never accept it for numeric settings
        if expected_type is int and isinstance(value, bool):
            return False
        if not isinstance(value, expected_type):
            return False

        if key in ("completion_ttl_seconds", "external_ttl_seconds"):
            return value >= 0
        elif key == "route_query_timeout_seconds":
            return 0 < value <= 600
        elif key == "max_scan_depth":
            return 0 < value <= 64
        elif key == "nested_keys":
            return value in self.NESTED_KEY_MODES
        elif isinstance(value, list):
            return all(isinstance(item, str) and item for item in value)
        elif key in (
            "template_root",
            "config_dir",
            "models_root",
            "controllers_root",
            "migrations_dir",
        ):
            return bool(value)

        return True

    def to_dict(self) -> Dict[str, Any]:
        """Return a copy of the effective configuration."""
        return dict(self._config)

    @property
    def completion_ttl_seconds(self) -> int:
        """TTL for categories scanned from local files."""
        value = self._config["completion_ttl_seconds"]
        assert isinstance(value, int)
        return value

    @property
    def external_ttl_seconds(self) -> int:
        """TTL for categories sourced from an external query or IDE helper files."""
        value = self._config["external_ttl_seconds"]
        assert isinstance(value, int)
        return value

    @property
    def use_route_query(self) -> bool:
        """Whether route names are also sourced from `artisan route:list --json`."""
        value = self._config["use_route_query"]
        assert isinstance(value, bool)
        return value

    @property
    def route_query_timeout_seconds(self) -> int:
        """Timeout applied to the artisan route query subprocess."""
        value = self._config["route_query_timeout_seconds"]
        assert isinstance(value, int)
        return value

    @property
    def warm_up_routes(self) -> bool:
        """Whether the service pre-warms the route index in the background."""
        value = self._config["warm_up_routes"]
        assert isinstance(value, bool)
        return value

    @property
    def sail_enabled(self) -> bool:
        """Whether artisan commands are wrapped with Laravel Sail when detected."""
        value = self._config["sail_enabled"]
        assert isinstance(value, bool)
        return value

    @property
    def command_prefix(self) -> str:
        """Explicit command prefix (e.g. `docker compose exec app`); overrides Sail."""
        value = self._config["command_prefix"]
        assert isinstance(value, str)
        return value

    @property
    def php_binary(self) -> str:
        """PHP executable used to run artisan."""
        value = self._config["php_binary"]
        assert isinstance(value, str)
        return value

    @property
    def route_files(self) -> List[str]:
        """Route definition files in search precedence order."""
        value = self._config["route_files"]
        assert isinstance(value, list)
        return value

    @property
    def template_root(self) -> str:
        """Blade template root."""
        value = self._config["template_root"]
        assert isinstance(value, str)
        return value

    @property
    def component_roots(self) -> List[str]:
        """Frontend page component roots, tried in order."""
        value = self._config["component_roots"]
        assert isinstance(value, list)
        return value

    @property
    def component_extensions(self) -> List[str]:
        """Component file extensions, tried in order."""
        value = self._config["component_extensions"]
        assert isinstance(value, list)
        return value

    @property
    def config_dir(self) -> str:
        """Directory holding config/*.php files."""
        value = self._config["config_dir"]
        assert isinstance(value, str)
        return value

    @property
    def lang_dirs(self) -> List[str]:
        """Translation roots (each containing per-locale subdirectories)."""
        value = self._config["lang_dirs"]
        assert isinstance(value, list)
        return value

    @property
    def locale(self) -> str:
        """Preferred locale when resolving translation keys."""
        value = self._config["locale"]
        assert isinstance(value, str)
        return value

    @property
    def env_files(self) -> List[str]:
        """Dotenv files in precedence order."""
        value = self._config["env_files"]
        assert isinstance(value, list)
        return value

    @property
    def models_root(self) -> str:
        """Eloquent models directory."""
        value = self._config["models_root"]
        assert isinstance(value, str)
        return value

    @property
    def controllers_root(self) -> str:
        """HTTP controllers directory, used for route handler fallback."""
        value = self._config["controllers_root"]
        assert isinstance(value, str)
        return value

    @property
    def max_scan_depth(self) -> int:
        """Maximum directory depth for recursive scans."""
        value = self._config["max_scan_depth"]
        assert isinstance(value, int)
        return value

    @property
    def nested_keys(self) -> str:
        """How nested config/translation keys are named: flatten or qualified.

        "flatten" emits `file.key` for every `'key' =>` line regardless of depth.
        "qualified" tracks array nesting and emits `file.parent.key`.
        """
        value = self._config["nested_keys"]
        assert isinstance(value, str)
        return value

    @property
    def watch_files(self) -> bool:
        """Whether a watchdog observer invalidates the cache on source changes."""
        value = self._config["watch_files"]
        assert isinstance(value, bool)
        return value

    @property
    def livewire_roots(self) -> List[str]:
        """Livewire component class roots (v3 first, v2 second)."""
        value = self._config["livewire_roots"]
        assert isinstance(value, list)
        return value

    @property
    def migrations_dir(self) -> str:
        """Directory of timestamped migration files."""
        value = self._config["migrations_dir"]
        assert isinstance(value, str)
        return value
