# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Configuration loading and validation for esfinder."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = [".js", ".ts", ".jsx", ".tsx", ".mjs", ".cjs", ".vue"]

UNUSED_EXPORT_MODES = ("file", "symbol")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ConfigurationError(Exception):
    """Raised when configuration validation fails critically."""

    pass


class Config:
    """Configuration for an analysis context.

    Loads configuration from .esfinder.yml with validation and defaults.
    """

    DEFAULTS = {
        "extensions": list(DEFAULT_EXTENSIONS),
        "parser_backend": "typescript",
        "max_workers": 8,
        "ignore_patterns": [],
        # "file" reports exports of files nobody imports; "symbol" tracks names
        "unused_exports_mode": "file",
        "max_file_size_kb": 2048,
        # JSON log file under log_dir, installed when a context is created
        "log_to_file": False,
        "log_dir": ".esfinder_logs",
        "log_level": "INFO",
    }

    # Must match the names registered in parsers.registry
    KNOWN_BACKENDS = ("typescript", "javascript", "estree")

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses default location.
        """
        if config_path is None:
            config_path = Path.cwd() / ".esfinder.yml"

        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "Config":
        """Build a configuration from an in-memory mapping.

        Unlike file loading, invalid values here are programming errors.

        Raises:
            ConfigurationError: If a key is unknown or a value is invalid.
        """
        config = cls.__new__(cls)
        config.config_path = None
        config._config = cls._defaults()
        for key, value in values.items():
            if key not in cls.DEFAULTS:
                raise ConfigurationError(f"Unknown configuration parameter '{key}'")
            if not config._validate_parameter(key, value):
                raise ConfigurationError(f"Invalid value for '{key}': {value!r}")
            config._config[key] = value
        return config

    @classmethod
    def _defaults(cls) -> Dict[str, Any]:
        # Copy list values so instances never share mutable defaults
        return {k: list(v) if isinstance(v, list) else v for k, v in cls.DEFAULTS.items()}

    def _load_config(self) -> None:
        """Load and validate configuration from file."""
        if not self.config_path.exists():
            logger.info(f"Configuration file not found at {self.config_path}, using defaults")
            self._config = self._defaults()
            return

        try:
            with open(self.config_path, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f)

            if loaded_config is None:
                logger.warning("Configuration file is empty, using defaults")
                self._config = self._defaults()
                return

            if not isinstance(loaded_config, dict):
                logger.warning(
                    f"Configuration file must contain a YAML dictionary, "
                    f"got {type(loaded_config)}, using defaults"
                )
                self._config = self._defaults()
                return

            self._config = self._defaults()
            self._validate_and_merge(loaded_config)

        except yaml.YAMLError as e:
            logger.warning(
                f"Error parsing configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._defaults()
        except OSError as e:
            logger.warning(
                f"Unable to read configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._defaults()

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
        if not isinstance(value, expected_type):
            return False
        # bool is an int subclass
        if expected_type is int and isinstance(value, bool):
            return False

        if key in ("max_workers", "max_file_size_kb"):
            return value > 0
        elif key == "extensions":
            return bool(value) and all(
                isinstance(ext, str) and ext.startswith(".") and len(ext) > 1 for ext in value
            )
        elif key == "ignore_patterns":
            return all(isinstance(pattern, str) for pattern in value)
        elif key == "parser_backend":
            return value in self.KNOWN_BACKENDS
        elif key == "unused_exports_mode":
            return value in UNUSED_EXPORT_MODES
        elif key == "log_level":
            return value.upper() in LOG_LEVELS
        elif key == "log_dir":
            return bool(value.strip())

        return True

    @property
    def extensions(self) -> List[str]:
        """Recognized source extensions, in resolution priority order."""
        value = self._config["extensions"]
        assert isinstance(value, list)
        return value

    @property
    def parser_backend(self) -> str:
        """Name of the parser backend to use."""
        value = self._config["parser_backend"]
        assert isinstance(value, str)
        return value

    @property
    def max_workers(self) -> int:
        """Thread pool size for directory-wide analysis."""
        value = self._config["max_workers"]
        assert isinstance(value, int)
        return value

    @property
    def ignore_patterns(self) -> List[str]:
        """Additional fnmatch patterns to skip during file discovery."""
        value = self._config["ignore_patterns"]
        assert isinstance(value, list)
        return value

    @property
    def unused_exports_mode(self) -> str:
        """Granularity of unused-export detection.

        "file" reports every non-default export of a file that no other file
        imports. "symbol" reports each export that no other file imports by
        name; namespace and dynamic imports count as using every export.
        """
        value = self._config["unused_exports_mode"]
        assert isinstance(value, str)
        return value

    @property
    def max_file_size_kb(self) -> int:
        """Files larger than this are skipped rather than parsed."""
        value = self._config["max_file_size_kb"]
        assert isinstance(value, int)
        return value

    @property
    def log_to_file(self) -> bool:
        value = self._config["log_to_file"]
        assert isinstance(value, bool)
        return value

    @property
    def log_dir(self) -> Path:
        """Directory for JSON log files, relative to the working directory unless absolute."""
        value = self._config["log_dir"]
        assert isinstance(value, str)
        return Path(value).expanduser()

    @property
    def log_level(self) -> int:
        """Logging level as a logging module constant."""
        value = self._config["log_level"]
        assert isinstance(value, str)
        level = logging.getLevelName(value.upper())
        assert isinstance(level, int)
        return level
