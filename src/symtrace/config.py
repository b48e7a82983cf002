# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Configuration loading and validation for symbol tracing."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".symtrace.yml"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when configuration validation fails critically."""

    pass


class Config:
    """Configuration for namespace loading and dependency resolution.

    Loads configuration from .symtrace.yml with validation and defaults.
    """

    DEFAULTS = {
        # Namespace loading
        "include_private": True,  # Include names starting with "_"
        "include_classes": True,
        "include_assignments": True,  # Module-level NAME = value
        "max_file_size_bytes": 10 * 1024 * 1024,
        # Resolution
        "max_workers": 1,  # >1 extracts symbols in a thread pool
        # Logging
        "log_level": "INFO",  # Used by setup_logging()
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses default location.
        """
        if config_path is None:
            config_path = Path.cwd() / CONFIG_FILENAME

        self.config_path = config_path
        self._config: Dict[str, Any] = {}
        self._load_config()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "Config":
        """Build a configuration from an in-memory dictionary.

        Values are validated exactly like values read from a file.

        Raises:
            ConfigurationError: If ``values`` is not a dictionary.
        """
        if not isinstance(values, dict):
            raise ConfigurationError(f"Configuration must be a dictionary, got {type(values)}")

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
                f"Error reading configuration file {self.config_path}: {e}, using defaults"
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
        # bool is a subclass of int, reject it for numeric parameters
        if isinstance(value, bool) and expected_type is not bool:
            return False
        if not isinstance(value, expected_type):
            return False

        if key in ("max_workers", "max_file_size_bytes"):
            return bool(value > 0)

        if key == "log_level":
            return value.upper() in LOG_LEVELS

        return True

    def to_dict(self) -> Dict[str, Any]:
        """Return the effective configuration values."""
        return dict(self._config)

    @property
    def include_private(self) -> bool:
        """Whether names starting with an underscore are part of the namespace."""
        value = self._config["include_private"]
        assert isinstance(value, bool)
        return value

    @property
    def include_classes(self) -> bool:
        """Whether top-level classes are part of the namespace."""
        value = self._config["include_classes"]
        assert isinstance(value, bool)
        return value

    @property
    def include_assignments(self) -> bool:
        """Whether module-level assignments are part of the namespace."""
        value = self._config["include_assignments"]
        assert isinstance(value, bool)
        return value

    @property
    def max_file_size_bytes(self) -> int:
        """Largest source file that will be read when loading a namespace."""
        value = self._config["max_file_size_bytes"]
        assert isinstance(value, int)
        return value

    @property
    def max_workers(self) -> int:
        """Number of worker threads used to extract symbols.

        1 means extraction runs sequentially in the calling thread.
        """
        value = self._config["max_workers"]
        assert isinstance(value, int)
        return value

    @property
    def log_level(self) -> int:
        """Numeric logging level for the symtrace package logger."""
        value = self._config["log_level"]
        assert isinstance(value, str)
        level = logging.getLevelName(value.upper())
        assert isinstance(level, int)
        return level
