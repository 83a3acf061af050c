import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import yaml

# Set up logger
logger = logging.getLogger(__name__)


class BaseConfig(ABC):
    """
    Base class for YAML-backed engine settings.

    Values are addressed with dot-separated keys ('engine.alpha',
    'paths.q_table'). Subclasses supply the section rules checked by
    `validate_config` and the starter file written by `create_project_template`.
    """

    def __init__(self, config_path: Optional[str] = None, preload: bool = False):
        """
        Args:
            config_path (str): Path to the YAML settings file.
            preload (bool): Read the file now instead of starting from an empty mapping.

        Raises:
            FileNotFoundError: If preloading and the file does not exist.
            ValueError: If preloading and the file is not a YAML mapping.
        """
        self.config_path = config_path
        self.config: Dict[str, Any] = {}

        if preload:
            if not config_path:
                raise ValueError("Configuration path must be provided for preloading.")
            self.config = self._load_config(config_path)

    def _load_config(self, config_path: str) -> Dict[str, Any]:
        if not os.path.isfile(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as file:
                data = yaml.safe_load(file) or {}
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            raise ValueError(f"Failed to parse YAML configuration file: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping, got {type(data).__name__}")
        return data

    def get_value(self, key: str, default: Any = None) -> Any:
        """
        Look up a value by dotted key, e.g. 'timeouts.http'.

        Returns `default` when any segment of the path is missing or
        the path runs through a non-mapping value.
        """
        value = self.config
        try:
            for part in key.split('.'):
                value = value[part]
            return value
        except (KeyError, TypeError):
            return default

    def set_value(self, key: str, value: Any) -> None:
        """Assign a value by dotted key, creating or replacing intermediate sections."""
        *parents, leaf = key.split('.')
        section = self.config

        for part in parents:
            if not isinstance(section.get(part), dict):
                section[part] = {}
            section = section[part]

        section[leaf] = value
        logger.debug(f"Set configuration value: {key} = {value}")

    def update_config(self, updates: Dict[str, Any]) -> None:
        """Apply several dotted-key assignments (overrides from code or tests)."""
        for key, value in updates.items():
            self.set_value(key, value)

        logger.info(f"Updated {len(updates)} configuration values")

    def validate_config(self) -> Tuple[bool, str]:
        """
        Validate the loaded settings.

        Returns:
            bool: True if the settings are usable.
            str: Validation message.
        """
        return self._validate_config()

    @abstractmethod
    def _validate_config(self) -> Tuple[bool, str]:
        pass

    @abstractmethod
    def create_project_template(self, base_path: str = ".") -> Tuple[bool, str]:
        """
        Write a starter settings file under `base_path`.

        Returns:
            Tuple[bool, str]: Whether the file was created, and a message.
        """
        pass
