"""
Configuration base classes for the campus microgrid engine.
Provides file-backed, validatable configuration objects.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from typing import Dict, Any, Union, List, Type, TypeVar
from pathlib import Path
from enum import Enum
import json
import logging

import yaml

from ..exceptions import ConfigurationError


T = TypeVar("T")


class ConfigFormat(Enum):
    """Supported configuration file formats."""
    YAML = "yaml"
    JSON = "json"


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add a validation error."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a validation warning."""
        self.warnings.append(message)

    def merge(self, other: "ConfigValidationResult", prefix: str = "") -> None:
        """Fold another result into this one, prefixing its messages."""
        for error in other.errors:
            self.add_error(f"{prefix}{error}")
        for warning in other.warnings:
            self.add_warning(f"{prefix}{warning}")


def section_from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
    """Build a section dataclass from a dict, ignoring unknown keys.

    Lists are turned back into tuples where the field default is a tuple,
    since YAML and JSON have no tuple type.
    """
    data = data or {}
    kwargs = {}
    for f in fields(cls):
        if f.name not in data:
            continue
        value = data[f.name]
        if isinstance(value, list) and isinstance(f.default, tuple):
            value = tuple(value)
        kwargs[f.name] = value
    return cls(**kwargs)


class BaseConfig(ABC):
    """Abstract base class for top-level configuration objects."""

    @property
    def _logger(self) -> logging.Logger:
        return logging.getLogger(f"microgrid.config.{self.__class__.__name__}")

    @abstractmethod
    def validate(self) -> ConfigValidationResult:
        """Validate the configuration."""
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        pass

    @classmethod
    @abstractmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaseConfig':
        """Create configuration from dictionary."""
        pass

    def save_to_file(self, file_path: Union[str, Path], format: ConfigFormat = ConfigFormat.YAML) -> None:
        """Save configuration to file."""
        file_path = Path(file_path)
        data = self.to_dict()

        if format == ConfigFormat.YAML:
            with open(file_path, 'w') as f:
                yaml.safe_dump(data, f, default_flow_style=False, indent=2)
        elif format == ConfigFormat.JSON:
            with open(file_path, 'w') as f:
                json.dump(data, f, indent=2)
        else:
            raise ConfigurationError(f"Unsupported format: {format}")

        self._logger.info(f"Saved configuration to {file_path}")

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> 'BaseConfig':
        """Load configuration from file.

        Raises:
            FileNotFoundError: if the file does not exist.
            ConfigurationError: if the file cannot be parsed or does not
                describe a configuration.
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        try:
            if file_path.suffix.lower() in ['.yaml', '.yml']:
                with open(file_path, 'r') as f:
                    data = yaml.safe_load(f)
            elif file_path.suffix.lower() == '.json':
                with open(file_path, 'r') as f:
                    data = json.load(f)
            else:
                raise ConfigurationError(f"Unsupported file format: {file_path.suffix}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot parse configuration file {file_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file {file_path} must contain a mapping, got {type(data).__name__}"
            )

        try:
            config = cls.from_dict(data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration in {file_path}: {e}") from e

        config._logger.info(f"Loaded configuration from {file_path}")
        return config

    def merge(self, other: 'BaseConfig') -> 'BaseConfig':
        """Merge this configuration with another."""
        merged = self._deep_merge(self.to_dict(), other.to_dict())
        return self.__class__.from_dict(merged)

    @staticmethod
    def _deep_merge(dict1: Dict[str, Any], dict2: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = dict1.copy()

        for key, value in dict2.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = BaseConfig._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
