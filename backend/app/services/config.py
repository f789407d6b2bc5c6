"""Configuration loading and validation."""

import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "BTC_PRICE_CONFIG"


@dataclass
class ConfigValidationError:
    """Represents a configuration validation error."""
    path: str
    message: str


class ConfigValidationException(Exception):
    """Raised when config validation fails."""

    def __init__(self, errors: List[ConfigValidationError]):
        self.errors = errors
        messages = [f"{e.path}: {e.message}" for e in errors]
        super().__init__("Configuration validation failed:\n" + "\n".join(messages))


CONFIG_SCHEMA = {
    "server": {
        "type": "dict",
        "properties": {
            "host": {"type": "str"},
            "port": {"type": "int", "min": 1, "max": 65535},
            "debug": {"type": "bool"},
        }
    },
    "price_data": {
        "type": "dict",
        "properties": {
            "base_url": {"type": "str"},
            "cache_ttl_seconds": {"type": "float", "min": 0},
        }
    },
    "logging": {
        "type": "dict",
        "properties": {
            "level": {"type": "str", "options": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
            "format": {"type": "str"},
        }
    },
}

# bool is excluded from numeric types even though it subclasses int
SCALAR_TYPES = {
    "str": (str,),
    "int": (int,),
    "float": (int, float),
    "bool": (bool,),
    "list": (list,),
}


class ConfigService:
    """Loads config.yaml and answers dot-notation lookups."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize config service.

        Args:
            config_path: Path to config file. Falls back to $BTC_PRICE_CONFIG,
                then backend/config.yaml.
        """
        if config_path is None:
            config_path = os.environ.get(CONFIG_PATH_ENV)
        if config_path is None:
            backend_dir = Path(__file__).parent.parent.parent
            config_path = str(backend_dir / "config.yaml")

        self.config_path = config_path
        self._config: Dict[str, Any] = {}

    def load_and_validate(self) -> Dict[str, Any]:
        """Load and validate the configuration file.

        A missing file is not an error; defaults apply.

        Raises:
            ConfigValidationException: If the file is not valid YAML or
                does not match the schema.
        """
        if not os.path.exists(self.config_path):
            logger.warning(f"Config file not found at {self.config_path}, using defaults")
            self._config = {}
            return self._config

        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigValidationException([
                ConfigValidationError(path="", message=f"Invalid YAML syntax: {e}")
            ])

        config = self.validate(config if config is not None else {})
        self._config = config
        logger.info(f"Configuration loaded and validated from {self.config_path}")
        return config

    def validate(self, config: Any) -> Dict[str, Any]:
        """Validate an already-parsed config document against the schema."""
        if not isinstance(config, dict):
            raise ConfigValidationException([
                ConfigValidationError(
                    path="",
                    message=f"Config must be a dictionary, got {type(config).__name__}"
                )
            ])

        errors = self._validate_dict(config, CONFIG_SCHEMA, "")
        if errors:
            raise ConfigValidationException(errors)
        return config

    def _validate_dict(
        self,
        data: Dict[str, Any],
        schema: Dict[str, Any],
        path: str
    ) -> List[ConfigValidationError]:
        errors = []

        for key in data:
            if key not in schema:
                errors.append(ConfigValidationError(
                    path=f"{path}.{key}" if path else key,
                    message=f"Unknown configuration key '{key}'"
                ))

        for key, prop_schema in schema.items():
            current_path = f"{path}.{key}" if path else key
            if key not in data:
                if prop_schema.get("required", False):
                    errors.append(ConfigValidationError(
                        path=current_path,
                        message="Required field missing"
                    ))
                continue
            errors.extend(self._validate_value(data[key], prop_schema, current_path))

        return errors

    def _validate_value(
        self,
        value: Any,
        schema: Dict[str, Any],
        path: str
    ) -> List[ConfigValidationError]:
        expected_type = schema.get("type")

        if expected_type == "dict":
            if not isinstance(value, dict):
                return [ConfigValidationError(
                    path=path,
                    message=f"Expected dict, got {type(value).__name__}"
                )]
            return self._validate_dict(value, schema.get("properties", {}), path)

        expected = SCALAR_TYPES.get(expected_type)
        if expected is None:
            return []

        is_numeric = expected_type in ("int", "float")
        if not isinstance(value, expected) or (is_numeric and isinstance(value, bool)):
            return [ConfigValidationError(
                path=path,
                message=f"Expected {expected_type}, got {type(value).__name__}"
            )]

        errors = []
        if is_numeric:
            if "min" in schema and value < schema["min"]:
                errors.append(ConfigValidationError(
                    path=path,
                    message=f"Value {value} is below minimum {schema['min']}"
                ))
            if "max" in schema and value > schema["max"]:
                errors.append(ConfigValidationError(
                    path=path,
                    message=f"Value {value} is above maximum {schema['max']}"
                ))

        if "options" in schema and value not in schema["options"]:
            errors.append(ConfigValidationError(
                path=path,
                message=f"Value '{value}' not in allowed options: {schema['options']}"
            ))

        return errors

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value.

        Args:
            key: Dot-notation key (e.g., "price_data.base_url")
            default: Default value if not found
        """
        value = self._config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value


# Global config service instance
config_service = ConfigService()
