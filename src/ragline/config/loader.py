"""Configuration loader for ragline.

This module provides the ConfigLoader class for loading, parsing, and validating
ragline configuration from YAML files.

Precedence, highest first:
1. Explicit overrides (CLI options)
2. ragline.yaml settings
3. RAGLINE_* environment variables
4. Model defaults
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from ragline.config.defaults import (
    DEFAULT_CONFIG_FILENAME,
    ENV_VAR_MAP,
    PROVIDER_DEFAULTS,
)
from ragline.config.env_loader import substitute_env_vars
from ragline.config.validator import flatten_pydantic_errors
from ragline.lib.errors import ConfigError, FileNotFoundError
from ragline.models.config import RagLineConfig

logger = logging.getLogger(__name__)

_INT_FIELDS = ("retrieval.top_k", "chunking.max_chunk_size")
_BOOL_FIELDS = ("retrieval.use_hybrid_search",)


def _parse_env_value(field_path: str, value: str) -> Any:
    """Parse environment variable value to appropriate type.

    Args:
        field_path: Dotted config path (used to determine type)
        value: String value from environment variable

    Returns:
        Parsed value in correct type (int, bool, or str)

    Raises:
        ValueError: If value cannot be parsed
    """
    if field_path in _INT_FIELDS:
        return int(value)
    elif field_path in _BOOL_FIELDS:
        return value.lower() in ("true", "1", "yes", "on")
    else:
        return value


def _set_path(data: dict[str, Any], field_path: str, value: Any) -> None:
    """Set a dotted path in a nested dict, creating sections as needed."""
    *sections, leaf = field_path.split(".")
    node = data
    for section in sections:
        node = node.setdefault(section, {})
    node[leaf] = value


def _env_overrides(env_vars: os._Environ[str] | dict[str, str]) -> dict[str, Any]:
    """Collect config values from RAGLINE_* environment variables.

    Values that fail to parse are skipped with a warning.
    """
    result: dict[str, Any] = {}
    for field_path, env_var_name in ENV_VAR_MAP.items():
        if env_var_name not in env_vars:
            continue
        try:
            value = _parse_env_value(field_path, env_vars[env_var_name])
        except ValueError:
            logger.warning(
                f"Ignoring invalid value for {env_var_name}: {env_vars[env_var_name]!r}"
            )
            continue
        _set_path(result, field_path, value)
    return result


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Deep merge override dict into base dict (in-place).

    For nested dicts, merging is recursive.
    For other types, override completely replaces base.

    Args:
        base: Base dictionary to merge into (modified in-place)
        override: Dictionary with values to override
    """
    for key, override_value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(override_value, dict)
        ):
            _deep_merge(base[key], override_value)
        else:
            base[key] = override_value


def _apply_provider_defaults(data: dict[str, Any]) -> None:
    """Fill unset model fields with defaults for the selected provider."""
    model = data.get("model")
    if not isinstance(model, dict):
        return
    provider = model.get("provider", "")
    defaults = PROVIDER_DEFAULTS.get(str(getattr(provider, "value", provider)), {})
    for key, value in defaults.items():
        model.setdefault(key, value)


def _read_yaml_with_env_substitution(path: Path) -> dict[str, Any] | None:
    """Read a YAML file with environment variable substitution.

    Args:
        path: Path to YAML file

    Returns:
        Parsed dictionary or None if empty

    Raises:
        OSError: If file cannot be read
        yaml.YAMLError: If YAML parsing fails
        ConfigError: If env var substitution fails
    """
    raw_text = path.read_text(encoding="utf-8")
    substituted = substitute_env_vars(raw_text)
    content = yaml.safe_load(substituted)
    return content if content else None


class ConfigLoader:
    """Loads and validates ragline configuration from YAML files.

    This class handles:
    - Parsing YAML files into Python dictionaries
    - Environment variable substitution and RAGLINE_* overrides
    - Merging configurations with proper precedence
    - Converting validation errors into human-readable messages
    """

    def __init__(self, env_vars: dict[str, str] | None = None) -> None:
        """Initialize the ConfigLoader.

        Args:
            env_vars: Environment mapping used for RAGLINE_* overrides.
                Defaults to ``os.environ``.
        """
        self._env_vars = env_vars

    def parse_yaml(self, file_path: str) -> dict[str, Any]:
        """Parse a YAML file and return its contents as a dictionary.

        Args:
            file_path: Path to the YAML file to parse

        Returns:
            Dictionary containing parsed YAML content ({} if file is empty)

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigError: If YAML parsing or env var substitution fails
        """
        path = Path(file_path)

        try:
            content = _read_yaml_with_env_substitution(path)
        except OSError as e:
            raise FileNotFoundError(
                file_path,
                f"Configuration file not found at {file_path}. "
                f"Please ensure the file exists at this path.",
            ) from e
        except yaml.YAMLError as e:
            raise ConfigError(
                "yaml_parse",
                f"Failed to parse YAML file {file_path}: {str(e)}",
            ) from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigError(
                "yaml_parse",
                f"Top level of {file_path} must be a mapping",
            )
        return content

    def load_config(
        self,
        file_path: str | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> RagLineConfig:
        """Load and validate ragline configuration.

        When ``file_path`` is None, ``ragline.yaml`` in the working directory
        is used if present; otherwise defaults and environment apply.

        Args:
            file_path: Path to a ragline.yaml file
            overrides: Nested dict of explicit overrides (e.g. from CLI flags)

        Returns:
            Validated RagLineConfig

        Raises:
            FileNotFoundError: If an explicit file_path does not exist
            ConfigError: If the file is invalid or validation fails
        """
        env_vars = self._env_vars if self._env_vars is not None else os.environ
        data = _env_overrides(env_vars)

        if file_path is not None:
            _deep_merge(data, self.parse_yaml(file_path))
        else:
            default_path = Path.cwd() / DEFAULT_CONFIG_FILENAME
            if default_path.is_file():
                logger.debug(f"Using configuration file {default_path}")
                _deep_merge(data, self.parse_yaml(str(default_path)))

        if overrides:
            _deep_merge(data, overrides)

        _apply_provider_defaults(data)

        try:
            return RagLineConfig.model_validate(data)
        except PydanticValidationError as e:
            error_messages = flatten_pydantic_errors(e)
            raise ConfigError(
                "config",
                "Invalid configuration:\n" + "\n".join(error_messages),
            ) from e
