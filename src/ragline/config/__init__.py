"""Configuration loading, validation, and management for ragline.

Main components:
- ConfigLoader: Load and validate ragline.yaml files
- Environment variable substitution (${VAR_NAME} pattern)
- Validation utilities for configuration data
"""

from ragline.config.env_loader import get_env_var, load_env_file, substitute_env_vars
from ragline.config.loader import ConfigLoader
from ragline.config.validator import flatten_pydantic_errors

__all__ = [
    "ConfigLoader",
    "flatten_pydantic_errors",
    "get_env_var",
    "load_env_file",
    "substitute_env_vars",
]
