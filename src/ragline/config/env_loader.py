"""Environment variable handling for ragline configuration.

Supports ``${VAR_NAME}`` references inside YAML text and optional loading of
a ``.env`` file through python-dotenv.
"""

import logging
import os
import re
from pathlib import Path

from dotenv import load_dotenv

from ragline.lib.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def load_env_file(path: str | Path | None = None, override: bool = False) -> bool:
    """Load variables from a .env file into the process environment.

    Args:
        path: Path to the .env file. Defaults to ``.env`` in the working
            directory.
        override: Replace variables that are already set.

    Returns:
        True if a file was found and loaded, False otherwise.
    """
    env_path = Path(path) if path is not None else Path.cwd() / ".env"
    if not env_path.is_file():
        return False
    logger.debug(f"Loading environment from {env_path}")
    return load_dotenv(env_path, override=override)


def get_env_var(name: str, default: str | None = None) -> str | None:
    """Return an environment variable, or ``default`` if it is unset."""
    return os.environ.get(name, default)


def substitute_env_vars(text: str) -> str:
    """Replace ``${VAR_NAME}`` references with environment values.

    Args:
        text: Raw text, typically the contents of a YAML file.

    Returns:
        Text with every reference substituted.

    Raises:
        ConfigError: If a referenced variable is not set.

    Example:
        >>> import os
        >>> os.environ["RAGLINE_DOC_KEY"] = "secret"
        >>> substitute_env_vars("api_key: ${RAGLINE_DOC_KEY}")
        'api_key: secret'
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        value = os.environ.get(name)
        if value is None:
            raise ConfigError(
                name,
                f"Environment variable '{name}' is referenced but not set",
            )
        return value

    return ENV_VAR_PATTERN.sub(_replace, text)
