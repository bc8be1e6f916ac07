"""Readable messages for invalid ragline settings.

Pydantic reports errors against model locations. These helpers turn them into
one line per problem, phrased in terms of the keys a user writes in
``ragline.yaml`` and the RAGLINE_* variables that can also set them.
"""

from pydantic import ValidationError as PydanticValidationError
from pydantic_core import ErrorDetails

from ragline.config.defaults import ENV_VAR_MAP

# Pydantic error types reported together with the offending input
_INPUT_ERROR_PREFIXES = (
    "int_",
    "float_",
    "bool_",
    "string_",
    "enum",
    "literal_",
    "greater_than",
    "less_than",
)


def setting_path(loc: tuple[int | str, ...]) -> str:
    """Join a pydantic error location into a dotted settings path.

    Example:
        >>> setting_path(("retrieval", "hybrid", "min_score"))
        'retrieval.hybrid.min_score'
    """
    return ".".join(str(item) for item in loc) if loc else "config"


def describe_error(error: ErrorDetails) -> str:
    """Format one pydantic error entry as a single line."""
    path = setting_path(tuple(error.get("loc", ())))
    error_type = error.get("type", "")
    msg = error.get("msg", "Unknown error")

    if error_type == "extra_forbidden":
        return f"Unknown setting '{path}' (check the key name and its section)"

    if error_type == "value_error":
        # Drop pydantic's "Value error, " prefix on custom validator messages
        msg = msg.removeprefix("Value error, ")

    line = f"Setting '{path}': {msg}"
    received = error.get("input")
    shows_input = error_type == "value_error" or error_type.startswith(
        _INPUT_ERROR_PREFIXES
    )
    if shows_input and not isinstance(received, (dict, list)):
        line += f" (received: {received!r})"

    env_var = ENV_VAR_MAP.get(path)
    if env_var:
        line += f" [also read from {env_var}]"
    return line


def flatten_pydantic_errors(exc: PydanticValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into one message per bad setting.

    Args:
        exc: Pydantic ValidationError raised while validating RagLineConfig

    Returns:
        Human-readable error messages in the order pydantic reported them
    """
    errors = [describe_error(error) for error in exc.errors()]
    return errors if errors else ["Validation failed with unknown error"]
