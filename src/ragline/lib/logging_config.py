"""Centralized logging configuration for ragline.

Modules obtain loggers through ``get_logger(__name__)`` so that every logger
lives under the ``ragline`` namespace. CLI commands call ``setup_logging``
once with their verbosity flags.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "ragline"

# Third-party loggers that are chatty at INFO level
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "semantic_kernel", "urllib3")


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ragline namespace.

    Args:
        name: Module name, usually ``__name__``.

    Returns:
        Logger instance. Names outside the ``ragline`` package are nested
        under it so that ``setup_logging`` controls them.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure ragline logging.

    Level resolution: ``verbose`` wins over ``quiet``; verbose -> DEBUG,
    quiet -> WARNING, otherwise INFO. Calling this more than once replaces
    the previously installed handler.

    Args:
        verbose: Enable debug output.
        quiet: Only show warnings and errors.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)

    third_party_level = logging.DEBUG if verbose else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)
