"""
Structured logging for the deployment pipeline.

Module loggers live under the ``erc20_deployer`` namespace and take their
context through ``extra={...}``. The formatter renders that context as
``key=value`` pairs after the message, so a failed step reads as::

    ERROR erc20_deployer.interaction: Read call failed operation=symbol kind=CALL
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO, Union

ROOT_LOGGER_NAME = "erc20_deployer"

# Attributes present on every LogRecord; anything else came from ``extra``.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


class ContextFormatter(logging.Formatter):
    """Formatter that appends ``extra`` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if not context:
            return base
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{base} {pairs}"


def get_logger(name: str) -> logging.Logger:
    """Return a logger inside the package namespace."""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Install a single stream handler on the package root logger.

    Calling this again replaces the level and stream instead of stacking
    handlers.

    Args:
        level: Logging level name or number.
        stream: Output stream (defaults to stderr).

    Returns:
        The package root logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        if getattr(handler, "_erc20_deployer", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(ContextFormatter("%(levelname)s %(name)s: %(message)s"))
    handler._erc20_deployer = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)
    return root
