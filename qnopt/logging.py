"""Logging utilities for qnopt.

Every module obtains its logger through :func:`get_logger` so that all solver
output shares one namespace (``qnopt.*``), one format and one level switch.
Solvers report per-iteration progress at DEBUG, recoveries (fallback steps,
history reboots, skipped curvature updates) at INFO and failures at WARNING.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import IO, Iterator, Optional

_ROOT_NAME = "qnopt"
_DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

# Default logging level
_DEFAULT_LEVEL = logging.WARNING

# Module-level logger cache
_loggers: dict[str, logging.Logger] = {}


def _coerce_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return int(level)


def _make_handler(level: int, stream: Optional[IO[str]], fmt: str) -> logging.Handler:
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get or create a logger living under the ``qnopt`` namespace.

    Args:
        name: Logger name, typically ``__name__``. ``None`` returns the
            package logger itself.

    Returns:
        Cached logger instance with a single stderr handler.

    Example:
        >>> from qnopt.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.debug("line search accepted alpha=%g", 0.5)
    """
    if name is None:
        name = _ROOT_NAME
    logger_name = name if name.startswith(_ROOT_NAME) else f"{_ROOT_NAME}.{name}"

    cached = _loggers.get(logger_name)
    if cached is not None:
        return cached

    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger.setLevel(_DEFAULT_LEVEL)
        logger.addHandler(_make_handler(_DEFAULT_LEVEL, None, _DEFAULT_FORMAT))
        logger.propagate = False

    _loggers[logger_name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Set the level of every qnopt logger, present and future.

    Args:
        level: ``logging.DEBUG`` etc. or a level name such as ``"INFO"``.
    """
    global _DEFAULT_LEVEL
    level = _coerce_level(level)
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
    _DEFAULT_LEVEL = level


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """Replace the handlers of all qnopt loggers.

    Typically called once by an application before running minimizers.

    Args:
        level: Logging level (default: WARNING).
        format_string: Custom format string; the default is
            ``[LEVEL] name: message``.
        stream: Output stream (default: ``sys.stderr``).

    Example:
        >>> import logging
        >>> from qnopt.logging import configure_logging
        >>> configure_logging(level=logging.INFO)
    """
    global _DEFAULT_LEVEL
    level = _coerce_level(level)
    fmt = format_string or _DEFAULT_FORMAT
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.addHandler(_make_handler(level, stream, fmt))
    _DEFAULT_LEVEL = level


@contextmanager
def log_level(level: int | str) -> Iterator[None]:
    """Temporarily change the level of all qnopt loggers.

    Example:
        >>> import logging
        >>> with log_level(logging.DEBUG):
        ...     pass  # solver runs here are verbose
    """
    previous = _DEFAULT_LEVEL
    set_log_level(level)
    try:
        yield
    finally:
        set_log_level(previous)


__all__ = ["get_logger", "set_log_level", "configure_logging", "log_level"]
