"""Package loggers: one stderr handler (plus an optional LOG_FILE) per module logger.

stdout is left alone so CLI commands can print JSON.
"""

import logging
import os
from typing import List, Optional, Tuple, Union

NAMESPACE = "expense_tracker"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_CONFIGURED_FLAG = "_expense_tracker_configured"


def _coerce_level(value: Optional[Union[str, int]]) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        resolved = logging.getLevelName(value.strip().upper())
        if isinstance(resolved, int):
            return resolved
    return logging.INFO


def _qualified(name: str) -> str:
    if name == NAMESPACE or name.startswith(NAMESPACE + "."):
        return name
    return f"{NAMESPACE}.{name}"


def _build_handlers(level: int) -> Tuple[List[logging.Handler], Optional[str]]:
    """Return the handlers for a new logger and a warning to emit, if any."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    problem = None
    log_file = os.environ.get("LOG_FILE")
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        except OSError as exc:
            problem = f"LOG_FILE {log_file!r} could not be opened ({exc}); logging to stderr only"
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers, problem


def get_logger(name: str) -> logging.Logger:
    """Return the ``expense_tracker.<name>`` logger, configuring it on first use.

    Level comes from LOG_LEVEL (default INFO). Loggers do not propagate, so
    the host application's root configuration never duplicates our lines.
    """
    logger = logging.getLogger(_qualified(name))
    if getattr(logger, _CONFIGURED_FLAG, False):
        return logger

    level = _coerce_level(os.environ.get("LOG_LEVEL"))
    logger.setLevel(level)
    handlers, problem = _build_handlers(level)
    for handler in handlers:
        logger.addHandler(handler)
    logger.propagate = False
    setattr(logger, _CONFIGURED_FLAG, True)
    if problem:
        logger.warning(problem)
    return logger
