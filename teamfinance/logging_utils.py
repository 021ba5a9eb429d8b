"""Mini README: Application-wide logging helpers for Team Finance.

Structure:
    * configure_root_logger - installs the shared console handler exactly once.
    * set_log_level - change verbosity later (``--verbose``, settings).
    * get_logger - module loggers that trigger the baseline configuration.

Usage:
    Ledger, report and interface modules call ``get_logger(__name__)`` at import
    time. The first call configures the root logger; later calls (including
    reloads under ``uvicorn --reload``) reuse the existing handler so postings
    are never logged twice. Third-party loggers that trace every SQL statement
    or multipart chunk stay at WARNING even when the service runs at DEBUG.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
QUIET_LOGGERS = ("aiosqlite", "multipart", "python_multipart", "httpx", "httpcore")

_handler: Optional[logging.Handler] = None


def configure_root_logger(level: int = logging.INFO) -> logging.Handler:
    """Attach the ledger console handler to the root logger once and return it."""

    global _handler
    if _handler is not None:
        return _handler

    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(_handler)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return _handler


def set_log_level(level: Union[int, str]) -> int:
    """Set the root level from a number or a name such as ``"debug"``.

    Returns the numeric level. Unknown names raise ``ValueError``.
    """

    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    configure_root_logger()
    logging.getLogger().setLevel(level)
    return level


def get_logger(name: Optional[str] = None) -> logging.Logger:
    configure_root_logger()
    return logging.getLogger(name)
