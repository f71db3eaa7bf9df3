"""
Logging utilities for the statwidgets library.

Library Logging Conventions
---------------------------
1. **Library code never calls configure_logging()** - it only uses get_logger(__name__).
2. **Demos and applications may call configure_logging()** to get console output.
3. When statwidgets is embedded in an application that configured logging,
   all statwidgets records flow to that application's handlers.

statwidgets never writes log files.

Example Usage
-------------
In library code (sort_engine.py, filter_controller.py, ...):
    ```python
    from statwidgets.utils.logging import get_logger
    logger = get_logger(__name__)
    logger.info("filter submitted")
    ```

In a demo script:
    ```python
    from statwidgets.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

LOGGER_NAME = "statwidgets"
LOG_LEVEL_ENV_VAR = "STATWIDGETS_LOG_LEVEL"

DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d:%(funcName)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: Optional[Union[str, int]] = None) -> int:
    """Resolve a level name/number, falling back to the env var and then INFO."""
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO")
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return int(level)


def configure_logging(
    level: Optional[Union[str, int]] = None,
    *,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Configure the statwidgets logger only (never root).

    Parameters
    ----------
    level:
        Logging level (e.g. "DEBUG", "INFO"). Defaults to the
        STATWIDGETS_LOG_LEVEL env var, or "INFO" if unset.
    fmt:
        Log message format.
    datefmt:
        Date format.
    force:
        If True, remove existing handlers before adding a new one. If False,
        do nothing when a stderr handler is already attached.
    """
    resolved = resolve_level(level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolved)

    formatter = logging.Formatter(fmt=fmt or DEFAULT_FMT, datefmt=datefmt or DEFAULT_DATEFMT)

    if force:
        for h in logger.handlers[:]:
            h.close()
            logger.removeHandler(h)
    else:
        for h in logger.handlers:
            if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr:
                return

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(resolved)
    console.setFormatter(formatter)
    logger.addHandler(console)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger by name.

    If name is None, returns the 'statwidgets' logger.
    """
    if name is None:
        name = LOGGER_NAME
    return logging.getLogger(name)
