"""
statwidgets: linked box and line charts for grouped statistical summaries.

This package provides:
- A value-semantic Series model for five-number box summaries and line charts
- Transform, sort and coordinate engines driven by a per-view PlotConfig
- A cohort filter state machine and a controller that keeps linked views in sync
- A Plotly figure adapter and a NiceGUI control panel
- Logging utilities for library and application use

For logging configuration in standalone scripts/demos:
    ```python
    from statwidgets.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library, logging is handled by the parent application's configuration.
"""

import logging

from statwidgets.utils.logging import configure_logging, get_logger

# NullHandler so records don't reach root until an application configures logging.
_logger = logging.getLogger("statwidgets")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "configure_logging",
    "get_logger",
]

__version__ = "0.1.0"
