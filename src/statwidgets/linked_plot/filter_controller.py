"""Cohort filter state machine for one view.

States::

    UNFILTERED --open_panel--> PANEL_OPEN --submit(non-empty)--> FILTERED
        ^                          |  ^                              |
        |                          |  +----------open_panel----------+
        +---- cancel / turn_off ---+----------------------------------+

The controller caches the untransformed Series once per format change.
Every filtered series is rebuilt from that cache, so repeated submits are
never cumulative, and cancel/turn_off restore the cache exactly.
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from typing import Callable, Iterable, Optional

from statwidgets.utils.logging import get_logger
from statwidgets.linked_plot.conventions import EMPTY_SELECTION_MESSAGE
from statwidgets.linked_plot.series_model import Series

logger = get_logger(__name__)


class FilterState(Enum):
    UNFILTERED = "unfiltered"
    PANEL_OPEN = "panel_open"
    FILTERED = "filtered"


class EmptyCacheError(RuntimeError):
    """Raised when filtering is attempted before any series was loaded."""


class FilterController:
    """Cohort subset selection with a cache-and-restore contract.

    Attributes:
        state: Current FilterState.
        format_id: Identifier of the loaded data format (e.g. "gene", "isoform").
        available: All major-group keys of the cached series, in series order.
        current: Keys applied by the last successful submit (all keys when unfiltered).
        checked: Panel checkbox state while the panel is open.
        error: Validation message from the last rejected submit, else None.
        on_change: Optional callback invoked with the live series after it changes.
    """

    def __init__(self, on_change: Optional[Callable[[Series], None]] = None) -> None:
        self.state = FilterState.UNFILTERED
        self.format_id: Optional[str] = None
        self.available: list[str] = []
        self.current: list[str] = []
        self.checked: set[str] = set()
        self.error: Optional[str] = None
        self.on_change = on_change
        self._cache: Optional[Series] = None
        self._live: Optional[Series] = None

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    @property
    def cache(self) -> Optional[Series]:
        """The full series captured at the last format change."""
        return self._cache

    @property
    def series(self) -> Optional[Series]:
        """The live series: the cache, or the filtered subset of it."""
        return self._live

    def _require_cache(self) -> Series:
        if self._cache is None:
            raise EmptyCacheError("No series loaded; call set_format() before filtering")
        return self._cache

    def _emit(self) -> None:
        if self.on_change is not None and self._live is not None:
            self.on_change(self._live)

    def set_format(self, format_id: str, series: Series) -> None:
        """Load a new data format, discarding any filter state.

        The series is captured as the cache; available and current reset to
        its full key set.
        """
        logger.info(f"set_format: {format_id!r} with {len(series.data)} groups")
        self.format_id = format_id
        self._cache = series
        self._live = series
        self.available = series.major_keys()
        self.current = list(self.available)
        self.checked = set(self.available)
        self.error = None
        self.state = FilterState.UNFILTERED
        self._emit()

    # ------------------------------------------------------------------
    # Panel
    # ------------------------------------------------------------------

    def open_panel(self) -> None:
        """Show the panel, seeding checkboxes from the current selection; data is untouched."""
        self._require_cache()
        self.checked = set(self.current)
        self.error = None
        self.state = FilterState.PANEL_OPEN

    def select_all(self) -> None:
        self.checked = set(self.available)

    def select_none(self) -> None:
        self.checked = set()

    def set_checked(self, key: str, value: bool) -> None:
        """Toggle one checkbox; unknown keys are ignored with a warning."""
        if key not in self.available:
            logger.warning(f"set_checked: {key!r} is not an available group")
            return
        if value:
            self.checked.add(key)
        else:
            self.checked.discard(key)

    def submit(self, keys: Optional[Iterable[str]] = None) -> bool:
        """Apply the selection (keys, or the checked boxes when keys is None).

        An empty selection is rejected: error is set, the panel stays open
        and current is left unchanged.

        Returns:
            True if the filter was applied.

        Raises:
            EmptyCacheError: If no series has been loaded.
        """
        cache = self._require_cache()
        selected = set(self.checked if keys is None else keys)
        unknown = selected.difference(self.available)
        if unknown:
            logger.warning(f"submit: ignoring unknown groups {sorted(unknown)}")
            selected -= unknown
        if not selected:
            self.error = EMPTY_SELECTION_MESSAGE
            self.state = FilterState.PANEL_OPEN
            logger.info("submit rejected: empty selection")
            return False

        self.current = [k for k in self.available if k in selected]
        self.checked = set(self.current)
        self.error = None
        self._live = replace(cache, data=tuple(g for g in cache.data if g.key in selected))
        self.state = FilterState.FILTERED
        logger.info(f"submit: {len(self.current)}/{len(self.available)} groups")
        self._emit()
        return True

    def cancel(self) -> None:
        """Close the panel and restore the full cached series."""
        self._restore()

    def turn_off(self) -> None:
        """Filter mode switched off: restore the full cached series."""
        self._restore()

    def _restore(self) -> None:
        cache = self._require_cache()
        self._live = cache
        self.current = list(self.available)
        self.checked = set(self.available)
        self.error = None
        self.state = FilterState.UNFILTERED
        self._emit()
