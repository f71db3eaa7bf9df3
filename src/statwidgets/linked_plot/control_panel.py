"""NiceGUI control panel for linked box/line views.

Builds the option controls (view, scale, sorting, medians, outliers,
differentiation, range), the cohort filter panel and the plot. Every change
goes through the ViewSyncController; the panel only mirrors its state.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from nicegui import ui

from statwidgets.utils.logging import get_logger
from statwidgets.linked_plot.figure_generator import FigureGenerator
from statwidgets.linked_plot.filter_controller import FilterState
from statwidgets.linked_plot.plot_config import (
    Differentiation,
    MediansMode,
    PlotConfig,
    RangeMode,
    ScaleMode,
    SortMode,
    Toggle,
)
from statwidgets.linked_plot.view_sync import ViewFrame, ViewKind, ViewSyncController

logger = get_logger(__name__)


def _options(enum_cls) -> dict[str, str]:
    return {m.value: m.value.capitalize() for m in enum_cls}


def _sort_value(config: PlotConfig) -> Optional[str]:
    # Custom comparators have no entry in the select.
    return config.sorting.value if isinstance(config.sorting, SortMode) else None


class LinkedPlotControlPanel:
    """Controls plus plot for a set of linked views."""

    def __init__(
        self,
        controller: ViewSyncController,
        *,
        figure_generator: Optional[FigureGenerator] = None,
        on_frame: Optional[Callable[[ViewFrame], None]] = None,
    ) -> None:
        self.controller = controller
        self.figure_generator = figure_generator or FigureGenerator()
        self._on_frame = on_frame

        # Widget refs (set in build())
        self._view_toggle: Optional[ui.toggle] = None
        self._scale_select: Optional[ui.select] = None
        self._sort_select: Optional[ui.select] = None
        self._medians_select: Optional[ui.select] = None
        self._outliers_select: Optional[ui.select] = None
        self._differentiation_select: Optional[ui.select] = None
        self._range_select: Optional[ui.select] = None
        self._filter_switch: Optional[ui.switch] = None
        self._filter_card: Optional[ui.card] = None
        self._filter_column: Optional[ui.column] = None
        self._filter_error: Optional[ui.label] = None
        self._checkboxes: dict[str, ui.checkbox] = {}
        self._plot: Optional[ui.plotly] = None
        self._syncing = False

    def build(self) -> None:
        """Build the panel inside the current UI container."""
        config = self.controller.active.config
        with ui.row().classes("w-full gap-4 no-wrap"):
            with ui.column().classes("w-72 gap-3"):
                self._view_toggle = ui.toggle(
                    {vid: vid for vid in self.controller.views},
                    value=self.controller.active_id,
                    on_change=lambda e: self._on_view_change(str(e.value)),
                )
                self._scale_select = self._select("Scale", ScaleMode, config.scale.value, "scale")
                self._sort_select = self._select("Sorting", SortMode, _sort_value(config), "sorting")
                self._medians_select = self._select("Medians", MediansMode, config.medians.value, "medians")
                self._outliers_select = self._select("Outliers", Toggle, config.outliers.value, "outliers")
                self._differentiation_select = self._select(
                    "Differentiation", Differentiation, config.differentiation.value, "differentiation"
                )
                self._range_select = self._select("Range", RangeMode, config.range.value, "range")
                self._filter_switch = ui.switch(
                    "Filter",
                    value=config.filter == Toggle.ON,
                    on_change=lambda e: self._on_option("filter", Toggle.ON if e.value else Toggle.OFF),
                )
                self._build_filter_card()
            with ui.column().classes("flex-1 min-w-0"):
                self._plot = ui.plotly(self._figure(self.controller.render())).classes("w-full")
        self.sync_controls()

    def _select(self, label: str, enum_cls, value: str, option: str) -> ui.select:
        return ui.select(
            options=_options(enum_cls),
            value=value,
            label=label,
            on_change=lambda e: self._on_option(option, e.value),
        ).classes("w-full")

    def _build_filter_card(self) -> None:
        self._filter_card = ui.card().classes("w-full")
        with self._filter_card:
            ui.label("Cohorts").classes("text-sm font-semibold")
            self._filter_column = ui.column().classes("w-full gap-1")
            self._filter_error = ui.label("").classes("text-red-600 text-xs")
            with ui.row().classes("w-full gap-2"):
                ui.button("All", on_click=self._on_select_all)
                ui.button("None", on_click=self._on_select_none)
                ui.button("Apply", on_click=self._on_submit)
                ui.button("Cancel", on_click=self._on_cancel)

    def _rebuild_checkboxes(self) -> None:
        if self._filter_column is None:
            return
        fc = self.controller.active.filter
        self._filter_column.clear()
        self._checkboxes = {}
        with self._filter_column:
            for key in fc.available:
                self._checkboxes[key] = ui.checkbox(
                    key,
                    value=key in fc.checked,
                    on_change=lambda e, k=key: self._on_checked(k, bool(e.value)),
                )

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_option(self, name: str, value: Any) -> None:
        if self._syncing:
            return
        frame = self.controller.set_option(name, value)
        self._show(frame)
        self.sync_controls()

    def _on_view_change(self, view_id: str) -> None:
        if self._syncing or view_id == self.controller.active_id:
            return
        frame = self.controller.switch_view(view_id)
        self._show(frame)
        self.sync_controls()

    def _on_checked(self, key: str, value: bool) -> None:
        if self._syncing:
            return
        self.controller.active.filter.set_checked(key, value)

    def _on_select_all(self) -> None:
        self.controller.active.filter.select_all()
        self.sync_controls()

    def _on_select_none(self) -> None:
        self.controller.active.filter.select_none()
        self.sync_controls()

    def _on_submit(self) -> None:
        frame = self.controller.submit_filter()
        if frame is None:
            ui.notify(self.controller.active.filter.error or "", type="warning")
        else:
            self._show(frame)
        self.sync_controls()

    def _on_cancel(self) -> None:
        self._show(self.controller.cancel_filter())
        self.sync_controls()

    # ------------------------------------------------------------------
    # State -> widgets
    # ------------------------------------------------------------------

    def _figure(self, frame: ViewFrame) -> dict:
        if self._on_frame is not None:
            self._on_frame(frame)
        return self.figure_generator.make_figure(frame)

    def _show(self, frame: ViewFrame) -> None:
        fig = self._figure(frame)
        if self._plot is not None:
            self._plot.update_figure(fig)

    def bind_config(self, config: PlotConfig) -> None:
        """Populate option widgets from a PlotConfig."""
        if not self._scale_select or not self._sort_select:
            return
        self._scale_select.value = config.scale.value
        self._sort_select.value = _sort_value(config)
        self._medians_select.value = config.medians.value
        self._outliers_select.value = config.outliers.value
        self._differentiation_select.value = config.differentiation.value
        self._range_select.value = config.range.value
        self._filter_switch.value = config.filter == Toggle.ON

    def sync_controls(self) -> None:
        """Mirror the active view's state and enable only the options that apply to it."""
        view = self.controller.active
        self._syncing = True
        try:
            if self._view_toggle is not None:
                self._view_toggle.value = view.view_id
            self.bind_config(view.config)
            is_box = view.kind == ViewKind.BOX
            if self._medians_select is not None:
                self._medians_select.set_enabled(is_box)
                self._outliers_select.set_enabled(is_box)
                self._differentiation_select.set_enabled(is_box)
                self._range_select.set_enabled(not is_box)
            if self._filter_card is not None:
                self._filter_card.visible = view.filter.state == FilterState.PANEL_OPEN
                self._rebuild_checkboxes()
                self._filter_error.text = view.filter.error or ""
        finally:
            self._syncing = False
