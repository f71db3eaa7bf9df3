"""Linked box/line views sharing option state.

Each LinkedView owns its PlotConfig and FilterController. The
ViewSyncController keeps one view active; option changes re-render that
view, and switching views replays scale and sort onto the target first.

Render pipeline (always from the filter controller's live series)::

    live series -> transform -> sort -> layout
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from statwidgets.utils.logging import get_logger
from statwidgets.linked_plot.coordinate_mapper import (
    BoxGlyph,
    LinearScale,
    OrdinalBands,
    layout_boxes,
    line_domain,
    major_positions,
    value_scale,
)
from statwidgets.linked_plot.filter_controller import FilterController
from statwidgets.linked_plot.plot_config import Differentiation, PlotConfig, RangeMode, Toggle
from statwidgets.linked_plot.series_model import LineChart, MajorGroup, PlotMetadata, Series
from statwidgets.linked_plot.sort_engine import differentiation_sort, sort, sort_lines
from statwidgets.linked_plot.transform_pipeline import relative_lines, transform, transform_lines

logger = get_logger(__name__)

# Options carried from the active view onto the view being switched to.
REPLAYED_OPTIONS = ("scale", "major_sort", "minor_sort")


class ViewKind(Enum):
    BOX = "box"
    LINE = "line"


@dataclass(frozen=True)
class ViewFrame:
    """Everything a renderer needs to draw one view."""
    view_id: str
    kind: ViewKind
    config: PlotConfig
    metadata: PlotMetadata
    series: Optional[Series] = None
    chart: Optional[LineChart] = None
    x_bands: Optional[OrdinalBands] = None
    y_scale: Optional[LinearScale] = None
    glyphs: tuple[BoxGlyph, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.series is None and self.chart is None


@dataclass
class LinkedView:
    """One view: its options, its filter state and its source datasets.

    Box views keep one source Series per differentiation value ("none",
    "gender"); the active one is loaded into the filter controller as the
    current format. Line views keep a single LineChart.
    """
    view_id: str
    kind: ViewKind
    config: PlotConfig = field(default_factory=PlotConfig)
    filter: FilterController = field(default_factory=FilterController)
    sources: dict[str, Series] = field(default_factory=dict)
    chart: Optional[LineChart] = None
    visible: bool = False

    def load_box(self, sources: Mapping[Union[str, Differentiation], Series]) -> None:
        """Register box sources keyed by differentiation and load the configured one."""
        self.sources = {
            (k.value if isinstance(k, Differentiation) else str(k)): v for k, v in sources.items()
        }
        self.load_format()

    def load_line(self, chart: LineChart) -> None:
        """Register the line chart; the filter operates on its x keys."""
        self.chart = chart
        self.filter.set_format("line", _key_series(chart))

    def load_format(self) -> None:
        """(Re)load the source matching the current differentiation into the filter."""
        if self.kind != ViewKind.BOX:
            return
        format_id = self.config.differentiation.value
        source = self.sources.get(format_id)
        if source is None:
            logger.warning(f"view {self.view_id!r}: no source for format {format_id!r}")
            return
        self.filter.set_format(format_id, source)
        # A new format discards filter state, so the toggle goes back to off.
        if self.config.filter == Toggle.ON:
            self.config = self.config.with_option("filter", Toggle.OFF)


def _key_series(chart: LineChart) -> Series:
    # The filter works on major-group keys; line x keys stand in as empty groups.
    return Series(
        metadata=chart.metadata,
        data=tuple(MajorGroup(key=k) for k in chart.major_keys()),
    )


def render_view(view: LinkedView) -> ViewFrame:
    """Recompute a view's frame from scratch from its live filtered data."""
    live = view.filter.series
    if live is None:
        logger.warning(f"render_view: view {view.view_id!r} has no data loaded")
        metadata = view.chart.metadata if view.chart is not None else PlotMetadata()
        return ViewFrame(view.view_id, view.kind, view.config, metadata)

    width = live.metadata.width
    height = live.metadata.height

    if view.kind == ViewKind.LINE:
        chart = view.chart.with_major_keys(live.major_keys())
        if view.config.range == RangeMode.RELATIVE:
            chart = relative_lines(chart)
        chart = sort_lines(transform_lines(chart, view.config), view.config)
        x_bands = major_positions(chart.major_keys(), width, chart.metadata.box_group_spacing)
        y_scale = value_scale(line_domain(chart), height)
        return ViewFrame(
            view.view_id,
            view.kind,
            view.config,
            chart.metadata,
            chart=chart,
            x_bands=x_bands,
            y_scale=y_scale,
        )

    series = transform(live, view.config)
    if view.config.differentiation == Differentiation.GENDER:
        series = differentiation_sort(series, view.config)
    else:
        series = sort(series, view.config)
    layout = layout_boxes(series, width, height)
    return ViewFrame(
        view.view_id,
        view.kind,
        view.config,
        series.metadata,
        series=series,
        x_bands=layout.x_bands,
        y_scale=layout.y_scale,
        glyphs=layout.glyphs,
    )


class ViewSyncController:
    """Keeps linked views consistent as options change and the active view switches.

    Attributes:
        views: LinkedView instances keyed by id.
        active_id: Id of the only visible view.
        on_render: Optional callback receiving each freshly rendered ViewFrame.
        frames: Last rendered frame per view id.
    """

    def __init__(
        self,
        views: Iterable[LinkedView],
        *,
        active_id: Optional[str] = None,
        on_render: Optional[Callable[[ViewFrame], None]] = None,
    ) -> None:
        self.views: dict[str, LinkedView] = {}
        for view in views:
            if view.view_id in self.views:
                raise ValueError(f"Duplicate view id {view.view_id!r}")
            self.views[view.view_id] = view
        if not self.views:
            raise ValueError("ViewSyncController needs at least one view")
        self.active_id = active_id if active_id is not None else next(iter(self.views))
        if self.active_id not in self.views:
            raise ValueError(f"Unknown active view {self.active_id!r}")
        self.on_render = on_render
        self.frames: dict[str, ViewFrame] = {}
        self._mark_visible(self.active_id)

    @property
    def active(self) -> LinkedView:
        return self.views[self.active_id]

    def _mark_visible(self, view_id: str) -> None:
        for vid, view in self.views.items():
            view.visible = vid == view_id

    def render(self, view_id: Optional[str] = None) -> ViewFrame:
        view = self.views[view_id or self.active_id]
        frame = render_view(view)
        self.frames[view.view_id] = frame
        if self.on_render is not None:
            self.on_render(frame)
        return frame

    def set_option(self, name: str, value: Any) -> ViewFrame:
        """Change one option on the active view and re-render it.

        A differentiation change reloads the matching source as a new format,
        which resets the filter. Turning filter on opens the panel; turning it
        off restores the full cached series.

        Raises:
            ValueError: If name is not a known option.
            EmptyCacheError: If filter is turned on before any data was loaded;
                the view's config is left unchanged.
        """
        view = self.active
        before = view.config
        config = before.with_option(name, value)
        logger.info(f"set_option: view={view.view_id!r} {name}={value!r}")

        if config.filter != before.filter and config.filter == Toggle.ON:
            view.filter.open_panel()
        view.config = config
        if config.differentiation != before.differentiation:
            view.load_format()
        if config.filter != before.filter and config.filter == Toggle.OFF:
            if view.filter.cache is not None:
                view.filter.turn_off()
        return self.render()

    def submit_filter(self, keys: Optional[Iterable[str]] = None) -> Optional[ViewFrame]:
        """Submit the active view's filter panel; re-render only on success."""
        view = self.active
        if not view.filter.submit(keys):
            return None
        return self.render()

    def cancel_filter(self) -> ViewFrame:
        """Cancel the active view's filter: restore its data and switch filter off."""
        view = self.active
        view.filter.cancel()
        view.config = view.config.with_option("filter", Toggle.OFF)
        return self.render()

    def switch_view(self, target_id: str) -> ViewFrame:
        """Make target_id the only visible view, carrying scale and sort over.

        Leaving a gendered box view for a line view clears its
        differentiation. Entering a box view from a line view always resets
        differentiation to none.

        Raises:
            KeyError: If target_id is not a registered view.
        """
        if target_id not in self.views:
            raise KeyError(f"Unknown view {target_id!r}")
        source = self.active
        target = self.views[target_id]
        if target is source:
            return self.render()

        config = target.config
        for name in REPLAYED_OPTIONS:
            config = config.with_option(name, getattr(source.config, name))

        if source.kind == ViewKind.BOX and target.kind == ViewKind.BOX:
            config = config.with_option("differentiation", source.config.differentiation)
        elif source.kind == ViewKind.BOX and target.kind == ViewKind.LINE:
            if source.config.differentiation != Differentiation.NONE:
                source.config = source.config.with_option("differentiation", Differentiation.NONE)
                source.load_format()
        elif source.kind == ViewKind.LINE and target.kind == ViewKind.BOX:
            config = config.with_option("differentiation", Differentiation.NONE)

        reload = config.differentiation != target.config.differentiation
        target.config = config
        if reload:
            target.load_format()

        logger.info(f"switch_view: {source.view_id!r} -> {target_id!r}")
        self.active_id = target_id
        self._mark_visible(target_id)
        return self.render(target_id)
