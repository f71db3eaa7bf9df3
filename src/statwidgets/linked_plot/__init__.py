"""Linked box/line plot engine: model, transforms, sorting, layout, filtering and view sync."""

from statwidgets.linked_plot.coordinate_mapper import (
    Domain,
    LinearScale,
    OrdinalBands,
    domain,
    layout_boxes,
    line_domain,
    major_positions,
    minor_positions,
    value_scale,
)
from statwidgets.linked_plot.filter_controller import EmptyCacheError, FilterController, FilterState
from statwidgets.linked_plot.plot_config import (
    CustomSort,
    Differentiation,
    MediansMode,
    PlotConfig,
    RangeMode,
    ScaleMode,
    SortMode,
    Toggle,
)
from statwidgets.linked_plot.series_model import (
    LineChart,
    LinePoint,
    LineSeries,
    MajorGroup,
    MinorBox,
    Outlier,
    PlotMetadata,
    Series,
    StatSummary,
)
from statwidgets.linked_plot.sort_engine import differentiation_sort, sort
from statwidgets.linked_plot.transform_pipeline import transform
from statwidgets.linked_plot.view_sync import LinkedView, ViewFrame, ViewKind, ViewSyncController

__all__ = [
    "CustomSort",
    "Differentiation",
    "Domain",
    "EmptyCacheError",
    "FilterController",
    "FilterState",
    "LineChart",
    "LinePoint",
    "LineSeries",
    "LinearScale",
    "LinkedView",
    "MajorGroup",
    "MediansMode",
    "MinorBox",
    "OrdinalBands",
    "Outlier",
    "PlotConfig",
    "PlotMetadata",
    "RangeMode",
    "ScaleMode",
    "Series",
    "SortMode",
    "StatSummary",
    "Toggle",
    "ViewFrame",
    "ViewKind",
    "ViewSyncController",
    "differentiation_sort",
    "domain",
    "layout_boxes",
    "line_domain",
    "major_positions",
    "minor_positions",
    "sort",
    "transform",
    "value_scale",
]
