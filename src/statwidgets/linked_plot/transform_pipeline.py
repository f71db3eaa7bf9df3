"""Pure value transforms applied to a Series before sorting and layout.

Every function returns a new Series (or LineChart); inputs are never mutated.
Keys and ordering are preserved, only numeric leaves change.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

import numpy as np

from statwidgets.utils.logging import get_logger
from statwidgets.linked_plot.conventions import LOG_OFFSET
from statwidgets.linked_plot.plot_config import MediansMode, PlotConfig, ScaleMode
from statwidgets.linked_plot.series_model import (
    LineChart,
    MinorBox,
    Series,
    StatSummary,
    is_missing,
)

logger = get_logger(__name__)


def log_value(x: Optional[float]) -> Optional[float]:
    """log10(x + 0.05); None stays None and values at or below -0.05 become NaN."""
    if x is None:
        return None
    shifted = float(x) + LOG_OFFSET
    if not shifted > 0:
        return float("nan")
    return float(np.log10(shifted))


def inverse_log(x: Optional[float]) -> Optional[float]:
    """Inverse of log_value: 10**x - 0.05."""
    if x is None:
        return None
    return float(np.power(10.0, x) - LOG_OFFSET)


def _is_placeholder(box: MinorBox) -> bool:
    return box.value.no_data or not box.key


def _log_summary(s: StatSummary) -> StatSummary:
    return replace(
        s,
        high_whisker=log_value(s.high_whisker),
        q3=log_value(s.q3),
        median=log_value(s.median),
        q1=log_value(s.q1),
        low_whisker=log_value(s.low_whisker),
        outliers=tuple(replace(o, value=log_value(o.value)) for o in s.outliers),
    )


def _medians_summary(s: StatSummary) -> StatSummary:
    return replace(s, high_whisker=s.median, q3=s.median, q1=s.median, low_whisker=s.median)


def _map_boxes(series: Series, fn) -> Series:
    groups = []
    for group in series.data:
        boxes = tuple(
            box if _is_placeholder(box) else replace(box, value=fn(box.value))
            for box in group.value
        )
        groups.append(replace(group, value=boxes))
    return replace(series, data=tuple(groups))


def log_transform(series: Series) -> Series:
    """Apply log10(x + 0.05) to the five summary fields and every outlier.

    Boxes flagged no_data or with an empty key are copied through unchanged.
    """
    return _map_boxes(series, _log_summary)


def medians_only(series: Series) -> Series:
    """Collapse every box to its median line; outliers, color and extra are kept."""
    return _map_boxes(series, _medians_summary)


def transform(series: Series, config: PlotConfig) -> Series:
    """Apply the scale transform, then the medians-only reduction, per config."""
    result = series
    if config.scale == ScaleMode.LOG:
        result = log_transform(result)
    if config.medians == MediansMode.ONLY:
        result = medians_only(result)
    logger.debug(
        f"transform: scale={config.scale.value}, medians={config.medians.value}, "
        f"groups={len(result.data)}"
    )
    return result


def transform_lines(chart: LineChart, config: PlotConfig) -> LineChart:
    """Log transform of every line point median when scale is log."""
    if config.scale != ScaleMode.LOG:
        return chart
    return replace(
        chart,
        data=tuple(
            replace(line, points=tuple(replace(p, median=log_value(p.median)) for p in line.points))
            for line in chart.data
        ),
    )


def relative_lines(chart: LineChart) -> LineChart:
    """Express each point median as a fraction of its group's total across lines.

    Missing medians count as 0 in the total and stay None. A group whose
    total is 0 yields 0 for every defined point.
    """
    totals: dict[str, float] = {}
    for line in chart.data:
        for p in line.points:
            if not is_missing(p.median):
                totals[p.key] = totals.get(p.key, 0.0) + float(p.median)

    def _fraction(key: str, median: Optional[float]) -> Optional[float]:
        if is_missing(median):
            return None
        total = totals.get(key, 0.0)
        return float(median) / total if total else 0.0

    return replace(
        chart,
        data=tuple(
            replace(line, points=tuple(replace(p, median=_fraction(p.key, p.median)) for p in line.points))
            for line in chart.data
        ),
    )

