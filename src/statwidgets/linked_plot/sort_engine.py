"""Ordering of major groups and minor boxes.

All sorts are stable and return new values. Sort modes:

- alphabetical: by key
- increasing / decreasing: by median (minor) or by mean of minor medians (major)
- CustomSort: a cmp-style comparator applied with functools.cmp_to_key

Items without a defined sort value are placed last in both directions.
"""

from __future__ import annotations

from dataclasses import replace
from functools import cmp_to_key
from typing import Any, Callable, Iterable, Optional, TypeVar

from statwidgets.utils.logging import get_logger
from statwidgets.linked_plot.conventions import FEMALE_KEY, MALE_KEY, cohort_rank
from statwidgets.linked_plot.plot_config import (
    DEFAULT_SORT_FALLBACK,
    CustomSort,
    PlotConfig,
    SortMode,
    SortOrder,
    coerce_sort,
)
from statwidgets.linked_plot.series_model import (
    LineChart,
    MajorGroup,
    MinorBox,
    Series,
    is_missing,
)

logger = get_logger(__name__)

T = TypeVar("T")

__all__ = [
    "DEFAULT_SORT_FALLBACK",
    "differentiation_sort",
    "group_mean_median",
    "sort",
    "sort_lines",
    "sort_major",
    "sort_minor",
]


def _resolve(order: Any) -> SortOrder:
    if isinstance(order, (SortMode, CustomSort)):
        return order
    return coerce_sort(order)


def _ordered(
    items: Iterable[T],
    order: SortOrder,
    key_of: Callable[[T], str],
    value_of: Callable[[T], Optional[float]],
) -> list[T]:
    items = list(items)
    if isinstance(order, CustomSort):
        return sorted(items, key=cmp_to_key(order.compare))
    if order == SortMode.ALPHABETICAL:
        return sorted(items, key=key_of)

    sign = 1.0 if order == SortMode.INCREASING else -1.0

    def _value_key(item: T) -> tuple[bool, float]:
        value = value_of(item)
        if is_missing(value):
            return (True, 0.0)
        return (False, sign * float(value))

    return sorted(items, key=_value_key)


def _box_median(box: MinorBox) -> Optional[float]:
    return box.value.median


def group_mean_median(group: MajorGroup) -> Optional[float]:
    """Mean of the defined minor medians of a group; None if there are none.

    The same definition is used for increasing and decreasing order.
    """
    medians = [b.value.median for b in group.value if not is_missing(b.value.median)]
    if not medians:
        return None
    return sum(medians) / len(medians)


def sort_minor(series: Series, order: Any) -> Series:
    """Reorder the minor boxes inside every group independently."""
    resolved = _resolve(order)
    groups = tuple(
        replace(g, value=tuple(_ordered(g.value, resolved, lambda b: b.key, _box_median)))
        for g in series.data
    )
    return replace(series, data=groups)


def sort_major(series: Series, order: Any) -> Series:
    """Reorder the major groups; minor order inside each group is untouched."""
    resolved = _resolve(order)
    groups = _ordered(series.data, resolved, lambda g: g.key, group_mean_median)
    return replace(series, data=tuple(groups))


def sort(series: Series, config: PlotConfig) -> Series:
    """Apply minor then major sort as configured.

    Idempotent: sorting an already sorted series yields the same key order.
    """
    result = sort_major(sort_minor(series, config.minor_sort), config.major_sort)
    logger.debug(f"sort: major={result.major_keys()}")
    return result


def _cohort_total(group: MajorGroup) -> Optional[float]:
    values = []
    for key in (MALE_KEY, FEMALE_KEY):
        box = group.box(key)
        if box is not None and not box.value.no_data and not is_missing(box.value.median):
            values.append(box.value.median)
    if not values:
        return None
    return float(sum(values))


def differentiation_sort(series: Series, config: PlotConfig) -> Series:
    """Sort a two-cohort series.

    Major groups are ordered by the combined male and female medians using
    the configured major sort. Inside every group the male box always comes
    before the female box, whatever the minor sort says.
    """
    resolved = _resolve(config.major_sort)
    groups = _ordered(series.data, resolved, lambda g: g.key, _cohort_total)
    groups = [
        replace(g, value=tuple(sorted(g.value, key=lambda b: cohort_rank(b.key))))
        for g in groups
    ]
    return replace(series, data=tuple(groups))


def _line_key_means(chart: LineChart) -> dict[str, Optional[float]]:
    sums: dict[str, list[float]] = {}
    for line in chart.data:
        for p in line.points:
            bucket = sums.setdefault(p.key, [])
            if not is_missing(p.median):
                bucket.append(float(p.median))
    return {k: (sum(v) / len(v) if v else None) for k, v in sums.items()}


def sort_lines(chart: LineChart, config: PlotConfig) -> LineChart:
    """Order the points of every line by x key, or by that key's mean median across lines.

    Every line ends up with the same x-key order, so lines stay aligned.
    """
    resolved = _resolve(config.major_sort)
    means = _line_key_means(chart)
    ordered_keys = _ordered(chart.major_keys(), resolved, lambda k: k, lambda k: means.get(k))
    rank = {k: i for i, k in enumerate(ordered_keys)}
    return replace(
        chart,
        data=tuple(
            replace(line, points=tuple(sorted(line.points, key=lambda p: rank[p.key])))
            for line in chart.data
        ),
    )
