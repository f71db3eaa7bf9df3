"""Value domains, ordinal bands and pixel layout for box and line charts.

Band and scale math follows d3 v3: ``ordinal.rangeBands`` for the category
axes and ``linear.nice`` for the value axis.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

import numpy as np

from statwidgets.utils.logging import get_logger
from statwidgets.linked_plot.conventions import (
    DEFAULT_BAND_SPACING,
    DOMAIN_PADDING_FRACTION,
    MIN_BAND_GAP_PX,
    NICE_TICK_COUNT,
)
from statwidgets.linked_plot.series_model import LineChart, Series, fallback, is_missing

logger = get_logger(__name__)


@dataclass(frozen=True)
class Domain:
    minimum: float = 0.0
    maximum: float = 0.0

    @property
    def spread(self) -> float:
        return self.maximum - self.minimum


def _finite(values: Sequence[Any]) -> np.ndarray:
    arr = np.array([v for v in values if not is_missing(v)], dtype=float)
    return arr[np.isfinite(arr)]


def _domain_of(values: Sequence[Any]) -> Domain:
    # Zero always belongs to the domain so bars and boxes share a baseline.
    arr = np.append(_finite(values), 0.0)
    return Domain(minimum=float(np.min(arr)), maximum=float(np.max(arr)))


def domain(series: Series) -> Domain:
    """Min and max over every summary field and outlier value in the series.

    Missing and NaN values are ignored and 0 is always included, so an empty
    or all-missing series yields Domain(0, 0).
    """
    values: list[Any] = []
    for group in series.data:
        for box in group.value:
            values.extend(box.value.summary_values())
            values.extend(o.value for o in box.value.outliers)
    return _domain_of(values)


def line_domain(chart: LineChart) -> Domain:
    """Min and max over the point medians of every line.

    Unlike domain(), 0 is not added, so the axis zooms to the data. A chart
    without any finite median yields Domain(0, 0).
    """
    arr = _finite([p.median for line in chart.data for p in line.points])
    if arr.size == 0:
        return Domain()
    return Domain(minimum=float(np.min(arr)), maximum=float(np.max(arr)))


@dataclass(frozen=True)
class OrdinalBands:
    """Ordinal band scale: maps each key to the left edge of its band.

    Attributes:
        keys: Keys in display order.
        step: Distance between consecutive band starts.
        bandwidth: Width of one band.
        offset: Position of the first band start.
    """
    keys: tuple[str, ...] = ()
    step: float = 0.0
    bandwidth: float = 0.0
    offset: float = 0.0
    _index: dict[str, int] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "keys", tuple(self.keys))
        object.__setattr__(self, "_index", {k: i for i, k in enumerate(self.keys)})

    def position(self, key: str) -> float:
        """Left edge of the band for key.

        Raises:
            KeyError: If key is not part of the scale.
        """
        return self.offset + self._index[key] * self.step

    def center(self, key: str) -> float:
        return self.position(key) + self.bandwidth / 2

    def __call__(self, key: str) -> float:
        return self.position(key)


def range_bands(keys: Sequence[str], range_width: float, padding: float) -> OrdinalBands:
    """d3 ``rangeBands([0, range_width], padding)`` with outer padding equal to padding."""
    keys = list(keys)
    n = len(keys)
    if n == 0:
        return OrdinalBands(keys=())
    step = range_width / (n - padding + 2 * padding)
    bandwidth = max(step * (1 - padding), 0.0)
    return OrdinalBands(keys=tuple(keys), step=step, bandwidth=bandwidth, offset=step * padding)


def major_positions(
    keys: Sequence[str],
    range_width: float,
    spacing: float = DEFAULT_BAND_SPACING,
) -> OrdinalBands:
    """Bands for major groups across ``[0, range_width)``."""
    return range_bands(keys, range_width, spacing)


def minor_padding(n_keys: int, band_width: float, spacing: float) -> float:
    """Spacing for minor bands, clamped so adjacent boxes keep a 2px gap.

    If ``spacing * band_width / n_keys`` is under 2 pixels the spacing
    becomes ``2 / (band_width / n_keys)``.
    """
    if n_keys == 0 or band_width <= 0:
        return spacing
    per_box = band_width / n_keys
    if spacing * per_box >= MIN_BAND_GAP_PX:
        return spacing
    return MIN_BAND_GAP_PX / per_box


def minor_positions(
    keys: Sequence[str],
    band_width: float,
    spacing: float = DEFAULT_BAND_SPACING,
) -> OrdinalBands:
    """Nested bands for minor boxes inside one major band of ``band_width``.

    A lone minor box gets no padding and fills the whole major band.
    """
    keys = list(keys)
    if len(keys) <= 1:
        return range_bands(keys, band_width, 0.0)
    padding = minor_padding(len(keys), band_width, spacing)
    return range_bands(keys, band_width, padding)


def _tick_step(lo: float, hi: float, count: int) -> float:
    span = hi - lo
    if not span > 0 or not math.isfinite(span):
        return 0.0
    step = 10.0 ** math.floor(math.log10(span / count))
    err = count / span * step
    if err <= 0.15:
        step *= 10
    elif err <= 0.35:
        step *= 5
    elif err <= 0.75:
        step *= 2
    return step


def nice_bounds(lo: float, hi: float, count: int = NICE_TICK_COUNT) -> tuple[float, float]:
    """Extend [lo, hi] outward to round tick boundaries (d3 ``linear.nice``).

    The step is computed twice, as d3 does, because the first rounding can
    change the span enough to pick a coarser step.
    """
    if hi < lo:
        lo, hi = hi, lo
    for _ in range(2):
        step = _tick_step(lo, hi, count)
        if not step:
            break
        lo = math.floor(lo / step) * step
        hi = math.ceil(hi / step) * step
    return lo, hi


@dataclass(frozen=True)
class LinearScale:
    """Linear map from a value domain to a pixel range (range may be inverted)."""
    domain_min: float
    domain_max: float
    range_start: float
    range_end: float

    def __call__(self, value: Optional[float]) -> Optional[float]:
        if is_missing(value):
            return None
        span = self.domain_max - self.domain_min
        t = (float(value) - self.domain_min) / span if span else 0.0
        return self.range_start + t * (self.range_end - self.range_start)

    def invert(self, pixel: float) -> float:
        span = self.range_end - self.range_start
        t = (pixel - self.range_start) / span if span else 0.0
        return self.domain_min + t * (self.domain_max - self.domain_min)

    @property
    def domain(self) -> Domain:
        return Domain(self.domain_min, self.domain_max)


def value_scale(dom: Domain, pixel_height: float) -> LinearScale:
    """Vertical scale: domain padded by spread/10 on both ends, niced, mapped to [height, 0]."""
    pad = dom.spread * DOMAIN_PADDING_FRACTION
    lo, hi = nice_bounds(dom.minimum - pad, dom.maximum + pad)
    return LinearScale(domain_min=lo, domain_max=hi, range_start=float(pixel_height), range_end=0.0)


def part_opacity(extra: Mapping[str, Any], part: Optional[str] = None) -> float:
    """Opacity override chain: ``extra[<part>Opacity]`` then ``extra['opacity']`` then 1.

    An explicit 0 at any step wins; other falsy values fall through.
    """
    names = ([f"{part}Opacity"] if part else []) + ["opacity"]
    for name in names:
        value = extra.get(name)
        if value is None or is_missing(value):
            continue
        if value == 0:
            return 0.0
        if value:
            return float(value)
    return 1.0


@dataclass(frozen=True)
class BoxGlyph:
    """Pixel geometry for one minor box, ready for a renderer."""
    group_key: str
    box_key: str
    x: float
    width: float
    color: str
    q3: Optional[float] = None
    q1: Optional[float] = None
    median: Optional[float] = None
    high_whisker: Optional[float] = None
    low_whisker: Optional[float] = None
    outliers: tuple[tuple[Any, Optional[float]], ...] = ()
    box_opacity: float = 1.0
    whisker_opacity: float = 1.0
    median_opacity: float = 1.0
    outlier_opacity: float = 1.0
    no_data: bool = False


@dataclass(frozen=True)
class BoxLayout:
    x_bands: OrdinalBands
    y_scale: LinearScale
    glyphs: tuple[BoxGlyph, ...] = ()


def layout_boxes(
    series: Series,
    width: float,
    height: float,
    spacing: Optional[float] = None,
) -> BoxLayout:
    """Compute pixel geometry for every box in a (transformed, sorted) series.

    Whisker ends use the draw-time fallbacks ``high_whisker -> q3 -> median``
    and ``low_whisker -> q1 -> median``. Boxes flagged no_data get position
    and width but no y geometry.
    """
    if spacing is None:
        spacing = series.metadata.box_group_spacing or DEFAULT_BAND_SPACING
    x_bands = major_positions(series.major_keys(), width, spacing)
    y_scale = value_scale(domain(series), height)

    glyphs = []
    for group in series.data:
        minor = minor_positions(group.minor_keys(), x_bands.bandwidth, spacing)
        for box in group.value:
            s = box.value
            x = x_bands.position(group.key) + minor.position(box.key)
            if s.no_data:
                glyphs.append(
                    BoxGlyph(group.key, box.key, x, minor.bandwidth, s.color, no_data=True)
                )
                continue
            glyphs.append(
                BoxGlyph(
                    group_key=group.key,
                    box_key=box.key,
                    x=x,
                    width=minor.bandwidth,
                    color=s.color,
                    q3=y_scale(s.q3),
                    q1=y_scale(s.q1),
                    median=y_scale(s.median),
                    high_whisker=y_scale(fallback(s.high_whisker, s.q3, s.median)),
                    low_whisker=y_scale(fallback(s.low_whisker, s.q1, s.median)),
                    outliers=tuple((o.key, y_scale(o.value)) for o in s.outliers),
                    box_opacity=part_opacity(s.extra),
                    whisker_opacity=part_opacity(s.extra, "whisker"),
                    median_opacity=part_opacity(s.extra, "median"),
                    outlier_opacity=part_opacity(s.extra, "outlier"),
                )
            )
    logger.debug(f"layout_boxes: {len(glyphs)} glyphs, y domain={y_scale.domain}")
    return BoxLayout(x_bands=x_bands, y_scale=y_scale, glyphs=tuple(glyphs))
