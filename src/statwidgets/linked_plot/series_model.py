"""Value-semantic data model for grouped statistical summaries.

All records are frozen dataclasses holding tuples, so a Series captured once
(e.g. as the filter controller's full-dataset cache) can never be changed by
downstream transforms. Derived values are built with ``dataclasses.replace``.

Shapes mirror the JSON the renderer consumes::

    Series      {metadata, data: [MajorGroup], legend: [LegendEntry]}
    MajorGroup  {key, value: [MinorBox], axisLine: {color} | null}
    MinorBox    {key, value: StatSummary}
    StatSummary {high_whisker, q3, median, q1, low_whisker, outliers, color, extra, noData}
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Union

OutlierKey = Union[str, int]


def is_missing(value: Any) -> bool:
    """True for None and NaN."""
    if value is None:
        return True
    try:
        return math.isnan(value)
    except TypeError:
        return False


def _clean(value: Any) -> Optional[float]:
    if is_missing(value):
        return None
    return float(value)


def fallback(*candidates: Any) -> Optional[float]:
    """Return the first candidate that is present and non-zero, else the last one.

    Missing summary fields degrade along a chain such as
    ``high_whisker -> q3 -> median -> 0``. Zero counts as absent at every
    step except the last, so ``fallback(0, 4)`` is 4 and ``fallback(None, 0)`` is 0.
    """
    for value in candidates[:-1]:
        if not is_missing(value) and value != 0:
            return float(value)
    return _clean(candidates[-1]) if candidates else None


def _check_unique(keys: list[Any], what: str) -> None:
    seen: set[Any] = set()
    for k in keys:
        if k in seen:
            raise ValueError(f"Duplicate {what} key {k!r}")
        seen.add(k)


@dataclass(frozen=True)
class Outlier:
    """A single outlier marker; key is its ordinal index or identifier."""
    key: OutlierKey
    value: Optional[float]

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "value": self.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Outlier":
        value = data.get("value")
        # Renderer payloads nest the number as {"outlier": x}
        if isinstance(value, Mapping):
            value = value.get("outlier")
        return cls(key=data.get("key", 0), value=_clean(value))


@dataclass(frozen=True)
class StatSummary:
    """Five-number box summary plus outliers and display hints.

    Expected (not enforced) ordering: low_whisker <= q1 <= median <= q3 <= high_whisker.
    """
    high_whisker: Optional[float] = None
    q3: Optional[float] = None
    median: Optional[float] = None
    q1: Optional[float] = None
    low_whisker: Optional[float] = None
    outliers: tuple[Outlier, ...] = ()
    color: str = "grey"
    extra: dict[str, Any] = field(default_factory=dict)
    no_data: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "outliers", tuple(self.outliers))
        object.__setattr__(self, "extra", dict(self.extra))
        _check_unique([o.key for o in self.outliers], "outlier")

    def summary_values(self) -> tuple[Optional[float], ...]:
        """The five summary fields, top to bottom."""
        return (self.high_whisker, self.q3, self.median, self.q1, self.low_whisker)

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        *,
        color: Optional[str] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> "StatSummary":
        """Build a summary from a raw statistics record, degrading missing fields.

        Fallback chain:
            high_whisker -> q3 -> median -> 0
            q3 -> median -> 0
            q1 -> median -> 0
            low_whisker -> q1 -> median
        """
        high = record.get("high_whisker")
        q3 = record.get("q3")
        median = record.get("median")
        q1 = record.get("q1")
        low = record.get("low_whisker")

        raw_outliers = record.get("outliers")
        if raw_outliers is None or (not isinstance(raw_outliers, (list, tuple)) and is_missing(raw_outliers)):
            raw_outliers = []
        outliers = tuple(Outlier(key=i, value=_clean(v)) for i, v in enumerate(raw_outliers))

        merged_extra: dict[str, Any] = {}
        if "num_samples" in record and not is_missing(record.get("num_samples")):
            merged_extra["num_samples"] = int(record["num_samples"])
        if extra:
            merged_extra.update(extra)

        return cls(
            high_whisker=fallback(high, q3, median, 0),
            q3=fallback(q3, median, 0),
            median=_clean(median),
            q1=fallback(q1, median, 0),
            low_whisker=fallback(low, q1, median),
            outliers=outliers,
            color=color if color is not None else str(record.get("color") or "grey"),
            extra=merged_extra,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "high_whisker": self.high_whisker,
            "q3": self.q3,
            "median": self.median,
            "q1": self.q1,
            "low_whisker": self.low_whisker,
            "outliers": [o.to_dict() for o in self.outliers],
            "color": self.color,
            "extra": dict(self.extra),
            "noData": self.no_data,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StatSummary":
        """Load an already-normalized summary (no fallback chain applied)."""
        return cls(
            high_whisker=_clean(data.get("high_whisker")),
            q3=_clean(data.get("q3")),
            median=_clean(data.get("median")),
            q1=_clean(data.get("q1")),
            low_whisker=_clean(data.get("low_whisker")),
            outliers=tuple(Outlier.from_dict(o) for o in data.get("outliers") or []),
            color=str(data.get("color") or "grey"),
            extra=dict(data.get("extra") or {}),
            no_data=bool(data.get("noData", data.get("no_data", False))),
        )


@dataclass(frozen=True)
class MinorBox:
    """A sub-category box inside one major group (e.g. one cohort of a tissue)."""
    key: str
    value: StatSummary

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "value": self.value.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MinorBox":
        return cls(key=str(data.get("key") or ""), value=StatSummary.from_dict(data.get("value") or {}))


@dataclass(frozen=True)
class AxisLine:
    """Colored reference marker drawn under a major group."""
    color: str


@dataclass(frozen=True)
class MajorGroup:
    """A top-level category on the categorical axis."""
    key: str
    value: tuple[MinorBox, ...] = ()
    axis_line: Optional[AxisLine] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", tuple(self.value))
        _check_unique([b.key for b in self.value], f"minor box (group {self.key!r})")

    def minor_keys(self) -> list[str]:
        return [b.key for b in self.value]

    def box(self, key: str) -> Optional[MinorBox]:
        for b in self.value:
            if b.key == key:
                return b
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "value": [b.to_dict() for b in self.value],
            "axisLine": {"color": self.axis_line.color} if self.axis_line else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MajorGroup":
        axis = data.get("axisLine")
        return cls(
            key=str(data.get("key")),
            value=tuple(MinorBox.from_dict(b) for b in data.get("value") or []),
            axis_line=AxisLine(color=str(axis.get("color"))) if isinstance(axis, Mapping) else None,
        )


@dataclass(frozen=True)
class LegendEntry:
    key: str
    label: str
    color: str

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "value": {"label": self.label, "color": self.color}}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LegendEntry":
        value = data.get("value") or {}
        return cls(
            key=str(data.get("key")),
            label=str(value.get("label", data.get("key"))),
            color=str(value.get("color", "grey")),
        )


@dataclass(frozen=True)
class PlotMetadata:
    """Chart-level metadata; missing or falsy values take the defaults below."""
    type: str = "box"
    title: str = ""
    width: float = 1000
    height: float = 400
    xlabel: str = ""
    ylabel: str = ""
    box_group_spacing: float = 0.1

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "title": self.title,
            "width": self.width,
            "height": self.height,
            "xlabel": self.xlabel,
            "ylabel": self.ylabel,
            "boxGroupSpacing": self.box_group_spacing,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "PlotMetadata":
        data = data or {}
        return cls(
            type=str(data.get("type") or "box"),
            title=str(data.get("title") or ""),
            width=float(data.get("width") or 1000),
            height=float(data.get("height") or 400),
            xlabel=str(data.get("xlabel") or ""),
            ylabel=str(data.get("ylabel") or ""),
            box_group_spacing=float(data.get("boxGroupSpacing") or data.get("box_group_spacing") or 0.1),
        )


@dataclass(frozen=True)
class Series:
    """The full ordered dataset for one box chart."""
    metadata: PlotMetadata = field(default_factory=PlotMetadata)
    data: tuple[MajorGroup, ...] = ()
    legend: tuple[LegendEntry, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", tuple(self.data))
        object.__setattr__(self, "legend", tuple(self.legend))
        _check_unique([g.key for g in self.data], "major group")

    def major_keys(self) -> list[str]:
        return [g.key for g in self.data]

    def group(self, key: str) -> Optional[MajorGroup]:
        for g in self.data:
            if g.key == key:
                return g
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "data": [g.to_dict() for g in self.data],
            "legend": [e.to_dict() for e in self.legend],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Series":
        return cls(
            metadata=PlotMetadata.from_dict(data.get("metadata")),
            data=tuple(MajorGroup.from_dict(g) for g in data.get("data") or []),
            legend=tuple(LegendEntry.from_dict(e) for e in data.get("legend") or []),
        )


# -----------------------------------------------------------------------------
# Line-chart variant
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class LinePoint:
    """One point of a line; key is the x position (typically a major group name)."""
    key: str
    median: Optional[float]
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra", dict(self.extra))

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "value": {"median": self.median, "extra": dict(self.extra)}}


@dataclass(frozen=True)
class LineSeries:
    key: str
    color: str = "grey"
    points: tuple[LinePoint, ...] = ()
    style: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", tuple(self.points))
        object.__setattr__(self, "style", dict(self.style))
        _check_unique([p.key for p in self.points], f"point (line {self.key!r})")

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "value": {
                "color": self.color,
                "points": [p.to_dict() for p in self.points],
                "style": dict(self.style),
            },
        }


@dataclass(frozen=True)
class LineChart:
    """The full ordered dataset for one multi-series line chart."""
    metadata: PlotMetadata = field(default_factory=lambda: PlotMetadata(type="line"))
    data: tuple[LineSeries, ...] = ()
    legend: tuple[LegendEntry, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", tuple(self.data))
        object.__setattr__(self, "legend", tuple(self.legend))
        _check_unique([line.key for line in self.data], "line")

    def major_keys(self) -> list[str]:
        """X-axis keys in first-seen order across all lines."""
        keys: list[str] = []
        seen: set[str] = set()
        for line in self.data:
            for p in line.points:
                if p.key not in seen:
                    seen.add(p.key)
                    keys.append(p.key)
        return keys

    def with_major_keys(self, keys: list[str]) -> "LineChart":
        """Copy keeping only points whose key is in ``keys``."""
        wanted = set(keys)

        return replace(
            self,
            data=tuple(
                replace(line, points=tuple(p for p in line.points if p.key in wanted))
                for line in self.data
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "data": [line.to_dict() for line in self.data],
            "legend": [e.to_dict() for e in self.legend],
        }
