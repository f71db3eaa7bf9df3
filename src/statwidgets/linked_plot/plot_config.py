"""Option state for one linked plot view.

This module defines the option enums and the PlotConfig dataclass. A
PlotConfig is owned by exactly one view and passed explicitly to every
engine call; there are no process-wide option dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional, Union

from statwidgets.utils.logging import get_logger

logger = get_logger(__name__)


class ScaleMode(Enum):
    LINEAR = "linear"
    LOG = "log"


class SortMode(Enum):
    ALPHABETICAL = "alphabetical"
    INCREASING = "increasing"
    DECREASING = "decreasing"


class MediansMode(Enum):
    ALL = "all"
    ONLY = "only"


class Toggle(Enum):
    ON = "on"
    OFF = "off"


class Differentiation(Enum):
    """How each major group is split into minor boxes."""
    NONE = "none"
    GENDER = "gender"


class RangeMode(Enum):
    """Line view only: absolute medians or per-group fractions."""
    ABSOLUTE = "absolute"
    RELATIVE = "relative"


@dataclass(frozen=True)
class CustomSort:
    """Escape hatch: a cmp-style two-argument comparator (negative, zero, positive)."""
    compare: Callable[[Any, Any], float]
    name: str = "custom"


SortOrder = Union[SortMode, CustomSort]

# Applied when a sort value is not recognized.
DEFAULT_SORT_FALLBACK = SortMode.DECREASING

OPTION_NAMES = (
    "scale",
    "major_sort",
    "minor_sort",
    "sorting",
    "medians",
    "outliers",
    "filter",
    "differentiation",
    "range",
)


def _coerce_enum(enum_cls: type[Enum], value: Any, default: Enum, option: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value))
    except ValueError:
        logger.warning(f"Unknown {option} value {value!r}, using {default.value!r}")
        return default


def coerce_sort(value: Any) -> SortOrder:
    """Turn a mode name, SortMode, CustomSort or bare comparator into a SortOrder."""
    if isinstance(value, (SortMode, CustomSort)):
        return value
    if callable(value):
        return CustomSort(compare=value)
    return _coerce_enum(SortMode, value, DEFAULT_SORT_FALLBACK, "sort")


def sort_name(order: SortOrder) -> str:
    return order.name if isinstance(order, CustomSort) else order.value


@dataclass(frozen=True)
class PlotConfig:
    """Configuration state for a single view.

    Attributes:
        scale: log applies log10(x + 0.05) to every summary value.
        major_sort: ordering of major groups.
        minor_sort: ordering of minor boxes within each group.
        medians: only collapses boxes to their median line.
        outliers: off hides outlier markers (data is unaffected).
        filter: on while the cohort filter is engaged.
        differentiation: box view split (none or male/female).
        range: line view absolute or relative medians.
    """
    scale: ScaleMode = ScaleMode.LINEAR
    major_sort: SortOrder = SortMode.ALPHABETICAL
    minor_sort: SortOrder = SortMode.ALPHABETICAL
    medians: MediansMode = MediansMode.ALL
    outliers: Toggle = Toggle.ON
    filter: Toggle = Toggle.OFF
    differentiation: Differentiation = Differentiation.NONE
    range: RangeMode = RangeMode.ABSOLUTE

    @property
    def sorting(self) -> SortOrder:
        """Single sort setting shown on the controls (the major sort)."""
        return self.major_sort

    def with_option(self, name: str, value: Any) -> "PlotConfig":
        """Return a copy with one option changed.

        ``sorting`` sets both major and minor sort, as the single sort control does.

        Raises:
            ValueError: If name is not a known option.
        """
        if name == "scale":
            return replace(self, scale=_coerce_enum(ScaleMode, value, ScaleMode.LINEAR, name))
        if name == "major_sort":
            return replace(self, major_sort=coerce_sort(value))
        if name == "minor_sort":
            return replace(self, minor_sort=coerce_sort(value))
        if name == "sorting":
            order = coerce_sort(value)
            return replace(self, major_sort=order, minor_sort=order)
        if name == "medians":
            return replace(self, medians=_coerce_enum(MediansMode, value, MediansMode.ALL, name))
        if name == "outliers":
            return replace(self, outliers=_coerce_enum(Toggle, value, Toggle.ON, name))
        if name == "filter":
            return replace(self, filter=_coerce_enum(Toggle, value, Toggle.OFF, name))
        if name == "differentiation":
            return replace(
                self,
                differentiation=_coerce_enum(Differentiation, value, Differentiation.NONE, name),
            )
        if name == "range":
            return replace(self, range=_coerce_enum(RangeMode, value, RangeMode.ABSOLUTE, name))
        raise ValueError(f"{name!r} is not an option; expected one of {', '.join(OPTION_NAMES)}")

    def to_dict(self) -> dict[str, Any]:
        """Serialize PlotConfig to a plain dictionary of option names."""
        return {
            "scale": self.scale.value,
            "major_sort": sort_name(self.major_sort),
            "minor_sort": sort_name(self.minor_sort),
            "medians": self.medians.value,
            "outliers": self.outliers.value,
            "filter": self.filter.value,
            "differentiation": self.differentiation.value,
            "range": self.range.value,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "PlotConfig":
        """Deserialize PlotConfig from a dictionary.

        Missing keys take defaults and unrecognized values fall back with a
        warning. A legacy single ``sorting`` key sets both sort levels.

        Raises:
            ValueError: If data contains an unknown option name.
        """
        data = data or {}
        config = cls()
        if "sorting" in data:
            config = config.with_option("sorting", data["sorting"])
        for name, value in data.items():
            if name == "sorting":
                continue
            config = config.with_option(name, value)
        return config
