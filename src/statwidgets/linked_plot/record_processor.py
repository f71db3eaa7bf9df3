"""Ingestion of per-group summary records into Series values.

This module provides the RecordProcessor class, which turns a pandas
DataFrame of summary records (one row per group) into the box and line
datasets consumed by the engine, plus series_to_frame() for text reports.
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np
import pandas as pd

from statwidgets.utils.logging import get_logger
from statwidgets.linked_plot.conventions import (
    DEFAULT_BOX_COLOR,
    FEMALE_COLOR,
    FEMALE_KEY,
    MALE_COLOR,
    MALE_KEY,
)
from statwidgets.linked_plot.series_model import (
    AxisLine,
    LegendEntry,
    LineChart,
    LinePoint,
    LineSeries,
    MajorGroup,
    MinorBox,
    PlotMetadata,
    Series,
    StatSummary,
    is_missing,
)

logger = get_logger(__name__)

SUMMARY_COLUMNS = ("high_whisker", "q3", "median", "q1", "low_whisker")
OPACITY_KEYS = ("opacity", "whiskerOpacity", "medianOpacity", "outlierOpacity")


class RecordProcessor:
    """Builds Series values from a DataFrame of summary records.

    Attributes:
        df: The source DataFrame.
        group_col: Column holding the major-group identifier.
        color_col: Optional column holding the group's color.
    """

    def __init__(
        self,
        df: pd.DataFrame,
        *,
        group_col: str = "group",
        color_col: Optional[str] = "color",
        unique_groups: bool = True,
    ) -> None:
        """Initialize RecordProcessor.

        Args:
            df: DataFrame with one summary record per row.
            group_col: Column name containing the group identifier.
            color_col: Column name containing colors; ignored if absent.
            unique_groups: Reject repeated group values (box input). Long-format
                line input repeats groups once per line.

        Raises:
            ValueError: If the group column is missing or duplicated groups are found.
        """
        if group_col not in df.columns:
            raise ValueError(f"df must contain required column {group_col!r}")
        dupes = df[group_col].astype(str)
        dupes = dupes[dupes.duplicated()].tolist()
        if unique_groups and dupes:
            raise ValueError(f"Duplicate group values in {group_col!r}: {dupes}")
        self.df = df
        self.group_col = group_col
        self.color_col = color_col if color_col and color_col in df.columns else None

    def groups(self) -> list[str]:
        """Group identifiers in row order."""
        return self.df[self.group_col].astype(str).tolist()

    def records(self) -> list[dict[str, Any]]:
        """Rows as plain dicts with NaN cells mapped to None."""
        out = []
        for row in self.df.to_dict(orient="records"):
            out.append({k: (None if _is_missing_cell(v) else v) for k, v in row.items()})
        return out

    def _color(self, record: dict[str, Any]) -> str:
        if self.color_col is None:
            return DEFAULT_BOX_COLOR
        return str(record.get(self.color_col) or DEFAULT_BOX_COLOR)

    def summary(self, record: dict[str, Any], color: Optional[str] = None) -> StatSummary:
        """Build one StatSummary, applying the whisker/quartile fallback chain.

        A record whose five summary fields are all exactly 0 is drawn fully
        transparent (every opacity override set to 0).
        """
        all_zero = all(record.get(col) == 0 for col in SUMMARY_COLUMNS)
        opacity = 0 if all_zero else 1
        extra = {part: opacity for part in OPACITY_KEYS}
        return StatSummary.from_record(record, color=color or self._color(record), extra=extra)

    def box_series(self, metadata: Optional[PlotMetadata] = None) -> Series:
        """One box per group; the minor box shares the group's key.

        Returns:
            Series with one MajorGroup per row, colored axis lines and no legend.
        """
        groups = []
        for record in self.records():
            key = str(record[self.group_col])
            color = self._color(record)
            groups.append(
                MajorGroup(
                    key=key,
                    value=(MinorBox(key=key, value=self.summary(record, color)),),
                    axis_line=AxisLine(color=color),
                )
            )
        logger.debug(f"box_series: {len(groups)} groups")
        return Series(metadata=metadata or PlotMetadata(type="box"), data=tuple(groups))

    def line_chart(
        self,
        line_col: str,
        *,
        median_col: str = "median",
        line_colors: Optional[dict[str, str]] = None,
        metadata: Optional[PlotMetadata] = None,
    ) -> LineChart:
        """One LineSeries per distinct ``line_col`` value, one point per group.

        Unlike box_series(), groups may repeat here (one row per line and group).

        Raises:
            ValueError: If line_col or median_col is missing.
        """
        for col in (line_col, median_col):
            if col not in self.df.columns:
                raise ValueError(f"df must contain required column {col!r}")
        line_colors = line_colors or {}
        lines = []
        legend = []
        for line_key, sub in self.df.groupby(line_col, sort=False):
            line_key = str(line_key)
            color = line_colors.get(line_key, DEFAULT_BOX_COLOR)
            points = []
            for _, row in sub.iterrows():
                median = row[median_col]
                extra = {}
                if "num_samples" in sub.columns and not _is_missing_cell(row["num_samples"]):
                    extra["num_samples"] = int(row["num_samples"])
                points.append(
                    LinePoint(
                        key=str(row[self.group_col]),
                        median=None if _is_missing_cell(median) else float(median),
                        extra=extra,
                    )
                )
            lines.append(LineSeries(key=line_key, color=color, points=tuple(points)))
            legend.append(LegendEntry(key=line_key, label=line_key, color=color))
        return LineChart(
            metadata=metadata or PlotMetadata(type="line"),
            data=tuple(lines),
            legend=tuple(legend),
        )


def _is_missing_cell(value: Any) -> bool:
    if isinstance(value, (list, tuple, np.ndarray)):
        return False
    return is_missing(value)


def _check_frame(df: pd.DataFrame, group_col: str) -> None:
    if group_col not in df.columns:
        raise ValueError(f"df must contain required column {group_col!r}")


def box_series_from_frame(
    df: pd.DataFrame,
    *,
    group_col: str = "group",
    metadata: Optional[PlotMetadata] = None,
) -> Series:
    """Build a single-cohort box Series (one box per group)."""
    return RecordProcessor(df, group_col=group_col).box_series(metadata)


def gender_series_from_frames(
    male_df: pd.DataFrame,
    female_df: pd.DataFrame,
    *,
    group_col: str = "group",
    male_color: str = MALE_COLOR,
    female_color: str = FEMALE_COLOR,
    metadata: Optional[PlotMetadata] = None,
) -> Series:
    """Build a two-cohort Series: each group holds a male box then a female box.

    Groups appear in first-seen order across both frames. A group present in
    only one frame gets a ``no_data`` placeholder box for the other cohort.

    Raises:
        ValueError: If either frame lacks the group column.
    """
    _check_frame(male_df, group_col)
    _check_frame(female_df, group_col)
    male = RecordProcessor(male_df, group_col=group_col, color_col=None)
    female = RecordProcessor(female_df, group_col=group_col, color_col=None)
    male_records = {str(r[group_col]): r for r in male.records()}
    female_records = {str(r[group_col]): r for r in female.records()}

    order: list[str] = []
    for key in male.groups() + female.groups():
        if key not in order:
            order.append(key)

    groups = []
    for key in order:
        boxes = []
        for cohort, records, processor, color in (
            (MALE_KEY, male_records, male, male_color),
            (FEMALE_KEY, female_records, female, female_color),
        ):
            record = records.get(key)
            if record is None:
                summary = StatSummary(color=color, no_data=True)
            else:
                summary = processor.summary(record, color)
            boxes.append(MinorBox(key=cohort, value=summary))
        groups.append(MajorGroup(key=key, value=tuple(boxes)))

    missing = [k for k in order if k not in male_records or k not in female_records]
    if missing:
        logger.info(f"gender_series_from_frames: {len(missing)} groups lack one cohort")

    legend = (
        LegendEntry(key=MALE_KEY, label="Male", color=male_color),
        LegendEntry(key=FEMALE_KEY, label="Female", color=female_color),
    )
    return Series(metadata=metadata or PlotMetadata(type="box"), data=tuple(groups), legend=legend)


def line_chart_from_frame(
    df: pd.DataFrame,
    line_col: str,
    *,
    group_col: str = "group",
    median_col: str = "median",
    line_colors: Optional[dict[str, str]] = None,
    metadata: Optional[PlotMetadata] = None,
) -> LineChart:
    """Build a LineChart from long-format rows (line, group, median).

    Raises:
        ValueError: If a required column is missing or a (line, group) pair repeats.
    """
    _check_frame(df, group_col)
    if line_col not in df.columns:
        raise ValueError(f"df must contain required column {line_col!r}")
    pairs = df[[line_col, group_col]].astype(str)
    if pairs.duplicated().any():
        raise ValueError(f"Duplicate ({line_col}, {group_col}) pairs in df")
    processor = RecordProcessor(df, group_col=group_col, color_col=None, unique_groups=False)
    return processor.line_chart(
        line_col, median_col=median_col, line_colors=line_colors, metadata=metadata
    )


def series_to_frame(series: Series) -> pd.DataFrame:
    """Flatten a Series into a summary table, one row per minor box.

    Columns: group, box, high_whisker, q3, median, q1, low_whisker,
    n_outliers, num_samples, no_data.
    """
    rows = []
    for group in series.data:
        for box in group.value:
            s = box.value
            row: dict[str, Any] = {"group": group.key, "box": box.key}
            for col, value in zip(SUMMARY_COLUMNS, s.summary_values()):
                row[col] = np.nan if value is None else value
            row["n_outliers"] = len(s.outliers)
            row["num_samples"] = s.extra.get("num_samples", np.nan)
            row["no_data"] = s.no_data
            rows.append(row)
    columns = ["group", "box", *SUMMARY_COLUMNS, "n_outliers", "num_samples", "no_data"]
    return pd.DataFrame(rows, columns=columns)
