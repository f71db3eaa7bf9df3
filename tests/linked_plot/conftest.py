# tests/linked_plot/conftest.py
"""Pytest configuration and sample data for linked_plot tests."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_src_on_path() -> None:
    # Ensure statwidgets is importable when running tests from the repo root.
    repo_root = Path(__file__).resolve().parents[2]
    src_dir = repo_root / "src"
    if src_dir.exists() and str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))


def pytest_configure() -> None:
    _ensure_src_on_path()


# Fixtures below import statwidgets at module import time.
_ensure_src_on_path()

from statwidgets.linked_plot.series_model import (  # noqa: E402
    LegendEntry,
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


def make_box(key: str, median, *, hw=None, q3=None, q1=None, lw=None, outliers=(), no_data=False, color="grey"):
    """MinorBox with explicit fields; unset quartiles default to the median."""
    return MinorBox(
        key=key,
        value=StatSummary(
            high_whisker=hw if hw is not None else median,
            q3=q3 if q3 is not None else median,
            median=median,
            q1=q1 if q1 is not None else median,
            low_whisker=lw if lw is not None else median,
            outliers=tuple(Outlier(key=i, value=v) for i, v in enumerate(outliers)),
            color=color,
            no_data=no_data,
        ),
    )


def make_series(groups: dict[str, list[MinorBox]], legend=()) -> Series:
    return Series(
        metadata=PlotMetadata(width=1000, height=400),
        data=tuple(MajorGroup(key=k, value=tuple(v)) for k, v in groups.items()),
        legend=tuple(legend),
    )


@pytest.fixture
def ab_series() -> Series:
    """Two groups: A with median 3, B with median 8."""
    return make_series({"A": [make_box("A", 3.0)], "B": [make_box("B", 8.0)]})


@pytest.fixture
def full_box_series() -> Series:
    """Three groups of one full box each, with outliers."""
    return make_series({
        "Lung": [make_box("Lung", 5.0, hw=10.0, q3=9.0, q1=2.0, lw=1.0, outliers=[14.0, 0.5])],
        "Brain": [make_box("Brain", 2.0, hw=4.0, q3=3.0, q1=1.0, lw=0.5)],
        "Heart": [make_box("Heart", 7.0, hw=12.0, q3=8.0, q1=6.0, lw=4.0, outliers=[20.0])],
    })


@pytest.fixture
def gender_series() -> Series:
    """Two-cohort series with boxes stored female-first."""
    return make_series(
        {
            "Lung": [make_box("female", 4.0), make_box("male", 6.0)],
            "Brain": [make_box("female", 1.0), make_box("male", 2.0)],
            "Heart": [make_box("female", 9.0), make_box("male", 5.0)],
        },
        legend=(
            LegendEntry(key="male", label="Male", color="blue"),
            LegendEntry(key="female", label="Female", color="pink"),
        ),
    )


@pytest.fixture
def line_chart() -> LineChart:
    """Two lines over three tissues."""
    return LineChart(
        metadata=PlotMetadata(type="line", width=600, height=300),
        data=(
            LineSeries(
                key="iso1",
                color="red",
                points=(
                    LinePoint("Lung", 2.0),
                    LinePoint("Brain", 6.0),
                    LinePoint("Heart", 1.0),
                ),
            ),
            LineSeries(
                key="iso2",
                color="green",
                points=(
                    LinePoint("Lung", 2.0),
                    LinePoint("Brain", 2.0),
                    LinePoint("Heart", 0.0),
                ),
            ),
        ),
        legend=(
            LegendEntry(key="iso1", label="iso1", color="red"),
            LegendEntry(key="iso2", label="iso2", color="green"),
        ),
    )


@pytest.fixture
def box_factory():
    """make_box(key, median, hw=, q3=, q1=, lw=, outliers=, no_data=, color=)."""
    return make_box


@pytest.fixture
def series_factory():
    """make_series({group: [MinorBox, ...]}, legend=())."""
    return make_series
