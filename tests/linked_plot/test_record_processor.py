"""Tests for building Series values from pandas summary records."""

import math

import numpy as np
import pandas as pd
import pytest

from statwidgets.linked_plot.conventions import DEFAULT_BOX_COLOR
from statwidgets.linked_plot.record_processor import (
    RecordProcessor,
    box_series_from_frame,
    gender_series_from_frames,
    line_chart_from_frame,
    series_to_frame,
)


@pytest.fixture
def summary_df():
    return pd.DataFrame({
        "group": ["Lung", "Brain", "Heart"],
        "high_whisker": [10.0, np.nan, 0.0],
        "q3": [9.0, np.nan, 0.0],
        "median": [5.0, 4.0, 0.0],
        "q1": [2.0, 2.0, 0.0],
        "low_whisker": [1.0, np.nan, 0.0],
        "outliers": [[14.0, 0.5], [], None],
        "num_samples": [30, 12, 0],
        "color": ["red", None, "blue"],
    })


def test_box_series_one_box_per_group(summary_df):
    series = box_series_from_frame(summary_df)
    assert series.major_keys() == ["Lung", "Brain", "Heart"]
    lung = series.group("Lung")
    assert lung.minor_keys() == ["Lung"]
    assert lung.axis_line.color == "red"
    s = lung.box("Lung").value
    assert s.summary_values() == (10.0, 9.0, 5.0, 2.0, 1.0)
    assert [o.value for o in s.outliers] == [14.0, 0.5]
    assert s.extra["num_samples"] == 30


def test_missing_fields_use_fallback_chain(summary_df):
    """Brain lacks whiskers and q3: high -> q3 -> median, low -> q1."""
    s = box_series_from_frame(summary_df).group("Brain").value[0].value
    assert s.high_whisker == 4.0
    assert s.q3 == 4.0
    assert s.q1 == 2.0
    assert s.low_whisker == 2.0
    assert s.color == DEFAULT_BOX_COLOR
    assert s.outliers == ()


def test_all_zero_record_is_transparent(summary_df):
    series = box_series_from_frame(summary_df)
    heart = series.group("Heart").value[0].value
    assert heart.extra["opacity"] == 0
    assert heart.extra["whiskerOpacity"] == 0
    assert series.group("Lung").value[0].value.extra["opacity"] == 1


def test_missing_group_column_raises(summary_df):
    with pytest.raises(ValueError):
        RecordProcessor(summary_df.drop(columns=["group"]))


def test_duplicate_groups_raise(summary_df):
    df = pd.concat([summary_df, summary_df.iloc[[0]]], ignore_index=True)
    with pytest.raises(ValueError) as exc_info:
        box_series_from_frame(df)
    assert "Lung" in str(exc_info.value)


def test_records_map_nan_to_none(summary_df):
    records = RecordProcessor(summary_df).records()
    assert records[1]["q3"] is None
    assert records[0]["outliers"] == [14.0, 0.5]


def test_gender_series_male_then_female():
    male = pd.DataFrame({"group": ["Lung", "Brain"], "median": [6.0, 2.0]})
    female = pd.DataFrame({"group": ["Lung", "Heart"], "median": [4.0, 9.0]})
    series = gender_series_from_frames(male, female)
    assert series.major_keys() == ["Lung", "Brain", "Heart"]
    for group in series.data:
        assert group.minor_keys() == ["male", "female"]
    assert series.group("Brain").box("female").value.no_data
    assert series.group("Heart").box("male").value.no_data
    assert series.group("Lung").box("female").value.median == 4.0
    assert [entry.label for entry in series.legend] == ["Male", "Female"]


def test_gender_series_requires_group_column():
    with pytest.raises(ValueError):
        gender_series_from_frames(pd.DataFrame({"median": [1.0]}), pd.DataFrame({"group": ["a"]}))


@pytest.fixture
def long_df():
    return pd.DataFrame({
        "isoform": ["iso1", "iso1", "iso2", "iso2"],
        "group": ["Lung", "Brain", "Lung", "Brain"],
        "median": [2.0, 6.0, np.nan, 2.0],
        "num_samples": [10, 11, 10, 11],
    })


def test_line_chart_from_frame(long_df):
    chart = line_chart_from_frame(long_df, "isoform", line_colors={"iso1": "red"})
    assert [line.key for line in chart.data] == ["iso1", "iso2"]
    assert chart.major_keys() == ["Lung", "Brain"]
    assert chart.data[0].color == "red"
    assert chart.data[1].color == DEFAULT_BOX_COLOR
    assert chart.data[1].points[0].median is None
    assert chart.data[0].points[1].extra["num_samples"] == 11
    assert [entry.key for entry in chart.legend] == ["iso1", "iso2"]


def test_line_chart_duplicate_pairs_raise(long_df):
    df = pd.concat([long_df, long_df.iloc[[0]]], ignore_index=True)
    with pytest.raises(ValueError):
        line_chart_from_frame(df, "isoform")


def test_line_chart_missing_line_column_raises(long_df):
    with pytest.raises(ValueError):
        line_chart_from_frame(long_df, "transcript")


def test_series_to_frame(gender_series):
    df = series_to_frame(gender_series)
    assert list(df.columns) == [
        "group", "box", "high_whisker", "q3", "median", "q1", "low_whisker",
        "n_outliers", "num_samples", "no_data",
    ]
    assert len(df) == 6
    assert df.iloc[0].to_dict()["box"] == "female"
    assert df["median"].tolist()[:2] == [4.0, 6.0]
    assert math.isnan(df["num_samples"].iloc[0])
    assert not df["no_data"].any()
