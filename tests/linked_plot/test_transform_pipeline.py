"""Unit tests for the log and medians-only transforms."""

import math
from dataclasses import replace

import pytest

from statwidgets.linked_plot.plot_config import MediansMode, PlotConfig, ScaleMode
from statwidgets.linked_plot.series_model import MinorBox, StatSummary
from statwidgets.linked_plot.transform_pipeline import (
    inverse_log,
    log_transform,
    log_value,
    medians_only,
    relative_lines,
    transform,
    transform_lines,
)

LOG = PlotConfig(scale=ScaleMode.LOG)
MEDIANS = PlotConfig(medians=MediansMode.ONLY)


def _keys(series):
    return [(g.key, tuple(g.minor_keys())) for g in series.data]


def test_medians_only_collapses_box(box_factory, series_factory):
    """{hw 10, q3 9, median 5, q1 2, lw 1} -> all five fields 5; outliers untouched."""
    series = series_factory({"A": [box_factory("a", 5.0, hw=10.0, q3=9.0, q1=2.0, lw=1.0, outliers=[20.0])]})
    result = transform(series, MEDIANS)
    s = result.data[0].value[0].value
    assert s.summary_values() == (5.0, 5.0, 5.0, 5.0, 5.0)
    assert s.outliers == series.data[0].value[0].value.outliers
    assert s.color == series.data[0].value[0].value.color


def test_log_round_trip(full_box_series):
    """inverse_log(log_value(x)) recovers every summary field and outlier."""
    logged = log_transform(full_box_series)
    for g_in, g_out in zip(full_box_series.data, logged.data):
        for b_in, b_out in zip(g_in.value, g_out.value):
            for before, after in zip(b_in.value.summary_values(), b_out.value.summary_values()):
                assert inverse_log(after) == pytest.approx(before)
            for o_in, o_out in zip(b_in.value.outliers, b_out.value.outliers):
                assert inverse_log(o_out.value) == pytest.approx(o_in.value)


def test_log_value_edges():
    assert log_value(None) is None
    assert log_value(0) == pytest.approx(math.log10(0.05))
    assert math.isnan(log_value(-0.05))
    assert math.isnan(log_value(-3))


def test_log_keeps_missing_fields(series_factory):
    series = series_factory({"A": [MinorBox("a", StatSummary(median=1.0))]})
    s = log_transform(series).data[0].value[0].value
    assert s.q3 is None
    assert s.median == pytest.approx(math.log10(1.05))


def test_placeholder_boxes_pass_through(box_factory, series_factory):
    """no_data boxes and boxes without a key are copied verbatim."""
    placeholder = box_factory("male", 4.0, no_data=True)
    unnamed = box_factory("", 4.0)
    series = series_factory({"A": [placeholder, unnamed, box_factory("female", 4.0)]})
    result = transform(series, PlotConfig(scale=ScaleMode.LOG, medians=MediansMode.ONLY))
    boxes = result.data[0].value
    assert boxes[0] == placeholder
    assert boxes[1] == unnamed
    assert boxes[2].value.median == pytest.approx(math.log10(4.05))


def test_transform_preserves_keys_and_order(full_box_series):
    for config in (PlotConfig(), LOG, MEDIANS, PlotConfig(scale=ScaleMode.LOG, medians=MediansMode.ONLY)):
        assert _keys(transform(full_box_series, config)) == _keys(full_box_series)


def test_transform_does_not_mutate_input(full_box_series):
    snapshot = full_box_series.to_dict()
    transform(full_box_series, PlotConfig(scale=ScaleMode.LOG, medians=MediansMode.ONLY))
    assert full_box_series.to_dict() == snapshot


def test_identity_config_returns_equal_series(full_box_series):
    assert transform(full_box_series, PlotConfig()) == full_box_series


def test_log_then_medians_uses_logged_median(box_factory, series_factory):
    series = series_factory({"A": [box_factory("a", 5.0, hw=10.0, q1=1.0)]})
    s = transform(series, PlotConfig(scale=ScaleMode.LOG, medians=MediansMode.ONLY)).data[0].value[0].value
    expected = math.log10(5.05)
    assert all(v == pytest.approx(expected) for v in s.summary_values())


def test_medians_only_is_idempotent(full_box_series):
    once = medians_only(full_box_series)
    assert medians_only(once) == once


def test_transform_lines_logs_medians(line_chart):
    logged = transform_lines(line_chart, LOG)
    assert logged.data[0].points[0].median == pytest.approx(math.log10(2.05))
    assert transform_lines(line_chart, PlotConfig()) == line_chart


def test_relative_lines_fractions(line_chart):
    """Each group's medians sum to 1 across lines; a zero total yields 0."""
    rel = relative_lines(line_chart)
    by_key = {}
    for line in rel.data:
        for p in line.points:
            by_key.setdefault(p.key, []).append(p.median)
    assert by_key["Lung"] == [pytest.approx(0.5), pytest.approx(0.5)]
    assert sum(by_key["Brain"]) == pytest.approx(1.0)
    assert by_key["Brain"][0] == pytest.approx(0.75)
    assert by_key["Heart"] == [pytest.approx(1.0), 0.0]


def test_relative_lines_zero_total(line_chart):
    zeroed = line_chart.with_major_keys(["Heart"])
    zeroed = replace(
        zeroed,
        data=tuple(replace(line, points=tuple(replace(p, median=0.0) for p in line.points)) for line in zeroed.data),
    )
    assert [line.points[0].median for line in relative_lines(zeroed).data] == [0.0, 0.0]
