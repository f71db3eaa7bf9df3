"""Unit tests for domains, ordinal bands, the value scale and box layout."""

import math

import pytest

from statwidgets.linked_plot.coordinate_mapper import (
    Domain,
    LinearScale,
    domain,
    layout_boxes,
    line_domain,
    major_positions,
    minor_padding,
    minor_positions,
    nice_bounds,
    part_opacity,
    value_scale,
)
from statwidgets.linked_plot.series_model import LineChart, LinePoint, LineSeries, MinorBox, Series, StatSummary


def test_domain_includes_outliers(full_box_series):
    d = domain(full_box_series)
    assert d == Domain(minimum=0.0, maximum=20.0)


def test_domain_includes_zero_and_negatives(box_factory, series_factory):
    series = series_factory({"A": [box_factory("a", -2.0, lw=-5.0, hw=3.0)]})
    assert domain(series) == Domain(-5.0, 3.0)


def test_domain_of_empty_and_missing_is_zero(series_factory):
    """Domain totality: no values -> (0, 0), never NaN."""
    assert domain(Series()) == Domain(0.0, 0.0)
    missing = series_factory({"A": [MinorBox("a", StatSummary())]})
    d = domain(missing)
    assert d == Domain(0.0, 0.0)
    assert math.isfinite(d.minimum) and math.isfinite(d.maximum)


def test_domain_ignores_nan(series_factory):
    series = series_factory({"A": [MinorBox("a", StatSummary(median=float("nan"), q3=4.0))]})
    assert domain(series) == Domain(0.0, 4.0)


def test_line_domain(line_chart):
    assert line_domain(line_chart) == Domain(0.0, 6.0)


def test_line_domain_does_not_include_zero():
    chart = LineChart(data=(LineSeries("a", points=(LinePoint("x", 20.0), LinePoint("y", 30.0))),))
    assert line_domain(chart) == Domain(20.0, 30.0)


def test_line_domain_without_medians_is_zero():
    chart = LineChart(data=(LineSeries("a", points=(LinePoint("x", None), LinePoint("y", float("nan")))),))
    assert line_domain(chart) == Domain(0.0, 0.0)
    assert line_domain(LineChart()) == Domain(0.0, 0.0)


def test_major_positions_range_bands():
    """d3 rangeBands: step = width / (n + padding), first band starts at step * padding."""
    bands = major_positions(["a", "b", "c"], 310.0, 0.1)
    assert bands.step == pytest.approx(100.0)
    assert bands.bandwidth == pytest.approx(90.0)
    assert bands.position("a") == pytest.approx(10.0)
    assert bands.position("c") == pytest.approx(210.0)
    assert bands.center("b") == pytest.approx(155.0)


def test_major_positions_empty():
    bands = major_positions([], 500.0)
    assert bands.bandwidth == 0.0
    assert bands.keys == ()


def test_unknown_key_raises():
    with pytest.raises(KeyError):
        major_positions(["a"], 100.0).position("z")


def test_minor_spacing_clamped_for_narrow_bands():
    """0.1 * (20 / 4) = 0.5px < 2px, so spacing becomes 2 / 5."""
    assert minor_padding(4, 20.0, 0.1) == pytest.approx(0.4)
    assert minor_padding(4, 20.0, 0.1) * (20.0 / 4) == pytest.approx(2.0)
    bands = minor_positions(["a", "b", "c", "d"], 20.0, 0.1)
    assert bands.bandwidth == pytest.approx(bands.step * 0.6)


def test_minor_spacing_kept_for_wide_bands():
    assert minor_padding(2, 200.0, 0.1) == 0.1


def test_minor_boxes_fit_inside_band():
    bands = minor_positions(["male", "female"], 90.0, 0.1)
    assert bands.position("male") >= 0
    assert bands.position("female") + bands.bandwidth <= 90.0 + 1e-9


def test_nice_bounds():
    assert nice_bounds(0.3, 9.7) == (pytest.approx(0.0), pytest.approx(10.0))
    assert nice_bounds(-1.0, 11.0) == (pytest.approx(-1.0), pytest.approx(11.0))
    assert nice_bounds(0.0, 0.0) == (0.0, 0.0)


def test_value_scale_pads_and_inverts():
    """Domain (0, 10) pads to (-1, 11) and maps onto [height, 0]."""
    scale = value_scale(Domain(0.0, 10.0), 400.0)
    assert (scale.domain_min, scale.domain_max) == (pytest.approx(-1.0), pytest.approx(11.0))
    assert scale(-1.0) == pytest.approx(400.0)
    assert scale(11.0) == pytest.approx(0.0)
    assert scale(5.0) == pytest.approx(200.0)
    assert scale.invert(200.0) == pytest.approx(5.0)
    assert scale(None) is None


def test_value_scale_zero_domain_is_total():
    scale = value_scale(Domain(0.0, 0.0), 300.0)
    assert scale(0.0) == 300.0


def test_linear_scale_missing_value():
    assert LinearScale(0.0, 1.0, 100.0, 0.0)(float("nan")) is None


def test_part_opacity_chain():
    assert part_opacity({}) == 1.0
    assert part_opacity({"opacity": 0.5}, "whisker") == 0.5
    assert part_opacity({"whiskerOpacity": 0.3, "opacity": 0.5}, "whisker") == 0.3
    assert part_opacity({"whiskerOpacity": 0, "opacity": 0.5}, "whisker") == 0.0
    assert part_opacity({"opacity": 0}, "median") == 0.0


def test_layout_boxes(full_box_series):
    layout = layout_boxes(full_box_series, 310.0, 400.0, spacing=0.1)
    assert len(layout.glyphs) == 3
    lung = layout.glyphs[0]
    assert lung.group_key == "Lung"
    assert lung.x == pytest.approx(layout.x_bands.position("Lung"))
    # one box per group fills the whole band
    assert lung.width == pytest.approx(layout.x_bands.bandwidth)
    assert lung.median == pytest.approx(layout.y_scale(5.0))
    assert lung.q3 < lung.q1  # pixel y grows downward
    assert [key for key, _ in lung.outliers] == [0, 1]
    assert lung.box_opacity == 1.0


def test_layout_whisker_fallbacks(series_factory):
    """Missing high whisker draws at q3; missing low whisker and q1 draw at the median."""
    series = series_factory({"A": [MinorBox("a", StatSummary(q3=8.0, median=5.0))]})
    layout = layout_boxes(series, 100.0, 100.0)
    glyph = layout.glyphs[0]
    assert glyph.high_whisker == pytest.approx(layout.y_scale(8.0))
    assert glyph.low_whisker == pytest.approx(layout.y_scale(5.0))


def test_layout_no_data_box_has_no_geometry(box_factory, series_factory):
    series = series_factory({"A": [box_factory("male", 3.0), box_factory("female", 3.0, no_data=True)]})
    glyphs = layout_boxes(series, 200.0, 100.0).glyphs
    assert glyphs[1].no_data
    assert glyphs[1].median is None
    assert glyphs[1].x > glyphs[0].x
