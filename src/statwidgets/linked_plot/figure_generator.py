"""Plotly figure generation for linked box/line views.

This module provides the FigureGenerator class for turning a rendered
ViewFrame into a Plotly figure dictionary. Values are already transformed,
sorted and filtered by the engine; this layer only maps them onto traces.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any

import plotly.graph_objects as go

from statwidgets.utils.logging import get_logger
from statwidgets.linked_plot.coordinate_mapper import part_opacity
from statwidgets.linked_plot.plot_config import ScaleMode, Toggle
from statwidgets.linked_plot.series_model import Series, is_missing
from statwidgets.linked_plot.view_sync import ViewFrame, ViewKind

logger = get_logger(__name__)

OUTLIER_MARKER_SIZE = 4


class FigureGenerator:
    """Generates Plotly figure dictionaries from rendered view frames.

    Box views with a legend (e.g. male/female) get one trace per legend key
    in grouped box mode; otherwise every box is its own trace so it keeps
    its color. Outlier markers are separate scatter traces, omitted when the
    outliers option is off. Boxes and outliers whose resolved opacity is 0
    are not drawn.
    """

    def make_figure(self, frame: ViewFrame) -> dict:
        """Generate Plotly figure dictionary for a frame.

        Args:
            frame: ViewFrame produced by the view sync controller.

        Returns:
            Plotly figure dictionary.
        """
        logger.info(
            f"FigureGenerator.make_figure: view={frame.view_id!r}, kind={frame.kind.value}, "
            f"scale={frame.config.scale.value}, outliers={frame.config.outliers.value}"
        )
        if frame.is_empty:
            result = self._figure_empty(frame)
        elif frame.kind == ViewKind.LINE:
            result = self._figure_lines(frame)
        else:
            result = self._figure_boxes(frame)
        logger.debug(f"Figure generated: {len(result.get('data', []))} traces")
        return result

    def _base_layout(self, frame: ViewFrame) -> dict[str, Any]:
        meta = frame.metadata
        ylabel = meta.ylabel
        if frame.config.scale == ScaleMode.LOG and ylabel:
            ylabel = f"log10({ylabel})"
        layout: dict[str, Any] = dict(
            width=meta.width,
            height=meta.height,
            margin=dict(l=40, r=20, t=40, b=80),
            xaxis_title=meta.xlabel,
            yaxis_title=ylabel,
            xaxis=dict(tickangle=-30),
            uirevision="keep",
        )
        if meta.title:
            layout["title"] = meta.title
        if frame.y_scale is not None:
            layout["yaxis"] = dict(range=[frame.y_scale.domain_min, frame.y_scale.domain_max])
        if frame.x_bands is not None:
            layout["xaxis"]["categoryorder"] = "array"
            layout["xaxis"]["categoryarray"] = list(frame.x_bands.keys)
        return layout

    def _figure_empty(self, frame: ViewFrame) -> dict:
        fig = go.Figure()
        fig.update_layout(**self._base_layout(frame))
        return fig.to_dict()

    def _figure_boxes(self, frame: ViewFrame) -> dict:
        series: Series = frame.series
        show_outliers = frame.config.outliers == Toggle.ON
        fig = go.Figure()

        # Bucket boxes by trace: one per legend key, else one per (group, box).
        buckets: dict[str, list[tuple[str, Any]]] = defaultdict(list)
        legend_keys = [e.key for e in series.legend]
        for group in series.data:
            for box in group.value:
                if box.value.no_data or is_missing(box.value.median):
                    continue
                if part_opacity(box.value.extra) == 0:
                    # Fully transparent, e.g. an all-zero record.
                    continue
                trace_key = box.key if box.key in legend_keys else f"{group.key}/{box.key}"
                buckets[trace_key].append((group.key, box.value))

        legend = {e.key: e for e in series.legend}
        for trace_key, items in buckets.items():
            entry = legend.get(trace_key)
            color = entry.color if entry else items[0][1].color
            name = entry.label if entry else items[0][0]
            fig.add_trace(go.Box(
                x=[g for g, _ in items],
                q1=[s.q1 for _, s in items],
                median=[s.median for _, s in items],
                q3=[s.q3 for _, s in items],
                lowerfence=[s.low_whisker if not is_missing(s.low_whisker) else s.q1 for _, s in items],
                upperfence=[s.high_whisker if not is_missing(s.high_whisker) else s.q3 for _, s in items],
                name=name,
                offsetgroup=trace_key if entry else None,
                marker=dict(color=color),
                line=dict(width=1.5),
                opacity=part_opacity(items[0][1].extra) if entry is None else None,
                showlegend=entry is not None,
                boxpoints=False,
            ))
            if show_outliers:
                xs, ys = [], []
                for g, s in items:
                    if part_opacity(s.extra, "outlier") == 0:
                        continue
                    for o in s.outliers:
                        if not is_missing(o.value):
                            xs.append(g)
                            ys.append(o.value)
                if xs:
                    fig.add_trace(go.Scatter(
                        x=xs,
                        y=ys,
                        mode="markers",
                        name=f"{name} outliers",
                        marker=dict(size=OUTLIER_MARKER_SIZE, color=color),
                        showlegend=False,
                    ))

        layout = self._base_layout(frame)
        layout["showlegend"] = bool(series.legend)
        if series.legend:
            layout["boxmode"] = "group"
        fig.update_layout(**layout)
        return fig.to_dict()

    def _figure_lines(self, frame: ViewFrame) -> dict:
        chart = frame.chart
        fig = go.Figure()
        for line in chart.data:
            fig.add_trace(go.Scatter(
                x=[p.key for p in line.points],
                y=[p.median for p in line.points],
                mode="lines+markers",
                name=line.key,
                line=dict(color=line.color, width=line.style.get("width", 1.5)),
                marker=dict(size=OUTLIER_MARKER_SIZE + 2, color=line.color),
            ))
        layout = self._base_layout(frame)
        layout["showlegend"] = True
        fig.update_layout(**layout)
        return fig.to_dict()
