# Demo app for LinkedPlotControlPanel
"""Demo application: an expression box view linked to a per-isoform line view.

Summary records are synthesized with numpy so the demo runs without data
files. Switch views, change scale/sorting, split by sex, or filter tissues.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from nicegui import ui

from statwidgets.utils.gui_defaults import set_up_gui_defaults
from statwidgets.utils.logging import configure_logging
from statwidgets.linked_plot.control_panel import LinkedPlotControlPanel
from statwidgets.linked_plot.plot_config import Differentiation
from statwidgets.linked_plot.record_processor import (
    box_series_from_frame,
    gender_series_from_frames,
    line_chart_from_frame,
)
from statwidgets.linked_plot.series_model import PlotMetadata
from statwidgets.linked_plot.view_sync import LinkedView, ViewKind, ViewSyncController

TISSUES = {
    "Adipose": "#ff9900",
    "Artery": "#cc0033",
    "Brain": "#eeee00",
    "Heart": "#9900ff",
    "Liver": "#aaaa66",
    "Lung": "#99ff00",
    "Muscle": "#aaaaff",
    "Skin": "#0000ff",
}
ISOFORMS = ("ENST0001", "ENST0002", "ENST0003")


def summary_records(rng: np.random.Generator, scale: float = 1.0) -> pd.DataFrame:
    """One five-number summary per tissue, computed from random samples."""
    rows = []
    for tissue, color in TISSUES.items():
        samples = rng.lognormal(mean=rng.uniform(0.5, 3.0), sigma=0.6, size=int(rng.integers(40, 200))) * scale
        q1, median, q3 = np.percentile(samples, [25, 50, 75])
        iqr = q3 - q1
        low = samples[samples >= q1 - 1.5 * iqr].min()
        high = samples[samples <= q3 + 1.5 * iqr].max()
        outliers = samples[(samples < low) | (samples > high)].tolist()
        rows.append(dict(
            group=tissue, color=color, high_whisker=high, q3=q3, median=median,
            q1=q1, low_whisker=low, outliers=outliers, num_samples=len(samples),
        ))
    return pd.DataFrame(rows)


def isoform_records(rng: np.random.Generator) -> pd.DataFrame:
    rows = []
    for isoform in ISOFORMS:
        for tissue in TISSUES:
            rows.append(dict(isoform=isoform, group=tissue, median=float(rng.gamma(2.0, 4.0))))
    return pd.DataFrame(rows)


def build_controller(seed: int = 0) -> ViewSyncController:
    """Create the linked box and line views loaded with synthetic data."""
    rng = np.random.default_rng(seed)
    box_meta = PlotMetadata(type="box", title="Gene expression", width=900, height=450, ylabel="TPM")
    line_meta = PlotMetadata(type="line", title="Isoform expression", width=900, height=450, ylabel="TPM")

    box_view = LinkedView(view_id="gene", kind=ViewKind.BOX)
    box_view.load_box({
        Differentiation.NONE: box_series_from_frame(summary_records(rng), metadata=box_meta),
        Differentiation.GENDER: gender_series_from_frames(
            summary_records(rng), summary_records(rng, scale=1.2), metadata=box_meta
        ),
    })

    line_view = LinkedView(view_id="isoform", kind=ViewKind.LINE)
    palette = dict(zip(ISOFORMS, ("#1f77b4", "#2ca02c", "#d62728")))
    line_view.load_line(
        line_chart_from_frame(isoform_records(rng), "isoform", line_colors=palette, metadata=line_meta)
    )
    return ViewSyncController([box_view, line_view], active_id="gene")


def main() -> None:
    """Demo entrypoint."""
    configure_logging(level="INFO")
    set_up_gui_defaults()

    ui.page_title("statwidgets - linked box/line views")
    with ui.column().classes("w-full gap-4 p-4"):
        ui.label("Linked box/line views").classes("text-lg font-semibold")
        panel = LinkedPlotControlPanel(build_controller())
        panel.build()

    ui.run(reload=False, native=False)


if __name__ in {"__main__", "__mp_main__"}:
    main()
