from __future__ import annotations

from typing import Any, Dict, Mapping

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

PIE_COLORS = ["#7aa2f7", "#8bd5ca", "#ffd166", "#f38ba8", "#cba6f7", "#94e2d5", "#fab387", "#f2cdcd", "#b4befe", "#89b4fa"]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _frame(counts: Mapping[str, float], label: str) -> pd.DataFrame:
    return pd.DataFrame({label: list(counts.keys()), "value": [float(v) for v in counts.values()]})


def share_chart(counts: Mapping[str, float], *, label: str, value_title: str) -> alt.Chart:
    """Pie of `counts`, slices kept in the mapping's order."""
    df = _frame(counts, label)
    order = list(counts.keys())
    return (
        alt.Chart(df)
        .mark_arc(stroke="#0f1115", strokeWidth=2)
        .encode(
            theta=alt.Theta("value:Q", stack=True),
            color=alt.Color(f"{label}:N", sort=order, scale=alt.Scale(range=PIE_COLORS), legend=alt.Legend(orient="bottom")),
            order=alt.Order("order:Q"),
            tooltip=[alt.Tooltip(f"{label}:N"), alt.Tooltip("value:Q", title=value_title, format=".1f")],
        )
        .transform_window(order="row_number()")
    )


def bar_chart(counts: Mapping[str, float], *, label: str, value_title: str) -> alt.Chart:
    df = _frame(counts, label)
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X(f"{label}:N", title=label.title(), sort=list(counts.keys())),
            y=alt.Y("value:Q", title=value_title),
            tooltip=[alt.Tooltip(f"{label}:N"), alt.Tooltip("value:Q", title=value_title, format=",.1f")],
        )
    )
