from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

from core import config

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def pareto_chart(series: Dict[str, Any], *, key_label: str) -> alt.LayerChart:
    """Horizontal bars of the ranked values, cumulative % line on a top axis, dashed 80% reference."""
    categories: List[str] = series["categories"]
    metric = series["metric"]
    df = pd.DataFrame(
        {
            "category": categories,
            "value": series["values"],
            "cumulative_pct": series["cumulative_pct"],
        }
    )
    y = alt.Y("category:N", title=key_label, sort=categories)
    bars = (
        alt.Chart(df)
        .mark_bar(color="steelblue")
        .encode(
            x=alt.X("value:Q", title=series["value_title"], axis=alt.Axis(orient="bottom")),
            y=y,
            tooltip=[alt.Tooltip("category:N", title=key_label), alt.Tooltip("value:Q", title=metric, format=",.2f")],
        )
    )
    pct_x = alt.X(
        "cumulative_pct:Q",
        title=series["pct_title"],
        scale=alt.Scale(domain=list(config.PCT_AXIS_RANGE)),
        axis=alt.Axis(orient="top"),
    )
    line = (
        alt.Chart(df)
        .mark_line(point=True, color="firebrick")
        .encode(
            x=pct_x,
            y=y,
            tooltip=[alt.Tooltip("category:N", title=key_label), alt.Tooltip("cumulative_pct:Q", title="Cumulative %", format=".1f")],
        )
    )
    threshold = series["threshold"]
    cutoff = (
        alt.Chart(pd.DataFrame({"category": threshold["y"], "cumulative_pct": threshold["x"]}))
        .mark_line(color="green", strokeDash=[6, 4])
        .encode(x=pct_x, y=y)
    )
    return (
        alt.layer(bars, alt.layer(line, cutoff))
        .resolve_scale(x="independent")
        .properties(title=series["title"], height=max(240, 24 * len(categories)))
    )


def time_series_chart(points: List[Dict[str, Any]], *, metric: str, scenario: str) -> alt.Chart:
    fmt = config.AXIS_FORMATS[config.METRIC_FORMATS.get(metric, "fixed_1dp")]
    axis_kwargs: Dict[str, Any] = {"title": metric}
    if fmt.format:
        axis_kwargs["format"] = fmt.format
    if fmt.label_expr:
        axis_kwargs["labelExpr"] = fmt.label_expr
    df = pd.DataFrame(points, columns=["period", "label", "value"])
    return (
        alt.Chart(df)
        .mark_line(point=True)
        .encode(
            x=alt.X("period:T", axis=alt.Axis(title="Quarter")),
            y=alt.Y("value:Q", axis=alt.Axis(**axis_kwargs)),
            tooltip=[alt.Tooltip("label:N", title="Quarter"), alt.Tooltip("value:Q", title=metric)],
        )
        .properties(width=380, height=260, description=f"{metric} - {scenario}")
    )
