from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

from core import config
from core.charts import time_series_chart, to_vega_spec
from core.data import PERIOD_DATE_COL, period_iso
from core.selection import Selection, scenario_options


@dataclass(frozen=True)
class ScenarioResult:
    scenario: Optional[str]
    status: str = "ok"
    row_count: int = 0
    series: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)


def _value_or_none(value: object) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def build_scenario_series(df: pd.DataFrame, scenario: Optional[str], metrics: List[str]) -> ScenarioResult:
    key = config.SCENARIO.key_field
    period_field = config.SCENARIO.period_field
    if df.empty or key not in df.columns:
        return ScenarioResult(scenario=scenario, status="no_rows")
    rows = df[df[key] == scenario]
    if rows.empty:
        return ScenarioResult(scenario=scenario, status="no_rows")

    if PERIOD_DATE_COL in rows.columns:
        rows = rows.sort_values(PERIOD_DATE_COL, na_position="first", kind="mergesort")
    periods = [period_iso(v) for v in rows[PERIOD_DATE_COL]] if PERIOD_DATE_COL in rows.columns else [None] * len(rows)
    labels = rows[period_field].tolist() if period_field in rows.columns else [None] * len(rows)

    series: Dict[str, List[Dict[str, Any]]] = {}
    for metric in metrics:
        values = rows[metric].tolist() if metric in rows.columns else [None] * len(rows)
        series[metric] = [
            {"period": p, "label": (lbl or None), "value": _value_or_none(v)}
            for p, lbl, v in zip(periods, labels, values)
        ]
    return ScenarioResult(scenario=scenario, status="ok", row_count=len(rows), series=series)


def compute_scenario(selection: Selection, ctx: Dict[str, Any]) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("scenario", pd.DataFrame())
    metrics: List[str] = list(ctx.get("scenario_metrics") or config.SCENARIO.metrics)
    scenario = selection.scenario

    payload: Dict[str, Any] = {
        "selection": asdict(selection),
        "scenario": scenario,
        "scenarios": scenario_options(ctx.get("scenarios") or []),
        "metrics": metrics,
        "status": "ok",
        "row_count": 0,
        "series": {},
        "charts": {},
    }
    if df.empty:
        payload["status"] = "no_data"
        return payload

    result = build_scenario_series(df, scenario, metrics)
    payload["status"] = result.status
    payload["row_count"] = result.row_count
    if result.status != "ok":
        return payload

    for metric, points in result.series.items():
        payload["series"][metric] = {
            "points": points,
            "format": config.METRIC_FORMATS.get(metric, "fixed_1dp"),
            "all_null": all(p["value"] is None for p in points),
        }
        payload["charts"][metric] = to_vega_spec(time_series_chart(points, metric=metric, scenario=str(scenario)))
    return payload
