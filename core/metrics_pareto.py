from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

import pandas as pd

from core import config
from core.charts import pareto_chart, to_vega_spec
from core.selection import Selection


@dataclass(frozen=True)
class ParetoSeries:
    metric: str
    categories: List[str] = field(default_factory=list)
    values: List[float] = field(default_factory=list)
    cumulative: List[float] = field(default_factory=list)
    cumulative_pct: List[float] = field(default_factory=list)

    @property
    def total(self) -> float:
        return self.cumulative[-1] if self.cumulative else 0.0

    @property
    def threshold(self) -> Dict[str, list]:
        # Fixed visual reference across the whole category axis, not the crossing row.
        if not self.categories:
            return {"x": [], "y": []}
        pct = config.PARETO_THRESHOLD_PCT
        return {"x": [pct, pct], "y": [self.categories[0], self.categories[-1]]}

    @property
    def value_title(self) -> str:
        return f"{self.metric} (score)"

    @property
    def pct_title(self) -> str:
        return f"Cumulative % of total {self.metric}"

    @property
    def title(self) -> str:
        return f"Pareto Chart (Horizontal) – {self.metric} by Pain Point"

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out.update(
            total=self.total,
            threshold=self.threshold,
            value_title=self.value_title,
            pct_title=self.pct_title,
            title=self.title,
        )
        return out


def build_pareto(agg: pd.DataFrame, key: str, metric: str) -> ParetoSeries:
    if agg.empty or metric not in agg.columns:
        return ParetoSeries(metric=metric)
    ranked = agg.sort_values(metric, ascending=False, kind="mergesort")
    values = ranked[metric].astype(float).fillna(0.0)
    cumulative = values.cumsum()
    total = float(cumulative.iloc[-1])
    pct = cumulative / total * 100 if total else cumulative * 0.0
    return ParetoSeries(
        metric=metric,
        categories=ranked[key].astype(str).tolist(),
        values=values.tolist(),
        cumulative=cumulative.tolist(),
        cumulative_pct=pct.tolist(),
    )


def compute_pareto(selection: Selection, ctx: Dict[str, Any]) -> Dict[str, Any]:
    agg: pd.DataFrame = ctx.get("pareto_agg", pd.DataFrame())
    metrics: List[str] = list(ctx.get("metrics") or config.PARETO.metrics)
    metric = selection.metric
    key = config.PARETO.key_field

    payload: Dict[str, Any] = {
        "selection": asdict(selection),
        "metric": metric,
        "metrics": metrics,
        "status": "ok",
        "series": {},
        "visible": {m: m == metric for m in metrics},
        "title": None,
        "axes": {},
        "table": [],
        "charts": {},
    }
    if agg.empty:
        payload["status"] = "no_data"
        return payload
    if metric not in metrics:
        payload["status"] = "unknown_metric"
        return payload

    series = {m: build_pareto(agg, key, m).to_dict() for m in metrics}
    current = series[metric]
    payload["series"] = series
    payload["title"] = current["title"]
    payload["axes"] = {
        "x": {"title": current["value_title"], "side": "bottom"},
        "x2": {"title": current["pct_title"], "side": "top", "range": list(config.PCT_AXIS_RANGE)},
        "y": {"title": config.PARETO.key_label},
    }
    table = agg.sort_values(metric, ascending=False, kind="mergesort").reset_index(drop=True)
    table.insert(0, "rank", range(1, len(table) + 1))
    payload["table"] = table.to_dict(orient="records")
    payload["charts"] = {"pareto": to_vega_spec(pareto_chart(current, key_label=config.PARETO.key_label))}
    return payload
