from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from core import config
from core.config import DatasetConfig
from core.data import PERIOD_DATE_COL
from core.selection import Selection


def _dataset_checks(raw: pd.DataFrame, normalized: pd.DataFrame, cfg: DatasetConfig) -> Dict[str, Any]:
    fields: List[str] = [cfg.key_field] + ([cfg.period_field] if cfg.period_field else [])
    checks: Dict[str, Any] = {
        "raw_rows": int(len(raw)),
        "missing_metric_columns": [m for m in cfg.metrics if m not in raw.columns],
        "missing_key_columns": [],
        "invalid_values": {},
        "unparsed_periods": [],
    }
    if raw.empty:
        return checks

    for name in fields:
        if not any(a in raw.columns for a in config.FIELD_ALIASES.get(name, (name,))):
            checks["missing_key_columns"].append(name)

    checks["invalid_values"] = {m: int(normalized[m].isna().sum()) for m in cfg.metrics if m in normalized.columns}

    if cfg.period_field and PERIOD_DATE_COL in normalized.columns:
        bad = normalized[normalized[PERIOD_DATE_COL].isna()]
        if not bad.empty:
            labels = bad[cfg.period_field].astype(str).value_counts().head(20)
            checks["unparsed_periods"] = [{"label": str(k), "count": int(v)} for k, v in labels.items()]
    return checks


def compute_debug(selection: Selection, ctx: Dict[str, Any]) -> Dict[str, Any]:
    pareto_raw: pd.DataFrame = ctx.get("pareto_raw", pd.DataFrame())
    scenario_raw: pd.DataFrame = ctx.get("scenario_raw", pd.DataFrame())
    pareto: pd.DataFrame = ctx.get("pareto", pd.DataFrame())
    scenario: pd.DataFrame = ctx.get("scenario", pd.DataFrame())
    agg: pd.DataFrame = ctx.get("pareto_agg", pd.DataFrame())

    payload = {
        "selection": asdict(selection),
        "files": list(ctx.get("files", []) or []),
        "row_counts": {
            "pareto_rows": int(len(pareto_raw)),
            "pareto_groups": int(len(agg)),
            "scenario_rows": int(len(scenario_raw)),
            "scenarios_observed": len(ctx.get("scenarios", []) or []),
        },
        "scale_decisions": dict(ctx.get("scale_decisions", {}) or {}),
        "pareto": _dataset_checks(pareto_raw, pareto, config.PARETO),
        "scenario": _dataset_checks(scenario_raw, scenario, config.SCENARIO),
        "scenario_counts": [],
    }

    key = config.SCENARIO.key_field
    if not scenario.empty and key in scenario.columns:
        counts = scenario.groupby(key, sort=False).size().reset_index(name="rows")
        payload["scenario_counts"] = counts.to_dict(orient="records")
    return payload
