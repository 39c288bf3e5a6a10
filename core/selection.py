from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import pandas as pd

from core import config


@dataclass(frozen=True)
class Selection:
    metric: Optional[str] = None
    scenario: Optional[str] = None


def observed_scenarios(df: pd.DataFrame, key: str = config.SCENARIO.key_field) -> List[str]:
    if df.empty or key not in df.columns:
        return []
    values = df[key].dropna().astype(str)
    return [v for v in values.unique().tolist() if v]


def scenario_options(scenarios: Sequence[str]) -> List[str]:
    return list(scenarios) if scenarios else list(config.FALLBACK_SCENARIOS)


def default_metric(metrics: Sequence[str]) -> Optional[str]:
    return metrics[0] if metrics else None


def default_scenario(scenarios: Sequence[str]) -> Optional[str]:
    opts = scenario_options(scenarios)
    if config.DEFAULT_SCENARIO in opts:
        return config.DEFAULT_SCENARIO
    return opts[0] if opts else None


def _as_choice(value: object) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def normalize_selection(raw: dict, *, metrics: Sequence[str], scenarios: Sequence[str]) -> Selection:
    """Fill unset axes with their defaults. Supplied values are kept even if unknown."""
    metric = _as_choice(raw.get("metric")) or default_metric(metrics)
    scenario = _as_choice(raw.get("scenario")) or default_scenario(scenarios)
    return Selection(metric=metric, scenario=scenario)
