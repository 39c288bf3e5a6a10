from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple


DATA_DIR = Path(__file__).resolve().parents[1]

PARETO_FILE = "Pareto_data.csv"
SCENARIO_FILE = "QuarterlyPnL_data.csv"

# Logical field -> raw column names accepted in the CSV header (first match wins).
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "category": ("Pain Points", "Pain Point"),
    "scenario": ("Scenario",),
    "period": ("Quarter", "Quarters"),
}

RATIO_SCALE_MAX = 5.0
RATIO_SCALE_FACTOR = 100.0
PARETO_THRESHOLD_PCT = 80.0
PCT_AXIS_RANGE = (0, 110)

DEFAULT_SCENARIO = "Base"
FALLBACK_SCENARIOS: Tuple[str, ...] = ("Base", "Optimistic", "Pessimistic")


@dataclass(frozen=True)
class DatasetConfig:
    name: str
    filename: str
    key_field: str
    metrics: Tuple[str, ...]
    ratio_metrics: Tuple[str, ...] = ()
    period_field: Optional[str] = None
    key_label: str = ""


PARETO = DatasetConfig(
    name="pareto",
    filename=PARETO_FILE,
    key_field="category",
    key_label="Pain Points",
    metrics=(
        "Revenue impact",
        "Margin impact",
        "Cash impact",
        "Customer impact",
        "Strategic impact",
    ),
)

SCENARIO = DatasetConfig(
    name="scenario",
    filename=SCENARIO_FILE,
    key_field="scenario",
    key_label="Scenario",
    period_field="period",
    metrics=("Gross Revenue", "Net Margins", "Net Revenue Retention", "CAC Payback"),
    ratio_metrics=("Net Margins", "Net Revenue Retention"),
)


@dataclass(frozen=True)
class AxisFormat:
    hint: str
    format: Optional[str] = None
    label_expr: Optional[str] = None


AXIS_FORMATS: Dict[str, AxisFormat] = {
    "currency": AxisFormat(hint="currency", format="$,.0f"),
    "percent_1dp": AxisFormat(hint="percent_1dp", label_expr="format(datum.value, '.1f') + '%'"),
    "fixed_1dp": AxisFormat(hint="fixed_1dp", format=".1f"),
}

METRIC_FORMATS: Dict[str, str] = {
    "Gross Revenue": "currency",
    "Net Margins": "percent_1dp",
    "Net Revenue Retention": "percent_1dp",
    "CAC Payback": "fixed_1dp",
}
