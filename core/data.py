from __future__ import annotations

import logging
import math
import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from core import config
from core.config import DatasetConfig
from core.selection import Selection, normalize_selection, observed_scenarios


logger = logging.getLogger(__name__)

PERIOD_DATE_COL = "period_date"
RECORDS_COL = "records"

_QUARTER_RE = re.compile(r"(\d{4})[-\s]?Q(\d)")
_NUMBER_STRIP_RE = re.compile(r"[,$%]")


def get_source_files() -> Dict[str, Path]:
    return {
        config.PARETO.name: config.DATA_DIR / config.PARETO.filename,
        config.SCENARIO.name: config.DATA_DIR / config.SCENARIO.filename,
    }


def file_signature(files: Dict[str, Path]) -> Tuple[Tuple[str, str, float], ...]:
    sig = []
    for name, path in sorted(files.items()):
        mtime = path.stat().st_mtime if path.is_file() else -1.0
        sig.append((name, str(path), mtime))
    return tuple(sig)


# ---------------- Field normalization ----------------
def parse_period(label: object) -> Optional[pd.Timestamp]:
    """Map a quarter label ("2024-Q1", "2024 q2") to the first day of that quarter (UTC).

    Quarter digits outside 1-4 roll over into the neighbouring year
    ("2024-Q0" is 2023-10-01, "2024-Q5" is 2025-01-01). Labels that are not
    quarters go through a generic date parse; anything still unparseable
    returns None.
    """
    if label is None or (isinstance(label, float) and math.isnan(label)):
        return None
    raw = str(label)
    s = " ".join(raw.split()).upper()
    if not s:
        return None
    m = _QUARTER_RE.search(s)
    if m:
        year = int(m.group(1))
        quarter = int(m.group(2))
        return pd.Timestamp(year=year, month=1, day=1, tz="UTC") + pd.DateOffset(months=(quarter - 1) * 3)
    try:
        parsed = pd.to_datetime(raw, utc=True, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return parsed


def numericize_metrics(df: pd.DataFrame, metrics: Iterable[str]) -> pd.DataFrame:
    """Parse raw metric cells like "$1,234.5" or "12%" into floats.

    Only `,` `$` `%` and surrounding whitespace are removed; empty,
    unparseable or non-finite cells become NaN. A declared metric missing
    from the frame becomes an all-NaN column.
    """
    for col in metrics:
        if col not in df.columns:
            df[col] = math.nan
            continue
        cleaned = df[col].astype(str).str.replace(_NUMBER_STRIP_RE, "", regex=True).str.strip()
        values = pd.to_numeric(cleaned, errors="coerce").astype(float)
        df[col] = values.where(values.abs() != math.inf)
    return df


def resolve_fields(df: pd.DataFrame, fields: Iterable[str]) -> pd.DataFrame:
    """Rename the first raw alias found for each logical field to the field name."""
    renames: Dict[str, str] = {}
    for name in fields:
        aliases = config.FIELD_ALIASES.get(name, (name,))
        found = next((a for a in aliases if a in df.columns), None)
        if found is None:
            if name not in df.columns:
                logger.warning("Column for %r not found (tried %s); using empty values", name, ", ".join(aliases))
                df[name] = ""
            continue
        if found != name:
            renames[found] = name
    return df.rename(columns=renames)


def normalize_records(raw: pd.DataFrame, cfg: DatasetConfig) -> pd.DataFrame:
    fields = [cfg.key_field] + ([cfg.period_field] if cfg.period_field else [])
    cols = list(cfg.metrics) + fields
    if raw.empty:
        out = pd.DataFrame(columns=cols)
        for m in cfg.metrics:
            out[m] = out[m].astype(float)
        if cfg.period_field:
            out[PERIOD_DATE_COL] = pd.Series(dtype="datetime64[ns, UTC]")
        return out

    df = resolve_fields(raw.copy(), fields)
    df = numericize_metrics(df, cfg.metrics)
    if cfg.period_field:
        df[PERIOD_DATE_COL] = pd.Series(
            [parse_period(v) for v in df[cfg.period_field]],
            index=df.index,
            dtype="datetime64[ns, UTC]",
        )
    return df


def scale_ratio_metrics(df: pd.DataFrame, ratio_metrics: Iterable[str]) -> Tuple[pd.DataFrame, Dict[str, bool]]:
    """Rescale 0-1 ratio metrics to percentage units, decided once per dataset."""
    df = df.copy()
    decisions: Dict[str, bool] = {}
    for m in ratio_metrics:
        if m not in df.columns:
            continue
        valid = df[m].dropna()
        if valid.empty:
            decisions[m] = False
            continue
        scaled = bool(valid.max() <= config.RATIO_SCALE_MAX)
        if scaled:
            df[m] = df[m] * config.RATIO_SCALE_FACTOR
        decisions[m] = scaled
    return df, decisions


def aggregate_means(df: pd.DataFrame, key: str, metrics: List[str]) -> pd.DataFrame:
    """Mean of valid values per key, in first-occurrence order; keys with no valid value get 0."""
    if df.empty or key not in df.columns:
        out = pd.DataFrame(columns=[key, RECORDS_COL] + list(metrics))
        return out.astype({m: float for m in metrics} | {RECORDS_COL: int})
    grouped = df.groupby(key, sort=False, dropna=False)
    agg = grouped[list(metrics)].mean().fillna(0.0)
    agg.insert(0, RECORDS_COL, grouped.size().astype(int))
    return agg.reset_index()


def period_iso(value: object) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    ts = pd.Timestamp(value)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


# ---------------- Loaders ----------------
def load_raw_csv(path: Path) -> pd.DataFrame:
    try:
        return pd.read_csv(path, dtype=str, keep_default_na=False)
    except FileNotFoundError:
        logger.warning("CSV not found: %s", path)
    except pd.errors.EmptyDataError:
        logger.warning("CSV is empty: %s", path)
    except (pd.errors.ParserError, UnicodeDecodeError, OSError) as exc:
        logger.warning("CSV could not be read (%s): %s", path, exc)
    return pd.DataFrame()


def build_data_context(pareto_raw: pd.DataFrame, scenario_raw: pd.DataFrame) -> Dict[str, object]:
    pareto = normalize_records(pareto_raw, config.PARETO)
    pareto, pareto_scale = scale_ratio_metrics(pareto, config.PARETO.ratio_metrics)
    scenario = normalize_records(scenario_raw, config.SCENARIO)
    scenario, scenario_scale = scale_ratio_metrics(scenario, config.SCENARIO.ratio_metrics)

    pareto_agg = aggregate_means(pareto, config.PARETO.key_field, list(config.PARETO.metrics))

    return {
        "pareto_raw": pareto_raw,
        "scenario_raw": scenario_raw,
        "pareto": pareto,
        "pareto_agg": pareto_agg,
        "scenario": scenario,
        "scale_decisions": {**pareto_scale, **scenario_scale},
        "metrics": list(config.PARETO.metrics),
        "scenario_metrics": list(config.SCENARIO.metrics),
        "scenarios": observed_scenarios(scenario, config.SCENARIO.key_field),
    }


# ---------------- Public API (Streamlit parity + FastAPI use) ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[Tuple[str, str, float], ...]) -> Dict[str, object]:
    paths = {name: Path(path) for name, path, _ in files_sig}
    ctx = build_data_context(
        load_raw_csv(paths[config.PARETO.name]),
        load_raw_csv(paths[config.SCENARIO.name]),
    )
    ctx["files"] = [Path(path).name for _, path, mtime in files_sig if mtime >= 0]
    return ctx


def load_dashboard_data() -> Dict[str, object]:
    return _load_dashboard_data_cached(file_signature(get_source_files()))


def prepare_context(selection: dict | Selection, data_ctx: Dict[str, object]) -> Dict[str, object]:
    sel = selection if isinstance(selection, Selection) else normalize_selection(
        selection or {},
        metrics=data_ctx.get("metrics") or list(config.PARETO.metrics),
        scenarios=data_ctx.get("scenarios") or [],
    )
    scenario_df: pd.DataFrame = data_ctx.get("scenario", pd.DataFrame())
    key = config.SCENARIO.key_field
    filtered = scenario_df
    if not scenario_df.empty and key in scenario_df.columns:
        filtered = scenario_df[scenario_df[key] == sel.scenario]
    return {
        **data_ctx,
        "selection": sel,
        "filtered_scenario": filtered,
    }
