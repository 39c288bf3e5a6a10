import pandas as pd
import pytest

from core import config
from core.data import build_data_context, normalize_records
from core.metrics_scenario import build_scenario_series, compute_scenario
from core.selection import Selection


def make_scenario_raw() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Scenario": ["Base", "Base", "Optimistic", "Base", "Base"],
            "Quarter": ["2024 Q2", "bad label", "2024-Q1", "2024-Q1", "2024-Q3"],
            "Gross Revenue": ["$2,000", "$1,500", "$9,000", "$1,000", ""],
            "Net Margins": ["0.2", "0.1", "0.3", "0.15", "0.25"],
            "Net Revenue Retention": ["1.05", "", "1.2", "1.1", "1.0"],
            "CAC Payback": ["", "", "", "", ""],
        }
    )


def test_build_scenario_series_orders_chronologically_with_unparsed_first():
    df = normalize_records(make_scenario_raw(), config.SCENARIO)
    result = build_scenario_series(df, "Base", list(config.SCENARIO.metrics))

    assert result.status == "ok"
    assert result.row_count == 4
    points = result.series["Gross Revenue"]
    assert [p["period"] for p in points] == [
        None,
        "2024-01-01T00:00:00.000Z",
        "2024-04-01T00:00:00.000Z",
        "2024-07-01T00:00:00.000Z",
    ]
    assert [p["label"] for p in points] == ["bad label", "2024-Q1", "2024 Q2", "2024-Q3"]
    # Missing value kept as a null point.
    assert [p["value"] for p in points] == [1500.0, 1000.0, 2000.0, None]


def test_build_scenario_series_preserves_record_count_per_metric():
    df = normalize_records(make_scenario_raw(), config.SCENARIO)
    result = build_scenario_series(df, "Base", list(config.SCENARIO.metrics))
    matching = int((df["scenario"] == "Base").sum())
    for metric in config.SCENARIO.metrics:
        assert len(result.series[metric]) == matching


def test_build_scenario_series_no_rows_is_distinct_from_all_null():
    df = normalize_records(make_scenario_raw(), config.SCENARIO)
    missing = build_scenario_series(df, "base", list(config.SCENARIO.metrics))
    assert missing.status == "no_rows"
    assert missing.series == {}

    present = build_scenario_series(df, "Base", ["CAC Payback"])
    assert present.status == "ok"
    assert all(p["value"] is None for p in present.series["CAC Payback"])


def test_compute_scenario_payload_scales_ratios_and_attaches_formats():
    ctx = build_data_context(pd.DataFrame(), make_scenario_raw())
    payload = compute_scenario(Selection(metric=None, scenario="Base"), ctx)

    assert payload["status"] == "ok"
    assert payload["row_count"] == 4
    assert payload["scenarios"] == ["Base", "Optimistic"]

    margins = [p["value"] for p in payload["series"]["Net Margins"]["points"]]
    assert margins == pytest.approx([10.0, 15.0, 20.0, 25.0])
    nrr = [p["value"] for p in payload["series"]["Net Revenue Retention"]["points"]]
    assert nrr[0] is None
    assert nrr[1:] == pytest.approx([110.0, 105.0, 100.0])

    assert payload["series"]["Gross Revenue"]["format"] == "currency"
    assert payload["series"]["Net Margins"]["format"] == "percent_1dp"
    assert payload["series"]["CAC Payback"]["format"] == "fixed_1dp"
    assert payload["series"]["CAC Payback"]["all_null"] is True
    assert payload["series"]["Gross Revenue"]["all_null"] is False
    assert set(payload["charts"]) == set(config.SCENARIO.metrics)


def test_compute_scenario_markers_for_empty_dataset_and_unknown_scenario():
    empty = compute_scenario(Selection(scenario="Base"), build_data_context(pd.DataFrame(), pd.DataFrame()))
    assert empty["status"] == "no_data"
    assert empty["scenarios"] == list(config.FALLBACK_SCENARIOS)

    ctx = build_data_context(pd.DataFrame(), make_scenario_raw())
    unknown = compute_scenario(Selection(scenario="Pessimistic"), ctx)
    assert unknown["status"] == "no_rows"
    assert unknown["row_count"] == 0
    assert unknown["series"] == {}
