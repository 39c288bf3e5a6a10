import math

import pandas as pd
import pytest

from core import config
from core.data import RECORDS_COL, aggregate_means, normalize_records, scale_ratio_metrics


def test_ratio_metric_with_small_max_is_rescaled():
    df = pd.DataFrame({"Net Margins": [0.1, 0.4, 0.9]})
    out, decisions = scale_ratio_metrics(df, ["Net Margins"])
    assert out["Net Margins"].tolist() == pytest.approx([10.0, 40.0, 90.0])
    assert decisions == {"Net Margins": True}
    # Input frame untouched.
    assert df["Net Margins"].tolist() == [0.1, 0.4, 0.9]


def test_ratio_metric_already_in_percent_is_left_unchanged():
    df = pd.DataFrame({"Net Margins": [10.0, 40.0, 90.0]})
    out, decisions = scale_ratio_metrics(df, ["Net Margins"])
    assert out["Net Margins"].tolist() == [10.0, 40.0, 90.0]
    assert decisions == {"Net Margins": False}


def test_scaling_is_idempotent():
    df = pd.DataFrame({"Net Revenue Retention": [0.95, 1.1, 1.3]})
    once, _ = scale_ratio_metrics(df, ["Net Revenue Retention"])
    twice, decisions = scale_ratio_metrics(once, ["Net Revenue Retention"])
    pd.testing.assert_series_equal(once["Net Revenue Retention"], twice["Net Revenue Retention"])
    assert decisions == {"Net Revenue Retention": False}


def test_scaling_is_dataset_wide_and_keeps_nan():
    # One value above the cutoff keeps the whole column as-is, including the small one.
    df = pd.DataFrame({"Net Margins": [0.2, math.nan, 12.0]})
    out, _ = scale_ratio_metrics(df, ["Net Margins"])
    assert out["Net Margins"].iloc[0] == 0.2
    assert math.isnan(out["Net Margins"].iloc[1])

    df = pd.DataFrame({"Net Margins": [0.2, math.nan, 0.5]})
    out, _ = scale_ratio_metrics(df, ["Net Margins"])
    assert out["Net Margins"].iloc[0] == pytest.approx(20.0)
    assert math.isnan(out["Net Margins"].iloc[1])


def test_non_ratio_and_all_nan_metrics_are_not_rescaled():
    df = pd.DataFrame({"Gross Revenue": [0.5, 1.0], "Net Margins": [math.nan, math.nan]})
    out, decisions = scale_ratio_metrics(df, ["Net Margins"])
    assert out["Gross Revenue"].tolist() == [0.5, 1.0]
    assert decisions == {"Net Margins": False}


def test_aggregate_example_means_by_key():
    raw = pd.DataFrame({"Pain Points": ["A", "A", "B"], "Revenue impact": ["10", "20", "5"]})
    norm = normalize_records(raw, config.PARETO)
    agg = aggregate_means(norm, "category", ["Revenue impact"])
    assert agg["category"].tolist() == ["A", "B"]
    assert agg["Revenue impact"].tolist() == pytest.approx([15.0, 5.0])
    assert agg[RECORDS_COL].tolist() == [2, 1]


def test_aggregate_skips_invalid_values_and_zero_fills_empty_keys():
    df = pd.DataFrame(
        {
            "category": ["B", "A", "B", "C", "A"],
            "m": [4.0, math.nan, math.nan, math.nan, 8.0],
        }
    )
    agg = aggregate_means(df, "category", ["m"])
    # First-occurrence order, not sorted.
    assert agg["category"].tolist() == ["B", "A", "C"]
    # Mean over valid values only: B=4 (not 2), A=8 (not 4), C has none -> 0.
    assert agg["m"].tolist() == [4.0, 8.0, 0.0]


def test_aggregate_key_match_is_exact():
    df = pd.DataFrame({"category": ["a", "A", "A "], "m": [1.0, 2.0, 3.0]})
    agg = aggregate_means(df, "category", ["m"])
    assert agg["category"].tolist() == ["a", "A", "A "]


def test_aggregate_empty_input():
    agg = aggregate_means(pd.DataFrame(), "category", ["m"])
    assert agg.empty
    assert list(agg.columns) == ["category", RECORDS_COL, "m"]
