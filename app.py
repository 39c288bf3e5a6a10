from contextlib import contextmanager
from typing import Dict, Optional

import pandas as pd
import streamlit as st

from core import config
from core.controller import SelectionController
from core.data import load_dashboard_data
from core.metrics_debug import compute_debug


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container(border=True)
    container.markdown(f"**{title}**")
    with container:
        yield container


def render_page_header(title: str, breadcrumb: str, chips: Dict[str, str], export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    chip_html = "".join(f"<span class='chip'>{k}: {v}</span>" for k, v in chips.items())
    st.markdown(f"<div class='chip-row'>{chip_html}</div>", unsafe_allow_html=True)


def render_pareto(payload: dict):
    render_page_header(
        payload.get("title") or "Pareto Chart",
        "Impact analysis / Pareto",
        {"Metric": payload.get("metric") or "-"},
        export_df=pd.DataFrame(payload.get("table", [])),
        export_name="pareto.csv",
    )
    status = payload.get("status")
    if status == "no_data":
        st.info(f"No data loaded. Place {config.PARETO.filename} next to app.py.")
        return
    if status == "unknown_metric":
        st.warning(f"Metric {payload.get('metric')!r} is not one of the declared metrics.")
        return
    with card("Ranked contribution"):
        st.vega_lite_chart(payload["charts"]["pareto"], use_container_width=True)
    with card("Ranking"):
        st.dataframe(pd.DataFrame(payload.get("table", [])), hide_index=True, use_container_width=True)


def render_scenario(payload: dict):
    render_page_header(
        "Scenario Dashboard",
        "Quarterly P&L / Scenario",
        {"Scenario": payload.get("scenario") or "-", "Rows": str(payload.get("row_count", 0))},
    )
    status = payload.get("status")
    if status == "no_data":
        st.info(f"No data loaded. Place {config.SCENARIO.filename} next to app.py.")
        return
    if status == "no_rows":
        st.info(f"No rows for scenario {payload.get('scenario')}. Showing nothing.")
        return
    metrics = list(payload.get("series", {}).keys())
    for i in range(0, len(metrics), 2):
        cols = st.columns(2)
        for col, metric in zip(cols, metrics[i : i + 2]):
            with col:
                if payload["series"][metric]["all_null"]:
                    st.caption(f"{metric}: no valid values for this scenario.")
                st.vega_lite_chart(payload["charts"][metric], use_container_width=True)


# ---------- UI setup ----------
st.set_page_config(page_title="Impact & Scenario Dashboard", layout="wide")
inject_base_styles()
st.title("Impact & Scenario Dashboard")

data_ctx = load_dashboard_data()
if "controller" not in st.session_state or st.session_state.get("_data_ctx_id") != id(data_ctx):
    st.session_state["controller"] = SelectionController(data_ctx)
    st.session_state["_data_ctx_id"] = id(data_ctx)
controller: SelectionController = st.session_state["controller"]

with st.sidebar:
    st.markdown("### Navigate")
    view = st.radio("View", ["Pareto", "Scenario"], index=0)
    st.markdown("---")
    metric_opts = controller.metric_options
    metric = st.selectbox(
        "Metric",
        metric_opts,
        index=metric_opts.index(controller.selection.metric) if controller.selection.metric in metric_opts else 0,
    )
    scenario_opts = controller.scenario_options
    scenario = st.selectbox(
        "Scenario",
        scenario_opts,
        index=scenario_opts.index(controller.selection.scenario) if controller.selection.scenario in scenario_opts else 0,
    )

if metric != controller.selection.metric:
    controller.select_metric(metric)
if scenario != controller.selection.scenario:
    controller.select_scenario(scenario)

outputs = controller.outputs
if view == "Pareto":
    render_pareto(outputs["pareto"])
else:
    render_scenario(outputs["scenario"])

with st.expander("Data quality"):
    st.json(compute_debug(controller.selection, data_ctx))
