from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import MetaMetricsResponse, MetaScenariosResponse, SelectionModel
from core import config
from core.controller import recompute
from core.data import load_dashboard_data, prepare_context
from core.metrics_debug import compute_debug
from core.metrics_pareto import compute_pareto
from core.metrics_scenario import compute_scenario
from core.selection import Selection, default_metric, default_scenario, normalize_selection, scenario_options


app = FastAPI(title="Impact Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _selection_from_model(model: SelectionModel, data_ctx: dict) -> Selection:
    return normalize_selection(
        model.model_dump(),
        metrics=data_ctx.get("metrics") or list(config.PARETO.metrics),
        scenarios=data_ctx.get("scenarios") or [],
    )


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                type(pd.NaT): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/metrics")
def meta_metrics():
    try:
        data_ctx = load_dashboard_data()
        metrics = list(data_ctx.get("metrics") or config.PARETO.metrics)
        return _json(MetaMetricsResponse(metrics=metrics, default=default_metric(metrics)).model_dump())
    except Exception as exc:
        logger.exception("meta_metrics failed")
        return _error(exc)


@app.get("/meta/scenarios")
def meta_scenarios():
    try:
        data_ctx = load_dashboard_data()
        observed = data_ctx.get("scenarios") or []
        resp = MetaScenariosResponse(scenarios=scenario_options(observed), default=default_scenario(observed))
        return _json(resp.model_dump())
    except Exception as exc:
        logger.exception("meta_scenarios failed")
        return _error(exc)


@app.post("/pareto")
def pareto(selection: SelectionModel):
    try:
        data_ctx = load_dashboard_data()
        sel = _selection_from_model(selection, data_ctx)
        ctx = prepare_context(sel, data_ctx)
        return _json(compute_pareto(sel, ctx))
    except Exception as exc:
        logger.exception("pareto failed")
        return _error(exc)


@app.post("/scenario")
def scenario(selection: SelectionModel):
    try:
        data_ctx = load_dashboard_data()
        sel = _selection_from_model(selection, data_ctx)
        ctx = prepare_context(sel, data_ctx)
        return _json(compute_scenario(sel, ctx))
    except Exception as exc:
        logger.exception("scenario failed")
        return _error(exc)


@app.post("/recompute")
def recompute_all(selection: SelectionModel):
    try:
        data_ctx = load_dashboard_data()
        return _json(recompute(data_ctx, _selection_from_model(selection, data_ctx)))
    except Exception as exc:
        logger.exception("recompute failed")
        return _error(exc)


@app.post("/debug")
def debug(selection: SelectionModel):
    try:
        data_ctx = load_dashboard_data()
        sel = _selection_from_model(selection, data_ctx)
        ctx = prepare_context(sel, data_ctx)
        return _json(compute_debug(sel, ctx))
    except Exception as exc:
        logger.exception("debug failed")
        return _error(exc)


@app.post("/export/{page}")
def export_page(page: str, selection: SelectionModel):
    data_ctx = load_dashboard_data()
    sel = _selection_from_model(selection, data_ctx)
    ctx = prepare_context(sel, data_ctx)

    export_df = None
    filename = f"{page}.csv"
    if page == "pareto":
        agg = ctx.get("pareto_agg", pd.DataFrame())
        if not agg.empty and sel.metric in agg.columns:
            agg = agg.sort_values(sel.metric, ascending=False, kind="mergesort")
        export_df = agg
    elif page == "scenario":
        export_df = ctx.get("filtered_scenario")
    else:
        export_df = pd.DataFrame()

    if export_df is None or not hasattr(export_df, "to_csv"):
        export_df = pd.DataFrame()
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
