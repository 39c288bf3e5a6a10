from __future__ import annotations

from typing import Any, Dict, List, Optional

from core import config
from core.data import prepare_context
from core.metrics_pareto import compute_pareto
from core.metrics_scenario import compute_scenario
from core.selection import Selection, normalize_selection, scenario_options


def recompute(data_ctx: Dict[str, Any], selection: dict | Selection) -> Dict[str, Any]:
    ctx = prepare_context(selection, data_ctx)
    sel: Selection = ctx["selection"]
    return {"pareto": compute_pareto(sel, ctx), "scenario": compute_scenario(sel, ctx)}


class SelectionController:
    """Holds the active metric and scenario and recomputes outputs on change.

    The two axes are independent: a metric change only rebuilds the Pareto
    payload and a scenario change only rebuilds the time series payload.
    There is no history; the latest selection wins.
    """

    def __init__(self, data_ctx: Dict[str, Any], initial: Optional[dict] = None) -> None:
        self.data_ctx = data_ctx
        self.selection = normalize_selection(
            initial or {},
            metrics=self.metric_options,
            scenarios=data_ctx.get("scenarios") or [],
        )
        self._outputs = recompute(data_ctx, self.selection)

    @property
    def metric_options(self) -> List[str]:
        return list(self.data_ctx.get("metrics") or config.PARETO.metrics)

    @property
    def scenario_options(self) -> List[str]:
        return scenario_options(self.data_ctx.get("scenarios") or [])

    @property
    def outputs(self) -> Dict[str, Any]:
        return dict(self._outputs)

    def select_metric(self, metric: str) -> Dict[str, Any]:
        self.selection = Selection(metric=metric, scenario=self.selection.scenario)
        ctx = prepare_context(self.selection, self.data_ctx)
        self._outputs["pareto"] = compute_pareto(self.selection, ctx)
        return self._outputs["pareto"]

    def select_scenario(self, scenario: str) -> Dict[str, Any]:
        self.selection = Selection(metric=self.selection.metric, scenario=scenario)
        ctx = prepare_context(self.selection, self.data_ctx)
        self._outputs["scenario"] = compute_scenario(self.selection, ctx)
        return self._outputs["scenario"]
