from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class SelectionModel(BaseModel):
    metric: Optional[str] = None
    scenario: Optional[str] = None


class MetaMetricsResponse(BaseModel):
    metrics: List[str]
    default: Optional[str] = None


class MetaScenariosResponse(BaseModel):
    scenarios: List[str]
    default: Optional[str] = None
