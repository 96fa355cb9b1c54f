# Copyright (c) Syntropy Systems
"""Pydantic models for risk bands and prediction results."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import Field, model_validator
from typing_extensions import Self

from survboard.curves import QueryMode, SurvivalCurve

from .base import FrozenModel, SurvboardBaseModel


class RiskBand(str, Enum):
    """Ordered risk bands."""

    LOW = "Low"
    INTERMEDIATE = "Intermediate"
    HIGH = "High"


class RiskReference(FrozenModel):
    """Reference quantiles of the training risk-score distribution."""

    q33: float = Field(allow_inf_nan=False)
    q66: float = Field(allow_inf_nan=False)

    @model_validator(mode="after")
    def _check_order(self) -> Self:
        if self.q33 > self.q66:
            msg = f"q33 ({self.q33}) must not exceed q66 ({self.q66})"
            raise ValueError(msg)
        return self


class RiskClassification(FrozenModel):
    """Band for one score plus the threshold that decided it."""

    band: RiskBand | None = None
    boundary: float | None = None


class TimepointProbability(FrozenModel):
    """Survival probability read off a curve at a reporting timepoint."""

    years: float
    days: float
    probability: float


class PredictionResult(FrozenModel):
    """Everything shown for one patient after a prediction run."""

    patient_id: str
    row_index: int
    risk_score: float
    classification: RiskClassification
    curve: SurvivalCurve
    sampled: tuple[TimepointProbability, ...] = ()

    @property
    def risk_group(self) -> RiskBand | None:
        """Shortcut for the classification band."""
        return self.classification.band


class PredictionSet(SurvboardBaseModel):
    """One complete prediction run; replaced wholesale by the next run."""

    results: list[PredictionResult] = Field(default_factory=list)
    timepoints: list[float] = Field(default_factory=list)
    mode: QueryMode = QueryMode.AS_OF
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    )

    def __len__(self) -> int:
        return len(self.results)

    def get(self, patient_id: str) -> PredictionResult | None:
        """Look up a result by patient id."""
        return next((r for r in self.results if r.patient_id == patient_id), None)

    def curves(self) -> dict[str, SurvivalCurve]:
        """Patient id to curve, in result order."""
        return {r.patient_id: r.curve for r in self.results}


class RiskSummary(FrozenModel):
    """Aggregate figures over a prediction run."""

    total: int = 0
    mean_risk: float | None = None
    min_risk: float | None = None
    max_risk: float | None = None
    low: int = 0
    intermediate: int = 0
    high: int = 0
    unclassified: int = 0
