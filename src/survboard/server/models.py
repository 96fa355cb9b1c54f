# Copyright (c) Syntropy Systems
"""Pydantic models for the survboard HTTP API."""

from __future__ import annotations

from pydantic import Field

from survboard.curves import QueryMode, SurvivalSample
from survboard.models.base import Record, Scalar, SurvboardBaseModel
from survboard.models.prediction import PredictionResult, RiskReference


class DatasetSummary(SurvboardBaseModel):
    """Shape of the current dataset."""

    source: str | None = None
    rows: int
    columns: list[str]
    id_column: str | None = None
    issues: list[str] = Field(default_factory=list)


class DatasetResponse(DatasetSummary):
    """Full dataset contents."""

    records: list[Record]


class CellUpdate(SurvboardBaseModel):
    """Edited cell values for one row, keyed by column."""

    values: dict[str, Scalar]


class RowResponse(SurvboardBaseModel):
    """A single row after an edit."""

    index: int
    record: Record


class BundleResponse(SurvboardBaseModel):
    """Description of the active model bundle."""

    source: str | None = None
    features: list[str]
    feature_count: int
    risk_ref: RiskReference | None = None
    has_estimator: bool
    has_scaler: bool


class PredictRequest(SurvboardBaseModel):
    """Options for a prediction run."""

    timepoints: list[float] | None = Field(default=None, description="Reporting times in years")
    mode: QueryMode | None = None
    raw_ptpm: bool = True


class PredictionsResponse(SurvboardBaseModel):
    """A complete prediction run."""

    created_at: str
    mode: QueryMode
    timepoints: list[float]
    selected: str | None = None
    results: list[PredictionResult]


class CurveResponse(SurvboardBaseModel):
    """One patient's curve, optionally windowed, plus point queries."""

    patient_id: str
    mode: QueryMode
    samples: list[SurvivalSample]
    at: dict[str, float] = Field(default_factory=dict)


class ComparisonResponse(SurvboardBaseModel):
    """All curves on a shared time axis."""

    mode: QueryMode
    patients: list[str]
    rows: list[dict[str, float]]


class MessageResponse(SurvboardBaseModel):
    """Generic message response."""

    message: str
    success: bool = True
