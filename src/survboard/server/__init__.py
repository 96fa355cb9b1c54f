# Copyright (c) Syntropy Systems
"""survboard HTTP API."""

from .app import create_app
from .models import (
    CurveResponse,
    DatasetResponse,
    DatasetSummary,
    PredictionsResponse,
    PredictRequest,
)

__all__ = [
    "CurveResponse",
    "DatasetResponse",
    "DatasetSummary",
    "PredictRequest",
    "PredictionsResponse",
    "create_app",
]
