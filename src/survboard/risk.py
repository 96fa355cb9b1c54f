# Copyright (c) Syntropy Systems
"""Risk bands from reference quantiles."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Union

from pydantic import ValidationError
from typing_extensions import TypeAlias

from survboard.models.prediction import (
    PredictionResult,
    RiskBand,
    RiskClassification,
    RiskReference,
    RiskSummary,
)

logger = logging.getLogger(__name__)

ReferenceLike: TypeAlias = Union[RiskReference, Mapping[str, object], None]

UNCLASSIFIED = RiskClassification()


def coerce_reference(reference: ReferenceLike) -> RiskReference | None:
    """Turn a bundle's ``risk_ref`` into a RiskReference, or None if unusable."""
    if reference is None or isinstance(reference, RiskReference):
        return reference
    if not isinstance(reference, Mapping):
        return None
    q33 = reference.get("q33")
    q66 = reference.get("q66")
    if q33 is None or q66 is None:
        return None
    try:
        return RiskReference(q33=q33, q66=q66)
    except ValidationError as e:
        logger.warning("Ignoring invalid risk reference %r: %s", dict(reference), e)
        return None


def classify_risk(score: float, reference: ReferenceLike) -> RiskClassification:
    """Place ``score`` in a band.

    Upper thresholds are inclusive: ``score == q33`` is Low and
    ``score == q66`` is Intermediate. Without a usable reference the result
    has neither band nor boundary.
    """
    ref = coerce_reference(reference)
    if ref is None:
        return UNCLASSIFIED
    if score <= ref.q33:
        return RiskClassification(band=RiskBand.LOW, boundary=ref.q33)
    if score <= ref.q66:
        return RiskClassification(band=RiskBand.INTERMEDIATE, boundary=ref.q66)
    return RiskClassification(band=RiskBand.HIGH, boundary=ref.q66)


def summarize(results: Iterable[PredictionResult]) -> RiskSummary:
    """Counts per band and the spread of risk scores."""
    results = list(results)
    if not results:
        return RiskSummary()

    scores = [r.risk_score for r in results]
    bands = [r.classification.band for r in results]
    return RiskSummary(
        total=len(results),
        mean_risk=sum(scores) / len(scores),
        min_risk=min(scores),
        max_risk=max(scores),
        low=bands.count(RiskBand.LOW),
        intermediate=bands.count(RiskBand.INTERMEDIATE),
        high=bands.count(RiskBand.HIGH),
        unclassified=bands.count(None),
    )
