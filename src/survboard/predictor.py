# Copyright (c) Syntropy Systems
"""Prediction runs: risk scores and survival curves for every dataset row."""
from __future__ import annotations

import asyncio
import logging
import random
import warnings
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, NamedTuple, Protocol

import numpy as np

from survboard.columns import patient_label
from survboard.curves import ExponentialCurveGenerator, QueryMode, SurvivalCurve
from survboard.errors import EmptyDataset, MissingRiskReference
from survboard.features import prepare_features
from survboard.models.prediction import (
    PredictionResult,
    PredictionSet,
    TimepointProbability,
)
from survboard.risk import classify_risk

if TYPE_CHECKING:
    from survboard.bundle import ModelBundle
    from survboard.config import SurvboardConfig
    from survboard.models.base import Record
    from survboard.models.dataset import Dataset

logger = logging.getLogger(__name__)

DEFAULT_DAYS_PER_YEAR = 365


class ModelOutput(NamedTuple):
    """What any survival model returns for one row."""

    risk_score: float
    curve: SurvivalCurve


class SurvivalModel(Protocol):
    """Anything that scores rows and produces their survival curves."""

    def predict(self, records: Sequence[Record]) -> list[ModelOutput]:
        ...


class _StepFunction(Protocol):
    x: Sequence[float]
    y: Sequence[float]


class PlaceholderSurvivalModel:
    """Stand-in for a fitted model.

    Risk scores are drawn uniformly from [0.2, 0.8) and curves follow the
    exponential generator. Row contents are ignored.
    """

    def __init__(
        self,
        generator: ExponentialCurveGenerator | None = None,
        seed: int | None = None,
    ) -> None:
        self.generator = generator or ExponentialCurveGenerator()
        self._rng = random.Random(seed)

    def predict(self, records: Sequence[Record]) -> list[ModelOutput]:
        outputs: list[ModelOutput] = []
        for _ in records:
            score = 0.2 + self._rng.random() * 0.6
            outputs.append(ModelOutput(score, self.generator.generate(score)))
        return outputs


class FittedSurvivalModel:
    """Adapter for a fitted scikit-survival style estimator.

    The estimator needs ``predict(X)`` for risk scores and
    ``predict_survival_function(X, return_array=False)`` returning step
    functions with ``x`` (times) and ``y`` (probabilities).
    """

    def __init__(self, bundle: ModelBundle, *, raw_ptpm: bool = True) -> None:
        if bundle.estimator is None:
            msg = "Bundle has no fitted estimator"
            raise ValueError(msg)
        self.bundle = bundle
        self.estimator = bundle.estimator
        self.raw_ptpm = raw_ptpm

    def predict(self, records: Sequence[Record]) -> list[ModelOutput]:
        X = prepare_features(records, self.bundle, raw_ptpm=self.raw_ptpm).values
        scores = self.estimator.predict(X)  # type: ignore[attr-defined]
        step_functions = self.estimator.predict_survival_function(X, return_array=False)  # type: ignore[attr-defined]
        return [
            ModelOutput(float(score), _curve_from_step_function(fn))
            for score, fn in zip(scores, step_functions)
        ]


def _curve_from_step_function(fn: _StepFunction) -> SurvivalCurve:
    xs = np.asarray(fn.x, dtype=float)
    ys = np.clip(np.asarray(fn.y, dtype=float), 0.0, 1.0)
    return SurvivalCurve.from_points(zip(xs.tolist(), ys.tolist()))


def model_for(
    bundle: ModelBundle,
    config: SurvboardConfig | None = None,
    *,
    raw_ptpm: bool = True,
) -> SurvivalModel:
    """The fitted model when the bundle has one, else the placeholder."""
    if bundle.has_estimator:
        return FittedSurvivalModel(bundle, raw_ptpm=raw_ptpm)
    if config is None:
        return PlaceholderSurvivalModel()
    generator = ExponentialCurveGenerator(horizon=config.horizon_days, step=config.step_days)
    return PlaceholderSurvivalModel(generator, seed=config.seed)


def run_predictions(
    dataset: Dataset,
    bundle: ModelBundle,
    timepoints: Iterable[float],
    *,
    model: SurvivalModel | None = None,
    days_per_year: float = DEFAULT_DAYS_PER_YEAR,
    mode: QueryMode = QueryMode.AS_OF,
) -> PredictionSet:
    """Score every row and read each curve at the reporting timepoints.

    ``timepoints`` are in years and are read at ``year * days_per_year``.

    Raises:
        EmptyDataset: the dataset has no rows.

    """
    if dataset.is_empty:
        raise EmptyDataset("Please upload patient data before running predictions")

    years = [float(t) for t in timepoints]
    mode = QueryMode(mode)
    model = model or model_for(bundle)
    if bundle.risk_ref is None:
        warnings.warn(
            MissingRiskReference("Model bundle has no q33/q66 risk reference; risk groups left blank"),
            stacklevel=2,
        )

    outputs = model.predict(dataset.records)
    if len(outputs) != len(dataset):
        msg = f"Model returned {len(outputs)} predictions for {len(dataset)} rows"
        raise RuntimeError(msg)

    results: list[PredictionResult] = []
    for idx, (record, output) in enumerate(zip(dataset.records, outputs)):
        sampled = tuple(
            TimepointProbability(
                years=year,
                days=year * days_per_year,
                probability=output.curve.at(year * days_per_year, mode),
            )
            for year in years
        )
        results.append(
            PredictionResult(
                patient_id=patient_label(record, dataset.id_column, idx),
                row_index=idx,
                risk_score=output.risk_score,
                classification=classify_risk(output.risk_score, bundle.risk_ref),
                curve=output.curve,
                sampled=sampled,
            )
        )

    logger.info("Generated predictions for %d patients", len(results))
    return PredictionSet(results=results, timepoints=years, mode=mode)


async def run_predictions_async(
    dataset: Dataset,
    bundle: ModelBundle,
    timepoints: Iterable[float],
    *,
    model: SurvivalModel | None = None,
    days_per_year: float = DEFAULT_DAYS_PER_YEAR,
    mode: QueryMode = QueryMode.AS_OF,
) -> PredictionSet:
    """Run :func:`run_predictions` in a worker thread.

    The full set is returned at once; a cancelled await yields nothing.
    """
    return await asyncio.to_thread(
        run_predictions,
        dataset,
        bundle,
        list(timepoints),
        model=model,
        days_per_year=days_per_year,
        mode=mode,
    )
