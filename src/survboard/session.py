# Copyright (c) Syntropy Systems
"""Working state for one user session: dataset, bundle, predictions."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from survboard.bundle import ModelBundle, default_bundle, load_model_bundle
from survboard.config import SurvboardConfig
from survboard.curves import QueryMode, comparison_grid
from survboard.errors import EmptyDataset, StalePrediction
from survboard.export import (
    DATASET_FILENAME,
    CsvExport,
    export_csv,
    prediction_rows,
)
from survboard.models.dataset import Dataset
from survboard.models.prediction import PredictionResult, PredictionSet, RiskSummary
from survboard.parsing import read_upload
from survboard.predictor import model_for, run_predictions, run_predictions_async
from survboard.risk import summarize

if TYPE_CHECKING:
    from collections.abc import Iterable

    from survboard.models.base import Record, Scalar
    from survboard.predictor import SurvivalModel

logger = logging.getLogger(__name__)


class Session:
    """Everything the dashboard holds between requests.

    Loading a dataset or bundle drops stale predictions; a prediction run
    replaces the previous one only once it has fully succeeded.
    """

    def __init__(self, config: SurvboardConfig | None = None) -> None:
        self.config = config or SurvboardConfig()
        self.dataset = Dataset()
        self.bundle: ModelBundle = default_bundle()
        self.predictions: PredictionSet | None = None
        self.selected: str | None = None
        self.raw_ptpm = True
        self._model: SurvivalModel | None = None
        # Bumped whenever the dataset, bundle or model is replaced
        self._generation = 0

    # --- Dataset ---

    def load_dataset(self, filename: str, content: bytes | str) -> Dataset:
        """Parse an upload and make it the current dataset."""
        dataset = read_upload(filename, content)
        self.dataset = dataset
        self._replaced()
        return dataset

    def set_cell(self, row: int, column: str, raw: Scalar) -> Scalar:
        return self.dataset.set_cell(row, column, raw)

    def add_row(self) -> Record:
        return self.dataset.add_row()

    def delete_row(self, row: int) -> Record:
        return self.dataset.delete_row(row)

    # --- Model bundle ---

    def load_bundle(self, filename: str, content: bytes) -> ModelBundle:
        """Make an uploaded bundle current."""
        self.bundle = load_model_bundle(filename, content)
        self._model = None
        self._replaced()
        return self.bundle

    def reset_bundle(self) -> ModelBundle:
        """Go back to the demonstration bundle."""
        self.bundle = default_bundle()
        self._model = None
        self._replaced()
        return self.bundle

    def set_raw_ptpm(self, raw_ptpm: bool) -> None:
        """Choose whether pTPM columns are raw abundances needing transformation."""
        if raw_ptpm != self.raw_ptpm:
            self.raw_ptpm = raw_ptpm
            self._model = None
            self._generation += 1

    @property
    def model(self) -> SurvivalModel:
        if self._model is None:
            self._model = model_for(self.bundle, self.config, raw_ptpm=self.raw_ptpm)
        return self._model

    # --- Predictions ---

    def _timepoints(self, timepoints: Iterable[float] | None) -> list[float]:
        return list(self.config.timepoints if timepoints is None else timepoints)

    def _mode(self, mode: QueryMode | str | None) -> QueryMode:
        return QueryMode(mode or self.config.query_mode)

    def predict(
        self,
        timepoints: Iterable[float] | None = None,
        mode: QueryMode | str | None = None,
    ) -> PredictionSet:
        """Run the model over the whole dataset and keep the result."""
        generation = self._generation
        predictions = run_predictions(
            self.dataset.model_copy(deep=True),
            self.bundle,
            self._timepoints(timepoints),
            model=self.model,
            days_per_year=self.config.days_per_year,
            mode=self._mode(mode),
        )
        return self._store(predictions, generation)

    async def predict_async(
        self,
        timepoints: Iterable[float] | None = None,
        mode: QueryMode | str | None = None,
    ) -> PredictionSet:
        """Awaitable :meth:`predict`; state changes only on completion.

        The run works on a copy of the dataset taken before it starts. If the
        dataset or bundle is replaced meanwhile, the result is discarded.

        Raises:
            StalePrediction: the inputs were replaced during the run.

        """
        generation = self._generation
        predictions = await run_predictions_async(
            self.dataset.model_copy(deep=True),
            self.bundle,
            self._timepoints(timepoints),
            model=self.model,
            days_per_year=self.config.days_per_year,
            mode=self._mode(mode),
        )
        return self._store(predictions, generation)

    def _store(self, predictions: PredictionSet, generation: int) -> PredictionSet:
        if generation != self._generation:
            logger.info("Discarding predictions for replaced dataset or bundle")
            msg = "Dataset or model bundle changed during the prediction run; run predictions again"
            raise StalePrediction(msg)
        self.predictions = predictions
        if self.selected is None or predictions.get(self.selected) is None:
            self.selected = predictions.results[0].patient_id if predictions.results else None
        return predictions

    def _replaced(self) -> None:
        self._generation += 1
        self.clear_predictions()

    def clear_predictions(self) -> None:
        self.predictions = None
        self.selected = None

    def require_predictions(self) -> PredictionSet:
        if self.predictions is None:
            raise EmptyDataset("No predictions yet; run predictions first")
        return self.predictions

    def result(self, patient_id: str) -> PredictionResult:
        """Prediction for one patient."""
        result = self.require_predictions().get(patient_id)
        if result is None:
            msg = f"Unknown patient: {patient_id}"
            raise KeyError(msg)
        return result

    def select(self, patient_id: str) -> PredictionResult:
        """Make ``patient_id`` the selected patient."""
        result = self.result(patient_id)
        self.selected = patient_id
        return result

    def summary(self) -> RiskSummary:
        if self.predictions is None:
            return RiskSummary()
        return summarize(self.predictions.results)

    def comparison(self, mode: QueryMode | str = QueryMode.INTERPOLATED) -> list[dict[str, float]]:
        """All patients' curves on one time axis."""
        return comparison_grid(self.require_predictions().curves(), QueryMode(mode))

    # --- Export ---

    def export_dataset(self) -> CsvExport | None:
        return export_csv(self.dataset.records, DATASET_FILENAME)

    def export_predictions(self) -> CsvExport | None:
        if self.predictions is None:
            return None
        return export_csv(prediction_rows(self.predictions), self.config.export_filename)
