# Copyright (c) Syntropy Systems
"""Tests for session state."""

import asyncio
import json
import threading

import pytest

from survboard.config import SurvboardConfig
from survboard.curves import QueryMode
from survboard.errors import EmptyDataset, StalePrediction, UnsupportedFormat
from survboard.predictor import PlaceholderSurvivalModel
from survboard.session import Session


@pytest.fixture
def session(seeded_config, sample_csv) -> Session:
    session = Session(seeded_config)
    session.load_dataset("patients.csv", sample_csv.encode())
    return session


class TestDatasetState:
    """Tests for loading and editing the dataset."""

    def test_load(self, session):
        """Test loading replaces the dataset."""
        assert len(session.dataset) == 3
        assert session.dataset.source == "patients.csv"

    def test_failed_load_keeps_dataset(self, session):
        """Test a rejected upload leaves the current dataset in place."""
        with pytest.raises(UnsupportedFormat):
            session.load_dataset("notes.txt", b"x")

        assert len(session.dataset) == 3

    def test_edit_cell(self, session):
        """Test edited text is coerced like the editor does."""
        assert session.set_cell(0, "age", "62") == 62
        assert session.set_cell(0, "stage", "  ") is None
        assert session.set_cell(0, "stage", "Stage III") == "Stage III"
        assert session.dataset.records[0]["age"] == 62

    def test_edit_out_of_range(self, session):
        """Test bad rows and columns are rejected."""
        with pytest.raises(IndexError):
            session.set_cell(10, "age", 1)
        with pytest.raises(KeyError):
            session.set_cell(0, "weight", 1)

    def test_add_and_delete_rows(self, session):
        """Test rows can be appended and removed."""
        record = session.add_row()

        assert record["Patient_ID"] == "Patient_4"
        assert record["age"] is None
        assert len(session.dataset) == 4

        removed = session.delete_row(0)

        assert removed["Patient_ID"] == "P1"
        assert len(session.dataset) == 3

    def test_new_dataset_clears_predictions(self, session, sample_csv):
        """Test stale predictions are dropped on upload."""
        session.predict()
        session.load_dataset("again.csv", sample_csv.encode())

        assert session.predictions is None
        assert session.selected is None


class TestPredictionState:
    """Tests for prediction runs held by the session."""

    def test_predict_selects_first(self, session):
        """Test a run selects the first patient."""
        predictions = session.predict()

        assert len(predictions) == 3
        assert session.selected == "P1"
        assert predictions.timepoints == [1, 2, 3, 5]
        assert predictions.mode is QueryMode.AS_OF

    def test_selection_survives_rerun(self, session):
        """Test the selection is kept when the patient is still present."""
        session.predict()
        session.select("P3")
        session.predict()

        assert session.selected == "P3"

    def test_seeded_runs_repeat(self, seeded_config, sample_csv):
        """Test two sessions with the same seed agree."""
        scores = []
        for _ in range(2):
            session = Session(seeded_config)
            session.load_dataset("patients.csv", sample_csv.encode())
            scores.append([r.risk_score for r in session.predict().results])

        assert scores[0] == scores[1]

    def test_empty_dataset(self):
        """Test predicting with no rows fails and keeps no state."""
        session = Session()

        with pytest.raises(EmptyDataset):
            session.predict()
        assert session.predictions is None

    def test_unknown_patient(self, session):
        """Test looking up an unknown patient."""
        session.predict()

        with pytest.raises(KeyError):
            session.result("P9")

    def test_no_predictions_yet(self, session):
        """Test lookups before any run."""
        with pytest.raises(EmptyDataset):
            session.result("P1")
        assert session.summary().total == 0

    def test_bundle_change_clears_predictions(self, session):
        """Test a new bundle invalidates the run."""
        session.predict()
        session.load_bundle("model.json", json.dumps({"features": ["age"]}).encode())

        assert session.predictions is None
        assert session.bundle.source == "model.json"

        session.reset_bundle()
        assert session.bundle.source == "default"

    def test_predict_async(self, session):
        """Test the awaitable run stores its result."""
        predictions = asyncio.run(session.predict_async([1], "interpolated"))

        assert session.predictions is predictions
        assert predictions.mode is QueryMode.INTERPOLATED

    def test_comparison(self, session):
        """Test the comparison grid has a column per patient."""
        session.predict()

        rows = session.comparison()

        assert rows[0] == {"time": 0.0, "P1": 1.0, "P2": 1.0, "P3": 1.0}


class TestExports:
    """Tests for session exports."""

    def test_dataset_export(self, session):
        """Test the dataset downloads under its fixed name."""
        export = session.export_dataset()

        assert export.filename == "patient_data.csv"
        assert export.content.splitlines()[0] == "Patient_ID,age,stage,tumor_size,EGFR_pTPM"

    def test_empty_dataset_export(self):
        """Test exporting nothing gives None."""
        assert Session().export_dataset() is None

    def test_predictions_export(self, session):
        """Test predictions download under the configured name."""
        assert session.export_predictions() is None

        session.predict()
        export = session.export_predictions()

        assert export.filename == "survival_predictions.csv"
        header = export.content.splitlines()[0]
        assert header == "Patient,Risk_Score,Risk_Group,S(t=1y),S(t=2y),S(t=3y),S(t=5y)"

    def test_custom_export_name(self, sample_csv):
        """Test the export filename comes from config."""
        session = Session(SurvboardConfig(export_filename="run.csv", seed=1))
        session.load_dataset("patients.csv", sample_csv.encode())
        session.predict()

        assert session.export_predictions().filename == "run.csv"


class GatedModel:
    """Placeholder model that blocks until released."""

    def __init__(self):
        self.started = threading.Event()
        self.release = threading.Event()
        self._inner = PlaceholderSurvivalModel(seed=1)

    def predict(self, records):
        self.started.set()
        assert self.release.wait(5)
        return self._inner.predict(records)


class TestConcurrentRuns:
    """Tests for state changes while a run is in flight."""

    def _run_with(self, session, model, during):
        session._model = model

        async def scenario():
            task = asyncio.create_task(session.predict_async())
            assert await asyncio.to_thread(model.started.wait, 5)
            during()
            model.release.set()
            return await task

        return asyncio.run(scenario())

    def test_dataset_replaced_mid_run(self, session):
        """Test a run over a replaced dataset is discarded."""
        model = GatedModel()

        with pytest.raises(StalePrediction):
            self._run_with(
                session, model, lambda: session.load_dataset("b.csv", b"Patient_ID\nNEW1\n")
            )

        assert session.predictions is None
        assert [r["Patient_ID"] for r in session.dataset.records] == ["NEW1"]

    def test_bundle_replaced_mid_run(self, session):
        """Test a run is discarded when the bundle changes under it."""
        model = GatedModel()

        with pytest.raises(StalePrediction):
            self._run_with(session, model, session.reset_bundle)

        assert session.predictions is None

    def test_edits_do_not_reach_running_prediction(self, session):
        """Test the run sees the dataset as it was when it started."""
        model = GatedModel()

        predictions = self._run_with(session, model, lambda: session.delete_row(0))

        assert [r.patient_id for r in predictions.results] == ["P1", "P2", "P3"]
        assert len(session.dataset) == 2
