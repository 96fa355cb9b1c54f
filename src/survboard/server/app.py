# Copyright (c) Syntropy Systems
"""FastAPI application for the survboard dashboard API."""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, Response, UploadFile
from fastapi.responses import PlainTextResponse

import survboard
from survboard.config import SurvboardConfig, load_config
from survboard.curves import QueryMode
from survboard.errors import BundleError, EmptyDataset, StalePrediction, UnsupportedFormat
from survboard.export import CsvExport
from survboard.models.prediction import RiskSummary
from survboard.session import Session

from .models import (
    BundleResponse,
    CellUpdate,
    ComparisonResponse,
    CurveResponse,
    DatasetResponse,
    DatasetSummary,
    MessageResponse,
    PredictionsResponse,
    PredictRequest,
    RowResponse,
)

logger = logging.getLogger(__name__)


def get_session(request: Request) -> Session:
    """Get the session held by the app."""
    return request.app.state.session


def _dataset_summary(session: Session) -> DatasetSummary:
    dataset = session.dataset
    return DatasetSummary(
        source=dataset.source,
        rows=len(dataset),
        columns=dataset.columns,
        id_column=dataset.id_column,
        issues=dataset.issues,
    )


def _predictions_response(session: Session) -> PredictionsResponse:
    predictions = session.require_predictions()
    return PredictionsResponse(
        created_at=predictions.created_at,
        mode=predictions.mode,
        timepoints=predictions.timepoints,
        selected=session.selected,
        results=predictions.results,
    )


def _csv_response(export: Optional[CsvExport]) -> Response:
    if export is None:
        return Response(status_code=204)
    return PlainTextResponse(
        export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


def create_app(config: Optional[SurvboardConfig] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        config: Settings for the session; loaded from .survboard/config.yaml
            when omitted.

    Returns:
        Configured FastAPI application holding one session
    """
    app = FastAPI(
        title="survboard",
        description="Patient survival dashboard API",
        version=survboard.__version__,
    )
    app.state.session = Session(config or load_config())

    # --- Dataset Endpoints ---

    @app.post("/api/v1/dataset", response_model=DatasetSummary)
    async def upload_dataset(
        file: UploadFile = File(...),
        session: Session = Depends(get_session),
    ):
        """Upload a CSV/XLSX/XLS patient table, replacing the current one."""
        content = await file.read()
        try:
            session.load_dataset(file.filename or "", content)
        except UnsupportedFormat as e:
            raise HTTPException(status_code=415, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Failed to read file: {e}")
        return _dataset_summary(session)

    @app.get("/api/v1/dataset", response_model=DatasetResponse)
    def get_dataset(session: Session = Depends(get_session)):
        """Get the current dataset."""
        summary = _dataset_summary(session)
        return DatasetResponse(**summary.model_dump(), records=session.dataset.records)

    @app.patch("/api/v1/dataset/rows/{index}", response_model=RowResponse)
    def update_row(index: int, request: CellUpdate, session: Session = Depends(get_session)):
        """Edit cells of one row."""
        try:
            for column, value in request.values.items():
                session.set_cell(index, column, value)
        except IndexError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except KeyError as e:
            raise HTTPException(status_code=422, detail=str(e.args[0]))
        return RowResponse(index=index, record=session.dataset.records[index])

    @app.post("/api/v1/dataset/rows", response_model=RowResponse)
    def add_row(session: Session = Depends(get_session)):
        """Append an empty row."""
        record = session.add_row()
        return RowResponse(index=len(session.dataset) - 1, record=record)

    @app.delete("/api/v1/dataset/rows/{index}", response_model=MessageResponse)
    def delete_row(index: int, session: Session = Depends(get_session)):
        """Delete one row."""
        try:
            session.delete_row(index)
        except IndexError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return MessageResponse(message=f"Row {index} deleted")

    # --- Bundle Endpoints ---

    @app.post("/api/v1/bundle", response_model=BundleResponse)
    async def upload_bundle(
        file: UploadFile = File(...),
        session: Session = Depends(get_session),
    ):
        """Upload a model bundle (.joblib, .pkl or .json)."""
        content = await file.read()
        try:
            bundle = session.load_bundle(file.filename or "", content)
        except UnsupportedFormat as e:
            raise HTTPException(status_code=415, detail=str(e))
        except BundleError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return BundleResponse(**bundle.describe())

    @app.get("/api/v1/bundle", response_model=BundleResponse)
    def get_bundle(session: Session = Depends(get_session)):
        """Describe the active bundle."""
        return BundleResponse(**session.bundle.describe())

    @app.delete("/api/v1/bundle", response_model=BundleResponse)
    def reset_bundle(session: Session = Depends(get_session)):
        """Return to the demonstration bundle."""
        return BundleResponse(**session.reset_bundle().describe())

    # --- Prediction Endpoints ---

    @app.post("/api/v1/predictions", response_model=PredictionsResponse)
    async def predict(
        request: Optional[PredictRequest] = None,
        session: Session = Depends(get_session),
    ):
        """Run predictions over the whole dataset."""
        request = request or PredictRequest()
        session.set_raw_ptpm(request.raw_ptpm)
        try:
            await session.predict_async(request.timepoints, request.mode)
        except EmptyDataset as e:
            raise HTTPException(status_code=409, detail=str(e))
        except StalePrediction as e:
            raise HTTPException(status_code=409, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=422, detail=f"Prediction failed: {e}")
        return _predictions_response(session)

    @app.get("/api/v1/predictions", response_model=PredictionsResponse)
    def get_predictions(session: Session = Depends(get_session)):
        """Get the latest prediction run."""
        try:
            return _predictions_response(session)
        except EmptyDataset as e:
            raise HTTPException(status_code=404, detail=str(e))

    @app.get("/api/v1/predictions/summary", response_model=RiskSummary)
    def get_summary(session: Session = Depends(get_session)):
        """Risk score spread and band counts."""
        return session.summary()

    @app.get("/api/v1/predictions/{patient_id}/curve", response_model=CurveResponse)
    def get_curve(
        patient_id: str,
        mode: QueryMode = Query(QueryMode.AS_OF),
        start: Optional[float] = Query(None, ge=0),
        end: Optional[float] = Query(None, ge=0),
        at: Optional[list[float]] = Query(None),
        session: Session = Depends(get_session),
    ):
        """One patient's survival curve; ``at`` adds point queries."""
        try:
            result = session.result(patient_id)
        except EmptyDataset as e:
            raise HTTPException(status_code=404, detail=str(e))
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Patient {patient_id} not found")

        curve = result.curve.window(start, end)
        return CurveResponse(
            patient_id=patient_id,
            mode=mode,
            samples=list(curve.samples),
            at={str(t): result.curve.at(t, mode) for t in at or []},
        )

    @app.post("/api/v1/predictions/{patient_id}/select", response_model=MessageResponse)
    def select_patient(patient_id: str, session: Session = Depends(get_session)):
        """Select the patient shown in detail views."""
        try:
            session.select(patient_id)
        except EmptyDataset as e:
            raise HTTPException(status_code=404, detail=str(e))
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Patient {patient_id} not found")
        return MessageResponse(message=f"Selected {patient_id}")

    @app.get("/api/v1/curves/compare", response_model=ComparisonResponse)
    def compare_curves(
        mode: QueryMode = Query(QueryMode.INTERPOLATED),
        session: Session = Depends(get_session),
    ):
        """All patients' curves on one time axis."""
        try:
            rows = session.comparison(mode)
        except EmptyDataset as e:
            raise HTTPException(status_code=404, detail=str(e))
        patients = [r.patient_id for r in session.require_predictions().results]
        return ComparisonResponse(mode=mode, patients=patients, rows=rows)

    # --- Export Endpoints ---

    @app.get("/api/v1/export/dataset")
    def export_dataset(session: Session = Depends(get_session)):
        """Download the (edited) dataset as CSV; 204 when empty."""
        return _csv_response(session.export_dataset())

    @app.get("/api/v1/export/predictions")
    def export_predictions(session: Session = Depends(get_session)):
        """Download predictions as CSV; 204 when there are none."""
        return _csv_response(session.export_predictions())

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
