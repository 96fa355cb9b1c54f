# Copyright (c) Syntropy Systems
"""Export records and prediction runs as CSV text."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

    from survboard.models.base import Record
    from survboard.models.prediction import PredictionSet

logger = logging.getLogger(__name__)

CSV_MEDIA_TYPE = "text/csv;charset=utf-8"
DATASET_FILENAME = "patient_data.csv"
PREDICTIONS_FILENAME = "survival_predictions.csv"
NO_GROUP = "—"


@dataclass(frozen=True)
class CsvExport:
    """A CSV blob ready to hand to the client."""

    filename: str
    content: str
    media_type: str = CSV_MEDIA_TYPE

    @property
    def row_count(self) -> int:
        return max(0, self.content.count("\n"))


def format_cell(value: object, delimiter: str = ",") -> str:
    """Render one cell.

    None is empty, strings containing the delimiter are double-quoted, and
    numbers print the way the parser reads them back (``3.0`` as ``3``).
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return f'"{value}"' if delimiter in value else value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def to_csv_text(records: Sequence[Mapping[str, object]], delimiter: str = ",") -> str | None:
    """Header from the first record's keys, then one line per record.

    Returns None when there is nothing to export.
    """
    if not records:
        return None

    headers = list(records[0].keys())
    lines = [delimiter.join(headers)]
    for record in records:
        lines.append(
            delimiter.join(format_cell(record.get(h), delimiter) for h in headers)
        )
    return "\n".join(lines)


def export_csv(records: Sequence[Mapping[str, object]], filename: str) -> CsvExport | None:
    """Package records for download, or None if there are none."""
    content = to_csv_text(records)
    if content is None:
        logger.info("Nothing to export for %s", filename)
        return None
    return CsvExport(filename=filename, content=content)


def prediction_rows(predictions: PredictionSet) -> list[Record]:
    """Flatten a prediction run into the downloadable table."""
    rows: list[Record] = []
    for result in predictions.results:
        band = result.classification.band
        row: Record = {
            "Patient": result.patient_id,
            "Risk_Score": f"{result.risk_score:.4f}",
            "Risk_Group": band.value if band is not None else NO_GROUP,
        }
        for point in result.sampled:
            row[f"S(t={format_cell(point.years)}y)"] = f"{point.probability:.3f}"
        rows.append(row)
    return rows


def write_csv(records: Sequence[Mapping[str, object]], path: Path) -> bool:
    """Write records to ``path``; returns False and writes nothing if empty."""
    content = to_csv_text(records)
    if content is None:
        return False
    _ = path.write_text(content, encoding="utf-8")
    return True
