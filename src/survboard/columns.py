# Copyright (c) Syntropy Systems
"""Column inspection for uploaded datasets."""
from __future__ import annotations

from collections.abc import Mapping, Sequence

# Checked in order, case-sensitive.
ID_CANDIDATES: tuple[str, ...] = (
    "Sample",
    "Patient_ID",
    "patient_id",
    "PatientID",
    "id",
    "ID",
)


def detect_id_column(columns: Sequence[str]) -> str | None:
    """Return the first identifier candidate present in ``columns``."""
    present = set(columns)
    for candidate in ID_CANDIDATES:
        if candidate in present:
            return candidate
    return None


def patient_label(record: Mapping[str, object], id_column: str | None, index: int) -> str:
    """Display id for a row: its id cell, else ``Patient_<n>`` (1-based)."""
    if id_column is not None:
        value = record.get(id_column)
        if value is not None and value != "":
            if isinstance(value, float) and value.is_integer():
                return str(int(value))
            return str(value)
    return f"Patient_{index + 1}"
