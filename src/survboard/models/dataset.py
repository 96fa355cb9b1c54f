# Copyright (c) Syntropy Systems
"""Pydantic models for uploaded patient datasets."""

from __future__ import annotations

import re

from pydantic import Field, model_validator
from typing_extensions import Self

from .base import Record, Scalar, SurvboardBaseModel


class Dataset(SurvboardBaseModel):
    """Uniform rows of an uploaded table.

    Column order is the canonical export order. Every record carries every
    column; cells missing from the source are stored as None.
    """

    columns: list[str] = Field(default_factory=list)
    records: list[Record] = Field(default_factory=list)
    id_column: str | None = None
    source: str | None = None
    issues: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _fill_missing_cells(self) -> Self:
        if not self.columns and self.records:
            self.columns = list(self.records[0].keys())
        self.records = [
            {column: record.get(column) for column in self.columns}
            for record in self.records
        ]
        return self

    def __len__(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        """True when the dataset holds no rows."""
        return not self.records

    def set_cell(self, row: int, column: str, raw: Scalar) -> Scalar:
        """Store an edited cell value, coercing text the way the editor does.

        Empty text becomes None and numeric text becomes a number. Returns the
        stored value.
        """
        self._require_row(row)
        self._require_column(column)
        value = coerce_edit(raw)
        self.records[row][column] = value
        return value

    def add_row(self) -> Record:
        """Append an all-null row, labelling it when an id column exists."""
        record: Record = dict.fromkeys(self.columns)
        if self.id_column is not None:
            record[self.id_column] = f"Patient_{len(self.records) + 1}"
        self.records.append(record)
        return record

    def delete_row(self, row: int) -> Record:
        """Remove and return the row at ``row``."""
        self._require_row(row)
        return self.records.pop(row)

    def _require_row(self, row: int) -> None:
        if not 0 <= row < len(self.records):
            msg = f"Row {row} out of range (dataset has {len(self.records)} rows)"
            raise IndexError(msg)

    def _require_column(self, column: str) -> None:
        if column not in self.columns:
            msg = f"Unknown column: {column}"
            raise KeyError(msg)


_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_number(text: str) -> int | float | None:
    """Parse trimmed text that is entirely a decimal number.

    Integer literals stay ints; anything with a fraction or exponent is a
    float. Returns None for text that is not a plain decimal number.
    """
    if not _DECIMAL.fullmatch(text):
        return None
    if "." in text or "e" in text or "E" in text:
        return float(text)
    return int(text)


def coerce_edit(raw: Scalar) -> Scalar:
    """Coerce a value typed into the dataset editor."""
    if not isinstance(raw, str):
        return raw
    text = raw.strip()
    if not text:
        return None
    number = parse_number(text)
    return raw if number is None else number
