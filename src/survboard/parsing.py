# Copyright (c) Syntropy Systems
"""Read uploaded tables (CSV, XLSX, XLS) into a uniform Dataset."""
from __future__ import annotations

import io
import logging
import math
from datetime import date, datetime
from pathlib import Path, PurePath
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from survboard.columns import detect_id_column
from survboard.errors import ACCEPTED_SUFFIXES, MalformedRow, UnsupportedFormat
from survboard.models.dataset import Dataset, parse_number

if TYPE_CHECKING:
    from survboard.models.base import Record, Scalar

logger = logging.getLogger(__name__)

NULL_TOKENS = frozenset({"", "NA", "NaN"})
SPREADSHEET_ENGINES = {".xlsx": "openpyxl", ".xls": "xlrd"}


def parse_csv_line(line: str, delimiter: str = ",") -> list[str]:
    """Split one line into trimmed fields.

    A double quote toggles quoted mode, in which the delimiter is literal
    text. Quote characters themselves are dropped. An unterminated quote
    runs to the end of the line.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    fields.append("".join(current).strip())
    return fields


def coerce_value(text: str | None) -> Scalar:
    """Type one raw CSV field: null token, number, or the string itself."""
    if text is None:
        return None
    value = text.strip()
    if value in NULL_TOKENS:
        return None
    number = parse_number(value)
    return value if number is None else number


def parse_delimited(text: str, delimiter: str = ",", source: str | None = None) -> Dataset:
    """Parse delimited text whose first non-empty line is the header.

    Blank lines before the header and at the end of the text are ignored; a
    blank line between rows is a row of nulls.
    """
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    while lines and not lines[-1].strip():
        lines.pop()

    header: list[str] | None = None
    records: list[Record] = []
    issues: list[str] = []

    for line_number, line in enumerate(lines, start=1):
        if header is None:
            if line.strip():
                header = parse_csv_line(line, delimiter)
            continue
        if not line.strip():
            records.append(dict.fromkeys(header))
            continue

        values = parse_csv_line(line, delimiter)
        if len(values) != len(header):
            issue = MalformedRow(line_number, len(header), len(values))
            logger.warning("Repaired malformed row: %s", issue)
            issues.append(str(issue))

        record: Record = {}
        for idx, column in enumerate(header):
            record[column] = coerce_value(values[idx]) if idx < len(values) else None
        records.append(record)

    columns = header or []
    logger.debug("Parsed %d rows x %d columns from %s", len(records), len(columns), source)
    return Dataset(
        columns=columns,
        records=records,
        id_column=detect_id_column(columns),
        source=source,
        issues=issues,
    )


def _to_scalar(value: object) -> Scalar:
    """Unwrap reader values (numpy scalars, NaN, timestamps) to plain Python."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def parse_spreadsheet(content: bytes, suffix: str = ".xlsx", source: str | None = None) -> Dataset:
    """Read the first sheet of a workbook.

    Cell types come from the reader; only missing cells are normalized to
    None.
    """
    engine = SPREADSHEET_ENGINES.get(suffix.lower())
    if engine is None:
        raise UnsupportedFormat(source or suffix)

    try:
        frame = pd.read_excel(io.BytesIO(content), sheet_name=0, engine=engine)
    except Exception as e:
        msg = f"Could not read spreadsheet {source or suffix}: {e}"
        raise ValueError(msg) from e
    frame.columns = [str(c).strip() for c in frame.columns]
    columns = list(frame.columns)

    records: list[Record] = []
    for row in frame.itertuples(index=False, name=None):
        records.append({column: _to_scalar(value) for column, value in zip(columns, row)})

    logger.debug("Read %d rows x %d columns from %s", len(records), len(columns), source)
    return Dataset(
        columns=columns,
        records=records,
        id_column=detect_id_column(columns),
        source=source,
    )


def read_upload(filename: str, content: bytes | str) -> Dataset:
    """Parse an uploaded file, choosing the reader by its suffix.

    Raises:
        UnsupportedFormat: the suffix is not one of .csv, .xlsx, .xls.

    """
    suffix = PurePath(filename.lower()).suffix
    if suffix not in ACCEPTED_SUFFIXES:
        raise UnsupportedFormat(filename)

    if suffix == ".csv":
        text = content if isinstance(content, str) else content.decode("utf-8-sig")
        dataset = parse_delimited(text, source=filename)
    else:
        raw = content.encode("utf-8") if isinstance(content, str) else content
        dataset = parse_spreadsheet(raw, suffix, source=filename)

    logger.info(
        "Loaded %s: %d patients, %d columns (id column: %s)",
        filename,
        len(dataset),
        len(dataset.columns),
        dataset.id_column or "none",
    )
    return dataset


def read_path(path: Path) -> Dataset:
    """Parse a table from disk."""
    return read_upload(path.name, path.read_bytes())
