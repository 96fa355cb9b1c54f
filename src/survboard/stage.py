# Copyright (c) Syntropy Systems
"""Clinical stage labels to ordinal model features."""
from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from survboard.models.dataset import Dataset

ROMAN_STAGES: dict[str, int] = {"I": 1, "II": 2, "III": 3, "IV": 4, "V": 5}
_STAGE_PATTERN = re.compile(r"stage\s*([IVX]+)", re.IGNORECASE)
# Leading decimal prefix, so "2a" reads as 2 and "T2" as nothing.
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:E[+-]?\d+)?")


def parse_stage_ordinal(value: object) -> int | float:
    """Map a stage label such as ``"Stage II"``, ``"iv"`` or ``"2.5"`` to a number.

    A ``Stage <numeral>`` match is final: a numeral outside the table gives 0
    without trying the other forms, so ``"Stage VII"`` is 0.
    """
    if value is None:
        return 0
    if isinstance(value, float) and math.isnan(value):
        return 0

    text = str(value)
    match = _STAGE_PATTERN.search(text)
    if match:
        return ROMAN_STAGES.get(match.group(1).upper(), 0)

    plain = text.strip().upper()
    if plain in ROMAN_STAGES:
        return ROMAN_STAGES[plain]

    number = _LEADING_NUMBER.match(plain)
    if number is None:
        return 0
    return float(number.group(0))


def add_stage_ordinal(
    dataset: Dataset,
    source: str = "stage",
    target: str = "stage_ordinal",
) -> bool:
    """Derive ``target`` from ``source`` when the dataset lacks it.

    Rows get 0 when there is no source column. Returns True if a column was
    added.
    """
    if target in dataset.columns:
        return False
    has_source = source in dataset.columns
    dataset.columns.append(target)
    for record in dataset.records:
        record[target] = parse_stage_ordinal(record.get(source)) if has_source else 0
    return True
