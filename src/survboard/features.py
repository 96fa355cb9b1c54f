# Copyright (c) Syntropy Systems
"""Build model input matrices from dataset rows."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from survboard.models.dataset import Dataset
from survboard.stage import add_stage_ordinal

if TYPE_CHECKING:
    from collections.abc import Sequence

    from survboard.bundle import ModelBundle
    from survboard.models.base import Record

logger = logging.getLogger(__name__)

PROTEIN_SUFFIX = "_pTPM"


def protein_columns(columns: Sequence[str]) -> list[str]:
    """Columns holding protein abundances."""
    return [c for c in columns if str(c).endswith(PROTEIN_SUFFIX)]


def prepare_features(
    records: Sequence[Record],
    bundle: ModelBundle,
    *,
    raw_ptpm: bool = True,
) -> pd.DataFrame:
    """Model matrix in the bundle's feature order.

    Steps: derive ``stage_ordinal`` from ``stage`` when missing; for raw
    pTPM inputs apply ``log1p`` and the bundle's scaler; add absent features
    as NA; coerce to numbers; impute bundle medians, then 0.
    """
    if not bundle.features:
        msg = (
            "Model bundle is missing the feature list. Re-save the bundle with "
            "one of: 'features' or 'feature_cols'."
        )
        raise ValueError(msg)

    rows = [{str(k).strip(): v for k, v in record.items()} for record in records]
    columns = list(dict.fromkeys(column for row in rows for column in row))
    dataset = Dataset(columns=columns, records=rows)
    add_stage_ordinal(dataset)
    df = pd.DataFrame.from_records(dataset.records, columns=dataset.columns)

    proteins = protein_columns(list(df.columns))
    if raw_ptpm and proteins:
        for col in proteins:
            df[col] = np.log1p(pd.to_numeric(df[col], errors="coerce").fillna(0.0))

        if bundle.scaler is not None:
            scaler_cols = bundle.scaler_cols or proteins
            use_cols = [c for c in scaler_cols if c in df.columns]
            if use_cols:
                try:
                    scaled = bundle.scaler.transform(df[use_cols].astype(float).values)  # type: ignore[attr-defined]
                    df.loc[:, use_cols] = scaled
                except Exception as e:  # noqa: BLE001
                    logger.warning("Scaler transform failed (%s); proceeding without scaling", e)
        else:
            logger.warning(
                "Bundle has no saved scaler; raw pTPM inputs are log1p-transformed only"
            )

    missing = [c for c in bundle.features if c not in df.columns]
    if missing:
        logger.warning(
            "Input is missing %d model features, imputing them (first 10: %s)",
            len(missing),
            missing[:10],
        )

    X = df.reindex(columns=bundle.features).copy()
    for col in X.columns:
        X[col] = pd.to_numeric(X[col], errors="coerce")

    for col, median in bundle.feature_medians.items():
        if col in X.columns:
            X[col] = X[col].fillna(median)

    return X.fillna(0.0).astype(float)
