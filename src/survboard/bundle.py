# Copyright (c) Syntropy Systems
"""Model bundles: the fitted model plus the metadata needed to feed it."""
from __future__ import annotations

import io
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import PurePath

import joblib

from survboard.errors import BundleError, UnsupportedFormat
from survboard.models.prediction import RiskReference
from survboard.risk import coerce_reference

logger = logging.getLogger(__name__)

BUNDLE_SUFFIXES: tuple[str, ...] = (".joblib", ".pkl", ".json")
FEATURE_KEYS = ("features", "feature_cols", "feature_columns", "X_columns", "columns", "ptpm_cols")
NESTED_FEATURE_KEYS = ("features", "feature_cols", "feature_columns")

DEFAULT_FEATURES = [
    "age",
    "stage_ordinal",
    "tumor_size",
    "lymph_nodes",
    "EGFR_pTPM",
    "TP53_pTPM",
    "KRAS_pTPM",
    "ALK_pTPM",
    "BRCA1_pTPM",
    "BRCA2_pTPM",
    "MYC_pTPM",
    "HER2_pTPM",
]


@dataclass
class ModelBundle:
    """A survival model and its training-time metadata.

    ``estimator`` is None for bundles that only describe features and risk
    quantiles; predictions then come from the placeholder model.
    """

    features: list[str] = field(default_factory=list)
    risk_ref: RiskReference | None = None
    estimator: object | None = None
    feature_medians: dict[str, float] = field(default_factory=dict)
    scaler: object | None = None
    scaler_cols: list[str] = field(default_factory=list)
    source: str | None = None

    @property
    def feature_count(self) -> int:
        return len(self.features)

    @property
    def has_estimator(self) -> bool:
        return self.estimator is not None

    def describe(self) -> dict[str, object]:
        """Summary safe to serialize (no estimator or scaler objects)."""
        return {
            "source": self.source,
            "features": list(self.features),
            "feature_count": self.feature_count,
            "risk_ref": self.risk_ref.model_dump() if self.risk_ref else None,
            "has_estimator": self.has_estimator,
            "has_scaler": self.scaler is not None,
        }


def default_bundle() -> ModelBundle:
    """Demonstration bundle used when no model file has been supplied."""
    return ModelBundle(
        features=list(DEFAULT_FEATURES),
        risk_ref=RiskReference(q33=0.35, q66=0.65),
        source="default",
    )


def _list_value(value: object) -> list[str]:
    if isinstance(value, (list, tuple)) and len(value) > 0:
        return [str(v) for v in value]
    return []


def extract_features(data: Mapping[str, object]) -> list[str]:
    """Feature column list under any of the key names bundles use."""
    for key in FEATURE_KEYS:
        features = _list_value(data.get(key))
        if features:
            return features
    pre = data.get("preprocess")
    if isinstance(pre, Mapping):
        for key in NESTED_FEATURE_KEYS:
            features = _list_value(pre.get(key))
            if features:
                return features
    return []


def _preprocess_value(data: Mapping[str, object], key: str) -> object | None:
    if data.get(key) is not None:
        return data[key]
    pre = data.get("preprocess")
    if isinstance(pre, Mapping):
        return pre.get(key)
    return None


def bundle_from_mapping(data: Mapping[str, object], source: str | None = None) -> ModelBundle:
    """Build a ModelBundle from the dict a training notebook saved."""
    medians = data.get("feature_medians") or {}
    if not isinstance(medians, Mapping):
        raise BundleError(f"feature_medians must be a mapping, got {type(medians).__name__}")

    risk_ref_data = data.get("risk_ref", data.get("riskRef"))
    risk_ref = coerce_reference(risk_ref_data if isinstance(risk_ref_data, Mapping) else None)
    if risk_ref is None:
        logger.info("Bundle %s has no usable risk reference; risk bands disabled", source)

    return ModelBundle(
        features=extract_features(data),
        risk_ref=risk_ref,
        estimator=data.get("model"),
        feature_medians={str(k): float(v) for k, v in medians.items() if v is not None},
        scaler=_preprocess_value(data, "scaler"),
        scaler_cols=_list_value(_preprocess_value(data, "scaler_cols")),
        source=source,
    )


def load_model_bundle(filename: str, content: bytes) -> ModelBundle:
    """Read a bundle upload.

    ``.joblib``/``.pkl`` files are unpickled, so only load bundles from a
    trusted source. ``.json`` bundles carry features and risk quantiles only.

    Raises:
        UnsupportedFormat: unknown suffix.
        BundleError: the file does not hold a bundle mapping.

    """
    suffix = PurePath(filename.lower()).suffix
    if suffix not in BUNDLE_SUFFIXES:
        raise UnsupportedFormat(filename, BUNDLE_SUFFIXES)

    try:
        if suffix == ".json":
            data = json.loads(content.decode("utf-8-sig"))
        else:
            data = joblib.load(io.BytesIO(content))
    except Exception as e:
        raise BundleError(f"Could not load model bundle {filename}: {e}") from e

    if not isinstance(data, Mapping):
        msg = f"{filename} is not a model bundle dictionary (got {type(data).__name__})"
        raise BundleError(msg)

    bundle = bundle_from_mapping(data, source=filename)
    if suffix != ".json" and not bundle.has_estimator:
        logger.warning("Bundle %s has no 'model' key; using placeholder predictions", filename)
    logger.info("Loaded bundle %s with %d features", filename, bundle.feature_count)
    return bundle
