# Copyright (c) Syntropy Systems
"""Tests for building model input matrices."""

import math

import numpy as np
import pytest

from survboard.bundle import ModelBundle
from survboard.features import prepare_features, protein_columns


class DoublingScaler:
    def transform(self, values):
        return values * 2


class TestProteinColumns:
    """Tests for protein_columns."""

    def test_suffix(self):
        """Test only pTPM columns are selected."""
        assert protein_columns(["age", "EGFR_pTPM", "tp53_ptpm", "KRAS_pTPM"]) == [
            "EGFR_pTPM",
            "KRAS_pTPM",
        ]


class TestPrepareFeatures:
    """Tests for prepare_features."""

    def test_requires_feature_list(self):
        """Test bundles without features are rejected."""
        with pytest.raises(ValueError, match="feature list"):
            prepare_features([{"age": 50}], ModelBundle())

    def test_order_imputation_and_stage(self):
        """Test feature order, stage derivation, medians and zero fill."""
        bundle = ModelBundle(
            features=["stage_ordinal", "age", "missing", "tumor_size"],
            feature_medians={"missing": 5.0},
        )
        records = [
            {"age": 60, "stage": "Stage II", "tumor_size": None},
            {"age": "unknown", "stage": "IV", "tumor_size": 3.0},
        ]

        X = prepare_features(records, bundle)

        assert list(X.columns) == ["stage_ordinal", "age", "missing", "tumor_size"]
        assert X["stage_ordinal"].tolist() == [2.0, 4.0]
        assert X["age"].tolist() == [60.0, 0.0]
        assert X["missing"].tolist() == [5.0, 5.0]
        assert X["tumor_size"].tolist() == [0.0, 3.0]

    def test_existing_stage_ordinal_kept(self):
        """Test an existing stage_ordinal column is used as given."""
        bundle = ModelBundle(features=["stage_ordinal"])

        X = prepare_features([{"stage": "Stage I", "stage_ordinal": 3}], bundle)

        assert X["stage_ordinal"].tolist() == [3.0]

    def test_raw_ptpm_log_transform(self):
        """Test raw pTPM values are log1p transformed."""
        bundle = ModelBundle(features=["EGFR_pTPM"])

        X = prepare_features([{"EGFR_pTPM": math.e - 1}, {"EGFR_pTPM": None}], bundle)

        assert X["EGFR_pTPM"].tolist() == pytest.approx([1.0, 0.0])

    def test_transformed_ptpm_untouched(self):
        """Test already-transformed pTPM values pass through."""
        bundle = ModelBundle(features=["EGFR_pTPM"])

        X = prepare_features([{"EGFR_pTPM": 4.0}], bundle, raw_ptpm=False)

        assert X["EGFR_pTPM"].tolist() == [4.0]

    def test_scaler_applied(self):
        """Test the bundle's scaler runs after log1p."""
        bundle = ModelBundle(
            features=["EGFR_pTPM", "age"],
            scaler=DoublingScaler(),
            scaler_cols=["EGFR_pTPM"],
        )

        X = prepare_features([{"EGFR_pTPM": math.e - 1, "age": 50}], bundle)

        assert X["EGFR_pTPM"].tolist() == pytest.approx([2.0])
        assert X["age"].tolist() == [50.0]

    def test_matrix_is_float(self):
        """Test the matrix is numeric."""
        bundle = ModelBundle(features=["age"])

        X = prepare_features([{"age": 1}], bundle)

        assert X.dtypes.tolist() == [np.dtype("float64")]

    def test_stage_derivation_matches_dataset_helper(self):
        """Test stage text is mapped the same way the dataset helper maps it."""
        bundle = ModelBundle(features=["stage_ordinal"])
        records = [{" stage ": "III"}, {" stage ": "Stage VII"}, {" stage ": None}]

        X = prepare_features(records, bundle)

        assert X["stage_ordinal"].tolist() == [3.0, 0.0, 0.0]

    def test_records_not_modified(self):
        """Test the caller's records do not gain a stage_ordinal key."""
        bundle = ModelBundle(features=["stage_ordinal"])
        records = [{"stage": "II"}]

        prepare_features(records, bundle)

        assert records == [{"stage": "II"}]

    def test_no_stage_column(self):
        """Test stage_ordinal is 0 without a stage column."""
        bundle = ModelBundle(features=["stage_ordinal", "age"])

        X = prepare_features([{"age": 40}], bundle)

        assert X["stage_ordinal"].tolist() == [0.0]
