# Copyright (c) Syntropy Systems
"""Pytest fixtures for survboard tests."""

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from survboard.config import SurvboardConfig
from survboard.parsing import parse_delimited

# Store original cwd at module load time
_original_cwd = Path.cwd()

SAMPLE_CSV = """Patient_ID,age,stage,tumor_size,EGFR_pTPM
P1,61,Stage II,2.5,12.0
P2,48,Stage IV,4.1,NA
P3,70,III,,3.5
"""


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def survboard_project(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary survboard project directory and cd into it."""
    (temp_dir / ".survboard").mkdir()

    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def sample_csv() -> str:
    """A small patient table."""
    return SAMPLE_CSV


@pytest.fixture
def sample_csv_path(temp_dir: Path) -> Path:
    """The sample table written to disk."""
    path = temp_dir / "patients.csv"
    path.write_text(SAMPLE_CSV)
    return path


@pytest.fixture
def sample_dataset():
    """The sample table parsed into a Dataset."""
    return parse_delimited(SAMPLE_CSV, source="patients.csv")


@pytest.fixture
def seeded_config() -> SurvboardConfig:
    """Config with a fixed placeholder seed."""
    return SurvboardConfig(seed=7)
