# Copyright (c) Syntropy Systems
"""Configuration management for survboard."""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import cast

import yaml

from survboard.curves import DEFAULT_HORIZON_DAYS, DEFAULT_STEP_DAYS, QueryMode

CONFIG_DIRNAME = ".survboard"
CONFIG_FILENAME = "config.yaml"
CONFIG_ENV_VAR = "SURVBOARD_CONFIG"


@dataclass
class SurvboardConfig:
    """Configuration for survboard."""

    # Placeholder curve horizon and sampling step (days)
    horizon_days: int = DEFAULT_HORIZON_DAYS
    step_days: int = DEFAULT_STEP_DAYS

    # Conversion used for reporting timepoints given in years
    days_per_year: float = 365

    # Reporting timepoints (years)
    timepoints: list[float] = field(default_factory=lambda: [1, 2, 3, 5])

    # Curve reading for sampled probabilities: "as-of" or "interpolated"
    query_mode: str = QueryMode.AS_OF.value

    export_filename: str = "survival_predictions.csv"

    # Seed for placeholder risk scores; None draws a fresh sequence each run
    seed: int | None = None

    def to_dict(self) -> dict[str, object]:
        """Plain mapping suitable for YAML."""
        return asdict(self)


def find_config_dir(start_path: Path | None = None) -> Path | None:
    """Find the nearest .survboard directory by walking up from start_path.

    Returns None if no .survboard directory is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        config_dir = current / CONFIG_DIRNAME
        if config_dir.is_dir():
            return config_dir
        current = current.parent

    # Check root
    config_dir = current / CONFIG_DIRNAME
    if config_dir.is_dir():
        return config_dir

    return None


def get_global_config_dir() -> Path:
    """Get the global survboard config directory (~/.survboard)."""
    return Path.home() / CONFIG_DIRNAME


def _locate_config_file(config_dir: Path | None) -> Path | None:
    if config_dir is not None:
        return config_dir / CONFIG_FILENAME

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    found_dir = find_config_dir()
    if found_dir is not None:
        return found_dir / CONFIG_FILENAME

    global_config = get_global_config_dir() / CONFIG_FILENAME
    if global_config.exists():
        return global_config
    return None


def load_config(config_dir: Path | None = None) -> SurvboardConfig:
    """Load configuration from .survboard/config.yaml or defaults.

    Looks for config in:
    1. Provided config_dir
    2. $SURVBOARD_CONFIG
    3. Nearest .survboard directory walking up
    4. ~/.survboard/config.yaml
    5. Defaults
    """
    config = SurvboardConfig()
    config_path = _locate_config_file(config_dir)

    if config_path is None or not config_path.exists():
        return config

    with config_path.open() as f:
        data = cast("dict[str, object]", yaml.safe_load(f) or {})

    horizon_days = data.get("horizon_days")
    if isinstance(horizon_days, (int, float)):
        config.horizon_days = int(horizon_days)
    step_days = data.get("step_days")
    if isinstance(step_days, (int, float)) and step_days > 0:
        config.step_days = int(step_days)
    days_per_year = data.get("days_per_year")
    if isinstance(days_per_year, (int, float)) and days_per_year > 0:
        config.days_per_year = float(days_per_year)
    timepoints = data.get("timepoints")
    if isinstance(timepoints, list) and all(
        isinstance(t, (int, float)) for t in timepoints
    ):
        config.timepoints = [cast("float", t) for t in timepoints]
    query_mode = data.get("query_mode")
    if query_mode in {m.value for m in QueryMode}:
        config.query_mode = cast("str", query_mode)
    export_filename = data.get("export_filename")
    if isinstance(export_filename, str) and export_filename:
        config.export_filename = export_filename
    seed = data.get("seed")
    if isinstance(seed, int):
        config.seed = seed

    return config


def write_default_config(config_dir: Path) -> Path:
    """Write the default configuration into ``config_dir``."""
    config_path = config_dir / CONFIG_FILENAME
    with config_path.open("w") as f:
        yaml.dump(SurvboardConfig().to_dict(), f, default_flow_style=False)
    return config_path
