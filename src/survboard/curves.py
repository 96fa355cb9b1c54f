# Copyright (c) Syntropy Systems
"""Survival curves: time-ordered (time, probability) samples and their queries."""
from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from enum import Enum

import numpy as np
from pydantic import Field, field_validator

from survboard.models.base import FrozenModel

DEFAULT_HORIZON_DAYS = 3650
DEFAULT_STEP_DAYS = 30
HAZARD_BASE = 0.0001
HAZARD_SLOPE = 0.0002


class QueryMode(str, Enum):
    """How a curve is read between its samples."""

    AS_OF = "as-of"
    INTERPOLATED = "interpolated"


class SurvivalSample(FrozenModel):
    """One point of a survival curve."""

    time: float = Field(ge=0)
    probability: float = Field(ge=0, le=1)


class SurvivalCurve(FrozenModel):
    """Survival samples ordered by non-decreasing time.

    Decay is expected but not checked; the curve reports what it was given.
    """

    samples: tuple[SurvivalSample, ...] = ()

    @field_validator("samples")
    @classmethod
    def _check_time_order(
        cls, samples: tuple[SurvivalSample, ...]
    ) -> tuple[SurvivalSample, ...]:
        for earlier, later in zip(samples, samples[1:]):
            if later.time < earlier.time:
                msg = (
                    "Survival samples must be ordered by time "
                    f"({later.time} follows {earlier.time})"
                )
                raise ValueError(msg)
        return samples

    @classmethod
    def from_points(
        cls, points: Iterable[tuple[float, float] | Mapping[str, float]]
    ) -> SurvivalCurve:
        """Build a curve from ``(time, probability)`` pairs or mappings."""
        samples: list[SurvivalSample] = []
        for point in points:
            if isinstance(point, Mapping):
                samples.append(SurvivalSample.model_validate(point))
            else:
                time, probability = point
                samples.append(SurvivalSample(time=time, probability=probability))
        return cls(samples=tuple(samples))

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def times(self) -> list[float]:
        """Sample times in order."""
        return [s.time for s in self.samples]

    @property
    def probabilities(self) -> list[float]:
        """Sample probabilities in time order."""
        return [s.probability for s in self.samples]

    def at(self, time: float, mode: QueryMode = QueryMode.AS_OF) -> float:
        """Survival probability at ``time``."""
        if QueryMode(mode) is QueryMode.INTERPOLATED:
            return interpolate_survival(self.samples, time)
        return get_survival_at_time(self.samples, time)

    def sample(
        self,
        timepoints: Iterable[float],
        mode: QueryMode = QueryMode.AS_OF,
    ) -> list[tuple[float, float]]:
        """Query the curve at each timepoint, in the order given."""
        return [(t, self.at(t, mode)) for t in timepoints]

    def window(self, start: float | None = None, end: float | None = None) -> SurvivalCurve:
        """Samples with ``start <= time <= end``; open bounds when None."""
        lo = -math.inf if start is None else start
        hi = math.inf if end is None else end
        return SurvivalCurve(
            samples=tuple(s for s in self.samples if lo <= s.time <= hi)
        )


def get_survival_at_time(samples: Sequence[SurvivalSample], target_time: float) -> float:
    """Step-function lookup: the last sample at or before ``target_time``.

    Before the first sample the first probability is returned; an empty curve
    means nothing has happened yet, so survival is 1.
    """
    if not samples:
        return 1.0
    for sample in reversed(samples):
        if sample.time <= target_time:
            return sample.probability
    return samples[0].probability


def interpolate_survival(samples: Sequence[SurvivalSample], target_time: float) -> float:
    """Linear interpolation between the samples bracketing ``target_time``.

    Exact matches return the sample itself; times outside the sampled range
    take the nearest endpoint.
    """
    if not samples:
        return 1.0
    for sample in samples:
        if sample.time == target_time:
            return sample.probability
    xs = np.array([s.time for s in samples], dtype=float)
    ys = np.array([s.probability for s in samples], dtype=float)
    return float(np.interp(target_time, xs, ys))


def comparison_grid(
    curves: Mapping[str, SurvivalCurve],
    mode: QueryMode = QueryMode.INTERPOLATED,
) -> list[dict[str, float]]:
    """Put several curves on one shared time axis.

    The axis is the union of every curve's sample times rounded half up to
    whole units. Each row holds ``time`` plus one probability per curve key:
    the first sample that rounds to that time, otherwise a ``mode`` lookup.
    """
    grid = sorted({_round_half_up(t) for curve in curves.values() for t in curve.times})
    rows: list[dict[str, float]] = []
    for time in grid:
        row: dict[str, float] = {"time": float(time)}
        for key, curve in curves.items():
            if not len(curve):
                continue
            matched = next(
                (s.probability for s in curve.samples if _round_half_up(s.time) == time),
                None,
            )
            row[key] = curve.at(time, mode) if matched is None else matched
        rows.append(row)
    return rows


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class ExponentialCurveGenerator:
    """Placeholder curves ``S(t) = exp(-(base + score * slope) * t)``.

    Stands in for a fitted model; sampled every ``step`` units from 0 through
    ``horizon``.
    """

    def __init__(
        self,
        horizon: float = DEFAULT_HORIZON_DAYS,
        step: float = DEFAULT_STEP_DAYS,
        base: float = HAZARD_BASE,
        slope: float = HAZARD_SLOPE,
    ) -> None:
        if step <= 0:
            msg = f"step must be positive, got {step}"
            raise ValueError(msg)
        self.horizon = horizon
        self.step = step
        self.base = base
        self.slope = slope

    def hazard(self, risk_score: float) -> float:
        """Constant hazard rate for a risk score."""
        return self.base + risk_score * self.slope

    def generate(self, risk_score: float) -> SurvivalCurve:
        """Build the curve for one risk score."""
        rate = self.hazard(risk_score)
        samples: list[SurvivalSample] = []
        count = int(self.horizon // self.step)
        for i in range(count + 1):
            t = i * self.step
            probability = min(1.0, max(0.0, math.exp(-rate * t)))
            samples.append(SurvivalSample(time=t, probability=probability))
        return SurvivalCurve(samples=tuple(samples))
