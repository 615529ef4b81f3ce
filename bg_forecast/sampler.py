"""CGM-style display sampling of a BG trajectory.

Resamples the per-minute forecast every 15 minutes and tags each point with
clinical range flags. Thresholds are mg/dL; trajectories in mmol/L are
classified on their mg/dL equivalent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import logging

import numpy as np
import pandas as pd

from .errors import InvalidParameterError
from .units import MGDL, normalize_unit, to_mgdl

logger = logging.getLogger(__name__)

CRITICAL_LOW_MGDL = 55.0
LOW_MGDL = 70.0
HIGH_MGDL = 180.0
CRITICAL_HIGH_MGDL = 250.0


@dataclass
class SamplerConfig:
    interval_minutes: int = 15
    checkpoints: Tuple[int, ...] = (60, 120, 180)

    def __post_init__(self):
        errors = []

        if int(self.interval_minutes) != self.interval_minutes or self.interval_minutes <= 0:
            errors.append(f"interval_minutes ({self.interval_minutes}) must be a positive integer")

        if len(self.checkpoints) != 3:
            errors.append(f"checkpoints ({self.checkpoints}) must hold exactly three minute offsets")
        elif any(int(c) != c or c < 0 for c in self.checkpoints):
            errors.append(f"checkpoints ({self.checkpoints}) must be non-negative integers")

        if errors:
            raise InvalidParameterError("Invalid SamplerConfig:\n  - " + "\n  - ".join(errors))


@dataclass(frozen=True)
class CGMSample:
    minute_offset: int
    bg: float
    is_critical_low: bool
    is_low: bool
    is_target: bool
    is_high: bool
    is_critical_high: bool

    @property
    def band(self) -> str:
        """Single most severe band, for consumers that want an ordered level."""
        if self.is_critical_low:
            return "critical-low"
        if self.is_low:
            return "low"
        if self.is_critical_high:
            return "critical-high"
        if self.is_high:
            return "high"
        return "target"


@dataclass(frozen=True)
class ForecastSummary:
    current: float
    one_hour: float
    two_hours: float
    three_hours: float
    lowest: float
    highest: float


def classify(bg: float, minute_offset: int = 0, bg_unit: str = MGDL) -> CGMSample:
    """Flag `bg` against the clinical bands.

    Flags are not exclusive: a value above 250 mg/dL is both high and
    critical-high, one below 55 is both low and critical-low.
    """
    mgdl = float(to_mgdl(float(bg), bg_unit))
    return CGMSample(
        minute_offset=int(minute_offset),
        bg=float(bg),
        is_critical_low=mgdl < CRITICAL_LOW_MGDL,
        is_low=mgdl < LOW_MGDL,
        is_target=LOW_MGDL <= mgdl <= HIGH_MGDL,
        is_high=mgdl > HIGH_MGDL,
        is_critical_high=mgdl > CRITICAL_HIGH_MGDL,
    )


def sample_trajectory(
    trajectory: Sequence[float],
    bg_unit: str = MGDL,
    config: Optional[SamplerConfig] = None,
    step_minutes: int = 1,
) -> List[CGMSample]:
    """Return one CGMSample every `config.interval_minutes` (0, 15, ..., 180)."""
    config = config or SamplerConfig()
    unit = normalize_unit(bg_unit)
    values = np.asarray(trajectory, dtype=float)
    if values.size == 0:
        return []
    stride = config.interval_minutes // step_minutes
    if stride <= 0 or config.interval_minutes % step_minutes:
        raise InvalidParameterError(
            f"interval_minutes ({config.interval_minutes}) must be a multiple of "
            f"step_minutes ({step_minutes})"
        )
    samples = [
        classify(values[idx], minute_offset=idx * step_minutes, bg_unit=unit)
        for idx in range(0, values.size, stride)
    ]
    n_low = sum(s.is_low for s in samples)
    n_high = sum(s.is_high for s in samples)
    if n_low or n_high:
        logger.debug(f"{len(samples)} samples: {n_low} low, {n_high} high")
    return samples


def value_at(trajectory: Sequence[float], minute: int, step_minutes: int = 1) -> float:
    """Trajectory value at `minute`.

    Raises InvalidParameterError when `minute` falls beyond the horizon or
    off the step grid, instead of silently reporting the last point.
    """
    values = np.asarray(trajectory, dtype=float)
    if minute % step_minutes:
        raise InvalidParameterError(
            f"checkpoint minute {minute} is not a multiple of step_minutes ({step_minutes})"
        )
    idx = minute // step_minutes
    if idx >= values.size:
        horizon = (values.size - 1) * step_minutes
        raise InvalidParameterError(
            f"checkpoint minute {minute} is beyond the forecast horizon ({horizon} min)"
        )
    return float(values[idx])


def summarize(
    trajectory: Sequence[float],
    samples: Sequence[CGMSample],
    config: Optional[SamplerConfig] = None,
    step_minutes: int = 1,
) -> ForecastSummary:
    """Checkpoint values plus min/max over the sampled series."""
    config = config or SamplerConfig()
    values = np.asarray(trajectory, dtype=float)
    if values.size == 0 or not samples:
        raise InvalidParameterError("Cannot summarize an empty trajectory")

    one, two, three = config.checkpoints
    sampled = [s.bg for s in samples]
    return ForecastSummary(
        current=float(values[0]),
        one_hour=value_at(values, one, step_minutes),
        two_hours=value_at(values, two, step_minutes),
        three_hours=value_at(values, three, step_minutes),
        lowest=min(sampled),
        highest=max(sampled),
    )


def samples_to_frame(samples: Sequence[CGMSample]) -> pd.DataFrame:
    """Tabular view of the display samples, indexed by minute offset."""
    df = pd.DataFrame(
        {
            "bg": [s.bg for s in samples],
            "band": [s.band for s in samples],
            "is_critical_low": [s.is_critical_low for s in samples],
            "is_low": [s.is_low for s in samples],
            "is_target": [s.is_target for s in samples],
            "is_high": [s.is_high for s in samples],
            "is_critical_high": [s.is_critical_high for s in samples],
        },
        index=pd.Index([s.minute_offset for s in samples], name="minute"),
    )
    return df
