"""Discrete-time BG forecast for a single meal bolus.

Builds per-step carbohydrate and insulin effect profiles from the kernels and
integrates a BG trajectory forward over a fixed horizon:

    bg[i] = max(floor, bg[i-1] + carb - insulin + drift + trend)

where carb = (ISF / ICR) * carb_profile[i-1], insulin = ISF * insulin_profile[i-1],
drift = -k * (bg[i-1] - target) * dt and trend = +/- slope * dt for the first
ten minutes. All values are mg/dL.

The floor is a deliberate modelling clamp, not a physiological limit. It
applies to every simulated step (index 1 onward); index 0 is the caller's
reading as given, so a start below 50 mg/dL is reported unchanged at minute 0.
There is no upper cap.

License: MIT
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
import logging

import numpy as np

from .dosing import calculate_icr_and_isf
from .errors import InvalidParameterError
from .kernels import DEFAULT_CONSTANTS, KernelConstants, gamma_kernel, normalized_insulin_kernel
from .units import parse_bg

logger = logging.getLogger(__name__)

TRENDS = ("rising", "stable", "falling")
_TREND_SIGN = {"rising": 1.0, "stable": 0.0, "falling": -1.0}

# Plausible meter range; outside it we still simulate but warn.
_PLAUSIBLE_BG_MGDL = (20.0, 600.0)


@dataclass
class SimulationParams:
    carbs_grams: float
    insulin_dose: float
    current_bg: float  # mg/dL
    trend: str = "stable"
    total_daily_dose: float = 40.0
    horizon_minutes: int = 180
    step_minutes: int = 1

    def __post_init__(self):
        """Validate parameters and normalise the trend string.

        current_bg is deliberately not validated here: a missing or
        non-numeric reading makes `simulate_bg` return None instead of raising.
        """
        errors = []

        if not self.carbs_grams >= 0:
            errors.append(f"carbs_grams ({self.carbs_grams}) must be >= 0")

        if not self.insulin_dose >= 0:
            errors.append(f"insulin_dose ({self.insulin_dose}) must be >= 0")

        if not self.total_daily_dose > 0:
            errors.append(f"total_daily_dose ({self.total_daily_dose}) must be > 0")

        trend = str(self.trend).strip().lower()
        if trend not in _TREND_SIGN:
            errors.append(f"trend ({self.trend!r}) must be one of {', '.join(TRENDS)}")
        else:
            self.trend = trend

        if int(self.step_minutes) != self.step_minutes or self.step_minutes <= 0:
            errors.append(f"step_minutes ({self.step_minutes}) must be a positive integer")
        elif int(self.horizon_minutes) != self.horizon_minutes or self.horizon_minutes <= 0:
            errors.append(f"horizon_minutes ({self.horizon_minutes}) must be a positive integer")
        elif self.horizon_minutes % self.step_minutes:
            errors.append(
                f"horizon_minutes ({self.horizon_minutes}) must be a multiple of "
                f"step_minutes ({self.step_minutes})"
            )

        if errors:
            raise InvalidParameterError(
                "Invalid SimulationParams:\n  - " + "\n  - ".join(errors)
            )

        self.horizon_minutes = int(self.horizon_minutes)
        self.step_minutes = int(self.step_minutes)

    @property
    def n_steps(self) -> int:
        return self.horizon_minutes // self.step_minutes


def trend_slope(trend: str, constants: KernelConstants = DEFAULT_CONSTANTS) -> float:
    """Initial BG slope (mg/dL per minute) for a trend label."""
    key = str(trend).strip().lower()
    if key not in _TREND_SIGN:
        raise InvalidParameterError(f"Unknown trend {trend!r} (expected one of {', '.join(TRENDS)})")
    return _TREND_SIGN[key] * constants.trend_slope


def _time_grid(params: SimulationParams) -> np.ndarray:
    return np.arange(params.n_steps, dtype=float) * params.step_minutes


def carb_profile(
    params: SimulationParams, constants: KernelConstants = DEFAULT_CONSTANTS
) -> np.ndarray:
    """Grams of carbohydrate absorbed in each step."""
    dt = float(params.step_minutes)
    return params.carbs_grams * gamma_kernel(_time_grid(params), constants.tau_carb) * dt


def insulin_profile(
    params: SimulationParams, constants: KernelConstants = DEFAULT_CONSTANTS
) -> np.ndarray:
    """Units of insulin acting in each step."""
    dt = float(params.step_minutes)
    action = normalized_insulin_kernel(
        _time_grid(params), constants.tau_onset, constants.tau_duration
    )
    return params.insulin_dose * action * dt


def simulate_bg(
    params: SimulationParams, constants: KernelConstants = DEFAULT_CONSTANTS
) -> Optional[np.ndarray]:
    """Return the BG trajectory (mg/dL), or None when current_bg is unusable.

    The result has n_steps + 1 points, index 0 being the current reading, and
    is read-only. Identical inputs always give identical output.
    """
    start_bg = parse_bg(params.current_bg)
    if start_bg is None:
        logger.warning(f"Cannot forecast: current BG {params.current_bg!r} is not a finite number")
        return None

    lo, hi = _PLAUSIBLE_BG_MGDL
    if not lo <= start_bg <= hi:
        logger.warning(
            f"Current BG {start_bg:.1f} mg/dL is outside the plausible range {lo:.0f}-{hi:.0f}; "
            f"forecasting anyway"
        )

    icr, isf = calculate_icr_and_isf(params.total_daily_dose)
    dt = float(params.step_minutes)
    slope = trend_slope(params.trend, constants)

    carbs = carb_profile(params, constants).tolist()
    insulin = insulin_profile(params, constants).tolist()

    bg: List[float] = [start_bg]
    floored = 0
    for i in range(1, params.n_steps + 1):
        prev = bg[i - 1]
        carb_effect = (isf / icr) * carbs[i - 1]
        insulin_effect = isf * insulin[i - 1]
        drift = -constants.drift_rate * (prev - constants.target_bg) * dt
        trend_effect = slope * dt if i * params.step_minutes <= constants.trend_minutes else 0.0
        nxt = prev + carb_effect - insulin_effect + drift + trend_effect
        if nxt < constants.bg_floor:
            floored += 1
            nxt = constants.bg_floor
        bg.append(nxt)

    if floored:
        logger.warning(
            f"Forecast hit the {constants.bg_floor:.0f} mg/dL floor on {floored} of "
            f"{params.n_steps} steps (insulin {params.insulin_dose:.2f}u, carbs {params.carbs_grams:.0f}g)"
        )

    trajectory = np.asarray(bg, dtype=float)
    trajectory.flags.writeable = False
    logger.debug(
        f"Simulated {params.horizon_minutes} min: {trajectory[0]:.1f} -> {trajectory[-1]:.1f} mg/dL "
        f"(ICR {icr:.2f}, ISF {isf:.2f})"
    )
    return trajectory
