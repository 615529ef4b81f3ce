"""
Carbohydrate absorption and insulin action kernels.

Implements the two impulse-response shapes used by the simulator:
- gamma kernel (shape 2) for carbohydrate absorption, peaking at t = tau_c
- biexponential kernel for rapid-acting insulin (onset tau1, duration tau2)

Every kernel returns 0 for t <= 0 and accepts either a scalar or a numpy
array of minutes. Scalars come back as plain floats.

License: MIT
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import numpy as np

ArrayLike = Union[float, int, np.ndarray]


@dataclass(frozen=True)
class KernelConstants:
    tau_carb: float = 60.0  # min, carb absorption peak
    tau_onset: float = 20.0  # min, insulin onset
    tau_duration: float = 160.0  # min, insulin duration
    drift_rate: float = 0.001  # 1/min, pull toward target_bg
    target_bg: float = 100.0  # mg/dL
    trend_slope: float = 2.0  # mg/dL per min
    trend_minutes: int = 10  # trend only applies to the first steps
    bg_floor: float = 50.0  # mg/dL, hard lower clamp


DEFAULT_CONSTANTS = KernelConstants()


def _finish(t: ArrayLike, values: np.ndarray):
    if np.ndim(t) == 0:
        return float(values)
    return values


def gamma_kernel(t: ArrayLike, tau_c: float = DEFAULT_CONSTANTS.tau_carb):
    """Carb absorption weight at `t` minutes: (t / tau_c^2) * exp(-t / tau_c).

    Peak-shaped rather than integral-normalised; callers multiply by the carb
    amount and the step size to get grams absorbed per step.
    """
    t_arr = np.asarray(t, dtype=float)
    safe_t = np.where(t_arr > 0, t_arr, 0.0)
    values = np.where(t_arr > 0, (safe_t / (tau_c * tau_c)) * np.exp(-safe_t / tau_c), 0.0)
    return _finish(t, values)


def insulin_kernel(
    t: ArrayLike,
    tau1: float = DEFAULT_CONSTANTS.tau_onset,
    tau2: float = DEFAULT_CONSTANTS.tau_duration,
):
    """Biexponential insulin action: exp(-t / tau2) - exp(-t / tau1)."""
    t_arr = np.asarray(t, dtype=float)
    safe_t = np.where(t_arr > 0, t_arr, 0.0)
    values = np.where(t_arr > 0, np.exp(-safe_t / tau2) - np.exp(-safe_t / tau1), 0.0)
    return _finish(t, values)


def normalized_insulin_kernel(
    t: ArrayLike,
    tau1: float = DEFAULT_CONSTANTS.tau_onset,
    tau2: float = DEFAULT_CONSTANTS.tau_duration,
):
    """Insulin kernel divided by (tau2 - tau1).

    Note: this is not the exact integral of the biexponential; the divisor is
    kept as-is because every dose-response magnitude downstream depends on it.
    """
    values = np.asarray(insulin_kernel(np.asarray(t, dtype=float), tau1, tau2)) / (tau2 - tau1)
    return _finish(t, values)
