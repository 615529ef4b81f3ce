"""End-to-end meal forecast: dose -> BG simulation -> CGM display samples.

`predict_bg` runs the simulator for a known insulin dose. `analyze_meal`
derives the dose from the meal first, then forecasts and samples the result.
Both accept BG in mg/dL or mmol/L; the simulation itself always runs in mg/dL
and results are converted back to the caller's unit.

License: MIT
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import logging

import numpy as np
import pandas as pd

from .errors import InvalidParameterError
from .dosing import DosingInput, DosingResult, calculate_dose, calculate_icr_and_isf, round_dose
from .kernels import DEFAULT_CONSTANTS, KernelConstants
from .sampler import CGMSample, ForecastSummary, SamplerConfig, sample_trajectory, summarize, value_at
from .simulator import SimulationParams, simulate_bg
from .units import MGDL, from_mgdl, normalize_unit, parse_bg, to_mgdl

logger = logging.getLogger(__name__)

CHECKPOINT_MINUTES = (60, 120, 180)


@dataclass(frozen=True)
class ForecastResult:
    current: float
    one_hour: float
    two_hours: float
    three_hours: float
    full_profile: Tuple[float, ...]
    icr: float  # g/u, one decimal
    isf: float  # bg_unit per u, one decimal
    bg_unit: str = MGDL
    step_minutes: int = 1

    def to_dict(self) -> Dict[str, Any]:
        """camelCase payload as consumed by the meal-logging UI."""
        return {
            "current": self.current,
            "oneHour": self.one_hour,
            "twoHours": self.two_hours,
            "threeHours": self.three_hours,
            "fullProfile": list(self.full_profile),
            "ICR": self.icr,
            "ISF": self.isf,
        }

    def to_frame(self) -> pd.DataFrame:
        """Per-step forecast as a DataFrame indexed by minute."""
        minutes = np.arange(len(self.full_profile)) * self.step_minutes
        df = pd.DataFrame({"bg": list(self.full_profile)}, index=pd.Index(minutes, name="minute"))
        df.attrs["bg_unit"] = self.bg_unit
        return df


@dataclass(frozen=True)
class MealForecast:
    dosing: DosingResult
    forecast: ForecastResult
    samples: List[CGMSample] = field(default_factory=list)
    summary: Optional[ForecastSummary] = None

    @property
    def insulin_dose(self) -> float:
        return round_dose(self.dosing.total_dose)


def predict_bg(
    carbs_grams: float,
    insulin_dose: float,
    current_bg,
    trend: str = "stable",
    total_daily_dose: float = 40.0,
    bg_unit: str = MGDL,
    *,
    horizon_minutes: int = 180,
    step_minutes: int = 1,
    constants: KernelConstants = DEFAULT_CONSTANTS,
) -> Optional[ForecastResult]:
    """Forecast BG after a meal and bolus.

    Parameters
    ----------
    carbs_grams : float
        Meal carbohydrate, grams.
    insulin_dose : float
        Bolus actually given, units.
    current_bg : float | str | None
        Current reading in `bg_unit`. Numeric strings are accepted.
    trend : str
        "rising", "stable" or "falling".
    total_daily_dose : float
        TDD in units; ICR and ISF are derived from it.
    bg_unit : str
        "mg/dL" or "mmol/L", for both input and output.

    Returns
    -------
    ForecastResult | None
        None when `current_bg` is missing or not a finite number. Invalid
        dosing parameters raise InvalidParameterError instead.
    """
    unit = normalize_unit(bg_unit)
    bg = parse_bg(current_bg)

    params = SimulationParams(
        carbs_grams=carbs_grams,
        insulin_dose=insulin_dose,
        current_bg=to_mgdl(bg, unit) if bg is not None else None,
        trend=trend,
        total_daily_dose=total_daily_dose,
        horizon_minutes=horizon_minutes,
        step_minutes=step_minutes,
    )
    if params.horizon_minutes < CHECKPOINT_MINUTES[-1] or CHECKPOINT_MINUTES[0] % params.step_minutes:
        raise InvalidParameterError(
            f"horizon_minutes ({params.horizon_minutes}) and step_minutes ({params.step_minutes}) "
            f"must cover the checkpoints {CHECKPOINT_MINUTES}"
        )
    trajectory = simulate_bg(params, constants)
    if trajectory is None:
        return None

    profile = np.asarray(from_mgdl(trajectory, unit), dtype=float)
    icr, isf = calculate_icr_and_isf(params.total_daily_dose)
    isf_display = float(from_mgdl(isf, unit))
    one, two, three = CHECKPOINT_MINUTES

    return ForecastResult(
        current=float(profile[0]),
        one_hour=value_at(profile, one, params.step_minutes),
        two_hours=value_at(profile, two, params.step_minutes),
        three_hours=value_at(profile, three, params.step_minutes),
        full_profile=tuple(profile.tolist()),
        icr=round_dose(icr),
        isf=round_dose(isf_display),
        bg_unit=unit,
        step_minutes=params.step_minutes,
    )


def analyze_meal(
    carbs_grams: float,
    carb_ratio: float,
    current_bg,
    trend: str = "stable",
    total_daily_dose: float = 40.0,
    correction_factor: float = 2.0,
    bg_unit: str = MGDL,
    sampler_config: Optional[SamplerConfig] = None,
) -> Optional[MealForecast]:
    """Dose a meal, forecast the next three hours and sample for display.

    Returns None when no forecast can be made from `current_bg`.
    """
    unit = normalize_unit(bg_unit)
    bg = parse_bg(current_bg)

    dosing = calculate_dose(
        DosingInput(
            carbs_grams=carbs_grams,
            carb_ratio=carb_ratio,
            current_bg=bg,
            correction_factor=correction_factor,
            bg_unit=unit,
        )
    )
    forecast = predict_bg(
        carbs_grams,
        dosing.total_dose,
        bg,
        trend=trend,
        total_daily_dose=total_daily_dose,
        bg_unit=unit,
    )
    if forecast is None:
        logger.info("No BG forecast: insufficient data (current BG missing or invalid)")
        return None

    samples = sample_trajectory(
        forecast.full_profile, bg_unit=unit, config=sampler_config, step_minutes=forecast.step_minutes
    )
    summary = summarize(
        forecast.full_profile, samples, config=sampler_config, step_minutes=forecast.step_minutes
    )
    logger.debug(
        f"Meal {carbs_grams}g: dose {dosing.total_dose:.2f}u, BG {summary.current:.1f} -> "
        f"{summary.three_hours:.1f} {unit} (range {summary.lowest:.1f}-{summary.highest:.1f})"
    )
    return MealForecast(dosing=dosing, forecast=forecast, samples=samples, summary=summary)
