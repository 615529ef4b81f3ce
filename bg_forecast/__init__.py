# Makes this directory a package for easy imports

from .errors import InvalidParameterError
from .units import MGDL, MMOLL, MGDL_PER_MMOLL, mgdl_to_mmoll, mmoll_to_mgdl
from .dosing import DosingInput, DosingResult, calculate_dose, calculate_icr_and_isf
from .kernels import KernelConstants, gamma_kernel, insulin_kernel, normalized_insulin_kernel
from .simulator import SimulationParams, simulate_bg
from .sampler import CGMSample, ForecastSummary, SamplerConfig, sample_trajectory, summarize, value_at
from .meal import FoodItem, total_carbs
from .forecast import ForecastResult, MealForecast, analyze_meal, predict_bg

__all__ = [
    "InvalidParameterError",
    "MGDL",
    "MMOLL",
    "MGDL_PER_MMOLL",
    "mgdl_to_mmoll",
    "mmoll_to_mgdl",
    "DosingInput",
    "DosingResult",
    "calculate_dose",
    "calculate_icr_and_isf",
    "KernelConstants",
    "gamma_kernel",
    "insulin_kernel",
    "normalized_insulin_kernel",
    "SimulationParams",
    "simulate_bg",
    "CGMSample",
    "ForecastSummary",
    "SamplerConfig",
    "sample_trajectory",
    "summarize",
    "value_at",
    "FoodItem",
    "total_carbs",
    "ForecastResult",
    "MealForecast",
    "analyze_meal",
    "predict_bg",
]
