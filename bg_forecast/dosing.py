"""
Meal bolus calculator.

Implements:
- ICR / ISF from total daily dose via the 500 / 1500 rules
- meal dose = carbs / carb ratio
- correction toward 7.0 mmol/L using a correction factor in mmol/L per unit
- low-BG safety reduction of 1 u below 80 mg/dL

This is the single dosing policy of the package. The simpler threshold
variant (+1 u above 180 mg/dL) is intentionally not offered because the two
are not numerically equivalent.

License: MIT
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple
import logging
import math

from .errors import InvalidParameterError
from .units import MGDL, MMOLL, normalize_unit, to_mgdl, mgdl_to_mmoll

logger = logging.getLogger(__name__)

ICR_RULE = 500.0
ISF_RULE = 1500.0

CORRECTION_TARGET_MMOLL = 7.0
LOW_BG_THRESHOLD_MGDL = 80.0
LOW_BG_REDUCTION_U = 1.0


@dataclass
class DosingInput:
    carbs_grams: float
    carb_ratio: float  # grams covered by one unit
    current_bg: Optional[float] = None
    correction_factor: float = 2.0  # mmol/L drop per unit
    bg_unit: str = MGDL

    def __post_init__(self):
        errors = []

        if not self.carbs_grams >= 0:
            errors.append(f"carbs_grams ({self.carbs_grams}) must be >= 0")

        if not self.carb_ratio > 0:
            errors.append(f"carb_ratio ({self.carb_ratio}) must be > 0")

        if not self.correction_factor > 0:
            errors.append(f"correction_factor ({self.correction_factor}) must be > 0")

        try:
            self.bg_unit = normalize_unit(self.bg_unit)
        except InvalidParameterError as e:
            errors.append(str(e))

        if errors:
            raise InvalidParameterError("Invalid DosingInput:\n  - " + "\n  - ".join(errors))


@dataclass(frozen=True)
class DosingResult:
    base_dose: float
    correction_dose: float
    safety_adjustment: float
    total_dose: float


def _require_positive(name: str, value: float) -> None:
    if not value > 0:
        raise InvalidParameterError(f"{name} ({value}) must be > 0")


def _known_bg(current_bg: Optional[float]) -> bool:
    return current_bg is not None and math.isfinite(current_bg)


def calculate_icr_and_isf(tdd: float) -> Tuple[float, float]:
    """Return (ICR in g/u, ISF in mg/dL per u) from total daily dose."""
    _require_positive("total_daily_dose", tdd)
    icr = ICR_RULE / tdd
    isf = ISF_RULE / tdd
    logger.debug(f"TDD {tdd}u -> ICR {icr:.2f} g/u, ISF {isf:.2f} mg/dL/u")
    return icr, isf


def base_dose(carbs_grams: float, carb_ratio: float) -> float:
    _require_positive("carb_ratio", carb_ratio)
    return carbs_grams / carb_ratio


def correction_dose(
    current_bg: Optional[float], correction_factor: float, bg_unit: str = MGDL
) -> float:
    """Units needed to bring `current_bg` down to 7.0 mmol/L (0 at or below it)."""
    _require_positive("correction_factor", correction_factor)
    if not _known_bg(current_bg):
        return 0.0
    if normalize_unit(bg_unit) == MMOLL:
        bg_mmol = float(current_bg)
    else:
        bg_mmol = mgdl_to_mmoll(float(current_bg))
    if bg_mmol > CORRECTION_TARGET_MMOLL:
        return (bg_mmol - CORRECTION_TARGET_MMOLL) / correction_factor
    return 0.0


def safety_adjustment(current_bg: Optional[float], bg_unit: str = MGDL) -> float:
    """-1 u when BG is below 80 mg/dL (or its mmol/L equivalent), else 0."""
    if not _known_bg(current_bg):
        return 0.0
    if to_mgdl(float(current_bg), bg_unit) < LOW_BG_THRESHOLD_MGDL:
        return -LOW_BG_REDUCTION_U
    return 0.0


def calculate_dose(dosing: DosingInput) -> DosingResult:
    base = base_dose(dosing.carbs_grams, dosing.carb_ratio)
    correction = correction_dose(dosing.current_bg, dosing.correction_factor, dosing.bg_unit)
    safety = safety_adjustment(dosing.current_bg, dosing.bg_unit)
    total = max(0.0, base + correction + safety)

    if safety:
        logger.info(
            f"BG {dosing.current_bg} {dosing.bg_unit} below low threshold: "
            f"dose reduced by {-safety:.1f}u"
        )
    logger.debug(
        f"Dose: base {base:.2f}u + correction {correction:.2f}u + safety {safety:.1f}u "
        f"= {total:.2f}u"
    )
    return DosingResult(
        base_dose=base,
        correction_dose=correction,
        safety_adjustment=safety,
        total_dose=total,
    )


def round_dose(units: float, digits: int = 1) -> float:
    """Round for display, one decimal by default. Ties round up (0.25 -> 0.3)."""
    scale = 10 ** digits
    return math.floor(units * scale + 0.5) / scale
