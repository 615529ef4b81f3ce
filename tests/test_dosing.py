"""
Unit tests for the meal bolus calculator and unit conversion.

Tests cover:
- 500/1500 rules for ICR and ISF
- Meal dose, correction dose toward 7.0 mmol/L, low-BG safety reduction
- mg/dL <-> mmol/L conversion
- Parameter validation (non-positive divisors)
"""

import math

import pytest

from bg_forecast.dosing import (
    DosingInput,
    base_dose,
    calculate_dose,
    calculate_icr_and_isf,
    correction_dose,
    round_dose,
    safety_adjustment,
)
from bg_forecast.errors import InvalidParameterError
from bg_forecast.units import (
    MGDL,
    MMOLL,
    from_mgdl,
    mgdl_to_mmoll,
    mmoll_to_mgdl,
    normalize_unit,
    parse_bg,
    to_mgdl,
)


class TestRatios:
    """ICR / ISF derived from total daily dose"""

    def test_tdd_40(self):
        """TDD 40u -> ICR 12.5 g/u, ISF 37.5 mg/dL/u"""
        icr, isf = calculate_icr_and_isf(40)
        assert icr == pytest.approx(12.5)
        assert isf == pytest.approx(37.5)

    @pytest.mark.parametrize("tdd", [1.0, 7.3, 25.0, 40.0, 100.0])
    def test_isf_is_three_times_icr(self, tdd):
        icr, isf = calculate_icr_and_isf(tdd)
        assert isf == pytest.approx(3.0 * icr)

    @pytest.mark.parametrize("tdd", [0.0, -5.0])
    def test_non_positive_tdd_rejected(self, tdd):
        with pytest.raises(InvalidParameterError, match="total_daily_dose.*must be > 0"):
            calculate_icr_and_isf(tdd)


class TestMealDose:
    """Base dose and correction dose"""

    def test_base_dose(self):
        assert base_dose(50, 10) == pytest.approx(5.0)

    def test_zero_carbs(self):
        assert base_dose(0, 12) == 0.0

    def test_zero_carb_ratio_rejected(self):
        with pytest.raises(InvalidParameterError, match="carb_ratio"):
            base_dose(50, 0)

    def test_correction_from_mgdl(self):
        """150 mg/dL ~ 8.32 mmol/L -> (8.32 - 7) / 2 ~ 0.66u"""
        dose = correction_dose(150, 2.0, MGDL)
        assert dose == pytest.approx((150 / 18.0182 - 7.0) / 2.0)
        assert dose == pytest.approx(0.66, abs=0.01)

    def test_correction_from_mmoll(self):
        assert correction_dose(10.0, 2.0, MMOLL) == pytest.approx(1.5)

    def test_no_correction_at_or_below_target(self):
        assert correction_dose(7.0, 2.0, MMOLL) == 0.0
        assert correction_dose(120, 2.0, MGDL) == 0.0

    def test_no_correction_without_reading(self):
        assert correction_dose(None, 2.0) == 0.0

    def test_zero_correction_factor_rejected(self):
        with pytest.raises(InvalidParameterError, match="correction_factor"):
            correction_dose(200, 0.0)


class TestSafetyAdjustment:
    """Low-BG reduction of one unit below 80 mg/dL"""

    def test_below_threshold_mgdl(self):
        assert safety_adjustment(79, MGDL) == -1.0

    def test_at_threshold_mgdl(self):
        assert safety_adjustment(80, MGDL) == 0.0

    def test_mmoll_converted_before_comparison(self):
        """4.0 mmol/L ~ 72 mg/dL is low; 4.5 mmol/L ~ 81 mg/dL is not"""
        assert safety_adjustment(4.0, MMOLL) == -1.0
        assert safety_adjustment(4.5, MMOLL) == 0.0

    def test_no_reading(self):
        assert safety_adjustment(None) == 0.0


class TestCalculateDose:
    """Total dose composition"""

    def test_example_meal_with_correction(self):
        """50g at 1:10 with BG 150 mg/dL and CF 2 -> ~5.66u"""
        result = calculate_dose(
            DosingInput(carbs_grams=50, carb_ratio=10, current_bg=150, correction_factor=2)
        )
        assert result.base_dose == pytest.approx(5.0)
        assert result.correction_dose == pytest.approx(0.66, abs=0.01)
        assert result.safety_adjustment == 0.0
        assert result.total_dose == pytest.approx(5.66, abs=0.01)

    def test_low_bg_reduces_dose(self):
        result = calculate_dose(DosingInput(carbs_grams=30, carb_ratio=10, current_bg=75))
        assert result.safety_adjustment == -1.0
        assert result.total_dose == pytest.approx(2.0)

    def test_total_floored_at_zero(self):
        result = calculate_dose(DosingInput(carbs_grams=5, carb_ratio=10, current_bg=60))
        assert result.base_dose == pytest.approx(0.5)
        assert result.total_dose == 0.0

    def test_result_is_immutable(self):
        result = calculate_dose(DosingInput(carbs_grams=10, carb_ratio=10))
        with pytest.raises(AttributeError):
            result.total_dose = 3.0

    def test_input_validation_lists_all_errors(self):
        with pytest.raises(ValueError) as exc:
            DosingInput(carbs_grams=-1, carb_ratio=0, correction_factor=-2, bg_unit="g/L")
        msg = str(exc.value)
        assert "carbs_grams" in msg
        assert "carb_ratio" in msg
        assert "correction_factor" in msg
        assert "Unknown BG unit" in msg

    def test_unit_spelling_normalised(self):
        dosing = DosingInput(carbs_grams=10, carb_ratio=10, bg_unit="MMOL/L")
        assert dosing.bg_unit == MMOLL

    def test_round_dose(self):
        assert round_dose(5.6624) == 5.7
        assert round_dose(0.04) == 0.0

    def test_round_dose_ties_round_up(self):
        """Halves round away from zero like a display toFixed(1), not to even"""
        assert round_dose(0.25) == 0.3
        assert round_dose(6.25) == 6.3
        assert round_dose(2.45, digits=1) == 2.5


class TestUnits:
    """mg/dL <-> mmol/L conversion"""

    @pytest.mark.parametrize("mgdl", [40.0, 54.0, 100.0, 180.0, 250.0, 432.7])
    def test_round_trip(self, mgdl):
        assert mmoll_to_mgdl(mgdl_to_mmoll(mgdl)) == pytest.approx(mgdl, rel=1e-6)

    def test_factor(self):
        assert mmoll_to_mgdl(1.0) == pytest.approx(18.0182)

    def test_to_and_from_mgdl(self):
        assert to_mgdl(100, MGDL) == 100
        assert to_mgdl(5.0, MMOLL) == pytest.approx(90.091)
        assert from_mgdl(90.091, MMOLL) == pytest.approx(5.0)

    @pytest.mark.parametrize("raw,expected", [("mg/dL", MGDL), (" mgdl ", MGDL), ("mmol", MMOLL)])
    def test_normalize_unit(self, raw, expected):
        assert normalize_unit(raw) == expected

    def test_unknown_unit(self):
        with pytest.raises(InvalidParameterError, match="Unknown BG unit"):
            normalize_unit("g/L")

    @pytest.mark.parametrize("raw", [None, "", "abc", float("nan"), float("inf")])
    def test_parse_bg_rejects_unusable(self, raw):
        assert parse_bg(raw) is None

    def test_parse_bg_accepts_numeric_string(self):
        assert parse_bg(" 120 ") == 120.0
        assert math.isclose(parse_bg("6.7"), 6.7)
