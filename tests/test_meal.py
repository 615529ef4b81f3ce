"""
Unit tests for meal carbohydrate totals.

Tests cover:
- Per-item rounding to whole grams (missing / NaN / negative -> 0)
- Totals over FoodItem objects and plain mappings
- Carb-weighted confidence
"""

import pytest

from bg_forecast.meal import FoodItem, ensure_items, round_carbs, total_carbs, weighted_confidence


class TestRoundCarbs:
    """Whole-gram rounding"""

    @pytest.mark.parametrize(
        "raw,expected",
        [(12.5, 13), (12.49, 12), (0.4, 0), (45, 45), (-3.0, 0), (None, 0), (float("nan"), 0), ("abc", 0)],
    )
    def test_rounding(self, raw, expected):
        assert round_carbs(raw) == expected


class TestTotals:
    """Meal totals"""

    def test_mixed_inputs(self):
        items = [
            FoodItem("rice", 45.4, confidence=0.9),
            {"foodName": "black beans", "carbs": 20.6, "confidence": 0.8},
            None,
        ]
        assert total_carbs(items) == 66.0

    def test_missing_carbs_count_as_zero(self):
        assert total_carbs([{"foodName": "water"}, FoodItem("apple", None)]) == 0.0

    def test_empty_meal(self):
        assert total_carbs([]) == 0.0

    def test_ensure_items_maps_keys(self):
        items = ensure_items([{"food_name": "toast", "carbs": 15, "quantity": "1 slice"}])
        assert items == [FoodItem("toast", 15, confidence=1.0, quantity="1 slice")]


class TestConfidence:
    """Carb-weighted confidence"""

    def test_weighted(self):
        items = [FoodItem("pasta", 30, confidence=1.0), FoodItem("sauce", 10, confidence=0.5)]
        assert weighted_confidence(items) == pytest.approx(0.875)

    def test_no_carbs(self):
        assert weighted_confidence([FoodItem("salad", 0, confidence=0.9)]) == 0.0

    def test_confidence_clipped(self):
        assert weighted_confidence([FoodItem("bread", 20, confidence=1.7)]) == pytest.approx(1.0)
