"""Meal carbohydrate totals from per-food estimates.

Each detected or typed-in food carries its own carb estimate. Estimates are
rounded to whole grams per item and summed into the meal total that feeds
the dose calculation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Union
import logging
import math

logger = logging.getLogger(__name__)


@dataclass
class FoodItem:
    food_name: str
    carbs: Optional[float] = 0.0  # grams
    confidence: float = 1.0  # 0..1
    quantity: str = ""


def round_carbs(value: Optional[float]) -> int:
    """Whole grams, never negative. Missing or NaN estimates count as 0."""
    if value is None:
        return 0
    try:
        grams = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(grams):
        return 0
    return max(0, int(math.floor(grams + 0.5)))


def _as_item(obj: Union[FoodItem, Mapping[str, Any]]) -> FoodItem:
    if isinstance(obj, FoodItem):
        return obj
    return FoodItem(
        food_name=str(obj.get("foodName") or obj.get("food_name") or ""),
        carbs=obj.get("carbs"),
        confidence=float(obj.get("confidence", 1.0) or 0.0),
        quantity=str(obj.get("quantity") or ""),
    )


def ensure_items(objs: Iterable[Union[FoodItem, Mapping[str, Any], None]]) -> List[FoodItem]:
    items: List[FoodItem] = []
    for o in objs:
        if o is None:
            continue
        items.append(_as_item(o))
    return items


def total_carbs(objs: Iterable[Union[FoodItem, Mapping[str, Any], None]]) -> float:
    """Sum of rounded per-item carbs, to one decimal."""
    items = ensure_items(objs)
    total = float(sum(round_carbs(it.carbs) for it in items))
    logger.debug(f"Meal total {total:.1f}g over {len(items)} item(s)")
    return round(total, 1)


def weighted_confidence(objs: Iterable[Union[FoodItem, Mapping[str, Any], None]]) -> float:
    """Carb-weighted mean confidence; 0 when the meal has no carbs."""
    items = ensure_items(objs)
    grams = [round_carbs(it.carbs) for it in items]
    total = sum(grams)
    if total <= 0:
        return 0.0
    conf = sum(g * min(1.0, max(0.0, it.confidence)) for g, it in zip(grams, items))
    return conf / total
