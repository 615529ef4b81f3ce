"""
Basic usage example for the meal BG forecast.

Demonstrates:
- Summing a meal from per-food carb estimates
- Dosing the meal (carb ratio + correction + low-BG safety)
- Forecasting the next three hours and printing CGM-style samples
"""

import logging

from bg_forecast import FoodItem, analyze_meal, total_carbs


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("Meal BG Forecast - Basic Usage Example")
    print("=" * 60)

    # 1. Meal as it comes back from the food recognition step
    print("\n1. Building the meal...")
    meal = [
        FoodItem("white rice", 44.6, confidence=0.9, quantity="1 cup"),
        FoodItem("chicken curry", 12.2, confidence=0.7, quantity="1 bowl"),
        FoodItem("mango lassi", 31.0, confidence=0.8, quantity="1 glass"),
    ]
    carbs = total_carbs(meal)
    for item in meal:
        print(f"   - {item.food_name} ({item.quantity}): {item.carbs:.1f}g")
    print(f"   - Total: {carbs:.1f}g")

    # 2. Profile
    profile = {
        "carb_ratio": 10.0,  # g per unit
        "current_bg": 150.0,  # mg/dL
        "trend": "stable",
        "total_daily_dose": 40.0,
        "correction_factor": 2.0,  # mmol/L per unit
    }
    print("\n2. Profile:")
    for key, value in profile.items():
        print(f"   - {key}: {value}")

    # 3. Dose + forecast
    print("\n3. Running forecast...")
    result = analyze_meal(carbs, **profile)
    if result is None:
        print("   Not enough data to forecast.")
        return

    d = result.dosing
    print(f"   - Meal dose:        {d.base_dose:.2f}u")
    print(f"   - Correction:       {d.correction_dose:.2f}u")
    print(f"   - Safety reduction: {d.safety_adjustment:.1f}u")
    print(f"   - Total:            {result.insulin_dose:.1f}u")
    print(f"   - ICR {result.forecast.icr} g/u, ISF {result.forecast.isf} mg/dL/u")

    # 4. CGM-style display
    print("\n4. Forecast (every 15 min):")
    for s in result.samples:
        print(f"   +{s.minute_offset:3d} min  {s.bg:6.1f} mg/dL  {s.band}")

    summary = result.summary
    print(
        f"\n   1h {summary.one_hour:.0f} / 2h {summary.two_hours:.0f} / 3h {summary.three_hours:.0f} mg/dL, "
        f"range {summary.lowest:.0f}-{summary.highest:.0f}"
    )

    print("\n" + "=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
