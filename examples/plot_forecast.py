import sys
import os
import logging

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

# Ensure we can import bg_forecast
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from bg_forecast.forecast import predict_bg
from bg_forecast.kernels import DEFAULT_CONSTANTS, gamma_kernel, normalized_insulin_kernel
from bg_forecast.sampler import CRITICAL_HIGH_MGDL, HIGH_MGDL, LOW_MGDL, sample_trajectory, samples_to_frame


def run_comparison():
    print("Running forecast comparison...")

    # Same 60g meal, BG 140 mg/dL, TDD 40 -> ICR 12.5
    carbs = 60.0
    scenarios = {
        'no bolus': 0.0,
        'matched bolus (4.8u)': carbs / 12.5,
        'over-bolus (9u)': 9.0,
    }

    profiles = {}
    for label, dose in scenarios.items():
        res = predict_bg(carbs, dose, 140.0, trend='stable', total_daily_dose=40.0)
        profiles[label] = res.to_frame()['bg']

    df_res = pd.DataFrame(profiles)

    fig, axes = plt.subplots(2, 1, figsize=(10, 9), sharex=True)

    # Plot 1: Kernels
    t = np.arange(0, 181, dtype=float)
    axes[0].plot(t, gamma_kernel(t, DEFAULT_CONSTANTS.tau_carb), color='orange', label='Carb absorption (gamma)')
    axes[0].plot(
        t,
        normalized_insulin_kernel(t, DEFAULT_CONSTANTS.tau_onset, DEFAULT_CONSTANTS.tau_duration),
        color='blue',
        label='Insulin action (biexponential / 140)',
    )
    axes[0].set_ylabel('Weight per min')
    axes[0].set_title('Response Kernels')
    axes[0].grid(True, alpha=0.3)
    axes[0].legend()

    # Plot 2: BG forecast
    for label in df_res.columns:
        axes[1].plot(df_res.index, df_res[label], label=label)
    axes[1].axhspan(LOW_MGDL, HIGH_MGDL, color='green', alpha=0.08, label='Target 70-180')
    axes[1].axhline(CRITICAL_HIGH_MGDL, color='red', linestyle='--', alpha=0.5)
    axes[1].axhline(DEFAULT_CONSTANTS.bg_floor, color='gray', linestyle=':', label='Model floor')
    axes[1].set_ylabel('BG (mg/dL)')
    axes[1].set_xlabel('Minutes after meal')
    axes[1].set_title('Forecast: 60g meal, BG 140 mg/dL')
    axes[1].grid(True, alpha=0.3)
    axes[1].legend()

    plt.tight_layout()
    output_path = 'forecast_comparison.png'
    plt.savefig(output_path)
    print(f"Forecast plot saved to {output_path}")

    # CGM-style table for the matched bolus
    matched = df_res['matched bolus (4.8u)'].to_numpy()
    print(samples_to_frame(sample_trajectory(matched)).to_string())


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    run_comparison()
