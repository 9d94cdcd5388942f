"""
model/stress.py — Stress Level Estimation
============================================

⚠️  DISCLAIMER: a heuristic WELLNESS INDICATOR, not a validated clinical
    stress measure.

Live score (continuous scan)
----------------------------
Two factors, each normalised to 0–100:

    hr_factor   = clamp((HR − 60) / 40, 0, 1) · 100
    variability = clamp(|signal_diff| / 2.5, 0, 1) · 100

    score = clamp(0.6 · hr_factor + 0.4 · variability, 10, 95)

The caller smooths the score through a 50-sample moving window before
display so a single noisy frame cannot make the value jump.

Category (batch scan)
---------------------
Only the final heart rate is used:

    HR < 75   → "Optimal"
    HR < 90   → "Moderate"
    otherwise → "Elevated"
"""

import numpy as np

from config import STRESS_MODERATE_BELOW, STRESS_OPTIMAL_BELOW

STRESS_SCORE_RANGE = (10.0, 95.0)
HR_WEIGHT = 0.6
VARIABILITY_WEIGHT = 0.4


def instant_stress_score(hr_bpm: float, signal_diff: float) -> float:
    """Un-smoothed stress score for one frame, in [10, 95]."""
    hr_factor = float(np.clip((hr_bpm - 60.0) / 40.0, 0.0, 1.0)) * 100.0
    variability = float(np.clip(abs(signal_diff) / 2.5, 0.0, 1.0)) * 100.0
    score = HR_WEIGHT * hr_factor + VARIABILITY_WEIGHT * variability
    return float(np.clip(score, *STRESS_SCORE_RANGE))


def stress_category(hr_bpm: float) -> str:
    if hr_bpm < STRESS_OPTIMAL_BELOW:
        return "Optimal"
    if hr_bpm < STRESS_MODERATE_BELOW:
        return "Moderate"
    return "Elevated"
