"""
model/heuristics.py — Derived vitals for the batch scan
========================================================

⚠️  Every function here is a PLACEHOLDER: a deterministic function of the
    measured heart rate plus a small bounded random jitter.  None of these
    quantities (SpO2, HRV, haemoglobin, skin temperature, respiration) is
    actually measured from the video.  Do not "improve" the formulas without
    new data; they are part of the product's observable behaviour.

The random source is injectable so tests can pin exact values with a seeded
`numpy.random.Generator`.
"""

import numpy as np

from config import RESPIRATION_HARMONIC_RATIO


def _rng(rng: np.random.Generator | None) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng()


def estimate_spo2(hr_bpm: float, rng: np.random.Generator | None = None) -> int:
    """96–98 %, one point lower above 110 BPM."""
    spo2 = 96 + int(_rng(rng).integers(0, 3))
    if hr_bpm > 110:
        spo2 -= 1
    return int(np.clip(spo2, 90, 100))


def estimate_respiration(hr_bpm: float) -> int:
    """Breaths/min, assuming a fixed ~4.4 : 1 cardio-respiratory ratio."""
    return int(np.clip(round(hr_bpm / RESPIRATION_HARMONIC_RATIO), 8, 40))


def estimate_hrv(hr_bpm: float, rng: np.random.Generator | None = None) -> int:
    """Approximate HRV (ms); falls as heart rate rises."""
    hrv = 95.0 - 0.6 * hr_bpm + _rng(rng).uniform(-3.0, 3.0)
    return int(np.clip(round(hrv), 15, 120))


def estimate_hemoglobin(hr_bpm: float, rng: np.random.Generator | None = None) -> float:
    """Haemoglobin (g/dL)."""
    hb = 13.5 + 0.01 * (hr_bpm - 72.0) + _rng(rng).uniform(-0.3, 0.3)
    return round(float(np.clip(hb, 11.0, 17.0)), 1)


def estimate_temperature(hr_bpm: float, rng: np.random.Generator | None = None) -> float:
    """Skin temperature (°C)."""
    temp = 36.6 + 0.01 * (hr_bpm - 72.0) + _rng(rng).uniform(-0.1, 0.1)
    return round(float(np.clip(temp, 35.5, 38.5)), 1)
