"""
scan/simulation.py — Synthetic vitals for the simulation fallback
==================================================================
When the camera cannot be opened the user may explicitly choose to run a
simulated scan instead.  This generator produces plausible-looking vitals
from nothing but a clock and an RNG.

Every snapshot it yields is flagged `simulated=True` and carried through
to the saved report, so simulated data can never pass as a measurement.
"""

import math

import numpy as np

from config import DEFAULT_PATIENT_AGE
from model.bp_model import estimate_live_bp
from rppg.estimator import VitalsSnapshot


class SyntheticVitalsGenerator:
    """Random-walk vitals generator; one `next()` call per simulation tick."""

    def __init__(self, age: int = DEFAULT_PATIENT_AGE, rng: np.random.Generator | None = None):
        self._age = age
        self._rng = rng if rng is not None else np.random.default_rng()
        self._stress = 0.0

    def next(self, timestamp_ms: float) -> VitalsSnapshot:
        rng = self._rng
        self._stress = float(np.clip(self._stress + (rng.random() - 0.5) * 5.0, 0.0, 100.0))
        heart_rate = int(70 + math.sin(timestamp_ms / 1000.0) * 10 + rng.random() * 5)
        bp = estimate_live_bp(heart_rate, self._stress, self._age, rng)

        return VitalsSnapshot(
            heart_rate=heart_rate,
            spo2=98 + int(rng.integers(0, 2)),
            stress=float(math.floor(self._stress)),
            respiratory_rate=15 + int(rng.integers(0, 5)),
            hrv=40 + int(rng.integers(0, 20)),
            systolic=bp.systolic,
            diastolic=bp.diastolic,
            blink_rate=12 + int(rng.integers(0, 10)),
            simulated=True,
        )
