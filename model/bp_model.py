"""
model/bp_model.py — Blood Pressure Estimation (heuristic)
==========================================================

⚠️⚠️⚠️  CRITICAL DISCLAIMER ⚠️⚠️⚠️
Blood pressure CANNOT be measured from a face video.  The values produced
here are linear placeholders driven by heart rate, stress and age, plus a
small bounded random jitter so the live display does not look frozen.
They have NOT been validated against any cuff measurement.

DO NOT make medical decisions based on these estimates.
⚠️⚠️⚠️

Two models are provided, one per scan mode.  Their coefficients and clamps
are part of the product's observable behaviour; change them only with new
data.

Live (continuous) model
-----------------------
    SYS = 110 + 0.5·(age − 25) + 0.2·stress + 0.30·(HR − 75) + U[0, 2)
    DIA =  72 + 0.3·(age − 25) + 0.1·stress + 0.15·(HR − 75) + U[0, 2)
    SYS ∈ [90, 180],  DIA ∈ [60, 120]

Batch (30-second) model
-----------------------
    SYS = 105 + 0.20·HR + U[−2, 2]      SYS ∈ [90, 160]
    DIA =  65 + 0.12·HR + U[−2, 2]      DIA ∈ [55, 100]
"""

from dataclasses import dataclass

import numpy as np

from config import DEFAULT_PATIENT_AGE

LIVE_SYSTOLIC_RANGE = (90, 180)
LIVE_DIASTOLIC_RANGE = (60, 120)
BATCH_SYSTOLIC_RANGE = (90, 160)
BATCH_DIASTOLIC_RANGE = (55, 100)


@dataclass(frozen=True)
class BloodPressure:
    systolic: int
    diastolic: int

    def __str__(self) -> str:
        return f"{self.systolic}/{self.diastolic}"


def _clamp_int(value: float, band: tuple[int, int]) -> int:
    return int(np.clip(np.floor(value), band[0], band[1]))


def estimate_live_bp(
    hr_bpm: float,
    stress: float,
    age: int = DEFAULT_PATIENT_AGE,
    rng: np.random.Generator | None = None,
) -> BloodPressure:
    """Continuous-scan BP from heart rate, smoothed stress (0–100) and age."""
    rng = rng if rng is not None else np.random.default_rng()
    age_delta = age - 25
    hr_delta = hr_bpm - 75.0

    systolic = 110.0 + 0.5 * age_delta + 0.2 * stress + 0.30 * hr_delta + rng.uniform(0.0, 2.0)
    diastolic = 72.0 + 0.3 * age_delta + 0.1 * stress + 0.15 * hr_delta + rng.uniform(0.0, 2.0)

    return BloodPressure(
        systolic=_clamp_int(systolic, LIVE_SYSTOLIC_RANGE),
        diastolic=_clamp_int(diastolic, LIVE_DIASTOLIC_RANGE),
    )


def estimate_batch_bp(hr_bpm: float, rng: np.random.Generator | None = None) -> BloodPressure:
    """Batch-scan BP from the final heart rate only."""
    rng = rng if rng is not None else np.random.default_rng()
    systolic = 105.0 + 0.20 * hr_bpm + rng.uniform(-2.0, 2.0)
    diastolic = 65.0 + 0.12 * hr_bpm + rng.uniform(-2.0, 2.0)
    return BloodPressure(
        systolic=int(np.clip(round(systolic), *BATCH_SYSTOLIC_RANGE)),
        diastolic=int(np.clip(round(diastolic), *BATCH_DIASTOLIC_RANGE)),
    )
