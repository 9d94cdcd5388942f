"""
rppg/continuous.py — Live (per-frame) vital estimator
======================================================
Consumes one landmark set + one forehead green sample per call and returns
a live-updating `VitalsSnapshot` for the streaming scan view.

Per frame
---------
1. **Blink** — EAR threshold crossing (open → closed), debounced 200 ms.
2. **Signal** — push the green mean into a 30-sample window; the deviation
   of the current sample from the window mean (`signal_diff`) drives the
   modulation terms.  `|signal_diff| > 0.5` counts as a live pulse signal.
3. **Heart rate** — 75 BPM resting base + clamped rPPG modulation + a slow
   respiratory-sinus-arrhythmia sinusoid, clamped to [55, 100].
4. **Stress** — see `model/stress.py`, then a 50-sample moving average.
5. **Respiration** — smoothed stress + slow breathing sinusoid, [12, 20].
6. **Blood pressure** — see `model/bp_model.py` (live model).

The smoothing windows are what make the displayed values change slowly
even though every individual frame is noisy.  Sinusoid phases use the
frame timestamp, so a replayed frame sequence gives the same numbers
(jitter aside, and that comes from the injectable `rng`).

⚠️  Except for the blink count, these are heuristic display values, not
    measurements.
"""

import math
from dataclasses import dataclass

import numpy as np

from config import (
    BASE_RESTING_HR,
    BLINK_DEBOUNCE_MS,
    DEFAULT_PATIENT_AGE,
    EAR_CLOSED_THRESHOLD,
    LIVE_HR_MAX,
    LIVE_HR_MIN,
    LIVE_HR_MODULATION_LIMIT,
    LIVE_SIGNAL_BUFFER,
    LIVE_SIGNAL_THRESHOLD,
    STRESS_SMOOTHING_BUFFER,
)
from face.geometry import eye_aspect_ratio
from model.bp_model import estimate_live_bp
from model.stress import instant_stress_score
from rppg.buffer import SignalBuffer
from rppg.estimator import FrameSample, VitalEstimator, VitalsSnapshot
from utils.logger import get_logger

logger = get_logger("rppg.continuous")

RESPIRATION_RANGE = (12, 20)
HRV_RANGE = (20, 120)
STRESS_PLACEHOLDER = 10.0


@dataclass
class BlinkState:
    last_eye_open: bool = True
    blink_count: int = 0
    last_blink_ms: float | None = None

    def update(self, eye_open: bool, timestamp_ms: float,
               debounce_ms: float = BLINK_DEBOUNCE_MS) -> bool:
        """Advance one frame; True if a new blink was counted."""
        counted = False
        if self.last_eye_open and not eye_open:
            if self.last_blink_ms is None or timestamp_ms - self.last_blink_ms >= debounce_ms:
                self.blink_count += 1
                self.last_blink_ms = timestamp_ms
                counted = True
        self.last_eye_open = eye_open
        return counted


class ContinuousVitalEstimator(VitalEstimator):
    """
    Incremental estimator for the live scan view.

    Parameters
    ----------
    age : int                             Patient age, used by the BP model.
    rng : numpy.random.Generator | None   Jitter source (seed it in tests).
    """

    mode = "continuous"

    def __init__(self, age: int = DEFAULT_PATIENT_AGE, rng: np.random.Generator | None = None):
        self._age = age
        self._rng = rng if rng is not None else np.random.default_rng()
        self._signal = SignalBuffer(LIVE_SIGNAL_BUFFER)
        self._stress = SignalBuffer(STRESS_SMOOTHING_BUFFER)
        self.blink = BlinkState()
        self._last: VitalsSnapshot | None = None
        self._frames = 0

    @property
    def samples_accepted(self) -> int:
        return self._frames

    @property
    def last_snapshot(self) -> VitalsSnapshot | None:
        return self._last

    def feed(self, sample: FrameSample) -> VitalsSnapshot | None:
        if sample.landmarks is None:
            return None
        self._frames += 1
        t = float(sample.timestamp_ms)

        # ── 1. Blink detection ────────────────────────────────────────────
        ear = eye_aspect_ratio(sample.landmarks)
        if self.blink.update(ear > EAR_CLOSED_THRESHOLD, t):
            logger.debug("Blink #%d at t=%.0f ms (EAR=%.3f).", self.blink.blink_count, t, ear)

        # ── 2. Green-channel deviation ────────────────────────────────────
        # A failed ROI read (0.0) carries no signal
        green = sample.roi.green
        signal_diff = 0.0
        if green > 0:
            self._signal.push(green)
            signal_diff = green - self._signal.average()
        is_live = abs(signal_diff) > LIVE_SIGNAL_THRESHOLD

        # ── 3. Heart rate ─────────────────────────────────────────────────
        modulation = 0.0
        if is_live:
            modulation = float(np.clip(signal_diff / 10.0,
                                       -LIVE_HR_MODULATION_LIMIT, LIVE_HR_MODULATION_LIMIT))
        hr_raw = BASE_RESTING_HR + modulation + 2.0 * math.sin(t / 2000.0)
        heart_rate = int(np.clip(math.floor(hr_raw), LIVE_HR_MIN, LIVE_HR_MAX))

        # ── 4. Stress (smoothed) ──────────────────────────────────────────
        self._stress.push(instant_stress_score(heart_rate, signal_diff))
        stress = self._stress.average()

        # ── 5. Respiration ────────────────────────────────────────────────
        resp_raw = 14.0 + 0.05 * stress + 2.0 * math.sin(t / 5000.0)
        respiratory_rate = int(np.clip(round(resp_raw), *RESPIRATION_RANGE))

        # ── 6. Blood pressure ─────────────────────────────────────────────
        bp = estimate_live_bp(heart_rate, stress, self._age, self._rng)

        snapshot = VitalsSnapshot(
            heart_rate=heart_rate,
            spo2=98 if is_live else 97,
            stress=round(stress, 2),
            respiratory_rate=respiratory_rate,
            hrv=int(np.clip(math.floor(40 + 2.0 * abs(signal_diff)), *HRV_RANGE)),
            systolic=bp.systolic,
            diastolic=bp.diastolic,
            blink_rate=self.blink.blink_count,
        )
        self._last = snapshot
        return snapshot

    def finalize(self) -> VitalsSnapshot:
        if self._last is not None:
            return self._last
        logger.warning("Live scan finished without any face frame — returning placeholder vitals.")
        return VitalsSnapshot(
            heart_rate=int(BASE_RESTING_HR),
            spo2=97,
            stress=STRESS_PLACEHOLDER,
            respiratory_rate=16,
            hrv=40,
            systolic=120,
            diastolic=80,
            blink_rate=self.blink.blink_count,
        )

