"""
rppg/batch.py — Fixed-window (30-second) vital estimator
=========================================================
Accumulates forehead green-channel means for the whole scan window and
computes one final result at the end:

    raw window  →  detrend + smooth  →  peak / IBI detection
                →  heart rate (IBI → count → default)
                →  heuristic derived vitals

Sample gating
-------------
A frame contributes a sample only if a face was found **and** the ROI
passes the skin heuristic (red dominates green, brightness floor).  Frames
that fail either test are dropped; the scan clock still advances (that is
the orchestrator's job).

The window holds at most `BATCH_MAX_SAMPLES` (≈35 s @ 30 fps); older
samples are evicted if a scan runs long.

⚠️  Only the heart rate is derived from the optical signal.  Everything
    else is a placeholder computed from the heart rate (see
    `model/heuristics.py` and `model/bp_model.py`).
"""

import numpy as np

from config import ASSUMED_FPS, BATCH_MAX_SAMPLES, BATCH_ROI_PATCH
from face.geometry import is_skin_sample
from features.hr import heart_rate_from_peaks
from features.peaks import detect_peaks
from model.bp_model import estimate_batch_bp
from model.heuristics import (
    estimate_hemoglobin,
    estimate_hrv,
    estimate_respiration,
    estimate_spo2,
    estimate_temperature,
)
from model.stress import stress_category
from rppg.buffer import SignalBuffer
from rppg.estimator import BatchVitals, FrameSample, VitalEstimator
from rppg.filters import condition_signal
from utils.logger import get_logger

logger = get_logger("rppg.batch")


def estimate_from_signal(
    raw,
    fps: float = ASSUMED_FPS,
    rng: np.random.Generator | None = None,
) -> BatchVitals:
    """
    Compute final batch vitals from a raw green-channel window.

    Parameters
    ----------
    raw : array-like, shape (N,)          Raw per-frame green means.
    fps : float                           Assumed sampling rate.
    rng : numpy.random.Generator | None   Jitter source for derived vitals.
    """
    rng = rng if rng is not None else np.random.default_rng()
    raw = np.asarray(raw, dtype=np.float64).ravel()

    conditioned = condition_signal(raw)
    analysis = detect_peaks(conditioned)
    hr = heart_rate_from_peaks(analysis, n_samples=raw.size, fps=fps)

    logger.debug(
        "Batch analysis: %d samples, %d peaks, max_peak=%.3f, noise=%.3f, SNR=%.1f dB",
        raw.size, analysis.count, analysis.max_peak, analysis.noise_floor, analysis.snr_db,
    )

    bpm = hr.bpm
    return BatchVitals(
        bpm=bpm,
        spo2=estimate_spo2(bpm, rng),
        stress=stress_category(bpm),
        respiration=estimate_respiration(bpm),
        hrv=estimate_hrv(bpm, rng),
        bp=str(estimate_batch_bp(bpm, rng)),
        hemoglobin=estimate_hemoglobin(bpm, rng),
        snr=round(analysis.snr_db, 1),
        temperature=estimate_temperature(bpm, rng),
        hr_source=hr.source,
        samples_used=int(raw.size),
    )


class BatchVitalEstimator(VitalEstimator):
    """
    Accumulate-then-analyse estimator for the 30-second scan.

    Parameters
    ----------
    fps      : float                           Assumed camera rate.
    capacity : int                             Raw window capacity.
    rng      : numpy.random.Generator | None   Jitter source (seed it in tests).
    """

    mode = "batch"
    roi_patch = BATCH_ROI_PATCH

    def __init__(
        self,
        fps: float = ASSUMED_FPS,
        capacity: int = BATCH_MAX_SAMPLES,
        rng: np.random.Generator | None = None,
    ):
        self._fps = fps
        self._rng = rng if rng is not None else np.random.default_rng()
        self._window = SignalBuffer(capacity)
        self._rejected = 0

    @property
    def samples_accepted(self) -> int:
        return len(self._window)

    @property
    def samples_rejected(self) -> int:
        return self._rejected

    def feed(self, sample: FrameSample) -> None:
        if sample.landmarks is None or not is_skin_sample(sample.roi):
            self._rejected += 1
            return None
        self._window.push(sample.roi.green)
        return None

    def finalize(self) -> BatchVitals:
        logger.info(
            "Finalising batch scan: %d samples accepted, %d rejected.",
            len(self._window), self._rejected,
        )
        result = estimate_from_signal(self._window.to_array(), fps=self._fps, rng=self._rng)
        logger.info("Batch result: HR=%d BPM (%s), BP=%s, SNR=%.1f dB",
                    result.bpm, result.hr_source, result.bp, result.snr)
        return result
