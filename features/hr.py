"""
features/hr.py — Heart rate from detected pulse peaks
======================================================
Three estimates are tried in order, each accepted only inside its own
plausibility band:

1. **Inter-beat interval (IBI)**
   `60 / (mean_interval_frames / fps)` — uses beat-to-beat timing, most
   robust when most beats were detected.  Accepted in [40, 200] BPM.

2. **Peak count**
   `peaks / duration_s · 60` — survives a few missed beats because it does
   not need consecutive peaks.  Accepted in [45, 180] BPM.

3. **Default** — 72 BPM, a typical resting rate.

The caller always gets a number; the `source` field records which path
produced it so low-quality scans can be flagged downstream.
"""

from dataclasses import dataclass

from config import ASSUMED_FPS, COUNT_HR_RANGE, DEFAULT_HR, IBI_HR_RANGE
from features.peaks import PeakAnalysis
from utils.logger import get_logger

logger = get_logger("features.hr")


@dataclass(frozen=True)
class HeartRateEstimate:
    bpm: int
    source: str   # "ibi" | "count" | "default"


def _in_range(value: float, band: tuple[float, float]) -> bool:
    return band[0] <= value <= band[1]


def heart_rate_from_peaks(
    analysis: PeakAnalysis,
    n_samples: int,
    fps: float = ASSUMED_FPS,
) -> HeartRateEstimate:
    """
    Pick the first plausible heart-rate estimate.

    Parameters
    ----------
    analysis  : PeakAnalysis   Output of `features.peaks.detect_peaks`.
    n_samples : int            Length of the raw window (sets the duration).
    fps       : float          Sampling rate assumed for the window.
    """
    mean_interval = analysis.mean_interval
    if mean_interval is not None and mean_interval > 0:
        hr_ibi = 60.0 / (mean_interval / fps)
        if _in_range(hr_ibi, IBI_HR_RANGE):
            logger.info("HR from IBI: %.1f BPM (%d intervals).", hr_ibi, len(analysis.intervals))
            return HeartRateEstimate(bpm=int(round(hr_ibi)), source="ibi")
        logger.warning("IBI heart rate %.1f BPM outside %s — trying peak count.", hr_ibi, IBI_HR_RANGE)

    duration_s = n_samples / fps if fps > 0 else 0.0
    if duration_s > 0 and analysis.count > 0:
        hr_count = analysis.count / duration_s * 60.0
        if _in_range(hr_count, COUNT_HR_RANGE):
            logger.info("HR from peak count: %.1f BPM (%d peaks / %.1f s).",
                        hr_count, analysis.count, duration_s)
            return HeartRateEstimate(bpm=int(round(hr_count)), source="count")
        logger.warning("Count heart rate %.1f BPM outside %s.", hr_count, COUNT_HR_RANGE)

    logger.warning("No plausible heart rate in signal — using default %d BPM.", DEFAULT_HR)
    return HeartRateEstimate(bpm=DEFAULT_HR, source="default")
