"""
features/peaks.py — Pulse peak & inter-beat-interval detection
================================================================
Scans a conditioned pulse waveform (see `rppg/filters.py`) for systolic
peaks and derives the inter-beat intervals (IBIs) in samples.

A sample is a candidate peak when it is positive and a local maximum as
reported by `scipy.signal.find_peaks`.  A flat top (two or more equal
samples, e.g. a pulse peak falling between two frames) counts as one
peak, placed at its middle.

Candidates are accepted greedily in time order with a refractory
debounce: a new peak must be at least `refractory` samples after the
previously accepted one (15 samples @ 30 fps ≈ 120 BPM ceiling).

Signal quality
--------------
The log ratio of the tallest accepted peak to the mean absolute amplitude
is reported as a rough SNR in dB.  When no peak exists, or the signal is
flat, a fallback constant is returned instead of log(0).
"""

import math
from dataclasses import dataclass, field

import numpy as np
from scipy.signal import find_peaks

from config import PEAK_REFRACTORY_SAMPLES, SNR_FALLBACK_DB


@dataclass(frozen=True)
class PeakAnalysis:
    """Result of one peak scan over a conditioned signal."""
    peaks: list[int] = field(default_factory=list)       # Sample indices
    intervals: list[int] = field(default_factory=list)   # Peak-to-peak distances
    max_peak: float = 0.0
    noise_floor: float = 0.0
    snr_db: float = SNR_FALLBACK_DB

    @property
    def count(self) -> int:
        return len(self.peaks)

    @property
    def mean_interval(self) -> float | None:
        if not self.intervals:
            return None
        return float(np.mean(self.intervals))


def detect_peaks(conditioned, refractory: int = PEAK_REFRACTORY_SAMPLES) -> PeakAnalysis:
    """
    Locate debounced local maxima and their intervals.

    Parameters
    ----------
    conditioned : array-like, shape (N,)   Zero-centred pulse waveform.
    refractory  : int                      Minimum samples between peaks.

    Returns
    -------
    PeakAnalysis
    """
    x = np.asarray(conditioned, dtype=np.float64).ravel()
    if x.size < 3:
        return PeakAnalysis(noise_floor=float(np.abs(x).mean()) if x.size else 0.0)

    candidates, _ = find_peaks(x)
    candidates = candidates[x[candidates] > 0]

    peaks: list[int] = []
    for i in candidates:
        if peaks and i - peaks[-1] < refractory:
            continue
        peaks.append(int(i))

    intervals = [b - a for a, b in zip(peaks, peaks[1:])]
    max_peak = float(x[peaks].max()) if peaks else 0.0
    noise_floor = float(np.abs(x).mean())

    if max_peak > 0 and noise_floor > 0:
        snr_db = 20.0 * math.log10(max_peak / noise_floor)
    else:
        snr_db = SNR_FALLBACK_DB

    return PeakAnalysis(
        peaks=peaks,
        intervals=intervals,
        max_peak=max_peak,
        noise_floor=noise_floor,
        snr_db=snr_db,
    )
