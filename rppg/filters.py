"""
rppg/filters.py — Signal conditioning (band-pass approximation)
================================================================
Turns a raw green-channel time-series into a zero-centred pulse waveform
with two cheap time-domain stages:

1. **Detrend** — subtract the local mean over a symmetric ±7-sample window
   (clipped at the array edges).  Acts as a high-pass that removes slow
   lighting / auto-exposure drift.
2. **Smooth** — 3-point moving average.  Acts as a low-pass that removes
   frame-to-frame sensor noise.

At 30 fps the pair roughly keeps the 0.7–3.5 Hz pulse band, approximating
a Butterworth band-pass with no start-up transient.  It also works on
buffers far shorter than `filtfilt` would accept.

The smoothing stage drops the first and last sample, so the output is
always two samples shorter than the input.
"""

import numpy as np
from scipy.ndimage import uniform_filter1d

from config import DETREND_HALF_WINDOW, SMOOTH_WINDOW


def detrend(signal: np.ndarray, half_window: int = DETREND_HALF_WINDOW) -> np.ndarray:
    """
    Subtract the local mean `mean(x[i-k : i+k+1])` (clipped) from each sample.

    Parameters
    ----------
    signal      : ndarray, shape (N,)
    half_window : int   k, number of neighbours on each side.

    Returns
    -------
    ndarray, shape (N,)
    """
    x = np.asarray(signal, dtype=np.float64)
    n = x.size
    if n == 0:
        return x.copy()

    # Prefix sums give every clipped window mean in O(N)
    csum = np.concatenate(([0.0], np.cumsum(x)))
    idx = np.arange(n)
    lo = np.maximum(0, idx - half_window)
    hi = np.minimum(n, idx + half_window + 1)
    local_mean = (csum[hi] - csum[lo]) / (hi - lo)
    return x - local_mean


def smooth(signal: np.ndarray) -> np.ndarray:
    """3-point moving average; returns the N - 2 interior samples."""
    x = np.asarray(signal, dtype=np.float64)
    if x.size < SMOOTH_WINDOW:
        return np.empty(0, dtype=np.float64)
    edge = SMOOTH_WINDOW // 2
    return uniform_filter1d(x, size=SMOOTH_WINDOW)[edge:-edge]


def condition_signal(raw) -> np.ndarray:
    """
    Detrend then smooth a raw channel-intensity series.

    Parameters
    ----------
    raw : array-like, shape (N,)   Raw per-frame channel means.

    Returns
    -------
    conditioned : ndarray, shape (N - 2,)
        Empty for N < 3.
    """
    x = np.asarray(raw, dtype=np.float64).ravel()
    if x.size < SMOOTH_WINDOW:
        return np.empty(0, dtype=np.float64)
    return smooth(detrend(x))
