"""
face/geometry.py — Landmark geometry & ROI sampling
=====================================================
Pure functions over a normalised landmark set (MediaPipe Face Mesh
topology, `(N, 2)` array of `(x, y)` in [0, 1]) and an OpenCV BGR frame:

* `eye_aspect_ratio`      — blink detection proxy (Soukupová & Čech, 2016).
* `extract_roi_means`     — mean R, G, B of a square forehead patch.
* `extract_channel_signal`— mean of a single channel of that patch.
* `is_skin_sample`        — cheap skin-colour gate used by the batch scan.

Why the forehead (landmark 151)?
---------------------------------
It is flat, rarely occluded, and well perfused.  The green channel carries
the strongest plethysmographic modulation because haemoglobin absorbs
green light most strongly.

Sampling never raises: a failed pixel read yields zeros so a single bad
frame cannot abort a scan.
"""

from dataclasses import dataclass

import numpy as np

from config import (
    FOREHEAD_LANDMARK,
    LEFT_EYE_LANDMARKS,
    LIVE_ROI_PATCH,
    SKIN_MIN_BRIGHTNESS,
)
from utils.logger import get_logger

logger = get_logger("face.geometry")

# OpenCV frames are BGR
_CHANNEL_INDEX = {"blue": 0, "green": 1, "red": 2}


@dataclass(frozen=True)
class RoiMeans:
    """Mean channel intensities (0–255) of one ROI patch."""
    red: float = 0.0
    green: float = 0.0
    blue: float = 0.0

    @property
    def brightness(self) -> float:
        return (self.red + self.green + self.blue) / 3.0


def _as_points(landmarks) -> np.ndarray:
    points = np.asarray(landmarks, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] < 2:
        raise ValueError(f"Expected an (N, 2) landmark array, got shape {points.shape}.")
    return points[:, :2]


def eye_aspect_ratio(landmarks, eye_indices=LEFT_EYE_LANDMARKS) -> float:
    """
    Eye Aspect Ratio of one eye.

        EAR = (|p2 - p6| + |p3 - p5|) / (2 · |p1 - p4|)

    with `eye_indices = [p1, p2, p3, p4, p5, p6]`.  Dimensionless and
    scale invariant; open eyes sit around 0.3, closed eyes below 0.25.
    Returns 0.0 when the horizontal distance collapses.
    """
    points = _as_points(landmarks)
    p1, p2, p3, p4, p5, p6 = (points[i] for i in eye_indices)

    vertical_1 = np.linalg.norm(p2 - p6)
    vertical_2 = np.linalg.norm(p3 - p5)
    horizontal = np.linalg.norm(p1 - p4)

    if horizontal <= 1e-12:
        return 0.0
    return float((vertical_1 + vertical_2) / (2.0 * horizontal))


def extract_roi_means(
    frame: np.ndarray,
    landmarks,
    patch_size: int = LIVE_ROI_PATCH,
    landmark_index: int = FOREHEAD_LANDMARK,
) -> RoiMeans:
    """
    Mean R, G, B over a `patch_size` square centred on one landmark.

    Parameters
    ----------
    frame          : ndarray, shape (H, W, 3)   BGR frame.
    landmarks      : (N, 2) array-like          Normalised landmark set.
    patch_size     : int                        Side of the square patch (px).
    landmark_index : int                        Centre landmark (forehead).

    Returns
    -------
    RoiMeans
        All zeros if the frame or landmark cannot be read.
    """
    try:
        h, w = frame.shape[:2]
        cx, cy = _as_points(landmarks)[landmark_index]

        # Clamp the origin so the patch stays inside the frame
        x0 = int(round(cx * w - patch_size / 2))
        y0 = int(round(cy * h - patch_size / 2))
        x0 = min(max(0, x0), max(0, w - patch_size))
        y0 = min(max(0, y0), max(0, h - patch_size))

        patch = frame[y0:y0 + patch_size, x0:x0 + patch_size]
        if patch.size == 0 or patch.ndim != 3 or patch.shape[2] < 3:
            return RoiMeans()

        means = patch.reshape(-1, patch.shape[2]).mean(axis=0)
        return RoiMeans(red=float(means[2]), green=float(means[1]), blue=float(means[0]))
    except (AttributeError, IndexError, TypeError, ValueError) as e:
        logger.debug("ROI read failed (%s) — returning zero sample.", e)
        return RoiMeans()


def extract_channel_signal(
    frame: np.ndarray,
    landmarks,
    channel: str = "green",
    patch_size: int = LIVE_ROI_PATCH,
) -> float:
    """Mean intensity of one colour channel over the forehead patch (0.0 on failure)."""
    if channel not in _CHANNEL_INDEX:
        raise ValueError(f"Unknown channel '{channel}'. Choose from {list(_CHANNEL_INDEX)}.")
    return getattr(extract_roi_means(frame, landmarks, patch_size), channel)


def is_skin_sample(roi: RoiMeans, min_brightness: float = SKIN_MIN_BRIGHTNESS) -> bool:
    """
    Skin heuristic: red dominates green and the patch is not too dark.

    Rejects frames where the patch landed on background, hair or a
    shadowed region (and zero samples from failed reads).
    """
    return roi.red > roi.green and roi.brightness >= min_brightness
