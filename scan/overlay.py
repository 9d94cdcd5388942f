"""
scan/overlay.py — Live scan overlay (OpenCV)
=============================================
Draws the feedback shown over the camera preview while a scan runs:
landmark dots, a sweeping scan line, the current phase text, a progress
bar and the latest heart rate.  Returns a new image; the input frame is
never modified, since it is the same buffer the estimator samples from.
"""

import math

import cv2
import numpy as np

from rppg.estimator import VitalsSnapshot
from scan.orchestrator import scan_phase_text

_GREEN = (100, 255, 0)
_CYAN = (255, 255, 0)
_WHITE = (255, 255, 255)
_RED = (50, 50, 255)


def draw_overlay(
    frame: np.ndarray,
    landmarks,
    progress: float,
    timestamp_ms: float,
    snapshot: VitalsSnapshot | None = None,
) -> np.ndarray:
    display = frame.copy()
    h, w = display.shape[:2]

    if landmarks is not None:
        # Cyan "nerves" early in the scan, red "vessels" later on
        colour = _CYAN if progress < 50 else _RED
        for x, y in np.asarray(landmarks)[:, :2]:
            cv2.circle(display, (int(x * w), int(y * h)), 1, colour, -1)

        scan_y = int((math.sin(timestamp_ms / 1000.0) + 1) / 2 * (h - 1))
        cv2.line(display, (0, scan_y), (w - 1, scan_y), _GREEN, 2)

    cv2.putText(display, scan_phase_text(progress), (20, 30),
                cv2.FONT_HERSHEY_SIMPLEX, 0.6, _GREEN, 2)

    bar_w = max(1, w - 40)
    filled = int(bar_w * min(max(progress, 0.0), 100.0) / 100.0)
    cv2.rectangle(display, (20, h - 40), (20 + bar_w, h - 25), _WHITE, 1)
    if filled > 0:
        cv2.rectangle(display, (20, h - 40), (20 + filled, h - 25), _GREEN, -1)
    cv2.putText(display, f"{progress:.0f}%", (20, h - 45),
                cv2.FONT_HERSHEY_SIMPLEX, 0.5, _WHITE, 1)

    if snapshot is not None:
        cv2.putText(display, f"HR {snapshot.heart_rate} BPM", (w - 160, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, _RED, 2)
    return display
