"""
Shared fixtures: synthetic landmark sets, skin-coloured frames and
camera / detector fakes, so no test needs a webcam or mediapipe.
"""

import threading

import numpy as np
import pytest

from config import FOREHEAD_LANDMARK, LEFT_EYE_LANDMARKS

N_LANDMARKS = 478


def make_landmarks(eye_open: bool = True, forehead=(0.5, 0.3), scale: float = 1.0) -> np.ndarray:
    """Normalised (478, 2) landmark set with a controllable left-eye EAR (0.3 open, 0.1 closed)."""
    points = np.full((N_LANDMARKS, 2), 0.5)
    half_gap = 0.015 if eye_open else 0.005
    p1, p2, p3, p4, p5, p6 = LEFT_EYE_LANDMARKS
    points[p1] = (0.40, 0.40)
    points[p4] = (0.50, 0.40)
    points[p2] = (0.43, 0.40 - half_gap)
    points[p6] = (0.43, 0.40 + half_gap)
    points[p3] = (0.47, 0.40 - half_gap)
    points[p5] = (0.47, 0.40 + half_gap)
    points[FOREHEAD_LANDMARK] = forehead
    return points * scale


def make_frame(bgr=(80, 110, 160), size=(240, 320)) -> np.ndarray:
    """Uniform BGR frame; the default colour passes the skin gate."""
    frame = np.zeros((size[0], size[1], 3), dtype=np.uint8)
    frame[:, :] = bgr
    return frame


class FakeCamera:
    """Stands in for CameraCapture: open / wait_for_frame / release."""

    def __init__(self, frames=None, open_ok: bool = True, delay: float = 0.0,
                 release_error: Exception | None = None):
        self._frames = list(frames) if frames is not None else None
        self.open_ok = open_ok
        self.delay = delay
        self.release_error = release_error
        self.open_calls = 0
        self.release_calls = 0
        self._stopped = threading.Event()

    def open(self) -> bool:
        self.open_calls += 1
        return self.open_ok

    def wait_for_frame(self, timeout: float = 1.0):
        if self.delay:
            self._stopped.wait(self.delay)
        if self._stopped.is_set():
            return None
        if self._frames is None:
            return make_frame()
        return self._frames.pop(0) if self._frames else None

    def release(self) -> None:
        self.release_calls += 1
        self._stopped.set()
        if self.release_error is not None:
            raise self.release_error

    @property
    def released(self) -> bool:
        return self.release_calls > 0


class FakeDetector:
    """Stands in for LandmarkDetector: returns a fixed landmark set (or None)."""

    def __init__(self, landmarks=None, error: Exception | None = None):
        self.landmarks = landmarks
        self.error = error
        self.detect_calls = 0
        self.closed = False

    def detect(self, frame):
        self.detect_calls += 1
        if self.error is not None:
            raise self.error
        return self.landmarks

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def face():
    return make_landmarks()


@pytest.fixture
def skin_frame():
    return make_frame()


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
