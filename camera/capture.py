"""
camera/capture.py — Webcam enumeration & thread-safe capture
=============================================================
A background thread keeps grabbing frames so the scan loop never blocks
on device I/O.  The loop calls `wait_for_frame()`, which returns only
*new* frames: frames that arrive while the previous one is still being
processed are overwritten (dropped), never queued or reordered.

Device release
--------------
Leaving the camera open after a scan is a bug, not a cosmetic issue.
`release()` is idempotent and must be called on every exit path; the
scan runner does so in a `finally` block.

Device enumeration
------------------
OpenCV has no portable device listing, so `list_video_devices()` probes
capture indices and releases every probe immediately.
"""

import threading
from dataclasses import dataclass

import cv2
import numpy as np

from config import (
    CAMERA_FPS,
    CAMERA_HEIGHT,
    CAMERA_INDEX,
    CAMERA_PROBE_MAX_INDEX,
    CAMERA_WIDTH,
)
from utils.logger import get_logger

logger = get_logger("camera.capture")


@dataclass(frozen=True)
class VideoDevice:
    index: int
    label: str


def list_video_devices(max_index: int = CAMERA_PROBE_MAX_INDEX) -> list[VideoDevice]:
    """Return the capture indices in [0, max_index) that can be opened."""
    devices: list[VideoDevice] = []
    for index in range(max_index):
        probe = cv2.VideoCapture(index)
        try:
            if probe.isOpened():
                devices.append(VideoDevice(index=index, label=f"Camera {index}"))
        finally:
            probe.release()
    logger.info("Found %d video device(s).", len(devices))
    return devices


class CameraCapture:
    """One webcam, with its frames exposed in a thread-safe way."""

    def __init__(self, device_index: int = CAMERA_INDEX):
        self.device_index = device_index
        self._cap: cv2.VideoCapture | None = None
        self._latest_frame: np.ndarray | None = None
        self._lock = threading.Lock()
        self._frame_ready = threading.Event()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.is_open = False

    # ── Public API ───────────────────────────────────────────────────────────

    def open(self) -> bool:
        """
        Open the device and start the capture thread.

        Returns
        -------
        bool
            False if the device is missing, busy, or permission was denied.
        """
        if self.is_open:
            logger.warning("Camera already open — ignoring duplicate open().")
            return True

        self._cap = cv2.VideoCapture(self.device_index)
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, CAMERA_WIDTH)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, CAMERA_HEIGHT)
        self._cap.set(cv2.CAP_PROP_FPS, CAMERA_FPS)

        if not self._cap.isOpened():
            logger.error(
                "Failed to open camera %d. Check that it is connected and not used "
                "by another application.",
                self.device_index,
            )
            self._cap.release()
            self._cap = None
            return False

        actual_w = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_h = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        actual_fps = self._cap.get(cv2.CAP_PROP_FPS)
        logger.info("Camera %d opened — %dx%d @ %.1f FPS",
                    self.device_index, actual_w, actual_h, actual_fps)

        self._stop_event.clear()
        self._frame_ready.clear()
        self._thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._thread.start()
        self.is_open = True
        return True

    def release(self) -> None:
        """Stop the capture thread and release the hardware device."""
        self._stop_event.set()
        self._frame_ready.set()   # Wake any waiter
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._thread = None
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("Camera %d released.", self.device_index)
        self.is_open = False
        with self._lock:
            self._latest_frame = None

    def wait_for_frame(self, timeout: float = 1.0) -> np.ndarray | None:
        """
        Block until a frame newer than the last one returned arrives, or
        until `timeout` seconds elapse (→ None).
        """
        if not self._frame_ready.wait(timeout=timeout):
            return None
        with self._lock:
            self._frame_ready.clear()
            if self._stop_event.is_set() or self._latest_frame is None:
                return None
            return self._latest_frame.copy()

    def __enter__(self) -> "CameraCapture":
        return self

    def __exit__(self, *exc) -> None:
        self.release()

    # ── Private ──────────────────────────────────────────────────────────────

    def _capture_loop(self) -> None:
        """Grab frames until the stop event is set or the device fails."""
        while not self._stop_event.is_set():
            ret, frame = self._cap.read()  # type: ignore[union-attr]
            if not ret:
                logger.warning("Frame grab failed — camera may have been disconnected.")
                break
            with self._lock:
                self._latest_frame = frame
                self._frame_ready.set()
        logger.debug("Capture loop exited.")
