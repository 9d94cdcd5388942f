"""
scan/runner.py — Camera → landmarks → estimator frame loop
===========================================================
Drives one scan: opens the camera, loads the landmark model, then processes
frames strictly one at a time, in arrival order:

    wait_for_frame()  →  detector.detect()  →  orchestrator.process_frame()

Frames that arrive while the previous one is still being processed are
dropped by the camera (only the newest one is kept), never reordered.

Teardown
--------
Camera release and detector close run in `finally` on every exit path:
natural completion, user cancellation (`stop_event`), device error, and
unexpected exceptions.  A failing cleanup step is logged and swallowed so
it can never block the rest of the teardown.
"""

import threading
import time
from typing import Callable

import numpy as np

from camera.capture import CameraCapture
from config import FIRST_FRAME_TIMEOUT_S, FRAME_TIMEOUT_S
from scan.orchestrator import ScanOrchestrator, ScanState
from utils.logger import get_logger

logger = get_logger("scan.runner")

CAMERA_UNAVAILABLE = (
    "Camera unavailable. Check that no other application (Zoom/Teams) is "
    "using it and that camera permission is granted. A simulated scan can "
    "be run instead."
)


def default_detector_factory():
    # Lazy import keeps mediapipe optional until a camera scan starts
    from face.detector import LandmarkDetector
    return LandmarkDetector()


class ScanRunner:
    """
    Runs the blocking frame loop for one orchestrator.

    Parameters
    ----------
    orchestrator     : ScanOrchestrator
    camera           : CameraCapture-like   open / wait_for_frame / release.
    detector_factory : callable             Returns an object with detect / close.
    on_frame         : callable | None      Called with (frame, landmarks) after
                                            each processed frame (live overlay).
    clock_ms         : callable             Millisecond timestamp source.
    """

    def __init__(
        self,
        orchestrator: ScanOrchestrator,
        camera: CameraCapture,
        detector_factory: Callable = default_detector_factory,
        on_frame: Callable[[np.ndarray, np.ndarray | None], None] | None = None,
        clock_ms: Callable[[], float] = lambda: time.monotonic() * 1000.0,
    ):
        self.orchestrator = orchestrator
        self.camera = camera
        self._detector_factory = detector_factory
        self._on_frame = on_frame
        self._clock_ms = clock_ms
        self._detector = None

    def run(self, stop_event: threading.Event | None = None) -> ScanState:
        """Run until the scan completes, fails, or `stop_event` is set."""
        stop_event = stop_event or threading.Event()
        orch = self.orchestrator
        try:
            if not self.camera.open():
                orch.fail(CAMERA_UNAVAILABLE)
                return orch.state

            try:
                self._detector = self._detector_factory()
            except ImportError as e:
                orch.fail(f"Landmark model unavailable: {e}")
                return orch.state

            first = self.camera.wait_for_frame(timeout=FIRST_FRAME_TIMEOUT_S)
            if first is None:
                orch.fail("No frame received from camera.")
                return orch.state
            if stop_event.is_set() or orch.state is not ScanState.INIT:
                orch.cancel()
                return orch.state
            orch.start()

            frame = first
            while not stop_event.is_set() and orch.is_active:
                landmarks = self._detector.detect(frame)
                orch.process_frame(frame, landmarks, self._clock_ms())
                if self._on_frame is not None:
                    self._on_frame(frame, landmarks)

                if not orch.is_active or stop_event.is_set():
                    break
                frame = self.camera.wait_for_frame(timeout=FRAME_TIMEOUT_S)
                if frame is None:
                    if stop_event.is_set():
                        break
                    orch.fail("Camera stopped delivering frames.")
                    break

            if stop_event.is_set():
                orch.cancel()
        except Exception as e:
            logger.exception("Scan loop failed:")
            orch.fail(f"Unexpected error during scan: {e}")
        finally:
            self._teardown()
        return orch.state

    def _teardown(self) -> None:
        try:
            self.camera.release()
        except Exception:
            logger.exception("Camera release failed (ignored).")
        if self._detector is not None:
            try:
                self._detector.close()
            except Exception:
                logger.exception("Landmark detector close failed (ignored).")
            self._detector = None
