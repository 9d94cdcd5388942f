"""
scan/orchestrator.py — Scan session state machine
===================================================
Owns one scan session: its state, its progress, its estimator and its
final result.  The frame loop (`scan/runner.py`) and the HTTP layer
(`api/session.py`) only talk to this object.

States
------
    INIT ──start()──▶ SCANNING ──progress = 100──▶ COMPLETE
      │                  │
      │                  ├──fail()────▶ ERROR ──enable_simulation()──▶ SCANNING (simulated)
      │                  └──cancel()──▶ CANCELLED
      └──enable_simulation()──▶ SCANNING (simulated)

COMPLETE, CANCELLED and ERROR are terminal for camera sampling; a new scan
needs a new orchestrator.  The only way out of ERROR is the explicit,
user-chosen simulation fallback.  Progress never decreases.

Progress model
--------------
* continuous — +0.2 % per frame *with a detected face* (500 frames).
* batch      — one frame = 1/fps seconds of the 30-second window, counted
  whether or not the face was found (the estimator gates the sample).
* simulation — +0.5 % per synthetic tick.

Hand-off
--------
The result is never pushed anywhere automatically: the user must call
`confirm()` to hand it to the report sink.

Thread safety
-------------
The frame loop runs in a worker thread while HTTP handlers poll, so every
state read and transition goes through `_lock`.
"""

import threading
from enum import Enum

import numpy as np

from config import (
    ASSUMED_FPS,
    BATCH_SCAN_SECONDS,
    DEFAULT_PATIENT_AGE,
    LIVE_PROGRESS_STEP,
    SIMULATION_PROGRESS_STEP,
)
from face.geometry import RoiMeans, extract_roi_means
from reports.builder import VitalsReport, build_vitals_report
from reports.store import ReportStore
from rppg.batch import BatchVitalEstimator
from rppg.continuous import ContinuousVitalEstimator
from rppg.estimator import FrameSample, VitalEstimator, VitalsResult, VitalsSnapshot
from scan.simulation import SyntheticVitalsGenerator
from utils.logger import get_logger

logger = get_logger("scan.orchestrator")


class ScanState(str, Enum):
    INIT = "init"
    SCANNING = "scanning"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"


class ScanMode(str, Enum):
    CONTINUOUS = "continuous"
    BATCH = "batch"


class ScanStateError(RuntimeError):
    """An operation was attempted in a state that does not allow it."""


def create_estimator(
    mode: ScanMode | str,
    age: int = DEFAULT_PATIENT_AGE,
    rng: np.random.Generator | None = None,
) -> VitalEstimator:
    """Fresh estimator for one scan session."""
    mode = ScanMode(mode)
    if mode is ScanMode.CONTINUOUS:
        return ContinuousVitalEstimator(age=age, rng=rng)
    return BatchVitalEstimator(rng=rng)


def scan_phase_text(progress: float) -> str:
    """Status line shown over the live view."""
    if progress < 25:
        return "Locating Facial Nerves..."
    if progress < 50:
        return "Mapping Vascular Network..."
    if progress < 75:
        return "Analyzing Blood Flow Velocity..."
    return "Calibrating Vital Signs..."


class ScanOrchestrator:
    """
    State machine and progress tracker for a single scan.

    Parameters
    ----------
    estimator     : VitalEstimator   Built fresh for this scan (see `create_estimator`).
    fps           : float            Assumed frame rate (batch progress clock).
    batch_seconds : int              Length of the batch window.
    age           : int              Patient age, used by the simulation fallback.
    rng           : Generator | None Randomness for the simulation fallback.
    """

    def __init__(
        self,
        estimator: VitalEstimator,
        fps: float = ASSUMED_FPS,
        batch_seconds: int = BATCH_SCAN_SECONDS,
        age: int = DEFAULT_PATIENT_AGE,
        rng: np.random.Generator | None = None,
    ):
        self._estimator = estimator
        self.mode = ScanMode(estimator.mode)
        if self.mode is ScanMode.CONTINUOUS:
            self._frames_needed = int(round(100.0 / LIVE_PROGRESS_STEP))
        else:
            self._frames_needed = max(1, int(round(batch_seconds * fps)))

        self._age = age
        self._rng = rng
        self._lock = threading.RLock()

        self._state = ScanState.INIT
        self._progress = 0.0
        self._frames = 0
        self._error: str | None = None
        self._simulated = False
        self._generator: SyntheticVitalsGenerator | None = None
        self._live: VitalsSnapshot | None = None
        self._result: VitalsResult | None = None
        self._report: VitalsReport | None = None

    # ── Read-only views ──────────────────────────────────────────────────────

    @property
    def state(self) -> ScanState:
        with self._lock:
            return self._state

    @property
    def progress(self) -> float:
        with self._lock:
            return self._progress

    @property
    def error(self) -> str | None:
        with self._lock:
            return self._error

    @property
    def simulated(self) -> bool:
        with self._lock:
            return self._simulated

    @property
    def live(self) -> VitalsSnapshot | None:
        with self._lock:
            return self._live

    @property
    def result(self) -> VitalsResult | None:
        with self._lock:
            return self._result

    @property
    def report(self) -> VitalsReport | None:
        with self._lock:
            return self._report

    @property
    def is_active(self) -> bool:
        return self.state is ScanState.SCANNING

    @property
    def is_finished(self) -> bool:
        return self.state in (ScanState.COMPLETE, ScanState.ERROR, ScanState.CANCELLED)

    # ── Transitions ──────────────────────────────────────────────────────────

    def start(self) -> None:
        """INIT → SCANNING, called on the first ready camera frame."""
        with self._lock:
            if self._state is not ScanState.INIT:
                raise ScanStateError(f"Cannot start a scan in state '{self._state.value}'.")
            self._state = ScanState.SCANNING
        logger.info("Scan started (mode=%s).", self.mode.value)

    def process_frame(self, frame: np.ndarray, landmarks, timestamp_ms: float) -> VitalsSnapshot | None:
        """
        Feed one camera frame.  Returns the live snapshot (continuous mode)
        or None.  Frames outside SCANNING, or while simulating, are ignored.
        """
        with self._lock:
            if self._state is not ScanState.SCANNING or self._simulated:
                return None

            if landmarks is None:
                if self.mode is ScanMode.CONTINUOUS:
                    return None
                roi = RoiMeans()
            else:
                roi = extract_roi_means(frame, landmarks, self._estimator.roi_patch)

            snapshot = self._estimator.feed(FrameSample(landmarks, timestamp_ms, roi))
            if snapshot is not None:
                self._live = snapshot

            self._frames += 1
            self._progress = max(self._progress,
                                 min(100.0, 100.0 * self._frames / self._frames_needed))
            if self._progress >= 100.0:
                self._complete(self._estimator.finalize())
            return snapshot

    def enable_simulation(self) -> None:
        """Explicit, user-chosen fallback to synthetic vitals (INIT or ERROR only)."""
        with self._lock:
            if self._state not in (ScanState.INIT, ScanState.ERROR):
                raise ScanStateError(
                    f"Simulation can only replace a scan that has not started or failed "
                    f"(state '{self._state.value}')."
                )
            self._simulated = True
            self._generator = SyntheticVitalsGenerator(age=self._age, rng=self._rng)
            self._error = None
            self._state = ScanState.SCANNING
        logger.warning("Simulation mode enabled — results will be flagged as simulated.")

    def simulate_tick(self, timestamp_ms: float) -> VitalsSnapshot | None:
        """Advance the simulation by one tick."""
        with self._lock:
            if self._state is not ScanState.SCANNING or not self._simulated:
                return None
            snapshot = self._generator.next(timestamp_ms)  # type: ignore[union-attr]
            self._live = snapshot
            self._progress = min(100.0, self._progress + SIMULATION_PROGRESS_STEP)
            if self._progress >= 100.0:
                self._complete(snapshot)
            return snapshot

    def fail(self, message: str) -> None:
        """Move to ERROR (e.g. camera unavailable).  No effect once finished."""
        with self._lock:
            if self._state in (ScanState.COMPLETE, ScanState.CANCELLED, ScanState.ERROR):
                logger.debug("Ignoring failure in state %s: %s", self._state.value, message)
                return
            self._state = ScanState.ERROR
            self._error = message
        logger.error("Scan error: %s", message)

    def cancel(self) -> None:
        """User closed the scan view before completion."""
        with self._lock:
            if self._state in (ScanState.INIT, ScanState.SCANNING):
                self._state = ScanState.CANCELLED
                logger.info("Scan cancelled at %.1f%%.", self._progress)

    def confirm(self, sink: ReportStore, patient_id: str) -> VitalsReport:
        """
        Hand the completed result to the report sink.  Only allowed once,
        after COMPLETE, and only when the user explicitly asks for it.
        """
        with self._lock:
            if self._state is not ScanState.COMPLETE or self._result is None:
                raise ScanStateError("Only a completed scan can be saved as a report.")
            if self._report is not None:
                raise ScanStateError("This scan has already been saved.")
            report = build_vitals_report(self._result, patient_id)
            sink.save_report(patient_id, report)
            self._report = report
        logger.info("Scan result saved as report %s for patient %s.", report.id, patient_id)
        return report

    # ── Private ──────────────────────────────────────────────────────────────

    def _complete(self, result: VitalsResult) -> None:
        self._result = result
        self._progress = 100.0
        self._state = ScanState.COMPLETE
        logger.info("Scan complete (mode=%s, simulated=%s).", self.mode.value, self._simulated)
