"""
api/session.py — Scan Session Manager
=======================================
Bridges the HTTP layer and the scan core.  Owns the current
`ScanOrchestrator` and the single worker thread running its frame loop
(camera scan) or its tick loop (simulation).

Concurrency
-----------
There is one camera, so at most one scan runs at a time; `start_scan`
refuses a second one.  The worker thread is the only producer; HTTP
handlers only read orchestrator state (which is lock-protected) or
signal `_stop_event`.

Lifecycle
---------
    1. `start_scan(...)`         — camera scan in a daemon thread.
       (or `start_simulation()`  — explicit synthetic fallback.)
    2. Poll `status()` / `live()`.
    3. `result()` once complete.
    4. `confirm()`               — hand the result to the report store.
    5. `cancel()` / `reset()`.
"""

import threading
import time
from typing import Callable

import numpy as np

from camera.capture import CameraCapture
from config import CAMERA_INDEX, DEFAULT_PATIENT_AGE, SIMULATION_TICK_SECONDS
from reports.builder import VitalsReport
from reports.store import InMemoryReportStore, ReportStore
from rppg.estimator import VitalsResult, VitalsSnapshot
from scan.orchestrator import (
    ScanMode,
    ScanOrchestrator,
    ScanState,
    ScanStateError,
    create_estimator,
    scan_phase_text,
)
from scan.runner import ScanRunner, default_detector_factory
from utils.logger import get_logger

logger = get_logger("api.session")

DISCLAIMER = (
    "⚠️ Experimental wellness estimation — NOT a medical device. "
    "Heart rate is estimated from remote photoplethysmography (rPPG); all "
    "other values are heuristic placeholders derived from it. "
    "Do NOT make medical decisions based on these readings."
)

_MESSAGES = {
    "idle":      "No scan in progress. POST /scan/start to begin.",
    "init":      "Connecting to camera and loading the face model...",
    "scanning":  "Scan in progress. Keep your face visible and still.",
    "complete":  "Scan complete. Review via GET /scan/result, then POST /scan/confirm to save.",
    "error":     "Scan failed. POST /scan/simulate to run a simulated scan instead.",
    "cancelled": "Scan cancelled.",
}


class ScanSession:
    """
    Holds the current scan for the application lifetime.

    Parameters
    ----------
    store            : ReportStore          Where confirmed results are saved.
    camera_factory   : callable(int)        Builds a camera for a device index.
    detector_factory : callable()           Builds the landmark detector.
    simulation_tick  : float                Seconds between simulation ticks.
    rng              : Generator | None     Shared jitter source (tests seed it).
    """

    def __init__(
        self,
        store: ReportStore | None = None,
        camera_factory: Callable[[int], CameraCapture] = CameraCapture,
        detector_factory: Callable = default_detector_factory,
        simulation_tick: float = SIMULATION_TICK_SECONDS,
        rng: np.random.Generator | None = None,
    ):
        self.store: ReportStore = store if store is not None else InMemoryReportStore()
        self._camera_factory = camera_factory
        self._detector_factory = detector_factory
        self._simulation_tick = simulation_tick
        self._rng = rng

        self._lock = threading.Lock()
        self._orchestrator: ScanOrchestrator | None = None
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._patient_id: str | None = None
        self._age = DEFAULT_PATIENT_AGE

        logger.info("ScanSession initialised.")

    # ── Queries ──────────────────────────────────────────────────────────────

    @property
    def orchestrator(self) -> ScanOrchestrator | None:
        with self._lock:
            return self._orchestrator

    @property
    def patient_id(self) -> str | None:
        with self._lock:
            return self._patient_id

    def is_running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    def status(self) -> dict:
        orch = self.orchestrator
        if orch is None:
            return {"state": "idle", "message": _MESSAGES["idle"]}
        state = orch.state.value
        progress = orch.progress
        return {
            "state": state,
            "message": _MESSAGES[state],
            "mode": orch.mode.value,
            "simulated": orch.simulated,
            "progress_percent": round(progress, 1),
            "phase": scan_phase_text(progress) if state == "scanning" else None,
            "error": orch.error,
            "simulation_available": orch.state in (ScanState.INIT, ScanState.ERROR),
        }

    def live(self) -> VitalsSnapshot | None:
        orch = self.orchestrator
        return orch.live if orch is not None else None

    def result(self) -> VitalsResult | None:
        orch = self.orchestrator
        return orch.result if orch is not None else None

    # ── Commands ─────────────────────────────────────────────────────────────

    def start_scan(
        self,
        patient_id: str,
        mode: str = ScanMode.CONTINUOUS.value,
        device_index: int = CAMERA_INDEX,
        age: int = DEFAULT_PATIENT_AGE,
    ) -> bool:
        """Launch a camera scan.  Returns False if one is already running."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                logger.warning("Scan already in progress.")
                return False
            orch = ScanOrchestrator(create_estimator(mode, age=age, rng=self._rng),
                                    age=age, rng=self._rng)
            self._orchestrator = orch
            self._patient_id = patient_id
            self._age = age
            self._stop_event = threading.Event()
            runner = ScanRunner(orch, self._camera_factory(device_index),
                                detector_factory=self._detector_factory)
            self._thread = threading.Thread(
                target=runner.run, args=(self._stop_event,), daemon=True,
            )
            self._thread.start()
        logger.info("Scan thread started (patient=%s, mode=%s, device=%d).",
                    patient_id, mode, device_index)
        return True

    def start_simulation(self, patient_id: str | None = None, age: int | None = None) -> None:
        """
        Switch to synthetic vitals.  Allowed when no scan exists yet, or the
        current one has not started or has failed.

        Raises
        ------
        ScanStateError   if the current scan cannot be replaced.
        ValueError       if no patient is known.
        """
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                raise ScanStateError("A camera scan is still running.")
            if patient_id is not None:
                self._patient_id = patient_id
            if age is not None:
                self._age = age
            if self._patient_id is None:
                raise ValueError("patient_id is required to start a simulation.")

            orch = self._orchestrator
            if orch is None or orch.state not in (ScanState.INIT, ScanState.ERROR):
                orch = ScanOrchestrator(create_estimator(ScanMode.CONTINUOUS, age=self._age),
                                        age=self._age, rng=self._rng)
            orch.enable_simulation()
            self._orchestrator = orch
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run_simulation, args=(orch, self._stop_event), daemon=True,
            )
            self._thread.start()

    def confirm(self) -> VitalsReport:
        """Save the completed result under the current patient."""
        orch = self.orchestrator
        if orch is None or self.patient_id is None:
            raise ScanStateError("No scan to confirm.")
        return orch.confirm(self.store, self.patient_id)

    def cancel(self) -> None:
        """Stop the worker; the runner releases the camera on its way out."""
        self._stop_event.set()
        orch = self.orchestrator
        if orch is not None:
            orch.cancel()
        self._join()

    def reset(self) -> None:
        self.cancel()
        with self._lock:
            self._orchestrator = None
            self._patient_id = None
            self._thread = None
        logger.info("Session reset.")

    def list_reports(self, patient_id: str) -> list[VitalsReport]:
        return self.store.list_reports(patient_id)

    # ── Private ──────────────────────────────────────────────────────────────

    def _run_simulation(self, orch: ScanOrchestrator, stop_event: threading.Event) -> None:
        while orch.is_active and not stop_event.is_set():
            orch.simulate_tick(time.time() * 1000.0)
            if self._simulation_tick > 0:
                stop_event.wait(self._simulation_tick)
        if stop_event.is_set():
            orch.cancel()

    def _join(self, timeout: float = 5.0) -> None:
        thread = self._thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)
