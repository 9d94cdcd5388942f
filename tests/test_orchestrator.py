import numpy as np
import pytest

from conftest import make_frame, make_landmarks
from reports.store import InMemoryReportStore
from rppg.batch import BatchVitalEstimator
from rppg.continuous import ContinuousVitalEstimator
from rppg.estimator import BatchVitals, VitalsSnapshot
from scan.orchestrator import (
    ScanMode,
    ScanOrchestrator,
    ScanState,
    ScanStateError,
    create_estimator,
    scan_phase_text,
)


@pytest.fixture
def live_orch():
    return ScanOrchestrator(ContinuousVitalEstimator(rng=np.random.default_rng(0)),
                            rng=np.random.default_rng(0))


@pytest.fixture
def batch_orch():
    # 1-second window at 30 fps -> 30 frames
    return ScanOrchestrator(BatchVitalEstimator(rng=np.random.default_rng(0)),
                            fps=30, batch_seconds=1, rng=np.random.default_rng(0))


def _run_frames(orch, n, landmarks, start_ms=0.0):
    frame = make_frame()
    progress = []
    for k in range(n):
        orch.process_frame(frame, landmarks, start_ms + k * 33.3)
        progress.append(orch.progress)
    return progress


class TestFactory:

    def test_create_estimator(self):
        assert isinstance(create_estimator("continuous"), ContinuousVitalEstimator)
        assert isinstance(create_estimator(ScanMode.BATCH), BatchVitalEstimator)

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            create_estimator("hourly")

    @pytest.mark.parametrize("progress, text", [
        (0, "Locating Facial Nerves..."),
        (25, "Mapping Vascular Network..."),
        (60, "Analyzing Blood Flow Velocity..."),
        (99, "Calibrating Vital Signs..."),
    ])
    def test_phase_text(self, progress, text):
        assert scan_phase_text(progress) == text


class TestContinuousScan:

    def test_starts_in_init(self, live_orch):
        assert live_orch.state is ScanState.INIT
        assert live_orch.progress == 0.0
        assert live_orch.mode is ScanMode.CONTINUOUS

    def test_frames_before_start_are_ignored(self, live_orch):
        assert live_orch.process_frame(make_frame(), make_landmarks(), 0.0) is None
        assert live_orch.progress == 0.0

    def test_completes_after_500_face_frames(self, live_orch):
        live_orch.start()
        progress = _run_frames(live_orch, 499, make_landmarks())
        assert live_orch.state is ScanState.SCANNING
        assert progress == sorted(progress)
        assert progress[-1] == pytest.approx(99.8)

        _run_frames(live_orch, 1, make_landmarks(), start_ms=20000.0)
        assert live_orch.state is ScanState.COMPLETE
        assert live_orch.progress == 100.0
        assert isinstance(live_orch.result, VitalsSnapshot)
        assert live_orch.result == live_orch.live

    def test_no_face_does_not_advance(self, live_orch):
        live_orch.start()
        _run_frames(live_orch, 20, None)
        assert live_orch.progress == 0.0
        assert live_orch.live is None

    def test_no_sampling_after_complete(self, live_orch):
        live_orch.start()
        _run_frames(live_orch, 500, make_landmarks())
        result = live_orch.result
        assert live_orch.process_frame(make_frame(), make_landmarks(), 99999.0) is None
        assert live_orch.result is result
        assert live_orch.progress == 100.0

    def test_cannot_start_twice(self, live_orch):
        live_orch.start()
        with pytest.raises(ScanStateError):
            live_orch.start()


class TestBatchScan:

    def test_progress_advances_without_face(self, batch_orch):
        batch_orch.start()
        progress = _run_frames(batch_orch, 15, None)
        assert progress[-1] == pytest.approx(50.0)
        assert batch_orch.live is None

    def test_completes_with_default_when_face_never_seen(self, batch_orch):
        batch_orch.start()
        _run_frames(batch_orch, 30, None)
        assert batch_orch.state is ScanState.COMPLETE
        assert isinstance(batch_orch.result, BatchVitals)
        assert batch_orch.result.bpm == 72
        assert batch_orch.result.samples_used == 0

    def test_face_frames_are_sampled(self, batch_orch):
        batch_orch.start()
        _run_frames(batch_orch, 30, make_landmarks())
        assert batch_orch.result.samples_used == 30


class TestFailureAndCancel:

    def test_fail(self, live_orch):
        live_orch.start()
        live_orch.fail("camera unplugged")
        assert live_orch.state is ScanState.ERROR
        assert live_orch.error == "camera unplugged"
        assert live_orch.is_finished
        assert live_orch.process_frame(make_frame(), make_landmarks(), 0.0) is None

    def test_fail_after_complete_is_ignored(self, batch_orch):
        batch_orch.start()
        _run_frames(batch_orch, 30, None)
        batch_orch.fail("late error")
        assert batch_orch.state is ScanState.COMPLETE
        assert batch_orch.error is None

    def test_cancel(self, live_orch):
        live_orch.start()
        _run_frames(live_orch, 10, make_landmarks())
        live_orch.cancel()
        assert live_orch.state is ScanState.CANCELLED
        assert live_orch.progress == pytest.approx(2.0)
        with pytest.raises(ScanStateError):
            live_orch.start()

    def test_cancel_after_complete_keeps_result(self, batch_orch):
        batch_orch.start()
        _run_frames(batch_orch, 30, None)
        batch_orch.cancel()
        assert batch_orch.state is ScanState.COMPLETE


class TestSimulation:

    def test_never_simulated_implicitly(self, live_orch):
        live_orch.fail("no camera")
        assert not live_orch.simulated
        assert live_orch.state is ScanState.ERROR

    def test_simulation_after_error(self, live_orch):
        live_orch.fail("no camera")
        live_orch.enable_simulation()
        assert live_orch.state is ScanState.SCANNING
        assert live_orch.simulated
        assert live_orch.error is None

        for k in range(199):
            live_orch.simulate_tick(k * 50.0)
        assert live_orch.progress == pytest.approx(99.5)
        live_orch.simulate_tick(10000.0)
        assert live_orch.state is ScanState.COMPLETE
        assert live_orch.result.simulated

    def test_camera_frames_ignored_while_simulating(self, live_orch):
        live_orch.enable_simulation()
        assert live_orch.process_frame(make_frame(), make_landmarks(), 0.0) is None
        assert live_orch.progress == 0.0

    def test_tick_without_simulation_is_ignored(self, live_orch):
        live_orch.start()
        assert live_orch.simulate_tick(0.0) is None

    @pytest.mark.parametrize("prepare", ["start", "complete", "cancel"])
    def test_simulation_refused_outside_init_or_error(self, batch_orch, prepare):
        batch_orch.start()
        if prepare == "complete":
            _run_frames(batch_orch, 30, None)
        elif prepare == "cancel":
            batch_orch.cancel()
        with pytest.raises(ScanStateError):
            batch_orch.enable_simulation()


class TestConfirm:

    def test_confirm_requires_complete(self, live_orch):
        store = InMemoryReportStore()
        live_orch.start()
        with pytest.raises(ScanStateError):
            live_orch.confirm(store, "p1")
        assert store.list_reports("p1") == []

    def test_confirm_once(self, batch_orch):
        store = InMemoryReportStore()
        batch_orch.start()
        _run_frames(batch_orch, 30, None)
        report = batch_orch.confirm(store, "p1")
        assert batch_orch.report is report
        assert store.list_reports("p1") == [report]
        with pytest.raises(ScanStateError):
            batch_orch.confirm(store, "p1")
        assert len(store.list_reports("p1")) == 1
