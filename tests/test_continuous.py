import numpy as np
import pytest

from conftest import make_landmarks
from face.geometry import RoiMeans
from rppg.continuous import BlinkState, ContinuousVitalEstimator
from rppg.estimator import FrameSample


def _sample(t, green=110.0, eye_open=True):
    return FrameSample(make_landmarks(eye_open=eye_open), t, RoiMeans(red=160.0, green=green, blue=80.0))


class TestBlinkState:

    def test_closing_transition_counts_once(self):
        state = BlinkState()
        for t, open_ in [(0, True), (50, True), (100, False), (150, False), (400, True)]:
            state.update(open_, t)
        assert state.blink_count == 1
        assert state.last_blink_ms == 100

    def test_debounce(self):
        state = BlinkState()
        frames = [(0, True), (100, False), (150, True), (250, False), (300, True), (350, False)]
        counted = [state.update(open_, t) for t, open_ in frames]
        # 250 ms is within 200 ms of the blink at 100 ms; 350 ms is not
        assert counted == [False, True, False, False, False, True]
        assert state.blink_count == 2


class TestContinuousVitalEstimator:

    def test_no_face_returns_none(self):
        est = ContinuousVitalEstimator(rng=np.random.default_rng(0))
        assert est.feed(FrameSample(None, 0.0)) is None
        assert est.samples_accepted == 0

    def test_steady_signal_is_not_live(self):
        est = ContinuousVitalEstimator(rng=np.random.default_rng(0))
        snap = est.feed(_sample(0.0))
        assert snap.heart_rate == 75
        assert snap.spo2 == 97
        assert snap.hrv == 40
        assert not snap.simulated

    def test_pulse_deviation_modulates_heart_rate(self):
        est = ContinuousVitalEstimator(rng=np.random.default_rng(0))
        for _ in range(10):
            est.feed(_sample(0.0, green=100.0))
        snap = est.feed(_sample(0.0, green=130.0))
        # diff = 130 - mean(10 x 100, 130) ≈ 27.3 -> +2.7 BPM
        assert snap.heart_rate == 77
        assert snap.spo2 == 98
        assert snap.hrv == 94

    def test_failed_roi_read_carries_no_signal(self):
        est = ContinuousVitalEstimator(rng=np.random.default_rng(0))
        est.feed(_sample(0.0, green=100.0))
        snap = est.feed(FrameSample(make_landmarks(), 0.0, RoiMeans()))
        assert snap.spo2 == 97
        assert snap.hrv == 40

    def test_outputs_stay_in_range(self):
        rng = np.random.default_rng(42)
        est = ContinuousVitalEstimator(age=70, rng=np.random.default_rng(1))
        for k in range(400):
            snap = est.feed(_sample(k * 33.3, green=float(rng.uniform(1, 255)),
                                    eye_open=bool(rng.random() > 0.1)))
            assert 55 <= snap.heart_rate <= 100
            assert 10.0 <= snap.stress <= 95.0
            assert 12 <= snap.respiratory_rate <= 20
            assert 20 <= snap.hrv <= 120
            assert 90 <= snap.systolic <= 180
            assert 60 <= snap.diastolic <= 120
        assert est.samples_accepted == 400

    def test_blinks_reported(self):
        est = ContinuousVitalEstimator(rng=np.random.default_rng(0))
        for t, open_ in [(0, True), (50, True), (100, False), (150, False), (400, True)]:
            snap = est.feed(_sample(t, eye_open=open_))
        assert snap.blink_rate == 1

    def test_seeded_runs_are_identical(self):
        def run():
            est = ContinuousVitalEstimator(rng=np.random.default_rng(9))
            return [est.feed(_sample(k * 33.3, green=100 + 5 * np.sin(k / 3))) for k in range(60)]
        assert run() == run()

    def test_finalize_returns_last_snapshot(self):
        est = ContinuousVitalEstimator(rng=np.random.default_rng(0))
        last = None
        for k in range(5):
            last = est.feed(_sample(k * 33.3))
        assert est.finalize() is last
        assert est.last_snapshot is last

    def test_finalize_without_frames_is_placeholder(self):
        result = ContinuousVitalEstimator().finalize()
        assert result.heart_rate == 75
        assert result.stress == pytest.approx(10.0)
        assert result.bp == "120/80"
