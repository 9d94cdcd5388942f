import numpy as np
import pytest

from conftest import make_landmarks
from face.geometry import RoiMeans
from rppg.batch import BatchVitalEstimator, estimate_from_signal
from rppg.estimator import FrameSample


def _pulse_window(bpm=72.0, seconds=30, fps=30, amplitude=2.0):
    i = np.arange(int(seconds * fps))
    return 100.0 + amplitude * np.sin(2 * np.pi * (bpm / 60.0) * i / fps + 0.3)


class TestEstimateFromSignal:

    def test_recovers_periodic_heart_rate(self, rng):
        result = estimate_from_signal(_pulse_window(72.0), fps=30, rng=rng)
        assert abs(result.bpm - 72) <= 3
        assert result.hr_source == "ibi"
        assert result.snr > 0
        assert result.samples_used == 900

    def test_derived_vitals(self, rng):
        result = estimate_from_signal(_pulse_window(72.0), fps=30, rng=rng)
        assert result.stress in ("Optimal", "Moderate")
        assert result.respiration == round(result.bpm / 4.4)
        assert 96 <= result.spo2 <= 98
        systolic, diastolic = (int(v) for v in result.bp.split("/"))
        assert 90 <= systolic <= 160 and 55 <= diastolic <= 100
        assert not result.simulated

    @pytest.mark.parametrize("period", range(16, 45))
    def test_heart_rate_tracks_period(self, period, rng):
        i = np.arange(900)
        raw = 100.0 + 2.0 * np.sin(2 * np.pi * i / period)
        result = estimate_from_signal(raw, fps=30, rng=rng)
        assert abs(result.bpm - 60.0 * 30 / period) <= 5
        assert result.hr_source == "ibi"

    def test_square_pulse(self, rng):
        i = np.arange(900)
        raw = 100.0 + 2.0 * ((i % 20) < 6)
        result = estimate_from_signal(raw, fps=30, rng=rng)
        assert abs(result.bpm - 90) <= 5

    def test_flat_signal_uses_default(self, rng):
        result = estimate_from_signal(np.full(900, 120.0), fps=30, rng=rng)
        assert result.bpm == 72
        assert result.hr_source == "default"
        assert result.snr == 0.0

    def test_seeded_results_are_identical(self):
        raw = _pulse_window(80.0)
        a = estimate_from_signal(raw, rng=np.random.default_rng(3))
        b = estimate_from_signal(raw, rng=np.random.default_rng(3))
        assert a == b


class TestBatchVitalEstimator:

    def test_skin_gate(self):
        est = BatchVitalEstimator(rng=np.random.default_rng(0))
        face = make_landmarks()
        est.feed(FrameSample(face, 0, RoiMeans(red=160, green=110, blue=80)))
        est.feed(FrameSample(face, 33, RoiMeans(red=90, green=140, blue=80)))
        est.feed(FrameSample(face, 66, RoiMeans(red=20, green=10, blue=5)))
        est.feed(FrameSample(None, 99, RoiMeans(red=160, green=110, blue=80)))
        assert est.samples_accepted == 1
        assert est.samples_rejected == 3

    def test_feed_returns_nothing(self):
        est = BatchVitalEstimator()
        assert est.feed(FrameSample(make_landmarks(), 0, RoiMeans(160, 110, 80))) is None

    def test_window_is_capped(self):
        est = BatchVitalEstimator(capacity=10)
        for k in range(25):
            est.feed(FrameSample(make_landmarks(), k, RoiMeans(160, 110, 80)))
        assert est.samples_accepted == 10

    def test_finalize_on_accumulated_pulse(self):
        est = BatchVitalEstimator(fps=30, rng=np.random.default_rng(0))
        face = make_landmarks()
        for k, g in enumerate(_pulse_window(90.0)):
            est.feed(FrameSample(face, k * 33.3, RoiMeans(red=160, green=float(g), blue=80)))
        result = est.finalize()
        assert abs(result.bpm - 90) <= 4
        assert result.samples_used == 900

    def test_finalize_without_samples(self):
        result = BatchVitalEstimator(rng=np.random.default_rng(0)).finalize()
        assert result.bpm == 72
        assert result.samples_used == 0

    def test_batch_patch_is_larger(self):
        assert BatchVitalEstimator.roi_patch == 100
        assert BatchVitalEstimator.mode == "batch"
