import pytest

from reports.builder import build_vitals_report, triage_status
from reports.store import InMemoryReportStore
from rppg.estimator import BatchVitals, VitalsSnapshot


def _snapshot(**overrides):
    values = dict(heart_rate=72, spo2=98, stress=12.5, respiratory_rate=15, hrv=45,
                  systolic=118, diastolic=76, blink_rate=3)
    values.update(overrides)
    return VitalsSnapshot(**values)


def _batch(**overrides):
    values = dict(bpm=68, spo2=97, stress="Optimal", respiration=15, hrv=54, bp="119/73",
                  hemoglobin=13.5, snr=6.2, temperature=36.6, hr_source="ibi", samples_used=880)
    values.update(overrides)
    return BatchVitals(**values)


class TestTriage:

    @pytest.mark.parametrize("data, status", [
        ({"bpm": 72, "spo2": 98, "stress": 20.0}, "Stable"),
        ({"bpm": 101, "spo2": 98, "stress": 20.0}, "Watch"),
        ({"bpm": 100, "spo2": 95, "stress": 70.0}, "Stable"),
        ({"bpm": 72, "spo2": 94, "stress": 20.0}, "Watch"),
        ({"bpm": 72, "spo2": 98, "stress": 70.5}, "Watch"),
        ({"bpm": 72, "spo2": 98, "stress": "Elevated"}, "Watch"),
        ({"bpm": 80, "spo2": 98, "stress": "Moderate"}, "Stable"),
    ])
    def test_status(self, data, status):
        assert triage_status(data) == status


class TestBuildReport:

    def test_live_report(self):
        report = build_vitals_report(_snapshot(), "patient-7")
        assert report.report_type == "VITALS"
        assert report.patient_id == "patient-7"
        assert report.status == "Stable"
        assert len(report.id) == 9
        assert report.summary == (
            "VITAL SCAN ANALYTICS: Heart Rate: 72 BPM | SpO2: 98% | "
            "Respiratory: 15 rpm | Stress: 12.50/100"
        )
        assert report.data["bp"] == "118/76"
        assert report.data["simulated"] is False

    def test_batch_report(self):
        report = build_vitals_report(_batch(stress="Elevated", bpm=95), "p")
        assert report.status == "Watch"
        assert "Stress: Elevated" in report.summary
        assert report.data["hemoglobin"] == 13.5

    def test_simulated_flag_is_kept(self):
        report = build_vitals_report(_snapshot(simulated=True), "p")
        assert report.data["simulated"] is True
        assert report.summary.endswith("| SIMULATED DATA")

    def test_ids_are_unique(self):
        ids = {build_vitals_report(_snapshot(), "p").id for _ in range(20)}
        assert len(ids) == 20


class TestInMemoryReportStore:

    def test_save_and_list(self):
        store = InMemoryReportStore()
        first = build_vitals_report(_snapshot(), "a")
        second = build_vitals_report(_batch(), "a")
        store.save_report("a", first)
        store.save_report("a", second)
        assert store.list_reports("a") == [first, second]
        assert store.list_reports("b") == []

    def test_list_is_a_copy(self):
        store = InMemoryReportStore()
        store.save_report("a", build_vitals_report(_snapshot(), "a"))
        store.list_reports("a").clear()
        assert len(store.list_reports("a")) == 1
