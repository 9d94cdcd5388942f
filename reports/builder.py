"""
reports/builder.py — Vitals scan → patient report
==================================================
Maps a confirmed scan result onto the "VITALS" report stored under the
patient record, and triages it:

    Watch   if  HR > 100  or  SpO2 < 95  or  stress > 70 (numeric)
                or stress category == "Elevated"
    Stable  otherwise

Simulated results keep their `simulated` flag in the report data.
"""

import time
import uuid
from dataclasses import asdict, dataclass, field

from config import WATCH_HR_ABOVE, WATCH_SPO2_BELOW, WATCH_STRESS_ABOVE
from rppg.estimator import VitalsResult

REPORT_TYPE_VITALS = "VITALS"


@dataclass(frozen=True)
class VitalsReport:
    id: str
    patient_id: str
    timestamp: int                  # epoch milliseconds
    status: str                     # "Stable" | "Watch"
    summary: str
    data: dict = field(default_factory=dict)
    report_type: str = REPORT_TYPE_VITALS

    def to_dict(self) -> dict:
        return asdict(self)


def triage_status(data: dict) -> str:
    stress = data.get("stress")
    if data.get("bpm", 0) > WATCH_HR_ABOVE or data.get("spo2", 100) < WATCH_SPO2_BELOW:
        return "Watch"
    if isinstance(stress, str):
        return "Watch" if stress == "Elevated" else "Stable"
    if stress is not None and stress > WATCH_STRESS_ABOVE:
        return "Watch"
    return "Stable"


def _format_stress(stress) -> str:
    if isinstance(stress, str):
        return stress
    return f"{float(stress):.2f}/100"


def build_vitals_report(result: VitalsResult, patient_id: str) -> VitalsReport:
    data = result.report_data()
    summary = (
        f"VITAL SCAN ANALYTICS: Heart Rate: {data['bpm']} BPM | SpO2: {data['spo2']}% | "
        f"Respiratory: {data['respiration']} rpm | Stress: {_format_stress(data['stress'])}"
    )
    if data.get("simulated"):
        summary += " | SIMULATED DATA"

    return VitalsReport(
        id=uuid.uuid4().hex[:9],
        patient_id=patient_id,
        timestamp=int(time.time() * 1000),
        status=triage_status(data),
        summary=summary,
        data=data,
    )
