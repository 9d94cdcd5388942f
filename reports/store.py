"""
reports/store.py — Report persistence interface
================================================
Patient records live in an external document store.  The scan core only
needs to append a report to a patient and read a patient's reports back,
which is what `ReportStore` describes.  `InMemoryReportStore` backs the
API server and the tests.
"""

import threading
from collections import defaultdict
from typing import Protocol

from reports.builder import VitalsReport
from utils.logger import get_logger

logger = get_logger("reports.store")


class ReportStore(Protocol):
    def save_report(self, patient_id: str, report: VitalsReport) -> None: ...

    def list_reports(self, patient_id: str) -> list[VitalsReport]: ...


class InMemoryReportStore:
    """Thread-safe process-local store keyed by patient id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._reports: dict[str, list[VitalsReport]] = defaultdict(list)

    def save_report(self, patient_id: str, report: VitalsReport) -> None:
        with self._lock:
            self._reports[patient_id].append(report)
        logger.info("Stored %s report %s (status=%s) for patient %s.",
                    report.report_type, report.id, report.status, patient_id)

    def list_reports(self, patient_id: str) -> list[VitalsReport]:
        with self._lock:
            return list(self._reports.get(patient_id, []))
