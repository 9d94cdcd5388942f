"""
rppg/estimator.py — Vital-estimator capability & result types
==============================================================
Both scan modes implement the same `VitalEstimator` interface so the scan
orchestrator (and the tests) never need to know which one is active:

    feed(sample)  → VitalsSnapshot | None     once per processed frame
    finalize()    → VitalsSnapshot | BatchVitals   once, at scan end

* `ContinuousVitalEstimator` returns a fresh snapshot from every `feed()`
  and `finalize()` hands back the last one.
* `BatchVitalEstimator` only accumulates in `feed()` and does all of the
  signal processing in `finalize()`.

Estimators own all of their state.  Build one per scan and throw it away
afterwards.

⚠️  Results are heuristic estimates, NOT medical measurements.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field

import numpy as np

from config import LIVE_ROI_PATCH
from face.geometry import RoiMeans


@dataclass(frozen=True)
class FrameSample:
    """Everything an estimator needs from one processed video frame."""
    landmarks: np.ndarray | None   # (N, 2) normalised, None when no face
    timestamp_ms: float
    roi: RoiMeans = field(default_factory=RoiMeans)

    @property
    def face_detected(self) -> bool:
        return self.landmarks is not None


@dataclass(frozen=True)
class VitalsSnapshot:
    """Live vitals for one frame (continuous scan or simulation)."""
    heart_rate: int
    spo2: int
    stress: float            # 0–100
    respiratory_rate: int
    hrv: int                 # ms, approximate
    systolic: int
    diastolic: int
    blink_rate: int
    simulated: bool = False

    @property
    def bp(self) -> str:
        return f"{self.systolic}/{self.diastolic}"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["bp"] = self.bp
        return data

    def report_data(self) -> dict:
        return {
            "bpm": self.heart_rate,
            "spo2": self.spo2,
            "stress": self.stress,
            "respiration": self.respiratory_rate,
            "hrv": self.hrv,
            "bp": self.bp,
            "blink_rate": self.blink_rate,
            "simulated": self.simulated,
        }


@dataclass(frozen=True)
class BatchVitals:
    """Final vitals of a fixed-window (batch) scan."""
    bpm: int
    spo2: int
    stress: str              # "Optimal" | "Moderate" | "Elevated"
    respiration: int
    hrv: int
    bp: str                  # "SYS/DIA"
    hemoglobin: float
    snr: float
    temperature: float
    hr_source: str = "default"
    samples_used: int = 0
    simulated: bool = False

    def to_dict(self) -> dict:
        return asdict(self)

    def report_data(self) -> dict:
        return {
            "bpm": self.bpm,
            "spo2": self.spo2,
            "stress": self.stress,
            "respiration": self.respiration,
            "hrv": self.hrv,
            "bp": self.bp,
            "hemoglobin": self.hemoglobin,
            "snr": self.snr,
            "temperature": self.temperature,
            "simulated": self.simulated,
        }


VitalsResult = VitalsSnapshot | BatchVitals


class VitalEstimator(ABC):
    """Common capability of the live and batch estimators."""

    #: "continuous" or "batch"
    mode: str = ""
    #: Side (px) of the forehead patch sampled for this estimator
    roi_patch: int = LIVE_ROI_PATCH

    @abstractmethod
    def feed(self, sample: FrameSample) -> VitalsSnapshot | None:
        """Consume one frame sample; may return a live snapshot."""

    @abstractmethod
    def finalize(self) -> VitalsResult:
        """Produce the final result of the scan."""

    @property
    @abstractmethod
    def samples_accepted(self) -> int:
        """How many frame samples contributed to the estimate so far."""
