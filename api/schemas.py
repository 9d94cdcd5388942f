"""
api/schemas.py — Pydantic request & response models
=====================================================
Data-transfer objects for the scan API, so FastAPI validates input and
documents every endpoint in the OpenAPI schema.
"""

from typing import Optional

from pydantic import BaseModel, Field

from config import CAMERA_INDEX, DEFAULT_PATIENT_AGE


# ── Request Models ───────────────────────────────────────────────────────────


class ScanRequest(BaseModel):
    """Start a camera scan for one patient."""
    patient_id: str = Field(..., min_length=1, description="Patient record id.")
    mode: str = Field("continuous", pattern="^(continuous|batch)$")
    device_index: int = Field(CAMERA_INDEX, ge=0, le=16)
    age: int = Field(DEFAULT_PATIENT_AGE, ge=0, le=120, description="Age in years (BP model).")


class SimulationRequest(BaseModel):
    """
    Explicitly opt into synthetic vitals, typically after the camera
    failed.  Fields are only needed when no scan was started before.
    """
    patient_id: Optional[str] = Field(None, min_length=1)
    age: Optional[int] = Field(None, ge=0, le=120)


# ── Response Models ──────────────────────────────────────────────────────────


class DeviceInfo(BaseModel):
    index: int
    label: str


class StatusResponse(BaseModel):
    state: str                       # init | scanning | complete | error | cancelled | idle
    message: str
    mode: Optional[str] = None
    simulated: bool = False
    progress_percent: float = 0.0
    phase: Optional[str] = None
    error: Optional[str] = None
    simulation_available: bool = False


class ReportResponse(BaseModel):
    id: str
    patient_id: str
    timestamp: int
    report_type: str
    status: str
    summary: str
    data: dict
