"""
api/routes.py — FastAPI route definitions
==========================================
All HTTP endpoints, wired into the app via `app.include_router(router)`
in `api/app.py`.  The `ScanSession` lives on `app.state.session`.

Endpoint summary
----------------
    GET  /health                        — Liveness check
    GET  /devices                       — Available cameras
    POST /scan/start                    — Begin a camera scan (background thread)
    POST /scan/simulate                 — Explicit synthetic-data fallback
    GET  /scan/status                   — Poll state & progress
    GET  /scan/live                     — Latest live vitals snapshot
    GET  /scan/result                   — Final result (before confirmation)
    POST /scan/confirm                  — Save the result as a patient report
    POST /scan/cancel                   — Stop the scan and release the camera
    POST /scan/reset                    — Forget the current scan
    GET  /patients/{patient_id}/reports — Saved vitals reports
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from api.schemas import (
    DeviceInfo,
    ReportResponse,
    ScanRequest,
    SimulationRequest,
    StatusResponse,
)
from api.session import DISCLAIMER, ScanSession
from camera.capture import list_video_devices
from scan.orchestrator import ScanState, ScanStateError
from utils.logger import get_logger

logger = get_logger("api.routes")

router = APIRouter()


def get_session(request: Request) -> ScanSession:
    return request.app.state.session


# ── Health ────────────────────────────────────────────────────────────────────

@router.get("/health")
async def health():
    return {"status": "ok", "service": "Post-Operative Vitals Scan"}


@router.get("/devices", response_model=list[DeviceInfo])
def devices(session: ScanSession = Depends(get_session)):
    """
    List the available cameras.

    Returns 409 while a scan is running: listing opens every capture index,
    including the one the scan holds.
    """
    if session.is_running():
        raise HTTPException(status_code=409, detail="Cannot list devices while a scan is running.")
    return [DeviceInfo(index=d.index, label=d.label) for d in list_video_devices()]


# ── Scan Control ──────────────────────────────────────────────────────────────

@router.post("/scan/start")
def start_scan(request: ScanRequest, session: ScanSession = Depends(get_session)):
    """
    Begin a scan.  Returns immediately; poll GET /scan/status.

    Returns 409 if a scan is already running.
    """
    started = session.start_scan(
        patient_id=request.patient_id,
        mode=request.mode,
        device_index=request.device_index,
        age=request.age,
    )
    if not started:
        raise HTTPException(status_code=409, detail="A scan is already in progress.")
    return {
        "status": "started",
        "message": f"{request.mode.capitalize()} scan started. Poll GET /scan/status for progress.",
    }


@router.post("/scan/simulate")
def simulate_scan(
    request: SimulationRequest | None = None,
    session: ScanSession = Depends(get_session),
):
    """
    Run a simulated scan instead of a camera scan.  Only ever started by
    this explicit call; results are flagged as simulated.
    """
    request = request or SimulationRequest()
    try:
        session.start_simulation(patient_id=request.patient_id, age=request.age)
    except ScanStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"status": "started", "message": "Simulated scan started. Results are NOT measurements."}


@router.get("/scan/status", response_model=StatusResponse)
def scan_status(session: ScanSession = Depends(get_session)):
    return StatusResponse(**session.status())


@router.get("/scan/live")
def scan_live(session: ScanSession = Depends(get_session)):
    snapshot = session.live()
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No live vitals yet.")
    return snapshot.to_dict()


@router.get("/scan/result")
def scan_result(session: ScanSession = Depends(get_session)):
    """
    Final vitals, shown to the user for review.  Nothing is saved until
    POST /scan/confirm.
    """
    orch = session.orchestrator
    if orch is None:
        raise HTTPException(status_code=404, detail="No scan has been run yet.")
    if orch.state is not ScanState.COMPLETE:
        raise HTTPException(status_code=409, detail=f"Scan is '{orch.state.value}', not complete.")

    result = orch.result
    return {
        "disclaimer": DISCLAIMER,
        "mode": orch.mode.value,
        "simulated": orch.simulated,
        "confirmed": orch.report is not None,
        "result": result.to_dict() if result is not None else None,
    }


@router.post("/scan/confirm", response_model=ReportResponse)
def scan_confirm(session: ScanSession = Depends(get_session)):
    """Save the completed scan as a VITALS report under the patient."""
    try:
        report = session.confirm()
    except ScanStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return ReportResponse(**report.to_dict())


@router.post("/scan/cancel")
def scan_cancel(session: ScanSession = Depends(get_session)):
    session.cancel()
    return {"status": "ok", "message": "Scan stopped and camera released."}


@router.post("/scan/reset")
def scan_reset(session: ScanSession = Depends(get_session)):
    session.reset()
    return {"status": "ok", "message": "Session reset. Ready for a new scan."}


# ── Reports ───────────────────────────────────────────────────────────────────

@router.get("/patients/{patient_id}/reports", response_model=list[ReportResponse])
def patient_reports(patient_id: str, session: ScanSession = Depends(get_session)):
    return [ReportResponse(**r.to_dict()) for r in session.list_reports(patient_id)]
