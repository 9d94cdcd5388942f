"""
config.py — Centralised configuration & tunable constants
==========================================================
Every tunable constant of the vitals scan lives here so that the rest of
the codebase imports from a single source of truth.

⚠️  All vitals produced with these constants are HEURISTIC estimates.
    This is an experimental wellness tool, NOT a medical device.
"""

import logging

# ─── Logging ─────────────────────────────────────────────────────────────────
LOG_LEVEL: int = logging.INFO

# ─── Camera ──────────────────────────────────────────────────────────────────
CAMERA_INDEX: int = 0          # Default device index passed to cv2.VideoCapture
CAMERA_WIDTH: int = 640
CAMERA_HEIGHT: int = 480
CAMERA_FPS: int = 30           # Requested FPS; actual FPS may differ
CAMERA_PROBE_MAX_INDEX: int = 5   # Device enumeration probes indices [0, N)
FIRST_FRAME_TIMEOUT_S: float = 3.0
FRAME_TIMEOUT_S: float = 1.0

# ─── Face landmarks (MediaPipe Face Mesh topology) ───────────────────────────
FOREHEAD_LANDMARK: int = 151
# Left-eye contour: [outer corner, upper-1, upper-2, inner corner, lower-2, lower-1]
LEFT_EYE_LANDMARKS = [33, 160, 158, 133, 153, 144]
EAR_CLOSED_THRESHOLD: float = 0.25   # EAR at or below this → eye closed
BLINK_DEBOUNCE_MS: float = 200.0

# ─── ROI sampling ────────────────────────────────────────────────────────────
LIVE_ROI_PATCH: int = 20       # Forehead patch side (px), continuous variant
BATCH_ROI_PATCH: int = 100     # Forehead patch side (px), batch variant
SKIN_MIN_BRIGHTNESS: float = 40.0   # (R+G+B)/3 floor for the skin gate

# ─── Signal conditioning & peak detection ────────────────────────────────────
# Detrend (local mean over ±7 samples) + 3-point smoothing roughly keeps
# the 0.7–3.5 Hz pulse band at 30 fps.
ASSUMED_FPS: float = 30.0
DETREND_HALF_WINDOW: int = 7
SMOOTH_WINDOW: int = 3
PEAK_REFRACTORY_SAMPLES: int = 15   # 15 samples @ 30 fps → max ~120 BPM
SNR_FALLBACK_DB: float = 0.0

# ─── Continuous (live) estimator ─────────────────────────────────────────────
LIVE_SIGNAL_BUFFER: int = 30
# Empirically tuned, not physically derived.
STRESS_SMOOTHING_BUFFER: int = 50
LIVE_SIGNAL_THRESHOLD: float = 0.5
BASE_RESTING_HR: float = 75.0
LIVE_HR_MODULATION_LIMIT: float = 15.0
LIVE_HR_MIN: int = 55
LIVE_HR_MAX: int = 100
DEFAULT_PATIENT_AGE: int = 25

# ─── Batch estimator ─────────────────────────────────────────────────────────
BATCH_SCAN_SECONDS: int = 30
BATCH_MAX_SAMPLES: int = 1050
IBI_HR_RANGE = (40.0, 200.0)
COUNT_HR_RANGE = (45.0, 180.0)
DEFAULT_HR: int = 72
RESPIRATION_HARMONIC_RATIO: float = 4.4

# Heart-rate thresholds for the batch stress category
STRESS_OPTIMAL_BELOW: float = 75.0
STRESS_MODERATE_BELOW: float = 90.0

# ─── Scan progress ───────────────────────────────────────────────────────────
LIVE_PROGRESS_STEP: float = 0.2         # Per frame with a detected face
SIMULATION_PROGRESS_STEP: float = 0.5   # Per synthetic tick
SIMULATION_TICK_SECONDS: float = 0.05

# ─── Reports ─────────────────────────────────────────────────────────────────
WATCH_HR_ABOVE: float = 100.0
WATCH_SPO2_BELOW: float = 95.0
WATCH_STRESS_ABOVE: float = 70.0

# ─── API ─────────────────────────────────────────────────────────────────────
API_TITLE = "Post-Operative Vitals Scan API"
API_VERSION = "0.1.0"
API_HOST = "0.0.0.0"
API_PORT: int = 8000
