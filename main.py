#!/usr/bin/env python3
"""
Post-Operative Vitals Scan — API entry point
=============================================
Launches the FastAPI backend with Uvicorn.
Run with:  python main.py

⚠️  DISCLAIMER: experimental wellness estimation, NOT a medical device.
    Only the heart rate is derived from the camera signal; every other
    value is a heuristic placeholder.  Do NOT use these readings for
    clinical decisions.
"""

import uvicorn

from api.app import create_app
from config import API_HOST, API_PORT

if __name__ == "__main__":
    uvicorn.run(
        create_app(),
        host=API_HOST,
        port=API_PORT,
        reload=False,
        log_level="info",
    )
