"""
api/app.py — FastAPI application factory
==========================================
Creates the FastAPI instance and attaches the scan session to
`app.state`.  On shutdown any running scan is cancelled so the camera is
always released.

CORS
----
All origins are allowed by default (local development and demos).
Restrict `allow_origins` to the portal's domain in a real deployment.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from api.session import ScanSession
from config import API_TITLE, API_VERSION
from utils.logger import get_logger

logger = get_logger("api.app")


def create_app(session: ScanSession | None = None) -> FastAPI:
    """
    Construct and return the configured FastAPI application.

    Tests pass their own `ScanSession` (fake camera, seeded RNG, fast
    simulation ticks).
    """
    session = session if session is not None else ScanSession()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Shutting down — stopping any running scan.")
        app.state.session.cancel()

    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        description=(
            "Contactless (rPPG) vitals scan for remote post-operative monitoring. "
            "⚠️ Experimental — not a medical device."
        ),
        lifespan=lifespan,
    )
    app.state.session = session

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app
