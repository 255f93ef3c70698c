"""FastAPI server for the SIMRS agent.

Run with:
    uvicorn simrs.server:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from simrs.api.routes import router
from simrs.config import CORS_ORIGINS, SERVER_HOST, SERVER_PORT
from simrs.services.store import HospitalStore
from simrs.session import open_session

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: initialise / tear-down shared resources ────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Start-up: seed the hospital store and open the single chat session.

    Both live in app state; the store is kept when the session is reset.
    """
    application.state.store = HospitalStore.with_seed_data()
    application.state.session = open_session(application.state.store)
    logger.info("SIMRS agent ready (configured=%s).", application.state.session.configured)
    yield


# ── FastAPI application ──────────────────────────────────────────────
app = FastAPI(
    title="SIMRS AI Agent",
    description=(
        "Hospital information system coordinator for patient info, scheduling, "
        "medical records and billing through one chat."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request-ID middleware ────────────────────────────────────────────
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Attach a request ID (echoed as ``X-Request-ID``) for log correlation."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.info(
        "[%s] %s %s", request_id, request.method, request.url.path,
    )
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "SIMRS AI Agent",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
    }


if __name__ == "__main__":
    logger.info("Starting SIMRS API server on %s:%d", SERVER_HOST, SERVER_PORT)
    uvicorn.run(
        "simrs.server:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=True,
    )
