"""FastAPI route definitions for the SIMRS agent API."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Request

from simrs.api.schemas import ChatRequest, ChatResponse, HealthResponse, TranscriptResponse
from simrs.session import (
    ConversationSession,
    EmptyMessageError,
    SessionBusyError,
    SessionNotConfiguredError,
    open_session,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_session(request: Request) -> ConversationSession:
    """Retrieve the process-wide conversation session from app state.

    The session is created during the FastAPI lifespan (see ``server.py``)
    and only replaced by ``POST /session/reset``.
    """
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(
            status_code=503,
            detail="The agent is still starting up. Please try again in a moment.",
        )
    return session


def _transcript(session: ConversationSession) -> TranscriptResponse:
    return TranscriptResponse(
        session_id=session.session_id,
        configured=session.configured,
        messages=session.transcript,
    )


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse()


@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, http_request: Request):
    """Send a message to the coordinator and get its answer.

    ``session.submit()`` blocks on the Anthropic API, so it runs in a worker
    thread.  A backend failure does not produce an error status: the reply
    is the apology message, exactly as it appears in the transcript.
    """
    session = _get_session(http_request)
    request_id = getattr(http_request.state, "request_id", "?")

    try:
        result = await asyncio.to_thread(session.submit, request.message)
    except SessionNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except EmptyMessageError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except SessionBusyError as e:
        logger.info("[%s] Rejected chat request: session busy", request_id)
        raise HTTPException(status_code=409, detail=str(e)) from e

    return ChatResponse.from_turn(result, session.session_id)


@router.get("/messages", response_model=TranscriptResponse)
async def messages(http_request: Request):
    """Return the chat transcript of the current session."""
    return _transcript(_get_session(http_request))


@router.post("/session/reset", response_model=TranscriptResponse)
async def reset_session(http_request: Request):
    """Discard the current conversation and start a new session on the same store."""
    previous = _get_session(http_request)
    try:
        # no chat may start on the old session while it is being replaced
        with previous.exclusive():
            session = open_session(http_request.app.state.store)
            http_request.app.state.session = session
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    logger.info("Session %s replaced by %s", previous.session_id, session.session_id)
    return _transcript(session)
