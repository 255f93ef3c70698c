"""Pydantic schemas for the FastAPI endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from simrs.models import AgentLabel, GeneratedDocument, GroundingSource, TranscriptEntry, TurnResult


class ChatRequest(BaseModel):
    """Incoming chat message from the frontend."""

    message: str = Field(..., min_length=1, max_length=2000, description="The user's message")


class ChatResponse(BaseModel):
    """One assistant turn, ready for rendering."""

    reply: str = Field(..., description="The coordinator's answer")
    agent_used: AgentLabel
    agent_display_name: str
    grounding_urls: list[str] = Field(default_factory=list)
    grounding_sources: list[GroundingSource] = Field(default_factory=list)
    generated_document: GeneratedDocument | None = None
    session_id: str

    @classmethod
    def from_turn(cls, result: TurnResult, session_id: str) -> ChatResponse:
        return cls(
            reply=result.text,
            agent_used=result.agent_used,
            agent_display_name=result.agent_used.display_name,
            grounding_urls=result.grounding_urls,
            grounding_sources=result.grounding_sources,
            generated_document=result.generated_document,
            session_id=session_id,
        )


class TranscriptResponse(BaseModel):
    session_id: str
    configured: bool
    messages: list[TranscriptEntry]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    service: str = "simrs-agent"
