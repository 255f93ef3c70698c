"""Domain records and turn results shared across the SIMRS agent."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field


# ── Hospital records ────────────────────────────────────────────────


class Patient(BaseModel):
    id: str
    name: str
    dob: str
    bpjs_number: str = Field(..., description="BPJS (national insurance) number")
    history: list[str] = Field(default_factory=list)


class Appointment(BaseModel):
    id: str
    patient_id: str
    doctor: str
    date: str = Field(..., description="Date and time, YYYY-MM-DD HH:MM")
    status: Literal["Scheduled", "Completed", "Cancelled"] = "Scheduled"


class Bill(BaseModel):
    id: str
    patient_id: str
    amount: int = Field(..., description="Amount in rupiah")
    status: Literal["Paid", "Pending"]
    insurance_covered: bool


# ── Agent attribution ───────────────────────────────────────────────


class AgentLabel(str, Enum):
    """Which sub-agent handled a turn, shown as a badge next to the answer."""

    COORDINATOR = "Coordinator"
    PATIENT_INFO = "PatientInfo"
    SCHEDULER = "Scheduler"
    MEDICAL_RECORDS = "MedicalRecords"
    BILLING = "Billing"
    SEARCH_GROUNDED = "SearchGrounded"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    AgentLabel.COORDINATOR: "Koordinator",
    AgentLabel.PATIENT_INFO: "Agen Informasi Pasien",
    AgentLabel.SCHEDULER: "Penjadwal Janji Temu",
    AgentLabel.MEDICAL_RECORDS: "Agen Rekam Medis",
    AgentLabel.BILLING: "Agen Penagihan & Asuransi",
    AgentLabel.SEARCH_GROUNDED: "Pencarian Web",
}


# ── Turn artifacts ──────────────────────────────────────────────────


class GeneratedDocument(BaseModel):
    """An in-memory document produced by ``generateDocument`` for one turn only."""

    title: str
    content: str
    doc_type: Literal["medical_record", "referral"] = "medical_record"
    file_format: Literal["pdf"] = "pdf"


class GroundingSource(BaseModel):
    url: str
    hostname: str

    @classmethod
    def from_url(cls, url: str) -> GroundingSource:
        return cls(url=url, hostname=urlparse(url).hostname or url)


class TurnResult(BaseModel):
    """Everything the presentation layer needs to render one assistant turn."""

    text: str
    agent_used: AgentLabel = AgentLabel.COORDINATOR
    grounding_urls: list[str] = Field(default_factory=list)
    generated_document: GeneratedDocument | None = None

    @property
    def grounding_sources(self) -> list[GroundingSource]:
        """Grounding URLs paired with the hostname shown in the UI."""
        return [GroundingSource.from_url(url) for url in self.grounding_urls]


class TranscriptEntry(BaseModel):
    """One bubble in the chat transcript."""

    role: Literal["user", "model"]
    text: str
    agent: AgentLabel | None = None
    grounding_urls: list[str] = Field(default_factory=list)
    generated_document: GeneratedDocument | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
