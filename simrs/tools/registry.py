"""Declarations of the tools the coordinator model may call.

The set is closed: :class:`ToolName` enumerates every tool, each with a
pydantic argument model.  The model only ever sees the rendered schemas;
the executor validates the arguments again before running a handler.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from simrs.config import WEB_SEARCH_MAX_USES


class ToolName(str, Enum):
    GET_PATIENT_INFO = "getPatientInfo"
    SCHEDULE_APPOINTMENT = "scheduleAppointment"
    GET_MEDICAL_RECORDS = "getMedicalRecords"
    GET_BILLING_INFO = "getBillingInfo"
    GENERATE_DOCUMENT = "generateDocument"


# ── Argument models ─────────────────────────────────────────────────


class _ToolArgs(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class GetPatientInfoArgs(_ToolArgs):
    query: str = Field(..., min_length=1, description="Nama pasien atau ID pasien (contoh: P001)")


class ScheduleAppointmentArgs(_ToolArgs):
    patientId: str = Field(..., min_length=1, description="ID Pasien")
    doctorName: str = Field(..., min_length=1, description="Nama Dokter")
    date: str = Field(..., min_length=1, description="Tanggal dan Jam (Format: YYYY-MM-DD HH:MM)")


class PatientIdArgs(_ToolArgs):
    patientId: str = Field(..., min_length=1, description="ID Pasien")


class GenerateDocumentArgs(_ToolArgs):
    patientId: str = Field(..., min_length=1, description="ID Pasien")
    docType: str = Field(..., min_length=1, description="Jenis dokumen (medical_record, referral)")


# ── Declarations ────────────────────────────────────────────────────


@dataclass(frozen=True)
class ToolDeclaration:
    name: ToolName
    description: str
    args_model: type[_ToolArgs]

    @property
    def parameters(self) -> dict[str, dict[str, Any]]:
        """Parameter name -> ``{type, description, required}``."""
        schema = self.args_model.model_json_schema()
        required = set(schema.get("required", []))
        return {
            param: {
                "type": spec.get("type", "string"),
                "description": spec.get("description", ""),
                "required": param in required,
            }
            for param, spec in schema["properties"].items()
        }

    def to_anthropic_tool(self) -> dict[str, Any]:
        """Render the declaration in the shape ``ChatAnthropic.bind_tools`` accepts."""
        params = self.parameters
        return {
            "name": self.name.value,
            "description": self.description,
            "input_schema": {
                "type": "object",
                "properties": {
                    param: {"type": spec["type"], "description": spec["description"]}
                    for param, spec in params.items()
                },
                "required": [param for param, spec in params.items() if spec["required"]],
            },
        }


TOOL_REGISTRY: dict[ToolName, ToolDeclaration] = {
    decl.name: decl
    for decl in (
        ToolDeclaration(
            ToolName.GET_PATIENT_INFO,
            "Mengambil informasi dasar pasien berdasarkan nama atau ID. "
            "Gunakan ini untuk Agent Informasi Pasien.",
            GetPatientInfoArgs,
        ),
        ToolDeclaration(
            ToolName.SCHEDULE_APPOINTMENT,
            "Menjadwalkan janji temu baru. Gunakan ini untuk Agent Penjadwalan.",
            ScheduleAppointmentArgs,
        ),
        ToolDeclaration(
            ToolName.GET_MEDICAL_RECORDS,
            "Mengambil riwayat medis pasien. Gunakan ini untuk Agent Rekam Medis.",
            PatientIdArgs,
        ),
        ToolDeclaration(
            ToolName.GET_BILLING_INFO,
            "Mengecek status tagihan atau asuransi. Gunakan ini untuk Agent Billing.",
            PatientIdArgs,
        ),
        ToolDeclaration(
            ToolName.GENERATE_DOCUMENT,
            "Membuat dokumen resmi (PDF/DOCX) untuk rekam medis atau rujukan.",
            GenerateDocumentArgs,
        ),
    )
}

# Anthropic server tool: searches run on the backend and come back as citations.
WEB_SEARCH_TOOL_NAME = "web_search"


def web_search_tool() -> dict[str, Any]:
    return {
        "type": "web_search_20250305",
        "name": WEB_SEARCH_TOOL_NAME,
        "max_uses": WEB_SEARCH_MAX_USES,
    }


def lookup_tool(name: str) -> ToolDeclaration | None:
    """Return the declaration for *name*, or ``None`` if the model made it up."""
    try:
        return TOOL_REGISTRY[ToolName(name)]
    except ValueError:
        return None
