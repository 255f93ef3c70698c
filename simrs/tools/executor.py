"""Executes tool calls requested by the coordinator model.

Every call produces a :class:`ToolOutcome`; nothing raised by a handler
escapes :meth:`ToolExecutor.execute`.  Unknown tool names, invalid
arguments and handler faults all become ``{"error": ...}`` payloads that
are sent back to the model like any other result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from simrs.models import GeneratedDocument
from simrs.services.store import HospitalStore
from simrs.tools.registry import (
    GenerateDocumentArgs,
    GetPatientInfoArgs,
    PatientIdArgs,
    ScheduleAppointmentArgs,
    ToolName,
    lookup_tool,
)

logger = logging.getLogger(__name__)

FUNCTION_NOT_FOUND = "Function not found"

_DOCUMENT_TITLES = {
    "medical_record": "Rekam_Medis_{patient_id}.pdf",
    "referral": "Surat_Rujukan_{patient_id}.pdf",
}


@dataclass
class ToolOutcome:
    """Result of one tool call.

    ``executed`` is true when the tool actually ran against the store and
    should count towards the turn's agent label.
    """

    name: str
    payload: Any
    executed: bool = False
    document: GeneratedDocument | None = None

    @property
    def is_error(self) -> bool:
        return isinstance(self.payload, dict) and "error" in self.payload


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "arguments"
        problems.append(f"{field}: {err['msg']}")
    return "Invalid arguments (" + "; ".join(problems) + ")"


class ToolExecutor:
    """Dispatch table from :class:`ToolName` to handlers bound to a store."""

    def __init__(self, store: HospitalStore) -> None:
        self.store = store

    def execute(self, name: str, args: dict[str, Any] | None) -> ToolOutcome:
        logger.info("[Function Call] %s with args: %s", name, args)

        declaration = lookup_tool(name)
        if declaration is None:
            logger.warning("Model requested unknown tool %r", name)
            return ToolOutcome(name=name, payload={"error": FUNCTION_NOT_FOUND})

        try:
            parsed = declaration.args_model.model_validate(args or {})
        except ValidationError as exc:
            message = _describe_validation_error(exc)
            logger.warning("Rejected %s call: %s", name, message)
            return ToolOutcome(name=name, payload={"error": message})

        handler = _HANDLERS[declaration.name]
        try:
            return handler(self, parsed)
        except Exception as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            return ToolOutcome(name=name, payload={"error": str(exc) or type(exc).__name__})

    # ── Handlers ─────────────────────────────────────────────────────

    def _get_patient_info(self, args: GetPatientInfoArgs) -> ToolOutcome:
        patient = self.store.find_patient_by_name(args.query) or self.store.find_patient_by_id(args.query)
        payload = patient.model_dump() if patient else {"message": "Pasien tidak ditemukan."}
        return ToolOutcome(name=ToolName.GET_PATIENT_INFO.value, payload=payload, executed=True)

    def _schedule_appointment(self, args: ScheduleAppointmentArgs) -> ToolOutcome:
        appointment = self.store.schedule_appointment(args.patientId, args.doctorName, args.date)
        return ToolOutcome(
            name=ToolName.SCHEDULE_APPOINTMENT.value,
            payload={"message": "Janji temu berhasil dibuat", "detail": appointment.model_dump()},
            executed=True,
        )

    def _get_medical_records(self, args: PatientIdArgs) -> ToolOutcome:
        patient = self.store.find_patient_by_id(args.patientId)
        payload = {"history": patient.history} if patient else {"message": "Data medis tidak ditemukan"}
        return ToolOutcome(name=ToolName.GET_MEDICAL_RECORDS.value, payload=payload, executed=True)

    def _get_billing_info(self, args: PatientIdArgs) -> ToolOutcome:
        bills = self.store.list_billing(args.patientId)
        payload: Any = (
            [bill.model_dump() for bill in bills] if bills
            else {"message": "Tidak ada tagihan tertunggak."}
        )
        return ToolOutcome(name=ToolName.GET_BILLING_INFO.value, payload=payload, executed=True)

    def _generate_document(self, args: GenerateDocumentArgs) -> ToolOutcome:
        content = self.store.compose_medical_record_text(args.patientId)
        if content is None:
            # Unknown patient: no artifact, and the turn keeps its current label
            return ToolOutcome(name=ToolName.GENERATE_DOCUMENT.value, payload={"error": "Pasien tidak valid."})

        doc_type = args.docType if args.docType in _DOCUMENT_TITLES else "medical_record"
        document = GeneratedDocument(
            title=_DOCUMENT_TITLES[doc_type].format(patient_id=args.patientId),
            content=content,
            doc_type=doc_type,
        )
        return ToolOutcome(
            name=ToolName.GENERATE_DOCUMENT.value,
            payload={"success": True, "message": "Dokumen telah dibuat."},
            executed=True,
            document=document,
        )


_HANDLERS: dict[ToolName, Callable[[ToolExecutor, Any], ToolOutcome]] = {
    ToolName.GET_PATIENT_INFO: ToolExecutor._get_patient_info,
    ToolName.SCHEDULE_APPOINTMENT: ToolExecutor._schedule_appointment,
    ToolName.GET_MEDICAL_RECORDS: ToolExecutor._get_medical_records,
    ToolName.GET_BILLING_INFO: ToolExecutor._get_billing_info,
    ToolName.GENERATE_DOCUMENT: ToolExecutor._generate_document,
}

_missing = set(ToolName) - set(_HANDLERS)
if _missing:
    raise RuntimeError(f"No handler registered for tools: {sorted(t.value for t in _missing)}")
