"""In-memory hospital data store.

Backs every tool the agent can call.  The store is a plain single-writer
structure: the dispatch loop executes tools sequentially, so no locking is
done here.  A store shared by several sessions would need per-patient
locking around :meth:`HospitalStore.schedule_appointment`.

Known limitations, kept on purpose:

* :meth:`find_patient_by_name` returns the first substring match in
  insertion order; similar names are not disambiguated.
* :meth:`schedule_appointment` checks neither that the patient exists nor
  that the doctor's slot is free.
"""

from __future__ import annotations

import itertools
import logging

from simrs.models import Appointment, Bill, Patient

logger = logging.getLogger(__name__)

MEDICAL_RECORD_TEMPLATE = (
    "LAPORAN MEDIS RESMI\n"
    "Nama: {name}\n"
    "ID: {id}\n"
    "Riwayat: {history}\n\n"
    "Dokumen ini dihasilkan secara otomatis dan valid untuk keperluan administrasi."
)


class HospitalStore:
    """Keyed lookup and write operations over patients, appointments and bills."""

    def __init__(
        self,
        patients: list[Patient] | None = None,
        appointments: list[Appointment] | None = None,
        bills: list[Bill] | None = None,
    ) -> None:
        self.patients: list[Patient] = list(patients or [])
        self.appointments: list[Appointment] = list(appointments or [])
        self.bills: list[Bill] = list(bills or [])
        self._appointment_ids = itertools.count(len(self.appointments) + 1)

    @classmethod
    def with_seed_data(cls) -> HospitalStore:
        """Build a store holding the demo records the clinic UI ships with."""
        return cls(
            patients=[
                Patient(
                    id="P001",
                    name="Budi Santoso",
                    dob="1985-05-20",
                    bpjs_number="000123456789",
                    history=["Hipertensi", "Diabetes Tipe 2"],
                ),
                Patient(
                    id="P002",
                    name="Siti Aminah",
                    dob="1992-11-10",
                    bpjs_number="000987654321",
                    history=["Asma Bronkial"],
                ),
            ],
            appointments=[
                Appointment(id="A001", patient_id="P001", doctor="Dr. Andi Sp.PD",
                            date="2023-11-15 10:00", status="Completed"),
                Appointment(id="A002", patient_id="P002", doctor="Dr. Budi Sp.P",
                            date="2023-12-20 14:00", status="Scheduled"),
            ],
            bills=[
                Bill(id="B001", patient_id="P001", amount=150000, status="Paid",
                     insurance_covered=True),
                Bill(id="B002", patient_id="P002", amount=750000, status="Pending",
                     insurance_covered=False),
            ],
        )

    # ── Patients ─────────────────────────────────────────────────────

    def find_patient_by_name(self, name: str) -> Patient | None:
        """Case-insensitive substring match; the first patient that matches wins."""
        needle = name.lower()
        return next((p for p in self.patients if needle in p.name.lower()), None)

    def find_patient_by_id(self, patient_id: str) -> Patient | None:
        return next((p for p in self.patients if p.id == patient_id), None)

    # ── Appointments ─────────────────────────────────────────────────

    def list_appointments(self, patient_id: str) -> list[Appointment]:
        return [a for a in self.appointments if a.patient_id == patient_id]

    def schedule_appointment(self, patient_id: str, doctor: str, date: str) -> Appointment:
        """Append a new ``Scheduled`` appointment.  Not idempotent."""
        appointment = Appointment(
            id=self._next_appointment_id(),
            patient_id=patient_id,
            doctor=doctor,
            date=date,
            status="Scheduled",
        )
        self.appointments.append(appointment)
        logger.info(
            "Scheduled appointment %s for %s with %s at %s",
            appointment.id, patient_id, doctor, date,
        )
        return appointment

    def _next_appointment_id(self) -> str:
        taken = {a.id for a in self.appointments}
        while True:
            candidate = f"A{next(self._appointment_ids):03d}"
            if candidate not in taken:
                return candidate

    # ── Billing ──────────────────────────────────────────────────────

    def list_billing(self, patient_id: str) -> list[Bill]:
        return [b for b in self.bills if b.patient_id == patient_id]

    # ── Medical records ──────────────────────────────────────────────

    def compose_medical_record_text(self, patient_id: str) -> str | None:
        """Return the printable medical record summary, or ``None`` for unknown patients."""
        patient = self.find_patient_by_id(patient_id)
        if patient is None:
            return None
        return MEDICAL_RECORD_TEMPLATE.format(
            name=patient.name,
            id=patient.id,
            history=", ".join(patient.history),
        )
