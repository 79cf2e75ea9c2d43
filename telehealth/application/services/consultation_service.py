import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ...exceptions import Forbidden, InvalidState, NotFound
from ...models import utcnow
from ..ports.crud_repo import CrudRepository
from ..ports.notifier import Notifier
from ..query import Caller, Page, QueryOptions
from .appointments_service import AppointmentsService

logger = logging.getLogger(__name__)


@dataclass
class ConsultationService:
    repo: CrudRepository
    appointments: AppointmentsService
    notifier: Optional[Notifier] = None

    def _get(self, consultation_id: str):
        consultation = self.repo.get(consultation_id)
        if consultation is None:
            raise NotFound("Consultation not found")
        return consultation

    def _ensure_doctor(self, caller: Caller, doctor_id: str) -> None:
        if not caller.is_admin and caller.id != doctor_id:
            raise Forbidden("Only the assigned doctor can manage this consultation")

    def list_consultations(self, caller: Caller, options: QueryOptions, status: Optional[str] = None) -> Page:
        filters = {"status": status} if status else {}
        return self.repo.list(filters, options, caller)

    def get_consultation(self, caller: Caller, consultation_id: str):
        consultation = self._get(consultation_id)
        if not caller.is_admin and caller.id not in (consultation.patient_id, consultation.doctor_id):
            raise Forbidden("Not authorized to access this consultation")
        return consultation

    def start(self, caller: Caller, appointment_id: str):
        appt = self.appointments.get_appointment(caller, appointment_id)
        self._ensure_doctor(caller, appt.doctor_id)
        if appt.status != "confirmed":
            raise InvalidState("Appointment must be confirmed before starting consultation")

        existing = self.repo.find_one({"appointment_id": appt.id})
        if existing is not None:
            if existing.status == "active":
                raise InvalidState("Consultation is already active")
            consultation = self.repo.update(existing.id, {"status": "active", "start_time": utcnow(), "end_time": None})
        else:
            consultation = self.repo.create({
                "appointment_id": appt.id,
                "patient_id": appt.patient_id,
                "doctor_id": appt.doctor_id,
                "start_time": utcnow(),
                "status": "active",
            })
            self.appointments.link(appt.id, consultation_id=consultation.id)

        logger.info(f"Consultation {consultation.id} started for appointment {appt.id}")
        if self.notifier is not None:
            self.notifier.notify(appt.patient_id, "consultation_started", "Consultation started",
                                 "Your doctor has started the consultation.",
                                 link=f"/consultations/{consultation.id}", priority="high")
        return consultation

    def end(self, caller: Caller, consultation_id: str, notes: Optional[str] = None, diagnosis: Optional[List[str]] = None, symptoms: Optional[List[str]] = None):
        consultation = self._get(consultation_id)
        self._ensure_doctor(caller, consultation.doctor_id)
        if consultation.status != "active":
            raise InvalidState("Only active consultations can be ended")
        # Nothing is written unless the appointment can still be completed
        self.appointments.ensure_completable(consultation.appointment_id)

        data: Dict[str, Any] = {"status": "completed", "end_time": utcnow()}
        if notes is not None:
            data["notes"] = notes
        if diagnosis is not None:
            data["diagnosis"] = diagnosis
        if symptoms is not None:
            data["symptoms"] = symptoms
        consultation = self.repo.update(consultation.id, data)

        self.appointments.complete(consultation.appointment_id, consultation_id=consultation.id)
        logger.info(f"Consultation {consultation.id} ended after {consultation.duration_minutes} minutes")
        if self.notifier is not None:
            self.notifier.notify(consultation.patient_id, "consultation_ended", "Consultation ended",
                                 "Your consultation has ended.", link=f"/consultations/{consultation.id}")
        return consultation

    def update_notes(self, caller: Caller, consultation_id: str, notes: str):
        consultation = self._get(consultation_id)
        self._ensure_doctor(caller, consultation.doctor_id)
        return self.repo.update(consultation.id, {"notes": notes})
