from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...exceptions import Forbidden, NotFound, ValidationFailed
from ..ports.crud_repo import CrudRepository
from ..ports.notifier import Notifier
from ..ports.user_repo import UserRepository
from ..query import Caller, Page, QueryOptions
from .appointments_service import AppointmentsService

EDITABLE_FIELDS = ("medications", "diagnoses", "notes", "follow_up_date", "is_active")


@dataclass
class PrescriptionService:
    repo: CrudRepository
    user_repo: UserRepository
    appointments: AppointmentsService
    notifier: Optional[Notifier] = None

    def _get(self, prescription_id: str):
        prescription = self.repo.get(prescription_id)
        if prescription is None:
            raise NotFound("Prescription not found")
        return prescription

    @staticmethod
    def _check_contents(data: Dict[str, Any]) -> None:
        if "medications" in data and not data["medications"]:
            raise ValidationFailed("At least one medication is required")
        if "diagnoses" in data and not data["diagnoses"]:
            raise ValidationFailed("At least one diagnosis is required")

    def list_prescriptions(self, caller: Caller, options: QueryOptions, is_active: Optional[bool] = None) -> Page:
        filters = {"is_active": is_active} if is_active is not None else {}
        return self.repo.list(filters, options, caller)

    def get_prescription(self, caller: Caller, prescription_id: str):
        prescription = self._get(prescription_id)
        if not caller.is_admin and caller.id not in (prescription.patient_id, prescription.doctor_id):
            raise Forbidden("Not authorized to access this prescription")
        return prescription

    def create(self, caller: Caller, data: Dict[str, Any]):
        self._check_contents({"medications": data.get("medications"), "diagnoses": data.get("diagnoses")})
        patient = self.user_repo.get(data["patient_id"])
        if patient is None or patient.role != "patient":
            raise NotFound("Patient not found")

        appointment_id = data.get("appointment_id")
        if appointment_id:
            appt = self.appointments.get_appointment(caller, appointment_id)
            if appt.patient_id != patient.id:
                raise ValidationFailed("Appointment belongs to a different patient")

        record = {k: v for k, v in data.items() if v is not None}
        record["doctor_id"] = caller.id
        prescription = self.repo.create(record)
        if appointment_id:
            self.appointments.link(appointment_id, prescription_id=prescription.id)
        if self.notifier is not None:
            self.notifier.notify(patient.id, "prescription_created", "New prescription",
                                 "Your doctor has issued a new prescription.",
                                 link=f"/prescriptions/{prescription.id}")
        return prescription

    def update(self, caller: Caller, prescription_id: str, changes: Dict[str, Any]):
        prescription = self._get(prescription_id)
        if not caller.is_admin and caller.id != prescription.doctor_id:
            raise Forbidden("Only the prescribing doctor can update this prescription")
        data = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS and v is not None}
        self._check_contents(data)
        if not data:
            return prescription
        return self.repo.update(prescription.id, data)

    def delete(self, prescription_id: str) -> None:
        if not self.repo.delete(prescription_id):
            raise NotFound("Prescription not found")
