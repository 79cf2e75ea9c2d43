import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from ...exceptions import Forbidden, InvalidState, NotFound, SlotAlreadyBooked, ValidationFailed
from ...models import ACTIVE_APPOINTMENT_STATUSES, TERMINAL_APPOINTMENT_STATUSES, utcnow
from ..ports.appointments_repo import AppointmentsRepository
from ..ports.notifier import Notifier
from ..ports.user_repo import UserRepository
from ..query import Caller, Page, QueryOptions, Range
from ..scheduling import candidate_slots, is_valid_time

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("date", "time", "reason", "notes", "pre_consultation_form")


def _clean_symptoms(form: Dict[str, Any]) -> List[str]:
    return [s for s in (form.get("symptoms") or []) if str(s).strip()]


@dataclass
class AppointmentsService:
    """Appointment lifecycle: pending -> confirmed -> completed, with
    cancelled reachable from pending/confirmed and a nested reschedule
    approval flow.

    Status checks here are read-then-write and can race; slot exclusivity
    itself is decided by the storage constraint when the write lands.
    """

    repo: AppointmentsRepository
    user_repo: UserRepository
    notifier: Optional[Notifier] = None
    slot_minutes: int = 30
    default_day_start: str = "09:00"
    default_day_end: str = "18:00"

    # ---- helpers -------------------------------------------------------

    def _get(self, appointment_id: str):
        appt = self.repo.get(appointment_id)
        if appt is None:
            raise NotFound("Appointment not found")
        return appt

    def _ensure_participant(self, caller: Caller, appt) -> None:
        if caller.is_admin or caller.id in (appt.patient_id, appt.doctor_id):
            return
        raise Forbidden("Not authorized to access this appointment")

    def _get_doctor(self, doctor_id: str):
        doctor = self.user_repo.get(doctor_id)
        if doctor is None or doctor.role != "doctor":
            raise NotFound("Doctor not found")
        return doctor

    def _notify(self, user_id: Optional[str], type: str, title: str, message: str, appt) -> None:
        if self.notifier is None or not user_id:
            return
        self.notifier.notify(
            user_id,
            type,
            title,
            message,
            link=f"/appointments/{appt.id}",
            details={"appointmentId": appt.id, "date": appt.date.isoformat(), "time": appt.time},
        )

    def _counterpart(self, caller: Caller, appt) -> Optional[str]:
        if caller.id == appt.patient_id:
            return appt.doctor_id
        if caller.id == appt.doctor_id:
            return appt.patient_id
        return None

    @staticmethod
    def _check_time(value: str, field: str = "time") -> None:
        if not is_valid_time(value):
            raise ValidationFailed(f"Invalid {field} format. Use HH:MM")

    # ---- queries -------------------------------------------------------

    def list_appointments(self, caller: Caller, options: QueryOptions, status: Optional[str] = None, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Page:
        filters: Dict[str, Any] = {}
        if status:
            filters["status"] = status
        if start_date or end_date:
            filters["date"] = Range(gte=start_date, lte=end_date)
        return self.repo.list(filters, options, caller)

    def get_appointment(self, caller: Caller, appointment_id: str):
        appt = self._get(appointment_id)
        self._ensure_participant(caller, appt)
        return appt

    def available_slots(self, doctor_id: str, day: date) -> List[str]:
        doctor = self._get_doctor(doctor_id)
        candidates = candidate_slots(
            doctor.availability,
            day,
            self.slot_minutes,
            self.default_day_start,
            self.default_day_end,
        )
        if not candidates:
            return []
        booked = set(self.repo.booked_times(doctor_id, day))
        return [slot for slot in candidates if slot not in booked]

    def doctor_schedule(self, caller: Caller, start: date, end: date) -> List[Any]:
        if end < start:
            raise ValidationFailed("End date must not be before start date")
        return self.repo.schedule_for_doctor(caller.id, start, end)

    # ---- transitions ---------------------------------------------------

    def create(self, caller: Caller, data: Dict[str, Any]):
        form = data.get("pre_consultation_form") or {}
        if not _clean_symptoms(form):
            raise ValidationFailed("At least one symptom must be specified")
        self._check_time(data["time"])

        if caller.role == "patient":
            patient_id = caller.id
        else:
            patient_id = data.get("patient_id")
            if not patient_id:
                raise ValidationFailed("Patient ID is required")
            patient = self.user_repo.get(patient_id)
            if patient is None or patient.role != "patient":
                raise NotFound("Patient not found")

        doctor = self._get_doctor(data["doctor_id"])
        if not doctor.is_active:
            raise NotFound("Doctor not found")

        # Advisory only; the insert below is what the constraint judges
        if self.repo.find_conflict(doctor.id, data["date"], data["time"]):
            raise SlotAlreadyBooked()

        appt = self.repo.create({
            "patient_id": patient_id,
            "doctor_id": doctor.id,
            "date": data["date"],
            "time": data["time"],
            "reason": data["reason"],
            "notes": data.get("notes"),
            "pre_consultation_form": form,
            "status": "pending",
        })
        logger.info(f"Appointment {appt.id} booked with doctor {doctor.id} for {appt.date} {appt.time}")
        self._notify(doctor.id, "appointment_created", "New appointment request",
                     f"A new appointment was requested for {appt.date.isoformat()} at {appt.time}.", appt)
        return appt

    def update(self, caller: Caller, appointment_id: str, changes: Dict[str, Any]):
        appt = self._get(appointment_id)
        self._ensure_participant(caller, appt)

        data = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}
        if not data:
            return appt

        moves_slot = ("date" in data and data["date"] != appt.date) or ("time" in data and data["time"] != appt.time)
        if moves_slot:
            if appt.status in TERMINAL_APPOINTMENT_STATUSES:
                raise InvalidState(f"Cannot move a {appt.status} appointment")
            if "time" in data:
                self._check_time(data["time"])
            if self.repo.find_conflict(appt.doctor_id, data.get("date", appt.date), data.get("time", appt.time), exclude_id=appt.id):
                raise SlotAlreadyBooked()

        if "pre_consultation_form" in data and not _clean_symptoms(data["pre_consultation_form"]):
            raise ValidationFailed("At least one symptom must be specified")

        return self.repo.update(appt.id, data)

    def confirm(self, caller: Caller, appointment_id: str):
        appt = self._get(appointment_id)
        if not caller.is_admin and caller.id != appt.doctor_id:
            raise Forbidden("Only the assigned doctor can confirm this appointment")
        if appt.status != "pending":
            raise InvalidState("Only pending appointments can be confirmed")

        appt = self.repo.update(appt.id, {"status": "confirmed"})
        self._notify(appt.patient_id, "appointment_confirmed", "Appointment confirmed",
                     f"Your appointment on {appt.date.isoformat()} at {appt.time} was confirmed.", appt)
        return appt

    def cancel(self, caller: Caller, appointment_id: str, reason: Optional[str] = None):
        appt = self._get(appointment_id)
        self._ensure_participant(caller, appt)
        if appt.status == "cancelled":
            raise InvalidState("Appointment is already cancelled")
        if appt.status == "completed":
            raise InvalidState("Cannot cancel completed appointment")

        appt = self.repo.update(appt.id, {
            "status": "cancelled",
            "cancelled_at": utcnow(),
            "cancelled_by": caller.id,
            "cancellation_reason": reason,
        })
        logger.info(f"Appointment {appt.id} cancelled by {caller.role} {caller.id}")
        for user_id in {appt.patient_id, appt.doctor_id} - {caller.id}:
            self._notify(user_id, "appointment_cancelled", "Appointment cancelled",
                         f"The appointment on {appt.date.isoformat()} at {appt.time} was cancelled.", appt)
        return appt

    def request_reschedule(self, caller: Caller, appointment_id: str, new_date: date, new_time: str, reason: str):
        appt = self._get(appointment_id)
        self._ensure_participant(caller, appt)
        if appt.status not in ACTIVE_APPOINTMENT_STATUSES:
            raise InvalidState(f"Cannot reschedule a {appt.status} appointment")
        if appt.reschedule_status == "pending":
            raise InvalidState("Appointment already has a pending reschedule request")
        self._check_time(new_time, "new time")
        if new_date == appt.date and new_time == appt.time:
            raise ValidationFailed("New date and time must differ from the current slot")
        if self.repo.find_conflict(appt.doctor_id, new_date, new_time, exclude_id=appt.id):
            raise SlotAlreadyBooked("Requested time slot is already booked")

        appt = self.repo.update(appt.id, {
            "reschedule_status": "pending",
            "reschedule_requested_by": caller.id,
            "reschedule_requested_at": utcnow(),
            "reschedule_reason": reason,
            "reschedule_new_date": new_date,
            "reschedule_new_time": new_time,
            "reschedule_approved_by": None,
            "reschedule_approved_at": None,
        })
        self._notify(self._counterpart(caller, appt) or appt.doctor_id, "appointment_rescheduled", "Reschedule requested",
                     f"A move to {new_date.isoformat()} at {new_time} was requested.", appt)
        return appt

    def handle_reschedule(self, caller: Caller, appointment_id: str, action: str):
        if action not in ("approve", "reject"):
            raise ValidationFailed('Action must be "approve" or "reject"')
        appt = self._get(appointment_id)
        if not caller.is_admin and caller.id != appt.doctor_id:
            raise Forbidden("Only the assigned doctor or an admin can handle reschedule requests")
        if appt.reschedule_status != "pending":
            raise InvalidState("No pending reschedule request for this appointment")

        decision = {
            "reschedule_approved_by": caller.id,
            "reschedule_approved_at": utcnow(),
        }
        if action == "reject":
            appt = self.repo.update(appt.id, {**decision, "reschedule_status": "rejected"})
        else:
            if appt.status not in ACTIVE_APPOINTMENT_STATUSES:
                raise InvalidState(f"Cannot reschedule a {appt.status} appointment")
            new_date, new_time = appt.reschedule_new_date, appt.reschedule_new_time
            if self.repo.find_conflict(appt.doctor_id, new_date, new_time, exclude_id=appt.id):
                raise SlotAlreadyBooked()
            # A failed write leaves date/time and the pending request untouched
            appt = self.repo.update(appt.id, {
                **decision,
                "date": new_date,
                "time": new_time,
                "reschedule_status": "approved",
            })

        requester = appt.reschedule_requested_by
        if requester and requester != caller.id:
            self._notify(requester, "appointment_rescheduled", f"Reschedule {appt.reschedule_status}",
                         f"Your reschedule request was {appt.reschedule_status}.", appt)
        return appt

    def ensure_completable(self, appointment_id: str):
        appt = self._get(appointment_id)
        if appt.status != "confirmed":
            raise InvalidState("Only confirmed appointments can be completed")
        return appt

    def complete(self, appointment_id: str, consultation_id: Optional[str] = None):
        appt = self.ensure_completable(appointment_id)
        data: Dict[str, Any] = {"status": "completed"}
        if consultation_id:
            data["consultation_id"] = consultation_id
        return self.repo.update(appt.id, data)

    def link(self, appointment_id: str, **refs: Optional[str]):
        """Record consultation/prescription/payment back-references."""
        allowed = {"consultation_id", "prescription_id", "payment_id"}
        data = {k: v for k, v in refs.items() if k in allowed and v}
        if not data:
            return self._get(appointment_id)
        appt = self.repo.update(appointment_id, data)
        if appt is None:
            raise NotFound("Appointment not found")
        return appt

    def delete(self, appointment_id: str) -> None:
        if not self.repo.delete(appointment_id):
            raise NotFound("Appointment not found")
        logger.info(f"Appointment {appointment_id} deleted")
