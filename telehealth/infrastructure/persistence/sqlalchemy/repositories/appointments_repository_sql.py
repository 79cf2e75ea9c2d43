import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....application.ports.appointments_repo import AppointmentsRepository
from .....application.query import Caller, Page, QueryOptions, Range
from .....exceptions import SlotAlreadyBooked
from .....models import ACTIVE_APPOINTMENT_STATUSES, Appointment
from ..policies import APPOINTMENT_POLICY
from .crud_repository_sql import SqlCrudRepository

logger = logging.getLogger(__name__)


class SqlAppointmentsRepository(AppointmentsRepository):
    """Appointment storage. The partial unique index on (doctor_id, date, time)
    is the only guard on slot exclusivity; its violations surface here as
    SlotAlreadyBooked."""

    def __init__(self, session: Session):
        self.session = session
        self.crud = SqlCrudRepository(session, APPOINTMENT_POLICY)

    def list(self, filters: Dict[str, Any], options: QueryOptions, caller: Optional[Caller] = None) -> Page:
        return self.crud.list(filters, options, caller)

    def get(self, appointment_id: str) -> Optional[Appointment]:
        return self.crud.get(appointment_id)

    def find_conflict(self, doctor_id: str, appointment_date: date, appointment_time: str, exclude_id: Optional[str] = None) -> bool:
        stmt = (
            select(Appointment.id)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.date == appointment_date)
            .where(Appointment.time == appointment_time)
            .where(Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES))
        )
        if exclude_id is not None:
            stmt = stmt.where(Appointment.id != exclude_id)
        return self.session.exec(stmt).first() is not None

    def booked_times(self, doctor_id: str, appointment_date: date) -> List[str]:
        rows = self.session.exec(
            select(Appointment.time)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.date == appointment_date)
            .where(Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES))
        ).all()
        return list(rows)

    def schedule_for_doctor(self, doctor_id: str, start: date, end: date) -> List[Appointment]:
        return self.crud.find_all(
            {"doctor_id": doctor_id, "date": Range(gte=start, lte=end)},
            order_by=["date", "time"],
        )

    def create(self, data: Dict[str, Any]) -> Appointment:
        try:
            return self.crud.create(data)
        except IntegrityError as e:
            logger.info(f"Slot insert rejected for doctor {data.get('doctor_id')} at {data.get('date')} {data.get('time')}: {e.orig}")
            raise SlotAlreadyBooked()

    def update(self, appointment_id: str, data: Dict[str, Any]) -> Optional[Appointment]:
        try:
            return self.crud.update(appointment_id, data)
        except IntegrityError as e:
            logger.info(f"Slot update rejected for appointment {appointment_id}: {e.orig}")
            raise SlotAlreadyBooked()

    def delete(self, appointment_id: str) -> bool:
        return self.crud.delete(appointment_id)
