from datetime import date
from typing import Any, Dict, List, Optional, Protocol

from ..query import Caller, Page, QueryOptions


class AppointmentsRepository(Protocol):
    def list(self, filters: Dict[str, Any], options: QueryOptions, caller: Optional[Caller] = None) -> Page:
        ...

    def get(self, appointment_id: str) -> Optional[Any]:
        ...

    def find_conflict(self, doctor_id: str, appointment_date: date, appointment_time: str, exclude_id: Optional[str] = None) -> bool:
        ...

    def booked_times(self, doctor_id: str, appointment_date: date) -> List[str]:
        ...

    def schedule_for_doctor(self, doctor_id: str, start: date, end: date) -> List[Any]:
        ...

    def create(self, data: Dict[str, Any]) -> Any:
        ...

    def update(self, appointment_id: str, data: Dict[str, Any]) -> Optional[Any]:
        ...

    def delete(self, appointment_id: str) -> bool:
        ...
