from typing import Any, Dict, Optional, Protocol

from ..query import Caller, Page, QueryOptions


class UserRepository(Protocol):
    def get(self, user_id: str) -> Optional[Any]:
        ...

    def get_by_email(self, email: str) -> Optional[Any]:
        ...

    def email_taken(self, email: str, exclude_id: Optional[str] = None) -> bool:
        ...

    def list(self, filters: Dict[str, Any], options: QueryOptions, caller: Optional[Caller] = None) -> Page:
        ...

    def create(self, data: Dict[str, Any]) -> Any:
        ...

    def update(self, user_id: str, data: Dict[str, Any]) -> Optional[Any]:
        ...
