from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from .....application.ports.user_repo import UserRepository
from .....application.query import Caller, Page, QueryOptions
from .....models import User
from ..policies import USER_POLICY
from .crud_repository_sql import SqlCrudRepository


class SqlUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session
        self.crud = SqlCrudRepository(session, USER_POLICY)

    def get(self, user_id: str) -> Optional[User]:
        return self.crud.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(select(User).where(func.lower(User.email) == email.strip().lower())).first()

    def email_taken(self, email: str, exclude_id: Optional[str] = None) -> bool:
        stmt = select(User.id).where(func.lower(User.email) == email.strip().lower())
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        return self.session.exec(stmt).first() is not None

    def list(self, filters: Dict[str, Any], options: QueryOptions, caller: Optional[Caller] = None) -> Page:
        return self.crud.list(filters, options, caller)

    def create(self, data: Dict[str, Any]) -> User:
        return self.crud.create(data)

    def update(self, user_id: str, data: Dict[str, Any]) -> Optional[User]:
        return self.crud.update(user_id, data)
