import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import String, cast, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from .....application.query import Caller, Contains, Page, QueryOptions, Range
from .....exceptions import ValidationFailed
from .....models import utcnow
from ..policies import ResourcePolicy

logger = logging.getLogger(__name__)


class SqlCrudRepository:
    """List/get/create/update/delete for one SQLModel table, shaped by a policy."""

    def __init__(self, session: Session, policy: ResourcePolicy):
        self.session = session
        self.policy = policy
        self.model = policy.model

    @property
    def label(self) -> str:
        return self.policy.label

    def _column(self, name: str):
        column = getattr(self.model, name, None)
        if column is None:
            raise ValueError(f"{self.model.__name__} has no column {name!r}")
        return column

    def _where(self, stmt, filters: Optional[Dict[str, Any]]):
        for name, value in (filters or {}).items():
            column = self._column(name)
            if isinstance(value, Range):
                if value.gte is not None:
                    stmt = stmt.where(column >= value.gte)
                if value.lte is not None:
                    stmt = stmt.where(column <= value.lte)
            elif isinstance(value, Contains):
                # JSON arrays serialise their strings quoted
                stmt = stmt.where(cast(column, String).icontains(f'"{value.value}"', autoescape=True))
            elif isinstance(value, (list, tuple, set, frozenset)):
                stmt = stmt.where(column.in_(list(value)))
            elif value is None:
                stmt = stmt.where(column.is_(None))
            else:
                stmt = stmt.where(column == value)
        return stmt

    def _order_by(self, stmt, options: QueryOptions):
        field = options.sort_field or self.policy.default_sort
        descending = options.descending if options.sort_field else self.policy.default_descending
        if field not in self.policy.sort_fields:
            raise ValidationFailed(
                f"Cannot sort {self.label.lower()}s by {field!r}",
                {"allowed": list(self.policy.sort_fields)},
            )
        column = self._column(field)
        primary = column.desc() if descending else column.asc()
        # id as tiebreaker keeps pages stable
        return stmt.order_by(primary, self.model.id)

    def list(self, filters: Optional[Dict[str, Any]] = None, options: Optional[QueryOptions] = None, caller: Optional[Caller] = None) -> Page:
        options = options or QueryOptions()
        stmt = self._where(select(self.model), filters)

        owner = self.policy.owner_filter(caller)
        if owner is not None:
            column, value = owner
            stmt = stmt.where(self._column(column) == value)

        if options.search and self.policy.search_fields:
            stmt = stmt.where(or_(*(
                self._column(name).icontains(options.search, autoescape=True)
                for name in self.policy.search_fields
            )))

        total = self.session.exec(select(func.count()).select_from(stmt.subquery())).one()
        rows = self.session.exec(
            self._order_by(stmt, options).offset(options.offset).limit(options.limit)
        ).all()
        return Page(items=list(rows), page=options.page, limit=options.limit, total=total)

    def find_all(self, filters: Optional[Dict[str, Any]] = None, order_by: Optional[List[str]] = None) -> List[Any]:
        stmt = self._where(select(self.model), filters)
        for name in order_by or []:
            column = self._column(name.lstrip("-"))
            stmt = stmt.order_by(column.desc() if name.startswith("-") else column.asc())
        return list(self.session.exec(stmt).all())

    def find_one(self, filters: Dict[str, Any]) -> Optional[Any]:
        return self.session.exec(self._where(select(self.model), filters)).first()

    def get(self, item_id: str) -> Optional[Any]:
        return self.session.get(self.model, item_id)

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        stmt = self._where(select(self.model), filters)
        return self.session.exec(select(func.count()).select_from(stmt.subquery())).one()

    def _commit(self, obj: SQLModel) -> SQLModel:
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        self.session.refresh(obj)
        return obj

    def create(self, data: Dict[str, Any]) -> Any:
        obj = self.model(**data)
        self.session.add(obj)
        return self._commit(obj)

    def update(self, item_id: str, data: Dict[str, Any]) -> Optional[Any]:
        obj = self.get(item_id)
        if obj is None:
            return None
        for key, value in data.items():
            self._column(key)
            setattr(obj, key, value)
        if hasattr(obj, "updated_at"):
            obj.updated_at = utcnow()
        self.session.add(obj)
        try:
            return self._commit(obj)
        except IntegrityError:
            # rollback expired the instance; reload the stored row
            self.session.refresh(obj)
            raise

    def update_many(self, filters: Dict[str, Any], data: Dict[str, Any]) -> int:
        rows = self.find_all(filters)
        for obj in rows:
            for key, value in data.items():
                setattr(obj, key, value)
            if hasattr(obj, "updated_at"):
                obj.updated_at = utcnow()
            self.session.add(obj)
        self.session.commit()
        return len(rows)

    def delete(self, item_id: str) -> bool:
        obj = self.get(item_id)
        if obj is None:
            return False
        self.session.delete(obj)
        self.session.commit()
        logger.info(f"Deleted {self.label.lower()} {item_id}")
        return True
