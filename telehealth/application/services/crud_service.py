from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...exceptions import NotFound
from ..ports.crud_repo import CrudRepository
from ..query import Caller, Page, QueryOptions


@dataclass
class CrudService:
    """Uniform list/get/create/update/delete over one resource repository."""

    repo: CrudRepository

    @property
    def label(self) -> str:
        return self.repo.label

    def _not_found(self) -> NotFound:
        return NotFound(f"{self.label} not found")

    def list(self, filters: Optional[Dict[str, Any]] = None, options: Optional[QueryOptions] = None, caller: Optional[Caller] = None) -> Page:
        return self.repo.list(filters or {}, options or QueryOptions(), caller)

    def get(self, item_id: str) -> Any:
        item = self.repo.get(item_id)
        if item is None:
            raise self._not_found()
        return item

    def create(self, data: Dict[str, Any]) -> Any:
        return self.repo.create(data)

    def update(self, item_id: str, data: Dict[str, Any]) -> Any:
        item = self.repo.update(item_id, data)
        if item is None:
            raise self._not_found()
        return item

    def delete(self, item_id: str) -> None:
        if not self.repo.delete(item_id):
            raise self._not_found()
