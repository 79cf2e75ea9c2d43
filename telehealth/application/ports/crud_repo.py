from typing import Any, Dict, List, Optional, Protocol

from ..query import Caller, Page, QueryOptions


class CrudRepository(Protocol):
    label: str

    def list(self, filters: Dict[str, Any], options: QueryOptions, caller: Optional[Caller] = None) -> Page:
        ...

    def find_all(self, filters: Dict[str, Any]) -> List[Any]:
        ...

    def find_one(self, filters: Dict[str, Any]) -> Optional[Any]:
        ...

    def get(self, item_id: str) -> Optional[Any]:
        ...

    def create(self, data: Dict[str, Any]) -> Any:
        ...

    def update(self, item_id: str, data: Dict[str, Any]) -> Optional[Any]:
        ...

    def update_many(self, filters: Dict[str, Any], data: Dict[str, Any]) -> int:
        ...

    def delete(self, item_id: str) -> bool:
        ...

    def count(self, filters: Dict[str, Any]) -> int:
        ...
