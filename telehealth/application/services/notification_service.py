import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ...exceptions import Forbidden, NotFound, ValidationFailed
from ...models import NOTIFICATION_PRIORITIES, NOTIFICATION_TYPES, utcnow
from ..ports.crud_repo import CrudRepository
from ..ports.user_repo import UserRepository
from ..query import Caller, Page, QueryOptions

logger = logging.getLogger(__name__)


@dataclass
class NotificationService:
    """Per-user inbox. Also the write-through notifier used after
    appointment transitions."""

    repo: CrudRepository
    user_repo: Optional[UserRepository] = None

    def notify(self, user_id: str, type: str, title: str, message: str, link: Optional[str] = None, details: Optional[Dict[str, Any]] = None, priority: str = "medium") -> None:
        # Best-effort: the transition that triggered this has already committed
        try:
            self.repo.create({
                "user_id": user_id,
                "type": type,
                "title": title[:200],
                "message": message[:1000],
                "link": link,
                "details": details,
                "priority": priority,
            })
        except Exception:
            logger.exception(f"Failed to write {type} notification for user {user_id}")

    def list_for(self, caller: Caller, options: QueryOptions, is_read: Optional[bool] = None, type: Optional[str] = None) -> Tuple[Page, int]:
        filters: Dict[str, Any] = {}
        if is_read is not None:
            filters["is_read"] = is_read
        if type:
            filters["type"] = type
        page = self.repo.list(filters, options, caller)
        unread = self.repo.count({"user_id": caller.id, "is_read": False})
        return page, unread

    def _owned(self, caller: Caller, notification_id: str):
        notification = self.repo.get(notification_id)
        if notification is None:
            raise NotFound("Notification not found")
        if notification.user_id != caller.id:
            raise Forbidden("Not authorized to access this notification")
        return notification

    def mark_read(self, caller: Caller, notification_id: str):
        notification = self._owned(caller, notification_id)
        if notification.is_read:
            return notification
        return self.repo.update(notification.id, {"is_read": True, "read_at": utcnow()})

    def mark_all_read(self, caller: Caller) -> int:
        return self.repo.update_many({"user_id": caller.id, "is_read": False}, {"is_read": True, "read_at": utcnow()})

    def delete(self, caller: Caller, notification_id: str) -> None:
        notification = self._owned(caller, notification_id)
        self.repo.delete(notification.id)

    def create(self, data: Dict[str, Any]):
        if data.get("type") not in NOTIFICATION_TYPES:
            raise ValidationFailed("Invalid notification type")
        if data.get("priority", "medium") not in NOTIFICATION_PRIORITIES:
            raise ValidationFailed("Invalid notification priority")
        if self.user_repo is not None and self.user_repo.get(data["user_id"]) is None:
            raise NotFound("User not found")
        return self.repo.create(data)
