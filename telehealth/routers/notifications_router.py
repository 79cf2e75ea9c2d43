from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..application.query import Caller, QueryOptions
from ..application.services.notification_service import NotificationService
from ..dependencies import get_caller, get_notification_service, query_options, require_roles
from ..exceptions import create_success_response
from ..schemas.common.common import dump, dump_many
from ..schemas.notifications.notification import NotificationCreate, NotificationOut

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
def get_notifications(
    type: Optional[str] = None,
    is_read: Optional[bool] = Query(None, alias="isRead"),
    options: QueryOptions = Depends(query_options),
    caller: Caller = Depends(get_caller),
    service: NotificationService = Depends(get_notification_service),
):
    page, unread = service.list_for(caller, options, is_read=is_read, type=type)
    return create_success_response(
        "Notifications retrieved successfully",
        {
            "items": dump_many(NotificationOut, page.items),
            "pagination": page.page_info(),
            "unreadCount": unread,
        },
    )


@router.put("/read-all")
def mark_all_read(
    caller: Caller = Depends(get_caller),
    service: NotificationService = Depends(get_notification_service),
):
    count = service.mark_all_read(caller)
    return create_success_response("All notifications marked as read", {"updated": count})


@router.put("/{notification_id}/read")
def mark_read(
    notification_id: str,
    caller: Caller = Depends(get_caller),
    service: NotificationService = Depends(get_notification_service),
):
    notification = service.mark_read(caller, notification_id)
    return create_success_response("Notification marked as read", {"notification": dump(NotificationOut, notification)})


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: str,
    caller: Caller = Depends(get_caller),
    service: NotificationService = Depends(get_notification_service),
):
    service.delete(caller, notification_id)
    return create_success_response("Notification deleted successfully")


@router.post("", status_code=201)
def create_notification(
    body: NotificationCreate,
    caller: Caller = Depends(require_roles("admin")),
    service: NotificationService = Depends(get_notification_service),
):
    notification = service.create(body.model_dump(exclude_none=True))
    return create_success_response("Notification created successfully", {"notification": dump(NotificationOut, notification)})
