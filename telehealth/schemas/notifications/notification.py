# telehealth/schemas/notifications/notification.py
import datetime as dt
from typing import Any, Dict, Literal, Optional

from pydantic import Field

from ..common.common import CamelModel


class NotificationCreate(CamelModel):
    user_id: str
    type: str
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=1000)
    link: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    priority: Literal["low", "medium", "high", "urgent"] = "medium"
    expires_at: Optional[dt.datetime] = None


class NotificationOut(CamelModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    is_read: bool
    read_at: Optional[dt.datetime] = None
    link: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    priority: str
    expires_at: Optional[dt.datetime] = None
    created_at: dt.datetime
