from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class NotificationOut(BaseModel):
    id: int
    user_id: int
    type: str
    title: str
    message: str
    priority: str
    is_read: bool
    data: Dict[str, Any] = {}
    email_sent: bool = False
    created_at: datetime
    time_ago: Optional[str] = None

    class Config:
        from_attributes = True


class ChannelPreference(BaseModel):
    email: bool = True
    in_app: bool = True


class PreferencesOut(BaseModel):
    user_id: int
    email_notifications: bool = True
    in_app_notifications: bool = True
    notification_types: Dict[str, ChannelPreference] = {}


class PreferencesUpdate(BaseModel):
    email_notifications: Optional[bool] = None
    in_app_notifications: Optional[bool] = None
    notification_types: Optional[Dict[str, ChannelPreference]] = None


class UnreadCountOut(BaseModel):
    unread_count: int
