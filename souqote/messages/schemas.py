from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator

from souqote.users.schemas import UserSummary


class MessageCreate(BaseModel):
    rfq_id: int
    receiver_id: int
    content: str = ""
    attachments: List[str] = []


class MessageOut(BaseModel):
    id: int
    rfq_id: int
    sender_id: int
    receiver_id: int
    content: str
    thread_id: str
    attachments: List[str] = []
    is_read: bool
    created_at: datetime

    sender_name: Optional[str] = None
    sent_ago: Optional[str] = None

    @field_validator("attachments", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    class Config:
        from_attributes = True


class ConversationOut(BaseModel):
    thread_id: str
    rfq_id: int
    rfq_title: str
    other_user: Optional[UserSummary] = None
    other_user_name: str
    last_message: str
    last_message_at: datetime
    last_message_ago: str
    message_count: int
    unread_count: int


class ThreadReadResult(BaseModel):
    thread_id: str
    updated: int


class MessageUnreadCount(BaseModel):
    unread: int
