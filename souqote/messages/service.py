"""
RFQ conversations.

Messages are stored flat and grouped into threads by a derived key built from
the RFQ and the two participants, so either side computes the same thread.
"""
from fastapi import HTTPException, UploadFile, status
from loguru import logger
from sqlalchemy import or_
from sqlalchemy.orm import Session

from souqote.messages import models, schemas
from souqote.notifications.service import create_notification
from souqote.realtime.broker import broker
from souqote.rfqs.service import get_rfq_or_404
from souqote.storage.service import store_upload
from souqote.users import crud as user_crud
from souqote.users.auth import require_profile
from souqote.users.schemas import UserSummary
from souqote.utils.formatting import display_name, time_ago


def make_thread_id(rfq_id: int, user_a: int, user_b: int) -> str:
    return f"{rfq_id}-{min(user_a, user_b)}-{max(user_a, user_b)}"


def _sort_key(message: models.Message):
    return (message.created_at, message.id)


def serialize_message(message: models.Message) -> schemas.MessageOut:
    out = schemas.MessageOut.model_validate(message)
    out.sender_name = display_name(message.sender)
    out.sent_ago = time_ago(message.created_at)
    return out


# =========================
# Send
# =========================
def send_message(db: Session, current_user, payload: schemas.MessageCreate):
    sender = require_profile(db, current_user)

    content = (payload.content or "").strip()
    attachments = [a for a in payload.attachments if a]
    if not content and not attachments:
        raise HTTPException(status_code=400, detail="Message cannot be empty")

    rfq = get_rfq_or_404(db, payload.rfq_id)

    receiver = user_crud.get_user(db, payload.receiver_id)
    if not receiver:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipient not found")
    if receiver.id == sender.id:
        raise HTTPException(status_code=400, detail="You cannot message yourself")
    if rfq.buyer_id not in (sender.id, receiver.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Conversations must include the RFQ owner"
        )

    message = models.Message(
        rfq_id=rfq.id,
        sender_id=sender.id,
        receiver_id=receiver.id,
        content=content,
        thread_id=make_thread_id(rfq.id, sender.id, receiver.id),
        attachments=attachments,
        is_read=False,
    )
    db.add(message)
    db.commit()
    db.refresh(message)

    create_notification(
        db,
        receiver.id,
        "new_message",
        {
            "sender_name": display_name(sender),
            "rfq_id": rfq.id,
            "rfq_title": rfq.title,
            "thread_id": message.thread_id,
        },
    )

    out = serialize_message(message)
    broker.publish("messages", "INSERT", out)
    return out


def upload_attachment(current_user, upload: UploadFile) -> dict:
    return store_upload("message-attachments", current_user.id, upload)


# =========================
# Threads
# =========================
def _thread_messages(db: Session, thread_id: str):
    rows = db.query(models.Message).filter(models.Message.thread_id == thread_id).all()
    return sorted(rows, key=_sort_key)


def get_thread(db: Session, current_user, rfq_id: int, other_user_id: int):
    get_rfq_or_404(db, rfq_id)
    thread_id = make_thread_id(rfq_id, current_user.id, other_user_id)
    return [serialize_message(m) for m in _thread_messages(db, thread_id)]


def mark_thread_read(db: Session, current_user, rfq_id: int, other_user_id: int):
    thread_id = make_thread_id(rfq_id, current_user.id, other_user_id)
    updated = (
        db.query(models.Message)
        .filter(
            models.Message.thread_id == thread_id,
            models.Message.receiver_id == current_user.id,
            models.Message.is_read == False,  # noqa: E712
        )
        .update({models.Message.is_read: True}, synchronize_session=False)
    )
    db.commit()
    if updated:
        broker.publish(
            "messages", "UPDATE",
            {"thread_id": thread_id, "receiver_id": current_user.id, "is_read": True},
        )
    return schemas.ThreadReadResult(thread_id=thread_id, updated=updated)


def list_conversations(db: Session, current_user):
    rows = (
        db.query(models.Message)
        .filter(
            or_(
                models.Message.sender_id == current_user.id,
                models.Message.receiver_id == current_user.id,
            )
        )
        .all()
    )

    threads = {}
    for message in sorted(rows, key=_sort_key):
        threads.setdefault(message.thread_id, []).append(message)

    conversations = []
    for thread_id, messages in threads.items():
        last = messages[-1]
        other = last.receiver if last.sender_id == current_user.id else last.sender
        conversations.append(
            schemas.ConversationOut(
                thread_id=thread_id,
                rfq_id=last.rfq_id,
                rfq_title=last.rfq.title if last.rfq else "",
                other_user=UserSummary.model_validate(other) if other else None,
                other_user_name=display_name(other),
                last_message=last.content,
                last_message_at=last.created_at,
                last_message_ago=time_ago(last.created_at),
                message_count=len(messages),
                unread_count=sum(
                    1 for m in messages
                    if m.receiver_id == current_user.id and not m.is_read
                ),
            )
        )

    conversations.sort(key=lambda c: c.last_message_at, reverse=True)
    logger.debug(f"{len(conversations)} conversations for user {current_user.id}")
    return conversations


def unread_count(db: Session, current_user) -> schemas.MessageUnreadCount:
    count = db.query(models.Message).filter(
        models.Message.receiver_id == current_user.id,
        models.Message.is_read == False,  # noqa: E712
    ).count()
    return schemas.MessageUnreadCount(unread=count)
