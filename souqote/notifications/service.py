from datetime import datetime

from fastapi import HTTPException, status
from loguru import logger
from sqlalchemy.orm import Session

from souqote.notifications import models, schemas
from souqote.notifications.templates import NOTIFICATION_TEMPLATES, replace_placeholders
from souqote.realtime.broker import broker
from souqote.utils.formatting import time_ago


# =========================
# Helper: preferences
# =========================
def default_preferences(user_id: int) -> schemas.PreferencesOut:
    return schemas.PreferencesOut(
        user_id=user_id,
        email_notifications=True,
        in_app_notifications=True,
        notification_types={
            key: schemas.ChannelPreference(email=tpl["email"], in_app=tpl["in_app"])
            for key, tpl in NOTIFICATION_TEMPLATES.items()
        },
    )


def get_preferences(db: Session, user_id: int) -> schemas.PreferencesOut:
    prefs = default_preferences(user_id)
    row = db.query(models.NotificationPreference).filter(
        models.NotificationPreference.user_id == user_id
    ).first()
    if not row:
        return prefs

    prefs.email_notifications = row.email_notifications
    prefs.in_app_notifications = row.in_app_notifications
    for key, channels in (row.notification_types or {}).items():
        if key in prefs.notification_types:
            prefs.notification_types[key] = schemas.ChannelPreference(**channels)
    return prefs


def update_preferences(db: Session, user_id: int, updates: schemas.PreferencesUpdate):
    row = db.query(models.NotificationPreference).filter(
        models.NotificationPreference.user_id == user_id
    ).first()
    if not row:
        row = models.NotificationPreference(user_id=user_id, notification_types={})
        db.add(row)

    if updates.email_notifications is not None:
        row.email_notifications = updates.email_notifications
    if updates.in_app_notifications is not None:
        row.in_app_notifications = updates.in_app_notifications
    if updates.notification_types is not None:
        unknown = set(updates.notification_types) - set(NOTIFICATION_TEMPLATES)
        if unknown:
            raise HTTPException(
                status_code=400,
                detail=f"Unknown notification types: {', '.join(sorted(unknown))}",
            )
        merged = dict(row.notification_types or {})
        for key, channels in updates.notification_types.items():
            merged[key] = channels.model_dump()
        # Reassign so SQLAlchemy sees the JSON change
        row.notification_types = merged

    row.updated_at = datetime.utcnow()
    db.commit()
    return get_preferences(db, user_id)


def resolve_channels(prefs: schemas.PreferencesOut, notification_type: str):
    """Return (in_app, email) after applying per-type and global switches."""
    channel = prefs.notification_types.get(notification_type)
    template = NOTIFICATION_TEMPLATES[notification_type]
    in_app = channel.in_app if channel else template["in_app"]
    email = channel.email if channel else template["email"]
    return in_app and prefs.in_app_notifications, email and prefs.email_notifications


# =========================
# Create
# =========================
def send_email_notification(db: Session, notification: models.Notification):
    # No mail provider is wired in; log the outgoing message
    logger.info(
        f"📧 Email notification to user {notification.user_id}: "
        f"[{notification.type}] {notification.title} - {notification.message}"
    )
    notification.email_sent = True
    db.commit()


def create_notification(
    db: Session,
    user_id: int,
    notification_type: str,
    data: dict | None = None,
    title: str | None = None,
    message: str | None = None,
):
    template = NOTIFICATION_TEMPLATES.get(notification_type)
    if template is None:
        raise ValueError(f"Unknown notification type: {notification_type}")

    in_app, email = resolve_channels(get_preferences(db, user_id), notification_type)
    if not in_app and not email:
        logger.debug(f"Notification {notification_type} muted by user {user_id}")
        return None

    notification = models.Notification(
        user_id=user_id,
        type=notification_type,
        title=title or template["title"],
        message=replace_placeholders(message or template["message"], data),
        priority=template["priority"],
        data=data or {},
        is_read=False,
        email_sent=False,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    logger.info(f"🔔 Notification {notification_type} created for user {user_id}")

    if email:
        send_email_notification(db, notification)

    broker.publish("notifications", "INSERT", serialize_notification(notification))
    return notification


def serialize_notification(notification: models.Notification, now: datetime | None = None):
    out = schemas.NotificationOut.model_validate(notification)
    out.time_ago = time_ago(notification.created_at, now)
    return out


# =========================
# Read / update
# =========================
def list_notifications(
    db: Session,
    user_id: int,
    limit: int = 20,
    offset: int = 0,
    unread_only: bool = False,
):
    query = db.query(models.Notification).filter(models.Notification.user_id == user_id)
    if unread_only:
        query = query.filter(models.Notification.is_read == False)  # noqa: E712
    rows = (
        query.order_by(models.Notification.created_at.desc(), models.Notification.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [serialize_notification(n) for n in rows]


def unread_count(db: Session, user_id: int) -> int:
    return db.query(models.Notification).filter(
        models.Notification.user_id == user_id,
        models.Notification.is_read == False,  # noqa: E712
    ).count()


def _get_owned(db: Session, notification_id: int, user_id: int):
    notification = db.query(models.Notification).filter(
        models.Notification.id == notification_id
    ).first()
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    if notification.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return notification


def mark_read(db: Session, notification_id: int, user_id: int):
    notification = _get_owned(db, notification_id, user_id)
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return serialize_notification(notification)


def mark_all_read(db: Session, user_id: int) -> int:
    updated = (
        db.query(models.Notification)
        .filter(
            models.Notification.user_id == user_id,
            models.Notification.is_read == False,  # noqa: E712
        )
        .update({models.Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return updated


def delete_notification(db: Session, notification_id: int, user_id: int):
    notification = _get_owned(db, notification_id, user_id)
    db.delete(notification)
    db.commit()
    return {"message": "Notification deleted successfully"}
