from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from souqote.database import get_db
from souqote.notifications import schemas, service
from souqote.users.auth import get_current_user, require_profile
from souqote.users.schemas import CurrentUser

router = APIRouter()


@router.get("/", response_model=List[schemas.NotificationOut])
def list_notifications(
    limit: int = 20,
    offset: int = 0,
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.list_notifications(db, current_user.id, limit, offset, unread_only)


@router.get("/unread-count", response_model=schemas.UnreadCountOut)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return {"unread_count": service.unread_count(db, current_user.id)}


@router.post("/read-all")
def mark_all_read(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    updated = service.mark_all_read(db, current_user.id)
    return {"message": f"{updated} notifications marked as read", "updated": updated}


@router.get("/preferences", response_model=schemas.PreferencesOut)
def get_preferences(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.get_preferences(db, current_user.id)


@router.put("/preferences", response_model=schemas.PreferencesOut)
def update_preferences(
    updates: schemas.PreferencesUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    require_profile(db, current_user)
    return service.update_preferences(db, current_user.id, updates)


@router.post("/{notification_id}/read", response_model=schemas.NotificationOut)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.mark_read(db, notification_id, current_user.id)


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.delete_notification(db, notification_id, current_user.id)
