from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from souqote.database import get_db
from souqote.users.auth import get_current_user
from souqote.users.schemas import CurrentUser
from . import schemas, service


router = APIRouter()


@router.post("/", response_model=schemas.MessageOut, status_code=status.HTTP_201_CREATED)
def send_message(
    payload: schemas.MessageCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    return service.send_message(db, current_user, payload)


@router.post("/attachments", status_code=status.HTTP_201_CREATED)
def upload_message_attachment(
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(get_current_user)
):
    return service.upload_attachment(current_user, file)


@router.get("/conversations", response_model=List[schemas.ConversationOut])
def list_conversations(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    return service.list_conversations(db, current_user)


@router.get("/unread-count", response_model=schemas.MessageUnreadCount)
def unread_count(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    return service.unread_count(db, current_user)


# ================= THREAD =================
@router.get("/thread/{rfq_id}/{other_user_id}", response_model=List[schemas.MessageOut])
def get_thread(
    rfq_id: int,
    other_user_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    return service.get_thread(db, current_user, rfq_id, other_user_id)


@router.post("/thread/{rfq_id}/{other_user_id}/read", response_model=schemas.ThreadReadResult)
def mark_thread_read(
    rfq_id: int,
    other_user_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    return service.mark_thread_read(db, current_user, rfq_id, other_user_id)
