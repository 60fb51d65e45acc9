from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from souqote.database import get_db
from souqote.users.auth import get_current_user
from souqote.users.permissions import role_required
from souqote.users.schemas import CurrentUser
from . import schemas, service


router = APIRouter()


# ================= CREATE =================
@router.post(
    "/",
    response_model=schemas.RFQOut,
    status_code=status.HTTP_201_CREATED
)
def create_rfq(
    rfq: schemas.RFQCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["buyer"]))
):
    return service.create_rfq(db, current_user, rfq)


# ================= LIST =================
@router.get("/", response_model=List[schemas.RFQOut])
def list_rfqs(
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="open, in_progress, awarded, cancelled, expired"),
    search: Optional[str] = Query(None, description="Matches title or description"),
    urgency: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["vendor"]))
):
    return service.list_rfqs(
        db,
        category=category,
        status_filter=status,
        search=search,
        urgency=urgency,
        location=location,
    )


@router.get("/mine", response_model=List[schemas.RFQOut])
def list_my_rfqs(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["buyer"]))
):
    return service.list_my_rfqs(db, current_user)


# ================= SWEEPS (admin) =================
@router.post("/sweeps/expire", response_model=schemas.SweepResult)
def expire_overdue_rfqs(
    now: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.expire_overdue_rfqs(db, now=now)


@router.post("/sweeps/deadline-reminders", response_model=schemas.SweepResult)
def send_deadline_reminders(
    hours: int = Query(24, gt=0),
    now: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.send_deadline_reminders(db, hours=hours, now=now)


# ================= DETAIL =================
@router.get("/{rfq_id}", response_model=schemas.RFQOut)
def get_rfq(
    rfq_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    return service.get_rfq(db, rfq_id)


# ================= UPDATE =================
@router.put("/{rfq_id}", response_model=schemas.RFQOut)
def update_rfq(
    rfq_id: int,
    updates: schemas.RFQUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["buyer"]))
):
    return service.update_rfq(db, current_user, rfq_id, updates)


@router.patch("/{rfq_id}/status", response_model=schemas.RFQOut)
def set_rfq_status(
    rfq_id: int,
    payload: schemas.RFQStatusUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["buyer"]))
):
    return service.set_status(db, current_user, rfq_id, payload.status)


@router.post("/{rfq_id}/attachments", response_model=schemas.RFQOut)
def upload_rfq_attachment(
    rfq_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["buyer"]))
):
    return service.add_attachment(db, current_user, rfq_id, file)


# ================= DELETE =================
@router.delete("/{rfq_id}")
def delete_rfq(
    rfq_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["buyer"]))
):
    return service.delete_rfq(db, current_user, rfq_id)
