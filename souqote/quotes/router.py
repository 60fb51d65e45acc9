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


# ================= SUBMIT =================
@router.post(
    "/rfq/{rfq_id}",
    response_model=schemas.QuoteOut,
    status_code=status.HTTP_201_CREATED
)
def submit_quote(
    rfq_id: int,
    quote: schemas.QuoteCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["vendor"]))
):
    return service.submit_quote(db, current_user, rfq_id, quote)


# ================= LIST =================
@router.get("/rfq/{rfq_id}", response_model=List[schemas.QuoteOut])
def list_rfq_quotes(
    rfq_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    return service.list_rfq_quotes(db, current_user, rfq_id)


@router.get("/mine", response_model=List[schemas.QuoteOut])
def list_my_quotes(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["vendor"]))
):
    return service.list_my_quotes(db, current_user)


# ================= SWEEPS (admin) =================
@router.post("/sweeps/expire", response_model=schemas.QuoteSweepResult)
def expire_stale_quotes(
    now: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.expire_stale_quotes(db, now=now)


@router.post("/sweeps/expiry-reminders", response_model=schemas.QuoteSweepResult)
def send_expiry_reminders(
    hours: int = Query(24, gt=0),
    now: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.send_expiry_reminders(db, hours=hours, now=now)


# ================= DETAIL =================
@router.get("/{quote_id}", response_model=schemas.QuoteOut)
def get_quote(
    quote_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    return service.get_quote(db, current_user, quote_id)


# ================= VENDOR ACTIONS =================
@router.put("/{quote_id}", response_model=schemas.QuoteOut)
def update_quote(
    quote_id: int,
    updates: schemas.QuoteUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["vendor"]))
):
    return service.update_quote(db, current_user, quote_id, updates)


@router.post("/{quote_id}/withdraw", response_model=schemas.QuoteOut)
def withdraw_quote(
    quote_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["vendor"]))
):
    return service.withdraw_quote(db, current_user, quote_id)


@router.post("/{quote_id}/attachments", response_model=schemas.QuoteOut)
def upload_quote_attachment(
    quote_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["vendor"]))
):
    return service.add_attachment(db, current_user, quote_id, file)


# ================= BUYER DECISIONS =================
@router.post("/{quote_id}/accept", response_model=schemas.QuoteOut)
def accept_quote(
    quote_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["buyer"]))
):
    return service.accept_quote(db, current_user, quote_id)


@router.post("/{quote_id}/reject", response_model=schemas.QuoteOut)
def reject_quote(
    quote_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["buyer"]))
):
    return service.reject_quote(db, current_user, quote_id)
