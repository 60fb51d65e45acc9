from datetime import datetime, timedelta

from fastapi import HTTPException, UploadFile, status
from loguru import logger
from sqlalchemy import or_
from sqlalchemy.orm import Session

from souqote.categories.service import is_active_category
from souqote.notifications.service import create_notification
from souqote.quotes.models import Quote
from souqote.realtime.broker import broker
from souqote.rfqs import models, schemas
from souqote.storage.service import store_upload
from souqote.users.auth import require_profile
from souqote.users.models import User
from souqote.users.schemas import UserSummary
from souqote.utils.formatting import format_currency, format_date, time_ago


# Allowed owner-driven transitions. "awarded" is only reachable by accepting a quote.
STATUS_TRANSITIONS = {
    "open": {"in_progress", "cancelled"},
    "in_progress": {"open", "cancelled"},
}

# Columns an update may change but never clear
REQUIRED_FIELDS = (
    "title", "description", "category", "location", "urgency", "deadline",
    "requirements", "items", "vat_applicable", "vat_rate",
    "quotation_validity_days", "installation_required",
)


# =========================
# Helpers
# =========================
def budget_display(rfq, currency: str | None = None) -> str | None:
    currency = currency or rfq.currency
    if rfq.budget_min is not None and rfq.budget_max is not None:
        return f"{format_currency(rfq.budget_min, currency)} - {format_currency(rfq.budget_max, currency)}"
    if rfq.budget_max is not None:
        return f"Up to {format_currency(rfq.budget_max, currency)}"
    if rfq.budget_min is not None:
        return f"From {format_currency(rfq.budget_min, currency)}"
    return None


def serialize_rfq(db: Session, rfq: models.RFQ) -> schemas.RFQOut:
    out = schemas.RFQOut.model_validate(rfq)
    if rfq.buyer is not None:
        out.buyer = UserSummary.model_validate(rfq.buyer)
    out.quote_count = db.query(Quote).filter(Quote.rfq_id == rfq.id).count()
    out.budget_display = budget_display(rfq)
    out.deadline_display = format_date(rfq.deadline)
    out.posted_ago = time_ago(rfq.created_at)
    return out


def _validate_fields(title, description, budget_min, budget_max, deadline, now=None):
    now = now or datetime.utcnow()
    if title is not None and not title.strip():
        raise HTTPException(status_code=400, detail="Title is required")
    if description is not None and not description.strip():
        raise HTTPException(status_code=400, detail="Description is required")
    if budget_min is not None and budget_max is not None and budget_min > budget_max:
        raise HTTPException(
            status_code=400,
            detail="Minimum budget cannot be greater than maximum budget"
        )
    if deadline is not None and deadline <= now:
        raise HTTPException(status_code=400, detail="Deadline must be in the future")


def _check_category(db: Session, category: str):
    if not is_active_category(db, category):
        raise HTTPException(
            status_code=400,
            detail=f"Category '{category}' is not available"
        )


def get_rfq_or_404(db: Session, rfq_id: int) -> models.RFQ:
    rfq = db.query(models.RFQ).filter(models.RFQ.id == rfq_id).first()
    if not rfq:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="RFQ not found")
    return rfq


def _get_owned(db: Session, rfq_id: int, current_user, allow_admin: bool = False):
    rfq = get_rfq_or_404(db, rfq_id)
    if rfq.buyer_id != current_user.id and not (allow_admin and current_user.user_type == "admin"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to modify this RFQ")
    return rfq


def _matching_vendors(db: Session, category: str):
    wanted = category.strip().lower()
    vendors = (
        db.query(User)
        .filter(User.user_type == "vendor")
        .filter(User.is_deleted == False)  # noqa: E712
        .filter(User.status.notin_(["blocked", "deleted"]))
        .all()
    )
    return [
        v for v in vendors
        if any((s or "").strip().lower() == wanted for s in (v.specialties or []))
    ]


# =========================
# Create
# =========================
def create_rfq(db: Session, current_user, rfq_data: schemas.RFQCreate):
    buyer = require_profile(db, current_user)
    if buyer.user_type != "buyer":
        raise HTTPException(status_code=403, detail="Only buyers can post RFQs")

    _validate_fields(
        rfq_data.title, rfq_data.description,
        rfq_data.budget_min, rfq_data.budget_max, rfq_data.deadline,
    )
    _check_category(db, rfq_data.category)

    values = rfq_data.model_dump()
    values["title"] = values["title"].strip()
    values["description"] = values["description"].strip()

    rfq = models.RFQ(**values, buyer_id=buyer.id, status="open", images=[])
    db.add(rfq)
    buyer.total_rfqs = (buyer.total_rfqs or 0) + 1
    db.commit()
    db.refresh(rfq)
    logger.info(f"RFQ {rfq.id} '{rfq.title}' posted by buyer {buyer.id}")

    for vendor in _matching_vendors(db, rfq.category):
        create_notification(
            db,
            vendor.id,
            "new_rfq_available",
            {"rfq_id": rfq.id, "rfq_title": rfq.title, "category": rfq.category},
        )

    out = serialize_rfq(db, rfq)
    broker.publish("rfqs", "INSERT", out)
    return out


# =========================
# Read
# =========================
def list_rfqs(
    db: Session,
    category: str | None = None,
    status_filter: str | None = None,
    search: str | None = None,
    urgency: str | None = None,
    location: str | None = None,
):
    query = db.query(models.RFQ)

    if category:
        query = query.filter(models.RFQ.category == category)
    if status_filter:
        query = query.filter(models.RFQ.status == status_filter)
    if urgency:
        query = query.filter(models.RFQ.urgency == urgency)
    if location:
        query = query.filter(models.RFQ.location.ilike(f"%{location}%"))
    if search:
        query = query.filter(
            or_(
                models.RFQ.title.ilike(f"%{search}%"),
                models.RFQ.description.ilike(f"%{search}%"),
            )
        )

    rfqs = query.order_by(models.RFQ.created_at.desc(), models.RFQ.id.desc()).all()
    return [serialize_rfq(db, r) for r in rfqs]


def get_rfq(db: Session, rfq_id: int):
    return serialize_rfq(db, get_rfq_or_404(db, rfq_id))


def list_my_rfqs(db: Session, current_user):
    rfqs = (
        db.query(models.RFQ)
        .filter(models.RFQ.buyer_id == current_user.id)
        .order_by(models.RFQ.created_at.desc(), models.RFQ.id.desc())
        .all()
    )
    return [serialize_rfq(db, r) for r in rfqs]


# =========================
# Update
# =========================
def update_rfq(db: Session, current_user, rfq_id: int, updates: schemas.RFQUpdate):
    rfq = _get_owned(db, rfq_id, current_user)
    if rfq.status != "open":
        raise HTTPException(status_code=400, detail="Only open RFQs can be edited")

    update_data = updates.model_dump(exclude_unset=True)
    cleared = [k for k in REQUIRED_FIELDS if k in update_data and update_data[k] is None]
    if cleared:
        raise HTTPException(status_code=400, detail=f"These fields cannot be empty: {', '.join(cleared)}")

    _validate_fields(
        update_data.get("title"),
        update_data.get("description"),
        update_data.get("budget_min", rfq.budget_min),
        update_data.get("budget_max", rfq.budget_max),
        update_data.get("deadline"),
    )
    if "category" in update_data:
        _check_category(db, update_data["category"])

    for key, value in update_data.items():
        if isinstance(value, str) and key in ("title", "description"):
            value = value.strip()
        setattr(rfq, key, value)

    rfq.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(rfq)

    out = serialize_rfq(db, rfq)
    broker.publish("rfqs", "UPDATE", out)
    return out


def set_status(db: Session, current_user, rfq_id: int, new_status: str):
    rfq = _get_owned(db, rfq_id, current_user, allow_admin=True)

    if new_status not in STATUS_TRANSITIONS.get(rfq.status, set()):
        raise HTTPException(
            status_code=400,
            detail=f"Cannot change RFQ status from {rfq.status} to {new_status}"
        )

    previous = rfq.status
    rfq.status = new_status
    rfq.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(rfq)
    logger.info(f"RFQ {rfq.id} status {previous} -> {new_status}")

    out = serialize_rfq(db, rfq)
    broker.publish("rfqs", "UPDATE", out)
    return out


def add_attachment(db: Session, current_user, rfq_id: int, upload: UploadFile):
    rfq = _get_owned(db, rfq_id, current_user)
    stored = store_upload("rfq-attachments", current_user.id, upload)

    # Reassign so the JSON column is flagged dirty
    rfq.images = list(rfq.images or []) + [stored["public_url"]]
    rfq.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(rfq)
    return serialize_rfq(db, rfq)


# =========================
# Delete
# =========================
def delete_rfq(db: Session, current_user, rfq_id: int):
    rfq = _get_owned(db, rfq_id, current_user, allow_admin=True)
    if rfq.status == "awarded":
        raise HTTPException(status_code=400, detail="Awarded RFQs cannot be deleted")

    record = {"id": rfq.id, "buyer_id": rfq.buyer_id}
    db.delete(rfq)
    db.commit()
    logger.warning(f"RFQ {rfq_id} deleted by user {current_user.id}")

    broker.publish("rfqs", "DELETE", record)
    return {"message": "RFQ deleted successfully"}


# =========================
# Sweeps
# =========================
def expire_overdue_rfqs(db: Session, now: datetime | None = None):
    now = now or datetime.utcnow()
    overdue = (
        db.query(models.RFQ)
        .filter(models.RFQ.status == "open")
        .filter(models.RFQ.deadline < now)
        .all()
    )

    for rfq in overdue:
        rfq.status = "expired"
        rfq.updated_at = now
        for quote in rfq.quotes:
            if quote.status == "pending":
                quote.status = "expired"
                quote.updated_at = now
    db.commit()

    for rfq in overdue:
        create_notification(
            db, rfq.buyer_id, "rfq_expired",
            {"rfq_id": rfq.id, "rfq_title": rfq.title},
        )
        broker.publish("rfqs", "UPDATE", serialize_rfq(db, rfq))

    if overdue:
        logger.info(f"Expired {len(overdue)} overdue RFQs")
    return schemas.SweepResult(processed=len(overdue), ids=[r.id for r in overdue])


def send_deadline_reminders(db: Session, hours: int = 24, now: datetime | None = None):
    now = now or datetime.utcnow()
    window_end = now + timedelta(hours=hours)
    closing = (
        db.query(models.RFQ)
        .filter(models.RFQ.status == "open")
        .filter(models.RFQ.deadline > now)
        .filter(models.RFQ.deadline <= window_end)
        .all()
    )

    for rfq in closing:
        hours_left = max(int((rfq.deadline - now).total_seconds() // 3600), 1)
        create_notification(
            db, rfq.buyer_id, "rfq_deadline_approaching",
            {"rfq_id": rfq.id, "rfq_title": rfq.title, "hours": hours_left},
        )

    return schemas.SweepResult(processed=len(closing), ids=[r.id for r in closing])
