from datetime import datetime, timedelta

from fastapi import HTTPException, UploadFile, status
from loguru import logger
from sqlalchemy.orm import Session

from souqote.notifications.service import create_notification
from souqote.quotes import models, schemas
from souqote.quotes.builder import QuoteBuilder
from souqote.realtime.broker import broker
from souqote.rfqs.models import RFQ
from souqote.rfqs.schemas import RFQSummary
from souqote.rfqs.service import get_rfq_or_404, serialize_rfq
from souqote.storage.service import store_upload
from souqote.users.auth import require_profile
from souqote.users.schemas import UserSummary
from souqote.utils.formatting import display_name, format_currency, time_ago


# =========================
# Helpers
# =========================
def serialize_quote(quote: models.Quote, include_rfq: bool = False) -> schemas.QuoteOut:
    out = schemas.QuoteOut.model_validate(quote)
    out.rfq = None
    if quote.vendor is not None:
        out.vendor = UserSummary.model_validate(quote.vendor)
    if include_rfq and quote.rfq is not None:
        out.rfq = RFQSummary.model_validate(quote.rfq)
    out.price_display = format_currency(quote.price, quote.currency)
    out.submitted_ago = time_ago(quote.created_at)
    return out


def _publish(quote: models.Quote, event_type: str = "UPDATE"):
    broker.publish("quotes", event_type, serialize_quote(quote))


def _get_quote_or_404(db: Session, quote_id: int) -> models.Quote:
    quote = db.query(models.Quote).filter(models.Quote.id == quote_id).first()
    if not quote:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quote not found")
    return quote


def _get_own_quote(db: Session, quote_id: int, current_user) -> models.Quote:
    quote = _get_quote_or_404(db, quote_id)
    if quote.vendor_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to modify this quote")
    return quote


def _check_buyer_or_admin(rfq: RFQ, current_user):
    if rfq.buyer_id != current_user.id and current_user.user_type != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the RFQ owner can decide on quotes")


def _price_from_items(rfq: RFQ, items, currency: str):
    """Return (price, lines) built from item lines against the RFQ's item list."""
    if not rfq.items:
        raise HTTPException(status_code=400, detail="This RFQ has no items to quote against")
    try:
        builder = QuoteBuilder.from_lines(
            rfq.items, [i.model_dump() for i in items], currency
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return builder.total, builder.items()


def _check_price(price):
    if price is None or price <= 0:
        raise HTTPException(status_code=400, detail="Price must be greater than 0")


# =========================
# Submit
# =========================
def submit_quote(db: Session, current_user, rfq_id: int, quote_data: schemas.QuoteCreate):
    vendor = require_profile(db, current_user)
    if vendor.user_type != "vendor":
        raise HTTPException(status_code=403, detail="Only vendors can submit quotes")

    rfq = get_rfq_or_404(db, rfq_id)
    now = datetime.utcnow()
    if rfq.status != "open":
        raise HTTPException(status_code=400, detail="This RFQ is no longer accepting quotes")
    if rfq.deadline <= now:
        raise HTTPException(status_code=400, detail="The deadline for this RFQ has passed")

    existing = (
        db.query(models.Quote)
        .filter(models.Quote.rfq_id == rfq_id)
        .filter(models.Quote.vendor_id == vendor.id)
        .filter(models.Quote.status != "withdrawn")
        .first()
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You have already submitted a quote for this RFQ"
        )

    if quote_data.items:
        price, lines = _price_from_items(rfq, quote_data.items, quote_data.currency)
    else:
        _check_price(quote_data.price)
        price, lines = quote_data.price, []

    quote = models.Quote(
        rfq_id=rfq.id,
        vendor_id=vendor.id,
        price=price,
        currency=quote_data.currency,
        validity_period=quote_data.validity_period,
        delivery_time=quote_data.delivery_time,
        message=quote_data.message,
        terms_conditions=quote_data.terms_conditions,
        status="pending",
        attachments=[],
        items=lines,
        valid_until=now + timedelta(days=quote_data.validity_period),
    )
    db.add(quote)
    vendor.total_quotes = (vendor.total_quotes or 0) + 1
    db.commit()
    db.refresh(quote)
    logger.info(f"Quote {quote.id} submitted on RFQ {rfq.id} by vendor {vendor.id}")

    create_notification(
        db,
        rfq.buyer_id,
        "new_quote_received",
        {
            "rfq_id": rfq.id,
            "rfq_title": rfq.title,
            "quote_id": quote.id,
            "vendor_name": display_name(vendor, "A vendor"),
        },
    )
    _publish(quote, "INSERT")
    return serialize_quote(quote)


# =========================
# Read
# =========================
def list_rfq_quotes(db: Session, current_user, rfq_id: int):
    rfq = get_rfq_or_404(db, rfq_id)
    query = db.query(models.Quote).filter(models.Quote.rfq_id == rfq_id)

    if rfq.buyer_id == current_user.id or current_user.user_type == "admin":
        pass
    elif current_user.user_type == "vendor":
        query = query.filter(models.Quote.vendor_id == current_user.id)
    else:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")

    quotes = query.order_by(models.Quote.created_at.asc(), models.Quote.id.asc()).all()
    return [serialize_quote(q) for q in quotes]


def list_my_quotes(db: Session, current_user):
    quotes = (
        db.query(models.Quote)
        .filter(models.Quote.vendor_id == current_user.id)
        .order_by(models.Quote.created_at.desc(), models.Quote.id.desc())
        .all()
    )
    return [serialize_quote(q, include_rfq=True) for q in quotes]


def get_quote(db: Session, current_user, quote_id: int):
    quote = _get_quote_or_404(db, quote_id)
    allowed = (
        quote.vendor_id == current_user.id
        or quote.rfq.buyer_id == current_user.id
        or current_user.user_type == "admin"
    )
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return serialize_quote(quote, include_rfq=True)


# =========================
# Update
# =========================
def update_quote(db: Session, current_user, quote_id: int, updates: schemas.QuoteUpdate):
    quote = _get_own_quote(db, quote_id, current_user)
    if quote.status != "pending":
        raise HTTPException(status_code=400, detail="Only pending quotes can be edited")
    if quote.rfq.status != "open":
        raise HTTPException(status_code=400, detail="This RFQ is no longer accepting quotes")

    update_data = updates.model_dump(exclude_unset=True)

    if updates.items:
        quote.price, quote.items = _price_from_items(quote.rfq, updates.items, quote.currency)
    elif "price" in update_data:
        _check_price(updates.price)
        quote.price = updates.price
        quote.items = []

    for field in ("delivery_time", "message", "terms_conditions"):
        if field in update_data:
            value = update_data[field]
            if field != "terms_conditions" and not (value or "").strip():
                raise HTTPException(status_code=400, detail=f"{field.replace('_', ' ').capitalize()} is required")
            setattr(quote, field, value.strip() if isinstance(value, str) else value)

    if updates.validity_period:
        quote.validity_period = updates.validity_period
        quote.valid_until = datetime.utcnow() + timedelta(days=updates.validity_period)

    quote.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(quote)
    _publish(quote)
    return serialize_quote(quote)


def withdraw_quote(db: Session, current_user, quote_id: int):
    quote = _get_own_quote(db, quote_id, current_user)
    if quote.status != "pending":
        raise HTTPException(status_code=400, detail="Only pending quotes can be withdrawn")

    quote.status = "withdrawn"
    quote.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(quote)
    logger.info(f"Quote {quote.id} withdrawn by vendor {current_user.id}")
    _publish(quote)
    return serialize_quote(quote)


def accept_quote(db: Session, current_user, quote_id: int):
    quote = _get_quote_or_404(db, quote_id)
    rfq = quote.rfq
    _check_buyer_or_admin(rfq, current_user)

    if quote.status != "pending":
        raise HTTPException(status_code=400, detail="Only pending quotes can be accepted")
    if rfq.status not in ("open", "in_progress"):
        raise HTTPException(status_code=400, detail=f"Cannot award an RFQ that is {rfq.status}")

    now = datetime.utcnow()
    quote.status = "accepted"
    quote.updated_at = now

    losers = [q for q in rfq.quotes if q.id != quote.id and q.status == "pending"]
    for other in losers:
        other.status = "rejected"
        other.updated_at = now

    rfq.status = "awarded"
    rfq.awarded_quote_id = quote.id
    rfq.updated_at = now
    db.commit()
    db.refresh(quote)
    logger.info(f"🏆 RFQ {rfq.id} awarded to quote {quote.id}")

    create_notification(
        db, quote.vendor_id, "rfq_awarded",
        {"rfq_id": rfq.id, "rfq_title": rfq.title, "quote_id": quote.id},
    )
    for other in losers:
        create_notification(
            db, other.vendor_id, "quote_status_changed",
            {"rfq_id": rfq.id, "rfq_title": rfq.title, "quote_id": other.id, "status": "rejected"},
        )
        _publish(other)

    _publish(quote)
    broker.publish("rfqs", "UPDATE", serialize_rfq(db, rfq))
    return serialize_quote(quote)


def reject_quote(db: Session, current_user, quote_id: int):
    quote = _get_quote_or_404(db, quote_id)
    rfq = quote.rfq
    _check_buyer_or_admin(rfq, current_user)

    if quote.status != "pending":
        raise HTTPException(status_code=400, detail="Only pending quotes can be rejected")

    quote.status = "rejected"
    quote.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(quote)

    create_notification(
        db, quote.vendor_id, "quote_status_changed",
        {"rfq_id": rfq.id, "rfq_title": rfq.title, "quote_id": quote.id, "status": "rejected"},
    )
    _publish(quote)
    return serialize_quote(quote)


def add_attachment(db: Session, current_user, quote_id: int, upload: UploadFile):
    quote = _get_own_quote(db, quote_id, current_user)
    stored = store_upload("rfq-attachments", current_user.id, upload)

    quote.attachments = list(quote.attachments or []) + [stored["public_url"]]
    quote.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(quote)
    return serialize_quote(quote)


# =========================
# Sweeps
# =========================
def expire_stale_quotes(db: Session, now: datetime | None = None):
    now = now or datetime.utcnow()
    stale = (
        db.query(models.Quote)
        .filter(models.Quote.status == "pending")
        .filter(models.Quote.valid_until != None)  # noqa: E711
        .filter(models.Quote.valid_until < now)
        .all()
    )
    for quote in stale:
        quote.status = "expired"
        quote.updated_at = now
    db.commit()

    for quote in stale:
        _publish(quote)

    if stale:
        logger.info(f"Expired {len(stale)} stale quotes")
    return schemas.QuoteSweepResult(processed=len(stale), ids=[q.id for q in stale])


def send_expiry_reminders(db: Session, hours: int = 24, now: datetime | None = None):
    now = now or datetime.utcnow()
    expiring = (
        db.query(models.Quote)
        .filter(models.Quote.status == "pending")
        .filter(models.Quote.valid_until > now)
        .filter(models.Quote.valid_until <= now + timedelta(hours=hours))
        .all()
    )
    for quote in expiring:
        hours_left = max(int((quote.valid_until - now).total_seconds() // 3600), 1)
        create_notification(
            db, quote.vendor_id, "quote_deadline_reminder",
            {"rfq_id": quote.rfq_id, "rfq_title": quote.rfq.title, "quote_id": quote.id, "hours": hours_left},
        )
    return schemas.QuoteSweepResult(processed=len(expiring), ids=[q.id for q in expiring])
