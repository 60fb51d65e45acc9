from datetime import datetime

from fastapi import HTTPException, status
from loguru import logger
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from souqote.admin import schemas
from souqote.categories.models import Category
from souqote.quotes.models import QUOTE_STATUSES, Quote
from souqote.rfqs.models import RFQ, RFQ_STATUSES
from souqote.users.models import User, UserAction
from souqote.vendors.models import VendorProfile


# action -> (new status, extra column values)
USER_ACTIONS = {
    "approve": ("approved", {"is_verified": True}),
    "reject": ("rejected", {}),
    "block": ("blocked", {}),
    "unblock": ("approved", {}),
    "delete": ("deleted", {"is_deleted": True}),
    "restore": ("pending", {"is_deleted": False}),
}


def serialize_admin_user(user: User) -> schemas.AdminUserOut:
    out = schemas.AdminUserOut.model_validate(user)
    if user.vendor_profile is not None:
        out.vendor_company_name = user.vendor_profile.company_name_english
        out.vendor_verification_status = user.vendor_profile.verification_status
    return out


# =========================
# Users
# =========================
def list_users(
    db: Session,
    user_type: str | None = None,
    status_filter: str | None = None,
    search: str | None = None,
):
    query = db.query(User).outerjoin(VendorProfile, VendorProfile.user_id == User.id)

    if user_type:
        query = query.filter(User.user_type == user_type)
    if status_filter:
        query = query.filter(User.status == status_filter)
    if search:
        query = query.filter(
            or_(
                User.email.ilike(f"%{search}%"),
                User.first_name.ilike(f"%{search}%"),
                User.last_name.ilike(f"%{search}%"),
                VendorProfile.company_name_english.ilike(f"%{search}%"),
            )
        )

    users = query.order_by(User.created_at.desc(), User.id.desc()).all()
    return [serialize_admin_user(u) for u in users]


def apply_user_action(db: Session, admin, user_id: int, action: str, notes: str | None = None):
    if action not in USER_ACTIONS:
        raise HTTPException(status_code=400, detail=f"Unknown action '{action}'")
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot perform this action on your own account")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    new_status, extra = USER_ACTIONS[action]
    previous_status = user.status
    now = datetime.utcnow()

    user.status = new_status
    user.status_updated_at = now
    user.updated_at = now
    for key, value in extra.items():
        setattr(user, key, value)

    db.add(
        UserAction(
            user_id=user.id,
            admin_id=admin.id,
            action_type=action,
            notes=notes,
            previous_status=previous_status,
            new_status=new_status,
        )
    )
    db.commit()
    db.refresh(user)

    logger.warning(
        f"🔒 Admin {admin.id} applied '{action}' to user {user.id} "
        f"({previous_status} -> {new_status})"
    )
    return serialize_admin_user(user)


def list_user_actions(db: Session, user_id: int):
    return (
        db.query(UserAction)
        .filter(UserAction.user_id == user_id)
        .order_by(UserAction.created_at.desc(), UserAction.id.desc())
        .all()
    )


# =========================
# Dashboard
# =========================
def _counts_by_status(db: Session, column, statuses):
    counts = {s: 0 for s in statuses}
    for value, count in db.query(column, func.count()).group_by(column).all():
        counts[value] = count
    return counts


def dashboard_stats(db: Session) -> schemas.DashboardStats:
    active_users = db.query(User).filter(User.is_deleted == False)  # noqa: E712
    rfqs_by_status = _counts_by_status(db, RFQ.status, RFQ_STATUSES)
    quotes_by_status = _counts_by_status(db, Quote.status, QUOTE_STATUSES)

    return schemas.DashboardStats(
        total_users=active_users.count(),
        total_buyers=active_users.filter(User.user_type == "buyer").count(),
        total_vendors=active_users.filter(User.user_type == "vendor").count(),
        verified_users=active_users.filter(User.is_verified == True).count(),  # noqa: E712
        total_rfqs=sum(rfqs_by_status.values()),
        rfqs_by_status=rfqs_by_status,
        total_quotes=sum(quotes_by_status.values()),
        quotes_by_status=quotes_by_status,
        active_categories=db.query(Category).filter(Category.is_active == True).count(),  # noqa: E712
        pending_vendor_verifications=db.query(VendorProfile)
        .filter(VendorProfile.verification_status == "pending")
        .count(),
    )


def recent_activity(db: Session, limit: int = 5) -> schemas.RecentActivity:
    users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).limit(limit).all()
    rfqs = db.query(RFQ).order_by(RFQ.created_at.desc(), RFQ.id.desc()).limit(limit).all()
    return schemas.RecentActivity(
        users=[serialize_admin_user(u) for u in users],
        rfqs=[schemas.RFQSummary.model_validate(r) for r in rfqs],
    )
