from datetime import datetime

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from souqote.users import schemas as user_schema
from souqote.users.models import Account, User


def get_account_by_email(db: Session, email: str):
    return db.query(Account).filter(Account.email == email.strip().lower()).first()


def get_account(db: Session, account_id: int):
    return db.query(Account).filter(Account.id == account_id).first()


def get_user(db: Session, user_id: int):
    return db.query(User).filter(User.id == user_id).first()


def create_account(db: Session, user: user_schema.RegisterSchema, hashed_password: str):
    metadata = {
        "first_name": user.first_name,
        "last_name": user.last_name,
        "phone": user.phone,
        "user_type": user.user_type,
        "company_name": user.company_name,
    }
    account = Account(
        email=user.email,
        hashed_password=hashed_password,
        user_metadata=metadata,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def create_profile(db: Session, account: Account, overrides: dict | None = None):
    """
    Create the profile row for an account from its sign-up metadata.
    Returns None when the insert fails; callers fall back to token metadata.
    """
    meta = account.user_metadata or {}
    values = {
        "id": account.id,
        "email": account.email,
        "first_name": meta.get("first_name") or "",
        "last_name": meta.get("last_name") or "",
        "phone": meta.get("phone") or "",
        "user_type": meta.get("user_type") or "buyer",
        "company_name": meta.get("company_name") or None,
        "avatar_url": meta.get("avatar_url") or None,
        "is_verified": False,
        "rating": 0.0,
        "total_rfqs": 0,
        "total_quotes": 0,
        "status": "pending",
    }
    values.update(overrides or {})
    profile = User(**values)
    try:
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error saving new user {account.email}: {e}")
        return None


def update_profile(db: Session, user: User, updates: user_schema.ProfileUpdateSchema):
    for key, value in updates.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    user.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(user)
    return user


def touch_sign_in(db: Session, account: Account):
    account.last_sign_in_at = datetime.utcnow()
    db.commit()
