"""
Session handling: credential checks, JWT issue/decode, and resolution of the
current user from a bearer token.

The profile row may be missing for an account (a failed insert at sign-up).
In that case the user is rebuilt from the token's `user_metadata` so the
session stays usable for read-only pages.
"""
from datetime import datetime, timedelta

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from loguru import logger
from sqlalchemy.orm import Session

from souqote.config import settings
from souqote.database import get_db
from souqote.security.passwords import verify_password
from souqote.users import crud as user_crud
from souqote.users import schemas as user_schemas
from souqote.users.models import Account, User


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

INACTIVE_STATUSES = {"blocked", "deleted"}


def authenticate_user(db: Session, email: str, password: str):
    account = user_crud.get_account_by_email(db, email)
    if not account:
        return None
    if not verify_password(password, account.hashed_password):
        return None
    return account


def create_access_token(account: Account, expires_delta: timedelta | None = None):
    expires_at = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims = {
        "sub": str(account.id),
        "email": account.email,
        "user_metadata": account.user_metadata or {},
        "exp": expires_at,
    }
    token = jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return token, expires_at


def decode_access_token(token: str) -> dict:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired. Please sign in again.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError:
        raise credentials_exception

    if not claims.get("sub"):
        raise credentials_exception
    return claims


def fallback_user_from_claims(claims: dict) -> user_schemas.CurrentUser:
    meta = claims.get("user_metadata") or {}
    now = datetime.utcnow()
    return user_schemas.CurrentUser(
        id=int(claims["sub"]),
        email=claims.get("email") or "",
        first_name=meta.get("first_name") or "",
        last_name=meta.get("last_name") or "",
        phone=meta.get("phone") or "",
        user_type=meta.get("user_type") or "buyer",
        avatar_url=meta.get("avatar_url") or None,
        company_name=meta.get("company_name") or None,
        is_verified=False,
        rating=0,
        total_rfqs=0,
        total_quotes=0,
        created_at=now,
        updated_at=now,
        has_profile=False,
    )


def resolve_session_user(db: Session, claims: dict) -> user_schemas.CurrentUser:
    profile = user_crud.get_user(db, int(claims["sub"]))
    if profile is None:
        if user_crud.get_account(db, int(claims["sub"])) is None:
            raise HTTPException(status_code=401, detail="Account no longer exists")
        logger.info(f"Using session metadata fallback for account {claims['sub']}")
        return fallback_user_from_claims(claims)

    if profile.status in INACTIVE_STATUSES or profile.is_deleted:
        logger.warning(f"Refused session for {profile.status} user {profile.email}")
        raise HTTPException(status_code=403, detail=f"Your account has been {profile.status}.")

    user = user_schemas.CurrentUser.model_validate(profile)
    user.has_profile = True
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> user_schemas.CurrentUser:
    claims = decode_access_token(token)
    return resolve_session_user(db, claims)


def get_optional_user(
    token: str | None = Depends(optional_oauth2_scheme),
    db: Session = Depends(get_db),
):
    if not token:
        return None
    return resolve_session_user(db, decode_access_token(token))


def require_profile(db: Session, current_user: user_schemas.CurrentUser) -> User:
    profile = user_crud.get_user(db, current_user.id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Your profile is incomplete. Please update your profile first.",
        )
    return profile
