from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.security import OAuth2PasswordRequestForm
from loguru import logger
from sqlalchemy.orm import Session

from souqote.config import settings
from souqote.database import get_db
from souqote.security.passwords import MIN_PASSWORD_LENGTH, hash_password
from souqote.storage import service as storage_service
from souqote.users import crud as user_crud, schemas
from souqote.users.auth import (
    INACTIVE_STATUSES,
    authenticate_user,
    create_access_token,
    fallback_user_from_claims,
    get_current_user,
    get_optional_user,
    oauth2_scheme,
    decode_access_token,
    require_profile,
    resolve_session_user,
)
from souqote.users.permissions import permissions_for

auth_router = APIRouter()
router = APIRouter()

# NOT NULL profile columns
REQUIRED_PROFILE_FIELDS = ("first_name", "last_name", "phone")


def _token_response(db: Session, account):
    token, expires_at = create_access_token(account)
    claims = decode_access_token(token)
    user = resolve_session_user(db, claims)
    return schemas.TokenResponse(access_token=token, expires_at=expires_at, user=user)


def _sign_in(db: Session, email: str, password: str):
    email = email.strip().lower()
    account = authenticate_user(db, email, password)
    if not account:
        logger.warning(f"Authentication denied for email: {email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password. Please check your credentials and try again.",
        )

    profile = account.profile
    if profile is not None and (profile.status in INACTIVE_STATUSES or profile.is_deleted):
        logger.warning(f"Sign-in refused for {profile.status} user: {email}")
        raise HTTPException(status_code=403, detail=f"Your account has been {profile.status}.")

    user_crud.touch_sign_in(db, account)
    logger.info(f"✅ User authenticated: {email}")
    return _token_response(db, account)


# ================= AUTH =================
@auth_router.post("/register", response_model=schemas.TokenResponse, status_code=status.HTTP_201_CREATED)
def register(user: schemas.RegisterSchema, db: Session = Depends(get_db)):
    if len(user.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.",
        )

    if user_crud.get_account_by_email(db, user.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists. Please try logging in instead.",
        )

    # 🔒 Admin accounts need the admin secret
    if user.user_type == "admin" and user.admin_secret != settings.ADMIN_SECRET:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can register admin accounts. Invalid admin secret.",
        )

    account = user_crud.create_account(db, user, hash_password(user.password))

    # A failed profile insert does not block sign-up
    profile = user_crud.create_profile(db, account)
    if profile is None:
        logger.warning(f"Profile missing for {account.email}; session will use metadata fallback")

    logger.info(f"User {account.email} registered as {user.user_type}")
    return _token_response(db, account)


@auth_router.post("/token", response_model=schemas.TokenResponse)
def login_form(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    return _sign_in(db, form_data.username, form_data.password)


@auth_router.post("/login", response_model=schemas.TokenResponse)
def login(credentials: schemas.LoginSchema, db: Session = Depends(get_db)):
    return _sign_in(db, credentials.email, credentials.password)


@auth_router.get("/session", response_model=schemas.SessionOut)
def get_session(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
):
    claims = decode_access_token(token)
    user = resolve_session_user(db, claims)
    return schemas.SessionOut(user=user, access_token=token, permissions=permissions_for(user))


@auth_router.post("/refresh", response_model=schemas.TokenResponse)
def refresh(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
):
    claims = decode_access_token(token)
    account = user_crud.get_account(db, int(claims["sub"]))
    if not account:
        raise HTTPException(status_code=401, detail="Account no longer exists")
    return _token_response(db, account)


@auth_router.post("/logout")
def logout(current_user: schemas.CurrentUser = Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy
    logger.info(f"User {current_user.email} signed out")
    return {"message": "Signed out"}


# ================= PROFILE =================
@router.get("/me", response_model=schemas.CurrentUser)
def get_current_user_info(current_user: schemas.CurrentUser = Depends(get_current_user)):
    return current_user


@router.get("/me/permissions", response_model=schemas.PermissionsOut)
def get_my_permissions(current_user=Depends(get_optional_user)):
    return permissions_for(current_user)


@router.put("/me", response_model=schemas.CurrentUser)
def update_me(
    updates: schemas.ProfileUpdateSchema,
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
):
    claims = decode_access_token(token)
    current_user = resolve_session_user(db, claims)

    cleared = [
        field for field in REQUIRED_PROFILE_FIELDS
        if field in updates.model_fields_set and getattr(updates, field) is None
    ]
    if cleared:
        raise HTTPException(status_code=400, detail=f"These fields cannot be empty: {', '.join(cleared)}")

    profile = user_crud.get_user(db, current_user.id)
    if profile is None:
        # Repair: persist the fallback user together with the requested changes
        account = user_crud.get_account(db, current_user.id)
        fallback = fallback_user_from_claims(claims)
        overrides = {
            "first_name": fallback.first_name,
            "last_name": fallback.last_name,
            "phone": fallback.phone,
            "user_type": fallback.user_type,
            "company_name": fallback.company_name,
        }
        overrides.update(updates.model_dump(exclude_unset=True))
        profile = user_crud.create_profile(db, account, overrides)
        if profile is None:
            raise HTTPException(status_code=500, detail="Failed to update profile")
        logger.info(f"Profile repaired for {account.email}")
    else:
        profile = user_crud.update_profile(db, profile, updates)

    return schemas.CurrentUser.model_validate(profile)


@router.post("/me/avatar", response_model=schemas.CurrentUser)
def upload_avatar(
    file: UploadFile = File(...),
    current_user: schemas.CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    profile = require_profile(db, current_user)
    stored = storage_service.store_upload("avatars", current_user.id, file)
    profile = user_crud.update_profile(
        db, profile, schemas.ProfileUpdateSchema(avatar_url=stored["public_url"])
    )
    return schemas.CurrentUser.model_validate(profile)


@router.get("/{user_id}", response_model=schemas.UserSummary)
def get_public_profile(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: schemas.CurrentUser = Depends(get_current_user),
):
    user = user_crud.get_user(db, user_id)
    if not user or user.is_deleted:
        raise HTTPException(status_code=404, detail="User not found")
    return user
