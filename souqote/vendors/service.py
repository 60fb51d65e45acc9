from datetime import datetime

from fastapi import HTTPException, UploadFile, status
from loguru import logger
from sqlalchemy import or_
from sqlalchemy.orm import Session

from souqote.notifications.service import create_notification
from souqote.storage.service import store_upload
from souqote.users.auth import require_profile
from souqote.users.models import User
from souqote.vendors import models, schemas
from souqote.vendors.onboarding import (
    DOCUMENT_TYPES,
    STEP_TITLES,
    TOTAL_STEPS,
    OnboardingWizard,
    document_list,
)


# =========================
# Helpers
# =========================
def _require_vendor(db: Session, current_user) -> User:
    vendor = require_profile(db, current_user)
    if vendor.user_type != "vendor":
        raise HTTPException(status_code=403, detail="Only vendors can access onboarding")
    return vendor


def _wizard(draft: models.VendorOnboardingDraft) -> OnboardingWizard:
    return OnboardingWizard(draft.data, draft.current_step)


def _draft_out(draft: models.VendorOnboardingDraft, wizard: OnboardingWizard | None = None):
    wizard = wizard or _wizard(draft)
    return schemas.DraftOut(
        current_step=wizard.current_step,
        step_title=STEP_TITLES[wizard.current_step],
        data=wizard.to_dict(),
        completed_steps=wizard.completed_steps(),
        completion_percentage=wizard.completion_percentage(),
        submitted_at=draft.submitted_at,
    )


def _load_draft(db: Session, user_id: int) -> models.VendorOnboardingDraft:
    draft = db.query(models.VendorOnboardingDraft).filter(
        models.VendorOnboardingDraft.user_id == user_id
    ).first()
    if not draft:
        draft = models.VendorOnboardingDraft(
            user_id=user_id,
            current_step=1,
            data=OnboardingWizard().to_dict(),
        )
        db.add(draft)
        db.commit()
        db.refresh(draft)
    return draft


def _store_wizard(db: Session, draft, wizard: OnboardingWizard):
    draft.data = wizard.to_dict()
    draft.current_step = wizard.current_step
    draft.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(draft)


# =========================
# Onboarding
# =========================
def get_draft(db: Session, current_user):
    vendor = _require_vendor(db, current_user)
    return _draft_out(_load_draft(db, vendor.id))


def save_step(db: Session, current_user, step: int, values: dict):
    vendor = _require_vendor(db, current_user)
    if step < 1 or step > TOTAL_STEPS:
        raise HTTPException(status_code=400, detail=f"Step must be between 1 and {TOTAL_STEPS}")

    draft = _load_draft(db, vendor.id)
    wizard = _wizard(draft)
    try:
        wizard.update(step, values)
    except KeyError as exc:
        raise HTTPException(status_code=400, detail=str(exc.args[0]))

    errors = wizard.validate_step(step)
    wizard.go_to(step)
    if not errors:
        wizard.next_step()

    # Partial input is kept even when the step does not validate yet
    _store_wizard(db, draft, wizard)

    if errors:
        logger.debug(f"Onboarding step {step} for vendor {vendor.id} has errors: {errors}")
        raise HTTPException(
            status_code=400,
            detail={"message": f"Step {step} has missing or invalid fields", "errors": errors},
        )

    return schemas.StepSaveResult(step=step, errors={}, **_draft_out(draft, wizard).model_dump())


def go_to_step(db: Session, current_user, step: int):
    vendor = _require_vendor(db, current_user)
    draft = _load_draft(db, vendor.id)
    wizard = _wizard(draft)
    try:
        wizard.go_to(step)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    _store_wizard(db, draft, wizard)
    return _draft_out(draft, wizard)


def submit(db: Session, current_user):
    vendor = _require_vendor(db, current_user)
    draft = _load_draft(db, vendor.id)
    wizard = _wizard(draft)

    try:
        values = wizard.build_profile()
    except ValueError as exc:
        errors = {str(step): step_errors for step, step_errors in exc.args[0].items()}
        raise HTTPException(
            status_code=400,
            detail={"message": "Please complete all required steps", "errors": errors},
        )

    values.update(
        verification_status="pending",
        is_profile_complete=True,
        profile_completion_percentage=100,
    )

    # ✅ Upsert: resubmitting replaces the stored profile and resets verification
    profile = db.query(models.VendorProfile).filter(
        models.VendorProfile.user_id == vendor.id
    ).first()
    if profile:
        for key, value in values.items():
            setattr(profile, key, value)
        profile.updated_at = datetime.utcnow()
    else:
        profile = models.VendorProfile(user_id=vendor.id, **values)
        db.add(profile)

    vendor.company_name = values["company_name_english"]
    vendor.updated_at = datetime.utcnow()
    draft.submitted_at = datetime.utcnow()
    db.commit()
    db.refresh(profile)
    logger.info(f"Vendor profile submitted for user {vendor.id}: {profile.company_name_english}")
    return profile


def upload_document(db: Session, current_user, document_type: str, upload: UploadFile):
    vendor = _require_vendor(db, current_user)
    if document_type not in DOCUMENT_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown document type '{document_type}'")

    stored = store_upload("vendor-documents", vendor.id, upload)

    draft = _load_draft(db, vendor.id)
    wizard = _wizard(draft)
    documents = [d for d in document_list(wizard.data[7]["documents"]) if d.get("type") != document_type]
    documents.append({"type": document_type, "url": stored["public_url"]})
    wizard.update(7, {"documents": documents})
    _store_wizard(db, draft, wizard)
    return _draft_out(draft, wizard)


# =========================
# Profiles
# =========================
def get_vendor_profile(db: Session, user_id: int):
    profile = db.query(models.VendorProfile).filter(
        models.VendorProfile.user_id == user_id
    ).first()
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor profile not found")
    return profile


def list_vendors(
    db: Session,
    category: str | None = None,
    emirate: str | None = None,
    search: str | None = None,
    verified_only: bool = False,
):
    query = db.query(models.VendorProfile).join(User, User.id == models.VendorProfile.user_id)
    query = query.filter(User.is_deleted == False)  # noqa: E712

    if category:
        query = query.filter(models.VendorProfile.business_category == category)
    if emirate:
        query = query.filter(models.VendorProfile.emirate == emirate)
    if verified_only:
        query = query.filter(models.VendorProfile.verification_status == "verified")
    if search:
        query = query.filter(
            or_(
                models.VendorProfile.company_name_english.ilike(f"%{search}%"),
                models.VendorProfile.company_name_arabic.ilike(f"%{search}%"),
                models.VendorProfile.license_activity.ilike(f"%{search}%"),
            )
        )

    return query.order_by(models.VendorProfile.company_name_english).all()


def verify_vendor(db: Session, admin, user_id: int, payload: schemas.VerifyVendorSchema):
    profile = get_vendor_profile(db, user_id)

    profile.verification_status = payload.status
    profile.verification_notes = payload.notes
    profile.updated_at = datetime.utcnow()
    profile.user.is_verified = payload.status == "verified"
    db.commit()
    db.refresh(profile)
    logger.info(f"🔒 Admin {admin.id} set vendor {user_id} verification to {payload.status}")

    message = f"Your vendor profile has been {payload.status}."
    if payload.notes:
        message = f"{message} {payload.notes}"
    create_notification(
        db, user_id, "system_alert",
        {"message": message},
        title="Vendor verification update",
    )
    return profile
