from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from souqote.database import get_db
from souqote.users.permissions import role_required
from souqote.users.schemas import CurrentUser
from souqote.vendors.onboarding import (
    BUSINESS_CATEGORIES,
    COMPANY_TYPES,
    DOCUMENT_TYPES,
    EMIRATES,
    ISSUING_AUTHORITIES,
    REQUIRED_DOCUMENTS,
    STEP_TITLES,
)
from . import schemas, service


router = APIRouter()


@router.get("/options")
def onboarding_options():
    """Select options for the onboarding form."""
    return {
        "steps": STEP_TITLES,
        "issuing_authorities": ISSUING_AUTHORITIES,
        "company_types": COMPANY_TYPES,
        "emirates": EMIRATES,
        "business_categories": BUSINESS_CATEGORIES,
        "document_types": DOCUMENT_TYPES,
        "required_documents": REQUIRED_DOCUMENTS,
    }


# ================= ONBOARDING =================
@router.get("/onboarding", response_model=schemas.DraftOut)
def get_onboarding_draft(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["vendor"]))
):
    return service.get_draft(db, current_user)


@router.put("/onboarding/steps/{step}", response_model=schemas.StepSaveResult)
def save_onboarding_step(
    step: int,
    payload: schemas.StepSave,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["vendor"]))
):
    return service.save_step(db, current_user, step, payload.data)


@router.post("/onboarding/go-to/{step}", response_model=schemas.DraftOut)
def go_to_onboarding_step(
    step: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["vendor"]))
):
    return service.go_to_step(db, current_user, step)


@router.post("/onboarding/documents", response_model=schemas.DraftOut)
def upload_onboarding_document(
    document_type: str = Form(...),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["vendor"]))
):
    return service.upload_document(db, current_user, document_type, file)


@router.post("/onboarding/submit", response_model=schemas.VendorProfileOut)
def submit_onboarding(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["vendor"]))
):
    return service.submit(db, current_user)


# ================= PROFILES =================
@router.get("/", response_model=List[schemas.VendorProfileOut])
def list_vendors(
    category: Optional[str] = Query(None, description="Business category"),
    emirate: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    verified_only: bool = Query(False),
    db: Session = Depends(get_db)
):
    return service.list_vendors(
        db,
        category=category,
        emirate=emirate,
        search=search,
        verified_only=verified_only,
    )


@router.get("/{user_id}", response_model=schemas.VendorProfileOut)
def get_vendor_profile(user_id: int, db: Session = Depends(get_db)):
    return service.get_vendor_profile(db, user_id)


@router.patch("/{user_id}/verification", response_model=schemas.VendorProfileOut)
def verify_vendor(
    user_id: int,
    payload: schemas.VerifyVendorSchema,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.verify_vendor(db, current_user, user_id, payload)
