from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from souqote.database import get_db
from souqote.users.permissions import role_required
from souqote.users.schemas import CurrentUser
from . import schemas, service


router = APIRouter()

# ================= CREATE =================
@router.post(
    "/",
    response_model=schemas.CategoryOut,
    status_code=status.HTTP_201_CREATED
)
def create_category(
    category: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.create_category(db, category)


# ================= LIST =================
@router.get(
    "/",
    response_model=List[schemas.CategoryOut]
)
def list_categories(db: Session = Depends(get_db)):
    """Active categories for the RFQ form and vendor filters."""
    return service.list_categories(db)


@router.get("/all", response_model=List[schemas.CategoryOut])
def list_all_categories(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.list_categories(db, include_inactive=True)


@router.get("/{category_id}", response_model=schemas.CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return service.get_category(db, category_id)


# ================= UPDATE =================
@router.put(
    "/{category_id}",
    response_model=schemas.CategoryOut
)
def update_category(
    category_id: int,
    category: schemas.CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.update_category(db, category_id, category)


@router.post("/{category_id}/toggle", response_model=schemas.CategoryOut)
def toggle_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.toggle_category(db, category_id)


# ================= DELETE =================
@router.delete(
    "/{category_id}"
)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.delete_category(db, category_id)
