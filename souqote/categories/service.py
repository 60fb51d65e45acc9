from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models, schemas


def _get_or_404(db: Session, category_id: int):
    db_category = (
        db.query(models.Category)
        .filter(models.Category.id == category_id)
        .first()
    )
    if not db_category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found"
        )
    return db_category


def _name_taken(db: Session, name_en: str, exclude_id: int | None = None) -> bool:
    query = db.query(models.Category).filter(
        func.lower(models.Category.name_en) == name_en.strip().lower()
    )
    if exclude_id is not None:
        query = query.filter(models.Category.id != exclude_id)
    return query.first() is not None


# ================= CREATE =================
def create_category(db: Session, category: schemas.CategoryCreate):
    if not category.name_en.strip() or not category.name_ar.strip():
        raise HTTPException(status_code=400, detail="Category names must not be blank")

    if _name_taken(db, category.name_en):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Category '{category.name_en}' already exists"
        )

    db_category = models.Category(
        name_en=category.name_en.strip(),
        name_ar=category.name_ar.strip(),
        description_en=category.description_en,
        description_ar=category.description_ar,
        icon=category.icon,
        is_active=category.is_active,
    )

    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


# ================= LIST =================
def list_categories(db: Session, include_inactive: bool = False):
    query = db.query(models.Category)
    if not include_inactive:
        query = query.filter(models.Category.is_active == True)  # noqa: E712
    return query.order_by(models.Category.name_en).all()


def get_category(db: Session, category_id: int):
    return _get_or_404(db, category_id)


def is_active_category(db: Session, name_en: str) -> bool:
    return (
        db.query(models.Category)
        .filter(models.Category.name_en == name_en)
        .filter(models.Category.is_active == True)  # noqa: E712
        .first()
        is not None
    )


# ================= UPDATE =================
def update_category(
    db: Session,
    category_id: int,
    category: schemas.CategoryUpdate
):
    db_category = _get_or_404(db, category_id)

    if category.name_en:
        if _name_taken(db, category.name_en, exclude_id=category_id):
            raise HTTPException(
                status_code=400,
                detail="Another category with this name already exists"
            )
        db_category.name_en = category.name_en.strip()

    if category.name_ar:
        db_category.name_ar = category.name_ar.strip()

    for field in ("description_en", "description_ar", "icon", "is_active"):
        value = getattr(category, field)
        if value is not None:
            setattr(db_category, field, value)

    db.commit()
    db.refresh(db_category)
    return db_category


def toggle_category(db: Session, category_id: int):
    db_category = _get_or_404(db, category_id)
    db_category.is_active = not db_category.is_active
    db.commit()
    db.refresh(db_category)
    return db_category


# ================= DELETE =================
def delete_category(db: Session, category_id: int):
    db_category = _get_or_404(db, category_id)
    db.delete(db_category)
    db.commit()
    return {"message": "Category deleted successfully"}
