from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from souqote.database import get_db
from souqote.users.auth import get_current_user
from souqote.users.schemas import CurrentUser
from . import schemas, service


router = APIRouter()


@router.post("/", response_model=schemas.ReviewOut, status_code=status.HTTP_201_CREATED)
def create_review(
    review: schemas.ReviewCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    return service.create_review(db, current_user, review)


@router.get("/user/{user_id}", response_model=List[schemas.ReviewOut])
def list_user_reviews(user_id: int, db: Session = Depends(get_db)):
    return service.list_user_reviews(db, user_id)
