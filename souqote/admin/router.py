from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from souqote.database import get_db
from souqote.users.permissions import role_required
from souqote.users.schemas import CurrentUser
from . import schemas, service


router = APIRouter()


# ================= USERS =================
@router.get("/users", response_model=List[schemas.AdminUserOut])
def list_users(
    user_type: Optional[str] = Query(None, description="buyer, vendor or admin"),
    status: Optional[str] = Query(None, description="pending, approved, rejected, blocked, deleted"),
    search: Optional[str] = Query(None, description="Email, name or company"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.list_users(db, user_type=user_type, status_filter=status, search=search)


@router.post("/users/{user_id}/actions", response_model=schemas.AdminUserOut)
def apply_user_action(
    user_id: int,
    payload: schemas.UserActionCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.apply_user_action(db, current_user, user_id, payload.action, payload.notes)


@router.get("/users/{user_id}/actions", response_model=List[schemas.UserActionOut])
def list_user_actions(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.list_user_actions(db, user_id)


# ================= DASHBOARD =================
@router.get("/dashboard", response_model=schemas.DashboardStats)
def dashboard_stats(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.dashboard_stats(db)


@router.get("/recent", response_model=schemas.RecentActivity)
def recent_activity(
    limit: int = Query(5, gt=0, le=50),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(role_required(["admin"]))
):
    return service.recent_activity(db, limit=limit)
