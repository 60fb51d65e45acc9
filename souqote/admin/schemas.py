from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel

from souqote.rfqs.schemas import RFQSummary
from souqote.users.schemas import UserDisplaySchema


class AdminUserOut(UserDisplaySchema):
    is_deleted: bool = False
    status_updated_at: Optional[datetime] = None
    vendor_company_name: Optional[str] = None
    vendor_verification_status: Optional[str] = None


class UserActionCreate(BaseModel):
    action: Literal["approve", "reject", "block", "unblock", "delete", "restore"]
    notes: Optional[str] = None


class UserActionOut(BaseModel):
    id: int
    user_id: int
    admin_id: Optional[int] = None
    action_type: str
    notes: Optional[str] = None
    previous_status: Optional[str] = None
    new_status: str
    created_at: datetime

    class Config:
        from_attributes = True


class DashboardStats(BaseModel):
    total_users: int
    total_buyers: int
    total_vendors: int
    verified_users: int
    total_rfqs: int
    rfqs_by_status: Dict[str, int]
    total_quotes: int
    quotes_by_status: Dict[str, int]
    active_categories: int
    pending_vendor_verifications: int


class RecentActivity(BaseModel):
    users: List[AdminUserOut]
    rfqs: List[RFQSummary]
