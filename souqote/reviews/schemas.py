from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from souqote.rfqs.schemas import RFQSummary
from souqote.users.schemas import UserSummary


class ReviewCreate(BaseModel):
    rfq_id: int
    reviewee_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class ReviewOut(BaseModel):
    id: int
    rfq_id: int
    reviewer_id: int
    reviewee_id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime

    reviewer: Optional[UserSummary] = None
    rfq: Optional[RFQSummary] = None
    stars: Optional[str] = None

    class Config:
        from_attributes = True
