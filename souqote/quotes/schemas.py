from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from souqote.rfqs.schemas import RFQSummary
from souqote.users.schemas import UserSummary


class QuoteItemIn(BaseModel):
    rfq_item_index: int = Field(..., ge=0)
    quantity_quoted: float
    unit_price: float
    delivery_time: str = ""
    notes: str = ""


class QuoteItemOut(QuoteItemIn):
    item_name: str = ""
    total_price: float = 0


class QuoteCreate(BaseModel):
    price: Optional[float] = None
    currency: str = "AED"
    validity_period: int = Field(30, gt=0)
    delivery_time: str
    message: str
    terms_conditions: Optional[str] = None
    items: List[QuoteItemIn] = []

    @field_validator("delivery_time", "message")
    @classmethod
    def not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v):
        return v.strip().upper()


class QuoteUpdate(BaseModel):
    price: Optional[float] = None
    validity_period: Optional[int] = Field(None, gt=0)
    delivery_time: Optional[str] = None
    message: Optional[str] = None
    terms_conditions: Optional[str] = None
    items: Optional[List[QuoteItemIn]] = None


class QuoteOut(BaseModel):
    id: int
    rfq_id: int
    vendor_id: int
    price: float
    currency: str
    validity_period: int
    delivery_time: str
    message: str
    terms_conditions: Optional[str] = None
    status: str
    attachments: List[str] = []
    items: List[QuoteItemOut] = []
    valid_until: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    vendor: Optional[UserSummary] = None
    rfq: Optional[RFQSummary] = None
    price_display: Optional[str] = None
    submitted_ago: Optional[str] = None

    @field_validator("attachments", "items", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    class Config:
        from_attributes = True


class QuoteSweepResult(BaseModel):
    processed: int
    ids: List[int] = []
