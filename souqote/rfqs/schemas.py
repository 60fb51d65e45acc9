from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from souqote.users.schemas import UserSummary


def _naive_utc(v):
    if isinstance(v, datetime) and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


class RFQItem(BaseModel):
    name: str
    description: str = ""
    quantity: float = Field(1, gt=0)
    unit: Literal["PCS", "KG", "MTR", "SQM", "CBM", "LTR", "SET", "PAIR", "BOX", "ROLL"] = "PCS"
    specifications: str = ""
    preferred_brand: str = ""
    acceptable_alternatives: bool = False

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Item name is required")
        return v


class RFQBase(BaseModel):
    title: str
    description: str
    category: str
    location: str
    budget_min: Optional[float] = Field(None, ge=0)
    budget_max: Optional[float] = Field(None, ge=0)
    urgency: Literal["low", "medium", "high"] = "medium"
    deadline: datetime
    specifications: Optional[str] = None
    requirements: List[str] = []
    items: List[RFQItem] = []

    rfq_reference: Optional[str] = None
    payment_terms: Optional[str] = None
    delivery_terms: Optional[str] = None
    delivery_date: Optional[datetime] = None
    delivery_location: Optional[str] = None
    vat_applicable: bool = False
    vat_rate: float = Field(5, ge=0, le=100)
    quotation_validity_days: int = Field(30, gt=0)
    warranty_requirements: Optional[str] = None
    installation_required: bool = False
    installation_specifications: Optional[str] = None
    currency: str = "AED"
    terms_conditions: Optional[str] = None

    contact_person_name: Optional[str] = None
    contact_person_role: Optional[str] = None
    contact_person_phone: Optional[str] = None
    project_reference: Optional[str] = None
    service_type: Optional[str] = None

    @field_validator("deadline", "delivery_date")
    @classmethod
    def to_naive_utc(cls, v):
        return _naive_utc(v)

    @field_validator("requirements")
    @classmethod
    def drop_blank_requirements(cls, v):
        return [r.strip() for r in v if r and r.strip()]

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v):
        return v.strip().upper()


class RFQCreate(RFQBase):
    pass


class RFQUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    budget_min: Optional[float] = Field(None, ge=0)
    budget_max: Optional[float] = Field(None, ge=0)
    urgency: Optional[Literal["low", "medium", "high"]] = None
    deadline: Optional[datetime] = None
    specifications: Optional[str] = None
    requirements: Optional[List[str]] = None
    items: Optional[List[RFQItem]] = None
    payment_terms: Optional[str] = None
    delivery_terms: Optional[str] = None
    delivery_date: Optional[datetime] = None
    delivery_location: Optional[str] = None
    vat_applicable: Optional[bool] = None
    vat_rate: Optional[float] = Field(None, ge=0, le=100)
    quotation_validity_days: Optional[int] = Field(None, gt=0)
    warranty_requirements: Optional[str] = None
    installation_required: Optional[bool] = None
    installation_specifications: Optional[str] = None
    terms_conditions: Optional[str] = None
    contact_person_name: Optional[str] = None
    contact_person_role: Optional[str] = None
    contact_person_phone: Optional[str] = None

    @field_validator("deadline", "delivery_date")
    @classmethod
    def to_naive_utc(cls, v):
        return _naive_utc(v)

    @field_validator("requirements")
    @classmethod
    def drop_blank_requirements(cls, v):
        if v is None:
            return v
        return [r.strip() for r in v if r and r.strip()]


class RFQStatusUpdate(BaseModel):
    status: Literal["open", "in_progress", "cancelled"]


class RFQSummary(BaseModel):
    id: int
    title: str
    category: str
    status: str
    deadline: datetime
    currency: str = "AED"
    buyer_id: int

    class Config:
        from_attributes = True


class RFQOut(RFQBase):
    id: int
    buyer_id: int
    status: str
    images: List[str] = []
    awarded_quote_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    # Display fields
    buyer: Optional[UserSummary] = None
    quote_count: int = 0
    budget_display: Optional[str] = None
    deadline_display: Optional[str] = None
    posted_ago: Optional[str] = None

    @field_validator("images", "requirements", "items", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    class Config:
        from_attributes = True


class SweepResult(BaseModel):
    processed: int
    ids: List[int] = []
