from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, field_validator

from souqote.users.schemas import UserSummary


# -------- ONBOARDING --------
class StepSave(BaseModel):
    data: Dict[str, Any]


class DraftOut(BaseModel):
    current_step: int
    step_title: str
    data: Dict[str, Dict[str, Any]]
    completed_steps: List[int]
    completion_percentage: int
    submitted_at: Optional[datetime] = None


class StepSaveResult(DraftOut):
    step: int
    errors: Dict[str, str] = {}


class DocumentOut(BaseModel):
    type: str
    url: str


# -------- PROFILE --------
class VendorProfileOut(BaseModel):
    id: int
    user_id: int

    company_name_english: str
    company_name_arabic: Optional[str] = None
    trade_license_number: str
    issuing_authority: str
    license_activity: Optional[str] = None
    license_expiry_date: date
    establishment_date: Optional[date] = None
    company_type: str
    tax_registration_number: Optional[str] = None

    registered_office_address: str
    emirate: str
    branch_locations: List[str] = []
    google_maps_url: Optional[str] = None
    makani_number: Optional[str] = None

    authorized_person_name: str
    designation: Optional[str] = None
    business_email: str
    business_phone: str
    whatsapp_number: Optional[str] = None
    company_website: Optional[str] = None
    linkedin_url: Optional[str] = None
    social_media_links: List[str] = []

    company_owner_names: List[str] = []
    owner_nationalities: List[str] = []
    manager_name: Optional[str] = None
    authorized_signatory_name: Optional[str] = None

    business_category: str
    main_services_offered: List[str] = []
    trade_license_activity_codes: List[str] = []
    years_experience_uae: Optional[int] = None
    major_clients: List[str] = []
    staff_strength: Optional[int] = None
    certifications: List[str] = []
    insurance_details: Optional[str] = None
    health_safety_compliance: bool = False
    labour_supply_approval_number: Optional[str] = None

    bank_name: Optional[str] = None
    iban: Optional[str] = None
    account_name: Optional[str] = None

    documents: List[DocumentOut] = []

    free_zone_mainland_indicator: Optional[str] = None
    chamber_of_commerce_number: Optional[str] = None
    mohre_workers_count: Optional[int] = None
    preferred_work_locations: List[str] = []
    languages_spoken: List[str] = []
    response_sla_hours: int = 24
    availability_hours: Optional[str] = None
    uae_labour_law_compliance: bool = False
    mohre_requirements_compliance: bool = False
    vat_compliance: bool = False

    verification_status: str
    verification_notes: Optional[str] = None
    is_profile_complete: bool
    profile_completion_percentage: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    user: Optional[UserSummary] = None

    @field_validator(
        "branch_locations", "social_media_links", "company_owner_names",
        "owner_nationalities", "main_services_offered", "trade_license_activity_codes",
        "major_clients", "certifications", "documents", "preferred_work_locations",
        "languages_spoken",
        mode="before",
    )
    @classmethod
    def none_to_list(cls, v):
        return v or []

    class Config:
        from_attributes = True


class VerifyVendorSchema(BaseModel):
    status: Literal["pending", "verified", "rejected"]
    notes: Optional[str] = None
