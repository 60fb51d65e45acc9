from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from souqote.database import Base


VERIFICATION_STATUSES = ("pending", "verified", "rejected")


class VendorProfile(Base):
    __tablename__ = "vendor_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    # Step 1: company information
    company_name_english = Column(String(255), nullable=False, index=True)
    company_name_arabic = Column(String(255), nullable=True)
    trade_license_number = Column(String(100), nullable=False)
    issuing_authority = Column(String(50), nullable=False)
    license_activity = Column(Text, nullable=True)
    license_expiry_date = Column(Date, nullable=False)
    establishment_date = Column(Date, nullable=True)
    company_type = Column(String(50), nullable=False)
    tax_registration_number = Column(String(15), nullable=True)

    # Step 2: location
    registered_office_address = Column(Text, nullable=False)
    emirate = Column(String(50), nullable=False, index=True)
    branch_locations = Column(JSON, default=list)
    google_maps_url = Column(String(500), nullable=True)
    makani_number = Column(String(50), nullable=True)

    # Step 3: contact
    authorized_person_name = Column(String(150), nullable=False)
    designation = Column(String(150), nullable=True)
    business_email = Column(String(255), nullable=False)
    business_phone = Column(String(50), nullable=False)
    whatsapp_number = Column(String(50), nullable=True)
    company_website = Column(String(255), nullable=True)
    linkedin_url = Column(String(255), nullable=True)
    social_media_links = Column(JSON, default=list)

    # Step 4: ownership
    company_owner_names = Column(JSON, default=list)
    owner_nationalities = Column(JSON, default=list)
    manager_name = Column(String(150), nullable=True)
    authorized_signatory_name = Column(String(150), nullable=True)

    # Step 5: operations
    business_category = Column(String(50), nullable=False, index=True)
    main_services_offered = Column(JSON, default=list)
    trade_license_activity_codes = Column(JSON, default=list)
    years_experience_uae = Column(Integer, default=0)
    major_clients = Column(JSON, default=list)
    staff_strength = Column(Integer, default=0)
    certifications = Column(JSON, default=list)
    insurance_details = Column(Text, nullable=True)
    health_safety_compliance = Column(Boolean, default=False)
    labour_supply_approval_number = Column(String(100), nullable=True)

    # Step 6: banking
    bank_name = Column(String(150), nullable=True)
    iban = Column(String(34), nullable=True)
    account_name = Column(String(150), nullable=True)

    # Step 7: documents, [{type, url}]
    documents = Column(JSON, default=list)

    # Step 8: compliance
    free_zone_mainland_indicator = Column(String(50), nullable=True)
    chamber_of_commerce_number = Column(String(100), nullable=True)
    mohre_workers_count = Column(Integer, default=0)
    preferred_work_locations = Column(JSON, default=list)
    languages_spoken = Column(JSON, default=list)
    response_sla_hours = Column(Integer, default=24)
    availability_hours = Column(String(100), nullable=True)
    uae_labour_law_compliance = Column(Boolean, default=False)
    mohre_requirements_compliance = Column(Boolean, default=False)
    vat_compliance = Column(Boolean, default=False)

    verification_status = Column(String(20), default="pending", nullable=False, index=True)
    verification_notes = Column(Text, nullable=True)
    is_profile_complete = Column(Boolean, default=False)
    profile_completion_percentage = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="vendor_profile")


class VendorOnboardingDraft(Base):
    """Wizard state saved between steps, keyed by step number."""

    __tablename__ = "vendor_onboarding_drafts"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    current_step = Column(Integer, default=1, nullable=False)
    data = Column(JSON, default=dict)
    submitted_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
