"""
Vendor onboarding wizard.

Eight steps of form state collected before a vendor profile is created. The
wizard holds the data of every step, tracks the current step and reports field
errors per step; `build_profile` flattens the steps into vendor profile
columns once every step validates.
"""
import copy
import re
from datetime import date, datetime


TOTAL_STEPS = 8

STEP_TITLES = {
    1: "Company Information",
    2: "Business Location",
    3: "Contact Details",
    4: "Ownership Info",
    5: "Business Operations",
    6: "Banking Information",
    7: "Documents",
    8: "Compliance & Final",
}

ISSUING_AUTHORITIES = (
    "DED", "DMCC", "DIFC", "JAFZA", "ADGM", "SHAMS", "RAK_ICC",
    "Fujairah_Creative_City", "Ministry_of_Economy", "Other",
)
COMPANY_TYPES = ("LLC", "Sole_Proprietorship", "Branch", "Free_Zone", "Partnership", "Other")
EMIRATES = (
    "Dubai", "Abu_Dhabi", "Sharjah", "Ajman", "Umm_Al_Quwain", "Ras_Al_Khaimah", "Fujairah",
)
BUSINESS_CATEGORIES = (
    "Manpower_Supply", "MEP_Services", "Civil_Works", "Facility_Management", "HVAC",
    "Plumbing", "Electrical", "Building_Maintenance", "Technical_Services",
    "Engineering_Consultancy", "IT_Services", "Security_Services", "Cleaning_Services",
    "Landscaping", "Transportation", "Other",
)
DOCUMENT_TYPES = ("trade_license", "vat_certificate", "insurance", "iso_certificate", "company_stamp")
REQUIRED_DOCUMENTS = ("trade_license", "vat_certificate")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
IBAN_RE = re.compile(r"^AE\d{21}$")
TRN_RE = re.compile(r"^\d{15}$")

STEP_DEFAULTS = {
    1: {
        "company_name_english": "",
        "company_name_arabic": "",
        "trade_license_number": "",
        "issuing_authority": "DED",
        "license_activity": "",
        "license_expiry_date": "",
        "establishment_date": "",
        "company_type": "LLC",
        "tax_registration_number": "",
    },
    2: {
        "registered_office_address": "",
        "emirate": "Dubai",
        "branch_locations": [],
        "google_maps_url": "",
        "makani_number": "",
    },
    3: {
        "authorized_person_name": "",
        "designation": "",
        "business_email": "",
        "business_phone": "",
        "whatsapp_number": "",
        "company_website": "",
        "linkedin_url": "",
        "social_media_links": [],
    },
    4: {
        "company_owner_names": [],
        "owner_nationalities": [],
        "manager_name": "",
        "authorized_signatory_name": "",
    },
    5: {
        "business_category": "Technical_Services",
        "main_services_offered": [],
        "trade_license_activity_codes": [],
        "years_experience_uae": 0,
        "major_clients": [],
        "staff_strength": 0,
        "certifications": [],
        "insurance_details": "",
        "health_safety_compliance": False,
        "labour_supply_approval_number": "",
    },
    6: {
        "bank_name": "",
        "iban": "",
        "account_name": "",
    },
    7: {
        "documents": [],
    },
    8: {
        "free_zone_mainland_indicator": "",
        "chamber_of_commerce_number": "",
        "mohre_workers_count": 0,
        "preferred_work_locations": [],
        "languages_spoken": [],
        "response_sla_hours": 24,
        "availability_hours": "",
        "uae_labour_law_compliance": False,
        "mohre_requirements_compliance": False,
        "vat_compliance": False,
    },
}

DATE_FIELDS = ("license_expiry_date", "establishment_date")


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _text(value) -> str:
    """Stripped string value; anything that is not a string counts as empty."""
    return value.strip() if isinstance(value, str) else ""


def document_list(value) -> list:
    """The well-formed `{type, url}` entries of a stored document list."""
    if not isinstance(value, list):
        return []
    return [doc for doc in value if isinstance(doc, dict)]


def type_errors(step: int, values: dict) -> dict:
    """Fields whose value does not have the type of the step default."""
    errors = {}
    for field, default in STEP_DEFAULTS[step].items():
        value = values.get(field)
        if value is None or field in DATE_FIELDS:
            continue
        if isinstance(default, bool):
            if not isinstance(value, bool):
                errors[field] = "Must be true or false"
        elif isinstance(default, str):
            if not isinstance(value, str):
                errors[field] = "Must be text"
        elif isinstance(default, list):
            if not isinstance(value, list):
                errors[field] = "Must be a list"
        elif isinstance(value, bool) or not isinstance(value, (int, float)):
            errors[field] = "Must be a number"
    return errors


def parse_date(value):
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def normalize_iban(value) -> str:
    return _text(value).replace(" ", "").upper()


class OnboardingWizard:
    def __init__(self, data: dict | None = None, current_step: int = 1):
        self.data = copy.deepcopy(STEP_DEFAULTS)
        for key, values in (data or {}).items():
            step = int(key)
            if step in self.data:
                self.data[step].update(values or {})
        self.current_step = min(max(int(current_step or 1), 1), TOTAL_STEPS)

    # ---- navigation ----
    def next_step(self) -> int:
        if self.current_step < TOTAL_STEPS:
            self.current_step += 1
        return self.current_step

    def prev_step(self) -> int:
        if self.current_step > 1:
            self.current_step -= 1
        return self.current_step

    def go_to(self, step: int) -> int:
        if step < 1 or step > TOTAL_STEPS:
            raise ValueError(f"Step must be between 1 and {TOTAL_STEPS}")
        self.current_step = step
        return self.current_step

    # ---- state ----
    def update(self, step: int, values: dict):
        if step not in self.data:
            raise ValueError(f"Step must be between 1 and {TOTAL_STEPS}")
        unknown = set(values) - set(STEP_DEFAULTS[step])
        if unknown:
            raise KeyError(f"Unknown fields for step {step}: {', '.join(sorted(unknown))}")
        self.data[step].update(values)
        return self.data[step]

    def to_dict(self) -> dict:
        # JSON object keys are strings
        return {str(step): values for step, values in self.data.items()}

    # ---- validation ----
    def validate_step(self, step: int, today: date | None = None) -> dict:
        today = today or date.today()
        d = self.data[step]
        errors = type_errors(step, d)

        if step == 1:
            if _blank(d["company_name_english"]):
                errors["company_name_english"] = "Company name (English) is required"
            if _blank(d["trade_license_number"]):
                errors["trade_license_number"] = "Trade license number is required"
            if d["issuing_authority"] not in ISSUING_AUTHORITIES:
                errors["issuing_authority"] = "Select a valid issuing authority"
            if d["company_type"] not in COMPANY_TYPES:
                errors["company_type"] = "Select a valid company type"
            try:
                expiry = parse_date(d["license_expiry_date"])
            except ValueError:
                errors["license_expiry_date"] = "Enter a valid date"
            else:
                if expiry is None:
                    errors["license_expiry_date"] = "License expiry date is required"
                elif expiry <= today:
                    errors["license_expiry_date"] = "Trade license has expired"
            try:
                parse_date(d["establishment_date"])
            except ValueError:
                errors["establishment_date"] = "Enter a valid date"
            trn = _text(d["tax_registration_number"])
            if trn and not TRN_RE.match(trn):
                errors["tax_registration_number"] = "TRN must be 15 digits"

        elif step == 2:
            if _blank(d["registered_office_address"]):
                errors["registered_office_address"] = "Registered office address is required"
            if d["emirate"] not in EMIRATES:
                errors["emirate"] = "Select a valid emirate"

        elif step == 3:
            if _blank(d["authorized_person_name"]):
                errors["authorized_person_name"] = "Authorized person name is required"
            email = _text(d["business_email"])
            if not email and "business_email" not in errors:
                errors["business_email"] = "Business email is required"
            elif email and not EMAIL_RE.match(email):
                errors["business_email"] = "Enter a valid email address"
            if _blank(d["business_phone"]):
                errors["business_phone"] = "Business phone is required"

        elif step == 5:
            if d["business_category"] not in BUSINESS_CATEGORIES:
                errors["business_category"] = "Select a valid business category"
            years = d["years_experience_uae"]
            if years is None or not isinstance(years, (int, float)) or years < 0:
                errors["years_experience_uae"] = "Years of experience must be 0 or more"

        elif step == 6:
            iban = normalize_iban(d["iban"])
            if iban and not IBAN_RE.match(iban):
                errors["iban"] = "IBAN must be AE followed by 21 digits"

        elif step == 7:
            documents = document_list(d["documents"])
            if isinstance(d["documents"], list) and len(documents) != len(d["documents"]):
                errors["documents"] = "Each document needs a type and url"
            uploaded = {doc.get("type") for doc in documents if doc.get("url")}
            missing = [t for t in REQUIRED_DOCUMENTS if t not in uploaded]
            if missing and "documents" not in errors:
                errors["documents"] = f"Missing required documents: {', '.join(missing)}"

        elif step == 8:
            sla = d["response_sla_hours"]
            if sla is not None and (not isinstance(sla, (int, float)) or sla <= 0):
                errors["response_sla_hours"] = "Response SLA must be a positive number of hours"

        return errors

    def is_step_valid(self, step: int, today: date | None = None) -> bool:
        return not self.validate_step(step, today)

    def completed_steps(self, today: date | None = None):
        return [s for s in range(1, TOTAL_STEPS + 1) if self.is_step_valid(s, today)]

    def completion_percentage(self, today: date | None = None) -> int:
        return round(len(self.completed_steps(today)) * 100 / TOTAL_STEPS)

    def all_errors(self, today: date | None = None) -> dict:
        return {
            step: errors
            for step in range(1, TOTAL_STEPS + 1)
            if (errors := self.validate_step(step, today))
        }

    def build_profile(self, today: date | None = None) -> dict:
        errors = self.all_errors(today)
        if errors:
            raise ValueError(errors)

        profile = {}
        for step in range(1, TOTAL_STEPS + 1):
            for field, value in self.data[step].items():
                if isinstance(value, str):
                    value = value.strip() or None
                profile[field] = value

        for field in DATE_FIELDS:
            profile[field] = parse_date(profile[field])
        if profile["iban"]:
            profile["iban"] = normalize_iban(profile["iban"])
        profile["response_sla_hours"] = profile["response_sla_hours"] or 24
        return profile
