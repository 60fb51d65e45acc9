import re
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, field_validator


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# -------- AUTH --------
class RegisterSchema(BaseModel):
    email: str
    password: str
    first_name: str
    last_name: str
    phone: str = ""
    user_type: Literal["buyer", "vendor", "admin"] = "buyer"
    company_name: Optional[str] = None
    admin_secret: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        v = v.strip().lower()
        if not EMAIL_RE.match(v):
            raise ValueError("Please enter a valid email address.")
        return v

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class LoginSchema(BaseModel):
    email: str
    password: str


# -------- USERS --------
class UserSummary(BaseModel):
    id: int
    first_name: str = ""
    last_name: str = ""
    company_name: Optional[str] = None
    avatar_url: Optional[str] = None
    user_type: str = "buyer"
    is_verified: bool = False
    rating: float = 0

    class Config:
        from_attributes = True


class UserDisplaySchema(BaseModel):
    id: int
    email: str
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    user_type: str = "buyer"
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    company_name: Optional[str] = None
    business_license: Optional[str] = None
    tax_id: Optional[str] = None
    languages: List[str] = []
    specialties: List[str] = []
    is_verified: bool = False
    rating: float = 0
    total_rfqs: int = 0
    total_quotes: int = 0
    status: str = "pending"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("languages", "specialties", mode="before")
    @classmethod
    def ensure_list(cls, v):
        # Normalize: None -> [], "a,b" -> ["a","b"], list -> stripped strings
        if v is None:
            return []
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        if isinstance(v, list):
            return [str(x).strip() for x in v if str(x).strip()]
        return []

    class Config:
        from_attributes = True


class CurrentUser(UserDisplaySchema):
    # False when the profile row is missing and the user was rebuilt from token metadata
    has_profile: bool = True


class ProfileUpdateSchema(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    company_name: Optional[str] = None
    business_license: Optional[str] = None
    tax_id: Optional[str] = None
    languages: Optional[List[str]] = None
    specialties: Optional[List[str]] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: CurrentUser


class PermissionsOut(BaseModel):
    can_post_rfq: bool = False
    can_submit_quotes: bool = False
    can_browse_rfqs: bool = False
    can_view_admin: bool = False
    can_manage_users: bool = False
    can_manage_rfqs: bool = False
    can_manage_categories: bool = False
    can_view_all_quotes: bool = False
    can_view_all_rfqs: bool = False
    can_edit_profile: bool = False
    can_view_messages: bool = False
    can_view_my_rfqs: bool = False
    can_view_my_quotes: bool = False


class SessionOut(BaseModel):
    user: CurrentUser
    access_token: str
    permissions: PermissionsOut
