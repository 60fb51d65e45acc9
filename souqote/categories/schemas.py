from datetime import datetime
from typing import Optional

from pydantic import BaseModel


# ================= CREATE =================
class CategoryCreate(BaseModel):
    name_en: str
    name_ar: str
    description_en: Optional[str] = None
    description_ar: Optional[str] = None
    icon: Optional[str] = None
    is_active: bool = True


# ================= UPDATE =================
class CategoryUpdate(BaseModel):
    name_en: Optional[str] = None
    name_ar: Optional[str] = None
    description_en: Optional[str] = None
    description_ar: Optional[str] = None
    icon: Optional[str] = None
    is_active: Optional[bool] = None


# ================= RESPONSE =================
class CategoryOut(BaseModel):
    id: int
    name_en: str
    name_ar: str
    description_en: Optional[str]
    description_ar: Optional[str]
    icon: Optional[str]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
