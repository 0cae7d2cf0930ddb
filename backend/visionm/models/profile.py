from pydantic import BaseModel
from typing import Optional


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    company_id: Optional[str] = None
    role: Optional[str] = None
    created_at: Optional[str] = None


class CompanyResponse(BaseModel):
    id: str
    name: str
    admin_email: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None


class SessionResponse(BaseModel):
    profile: Optional[ProfileResponse] = None
    company: Optional[CompanyResponse] = None
    is_admin: bool = False
