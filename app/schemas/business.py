from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from models.enums import RegistrationStatus


class BusinessRegistrationIn(BaseModel):
    company_name: str = Field(min_length=2, max_length=200)
    tax_id: str = Field(min_length=10, max_length=20)
    business_address: Optional[str] = Field(default=None, max_length=500)
    contact_phone: str = Field(min_length=10, max_length=32)
    contact_email: EmailStr
    business_type: str = Field(min_length=2, max_length=100)
    documents: List[str] = Field(default_factory=list)


class BusinessRegistrationOut(BaseModel):
    id: int
    user_id: int
    company_name: str
    tax_id: str
    business_address: Optional[str] = None
    contact_phone: str
    contact_email: str
    business_type: str
    documents: Optional[List[str]] = None
    status: RegistrationStatus
    rejection_reason: Optional[str] = None
    reviewed_by_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class BusinessStatusOut(BaseModel):
    has_registration: bool
    status: Optional[RegistrationStatus] = None
    rejection_reason: Optional[str] = None
    role: str


class RegistrationPageOut(BaseModel):
    total: int
    items: List[BusinessRegistrationOut]


class RegistrationRejectIn(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)
