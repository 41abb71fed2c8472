from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models.account import AccountKind


class AccountOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    full_name: str
    kind: AccountKind
    linked_practitioner_id: Optional[int] = None
    invite_code: Optional[str] = None
    specialty: Optional[str] = None
    bio: Optional[str] = None
    education: Optional[str] = None
    certifications: Optional[str] = None
    profile_image: Optional[str] = None
    timezone: str
    language_preference: str
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime


class PractitionerPublicOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: str
    specialty: Optional[str] = None
    bio: Optional[str] = None
    education: Optional[str] = None
    certifications: Optional[str] = None
    profile_image: Optional[str] = None
    timezone: str
    language_preference: str


class ClientSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    full_name: str
    email: str
    is_active: bool
    created_at: datetime


class AccountUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    specialty: Optional[str] = None
    bio: Optional[str] = None
    education: Optional[str] = None
    certifications: Optional[str] = None
    profile_image: Optional[str] = None
    timezone: Optional[str] = None
    language_preference: Optional[str] = None


class InviteCodeOut(BaseModel):
    invite_code: str
