from typing import Optional

from pydantic import BaseModel, Field

from app.models.account import AccountKind


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    password: str
    email: str
    full_name: str
    kind: AccountKind = AccountKind.practitioner
    invite_code: Optional[str] = None
    specialty: Optional[str] = None
    bio: Optional[str] = None
    education: Optional[str] = None
    certifications: Optional[str] = None
    profile_image: Optional[str] = None
    timezone: Optional[str] = None
    language_preference: Optional[str] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str


class MessageResponse(BaseModel):
    message: str
