from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ConsentFormCreate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    language: Optional[str] = None
    is_active: bool = True


class ConsentFormUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    language: Optional[str] = None
    is_active: Optional[bool] = None


class ConsentFormOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    practitioner_id: int
    title: str
    content: str
    version: str
    is_active: bool
    language: str
    created_at: datetime
    updated_at: datetime


class PatientConsentCreate(BaseModel):
    patient_id: int
    consent_form_id: int
    signature: Optional[str] = None


class ClientConsentCreate(BaseModel):
    consent_form_id: int
    signature: Optional[str] = None


class PatientConsentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    consent_form_id: int
    form_version: str
    form_title: str
    form_content: str
    signed_at: datetime
    signature: str
    ip_address: Optional[str] = None
    is_valid: bool
    expires_at: Optional[datetime] = None
