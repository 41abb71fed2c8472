from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models.appointment import AppointmentStatus, MeetingType
from app.schemas.patient import PatientSummary


class AppointmentCreate(BaseModel):
    patient_id: int
    date_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None
    meeting_type: Optional[MeetingType] = None
    video_url: Optional[str] = None


class AppointmentRequest(BaseModel):
    date_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None
    meeting_type: Optional[MeetingType] = None
    payment_receipt: Optional[str] = None


class AppointmentUpdate(BaseModel):
    date_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None
    meeting_type: Optional[MeetingType] = None
    video_url: Optional[str] = None


class AppointmentNotes(BaseModel):
    notes: Optional[str] = None


class AppointmentReject(BaseModel):
    reason: Optional[str] = None


class AppointmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    practitioner_id: int
    patient_id: int
    patient: Optional[PatientSummary] = None
    date_time: datetime
    duration_minutes: int
    status: AppointmentStatus
    notes: Optional[str] = None
    meeting_type: MeetingType
    video_url: Optional[str] = None
    payment_receipt: Optional[str] = None
    created_at: datetime
    updated_at: datetime
