from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models.message import MessageTemplateKind


class MessageCreate(BaseModel):
    recipient_id: int
    subject: Optional[str] = None
    body: Optional[str] = None
    related_appointment_id: Optional[int] = None
    parent_message_id: Optional[int] = None


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sender_id: int
    recipient_id: int
    subject: str
    body: str
    sent_at: datetime
    read_at: Optional[datetime] = None
    related_appointment_id: Optional[int] = None
    parent_message_id: Optional[int] = None
    is_deleted_by_sender: bool
    is_deleted_by_recipient: bool


class UnreadCountOut(BaseModel):
    count: int


class MessageTemplateCreate(BaseModel):
    kind: MessageTemplateKind = MessageTemplateKind.custom
    title: Optional[str] = None
    content: Optional[str] = None
    language: Optional[str] = None
    is_default: bool = False


class MessageTemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    practitioner_id: int
    kind: MessageTemplateKind
    title: str
    content: str
    is_default: bool
    language: str
    created_at: datetime
