from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False, index=True)
    recipient_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False, index=True)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    related_appointment_id: Mapped[int | None] = mapped_column(
        ForeignKey("appointments.id"), nullable=True, index=True
    )
    parent_message_id: Mapped[int | None] = mapped_column(ForeignKey("messages.id"), nullable=True)
    is_deleted_by_sender: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_deleted_by_recipient: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class MessageTemplateKind(str, enum.Enum):
    appointment_reminder = "appointment_reminder"
    follow_up = "follow_up"
    welcome = "welcome"
    cancellation = "cancellation"
    rescheduling = "rescheduling"
    custom = "custom"


class MessageTemplate(Base, TimestampMixin):
    __tablename__ = "message_templates"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    practitioner_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False, index=True)
    kind: Mapped[MessageTemplateKind] = mapped_column(
        Enum(MessageTemplateKind, name="message_template_kind"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    language: Mapped[str] = mapped_column(String(10), default="es", nullable=False)
