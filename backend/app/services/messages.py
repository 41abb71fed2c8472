from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from app.core.errors import Forbidden, NotFound, ValidationError
from app.core.validators import require_text
from app.models.account import Account
from app.models.appointment import Appointment
from app.models.message import Message
from app.services import accounts as account_service


class Mailbox(str, enum.Enum):
    all = "all"
    inbox = "inbox"
    sent = "sent"


def _check_can_message(sender: Account, recipient: Account) -> None:
    if sender.is_client:
        if recipient.id != sender.linked_practitioner_id:
            raise Forbidden("Clients can only message their practitioner")
    elif recipient.linked_practitioner_id != sender.id:
        raise Forbidden("Practitioners can only message their own clients")


def send(
    db: Session,
    *,
    sender: Account,
    recipient_id: int,
    subject: str | None,
    body: str | None,
    related_appointment_id: int | None = None,
    parent_message_id: int | None = None,
) -> Message:
    if recipient_id == sender.id:
        raise ValidationError("Cannot send a message to yourself", field="recipient_id")
    body = require_text(body, field="body", message="Message body is required")
    subject = (subject or "").strip()
    recipient = account_service.get_account_by_id(db, recipient_id)
    if not recipient or not recipient.is_active:
        raise NotFound("Recipient not found")
    _check_can_message(sender, recipient)

    if related_appointment_id is not None:
        appt = db.get(Appointment, related_appointment_id)
        if not appt:
            raise NotFound("Appointment not found")
        practitioner_id = sender.id if sender.is_practitioner else recipient.id
        if appt.practitioner_id != practitioner_id:
            raise Forbidden("Appointment is not shared by these accounts")
    if parent_message_id is not None:
        parent = db.get(Message, parent_message_id)
        if not parent:
            raise NotFound("Message not found")
        if sender.id not in (parent.sender_id, parent.recipient_id):
            raise Forbidden("Not authorized to reply to this message")
        if not subject:
            subject = parent.subject if parent.subject.startswith("Re: ") else f"Re: {parent.subject}"

    message = Message(
        sender_id=sender.id,
        recipient_id=recipient.id,
        subject=subject or "(no subject)",
        body=body,
        related_appointment_id=related_appointment_id,
        parent_message_id=parent_message_id,
    )
    db.add(message)
    db.flush()
    return message


def list_for(
    db: Session,
    *,
    account_id: int,
    include_deleted: bool = False,
    box: Mailbox = Mailbox.all,
) -> list[Message]:
    received = Message.recipient_id == account_id
    sent = Message.sender_id == account_id
    if not include_deleted:
        received = and_(received, Message.is_deleted_by_recipient.is_(False))
        sent = and_(sent, Message.is_deleted_by_sender.is_(False))
    if box == Mailbox.inbox:
        condition = received
    elif box == Mailbox.sent:
        condition = sent
    else:
        condition = or_(received, sent)
    stmt = select(Message).where(condition).order_by(Message.sent_at.desc(), Message.id.desc())
    return list(db.scalars(stmt))


def _get_message(db: Session, message_id: int) -> Message:
    message = db.get(Message, message_id)
    if not message:
        raise NotFound("Message not found")
    return message


def mark_read(db: Session, *, message_id: int, account_id: int) -> Message:
    message = _get_message(db, message_id)
    if message.recipient_id != account_id:
        raise Forbidden("Only the recipient can mark a message as read")
    if message.read_at is None:
        message.read_at = datetime.now(timezone.utc)
        db.add(message)
        db.flush()
    return message


def soft_delete(db: Session, *, message_id: int, account_id: int) -> Message:
    message = _get_message(db, message_id)
    if account_id not in (message.sender_id, message.recipient_id):
        raise Forbidden("Not authorized to delete this message")
    if message.sender_id == account_id:
        message.is_deleted_by_sender = True
    if message.recipient_id == account_id:
        message.is_deleted_by_recipient = True
    db.add(message)
    db.flush()
    return message


def unread_count(db: Session, *, account_id: int) -> int:
    stmt = select(func.count(Message.id)).where(
        Message.recipient_id == account_id,
        Message.read_at.is_(None),
        Message.is_deleted_by_recipient.is_(False),
    )
    return int(db.scalar(stmt) or 0)
