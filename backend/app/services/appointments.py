"""Appointment ledger: creation, status transitions and ownership checks.

Lifecycle::

    (client request)  -> pending  -> approved -> completed | cancelled | missed
                                  -> rejected
    (practitioner)    -> scheduled -> completed | cancelled | missed

``completed``, ``rejected``, ``cancelled`` and ``missed`` are terminal. Every
change is made by the owning practitioner; nothing here notifies the other
party or moves an appointment on its own.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import Forbidden, InvalidTransition, NotFound, ValidationError
from app.models.account import Account
from app.models.appointment import Appointment, AppointmentStatus, MeetingType
from app.models.patient import Patient
from app.services import accounts as account_service
from app.services.cache import invalidate_appointments

S = AppointmentStatus

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    S.pending: frozenset({S.approved, S.rejected}),
    S.approved: frozenset({S.completed, S.cancelled, S.missed}),
    S.scheduled: frozenset({S.completed, S.cancelled, S.missed}),
    S.completed: frozenset(),
    S.rejected: frozenset(),
    S.cancelled: frozenset(),
    S.missed: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)

EDITABLE_FIELDS = ("notes", "date_time", "duration_minutes", "meeting_type", "video_url")


def is_terminal(status: AppointmentStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def _validate_schedule(date_time: datetime | None, duration_minutes: Any) -> None:
    if date_time is None:
        raise ValidationError("Date and time are required", field="date_time")
    if not isinstance(date_time, datetime):
        raise ValidationError("Date and time must be a valid datetime", field="date_time")
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise ValidationError("Duration must be a whole number of minutes", field="duration_minutes")
    if duration_minutes <= 0:
        raise ValidationError("Duration must be a positive number of minutes", field="duration_minutes")


def _clean_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    return notes.strip() or None


def require_practitioner(actor: Account) -> None:
    if not actor.is_practitioner:
        raise Forbidden("This action is available to practitioners only")


def create_by_practitioner(
    db: Session,
    *,
    practitioner: Account,
    patient_id: int,
    date_time: datetime | None,
    duration_minutes: Any,
    notes: str | None = None,
    meeting_type: MeetingType | None = None,
    video_url: str | None = None,
) -> Appointment:
    require_practitioner(practitioner)
    _validate_schedule(date_time, duration_minutes)
    patient = db.get(Patient, patient_id)
    if not patient:
        raise NotFound("Patient not found")
    if patient.practitioner_id != practitioner.id:
        raise Forbidden("Not authorized to book for this patient")
    appt = Appointment(
        practitioner_id=practitioner.id,
        patient_id=patient.id,
        date_time=date_time,
        duration_minutes=duration_minutes,
        status=S.scheduled,
        notes=_clean_notes(notes),
        meeting_type=meeting_type or MeetingType.video,
        video_url=video_url,
    )
    db.add(appt)
    db.flush()
    invalidate_appointments(db, practitioner.id, "appointments.create_by_practitioner")
    return appt


def request_by_client(
    db: Session,
    *,
    client: Account,
    date_time: datetime | None,
    duration_minutes: Any,
    notes: str | None = None,
    meeting_type: MeetingType | None = None,
    payment_receipt: str | None = None,
) -> Appointment:
    if not client.is_client:
        raise Forbidden("This action is available to clients only")
    _validate_schedule(date_time, duration_minutes)
    patient = account_service.get_linked_patient(db, client=client)
    if client.linked_practitioner_id != patient.practitioner_id:
        raise Forbidden("Patient record is not linked to your practitioner")
    appt = Appointment(
        practitioner_id=patient.practitioner_id,
        patient_id=patient.id,
        date_time=date_time,
        duration_minutes=duration_minutes,
        status=S.pending,
        notes=_clean_notes(notes),
        meeting_type=meeting_type or MeetingType.video,
        payment_receipt=payment_receipt,
    )
    db.add(appt)
    db.flush()
    invalidate_appointments(db, patient.practitioner_id, "appointments.request_by_client")
    return appt


def get_appointment(db: Session, *, appointment_id: int, practitioner: Account) -> Appointment:
    require_practitioner(practitioner)
    appt = db.get(Appointment, appointment_id)
    if not appt:
        raise NotFound("Appointment not found")
    if appt.practitioner_id != practitioner.id:
        raise Forbidden("Not authorized to access this appointment")
    return appt


def list_for_practitioner(
    db: Session,
    *,
    practitioner_id: int,
    status: AppointmentStatus | None = None,
    patient_id: int | None = None,
    from_dt: datetime | None = None,
    to_dt: datetime | None = None,
) -> list[Appointment]:
    stmt = select(Appointment).where(Appointment.practitioner_id == practitioner_id)
    if status is not None:
        stmt = stmt.where(Appointment.status == status)
    if patient_id is not None:
        stmt = stmt.where(Appointment.patient_id == patient_id)
    if from_dt is not None:
        stmt = stmt.where(Appointment.date_time >= from_dt)
    if to_dt is not None:
        stmt = stmt.where(Appointment.date_time <= to_dt)
    stmt = stmt.order_by(Appointment.date_time.asc(), Appointment.id.asc())
    return list(db.scalars(stmt).unique())


def list_for_client(db: Session, *, client: Account) -> list[Appointment]:
    patient = account_service.get_linked_patient(db, client=client)
    stmt = (
        select(Appointment)
        .where(Appointment.patient_id == patient.id)
        .order_by(Appointment.date_time.asc(), Appointment.id.asc())
    )
    return list(db.scalars(stmt).unique())


def apply_transition(
    appt: Appointment, target: AppointmentStatus, *, notes: str | None = None
) -> Appointment:
    """Move ``appt`` to ``target`` in place, enforcing the transition table.

    Approving an already approved appointment is a no-op. Rejection needs a
    non-blank reason, which replaces the notes. For every other transition
    non-blank ``notes`` replace the current notes and blank ones leave them
    untouched.
    """
    current = appt.status
    if target == S.approved and current == S.approved:
        return appt
    if target == S.rejected:
        reason = _clean_notes(notes)
        if not reason:
            raise ValidationError("A reason is required to reject an appointment", field="reason")
        notes = reason
    if not can_transition(current, target):
        raise InvalidTransition(
            f"Cannot change appointment status from {current.value} to {target.value}"
        )
    appt.status = target
    cleaned = _clean_notes(notes)
    if cleaned is not None:
        appt.notes = cleaned
    return appt


def transition(
    db: Session,
    *,
    appointment_id: int,
    practitioner: Account,
    target: AppointmentStatus,
    notes: str | None = None,
) -> Appointment:
    appt = get_appointment(db, appointment_id=appointment_id, practitioner=practitioner)
    before = appt.status
    apply_transition(appt, target, notes=notes)
    if appt.status != before or db.is_modified(appt):
        db.add(appt)
        db.flush()
        invalidate_appointments(db, practitioner.id, f"appointments.{target.value}")
    return appt


def approve(db: Session, *, appointment_id: int, practitioner: Account, notes: str | None = None) -> Appointment:
    return transition(
        db, appointment_id=appointment_id, practitioner=practitioner, target=S.approved, notes=notes
    )


def reject(db: Session, *, appointment_id: int, practitioner: Account, reason: str | None) -> Appointment:
    return transition(
        db, appointment_id=appointment_id, practitioner=practitioner, target=S.rejected, notes=reason
    )


def complete(db: Session, *, appointment_id: int, practitioner: Account, notes: str | None = None) -> Appointment:
    return transition(
        db, appointment_id=appointment_id, practitioner=practitioner, target=S.completed, notes=notes
    )


def cancel(db: Session, *, appointment_id: int, practitioner: Account, notes: str | None = None) -> Appointment:
    return transition(
        db, appointment_id=appointment_id, practitioner=practitioner, target=S.cancelled, notes=notes
    )


def mark_missed(db: Session, *, appointment_id: int, practitioner: Account, notes: str | None = None) -> Appointment:
    return transition(
        db, appointment_id=appointment_id, practitioner=practitioner, target=S.missed, notes=notes
    )


def update_details(
    db: Session, *, appointment_id: int, practitioner: Account, changes: dict[str, Any]
) -> Appointment:
    appt = get_appointment(db, appointment_id=appointment_id, practitioner=practitioner)
    # Status only moves through the transition actions.
    changes = {key: value for key, value in changes.items() if key in EDITABLE_FIELDS}
    reschedule = "date_time" in changes or "duration_minutes" in changes
    if reschedule:
        if is_terminal(appt.status):
            raise InvalidTransition(f"Cannot reschedule a {appt.status.value} appointment")
        _validate_schedule(
            changes.get("date_time", appt.date_time),
            changes.get("duration_minutes", appt.duration_minutes),
        )
    if "notes" in changes:
        changes["notes"] = _clean_notes(changes["notes"])
    if "meeting_type" in changes and changes["meeting_type"] is None:
        changes.pop("meeting_type")
    for field, value in changes.items():
        setattr(appt, field, value)
    db.add(appt)
    db.flush()
    invalidate_appointments(db, practitioner.id, "appointments.update_details")
    return appt
