from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import Forbidden, NotFound, ValidationError
from app.core.validators import validate_hhmm
from app.models.account import Account
from app.models.availability import AvailabilitySlot
from app.services import accounts as account_service


def create_slot(
    db: Session,
    *,
    practitioner: Account,
    day_of_week: int,
    start_time: str,
    end_time: str,
    is_available: bool = True,
) -> AvailabilitySlot:
    if not practitioner.is_practitioner:
        raise Forbidden("Only practitioners can manage availability")
    if isinstance(day_of_week, bool) or not isinstance(day_of_week, int) or not 0 <= day_of_week <= 6:
        raise ValidationError("Day of week must be between 0 (Sunday) and 6 (Saturday)", field="day_of_week")
    start = validate_hhmm(start_time, field="start_time")
    end = validate_hhmm(end_time, field="end_time")
    # Zero-padded HH:MM strings compare in clock order.
    if start >= end:
        raise ValidationError("Start time must be before end time", field="end_time")
    slot = AvailabilitySlot(
        practitioner_id=practitioner.id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        is_available=is_available,
    )
    db.add(slot)
    db.flush()
    return slot


def list_slots(db: Session, *, practitioner_id: int) -> list[AvailabilitySlot]:
    stmt = (
        select(AvailabilitySlot)
        .where(AvailabilitySlot.practitioner_id == practitioner_id)
        .order_by(AvailabilitySlot.day_of_week, AvailabilitySlot.start_time, AvailabilitySlot.id)
    )
    return list(db.scalars(stmt))


def list_slots_for_client(db: Session, *, client: Account) -> list[AvailabilitySlot]:
    practitioner = account_service.get_linked_practitioner(db, client=client)
    return list_slots(db, practitioner_id=practitioner.id)


def delete_slot(db: Session, *, slot_id: int, practitioner_id: int) -> AvailabilitySlot:
    slot = db.get(AvailabilitySlot, slot_id)
    if not slot:
        raise NotFound("Availability not found")
    if slot.practitioner_id != practitioner_id:
        raise Forbidden("Not authorized to delete this availability")
    db.delete(slot)
    db.flush()
    return slot
