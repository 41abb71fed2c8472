from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import require_practitioner
from app.models.account import Account
from app.schemas.auth import MessageResponse
from app.schemas.availability import AvailabilityCreate, AvailabilityOut
from app.services import availability as availability_service
from app.services.audit import log_event, snapshot_model

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=list[AvailabilityOut])
def list_availability(
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
):
    return availability_service.list_slots(db, practitioner_id=practitioner.id)


@router.post("", response_model=AvailabilityOut, status_code=status.HTTP_201_CREATED)
def create_availability(
    payload: AvailabilityCreate,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
):
    slot = availability_service.create_slot(
        db,
        practitioner=practitioner,
        day_of_week=payload.day_of_week,
        start_time=payload.start_time,
        end_time=payload.end_time,
        is_available=True if payload.is_available is None else payload.is_available,
    )
    db.commit()
    db.refresh(slot)
    return slot


@router.delete("/{slot_id}", response_model=MessageResponse)
def delete_availability(
    slot_id: int,
    request: Request,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    slot = availability_service.delete_slot(db, slot_id=slot_id, practitioner_id=practitioner.id)
    log_event(
        db,
        actor=practitioner,
        action="availability.deleted",
        entity_type="availability",
        entity_id=str(slot_id),
        before_data=snapshot_model(slot),
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    return MessageResponse(message="Availability deleted")
