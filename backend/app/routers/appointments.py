from datetime import datetime

from fastapi import APIRouter, Depends, Header, Query, Request, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import require_practitioner
from app.models.account import Account
from app.models.appointment import Appointment, AppointmentStatus
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentNotes,
    AppointmentOut,
    AppointmentReject,
    AppointmentUpdate,
)
from app.schemas.audit_log import AuditLogOut
from app.services import appointments as appointment_service
from app.services.audit import list_events, log_event, snapshot_model
from app.services.cache import appointment_list_cache

router = APIRouter(prefix="/appointments", tags=["appointments"])


def _record(
    db: Session,
    *,
    actor: Account,
    action: str,
    appt: Appointment,
    before_data: dict | None,
    request: Request,
    request_id: str | None,
) -> None:
    log_event(
        db,
        actor=actor,
        action=action,
        entity_type="appointment",
        entity_id=str(appt.id),
        before_data=before_data,
        after_obj=appt,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )


@router.get("", response_model=list[AppointmentOut])
def list_appointments(
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    status_filter: AppointmentStatus | None = Query(default=None, alias="status"),
    patient_id: int | None = Query(default=None),
    from_dt: datetime | None = Query(default=None, alias="from"),
    to_dt: datetime | None = Query(default=None, alias="to"),
):
    key = (
        practitioner.id,
        status_filter.value if status_filter else "",
        patient_id,
        from_dt.isoformat() if from_dt else "",
        to_dt.isoformat() if to_dt else "",
    )
    return appointment_list_cache.get_or_load(
        key,
        lambda: [
            AppointmentOut.model_validate(appt)
            for appt in appointment_service.list_for_practitioner(
                db,
                practitioner_id=practitioner.id,
                status=status_filter,
                patient_id=patient_id,
                from_dt=from_dt,
                to_dt=to_dt,
            )
        ],
    )


@router.post("", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: AppointmentCreate,
    request: Request,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    appt = appointment_service.create_by_practitioner(
        db,
        practitioner=practitioner,
        patient_id=payload.patient_id,
        date_time=payload.date_time,
        duration_minutes=payload.duration_minutes,
        notes=payload.notes,
        meeting_type=payload.meeting_type,
        video_url=payload.video_url,
    )
    _record(
        db,
        actor=practitioner,
        action="appointment.created",
        appt=appt,
        before_data=None,
        request=request,
        request_id=request_id,
    )
    db.commit()
    db.refresh(appt)
    return appt


@router.get("/{appointment_id}", response_model=AppointmentOut)
def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
):
    return appointment_service.get_appointment(
        db, appointment_id=appointment_id, practitioner=practitioner
    )


@router.patch("/{appointment_id}", response_model=AppointmentOut)
def update_appointment(
    appointment_id: int,
    payload: AppointmentUpdate,
    request: Request,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    appt = appointment_service.get_appointment(
        db, appointment_id=appointment_id, practitioner=practitioner
    )
    before_data = snapshot_model(appt)
    appt = appointment_service.update_details(
        db,
        appointment_id=appointment_id,
        practitioner=practitioner,
        changes=payload.model_dump(exclude_unset=True),
    )
    _record(
        db,
        actor=practitioner,
        action="appointment.updated",
        appt=appt,
        before_data=before_data,
        request=request,
        request_id=request_id,
    )
    db.commit()
    db.refresh(appt)
    return appt


def _transition(
    db: Session,
    *,
    appointment_id: int,
    practitioner: Account,
    target: AppointmentStatus,
    notes: str | None,
    request: Request,
    request_id: str | None,
) -> Appointment:
    appt = appointment_service.get_appointment(
        db, appointment_id=appointment_id, practitioner=practitioner
    )
    before_data = snapshot_model(appt)
    appt = appointment_service.transition(
        db,
        appointment_id=appointment_id,
        practitioner=practitioner,
        target=target,
        notes=notes,
    )
    if before_data != snapshot_model(appt):
        _record(
            db,
            actor=practitioner,
            action=f"appointment.{target.value}",
            appt=appt,
            before_data=before_data,
            request=request,
            request_id=request_id,
        )
        db.commit()
        db.refresh(appt)
    return appt


@router.post("/{appointment_id}/approve", response_model=AppointmentOut)
def approve_appointment(
    appointment_id: int,
    request: Request,
    payload: AppointmentNotes | None = None,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return _transition(
        db,
        appointment_id=appointment_id,
        practitioner=practitioner,
        target=AppointmentStatus.approved,
        notes=payload.notes if payload else None,
        request=request,
        request_id=request_id,
    )


@router.post("/{appointment_id}/reject", response_model=AppointmentOut)
def reject_appointment(
    appointment_id: int,
    request: Request,
    payload: AppointmentReject | None = None,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return _transition(
        db,
        appointment_id=appointment_id,
        practitioner=practitioner,
        target=AppointmentStatus.rejected,
        notes=payload.reason if payload else None,
        request=request,
        request_id=request_id,
    )


@router.post("/{appointment_id}/complete", response_model=AppointmentOut)
def complete_appointment(
    appointment_id: int,
    request: Request,
    payload: AppointmentNotes | None = None,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return _transition(
        db,
        appointment_id=appointment_id,
        practitioner=practitioner,
        target=AppointmentStatus.completed,
        notes=payload.notes if payload else None,
        request=request,
        request_id=request_id,
    )


@router.post("/{appointment_id}/cancel", response_model=AppointmentOut)
def cancel_appointment(
    appointment_id: int,
    request: Request,
    payload: AppointmentNotes | None = None,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return _transition(
        db,
        appointment_id=appointment_id,
        practitioner=practitioner,
        target=AppointmentStatus.cancelled,
        notes=payload.notes if payload else None,
        request=request,
        request_id=request_id,
    )


@router.post("/{appointment_id}/miss", response_model=AppointmentOut)
def miss_appointment(
    appointment_id: int,
    request: Request,
    payload: AppointmentNotes | None = None,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return _transition(
        db,
        appointment_id=appointment_id,
        practitioner=practitioner,
        target=AppointmentStatus.missed,
        notes=payload.notes if payload else None,
        request=request,
        request_id=request_id,
    )


@router.get("/{appointment_id}/audit", response_model=list[AuditLogOut])
def appointment_audit(
    appointment_id: int,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    appointment_service.get_appointment(db, appointment_id=appointment_id, practitioner=practitioner)
    return list_events(
        db, entity_type="appointment", entity_id=appointment_id, limit=limit, offset=offset
    )
