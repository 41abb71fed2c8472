"""Endpoints for client accounts, scoped to their linked practitioner and patient record."""
from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import require_client
from app.models.account import Account
from app.schemas.account import PractitionerPublicOut
from app.schemas.appointment import AppointmentOut, AppointmentRequest
from app.schemas.availability import AvailabilityOut
from app.schemas.consent import ClientConsentCreate, ConsentFormOut, PatientConsentOut
from app.services import accounts as account_service
from app.services import appointments as appointment_service
from app.services import availability as availability_service
from app.services import consents as consent_service
from app.services.audit import log_event

router = APIRouter(tags=["my"])


@router.get("/my-practitioner", response_model=PractitionerPublicOut)
def my_practitioner(
    db: Session = Depends(get_db),
    client: Account = Depends(require_client),
):
    return account_service.get_linked_practitioner(db, client=client)


@router.get("/my-practitioner/availability", response_model=list[AvailabilityOut])
def my_practitioner_availability(
    db: Session = Depends(get_db),
    client: Account = Depends(require_client),
):
    return availability_service.list_slots_for_client(db, client=client)


@router.get("/my-appointments", response_model=list[AppointmentOut])
def my_appointments(
    db: Session = Depends(get_db),
    client: Account = Depends(require_client),
):
    return appointment_service.list_for_client(db, client=client)


@router.post("/my-appointments", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
def request_appointment(
    payload: AppointmentRequest,
    request: Request,
    db: Session = Depends(get_db),
    client: Account = Depends(require_client),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    appt = appointment_service.request_by_client(
        db,
        client=client,
        date_time=payload.date_time,
        duration_minutes=payload.duration_minutes,
        notes=payload.notes,
        meeting_type=payload.meeting_type,
        payment_receipt=payload.payment_receipt,
    )
    log_event(
        db,
        actor=client,
        action="appointment.requested",
        entity_type="appointment",
        entity_id=str(appt.id),
        after_obj=appt,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(appt)
    return appt


@router.get("/my-consent-forms", response_model=list[ConsentFormOut])
def my_consent_forms(
    db: Session = Depends(get_db),
    client: Account = Depends(require_client),
):
    return consent_service.list_forms_for_client(db, client=client)


@router.get("/my-consents", response_model=list[PatientConsentOut])
def my_consents(
    db: Session = Depends(get_db),
    client: Account = Depends(require_client),
):
    return consent_service.list_signed_for_client(db, client=client)


@router.post("/my-consents", response_model=PatientConsentOut, status_code=status.HTTP_201_CREATED)
def sign_consent(
    payload: ClientConsentCreate,
    request: Request,
    db: Session = Depends(get_db),
    client: Account = Depends(require_client),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    ip_address = request.client.host if request.client else None
    consent = consent_service.sign_for_client(
        db,
        client=client,
        form_id=payload.consent_form_id,
        signature=payload.signature,
        ip_address=ip_address,
    )
    log_event(
        db,
        actor=client,
        action="consent.signed",
        entity_type="patient_consent",
        entity_id=str(consent.id),
        after_obj=consent,
        request_id=request_id,
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(consent)
    return consent
