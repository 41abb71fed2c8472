from fastapi import APIRouter, Depends, Header, Query, Request, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import require_practitioner
from app.models.account import Account
from app.schemas.consent import (
    ConsentFormCreate,
    ConsentFormOut,
    ConsentFormUpdate,
    PatientConsentCreate,
    PatientConsentOut,
)
from app.services import consents as consent_service
from app.services.audit import log_event, snapshot_model

router = APIRouter(prefix="/consent-forms", tags=["consents"])
signed_router = APIRouter(prefix="/patient-consents", tags=["consents"])


@router.get("", response_model=list[ConsentFormOut])
def list_consent_forms(
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    active_only: bool = Query(default=False),
):
    return consent_service.list_templates(
        db, practitioner_id=practitioner.id, active_only=active_only
    )


@router.post("", response_model=ConsentFormOut, status_code=status.HTTP_201_CREATED)
def create_consent_form(
    payload: ConsentFormCreate,
    request: Request,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    form = consent_service.create_template(
        db,
        practitioner=practitioner,
        title=payload.title,
        content=payload.content,
        language=payload.language,
        is_active=payload.is_active,
    )
    log_event(
        db,
        actor=practitioner,
        action="consent_form.created",
        entity_type="consent_form",
        entity_id=str(form.id),
        after_obj=form,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(form)
    return form


@router.get("/{form_id}", response_model=ConsentFormOut)
def get_consent_form(
    form_id: int,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
):
    return consent_service.get_template(db, form_id=form_id, practitioner_id=practitioner.id)


@router.patch("/{form_id}", response_model=ConsentFormOut)
def update_consent_form(
    form_id: int,
    payload: ConsentFormUpdate,
    request: Request,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    form = consent_service.get_template(db, form_id=form_id, practitioner_id=practitioner.id)
    before_data = snapshot_model(form)
    form = consent_service.update_template(
        db,
        form_id=form_id,
        practitioner_id=practitioner.id,
        changes=payload.model_dump(exclude_unset=True),
    )
    log_event(
        db,
        actor=practitioner,
        action="consent_form.updated",
        entity_type="consent_form",
        entity_id=str(form.id),
        before_data=before_data,
        after_obj=form,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(form)
    return form


@signed_router.get("", response_model=list[PatientConsentOut])
def list_patient_consents(
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    patient_id: int | None = Query(default=None),
):
    return consent_service.list_signed(
        db, practitioner_id=practitioner.id, patient_id=patient_id
    )


@signed_router.post("", response_model=PatientConsentOut, status_code=status.HTTP_201_CREATED)
def create_patient_consent(
    payload: PatientConsentCreate,
    request: Request,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    ip_address = request.client.host if request.client else None
    consent = consent_service.sign_for_practitioner(
        db,
        practitioner=practitioner,
        patient_id=payload.patient_id,
        form_id=payload.consent_form_id,
        signature=payload.signature,
        ip_address=ip_address,
    )
    log_event(
        db,
        actor=practitioner,
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
