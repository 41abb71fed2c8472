from fastapi import APIRouter, Depends, Header, Query, Request, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import require_practitioner
from app.models.account import Account
from app.schemas.audit_log import AuditLogOut
from app.schemas.patient import PatientCreate, PatientOut, PatientUpdate
from app.services import patients as patient_service
from app.services.audit import list_events, log_event, snapshot_model
from app.services.cache import patient_list_cache

router = APIRouter(prefix="/patients", tags=["patients"])


@router.get("", response_model=list[PatientOut])
def list_patients(
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    q: str | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias="status"),
):
    key = (practitioner.id, (q or "").strip().lower(), status_filter or "")
    return patient_list_cache.get_or_load(
        key,
        lambda: [
            PatientOut.model_validate(patient)
            for patient in patient_service.list_patients(
                db, practitioner_id=practitioner.id, q=q, status=status_filter
            )
        ],
    )


@router.post("", response_model=PatientOut, status_code=status.HTTP_201_CREATED)
def create_patient(
    payload: PatientCreate,
    request: Request,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    patient = patient_service.create_patient(
        db, practitioner=practitioner, fields=payload.model_dump(exclude_unset=True)
    )
    log_event(
        db,
        actor=practitioner,
        action="patient.created",
        entity_type="patient",
        entity_id=str(patient.id),
        after_obj=patient,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(patient)
    return patient


@router.get("/{patient_id}", response_model=PatientOut)
def get_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
):
    return patient_service.get_patient(db, patient_id=patient_id, practitioner_id=practitioner.id)


@router.patch("/{patient_id}", response_model=PatientOut)
def update_patient(
    patient_id: int,
    payload: PatientUpdate,
    request: Request,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    patient = patient_service.get_patient(
        db, patient_id=patient_id, practitioner_id=practitioner.id
    )
    before_data = snapshot_model(patient)
    patient = patient_service.update_patient(
        db,
        patient_id=patient_id,
        practitioner_id=practitioner.id,
        changes=payload.model_dump(exclude_unset=True),
    )
    log_event(
        db,
        actor=practitioner,
        action="patient.updated",
        entity_type="patient",
        entity_id=str(patient.id),
        before_data=before_data,
        after_obj=patient,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(patient)
    return patient


@router.get("/{patient_id}/audit", response_model=list[AuditLogOut])
def patient_audit(
    patient_id: int,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    patient_service.get_patient(db, patient_id=patient_id, practitioner_id=practitioner.id)
    return list_events(db, entity_type="patient", entity_id=patient_id, limit=limit, offset=offset)
