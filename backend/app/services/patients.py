from __future__ import annotations

from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.core.errors import Forbidden, NotFound
from app.core.validators import require_min_length, validate_email_address
from app.models.account import Account
from app.models.patient import Patient
from app.services.cache import invalidate_appointments, invalidate_patients

MIN_NAME_LENGTH = 3
UPDATABLE_FIELDS = (
    "name",
    "email",
    "phone",
    "notes",
    "date_of_birth",
    "address",
    "emergency_contact",
    "status",
)


def _clean_fields(fields: dict[str, Any]) -> dict[str, Any]:
    cleaned = {key: value for key, value in fields.items() if key in UPDATABLE_FIELDS}
    if "name" in cleaned:
        cleaned["name"] = require_min_length(
            cleaned["name"], MIN_NAME_LENGTH, field="name", label="Name"
        )
    if "email" in cleaned:
        cleaned["email"] = validate_email_address(cleaned["email"])
    for key in ("phone", "notes", "address", "emergency_contact"):
        if key in cleaned and isinstance(cleaned[key], str):
            cleaned[key] = cleaned[key].strip() or None
    if "status" in cleaned and not cleaned["status"]:
        cleaned.pop("status")
    return cleaned


def create_patient(db: Session, *, practitioner: Account, fields: dict[str, Any]) -> Patient:
    if not practitioner.is_practitioner:
        raise Forbidden("Only practitioners can create patients")
    cleaned = _clean_fields({"name": None, "email": None, **fields})
    patient = Patient(practitioner_id=practitioner.id, **cleaned)
    db.add(patient)
    db.flush()
    invalidate_patients(db, practitioner.id, "patients.create")
    return patient


def list_patients(
    db: Session,
    *,
    practitioner_id: int,
    q: str | None = None,
    status: str | None = None,
) -> list[Patient]:
    stmt = select(Patient).where(Patient.practitioner_id == practitioner_id)
    if q:
        like = f"%{q.strip()}%"
        stmt = stmt.where(
            or_(Patient.name.ilike(like), Patient.email.ilike(like), Patient.phone.ilike(like))
        )
    if status:
        stmt = stmt.where(Patient.status == status)
    stmt = stmt.order_by(Patient.name, Patient.id)
    return list(db.scalars(stmt))


def get_patient(db: Session, *, patient_id: int, practitioner_id: int) -> Patient:
    patient = db.get(Patient, patient_id)
    if not patient:
        raise NotFound("Patient not found")
    if patient.practitioner_id != practitioner_id:
        raise Forbidden("Not authorized to access this patient")
    return patient


def update_patient(
    db: Session, *, patient_id: int, practitioner_id: int, changes: dict[str, Any]
) -> Patient:
    patient = get_patient(db, patient_id=patient_id, practitioner_id=practitioner_id)
    for field, value in _clean_fields(changes).items():
        setattr(patient, field, value)
    db.add(patient)
    db.flush()
    invalidate_patients(db, practitioner_id, "patients.update")
    # Appointment lists embed the patient summary.
    invalidate_appointments(db, practitioner_id, "patients.update")
    return patient
