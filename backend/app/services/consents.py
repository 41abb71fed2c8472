from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import Forbidden, NotFound, ValidationError
from app.core.validators import require_min_length
from app.models.account import Account
from app.models.consent import ConsentForm, PatientConsent
from app.models.patient import Patient
from app.services import accounts as account_service

MIN_TITLE_LENGTH = 3
MIN_CONTENT_LENGTH = 50
INITIAL_VERSION = "1.0"


def bump_version(version: str | None) -> str:
    """Increment the minor part of a ``major.minor`` version string."""
    major, _, minor = (version or INITIAL_VERSION).partition(".")
    try:
        return f"{int(major)}.{int(minor or 0) + 1}"
    except ValueError:
        return INITIAL_VERSION


def create_template(
    db: Session,
    *,
    practitioner: Account,
    title: str | None,
    content: str | None,
    language: str | None = None,
    is_active: bool = True,
) -> ConsentForm:
    if not practitioner.is_practitioner:
        raise Forbidden("Only practitioners can create consent forms")
    form = ConsentForm(
        practitioner_id=practitioner.id,
        title=require_min_length(title, MIN_TITLE_LENGTH, field="title", label="Title"),
        content=require_min_length(content, MIN_CONTENT_LENGTH, field="content", label="Content"),
        version=INITIAL_VERSION,
        is_active=is_active,
        language=language or "es",
    )
    db.add(form)
    db.flush()
    return form


def list_templates(
    db: Session, *, practitioner_id: int, active_only: bool = False
) -> list[ConsentForm]:
    stmt = select(ConsentForm).where(ConsentForm.practitioner_id == practitioner_id)
    if active_only:
        stmt = stmt.where(ConsentForm.is_active.is_(True))
    stmt = stmt.order_by(ConsentForm.created_at.desc(), ConsentForm.id.desc())
    return list(db.scalars(stmt))


def get_template(db: Session, *, form_id: int, practitioner_id: int) -> ConsentForm:
    form = db.get(ConsentForm, form_id)
    if not form:
        raise NotFound("Consent form not found")
    if form.practitioner_id != practitioner_id:
        raise Forbidden("Not authorized to access this consent form")
    return form


def update_template(
    db: Session, *, form_id: int, practitioner_id: int, changes: dict[str, Any]
) -> ConsentForm:
    form = get_template(db, form_id=form_id, practitioner_id=practitioner_id)
    text_changed = False
    if changes.get("title") is not None:
        title = require_min_length(changes["title"], MIN_TITLE_LENGTH, field="title", label="Title")
        text_changed = text_changed or title != form.title
        form.title = title
    if changes.get("content") is not None:
        content = require_min_length(
            changes["content"], MIN_CONTENT_LENGTH, field="content", label="Content"
        )
        text_changed = text_changed or content != form.content
        form.content = content
    if changes.get("is_active") is not None:
        form.is_active = bool(changes["is_active"])
    if changes.get("language"):
        form.language = changes["language"]
    if text_changed:
        form.version = bump_version(form.version)
    db.add(form)
    db.flush()
    return form


def sign(
    db: Session,
    *,
    patient_id: int,
    form_id: int,
    signature: str | None,
    ip_address: str | None = None,
    expires_at: datetime | None = None,
) -> PatientConsent:
    """Record a signature against the template text as it reads right now.

    The signed row keeps its own copy of version, title and content, so later
    template edits never change what the patient agreed to.
    """
    signature = (signature or "").strip()
    if not signature:
        raise ValidationError("Signature is required", field="signature")
    patient = db.get(Patient, patient_id)
    if not patient:
        raise NotFound("Patient not found")
    form = db.get(ConsentForm, form_id)
    if not form:
        raise NotFound("Consent form not found")
    if form.practitioner_id != patient.practitioner_id:
        raise Forbidden("Consent form and patient belong to different practitioners")
    if not form.is_active:
        raise ValidationError("Consent form is not active", field="consent_form_id")
    consent = PatientConsent(
        patient_id=patient.id,
        consent_form_id=form.id,
        form_version=form.version,
        form_title=form.title,
        form_content=form.content,
        signed_at=datetime.now(timezone.utc),
        signature=signature,
        ip_address=ip_address,
        is_valid=True,
        expires_at=expires_at,
    )
    db.add(consent)
    db.flush()
    return consent


def sign_for_practitioner(
    db: Session,
    *,
    practitioner: Account,
    patient_id: int,
    form_id: int,
    signature: str | None,
    ip_address: str | None = None,
) -> PatientConsent:
    if not practitioner.is_practitioner:
        raise Forbidden("Only practitioners can record consents for patients")
    patient = db.get(Patient, patient_id)
    if not patient:
        raise NotFound("Patient not found")
    if patient.practitioner_id != practitioner.id:
        raise Forbidden("Not authorized to access this patient")
    return sign(
        db, patient_id=patient_id, form_id=form_id, signature=signature, ip_address=ip_address
    )


def sign_for_client(
    db: Session,
    *,
    client: Account,
    form_id: int,
    signature: str | None,
    ip_address: str | None = None,
) -> PatientConsent:
    patient = account_service.get_linked_patient(db, client=client)
    return sign(
        db, patient_id=patient.id, form_id=form_id, signature=signature, ip_address=ip_address
    )


def list_signed(
    db: Session, *, practitioner_id: int, patient_id: int | None = None
) -> list[PatientConsent]:
    stmt = (
        select(PatientConsent)
        .join(Patient, PatientConsent.patient_id == Patient.id)
        .where(Patient.practitioner_id == practitioner_id)
    )
    if patient_id is not None:
        stmt = stmt.where(PatientConsent.patient_id == patient_id)
    stmt = stmt.order_by(PatientConsent.signed_at.desc(), PatientConsent.id.desc())
    return list(db.scalars(stmt).unique())


def list_signed_for_client(db: Session, *, client: Account) -> list[PatientConsent]:
    patient = account_service.get_linked_patient(db, client=client)
    stmt = (
        select(PatientConsent)
        .where(PatientConsent.patient_id == patient.id)
        .order_by(PatientConsent.signed_at.desc(), PatientConsent.id.desc())
    )
    return list(db.scalars(stmt).unique())


def list_forms_for_client(db: Session, *, client: Account) -> list[ConsentForm]:
    practitioner = account_service.get_linked_practitioner(db, client=client)
    return list_templates(db, practitioner_id=practitioner.id, active_only=True)
