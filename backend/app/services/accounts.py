from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import (
    DuplicateCode,
    DuplicateEmail,
    DuplicateUsername,
    Forbidden,
    InvalidCredentials,
    NotFound,
    ValidationError,
)
from app.core.security import (
    dummy_verify,
    generate_invite_code,
    hash_password,
    password_needs_rehash,
    verify_password,
)
from app.core.settings import settings
from app.core.validators import require_text, validate_email_address
from app.models.account import Account, AccountKind
from app.models.patient import Patient
from app.services.cache import invalidate_patients

logger = logging.getLogger("psiconnect.accounts")

MIN_PASSWORD_LENGTH = 8
INVITE_CODE_ATTEMPTS = 25
PROFILE_FIELDS = (
    "full_name",
    "email",
    "specialty",
    "bio",
    "education",
    "certifications",
    "profile_image",
    "timezone",
    "language_preference",
)


def get_account_by_id(db: Session, account_id: int) -> Account | None:
    return db.scalar(select(Account).where(Account.id == account_id))


def get_account_by_username(db: Session, username: str) -> Account | None:
    return db.scalar(select(Account).where(Account.username == username.strip()))


def get_account_by_email(db: Session, email: str) -> Account | None:
    return db.scalar(select(Account).where(Account.email == email.lower().strip()))


def get_practitioner_by_invite_code(db: Session, code: str) -> Account | None:
    return db.scalar(
        select(Account).where(
            Account.invite_code == code.strip(),
            Account.kind == AccountKind.practitioner,
        )
    )


def _validate_password(password: str, *, field: str = "password") -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field=field
        )


def allocate_invite_code(db: Session) -> str:
    for _ in range(INVITE_CODE_ATTEMPTS):
        code = generate_invite_code(settings.invite_code_length)
        taken = db.scalar(select(Account.id).where(Account.invite_code == code))
        if not taken:
            return code
    logger.error("Invite code space exhausted after %d attempts", INVITE_CODE_ATTEMPTS)
    raise DuplicateCode()


def register(
    db: Session,
    *,
    username: str,
    password: str,
    email: str,
    full_name: str,
    kind: AccountKind,
    invite_code: str | None = None,
    profile: dict[str, Any] | None = None,
) -> Account:
    username = require_text(username, field="username", message="Username is required")
    email = validate_email_address(email)
    full_name = require_text(full_name, field="full_name", message="Full name is required")
    profile = dict(profile or {})

    _validate_password(password)
    if get_account_by_username(db, username):
        raise DuplicateUsername()
    if get_account_by_email(db, email):
        raise DuplicateEmail()

    account = Account(
        username=username,
        email=email,
        full_name=full_name,
        kind=kind,
        hashed_password=hash_password(password),
    )
    for field in PROFILE_FIELDS:
        if field in profile and profile[field] is not None and field not in {"email", "full_name"}:
            setattr(account, field, profile[field])

    practitioner: Account | None = None
    if kind == AccountKind.practitioner:
        if not (account.specialty or "").strip():
            raise ValidationError("Specialty is required for practitioners", field="specialty")
        account.invite_code = allocate_invite_code(db)
    else:
        if not (invite_code or "").strip():
            raise ValidationError("Practitioner invite code is required", field="invite_code")
        practitioner = get_practitioner_by_invite_code(db, invite_code)
        if not practitioner:
            raise ValidationError("Invalid practitioner invite code", field="invite_code")
        account.linked_practitioner_id = practitioner.id

    db.add(account)
    db.flush()

    if practitioner is not None:
        db.add(
            Patient(
                practitioner_id=practitioner.id,
                client_account_id=account.id,
                name=account.full_name,
                email=account.email,
            )
        )
        db.flush()
        invalidate_patients(db, practitioner.id, "accounts.register_client")
    return account


def verify(db: Session, username: str, password: str) -> Account:
    account = get_account_by_username(db, username or "")
    if not account:
        dummy_verify()
    if not account or not verify_password(password or "", account.hashed_password):
        logger.warning("Failed credential check for username=%s", (username or "").strip())
        raise InvalidCredentials()
    if password_needs_rehash(account.hashed_password):
        account.hashed_password = hash_password(password)
        db.add(account)
    return account


def record_login(db: Session, account: Account) -> None:
    account.last_login_at = datetime.now(timezone.utc)
    db.add(account)


def update_profile(db: Session, *, account: Account, changes: dict[str, Any]) -> Account:
    for field, value in changes.items():
        if field not in PROFILE_FIELDS:
            continue
        if field == "full_name":
            value = require_text(value, field="full_name", message="Full name is required")
        if field == "email":
            value = validate_email_address(value)
            existing = get_account_by_email(db, value)
            if existing and existing.id != account.id:
                raise DuplicateEmail()
        if field in {"timezone", "language_preference"} and not value:
            continue
        setattr(account, field, value)
    db.add(account)
    db.flush()
    return account


def change_password(
    db: Session, *, account: Account, old_password: str, new_password: str
) -> Account:
    if not verify_password(old_password or "", account.hashed_password):
        raise ValidationError("Invalid old password", field="old_password")
    _validate_password(new_password, field="new_password")
    account.hashed_password = hash_password(new_password)
    db.add(account)
    db.flush()
    return account


def regenerate_invite_code(db: Session, *, account: Account) -> Account:
    if not account.is_practitioner:
        raise Forbidden("Only practitioners have invite codes")
    account.invite_code = allocate_invite_code(db)
    db.add(account)
    db.flush()
    return account


def list_clients(db: Session, *, practitioner: Account) -> list[Account]:
    stmt = (
        select(Account)
        .where(
            Account.kind == AccountKind.client,
            Account.linked_practitioner_id == practitioner.id,
        )
        .order_by(Account.full_name)
    )
    return list(db.scalars(stmt))


def get_linked_practitioner(db: Session, *, client: Account) -> Account:
    if not client.is_client:
        raise Forbidden("Only client accounts have a linked practitioner")
    if client.linked_practitioner_id is None:
        raise NotFound("No practitioner linked to this account")
    practitioner = get_account_by_id(db, client.linked_practitioner_id)
    if not practitioner or not practitioner.is_practitioner:
        raise NotFound("No practitioner linked to this account")
    return practitioner


def get_linked_patient(db: Session, *, client: Account) -> Patient:
    if not client.is_client:
        raise Forbidden("Only client accounts have a patient record")
    patient = db.scalar(select(Patient).where(Patient.client_account_id == client.id))
    if not patient:
        raise NotFound("No patient record linked to this account")
    return patient
