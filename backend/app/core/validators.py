from __future__ import annotations

import re

from email_validator import EmailNotValidError, validate_email

from app.core.errors import ValidationError

HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_email_address(value: str | None, *, field: str = "email") -> str:
    try:
        result = validate_email((value or "").strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError(f"Invalid email address: {exc}", field=field) from exc
    return result.normalized.lower()


def require_min_length(value: str | None, minimum: int, *, field: str, label: str) -> str:
    cleaned = (value or "").strip()
    if len(cleaned) < minimum:
        raise ValidationError(f"{label} must be at least {minimum} characters", field=field)
    return cleaned


def require_text(value: str | None, *, field: str, message: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(message, field=field)
    return cleaned


def validate_hhmm(value: str | None, *, field: str) -> str:
    cleaned = (value or "").strip()
    if not HHMM_RE.match(cleaned):
        raise ValidationError("Time must use HH:MM format", field=field)
    return cleaned
