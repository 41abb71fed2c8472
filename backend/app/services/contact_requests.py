from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.validators import require_min_length, require_text, validate_email_address
from app.models.contact_request import ContactRequest

logger = logging.getLogger("psiconnect.contact")


def create_request(
    db: Session,
    *,
    name: str | None,
    email: str | None,
    specialty: str | None,
    message: str | None = None,
    phone: str | None = None,
    source: str | None = None,
) -> ContactRequest:
    request = ContactRequest(
        name=require_min_length(name, 2, field="name", label="Name"),
        email=validate_email_address(email),
        specialty=require_text(specialty, field="specialty", message="Specialty is required"),
        message=(message or "").strip() or None,
        phone=(phone or "").strip() or None,
        source=(source or "").strip() or None,
        status="pending",
    )
    db.add(request)
    db.flush()
    logger.info("Contact request received id=%s source=%s", request.id, request.source)
    return request
