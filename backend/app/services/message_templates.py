from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import Forbidden
from app.core.validators import require_min_length, require_text
from app.models.account import Account
from app.models.message import MessageTemplate, MessageTemplateKind


def create_template(
    db: Session,
    *,
    practitioner: Account,
    kind: MessageTemplateKind,
    title: str | None,
    content: str | None,
    language: str | None = None,
    is_default: bool = False,
) -> MessageTemplate:
    if not practitioner.is_practitioner:
        raise Forbidden("Only practitioners can manage message templates")
    template = MessageTemplate(
        practitioner_id=practitioner.id,
        kind=kind,
        title=require_min_length(title, 3, field="title", label="Title"),
        content=require_text(content, field="content", message="Content is required"),
        language=language or "es",
        is_default=is_default,
    )
    db.add(template)
    db.flush()
    return template


def list_templates(
    db: Session, *, practitioner_id: int, kind: MessageTemplateKind | None = None
) -> list[MessageTemplate]:
    stmt = select(MessageTemplate).where(MessageTemplate.practitioner_id == practitioner_id)
    if kind is not None:
        stmt = stmt.where(MessageTemplate.kind == kind)
    stmt = stmt.order_by(MessageTemplate.kind, MessageTemplate.title, MessageTemplate.id)
    return list(db.scalars(stmt))
