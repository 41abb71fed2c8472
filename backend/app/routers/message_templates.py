from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import require_practitioner
from app.models.account import Account
from app.models.message import MessageTemplateKind
from app.schemas.message import MessageTemplateCreate, MessageTemplateOut
from app.services import message_templates as template_service

router = APIRouter(prefix="/message-templates", tags=["messages"])


@router.get("", response_model=list[MessageTemplateOut])
def list_message_templates(
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
    kind: MessageTemplateKind | None = Query(default=None),
):
    return template_service.list_templates(db, practitioner_id=practitioner.id, kind=kind)


@router.post("", response_model=MessageTemplateOut, status_code=status.HTTP_201_CREATED)
def create_message_template(
    payload: MessageTemplateCreate,
    db: Session = Depends(get_db),
    practitioner: Account = Depends(require_practitioner),
):
    template = template_service.create_template(
        db,
        practitioner=practitioner,
        kind=payload.kind,
        title=payload.title,
        content=payload.content,
        language=payload.language,
        is_default=payload.is_default,
    )
    db.commit()
    db.refresh(template)
    return template
