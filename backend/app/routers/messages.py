from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import get_current_account
from app.models.account import Account
from app.schemas.message import MessageCreate, MessageOut, UnreadCountOut
from app.services import messages as message_service
from app.services.messages import Mailbox

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("", response_model=list[MessageOut])
def list_messages(
    db: Session = Depends(get_db),
    account: Account = Depends(get_current_account),
    box: Mailbox = Query(default=Mailbox.all),
    include_deleted: bool = Query(default=False),
):
    return message_service.list_for(
        db, account_id=account.id, include_deleted=include_deleted, box=box
    )


@router.post("", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
def send_message(
    payload: MessageCreate,
    db: Session = Depends(get_db),
    account: Account = Depends(get_current_account),
):
    message = message_service.send(
        db,
        sender=account,
        recipient_id=payload.recipient_id,
        subject=payload.subject,
        body=payload.body,
        related_appointment_id=payload.related_appointment_id,
        parent_message_id=payload.parent_message_id,
    )
    db.commit()
    db.refresh(message)
    return message


@router.get("/unread-count", response_model=UnreadCountOut)
def unread_count(
    db: Session = Depends(get_db),
    account: Account = Depends(get_current_account),
):
    return UnreadCountOut(count=message_service.unread_count(db, account_id=account.id))


@router.post("/{message_id}/read", response_model=MessageOut)
def mark_read(
    message_id: int,
    db: Session = Depends(get_db),
    account: Account = Depends(get_current_account),
):
    message = message_service.mark_read(db, message_id=message_id, account_id=account.id)
    db.commit()
    db.refresh(message)
    return message


@router.delete("/{message_id}", response_model=MessageOut)
def delete_message(
    message_id: int,
    db: Session = Depends(get_db),
    account: Account = Depends(get_current_account),
):
    message = message_service.soft_delete(db, message_id=message_id, account_id=account.id)
    db.commit()
    db.refresh(message)
    return message
