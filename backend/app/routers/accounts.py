from fastapi import APIRouter, Depends, Header, Request, Response
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import get_current_account, get_session_manager, require_practitioner, set_session_cookie
from app.models.account import Account
from app.schemas.account import AccountOut, AccountUpdate, ClientSummary, InviteCodeOut
from app.schemas.auth import ChangePasswordRequest, MessageResponse
from app.services import accounts as account_service
from app.services.audit import log_event, snapshot_model
from app.services.sessions import SessionManager

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.patch("/me", response_model=AccountOut)
def update_me(
    payload: AccountUpdate,
    request: Request,
    db: Session = Depends(get_db),
    account: Account = Depends(get_current_account),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    before_data = snapshot_model(account)
    account_service.update_profile(
        db, account=account, changes=payload.model_dump(exclude_unset=True)
    )
    log_event(
        db,
        actor=account,
        action="account.updated",
        entity_type="account",
        entity_id=str(account.id),
        before_data=before_data,
        after_obj=account,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(account)
    return account


@router.post("/me/password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    account: Account = Depends(get_current_account),
    manager: SessionManager = Depends(get_session_manager),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    account_service.change_password(
        db, account=account, old_password=payload.old_password, new_password=payload.new_password
    )
    log_event(
        db,
        actor=account,
        action="account.password_changed",
        entity_type="account",
        entity_id=str(account.id),
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    # Other devices are signed out; this one continues on a fresh token.
    manager.revoke_all(account.id)
    token, _record = manager.open(account)
    set_session_cookie(response, token)
    return MessageResponse(message="Password updated")


@router.post("/me/invite-code", response_model=InviteCodeOut)
def regenerate_invite_code(
    request: Request,
    db: Session = Depends(get_db),
    account: Account = Depends(require_practitioner),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    before_code = account.invite_code
    account_service.regenerate_invite_code(db, account=account)
    log_event(
        db,
        actor=account,
        action="account.invite_code_regenerated",
        entity_type="account",
        entity_id=str(account.id),
        before_data={"invite_code": before_code},
        after_data={"invite_code": account.invite_code},
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    return InviteCodeOut(invite_code=account.invite_code)


@router.get("/me/clients", response_model=list[ClientSummary])
def list_my_clients(
    db: Session = Depends(get_db),
    account: Account = Depends(require_practitioner),
):
    return account_service.list_clients(db, practitioner=account)
