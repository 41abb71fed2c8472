import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from app.core.settings import settings
from app.db.session import get_db
from app.deps import (
    clear_session_cookie,
    get_current_account,
    get_session_manager,
    set_session_cookie,
)
from app.models.account import Account
from app.schemas.account import AccountOut
from app.schemas.auth import LoginRequest, MessageResponse, RegisterRequest
from app.services import accounts as account_service
from app.services.audit import log_event
from app.services.rate_limit import build_limiter
from app.services.sessions import SessionManager

router = APIRouter(tags=["auth"])
logger = logging.getLogger("psiconnect.auth")

LOGIN_LIMITER = build_limiter(max_events=settings.login_attempts_per_minute)
LOGIN_IP_LIMITER = build_limiter(max_events=settings.login_attempts_per_minute * 2)
REGISTER_IP_LIMITER = build_limiter(max_events=settings.register_attempts_per_minute)


@router.post("/register", response_model=AccountOut, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    ip_address = request.client.host if request.client else "unknown"
    if not REGISTER_IP_LIMITER.allow(ip_address):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many registration attempts"
        )
    profile = payload.model_dump(
        exclude={"username", "password", "email", "full_name", "kind", "invite_code"},
        exclude_none=True,
    )
    account = account_service.register(
        db,
        username=payload.username,
        password=payload.password,
        email=payload.email,
        full_name=payload.full_name,
        kind=payload.kind,
        invite_code=payload.invite_code,
        profile=profile,
    )
    log_event(
        db,
        actor=account,
        action="account.registered",
        entity_type="account",
        entity_id=str(account.id),
        after_obj=account,
        request_id=request_id,
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(account)
    logger.info("Registered %s account id=%s", account.kind.value, account.id)

    token, _record = manager.open(account)
    set_session_cookie(response, token)
    return account


@router.post("/login", response_model=AccountOut)
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager),
):
    ip_address = request.client.host if request.client else "unknown"
    rate_key = f"{ip_address}:{payload.username.strip().lower()}"
    if not LOGIN_LIMITER.allow(rate_key) or not LOGIN_IP_LIMITER.allow(ip_address):
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many login attempts")

    token, _record, account = manager.login(db, payload.username, payload.password)
    db.commit()
    db.refresh(account)
    set_session_cookie(response, token)
    return account


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    manager: SessionManager = Depends(get_session_manager),
):
    manager.logout(request.cookies.get(settings.session_cookie_name))
    clear_session_cookie(response)
    return MessageResponse(message="Logged out")


@router.get("/session/me", response_model=AccountOut)
def session_me(account: Account = Depends(get_current_account)):
    return account
