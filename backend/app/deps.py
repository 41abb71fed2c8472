from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from app.core.errors import Forbidden
from app.core.settings import settings
from app.db.session import get_db
from app.models.account import Account
from app.services.sessions import SessionManager


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def set_session_cookie(response: Response, token: str) -> None:
    # At most one session cookie per response, the last token issued wins.
    if "set-cookie" in response.headers:
        del response.headers["set-cookie"]
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_max_age_days * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )


def get_current_account(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager),
) -> Account:
    token = request.cookies.get(settings.session_cookie_name)
    account = manager.current_account(db, token)
    # Rolling session: every authenticated response re-issues the cookie.
    set_session_cookie(response, token)
    return account


def require_practitioner(account: Account = Depends(get_current_account)) -> Account:
    if not account.is_practitioner:
        raise Forbidden("This action is available to practitioners only")
    return account


def require_client(account: Account = Depends(get_current_account)) -> Account:
    if not account.is_client:
        raise Forbidden("This action is available to clients only")
    return account
