"""Server-side session management.

A session is an opaque random token handed to the browser in an HTTP-only
cookie. Only the SHA-256 of the token is persisted, so a leaked session table
cannot be replayed. Expiry slides forward on every authenticated request and
never reaches further than ``max_age`` from the moment of the request.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

from sqlalchemy import delete
from sqlalchemy.orm import Session, sessionmaker

from app.core.errors import Forbidden, Unauthenticated
from app.core.security import generate_session_token, hash_session_token
from app.models.account import Account
from app.models.auth_session import AuthSession
from app.services import accounts as account_service

logger = logging.getLogger("psiconnect.sessions")


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SessionRecord:
    token_hash: str
    account_id: int
    created_at: datetime
    expires_at: datetime


class SessionStore(Protocol):
    def get(self, token_hash: str) -> SessionRecord | None: ...

    def save(self, record: SessionRecord) -> None: ...

    def delete(self, token_hash: str) -> None: ...

    def delete_for_account(self, account_id: int) -> int: ...

    def purge_expired(self, now: datetime) -> int: ...

    def close(self) -> None: ...


class InMemorySessionStore:
    def __init__(self) -> None:
        self._records: dict[str, SessionRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def get(self, token_hash: str) -> SessionRecord | None:
        return self._records.get(token_hash)

    def save(self, record: SessionRecord) -> None:
        self._records[record.token_hash] = record

    def delete(self, token_hash: str) -> None:
        self._records.pop(token_hash, None)

    def delete_for_account(self, account_id: int) -> int:
        doomed = [key for key, rec in self._records.items() if rec.account_id == account_id]
        for key in doomed:
            del self._records[key]
        return len(doomed)

    def purge_expired(self, now: datetime) -> int:
        doomed = [key for key, rec in self._records.items() if as_utc(rec.expires_at) <= now]
        for key in doomed:
            del self._records[key]
        return len(doomed)

    def close(self) -> None:
        self._records.clear()


class DatabaseSessionStore:
    """Sessions table backed store; each call runs in its own short transaction."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _to_record(row: AuthSession) -> SessionRecord:
        return SessionRecord(
            token_hash=row.token_hash,
            account_id=row.account_id,
            created_at=as_utc(row.created_at),
            expires_at=as_utc(row.expires_at),
        )

    def get(self, token_hash: str) -> SessionRecord | None:
        with self._session_factory() as db:
            row = db.get(AuthSession, token_hash)
            return self._to_record(row) if row else None

    def save(self, record: SessionRecord) -> None:
        with self._session_factory() as db:
            row = db.get(AuthSession, record.token_hash)
            if row is None:
                row = AuthSession(token_hash=record.token_hash, account_id=record.account_id)
            row.created_at = record.created_at
            row.expires_at = record.expires_at
            db.add(row)
            db.commit()

    def delete(self, token_hash: str) -> None:
        with self._session_factory() as db:
            db.execute(delete(AuthSession).where(AuthSession.token_hash == token_hash))
            db.commit()

    def delete_for_account(self, account_id: int) -> int:
        with self._session_factory() as db:
            result = db.execute(delete(AuthSession).where(AuthSession.account_id == account_id))
            db.commit()
            return int(result.rowcount or 0)

    def purge_expired(self, now: datetime) -> int:
        with self._session_factory() as db:
            result = db.execute(delete(AuthSession).where(AuthSession.expires_at <= now))
            db.commit()
            return int(result.rowcount or 0)

    def close(self) -> None:
        pass


class SessionManager:
    def __init__(
        self,
        store: SessionStore,
        *,
        max_age: timedelta,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.max_age = max_age
        self._clock = clock

    def login(self, db: Session, username: str, password: str) -> tuple[str, SessionRecord, Account]:
        account = account_service.verify(db, username, password)
        if not account.is_active:
            raise Forbidden("Account disabled")
        account_service.record_login(db, account)
        token, record = self.open(account)
        return token, record, account

    def open(self, account: Account) -> tuple[str, SessionRecord]:
        token = generate_session_token()
        now = self._clock()
        record = SessionRecord(
            token_hash=hash_session_token(token),
            account_id=account.id,
            created_at=now,
            expires_at=now + self.max_age,
        )
        self.store.save(record)
        logger.info("Session opened for account_id=%s", account.id)
        return token, record

    def current_account(self, db: Session, token: str | None) -> Account:
        if not token:
            raise Unauthenticated()
        token_hash = hash_session_token(token)
        record = self.store.get(token_hash)
        if record is None:
            raise Unauthenticated()
        now = self._clock()
        if as_utc(record.expires_at) <= now:
            self.store.delete(token_hash)
            raise Unauthenticated("Session expired")
        account = account_service.get_account_by_id(db, record.account_id)
        if account is None or not account.is_active:
            self.store.delete(token_hash)
            logger.info(
                "Dropped session for missing or inactive account_id=%s", record.account_id
            )
            raise Unauthenticated()
        self.store.save(replace(record, expires_at=now + self.max_age))
        return account

    def logout(self, token: str | None) -> None:
        if not token:
            return
        self.store.delete(hash_session_token(token))

    def revoke_all(self, account_id: int) -> int:
        return self.store.delete_for_account(account_id)

    def purge_expired(self) -> int:
        return self.store.purge_expired(self._clock())

    def close(self) -> None:
        self.store.close()
