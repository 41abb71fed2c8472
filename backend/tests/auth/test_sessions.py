from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import Forbidden, InvalidCredentials, Unauthenticated
from app.core.security import hash_session_token
from app.db.session import SessionLocal
from app.models.account import AccountKind
from app.services import accounts as account_service
from app.services.sessions import DatabaseSessionStore, InMemorySessionStore, SessionManager, SessionRecord

START = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(START)


@pytest.fixture
def practitioner_account(db_session):
    account = account_service.register(
        db_session,
        username="drlopez",
        password="s3cret-pass",
        email="drlopez@example.com",
        full_name="Dr Lopez",
        kind=AccountKind.practitioner,
        profile={"specialty": "Clinical psychology"},
    )
    db_session.commit()
    return account


def _manager(clock, store=None) -> SessionManager:
    return SessionManager(
        store if store is not None else InMemorySessionStore(),
        max_age=timedelta(days=30),
        clock=clock,
    )


def test_login_issues_session(db_session, practitioner_account, clock):
    manager = _manager(clock)
    token, record, account = manager.login(db_session, "drlopez", "s3cret-pass")
    assert account.id == practitioner_account.id
    assert record.token_hash == hash_session_token(token)
    assert record.expires_at == START + timedelta(days=30)
    assert account.last_login_at is not None


def test_login_rejects_bad_credentials(db_session, practitioner_account, clock):
    manager = _manager(clock)
    with pytest.raises(InvalidCredentials):
        manager.login(db_session, "drlopez", "wrong-password")
    with pytest.raises(InvalidCredentials):
        manager.login(db_session, "nobody", "s3cret-pass")


def test_login_rejects_disabled_account(db_session, practitioner_account, clock):
    practitioner_account.is_active = False
    db_session.commit()
    with pytest.raises(Forbidden):
        _manager(clock).login(db_session, "drlopez", "s3cret-pass")


def test_expiry_slides_on_each_request(db_session, practitioner_account, clock):
    store = InMemorySessionStore()
    manager = _manager(clock, store)
    token, _record = manager.open(practitioner_account)

    clock.advance(days=29)
    assert manager.current_account(db_session, token).id == practitioner_account.id
    refreshed = store.get(hash_session_token(token))
    assert refreshed.expires_at == clock.now + timedelta(days=30)

    clock.advance(days=29)
    assert manager.current_account(db_session, token).id == practitioner_account.id


def test_expired_session_is_deleted(db_session, practitioner_account, clock):
    store = InMemorySessionStore()
    manager = _manager(clock, store)
    token, _record = manager.open(practitioner_account)

    clock.advance(days=30, seconds=1)
    with pytest.raises(Unauthenticated):
        manager.current_account(db_session, token)
    assert len(store) == 0


@pytest.mark.parametrize("token", [None, "", "made-up-token"])
def test_missing_or_unknown_token(db_session, clock, token):
    with pytest.raises(Unauthenticated):
        _manager(clock).current_account(db_session, token)


def test_session_for_deleted_account_is_invalidated(db_session, practitioner_account, clock):
    store = InMemorySessionStore()
    manager = _manager(clock, store)
    _token, record = manager.open(practitioner_account)
    orphan = SessionRecord(
        token_hash=hash_session_token("orphan-token"),
        account_id=practitioner_account.id + 100,
        created_at=record.created_at,
        expires_at=record.expires_at,
    )
    store.save(orphan)

    with pytest.raises(Unauthenticated):
        manager.current_account(db_session, "orphan-token")
    assert store.get(orphan.token_hash) is None


def test_session_for_disabled_account_is_invalidated(db_session, practitioner_account, clock):
    store = InMemorySessionStore()
    manager = _manager(clock, store)
    token, _record = manager.open(practitioner_account)
    practitioner_account.is_active = False
    db_session.commit()

    with pytest.raises(Unauthenticated):
        manager.current_account(db_session, token)
    assert len(store) == 0


def test_logout_prevents_replay(db_session, practitioner_account, clock):
    manager = _manager(clock)
    token, _record = manager.open(practitioner_account)
    manager.logout(token)
    with pytest.raises(Unauthenticated):
        manager.current_account(db_session, token)


def test_revoke_all(db_session, practitioner_account, clock):
    store = InMemorySessionStore()
    manager = _manager(clock, store)
    manager.open(practitioner_account)
    manager.open(practitioner_account)
    assert manager.revoke_all(practitioner_account.id) == 2
    assert len(store) == 0


def test_database_store_round_trip(db_session, practitioner_account, clock):
    store = DatabaseSessionStore(SessionLocal)
    manager = _manager(clock, store)
    token, record = manager.open(practitioner_account)

    loaded = store.get(record.token_hash)
    assert loaded is not None
    assert loaded.account_id == practitioner_account.id
    assert loaded.expires_at == record.expires_at

    clock.advance(days=1)
    manager.current_account(db_session, token)
    assert store.get(record.token_hash).expires_at == clock.now + timedelta(days=30)

    manager.logout(token)
    assert store.get(record.token_hash) is None


def test_database_store_purges_expired(db_session, practitioner_account, clock):
    store = DatabaseSessionStore(SessionLocal)
    manager = _manager(clock, store)
    _token, expired = manager.open(practitioner_account)
    clock.advance(days=31)
    _token, fresh = manager.open(practitioner_account)

    assert manager.purge_expired() == 1
    assert store.get(expired.token_hash) is None
    assert store.get(fresh.token_hash) is not None


def test_database_store_drops_session_of_disabled_account(db_session, practitioner_account, clock):
    store = DatabaseSessionStore(SessionLocal)
    manager = _manager(clock, store)
    token, record = manager.open(practitioner_account)
    practitioner_account.is_active = False
    db_session.commit()

    with pytest.raises(Unauthenticated):
        manager.current_account(db_session, token)
    assert store.get(record.token_hash) is None
