from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from app.models.account import Account
from app.models.audit_log import AuditLog

# Never copied into audit snapshots.
REDACTED_COLUMNS = {"hashed_password", "token_hash"}


def _jsonable(value: Any) -> Any:
    if hasattr(value, "value"):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def snapshot_model(obj: Any | None) -> dict | None:
    if obj is None:
        return None
    data: dict[str, Any] = {}
    mapper = inspect(obj).mapper
    for column in mapper.columns:
        key = column.key
        if key in REDACTED_COLUMNS:
            continue
        data[key] = _jsonable(getattr(obj, key))
    return data


def _owner_id(actor: Account | None, *objs: Any) -> int | None:
    """Practitioner whose practice the audited row belongs to."""
    for obj in objs:
        owner = getattr(obj, "practitioner_id", None)
        if owner is not None:
            return owner
    if actor is None:
        return None
    return actor.id if actor.is_practitioner else actor.linked_practitioner_id


def log_event(
    db: Session,
    *,
    actor: Account | None,
    action: str,
    entity_type: str,
    entity_id: str,
    before_obj: Any | None = None,
    after_obj: Any | None = None,
    before_data: dict | None = None,
    after_data: dict | None = None,
    request_id: str | None = None,
    ip_address: str | None = None,
) -> AuditLog:
    entry = AuditLog(
        actor_account_id=actor.id if actor else None,
        actor_username=actor.username if actor else None,
        practitioner_id=_owner_id(actor, after_obj, before_obj),
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        request_id=request_id,
        ip_address=ip_address,
        before_json=before_data if before_data is not None else snapshot_model(before_obj),
        after_json=after_data if after_data is not None else snapshot_model(after_obj),
    )
    db.add(entry)
    return entry


def list_events(
    db: Session,
    *,
    entity_type: str | None = None,
    entity_id: int | str | None = None,
    practitioner_id: int | None = None,
    action: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[AuditLog]:
    stmt = select(AuditLog)
    if practitioner_id is not None:
        stmt = stmt.where(AuditLog.practitioner_id == practitioner_id)
    if entity_type:
        stmt = stmt.where(AuditLog.entity_type == entity_type)
    if entity_id is not None and entity_id != "":
        stmt = stmt.where(AuditLog.entity_id == str(entity_id))
    if action:
        stmt = stmt.where(AuditLog.action == action)
    stmt = (
        stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(db.scalars(stmt))
