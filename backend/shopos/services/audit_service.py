# Overview: Service-layer operations for the audit log.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from flask import has_request_context, request

from ..extensions import db
from ..models import AuditLog
from shopos.time_utils import to_utc_z
"""
Audit Log Invariants

- Append-only; no updates or deletes of existing entries.
- Entries are written inside the same DB transaction as the change they
  record (flush, never commit), so a rolled-back change leaves no entry.
- old_values / new_values hold JSON-safe snapshots only.
"""

ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_DELETE = "DELETE"


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def append_audit_log(
    *,
    action: str,
    table_name: str,
    record_id: int | str,
    user_id: int | None = None,
    shop_id: int | None = None,
    old_values: dict | None = None,
    new_values: dict | None = None,
) -> AuditLog:
    ip_address = None
    user_agent = None
    if has_request_context():
        ip_address = request.remote_addr
        user_agent = (request.headers.get("User-Agent") or "")[:255] or None

    entry = AuditLog(
        user_id=user_id,
        shop_id=shop_id,
        action=action,
        table_name=table_name,
        record_id=str(record_id),
        old_values=_jsonable(old_values) if old_values is not None else None,
        new_values=_jsonable(new_values) if new_values is not None else None,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def list_audit_logs(
    *,
    shop_id: int | None,
    table_name: str | None = None,
    record_id: str | None = None,
    limit: int = 100,
) -> list[AuditLog]:
    q = db.session.query(AuditLog)
    if shop_id is not None:
        q = q.filter(AuditLog.shop_id == shop_id)
    if table_name:
        q = q.filter(AuditLog.table_name == table_name)
    if record_id:
        q = q.filter(AuditLog.record_id == str(record_id))
    return q.order_by(AuditLog.id.desc()).limit(limit).all()
