# Overview: Service-layer operations for document numbering.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence
from ..validation import ValidationError
from shopos.time_utils import utcnow


def _allocate(shop_id: int, document_type: str) -> int:
    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.shop_id == shop_id,
            DocumentSequence.document_type == document_type,
        )
        .values(next_number=DocumentSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if not result.rowcount:
        try:
            with db.session.begin_nested():
                db.session.add(DocumentSequence(shop_id=shop_id, document_type=document_type, next_number=2))
            return 1
        except IntegrityError:
            # Another transaction created the counter first; take the next value.
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise

    current = (
        db.session.query(DocumentSequence.next_number)
        .filter_by(shop_id=shop_id, document_type=document_type)
        .scalar()
    )
    return current - 1


def next_document_number(
    *,
    shop_id: int,
    prefix: str,
    on: datetime | None = None,
    pad: int = 3,
) -> str:
    """
    Allocate the next number for a shop, restarting every day:
    "{prefix}-{YYYYMMDD}-{NNN}".

    Must run inside the caller's transaction; the counter row stays locked
    until that transaction commits, so numbers are unique per shop.
    """
    if not shop_id:
        raise ValidationError("shop_id is required")
    if not prefix:
        raise ValidationError("prefix is required")

    day = (on or utcnow()).strftime("%Y%m%d")
    scope = f"{prefix}-{day}"
    number = _allocate(shop_id, scope)
    return f"{scope}-{number:0{pad}d}"
