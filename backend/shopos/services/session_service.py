# Overview: Service-layer operations for session; token lifecycle and per-request identity.

"""
Session Token Management Service

Tokens are cryptographically secure, hashed in the database, and
time-limited. validate_session() also resolves the request's shop once, so
route handlers receive a complete AuthContext instead of repeating the
owner/worker lookup.

SECURITY FEATURES:
- 32 bytes of entropy per token (secrets.token_hex)
- Tokens hashed with SHA-256 before storage
- Absolute and idle timeouts (SESSION_ABSOLUTE_TIMEOUT_HOURS / SESSION_IDLE_TIMEOUT_HOURS)
- Revocable on logout
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, Shop, ShopWorker, User
from ..models.auth import ROLE_SHOP_OWNER, ROLE_SHOP_WORKER
from ..validation import NotFoundError
from shopos.time_utils import utcnow


@dataclass
class AuthContext:
    """Identity of the current request: who is calling, in which role, for which shop."""
    user: User
    session: SessionToken
    role: str
    shop_id: int | None  # None for super admins and unassigned users

    @property
    def user_id(self) -> int:
        return self.user.id


def generate_token() -> str:
    """Returns 64-character hex string (32 bytes of entropy)."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24))


def _idle_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_IDLE_TIMEOUT_HOURS", 2))


def resolve_shop_id(user: User) -> int | None:
    """
    Shop the user operates in.

    - SHOP_OWNER: first ACTIVE owned shop (lowest id)
    - SHOP_WORKER: active ShopWorker assignment whose shop is ACTIVE
    - SUPER_ADMIN: None (not bound to a shop)
    """
    if user.role == ROLE_SHOP_OWNER:
        shop = (
            db.session.query(Shop)
            .filter_by(owner_id=user.id, status="ACTIVE")
            .order_by(Shop.id.asc())
            .first()
        )
        return shop.id if shop else None

    if user.role == ROLE_SHOP_WORKER:
        assignment = (
            db.session.query(ShopWorker)
            .join(Shop, Shop.id == ShopWorker.shop_id)
            .filter(
                ShopWorker.user_id == user.id,
                ShopWorker.is_active.is_(True),
                Shop.status == "ACTIVE",
            )
            .order_by(ShopWorker.id.asc())
            .first()
        )
        return assignment.shop_id if assignment else None

    return None


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        raise NotFoundError("User not found")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> AuthContext | None:
    """
    Validate session token and return AuthContext if valid.

    Returns None if the token is unknown, expired, idle too long or revoked,
    or the user account is deactivated. Updates last_used_at on success.
    """
    now = utcnow()

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_timeout():
        session.is_revoked = True
        db.session.commit()
        return None

    user = session.user
    if not user or not user.is_active:
        session.is_revoked = True
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()

    return AuthContext(
        user=user,
        session=session,
        role=user.role,
        shop_id=resolve_shop_id(user),
    )


def revoke_session(token: str) -> bool:
    """Returns True if session was revoked, False if not found."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return False

    session.is_revoked = True
    db.session.commit()
    return True
