# Overview: Bearer session tokens and the default auth provider.

"""
Session Token Management

Tokens are 32 random bytes (hex), stored only as SHA-256 hashes, with an
absolute and an idle timeout. The role and store binding are captured when
the session is created.

TokenVerifier is the auth provider seam: anything with a
verify(token) -> AuthContext | None method can be registered as
app.extensions["token_verifier"]. SessionTokenVerifier is the default.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import timedelta
from typing import Protocol

from ..extensions import db
from ..models import SessionToken, User
from ..permissions import AuthContext
from ..time_utils import utcnow
from .concurrency import transaction


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)


class TokenVerifier(Protocol):
    def verify(self, token: str) -> AuthContext | None:
        ...


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(user: User) -> tuple[SessionToken, str]:
    """
    Create a session for user. Returns (session_record, plaintext_token).

    The caller owns the transaction.
    """
    plaintext_token = generate_token()
    now = utcnow()
    session = SessionToken(
        user_id=user.id,
        role=user.role,
        store_id=user.store_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.flush()
    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def validate_session(token: str) -> AuthContext | None:
    """
    Return the AuthContext for a live token, or None.

    Idle sessions and sessions of deactivated users are revoked on sight.
    Updates last_used_at on success.
    """
    now = utcnow()
    with transaction():
        session = (
            db.session.query(SessionToken)
            .filter_by(token_hash=hash_token(token), is_revoked=False)
            .first()
        )
        if not session or session.expires_at < now:
            return None

        if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
            _revoke(session, "Idle timeout")
            return None

        user = session.user
        if not user or not user.is_active:
            _revoke(session, "User account deactivated")
            return None

        session.last_used_at = now
        return AuthContext(
            user_id=user.id,
            store_id=session.store_id,
            role=session.role,
            name=user.name,
        )


def revoke_session(token: str, reason: str = "User logout") -> bool:
    with transaction():
        session = (
            db.session.query(SessionToken)
            .filter_by(token_hash=hash_token(token), is_revoked=False)
            .first()
        )
        if not session:
            return False
        _revoke(session, reason)
        return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    with transaction():
        sessions = db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False).all()
        for session in sessions:
            _revoke(session, reason)
        return len(sessions)


class SessionTokenVerifier:
    """Default auth provider backed by session_tokens."""

    def verify(self, token: str) -> AuthContext | None:
        if not token:
            return None
        return validate_session(token)
