# Overview: Service-layer operations for sessions; encapsulates business logic and database work.

"""
Session Token Management

The session row's primary key is the token handed to the client. Sessions
are never swept: an expired row simply stops validating.

Two kinds of session share the table:
- local login (LOCAL_SESSION_TTL), user_id is the LocalUser id
- delegated cloud login (DELEGATED_SESSION_TTL), user_id is
  "cloud:<remote user id>" and has no LocalUser row
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..extensions import db
from ..models import LocalUser, SessionToken
from ..time_utils import utcnow


LOCAL_SESSION_TTL = timedelta(days=7)
DELEGATED_SESSION_TTL = timedelta(hours=24)
DELEGATED_PREFIX = "cloud:"

# Identity presented for delegated sessions
CLOUD_USER_PROFILE = {
    "username": "cloud_user",
    "name": "Cloud User",
    "role": "operator",
}


@dataclass
class SessionContext:
    """Validated session plus the identity it belongs to."""
    session: SessionToken
    user: dict


def generate_token() -> str:
    return str(uuid.uuid4())


def _create(user_id: str, ttl: timedelta, now: datetime | None = None) -> SessionToken:
    now = now or utcnow()
    session = SessionToken(
        id=generate_token(),
        user_id=user_id,
        created_at=now,
        expires_at=now + ttl,
    )
    db.session.add(session)
    db.session.commit()
    return session


def create_session(user: LocalUser, now: datetime | None = None) -> SessionToken:
    return _create(str(user.id), LOCAL_SESSION_TTL, now)


def create_delegated_session(remote_user_id: str, now: datetime | None = None) -> tuple[SessionToken, dict]:
    """Mint a short-lived session for an identity vouched for by the cloud service."""
    user_id = f"{DELEGATED_PREFIX}{remote_user_id}"
    session = _create(user_id, DELEGATED_SESSION_TTL, now)
    return session, {"id": user_id, **CLOUD_USER_PROFILE}


def validate_session(token: str, now: datetime | None = None) -> SessionContext | None:
    """
    Return the session context if the token exists and has not expired.

    Local sessions additionally require the user row to still exist.
    """
    if not token:
        return None
    now = now or utcnow()

    session = db.session.get(SessionToken, token)
    if session is None or session.expires_at <= now:
        return None

    if session.user_id.startswith(DELEGATED_PREFIX):
        return SessionContext(session=session, user={"id": session.user_id, **CLOUD_USER_PROFILE})

    if not session.user_id.isdigit():
        return None
    user = db.session.get(LocalUser, int(session.user_id))
    if user is None:
        return None
    return SessionContext(session=session, user=user.to_dict())


def revoke_session(token: str) -> bool:
    """Delete the session row. Returns False if it did not exist."""
    deleted = db.session.query(SessionToken).filter_by(id=token).delete()
    db.session.commit()
    return deleted > 0
