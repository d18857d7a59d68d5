# Overview: Service-layer operations for local users; encapsulates business logic and database work.

"""
Local user accounts.

The weighbridge runs on a site PC that may be offline, so operators log in
against accounts stored in the local database. Passwords are hashed with
bcrypt (cost factor 10) and only ever compared through bcrypt.checkpw.
"""

import bcrypt

from ..extensions import db
from ..models import LocalUser, USER_ROLES
from ..validation import ConflictError, NotFoundError, ValidationError
from ..time_utils import utcnow

BCRYPT_ROUNDS = 10


class AuthError(Exception):
    """401-level: credentials or session rejected."""


def hash_password(password: str) -> str:
    if not password:
        raise ValidationError("Password is required")
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    A malformed stored hash counts as a mismatch rather than an error.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(username: str, password: str, name: str | None = None, role: str = "operator") -> LocalUser:
    """
    Create a local user.

    Raises:
        ValidationError: missing username/password or unknown role
        ConflictError: username already taken
    """
    username = (username or "").strip()
    if not username or not password:
        raise ValidationError("Username and password are required")
    if role not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}")

    existing = db.session.query(LocalUser).filter_by(username=username).first()
    if existing:
        raise ConflictError("Username already exists")

    now = utcnow()
    user = LocalUser(
        username=username,
        password_hash=hash_password(password),
        name=(name or "").strip() or None,
        role=role,
        created_at=now,
        updated_at=now,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> LocalUser:
    """Return the user for valid credentials, else raise AuthError."""
    user = db.session.query(LocalUser).filter_by(username=username).first()
    if user is None or not verify_password(password, user.password_hash):
        raise AuthError("Invalid credentials")
    return user


def change_password(user_id: int, current_password: str, new_password: str) -> None:
    """
    Raises:
        NotFoundError: unknown user
        AuthError: current password does not match
    """
    user = db.session.get(LocalUser, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if not verify_password(current_password, user.password_hash):
        raise AuthError("Current password is incorrect")

    user.password_hash = hash_password(new_password)
    user.updated_at = utcnow()
    db.session.commit()


def admin_exists() -> bool:
    return db.session.query(LocalUser).filter_by(role="admin").first() is not None
