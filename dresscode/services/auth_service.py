# Overview: Password hashing, user creation and credential checks.

"""
Passwords are hashed with bcrypt. Store managers must be bound to an
existing non-warehouse store; warehouse managers are bound to the
warehouse store when one exists.
"""

import bcrypt

from ..errors import BadRequest, Conflict, Unauthorized
from ..extensions import db
from ..models import Store, User
from ..models.auth import ROLE_CUSTOMER, ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER, VALID_ROLES
from ..models.stores import STORE_TYPE_WAREHOUSE
from .concurrency import run_in_transaction
from .session_service import create_session


MIN_PASSWORD_LENGTH = 8


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_user(
    *,
    name: str,
    email: str,
    password: str,
    role: str,
    store_id: int | None = None,
    phone_number: str | None = None,
) -> User:
    """Create a user; the caller commits."""
    email = (email or "").strip().lower()
    if not email or not name:
        raise BadRequest("name and email are required")
    if role not in VALID_ROLES:
        raise BadRequest(f"Invalid role: {role}")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise BadRequest(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if db.session.query(User.id).filter_by(email=email).first():
        raise Conflict("A user with this email already exists")

    if role == ROLE_STORE_MANAGER:
        store = db.session.get(Store, store_id) if store_id else None
        if store is None or store.is_warehouse:
            raise BadRequest("Store managers must be bound to a store")
    elif role == ROLE_WAREHOUSE_MANAGER:
        store_id = store_id or db.session.query(Store.id).filter_by(store_type=STORE_TYPE_WAREHOUSE).limit(1).scalar()
    else:
        store_id = None

    user = User(
        name=name.strip(),
        email=email,
        phone_number=phone_number,
        password_hash=hash_password(password),
        role=role,
        store_id=store_id,
    )
    db.session.add(user)
    db.session.flush()
    return user


def authenticate(email: str, password: str) -> User:
    user = db.session.query(User).filter_by(email=(email or "").strip().lower()).first()
    if not user or not verify_password(password or "", user.password_hash):
        raise Unauthorized("Invalid email or password")
    if not user.is_active:
        raise Unauthorized("Account is deactivated")
    return user


def register_customer(*, name: str, email: str, password: str, phone_number: str | None = None) -> User:
    """Self-service signup; always creates a CUSTOMER."""
    def _op():
        return create_user(
            name=name,
            email=email,
            password=password,
            role=ROLE_CUSTOMER,
            phone_number=phone_number,
        )

    return run_in_transaction(_op)


def login(email: str, password: str) -> tuple[User, str]:
    """Check credentials and open a session. Returns (user, plaintext_token)."""
    def _op():
        user = authenticate(email, password)
        _, token = create_session(user)
        return user, token

    return run_in_transaction(_op)
