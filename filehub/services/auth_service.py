"""Authentication service — account lifecycle and password hashing.

All password operations use bcrypt via passlib. Passwords are never stored
or logged in plaintext. The service layer owns user lifecycle; endpoints
are thin wrappers.
"""

import logging
from typing import Optional

from passlib.hash import bcrypt
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..exceptions import AuthenticationError, ConflictError, UserNotFoundError, ValidationError
from ..models.file import File
from ..models.folder import Folder
from ..models.user import User, ROLES, ROLE_SUPER_ADMIN, ROLE_USER

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _normalize_email(email: str) -> str:
    email = email.strip().lower()
    if not email or "@" not in email:
        raise ValidationError("Valid email address required", field="email")
    return email


def _check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
        )


def register_user(db: Session, email: str, password: str, name: Optional[str] = None) -> User:
    """Create a regular account.

    The first account registered becomes ``super_admin``.

    Raises ValidationError on bad input, ConflictError if the email is taken.
    """
    email = _normalize_email(email)
    _check_password(password)

    if db.query(User).filter(User.email == email).first() is not None:
        raise ConflictError("Email already registered", details={"field": "email"})

    # FOR UPDATE so two concurrent first registrations cannot both see an
    # empty table and both become super admin.
    is_first_user = db.query(User).with_for_update().count() == 0
    role = ROLE_SUPER_ADMIN if is_first_user else ROLE_USER

    user = User(
        name=(name or "").strip() or None,
        email=email,
        password_hash=bcrypt.hash(password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    if is_first_user:
        logger.info("First user registered as super admin", extra={"user_id": user.id})
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Validate credentials and return the user.

    Raises AuthenticationError on unknown email or wrong password.
    """
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).first()

    if user is None or not bcrypt.verify(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    return user


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def create_user_with_role(db: Session, name: str, email: str, password: str, role: str) -> User:
    """Create an account with an explicit role (super admin only at the API)."""
    if role not in ROLES:
        raise ValidationError(f"Invalid role: {role}", field="role")
    if not name.strip():
        raise ValidationError("Name is required", field="name")
    email = _normalize_email(email)
    _check_password(password)

    if db.query(User).filter(User.email == email).first() is not None:
        raise ConflictError("User with this email already exists", details={"field": "email"})

    user = User(name=name.strip(), email=email, password_hash=bcrypt.hash(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User created by super admin", extra={"user_id": user.id, "role": role})
    return user


def list_users(
    db: Session,
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    role: Optional[str] = None,
) -> tuple[int, list[tuple[User, int, int]]]:
    """Return ``(total, [(user, file_count, folder_count), ...])`` newest first."""
    query = db.query(User)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    if role and role != "all":
        query = query.filter(User.role == role)

    total = query.count()
    users = (
        query.order_by(User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return total, [(u, *count_owned(db, u.id)) for u in users]


def count_owned(db: Session, user_id: str) -> tuple[int, int]:
    """Return ``(file_count, folder_count)`` for a user."""
    files = db.query(func.count(File.id)).filter(File.user_id == user_id).scalar() or 0
    folders = db.query(func.count(Folder.id)).filter(Folder.user_id == user_id).scalar() or 0
    return files, folders


def update_user_role(db: Session, acting_user_id: str, user_id: str, new_role: str) -> User:
    """Change a user's role. A super admin cannot demote themself."""
    if new_role not in ROLES:
        raise ValidationError(
            f"Invalid role: {new_role}. Must be one of {', '.join(ROLES)}.", field="role"
        )
    if user_id == acting_user_id and new_role != ROLE_SUPER_ADMIN:
        raise ValidationError("Cannot demote yourself from super admin", field="role")

    user = get_user_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    user.role = new_role
    db.commit()
    db.refresh(user)
    logger.info("User role changed", extra={"user_id": user_id, "role": new_role})
    return user


def delete_user(db: Session, acting_user_id: str, user_id: str) -> list[str]:
    """Delete an account and everything it owns.

    Returns the blob ids that no remaining row references, so the caller can
    release them from the blob store.
    """
    if user_id == acting_user_id:
        raise ValidationError("Cannot delete yourself", field="user_id")

    user = get_user_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    blob_ids = {
        blob_id for (blob_id,) in db.query(File.blob_id).filter(File.user_id == user_id).distinct()
    }

    db.delete(user)
    db.commit()

    still_used = {
        blob_id
        for (blob_id,) in db.query(File.blob_id).filter(File.blob_id.in_(blob_ids)).distinct()
    } if blob_ids else set()

    logger.info("User deleted", extra={"user_id": user_id, "blobs": len(blob_ids)})
    return sorted(blob_ids - still_used)
