"""Accounts: creation (user plus tenant), login, tenant activation, bootstrap admin."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.models.client import Client
from app.models.user import User
from app.repositories.clients import ClientRepository
from app.repositories.users import UserRepository
from app.services.passwords import hash_password, verify_password
from app.services.tokens import Identity, TokenService
from app.utils.constants import Plan, Role

logger = logging.getLogger(__name__)


def identity_for(user: User) -> Identity:
    client = user.client
    return Identity(
        user_id=user.id,
        role=user.role,
        email=user.email,
        name=user.name or "",
        client_id=client.id if client else None,
        plan=client.plan if client else None,
    )


def create_user(
    db: Session,
    *,
    email: str,
    password: str,
    name: Optional[str] = None,
    role: Role | str = Role.CLIENT,
    plan: Plan | str | None = None,
    company_name: Optional[str] = None,
    contact_name: Optional[str] = None,
    contact_email: Optional[str] = None,
    contact_phone: Optional[str] = None,
) -> User:
    """
    Create a login user. A CLIENT user gets its tenant record in the same
    commit; either both rows exist afterwards or neither does.
    """
    try:
        role = Role(role)
    except ValueError:
        raise ValidationError("Invalid role. Use ADMIN or CLIENT.")
    try:
        plan = Plan(plan) if plan else Plan.BASIC
    except ValueError:
        raise ValidationError("Invalid plan. Use BASIC, STANDARD or FULL.")
    if not password:
        raise ValidationError("Password is required")

    email = email.strip().lower()
    if UserRepository(db).find_by_email(email):
        raise ConflictError("Email already registered")

    user = User(email=email, password_hash=hash_password(password), name=name, role=role)
    db.add(user)
    try:
        db.flush()
        if role == Role.CLIENT:
            db.add(
                Client(
                    user_id=user.id,
                    plan=plan,
                    is_active=True,
                    company_name=company_name,
                    contact_name=contact_name or name,
                    contact_email=contact_email or email,
                    contact_phone=contact_phone,
                )
            )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email already registered")
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    logger.info("User %s created (%s)", user.id, role.value)
    return user


def login(db: Session, tokens: TokenService, *, email: str, password: str) -> tuple[str, User]:
    user = UserRepository(db).find_by_email((email or "").strip().lower())
    if user is None or not verify_password(password or "", user.password_hash):
        raise AuthenticationError("Invalid email or password")

    if user.role == Role.CLIENT:
        client = user.client
        if client is None or not client.is_active:
            logger.info("Login refused for inactive tenant user %s", user.id)
            raise AuthorizationError("Account is inactive. Contact the administrator.")

    token = tokens.issue(identity_for(user))
    logger.info("User %s logged in", user.id)
    return token, user


def set_client_active(db: Session, user_id: int, active: bool) -> Client:
    clients = ClientRepository(db)
    client = clients.find_by_user_id(user_id)
    if client is None:
        raise NotFoundError("Client not found for this user")
    client = clients.set_active(client, active)
    logger.info("Client %s %s", client.id, "activated" if active else "deactivated")
    return client


def ensure_admin(db: Session, *, email: str, password: str, name: Optional[str] = None) -> tuple[User, bool]:
    """Create the administrator if the email is free. Returns (user, created)."""
    existing = UserRepository(db).find_by_email(email.strip().lower())
    if existing is not None:
        return existing, False
    user = create_user(db, email=email, password=password, name=name, role=Role.ADMIN)
    return user, True
