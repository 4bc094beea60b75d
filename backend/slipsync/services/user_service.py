# Overview: Onboarding sync and current-user lookup for identity-provider subjects.

"""
User onboarding.

WHY: Users authenticate with the external identity provider; the first call
after sign-in (POST /api/auth/sync) links that subject to a local User and
Merchant. Later syncs keep the stored role in step with the provider's
organization role claim.

Role resolution on sync:
- header role, when it normalizes to a known role
- else the stored role (existing users)
- else the fallback: the first user of a merchant is ADMIN, later users are
  EMPLOYEE
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..errors import NotFoundError
from ..models import Merchant, Role, User
from ..permissions import ROLE_DESCRIPTIONS, RoleName, normalize_role
from . import security_service
from .identity_service import VerifiedIdentity


DEFAULT_DISPLAY_NAME = "New Merchant"
DEFAULT_EMAIL = "no-email"


def ensure_role(role: RoleName) -> Role:
    """Return the Role row for a known role, creating it on first encounter."""
    if role is RoleName.UNKNOWN:
        raise ValueError("Cannot provision the UNKNOWN role")
    existing = db.session.query(Role).filter_by(name=role.value).first()
    if existing is not None:
        return existing
    created = Role(name=role.value, description=ROLE_DESCRIPTIONS.get(role))
    db.session.add(created)
    db.session.flush()
    current_app.logger.info("Provisioned role %s", role.value)
    return created


def _fallback_role(merchant_id: str) -> RoleName:
    has_users = db.session.query(User.id).filter_by(merchant_id=merchant_id).first() is not None
    return RoleName.EMPLOYEE if has_users else RoleName.ADMIN


def _resolve_merchant(org_id: str | None, display_name: str) -> Merchant:
    org_id = (org_id or "").strip() or None
    if org_id:
        merchant = db.session.get(Merchant, org_id)
        if merchant is not None:
            return merchant

    merchant = Merchant(
        name=f"{display_name}'s Business",
        currency=current_app.config.get("DEFAULT_CURRENCY", "PKR"),
    )
    if org_id:
        merchant.id = org_id
    db.session.add(merchant)
    db.session.flush()
    current_app.logger.info("Created merchant %s for new user", merchant.id)
    return merchant


def sync_user(identity: VerifiedIdentity, *, org_id: str | None = None, org_role: str | None = None) -> User:
    """
    Create or update the local User for a verified identity.

    org_id and org_role come from the X-Clerk-Org-Id and X-Clerk-Org-Role
    headers. An org_id only selects the merchant for a new user; existing
    users never move between merchants.
    """
    header_role = normalize_role(org_role)
    user = db.session.query(User).filter_by(external_user_id=identity.subject).first()

    if user is not None:
        if identity.email:
            user.email = identity.email
        if identity.full_name:
            user.full_name = identity.full_name

        stored_role = normalize_role(user)
        if header_role is not RoleName.UNKNOWN:
            target_role = header_role
        elif stored_role is not RoleName.UNKNOWN:
            target_role = stored_role
        else:
            target_role = _fallback_role_for_existing(user)

        if target_role is not stored_role:
            previous = user.role_name
            user.role = ensure_role(target_role)
            security_service.log_security_event(
                security_service.ROLE_CHANGED,
                True,
                merchant_id=user.merchant_id,
                user_id=user.id,
                reason=f"Role changed from {previous or 'none'} to {target_role.value}",
                commit=False,
            )
        db.session.commit()
        return user

    display_name = (identity.full_name or "").strip() or DEFAULT_DISPLAY_NAME
    merchant = _resolve_merchant(org_id, display_name)
    role = header_role if header_role is not RoleName.UNKNOWN else _fallback_role(merchant.id)

    user = User(
        external_user_id=identity.subject,
        email=identity.email or DEFAULT_EMAIL,
        full_name=identity.full_name,
        merchant_id=merchant.id,
        role=ensure_role(role),
    )
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Synced new user %s into merchant %s as %s", user.id, merchant.id, role.value)
    return user


def _fallback_role_for_existing(user: User) -> RoleName:
    earliest = (
        db.session.query(User)
        .filter_by(merchant_id=user.merchant_id)
        .order_by(User.created_at.asc(), User.id.asc())
        .first()
    )
    return RoleName.ADMIN if earliest is not None and earliest.id == user.id else RoleName.EMPLOYEE


def get_user_by_subject(subject: str) -> User | None:
    return db.session.query(User).filter_by(external_user_id=subject).first()


def get_current_user(identity: VerifiedIdentity) -> User:
    user = get_user_by_subject(identity.subject)
    if user is None:
        raise NotFoundError("User not found. Please sync your account first.")
    return user


def get_merchant_user(user_id: str, merchant_id: str) -> User:
    """User by id within a merchant. Other merchants' users are NotFound."""
    user = db.session.get(User, user_id) if user_id else None
    if user is None or user.merchant_id != merchant_id:
        raise NotFoundError("User not found")
    return user


def list_employees(merchant_id: str) -> list[User]:
    users = (
        db.session.query(User)
        .filter_by(merchant_id=merchant_id)
        .order_by(User.created_at.asc(), User.id.asc())
        .all()
    )
    return [user for user in users if normalize_role(user) is RoleName.EMPLOYEE]
