# Overview: Resolves the store-access set and active store for a request.

"""
Store access resolution.

WHY: Every store-scoped request needs two facts: which stores the caller may
act on (the access set) and which store the request acts on (the active
store). Both are computed per request and returned as a StoreContext. They
are never written back onto the User, so a cached or shared User object
never carries another request's store.

Access set precedence:
1. X-Clerk-Store-Access header (comma-separated store ids), when non-empty.
   The identity provider's session claims win over the database.
2. EMPLOYEE users: persisted StoreAccessGrant rows.
3. Otherwise: empty.

Active store:
1. X-Store-Id header, when it names a store of the user's merchant that the
   user can access.
2. Otherwise the merchant's earliest-created store, when accessible.
3. Otherwise None ("no store assigned").

MULTI-TENANT: A store id from another merchant is treated exactly like an
unknown id and logged as CROSS_TENANT_ACCESS_DENIED.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from flask import current_app

from ..extensions import db
from ..models import Store, StoreAccessGrant, User
from ..permissions import RoleName, normalize_role
from . import authorization_service, security_service


STORE_ACCESS_HEADER = "X-Clerk-Store-Access"
STORE_SELECTION_HEADER = "X-Store-Id"


@dataclass(frozen=True)
class StoreContext:
    """Request-scoped store resolution result; lives in g.store_context."""
    user: User
    role: RoleName
    access_set: frozenset = field(default_factory=frozenset)
    store: Store | None = None

    @property
    def merchant_id(self) -> str:
        return self.user.merchant_id

    @property
    def store_id(self) -> str | None:
        return self.store.id if self.store is not None else None


def parse_store_access_header(value: str | None) -> frozenset:
    """Split a comma-separated id list; blanks are dropped."""
    if not value:
        return frozenset()
    return frozenset(part.strip() for part in value.split(",") if part.strip())


def _is_store_id(value: str | None) -> bool:
    if not value:
        return False
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def list_store_ids_for_user(user_id: str) -> frozenset:
    rows = db.session.query(StoreAccessGrant.store_id).filter_by(user_id=user_id).all()
    return frozenset(str(row[0]) for row in rows)


def get_store_access(headers, user: User) -> frozenset:
    header_set = parse_store_access_header(headers.get(STORE_ACCESS_HEADER))
    if header_set:
        return header_set
    if normalize_role(user) is RoleName.EMPLOYEE:
        return list_store_ids_for_user(user.id)
    return frozenset()


def get_default_store(merchant_id: str) -> Store | None:
    return (
        db.session.query(Store)
        .filter_by(merchant_id=merchant_id)
        .order_by(Store.created_at.asc(), Store.id.asc())
        .first()
    )


def get_merchant_store(store_id, merchant_id: str) -> Store | None:
    """Store by id when it belongs to merchant_id, else None."""
    if not _is_store_id(store_id):
        return None
    return db.session.query(Store).filter_by(id=str(store_id), merchant_id=merchant_id).first()


def resolve_active_store(headers, user: User, access_set) -> Store | None:
    requested = (headers.get(STORE_SELECTION_HEADER) or "").strip()
    if requested:
        store = get_merchant_store(requested, user.merchant_id)
        if store is None:
            if _is_store_id(requested) and db.session.get(Store, requested) is not None:
                security_service.log_security_event(
                    security_service.CROSS_TENANT_ACCESS_DENIED,
                    False,
                    merchant_id=user.merchant_id,
                    user_id=user.id,
                    reason=f"Store {requested} selected by user of another merchant",
                )
        elif authorization_service.can_access_store(user, store.id, access_set):
            return store
        else:
            security_service.log_security_event(
                security_service.STORE_ACCESS_DENIED,
                False,
                merchant_id=user.merchant_id,
                store_id=store.id,
                user_id=user.id,
                reason="Selected store not in user's store access",
            )

    default_store = get_default_store(user.merchant_id)
    if default_store is not None and authorization_service.can_access_store(user, default_store.id, access_set):
        return default_store
    return None


def build_store_context(headers, user: User) -> StoreContext:
    access_set = get_store_access(headers, user)
    store = resolve_active_store(headers, user, access_set)
    return StoreContext(
        user=user,
        role=normalize_role(user),
        access_set=access_set,
        store=store,
    )


def list_accessible_stores(context: StoreContext) -> list[Store]:
    stores = (
        db.session.query(Store)
        .filter_by(merchant_id=context.merchant_id)
        .order_by(Store.created_at.asc(), Store.id.asc())
        .all()
    )
    fail_open = current_app.config.get("UNASSIGNED_ROLE_SEES_ALL_STORES", True)
    if context.role is RoleName.UNKNOWN:
        current_app.logger.warning(
            "User %s has no recognised role; store listing %s",
            context.user.id,
            "returns every merchant store" if fail_open else "is empty",
        )
    return authorization_service.filter_accessible_stores(
        context.user, stores, context.access_set, fail_open=fail_open
    )


def replace_store_access(user: User, store_ids) -> list[StoreAccessGrant]:
    """
    Replace a user's grants wholesale: delete every grant, then insert one per
    requested store. Malformed ids and stores outside the user's merchant are
    skipped. Duplicates collapse.
    """
    wanted = []
    for store_id in store_ids or []:
        store = get_merchant_store(store_id, user.merchant_id)
        if store is not None and store.id not in wanted:
            wanted.append(store.id)

    db.session.query(StoreAccessGrant).filter_by(user_id=user.id).delete(synchronize_session=False)
    grants = [StoreAccessGrant(user_id=user.id, store_id=store_id) for store_id in wanted]
    db.session.add_all(grants)
    db.session.commit()

    current_app.logger.info("Store access for user %s replaced with %d store(s)", user.id, len(grants))
    return grants
