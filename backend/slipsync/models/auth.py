from __future__ import annotations

from ..extensions import db
from slipsync.time_utils import to_utc_z, utcnow
from .tenancy import generate_id


class Role(db.Model):
    """
    Named capability class (ADMIN, EMPLOYEE).

    Roles are global and provisioned on first encounter: the onboarding sync
    creates the row the first time a user is assigned that role name.
    Names are stored upper-case; lookups are case-insensitive.
    """
    __tablename__ = "roles"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    name = db.Column(db.String(64), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "createdAt": to_utc_z(self.created_at),
        }


class User(db.Model):
    """
    Authenticated principal, linked 1:1 to an identity provider subject.

    MULTI-TENANT: Users belong to exactly one merchant.

    role_id is nullable: users synced before roles existed have no role.
    store_id is the legacy directly-assigned store; per-store access for
    employees lives in StoreAccessGrant and the active store of a request is
    resolved per request, never written back here.
    """
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    external_user_id = db.Column(db.String(255), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=True)
    full_name = db.Column(db.String(255), nullable=True)

    merchant_id = db.Column(db.String(255), db.ForeignKey("merchants.id"), nullable=False, index=True)
    role_id = db.Column(db.String(36), db.ForeignKey("roles.id"), nullable=True, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=db.func.now(),
    )

    merchant = db.relationship("Merchant", backref=db.backref("users", lazy=True))
    role = db.relationship("Role", backref=db.backref("users", lazy=True))
    store = db.relationship("Store", backref=db.backref("assigned_users", lazy=True))

    @property
    def role_name(self) -> str | None:
        return self.role.name if self.role is not None else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "externalUserId": self.external_user_id,
            "email": self.email,
            "fullName": self.full_name,
            "merchantId": self.merchant_id,
            "roleId": self.role_id,
            "roleName": self.role_name,
            "createdAt": to_utc_z(self.created_at),
        }


class StoreAccessGrant(db.Model):
    """
    Explicit per-store access for an EMPLOYEE user.

    Table keeps its historical name, role_permissions. ADMIN users never need
    grants: they implicitly reach every store of their merchant.
    Grants for a user are replaced wholesale when an admin edits them.
    """
    __tablename__ = "role_permissions"
    __table_args__ = (
        db.UniqueConstraint("user_id", "store_id", name="uq_role_permissions_user_store"),
    )

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("store_access_grants", lazy=True))
    store = db.relationship("Store", backref=db.backref("access_grants", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "storeId": self.store_id,
            "createdAt": to_utc_z(self.created_at),
        }
