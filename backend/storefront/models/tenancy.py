from __future__ import annotations

from ..extensions import db


class Tenant(db.Model):
    """
    Shop / storefront: the unit of search isolation.

    MULTI-TENANT: Every product belongs to exactly one tenant. No catalog
    query may span tenants unless the caller's scope is explicitly
    unrestricted (universal search).

    DESIGN:
    - slug is globally unique and URL-safe (used in /shop/<slug> pages)
    - publish_universal lets a shop opt into the universal storefront
    """
    __tablename__ = "tenants"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(64), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)

    publish_universal = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Tenant id={self.id} slug={self.slug!r}>"


class Membership(db.Model):
    """
    Caller's membership in a shop.

    user_id is the external caller identity (chat-bot user id) handed to us by
    the gateway; it is not a foreign key. Role is informational for search:
    any membership makes the shop visible under the callers-shops scope.
    """
    __tablename__ = "memberships"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "user_id", name="uq_memberships_tenant_user"),
        db.Index("ix_memberships_user_id", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    user_id = db.Column(db.String(64), nullable=False)
    role = db.Column(db.String(16), nullable=False, default="member")  # owner, admin, member

    tenant = db.relationship("Tenant", backref=db.backref("memberships", lazy=True))

    def __repr__(self) -> str:
        return f"<Membership tenant_id={self.tenant_id} user_id={self.user_id!r} role={self.role}>"
