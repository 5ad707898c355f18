from __future__ import annotations

from ..extensions import db

REVIEW_STATUSES = ("pending", "approved", "rejected")


class Category(db.Model):
    """
    Global category forest shared by every shop.

    parent_id forms the tree; level is a redundant cache of depth (root = 0)
    maintained by the seeding code. The parent graph is assumed acyclic but
    nothing in the schema enforces it, so readers must not trust it blindly.
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.Index("ix_categories_parent_position", "parent_id", "position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(64), nullable=False, unique=True, index=True)
    name = db.Column(db.String(120), nullable=False)
    parent_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True)
    level = db.Column(db.Integer, nullable=False, default=0)
    position = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    parent = db.relationship("Category", remote_side=[id], backref=db.backref("children", lazy=True))

    def __repr__(self) -> str:
        return f"<Category id={self.id} slug={self.slug!r} parent_id={self.parent_id}>"


class Product(db.Model):
    """
    Product master data.

    MULTI-TENANT: Products are scoped to a tenant via tenant_id.

    SEARCH VISIBILITY:
    - is_active=False products never appear in search results
    - universal search additionally requires publish_to_universal=True
      AND review_status='approved' (both, not either)
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_tenant_active", "tenant_id", "is_active"),
        db.Index("ix_products_category_active", "category_id", "is_active"),
        db.CheckConstraint(
            "review_status IN ({})".format(", ".join(f"'{s}'" for s in REVIEW_STATUSES)),
            name="ck_products_review_status",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True)

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in minor units (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    currency = db.Column(db.String(3), nullable=False, default="USD")
    stock = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    publish_to_universal = db.Column(db.Boolean, nullable=False, default=False)
    review_status = db.Column(db.String(16), nullable=False, default="pending")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    tenant = db.relationship("Tenant", backref=db.backref("products", lazy=True))
    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} title={self.title!r} tenant_id={self.tenant_id}>"


class Image(db.Model):
    """
    Uploaded image blob metadata.

    id is the content identifier handed back by the storage collaborator
    (a sha256 hex digest); together with mime it composes the CDN URL.
    """
    __tablename__ = "images"

    id = db.Column(db.String(64), primary_key=True)
    mime = db.Column(db.String(64), nullable=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Image id={self.id!r} mime={self.mime!r}>"


class ProductImage(db.Model):
    """
    Ordered product -> image association.

    LEGACY ROWS: depending on when the row was written it carries one of
    - image_id: current uploads (CDN)
    - url: manually entered / imported absolute URLs
    - tg_file_id: files delivered through the chat bot (need a signed fetch)
    position may be NULL on old rows; those sort after every positioned row.
    """
    __tablename__ = "product_images"
    __table_args__ = (
        db.Index("ix_product_images_product_position", "product_id", "position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    image_id = db.Column(db.String(64), db.ForeignKey("images.id"), nullable=True)
    url = db.Column(db.Text, nullable=True)
    tg_file_id = db.Column(db.String(255), nullable=True)
    position = db.Column(db.Integer, nullable=True)

    product = db.relationship("Product", backref=db.backref("images", lazy=True))
    image = db.relationship("Image")

    def __repr__(self) -> str:
        return f"<ProductImage id={self.id} product_id={self.product_id} position={self.position}>"
