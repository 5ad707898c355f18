"""
Pytest fixtures for storefront catalog tests.

Provides test database setup, multi-tenant shop fixtures, a category tree,
and a product factory.
"""

import pytest
from storefront import create_app
from storefront.extensions import db
from storefront.models import Tenant, Membership, Category, Product, Image, ProductImage

CDN_BASE = "https://cdn.test/img"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'CDN_PUBLIC_BASE': CDN_BASE,
        'CDN_REWRITE_LEGACY_WORKER_URLS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def shop_a(db_session):
    """Create Shop A (first tenant)."""
    tenant = Tenant(slug="acme", name="Acme Gadgets", publish_universal=True)
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def shop_b(db_session):
    """Create Shop B (second tenant)."""
    tenant = Tenant(slug="beta", name="Beta Outfitters", publish_universal=True)
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def member_of_a(db_session, shop_a):
    """Caller '42' is a member of Shop A only."""
    db_session.add(Membership(tenant_id=shop_a.id, user_id="42", role="member"))
    db_session.commit()
    return "42"


@pytest.fixture(scope='function')
def category_tree(db_session):
    """electronics -> phones -> accessories, plus a separate fashion root."""
    electronics = Category(slug="electronics", name="Electronics", level=0)
    fashion = Category(slug="fashion", name="Fashion", level=0)
    db_session.add_all([electronics, fashion])
    db_session.flush()

    phones = Category(slug="phones", name="Phones", parent_id=electronics.id, level=1)
    db_session.add(phones)
    db_session.flush()

    accessories = Category(slug="accessories", name="Accessories", parent_id=phones.id, level=2)
    db_session.add(accessories)
    db_session.commit()

    return {
        "electronics": electronics,
        "phones": phones,
        "accessories": accessories,
        "fashion": fashion,
    }


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: insert a product (approved universal listing by default)."""
    def _make(tenant, title, description=None, **fields):
        fields.setdefault("is_active", True)
        fields.setdefault("publish_to_universal", True)
        fields.setdefault("review_status", "approved")
        product = Product(tenant_id=tenant.id, title=title, description=description, **fields)
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def add_image(db_session):
    """Factory: attach an image association row to a product."""
    def _add(product, *, image_id=None, mime=None, url=None, tg_file_id=None, position=None):
        if image_id is not None and db_session.get(Image, image_id) is None:
            db_session.add(Image(id=image_id, mime=mime, tenant_id=product.tenant_id))
            db_session.flush()
        row = ProductImage(
            product_id=product.id,
            image_id=image_id,
            url=url,
            tg_file_id=tg_file_id,
            position=position,
        )
        db_session.add(row)
        db_session.commit()
        return row

    return _add
