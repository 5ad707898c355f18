# Overview: Flask CLI command groups for catalog bootstrap and inspection.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to storefront (PowerShell: $env:FLASK_APP="storefront").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog inspection/bootstrap:
# - python -m flask catalog seed-demo
#   Idempotent: seed the demo category tree, two shops and a few products.
# - python -m flask catalog tree [--scope global] [--shop acme]
#   Print the category tree with direct / cumulative product counts.
# - python -m flask catalog search "phone" [--scope callers-shops --user 42] [--shop acme]
#   Run a catalog search and print the ranked page.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Category, Image, Membership, Product, ProductImage, Tenant
from .services import search_service
from .services.category_service import CatalogIntegrityError

DEMO_CATEGORY_TREE = [
    {"slug": "electronics", "name": "Electronics", "children": [
        {"slug": "phones", "name": "Phones", "children": [
            {"slug": "accessories", "name": "Accessories"},
        ]},
        {"slug": "computers", "name": "Computers"},
    ]},
    {"slug": "fashion", "name": "Fashion", "children": [
        {"slug": "men", "name": "Men"},
        {"slug": "women", "name": "Women"},
    ]},
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('catalog')
def catalog_group():
    """Catalog bootstrap and inspection commands."""


def _upsert_category(node: dict, parent_id, level: int, position: int) -> Category:
    cat = db.session.query(Category).filter_by(slug=node["slug"]).first()
    if cat is None:
        cat = Category(slug=node["slug"])
        db.session.add(cat)
    cat.name = node["name"]
    cat.parent_id = parent_id
    cat.level = level
    cat.position = position
    cat.is_active = True
    db.session.flush()

    for i, child in enumerate(node.get("children", [])):
        _upsert_category(child, cat.id, level + 1, i)
    return cat


def _ensure_tenant(slug: str, name: str, publish_universal: bool) -> Tenant:
    tenant = db.session.query(Tenant).filter_by(slug=slug).first()
    if tenant is None:
        tenant = Tenant(slug=slug, name=name, publish_universal=publish_universal)
        db.session.add(tenant)
        db.session.flush()
        click.echo(f"PASS Created shop: {tenant.name} (ID: {tenant.id}, slug: {tenant.slug})")
    return tenant


@catalog_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Seed demo categories, shops, memberships and products (idempotent)."""
    db.create_all()

    for i, node in enumerate(DEMO_CATEGORY_TREE):
        _upsert_category(node, None, 0, i)
    click.echo("PASS Categories reconciled")

    acme = _ensure_tenant("acme", "Acme Gadgets", True)
    wear = _ensure_tenant("northwear", "North Wear", False)

    if not db.session.query(Membership).filter_by(tenant_id=acme.id, user_id="1001").first():
        db.session.add(Membership(tenant_id=acme.id, user_id="1001", role="owner"))

    if db.session.query(Product).count() == 0:
        phones = db.session.query(Category).filter_by(slug="phones").one()
        accessories = db.session.query(Category).filter_by(slug="accessories").one()
        men = db.session.query(Category).filter_by(slug="men").one()

        phone = Product(tenant_id=acme.id, category_id=phones.id, title="Pocket Phone X",
                        description="Unlocked phone with a 6 inch screen", price_cents=49900,
                        publish_to_universal=True, review_status="approved")
        case_ = Product(tenant_id=acme.id, category_id=accessories.id, title="Silicone Case",
                        description="Fits Pocket Phone X", price_cents=1900,
                        publish_to_universal=True, review_status="approved")
        jacket = Product(tenant_id=wear.id, category_id=men.id, title="Rain Jacket",
                         description="Packable shell, phone pocket inside", price_cents=12900)
        db.session.add_all([phone, case_, jacket])
        db.session.flush()

        db.session.add(Image(id="9f2c" * 16, mime="image/webp", tenant_id=acme.id))
        db.session.add_all([
            ProductImage(product_id=phone.id, image_id="9f2c" * 16, position=0),
            ProductImage(product_id=case_.id, url="https://images.example.com/case.jpg", position=0),
            ProductImage(product_id=jacket.id, tg_file_id="AgACAgIAAxkBAAIC", position=None),
        ])
        click.echo("PASS Created demo products")

    db.session.commit()


def _echo_tree(nodes: list[dict], depth: int = 0) -> None:
    for node in nodes:
        click.echo(
            f"{'  ' * depth}{node['name']} (id={node['id']}) "
            f"direct={node['count_direct']} total={node['count_with_descendants']}"
        )
        _echo_tree(node["children"], depth + 1)


@catalog_group.command('tree')
@click.option('--scope', default='global', help='global | single-shop | callers-shops')
@click.option('--shop', 'shop_slug', default=None, help='Shop slug')
@click.option('--user', 'caller_id', default=None, help='Caller id for callers-shops scope')
@with_appcontext
def show_tree(scope, shop_slug, caller_id):
    """Print the category tree with product counts."""
    try:
        result = search_service.catalog_categories(scope_token=scope, caller_id=caller_id, shop_slug=shop_slug)
    except CatalogIntegrityError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    _echo_tree(result["tree"])


@catalog_group.command('search')
@click.argument('query')
@click.option('--scope', default='global', help='global | single-shop | callers-shops')
@click.option('--shop', 'shop_slug', default=None, help='Shop slug')
@click.option('--user', 'caller_id', default=None, help='Caller id for callers-shops scope')
@click.option('--limit', default=20, type=click.IntRange(min=1), help='Page size')
@with_appcontext
def run_search(query, scope, shop_slug, caller_id, limit):
    """Run a catalog search and print the ranked page."""
    result = search_service.catalog_search(
        text=query,
        limit=limit,
        scope_token=scope,
        caller_id=caller_id,
        shop_slug=shop_slug,
    )
    click.echo(f"LIST {result['total']} match(es)")
    for item in result["items"]:
        click.echo(f"  [{item['tenant']['slug']}] {item['title']} -> {item['photo_url'] or '-'}")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
