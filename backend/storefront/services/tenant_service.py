"""
Tenant Lookup Helpers

Read-only collaborators for the scope resolver:
- slug -> tenant id
- caller -> tenant ids they hold a membership in
- request -> shop slug the caller is browsing

USAGE:
    from storefront.services.tenant_service import tenant_id_from_slug

    tenant_id = tenant_id_from_slug("acme")   # None if unknown
"""
from __future__ import annotations

from flask import request

from ..extensions import db
from ..models import Tenant, Membership


def tenant_id_from_slug(slug: str | None) -> int | None:
    """
    Look up a tenant id by slug.

    Returns None for a missing, blank or unknown slug; callers treat that as
    "no shop" and narrow the search to nothing.
    """
    if not slug or not slug.strip():
        return None
    row = db.session.query(Tenant.id).filter(Tenant.slug == slug.strip()).first()
    return row.id if row else None


def get_member_tenant_ids(user_id: str) -> set[int]:
    """Tenant ids the caller belongs to, any role."""
    rows = db.session.query(Membership.tenant_id).filter(Membership.user_id == str(user_id)).all()
    return {r.tenant_id for r in rows}


def tenant_slug_from_request() -> str | None:
    """
    Shop slug the current request is browsing.

    Precedence: <slug> view arg, X-Tenant-Slug header, then the shop / tenant /
    slug query args.
    """
    view_args = request.view_args or {}
    candidates = (
        view_args.get("slug"),
        request.headers.get("X-Tenant-Slug"),
        request.args.get("shop"),
        request.args.get("tenant"),
        request.args.get("slug"),
    )
    for value in candidates:
        if value and str(value).strip():
            return str(value).strip()
    return None
