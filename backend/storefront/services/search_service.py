"""
Catalog Search Service

Compiles a free-text product search into one ranked, paginated data query
and one independent count query over the same predicate set.

MATCHING: lower(title) or lower(description) contains the lower-cased query
as a literal substring. This is deliberately plain substring matching, not
tokenized full-text search: partial SKUs and fragments inside words must keep
matching exactly as they do today.

MULTI-TENANT:
- ALL_TENANTS: no tenant predicate (global scope only)
- non-empty set: tenant_id IN (...)
- empty set: a false() clause, so an empty scope never degrades into "no filter"

RANKING: title hit desc, description hit desc, title asc, id asc.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Collection, Optional

from sqlalchemy import case, false, func
from sqlalchemy.orm import aliased

from ..db_functions import fold_case
from ..extensions import db
from ..models import Image, Product, ProductImage, Tenant
from .category_service import (
    aggregate_category_counts,
    build_category_tree,
    descendant_category_ids,
    list_categories,
)
from .photo_service import PhotoDescriptor, resolve_photo_url
from .scope_service import (
    NO_TENANTS,
    SearchScope,
    TenantSet,
    is_unrestricted,
    parse_scope,
    resolve_tenant_ids,
)
from .tenant_service import tenant_id_from_slug

# Positionless legacy image rows sort after every positioned one
_UNPOSITIONED = 1_000_000_000

_INT_RE = re.compile(r"^[0-9]+$")


@dataclass(frozen=True)
class SearchFilter:
    tenant_ids: TenantSet
    active_only: bool = True
    category_id: Any = None
    approved_only: bool = False
    # Explicit id set from caller-side descendant expansion
    category_ids: Optional[Collection[Any]] = None


@dataclass
class SearchResult:
    rows: list[dict]
    total: int


class SearchPredicates:
    """
    Ordered list of WHERE terms, joined with AND by the query.

    Terms are SQLAlchemy clause objects, so each term carries its own bound
    parameters and the SQL text can never drift from the parameter list.
    """

    def __init__(self) -> None:
        self._terms: list = []

    def add(self, term) -> "SearchPredicates":
        self._terms.append(term)
        return self

    def extend(self, terms) -> "SearchPredicates":
        for term in terms:
            self.add(term)
        return self

    @property
    def terms(self) -> tuple:
        return tuple(self._terms)

    def __len__(self) -> int:
        return len(self._terms)


def normalize_query(text: str | None) -> str:
    if not isinstance(text, str):
        return ""
    return text.strip().lower()


def _coerce_category_id(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INT_RE.match(value.strip()):
        return int(value.strip())
    return None


def _title_hit(needle: str):
    return fold_case(Product.title).contains(needle, autoescape=True)


def _description_hit(needle: str):
    return fold_case(Product.description).contains(needle, autoescape=True)


def scope_terms(search_filter: SearchFilter) -> list:
    """Tenant / visibility terms shared by search and category counts."""
    terms = []

    tenant_ids = search_filter.tenant_ids
    if is_unrestricted(tenant_ids):
        pass
    elif tenant_ids:
        terms.append(Product.tenant_id.in_(sorted(tenant_ids)))
    else:
        terms.append(false())

    if search_filter.active_only:
        terms.append(Product.is_active.is_(True))

    if search_filter.approved_only:
        terms.append(Product.publish_to_universal.is_(True))
        terms.append(Product.review_status == "approved")

    return terms


def category_terms(search_filter: SearchFilter) -> list:
    terms = []

    if search_filter.category_id is not None and search_filter.category_id != "":
        category_id = _coerce_category_id(search_filter.category_id)
        terms.append(Product.category_id == category_id if category_id is not None else false())

    if search_filter.category_ids is not None:
        ids = sorted({c for c in map(_coerce_category_id, search_filter.category_ids) if c is not None})
        terms.append(Product.category_id.in_(ids) if ids else false())

    return terms


def build_predicates(needle: str, search_filter: SearchFilter) -> SearchPredicates:
    predicates = SearchPredicates()
    predicates.add(_title_hit(needle) | _description_hit(needle))
    predicates.extend(scope_terms(search_filter))
    predicates.extend(category_terms(search_filter))
    return predicates


def _first_image_id():
    """Correlated subquery: id of the product's first-ordered image row."""
    candidate = aliased(ProductImage)
    return (
        db.session.query(candidate.id)
        .filter(candidate.product_id == Product.id)
        .order_by(
            func.coalesce(candidate.position, _UNPOSITIONED).asc(),
            candidate.id.asc(),
        )
        .limit(1)
        .correlate(Product)
        .scalar_subquery()
    )


def search_products(text: str | None, limit: int, offset: int, search_filter: SearchFilter) -> SearchResult:
    """
    Ranked page of matching products plus the total match count.

    Assumes validated pagination (limit >= 1, offset >= 0); route handlers
    clamp before calling.

    Returns:
        SearchResult with raw rows (image descriptor fields included,
        photo URL not yet resolved) and the unpaginated total
    """
    needle = normalize_query(text)
    if not needle:
        return SearchResult(rows=[], total=0)

    data_predicates = build_predicates(needle, search_filter)

    title_hit = case((_title_hit(needle), 1), else_=0)
    desc_hit = case((_description_hit(needle), 1), else_=0)

    first_image = _first_image_id()

    data_query = (
        db.session.query(
            Product.id.label("id"),
            Product.title.label("title"),
            Product.description.label("description"),
            Product.price_cents.label("price_cents"),
            Product.currency.label("currency"),
            Product.tenant_id.label("tenant_id"),
            Product.category_id.label("category_id"),
            Tenant.slug.label("tenant_slug"),
            Tenant.name.label("tenant_name"),
            ProductImage.image_id.label("img_image_id"),
            ProductImage.url.label("img_url"),
            ProductImage.tg_file_id.label("img_tg_file_id"),
            Image.mime.label("img_mime"),
            title_hit.label("title_hit"),
            desc_hit.label("desc_hit"),
        )
        .select_from(Product)
        .join(Tenant, Tenant.id == Product.tenant_id)
        .outerjoin(ProductImage, ProductImage.id == first_image)
        .outerjoin(Image, Image.id == ProductImage.image_id)
        .filter(*data_predicates.terms)
        .order_by(title_hit.desc(), desc_hit.desc(), Product.title.asc(), Product.id.asc())
        .limit(limit)
        .offset(offset)
    )
    rows = [dict(r._mapping) for r in data_query.all()]

    count_predicates = build_predicates(needle, search_filter)
    total = (
        db.session.query(func.count(Product.id))
        .filter(*count_predicates.terms)
        .scalar()
    )

    return SearchResult(rows=rows, total=int(total or 0))


def attach_photo_urls(rows: list[dict], compose_url=None) -> list[dict]:
    """Resolve photo_url on every row from its raw image fields."""
    return [
        {**row, "photo_url": resolve_photo_url(PhotoDescriptor.from_row(row), compose_url)}
        for row in rows
    ]


def direct_category_counts(search_filter: SearchFilter) -> dict:
    """
    Grouped count of visible products per category.

    Uses the same scope terms as search (text and category terms aside), so
    aggregated counts match what a search in that scope can return.
    """
    query = (
        db.session.query(Product.category_id, func.count(Product.id))
        .filter(Product.category_id.isnot(None))
        .filter(*scope_terms(search_filter))
        .group_by(Product.category_id)
    )
    return {category_id: int(n) for category_id, n in query.all()}


def resolve_search_filter(
    *,
    scope_token: str | None,
    caller_id: str | None,
    shop_slug: str | None = None,
) -> SearchFilter:
    """
    Scope token + caller + optional shop slug -> base SearchFilter.

    A shop slug always narrows to that one shop; an unknown slug narrows to
    nothing rather than falling back to the scope-derived set.
    """
    scope = parse_scope(scope_token)

    override = None
    if shop_slug:
        override = tenant_id_from_slug(shop_slug)
        if override is None:
            return SearchFilter(tenant_ids=NO_TENANTS)

    tenant_ids = resolve_tenant_ids(scope, caller_id, override, shop_slug=shop_slug)
    # Universal listing only shows reviewed products
    approved_only = scope is SearchScope.GLOBAL and override is None
    return SearchFilter(tenant_ids=tenant_ids, active_only=True, approved_only=approved_only)


def _present(row: dict) -> dict:
    return {
        "id": row["id"],
        "title": row["title"],
        "description": row["description"],
        "price_cents": row["price_cents"],
        "currency": row["currency"],
        "category_id": row["category_id"],
        "photo_url": row["photo_url"],
        "tenant": {"slug": row["tenant_slug"], "name": row["tenant_name"]},
    }


def catalog_search(
    *,
    text: str | None,
    limit: int,
    offset: int = 0,
    scope_token: str | None = None,
    caller_id: str | None = None,
    shop_slug: str | None = None,
    category_id: Any = None,
    include_subcategories: bool = False,
) -> dict:
    """
    Full search pipeline: scope -> compiler -> photo URLs -> response items.

    Returns:
        Dict with 'items' (JSON-ready) and 'total'
    """
    base = resolve_search_filter(scope_token=scope_token, caller_id=caller_id, shop_slug=shop_slug)

    category_ids = None
    if include_subcategories and category_id not in (None, ""):
        root_id = _coerce_category_id(category_id)
        if root_id is not None:
            category_ids = descendant_category_ids(list_categories(active_only=False), root_id)
            category_id = None

    search_filter = SearchFilter(
        tenant_ids=base.tenant_ids,
        active_only=base.active_only,
        approved_only=base.approved_only,
        category_id=category_id,
        category_ids=category_ids,
    )

    result = search_products(text, limit, offset, search_filter)
    items = [_present(row) for row in attach_photo_urls(result.rows)]
    return {"items": items, "total": result.total}


def catalog_categories(
    *,
    scope_token: str | None = None,
    caller_id: str | None = None,
    shop_slug: str | None = None,
) -> dict:
    """
    Category forest with direct / cumulative counts for the caller's scope.

    Raises:
        CategoryCycleError: If the category parent graph is cyclic
    """
    search_filter = resolve_search_filter(scope_token=scope_token, caller_id=caller_id, shop_slug=shop_slug)
    nodes = aggregate_category_counts(list_categories(), direct_category_counts(search_filter))
    return {"items": nodes, "tree": build_category_tree(nodes)}
