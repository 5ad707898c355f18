"""
Search Scope Resolver

Turns a scope token plus caller identity into the set of tenants a catalog
query may touch.

SECURITY INVARIANTS:
1. Only the global scope yields ALL_TENANTS (no tenant predicate)
2. Anything ambiguous or missing narrows toward an empty set, never toward ALL
3. An explicit single-tenant override always wins over the scope-derived set
"""
from __future__ import annotations

import enum
from typing import Callable, FrozenSet, Iterable, Optional, Union

from flask import current_app

from .tenant_service import get_member_tenant_ids, tenant_id_from_slug


class SearchScope(enum.Enum):
    GLOBAL = "global"
    SINGLE_SHOP = "single-shop"
    CALLERS_SHOPS = "callers-shops"


# Older clients still send the chat-bot era names
_SCOPE_ALIASES = {
    "global": SearchScope.GLOBAL,
    "universal": SearchScope.GLOBAL,
    "single-shop": SearchScope.SINGLE_SHOP,
    "owner": SearchScope.SINGLE_SHOP,
    "callers-shops": SearchScope.CALLERS_SHOPS,
    "buyer": SearchScope.CALLERS_SHOPS,
}


class _AllTenants(enum.Enum):
    ALL = "ALL"

    def __repr__(self) -> str:
        return "ALL_TENANTS"


ALL_TENANTS = _AllTenants.ALL

TenantSet = Union[_AllTenants, FrozenSet[int]]

NO_TENANTS: FrozenSet[int] = frozenset()


def parse_scope(token: str | None) -> Optional[SearchScope]:
    """
    Parse a scope token from the query string.

    Missing token means global. An unrecognized token returns None, which
    resolve_tenant_ids treats as "no access".
    """
    if token is None or not str(token).strip():
        return SearchScope.GLOBAL
    return _SCOPE_ALIASES.get(str(token).strip().lower())


def is_unrestricted(tenant_ids: TenantSet) -> bool:
    return tenant_ids is ALL_TENANTS


def resolve_tenant_ids(
    scope: SearchScope | None,
    caller_id: str | None,
    single_tenant_override: int | None = None,
    *,
    shop_slug: str | None = None,
    slug_lookup: Callable[[str | None], int | None] = tenant_id_from_slug,
    membership_lookup: Callable[[str], Iterable[int]] = get_member_tenant_ids,
) -> TenantSet:
    """
    Resolve the effective tenant set for a search.

    Args:
        scope: Parsed scope (None for an unrecognized token)
        caller_id: External caller identity, None when unauthenticated
        single_tenant_override: Tenant the caller is explicitly browsing
        shop_slug: Shop named by the request, used by single-shop scope

    Returns:
        ALL_TENANTS for global scope, otherwise a frozenset of tenant ids
        (possibly empty)
    """
    if single_tenant_override is not None:
        return frozenset({single_tenant_override})

    if scope is SearchScope.GLOBAL:
        return ALL_TENANTS

    if scope is SearchScope.SINGLE_SHOP:
        tenant_id = slug_lookup(shop_slug) if shop_slug else None
        if tenant_id is None:
            current_app.logger.debug("single-shop scope: no tenant for slug=%r", shop_slug)
            return NO_TENANTS
        return frozenset({tenant_id})

    if scope is SearchScope.CALLERS_SHOPS:
        if not caller_id:
            return NO_TENANTS
        return frozenset(membership_lookup(caller_id))

    current_app.logger.info("Unrecognized search scope; resolving to no tenants")
    return NO_TENANTS
