"""
Category Aggregation

Builds the category forest with per-node product counts:
- count_direct: active products filed directly under the category
- count_with_descendants: count_direct plus every descendant's count

The parent graph comes straight from the categories table, where
acyclicity is assumed but not enforced. Traversal tracks per-node state
(in progress / done) and reports a back edge as CategoryCycleError instead
of recursing forever. Memo state is allocated per call.
"""
from __future__ import annotations

from typing import Iterable, Mapping

from ..extensions import db
from ..models import Category

_IN_PROGRESS = 1
_DONE = 2


class CatalogIntegrityError(Exception):
    """Raised when catalog data violates a structural invariant."""
    pass


class CategoryCycleError(CatalogIntegrityError):
    """Raised when the category parent graph contains a cycle."""

    def __init__(self, category_id):
        super().__init__(f"Category parent cycle detected at category {category_id}")
        self.category_id = category_id


def _field(row, name: str):
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name)


def _children_map(categories: Iterable) -> tuple[dict, dict[object, list], list]:
    """Index rows by id and build parent -> children adjacency plus root ids."""
    by_id: dict = {}
    for row in categories:
        by_id[_field(row, "id")] = row

    children: dict[object, list] = {cid: [] for cid in by_id}
    roots: list = []
    for cid, row in by_id.items():
        parent_id = _field(row, "parent_id")
        # Orphans (parent missing from the list) are treated as roots
        if parent_id is None or parent_id not in by_id:
            roots.append(cid)
        else:
            children[parent_id].append(cid)
    return by_id, children, roots


def aggregate_category_counts(categories: Iterable, direct_counts: Mapping) -> list[dict]:
    """
    Aggregate direct and cumulative product counts per category.

    Args:
        categories: Rows (objects or dicts) with id, name, parent_id, level
        direct_counts: category id -> direct active product count; missing ids count 0

    Returns:
        One dict per category; order is not part of the contract

    Raises:
        CategoryCycleError: If parent_id links form a cycle
    """
    by_id, children, roots = _children_map(categories)

    state: dict = {}
    cumulative: dict = {}

    def _visit(start) -> None:
        # Iterative post-order DFS; deep trees must not hit the recursion limit
        state[start] = _IN_PROGRESS
        stack = [(start, iter(children[start]))]
        while stack:
            node, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                stack.pop()
                cumulative[node] = int(direct_counts.get(node, 0) or 0) + sum(
                    cumulative[c] for c in children[node]
                )
                state[node] = _DONE
                continue
            child_state = state.get(child)
            if child_state == _DONE:
                continue
            if child_state == _IN_PROGRESS:
                raise CategoryCycleError(child)
            state[child] = _IN_PROGRESS
            stack.append((child, iter(children[child])))

    for root in roots:
        if root not in state:
            _visit(root)

    # Anything still unvisited hangs off a cycle that no root reaches
    for cid in by_id:
        if cid not in state:
            _visit(cid)

    return [
        {
            "id": cid,
            "name": _field(row, "name"),
            "parent_id": _field(row, "parent_id"),
            "level": _field(row, "level"),
            "count_direct": int(direct_counts.get(cid, 0) or 0),
            "count_with_descendants": cumulative[cid],
        }
        for cid, row in by_id.items()
    ]


def descendant_category_ids(categories: Iterable, root_id, *, include_self: bool = True) -> list:
    """
    Ids of every category below root_id (optionally including it).

    Unknown root_id yields [root_id] or [] so a search on it still matches
    nothing. Cycle-safe: each id is emitted once.
    """
    _, children, _ = _children_map(categories)

    result: list = [root_id] if include_self else []
    seen = {root_id}
    stack = list(children.get(root_id, []))
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        result.append(current)
        stack.extend(children.get(current, []))
    return result


def build_category_tree(nodes: list[dict]) -> list[dict]:
    """Nest aggregated nodes under their parents, siblings ordered by name."""
    by_id = {n["id"]: {**n, "children": []} for n in nodes}
    roots: list[dict] = []
    for node in by_id.values():
        parent = by_id.get(node["parent_id"])
        if parent is None:
            roots.append(node)
        else:
            parent["children"].append(node)

    for node in by_id.values():
        node["children"].sort(key=lambda n: (n["name"] or "", n["id"]))
    roots.sort(key=lambda n: (n["name"] or "", n["id"]))
    return roots


def list_categories(*, active_only: bool = True) -> list[dict]:
    """Flat category listing: id, name, parent_id, level."""
    query = db.session.query(Category.id, Category.name, Category.parent_id, Category.level)
    if active_only:
        query = query.filter(Category.is_active.is_(True))
    return [
        {"id": r.id, "name": r.name, "parent_id": r.parent_id, "level": r.level}
        for r in query.order_by(Category.level.asc(), Category.position.asc(), Category.id.asc()).all()
    ]
