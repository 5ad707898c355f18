# Overview: Pytest coverage for category count aggregation.

import pytest

from storefront.services.category_service import (
    CatalogIntegrityError,
    CategoryCycleError,
    aggregate_category_counts,
    build_category_tree,
    descendant_category_ids,
    list_categories,
)


def cat(id, parent_id=None, name=None, level=0):
    return {"id": id, "name": name or f"c{id}", "parent_id": parent_id, "level": level}


def by_id(nodes):
    return {n["id"]: n for n in nodes}


class TestAggregate:

    def test_three_level_chain(self):
        cats = [cat(1), cat(2, 1, level=1), cat(3, 2, level=2)]
        nodes = by_id(aggregate_category_counts(cats, {1: 2, 2: 3, 3: 1}))

        assert [nodes[i]["count_with_descendants"] for i in (1, 2, 3)] == [6, 4, 1]
        assert [nodes[i]["count_direct"] for i in (1, 2, 3)] == [2, 3, 1]

    def test_input_order_does_not_matter(self):
        cats = [cat(3, 2), cat(1), cat(2, 1)]
        nodes = by_id(aggregate_category_counts(cats, {1: 2, 2: 3, 3: 1}))
        assert nodes[1]["count_with_descendants"] == 6

    def test_siblings_and_multiple_roots(self):
        cats = [cat(1), cat(2, 1), cat(3, 1), cat(10), cat(11, 10)]
        nodes = by_id(aggregate_category_counts(cats, {2: 4, 3: 5, 11: 7}))

        assert nodes[1]["count_direct"] == 0
        assert nodes[1]["count_with_descendants"] == 9
        assert nodes[10]["count_with_descendants"] == 7

    def test_missing_counts_are_zero(self):
        nodes = aggregate_category_counts([cat(1), cat(2, 1)], {})
        assert all(n["count_with_descendants"] == 0 for n in nodes)

    def test_counts_for_unknown_categories_are_ignored(self):
        nodes = by_id(aggregate_category_counts([cat(1)], {1: 1, 99: 50}))
        assert nodes[1]["count_with_descendants"] == 1

    def test_orphan_is_treated_as_root(self):
        nodes = by_id(aggregate_category_counts([cat(5, 404)], {5: 2}))
        assert nodes[5]["count_with_descendants"] == 2
        assert nodes[5]["parent_id"] == 404

    def test_accepts_objects_with_attributes(self):
        class Row:
            def __init__(self, id, parent_id):
                self.id, self.parent_id, self.name, self.level = id, parent_id, "x", 0

        nodes = by_id(aggregate_category_counts([Row(1, None), Row(2, 1)], {2: 3}))
        assert nodes[1]["count_with_descendants"] == 3

    def test_deep_chain_does_not_hit_recursion_limit(self):
        depth = 5000
        cats = [cat(1)] + [cat(i, i - 1) for i in range(2, depth + 1)]
        nodes = by_id(aggregate_category_counts(cats, {depth: 1}))
        assert nodes[1]["count_with_descendants"] == 1


class TestCycles:

    def test_two_node_cycle_raises(self):
        with pytest.raises(CategoryCycleError):
            aggregate_category_counts([cat(1, 2), cat(2, 1)], {1: 1, 2: 1})

    def test_self_parent_raises(self):
        with pytest.raises(CategoryCycleError):
            aggregate_category_counts([cat(1, 1)], {})

    def test_cycle_below_valid_root_raises(self):
        cats = [cat(1), cat(2, 1), cat(3, 4), cat(4, 3)]
        with pytest.raises(CatalogIntegrityError):
            aggregate_category_counts(cats, {})

    def test_error_names_category(self):
        with pytest.raises(CategoryCycleError) as exc:
            aggregate_category_counts([cat(1, 2), cat(2, 1)], {})
        assert exc.value.category_id in (1, 2)


class TestDescendants:

    def test_includes_self_and_all_descendants(self):
        cats = [cat(1), cat(2, 1), cat(3, 2), cat(4)]
        assert sorted(descendant_category_ids(cats, 1)) == [1, 2, 3]

    def test_exclude_self(self):
        cats = [cat(1), cat(2, 1)]
        assert descendant_category_ids(cats, 1, include_self=False) == [2]

    def test_unknown_root(self):
        assert descendant_category_ids([cat(1)], 99) == [99]

    def test_cycle_terminates(self):
        assert sorted(descendant_category_ids([cat(1, 2), cat(2, 1)], 1)) == [1, 2]


class TestTree:

    def test_nests_children_sorted_by_name(self):
        nodes = aggregate_category_counts(
            [cat(1, name="Root"), cat(2, 1, name="Zeta"), cat(3, 1, name="Alpha")],
            {2: 1, 3: 2},
        )
        tree = build_category_tree(nodes)

        assert len(tree) == 1
        assert tree[0]["count_with_descendants"] == 3
        assert [c["name"] for c in tree[0]["children"]] == ["Alpha", "Zeta"]


class TestListCategories:

    def test_flat_listing(self, db_session, category_tree):
        rows = by_id(list_categories())
        phones = category_tree["phones"]

        assert rows[phones.id]["parent_id"] == category_tree["electronics"].id
        assert rows[phones.id]["level"] == 1
        assert len(rows) == 4
