from services.category_tree import (
    build_category_tree,
    collect_descendant_ids,
    collect_descendant_ids_by_slug,
    count_nodes,
    format_category_path,
    resolve_ancestor_path,
    would_create_cycle,
)
from tests.fakes import category

CATEGORIES = [
    category(1, "Men", "men"),
    category(2, "Shirts", "men-shirts", parent_id=1),
    category(3, "Shoes", "men-shoes", parent_id=1),
    category(4, "Women", "women"),
    category(5, "Formal", "men-shirts-formal", parent_id=2),
]

def test_tree_places_every_category_once():
    forest = build_category_tree(CATEGORIES)
    assert [root.slug for root in forest] == ["men", "women"]
    assert count_nodes(forest) == len(CATEGORIES)

    men = forest[0]
    assert [child.slug for child in men.children] == ["men-shirts", "men-shoes"]
    shirts = men.children[0]
    assert shirts.parent is men
    assert [child.id for child in shirts.children] == [5]
    assert sorted(node.id for root in forest for node in root.iter_subtree()) == [1, 2, 3, 4, 5]

def test_empty_input_gives_empty_forest():
    assert build_category_tree([]) == []

def test_missing_parent_becomes_root():
    forest = build_category_tree([category(1, "Orphan", "orphan", parent_id=42)])
    assert len(forest) == 1
    assert forest[0].parent is None

def test_self_parent_becomes_root():
    forest = build_category_tree([category(7, "Loop", "loop", parent_id=7)])
    assert [root.id for root in forest] == [7]
    assert forest[0].children == []

def test_cycle_is_broken_and_every_node_kept():
    rows = [category(1, "A", "a", parent_id=2), category(2, "B", "b", parent_id=1)]
    forest = build_category_tree(rows)
    assert count_nodes(forest) == 2
    assert len(forest) == 1

def test_descendants_include_target_and_subtree():
    assert collect_descendant_ids(1, CATEGORIES) == {1, 2, 3, 5}
    assert collect_descendant_ids(2, CATEGORIES) == {2, 5}
    assert collect_descendant_ids(4, CATEGORIES) == {4}

def test_descendants_are_superset_of_children_descendants():
    forest = build_category_tree(CATEGORIES)
    for root in forest:
        for node in root.iter_subtree():
            ids = collect_descendant_ids(node.id, CATEGORIES)
            assert node.id in ids
            for child in node.children:
                assert collect_descendant_ids(child.id, CATEGORIES) <= ids

def test_descendants_of_unknown_target_is_empty():
    assert collect_descendant_ids(99, CATEGORIES) == set()
    assert collect_descendant_ids_by_slug("nope", CATEGORIES) == set()
    assert collect_descendant_ids_by_slug("MEN-SHIRTS", CATEGORIES) == {2, 5}

def test_descendants_terminate_on_cycle():
    rows = [category(1, "A", "a", parent_id=2), category(2, "B", "b", parent_id=1)]
    assert collect_descendant_ids(1, rows) == {1, 2}
    assert collect_descendant_ids(2, rows) == {1, 2}

def test_ancestor_path_excludes_the_category():
    rows = [category(1, "Root", "root"), category(2, "Mid", "mid", parent_id=1), category(3, "Leaf", "leaf", parent_id=2)]
    path = resolve_ancestor_path(rows[2], rows)
    assert [c.name for c in path] == ["Root", "Mid"]
    assert resolve_ancestor_path(rows[0], rows) == []

def test_ancestor_path_stops_on_unknown_parent():
    rows = [category(2, "Mid", "mid", parent_id=77), category(3, "Leaf", "leaf", parent_id=2)]
    assert [c.id for c in resolve_ancestor_path(rows[1], rows)] == [2]

def test_ancestor_path_terminates_on_cycle_without_duplicates():
    rows = [category(1, "A", "a", parent_id=2), category(2, "B", "b", parent_id=1)]
    path = resolve_ancestor_path(rows[0], rows)
    assert [c.id for c in path] == [2]

    rows = [category(1, "A", "a", parent_id=3), category(2, "B", "b", parent_id=1), category(3, "C", "c", parent_id=2)]
    path = resolve_ancestor_path(rows[0], rows)
    ids = [c.id for c in path]
    assert len(ids) == len(set(ids))
    assert 1 not in ids

def test_format_category_path():
    rows = [category(1, "Men", "men"), category(2, "Formal", "men-formal", parent_id=1),
            category(3, "Shirts", "men-formal-shirts", parent_id=2)]
    assert format_category_path(rows[2], rows) == "Men > Formal > Shirts"
    assert format_category_path(rows[0], rows) == "Men"

def test_would_create_cycle():
    assert would_create_cycle(1, 5, CATEGORIES)
    assert would_create_cycle(2, 2, CATEGORIES)
    assert not would_create_cycle(2, 4, CATEGORIES)
    assert not would_create_cycle(5, None, CATEGORIES)
