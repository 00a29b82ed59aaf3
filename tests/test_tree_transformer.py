#!/usr/bin/env python3
"""
test_tree_transformer.py

Component trees, cycle handling, sibling ordering and referer pagination.
"""

from datetime import datetime, timezone

import pytest

from rtk_graph.generators.graph_builder import (
    EdgeKind,
    Graph,
    GraphEdge,
    GraphMetadata,
    KanjiNode,
    PrimitiveNode,
)
from rtk_graph.generators.tree_transformer import (
    MoreReferersNode,
    TreeDataTransformer,
    TreeNode,
    build_kanji_tree,
    expand_more_referers,
    find_kanji_path,
    load_referers,
    path_to_root,
    sort_nodes_by_jlpt_level,
    toggle_node_expansion,
)
from rtk_graph.lib.errors import RTKDataError
from rtk_graph.pipeline import build_graph_from_csv


def _k(character: str, level=None) -> KanjiNode:
    return KanjiNode(id=f"kanji_{character}", character=character, keyword=character, jlpt_level=level)


def _p(name: str) -> PrimitiveNode:
    return PrimitiveNode(id=f"primitive_{name}", character=name, keyword=name)


def _graph(nodes, uses) -> Graph:
    """Graph with a symmetric edge pair for every (source, target) in uses."""
    edges = []
    for source, target in uses:
        edges.append(GraphEdge(source, target, EdgeKind.MNEMONIC_USES))
        edges.append(GraphEdge(target, source, EdgeKind.USED_IN_MNEMONIC))

    kanji = [n for n in nodes if isinstance(n, KanjiNode)]
    return Graph(
        nodes=tuple(nodes),
        edges=tuple(edges),
        metadata=GraphMetadata(
            kanji_count=len(kanji),
            primitive_count=len(nodes) - len(kanji),
            edge_count=len(edges),
            built_at=datetime.now(timezone.utc),
        ),
    )


def _chain_graph() -> Graph:
    # a -> b -> c -> d
    nodes = [_k("a"), _k("b"), _k("c"), _k("d")]
    return _graph(nodes, [("kanji_a", "kanji_b"), ("kanji_b", "kanji_c"), ("kanji_c", "kanji_d")])


def _referers_graph(count: int = 15) -> Graph:
    kanji = [_k(f"k{i:02d}") for i in range(count)]
    return _graph([*kanji, _p("x")], [(k.id, "primitive_x") for k in kanji])


# ---------------------------------------------------------------------------
# Component tree
# ---------------------------------------------------------------------------

def test_unknown_root_is_rejected() -> None:
    transformer = TreeDataTransformer(_chain_graph())

    with pytest.raises(RTKDataError, match="Kanji node not found: kanji_zz"):
        transformer.build_kanji_component_tree("kanji_zz")


def test_primitive_root_is_rejected() -> None:
    transformer = TreeDataTransformer(_referers_graph(1))

    with pytest.raises(RTKDataError, match="is not a kanji node"):
        transformer.build_kanji_component_tree("primitive_x")


def test_tree_depths_flags_and_parents() -> None:
    result = TreeDataTransformer(_chain_graph()).build_kanji_component_tree("kanji_a")
    root = result.root

    a, b, c, d = result.all_nodes
    assert a is root
    assert [n.depth for n in (a, b, c, d)] == [0, 1, 2, 3]
    assert [n.expanded for n in (a, b, c, d)] == [True, True, False, False]
    assert not any(n.referers_expanded for n in result.all_nodes)
    assert root.parent is None
    assert d.parent is c
    assert root.children == [b]
    assert result.metadata.total_nodes == 4
    assert result.metadata.max_depth == 3
    assert result.metadata.circular_reference_ids == ()


@pytest.mark.parametrize(("max_depth", "expected_ids"), [
    (0, ["kanji_a"]),
    (1, ["kanji_a", "kanji_b"]),
    (2, ["kanji_a", "kanji_b", "kanji_c"]),
    (10, ["kanji_a", "kanji_b", "kanji_c", "kanji_d"]),
])
def test_max_depth_bounds_the_tree(max_depth: int, expected_ids: list[str]) -> None:
    result = TreeDataTransformer(_chain_graph()).build_kanji_component_tree("kanji_a", max_depth)

    assert [n.id for n in result.all_nodes] == expected_ids
    assert all(n.depth <= max_depth for n in result.all_nodes)
    assert result.metadata.max_depth == len(expected_ids) - 1


def test_self_loop_is_cut_and_reported() -> None:
    graph = _graph([_k("木")], [("kanji_木", "kanji_木")])

    result = TreeDataTransformer(graph).build_kanji_component_tree("kanji_木")

    assert result.root.children == []
    assert result.metadata.total_nodes == 1
    assert result.metadata.circular_reference_ids == ("kanji_木",)


def test_mutual_reference_is_cut_on_the_path() -> None:
    graph = _graph([_k("a"), _k("b")], [("kanji_a", "kanji_b"), ("kanji_b", "kanji_a")])

    result = TreeDataTransformer(graph).build_kanji_component_tree("kanji_a")

    assert [n.id for n in result.all_nodes] == ["kanji_a", "kanji_b"]
    assert result.all_nodes[1].children == []
    assert result.metadata.circular_reference_ids == ("kanji_a",)


def test_sibling_reconvergence_is_not_a_cycle() -> None:
    # a -> b -> d and a -> c -> d
    graph = _graph(
        [_k("a"), _k("b"), _k("c"), _k("d")],
        [("kanji_a", "kanji_b"), ("kanji_a", "kanji_c"), ("kanji_b", "kanji_d"), ("kanji_c", "kanji_d")],
    )

    result = TreeDataTransformer(graph).build_kanji_component_tree("kanji_a")

    d_nodes = [n for n in result.all_nodes if n.id == "kanji_d"]
    assert len(d_nodes) == 2
    assert d_nodes[0] is not d_nodes[1]
    assert {d.parent.id for d in d_nodes} == {"kanji_b", "kanji_c"}
    assert result.metadata.total_nodes == 5
    assert result.metadata.circular_reference_ids == ()


def test_children_sorted_by_jlpt_level() -> None:
    graph = _graph(
        [_k("root"), _k("w", "N3"), _k("x", "N5"), _k("y"), _k("z", "N1")],
        [("kanji_root", "kanji_w"), ("kanji_root", "kanji_x"), ("kanji_root", "kanji_y"), ("kanji_root", "kanji_z")],
    )

    result = TreeDataTransformer(graph).build_kanji_component_tree("kanji_root")

    assert [c.jlpt_level for c in result.root.children] == ["N5", "N3", "N1", None]


def test_tree_build_does_not_touch_graph() -> None:
    graph = _chain_graph()
    edges = graph.edges

    transformer = TreeDataTransformer(graph)
    first = transformer.build_kanji_component_tree("kanji_a")
    second = transformer.build_kanji_component_tree("kanji_a")

    assert graph.edges is edges
    assert first.root is not second.root
    assert [n.id for n in first.all_nodes] == [n.id for n in second.all_nodes]


def test_build_kanji_tree_by_character(kanji_csv: str, primitives_csv: str, jlpt_levels) -> None:
    graph = build_graph_from_csv(kanji_csv, primitives_csv, jlpt_levels)

    result = build_kanji_tree(graph, "明")

    assert result.root.id == "kanji_明"
    assert result.root.jlpt_level == "N4"
    assert [c.character for c in result.root.children] == ["日", "月"]

    with pytest.raises(RTKDataError, match="Kanji character not found: 龍"):
        build_kanji_tree(graph, "龍")


# ---------------------------------------------------------------------------
# Sibling ordering
# ---------------------------------------------------------------------------

def _tree_node(node) -> TreeNode:
    return TreeNode(id=node.id, data=node, depth=1)


def test_sort_is_stable_within_a_level() -> None:
    nodes = [_tree_node(_k(c, "N5")) for c in ("c", "a", "b")]

    assert [n.character for n in sort_nodes_by_jlpt_level(nodes)] == ["c", "a", "b"]


def test_unlevelled_nodes_sort_by_character() -> None:
    nodes = [_tree_node(_p("sun")), _tree_node(_k("b")), _tree_node(_k("a", "N2"))]

    assert [n.character for n in sort_nodes_by_jlpt_level(nodes)] == ["a", "b", "sun"]


def test_placeholder_always_sorts_last() -> None:
    graph = _referers_graph(3)
    more = TreeDataTransformer(graph).build_referers_tree("primitive_x", 1)[-1]
    assert isinstance(more, MoreReferersNode)

    ordered = sort_nodes_by_jlpt_level([more, _tree_node(_k("z")), _tree_node(_k("y", "N4"))])

    assert [n.character for n in ordered] == ["y", "z", "…"]


def test_sort_rejects_unknown_entries() -> None:
    with pytest.raises(TypeError, match="Unknown tree node type"):
        sort_nodes_by_jlpt_level([_tree_node(_k("a")), "not a node"])


# ---------------------------------------------------------------------------
# Referers
# ---------------------------------------------------------------------------

def test_first_referers_page_ends_with_placeholder() -> None:
    page = TreeDataTransformer(_referers_graph()).build_referers_tree("primitive_x", 10, 0)

    assert len(page) == 11
    assert all(isinstance(entry, TreeNode) for entry in page[:10])
    assert [entry.id for entry in page[:10]] == [f"kanji_k{i:02d}" for i in range(10)]

    more = page[-1]
    assert isinstance(more, MoreReferersNode)
    assert more.id == "primitive_x_more_referers"
    assert more.meta.parent_node_id == "primitive_x"
    assert more.meta.total_referers == 15
    assert more.meta.next_offset == 10
    assert more.label == "+5 more"
    assert more.depth == -1


def test_last_referers_page_has_no_placeholder() -> None:
    page = TreeDataTransformer(_referers_graph()).build_referers_tree("primitive_x", 5, 10)

    assert [entry.id for entry in page] == [f"kanji_k{i:02d}" for i in range(10, 15)]
    assert not any(isinstance(entry, MoreReferersNode) for entry in page)


def test_middle_page_placeholder_id_carries_offset() -> None:
    page = TreeDataTransformer(_referers_graph()).build_referers_tree("primitive_x", 3, 10)

    assert len(page) == 4
    assert page[-1].id == "primitive_x_more_referers_13"
    assert page[-1].meta.next_offset == 13
    assert page[-1].label == "+2 more"


def test_referer_nodes_are_collapsed_leaves() -> None:
    page = TreeDataTransformer(_referers_graph(2)).build_referers_tree("primitive_x")

    for entry in page:
        assert entry.depth == -1
        assert entry.children == []
        assert entry.expanded is False
        assert entry.referers_expanded is False


def test_referers_of_unused_node() -> None:
    transformer = TreeDataTransformer(_chain_graph())

    assert transformer.build_referers_tree("kanji_a") == []
    assert transformer.build_referers_tree("kanji_missing") == []


def test_referers_page_past_the_end_is_empty() -> None:
    assert TreeDataTransformer(_referers_graph(3)).build_referers_tree("primitive_x", 10, 20) == []


def test_referers_rejects_negative_arguments() -> None:
    transformer = TreeDataTransformer(_referers_graph(3))

    with pytest.raises(ValueError):
        transformer.build_referers_tree("primitive_x", -1)
    with pytest.raises(ValueError):
        transformer.build_referers_tree("primitive_x", 5, -5)


def test_expand_more_referers_splices_next_page() -> None:
    graph = _referers_graph()
    transformer = TreeDataTransformer(graph)
    owner = transformer.build_kanji_component_tree("kanji_k00").root.children[0]
    assert owner.id == "primitive_x"

    load_referers(transformer, owner, 10)
    assert owner.referers_expanded is True
    more = owner.referers[-1]

    page = expand_more_referers(transformer, owner, more, 5)

    assert len(page) == 5
    assert len(owner.referers) == 15
    assert all(isinstance(entry, TreeNode) for entry in owner.referers)
    assert len({entry.id for entry in owner.referers}) == 15


def test_expand_more_referers_in_small_steps() -> None:
    transformer = TreeDataTransformer(_referers_graph())
    owner = TreeNode(id="primitive_x", data=_p("x"), depth=0)

    load_referers(transformer, owner, 10)
    expand_more_referers(transformer, owner, owner.referers[-1], 3)

    assert len(owner.referers) == 14
    assert owner.referers[-1].id == "primitive_x_more_referers_13"

    expand_more_referers(transformer, owner, owner.referers[-1], 3)
    assert [entry.id for entry in owner.referers] == [f"kanji_k{i:02d}" for i in range(15)]


def test_expand_more_referers_checks_owner() -> None:
    transformer = TreeDataTransformer(_referers_graph())
    owner = TreeNode(id="primitive_x", data=_p("x"), depth=0)
    load_referers(transformer, owner, 10)
    more = owner.referers[-1]

    stranger = TreeNode(id="kanji_k00", data=_k("k00"), depth=0)
    with pytest.raises(ValueError, match="belongs to primitive_x"):
        expand_more_referers(transformer, stranger, more)

    owner.referers.remove(more)
    with pytest.raises(ValueError, match="is not in the referers"):
        expand_more_referers(transformer, owner, more)


# ---------------------------------------------------------------------------
# Lookups and utilities
# ---------------------------------------------------------------------------

def test_lookups() -> None:
    graph = _graph(
        [_k("a"), _k("b"), _p("x"), _p("y")],
        [("kanji_a", "primitive_x"), ("kanji_a", "primitive_y"), ("kanji_b", "primitive_x"), ("primitive_y", "primitive_x")],
    )
    transformer = TreeDataTransformer(graph)

    assert [n.id for n in transformer.get_kanji_components("kanji_a")] == ["primitive_x", "primitive_y"]
    assert [n.id for n in transformer.find_node_referers("primitive_x")] == ["kanji_a", "kanji_b", "primitive_y"]
    assert [n.id for n in transformer.find_kanji_using_primitive("primitive_x")] == ["kanji_a", "kanji_b"]


def test_tree_statistics() -> None:
    graph = _graph(
        [_k("a"), _k("b"), _p("x")],
        [("kanji_a", "kanji_b"), ("kanji_a", "primitive_x"), ("kanji_b", "kanji_a")],
    )
    transformer = TreeDataTransformer(graph)
    result = transformer.build_kanji_component_tree("kanji_a")

    stats = transformer.get_tree_statistics(result)

    assert stats.total_nodes == 3
    assert stats.nodes_by_kind == {"kanji": 2, "primitive": 1}
    assert stats.nodes_by_depth == {0: 1, 1: 2}
    assert stats.max_depth == 1
    assert stats.circular_references == 1


def test_find_kanji_path_and_path_to_root() -> None:
    result = TreeDataTransformer(_chain_graph()).build_kanji_component_tree("kanji_a")

    path = find_kanji_path(result.root, "kanji_c")
    assert [n.id for n in path] == ["kanji_a", "kanji_b", "kanji_c"]
    assert path_to_root(path[-1]) == path
    assert find_kanji_path(result.root, "kanji_zz") is None


def test_toggle_node_expansion() -> None:
    result = TreeDataTransformer(_chain_graph()).build_kanji_component_tree("kanji_a")
    root = result.root

    toggle_node_expansion(root, False)
    assert root.expanded is False
    assert root.children[0].expanded is True

    toggle_node_expansion(root, True, recursive=True)
    assert all(n.expanded for n in result.all_nodes)
