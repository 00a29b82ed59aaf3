#!/usr/bin/env python3
"""
tree_transformer.py

Derive hierarchical views from the RTK graph.

Two views are produced, independently of each other:

1. Component tree: depth-first descent along mnemonic_uses edges from a
   root kanji, bounded by max_depth. A node already on the current descent
   path is a cycle and is cut (its id is reported); the same node reached
   through a sibling branch is a legitimate re-convergence and is built
   again as a separate TreeNode.
2. Referers: the immediate users of a node (reverse mnemonic_uses), served
   in pages. A truncated page ends in one MoreReferersNode carrying what is
   needed to request the next page.

Siblings in both views are ordered easiest JLPT level first.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional, Union

from ..lib.errors import RTKDataError
from ..lib.paths import DEFAULT_MAX_DEPTH, DEFAULT_REFERERS_PAGE_SIZE, MORE_REFERERS_PAGE_SIZE
from .graph_builder import (
    EdgeKind,
    Graph,
    GraphEdge,
    GraphNode,
    KanjiNode,
    NodeKind,
    PrimitiveNode,
    node_jlpt_level,
)

logger = logging.getLogger(__name__)

# Easiest -> hardest
JLPT_ORDER = {
    "N5": 1,
    "N4": 2,
    "N3": 3,
    "N2": 4,
    "N1": 5,
}

AUTO_EXPAND_DEPTH = 2
REFERER_DEPTH = -1
MORE_REFERERS_SUFFIX = "_more_referers"
MORE_REFERERS_CHARACTER = "…"


# ---------------------------------------------------------------------------
# Tree Types
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class TreeNode:
    """
    One position in a rendered tree.

    TreeNodes are created fresh by every build call and owned by the caller,
    who mutates the expansion flags and the referers list. `parent` is a
    back-reference for path reconstruction only.
    """
    id: str
    data: GraphNode
    depth: int
    expanded: bool = False
    referers_expanded: bool = False
    parent: Optional["TreeNode"] = field(default=None, repr=False)
    children: list["TreeNode"] = field(default_factory=list)
    referers: list["RefererEntry"] = field(default_factory=list)

    @property
    def character(self) -> str:
        return self.data.character

    @property
    def keyword(self) -> str:
        return self.data.keyword

    @property
    def jlpt_level(self) -> Optional[str]:
        return node_jlpt_level(self.data)


@dataclass(frozen=True)
class MoreReferersMeta:
    parent_node_id: str
    total_referers: int
    next_offset: int

    @property
    def remaining(self) -> int:
        return self.total_referers - self.next_offset


@dataclass(eq=False)
class MoreReferersNode:
    """Placeholder closing a truncated referers page."""
    id: str
    meta: MoreReferersMeta
    depth: int = REFERER_DEPTH

    @property
    def label(self) -> str:
        return f"+{self.meta.remaining} more"

    @property
    def character(self) -> str:
        return MORE_REFERERS_CHARACTER

    @property
    def keyword(self) -> str:
        return self.label


RefererEntry = Union[TreeNode, MoreReferersNode]


@dataclass(frozen=True)
class TreeMetadata:
    total_nodes: int
    max_depth: int
    circular_reference_ids: tuple[str, ...]


@dataclass
class TreeBuildResult:
    root: TreeNode
    all_nodes: list[TreeNode]
    metadata: TreeMetadata


@dataclass(frozen=True)
class TreeStatistics:
    total_nodes: int
    nodes_by_kind: dict[str, int]
    nodes_by_depth: dict[int, int]
    max_depth: int
    circular_references: int


# ---------------------------------------------------------------------------
# Sibling Ordering
# ---------------------------------------------------------------------------

def more_referers_id(node_id: str, start_index: int, end_index: int) -> str:
    """Deterministic placeholder id: no offset suffix on the first page."""
    if start_index == 0:
        return f"{node_id}{MORE_REFERERS_SUFFIX}"
    return f"{node_id}{MORE_REFERERS_SUFFIX}_{end_index}"


def _jlpt_sort_key(node: TreeNode) -> tuple:
    rank = JLPT_ORDER.get(node.jlpt_level or "")
    if rank is not None:
        # Ranked nodes compare only by rank so equal levels keep input order
        return (0, rank, "")
    return (1, 0, node.character or node.keyword or "")


def sort_nodes_by_jlpt_level(nodes: list[RefererEntry]) -> list[RefererEntry]:
    """
    Order siblings easiest JLPT level first.

    Levelled nodes come before unlevelled ones; unlevelled nodes are ordered
    by character (or keyword). The sort is stable. Placeholders always go
    last, in their original order.
    """
    regular = [n for n in nodes if isinstance(n, TreeNode)]
    placeholders = [n for n in nodes if isinstance(n, MoreReferersNode)]
    if len(regular) + len(placeholders) != len(nodes):
        unknown = next(n for n in nodes if not isinstance(n, (TreeNode, MoreReferersNode)))
        raise TypeError(f"Unknown tree node type: {type(unknown).__name__}")

    return [*sorted(regular, key=_jlpt_sort_key), *placeholders]


# ---------------------------------------------------------------------------
# Transformer
# ---------------------------------------------------------------------------

class TreeDataTransformer:
    """
    Builds component trees and referer pages over one immutable Graph.

    The graph is only read, so one transformer (or several) may serve any
    number of builds.
    """

    def __init__(self, graph: Graph):
        self.graph = graph
        self.node_map: dict[str, GraphNode] = {}
        for node in graph.nodes:
            self.node_map.setdefault(node.id, node)

        self.edge_map: dict[str, list[GraphEdge]] = defaultdict(list)
        self.referer_map: dict[str, list[GraphEdge]] = defaultdict(list)
        for edge in graph.edges:
            if edge.kind == EdgeKind.MNEMONIC_USES:
                self.edge_map[edge.source].append(edge)
                self.referer_map[edge.target].append(edge)

    # -- component tree -----------------------------------------------------

    def build_kanji_component_tree(
        self, kanji_id: str, max_depth: int = DEFAULT_MAX_DEPTH
    ) -> TreeBuildResult:
        """
        Build the component tree rooted at a kanji.

        Args:
            kanji_id: Node id of the root kanji
            max_depth: Deepest level to create (root is depth 0)

        Returns:
            TreeBuildResult with the root, every created node and metadata

        Raises:
            RTKDataError: if the id is unknown or not a kanji
        """
        root_node = self.node_map.get(kanji_id)
        if root_node is None:
            raise RTKDataError(f"Kanji node not found: {kanji_id}", {"nodeId": kanji_id})
        if not isinstance(root_node, KanjiNode):
            raise RTKDataError(f"Node {kanji_id} is not a kanji node", {"nodeId": kanji_id})

        all_nodes: list[TreeNode] = []
        circular: list[str] = []

        def build(
            node_id: str,
            depth: int,
            parent: Optional[TreeNode],
            ancestors: frozenset[str],
        ) -> Optional[TreeNode]:
            if depth > max_depth:
                return None
            if node_id in ancestors:
                circular.append(node_id)
                return None

            graph_node = self.node_map.get(node_id)
            if graph_node is None:
                return None

            tree_node = TreeNode(
                id=node_id,
                data=graph_node,
                depth=depth,
                expanded=depth < AUTO_EXPAND_DEPTH,
                referers_expanded=False,
                parent=parent,
            )
            all_nodes.append(tree_node)

            path = ancestors | {node_id}
            children = []
            for edge in self.edge_map.get(node_id, ()):
                child = build(edge.target, depth + 1, tree_node, path)
                if child is not None:
                    children.append(child)

            tree_node.children = sort_nodes_by_jlpt_level(children)
            return tree_node

        root = build(kanji_id, 0, None, frozenset())
        if root is None:
            raise RTKDataError(f"Failed to build tree for kanji: {kanji_id}", {"maxDepth": max_depth})

        if circular:
            logger.debug("Cut %d circular references under %s", len(circular), kanji_id)

        return TreeBuildResult(
            root=root,
            all_nodes=all_nodes,
            metadata=TreeMetadata(
                total_nodes=len(all_nodes),
                max_depth=max(node.depth for node in all_nodes),
                circular_reference_ids=tuple(circular),
            ),
        )

    # -- lookups --------------------------------------------------------------

    def find_node_referers(self, node_id: str) -> list[GraphNode]:
        """Nodes whose mnemonic uses `node_id`, in edge order."""
        referers = []
        for edge in self.referer_map.get(node_id, ()):
            node = self.node_map.get(edge.source)
            if node is not None:
                referers.append(node)
        return referers

    def find_kanji_using_primitive(self, primitive_id: str) -> list[KanjiNode]:
        """Kanji whose mnemonic uses the given primitive."""
        return [
            node for node in self.find_node_referers(primitive_id)
            if isinstance(node, KanjiNode)
        ]

    def get_kanji_components(self, kanji_id: str) -> list[GraphNode]:
        """Direct mnemonic targets of a kanji, in edge order."""
        components = []
        for edge in self.edge_map.get(kanji_id, ()):
            node = self.node_map.get(edge.target)
            if node is not None:
                components.append(node)
        return components

    # -- referers -------------------------------------------------------------

    def build_referers_tree(
        self,
        node_id: str,
        max_referers: int = DEFAULT_REFERERS_PAGE_SIZE,
        start_index: int = 0,
    ) -> list[RefererEntry]:
        """
        Build one page of referers for a node.

        Args:
            node_id: Node whose referers are listed
            max_referers: Page size
            start_index: Offset of the first referer on this page

        Returns:
            Referer TreeNodes (depth -1, collapsed, no children), sorted by
            JLPT level, followed by one MoreReferersNode if referers remain
            beyond this page
        """
        if max_referers < 0 or start_index < 0:
            raise ValueError("max_referers and start_index must be >= 0")

        referers = self.find_node_referers(node_id)
        end_index = start_index + max_referers

        page: list[RefererEntry] = [
            TreeNode(id=referer.id, data=referer, depth=REFERER_DEPTH)
            for referer in referers[start_index:end_index]
        ]

        if len(referers) > end_index:
            page.append(MoreReferersNode(
                id=more_referers_id(node_id, start_index, end_index),
                meta=MoreReferersMeta(
                    parent_node_id=node_id,
                    total_referers=len(referers),
                    next_offset=end_index,
                ),
            ))

        return sort_nodes_by_jlpt_level(page)

    # -- statistics -----------------------------------------------------------

    def get_tree_statistics(self, result: TreeBuildResult) -> TreeStatistics:
        nodes_by_kind = {kind.value: 0 for kind in NodeKind}
        nodes_by_depth: dict[int, int] = {}

        for node in result.all_nodes:
            if isinstance(node.data, KanjiNode):
                nodes_by_kind[NodeKind.KANJI.value] += 1
            elif isinstance(node.data, PrimitiveNode):
                nodes_by_kind[NodeKind.PRIMITIVE.value] += 1
            else:
                raise TypeError(f"Unknown graph node type: {type(node.data).__name__}")
            nodes_by_depth[node.depth] = nodes_by_depth.get(node.depth, 0) + 1

        return TreeStatistics(
            total_nodes=len(result.all_nodes),
            nodes_by_kind=nodes_by_kind,
            nodes_by_depth=nodes_by_depth,
            max_depth=result.metadata.max_depth,
            circular_references=len(result.metadata.circular_reference_ids),
        )


# ---------------------------------------------------------------------------
# Tree Utilities
# ---------------------------------------------------------------------------

def build_kanji_tree(
    graph: Graph, kanji_character: str, max_depth: int = DEFAULT_MAX_DEPTH
) -> TreeBuildResult:
    """Build a component tree for a kanji given by its character."""
    kanji_node = graph.find_kanji(kanji_character)
    if kanji_node is None:
        raise RTKDataError(f"Kanji character not found: {kanji_character}", {"character": kanji_character})

    return TreeDataTransformer(graph).build_kanji_component_tree(kanji_node.id, max_depth)


def find_kanji_path(root: TreeNode, target_id: str) -> Optional[list[TreeNode]]:
    """Root-to-target path through children (first match, depth-first), or None."""
    if root.id == target_id:
        return [root]

    for child in root.children:
        path = find_kanji_path(child, target_id)
        if path is not None:
            return [root, *path]

    return None


def path_to_root(node: TreeNode) -> list[TreeNode]:
    """Follow parent references back up: [root, ..., node]."""
    path = []
    current: Optional[TreeNode] = node
    while current is not None:
        path.append(current)
        current = current.parent
    path.reverse()
    return path


def toggle_node_expansion(node: TreeNode, expanded: bool, recursive: bool = False) -> None:
    """Set the descendant expansion flag of a node (and optionally its subtree)."""
    node.expanded = expanded
    if recursive:
        for child in node.children:
            toggle_node_expansion(child, expanded, recursive)


def load_referers(
    transformer: TreeDataTransformer,
    node: TreeNode,
    page_size: int = DEFAULT_REFERERS_PAGE_SIZE,
) -> list[RefererEntry]:
    """Populate a node's referers with the first page and mark them expanded."""
    node.referers = transformer.build_referers_tree(node.id, page_size)
    node.referers_expanded = True
    return node.referers


def expand_more_referers(
    transformer: TreeDataTransformer,
    owner: TreeNode,
    more_node: MoreReferersNode,
    page_size: int = MORE_REFERERS_PAGE_SIZE,
) -> list[RefererEntry]:
    """
    Replace a placeholder in owner.referers with the next page.

    Args:
        transformer: Transformer over the graph the tree was built from
        owner: TreeNode whose referers list holds the placeholder
        more_node: The placeholder being expanded
        page_size: Number of referers to load

    Returns:
        The page spliced in (may itself end in a new placeholder)

    Raises:
        ValueError: if the placeholder does not belong to owner
    """
    if more_node.meta.parent_node_id != owner.id:
        raise ValueError(
            f"Placeholder {more_node.id} belongs to {more_node.meta.parent_node_id}, not {owner.id}"
        )

    position = next(
        (i for i, entry in enumerate(owner.referers) if entry is more_node), None
    )
    if position is None:
        raise ValueError(f"Placeholder {more_node.id} is not in the referers of {owner.id}")

    page = transformer.build_referers_tree(owner.id, page_size, more_node.meta.next_offset)
    owner.referers[position:position + 1] = page
    return page
