#!/usr/bin/env python3
"""
graph_builder.py

Build the RTK mnemonic graph from parsed kanji and primitive records.

Every kanji record and every primitive record becomes one node. For each
keyword in a kanji's mnemonic field the keyword is resolved to a node (see
resolve_mnemonic_keyword) and a symmetric pair of edges is added:

    kanji --mnemonic_uses--> target
    target --used_in_mnemonic--> kanji

Keywords that resolve to nothing are collected as diagnostics, not errors.
The resulting Graph is immutable; tree views are derived from it by
generators/tree_transformer.py.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Iterable, Mapping, Optional, Sequence, Union

from ..adapters.component_resolver import DEFAULT_RESOLVER, ComponentResolver
from ..adapters.rtk_csv import KanjiRecord, PrimitiveRecord
from ..lib.errors import (
    DUPLICATE_NODE,
    MISSING_MNEMONIC,
    RTKDataError,
    ResolutionWarning,
)
from ..lib.normalizers import (
    asset_name,
    clean_keyword,
    generate_node_id,
    split_mnemonic_keywords,
)

logger = logging.getLogger(__name__)

JLPT_LEVELS = ("N5", "N4", "N3", "N2", "N1")


class NodeKind(str, Enum):
    KANJI = "kanji"
    PRIMITIVE = "primitive"


class EdgeKind(str, Enum):
    MNEMONIC_USES = "mnemonic_uses"
    USED_IN_MNEMONIC = "used_in_mnemonic"


# ---------------------------------------------------------------------------
# Graph Types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class KanjiNode:
    """A kanji from the RTK index."""
    id: str
    character: str
    keyword: str
    rtk_id: Optional[int] = None
    on_reading: Optional[str] = None
    kun_reading: Optional[str] = None
    jlpt_level: Optional[str] = None

    kind: ClassVar[NodeKind] = NodeKind.KANJI


@dataclass(frozen=True)
class PrimitiveNode:
    """A primitive element; character falls back to its keyword if it has no codepoint."""
    id: str
    character: str
    keyword: str
    rtk_id: Optional[int] = None
    unicode: Optional[str] = None
    svg_path: Optional[str] = None

    kind: ClassVar[NodeKind] = NodeKind.PRIMITIVE


GraphNode = Union[KanjiNode, PrimitiveNode]


def node_jlpt_level(node: GraphNode) -> Optional[str]:
    """JLPT level of a node; primitives never carry one."""
    if isinstance(node, KanjiNode):
        return node.jlpt_level
    if isinstance(node, PrimitiveNode):
        return None
    raise TypeError(f"Unknown graph node type: {type(node).__name__}")


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    kind: EdgeKind


@dataclass(frozen=True)
class GraphMetadata:
    kanji_count: int
    primitive_count: int
    edge_count: int
    built_at: datetime


@dataclass(frozen=True)
class Graph:
    """
    Immutable node/edge graph.

    nodes lists kanji first, then primitives, each in input record order.
    When two records produce the same id both nodes are kept in `nodes`,
    the first one wins in id lookups and the id is listed in duplicate_ids.
    """
    nodes: tuple[GraphNode, ...]
    edges: tuple[GraphEdge, ...]
    metadata: GraphMetadata
    missing_mnemonics: tuple[str, ...] = ()
    duplicate_ids: tuple[str, ...] = ()
    _by_id: dict[str, GraphNode] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        by_id: dict[str, GraphNode] = {}
        for node in self.nodes:
            by_id.setdefault(node.id, node)
        object.__setattr__(self, "_by_id", by_id)

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return self._by_id.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._by_id

    def kanji_nodes(self) -> list[KanjiNode]:
        return [n for n in self.nodes if isinstance(n, KanjiNode)]

    def primitive_nodes(self) -> list[PrimitiveNode]:
        return [n for n in self.nodes if isinstance(n, PrimitiveNode)]

    def find_kanji(self, character: str) -> Optional[KanjiNode]:
        """First kanji node whose character is exactly `character`."""
        for node in self.nodes:
            if isinstance(node, KanjiNode) and node.character == character:
                return node
        return None

    def warnings(self) -> list[ResolutionWarning]:
        """Non-fatal diagnostics collected during the build."""
        found = [
            ResolutionWarning(
                MISSING_MNEMONIC, keyword,
                f"Mnemonic keyword {keyword!r} matched no node",
            )
            for keyword in self.missing_mnemonics
        ]
        found.extend(
            ResolutionWarning(
                DUPLICATE_NODE, node_id,
                f"Several records produce node id {node_id!r}",
            )
            for node_id in self.duplicate_ids
        )
        return found


@dataclass(frozen=True)
class GraphValidation:
    missing_components: tuple[str, ...]
    duplicate_nodes: tuple[str, ...]


@dataclass(frozen=True)
class ValidatedGraph:
    graph: Graph
    validation: GraphValidation


# ---------------------------------------------------------------------------
# Node Creation
# ---------------------------------------------------------------------------

def create_kanji_node(
    record: KanjiRecord,
    jlpt_levels: Optional[Mapping[str, str]] = None,
) -> KanjiNode:
    """Create a kanji node, preferring 6th edition keyword and frame number."""
    jlpt_level = None
    if jlpt_levels:
        jlpt_level = jlpt_levels.get(record.kanji) or None
        if jlpt_level is not None and jlpt_level not in JLPT_LEVELS:
            logger.warning("Ignoring unknown JLPT level %r for %s", jlpt_level, record.kanji)
            jlpt_level = None

    return KanjiNode(
        id=generate_node_id(NodeKind.KANJI.value, record.kanji),
        character=record.kanji,
        keyword=record.keyword_6th or record.keyword_5th,
        rtk_id=record.id_6th or record.id_5th,
        on_reading=record.on_reading or None,
        kun_reading=record.kun_reading or None,
        jlpt_level=jlpt_level,
    )


def create_primitive_node(record: PrimitiveRecord) -> PrimitiveNode:
    """
    Create a primitive node from its asset path.

    'primitives/p229.2-top hat.svg' has asset name 'p229.2-top hat' (the id
    key) and keyword 'top hat'.
    """
    name = asset_name(record.old_path)
    keyword = clean_keyword(name)

    return PrimitiveNode(
        id=generate_node_id(NodeKind.PRIMITIVE.value, name),
        character=record.unicode or keyword,
        keyword=keyword,
        rtk_id=record.parent_frame or record.next_frame,
        unicode=record.unicode,
        svg_path=record.old_path,
    )


# ---------------------------------------------------------------------------
# Keyword Resolution
# ---------------------------------------------------------------------------

class NodeIndex:
    """
    Lookup tables over the freshly created nodes.

    Lists keep creation (input) order, which decides ties when several
    nodes share a keyword. Id and character maps keep the first node seen.
    """

    def __init__(self, kanji: Sequence[KanjiNode], primitives: Sequence[PrimitiveNode]):
        self.kanji = list(kanji)
        self.primitives = list(primitives)

        self.kanji_by_id: dict[str, KanjiNode] = {}
        for node in self.kanji:
            self.kanji_by_id.setdefault(node.id, node)

        self.primitive_by_id: dict[str, PrimitiveNode] = {}
        self.primitive_by_character: dict[str, PrimitiveNode] = {}
        for node in self.primitives:
            self.primitive_by_id.setdefault(node.id, node)
            self.primitive_by_character.setdefault(node.character, node)

    def kanji_with_keyword(
        self, keyword: str, resolver: ComponentResolver
    ) -> Optional[KanjiNode]:
        for node in self.kanji:
            if node.keyword == keyword and not resolver.is_excluded(node.character):
                return node
        return None

    def primitive_with_keyword(self, keyword: str) -> Optional[PrimitiveNode]:
        for node in self.primitives:
            if node.keyword == keyword:
                return node
        return None

    def node_for_character(self, character: str) -> Optional[GraphNode]:
        """Kanji with this character first, then a primitive drawn as it."""
        kanji = self.kanji_by_id.get(generate_node_id(NodeKind.KANJI.value, character))
        if kanji is not None:
            return kanji

        primitive = self.primitive_by_character.get(character)
        if primitive is not None:
            return primitive

        return self.primitive_by_id.get(generate_node_id(NodeKind.PRIMITIVE.value, character))


def resolve_mnemonic_keyword(
    keyword: str,
    index: NodeIndex,
    resolver: ComponentResolver = DEFAULT_RESOLVER,
) -> Optional[GraphNode]:
    """
    Resolve one mnemonic keyword to a node.

    Order:
    1. Override table: the keyword names a specific character.
    2. Keyword search: kanji first for prefer-kanji keywords, primitives
       first otherwise. Excluded kanji never match. First match in input
       order wins.
    3. The keyword itself as a character: kanji id (unless excluded), then
       primitive id.

    Returns:
        The matching node, or None if the keyword is unresolvable
    """
    mapped = resolver.resolve(keyword)
    if mapped:
        node = index.node_for_character(mapped)
        if node is not None:
            return node

    if resolver.prefers_kanji(keyword):
        node = index.kanji_with_keyword(keyword, resolver) or index.primitive_with_keyword(keyword)
    else:
        node = index.primitive_with_keyword(keyword) or index.kanji_with_keyword(keyword, resolver)
    if node is not None:
        return node

    kanji = index.kanji_by_id.get(generate_node_id(NodeKind.KANJI.value, keyword))
    if kanji is not None and not resolver.is_excluded(keyword):
        return kanji

    return index.primitive_by_id.get(generate_node_id(NodeKind.PRIMITIVE.value, keyword))


def create_mnemonic_edges(
    kanji_records: Iterable[KanjiRecord],
    index: NodeIndex,
    resolver: ComponentResolver = DEFAULT_RESOLVER,
) -> tuple[list[GraphEdge], list[str]]:
    """
    Create the mnemonic edge pairs for all kanji records.

    Returns:
        Tuple of:
        - edges: mnemonic_uses / used_in_mnemonic pairs, in record order
        - missing: unresolved keywords, de-duplicated, in first-seen order
    """
    edges: list[GraphEdge] = []
    missing: dict[str, None] = {}
    processed: set[str] = set()

    for record in kanji_records:
        kanji_id = generate_node_id(NodeKind.KANJI.value, record.kanji)
        if kanji_id not in index.kanji_by_id:
            continue
        # Only the record that owns a duplicated id contributes its mnemonic
        if kanji_id in processed:
            logger.warning("Skipping mnemonic of %s: node id %s already taken", record.kanji, kanji_id)
            continue
        processed.add(kanji_id)

        linked: set[str] = set()
        for keyword in split_mnemonic_keywords(record.components):
            target = resolve_mnemonic_keyword(keyword, index, resolver)
            if target is None:
                missing.setdefault(keyword, None)
                continue

            if target.id in linked:
                continue
            linked.add(target.id)

            edges.append(GraphEdge(kanji_id, target.id, EdgeKind.MNEMONIC_USES))
            edges.append(GraphEdge(target.id, kanji_id, EdgeKind.USED_IN_MNEMONIC))

    return edges, list(missing)


# ---------------------------------------------------------------------------
# Graph Building
# ---------------------------------------------------------------------------

def _input_counts(
    kanji_records: Optional[Sequence[KanjiRecord]],
    primitive_records: Optional[Sequence[PrimitiveRecord]],
) -> dict[str, int]:
    return {
        "kanjiCount": len(kanji_records) if kanji_records is not None else 0,
        "primitivesCount": len(primitive_records) if primitive_records is not None else 0,
    }


def find_duplicate_ids(nodes: Iterable[GraphNode]) -> list[str]:
    """Ids that occur more than once, in order of their second occurrence."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for node in nodes:
        if node.id in seen:
            if node.id not in duplicates:
                duplicates.append(node.id)
        else:
            seen.add(node.id)
    return duplicates


def build_graph(
    kanji_records: Optional[Sequence[KanjiRecord]],
    primitive_records: Optional[Sequence[PrimitiveRecord]],
    jlpt_levels: Optional[Mapping[str, str]] = None,
    resolver: ComponentResolver = DEFAULT_RESOLVER,
) -> Graph:
    """
    Build the RTK graph.

    Args:
        kanji_records: Parsed kanji index rows
        primitive_records: Parsed primitives index rows
        jlpt_levels: Optional mapping kanji character -> "N1".."N5"
        resolver: Keyword disambiguation tables

    Returns:
        Immutable Graph

    Raises:
        RTKDataError: if either record collection is None, or the build fails
    """
    if kanji_records is None or primitive_records is None:
        raise RTKDataError(
            "Failed to build graph: input data cannot be None",
            _input_counts(kanji_records, primitive_records),
        )

    try:
        kanji_nodes = [create_kanji_node(r, jlpt_levels) for r in kanji_records]
        primitive_nodes = [create_primitive_node(r) for r in primitive_records]
        nodes = [*kanji_nodes, *primitive_nodes]

        duplicates = find_duplicate_ids(nodes)
        if duplicates:
            logger.warning("Duplicate node ids found: %s", ", ".join(duplicates))

        index = NodeIndex(kanji_nodes, primitive_nodes)
        edges, missing = create_mnemonic_edges(kanji_records, index, resolver)
    except RTKDataError:
        raise
    except Exception as e:
        raise RTKDataError(
            f"Failed to build graph: {e}",
            _input_counts(kanji_records, primitive_records),
        ) from e

    if missing:
        logger.warning("Missing mnemonic references found: %s", ", ".join(missing))

    metadata = GraphMetadata(
        kanji_count=len(kanji_nodes),
        primitive_count=len(primitive_nodes),
        edge_count=len(edges),
        built_at=datetime.now(timezone.utc),
    )
    logger.info(
        "Built RTK graph: %d kanji, %d primitives, %d edges",
        metadata.kanji_count, metadata.primitive_count, metadata.edge_count,
    )

    return Graph(
        nodes=tuple(nodes),
        edges=tuple(edges),
        metadata=metadata,
        missing_mnemonics=tuple(missing),
        duplicate_ids=tuple(duplicates),
    )


def find_missing_components(
    kanji_records: Iterable[KanjiRecord], nodes: Iterable[GraphNode]
) -> list[str]:
    """
    Mnemonic keywords that are not literally the character (or keyword) of
    any node. This is stricter than resolution: keywords reached through
    the keyword search or the override table still show up here.
    """
    available = {node.character or node.keyword for node in nodes}

    referenced: dict[str, None] = {}
    for record in kanji_records:
        for keyword in split_mnemonic_keywords(record.components):
            referenced.setdefault(keyword, None)

    return [keyword for keyword in referenced if keyword not in available]


def build_validated_graph(
    kanji_records: Optional[Sequence[KanjiRecord]],
    primitive_records: Optional[Sequence[PrimitiveRecord]],
    jlpt_levels: Optional[Mapping[str, str]] = None,
    resolver: ComponentResolver = DEFAULT_RESOLVER,
) -> ValidatedGraph:
    """Build the graph and attach duplicate-id and missing-component reports."""
    graph = build_graph(kanji_records, primitive_records, jlpt_levels, resolver)

    validation = GraphValidation(
        missing_components=tuple(find_missing_components(kanji_records, graph.nodes)),
        duplicate_nodes=tuple(find_duplicate_ids(graph.nodes)),
    )
    return ValidatedGraph(graph=graph, validation=validation)
