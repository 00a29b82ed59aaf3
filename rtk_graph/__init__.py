"""
RTK mnemonic graph: kanji and primitive cross-references from the Heisig
RTK index, with component trees and paginated referer views.
"""

from .adapters.component_resolver import DEFAULT_RESOLVER, ComponentResolver
from .adapters.rtk_csv import KanjiRecord, PrimitiveRecord, parse_kanji_csv, parse_primitives_csv
from .generators.graph_builder import (
    EdgeKind,
    Graph,
    GraphEdge,
    KanjiNode,
    NodeKind,
    PrimitiveNode,
    ValidatedGraph,
    build_graph,
    build_validated_graph,
)
from .generators.tree_transformer import (
    MoreReferersNode,
    TreeBuildResult,
    TreeDataTransformer,
    TreeNode,
    build_kanji_tree,
    expand_more_referers,
    find_kanji_path,
    toggle_node_expansion,
)
from .lib.errors import RTKConfigError, RTKDataError, RTKError, RTKParseError, ResolutionWarning
from .pipeline import build_graph_from_csv, build_validated_graph_from_csv, parse_all_csv

__version__ = "0.1.0"
