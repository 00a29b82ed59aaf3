#!/usr/bin/env python3
"""
graph_io.py

Load the auxiliary RTK inputs and serialize graphs and trees as JSON documents.

Reading:  raw CSV text, the JLPT level mapping, resolver table overrides.
Writing:  graph documents, tree documents, plain-text reports.
"""

import json
import logging
import operator
from pathlib import Path
from typing import Any, Callable, Optional, Union

from ..adapters.component_resolver import ComponentResolver
from ..generators.graph_builder import Graph, GraphNode, KanjiNode, PrimitiveNode
from ..generators.tree_transformer import MoreReferersNode, RefererEntry, TreeNode
from .errors import RTKConfigError
from .paths import JLPT_MAPPING_PATH
from .schemas import (
    GRAPH_DOCUMENT_SCHEMA,
    JLPT_MAPPING_SCHEMA,
    RESOLVER_TABLES_SCHEMA,
    TREE_DOCUMENT_SCHEMA,
    validation_errors,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Raw Input Loading
# ---------------------------------------------------------------------------

def read_text(path: Path) -> str:
    """Read a UTF-8 text file (a leading BOM is dropped)."""
    with open(path, "r", encoding="utf-8-sig") as f:
        return f.read()


def _load_json(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise RTKConfigError(f"Invalid JSON in {path}: {e}", path) from e


def _check_schema(document: Any, schema: dict, path: Path) -> None:
    errors = validation_errors(document, schema)
    if errors:
        details = "\n".join(f"  - {line}" for line in errors[:10])
        raise RTKConfigError(f"{path} failed validation:\n{details}", path)


def load_jlpt_mapping(path: Path = JLPT_MAPPING_PATH) -> dict[str, str]:
    """
    Load the kanji -> JLPT level mapping.

    Args:
        path: JSON file of the form {"日": "N5", ...}

    Returns:
        Dict mapping kanji character -> level tag

    Raises:
        FileNotFoundError: if the file does not exist
        RTKConfigError: if the file is not valid JSON or fails the schema
    """
    mapping = _load_json(path)
    _check_schema(mapping, JLPT_MAPPING_SCHEMA, path)
    return mapping


def load_optional_jlpt_mapping(path: Path = JLPT_MAPPING_PATH) -> Optional[dict[str, str]]:
    """Like load_jlpt_mapping, but a missing file only logs a warning."""
    if not path.exists():
        logger.warning("JLPT mapping %s not found, continuing without level data", path)
        return None
    return load_jlpt_mapping(path)


def load_resolver(path: Path) -> ComponentResolver:
    """Load keyword resolver tables from a JSON file."""
    data = _load_json(path)
    _check_schema(data, RESOLVER_TABLES_SCHEMA, path)
    return ComponentResolver.from_mapping(data)


# ---------------------------------------------------------------------------
# Document Conversion
# ---------------------------------------------------------------------------

def _drop_none(doc: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in doc.items() if value is not None}


def node_to_document(node: GraphNode) -> dict[str, Any]:
    """Convert a graph node to its camelCase JSON form."""
    doc: dict[str, Any] = {
        "id": node.id,
        "type": node.kind.value,
        "character": node.character,
        "keyword": node.keyword,
        "rtkId": node.rtk_id,
    }

    if isinstance(node, KanjiNode):
        doc.update(
            onReading=node.on_reading,
            kunReading=node.kun_reading,
            jlptLevel=node.jlpt_level,
        )
    elif isinstance(node, PrimitiveNode):
        doc.update(unicode=node.unicode, svgPath=node.svg_path)
    else:
        raise TypeError(f"Unknown graph node type: {type(node).__name__}")

    return _drop_none(doc)


def graph_to_document(graph: Graph) -> dict[str, Any]:
    """Convert a graph to a JSON document matching GRAPH_DOCUMENT_SCHEMA."""
    return {
        "nodes": [node_to_document(node) for node in graph.nodes],
        "edges": [
            {"source": edge.source, "target": edge.target, "type": edge.kind.value}
            for edge in graph.edges
        ],
        "metadata": {
            "kanjiCount": graph.metadata.kanji_count,
            "primitiveCount": graph.metadata.primitive_count,
            "edgeCount": graph.metadata.edge_count,
            "builtAt": graph.metadata.built_at.isoformat(),
        },
        "missingMnemonics": list(graph.missing_mnemonics),
    }


def tree_to_document(entry: Union[RefererEntry, TreeNode]) -> dict[str, Any]:
    """
    Convert a tree (or a single referer entry) to a nested JSON document.

    Children and referers are written whether or not they are expanded, so
    the renderer can decide what to show.
    """
    if isinstance(entry, MoreReferersNode):
        return {
            "id": entry.id,
            "type": "more",
            "character": entry.character,
            "keyword": entry.label,
            "depth": entry.depth,
            "more": {
                "parentNodeId": entry.meta.parent_node_id,
                "totalReferers": entry.meta.total_referers,
                "nextOffset": entry.meta.next_offset,
            },
        }

    if not isinstance(entry, TreeNode):
        raise TypeError(f"Unknown tree node type: {type(entry).__name__}")

    doc = _drop_none({
        "id": entry.id,
        "type": entry.data.kind.value,
        "character": entry.character,
        "keyword": entry.keyword,
        "depth": entry.depth,
        "expanded": entry.expanded,
        "referersExpanded": entry.referers_expanded,
        "jlptLevel": entry.jlpt_level,
    })
    doc["children"] = [tree_to_document(child) for child in entry.children]
    if entry.referers:
        doc["referers"] = [tree_to_document(referer) for referer in entry.referers]
    return doc


def validate_graph_document(doc: dict[str, Any]) -> list[str]:
    return validation_errors(doc, GRAPH_DOCUMENT_SCHEMA)


def validate_tree_document(doc: dict[str, Any]) -> list[str]:
    return validation_errors(doc, TREE_DOCUMENT_SCHEMA)


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def same_graph_content(old: Any, new: Any) -> bool:
    """True if two graph documents differ at most in metadata.builtAt."""
    if not isinstance(old, dict) or not isinstance(new, dict):
        return old == new

    def strip(doc: dict) -> dict:
        metadata = doc.get("metadata")
        if not isinstance(metadata, dict):
            return doc
        return {**doc, "metadata": {k: v for k, v in metadata.items() if k != "builtAt"}}

    return strip(old) == strip(new)


def write_json_document(
    doc: Union[dict, list],
    filepath: Path,
    same: Callable[[Any, Any], bool] = operator.eq,
) -> bool:
    """
    Write a JSON document with standard formatting.

    Uses ensure_ascii=False, indent=2, and adds trailing newline.

    Args:
        doc: The document to write
        filepath: Path to write to
        same: Decides whether the existing content already matches doc

    Returns:
        True if file was created or content changed, False if unchanged
    """
    if filepath.exists():
        with open(filepath, "r", encoding="utf-8") as f:
            try:
                if same(json.load(f), doc):
                    return False
            except json.JSONDecodeError:
                pass  # Corrupted, overwrite it

    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(doc, f, ensure_ascii=False, indent=2)
        f.write("\n")

    return True


def write_text_report(lines: list[str], filepath: Path) -> None:
    """Write a plain-text report, one entry per line."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(f"{line}\n")
