#!/usr/bin/env python3
"""
Print the mnemonic component tree of one kanji, or one page of a node's referers.

Usage:
    rtk-kanji-tree 明 [--max-depth N] [--json]
    rtk-kanji-tree --referers primitive_p5_sun [--page-size N] [--offset N]
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from ..generators.graph_builder import PrimitiveNode
from ..generators.tree_transformer import (
    MoreReferersNode,
    RefererEntry,
    TreeDataTransformer,
    TreeNode,
    build_kanji_tree,
)
from ..lib.errors import RTKError
from ..lib.graph_io import tree_to_document
from ..lib.normalizers import codepoint_str
from ..lib.paths import load_config
from ..pipeline import build_graph_from_files


def format_entry(entry: RefererEntry) -> str:
    if isinstance(entry, MoreReferersNode):
        return f"{entry.character} {entry.label} (next offset {entry.meta.next_offset})"

    level = f" [{entry.jlpt_level}]" if entry.jlpt_level else ""
    kind = entry.data.kind.value
    if isinstance(entry.data, PrimitiveNode) and entry.data.unicode and len(entry.data.unicode) == 1:
        kind = f"{kind} {codepoint_str(entry.data.unicode)}"
    return f"{entry.character}  {entry.keyword}{level}  ({kind})"


def render_tree(node: TreeNode, indent: str = "") -> list[str]:
    lines = [f"{indent}{format_entry(node)}"]
    for child in node.children:
        lines.extend(render_tree(child, indent + "  "))
    return lines


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Show the RTK component tree of a kanji")
    parser.add_argument("kanji", nargs="?", help="Root kanji character")
    parser.add_argument("--data-dir", type=Path, help="Directory with kanji.csv and primitives.csv")
    parser.add_argument("--max-depth", type=int, help="Deepest tree level to build")
    parser.add_argument("--referers", metavar="NODE_ID", help="List referers of this node instead")
    parser.add_argument("--page-size", type=int, help="Referers per page")
    parser.add_argument("--offset", type=int, default=0, help="First referer to list")
    parser.add_argument("--json", action="store_true", help="Print a JSON document")
    args = parser.parse_args(argv)
    if not args.kanji and not args.referers:
        parser.error("give a kanji or --referers NODE_ID")

    logging.basicConfig(level=logging.ERROR, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_config()
        if args.data_dir:
            config = replace(config, data_dir=args.data_dir)
        graph = build_graph_from_files(config)

        if args.referers:
            page_size = args.page_size if args.page_size is not None else config.referers_page_size
            page = TreeDataTransformer(graph).build_referers_tree(args.referers, page_size, args.offset)
            if args.json:
                print(json.dumps([tree_to_document(e) for e in page], ensure_ascii=False, indent=2))
            else:
                for entry in page:
                    print(format_entry(entry))
            return 0

        max_depth = args.max_depth if args.max_depth is not None else config.max_depth
        result = build_kanji_tree(graph, args.kanji, max_depth)
    except (RTKError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(tree_to_document(result.root), ensure_ascii=False, indent=2))
        return 0

    print("\n".join(render_tree(result.root)))
    print()
    print(f"Nodes: {result.metadata.total_nodes}, max depth: {result.metadata.max_depth}")
    if result.metadata.circular_reference_ids:
        print(f"Circular references cut: {', '.join(result.metadata.circular_reference_ids)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
