#!/usr/bin/env python3
"""
rtk_graph_generator.py

Generate the RTK mnemonic graph document from the local Heisig index copies.

Reads data/kanji.csv, data/primitives.csv and (optionally)
data/jlpt-kanji-mapping.json, builds the graph, and writes:
- reports/rtk-graph.json          nodes, edges and build metadata
- reports/missing-mnemonics.txt   keywords that matched no node

Usage:
    rtk-graph-generate [--data-dir DIR] [--reports-dir DIR] [--resolver FILE]
                       [--no-jlpt] [--validate] [--dry-run]
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from ..adapters.component_resolver import DEFAULT_RESOLVER
from ..lib.errors import RTKError
from ..lib.graph_io import (
    graph_to_document,
    load_resolver,
    same_graph_content,
    validate_graph_document,
    write_json_document,
    write_text_report,
)
from ..lib.paths import GRAPH_DOCUMENT_NAME, MISSING_MNEMONICS_NAME, RTKConfig, load_config
from ..pipeline import RTK_DATA_SOURCES, build_graph_from_files
from .graph_builder import EdgeKind, ValidatedGraph


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate the RTK mnemonic graph document")
    parser.add_argument("--data-dir", type=Path, help="Directory with kanji.csv and primitives.csv")
    parser.add_argument("--reports-dir", type=Path, help="Output directory for generated reports")
    parser.add_argument("--resolver", type=Path, help="JSON file replacing the keyword resolver tables")
    parser.add_argument("--no-jlpt", action="store_true", help="Build without JLPT level data")
    parser.add_argument("--validate", action="store_true", help="Also report duplicate ids and missing components")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be done without writing files")
    return parser.parse_args(argv)


def resolve_config(args: argparse.Namespace) -> RTKConfig:
    config = load_config()
    return replace(
        config,
        data_dir=args.data_dir or config.data_dir,
        reports_dir=args.reports_dir or config.reports_dir,
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    print("Generating RTK Mnemonic Graph")
    print("=" * 40)

    try:
        config = resolve_config(args)
        resolver = load_resolver(args.resolver) if args.resolver else DEFAULT_RESOLVER

        # Step 1: Parse and build
        print(f"\n1. Building graph from {config.data_dir}...")
        print(f"   Index: {RTK_DATA_SOURCES['repository']}")
        result = build_graph_from_files(
            config,
            include_jlpt=not args.no_jlpt,
            resolver=resolver,
            validate=args.validate,
        )
    except (RTKError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    graph = result.graph if isinstance(result, ValidatedGraph) else result
    uses = sum(1 for edge in graph.edges if edge.kind == EdgeKind.MNEMONIC_USES)
    with_level = sum(1 for node in graph.kanji_nodes() if node.jlpt_level)

    print(f"   Kanji: {graph.metadata.kanji_count}")
    print(f"   Primitives: {graph.metadata.primitive_count}")
    print(f"   Edges: {graph.metadata.edge_count} ({uses} mnemonic references)")
    print(f"   Kanji with JLPT level: {with_level}")
    print(f"   Missing mnemonic keywords: {len(graph.missing_mnemonics)}")
    if graph.duplicate_ids:
        print(f"   WARNING: {len(graph.duplicate_ids)} duplicate node ids")

    step = 2
    if isinstance(result, ValidatedGraph):
        print(f"\n{step}. Validation...")
        print(f"   Duplicate nodes: {len(result.validation.duplicate_nodes)}")
        print(f"   Components not literally present: {len(result.validation.missing_components)}")
        step += 1

    # Check and write documents
    doc = graph_to_document(graph)
    errors = validate_graph_document(doc)
    if errors:
        print("\nERROR: generated graph document failed schema validation:", file=sys.stderr)
        for line in errors[:10]:
            print(f"  - {line}", file=sys.stderr)
        return 1

    graph_path = config.reports_dir / GRAPH_DOCUMENT_NAME
    missing_path = config.reports_dir / MISSING_MNEMONICS_NAME

    if args.dry_run:
        print(f"\n{step}. DRY RUN - no files modified")
        print(f"   Would write {graph_path}")
        print(f"   Would write {missing_path}")
    else:
        print(f"\n{step}. Writing files...")
        changed = write_json_document(doc, graph_path, same=same_graph_content)
        write_text_report(sorted(graph.missing_mnemonics), missing_path)
        print(f"   {'Written' if changed else 'Unchanged'}: {graph_path}")
        print(f"   Written: {missing_path}")

    print("\nDone.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
