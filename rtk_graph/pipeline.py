#!/usr/bin/env python3
"""
pipeline.py

High-level entry points: raw CSV text (or local files) in, Graph out.

    text -> adapters.rtk_csv -> records -> generators.graph_builder -> Graph

Fetching the CSV files from the network is not handled here; callers pass
text they already have, or point at local copies under data/.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .adapters.component_resolver import DEFAULT_RESOLVER, ComponentResolver
from .adapters.rtk_csv import (
    KanjiRecord,
    PrimitiveRecord,
    parse_kanji_csv,
    parse_primitives_csv,
)
from .generators.graph_builder import Graph, ValidatedGraph, build_graph, build_validated_graph
from .lib.graph_io import load_optional_jlpt_mapping, read_text
from .lib.paths import RTKConfig

logger = logging.getLogger(__name__)

# Upstream source of the two CSV files
RTK_DATA_SOURCES = {
    "kanji": "https://raw.githubusercontent.com/cyphar/heisig-rtk-index/master/kanji/KANJI_INDEX.csv",
    "primitives": "https://raw.githubusercontent.com/cyphar/heisig-rtk-index/master/primitives/INPUT.csv",
    "repository": "https://github.com/cyphar/heisig-rtk-index",
}


@dataclass(frozen=True)
class ParsedData:
    kanji: list[KanjiRecord]
    primitives: list[PrimitiveRecord]


def parse_all_csv(kanji_csv: str, primitives_csv: str) -> ParsedData:
    """Parse both datasets; the first RTKParseError aborts."""
    return ParsedData(
        kanji=parse_kanji_csv(kanji_csv),
        primitives=parse_primitives_csv(primitives_csv),
    )


def build_graph_from_csv(
    kanji_csv: str,
    primitives_csv: str,
    jlpt_levels: Optional[Mapping[str, str]] = None,
    resolver: ComponentResolver = DEFAULT_RESOLVER,
) -> Graph:
    parsed = parse_all_csv(kanji_csv, primitives_csv)
    return build_graph(parsed.kanji, parsed.primitives, jlpt_levels, resolver)


def build_validated_graph_from_csv(
    kanji_csv: str,
    primitives_csv: str,
    jlpt_levels: Optional[Mapping[str, str]] = None,
    resolver: ComponentResolver = DEFAULT_RESOLVER,
) -> ValidatedGraph:
    parsed = parse_all_csv(kanji_csv, primitives_csv)
    return build_validated_graph(parsed.kanji, parsed.primitives, jlpt_levels, resolver)


def load_local_data(config: RTKConfig) -> tuple[str, str]:
    """Read the kanji and primitives CSV text from the configured data dir."""
    kanji_path: Path = config.kanji_csv_path
    primitives_path: Path = config.primitives_csv_path
    logger.info("Reading %s and %s", kanji_path, primitives_path)
    return read_text(kanji_path), read_text(primitives_path)


def build_graph_from_files(
    config: RTKConfig,
    include_jlpt: bool = True,
    resolver: ComponentResolver = DEFAULT_RESOLVER,
    validate: bool = False,
):
    """
    Build the graph from the local CSV copies.

    A missing JLPT mapping is tolerated (the graph is built without levels);
    a malformed one raises RTKConfigError.

    Returns:
        Graph, or ValidatedGraph when validate is True
    """
    kanji_csv, primitives_csv = load_local_data(config)

    jlpt_levels = None
    if include_jlpt:
        jlpt_levels = load_optional_jlpt_mapping(config.jlpt_mapping_path)

    if validate:
        return build_validated_graph_from_csv(kanji_csv, primitives_csv, jlpt_levels, resolver)
    return build_graph_from_csv(kanji_csv, primitives_csv, jlpt_levels, resolver)
