#!/usr/bin/env python3
"""
Normalization helpers for RTK node identifiers and keyword fields.

Node ids are derived from a record's key field, so every function here must
be deterministic: the same input always yields the same id.
"""

import re

# Characters kept verbatim in node ids: ASCII alphanumerics and the core
# CJK Unified Ideographs block up to U+9FAF. Everything else becomes "_".
_ID_UNSAFE = re.compile(r"[^a-zA-Z0-9\u4e00-\u9faf]")

# Image extensions stripped from primitive asset filenames
_ASSET_EXTENSION = re.compile(r"\.(svg|png|jpg|jpeg)$", re.IGNORECASE)

# Frame-number prefix on primitive filenames, e.g. "p229.2-"
_FRAME_PREFIX = re.compile(r"^p\d+(\.\d+)?-")

MNEMONIC_SEPARATOR = ";"


def sanitize_identifier(identifier: str) -> str:
    """Replace every character that is unsafe in a node id with '_'."""
    return _ID_UNSAFE.sub("_", identifier)


def generate_node_id(kind: str, identifier: str) -> str:
    """
    Build a node id such as 'kanji_明' or 'primitive_p12_elbow'.

    Args:
        kind: Node kind tag ("kanji" or "primitive")
        identifier: The record's key field (character or asset name)

    Returns:
        '{kind}_{sanitized identifier}'
    """
    return f"{kind}_{sanitize_identifier(identifier)}"


def asset_name(asset_path: str) -> str:
    """
    Extract the asset name from a primitive's asset path.

    Drops the directory part and a known image extension:
    'primitives/p12-elbow.svg' -> 'p12-elbow'.
    """
    filename = asset_path.split("/")[-1]
    return _ASSET_EXTENSION.sub("", filename)


def clean_keyword(name: str) -> str:
    """Strip the frame-number prefix from an asset name ('p12-elbow' -> 'elbow')."""
    return _FRAME_PREFIX.sub("", name)


def split_mnemonic_keywords(components_field: str) -> list[str]:
    """
    Split a kanji's mnemonic-keyword field into keyword tokens.

    The field is prose-like ("mouth; day;;sun") rather than a structural
    decomposition. Tokens are trimmed and empty tokens dropped; order and
    repeats are preserved.
    """
    if not components_field or not components_field.strip():
        return []

    return [
        token.strip()
        for token in components_field.split(MNEMONIC_SEPARATOR)
        if token.strip()
    ]


def codepoint_str(char: str) -> str:
    """Convert a character to 'U+XXXX' format."""
    cp = ord(char)
    if cp > 0xFFFF:
        return f"U+{cp:05X}"
    return f"U+{cp:04X}"
