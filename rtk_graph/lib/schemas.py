#!/usr/bin/env python3
"""
schemas.py

JSON Schemas (Draft 7) for the documents read and written by the RTK scripts:

- JLPT mapping:      {"日": "N5", ...}
- resolver tables:   {"exclusions": ..., "preferKanjiKeywords": [...], "keywordOverrides": {...}}
- graph document:    output of graph_io.graph_to_document
- tree document:     output of graph_io.tree_to_document
"""

from typing import Any

from jsonschema import Draft7Validator

JLPT_LEVEL_SCHEMA: dict[str, Any] = {
    "type": "string",
    "enum": ["N5", "N4", "N3", "N2", "N1"],
}

JLPT_MAPPING_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Kanji JLPT level mapping",
    "type": "object",
    "additionalProperties": JLPT_LEVEL_SCHEMA,
}

RESOLVER_TABLES_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Mnemonic keyword resolver tables",
    "type": "object",
    "properties": {
        "exclusions": {
            "oneOf": [
                {"type": "object", "additionalProperties": {"type": "string"}},
                {"type": "array", "items": {"type": "string", "minLength": 1}},
            ]
        },
        "preferKanjiKeywords": {
            "type": "array",
            "items": {"type": "string", "minLength": 1},
            "uniqueItems": True,
        },
        "keywordOverrides": {
            "type": "object",
            "additionalProperties": {"type": "string", "minLength": 1},
        },
    },
    "additionalProperties": False,
}

_NODE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "type": {"type": "string", "enum": ["kanji", "primitive"]},
        "character": {"type": "string"},
        "keyword": {"type": "string"},
        "rtkId": {"type": "integer"},
        "onReading": {"type": "string"},
        "kunReading": {"type": "string"},
        "jlptLevel": JLPT_LEVEL_SCHEMA,
        "unicode": {"type": "string"},
        "svgPath": {"type": "string"},
    },
    "required": ["id", "type", "character", "keyword"],
}

GRAPH_DOCUMENT_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "RTK mnemonic graph",
    "type": "object",
    "properties": {
        "nodes": {"type": "array", "items": _NODE_SCHEMA},
        "edges": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "source": {"type": "string"},
                    "target": {"type": "string"},
                    "type": {"type": "string", "enum": ["mnemonic_uses", "used_in_mnemonic"]},
                },
                "required": ["source", "target", "type"],
            },
        },
        "metadata": {
            "type": "object",
            "properties": {
                "kanjiCount": {"type": "integer", "minimum": 0},
                "primitiveCount": {"type": "integer", "minimum": 0},
                "edgeCount": {"type": "integer", "minimum": 0},
                "builtAt": {"type": "string"},
            },
            "required": ["kanjiCount", "primitiveCount", "edgeCount", "builtAt"],
        },
        "missingMnemonics": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["nodes", "edges", "metadata"],
}

TREE_DOCUMENT_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "RTK component tree",
    "definitions": {
        "treeNode": {
            "type": "object",
            "properties": {
                "id": {"type": "string", "minLength": 1},
                "type": {"type": "string", "enum": ["kanji", "primitive", "more"]},
                "character": {"type": "string"},
                "keyword": {"type": "string"},
                "depth": {"type": "integer"},
                "expanded": {"type": "boolean"},
                "referersExpanded": {"type": "boolean"},
                "jlptLevel": JLPT_LEVEL_SCHEMA,
                "children": {"type": "array", "items": {"$ref": "#/definitions/treeNode"}},
                "referers": {"type": "array", "items": {"$ref": "#/definitions/treeNode"}},
                "more": {
                    "type": "object",
                    "properties": {
                        "parentNodeId": {"type": "string"},
                        "totalReferers": {"type": "integer", "minimum": 0},
                        "nextOffset": {"type": "integer", "minimum": 0},
                    },
                    "required": ["parentNodeId", "totalReferers", "nextOffset"],
                },
            },
            "required": ["id", "type", "depth"],
        }
    },
    "$ref": "#/definitions/treeNode",
}


def build_validator(schema: dict[str, Any]) -> Draft7Validator:
    return Draft7Validator(schema)


def validation_errors(document: Any, schema: dict[str, Any]) -> list[str]:
    """
    Validate a document and return readable error lines.

    Returns:
        List of "path: message" strings; empty if the document is valid
    """
    validator = build_validator(schema)
    messages = []
    for error in sorted(validator.iter_errors(document), key=lambda e: [str(p) for p in e.absolute_path]):
        path = ".".join(str(p) for p in error.absolute_path) or "(root)"
        messages.append(f"{path}: {error.message}")
    return messages
