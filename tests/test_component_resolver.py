#!/usr/bin/env python3
"""
test_component_resolver.py

Keyword disambiguation tables.
"""

import dataclasses

import pytest

from rtk_graph.adapters.component_resolver import (
    DEFAULT_RESOLVER,
    ComponentResolver,
    build_resolver,
)


def test_default_tables() -> None:
    assert DEFAULT_RESOLVER.resolve("elbow") == "厶"
    assert DEFAULT_RESOLVER.resolve("mouth") == "口"
    assert DEFAULT_RESOLVER.resolve("no such keyword") is None

    assert DEFAULT_RESOLVER.is_excluded("肘")
    assert not DEFAULT_RESOLVER.is_excluded("口")

    assert DEFAULT_RESOLVER.prefers_kanji("one")
    assert not DEFAULT_RESOLVER.prefers_kanji("mouth")


def test_resolver_tables_are_read_only() -> None:
    with pytest.raises(TypeError):
        DEFAULT_RESOLVER.keyword_overrides["elbow"] = "肘"  # type: ignore[index]
    with pytest.raises(dataclasses.FrozenInstanceError):
        DEFAULT_RESOLVER.exclusions = {}  # type: ignore[misc]


def test_resolver_copies_its_input() -> None:
    overrides = {"sun": "日"}
    resolver = ComponentResolver(keyword_overrides=overrides)
    overrides["sun"] = "月"

    assert resolver.resolve("sun") == "日"


def test_build_resolver() -> None:
    resolver = build_resolver(
        exclusions=["木"],
        prefer_kanji_keywords=["tree"],
        keyword_overrides={"wood": "木"},
    )

    assert resolver.is_excluded("木")
    assert resolver.prefers_kanji("tree")
    assert resolver.resolve("wood") == "木"


def test_empty_resolver_has_no_rules() -> None:
    resolver = build_resolver()

    assert resolver.resolve("elbow") is None
    assert not resolver.is_excluded("肘")
    assert not resolver.prefers_kanji("one")


@pytest.mark.parametrize(
    "exclusions",
    [{"肘": "prefer the primitive"}, ["肘"]],
)
def test_from_mapping(exclusions) -> None:
    resolver = ComponentResolver.from_mapping({
        "exclusions": exclusions,
        "preferKanjiKeywords": ["one"],
        "keywordOverrides": {"elbow": "厶"},
    })

    assert resolver.is_excluded("肘")
    assert resolver.prefers_kanji("one")
    assert resolver.resolve("elbow") == "厶"


def test_from_mapping_defaults_to_empty_tables() -> None:
    resolver = ComponentResolver.from_mapping({})

    assert dict(resolver.exclusions) == {}
    assert resolver.prefer_kanji_keywords == frozenset()
    assert dict(resolver.keyword_overrides) == {}
