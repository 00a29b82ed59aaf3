#!/usr/bin/env python3
"""
component_resolver.py

Disambiguation rules for RTK mnemonic keywords.

The "components" column of the kanji index is prose: it names the keywords
used in a kanji's memory story, not a structural decomposition. The same
keyword can plausibly refer to a primitive glyph or to a full kanji, so three
tables decide which node a keyword means:

1. keyword overrides   keyword -> the exact character to use
2. prefer-kanji set    keywords whose kanji wins over a same-named primitive
3. exclusions          kanji never chosen when their own keyword is referenced

The tables are plain data held by an immutable ComponentResolver, so
alternate tables can be passed to the graph builder (and tested) in
isolation.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

# ---------------------------------------------------------------------------
# Default RTK Tables
# ---------------------------------------------------------------------------

# Kanji -> reason. Only kanji with a clear primitive alternative belong here.
COMPLEX_KANJI_EXCLUSIONS: dict[str, str] = {
    '肘': 'Complex kanji - prefer primitive 厶 when "elbow" is referenced as component',
}

# Fundamental kanji that are themselves the canonical component form
PREFER_KANJI_KEYWORDS: frozenset[str] = frozenset({
    'one', 'two', 'three', 'four', 'five', 'six', 'seven', 'eight', 'nine', 'ten',
    'hundred', 'thousand', 'man', 'large', 'small', 'up', 'down', 'left', 'right',
})

KEYWORD_TO_CHARACTER: dict[str, str] = {
    # Primitives without a direct kanji equivalent
    'elbow': '厶',
    'top hat': '⺊',
    'animal legs': 'ハ',
    'human legs': '儿',
    'drop': '丶',
    'needle': '十',
    'ice': '冫',
    'cliff': '厂',
    'tent': '⺊',
    'crown': '冖',
    'cave': '穴',
    'house': '宀',
    'walking stick': '丨',
    'bound up': '勹',
    'embrace': '勹',
    'horns': '丷',
    'wind': '几',
    'claw': '爪',
    'vulture': '爪',

    # Common components kept in their primitive form
    'mouth': '口',
    'eye': '目',
    'day': '日',
    'sun': '日',
    'month': '月',
    'moon': '月',
    'flesh': '月',
    'part of the body': '月',
    'person': '人',
    'water': '水',
    'water droplets': '氵',
    'water pistol': '氵',
    'fire': '火',
    'oven-fire': '灬',
    'barbecue': '灬',
    'soil': '土',
    'dirt': '土',
    'ground': '土',
    'tree': '木',
    'wood': '木',
    'hand': '手',
    'finger': '手',
    'fingers': '手',
    'heart': '心',
    'state of mind': '心',
    'thread': '糸',
    'spiderman': '糸',
    'say': '言',
    'words': '言',
    'keitai': '言',
    'car': '車',
    'metal': '金',
    'gold': '金',
    'horse': '馬',
    'fish': '魚',
    'bird': '鳥',
}


def _frozen_mapping(mapping: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class ComponentResolver:
    """
    Immutable keyword disambiguation tables.

    Attributes:
        exclusions: kanji character -> reason it is never a keyword match
        prefer_kanji_keywords: keywords whose kanji beats a same-named primitive
        keyword_overrides: keyword -> character that keyword always means
    """
    exclusions: Mapping[str, str] = field(default_factory=dict)
    prefer_kanji_keywords: frozenset[str] = frozenset()
    keyword_overrides: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Copy into read-only views so callers cannot mutate shared tables
        object.__setattr__(self, "exclusions", _frozen_mapping(self.exclusions))
        object.__setattr__(self, "prefer_kanji_keywords", frozenset(self.prefer_kanji_keywords))
        object.__setattr__(self, "keyword_overrides", _frozen_mapping(self.keyword_overrides))

    def resolve(self, keyword: str) -> Optional[str]:
        """Return the override character for a keyword, or None."""
        return self.keyword_overrides.get(keyword)

    def is_excluded(self, character: str) -> bool:
        """True if this kanji must not match when its keyword is referenced."""
        return character in self.exclusions

    def prefers_kanji(self, keyword: str) -> bool:
        """True if kanji are searched before primitives for this keyword."""
        return keyword in self.prefer_kanji_keywords

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ComponentResolver":
        """
        Build a resolver from a JSON-style mapping.

        Expected keys (all optional):
            exclusions:          {kanji: reason} or [kanji, ...]
            preferKanjiKeywords: [keyword, ...]
            keywordOverrides:    {keyword: character}
        """
        exclusions = data.get("exclusions", {})
        if not isinstance(exclusions, Mapping):
            exclusions = {kanji: "" for kanji in exclusions}

        return cls(
            exclusions=exclusions,
            prefer_kanji_keywords=frozenset(data.get("preferKanjiKeywords", ())),
            keyword_overrides=data.get("keywordOverrides", {}),
        )


def build_resolver(
    exclusions: Iterable[str] = (),
    prefer_kanji_keywords: Iterable[str] = (),
    keyword_overrides: Optional[Mapping[str, str]] = None,
) -> ComponentResolver:
    """Convenience constructor taking plain iterables."""
    return ComponentResolver(
        exclusions={kanji: "" for kanji in exclusions},
        prefer_kanji_keywords=frozenset(prefer_kanji_keywords),
        keyword_overrides=keyword_overrides or {},
    )


DEFAULT_RESOLVER = ComponentResolver(
    exclusions=COMPLEX_KANJI_EXCLUSIONS,
    prefer_kanji_keywords=PREFER_KANJI_KEYWORDS,
    keyword_overrides=KEYWORD_TO_CHARACTER,
)
