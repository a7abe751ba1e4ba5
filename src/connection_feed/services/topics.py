"""Keyword taxonomy for prayer requests.

The taxonomy is static configuration: adding a category means adding an entry
to `PRAYER_CATEGORIES`, not a new branch anywhere else.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

__all__ = [
    "GENERAL_CATEGORY",
    "LIFE_STAGE_KEYWORDS",
    "PRAYER_CATEGORIES",
    "categorize_request",
    "extract_topics",
    "life_stage_matches",
]

GENERAL_CATEGORY = "general"

# Words shorter than this only match a keyword they fully contain.
MIN_PARTIAL_WORD_LENGTH = 4

PRAYER_CATEGORIES: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "health": ("healing", "surgery", "illness", "medical", "hospital", "recovery", "wellness"),
    "family": ("marriage", "children", "parenting", "relationships", "divorce", "adoption"),
    "work": ("job", "career", "unemployment", "workplace", "business", "finances"),
    "spiritual": ("faith", "salvation", "discipleship", "calling", "ministry", "spiritual_growth"),
    "mental_health": ("anxiety", "depression", "stress", "grief", "loss", "trauma"),
    "addiction": ("recovery", "substance", "freedom", "deliverance", "sobriety"),
    "education": ("school", "college", "studies", "exams", "wisdom", "decisions"),
    "missions": ("evangelism", "outreach", "missionary", "global", "unreached"),
    "persecution": ("persecution", "suffering", "refugee", "injustice", "freedom"),
    "community": ("church", "community", "unity", "fellowship", "leaders"),
})

LIFE_STAGE_KEYWORDS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "parenting": ("children", "kids", "parenting", "baby", "toddler", "teenager"),
    "student life": ("school", "college", "university", "studies", "exams", "classes"),
    "young adult": ("career", "dating", "young adult", "twenties", "thirties"),
    "senior life": ("retirement", "senior", "elderly", "aging", "grandchildren"),
    "marriage": ("marriage", "spouse", "husband", "wife", "married"),
})

# Declared life stages that name a stage without sharing a substring with it.
_LIFE_STAGE_ALIASES: Mapping[str, str] = MappingProxyType({
    "married": "marriage",
    "newlywed": "marriage",
    "retired": "senior life",
    "mom": "parenting",
    "dad": "parenting",
})

_WORD_PATTERN = re.compile(r"[\w']+")


def _words(text: str) -> list[str]:
    return _WORD_PATTERN.findall(text.lower())


def extract_topics(text: str | None) -> list[str]:
    """Return the taxonomy keywords mentioned in ``text``, without duplicates.

    A keyword matches when a word contains it ("surgery." -> "surgery") or,
    for words of at least four characters, when the keyword contains the word
    ("heal" -> "healing"). Results follow taxonomy order.
    """
    if not text:
        return []
    words = _words(text)
    topics: list[str] = []
    seen: set[str] = set()
    for keywords in PRAYER_CATEGORIES.values():
        for keyword in keywords:
            if keyword in seen:
                continue
            if any(
                keyword in word
                or (len(word) >= MIN_PARTIAL_WORD_LENGTH and word in keyword)
                for word in words
            ):
                seen.add(keyword)
                topics.append(keyword)
    return topics


def _field(request: Any, name: str) -> Any:
    if isinstance(request, Mapping):
        return request.get(name)
    return getattr(request, name, None)


def categorize_request(request: Any) -> str:
    """Return the explicit category of a request, or infer one from its content."""
    category = _field(request, "category")
    if isinstance(category, str) and category.strip():
        return category.strip().lower()

    content = (_field(request, "content") or "").lower()
    for name, keywords in PRAYER_CATEGORIES.items():
        if any(keyword in content for keyword in keywords):
            return name
    return GENERAL_CATEGORY


def life_stage_matches(declared: str | None, stage: str) -> bool:
    """Return True if a user's declared life stage refers to ``stage``.

    Matching ignores case and treats underscores as spaces, so "young_adult"
    matches "young adult" and "student" matches "student life".
    """
    if not declared:
        return False
    normalized = declared.strip().lower().replace("_", " ")
    if not normalized:
        return False
    if _LIFE_STAGE_ALIASES.get(normalized) == stage:
        return True
    return normalized in stage or stage in normalized
