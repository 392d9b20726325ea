"""Keyword-based category classification for auction listings.

Categories are checked in declared order and the first one that matches
wins. Within a category a tag match is tested before a title match, but
the declaration order dominates: a title-only match on an earlier
category beats a tag match on a later one.

Matching rules (case-insensitive):
  Tag   → tag equals a keyword, or the keyword occurs as a whole word in the tag
  Title → the keyword occurs as a whole word in the title
  None  → "other"
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache

OTHER = "other"
ALL = "all"


@dataclass(frozen=True)
class Category:
    key: str
    name: str
    keywords: tuple[str, ...]


CATEGORIES: tuple[Category, ...] = (
    Category(
        "magical-items",
        "Magical Items",
        ("magic", "magical", "enchanted", "spell", "potion", "crystal", "wand", "charm", "mystical", "supernatural"),
    ),
    Category(
        "rare-collectibles",
        "Rare Collectibles",
        ("rare", "collectible", "vintage", "antique", "limited", "unique", "precious", "valuable", "collector"),
    ),
    Category(
        "ancient-books",
        "Ancient Books",
        ("book", "tome", "manuscript", "scroll", "grimoire", "ancient", "old", "text", "writing", "literature"),
    ),
    Category(
        "forest-artifacts",
        "Forest Artifacts",
        ("forest", "nature", "wood", "tree", "leaf", "branch", "natural", "woodland", "botanical", "organic"),
    ),
)

_BY_KEY = {c.key: c for c in CATEGORIES}


def is_category(key: str | None) -> bool:
    return key in _BY_KEY


def category_name(key: str | None) -> str:
    category = _BY_KEY.get(key)
    return category.name if category else "Other"


@lru_cache(maxsize=None)
def _word_re(keyword: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(keyword.lower())}\b", re.IGNORECASE)


def _normalize(listing) -> tuple[list[str], str]:
    tags = [t.lower().strip() for t in (getattr(listing, "tags", None) or []) if isinstance(t, str)]
    title = (getattr(listing, "title", None) or "").lower()
    return tags, title


def _tag_matches(tag: str, keyword: str) -> bool:
    return tag == keyword.lower() or _word_re(keyword).search(tag) is not None


def _title_matches(title: str, keyword: str) -> bool:
    return _word_re(keyword).search(title) is not None


def classify(listing) -> str:
    """Return the category key for a listing, or ``"other"``."""
    if listing is None:
        return OTHER
    tags, title = _normalize(listing)

    for category in CATEGORIES:
        if any(_tag_matches(tag, kw) for tag in tags for kw in category.keywords):
            return category.key
        if any(_title_matches(title, kw) for kw in category.keywords):
            return category.key
    return OTHER


def group_by_category(listings) -> dict[str, list]:
    """Bucket listings by category. Every declared key (and ``other``) is present."""
    grouped: dict[str, list] = {c.key: [] for c in CATEGORIES}
    grouped[OTHER] = []
    if not isinstance(listings, (list, tuple)):
        return grouped
    for listing in listings:
        grouped[classify(listing)].append(listing)
    return grouped


def filter_by_category(listings, category_key: str | None):
    """Keep listings of one category.

    A falsy key or ``"all"`` returns ``listings`` itself, unchanged.
    """
    if not category_key or category_key == ALL:
        return listings
    if not isinstance(listings, (list, tuple)):
        return []
    return [listing for listing in listings if classify(listing) == category_key]


@dataclass
class CategoryExplanation:
    category: str = OTHER
    reason: str = "No matches found"
    tag_matches: list[tuple[str, str]] = field(default_factory=list)
    title_matches: list[str] = field(default_factory=list)


def explain(listing) -> CategoryExplanation:
    """Report which category matched and which (tag, keyword) / title keywords triggered it."""
    if listing is None:
        return CategoryExplanation(reason="No listing provided")
    tags, title = _normalize(listing)

    for category in CATEGORIES:
        tag_hits = [(tag, kw) for tag in tags for kw in category.keywords if _tag_matches(tag, kw)]
        title_hits = [kw for kw in category.keywords if _title_matches(title, kw)]
        if tag_hits or title_hits:
            return CategoryExplanation(
                category=category.key,
                reason=f"Found {len(tag_hits)} tag matches and {len(title_hits)} title matches",
                tag_matches=tag_hits,
                title_matches=title_hits,
            )
    return CategoryExplanation()
