"""
Deterministic activity categorizer.

Maps a browsing domain onto the closed category set by substring match,
checked in priority order (media, then shopping). The first category with
a matching pattern wins; anything else is "browsing". Substring rather than
exact matching lets subdomains and regional variants (m.youtube.com,
amazon.com.au) land in the same category.
"""
from __future__ import annotations

import enum
from typing import Any


class Category(str, enum.Enum):
    media = "media"
    shopping = "shopping"
    browsing = "browsing"


CATEGORIES: tuple[str, ...] = tuple(c.value for c in Category)

DISPLAY_NAMES: dict[str, str] = {
    Category.media.value: "Streaming & Social",
    Category.shopping.value: "Shopping",
    Category.browsing.value: "General Browsing",
}

# Priority order matters: first match wins.
DOMAIN_PATTERNS: tuple[tuple[Category, tuple[str, ...]], ...] = (
    (Category.media, (
        # video streaming
        "youtube.com", "youtu.be", "netflix.com", "twitch.tv", "vimeo.com",
        "hulu.com", "disneyplus.com", "hbomax.com", "primevideo.com",
        "crunchyroll.com",
        # social
        "reddit.com", "instagram.com", "facebook.com", "twitter.com", "x.com",
        "tiktok.com", "linkedin.com", "pinterest.com", "snapchat.com",
        "tumblr.com",
    )),
    (Category.shopping, (
        "amazon.com", "ebay.com", "etsy.com", "walmart.com", "target.com",
        "bestbuy.com", "aliexpress.com", "alibaba.com", "shopify.com",
        "wayfair.com", "nordstrom.com", "macys.com", "ikea.com",
        "homedepot.com", "lowes.com",
    )),
)


def categorize(domain: Any) -> Category:
    """Return the category for `domain`; non-strings fall back to browsing."""
    if not isinstance(domain, str) or not domain:
        return Category.browsing
    needle = domain.lower()
    for category, patterns in DOMAIN_PATTERNS:
        if any(p in needle for p in patterns):
            return category
    return Category.browsing


def normalize_category(value: Any, domain: Any = None) -> Category:
    """
    Accept an explicit category if it belongs to the taxonomy, otherwise
    derive one from the domain.
    """
    if isinstance(value, Category):
        return value
    if isinstance(value, str) and value in CATEGORIES:
        return Category(value)
    return categorize(domain)
