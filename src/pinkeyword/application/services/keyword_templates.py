"""Starter keyword templates that can be bulk-added to a main target."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from pinkeyword.application.ports import KeywordStore
from pinkeyword.domain.keyword import BulkInputResult


@dataclass(frozen=True)
class KeywordTemplate:
    id: str
    name: str
    description: str
    category: str
    keywords: Tuple[str, ...]


TEMPLATES: Tuple[KeywordTemplate, ...] = (
    KeywordTemplate(
        id="food-blog",
        name="Food Blog",
        description="Essential keywords for food and recipe content",
        category="Food & Recipes",
        keywords=(
            "easy recipes",
            "healthy recipes",
            "quick meals",
            "meal prep",
            "dinner ideas",
            "breakfast recipes",
            "dessert recipes",
            "vegetarian recipes",
            "gluten free recipes",
            "comfort food",
        ),
    ),
    KeywordTemplate(
        id="diy-crafts",
        name="DIY & Crafts",
        description="Perfect for DIY and crafting Pinterest boards",
        category="DIY & Crafts",
        keywords=(
            "DIY projects",
            "craft ideas",
            "handmade gifts",
            "home decor DIY",
            "easy crafts",
            "upcycling ideas",
            "craft tutorials",
            "DIY home improvement",
            "creative projects",
            "budget crafts",
        ),
    ),
    KeywordTemplate(
        id="fashion-style",
        name="Fashion & Style",
        description="Trending fashion and style keywords",
        category="Fashion",
        keywords=(
            "fashion trends",
            "style inspiration",
            "outfit ideas",
            "fashion tips",
            "seasonal fashion",
            "wardrobe essentials",
            "style guide",
            "fashion accessories",
            "casual outfits",
            "work outfits",
        ),
    ),
    KeywordTemplate(
        id="home-decor",
        name="Home Decor",
        description="Home decoration and interior design keywords",
        category="Home & Garden",
        keywords=(
            "home decor ideas",
            "interior design",
            "living room decor",
            "bedroom decor",
            "kitchen design",
            "home organization",
            "decorating tips",
            "home styling",
            "modern decor",
            "cozy home",
        ),
    ),
)

_BY_ID: Dict[str, KeywordTemplate] = {t.id: t for t in TEMPLATES}


def list_templates() -> List[KeywordTemplate]:
    return list(TEMPLATES)


def get_template(template_id: str) -> KeywordTemplate:
    """Raises KeyError for an unknown template id."""
    return _BY_ID[template_id]


def apply_template(store: KeywordStore, target_id: str, template_id: str) -> BulkInputResult:
    template = get_template(template_id)
    return store.add_relevant_keywords(target_id, list(template.keywords))
