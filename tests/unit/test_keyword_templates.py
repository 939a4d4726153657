from __future__ import annotations

import pytest

from pinkeyword.application.services.keyword_templates import apply_template, get_template, list_templates


def test_templates_are_listed_in_order():
    assert [t.id for t in list_templates()] == ["food-blog", "diy-crafts", "fashion-style", "home-decor"]
    assert all(len(t.keywords) == 10 for t in list_templates())


def test_unknown_template():
    with pytest.raises(KeyError):
        get_template("gardening")


def test_apply_template_deduplicates_against_existing(local_store):
    target = local_store.add_main_target("Recipes")
    local_store.add_relevant_keywords(target.id, ["Easy Recipes"])

    result = apply_template(local_store, target.id, "food-blog")

    assert result.duplicates == ["easy recipes"]
    assert len(result.added) == 9
    assert len(local_store.get_main_target(target.id).relevant_keywords) == 10

    again = apply_template(local_store, target.id, "food-blog")
    assert again.added == []
