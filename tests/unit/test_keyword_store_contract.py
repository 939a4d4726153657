from __future__ import annotations

import pytest

from pinkeyword.application.ports import KeywordStore
from pinkeyword.domain.keyword import KeywordData, Priority, RelevantKeyword


def _keyword_texts(store, target_id):
    return [kw.text for kw in store.get_main_target(target_id).relevant_keywords]


def test_store_implements_port(store):
    assert isinstance(store, KeywordStore)


def test_add_main_target_defaults(store):
    target = store.add_main_target("  Vegan Dinner  ")

    assert target.name == "Vegan Dinner"
    assert target.priority is Priority.MEDIUM
    assert target.is_done is False
    assert target.relevant_keywords == []
    assert target.folder_id is None
    assert target.completed_at is None
    assert target.created_at is not None and target.updated_at is not None
    assert [t.id for t in store.data.main_targets] == [target.id]


def test_add_main_target_generates_unique_ids(store):
    a = store.add_main_target("A")
    b = store.add_main_target("B")
    assert a.id != b.id


def test_add_main_target_rejects_blank_name(store):
    with pytest.raises(ValueError):
        store.add_main_target("   ")
    assert store.data.main_targets == []


def test_bulk_add_scenario(store):
    target = store.add_main_target("Vegan Dinner")

    result = store.add_relevant_keywords(
        target.id, ["Easy Meals", "easy meals", "Quick Dinner", ""]
    )

    assert result.added == ["Easy Meals", "Quick Dinner"]
    assert result.duplicates == ["easy meals"]
    assert result.skipped == [""]
    assert _keyword_texts(store, target.id) == ["Easy Meals", "Quick Dinner"]
    assert all(not kw.is_done for kw in store.get_main_target(target.id).relevant_keywords)


def test_bulk_add_dedups_against_existing_keywords(store):
    target = store.add_main_target("Vegan Dinner")
    store.add_relevant_keywords(target.id, ["Easy Meals"])

    result = store.add_relevant_keywords(target.id, ["EASY MEALS", "  tofu bowls  ", "Tofu Bowls"])

    assert result.added == ["tofu bowls"]
    assert result.duplicates == ["EASY MEALS", "Tofu Bowls"]
    added_keys = [t.lower() for t in result.added]
    assert len(added_keys) == len(set(added_keys))


def test_bulk_add_allows_cross_target_duplicates(store):
    a = store.add_main_target("A")
    b = store.add_main_target("B")
    store.add_relevant_keywords(a.id, ["shared"])

    result = store.add_relevant_keywords(b.id, ["shared"])

    assert result.added == ["shared"]


def test_bulk_add_unknown_target_skips_everything(store):
    result = store.add_relevant_keywords("missing", ["a", "b"])
    assert result.added == []
    assert result.skipped == ["a", "b"]


def test_update_main_target_merges_fields_and_refreshes_updated_at(store):
    target = store.add_main_target("Old")

    store.update_main_target(target.id, name="New", priority="high", category="food")

    updated = store.get_main_target(target.id)
    assert updated.name == "New"
    assert updated.priority is Priority.HIGH
    assert updated.category == "food"
    assert updated.updated_at >= target.updated_at


def test_update_main_target_replaces_keyword_list(store):
    target = store.add_main_target("T")
    store.add_relevant_keywords(target.id, ["a", "b", "c"])

    store.update_main_target(
        target.id,
        relevant_keywords=[RelevantKeyword(text="c"), RelevantKeyword(text="a", is_done=True)],
    )

    keywords = store.get_main_target(target.id).relevant_keywords
    assert [(kw.text, kw.is_done) for kw in keywords] == [("c", False), ("a", True)]


def test_update_main_target_rejects_unknown_field(store):
    target = store.add_main_target("T")
    with pytest.raises(ValueError):
        store.update_main_target(target.id, colour="red")
    assert store.get_main_target(target.id).name == "T"


@pytest.mark.parametrize(
    "changes",
    [
        {"name": None},
        {"name": "   "},
        {"is_done": None},
        {"priority": None},
        {"priority": "urgent"},
        {"relevant_keywords": None},
        {"relevant_keywords": [RelevantKeyword(text="A"), RelevantKeyword(text="a")]},
        {"relevant_keywords": [RelevantKeyword(text="ok"), RelevantKeyword(text="  ")]},
    ],
)
def test_update_main_target_rejects_invalid_values(store, changes):
    target = store.add_main_target("T")
    store.add_relevant_keywords(target.id, ["x"])
    before = store.export_data()

    with pytest.raises(ValueError):
        store.update_main_target(target.id, **changes)

    assert store.export_data() == before
    assert [h.keyword for h in store.search_keywords("t")] == ["T"]


def test_update_is_done_sets_and_clears_completed_at(store):
    target = store.add_main_target("T")

    store.update_main_target(target.id, is_done=True)
    done = store.get_main_target(target.id)
    assert done.is_done is True
    assert done.completed_at is not None

    store.update_main_target(target.id, is_done=True)
    assert store.get_main_target(target.id).completed_at == done.completed_at

    store.update_main_target(target.id, is_done=False)
    assert store.get_main_target(target.id).completed_at is None


def test_update_unknown_target_is_noop(store):
    store.add_main_target("T")
    before = store.export_data()

    store.update_main_target("missing", name="x")

    assert store.export_data() == before


def test_delete_main_target_is_idempotent(store):
    target = store.add_main_target("T")
    store.add_relevant_keywords(target.id, ["a"])

    store.delete_main_target(target.id)
    store.delete_main_target(target.id)
    store.delete_main_target("never-existed")

    assert store.data.main_targets == []
    assert list(store.search_keywords("a")) == []


def test_remove_relevant_keyword_is_case_sensitive(store):
    target = store.add_main_target("T")
    store.add_relevant_keywords(target.id, ["Easy Meals", "other"])

    store.remove_relevant_keyword(target.id, "easy meals")
    assert _keyword_texts(store, target.id) == ["Easy Meals", "other"]

    store.remove_relevant_keyword(target.id, "Easy Meals")
    assert _keyword_texts(store, target.id) == ["other"]

    store.remove_relevant_keyword(target.id, "Easy Meals")
    store.remove_relevant_keyword("missing", "other")
    assert _keyword_texts(store, target.id) == ["other"]


def test_remove_relevant_keywords_bulk(store):
    target = store.add_main_target("T")
    store.add_relevant_keywords(target.id, ["a", "b", "c"])

    store.remove_relevant_keywords(target.id, ["a", "c"])

    assert _keyword_texts(store, target.id) == ["b"]


def test_rename_relevant_keyword(store):
    target = store.add_main_target("T")
    store.add_relevant_keywords(target.id, ["a", "b"])

    assert store.rename_relevant_keyword(target.id, "a", "  A2 ") is True
    assert _keyword_texts(store, target.id) == ["A2", "b"]

    assert store.rename_relevant_keyword(target.id, "A2", "B") is False
    assert store.rename_relevant_keyword(target.id, "A2", "  ") is False
    assert store.rename_relevant_keyword(target.id, "zzz", "q") is False
    assert _keyword_texts(store, target.id) == ["A2", "b"]


def test_rename_relevant_keyword_allows_case_change_of_itself(store):
    target = store.add_main_target("T")
    store.add_relevant_keywords(target.id, ["easy meals"])

    assert store.rename_relevant_keyword(target.id, "easy meals", "Easy Meals") is True
    assert _keyword_texts(store, target.id) == ["Easy Meals"]


def test_toggle_main_target_done_is_symmetric(store):
    target = store.add_main_target("T")

    store.toggle_main_target_done(target.id)
    done = store.get_main_target(target.id)
    assert done.is_done is True
    assert done.completed_at is not None

    store.toggle_main_target_done(target.id)
    undone = store.get_main_target(target.id)
    assert undone.is_done is False
    assert undone.completed_at is None


def test_toggle_relevant_keyword_done(store):
    target = store.add_main_target("T")
    store.add_relevant_keywords(target.id, ["a", "b"])

    store.toggle_relevant_keyword_done(target.id, "b")
    keywords = {kw.text: kw for kw in store.get_main_target(target.id).relevant_keywords}
    assert keywords["b"].is_done is True
    assert keywords["b"].completed_at is not None
    assert keywords["a"].is_done is False

    store.toggle_relevant_keyword_done(target.id, "b")
    keywords = {kw.text: kw for kw in store.get_main_target(target.id).relevant_keywords}
    assert keywords["b"].is_done is False
    assert keywords["b"].completed_at is None


def test_keyword_done_is_independent_of_target(store):
    target = store.add_main_target("T")
    store.add_relevant_keywords(target.id, ["a"])

    store.toggle_relevant_keyword_done(target.id, "a")

    assert store.get_main_target(target.id).is_done is False


def test_reorder_main_targets_moves_single_element(store):
    ids = [store.add_main_target(name).id for name in ["a", "b", "c", "d"]]

    store.reorder_main_targets(0, 2)

    reordered = [t.id for t in store.data.main_targets]
    assert reordered == [ids[1], ids[2], ids[0], ids[3]]
    assert sorted(reordered) == sorted(ids)


def test_reorder_main_targets_out_of_range_is_noop(store):
    ids = [store.add_main_target(name).id for name in ["a", "b"]]

    store.reorder_main_targets(0, 5)
    store.reorder_main_targets(-1, 0)

    assert [t.id for t in store.data.main_targets] == ids


def test_reorder_relevant_keywords(store):
    target = store.add_main_target("T")
    store.add_relevant_keywords(target.id, ["a", "b", "c"])

    store.reorder_relevant_keywords(target.id, 2, 0)

    assert _keyword_texts(store, target.id) == ["c", "a", "b"]


def test_search_keywords_matches_names_and_keywords(store):
    dinner = store.add_main_target("Vegan Dinner")
    store.add_relevant_keywords(dinner.id, ["Easy Meals", "dinner party"])
    lunch = store.add_main_target("Lunch")
    store.add_relevant_keywords(lunch.id, ["quick DINNER"])

    hits = [(h.main_target, h.keyword, h.type) for h in store.search_keywords("dinner")]

    assert hits == [
        ("Vegan Dinner", "Vegan Dinner", "main"),
        ("Vegan Dinner", "dinner party", "relevant"),
        ("Lunch", "quick DINNER", "relevant"),
    ]


def test_search_keywords_is_recomputed_on_each_call(store):
    target = store.add_main_target("T")
    assert list(store.search_keywords("new")) == []

    store.add_relevant_keywords(target.id, ["new keyword"])

    assert [h.keyword for h in store.search_keywords("new")] == ["new keyword"]


def test_active_and_archived_scenario(store):
    target = store.add_main_target("Pins")
    store.add_relevant_keywords(target.id, ["A", "B"])
    store.toggle_relevant_keyword_done(target.id, "B")

    active = store.get_active_items()
    assert [t.id for t in active.main_targets] == [target.id]
    assert [kw.text for kw in active.main_targets[0].relevant_keywords] == ["A"]

    archived = store.get_archived_items()
    assert archived.main_targets == []
    assert [(a.main_target, a.keyword.text) for a in archived.relevant_keywords] == [("Pins", "B")]


def test_partition_is_complete(store):
    ids = [store.add_main_target(name).id for name in ["a", "b", "c"]]
    store.toggle_main_target_done(ids[1])

    active = {t.id for t in store.get_active_items().main_targets}
    archived = {t.id for t in store.get_archived_items().main_targets}

    assert active | archived == set(ids)
    assert active & archived == set()
    assert archived == {ids[1]}


def test_folder_crud(store):
    folder = store.add_folder("Recipes", icon="utensils", color="#ff0000")
    assert store.get_folder(folder.id).name == "Recipes"

    store.update_folder(folder.id, name="Food", color=None)
    updated = store.get_folder(folder.id)
    assert updated.name == "Food"
    assert updated.color is None
    assert updated.icon == "utensils"

    with pytest.raises(ValueError):
        store.add_folder(" ")
    with pytest.raises(ValueError):
        store.update_folder(folder.id, title="x")


def test_delete_folder_uncategorizes_targets(store):
    folder = store.add_folder("Recipes")
    a = store.add_main_target("A", folder.id)
    b = store.add_main_target("B")
    store.move_to_folder(b.id, folder.id)
    c = store.add_main_target("C")

    store.delete_folder(folder.id)

    assert store.data.folders == []
    assert [t.id for t in store.data.main_targets] == [a.id, b.id, c.id]
    assert all(t.folder_id is None for t in store.data.main_targets)

    store.delete_folder(folder.id)


def test_move_to_folder_and_back(store):
    folder = store.add_folder("F")
    target = store.add_main_target("T")

    store.move_to_folder(target.id, folder.id)
    assert store.get_main_target(target.id).folder_id == folder.id

    store.move_to_folder(target.id, "unknown-folder")
    assert store.get_main_target(target.id).folder_id == folder.id

    store.move_to_folder(target.id, None)
    assert store.get_main_target(target.id).folder_id is None


def test_add_main_target_with_unknown_folder_is_uncategorized(store):
    target = store.add_main_target("T", folder_id="nope")
    assert target.folder_id is None


def test_export_import_round_trip(store):
    folder = store.add_folder("F", icon="star")
    target = store.add_main_target("T", folder.id)
    store.add_relevant_keywords(target.id, ["a", "b"])
    store.toggle_relevant_keyword_done(target.id, "a")
    store.toggle_main_target_done(target.id)
    other = store.add_main_target("Other")

    exported = store.export_data()
    store.delete_main_target(other.id)
    store.import_data(exported)

    assert store.export_data() == exported


def test_import_replaces_without_merge(store):
    store.add_main_target("Existing")
    store.add_folder("Old folder")

    store.import_data(KeywordData())

    assert store.data.main_targets == []
    assert store.data.folders == []
