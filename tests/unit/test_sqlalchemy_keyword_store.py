from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from pinkeyword.domain.errors import KeywordStoreAuthError, KeywordStoreError
from pinkeyword.infrastructure.stores.models import Base, KeywordMainTargetModel
from pinkeyword.infrastructure.stores.sqlalchemy_db import SessionProvider
from pinkeyword.infrastructure.stores.sqlalchemy_keyword_store import SqlAlchemyKeywordStore


def _db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'remote.db'}"


def test_write_without_user_raises(tmp_path):
    store = SqlAlchemyKeywordStore(db_url=_db_url(tmp_path), project_id="p-1")

    with pytest.raises(KeywordStoreAuthError) as exc_info:
        store.add_main_target("T")

    assert exc_info.value.code == "not_authenticated"
    assert store.data.main_targets == []


def test_write_without_project_raises(tmp_path):
    store = SqlAlchemyKeywordStore(db_url=_db_url(tmp_path), user_id="u-1")

    with pytest.raises(KeywordStoreAuthError) as exc_info:
        store.add_folder("F")
    assert exc_info.value.code == "no_project"

    with pytest.raises(KeywordStoreAuthError):
        store.delete_main_target("anything")


def test_reads_without_scope_are_empty(tmp_path):
    store = SqlAlchemyKeywordStore(db_url=_db_url(tmp_path))

    assert store.data.main_targets == []
    assert store.get_active_items().main_targets == []
    assert list(store.search_keywords("x")) == []


def test_state_survives_new_instance(tmp_path):
    db_url = _db_url(tmp_path)
    store = SqlAlchemyKeywordStore(db_url=db_url, user_id="u-1", project_id="p-1")
    folder = store.add_folder("F", icon="star", color="red")
    a = store.add_main_target("A", folder.id)
    b = store.add_main_target("B")
    c = store.add_main_target("C")
    store.add_relevant_keywords(a.id, ["x", "y"])
    store.toggle_relevant_keyword_done(a.id, "y")
    store.reorder_main_targets(2, 0)
    store.update_main_target(b.id, priority="low", category="legacy")

    reloaded = SqlAlchemyKeywordStore(db_url=db_url, user_id="u-1", project_id="p-1")

    assert [t.id for t in reloaded.data.main_targets] == [c.id, a.id, b.id]
    loaded_a = reloaded.get_main_target(a.id)
    assert loaded_a.folder_id == folder.id
    assert [(kw.text, kw.is_done) for kw in loaded_a.relevant_keywords] == [("x", False), ("y", True)]
    assert loaded_a.relevant_keywords[1].completed_at is not None
    assert loaded_a.created_at.tzinfo is not None
    assert reloaded.get_main_target(b.id).priority.value == "low"
    assert reloaded.get_main_target(b.id).category == "legacy"
    assert [(f.name, f.icon, f.color) for f in reloaded.data.folders] == [("F", "star", "red")]


def test_new_targets_append_after_reorder_and_delete(tmp_path):
    db_url = _db_url(tmp_path)
    store = SqlAlchemyKeywordStore(db_url=db_url, user_id="u-1", project_id="p-1")
    a = store.add_main_target("A")
    b = store.add_main_target("B")
    store.delete_main_target(a.id)
    c = store.add_main_target("C")

    reloaded = SqlAlchemyKeywordStore(db_url=db_url, user_id="u-1", project_id="p-1")

    assert [t.id for t in reloaded.data.main_targets] == [b.id, c.id]


def test_scopes_are_isolated(tmp_path):
    db_url = _db_url(tmp_path)
    mine = SqlAlchemyKeywordStore(db_url=db_url, user_id="u-1", project_id="p-1")
    mine.add_main_target("Mine")

    other_project = SqlAlchemyKeywordStore(db_url=db_url, user_id="u-1", project_id="p-2")
    other_user = SqlAlchemyKeywordStore(db_url=db_url, user_id="u-2", project_id="p-1")

    assert other_project.data.main_targets == []
    assert other_user.data.main_targets == []

    other_project.import_data(mine.export_data())
    other_project.delete_main_target(mine.data.main_targets[0].id)

    mine.refresh()
    assert [t.name for t in mine.data.main_targets] == ["Mine"]


def test_set_scope_reloads_snapshot(tmp_path):
    db_url = _db_url(tmp_path)
    store = SqlAlchemyKeywordStore(db_url=db_url, user_id="u-1", project_id="p-1")
    store.add_main_target("In p-1")

    store.set_scope(user_id="u-1", project_id="p-2")
    assert store.data.main_targets == []

    store.set_scope(user_id="u-1", project_id="p-1")
    assert [t.name for t in store.data.main_targets] == ["In p-1"]


def test_legacy_string_keywords_are_upgraded_on_load(tmp_path):
    db_url = _db_url(tmp_path)
    provider = SessionProvider(db_url)
    Base.metadata.create_all(provider.engine)
    now = datetime.now(timezone.utc)
    with provider.session() as session:
        session.add(
            KeywordMainTargetModel(
                target_id="legacy-1",
                user_id="u-1",
                project_id="p-1",
                name="Legacy",
                relevant_keywords_json=json.dumps(["a", "b"]),
                is_done=False,
                priority="medium",
                position=0,
                created_at=now,
                updated_at=now,
            )
        )
        session.commit()

    store = SqlAlchemyKeywordStore(db_url=db_url, user_id="u-1", project_id="p-1")

    target = store.get_main_target("legacy-1")
    assert [(kw.text, kw.is_done) for kw in target.relevant_keywords] == [("a", False), ("b", False)]


def test_backend_failure_leaves_snapshot_unchanged(tmp_path):
    store = SqlAlchemyKeywordStore(db_url=_db_url(tmp_path), user_id="u-1", project_id="p-1")
    target = store.add_main_target("T")
    Base.metadata.drop_all(store._provider.engine)

    with pytest.raises(KeywordStoreError) as exc_info:
        store.update_main_target(target.id, name="Renamed")

    assert exc_info.value.retryable is True
    assert store.get_main_target(target.id).name == "T"

    with pytest.raises(KeywordStoreError):
        store.add_main_target("Another")
    assert [t.name for t in store.data.main_targets] == ["T"]


def test_unreadable_row_is_skipped_on_load(tmp_path):
    db_url = _db_url(tmp_path)
    store = SqlAlchemyKeywordStore(db_url=db_url, user_id="u-1", project_id="p-1")
    good = store.add_main_target("Good")
    bad = store.add_main_target("Bad")
    with store._provider.session() as session:
        row = session.query(KeywordMainTargetModel).filter_by(target_id=bad.id).one()
        row.relevant_keywords_json = "{broken"
        session.commit()

    reloaded = SqlAlchemyKeywordStore(db_url=db_url, user_id="u-1", project_id="p-1")

    assert [t.id for t in reloaded.data.main_targets] == [good.id]
    newer = reloaded.add_main_target("Newer")
    assert [t.id for t in reloaded.data.main_targets] == [good.id, newer.id]


def test_shared_provider_is_not_disposed_by_close(tmp_path):
    provider = SessionProvider(_db_url(tmp_path))
    first = SqlAlchemyKeywordStore(user_id="u-1", project_id="p-1", provider=provider)
    second = SqlAlchemyKeywordStore(user_id="u-1", project_id="p-2", provider=provider)

    first.close()
    second.add_main_target("Still writable")

    assert second._provider is provider
    assert second.db_url == provider.db_url
    assert [t.name for t in second.data.main_targets] == ["Still writable"]
