from __future__ import annotations

from collections import OrderedDict

import pytest

from pinkeyword.api import deps


@pytest.fixture
def remote_env(tmp_path, monkeypatch):
    monkeypatch.setenv("PINKEYWORD_STORE", "remote")
    monkeypatch.setenv("PINKEYWORD_DB_URL", f"sqlite:///{tmp_path / 'api.db'}")
    monkeypatch.setenv("PINKEYWORD_MAX_CACHED_STORES", "2")
    monkeypatch.setattr(deps, "_stores", OrderedDict())
    monkeypatch.setattr(deps, "_providers", {})


def test_scoped_stores_share_one_engine(remote_env):
    a = deps.get_keyword_store(user_id="u-1", project_id="p-1")
    b = deps.get_keyword_store(user_id="u-1", project_id="p-2")

    assert a is not b
    assert a._provider is b._provider
    assert len(deps._providers) == 1
    assert deps.get_keyword_store(user_id="u-1", project_id="p-1") is a


def test_store_cache_is_bounded(remote_env):
    first = deps.get_keyword_store(user_id="u-1", project_id="p-1")
    deps.get_keyword_store(user_id="u-1", project_id="p-2")
    deps.get_keyword_store(user_id="u-1", project_id="p-1")
    latest = deps.get_keyword_store(user_id="u-1", project_id="p-3")

    assert list(deps._stores) == [("u-1", "p-1"), ("u-1", "p-3")]
    assert deps._stores[("u-1", "p-1")] is first

    # evicted scopes do not dispose the shared engine
    latest.add_main_target("Dinner")
    assert deps.get_keyword_store(user_id="u-1", project_id="p-3").data.main_targets[0].name == "Dinner"


def test_local_backend_uses_one_store(tmp_path, monkeypatch):
    monkeypatch.setenv("PINKEYWORD_STORE", "local")
    monkeypatch.setenv("PINKEYWORD_DATA_FILE", str(tmp_path / "keywords.json"))
    monkeypatch.setattr(deps, "_stores", OrderedDict())

    assert deps.get_keyword_store(user_id="u-1", project_id="p-1") is deps.get_keyword_store(user_id=None, project_id=None)
