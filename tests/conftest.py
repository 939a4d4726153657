# tests/conftest.py
"""
Pytest configuration and fixtures.
Adds src/ to sys.path so `import pinkeyword` works without installing.
"""

import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
src_root = project_root / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from pinkeyword.infrastructure.stores.json_keyword_store import JsonFileKeywordStore  # noqa: E402
from pinkeyword.infrastructure.stores.sqlalchemy_keyword_store import SqlAlchemyKeywordStore  # noqa: E402
from pinkeyword.utils.logging_config import Logger  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_logs(tmp_path, monkeypatch):
    monkeypatch.setenv("PINKEYWORD_LOG_DIR", str(tmp_path / "logs"))
    Logger.reset()
    yield
    Logger.reset()


@pytest.fixture
def local_store(tmp_path):
    return JsonFileKeywordStore(tmp_path / "keywords.json")


@pytest.fixture
def remote_store(tmp_path):
    store = SqlAlchemyKeywordStore(
        db_url=f"sqlite:///{tmp_path / 'keywords.db'}",
        user_id="u-1",
        project_id="p-1",
    )
    yield store
    store.close()


@pytest.fixture(params=["local", "remote"])
def store(request):
    """Every KeywordStore backend, for contract tests."""
    return request.getfixturevalue(f"{request.param}_store")
