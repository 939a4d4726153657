from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

from pinkeyword.application.ports import KeywordStore
from pinkeyword.infrastructure.stores.sqlalchemy_db import SessionProvider

BACKENDS = ("local", "remote")


def get_backend() -> str:
    return (os.getenv("PINKEYWORD_STORE") or "local").strip().lower()


def make_keyword_store(
    backend: Optional[str] = None,
    *,
    data_file: Optional[Union[str, Path]] = None,
    db_url: Optional[str] = None,
    user_id: Optional[str] = None,
    project_id: Optional[str] = None,
    provider: Optional[SessionProvider] = None,
) -> KeywordStore:
    """
    Build a KeywordStore for the configured backend.

    Unset arguments fall back to PINKEYWORD_STORE, PINKEYWORD_DATA_FILE,
    PINKEYWORD_DB_URL, PINKEYWORD_USER_ID and PINKEYWORD_PROJECT_ID. A remote store built on a shared
    ``provider`` reuses its engine.
    """
    from pinkeyword.infrastructure.stores.json_keyword_store import JsonFileKeywordStore
    from pinkeyword.infrastructure.stores.sqlalchemy_keyword_store import SqlAlchemyKeywordStore

    backend = (backend or get_backend()).strip().lower()
    if backend == "local":
        return JsonFileKeywordStore(data_file)
    if backend == "remote":
        return SqlAlchemyKeywordStore(
            db_url=db_url,
            user_id=user_id or os.getenv("PINKEYWORD_USER_ID") or None,
            project_id=project_id or os.getenv("PINKEYWORD_PROJECT_ID") or None,
            provider=provider,
        )
    raise ValueError(f"unknown keyword store backend: {backend!r} (expected one of {', '.join(BACKENDS)})")
