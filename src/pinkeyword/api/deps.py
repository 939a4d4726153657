"""Store wiring for the API; one KeywordStore per (user, project) scope."""

from __future__ import annotations

import os
from collections import OrderedDict
from typing import Dict, Optional, Tuple

from fastapi import Query

from pinkeyword.application.ports import KeywordStore
from pinkeyword.infrastructure.stores.factory import get_backend, make_keyword_store
from pinkeyword.infrastructure.stores.project_store import ProjectStore
from pinkeyword.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url
from pinkeyword.utils.logging_config import LogFiles, Logger

DEFAULT_MAX_CACHED_STORES = 64

_stores: "OrderedDict[Tuple[Optional[str], Optional[str]], KeywordStore]" = OrderedDict()
_providers: Dict[str, SessionProvider] = {}
_project_store: Optional[ProjectStore] = None


def _max_cached_stores() -> int:
    return max(1, int(os.getenv("PINKEYWORD_MAX_CACHED_STORES", DEFAULT_MAX_CACHED_STORES)))


def get_session_provider(db_url: Optional[str] = None) -> SessionProvider:
    """One engine per database URL, shared by every scoped store."""
    url = db_url or get_db_url()
    provider = _providers.get(url)
    if provider is None:
        provider = SessionProvider(url)
        _providers[url] = provider
    return provider


def _evict_oldest() -> None:
    key, store = _stores.popitem(last=False)
    close = getattr(store, "close", None)
    if close is not None:
        close()
    Logger.info(f"evicted keyword store for scope {key}", file=LogFiles.API)


def get_keyword_store(
    user_id: Optional[str] = Query(default=None),
    project_id: Optional[str] = Query(default=None),
) -> KeywordStore:
    backend = get_backend()
    remote = backend == "remote"
    key = (user_id, project_id) if remote else (None, None)
    store = _stores.get(key)
    if store is not None:
        _stores.move_to_end(key)
        return store

    store = make_keyword_store(
        backend,
        user_id=user_id,
        project_id=project_id,
        provider=get_session_provider() if remote else None,
    )
    _stores[key] = store
    while len(_stores) > _max_cached_stores():
        _evict_oldest()
    return store


def get_project_store() -> ProjectStore:
    global _project_store
    if _project_store is None:
        _project_store = ProjectStore()
    return _project_store
