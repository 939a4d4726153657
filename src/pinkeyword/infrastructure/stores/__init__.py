"""Keyword store backends (local JSON file and SQLAlchemy)."""

from .factory import make_keyword_store
from .json_keyword_store import JsonFileKeywordStore
from .sqlalchemy_keyword_store import SqlAlchemyKeywordStore

__all__ = ["JsonFileKeywordStore", "SqlAlchemyKeywordStore", "make_keyword_store"]
