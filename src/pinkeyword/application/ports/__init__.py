"""Application ports (interfaces) used by the application layer."""

from .keyword_store_port import KeywordStore

__all__ = ["KeywordStore"]
