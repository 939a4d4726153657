from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from pinkeyword.domain.errors import KeywordDecodeError, KeywordStoreError
from pinkeyword.domain.keyword import KeywordData
from pinkeyword.infrastructure.stores.base_keyword_store import BaseKeywordStore
from pinkeyword.infrastructure.stores.keyword_codec import dump_document, load_document
from pinkeyword.utils.logging_config import LogFiles, Logger

DEFAULT_DATA_FILE = Path.home() / ".pinkeyword" / "keywords.json"


def get_data_file() -> Path:
    return Path(os.getenv("PINKEYWORD_DATA_FILE") or DEFAULT_DATA_FILE)


class JsonFileKeywordStore(BaseKeywordStore):
    """
    Local backend: the whole document lives in one JSON file.

    The file is read once at construction and rewritten in full on every
    mutating call.
    """

    backend = "local"

    def __init__(self, path: Optional[Union[str, Path]] = None):
        super().__init__()
        self.path = Path(path) if path else get_data_file()
        self._data = self._load()

    def _load(self) -> KeywordData:
        if not self.path.exists():
            return KeywordData()
        try:
            return load_document(self.path)
        except (KeywordDecodeError, OSError) as exc:
            # Start empty; the unreadable file is only replaced on the next write.
            logger.warning(f"could not load keyword data from {self.path}: {exc}")
            Logger.error(f"load failed for {self.path}: {exc}", file=LogFiles.ERROR)
            return KeywordData()

    def _persist_all(self, data: KeywordData) -> None:
        try:
            dump_document(data, self.path)
        except OSError as exc:
            Logger.error(f"save failed for {self.path}: {exc}", file=LogFiles.ERROR)
            raise KeywordStoreError(
                f"could not save keyword data: {exc}", code="save_failed", retryable=True
            ) from exc

    def reload(self) -> None:
        self._data = self._load()
