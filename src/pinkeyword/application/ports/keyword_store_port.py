"""KeywordStore port: the single write path for keyword data."""

from __future__ import annotations

from typing import Any, Iterator, Optional, Protocol, Sequence, runtime_checkable

from pinkeyword.domain.keyword import (
    ActiveItems,
    ArchivedItems,
    BulkInputResult,
    Folder,
    KeywordData,
    MainTarget,
    SearchHit,
)


@runtime_checkable
class KeywordStore(Protocol):
    """Interface shared by the local (file) and remote (database) backends."""

    @property
    def data(self) -> KeywordData: ...

    def get_main_target(self, target_id: str) -> Optional[MainTarget]: ...

    def add_main_target(self, name: str, folder_id: Optional[str] = None) -> MainTarget: ...

    def update_main_target(self, target_id: str, **changes: Any) -> None: ...

    def delete_main_target(self, target_id: str) -> None: ...

    def add_relevant_keywords(self, target_id: str, keywords: Sequence[str]) -> BulkInputResult: ...

    def remove_relevant_keyword(self, target_id: str, text: str) -> None: ...

    def remove_relevant_keywords(self, target_id: str, texts: Sequence[str]) -> None: ...

    def rename_relevant_keyword(self, target_id: str, old_text: str, new_text: str) -> bool: ...

    def reorder_relevant_keywords(self, target_id: str, old_index: int, new_index: int) -> None: ...

    def toggle_main_target_done(self, target_id: str) -> None: ...

    def toggle_relevant_keyword_done(self, target_id: str, text: str) -> None: ...

    def reorder_main_targets(self, old_index: int, new_index: int) -> None: ...

    def add_folder(
        self, name: str, icon: Optional[str] = None, color: Optional[str] = None
    ) -> Folder: ...

    def update_folder(self, folder_id: str, **changes: Any) -> None: ...

    def delete_folder(self, folder_id: str) -> None: ...

    def move_to_folder(self, target_id: str, folder_id: Optional[str]) -> None: ...

    def search_keywords(self, query: str) -> Iterator[SearchHit]: ...

    def get_active_items(self) -> ActiveItems: ...

    def get_archived_items(self) -> ArchivedItems: ...

    def export_data(self) -> KeywordData: ...

    def import_data(self, data: KeywordData) -> None: ...
