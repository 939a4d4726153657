"""
KeywordWorkspace - coordinator between a KeywordStore and its views.

Owns only ephemeral view state (selected target, current view); every write
goes through the wrapped store, so switching backends needs no change here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pinkeyword.application.ports import KeywordStore
from pinkeyword.domain.keyword import (
    ArchivedItems,
    BulkInputResult,
    Folder,
    KeywordData,
    MainTarget,
    SearchHit,
)
from pinkeyword.infrastructure.stores.keyword_codec import decode_document, encode_document

logger = logging.getLogger(__name__)

VIEW_DETAIL = "detail"
VIEW_ARCHIVE = "archive"


@dataclass
class FolderGroup:
    folder: Folder
    main_targets: List[MainTarget] = field(default_factory=list)


@dataclass
class Sidebar:
    uncategorized: List[MainTarget] = field(default_factory=list)
    folders: List[FolderGroup] = field(default_factory=list)


@dataclass
class ArchiveStats:
    main_targets: int
    keywords: int

    @property
    def total(self) -> int:
        return self.main_targets + self.keywords


def split_pasted_keywords(text: str) -> List[str]:
    """One keyword per line; blank lines are dropped."""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def summarize(result: BulkInputResult) -> str:
    parts = []
    if result.added:
        parts.append(f"{len(result.added)} keywords added.")
    if result.duplicates:
        parts.append(f"{len(result.duplicates)} duplicates skipped.")
    if result.skipped:
        parts.append(f"{len(result.skipped)} empty lines skipped.")
    return " ".join(parts)


class KeywordWorkspace:
    def __init__(self, store: KeywordStore):
        self.store = store
        self.selected_target_id: Optional[str] = None
        self.view = VIEW_DETAIL

    # --- view state ---

    @property
    def selected_target(self) -> Optional[MainTarget]:
        if self.selected_target_id is None:
            return None
        target = self.store.get_main_target(self.selected_target_id)
        if target is None:
            self.selected_target_id = None
        return target

    def select(self, target_id: Optional[str]) -> None:
        self.selected_target_id = target_id
        self.view = VIEW_DETAIL

    def show_archive(self) -> None:
        self.view = VIEW_ARCHIVE

    def show_detail(self) -> None:
        self.view = VIEW_DETAIL

    # --- derived views ---

    def sidebar(self) -> Sidebar:
        """Active targets grouped by folder, in display order."""
        active = self.store.get_active_items().main_targets
        data = self.store.data
        groups = {f.id: FolderGroup(folder=f) for f in data.folders}
        sidebar = Sidebar(folders=list(groups.values()))
        for target in active:
            group = groups.get(target.folder_id) if target.folder_id else None
            if group is None:
                sidebar.uncategorized.append(target)
            else:
                group.main_targets.append(target)
        return sidebar

    def archive(self) -> ArchivedItems:
        return self.store.get_archived_items()

    def archive_stats(self) -> ArchiveStats:
        archived = self.store.get_archived_items()
        return ArchiveStats(
            main_targets=len(archived.main_targets),
            keywords=len(archived.relevant_keywords),
        )

    def search(self, query: str) -> List[SearchHit]:
        query = (query or "").strip()
        if not query:
            return []
        return list(self.store.search_keywords(query))

    # --- actions ---

    def add_target(self, name: str, folder_id: Optional[str] = None) -> MainTarget:
        target = self.store.add_main_target(name, folder_id)
        self.select(target.id)
        return target

    def delete_target(self, target_id: str) -> None:
        self.store.delete_main_target(target_id)
        if self.selected_target_id == target_id:
            self.selected_target_id = None

    def bulk_add(self, target_id: str, pasted: str) -> BulkInputResult:
        return self.store.add_relevant_keywords(target_id, split_pasted_keywords(pasted))

    def reactivate_target(self, target_id: str) -> None:
        target = self.store.get_main_target(target_id)
        if target is not None and target.is_done:
            self.store.toggle_main_target_done(target_id)

    def reactivate_keyword(self, target_id: str, text: str) -> None:
        target = self.store.get_main_target(target_id)
        if target is None:
            return
        if any(kw.text == text and kw.is_done for kw in target.relevant_keywords):
            self.store.toggle_relevant_keyword_done(target_id, text)

    # --- import / export ---

    def export_payload(self) -> Dict[str, Any]:
        return encode_document(self.store.export_data())

    def import_payload(self, raw: Any) -> KeywordData:
        """Validate the whole payload first; nothing changes when it is rejected."""
        data = decode_document(raw)
        self.store.import_data(data)
        self.selected_target_id = None
        logger.info(f"Imported {len(data.main_targets)} main targets, {len(data.folders)} folders")
        return data
