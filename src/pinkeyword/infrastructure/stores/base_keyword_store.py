"""
Shared KeywordStore behaviour.

Every mutation runs in three steps: build the next snapshot from the current
one, hand it to a persistence hook, then swap it in. A hook that raises
leaves the in-memory snapshot untouched.

Backends override ``_persist_all`` (whole document) and may override the
narrower hooks to write only the rows that changed.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterator, List, Optional, Sequence
from uuid import uuid4

from pinkeyword.application.services import keyword_reconciler as rules
from pinkeyword.domain.keyword import (
    FOLDER_UPDATABLE_FIELDS,
    MAIN_TARGET_UPDATABLE_FIELDS,
    ActiveItems,
    ArchivedItems,
    BulkInputResult,
    Folder,
    KeywordData,
    MainTarget,
    Priority,
    RelevantKeyword,
    SearchHit,
    utcnow,
)
from pinkeyword.utils.logging_config import LogFiles, Logger


def _new_id() -> str:
    return str(uuid4())


def _check_fields(changes: dict, allowed: frozenset, kind: str) -> None:
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValueError(f"unknown {kind} field(s): {', '.join(unknown)}")


def _validate_target_changes(changes: dict) -> dict:
    """Normalize a main target patch; raises ValueError before any mutation."""
    _check_fields(changes, MAIN_TARGET_UPDATABLE_FIELDS, "main target")
    changes = dict(changes)
    for key in ("name", "is_done", "priority", "relevant_keywords"):
        if key in changes and changes[key] is None:
            raise ValueError(f"main target {key} must not be null")

    if "name" in changes:
        if not isinstance(changes["name"], str) or not changes["name"].strip():
            raise ValueError("main target name must not be empty")
        changes["name"] = changes["name"].strip()
    if "is_done" in changes and not isinstance(changes["is_done"], bool):
        raise ValueError("is_done must be a boolean")
    if "priority" in changes:
        changes["priority"] = Priority(changes["priority"])
    if "relevant_keywords" in changes:
        keywords = list(changes["relevant_keywords"])
        seen = set()
        for kw in keywords:
            if not isinstance(kw, RelevantKeyword) or not kw.text.strip():
                raise ValueError("relevant keywords must have non-empty text")
            key = kw.text.lower()
            if key in seen:
                raise ValueError(f"duplicate relevant keyword: {kw.text!r}")
            seen.add(key)
        changes["relevant_keywords"] = keywords
    return changes


class BaseKeywordStore:
    backend = "base"

    def __init__(self) -> None:
        self._data = KeywordData()

    # --- persistence hooks ---

    def _check_writable(self) -> None:
        """Raise when the backend cannot accept writes right now."""

    def _persist_all(self, data: KeywordData) -> None:
        raise NotImplementedError

    def _persist_target(self, data: KeywordData, target: MainTarget, *, created: bool) -> None:
        self._persist_all(data)

    def _persist_target_removal(self, data: KeywordData, target_id: str) -> None:
        self._persist_all(data)

    def _persist_order(self, data: KeywordData) -> None:
        self._persist_all(data)

    def _persist_folder(self, data: KeywordData, folder: Folder, *, created: bool) -> None:
        self._persist_all(data)

    def _persist_folder_removal(
        self, data: KeywordData, folder_id: str, detached: List[MainTarget]
    ) -> None:
        self._persist_all(data)

    # --- snapshot helpers ---

    @property
    def data(self) -> KeywordData:
        return self._data

    def get_main_target(self, target_id: str) -> Optional[MainTarget]:
        return next((t for t in self._data.main_targets if t.id == target_id), None)

    def get_folder(self, folder_id: str) -> Optional[Folder]:
        return next((f for f in self._data.folders if f.id == folder_id), None)

    def _replace_target(self, updated: MainTarget) -> None:
        targets = [updated if t.id == updated.id else t for t in self._data.main_targets]
        next_data = replace(self._data, main_targets=targets)
        self._persist_target(next_data, updated, created=False)
        self._data = next_data

    def _set_keywords(self, target: MainTarget, keywords: List[RelevantKeyword]) -> None:
        self._replace_target(replace(target, relevant_keywords=keywords, updated_at=utcnow()))

    # --- main targets ---

    def add_main_target(self, name: str, folder_id: Optional[str] = None) -> MainTarget:
        name = (name or "").strip()
        if not name:
            raise ValueError("main target name must not be empty")
        self._check_writable()

        now = utcnow()
        target = MainTarget(
            id=_new_id(),
            name=name,
            folder_id=folder_id if folder_id and self.get_folder(folder_id) else None,
            created_at=now,
            updated_at=now,
        )
        next_data = replace(self._data, main_targets=[*self._data.main_targets, target])
        self._persist_target(next_data, target, created=True)
        self._data = next_data
        Logger.info(f"[{self.backend}] added main target {target.id} ({name!r})", file=LogFiles.STORE)
        return target

    def update_main_target(self, target_id: str, **changes: Any) -> None:
        changes = _validate_target_changes(changes)
        self._check_writable()

        target = self.get_main_target(target_id)
        if target is None:
            return
        now = utcnow()
        if "is_done" in changes and "completed_at" not in changes and changes["is_done"] != target.is_done:
            changes["completed_at"] = now if changes["is_done"] else None
        self._replace_target(replace(target, **changes, updated_at=now))
        Logger.info(
            f"[{self.backend}] updated main target {target_id}: {', '.join(sorted(changes))}",
            file=LogFiles.STORE,
        )

    def delete_main_target(self, target_id: str) -> None:
        self._check_writable()
        if self.get_main_target(target_id) is None:
            return
        targets = [t for t in self._data.main_targets if t.id != target_id]
        next_data = replace(self._data, main_targets=targets)
        self._persist_target_removal(next_data, target_id)
        self._data = next_data
        Logger.info(f"[{self.backend}] deleted main target {target_id}", file=LogFiles.STORE)

    def toggle_main_target_done(self, target_id: str) -> None:
        self._check_writable()
        target = self.get_main_target(target_id)
        if target is None:
            return
        now = utcnow()
        is_done, completed_at = rules.toggle_done(target.is_done, now)
        self._replace_target(replace(target, is_done=is_done, completed_at=completed_at, updated_at=now))

    def reorder_main_targets(self, old_index: int, new_index: int) -> None:
        self._check_writable()
        moved = rules.move_item(self._data.main_targets, old_index, new_index)
        if moved is None or old_index == new_index:
            return
        next_data = replace(self._data, main_targets=moved)
        self._persist_order(next_data)
        self._data = next_data

    # --- relevant keywords ---

    def add_relevant_keywords(self, target_id: str, keywords: Sequence[str]) -> BulkInputResult:
        self._check_writable()
        keywords = list(keywords)
        target = self.get_main_target(target_id)
        if target is None:
            return BulkInputResult(skipped=keywords)

        result = rules.classify_keywords(target.relevant_keywords, keywords)
        if result.added:
            added = [RelevantKeyword(text=text) for text in result.added]
            self._set_keywords(target, [*target.relevant_keywords, *added])
            Logger.info(
                f"[{self.backend}] target {target_id}: +{len(result.added)} keywords, "
                f"{len(result.duplicates)} duplicates, {len(result.skipped)} skipped",
                file=LogFiles.STORE,
            )
        return result

    def remove_relevant_keyword(self, target_id: str, text: str) -> None:
        self.remove_relevant_keywords(target_id, [text])

    def remove_relevant_keywords(self, target_id: str, texts: Sequence[str]) -> None:
        self._check_writable()
        target = self.get_main_target(target_id)
        if target is None:
            return
        remaining = rules.without_keywords(target.relevant_keywords, texts)
        if len(remaining) == len(target.relevant_keywords):
            return
        self._set_keywords(target, remaining)

    def rename_relevant_keyword(self, target_id: str, old_text: str, new_text: str) -> bool:
        self._check_writable()
        target = self.get_main_target(target_id)
        if target is None:
            return False
        renamed = rules.rename_keyword(target.relevant_keywords, old_text, new_text)
        if renamed is None:
            return False
        self._set_keywords(target, renamed)
        return True

    def reorder_relevant_keywords(self, target_id: str, old_index: int, new_index: int) -> None:
        self._check_writable()
        target = self.get_main_target(target_id)
        if target is None:
            return
        moved = rules.move_item(target.relevant_keywords, old_index, new_index)
        if moved is None or old_index == new_index:
            return
        self._set_keywords(target, moved)

    def toggle_relevant_keyword_done(self, target_id: str, text: str) -> None:
        self._check_writable()
        target = self.get_main_target(target_id)
        if target is None or not any(kw.text == text for kw in target.relevant_keywords):
            return
        self._set_keywords(target, rules.toggle_keyword(target.relevant_keywords, text, utcnow()))

    # --- folders ---

    def add_folder(self, name: str, icon: Optional[str] = None, color: Optional[str] = None) -> Folder:
        name = (name or "").strip()
        if not name:
            raise ValueError("folder name must not be empty")
        self._check_writable()

        now = utcnow()
        folder = Folder(id=_new_id(), name=name, icon=icon, color=color, created_at=now, updated_at=now)
        next_data = replace(self._data, folders=[*self._data.folders, folder])
        self._persist_folder(next_data, folder, created=True)
        self._data = next_data
        Logger.info(f"[{self.backend}] added folder {folder.id} ({name!r})", file=LogFiles.STORE)
        return folder

    def update_folder(self, folder_id: str, **changes: Any) -> None:
        _check_fields(changes, FOLDER_UPDATABLE_FIELDS, "folder")
        self._check_writable()
        folder = self.get_folder(folder_id)
        if folder is None:
            return
        updated = replace(folder, **changes, updated_at=utcnow())
        next_data = replace(
            self._data, folders=[updated if f.id == folder_id else f for f in self._data.folders]
        )
        self._persist_folder(next_data, updated, created=False)
        self._data = next_data

    def delete_folder(self, folder_id: str) -> None:
        """Remove a folder; its targets become uncategorized, never deleted."""
        self._check_writable()
        if self.get_folder(folder_id) is None:
            return
        now = utcnow()
        detached: List[MainTarget] = []
        targets: List[MainTarget] = []
        for target in self._data.main_targets:
            if target.folder_id == folder_id:
                target = replace(target, folder_id=None, updated_at=now)
                detached.append(target)
            targets.append(target)
        next_data = KeywordData(
            main_targets=targets,
            folders=[f for f in self._data.folders if f.id != folder_id],
        )
        self._persist_folder_removal(next_data, folder_id, detached)
        self._data = next_data
        Logger.info(
            f"[{self.backend}] deleted folder {folder_id}, {len(detached)} targets uncategorized",
            file=LogFiles.STORE,
        )

    def move_to_folder(self, target_id: str, folder_id: Optional[str]) -> None:
        if folder_id and self.get_folder(folder_id) is None:
            return
        self.update_main_target(target_id, folder_id=folder_id or None)

    # --- queries ---

    def search_keywords(self, query: str) -> Iterator[SearchHit]:
        return rules.search_keywords(self._data.main_targets, query)

    def get_active_items(self) -> ActiveItems:
        return rules.active_items(self._data.main_targets)

    def get_archived_items(self) -> ArchivedItems:
        return rules.archived_items(self._data.main_targets)

    # --- snapshots ---

    def export_data(self) -> KeywordData:
        return replace(
            self._data,
            main_targets=list(self._data.main_targets),
            folders=list(self._data.folders),
        )

    def import_data(self, data: KeywordData) -> None:
        """Replace the whole working set; no merge with existing data."""
        self._check_writable()
        next_data = KeywordData(main_targets=list(data.main_targets), folders=list(data.folders))
        self._persist_all(next_data)
        self._data = next_data
        Logger.info(
            f"[{self.backend}] imported {len(next_data.main_targets)} targets, "
            f"{len(next_data.folders)} folders",
            file=LogFiles.STORE,
        )
