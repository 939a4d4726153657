"""
Keyword reconciliation rules shared by every KeywordStore backend.

Pure functions over the domain dataclasses: they never mutate their inputs
and return freshly built objects, so a backend can persist the result before
swapping it into its snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar

from pinkeyword.domain.keyword import (
    ActiveItems,
    ArchivedItems,
    ArchivedKeyword,
    BulkInputResult,
    MainTarget,
    RelevantKeyword,
    SearchHit,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def classify_keywords(
    existing: Iterable[RelevantKeyword], keywords: Sequence[str]
) -> BulkInputResult:
    """
    Classify a batch of raw keyword strings against a target's keywords.

    The seen-set starts from the existing texts and grows while the batch is
    processed, so a repeat inside the same batch counts as a duplicate.

    Returns:
        BulkInputResult with trimmed ``added`` texts in input order,
        trimmed ``duplicates`` and the raw ``skipped`` (blank) entries.
    """
    seen = {kw.text.lower() for kw in existing}
    result = BulkInputResult()

    for raw in keywords:
        trimmed = (raw or "").strip()
        if not trimmed:
            result.skipped.append(raw)
            continue
        key = trimmed.lower()
        if key in seen:
            result.duplicates.append(trimmed)
            continue
        seen.add(key)
        result.added.append(trimmed)

    logger.debug(
        f"Classified {len(keywords)} keywords: {len(result.added)} added, "
        f"{len(result.duplicates)} duplicates, {len(result.skipped)} skipped"
    )
    return result


def move_item(items: Sequence[T], old_index: int, new_index: int) -> Optional[List[T]]:
    """Move one element; returns None when either index is out of range."""
    size = len(items)
    if not (0 <= old_index < size and 0 <= new_index < size):
        return None
    moved = list(items)
    item = moved.pop(old_index)
    moved.insert(new_index, item)
    return moved


def toggle_done(is_done: bool, now: datetime) -> Tuple[bool, Optional[datetime]]:
    """Flip a done flag; completion time is set going done and cleared going back."""
    flipped = not is_done
    return flipped, (now if flipped else None)


def toggle_keyword(keywords: Sequence[RelevantKeyword], text: str, now: datetime) -> List[RelevantKeyword]:
    toggled: List[RelevantKeyword] = []
    for kw in keywords:
        if kw.text == text:
            is_done, completed_at = toggle_done(kw.is_done, now)
            kw = replace(kw, is_done=is_done, completed_at=completed_at)
        toggled.append(kw)
    return toggled


def without_keywords(keywords: Sequence[RelevantKeyword], texts: Iterable[str]) -> List[RelevantKeyword]:
    """Drop every keyword whose text matches exactly (case-sensitive)."""
    drop = set(texts)
    return [kw for kw in keywords if kw.text not in drop]


def rename_keyword(
    keywords: Sequence[RelevantKeyword], old_text: str, new_text: str
) -> Optional[List[RelevantKeyword]]:
    """
    Rename the first keyword matching ``old_text`` exactly.

    Returns None when nothing matches, the new text is blank, or it collides
    case-insensitively with a different keyword on the same target.
    """
    new_text = (new_text or "").strip()
    if not new_text:
        return None
    index = next((i for i, kw in enumerate(keywords) if kw.text == old_text), None)
    if index is None:
        return None
    key = new_text.lower()
    for i, kw in enumerate(keywords):
        if i != index and kw.text.lower() == key:
            return None
    renamed = list(keywords)
    renamed[index] = replace(renamed[index], text=new_text)
    return renamed


def search_keywords(targets: Sequence[MainTarget], query: str) -> Iterator[SearchHit]:
    """Case-insensitive substring search over target names, then their keywords."""
    needle = (query or "").lower()
    for target in targets:
        if needle in target.name.lower():
            yield SearchHit(main_target=target.name, keyword=target.name, type="main")
        for kw in target.relevant_keywords:
            if needle in kw.text.lower():
                yield SearchHit(main_target=target.name, keyword=kw.text, type="relevant")


def active_items(targets: Sequence[MainTarget]) -> ActiveItems:
    return ActiveItems(
        main_targets=[
            replace(t, relevant_keywords=[kw for kw in t.relevant_keywords if not kw.is_done])
            for t in targets
            if not t.is_done
        ]
    )


def archived_items(targets: Sequence[MainTarget]) -> ArchivedItems:
    """
    Completed targets and completed keywords as two separate lists.

    A keyword's done flag is independent of its parent's, so archived
    keywords are collected from every target, active or not.
    """
    archived = ArchivedItems(main_targets=[t for t in targets if t.is_done])
    for target in targets:
        for kw in target.relevant_keywords:
            if kw.is_done:
                archived.relevant_keywords.append(ArchivedKeyword(main_target=target.name, keyword=kw))
    return archived
