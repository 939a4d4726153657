"""Keyword aggregate: main targets, relevant keywords, folders."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class RelevantKeyword:
    """Secondary keyword owned by exactly one MainTarget."""

    text: str
    is_done: bool = False
    completed_at: Optional[datetime] = None


@dataclass
class MainTarget:
    """Primary keyword with an ordered cluster of relevant keywords."""

    id: str
    name: str
    relevant_keywords: List[RelevantKeyword] = field(default_factory=list)
    is_done: bool = False
    completed_at: Optional[datetime] = None
    priority: Priority = Priority.MEDIUM
    category: Optional[str] = None  # legacy label, kept for compatibility
    folder_id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Folder:
    id: str
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class KeywordData:
    """Persisted document. List order of main_targets is the display order."""

    main_targets: List[MainTarget] = field(default_factory=list)
    folders: List[Folder] = field(default_factory=list)


@dataclass
class BulkInputResult:
    added: List[str] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SearchHit:
    main_target: str
    keyword: str
    type: str  # "main" | "relevant"


@dataclass
class ActiveItems:
    main_targets: List[MainTarget] = field(default_factory=list)


@dataclass(frozen=True)
class ArchivedKeyword:
    main_target: str  # parent target name
    keyword: RelevantKeyword


@dataclass
class ArchivedItems:
    main_targets: List[MainTarget] = field(default_factory=list)
    relevant_keywords: List[ArchivedKeyword] = field(default_factory=list)


MAIN_TARGET_UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "relevant_keywords",
        "is_done",
        "completed_at",
        "priority",
        "category",
        "folder_id",
    }
)

FOLDER_UPDATABLE_FIELDS = frozenset({"name", "icon", "color"})
