from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class KeywordProjectModel(Base):
    """User-owned project; every folder and target row is scoped to one."""

    __tablename__ = "keyword_projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)

    name: Mapped[str] = mapped_column(String(256), default="")
    description: Mapped[str] = mapped_column(Text, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class KeywordFolderModel(Base):
    __tablename__ = "keyword_folders"
    __table_args__ = (
        UniqueConstraint("user_id", "project_id", "folder_id", name="uq_keyword_folders_scope"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    folder_id: Mapped[str] = mapped_column(String(64), index=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    project_id: Mapped[str] = mapped_column(String(64), index=True)

    name: Mapped[str] = mapped_column(String(256), default="")
    icon: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class KeywordMainTargetModel(Base):
    """
    Main target row.

    Relevant keywords are embedded as a JSON array on the row rather than
    stored as child rows; ``position`` persists the user's display order.
    """

    __tablename__ = "keyword_main_targets"
    __table_args__ = (
        UniqueConstraint("user_id", "project_id", "target_id", name="uq_keyword_main_targets_scope"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    target_id: Mapped[str] = mapped_column(String(64), index=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    project_id: Mapped[str] = mapped_column(String(64), index=True)

    name: Mapped[str] = mapped_column(String(512), default="")
    relevant_keywords_json: Mapped[str] = mapped_column(Text, default="[]")
    is_done: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    priority: Mapped[str] = mapped_column(String(16), default="medium")
    category: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    folder_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    position: Mapped[int] = mapped_column(Integer, default=0, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    def set_relevant_keywords(self, keywords: List[Dict[str, Any]]) -> None:
        self.relevant_keywords_json = json.dumps(keywords or [], ensure_ascii=False)

    def get_relevant_keywords(self) -> List[Any]:
        data = json.loads(self.relevant_keywords_json or "[]")
        return data if isinstance(data, list) else []
