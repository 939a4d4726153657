from __future__ import annotations

from typing import List, Optional
from uuid import uuid4

from sqlalchemy import select

from pinkeyword.domain.keyword import utcnow
from pinkeyword.domain.project import Project
from pinkeyword.infrastructure.stores.keyword_codec import parse_datetime
from pinkeyword.infrastructure.stores.models import Base, KeywordProjectModel
from pinkeyword.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url
from pinkeyword.utils.logging_config import LogFiles, Logger


class ProjectStore:
    """CRUD for the projects that scope remote keyword data."""

    def __init__(self, db_url: Optional[str] = None, *, auto_create_schema: bool = True):
        self.db_url = db_url or get_db_url()
        self._provider = SessionProvider(self.db_url)
        if auto_create_schema:
            Base.metadata.create_all(self._provider.engine)

    def create_project(self, *, user_id: str, name: str, description: str = "") -> Project:
        name = (name or "").strip()
        if not name:
            raise ValueError("project name must not be empty")
        if not user_id:
            raise ValueError("user_id is required")

        now = utcnow()
        with self._provider.session() as session:
            row = KeywordProjectModel(
                project_id=str(uuid4()),
                user_id=user_id,
                name=name,
                description=(description or "").strip(),
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            Logger.info(f"created project {row.project_id} for {user_id}", file=LogFiles.STORE)
            return self._row_to_project(row)

    def list_projects(self, *, user_id: str) -> List[Project]:
        with self._provider.session() as session:
            rows = session.execute(
                select(KeywordProjectModel)
                .where(KeywordProjectModel.user_id == user_id)
                .order_by(KeywordProjectModel.created_at, KeywordProjectModel.id)
            ).scalars().all()
            return [self._row_to_project(r) for r in rows]

    def get_project(self, *, user_id: str, project_id: str) -> Optional[Project]:
        with self._provider.session() as session:
            row = session.execute(
                select(KeywordProjectModel).where(
                    KeywordProjectModel.user_id == user_id,
                    KeywordProjectModel.project_id == project_id,
                )
            ).scalar_one_or_none()
            return self._row_to_project(row) if row else None

    @staticmethod
    def _row_to_project(row: KeywordProjectModel) -> Project:
        return Project(
            id=row.project_id,
            user_id=row.user_id,
            name=row.name,
            description=row.description or "",
            created_at=parse_datetime(row.created_at),
            updated_at=parse_datetime(row.updated_at),
        )

    def close(self) -> None:
        try:
            self._provider.engine.dispose()
        except Exception:
            pass
