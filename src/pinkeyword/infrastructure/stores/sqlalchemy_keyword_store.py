from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pinkeyword.domain.errors import KeywordDecodeError, KeywordStoreAuthError, KeywordStoreError
from pinkeyword.domain.keyword import Folder, KeywordData, MainTarget, utcnow
from pinkeyword.infrastructure.stores.base_keyword_store import BaseKeywordStore
from pinkeyword.infrastructure.stores.keyword_codec import (
    decode_keywords,
    encode_keyword,
    parse_datetime,
    parse_priority,
)
from pinkeyword.infrastructure.stores.models import (
    Base,
    KeywordFolderModel,
    KeywordMainTargetModel,
)
from pinkeyword.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url
from pinkeyword.utils.logging_config import LogFiles, Logger


class SqlAlchemyKeywordStore(BaseKeywordStore):
    """
    Remote backend: folders and targets are separate rows scoped by
    (user_id, project_id).

    Tables:
    - keyword_folders
    - keyword_main_targets (relevant keywords embedded as JSON, display order in ``position``)

    Writes require both a user and a selected project.
    """

    backend = "remote"

    def __init__(
        self,
        db_url: Optional[str] = None,
        *,
        user_id: Optional[str] = None,
        project_id: Optional[str] = None,
        auto_create_schema: bool = True,
        provider: Optional[SessionProvider] = None,
    ):
        super().__init__()
        self.db_url = provider.db_url if provider else (db_url or get_db_url())
        self.user_id = user_id
        self.project_id = project_id
        # A shared provider belongs to the caller and is not disposed by close().
        self._owns_provider = provider is None
        self._provider = provider or SessionProvider(self.db_url)
        if auto_create_schema:
            Base.metadata.create_all(self._provider.engine)
        self.refresh()

    # --- scope ---

    def _has_scope(self) -> bool:
        return bool(self.user_id and self.project_id)

    def _check_writable(self) -> None:
        if not self.user_id:
            raise KeywordStoreAuthError("User not authenticated")
        if not self.project_id:
            raise KeywordStoreAuthError("No project selected", code="no_project")

    def _scoped(self, model):
        return (model.user_id == self.user_id, model.project_id == self.project_id)

    @contextmanager
    def _write(self, action: str) -> Iterator[Session]:
        with self._provider.session() as session:
            try:
                yield session
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                Logger.error(f"[remote] {action} failed: {exc}", file=LogFiles.ERROR)
                raise KeywordStoreError(
                    f"{action} failed", code="backend_unavailable", retryable=True
                ) from exc

    # --- reads ---

    def refresh(self) -> None:
        """Reload the snapshot for the current (user, project) scope."""
        if not self._has_scope():
            self._data = KeywordData()
            return
        try:
            with self._provider.session() as session:
                folder_rows = session.execute(
                    select(KeywordFolderModel)
                    .where(*self._scoped(KeywordFolderModel))
                    .order_by(KeywordFolderModel.created_at, KeywordFolderModel.id)
                ).scalars().all()
                target_rows = session.execute(
                    select(KeywordMainTargetModel)
                    .where(*self._scoped(KeywordMainTargetModel))
                    .order_by(KeywordMainTargetModel.position, KeywordMainTargetModel.created_at)
                ).scalars().all()
                targets: List[MainTarget] = []
                for row in target_rows:
                    try:
                        targets.append(self._target_from_row(row))
                    except KeywordDecodeError as exc:
                        # Bad rows stay in the table and out of the snapshot.
                        Logger.error(f"[remote] skipped main target {row.target_id}: {exc}", file=LogFiles.ERROR)
                self._data = KeywordData(
                    main_targets=targets,
                    folders=[self._folder_from_row(r) for r in folder_rows],
                )
        except SQLAlchemyError as exc:
            Logger.error(f"[remote] load failed: {exc}", file=LogFiles.ERROR)
            raise KeywordStoreError("loading keyword data failed", code="backend_unavailable") from exc

    def set_scope(self, *, user_id: Optional[str], project_id: Optional[str]) -> None:
        self.user_id = user_id
        self.project_id = project_id
        self.refresh()

    @staticmethod
    def _target_from_row(row: KeywordMainTargetModel) -> MainTarget:
        where = f"main_targets[{row.target_id}]"
        try:
            raw_keywords = row.get_relevant_keywords()
        except json.JSONDecodeError as exc:
            raise KeywordDecodeError(f"{where}.relevant_keywords is not valid JSON") from exc
        created_at = parse_datetime(row.created_at) or utcnow()
        return MainTarget(
            id=row.target_id,
            name=row.name,
            relevant_keywords=decode_keywords(raw_keywords, where=where),
            is_done=bool(row.is_done),
            completed_at=parse_datetime(row.completed_at),
            priority=parse_priority(row.priority),
            category=row.category or None,
            folder_id=row.folder_id or None,
            created_at=created_at,
            updated_at=parse_datetime(row.updated_at) or created_at,
        )

    @staticmethod
    def _folder_from_row(row: KeywordFolderModel) -> Folder:
        created_at = parse_datetime(row.created_at) or utcnow()
        return Folder(
            id=row.folder_id,
            name=row.name,
            icon=row.icon or None,
            color=row.color or None,
            created_at=created_at,
            updated_at=parse_datetime(row.updated_at) or created_at,
        )

    # --- row writers ---

    def _apply_target(self, row: KeywordMainTargetModel, target: MainTarget) -> None:
        row.name = target.name
        row.set_relevant_keywords([encode_keyword(kw) for kw in target.relevant_keywords])
        row.is_done = target.is_done
        row.completed_at = target.completed_at
        row.priority = target.priority.value
        row.category = target.category
        row.folder_id = target.folder_id
        row.updated_at = target.updated_at

    def _new_target_row(self, target: MainTarget, position: int) -> KeywordMainTargetModel:
        row = KeywordMainTargetModel(
            target_id=target.id,
            user_id=self.user_id,
            project_id=self.project_id,
            position=position,
            created_at=target.created_at,
        )
        self._apply_target(row, target)
        return row

    def _new_folder_row(self, folder: Folder) -> KeywordFolderModel:
        return KeywordFolderModel(
            folder_id=folder.id,
            user_id=self.user_id,
            project_id=self.project_id,
            name=folder.name,
            icon=folder.icon,
            color=folder.color,
            created_at=folder.created_at,
            updated_at=folder.updated_at,
        )

    def _target_row(self, session: Session, target_id: str) -> Optional[KeywordMainTargetModel]:
        return session.execute(
            select(KeywordMainTargetModel).where(
                *self._scoped(KeywordMainTargetModel),
                KeywordMainTargetModel.target_id == target_id,
            )
        ).scalar_one_or_none()

    # --- persistence hooks ---

    def _persist_target(self, data: KeywordData, target: MainTarget, *, created: bool) -> None:
        with self._write("saving main target") as session:
            if created:
                last = session.execute(
                    select(func.max(KeywordMainTargetModel.position)).where(
                        *self._scoped(KeywordMainTargetModel)
                    )
                ).scalar()
                session.add(self._new_target_row(target, position=0 if last is None else last + 1))
                return
            row = self._target_row(session, target.id)
            if row is None:
                Logger.warning(f"[remote] main target {target.id} vanished before update", file=LogFiles.STORE)
                return
            self._apply_target(row, target)

    def _persist_target_removal(self, data: KeywordData, target_id: str) -> None:
        with self._write("deleting main target") as session:
            session.execute(
                delete(KeywordMainTargetModel).where(
                    *self._scoped(KeywordMainTargetModel),
                    KeywordMainTargetModel.target_id == target_id,
                )
            )

    def _persist_order(self, data: KeywordData) -> None:
        with self._write("reordering main targets") as session:
            for position, target in enumerate(data.main_targets):
                session.execute(
                    update(KeywordMainTargetModel)
                    .where(
                        *self._scoped(KeywordMainTargetModel),
                        KeywordMainTargetModel.target_id == target.id,
                    )
                    .values(position=position)
                )

    def _persist_folder(self, data: KeywordData, folder: Folder, *, created: bool) -> None:
        with self._write("saving folder") as session:
            if created:
                session.add(self._new_folder_row(folder))
                return
            session.execute(
                update(KeywordFolderModel)
                .where(*self._scoped(KeywordFolderModel), KeywordFolderModel.folder_id == folder.id)
                .values(
                    name=folder.name,
                    icon=folder.icon,
                    color=folder.color,
                    updated_at=folder.updated_at,
                )
            )

    def _persist_folder_removal(
        self, data: KeywordData, folder_id: str, detached: List[MainTarget]
    ) -> None:
        with self._write("deleting folder") as session:
            session.execute(
                update(KeywordMainTargetModel)
                .where(
                    *self._scoped(KeywordMainTargetModel),
                    KeywordMainTargetModel.folder_id == folder_id,
                )
                .values(folder_id=None, updated_at=utcnow())
            )
            session.execute(
                delete(KeywordFolderModel).where(
                    *self._scoped(KeywordFolderModel), KeywordFolderModel.folder_id == folder_id
                )
            )

    def _persist_all(self, data: KeywordData) -> None:
        with self._write("replacing keyword data") as session:
            session.execute(delete(KeywordMainTargetModel).where(*self._scoped(KeywordMainTargetModel)))
            session.execute(delete(KeywordFolderModel).where(*self._scoped(KeywordFolderModel)))
            session.add_all([self._new_folder_row(f) for f in data.folders])
            session.add_all(
                [self._new_target_row(t, position=i) for i, t in enumerate(data.main_targets)]
            )

    def close(self) -> None:
        if not self._owns_provider:
            return
        try:
            self._provider.engine.dispose()
        except Exception:
            pass
