"""keyword tables

Revision ID: 0001_keyword_tables
Revises:
Create Date: 2026-10-17

Adds keyword_projects, keyword_folders and keyword_main_targets.
Relevant keywords live as a JSON text column on keyword_main_targets.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import context, op


revision = "0001_keyword_tables"
down_revision = None
branch_labels = None
depends_on = None


def _is_offline() -> bool:
    try:
        return bool(context.is_offline_mode())
    except Exception:
        return False


def _insp():
    return sa.inspect(op.get_bind())


def _has_table(name: str) -> bool:
    return _insp().has_table(name)


def _get_indexes(table: str) -> set[str]:
    return {str(i.get("name") or "") for i in _insp().get_indexes(table)}


def _create_index(name: str, table: str, cols: list[str]) -> None:
    if _is_offline():
        op.create_index(name, table, cols)
        return
    if name in _get_indexes(table):
        return
    op.create_index(name, table, cols)


def upgrade() -> None:
    if _is_offline() or not _has_table("keyword_projects"):
        op.create_table(
            "keyword_projects",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("project_id", sa.String(length=64), nullable=False, unique=True),
            sa.Column("user_id", sa.String(length=64), nullable=False),
            sa.Column("name", sa.String(length=256), server_default="", nullable=False),
            sa.Column("description", sa.Text(), server_default="", nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        )

    if _is_offline() or not _has_table("keyword_folders"):
        op.create_table(
            "keyword_folders",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("folder_id", sa.String(length=64), nullable=False),
            sa.Column("user_id", sa.String(length=64), nullable=False),
            sa.Column("project_id", sa.String(length=64), nullable=False),
            sa.Column("name", sa.String(length=256), server_default="", nullable=False),
            sa.Column("icon", sa.String(length=64), nullable=True),
            sa.Column("color", sa.String(length=32), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint("user_id", "project_id", "folder_id", name="uq_keyword_folders_scope"),
        )

    if _is_offline() or not _has_table("keyword_main_targets"):
        op.create_table(
            "keyword_main_targets",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("target_id", sa.String(length=64), nullable=False),
            sa.Column("user_id", sa.String(length=64), nullable=False),
            sa.Column("project_id", sa.String(length=64), nullable=False),
            sa.Column("name", sa.String(length=512), server_default="", nullable=False),
            sa.Column("relevant_keywords_json", sa.Text(), server_default="[]", nullable=False),
            sa.Column("is_done", sa.Boolean(), server_default=sa.false(), nullable=False),
            sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("priority", sa.String(length=16), server_default="medium", nullable=False),
            sa.Column("category", sa.String(length=128), nullable=True),
            sa.Column("folder_id", sa.String(length=64), nullable=True),
            sa.Column("position", sa.Integer(), server_default="0", nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint(
                "user_id", "project_id", "target_id", name="uq_keyword_main_targets_scope"
            ),
        )

    _create_index("ix_keyword_projects_project_id", "keyword_projects", ["project_id"])
    _create_index("ix_keyword_projects_user_id", "keyword_projects", ["user_id"])
    _create_index("ix_keyword_projects_created_at", "keyword_projects", ["created_at"])

    _create_index("ix_keyword_folders_folder_id", "keyword_folders", ["folder_id"])
    _create_index("ix_keyword_folders_user_id", "keyword_folders", ["user_id"])
    _create_index("ix_keyword_folders_project_id", "keyword_folders", ["project_id"])
    _create_index("ix_keyword_folders_created_at", "keyword_folders", ["created_at"])

    _create_index("ix_keyword_main_targets_target_id", "keyword_main_targets", ["target_id"])
    _create_index("ix_keyword_main_targets_user_id", "keyword_main_targets", ["user_id"])
    _create_index("ix_keyword_main_targets_project_id", "keyword_main_targets", ["project_id"])
    _create_index("ix_keyword_main_targets_folder_id", "keyword_main_targets", ["folder_id"])
    _create_index("ix_keyword_main_targets_position", "keyword_main_targets", ["position"])
    _create_index("ix_keyword_main_targets_created_at", "keyword_main_targets", ["created_at"])


def downgrade() -> None:
    op.drop_table("keyword_main_targets")
    op.drop_table("keyword_folders")
    op.drop_table("keyword_projects")
