from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from pinkeyword.api.deps import get_project_store
from pinkeyword.domain.project import Project
from pinkeyword.infrastructure.stores.keyword_codec import format_datetime
from pinkeyword.infrastructure.stores.project_store import ProjectStore

router = APIRouter()


class ProjectCreateRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=256)
    description: str = ""


class ProjectListResponse(BaseModel):
    items: List[Dict[str, Any]]


def _project_to_dict(project: Project) -> Dict[str, Any]:
    return {
        "id": project.id,
        "userId": project.user_id,
        "name": project.name,
        "description": project.description,
        "createdAt": format_datetime(project.created_at),
        "updatedAt": format_datetime(project.updated_at),
    }


@router.get("/projects", response_model=ProjectListResponse)
def list_projects(user_id: str = Query(..., min_length=1), store: ProjectStore = Depends(get_project_store)):
    return ProjectListResponse(items=[_project_to_dict(p) for p in store.list_projects(user_id=user_id)])


@router.post("/projects")
def create_project(req: ProjectCreateRequest, store: ProjectStore = Depends(get_project_store)):
    try:
        project = store.create_project(user_id=req.user_id, name=req.name, description=req.description)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"item": _project_to_dict(project)}
