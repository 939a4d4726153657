from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from pinkeyword.api.deps import get_keyword_store
from pinkeyword.application.ports import KeywordStore
from pinkeyword.infrastructure.stores.keyword_codec import encode_folder, encode_main_target

router = APIRouter()


class FolderCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    icon: Optional[str] = None
    color: Optional[str] = None


class FolderUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    icon: Optional[str] = None
    color: Optional[str] = None


class MoveToFolderRequest(BaseModel):
    folder_id: Optional[str] = None


class FolderResponse(BaseModel):
    item: Dict[str, Any]


@router.get("/folders")
def list_folders(store: KeywordStore = Depends(get_keyword_store)):
    return {"items": [encode_folder(f) for f in store.data.folders]}


@router.post("/folders", response_model=FolderResponse)
def create_folder(req: FolderCreateRequest, store: KeywordStore = Depends(get_keyword_store)):
    try:
        folder = store.add_folder(req.name, icon=req.icon, color=req.color)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return FolderResponse(item=encode_folder(folder))


@router.patch("/folders/{folder_id}", response_model=FolderResponse)
def update_folder(
    folder_id: str, req: FolderUpdateRequest, store: KeywordStore = Depends(get_keyword_store)
):
    if not any(f.id == folder_id for f in store.data.folders):
        raise HTTPException(status_code=404, detail="folder not found")
    store.update_folder(folder_id, **req.model_dump(exclude_unset=True))
    folder = next(f for f in store.data.folders if f.id == folder_id)
    return FolderResponse(item=encode_folder(folder))


@router.delete("/folders/{folder_id}")
def delete_folder(folder_id: str, store: KeywordStore = Depends(get_keyword_store)):
    store.delete_folder(folder_id)
    return {"ok": True}


@router.post("/keywords/targets/{target_id}/folder")
def move_to_folder(
    target_id: str, req: MoveToFolderRequest, store: KeywordStore = Depends(get_keyword_store)
):
    if store.get_main_target(target_id) is None:
        raise HTTPException(status_code=404, detail="main target not found")
    if req.folder_id and not any(f.id == req.folder_id for f in store.data.folders):
        raise HTTPException(status_code=404, detail="folder not found")
    store.move_to_folder(target_id, req.folder_id)
    return {"item": encode_main_target(store.get_main_target(target_id))}
