from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator

from pinkeyword.api.deps import get_keyword_store
from pinkeyword.application.ports import KeywordStore
from pinkeyword.application.services.keyword_templates import apply_template, list_templates
from pinkeyword.application.services.keyword_workspace import KeywordWorkspace, summarize
from pinkeyword.domain.keyword import BulkInputResult, MainTarget, RelevantKeyword
from pinkeyword.infrastructure.stores.keyword_codec import (
    encode_document,
    encode_keyword,
    encode_main_target,
)

router = APIRouter()


class MainTargetCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=512)
    folder_id: Optional[str] = None


class KeywordPayload(BaseModel):
    text: str = Field(..., min_length=1)
    is_done: bool = False
    completed_at: Optional[datetime] = None


class MainTargetUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=512)
    priority: Optional[Literal["low", "medium", "high"]] = None
    category: Optional[str] = None
    folder_id: Optional[str] = None
    is_done: Optional[bool] = None
    relevant_keywords: Optional[List[KeywordPayload]] = None

    @field_validator("name", "priority", "is_done", "relevant_keywords")
    @classmethod
    def _reject_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v


class BulkAddRequest(BaseModel):
    keywords: List[str] = Field(default_factory=list)
    pasted: Optional[str] = None


class KeywordTextsRequest(BaseModel):
    texts: List[str] = Field(..., min_length=1)


class KeywordTextRequest(BaseModel):
    text: str


class KeywordRenameRequest(BaseModel):
    old_text: str
    new_text: str = Field(..., min_length=1)


class ReorderRequest(BaseModel):
    old_index: int = Field(..., ge=0)
    new_index: int = Field(..., ge=0)


class MainTargetResponse(BaseModel):
    item: Dict[str, Any]


class BulkAddResponse(BaseModel):
    added: List[str]
    duplicates: List[str]
    skipped: List[str]
    message: str
    item: Dict[str, Any]


def _require_target(store: KeywordStore, target_id: str) -> MainTarget:
    target = store.get_main_target(target_id)
    if target is None:
        raise HTTPException(status_code=404, detail="main target not found")
    return target


def _bulk_response(store: KeywordStore, target_id: str, result: BulkInputResult) -> BulkAddResponse:
    return BulkAddResponse(
        added=result.added,
        duplicates=result.duplicates,
        skipped=result.skipped,
        message=summarize(result),
        item=encode_main_target(_require_target(store, target_id)),
    )


@router.get("/keywords")
def get_keyword_data(store: KeywordStore = Depends(get_keyword_store)):
    return encode_document(store.data)


@router.post("/keywords/targets", response_model=MainTargetResponse)
def create_main_target(req: MainTargetCreateRequest, store: KeywordStore = Depends(get_keyword_store)):
    try:
        target = store.add_main_target(req.name, req.folder_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return MainTargetResponse(item=encode_main_target(target))


@router.patch("/keywords/targets/{target_id}", response_model=MainTargetResponse)
def update_main_target(
    target_id: str,
    req: MainTargetUpdateRequest,
    store: KeywordStore = Depends(get_keyword_store),
):
    _require_target(store, target_id)
    changes = req.model_dump(exclude_unset=True)
    if "relevant_keywords" in changes:
        changes["relevant_keywords"] = [
            RelevantKeyword(text=kw.text, is_done=kw.is_done, completed_at=kw.completed_at)
            for kw in (req.relevant_keywords or [])
        ]
    try:
        store.update_main_target(target_id, **changes)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return MainTargetResponse(item=encode_main_target(_require_target(store, target_id)))


@router.delete("/keywords/targets/{target_id}")
def delete_main_target(target_id: str, store: KeywordStore = Depends(get_keyword_store)):
    store.delete_main_target(target_id)
    return {"ok": True}


@router.post("/keywords/targets/reorder")
def reorder_main_targets(req: ReorderRequest, store: KeywordStore = Depends(get_keyword_store)):
    store.reorder_main_targets(req.old_index, req.new_index)
    return {"ids": [t.id for t in store.data.main_targets]}


@router.post("/keywords/targets/{target_id}/toggle", response_model=MainTargetResponse)
def toggle_main_target(target_id: str, store: KeywordStore = Depends(get_keyword_store)):
    _require_target(store, target_id)
    store.toggle_main_target_done(target_id)
    return MainTargetResponse(item=encode_main_target(_require_target(store, target_id)))


@router.post("/keywords/targets/{target_id}/keywords", response_model=BulkAddResponse)
def add_relevant_keywords(
    target_id: str, req: BulkAddRequest, store: KeywordStore = Depends(get_keyword_store)
):
    _require_target(store, target_id)
    if req.pasted is not None:
        result = KeywordWorkspace(store).bulk_add(target_id, req.pasted)
    else:
        result = store.add_relevant_keywords(target_id, req.keywords)
    return _bulk_response(store, target_id, result)


@router.post("/keywords/targets/{target_id}/keywords/remove", response_model=MainTargetResponse)
def remove_relevant_keywords(
    target_id: str, req: KeywordTextsRequest, store: KeywordStore = Depends(get_keyword_store)
):
    _require_target(store, target_id)
    store.remove_relevant_keywords(target_id, req.texts)
    return MainTargetResponse(item=encode_main_target(_require_target(store, target_id)))


@router.post("/keywords/targets/{target_id}/keywords/rename", response_model=MainTargetResponse)
def rename_relevant_keyword(
    target_id: str, req: KeywordRenameRequest, store: KeywordStore = Depends(get_keyword_store)
):
    _require_target(store, target_id)
    if not store.rename_relevant_keyword(target_id, req.old_text, req.new_text):
        raise HTTPException(status_code=409, detail="keyword not found or already exists")
    return MainTargetResponse(item=encode_main_target(_require_target(store, target_id)))


@router.post("/keywords/targets/{target_id}/keywords/reorder", response_model=MainTargetResponse)
def reorder_relevant_keywords(
    target_id: str, req: ReorderRequest, store: KeywordStore = Depends(get_keyword_store)
):
    _require_target(store, target_id)
    store.reorder_relevant_keywords(target_id, req.old_index, req.new_index)
    return MainTargetResponse(item=encode_main_target(_require_target(store, target_id)))


@router.post("/keywords/targets/{target_id}/keywords/toggle", response_model=MainTargetResponse)
def toggle_relevant_keyword(
    target_id: str, req: KeywordTextRequest, store: KeywordStore = Depends(get_keyword_store)
):
    _require_target(store, target_id)
    store.toggle_relevant_keyword_done(target_id, req.text)
    return MainTargetResponse(item=encode_main_target(_require_target(store, target_id)))


@router.get("/keywords/search")
def search_keywords(q: str = Query(default=""), store: KeywordStore = Depends(get_keyword_store)):
    hits = KeywordWorkspace(store).search(q)
    return {
        "items": [{"mainTarget": h.main_target, "keyword": h.keyword, "type": h.type} for h in hits]
    }


@router.get("/keywords/active")
def get_active_items(store: KeywordStore = Depends(get_keyword_store)):
    active = store.get_active_items()
    return {"mainTargets": [encode_main_target(t) for t in active.main_targets]}


@router.get("/keywords/archive")
def get_archived_items(store: KeywordStore = Depends(get_keyword_store)):
    archived = store.get_archived_items()
    return {
        "mainTargets": [encode_main_target(t) for t in archived.main_targets],
        "relevantKeywords": [
            {"mainTarget": item.main_target, "keyword": encode_keyword(item.keyword)}
            for item in archived.relevant_keywords
        ],
    }


@router.get("/keywords/export")
def export_keyword_data(store: KeywordStore = Depends(get_keyword_store)):
    return KeywordWorkspace(store).export_payload()


@router.post("/keywords/import")
def import_keyword_data(
    payload: Dict[str, Any] = Body(...), store: KeywordStore = Depends(get_keyword_store)
):
    data = KeywordWorkspace(store).import_payload(payload)
    return {"ok": True, "mainTargets": len(data.main_targets), "folders": len(data.folders)}


@router.get("/keywords/templates")
def get_keyword_templates():
    return {
        "items": [
            {
                "id": t.id,
                "name": t.name,
                "description": t.description,
                "category": t.category,
                "keywords": list(t.keywords),
            }
            for t in list_templates()
        ]
    }


@router.post("/keywords/targets/{target_id}/templates/{template_id}", response_model=BulkAddResponse)
def apply_keyword_template(
    target_id: str, template_id: str, store: KeywordStore = Depends(get_keyword_store)
):
    _require_target(store, target_id)
    try:
        result = apply_template(store, target_id, template_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="template not found") from exc
    return _bulk_response(store, target_id, result)
