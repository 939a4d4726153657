"""
Keyword document codec.

Encodes KeywordData into the JSON document shared by the local store and the
export file, and decodes any supported schema version back into the
normalized in-memory model.

Schema versions:
    1: legacy documents; ``relevantKeywords`` is a list of plain strings and
       ``isDone``/``priority``/``folders`` may be absent.
    2: current shape; keywords are ``{text, isDone, completedAt}`` objects.

Documents without a ``version`` key are accepted as either shape, entry by
entry, since older builds never wrote one.
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pinkeyword.domain.errors import KeywordDecodeError
from pinkeyword.domain.keyword import (
    Folder,
    KeywordData,
    MainTarget,
    Priority,
    RelevantKeyword,
    utcnow,
)

SCHEMA_VERSION = 2
SUPPORTED_VERSIONS = (1, 2)


# --- timestamps ---


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_datetime(value: Any, *, field_name: str = "timestamp") -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str):
        raise KeywordDecodeError(f"{field_name} must be an ISO-8601 string")

    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise KeywordDecodeError(f"{field_name} is not a valid timestamp: {value!r}") from exc
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def parse_priority(value: Any) -> Priority:
    if value is None or value == "":
        return Priority.MEDIUM
    try:
        return Priority(value)
    except ValueError as exc:
        raise KeywordDecodeError(f"unknown priority: {value!r}") from exc


# --- encode ---


def encode_keyword(keyword: RelevantKeyword) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"text": keyword.text, "isDone": keyword.is_done}
    if keyword.completed_at is not None:
        payload["completedAt"] = format_datetime(keyword.completed_at)
    return payload


def encode_main_target(target: MainTarget) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": target.id,
        "name": target.name,
        "relevantKeywords": [encode_keyword(kw) for kw in target.relevant_keywords],
        "isDone": target.is_done,
        "priority": target.priority.value,
        "createdAt": format_datetime(target.created_at),
        "updatedAt": format_datetime(target.updated_at),
    }
    if target.completed_at is not None:
        payload["completedAt"] = format_datetime(target.completed_at)
    if target.category is not None:
        payload["category"] = target.category
    if target.folder_id is not None:
        payload["folderId"] = target.folder_id
    return payload


def encode_folder(folder: Folder) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": folder.id,
        "name": folder.name,
        "createdAt": format_datetime(folder.created_at),
        "updatedAt": format_datetime(folder.updated_at),
    }
    if folder.icon is not None:
        payload["icon"] = folder.icon
    if folder.color is not None:
        payload["color"] = folder.color
    return payload


def encode_document(data: KeywordData) -> Dict[str, Any]:
    return {
        "version": SCHEMA_VERSION,
        "mainTargets": [encode_main_target(t) for t in data.main_targets],
        "folders": [encode_folder(f) for f in data.folders],
    }


# --- decode ---


def _require_str(obj: Mapping[str, Any], key: str, where: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise KeywordDecodeError(f"{where}.{key} must be a string")
    return value


def _optional_bool(obj: Mapping[str, Any], key: str, where: str) -> bool:
    value = obj.get(key, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise KeywordDecodeError(f"{where}.{key} must be a boolean")
    return value


def _optional_str(obj: Mapping[str, Any], key: str, where: str) -> Optional[str]:
    value = obj.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise KeywordDecodeError(f"{where}.{key} must be a string")
    return value


def decode_keyword(raw: Any, *, version: Optional[int] = None, where: str = "keyword") -> RelevantKeyword:
    if isinstance(raw, str) and version != 2:
        return RelevantKeyword(text=raw)
    if isinstance(raw, Mapping) and version != 1:
        return RelevantKeyword(
            text=_require_str(raw, "text", where),
            is_done=_optional_bool(raw, "isDone", where),
            completed_at=parse_datetime(raw.get("completedAt"), field_name=f"{where}.completedAt"),
        )
    raise KeywordDecodeError(f"{where} has an unrecognized shape")


def decode_keywords(raw: Any, *, version: Optional[int] = None, where: str = "target") -> List[RelevantKeyword]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise KeywordDecodeError(f"{where}.relevantKeywords must be a list")
    return [
        decode_keyword(item, version=version, where=f"{where}.relevantKeywords[{i}]")
        for i, item in enumerate(raw)
    ]


def decode_main_target(raw: Any, *, version: Optional[int] = None, where: str = "mainTargets") -> MainTarget:
    if not isinstance(raw, Mapping):
        raise KeywordDecodeError(f"{where} must be an object")
    now = utcnow()
    created_at = parse_datetime(raw.get("createdAt"), field_name=f"{where}.createdAt") or now
    return MainTarget(
        id=_require_str(raw, "id", where),
        name=_require_str(raw, "name", where),
        relevant_keywords=decode_keywords(raw.get("relevantKeywords"), version=version, where=where),
        is_done=_optional_bool(raw, "isDone", where),
        completed_at=parse_datetime(raw.get("completedAt"), field_name=f"{where}.completedAt"),
        priority=parse_priority(raw.get("priority")),
        category=_optional_str(raw, "category", where),
        folder_id=_optional_str(raw, "folderId", where),
        created_at=created_at,
        updated_at=parse_datetime(raw.get("updatedAt"), field_name=f"{where}.updatedAt") or created_at,
    )


def decode_folder(raw: Any, *, where: str = "folders") -> Folder:
    if not isinstance(raw, Mapping):
        raise KeywordDecodeError(f"{where} must be an object")
    now = utcnow()
    created_at = parse_datetime(raw.get("createdAt"), field_name=f"{where}.createdAt") or now
    return Folder(
        id=_require_str(raw, "id", where),
        name=_require_str(raw, "name", where),
        icon=_optional_str(raw, "icon", where),
        color=_optional_str(raw, "color", where),
        created_at=created_at,
        updated_at=parse_datetime(raw.get("updatedAt"), field_name=f"{where}.updatedAt") or created_at,
    )


def decode_document(raw: Any) -> KeywordData:
    """Validate and normalize a raw document; raises KeywordDecodeError on bad shapes."""
    if not isinstance(raw, Mapping):
        raise KeywordDecodeError("keyword document must be a JSON object")

    version = raw.get("version")
    if version is not None and version not in SUPPORTED_VERSIONS:
        raise KeywordDecodeError(f"unsupported keyword document version: {version!r}")

    targets = raw.get("mainTargets")
    if not isinstance(targets, list):
        raise KeywordDecodeError("mainTargets must be a list")

    folders = raw.get("folders")
    if folders is None:
        folders = []
    if not isinstance(folders, list):
        raise KeywordDecodeError("folders must be a list")

    return KeywordData(
        main_targets=[
            decode_main_target(item, version=version, where=f"mainTargets[{i}]")
            for i, item in enumerate(targets)
        ],
        folders=[decode_folder(item, where=f"folders[{i}]") for i, item in enumerate(folders)],
    )


# --- files ---


def load_document(path: Union[str, Path]) -> KeywordData:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise KeywordDecodeError(f"{path} is not UTF-8 text: {exc.reason}") from exc
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise KeywordDecodeError(f"{path} is not valid JSON: {exc.msg}") from exc
    return decode_document(raw)


def dump_document(data: KeywordData, path: Union[str, Path]) -> None:
    """Write the encoded document atomically (temp file + rename)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(encode_document(data), handle, ensure_ascii=False, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
