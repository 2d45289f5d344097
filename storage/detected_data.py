"""Persistence of detected emotions, parts and needs per conversation.

Each kind lives in its own table (``detected_emotions``, ``detected_parts``,
``detected_needs``) with one jsonb column named after the kind holding a
list of ``DetectedItem`` objects.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import httpx
from postgrest.exceptions import APIError

from detector.core.models import KINDS, DetectedItem
from detector.core.vocabulary import category_for
from storage.client import get_supabase


logger = logging.getLogger("innerspace.storage")

TABLES = {kind: f"detected_{kind}" for kind in KINDS}

DATABASE_ERRORS = (APIError, httpx.HTTPError)


def table_for(kind: str) -> str:
    try:
        return TABLES[kind]
    except KeyError:
        raise ValueError(f"Unknown detection kind: {kind!r}") from None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_detected_items(names: Iterable[str], kind: str) -> List[Dict[str, Any]]:
    return [
        DetectedItem(name=name, frequency=1, category=category_for(kind, name)).model_dump()
        for name in names
    ]


def save_detected(
    kind: str, conversation_id: str, user_id: str, items: List[Dict[str, Any]], client=None
) -> Dict[str, Any]:
    table = table_for(kind)
    client = client or get_supabase()
    logger.info(
        "Saving detected %s: conversation=%s user=%s count=%s",
        kind, conversation_id, user_id, len(items),
    )
    row = {
        "conversation_id": conversation_id,
        "user_id": user_id,
        kind: items,
        "created_at": _now(),
    }
    try:
        result = client.table(table).insert(row).execute()
    except DATABASE_ERRORS as exc:
        raise RuntimeError(f"Failed to save detected {kind}: {exc}") from exc

    if not result.data:
        raise RuntimeError(f"Failed to save detected {kind}: no row returned")
    return result.data[0]


def save_all_detected(
    conversation_id: str,
    user_id: str,
    detected: Dict[str, List[Dict[str, Any]]],
    client=None,
) -> Dict[str, Optional[Dict[str, Any]]]:
    client = client or get_supabase()
    results: Dict[str, Optional[Dict[str, Any]]] = {kind: None for kind in KINDS}
    for kind in KINDS:
        items = detected.get(kind) or []
        if items:
            results[kind] = save_detected(kind, conversation_id, user_id, items, client=client)
    return results


def load_detected(kind: str, conversation_id: str, user_id: str, client=None) -> Optional[Dict[str, Any]]:
    """Most recent detected row of ``kind`` for the conversation, or None."""
    table = table_for(kind)
    client = client or get_supabase()
    try:
        result = (
            client.table(table)
            .select("*")
            .eq("conversation_id", conversation_id)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
    except DATABASE_ERRORS as exc:
        raise RuntimeError(f"Failed to load detected {kind}: {exc}") from exc
    return result.data[0] if result.data else None


def load_all_detected(conversation_id: str, user_id: str, client=None) -> Dict[str, List[Dict[str, Any]]]:
    client = client or get_supabase()
    loaded = {}
    for kind in KINDS:
        row = load_detected(kind, conversation_id, user_id, client=client)
        loaded[kind] = (row or {}).get(kind) or []
    logger.info(
        "Loaded detected data for %s: %s",
        conversation_id, {kind: len(items) for kind, items in loaded.items()},
    )
    return loaded


def count_detected_items(items: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    return dict(Counter(item["name"] for item in items if item.get("name")))


def get_aggregated_detected_data(user_id: str, limit: int = 100, client=None) -> Dict[str, Any]:
    client = client or get_supabase()
    rows_by_kind = {}
    for kind in KINDS:
        try:
            result = (
                client.table(table_for(kind))
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        except DATABASE_ERRORS as exc:
            raise RuntimeError(f"Failed to load aggregated data: {exc}") from exc
        rows_by_kind[kind] = result.data or []

    conversation_ids = set()
    aggregated: Dict[str, Any] = {}
    for kind, rows in rows_by_kind.items():
        items: List[Dict[str, Any]] = []
        for row in rows:
            conversation_ids.add(row.get("conversation_id"))
            items.extend(row.get(kind) or [])
        aggregated[kind] = {
            "items": items,
            "counts": count_detected_items(items),
            "total_detections": len(items),
        }

    conversation_ids.discard(None)
    aggregated["total_conversations"] = len(conversation_ids)
    return aggregated


def delete_detected_for_conversation(conversation_id: str, user_id: str, client=None) -> None:
    client = client or get_supabase()
    logger.info("Deleting detected data for conversation %s", conversation_id)
    for kind in KINDS:
        try:
            (
                client.table(table_for(kind))
                .delete()
                .eq("conversation_id", conversation_id)
                .eq("user_id", user_id)
                .execute()
            )
        except DATABASE_ERRORS as exc:
            raise RuntimeError(f"Failed to delete detected data: {exc}") from exc
