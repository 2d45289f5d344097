from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List

from detector.core.models import KINDS
from storage.client import get_supabase
from storage.detected_data import DATABASE_ERRORS, table_for


logger = logging.getLogger("innerspace.storage")

MIN_CONVERSATION_ID_LENGTH = 11


def valid_conversation_ids(conversation_ids: Iterable[str]) -> List[str]:
    """Drop placeholder ids such as ``user-<id>`` that never reached the database."""
    return [
        cid
        for cid in conversation_ids or []
        if cid
        and isinstance(cid, str)
        and not cid.startswith("user-")
        and len(cid) >= MIN_CONVERSATION_ID_LENGTH
    ]


def merge_detected_items(records: Iterable[Dict[str, Any]], kind: str) -> List[Dict[str, Any]]:
    merged: Dict[str, Dict[str, Any]] = {}
    for record in records or []:
        items = record.get(kind) if isinstance(record, dict) else None
        if not isinstance(items, list):
            continue
        for item in items:
            if not isinstance(item, dict):
                continue
            name = item.get("name")
            if not isinstance(name, str) or not name.strip():
                continue
            key = name.lower().strip()
            try:
                frequency = int(item.get("frequency") or 1)
            except (TypeError, ValueError):
                frequency = 1
            existing = merged.get(key)
            if existing is not None:
                existing["frequency"] += frequency
            else:
                merged[key] = {**item, "frequency": frequency}
    return list(merged.values())


def load_linked_detection_data(conversation_ids: List[str], user_id: str, client=None) -> Dict[str, Any]:
    """Emotions, parts and needs detected across the given conversations, merged by name."""
    empty: Dict[str, Any] = {kind: [] for kind in KINDS}
    empty["conversation_ids"] = []

    valid_ids = valid_conversation_ids(conversation_ids)
    if not valid_ids:
        logger.info("No valid conversation ids for linked detection")
        return empty

    try:
        client = client or get_supabase()
    except RuntimeError as exc:
        logger.error("Linked detection unavailable: %s", exc)
        return empty

    linked: Dict[str, Any] = {"conversation_ids": valid_ids}
    for kind in KINDS:
        try:
            result = (
                client.table(table_for(kind))
                .select("*")
                .in_("conversation_id", valid_ids)
                .eq("user_id", user_id)
                .execute()
            )
        except DATABASE_ERRORS as exc:
            logger.error("Error loading linked %s: %s", kind, exc)
            linked[kind] = []
            continue
        linked[kind] = merge_detected_items(result.data or [], kind)

    logger.info(
        "Aggregated linked data: %s",
        {kind: len(linked[kind]) for kind in KINDS},
    )
    return linked
