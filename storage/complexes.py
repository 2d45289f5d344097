"""Complexes: user-defined groupings of conversations that share a theme."""

from __future__ import annotations

import json
import logging
import random
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from storage.client import get_supabase
from storage.detected_data import DATABASE_ERRORS


logger = logging.getLogger("innerspace.storage")

COMPLEX_COLORS = (
    "#FF6B6B",  # coral
    "#4ECDC4",  # turquoise
    "#45B7D1",  # blue
    "#96CEB4",  # mint
    "#FECA57",  # orange
    "#FF9FF3",  # pink
    "#54A0FF",  # light blue
    "#5F27CD",  # purple
    "#00D2D3",  # cyan
    "#FF9F43",  # amber
    "#EE5A24",  # red orange
    "#0FB9B1",  # teal
    "#3742FA",  # indigo
    "#2ED573",  # green
    "#FFA502",  # orange yellow
)

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100
UPDATABLE_FIELDS = ("name", "description", "color")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def random_complex_color() -> str:
    return random.choice(COMPLEX_COLORS)


def validate_complex_name(name: Optional[str]) -> Tuple[bool, Optional[str]]:
    trimmed = (name or "").strip()
    if not trimmed:
        return False, "Complex name is required"
    if len(trimmed) < MIN_NAME_LENGTH:
        return False, f"Complex name must be at least {MIN_NAME_LENGTH} characters long"
    if len(trimmed) > MAX_NAME_LENGTH:
        return False, f"Complex name must be less than {MAX_NAME_LENGTH} characters"
    return True, None


def create_complex(
    user_id: str,
    name: str,
    description: Optional[str] = None,
    color: Optional[str] = None,
    client=None,
) -> Dict[str, Any]:
    valid, error = validate_complex_name(name)
    if not valid:
        raise ValueError(error)

    client = client or get_supabase()
    logger.info("Creating complex: user=%s name=%s", user_id, name)
    row = {
        "user_id": user_id,
        "name": name.strip(),
        "description": (description or "").strip() or None,
        "color": color or random_complex_color(),
        "created_at": _now(),
        "updated_at": _now(),
    }
    try:
        result = client.table("complexes").insert(row).execute()
    except DATABASE_ERRORS as exc:
        raise RuntimeError(f"Failed to create complex: {exc}") from exc
    if not result.data:
        raise RuntimeError("Failed to create complex: no row returned")
    return result.data[0]


def load_complexes(user_id: str, client=None) -> List[Dict[str, Any]]:
    client = client or get_supabase()
    try:
        result = (
            client.table("complexes")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
    except DATABASE_ERRORS as exc:
        raise RuntimeError(f"Failed to load complexes: {exc}") from exc
    return result.data or []


def load_complex(complex_id: str, user_id: str, client=None) -> Optional[Dict[str, Any]]:
    client = client or get_supabase()
    try:
        result = (
            client.table("complexes")
            .select("*")
            .eq("id", complex_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
    except DATABASE_ERRORS as exc:
        raise RuntimeError(f"Failed to load complex: {exc}") from exc
    return result.data[0] if result.data else None


def update_complex(complex_id: str, user_id: str, client=None, **fields) -> Optional[Dict[str, Any]]:
    updates = {key: value for key, value in fields.items() if key in UPDATABLE_FIELDS}
    if "name" in updates:
        valid, error = validate_complex_name(updates["name"])
        if not valid:
            raise ValueError(error)
        updates["name"] = updates["name"].strip()
    if "description" in updates:
        updates["description"] = (updates["description"] or "").strip() or None
    updates["updated_at"] = _now()

    client = client or get_supabase()
    try:
        result = (
            client.table("complexes")
            .update(updates)
            .eq("id", complex_id)
            .eq("user_id", user_id)
            .execute()
        )
    except DATABASE_ERRORS as exc:
        raise RuntimeError(f"Failed to update complex: {exc}") from exc
    return result.data[0] if result.data else None


def delete_complex(complex_id: str, user_id: str, client=None) -> None:
    client = client or get_supabase()
    logger.info("Deleting complex %s", complex_id)
    try:
        client.table("complexes").delete().eq("id", complex_id).eq("user_id", user_id).execute()
    except DATABASE_ERRORS as exc:
        raise RuntimeError(f"Failed to delete complex: {exc}") from exc


def search_complexes(user_id: str, query: str, client=None) -> List[Dict[str, Any]]:
    query = (query or "").strip().lower()
    if not query:
        return load_complexes(user_id, client=client)

    client = client or get_supabase()
    try:
        result = (
            client.table("complexes")
            .select("*")
            .eq("user_id", user_id)
            .ilike("name", f"%{query}%")
            .order("created_at", desc=True)
            .execute()
        )
    except DATABASE_ERRORS as exc:
        raise RuntimeError(f"Failed to search complexes: {exc}") from exc
    return result.data or []


def _load_conversations(client, user_id: str, columns: str) -> List[Dict[str, Any]]:
    try:
        result = (
            client.table("conversations")
            .select(columns)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
    except DATABASE_ERRORS as exc:
        raise RuntimeError(f"Failed to load conversations: {exc}") from exc
    return result.data or []


def get_recent_complexes(user_id: str, limit: int = 5, client=None) -> List[Dict[str, Any]]:
    """Complexes ordered by their most recent conversation."""
    client = client or get_supabase()
    by_id = {c["id"]: c for c in load_complexes(user_id, client=client)}
    if not by_id:
        return []

    # Conversations can still point at complexes that were deleted.
    recent: List[Dict[str, Any]] = []
    seen = set()
    for conversation in _load_conversations(client, user_id, "complex_id, created_at"):
        complex_id = conversation.get("complex_id")
        if complex_id in seen or complex_id not in by_id:
            continue
        seen.add(complex_id)
        recent.append(by_id[complex_id])
        if len(recent) >= limit:
            break
    return recent


def get_complex_stats(user_id: str, client=None) -> Dict[str, Any]:
    client = client or get_supabase()
    complexes = load_complexes(user_id, client=client)
    conversations = _load_conversations(client, user_id, "complex_id")

    counts: Dict[str, int] = {}
    for conversation in conversations:
        key = conversation.get("complex_id") or "uncategorized"
        counts[key] = counts.get(key, 0) + 1

    return {
        "total_complexes": len(complexes),
        "total_conversations": len(conversations),
        "uncategorized_conversations": counts.get("uncategorized", 0),
        "complexes": [
            {**complex_, "conversation_count": counts.get(complex_["id"], 0)}
            for complex_ in complexes
        ],
        "conversation_counts": counts,
    }


def parse_conversation_ids(value: Any) -> List[str]:
    """Accept a list, a JSON array string or a comma separated string of ids."""
    if isinstance(value, (list, tuple)):
        return [cid for cid in value if cid and isinstance(cid, str)]
    if not isinstance(value, str):
        return []

    if value.startswith("["):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return [cid for cid in parsed if cid and isinstance(cid, str)]

    return [cid.strip() for cid in value.split(",") if cid.strip()]


def find_complexes_with_item(
    kind: str, name: str, conversation_ids: Any, user_id: str, client=None
) -> List[Dict[str, Any]]:
    """Complexes holding any of the conversations in which ``name`` was detected.

    Lookup failures are logged and yield an empty list.
    """
    ids = parse_conversation_ids(conversation_ids)
    if not ids:
        return []

    try:
        client = client or get_supabase()
        conversations = (
            client.table("conversations")
            .select("id, complex_id, topic, created_at")
            .in_("id", ids)
            .eq("user_id", user_id)
            .not_.is_("complex_id", "null")
            .execute()
        ).data or []

        complex_ids = sorted({c["complex_id"] for c in conversations if c.get("complex_id")})
        if not complex_ids:
            return []

        complexes = (
            client.table("complexes")
            .select("*")
            .in_("id", complex_ids)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        ).data or []

        previews = []
        for complex_ in complexes:
            count = sum(1 for c in conversations if c.get("complex_id") == complex_["id"])
            plural = "s" if count > 1 else ""
            previews.append(
                {
                    "id": complex_["id"],
                    "title": complex_.get("name") or "Untitled Complex",
                    "description": complex_.get("description")
                    or f'Contains "{name}" in {count} conversation{plural}',
                    "created_at": complex_.get("created_at"),
                    "conversation_count": count,
                }
            )
    except (RuntimeError, KeyError, TypeError, AttributeError, *DATABASE_ERRORS) as exc:
        logger.error("Error finding complexes with %s %r: %s", kind, name, exc)
        return []

    logger.info("Found %s complexes with %s %r", len(previews), kind, name)
    return previews
