from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from detector.core.models import KINDS, DetectionSummary
from detector.core.vocabulary import category_for


MAX_INTENSITY = 10.0


@dataclass
class TrackedDetection:
    count: int
    first_seen: datetime
    last_seen: datetime
    conversation_id: str


class DetectionSessionTracker:
    """Counts how often each term shows up across a conversation session."""

    def __init__(self, conversation_id: str = "") -> None:
        self.conversation_id = conversation_id
        self._tracked: Dict[str, Dict[str, TrackedDetection]] = {kind: {} for kind in KINDS}

    def reset(self) -> None:
        for tracked in self._tracked.values():
            tracked.clear()

    def track(self, kind: str, name: str) -> TrackedDetection:
        key = name.lower().strip()
        now = datetime.now(timezone.utc)
        existing = self._tracked[kind].get(key)
        if existing is not None:
            existing.count += 1
            existing.last_seen = now
            return existing

        tracked = TrackedDetection(
            count=1, first_seen=now, last_seen=now, conversation_id=self.conversation_id
        )
        self._tracked[kind][key] = tracked
        return tracked

    def summarize(
        self, kind: str, names: Iterable[str], conversation_id: Optional[str] = None
    ) -> List[DetectionSummary]:
        if conversation_id:
            self.conversation_id = conversation_id

        summaries = []
        for name in names:
            tracked = self.track(kind, name)
            summaries.append(
                DetectionSummary(
                    name=name[:1].upper() + name[1:],
                    kind=kind,
                    frequency=tracked.count,
                    intensity=min(MAX_INTENSITY, tracked.count * 2.0),
                    category=category_for(kind, name),
                    first_seen=tracked.first_seen,
                    last_seen=tracked.last_seen,
                    conversation_ids=[tracked.conversation_id] if tracked.conversation_id else [],
                )
            )
        return summaries

    def stats(self) -> Dict[str, int]:
        return {kind: len(tracked) for kind, tracked in self._tracked.items()}
