from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


Kind = Literal["emotions", "parts", "needs"]
KINDS = ("emotions", "parts", "needs")


class DetectedLists(BaseModel):
    emotions: List[str] = Field(default_factory=list)
    parts: List[str] = Field(default_factory=list)
    needs: List[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.emotions or self.parts or self.needs)

    def counts(self) -> dict:
        return {
            "emotions": len(self.emotions),
            "parts": len(self.parts),
            "needs": len(self.needs),
        }


class DetectedItem(BaseModel):
    """Persisted form of a detected term, stored inside the detected_* jsonb columns."""

    name: str
    frequency: int = Field(1, ge=1)
    category: Optional[str] = None


class DetectionSummary(BaseModel):
    name: str
    kind: Kind
    frequency: int
    intensity: float = Field(..., ge=0, le=10)
    category: str
    first_seen: datetime
    last_seen: datetime
    conversation_ids: List[str] = Field(default_factory=list)
