from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from config.settings import get_settings
from detector.ai_detector import AIEmotionPartsDetector
from detector.core.models import KINDS, DetectedLists, DetectionSummary
from detector.pattern_detector import EmotionPartsDetector
from detector.tracking import DetectionSessionTracker


logger = logging.getLogger("innerspace.detector")

DETECTION_MODES = ("pattern", "ai")


def build_detector(mode: str) -> EmotionPartsDetector:
    if mode == "ai":
        return AIEmotionPartsDetector()
    if mode == "pattern":
        return EmotionPartsDetector()
    raise ValueError(f"Unknown detection mode: {mode!r} (expected one of {DETECTION_MODES})")


class DetectionSession:
    """One conversation's detector and tracker.

    Message analysis, mode switches and resets hold the session lock, so a
    switch never copies lists that a running analysis is still changing.
    """

    def __init__(self, conversation_id: str, detector: EmotionPartsDetector, mode: str) -> None:
        self.conversation_id = conversation_id
        self.detector = detector
        self.mode = mode
        self.tracker = DetectionSessionTracker(conversation_id)
        self._lock = threading.RLock()

    def add_message(self, content) -> DetectedLists:
        with self._lock:
            return self.detector.add_message(content)

    def add_item(self, kind: str, name: str) -> DetectedLists:
        with self._lock:
            self.detector.add_item(kind, name)
            return self.detector.get_current_lists()

    def remove_item(self, kind: str, name: str) -> DetectedLists:
        with self._lock:
            self.detector.remove_item(kind, name)
            return self.detector.get_current_lists()

    def summaries(self, lists: DetectedLists) -> List[DetectionSummary]:
        summaries: List[DetectionSummary] = []
        with self._lock:
            for kind in KINDS:
                summaries.extend(
                    self.tracker.summarize(kind, getattr(lists, kind), self.conversation_id)
                )
        return summaries

    def switch_mode(self, mode: str) -> None:
        """Swap the detector implementation, carrying over what was already detected."""
        with self._lock:
            if mode == self.mode:
                return
            replacement = build_detector(mode)
            current = self.detector.get_current_lists()
            for kind in KINDS:
                for name in getattr(current, kind):
                    replacement.add_item(kind, name)
            self.detector = replacement
            self.mode = mode

    def reset(self) -> None:
        with self._lock:
            self.detector.reset()
            self.tracker.reset()


class DetectorRegistry:
    """Maps conversation ids to their detection sessions."""

    def __init__(self, default_mode: Optional[str] = None) -> None:
        self._default_mode = default_mode
        self._sessions: Dict[str, DetectionSession] = {}
        self._lock = threading.Lock()

    @property
    def default_mode(self) -> str:
        return self._default_mode or get_settings().detection_mode

    def get(self, conversation_id: str, mode: Optional[str] = None) -> DetectionSession:
        with self._lock:
            session = self._sessions.get(conversation_id)
            if session is None:
                mode = mode or self.default_mode
                session = DetectionSession(conversation_id, build_detector(mode), mode)
                self._sessions[conversation_id] = session
                logger.info("Started %s detection for conversation %s", mode, conversation_id)
            elif mode:
                session.switch_mode(mode)
        return session

    def find(self, conversation_id: str) -> Optional[DetectionSession]:
        return self._sessions.get(conversation_id)

    def reset(self, conversation_id: str) -> bool:
        session = self._sessions.get(conversation_id)
        if session is None:
            return False
        session.reset()
        return True

    def discard(self, conversation_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(conversation_id, None) is not None

    def conversation_ids(self) -> List[str]:
        return sorted(self._sessions)


_registry: Optional[DetectorRegistry] = None


def get_registry() -> DetectorRegistry:
    global _registry
    if _registry is None:
        _registry = DetectorRegistry()
    return _registry
