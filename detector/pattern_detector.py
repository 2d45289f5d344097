from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Set

from detector.core.models import KINDS, DetectedLists
from detector.core.patterns import PATTERNS_BY_KIND, clean_capture


logger = logging.getLogger("innerspace.detector")

DetectionCallback = Callable[[DetectedLists], None]


class EmotionPartsDetector:
    """Accumulates emotions, IFS parts and needs mentioned in a conversation.

    Captures are kept close to what the speaker actually said: each match is
    only trimmed, lower-cased, capitalised and cut to two words.
    """

    def __init__(self) -> None:
        self._detected: Dict[str, Set[str]] = {kind: set() for kind in KINDS}

    def analyze_text(self, text) -> DetectedLists:
        if not text or not isinstance(text, str):
            return self.get_current_lists()

        logger.debug(
            "Analyzing text: %s%s", text[:100], "..." if len(text) > 100 else ""
        )
        found = {kind: self._extract(kind, text) for kind in KINDS}
        self._log_summary(found)
        return self.get_current_lists()

    def _extract(self, kind: str, text: str) -> int:
        detected = self._detected[kind]
        new_items = 0
        for index, pattern in enumerate(PATTERNS_BY_KIND[kind], start=1):
            for match in pattern.finditer(text):
                if not match.group(1):
                    continue
                term = clean_capture(match.group(1))
                if term and term not in detected:
                    logger.debug(
                        "[%s] pattern %s detected %r from %r",
                        kind, index, term, match.group(0),
                    )
                    detected.add(term)
                    new_items += 1
        return new_items

    def _log_summary(self, found: Dict[str, int]) -> None:
        if any(found.values()):
            logger.info(
                "Detection summary: %s emotions, %s parts, %s needs",
                found["emotions"], found["parts"], found["needs"],
            )
        else:
            logger.debug("No new items detected in this text")

    def get_current_lists(self) -> DetectedLists:
        return DetectedLists(
            emotions=sorted(self._detected["emotions"]),
            parts=sorted(self._detected["parts"]),
            needs=sorted(self._detected["needs"]),
        )

    def add_message(
        self, content, on_detection_update: Optional[DetectionCallback] = None
    ) -> DetectedLists:
        lists = self.analyze_text(content)
        logger.info("Current totals: %s", lists.counts())
        if on_detection_update is not None:
            on_detection_update(lists)
        return lists

    def reset(self) -> None:
        cleared = {kind: len(items) for kind, items in self._detected.items()}
        for items in self._detected.values():
            items.clear()
        logger.info("Detection reset, cleared %s", cleared)

    def add_item(self, kind: str, name: str) -> None:
        name = name.strip()
        if name:
            self._detected[kind].add(name)

    def remove_item(self, kind: str, name: str) -> None:
        self._detected[kind].discard(name.strip())

    def add_emotion(self, emotion: str) -> None:
        self.add_item("emotions", emotion)

    def add_part(self, part: str) -> None:
        self.add_item("parts", part)

    def add_need(self, need: str) -> None:
        self.add_item("needs", need)

    def remove_emotion(self, emotion: str) -> None:
        self.remove_item("emotions", emotion)

    def remove_part(self, part: str) -> None:
        self.remove_item("parts", part)

    def remove_need(self, need: str) -> None:
        self.remove_item("needs", need)
