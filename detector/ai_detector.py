from __future__ import annotations

import json
import logging
from collections import deque
from typing import Any, Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import BaseModel, Field, ValidationError, model_validator

from config.settings import get_settings
from detector.core.models import KINDS, DetectedLists
from detector.core.patterns import clean_capture
from detector.core.vocabulary import normalize_emotion
from detector.pattern_detector import EmotionPartsDetector


logger = logging.getLogger("innerspace.detector")


SYSTEM_PROMPT = """You listen to a therapy conversation grounded in Internal Family Systems (IFS).
From the user's latest message, list what they express about themselves:
- emotions: specific feelings, e.g. "Overwhelmed", "Lonely", "Resentful". Prefer a
  specific word over a broad one such as "Sad" or "Angry".
- parts: IFS parts they describe, e.g. "Inner critic", "Manager", "Scared part".
- needs: what they long for, e.g. "Rest", "Connection", "Safety".
Use the user's own words where possible, one or two words per item.
Earlier messages are context only; report what the latest message expresses.
Reply with a JSON object only, no prose:
{{"emotions": [], "parts": [], "needs": []}}"""


def _strip_code_fences(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = stripped[3:]
        if stripped.startswith("json"):
            stripped = stripped[len("json"):].lstrip()
        stripped = stripped.rstrip()
        if stripped.endswith("```"):
            stripped = stripped[:-3]
    return stripped.strip()


def _extract_json_segment(text: str) -> Optional[str]:
    start = text.find("{")
    if start == -1:
        return None
    stack = 0
    for idx in range(start, len(text)):
        ch = text[idx]
        if ch == "{":
            stack += 1
        elif ch == "}":
            stack -= 1
            if stack == 0:
                return text[start: idx + 1]
    return None


class DetectionPayload(BaseModel):
    emotions: List[str] = Field(default_factory=list)
    parts: List[str] = Field(default_factory=list)
    needs: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _coerce_lists(cls, values):
        if not isinstance(values, dict):
            return values
        coerced: Dict[str, Any] = {}
        for key in KINDS:
            value = values.get(key)
            if value is None:
                continue
            if isinstance(value, str):
                value = [value]
            if isinstance(value, list):
                coerced[key] = [item for item in value if isinstance(item, str)]
            else:
                coerced[key] = value
        return coerced


def parse_detection_payload(text: str) -> DetectionPayload:
    """Parse the model reply into a payload; raises ValueError when no JSON object is found."""
    cleaned = _strip_code_fences(text or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        segment = _extract_json_segment(cleaned)
        if not segment:
            raise ValueError(f"No JSON object in model reply: {cleaned[:200]!r}")
        try:
            data = json.loads(segment)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Malformed JSON in model reply: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    try:
        return DetectionPayload(**data)
    except ValidationError as exc:
        raise ValueError(f"Invalid detection payload: {exc}") from exc


def to_lc_messages(history: List[dict]) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    for item in history or []:
        role = (item.get("role") or "").lower()
        content = item.get("content") or ""
        if not content:
            continue
        if role in ("assistant", "ai", "bot"):
            messages.append(AIMessage(content=content))
        else:
            messages.append(HumanMessage(content=content))
    return messages


def _message_text(message: Any) -> str:
    content = getattr(message, "content", message)
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return str(content)


def build_llm() -> ChatGoogleGenerativeAI:
    settings = get_settings()
    if not settings.google_api_key:
        raise RuntimeError(
            "GOOGLE_API_KEY not set. Please configure it in environment or .env"
        )

    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.google_api_key,
        temperature=settings.temperature,
        top_p=settings.top_p,
    )


class AIEmotionPartsDetector(EmotionPartsDetector):
    """Detector that asks an LLM for the emotions, parts and needs in a message.

    Falls back to the regex extraction whenever the model is unavailable or
    its reply cannot be parsed, so callers always get the current totals.
    """

    def __init__(self, llm=None, context_messages: Optional[int] = None) -> None:
        super().__init__()
        if context_messages is None:
            context_messages = get_settings().ai_context_messages
        self._llm = llm
        self._history: deque = deque(maxlen=max(context_messages, 0))
        self._prompt = ChatPromptTemplate.from_messages(
            [
                ("system", SYSTEM_PROMPT),
                MessagesPlaceholder("chat_history", optional=True),
                ("human", "Latest message: {input}"),
            ]
        )

    def _get_llm(self):
        if self._llm is None:
            self._llm = build_llm()
        return self._llm

    def _ask_model(self, text: str) -> DetectionPayload:
        chain = self._prompt | self._get_llm()
        payload: Dict[str, Any] = {"input": text}
        chat_history = to_lc_messages(list(self._history))
        if chat_history:
            payload["chat_history"] = chat_history
        reply = chain.invoke(payload)
        return parse_detection_payload(_message_text(reply))

    def analyze_text(self, text) -> DetectedLists:
        if not text or not isinstance(text, str):
            return self.get_current_lists()

        try:
            payload = self._ask_model(text)
        except Exception as exc:
            logger.warning("AI detection failed, using pattern detection: %s", exc)
            lists = super().analyze_text(text)
        else:
            found = {kind: self._merge(kind, getattr(payload, kind)) for kind in KINDS}
            self._log_summary(found)
            lists = self.get_current_lists()

        if self._history.maxlen:
            self._history.append({"role": "user", "content": text})
        return lists

    def _merge(self, kind: str, terms: List[str]) -> int:
        detected = self._detected[kind]
        new_items = 0
        for raw in terms:
            term = clean_capture(raw)
            if term and kind == "emotions":
                term = normalize_emotion(term) or ""
            if term and term not in detected:
                logger.debug("[%s] model detected %r", kind, term)
                detected.add(term)
                new_items += 1
        return new_items

    def reset(self) -> None:
        self._history.clear()
        super().reset()
