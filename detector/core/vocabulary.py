"""Emotion wheel and category tables used to label detected terms.

The wheel has seven core emotions, each with a middle ring, each middle
emotion with an outer ring. Core emotions are considered too broad to log on
their own; middle and outer emotions are the specific vocabulary.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional


logger = logging.getLogger("innerspace.detector")


CORE_EMOTIONS = frozenset(
    {"Angry", "Disgusted", "Sad", "Happy", "Surprised", "Bad", "Fearful"}
)

EMOTION_WHEEL: Dict[str, Dict[str, List[str]]] = {
    "Angry": {
        "Let Down": ["Betrayed", "Resentful"],
        "Humiliated": ["Disrespected", "Ridiculed"],
        "Bitter": ["Indignant", "Violated"],
        "Mad": ["Furious", "Jealous"],
        "Aggressive": ["Provoked", "Hostile"],
        "Frustrated": ["Infuriated", "Annoyed"],
        "Distant": ["Withdrawn", "Numb"],
        "Critical": ["Skeptical", "Dismissive"],
    },
    "Disgusted": {
        "Disapproving": ["Judgmental", "Embarrassed"],
        "Disappointed": ["Appalled", "Revolted"],
        "Awful": ["Nauseated", "Detestable"],
        "Repelled": ["Horrified", "Hesitant"],
    },
    "Sad": {
        "Hurt": ["Embarrassed", "Disappointed"],
        "Depressed": ["Inferior", "Empty"],
        "Guilty": ["Remorseful", "Ashamed"],
        "Despair": ["Powerless", "Grief"],
        "Vulnerable": ["Fragile", "Victimized"],
        "Lonely": ["Isolated", "Abandoned"],
    },
    "Happy": {
        "Optimistic": ["Inspired", "Hopeful"],
        "Intimate": ["Sensitive", "Loving"],
        "Peaceful": ["Thankful", "Content"],
        "Powerful": ["Creative", "Courageous"],
        "Accepted": ["Valued", "Respected"],
        "Proud": ["Confident", "Successful"],
        "Interested": ["Inquisitive", "Curious"],
        "Joyful": ["Free", "Excited"],
    },
    "Surprised": {
        "Startled": ["Shocked", "Dismayed"],
        "Confused": ["Disillusioned", "Perplexed"],
        "Amazed": ["Awe", "Astonished"],
        "Excited": ["Eager", "Energetic"],
    },
    "Bad": {
        "Bored": ["Indifferent", "Apathetic"],
        "Busy": ["Pressured", "Rushed"],
        "Stressed": ["Overwhelmed", "Out of control"],
        "Tired": ["Sleepy", "Unfocussed"],
    },
    "Fearful": {
        "Scared": ["Helpless", "Frightened"],
        "Anxious": ["Overwhelmed", "Worried"],
        "Insecure": ["Inadequate", "Inferior"],
        "Weak": ["Worthless", "Insignificant"],
        "Rejected": ["Excluded", "Persecuted"],
        "Threatened": ["Nervous", "Exposed"],
    },
}

VALID_SPECIFIC_EMOTIONS = frozenset(
    term
    for middle_ring in EMOTION_WHEEL.values()
    for middle, outer in middle_ring.items()
    for term in [middle, *outer]
)

_SPECIFIC_BY_LOWER = {term.lower(): term for term in VALID_SPECIFIC_EMOTIONS}


def _title_first(value: str) -> str:
    return value[:1].upper() + value[1:].lower()


def is_valid_specific_emotion(emotion) -> bool:
    if not emotion or not isinstance(emotion, str):
        return False

    normalized = _title_first(emotion)
    if normalized in CORE_EMOTIONS:
        logger.debug("Rejected core emotion (too broad): %r", emotion)
        return False
    if emotion.lower() in _SPECIFIC_BY_LOWER:
        return True

    logger.debug("Unknown emotion (not on the wheel): %r", emotion)
    return False


def normalize_emotion(emotion) -> Optional[str]:
    """Return the wheel spelling of ``emotion``, or a capitalised copy if unknown."""
    if not emotion or not isinstance(emotion, str):
        return None
    return _SPECIFIC_BY_LOWER.get(emotion.lower(), _title_first(emotion))


def needs_clarification(emotion: str) -> bool:
    return _title_first(emotion) in CORE_EMOTIONS


def emotions_for_clarification(core_emotion: str) -> List[str]:
    return list(EMOTION_WHEEL.get(_title_first(core_emotion), {}))


EMOTION_CATEGORIES: Dict[str, str] = {}
for _category, _names in {
    "joy": ["joy", "happiness", "delight", "bliss", "contentment", "elation",
            "euphoria", "excitement", "cheerfulness", "gratitude"],
    "sadness": ["sadness", "sorrow", "grief", "melancholy", "despair", "depression",
                "loneliness", "disappointment", "hurt", "pain"],
    "fear": ["fear", "anxiety", "worry", "nervousness", "panic", "terror",
             "apprehension", "dread", "overwhelm", "stress"],
    "anger": ["anger", "rage", "fury", "irritation", "annoyance", "frustration",
              "resentment", "hostility", "indignation", "outrage"],
    "surprise": ["surprise", "astonishment", "amazement", "wonder", "bewilderment",
                 "confusion", "shock"],
    "disgust": ["disgust", "revulsion", "loathing", "contempt", "disdain", "aversion"],
    "love": ["love", "affection", "compassion", "tenderness", "fondness", "adoration",
             "warmth", "caring"],
    "anticipation": ["anticipation", "hope", "expectation", "eagerness", "optimism",
                     "curiosity", "interest"],
}.items():
    for _name in _names:
        EMOTION_CATEGORIES[_name] = _category

PART_CATEGORIES: Dict[str, str] = {}
for _category, _names in {
    "manager": ["critical", "perfectionist", "controller", "caretaker", "achiever",
                "pleaser", "organizer", "responsible", "logical"],
    "firefighter": ["rebellious", "addictive", "aggressive", "impulsive", "escapist",
                    "reactive", "protective"],
    "exile": ["inner child", "wounded", "abandoned", "rejected", "hurt", "vulnerable",
              "creative", "playful", "innocent"],
}.items():
    for _name in _names:
        PART_CATEGORIES[_name] = _category

NEED_CATEGORIES: Dict[str, str] = {}
for _category, _names in {
    "safety": ["security", "stability", "predictability", "protection", "trust"],
    "connection": ["love", "belonging", "intimacy", "community", "understanding",
                   "acceptance", "companionship"],
    "autonomy": ["freedom", "independence", "choice", "space", "authenticity",
                 "self-expression"],
    "recognition": ["appreciation", "acknowledgment", "respect", "validation", "visibility"],
    "meaning": ["purpose", "contribution", "legacy", "spirituality", "values"],
    "growth": ["learning", "challenge", "creativity", "discovery", "progress"],
}.items():
    for _name in _names:
        NEED_CATEGORIES[_name] = _category


def emotion_category(name: str) -> str:
    return EMOTION_CATEGORIES.get(name.lower().strip(), "neutral")


def part_category(name: str) -> str:
    return PART_CATEGORIES.get(name.lower().strip(), "manager")


def need_category(name: str) -> str:
    return NEED_CATEGORIES.get(name.lower().strip(), "connection")


CATEGORY_LOOKUP = {
    "emotions": emotion_category,
    "parts": part_category,
    "needs": need_category,
}


def category_for(kind: str, name: str) -> str:
    return CATEGORY_LOOKUP[kind](name)
