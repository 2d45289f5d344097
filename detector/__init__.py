from detector.ai_detector import AIEmotionPartsDetector
from detector.core.models import DetectedItem, DetectedLists, DetectionSummary
from detector.pattern_detector import EmotionPartsDetector
from detector.sessions import DetectionSession, DetectorRegistry, get_registry
from detector.tracking import DetectionSessionTracker

__all__ = [
    "AIEmotionPartsDetector",
    "DetectedItem",
    "DetectedLists",
    "DetectionSession",
    "DetectionSessionTracker",
    "DetectionSummary",
    "DetectorRegistry",
    "EmotionPartsDetector",
    "get_registry",
]
