"""
Router: picks the processing lane and latency budget for one user message.

Priority, first match wins:
  crisis    → specialized-topic crisis family fired (never skipped)
  greeting  → short whole-message greeting
  emotional → stressor or feeling confidence above threshold
  complex   → everything else
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Sequence, Tuple

from . import config
from .detectors import normalize
from .detectors.feelings import detect_feelings
from .detectors.small_talk import is_greeting
from .detectors.specialized import detect_specialized_topic, is_fast_path_crisis
from .detectors.stressors import detect_stressors
from .models import DetectedStressor, DetectionResult, RouteDecision, SubsystemId, TopicDetectionResult

logger = logging.getLogger(__name__)

CRISIS_SUBSYSTEMS: FrozenSet[SubsystemId] = frozenset({"crisis-response"})
GREETING_SUBSYSTEMS: FrozenSet[SubsystemId] = frozenset()
EMOTIONAL_SUBSYSTEMS: FrozenSet[SubsystemId] = frozenset({"emotion", "memory", "personality"})
COMPLEX_SUBSYSTEMS: FrozenSet[SubsystemId] = frozenset({"emotion", "memory", "personality", "rag"})


@dataclass(frozen=True)
class Signals:
    """Detector outputs computed while routing, reused by the lane executors."""

    topic: TopicDetectionResult = field(default_factory=TopicDetectionResult.general)
    stressors: Tuple[DetectedStressor, ...] = ()
    feeling: DetectionResult = field(default_factory=DetectionResult.none)

    @property
    def emotional_confidence(self) -> float:
        top_stressor = self.stressors[0].confidence if self.stressors else 0.0
        return max(top_stressor, self.feeling.confidence)


def _is_first_message(history: Sequence[str]) -> bool:
    return not any((h or "").strip() for h in history)


def classify(text: str, history: Sequence[str] = ()) -> Tuple[RouteDecision, Signals]:
    """Route `text` and return the detector signals the decision was based on."""
    norm = normalize(text)

    if not norm:
        # neutral fast path for empty input
        budget = config.GREETING_FIRST_BUDGET_MS if _is_first_message(history) else config.GREETING_BUDGET_MS
        return RouteDecision("greeting", budget, GREETING_SUBSYSTEMS, reason="empty_input"), Signals()

    # Crisis check first; nothing else may delay it.
    topic = detect_specialized_topic(text)
    if topic.topic_type == "crisis":
        fast = is_fast_path_crisis(topic)
        budget = config.CRISIS_FAST_BUDGET_MS if fast else config.CRISIS_STANDARD_BUDGET_MS
        logger.warning("Crisis route (%s): %s", topic.crisis_kind, ", ".join(topic.matched_keywords))
        return (
            RouteDecision("crisis", budget, CRISIS_SUBSYSTEMS, reason=f"crisis:{topic.crisis_kind}"),
            Signals(topic=topic),
        )

    if is_greeting(text):
        budget = config.GREETING_FIRST_BUDGET_MS if _is_first_message(history) else config.GREETING_BUDGET_MS
        return RouteDecision("greeting", budget, GREETING_SUBSYSTEMS, reason="greeting"), Signals(topic=topic)

    signals = Signals(topic=topic, stressors=detect_stressors(text), feeling=detect_feelings(text))
    if signals.emotional_confidence > config.EMOTIONAL_CONFIDENCE_THRESHOLD:
        return (
            RouteDecision("emotional", config.EMOTIONAL_BUDGET_MS, EMOTIONAL_SUBSYSTEMS, reason="emotional"),
            signals,
        )

    return RouteDecision("complex", config.COMPLEX_BUDGET_MS, COMPLEX_SUBSYSTEMS, reason="default"), signals


def route(text: str, history: Sequence[str] = ()) -> RouteDecision:
    decision, _ = classify(text, history)
    return decision


def lane_budget_ms(lane: str, *, first_message: bool = False, fast_crisis: bool = True) -> Optional[int]:
    """Nominal budget for a lane, used by callers that schedule work ahead of routing."""
    if lane == "crisis":
        return config.CRISIS_FAST_BUDGET_MS if fast_crisis else config.CRISIS_STANDARD_BUDGET_MS
    if lane == "greeting":
        return config.GREETING_FIRST_BUDGET_MS if first_message else config.GREETING_BUDGET_MS
    if lane == "emotional":
        return config.EMOTIONAL_BUDGET_MS
    if lane == "complex":
        return config.COMPLEX_BUDGET_MS
    return None
