from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import FrozenSet, Literal, Optional, Tuple

Role = Literal["user", "assistant"]
LaneType = Literal["crisis", "greeting", "emotional", "complex"]
RouteType = Literal["crisis", "greeting", "emotional", "complex", "fallback"]
SubsystemId = Literal["crisis-response", "emotion", "memory", "personality", "rag"]
TopicType = Literal["eating_disorder", "gambling", "substance_abuse", "crisis", "meaning_focused", "general"]
CrisisKind = Literal["suicidal", "self_harm", "harm_to_others", "emergency"]
Intensity = Literal["mild", "moderate", "severe"]
RepetitionType = Literal["duplicate_sentence", "similar_phrase", "stutter", "formulaic"]


@dataclass(frozen=True)
class Message:
    text: str
    role: Role
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class RouteDecision:
    lane_type: LaneType
    estimated_time_ms: int
    subsystems_to_engage: FrozenSet[SubsystemId] = frozenset()
    reason: str = ""


@dataclass(frozen=True)
class DetectionResult:
    """Generic detector output. `category` is detector specific (feeling name, demographic, ...)."""

    detected: bool
    category: str
    confidence: float = 0.0
    matched_keywords: Tuple[str, ...] = ()

    @classmethod
    def none(cls, category: str = "none") -> "DetectionResult":
        return cls(detected=False, category=category)


@dataclass(frozen=True)
class Stressor:
    id: str
    name: str
    category: str
    description: str
    age_ranges: FrozenSet[str]
    severity: Intensity
    frequency: str
    keywords: Tuple[str, ...]
    related_stressor_ids: Tuple[str, ...] = ()
    sample_utterances: Tuple[str, ...] = ()
    fact_sheet: Optional[str] = None


@dataclass(frozen=True)
class DetectedStressor:
    stressor: Stressor
    confidence: float
    intensity: Intensity
    matched_keywords: Tuple[str, ...]


@dataclass(frozen=True)
class TopicDetectionResult:
    topic_detected: bool
    topic_type: TopicType
    confidence_score: float
    requires_specialized_processing: bool
    matched_keywords: Tuple[str, ...] = ()
    crisis_kind: Optional[CrisisKind] = None
    secondary_topics: Tuple[TopicType, ...] = ()

    @classmethod
    def general(cls) -> "TopicDetectionResult":
        return cls(
            topic_detected=False,
            topic_type="general",
            confidence_score=0.0,
            requires_specialized_processing=False,
        )


@dataclass(frozen=True)
class RepetitionFinding:
    has_repetition: bool
    repetition_type: Optional[RepetitionType] = None
    score: float = 0.0
    offending_segments: Tuple[str, ...] = ()
    types: Tuple[RepetitionType, ...] = ()


@dataclass(frozen=True)
class ResponseResult:
    text: str
    processing_time_ms: float
    systems_engaged: Tuple[str, ...]
    confidence: float
    route_type: RouteType
    crisis_detected: bool
    topic_type: TopicType = "general"
