"""Specialized-topic detection: crisis, eating disorder, gambling, substance abuse, meaning."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict, List, Optional, Pattern, Tuple

from ..config import SPECIALIZED_CONFIDENCE_THRESHOLD
from ..models import CrisisKind, TopicDetectionResult, TopicType
from ..resources_loader import load_specialized_topics
from ..scoring import TOPIC_WEIGHTS, keyword_confidence
from . import compile_patterns, guarded_detector, normalize

logger = logging.getLogger(__name__)


@lru_cache
def _families() -> Dict[str, List[Pattern[str]]]:
    data = load_specialized_topics()
    return {name: compile_patterns(patterns) for name, patterns in data["families"].items()}


@lru_cache
def _crisis_kinds() -> Tuple[Tuple[CrisisKind, Pattern[str]], ...]:
    kinds = load_specialized_topics()["crisis_kinds"]
    return tuple(zip(kinds.keys(), compile_patterns(kinds.values())))


@lru_cache
def _fast_path_kinds() -> frozenset:
    return frozenset(load_specialized_topics().get("fast_path_kinds", ()))


def _match_family(text: str, patterns: List[Pattern[str]]) -> Tuple[int, Tuple[str, ...]]:
    """Return (number of pattern groups that matched, matched phrases)."""
    groups = 0
    phrases: List[str] = []
    for pattern in patterns:
        hits = [m.group(0) for m in pattern.finditer(text)]
        if hits:
            groups += 1
            phrases.extend(h for h in hits if h not in phrases)
    return groups, tuple(phrases)


def _crisis_kind(text: str) -> Optional[CrisisKind]:
    for kind, pattern in _crisis_kinds():
        if pattern.search(text):
            return kind
    return None


@guarded_detector(TopicDetectionResult.general, critical=True)
def detect_specialized_topic(text: str) -> TopicDetectionResult:
    """
    Classify `text` into one specialized topic.

    The crisis family is evaluated first and unconditionally: if it matches,
    the result is crisis no matter which other families also match. The
    remaining families keep their fixed order and the first match wins; any
    other matching families are reported in `secondary_topics`.
    """
    norm = normalize(text)
    if not norm:
        return TopicDetectionResult.general()

    families = _families()
    order: List[TopicType] = list(load_specialized_topics()["order"])

    matches: Dict[TopicType, Tuple[int, Tuple[str, ...]]] = {}
    for topic in ["crisis", *order]:
        groups, phrases = _match_family(norm, families[topic])
        if groups:
            matches[topic] = (groups, phrases)

    if not matches:
        return TopicDetectionResult.general()

    topic: TopicType = "crisis" if "crisis" in matches else next(t for t in order if t in matches)
    groups, phrases = matches[topic]
    confidence = keyword_confidence(TOPIC_WEIGHTS, groups, text_length=len(text))
    secondary = tuple(t for t in order if t in matches and t != topic)

    if topic == "crisis":
        kind = _crisis_kind(norm)
        if secondary:
            logger.info("Crisis overrides co-occurring topics %s", ", ".join(secondary))
        return TopicDetectionResult(
            topic_detected=True,
            topic_type="crisis",
            confidence_score=confidence,
            requires_specialized_processing=True,
            matched_keywords=phrases,
            crisis_kind=kind,
            secondary_topics=secondary,
        )

    return TopicDetectionResult(
        topic_detected=True,
        topic_type=topic,
        confidence_score=confidence,
        requires_specialized_processing=confidence > SPECIALIZED_CONFIDENCE_THRESHOLD,
        matched_keywords=phrases,
        secondary_topics=secondary,
    )


def is_fast_path_crisis(result: TopicDetectionResult) -> bool:
    """Explicit suicide/self-harm language takes the optimized crisis path."""
    return result.topic_type == "crisis" and result.crisis_kind in _fast_path_kinds()
