"""Greetings, small talk, waiting-room cues and demographic signals."""

from __future__ import annotations

import random
import re
from functools import lru_cache
from typing import Dict, List, Optional, Pattern, Sequence, Tuple

from ..config import GREETING_MAX_CHARS, SMALL_TALK_MAX_MESSAGES, SMALL_TALK_MAX_WORDS
from ..models import DetectionResult
from ..resources_loader import load_greeting_phrases, load_small_talk
from ..scoring import DEMOGRAPHIC_WEIGHTS, keyword_confidence
from . import compile_patterns, guarded_detector, normalize

_TRAILING = re.compile(r"[\s.!?,]+$")


@lru_cache
def _topic_patterns() -> Tuple[Tuple[str, Pattern[str], str], ...]:
    topics = load_small_talk()["topics"]
    return tuple(
        (name, re.compile(spec["pattern"], re.IGNORECASE), spec["response"])
        for name, spec in topics.items()
    )


@lru_cache
def _single_pattern(section: str) -> Pattern[str]:
    return re.compile(load_small_talk()[section]["pattern"], re.IGNORECASE)


@lru_cache
def _demographic_patterns() -> Dict[str, List[Pattern[str]]]:
    return {group: compile_patterns(p) for group, p in load_small_talk()["demographics"].items()}


@guarded_detector(lambda: False)
def is_greeting(text: str) -> bool:
    """Short whole-message greeting such as "hi" or "good morning!"."""
    stripped = (text or "").strip()
    if not stripped or len(stripped) >= GREETING_MAX_CHARS:
        return False
    core = _TRAILING.sub("", normalize(stripped))
    return core in load_greeting_phrases()


@guarded_detector(lambda: False)
def is_waiting_room_related(text: str) -> bool:
    return bool(_single_pattern("waiting_room").search(normalize(text)))


@guarded_detector(lambda: False)
def detect_social_overstimulation(text: str) -> bool:
    return bool(_single_pattern("overstimulation").search(normalize(text)))


@guarded_detector(DetectionResult.none)
def detect_small_talk(text: str) -> DetectionResult:
    """Which everyday topic, if any, the message is about."""
    norm = normalize(text)
    if not norm:
        return DetectionResult.none()
    if is_greeting(norm):
        return DetectionResult(True, "greeting", 0.9, (norm,))
    if detect_social_overstimulation(norm):
        return DetectionResult(True, "overstimulation", 0.8)
    if is_waiting_room_related(norm):
        return DetectionResult(True, "waiting_room", 0.75)
    for name, pattern, _ in _topic_patterns():
        m = pattern.search(norm)
        if m:
            return DetectionResult(True, name, 0.6, (m.group(0),))
    hits = tuple(i for i in load_small_talk()["indicators"] if i in norm)
    if hits:
        return DetectionResult(True, "chit_chat", 0.5, hits)
    return DetectionResult.none()


def should_use_small_talk(text: str, message_count: int) -> bool:
    """Early, brief, non-question messages get a light conversational reply."""
    norm = normalize(text)
    if not norm or message_count > SMALL_TALK_MAX_MESSAGES:
        return False
    brief = len(norm.split()) <= SMALL_TALK_MAX_WORDS and "?" not in norm
    return brief or detect_small_talk(norm).detected


@guarded_detector(DetectionResult.none)
def detect_demographic(text: str) -> DetectionResult:
    """Best-guess audience (child, teen, newcomer, elder) from language cues."""
    norm = normalize(text)
    best = DetectionResult.none()
    for group, patterns in _demographic_patterns().items():
        hits = tuple(m.group(0) for p in patterns for m in [p.search(norm)] if m)
        if not hits:
            continue
        confidence = keyword_confidence(DEMOGRAPHIC_WEIGHTS, len(hits))
        if confidence > best.confidence:
            best = DetectionResult(True, group, confidence, hits)
    return best


def detect_audience(text: str, history: Sequence[str] = ()) -> Optional[str]:
    """Demographic group over the conversation so far (child, teen, newcomer, elder) or None."""
    result = detect_demographic(" ".join(t for t in (*history, text) if t))
    return result.category if result.detected else None


# -------------------------
# Replies
# -------------------------
def small_talk_response(
    result: DetectionResult,
    rng: random.Random,
    *,
    audience: Optional[str] = None,
) -> Optional[str]:
    if not result.detected:
        return None
    data = load_small_talk()
    if audience == "child" and data["child_responses"].get(result.category):
        return rng.choice(data["child_responses"][result.category])
    if result.category == "overstimulation":
        return rng.choice(data["overstimulation"]["responses"])
    if result.category == "waiting_room":
        return rng.choice(data["waiting_room"]["responses"])
    for name, _, response in _topic_patterns():
        if name == result.category:
            return response
    if result.category == "chit_chat":
        return "Sometimes these everyday conversations help us connect. What's been on your mind lately?"
    return None
