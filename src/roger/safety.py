"""Safety-resource injection for specialized topics."""

from __future__ import annotations

import logging
from typing import Optional

from .models import TopicDetectionResult, TopicType
from .resources_loader import load_safety_resources

logger = logging.getLogger(__name__)


def resource_line(topic_type: TopicType) -> Optional[str]:
    entry = load_safety_resources().get(topic_type)
    return entry["line"] if entry else None


def already_annotated(text: str, topic_type: TopicType) -> bool:
    """True when `text` already carries one of the topic's guard substrings."""
    entry = load_safety_resources().get(topic_type)
    if not entry:
        return False
    lowered = text.lower()
    return any(guard.lower() in lowered for guard in entry["guards"])


def inject_safety_resources(
    text: str,
    topic: Optional[TopicDetectionResult],
    *,
    force_crisis: bool = False,
) -> str:
    """
    Append the topic's resource line unless the reply already mentions it.

    Idempotent: a second call on its own output finds the guard and returns
    the text unchanged. `force_crisis` adds the crisis line regardless of topic.
    """
    out = text.strip()

    topics = []
    if topic is not None and topic.topic_detected and topic.requires_specialized_processing:
        topics.append(topic.topic_type)
    if force_crisis and "crisis" not in topics:
        topics.insert(0, "crisis")

    for topic_type in topics:
        line = resource_line(topic_type)
        if line is None or already_annotated(out, topic_type):
            continue
        logger.info("Adding %s resource line", topic_type)
        out = f"{out} {line}" if out else line
    return out
