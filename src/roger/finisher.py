from __future__ import annotations

import logging
from typing import Optional

from .config import FALLBACK_TEXT
from .models import TopicDetectionResult
from .repetition import fix_harmful_repetitions
from .safety import inject_safety_resources

logger = logging.getLogger(__name__)


def finish_response(
    draft: str,
    topic: Optional[TopicDetectionResult] = None,
    *,
    force_crisis_resources: bool = False,
) -> str:
    """Repetition guard, then safety resources, then a non-empty guarantee."""
    try:
        text = fix_harmful_repetitions(draft)
    except Exception:
        logger.exception("Repetition guard failed; using unguarded draft")
        text = (draft or "").strip()

    if not text:
        logger.warning("Empty draft reached the finisher; using fallback text")
        text = FALLBACK_TEXT

    return inject_safety_resources(text, topic, force_crisis=force_crisis_resources)
