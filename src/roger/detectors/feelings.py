from __future__ import annotations

import random
from functools import lru_cache
from typing import Dict, List, Optional, Pattern, Tuple

from ..models import DetectionResult
from ..resources_loader import load_feelings
from ..scoring import FEELING_WEIGHTS, keyword_confidence
from . import guarded_detector, normalize, phrase_pattern


@lru_cache
def _feeling_patterns() -> Dict[str, Tuple[Tuple[str, Pattern[str]], ...]]:
    families = load_feelings()["families"]
    return {
        feeling: tuple((word, phrase_pattern(word)) for word in words)
        for feeling, words in families.items()
    }


@lru_cache
def _intensifier_patterns() -> Tuple[Pattern[str], ...]:
    return tuple(phrase_pattern(w) for w in load_feelings()["intensifiers"])


def is_intensified(text: str) -> bool:
    norm = normalize(text)
    return any(p.search(norm) for p in _intensifier_patterns())


def detect_all_feelings(text: str) -> List[DetectionResult]:
    """Every feeling family with at least one whole-word hit, strongest first."""
    norm = normalize(text)
    if not norm:
        return []

    intensified = is_intensified(norm)
    results: List[DetectionResult] = []
    for feeling, patterns in _feeling_patterns().items():
        matched = tuple(word for word, pattern in patterns if pattern.search(norm))
        if matched:
            results.append(
                DetectionResult(
                    detected=True,
                    category=feeling,
                    confidence=keyword_confidence(FEELING_WEIGHTS, len(matched), intensified=intensified),
                    matched_keywords=matched,
                )
            )
    results.sort(key=lambda r: r.confidence, reverse=True)
    return results


@guarded_detector(DetectionResult.none)
def detect_feelings(text: str) -> DetectionResult:
    """Primary feeling expressed in `text`, or a not-detected result."""
    found = detect_all_feelings(text)
    return found[0] if found else DetectionResult.none()


def reflect_feeling(result: DetectionResult, rng: random.Random, *, intense: bool = False) -> Optional[str]:
    if not result.detected:
        return None
    data = load_feelings()
    pool = data["reflections"].get(result.category)
    if not pool:
        return None
    line = rng.choice(pool)
    return f"{data['intense_prefix']} {line}" if intense else line
