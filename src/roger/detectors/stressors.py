"""Stressor catalogs, detection, and stressor-specific replies."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import PRIMARY_STRESSOR_THRESHOLD
from ..models import DetectedStressor, Intensity, Stressor
from ..resources_loader import (
    load_adult_stressor_catalog,
    load_intensity_markers,
    load_stressor_catalog,
    load_stressor_responses,
)
from ..scoring import STRESSOR_WEIGHTS, keyword_confidence
from . import guarded_detector, normalize

logger = logging.getLogger(__name__)

ADULT_PREFIX = "adult_"


def _to_stressor(entry: Dict[str, Any]) -> Stressor:
    return Stressor(
        id=entry["id"],
        name=entry["name"],
        category=entry["category"],
        description=entry.get("description", ""),
        age_ranges=frozenset(entry.get("age_ranges", ())),
        severity=entry.get("severity", "moderate"),
        frequency=entry.get("frequency", "common"),
        keywords=tuple(k.lower() for k in entry["keywords"]),
        related_stressor_ids=tuple(entry.get("related_stressor_ids", ())),
        sample_utterances=tuple(entry.get("sample_utterances", ())),
        fact_sheet=entry.get("fact_sheet"),
    )


@lru_cache
def general_catalog() -> Dict[str, Stressor]:
    return {s.id: s for s in map(_to_stressor, load_stressor_catalog())}


@lru_cache
def adult_catalog() -> Dict[str, Stressor]:
    return {s.id: s for s in map(_to_stressor, load_adult_stressor_catalog())}


def all_stressors() -> Tuple[Stressor, ...]:
    return (*general_catalog().values(), *adult_catalog().values())


def get_stressor_by_id(stressor_id: str) -> Optional[Stressor]:
    """Lookups dispatch on the id prefix; the two catalogs never share ids."""
    catalog = adult_catalog() if stressor_id.startswith(ADULT_PREFIX) else general_catalog()
    return catalog.get(stressor_id)


def get_stressors_by_category(category: str) -> List[Stressor]:
    return [s for s in all_stressors() if s.category == category]


def find_related_stressors(stressor_id: str) -> List[Stressor]:
    stressor = get_stressor_by_id(stressor_id)
    if stressor is None:
        return []
    related = (get_stressor_by_id(rid) for rid in stressor.related_stressor_ids)
    return [s for s in related if s is not None]


def contains_stressor_keywords(text: str) -> bool:
    norm = normalize(text)
    return any(k in norm for s in all_stressors() for k in s.keywords)


def determine_intensity(text: str, stressor: Stressor) -> Intensity:
    """Severe markers win over mild ones; otherwise fall back to the catalog severity."""
    norm = normalize(text)
    markers = load_intensity_markers()
    if any(m in norm for m in markers["severe"]):
        return "severe"
    if any(m in norm for m in markers["mild"]):
        return "mild"
    return stressor.severity


@guarded_detector(tuple)
def detect_stressors(text: str) -> Tuple[DetectedStressor, ...]:
    """All catalog stressors whose keywords occur in `text`, most confident first."""
    norm = normalize(text)
    if not norm:
        return ()

    detected: List[DetectedStressor] = []
    for stressor in all_stressors():
        matched = tuple(k for k in stressor.keywords if k in norm)
        if not matched:
            continue
        detected.append(
            DetectedStressor(
                stressor=stressor,
                confidence=keyword_confidence(STRESSOR_WEIGHTS, len(matched), total=len(stressor.keywords)),
                intensity=determine_intensity(norm, stressor),
                matched_keywords=matched,
            )
        )

    # stable sort keeps catalog order among equal scores
    detected.sort(key=lambda d: d.confidence, reverse=True)
    return tuple(detected)


def get_primary_stressor(
    text: str,
    detected: Optional[Sequence[DetectedStressor]] = None,
) -> Optional[DetectedStressor]:
    """Top detection, but only when it clears the precision bar."""
    ranked = detect_stressors(text) if detected is None else detected
    if ranked and ranked[0].confidence > PRIMARY_STRESSOR_THRESHOLD:
        return ranked[0]
    return None


# -------------------------
# Responses
# -------------------------
def _base_response(stressor: Stressor, intensity: Intensity) -> str:
    table = load_stressor_responses()
    specific = table["by_id"].get(stressor.id)
    if specific:
        if intensity == "severe" and specific.get("severe"):
            return specific["severe"]
        return specific["base"]
    return table["by_category"].get(stressor.category, table["default"])["base"]


def _follow_up(stressor: Stressor, intensity: Intensity) -> str:
    table = load_stressor_responses()
    if intensity == "severe":
        return table["severe_follow_up"]
    specific = table["by_id"].get(stressor.id)
    if specific and specific.get("follow_up"):
        return specific["follow_up"]
    return table["by_category"].get(stressor.category, table["default"])["follow_up"]


def generate_stressor_response(detected: DetectedStressor, *, follow_up: Optional[str] = None) -> str:
    """Stressor acknowledgement plus a follow-up question (`follow_up` replaces the catalog one)."""
    question = follow_up or _follow_up(detected.stressor, detected.intensity)
    return f"{_base_response(detected.stressor, detected.intensity)} {question}"


def co_occurring_stressor_response(primary: DetectedStressor, secondary: DetectedStressor) -> str:
    return load_stressor_responses()["co_occurring"].format(
        primary=primary.stressor.name.lower(),
        secondary=secondary.stressor.name.lower(),
    )


def related_stressor_response(stressor_id: str) -> Optional[str]:
    related = find_related_stressors(stressor_id)
    if not related:
        return None
    return load_stressor_responses()["related"].format(related=related[0].name.lower())
