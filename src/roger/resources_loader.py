# roger/resources_loader.py
from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Dict, List

from .config import RESOURCES_DIR


def _resource_path(filename: str):
    path = RESOURCES_DIR / filename
    if not path.exists():
        raise FileNotFoundError(
            f"Expected resource file not found: {path}. "
            "Create it under `roger/resources/` (or set ROGER_RESOURCES_DIR)."
        )
    return path


def _load_json(filename: str) -> Any:
    with open(_resource_path(filename), "r", encoding="utf-8") as f:
        return json.load(f)


def _load_phrases(filename: str) -> List[str]:
    """
    Load a phrase list as lowercase entries.

    - Skips blank lines and lines starting with '#'
    - Strips whitespace
    """
    text = _resource_path(filename).read_text(encoding="utf-8")
    phrases: List[str] = []
    for line in text.splitlines():
        s = line.strip()
        if not s or s.startswith("#"):
            continue
        phrases.append(s.lower())
    return phrases


@lru_cache
def load_stressor_catalog() -> List[Dict[str, Any]]:
    """
    Youth/general stressors (`stressor_*` ids). Each entry carries at least:

    {
      "id": "stressor_001",
      "name": "...",
      "category": "academic|social|family|health|safety|environmental",
      "age_ranges": [...],
      "severity": "mild|moderate|severe",
      "keywords": [...]
    }
    """
    return _load_json("stressors.json")


@lru_cache
def load_adult_stressor_catalog() -> List[Dict[str, Any]]:
    """Adult stressors (`adult_stressor_*` ids), same schema as the youth catalog."""
    return _load_json("adult_stressors.json")


@lru_cache
def load_stressor_responses() -> Dict[str, Any]:
    """
    Expects JSON like:

    {
      "by_id": {"stressor_001": {"base": "...", "severe": "...", "follow_up": "..."}},
      "by_category": {"academic": {"base": "...", "follow_up": "..."}},
      "severe_follow_up": "...",
      "default": {"base": "...", "follow_up": "..."}
    }
    """
    return _load_json("stressor_responses.json")


@lru_cache
def load_specialized_topics() -> Dict[str, Any]:
    """Regex families per specialized topic, evaluation order and crisis sub-kinds."""
    return _load_json("specialized_topics.json")


@lru_cache
def load_safety_resources() -> Dict[str, Dict[str, Any]]:
    """
    Expects JSON mapping topic_type → {"line": "...", "guards": [...]}.
    A line is appended only when none of its guards already appear in the reply.
    """
    return _load_json("safety_resources.json")


@lru_cache
def load_feelings() -> Dict[str, Any]:
    """Feeling keyword families, intensifiers and reflection lines."""
    return _load_json("feelings.json")


@lru_cache
def load_ohio_context() -> Dict[str, Any]:
    """Cleveland/Ohio reference lists and reference → engaging question pools."""
    return _load_json("ohio.json")


@lru_cache
def load_response_pools() -> Dict[str, List[str]]:
    """Named pools of reply lines (greetings, crisis, generic listening, ...)."""
    return _load_json("responses.json")


@lru_cache
def load_small_talk() -> Dict[str, Any]:
    """Small-talk topic patterns, waiting-room cues and demographic signals."""
    return _load_json("small_talk.json")


@lru_cache
def load_greeting_phrases() -> List[str]:
    return _load_phrases("greetings.txt")


@lru_cache
def load_intensity_markers() -> Dict[str, List[str]]:
    return {
        "severe": _load_phrases("severe_markers.txt"),
        "mild": _load_phrases("mild_markers.txt"),
    }
