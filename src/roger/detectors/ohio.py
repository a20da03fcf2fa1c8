"""Cleveland / Ohio local-context references."""

from __future__ import annotations

import random
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional, Pattern, Tuple

from ..resources_loader import load_ohio_context
from ..scoring import OHIO_WEIGHTS, keyword_confidence
from . import guarded_detector, normalize, phrase_pattern

GROUPS = ("location", "cultural", "child", "newcomer")
_RESOURCE_KEYS = {"location": "locations", "cultural": "cultural", "child": "child", "newcomer": "newcomer"}


@dataclass(frozen=True)
class OhioReferences:
    locations: Tuple[str, ...] = ()
    cultural: Tuple[str, ...] = ()
    child: Tuple[str, ...] = ()
    newcomer: Tuple[str, ...] = ()

    @property
    def has_reference(self) -> bool:
        return bool(self.locations or self.cultural or self.child or self.newcomer)

    @property
    def all(self) -> Tuple[str, ...]:
        return (*self.cultural, *self.locations, *self.child, *self.newcomer)

    @property
    def primary(self) -> Optional[Tuple[str, str]]:
        """(group, reference) the reply is about; cultural references have the most specific questions."""
        for group, matches in (
            ("cultural", self.cultural),
            ("location", self.locations),
            ("child", self.child),
            ("newcomer", self.newcomer),
        ):
            if matches:
                return group, matches[0]
        return None

    @property
    def confidence(self) -> float:
        return keyword_confidence(OHIO_WEIGHTS, len(self.all))


@lru_cache
def _reference_patterns() -> Dict[str, Tuple[Tuple[str, Pattern[str]], ...]]:
    data = load_ohio_context()
    return {
        group: tuple((ref, phrase_pattern(ref)) for ref in data[_RESOURCE_KEYS[group]])
        for group in GROUPS
    }


@guarded_detector(OhioReferences)
def detect_ohio_references(text: str) -> OhioReferences:
    norm = normalize(text)
    if not norm:
        return OhioReferences()
    found = {
        group: tuple(ref for ref, pattern in patterns if pattern.search(norm))
        for group, patterns in _reference_patterns().items()
    }
    return OhioReferences(
        locations=found["location"],
        cultural=found["cultural"],
        child=found["child"],
        newcomer=found["newcomer"],
    )


def _opener(group: str, ref: str) -> str:
    line = load_ohio_context()["openers"][group].format(
        ref=ref.title() if group in ("location", "cultural") else ref
    )
    return line[0].upper() + line[1:]


def engagement_question(reference: str, rng: random.Random) -> str:
    """A question linking one local reference back to how the person is doing."""
    data = load_ohio_context()
    ref = reference.lower()
    for key, questions in data["engaging_questions"].items():
        if key in ref:
            return rng.choice(questions)
    general = data["general_questions"]
    for key in ("park", "garden", "museum", "food"):
        if key in ref:
            return general[key]
    return general["default"]


def ohio_engagement_response(
    text: str,
    rng: random.Random,
    *,
    audience: Optional[str] = None,
) -> Optional[str]:
    """
    Opener plus engaging question about the same reference, or None when no
    local reference is present. Newcomers get a welcome line first.
    """
    refs = detect_ohio_references(text)
    primary = refs.primary
    if primary is None:
        return None
    group, ref = primary
    parts = [_opener(group, ref), engagement_question(ref, rng)]
    welcome = load_ohio_context()["audience_openers"].get(audience or "")
    if welcome:
        parts.insert(0, welcome)
    return " ".join(parts)
