"""One confidence formula for every keyword detector.

Detectors differ only in their weights: a fixed base, a per-match step, an
optional share of the keyword set that matched, a cap, and small bonuses for
long input or intensity words.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ConfidenceWeights:
    base: float
    per_match: float = 0.0
    coverage_weight: float = 0.0
    cap: float = 1.0
    long_input_chars: Optional[int] = None
    long_input_bonus: float = 0.0
    intensity_bonus: float = 0.0


# min(0.4 + n*0.2, 0.9), +0.1 past 100 chars, still capped at 0.9
TOPIC_WEIGHTS = ConfidenceWeights(
    base=0.4, per_match=0.2, cap=0.9, long_input_chars=100, long_input_bonus=0.1
)

# min(0.9, 0.5 + matched/len(keywords) * 0.4)
STRESSOR_WEIGHTS = ConfidenceWeights(base=0.5, coverage_weight=0.4, cap=0.9)

FEELING_WEIGHTS = ConfidenceWeights(base=0.4, per_match=0.15, cap=0.95, intensity_bonus=0.1)

OHIO_WEIGHTS = ConfidenceWeights(base=0.5, per_match=0.15, cap=0.9)

DEMOGRAPHIC_WEIGHTS = ConfidenceWeights(base=0.4, per_match=0.2, cap=0.9)


def keyword_confidence(
    weights: ConfidenceWeights,
    matches: int,
    *,
    total: int = 0,
    text_length: int = 0,
    intensified: bool = False,
) -> float:
    """Deterministic confidence in [0, weights.cap]; zero matches always scores 0."""
    if matches <= 0:
        return 0.0

    score = weights.base + matches * weights.per_match
    if total > 0:
        score += (matches / total) * weights.coverage_weight
    score = min(score, weights.cap)

    if weights.long_input_chars is not None and text_length > weights.long_input_chars:
        score += weights.long_input_bonus
    if intensified:
        score += weights.intensity_bonus

    return max(0.0, min(score, weights.cap, 1.0))
