"""
Repetition Guard.

`detect_harmful_repetitions` reports duplicate sentences, near-duplicate 4-word
phrases, stutters and repeated formulaic openers. `fix_harmful_repetitions`
always runs the same four stages in order:

  1. drop duplicate sentences (by signature, first occurrence kept)
  2. keep only the first occurrence of each formulaic phrase
  3. collapse word and short-phrase stutters
  4. clean up spacing, punctuation and capitalization

and repeats them until the text stops changing, so fixing is idempotent.
"""

from __future__ import annotations

import logging
import re
from difflib import SequenceMatcher
from typing import Dict, List, Pattern, Tuple

from .detectors import straighten_quotes
from .models import RepetitionFinding, RepetitionType

logger = logging.getLogger(__name__)

SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")

# Backreferences honour IGNORECASE, so "The the" counts as a stutter.
WORD_STUTTER = re.compile(r"\b(\w+(?:'\w+)?)\b(?:\s+\1\b)+", re.IGNORECASE)

STUTTER_PHRASES = ("i hear", "you are", "you're", "that is", "this is", "there is", "based on", "from what")
PHRASE_STUTTERS: Tuple[Pattern[str], ...] = tuple(
    re.compile(rf"\b({re.escape(p)})(?:\s+{re.escape(p)})+\b", re.IGNORECASE) for p in STUTTER_PHRASES
)

FORMULAIC_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(rf"\b{p}\b", re.IGNORECASE)
    for p in (
        r"based on what (?:you're|you are|you've been) (?:sharing|saying)",
        r"from what you(?:'ve| have) shared",
        r"i hear (?:what|that) you(?:'re| are) (?:sharing|saying)",
        r"i hear you(?:'re| are) feeling",
        r"it sounds like",
        r"i understand that",
    )
)

# 4-grams containing these are normal conversational glue, not repetition.
COMMON_PHRASES = (
    "would you like to",
    "tell me more about",
    "i understand that you",
    "i hear what you",
    "you mentioned that you",
    "it sounds like you",
    "i think that",
    "it seems that",
)

SIGNATURE_PUNCT = re.compile(r"[.,!?;:\"']")
SIGNATURE_STOPWORDS = re.compile(r"\b(a|an|the|is|are|was|were|be|being|been|have|has|had)\b")

NGRAM_SIZE = 4
NGRAM_MIN_WORDS = 8
NGRAM_MIN_CHARS = 12
SIMILARITY_THRESHOLD = 0.7
MAX_FIX_PASSES = 5

SCORES: Dict[RepetitionType, float] = {
    "duplicate_sentence": 1.0,
    "formulaic": 0.95,
    "stutter": 0.9,
    "similar_phrase": 0.8,
}


# -------------------------
# Helpers
# -------------------------
def split_sentences(text: str) -> List[str]:
    return [s.strip() for s in SENTENCE_BOUNDARY.split(text.strip()) if s.strip()]


def sentence_signature(sentence: str) -> str:
    """Lowercased sentence without punctuation, articles or copulas."""
    bare = SIGNATURE_PUNCT.sub("", sentence.lower())
    s = SIGNATURE_STOPWORDS.sub(" ", bare)
    # all-stopword sentences keep their words
    return " ".join(s.split()) or " ".join(bare.split())


def string_similarity(a: str, b: str) -> float:
    """SequenceMatcher ratio: 1.0 for identical strings, 0.0 for nothing in common."""
    if a == b:
        return 1.0
    return SequenceMatcher(None, a, b).ratio()


# -------------------------
# Detection
# -------------------------
def _duplicate_sentences(text: str) -> List[str]:
    seen: Dict[str, int] = {}
    firsts: Dict[str, str] = {}
    for sentence in split_sentences(text):
        key = sentence_signature(sentence)
        seen[key] = seen.get(key, 0) + 1
        firsts.setdefault(key, sentence)
    return [firsts[k] for k, n in seen.items() if n > 1]


def _similar_phrases(text: str) -> List[str]:
    words = [w.strip(".,!?;:\"") for w in text.lower().split()]
    words = [w for w in words if w]
    if len(words) < NGRAM_MIN_WORDS:
        return []

    grams = [
        (i, " ".join(words[i : i + NGRAM_SIZE]))
        for i in range(len(words) - NGRAM_SIZE + 1)
    ]
    grams = [
        (i, g) for i, g in grams
        if len(g) >= NGRAM_MIN_CHARS and not any(c in g for c in COMMON_PHRASES)
    ]

    segments: List[str] = []
    for pos, (i, first) in enumerate(grams):
        for j, second in grams[pos + 1 :]:
            # overlapping windows share words by construction
            if j - i < NGRAM_SIZE:
                continue
            matcher = SequenceMatcher(None, first, second)
            # cheap upper bounds first
            if (
                matcher.real_quick_ratio() > SIMILARITY_THRESHOLD
                and matcher.quick_ratio() > SIMILARITY_THRESHOLD
                and matcher.ratio() > SIMILARITY_THRESHOLD
            ):
                segment = " ".join(words[max(0, i - 2) : i + 6])
                if segment not in segments:
                    segments.append(segment)
                break
    return segments


def _stutters(text: str) -> List[str]:
    found = [m.group(0) for m in WORD_STUTTER.finditer(text)]
    for pattern in PHRASE_STUTTERS:
        found.extend(m.group(0) for m in pattern.finditer(text))
    return found


def _formulaic(text: str) -> List[str]:
    repeated: List[str] = []
    for pattern in FORMULAIC_PATTERNS:
        hits = pattern.findall(text)
        if len(hits) > 1:
            repeated.append(hits[0])
    return repeated


def detect_harmful_repetitions(text: str) -> RepetitionFinding:
    """Run every check and report the union; the headline type is the most severe one."""
    text = straighten_quotes(text or "")
    checks: Dict[RepetitionType, List[str]] = {
        "duplicate_sentence": _duplicate_sentences(text),
        "formulaic": _formulaic(text),
        "stutter": _stutters(text),
        "similar_phrase": _similar_phrases(text),
    }
    fired = [t for t, segments in checks.items() if segments]
    if not fired:
        return RepetitionFinding(has_repetition=False)

    worst = max(fired, key=lambda t: SCORES[t])
    segments = tuple(s for t in fired for s in checks[t])
    return RepetitionFinding(
        has_repetition=True,
        repetition_type=worst,
        score=SCORES[worst],
        offending_segments=segments,
        types=tuple(fired),
    )


# -------------------------
# Fixing
# -------------------------
def _remove_duplicate_sentences(text: str) -> str:
    kept: List[str] = []
    signatures = set()
    for sentence in split_sentences(text):
        sig = sentence_signature(sentence)
        if sig in signatures:
            continue
        signatures.add(sig)
        kept.append(sentence)
    return " ".join(kept)


def _thin_formulaic(text: str) -> str:
    for pattern in FORMULAIC_PATTERNS:
        matches = list(pattern.finditer(text))
        for m in reversed(matches[1:]):
            text = text[: m.start()] + text[m.end() :]
    return text


def _collapse_stutters(text: str) -> str:
    text = WORD_STUTTER.sub(r"\1", text)
    for pattern in PHRASE_STUTTERS:
        text = pattern.sub(r"\1", text)
    return text


def _cleanup(text: str) -> str:
    t = " ".join(text.split())
    t = re.sub(r"\s+([.,!?;:])", r"\1", t)
    t = re.sub(r"[,;:]+([.!?])", r"\1", t)
    t = re.sub(r"([.!?])[,;:]+", r"\1", t)
    t = re.sub(r"([!?])\.+", r"\1", t)
    t = re.sub(r"(?<!\.)\.[!?]+", ".", t)
    t = re.sub(r"(?<!\.)\.\.(?!\.)", ".", t)
    t = t.lstrip(".,;:!? ")
    t = re.sub(r"(^|[.!?]\s+)([a-z])", lambda m: m.group(1) + m.group(2).upper(), t)
    if t and t[-1] not in ".!?":
        t += "."
    return t


def _fix_once(text: str) -> str:
    text = _remove_duplicate_sentences(text)
    text = _thin_formulaic(text)
    text = _collapse_stutters(text)
    return _cleanup(text)


def fix_harmful_repetitions(text: str) -> str:
    current = straighten_quotes(text or "")
    for _ in range(MAX_FIX_PASSES):
        fixed = _fix_once(current)
        if fixed == current:
            break
        current = fixed
    else:
        logger.warning("Repetition fix did not settle after %d passes", MAX_FIX_PASSES)
    return current
