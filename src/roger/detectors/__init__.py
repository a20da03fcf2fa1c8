"""Keyword/regex pattern detectors.

Every public detector is pure over (text, static resources) and is wrapped in
`guarded_detector`, so a failing detector logs and returns its zero value
instead of aborting the turn.
"""

from __future__ import annotations

import functools
import logging
import re
from typing import Any, Callable, Iterable, List, Pattern, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "`": "'"})


def straighten_quotes(text: str) -> str:
    return text.translate(_APOSTROPHES)


def normalize(text: str) -> str:
    """Lowercase, straighten apostrophes, collapse whitespace."""
    if not text:
        return ""
    return " ".join(text.translate(_APOSTROPHES).lower().split())


def compile_patterns(patterns: Iterable[str]) -> List[Pattern[str]]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


def phrase_pattern(phrase: str) -> Pattern[str]:
    """Whole-word match for a literal phrase."""
    return re.compile(rf"(?<!\w){re.escape(phrase)}(?!\w)", re.IGNORECASE)


def guarded_detector(
    zero: Callable[[], T],
    *,
    critical: bool = False,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Catch any exception raised by the wrapped detector, log it and return `zero()`.
    Crisis detectors pass critical=True so their failures are logged loudly.
    """

    def decorator(fn: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return fn(*args, **kwargs)
            except Exception:
                if critical:
                    logger.critical("Crisis detector %s failed; returning no-detection", fn.__name__, exc_info=True)
                else:
                    logger.exception("Detector %s failed; returning no-detection", fn.__name__)
                return zero()

        return wrapper

    return decorator
