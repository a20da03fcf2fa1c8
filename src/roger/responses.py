from __future__ import annotations

import random
from typing import Any, List, Optional, Sequence

from .resources_loader import load_response_pools


def pool(name: str) -> List[str]:
    pools = load_response_pools()
    if name not in pools:
        raise KeyError(f"Unknown response pool: {name!r}")
    return list(pools[name])


def choose(rng: random.Random, candidates: Sequence[str], **fmt: Any) -> Optional[str]:
    """Pick uniformly from `candidates`; None for an empty set."""
    if not candidates:
        return None
    line = rng.choice(list(candidates))
    return line.format(**fmt) if fmt else line


def pick(rng: random.Random, name: str, **fmt: Any) -> Optional[str]:
    return choose(rng, pool(name), **fmt)


def personality_line(rng: random.Random, approach: str) -> Optional[str]:
    return choose(rng, load_response_pools()["personality"].get(approach, []))
