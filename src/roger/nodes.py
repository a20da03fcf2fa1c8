"""
LangGraph nodes for one conversational turn.

router → (crisis | greeting | emotional | complex) → finish

Collaborators are passed per run through `config["configurable"]`:
  rng          random.Random used for every pool pick
  memory       ConversationMemory
  personality  PersonalityProvider
  retriever    ContextRetriever (optional)
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from typing import Any, Dict, List, Optional, Tuple

from langchain_core.runnables import RunnableConfig

from . import config as settings
from .collaborators import ConcernMemory, RogerPersonality
from .detectors.feelings import is_intensified, reflect_feeling
from .detectors.ohio import ohio_engagement_response
from .detectors.small_talk import (
    detect_audience,
    detect_small_talk,
    should_use_small_talk,
    small_talk_response,
)
from .detectors.stressors import (
    co_occurring_stressor_response,
    generate_stressor_response,
    get_primary_stressor,
    related_stressor_response,
)
from .finisher import finish_response
from .responses import pick
from .routing import Signals, classify
from .state import TurnState

logger = logging.getLogger(__name__)

CRISIS_CONFIDENCE = 0.95
GREETING_CONFIDENCE = 0.9

# complex-lane confidence per link of the fallback chain
COMPLEX_CONFIDENCE = {
    "retrieval": 0.75,
    "emotion": 0.7,
    "ohio": 0.65,
    "small_talk": 0.6,
    "personality": 0.55,
    "generic": 0.5,
}

_QUESTION_START = re.compile(
    r"^(what|how|why|when|where|who|which|can|could|should|is|are|do|does|will)\b", re.IGNORECASE
)


# -------------------------
# Helpers
# -------------------------
def _configurable(config: Optional[RunnableConfig]) -> Dict[str, Any]:
    return dict((config or {}).get("configurable") or {})


def _rng(config: Optional[RunnableConfig]) -> random.Random:
    rng = _configurable(config).get("rng")
    return rng if rng is not None else random.Random()


def _signals(state: TurnState) -> Signals:
    return state.get("signals") or Signals()


def _is_question(text: str) -> bool:
    t = text.strip()
    return t.endswith("?") or bool(_QUESTION_START.match(t))


def _generic(rng: random.Random) -> str:
    return pick(rng, "generic_listening") or settings.FALLBACK_TEXT


def _audience(state: TurnState) -> Optional[str]:
    return detect_audience(state.get("text", ""), state.get("history", []))


# -------------------------
# Router
# -------------------------
def router_node(state: TurnState) -> Dict[str, Any]:
    decision, signals = classify(state.get("text", ""), state.get("history", []))
    logger.debug("Routed to %s (%s, %dms)", decision.lane_type, decision.reason, decision.estimated_time_ms)
    return {
        "decision": decision,
        "signals": signals,
        "crisis_detected": decision.lane_type == "crisis",
        "topic_type": signals.topic.topic_type,
    }


def branch_after_router(state: TurnState) -> str:
    decision = state.get("decision")
    return decision.lane_type if decision is not None else "complex"


# -------------------------
# Lanes
# -------------------------
def crisis_node(state: TurnState, config: RunnableConfig) -> Dict[str, Any]:
    # Static crisis lines; no memory, retrieval or personality.
    rng = _rng(config)
    kind = _signals(state).topic.crisis_kind
    draft = None
    if kind in ("harm_to_others", "emergency"):
        draft = pick(rng, f"crisis_{kind}")
    return {
        "draft": draft or pick(rng, "crisis"),
        "confidence": CRISIS_CONFIDENCE,
        "systems_engaged": ["crisis-response"],
    }


def greeting_node(state: TurnState, config: RunnableConfig) -> Dict[str, Any]:
    rng = _rng(config)
    text = (state.get("text") or "").strip()
    if not text:
        pool = "greeting_empty"
    elif _audience(state) == "child":
        pool = "greeting_child"
    elif state.get("message_count", 0) == 0:
        pool = "greeting_first"
    else:
        pool = "greeting_returning"
    return {"draft": pick(rng, pool), "confidence": GREETING_CONFIDENCE, "systems_engaged": []}


def _stressor_draft(text: str, signals: Signals, *, recurring: bool = False) -> Optional[str]:
    primary = get_primary_stressor(text, signals.stressors)
    if primary is None:
        return None
    others = [
        d for d in signals.stressors[1:]
        if d.stressor.category != primary.stressor.category
        and d.confidence > settings.PRIMARY_STRESSOR_THRESHOLD
    ]
    if others:
        return co_occurring_stressor_response(primary, others[0])
    # recurring concern: ask about related stressors instead (severe keeps the coping question)
    if recurring and primary.intensity != "severe":
        return generate_stressor_response(primary, follow_up=related_stressor_response(primary.stressor.id))
    return generate_stressor_response(primary)


def emotional_node(state: TurnState, config: RunnableConfig) -> Dict[str, Any]:
    """
    First non-empty of: stressor response → feeling reflection → personality
    insight → generic listening prompt. A memory hit adds a short continuity opener.
    """
    conf = _configurable(config)
    rng = _rng(config)
    memory = conf.get("memory") or ConcernMemory()
    text = state.get("text", "")
    signals = _signals(state)
    engaged: List[str] = ["emotion"]

    try:
        recalled = memory.recall(text, state.get("history", []))
    except Exception:
        logger.warning("Memory recall failed in emotional lane", exc_info=True)
        recalled = []

    draft = _stressor_draft(text, signals, recurring=bool(recalled))
    if draft is None:
        draft = reflect_feeling(signals.feeling, rng, intense=is_intensified(text))

    if draft is None:
        personality = conf.get("personality") or RogerPersonality(rng)
        engaged.append("personality")
        try:
            draft = personality.get_personality_insight(text) or None
        except Exception:
            logger.warning("Personality provider failed in emotional lane", exc_info=True)
            draft = None

    draft = draft or _generic(rng)

    engaged.append("memory")
    if recalled:
        opener = pick(rng, "memory_continuity")
        if opener:
            draft = f"{opener} {draft}"

    return {
        "draft": draft,
        "confidence": signals.emotional_confidence,
        "systems_engaged": engaged,
    }


async def _retrieve(retriever: Any, text: str, budget_ms: int) -> Tuple[List[str], bool]:
    """Snippets and whether the retriever answered inside its share of the budget."""
    if retriever is None:
        return [], False
    timeout = budget_ms * settings.RETRIEVAL_BUDGET_SHARE / 1000.0
    try:
        snippets = await asyncio.wait_for(retriever.retrieve_context(text, "complex"), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Retrieval exceeded %.0fms; continuing without it", timeout * 1000)
        return [], False
    except Exception:
        logger.warning("Retrieval failed; continuing without it", exc_info=True)
        return [], False
    return list(snippets or []), True


async def complex_node(state: TurnState, config: RunnableConfig) -> Dict[str, Any]:
    """
    Compose from memory, emotion, personality and retrieval, keeping only the
    first non-empty candidate:

      retrieval answer (questions) → emotion-tailored → Ohio local context
      → small talk / waiting room → personality insight → generic prompt
    """
    conf = _configurable(config)
    rng = _rng(config)
    memory = conf.get("memory") or ConcernMemory()
    personality = conf.get("personality") or RogerPersonality(rng)
    retriever = conf.get("retriever")
    text = state.get("text", "")
    signals = _signals(state)
    audience = _audience(state)
    decision = state.get("decision")
    budget = decision.estimated_time_ms if decision is not None else settings.COMPLEX_BUDGET_MS

    retrieval = asyncio.ensure_future(_retrieve(retriever, text, budget))

    engaged: List[str] = ["emotion", "memory", "personality"]
    try:
        recalled = memory.recall(text, state.get("history", []))
    except Exception:
        logger.warning("Memory recall failed in complex lane", exc_info=True)
        recalled = []
    try:
        insight = personality.get_personality_insight(text)
    except Exception:
        logger.warning("Personality provider failed in complex lane", exc_info=True)
        insight = ""

    snippets, answered = await retrieval
    if answered:
        engaged.append("rag")

    candidates: List[Tuple[str, Optional[str]]] = []
    if snippets and _is_question(text):
        candidates.append(("retrieval", pick(rng, "retrieval_answer", snippet=snippets[0])))

    reflection = reflect_feeling(signals.feeling, rng, intense=is_intensified(text))
    if reflection:
        candidates.append(("emotion", pick(rng, "complex_emotion", reflection=reflection)))

    candidates.append(("ohio", ohio_engagement_response(text, rng, audience=audience)))

    small_talk = detect_small_talk(text)
    if small_talk.category in ("waiting_room", "overstimulation") or should_use_small_talk(
        text, state.get("message_count", 0)
    ):
        candidates.append(("small_talk", small_talk_response(small_talk, rng, audience=audience)))

    candidates.append(("personality", insight or None))

    for source, draft in candidates:
        if draft:
            break
    else:
        source, draft = "generic", _generic(rng)

    if recalled and source in ("personality", "generic"):
        opener = pick(rng, "memory_continuity")
        if opener:
            draft = f"{opener} {draft}"

    logger.debug("Complex lane answered from %s", source)
    return {
        "draft": draft,
        "confidence": COMPLEX_CONFIDENCE[source],
        "systems_engaged": engaged,
    }


# -------------------------
# Finisher
# -------------------------
def finish_node(state: TurnState) -> Dict[str, Any]:
    signals = _signals(state)
    reply = finish_response(
        state.get("draft", ""),
        signals.topic,
        force_crisis_resources=bool(state.get("show_crisis_resources")),
    )
    return {"reply": reply}
