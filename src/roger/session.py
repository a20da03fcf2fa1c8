"""Per-conversation entry point: ordering, timing and the outermost fallback."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Any, Dict, Optional

from .collaborators import (
    ConcernMemory,
    ContextRetriever,
    ConversationMemory,
    ConversationStore,
    InMemoryConversationStore,
    PersonalityProvider,
    RogerPersonality,
)
from .config import FALLBACK_CONFIDENCE, FALLBACK_TEXT
from .detectors.specialized import detect_specialized_topic
from .graph import GRAPH
from .models import Message, ResponseResult
from .safety import inject_safety_resources

logger = logging.getLogger(__name__)


class WaitingRoomSession:
    """
    One waiting-room conversation.

    Turns are serialized behind an asyncio.Lock, so replies are stored in the
    order their messages arrived and an in-flight turn is never aborted by a
    newer one. Sessions share nothing mutable with each other.
    """

    def __init__(
        self,
        store: Optional[ConversationStore] = None,
        *,
        memory: Optional[ConversationMemory] = None,
        personality: Optional[PersonalityProvider] = None,
        retriever: Optional[ContextRetriever] = None,
        rng: Optional[random.Random] = None,
        graph: Any = None,
    ) -> None:
        self.store = store if store is not None else InMemoryConversationStore()
        self.rng = rng or random.Random()
        self.memory = memory or ConcernMemory()
        self.personality = personality or RogerPersonality(self.rng)
        self.retriever = retriever
        self.graph = graph if graph is not None else GRAPH
        self._lock = asyncio.Lock()

    def _run_config(self) -> Dict[str, Any]:
        return {
            "configurable": {
                "rng": self.rng,
                "memory": self.memory,
                "personality": self.personality,
                "retriever": self.retriever,
            }
        }

    async def respond(self, text: str, *, show_crisis_resources: bool = False) -> ResponseResult:
        async with self._lock:
            start = time.perf_counter()
            text = text or ""
            history = self.store.get_history()
            self.store.append_message(Message(text=text, role="user"))

            try:
                result = await self._run_turn(text, history, show_crisis_resources, start)
            except Exception:
                result = self._fallback(text, show_crisis_resources, start)

            self.store.append_message(Message(text=result.text, role="assistant"))
            return result

    def respond_sync(self, text: str, *, show_crisis_resources: bool = False) -> ResponseResult:
        """Blocking wrapper for callers without an event loop (CLI, scripts)."""
        return asyncio.run(self.respond(text, show_crisis_resources=show_crisis_resources))

    async def _run_turn(
        self,
        text: str,
        history: list,
        show_crisis_resources: bool,
        start: float,
    ) -> ResponseResult:
        out: Dict[str, Any] = await self.graph.ainvoke(
            {
                "text": text,
                "history": history,
                "message_count": len(history),
                "show_crisis_resources": show_crisis_resources,
            },
            config=self._run_config(),
        )

        reply = (out.get("reply") or "").strip()
        if not reply:
            raise ValueError("turn pipeline produced an empty reply")

        decision = out["decision"]
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        if elapsed_ms > decision.estimated_time_ms:
            logger.info(
                "%s lane took %.0fms (budget %dms)", decision.lane_type, elapsed_ms, decision.estimated_time_ms
            )

        return ResponseResult(
            text=reply,
            processing_time_ms=elapsed_ms,
            systems_engaged=tuple(out.get("systems_engaged", ())),
            confidence=float(out.get("confidence", FALLBACK_CONFIDENCE)),
            route_type=decision.lane_type,
            crisis_detected=bool(out.get("crisis_detected")),
            topic_type=out.get("topic_type", "general"),
        )

    def _fallback(self, text: str, show_crisis_resources: bool, start: float) -> ResponseResult:
        topic = detect_specialized_topic(text)
        crisis = topic.topic_type == "crisis"
        if crisis:
            logger.critical("Turn pipeline failed on a crisis message; sending fallback with crisis resources", exc_info=True)
        else:
            logger.exception("Turn pipeline failed; sending fallback reply")

        reply = inject_safety_resources(FALLBACK_TEXT, topic, force_crisis=show_crisis_resources or crisis)
        return ResponseResult(
            text=reply,
            processing_time_ms=(time.perf_counter() - start) * 1000.0,
            systems_engaged=(),
            confidence=FALLBACK_CONFIDENCE,
            route_type="fallback",
            crisis_detected=crisis,
            topic_type=topic.topic_type,
        )
