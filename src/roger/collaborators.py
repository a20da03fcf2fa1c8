"""
External collaborators the turn pipeline talks to, plus in-process defaults.

- ConversationStore: session history (append-only)
- ConversationMemory: earlier messages relevant to the current one
- PersonalityProvider: Roger's voice for open-ended input
- ContextRetriever: ranked text snippets; any LangChain retriever can back it
"""

from __future__ import annotations

import logging
import random
import re
from typing import List, Optional, Protocol, Sequence, Tuple

from langchain_core.callbacks import CallbackManagerForRetrieverRun
from langchain_core.documents import Document
from langchain_core.retrievers import BaseRetriever

from .config import RAG_K, SNIPPET_MAX_CHARS
from .detectors import normalize
from .detectors.feelings import detect_feelings
from .detectors.stressors import detect_stressors
from .models import Message
from .responses import personality_line

logger = logging.getLogger(__name__)


class ConversationStore(Protocol):
    def get_history(self) -> List[str]: ...

    def append_message(self, message: Message) -> None: ...


class ConversationMemory(Protocol):
    def recall(self, text: str, history: Sequence[str]) -> List[str]: ...


class PersonalityProvider(Protocol):
    def get_personality_insight(self, text: str) -> str: ...


class ContextRetriever(Protocol):
    async def retrieve_context(self, text: str, lane: str) -> List[str]: ...


# -------------------------
# Session store
# -------------------------
class InMemoryConversationStore:
    """History for one waiting-room session. Messages are frozen and only ever appended."""

    def __init__(self) -> None:
        self._messages: List[Message] = []

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def message_count(self) -> int:
        return len(self._messages)

    def get_history(self) -> List[str]:
        """Prior user texts, oldest first. Roger's own replies are left out."""
        return [m.text for m in self._messages if m.role == "user"]

    def append_message(self, message: Message) -> None:
        self._messages.append(message)


# -------------------------
# Memory
# -------------------------
class ConcernMemory:
    """Recalls earlier messages that raised the same stressor or feeling."""

    def __init__(self, max_items: int = 3) -> None:
        self.max_items = max_items

    @staticmethod
    def _concerns(text: str) -> set:
        keys = {d.stressor.id for d in detect_stressors(text)}
        feeling = detect_feelings(text)
        if feeling.detected:
            keys.add(f"feeling:{feeling.category}")
        return keys

    def recall(self, text: str, history: Sequence[str]) -> List[str]:
        current = self._concerns(text)
        if not current:
            return []
        hits = [h for h in reversed(history) if h and normalize(h) != normalize(text) and current & self._concerns(h)]
        return hits[: self.max_items]


# -------------------------
# Personality
# -------------------------
_EXISTENTIAL = re.compile(r"\b(meaning|purpose|why)\b", re.IGNORECASE)
_COGNITIVE = re.compile(r"\b(think|thought|thoughts|believe)\b", re.IGNORECASE)


def select_therapeutic_approach(text: str) -> str:
    if _EXISTENTIAL.search(text):
        return "existential"
    if _COGNITIVE.search(text):
        return "cognitive"
    feeling = detect_feelings(text)
    if feeling.detected and feeling.confidence > 0.5:
        return "person_centered"
    return "integrated"


class RogerPersonality:
    """Person-centered voice; the integrated approach has no template and yields ""."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def get_personality_insight(self, text: str) -> str:
        return personality_line(self.rng, select_therapeutic_approach(text)) or ""


# -------------------------
# Retrieval
# -------------------------
class LangChainContextRetriever:
    """Adapts a LangChain `BaseRetriever` to the snippet interface."""

    def __init__(self, retriever: BaseRetriever, k: int = RAG_K, max_chars: int = SNIPPET_MAX_CHARS) -> None:
        self.retriever = retriever
        self.k = k
        self.max_chars = max_chars

    async def retrieve_context(self, text: str, lane: str) -> List[str]:
        docs = await self.retriever.ainvoke(text)
        snippets = [d.page_content.strip()[: self.max_chars] for d in docs[: self.k]]
        logger.debug("Retrieved %d snippets for %s lane", len(snippets), lane)
        return [s for s in snippets if s]


class KeywordRetriever(BaseRetriever):
    """Tiny in-memory retriever ranking documents by shared words. Useful for local runs and tests."""

    documents: List[Document]
    k: int = RAG_K

    def _get_relevant_documents(
        self, query: str, *, run_manager: CallbackManagerForRetrieverRun
    ) -> List[Document]:
        terms = {w for w in re.findall(r"[a-z']+", query.lower()) if len(w) > 3}
        if not terms:
            return []
        scored = []
        for doc in self.documents:
            words = set(re.findall(r"[a-z']+", doc.page_content.lower()))
            overlap = len(terms & words)
            if overlap:
                scored.append((overlap, doc))
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [doc for _, doc in scored[: self.k]]
