import asyncio
import random
from typing import List

import pytest
from langchain_core.callbacks import (
    AsyncCallbackManagerForRetrieverRun,
    CallbackManagerForRetrieverRun,
)
from langchain_core.documents import Document
from langchain_core.retrievers import BaseRetriever

from roger.collaborators import LangChainContextRetriever
from roger.session import WaitingRoomSession


class StaticRetriever(BaseRetriever):
    """Returns the same documents for every query."""

    documents: List[Document]

    def _get_relevant_documents(
        self, query: str, *, run_manager: CallbackManagerForRetrieverRun
    ) -> List[Document]:
        return list(self.documents)


class SlowRetriever(BaseRetriever):
    """Sleeps longer than any lane budget before answering."""

    delay_s: float = 2.0

    def _get_relevant_documents(
        self, query: str, *, run_manager: CallbackManagerForRetrieverRun
    ) -> List[Document]:
        raise AssertionError("SlowRetriever is async-only")

    async def _aget_relevant_documents(
        self, query: str, *, run_manager: AsyncCallbackManagerForRetrieverRun
    ) -> List[Document]:
        await asyncio.sleep(self.delay_s)
        return [Document(page_content="too late to be useful")]


class FailingRetriever(BaseRetriever):
    def _get_relevant_documents(
        self, query: str, *, run_manager: CallbackManagerForRetrieverRun
    ) -> List[Document]:
        raise RuntimeError("vector store unavailable")


class ExplodingGraph:
    """Stands in for the compiled graph and fails every turn."""

    def __init__(self) -> None:
        self.calls = 0

    async def ainvoke(self, state, config=None):
        self.calls += 1
        raise RuntimeError("pipeline exploded")


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture()
def session(rng) -> WaitingRoomSession:
    return WaitingRoomSession(rng=rng)


@pytest.fixture()
def session_factory(rng):
    """Build a session around a LangChain retriever (or none)."""

    def make(retriever: BaseRetriever = None, **kwargs) -> WaitingRoomSession:
        adapter = LangChainContextRetriever(retriever) if retriever is not None else None
        return WaitingRoomSession(retriever=adapter, rng=kwargs.pop("rng", rng), **kwargs)

    return make


def respond(session: WaitingRoomSession, text: str, **kwargs):
    """Helper to run one turn from synchronous test code."""
    return asyncio.run(session.respond(text, **kwargs))
