from __future__ import annotations

import logging
import os
import random

from langchain_core.documents import Document

from .collaborators import KeywordRetriever, LangChainContextRetriever
from .config import LOG_LEVEL
from .session import WaitingRoomSession

BANNER = """Roger (waiting-room companion, dev console)

Flow:
  router (crisis | greeting | emotional | complex) → repetition guard + safety resources → reply

Commands: /debug toggles route details, q to quit.
"""

# A few grounding snippets so the complex lane can exercise retrieval locally.
DEV_DOCUMENTS = [
    Document(page_content="Box breathing: breathe in for four counts, hold for four, out for four, hold for four.", metadata={"source": "breathing"}),
    Document(page_content="Grounding: name five things you can see, four you can touch, three you can hear, two you can smell and one you can taste.", metadata={"source": "grounding"}),
    Document(page_content="A first therapy session usually covers what brings you in, your history, and what you hope to get out of therapy.", metadata={"source": "first_session"}),
]


def main():
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    print(BANNER)

    seed = os.getenv("ROGER_SEED")
    session = WaitingRoomSession(
        retriever=LangChainContextRetriever(KeywordRetriever(documents=DEV_DOCUMENTS)),
        rng=random.Random(int(seed)) if seed else None,
    )
    debug = False

    while True:
        try:
            user = input("you: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nbye.")
            return

        if user.lower() in {"q", "quit", "exit"}:
            print("bye.")
            return
        if user == "/debug":
            debug = not debug
            print(f"(debug {'on' if debug else 'off'})")
            continue

        result = session.respond_sync(user)
        print("\nroger:", result.text, "\n")
        if debug:
            print(
                f"  [{result.route_type}] {result.processing_time_ms:.1f}ms "
                f"confidence={result.confidence:.2f} topic={result.topic_type} "
                f"systems={list(result.systems_engaged)}\n"
            )


if __name__ == "__main__":
    main()
