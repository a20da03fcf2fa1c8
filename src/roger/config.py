from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

RESOURCES_DIR = Path(os.getenv("ROGER_RESOURCES_DIR", Path(__file__).parent / "resources"))

LOG_LEVEL = os.getenv("ROGER_LOG_LEVEL", "INFO")

# Router thresholds
GREETING_MAX_CHARS = int(os.getenv("ROGER_GREETING_MAX_CHARS", "50"))
EMOTIONAL_CONFIDENCE_THRESHOLD = float(os.getenv("ROGER_EMOTIONAL_THRESHOLD", "0.5"))
PRIMARY_STRESSOR_THRESHOLD = float(os.getenv("ROGER_PRIMARY_STRESSOR_THRESHOLD", "0.6"))
SPECIALIZED_CONFIDENCE_THRESHOLD = float(os.getenv("ROGER_SPECIALIZED_THRESHOLD", "0.5"))

# Lane budgets (ms). Scheduling targets, not hard deadlines.
CRISIS_FAST_BUDGET_MS = int(os.getenv("ROGER_CRISIS_FAST_BUDGET_MS", "300"))
CRISIS_STANDARD_BUDGET_MS = int(os.getenv("ROGER_CRISIS_STANDARD_BUDGET_MS", "500"))
GREETING_FIRST_BUDGET_MS = int(os.getenv("ROGER_GREETING_FIRST_BUDGET_MS", "200"))
GREETING_BUDGET_MS = int(os.getenv("ROGER_GREETING_BUDGET_MS", "400"))
EMOTIONAL_BUDGET_MS = int(os.getenv("ROGER_EMOTIONAL_BUDGET_MS", "600"))
COMPLEX_BUDGET_MS = int(os.getenv("ROGER_COMPLEX_BUDGET_MS", "800"))

# Share of the complex-lane budget the retriever may spend before we fall back.
RETRIEVAL_BUDGET_SHARE = float(os.getenv("ROGER_RETRIEVAL_BUDGET_SHARE", "0.5"))
RAG_K = int(os.getenv("ROGER_RAG_K", "3"))
SNIPPET_MAX_CHARS = int(os.getenv("ROGER_SNIPPET_MAX_CHARS", "300"))

# Small-talk window: early, brief messages get conversational replies.
SMALL_TALK_MAX_MESSAGES = int(os.getenv("ROGER_SMALL_TALK_MAX_MESSAGES", "10"))
SMALL_TALK_MAX_WORDS = int(os.getenv("ROGER_SMALL_TALK_MAX_WORDS", "7"))

FALLBACK_TEXT = "I'm here to listen. What would you like to share?"
FALLBACK_CONFIDENCE = 0.3
