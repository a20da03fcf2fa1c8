# roger/state.py
from __future__ import annotations

from typing import List, TypedDict

from .models import RouteDecision
from .routing import Signals


class TurnState(TypedDict, total=False):
    # input
    text: str
    history: List[str]
    message_count: int
    show_crisis_resources: bool

    # routing
    decision: RouteDecision
    signals: Signals

    # lane output
    draft: str
    confidence: float
    systems_engaged: List[str]

    # finished reply
    reply: str
    crisis_detected: bool
    topic_type: str
