"""
Roger: conversation core for a therapy waiting-room companion.

- routing      lane selection (crisis / greeting / emotional / complex)
- detectors    keyword/regex pattern detectors
- repetition   duplicate / stutter / formulaic phrasing guard
- safety       specialized-topic resource lines
- graph        LangGraph turn pipeline
- session      per-conversation entry point
"""

from .models import ResponseResult, RouteDecision
from .routing import route
from .session import WaitingRoomSession

__all__ = ["ResponseResult", "RouteDecision", "WaitingRoomSession", "route"]
