from __future__ import annotations

from typing import Any, Optional

from langgraph.graph import END, START, StateGraph

from .nodes import (
    branch_after_router,
    complex_node,
    crisis_node,
    emotional_node,
    finish_node,
    greeting_node,
    router_node,
)
from .state import TurnState

LANES = ("crisis", "greeting", "emotional", "complex")


# -------------------------
# Build graph
# -------------------------
def build_graph(checkpointer: Optional[Any] = None):
    g = StateGraph(TurnState)
    g.add_node("router", router_node)
    g.add_node("crisis", crisis_node)
    g.add_node("greeting", greeting_node)
    g.add_node("emotional", emotional_node)
    g.add_node("complex", complex_node)
    g.add_node("finish", finish_node)

    g.add_edge(START, "router")
    g.add_conditional_edges(
        "router",
        branch_after_router,
        {lane: lane for lane in LANES},
    )

    # Every lane goes through the same finisher; crisis never waits on other lanes.
    for lane in LANES:
        g.add_edge(lane, "finish")
    g.add_edge("finish", END)

    return g.compile(checkpointer=checkpointer)


GRAPH = build_graph()
