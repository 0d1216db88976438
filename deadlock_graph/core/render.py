from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Set

from deadlock_graph.core.allocation_graph import is_process
from deadlock_graph.core.detector import DetectionResult, Graph

SAFE_STATE_TEXT = "No deadlock. The system is currently in a safe state."


@dataclass(frozen=True)
class EdgeView:
    id: str
    source: str
    target: str
    highlighted: bool = False


@dataclass(frozen=True)
class NodeView:
    id: str
    label: str
    role: str  # "process" or "resource"


@dataclass(frozen=True)
class Report:
    deadlock: bool
    message: str
    explanation: str
    nodes: List[NodeView] = field(default_factory=list)
    edges: List[EdgeView] = field(default_factory=list)


def display_name(node_id: str) -> str:
    # "P_Chrome_1712" -> "Chrome"
    if "_" in node_id:
        return node_id.split("_")[1]
    return node_id


def edge_id(source: str, target: str) -> str:
    return f"{source}__{target}"


def highlighted_edges(result: DetectionResult) -> Set[str]:
    return {edge_id(a, b) for a, b in result.edges()}


def graph_nodes(graph: Graph) -> List[NodeView]:
    seen: List[str] = []
    for node, successors in graph.items():
        for nid in [node, *successors]:
            if nid not in seen:
                seen.append(nid)
    return [
        NodeView(id=nid, label=display_name(nid), role="process" if is_process(nid) else "resource")
        for nid in seen
    ]


def graph_edges(graph: Graph, result: DetectionResult) -> List[EdgeView]:
    hot = highlighted_edges(result)
    out: List[EdgeView] = []
    for source, targets in graph.items():
        for target in targets:
            eid = edge_id(source, target)
            out.append(EdgeView(id=eid, source=source, target=target, highlighted=eid in hot))
    return out


def deadlock_message(result: DetectionResult) -> str:
    if not result.cycle:
        return ""
    names = [display_name(n) for n in result.cycle]
    return f"Deadlock detected between: {' <-> '.join(names)}"


def explanation(result: DetectionResult) -> str:
    if not result.cycle:
        return SAFE_STATE_TEXT
    names = [display_name(n) for n in result.cycle]
    return (
        "Deadlock occurred due to circular wait. "
        f"Each node in the cycle ({' -> '.join(names)}) is waiting for the next one, "
        "forming a closed loop where no process can proceed."
    )


def render(graph: Graph, result: DetectionResult) -> Report:
    return Report(
        deadlock=result.deadlock,
        message=deadlock_message(result),
        explanation=explanation(result),
        nodes=graph_nodes(graph),
        edges=graph_edges(graph, result),
    )
