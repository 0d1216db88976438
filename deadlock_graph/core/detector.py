from __future__ import annotations

import logging
from collections import abc
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

log = logging.getLogger(__name__)

# node id -> ordered successor ids; successors need not be keys themselves
Graph = Mapping[str, Sequence[str]]


class GraphValidationError(ValueError):
    """Raised before traversal when the graph is not a mapping of str -> list of str."""


@dataclass(frozen=True)
class DetectionResult:
    deadlock: bool
    cycle: Tuple[str, ...] = ()

    def edges(self) -> List[Tuple[str, str]]:
        return [(self.cycle[i], self.cycle[i + 1]) for i in range(len(self.cycle) - 1)]

    def to_dict(self) -> Dict[str, Any]:
        return {"deadlock": self.deadlock, "cycle": list(self.cycle)}


NO_DEADLOCK = DetectionResult(deadlock=False, cycle=())


def validate_graph(graph: Any) -> None:
    if not isinstance(graph, abc.Mapping):
        raise GraphValidationError(f"graph must be a mapping, got {type(graph).__name__}")

    for node, successors in graph.items():
        if not isinstance(node, str):
            raise GraphValidationError(f"node id must be a string, got {node!r}")
        # a bare string is a Sequence too, but "AB" is not ["A", "B"]
        if not isinstance(successors, (list, tuple)):
            raise GraphValidationError(
                f"successors of {node!r} must be a list, got {type(successors).__name__}"
            )
        for succ in successors:
            if not isinstance(succ, str):
                raise GraphValidationError(f"successor of {node!r} must be a string, got {succ!r}")


class CycleDetector:
    """
    DFS cycle finder over a wait-for / resource-allocation graph.

    Keys are explored in mapping insertion order and successors in list
    order, so the witness cycle is always the first one this traversal
    reaches. It starts and ends at the repeated node, e.g. ["P1", "R1", "P1"].
    All traversal state lives inside a single detect() call.
    """

    def detect(self, graph: Graph) -> DetectionResult:
        validate_graph(graph)

        done: Set[str] = set()
        for start in graph:
            if start in done:
                continue
            cycle = self._explore(graph, start, done)
            if cycle is not None:
                log.debug("detector: cycle found start=%s cycle=%s", start, cycle)
                return DetectionResult(deadlock=True, cycle=tuple(cycle))

        log.debug("detector: no cycle nodes=%d", len(graph))
        return NO_DEADLOCK

    @staticmethod
    def _explore(graph: Graph, start: str, done: Set[str]) -> Optional[List[str]]:
        path: List[str] = [start]
        on_path: Dict[str, int] = {start: 0}  # in progress -> index in path
        pending: List[Iterator[str]] = [iter(graph.get(start, ()))]

        while pending:
            for succ in pending[-1]:
                if succ in on_path:
                    return path[on_path[succ]:] + [succ]
                if succ in done:
                    continue
                on_path[succ] = len(path)
                path.append(succ)
                pending.append(iter(graph.get(succ, ())))
                break
            else:
                # successors exhausted: node is fully explored
                pending.pop()
                node = path.pop()
                del on_path[node]
                done.add(node)

        return None


def detect_deadlock(graph: Graph) -> DetectionResult:
    return CycleDetector().detect(graph)
