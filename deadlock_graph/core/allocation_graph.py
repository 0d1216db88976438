from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Sequence

log = logging.getLogger(__name__)

PROCESS_PREFIX = "P"
RESOURCE_PREFIX = "R"


class AllocationGraphError(ValueError):
    pass


def is_process(node_id: str) -> bool:
    return node_id.startswith(PROCESS_PREFIX)


def is_resource(node_id: str) -> bool:
    return node_id.startswith(RESOURCE_PREFIX)


def _clean(node_id: str, what: str) -> str:
    nid = str(node_id).strip()
    if not nid:
        raise AllocationGraphError(f"{what} id must not be blank")
    return nid


class AllocationGraph:
    """
    Builds the adjacency mapping submitted for deadlock detection.

    - request(P, R): P waits for R (edge P -> R)
    - allocate(R, P): R is held by P (edge R -> P)
    Every endpoint becomes a key, so resources and idle processes show up
    even without outgoing edges. Edges are never duplicated.
    """

    def __init__(self) -> None:
        self._adj: Dict[str, List[str]] = {}

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Sequence[str]]) -> "AllocationGraph":
        g = cls()
        for node, successors in mapping.items():
            g.add_node(node)
            for succ in successors:
                g.connect(node, succ)
        return g

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._adj

    def __len__(self) -> int:
        return len(self._adj)

    def nodes(self) -> List[str]:
        return list(self._adj)

    def successors(self, node_id: str) -> List[str]:
        return list(self._adj.get(node_id, []))

    def add_node(self, node_id: str) -> str:
        nid = _clean(node_id, "node")
        self._adj.setdefault(nid, [])
        return nid

    def add_process(self, pid: str) -> str:
        return self.add_node(_clean(pid, "process"))

    def add_resource(self, rid: str) -> str:
        return self.add_node(_clean(rid, "resource"))

    def connect(self, source: str, target: str) -> None:
        src = self.add_node(source)
        dst = self.add_node(target)
        succ = self._adj[src]
        if dst not in succ:
            succ.append(dst)
            log.debug("graph: edge %s -> %s", src, dst)

    def request(self, pid: str, rid: str) -> None:
        self.connect(_clean(pid, "process"), _clean(rid, "resource"))

    def allocate(self, rid: str, pid: str) -> None:
        self.connect(_clean(rid, "resource"), _clean(pid, "process"))

    def kill_process(self, pid: str) -> bool:
        """Drop a process and every edge touching it. Returns False if it was not in the graph."""
        p = _clean(pid, "process")
        if not is_process(p):
            raise AllocationGraphError(f"not a process id: {p!r}")
        if p not in self._adj:
            return False

        del self._adj[p]
        for node, succ in self._adj.items():
            self._adj[node] = [s for s in succ if s != p]
        log.info("graph: killed process %s", p)
        return True

    def to_mapping(self) -> Dict[str, List[str]]:
        return {node: list(succ) for node, succ in self._adj.items()}
