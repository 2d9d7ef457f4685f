"""
CascadeTracker - decides when a downstream node may run within one cascade.

The tracker is built for a single cascade invocation from the set of nodes
reachable from the trigger (through active nodes only). A reachable node is
ready once every reachable predecessor has settled; it runs if at least one
of them propagated a value into it and is bypassed otherwise. When the
remaining nodes only wait on each other, nodes holding a value are released
to run once. Propagation into an already scheduled node marks a cycle.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

import networkx as nx

from omniflow.graph.store import GraphStore

logger = logging.getLogger(__name__)


@dataclass
class PendingNode:
    node_id: str
    waiting_on: Set[str] = field(default_factory=set)
    received: bool = False
    scheduled: bool = False
    settled: bool = False
    bypassed: bool = False


class CascadeTracker:
    def __init__(self, trigger_id: str, successors: Dict[str, List[str]], predecessors: Dict[str, Set[str]]):
        self.trigger_id = trigger_id
        self._successors = successors
        self._pending: Dict[str, PendingNode] = {
            node_id: PendingNode(node_id, waiting_on=set(preds))
            for node_id, preds in predecessors.items()
        }
        self._pending[trigger_id] = PendingNode(trigger_id, received=True, scheduled=True)
        self.revisited: List[str] = []

    @classmethod
    def build(cls, store: GraphStore, trigger_id: str) -> "CascadeTracker":
        reachable = [trigger_id]
        seen = {trigger_id}
        queue = deque([trigger_id])
        while queue:
            current = queue.popleft()
            for edge in store.outgoing_edges(current):
                target = store.find_node(edge.target_node_id)
                if target is None or not target.is_active or target.id in seen:
                    continue
                seen.add(target.id)
                reachable.append(target.id)
                queue.append(target.id)

        successors: Dict[str, List[str]] = {node_id: [] for node_id in reachable}
        predecessors: Dict[str, Set[str]] = {node_id: set() for node_id in reachable if node_id != trigger_id}
        for edge in store.edges:
            source, target = edge.source_node_id, edge.target_node_id
            if source not in seen or target not in seen:
                continue
            if target not in successors[source]:
                successors[source].append(target)
            if target != trigger_id:
                predecessors[target].add(source)

        logger.debug("Cascade from %s reaches %d nodes", trigger_id, len(reachable))
        return cls(trigger_id, successors, predecessors)

    @property
    def reachable(self) -> List[str]:
        return list(self._pending.keys())

    @property
    def bypassed(self) -> List[str]:
        return [p.node_id for p in self._pending.values() if p.bypassed]

    def settle(self, node_id: str, propagated_to: Iterable[str]) -> List[str]:
        """
        Mark node_id finished and return the nodes that became ready to run.

        propagated_to lists the nodes that received a value from it.
        """
        ready: List[str] = []
        work = deque([(node_id, set(propagated_to))])
        while work:
            current, targets = work.popleft()
            state = self._pending[current]
            state.settled = True

            for target in targets:
                if target in self._pending and self._pending[target].scheduled:
                    self.revisited.append(target)

            for successor in self._successors.get(current, []):
                pending = self._pending[successor]
                if pending.scheduled or successor == self.trigger_id:
                    continue
                pending.waiting_on.discard(current)
                if successor in targets:
                    pending.received = True
                if pending.waiting_on:
                    continue
                pending.scheduled = True
                if pending.received:
                    ready.append(successor)
                else:
                    pending.bypassed = True
                    logger.debug("Node %s bypassed: no upstream value in this cascade", successor)
                    work.append((successor, set()))
        return ready

    def unsettled(self) -> List[str]:
        return [p.node_id for p in self._pending.values() if not p.settled]

    def release_stalled(self) -> List[str]:
        """
        Unblock a cascade whose remaining nodes wait on each other.

        Only a cycle can cause such a wait. Nodes that already received a
        value run once; when none did, the waiting nodes are bypassed.
        """
        stalled = [p for p in self._pending.values() if not p.scheduled]
        received = [p for p in stalled if p.received]
        if received:
            for pending in received:
                pending.scheduled = True
                logger.debug("Node %s released: its remaining predecessors wait on a cycle", pending.node_id)
            return [p.node_id for p in received]

        ready: List[str] = []
        for pending in stalled:
            if pending.scheduled:
                continue
            pending.scheduled = True
            pending.bypassed = True
            ready.extend(self.settle(pending.node_id, ()))
        return ready

    def cycle_members(self, node_ids: Iterable[str]) -> List[str]:
        """Nodes sharing a cycle with any of node_ids, in reachability order."""
        graph = nx.DiGraph()
        graph.add_nodes_from(self._pending)
        for source, targets in self._successors.items():
            graph.add_edges_from((source, target) for target in targets)

        members: Set[str] = set()
        wanted = set(node_ids)
        for component in nx.strongly_connected_components(graph):
            if not component & wanted:
                continue
            if len(component) > 1 or any(graph.has_edge(n, n) for n in component):
                members |= component
        return [node_id for node_id in self._pending if node_id in members]
