"""
Graph Validator - Load-time checks for flow graphs.

Findings are reported, never enforced: the engine still runs a graph with
dangling edges (they are skipped) and with cycles (the cascade stops them).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, TYPE_CHECKING

import networkx as nx

from omniflow.node_system import is_supported
from omniflow.util import const

if TYPE_CHECKING:
    from omniflow.graph.store import GraphStore

logger = logging.getLogger(__name__)


def build_graph(store: 'GraphStore') -> nx.DiGraph:
    """Directed graph of node ids; edges with a missing endpoint are left out."""
    graph = nx.DiGraph()
    graph.add_nodes_from(node.id for node in store.nodes)
    for edge in store.edges:
        if edge.source_node_id in store and edge.target_node_id in store:
            graph.add_edge(edge.source_node_id, edge.target_node_id)
    return graph


def _unknown_output(node, handle) -> bool:
    # undeclared outputs are not checked; a switch always has a default branch
    if not node.outputs:
        return False
    if node.name == const.SWITCH_CASE and handle == 'default':
        return False
    return node.get_output_slot(handle or '') is None


def validate_edge_connectivity(store: 'GraphStore') -> List[Dict[str, Any]]:
    """
    Checks:
    1. Both endpoint nodes exist
    2. Both handles are declared on their nodes
    3. No duplicate edges
    """
    errors = []
    seen_edges = set()

    for edge in store.edges:
        source = store.find_node(edge.source_node_id)
        target = store.find_node(edge.target_node_id)

        missing = [n for n, node in ((edge.source_node_id, source), (edge.target_node_id, target)) if node is None]
        if missing:
            errors.append({
                "type": "DanglingEdge",
                "severity": "error",
                "edge_id": edge.id,
                "error_message": f"Edge '{edge.id}' references missing node(s): {missing}",
                "source": edge.source_node_id,
                "target": edge.target_node_id,
            })

        if source is not None and _unknown_output(source, edge.source_handle):
            errors.append({
                "type": "UnknownHandle",
                "severity": "error",
                "edge_id": edge.id,
                "node_id": source.id,
                "error_message": f"Node '{source.id}' has no output '{edge.source_handle}'",
                "handle": edge.source_handle,
                "declared_handles": [slot.key for slot in source.outputs],
            })
        if target is not None and target.get_input_slot(edge.target_handle or '') is None:
            errors.append({
                "type": "UnknownHandle",
                "severity": "error",
                "edge_id": edge.id,
                "node_id": target.id,
                "error_message": f"Node '{target.id}' has no input '{edge.target_handle}'",
                "handle": edge.target_handle,
                "declared_handles": [slot.key for slot in target.inputs],
            })

        edge_key = (edge.source_node_id, edge.source_handle, edge.target_node_id, edge.target_handle)
        if edge_key in seen_edges:
            errors.append({
                "type": "DuplicateEdge",
                "severity": "warning",
                "edge_id": edge.id,
                "error_message": (
                    f"Duplicate edge: {edge.source_node_id}.{edge.source_handle} -> "
                    f"{edge.target_node_id}.{edge.target_handle}"
                ),
            })
        seen_edges.add(edge_key)

    return errors


def validate_shared_slots(store: 'GraphStore') -> List[Dict[str, Any]]:
    """Input slots fed by more than one distinct edge; the last one processed wins."""
    feeders: Dict[tuple, List[str]] = {}
    wires: Dict[tuple, set] = {}
    for edge in store.edges:
        slot = (edge.target_node_id, edge.target_handle)
        wire = (edge.source_node_id, edge.source_handle)
        if wire in wires.setdefault(slot, set()):
            continue
        wires[slot].add(wire)
        feeders.setdefault(slot, []).append(edge.id)

    return [
        {
            "type": "SharedInputSlot",
            "severity": "warning",
            "node_id": node_id,
            "error_message": (
                f"Input '{handle}' of '{node_id}' is fed by {len(edge_ids)} edges; "
                "the last value propagated wins"
            ),
            "handle": handle,
            "edge_ids": edge_ids,
        }
        for (node_id, handle), edge_ids in feeders.items()
        if len(edge_ids) > 1
    ]


def validate_handlers(store: 'GraphStore') -> List[Dict[str, Any]]:
    return [
        {
            "type": "UnsupportedNode",
            "severity": "error",
            "node_id": node.id,
            "error_message": f"No handler for {node.kind.value} node '{node.name}'",
            "kind": node.kind.value,
            "name": node.name,
        }
        for node in store.nodes
        if not is_supported(node.kind, node.name)
    ]


def validate_cycles(store: 'GraphStore') -> List[Dict[str, Any]]:
    errors = []
    for cycle in nx.simple_cycles(build_graph(store)):
        logger.debug("Cycle found: %s", cycle)
        errors.append({
            "type": "Cycle",
            "severity": "warning",
            "node_ids": list(cycle),
            "error_message": (
                f"Nodes {list(cycle)} form a cycle; a cascade reaching them stops "
                "when the cycle is detected"
            ),
        })
    return errors


def validate_graph(store: 'GraphStore') -> List[Dict[str, Any]]:
    """
    Run all graph validations.

    Returns:
        Combined list of errors and warnings (empty if the graph is clean)
    """
    errors = []
    errors.extend(validate_edge_connectivity(store))
    errors.extend(validate_shared_slots(store))
    errors.extend(validate_handlers(store))
    errors.extend(validate_cycles(store))
    if errors:
        logger.info("Graph validation: %d finding(s)", len(errors))
    return errors
