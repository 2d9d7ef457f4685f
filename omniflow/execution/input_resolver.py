import logging
from typing import Any

from omniflow.graph.store import GraphStore

logger = logging.getLogger(__name__)


def resolve_inputs(node_id: str, store: GraphStore) -> dict[str, Any]:
    """
    Effective inputs of a node.

    Every incoming edge whose source has produced a value at sourceHandle
    binds that value to targetHandle; slots left unbound fall back to their
    locally configured value (None counts as unset). Edge values always win.
    The store is not modified.
    """
    node = store.get_node(node_id)
    resolved: dict[str, Any] = {}

    for edge in store.incoming_edges(node_id):
        source = store.find_node(edge.source_node_id)
        if source is None or not source.output_data or not edge.target_handle:
            continue
        if edge.source_handle is None or edge.source_handle not in source.output_data:
            continue
        resolved[edge.target_handle] = source.output_data[edge.source_handle]
        logger.debug("Resolved %s.%s from %s.%s", node_id, edge.target_handle,
                     edge.source_node_id, edge.source_handle)

    for key, value in node.configured_values().items():
        resolved.setdefault(key, value)

    return resolved
