import copy
import logging
from typing import Any, Optional

from omniflow.graph.store import GraphStore

logger = logging.getLogger(__name__)


def propagate_outputs(node_id: str, output_data: Optional[dict[str, Any]], store: GraphStore) -> list[str]:
    """
    Write fresh output values into downstream input slots.

    For each outgoing edge whose sourceHandle is present in output_data,
    a deep copy of the value lands in the target's targetHandle slot.
    Returns the ids of the updated targets, deduplicated, in edge order.
    Edges to missing nodes or missing slots are skipped.
    """
    if not output_data:
        return []

    updated: list[str] = []
    for edge in store.outgoing_edges(node_id):
        if edge.source_handle is None or edge.source_handle not in output_data:
            continue
        if edge.target_handle is None or edge.target_node_id not in store:
            continue
        value = copy.deepcopy(output_data[edge.source_handle])
        if not store.set_input_value(edge.target_node_id, edge.target_handle, value):
            logger.debug("Edge %s targets missing slot %s.%s; skipped",
                         edge.id, edge.target_node_id, edge.target_handle)
            continue
        logger.debug("Propagated: %s (%s) -> %s (%s)", node_id, edge.source_handle,
                     edge.target_node_id, edge.target_handle)
        if edge.target_node_id not in updated:
            updated.append(edge.target_node_id)
    return updated
