import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Union

from omniflow.errors import GraphIntegrityError, NodeNotFoundError, ValidationError
from omniflow.models.factory import EdgeModel
from omniflow.models.factory.Nodes import BaseNodeModel, ExecutionStatus

logger = logging.getLogger(__name__)

# Fields a configuration edit may change; run-state fields are written by
# record_result only.
EDITABLE_FIELDS = frozenset({'name', 'is_active', 'is_playing', 'inputs', 'outputs', 'position'})


def _local_timestamp() -> str:
    return datetime.now().strftime('[%H:%M:%S]')


class GraphStore:
    """
    Owner of every node and edge in a flow.

    Nodes keep insertion order (the scheduler's order within a phase).
    Every write bumps a per-node version counter so an execution can tell
    whether its node changed while it was running.
    """

    def __init__(self,
                 nodes: Optional[Iterable[Union[BaseNodeModel, dict]]] = None,
                 edges: Optional[Iterable[Union[EdgeModel, dict]]] = None,
                 strict_edges: bool = False,
                 timestamp: Callable[[], str] = _local_timestamp):
        self._nodes: dict[str, BaseNodeModel] = {}
        self._edges: dict[str, EdgeModel] = {}
        self._versions: dict[str, int] = {}
        self.strict_edges = strict_edges
        self.timestamp = timestamp
        for node in nodes or []:
            self.add_node(node)
        for edge in edges or []:
            self.add_edge(edge)

    # Queries

    @property
    def nodes(self) -> list[BaseNodeModel]:
        return list(self._nodes.values())

    @property
    def edges(self) -> list[EdgeModel]:
        return list(self._edges.values())

    def __len__(self):
        return len(self._nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> BaseNodeModel:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    def find_node(self, node_id: str) -> Optional[BaseNodeModel]:
        return self._nodes.get(node_id)

    def get_edge(self, edge_id: str) -> Optional[EdgeModel]:
        return self._edges.get(edge_id)

    def incoming_edges(self, node_id: str) -> list[EdgeModel]:
        return [e for e in self._edges.values() if e.target_node_id == node_id]

    def outgoing_edges(self, node_id: str) -> list[EdgeModel]:
        return [e for e in self._edges.values() if e.source_node_id == node_id]

    def version(self, node_id: str) -> int:
        return self._versions.get(node_id, 0)

    # Node mutations

    def _bump(self, node_id: str) -> int:
        self._versions[node_id] = self._versions.get(node_id, 0) + 1
        return self._versions[node_id]

    def add_node(self, node: Union[BaseNodeModel, dict]) -> BaseNodeModel:
        if not isinstance(node, BaseNodeModel):
            node = BaseNodeModel.model_validate(node)
        if node.id in self._nodes:
            raise GraphIntegrityError(f"Duplicate node id: {node.id}")
        self._nodes[node.id] = node
        self._bump(node.id)
        logger.debug("Added node %s (%s/%s)", node.id, node.kind.value, node.name)
        return node

    def update_node(self, node_id: str, **changes: Any) -> BaseNodeModel:
        """
        Apply a configuration edit (name, isActive, isPlaying, inputs,
        outputs, position). Run-state fields cannot be edited here.
        """
        node = self.get_node(node_id)
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields not editable: {sorted(unknown)}", node_id=node_id)

        data = node.model_dump()
        data.update(changes)
        if data.get('is_active') is False:
            data['is_playing'] = False
        updated = BaseNodeModel.model_validate(data)
        self._nodes[node_id] = updated
        self._bump(node_id)
        return updated

    def remove_node(self, node_id: str) -> BaseNodeModel:
        node = self.get_node(node_id)
        incident = [e.id for e in self._edges.values()
                    if e.source_node_id == node_id or e.target_node_id == node_id]
        for edge_id in incident:
            del self._edges[edge_id]
        del self._nodes[node_id]
        self._versions.pop(node_id, None)
        logger.debug("Removed node %s and %d incident edges", node_id, len(incident))
        return node

    def set_input_value(self, node_id: str, key: str, value: Any) -> bool:
        """Write one input slot. Returns False when the slot does not exist."""
        slot = self.get_node(node_id).get_input_slot(key)
        if slot is None:
            return False
        slot.value = value
        self._bump(node_id)
        return True

    def append_console(self, node_id: str, line: str) -> None:
        self.get_node(node_id).console_output.append(line)
        self._bump(node_id)

    def record_result(self,
                      node_id: str,
                      output_data: Optional[dict],
                      log_lines: list[str],
                      status: ExecutionStatus,
                      expected_version: Optional[int] = None) -> int:
        """
        Store the outcome of an execution. Only run-state fields are written,
        so a configuration edit made meanwhile survives.
        """
        node = self.get_node(node_id)
        if expected_version is not None and expected_version != self.version(node_id):
            logger.warning("Node %s changed while executing (version %d -> %d)",
                           node_id, expected_version, self.version(node_id))
        node.output_data = output_data
        node.console_output.extend(log_lines)
        node.execution_status = ExecutionStatus(status)
        return self._bump(node_id)

    def toggle_active(self, node_id: str) -> bool:
        node = self.get_node(node_id)
        node.is_active = not node.is_active
        if not node.is_active:
            node.is_playing = False
        node.console_output.append(
            f"{self.timestamp()} Node {'activated' if node.is_active else 'deactivated'}")
        self._bump(node_id)
        return node.is_active

    def toggle_playing(self, node_id: str) -> bool:
        node = self.get_node(node_id)
        node.is_playing = not node.is_playing
        node.console_output.append(
            f"{self.timestamp()} Node {'started playing' if node.is_playing else 'paused'}")
        self._bump(node_id)
        return node.is_playing

    # Edge mutations

    def _check_edge(self, edge: EdgeModel) -> None:
        source = self._nodes.get(edge.source_node_id)
        target = self._nodes.get(edge.target_node_id)
        if source is None:
            raise GraphIntegrityError(f"Edge {edge.id} references missing source node {edge.source_node_id}",
                                      edge_id=edge.id)
        if target is None:
            raise GraphIntegrityError(f"Edge {edge.id} references missing target node {edge.target_node_id}",
                                      edge_id=edge.id)
        if edge.source_handle is None or source.get_output_slot(edge.source_handle) is None:
            raise GraphIntegrityError(f"Edge {edge.id}: {edge.source_node_id} has no output {edge.source_handle!r}",
                                      edge_id=edge.id)
        if edge.target_handle is None or target.get_input_slot(edge.target_handle) is None:
            raise GraphIntegrityError(f"Edge {edge.id}: {edge.target_node_id} has no input {edge.target_handle!r}",
                                      edge_id=edge.id)

    def add_edge(self, edge: Union[EdgeModel, dict]) -> EdgeModel:
        if not isinstance(edge, EdgeModel):
            edge = EdgeModel.model_validate(edge)
        if edge.id in self._edges:
            raise GraphIntegrityError(f"Duplicate edge id: {edge.id}", edge_id=edge.id)
        if self.strict_edges:
            self._check_edge(edge)
        self._edges[edge.id] = edge
        logger.debug("Added edge %s: %s.%s -> %s.%s", edge.id, edge.source_node_id, edge.source_handle,
                     edge.target_node_id, edge.target_handle)
        return edge

    def remove_edge(self, edge_id: str) -> Optional[EdgeModel]:
        return self._edges.pop(edge_id, None)
