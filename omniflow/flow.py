"""
Omniflow Flow Module

Loads and saves flat graph snapshots and wires a store, a cascade executor
and a batch scheduler into one runtime object.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Union

import networkx as nx

from omniflow.config import EngineConfig
from omniflow.errors import ValidationError
from omniflow.events import EmitterRegistry, FlowEmitter
from omniflow.execution import BatchScheduler, CascadeExecutor, CascadeReport
from omniflow.graph import GraphStore
from omniflow.models.factory import FlowSnapshotModel
from omniflow.models.factory.Nodes import BaseNodeModel
from omniflow.models.model_run_context import RunContext
from omniflow.util.graph_validator import build_graph, validate_graph

logger = logging.getLogger(__name__)

X_SPACING = 300
Y_SPACING = 100


def assign_node_positions(nodes: List[BaseNodeModel], graph: nx.DiGraph) -> None:
    """
    Give every node without a position one from a level layout.

    A node's level is one more than the deepest of its predecessors; nodes on
    a cycle share the level of their strongly connected component.
    """
    condensed = nx.condensation(graph)
    mapping = condensed.graph['mapping']
    levels: Dict[int, int] = {}
    for component in nx.topological_sort(condensed):
        preds = list(condensed.predecessors(component))
        levels[component] = 1 + max(levels[p] for p in preds) if preds else 0

    per_level: Dict[int, int] = {}
    for node in nodes:
        level = levels[mapping[node.id]]
        index = per_level.get(level, 0)
        per_level[level] = index + 1
        if node.position is None or node.position == {'x': 0, 'y': 0}:
            node.position = {'x': index * X_SPACING, 'y': level * Y_SPACING}


def load_snapshot(data: Union[dict, str], strict_edges: bool = False, layout: bool = True) -> GraphStore:
    """
    Build a GraphStore from a snapshot dict or JSON string.

    Args:
        data: {'nodes': [...], 'edges': [...]}, optionally wrapped in 'content'
        strict_edges: Reject edges that reference missing nodes or handles
        layout: Fill in missing node positions

    Returns:
        GraphStore: The loaded graph. Validation findings are logged, not raised.
    """
    if isinstance(data, str):
        data = json.loads(data)
    snapshot = FlowSnapshotModel.model_validate(data)
    store = GraphStore(snapshot.nodes, snapshot.edges, strict_edges=strict_edges)

    if layout and any(node.position is None for node in store.nodes):
        assign_node_positions(store.nodes, build_graph(store))

    for finding in validate_graph(store):
        if finding['severity'] == 'warning':
            logger.warning("Snapshot validation warning: %s", finding['error_message'])
        else:
            logger.error("Snapshot validation error: %s", finding['error_message'])

    logger.info("Loaded snapshot: %d nodes, %d edges", len(store), len(store.edges))
    return store


def dump_snapshot(store: GraphStore) -> Dict[str, Any]:
    snapshot = FlowSnapshotModel(nodes=store.nodes, edges=store.edges)
    return snapshot.model_dump(by_alias=True, mode='json')


def dumps_snapshot(store: GraphStore, indent: Optional[int] = None) -> str:
    return json.dumps(dump_snapshot(store), indent=indent)


class FlowRuntime:
    """A loaded flow together with the engine that runs it."""

    def __init__(self, store: GraphStore, context: RunContext, emitters: EmitterRegistry):
        self.store = store
        self.context = context
        self.emitters = emitters
        self.executor = CascadeExecutor(store, context, emitters)
        self.scheduler = BatchScheduler(store, self.executor, context.config, emitters)

    @property
    def config(self) -> EngineConfig:
        return self.context.config

    async def play(self, node_id: str) -> Optional[CascadeReport]:
        """Toggle a node's play state; switching it on runs a cascade from it."""
        if self.store.toggle_playing(node_id):
            return await self.executor.execute(node_id)
        return None

    async def edit_input(self, node_id: str, key: str, value: Any) -> Optional[CascadeReport]:
        """Change a configured input; a playing node re-runs its cascade."""
        if not self.store.set_input_value(node_id, key, value):
            raise ValidationError(f"Node {node_id} has no input '{key}'", node_id=node_id, key=key)
        if self.store.get_node(node_id).is_playing:
            return await self.executor.execute(node_id)
        return None

    async def run(self, node_id: str) -> CascadeReport:
        return await self.executor.execute(node_id)

    async def start(self) -> None:
        await self.scheduler.start()

    async def stop(self) -> None:
        await self.scheduler.stop()


def build_runtime(snapshot: Union[dict, str, GraphStore],
                  config: Optional[EngineConfig] = None,
                  context: Optional[RunContext] = None,
                  emitters: Optional[Union[EmitterRegistry, List[FlowEmitter]]] = None) -> FlowRuntime:
    """
    Prepare a runnable flow.

    Args:
        snapshot: Snapshot data, JSON text, or an existing GraphStore
        config: Engine configuration; ignored when context carries one
        context: Capabilities handed to handlers
        emitters: Event sinks for the UI collaborator

    Returns:
        FlowRuntime
    """
    if context is None:
        context = RunContext(config=config or EngineConfig())
    if isinstance(snapshot, GraphStore):
        store = snapshot
    else:
        store = load_snapshot(snapshot, strict_edges=context.config.strict_edges)
    if not isinstance(emitters, EmitterRegistry):
        emitters = EmitterRegistry(emitters)
    return FlowRuntime(store, context, emitters)
