"""
Cascade Execution Orchestrator.

Runs a node through its handler, stores the result, propagates fresh
outputs downstream and keeps going through every node that received a
value, until the cascade settles.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from omniflow.events import EmitterRegistry
from omniflow.events.events import console_append, cycle_detected, execution_status_changed
from omniflow.execution.cascade_tracker import CascadeTracker
from omniflow.execution.input_resolver import resolve_inputs
from omniflow.execution.propagator import propagate_outputs
from omniflow.graph.store import GraphStore
from omniflow.models.factory.Nodes import ExecutionStatus, NodeKind
from omniflow.models.model_run_context import RunContext
from omniflow.node_system import execute_handler
from omniflow.util.js_values import to_json

logger = logging.getLogger(__name__)


@dataclass
class NodeRun:
    """Outcome of one node execution."""
    node_id: str
    status: ExecutionStatus
    propagated_to: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class CascadeReport:
    """
    Attributes:
        trigger_id: Node the cascade started from
        runs: Node executions in completion order
        bypassed: Reachable nodes skipped because nothing reached them
        cycle: Nodes involved in a detected cycle (empty when acyclic)
        truncated: True when max_cascade_steps stopped the cascade
    """
    trigger_id: str
    runs: List[NodeRun] = field(default_factory=list)
    bypassed: List[str] = field(default_factory=list)
    cycle: List[str] = field(default_factory=list)
    truncated: bool = False

    @property
    def executed(self) -> List[str]:
        return [run.node_id for run in self.runs]

    @property
    def errors(self) -> Dict[str, str]:
        return {run.node_id: run.error for run in self.runs if run.status is ExecutionStatus.ERROR}


class CascadeExecutor:
    """
    Executes nodes against a GraphStore with an explicit RunContext.

    Every handler exception is caught here and turned into node-local error
    state; it never reaches the caller or sibling branches.
    """

    def __init__(self,
                 store: GraphStore,
                 context: Optional[RunContext] = None,
                 emitters: Optional[EmitterRegistry] = None):
        self.store = store
        self.context = context or RunContext()
        self.emitters = emitters or EmitterRegistry()
        self._locks: Dict[str, asyncio.Lock] = {}

    @property
    def config(self):
        return self.context.config

    def _lock_for(self, node_id: str) -> asyncio.Lock:
        lock = self._locks.get(node_id)
        if lock is None:
            lock = self._locks[node_id] = asyncio.Lock()
        return lock

    async def execute_node(self, node_id: str) -> NodeRun:
        """Run one node and propagate its output, without running downstream nodes."""
        async with self._lock_for(node_id):
            return await self._run(node_id)

    async def execute(self, node_id: str) -> CascadeReport:
        """Run node_id, then every downstream node it reaches, each at most once."""
        self.store.get_node(node_id)
        tracker = CascadeTracker.build(self.store, node_id)
        report = CascadeReport(trigger_id=node_id)
        budget = self.config.max_cascade_steps

        ready = deque([node_id])
        running: Dict[asyncio.Task, str] = {}
        while True:
            while ready:
                if len(report.runs) + len(running) >= budget:
                    logger.warning("Cascade from %s stopped after %d steps", node_id, budget)
                    report.truncated = True
                    ready.clear()
                    break
                current = ready.popleft()
                running[asyncio.create_task(self.execute_node(current))] = current

            if not running:
                if report.truncated or report.cycle:
                    break
                ready.extend(tracker.release_stalled())
                if not ready:
                    break
                continue
            done, _ = await asyncio.wait(running.keys(), return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                running.pop(task)
                run = task.result()
                report.runs.append(run)
                ready.extend(tracker.settle(run.node_id, run.propagated_to))

            if tracker.revisited:
                await self._report_cycle(node_id, tracker.cycle_members(tracker.revisited), report)
                ready.clear()

        report.bypassed = tracker.bypassed
        logger.info("Cascade from %s finished: %d executed, %d bypassed, %d errors",
                    node_id, len(report.runs), len(report.bypassed), len(report.errors))
        return report

    async def _report_cycle(self, trigger_id: str, node_ids: List[str], report: CascadeReport) -> None:
        cycle = [n for n in dict.fromkeys(node_ids) if n not in report.cycle]
        if not cycle:
            return
        report.cycle.extend(cycle)
        logger.warning("Cycle detected in cascade from %s: %s", trigger_id, cycle)
        line = f"{self.context.timestamp()} Cycle detected; cascade from {trigger_id} stopped"
        for cycle_node in cycle:
            if cycle_node in self.store:
                self.store.append_console(cycle_node, line)
                await self.emitters.emit(console_append(cycle_node, line))
        await self.emitters.emit(cycle_detected(cycle, trigger_id))

    async def _run(self, node_id: str) -> NodeRun:
        node = self.store.find_node(node_id)
        if node is None:
            logger.warning("Node %s disappeared before execution", node_id)
            return NodeRun(node_id, ExecutionStatus.ERROR, error="Node not found")

        started_version = self.store.version(node_id)
        snapshot = node.model_copy(deep=True)
        inputs = resolve_inputs(node_id, self.store)
        timestamp = self.context.timestamp
        lines = [f"{timestamp()} Received inputs: {to_json(inputs)}"]

        try:
            result = await execute_handler(node.kind, node.name, inputs, self.context,
                                           node=snapshot, debug=self.config.debug)
        except Exception as e:
            logger.error("Node %s (%s/%s) failed: %s", node_id, node.kind.value, node.name, e)
            lines.append(f"{timestamp()} Error: {e}")
            await self._store(node_id, None, lines, ExecutionStatus.ERROR, started_version)
            return NodeRun(node_id, ExecutionStatus.ERROR, error=str(e))

        output = result.output_data
        lines.extend(result.log_lines)
        lines.append(f"{timestamp()} Execution completed successfully")
        lines.append(f"{timestamp()} Output: {to_json(output)}")
        await self._store(node_id, output, lines, result.status, started_version)

        if node.kind is NodeKind.SINK or node_id not in self.store:
            return NodeRun(node_id, result.status)
        targets = propagate_outputs(node_id, output, self.store)
        return NodeRun(node_id, result.status, propagated_to=targets)

    async def _store(self, node_id, output, lines, status, started_version) -> None:
        if node_id not in self.store:
            logger.warning("Node %s was removed while executing; result dropped", node_id)
            return
        self.store.record_result(node_id, output, lines, status, expected_version=started_version)
        for line in lines:
            await self.emitters.emit(console_append(node_id, line))
        await self.emitters.emit(execution_status_changed(node_id, ExecutionStatus(status).value))
