"""
Batch Simulation Scheduler.

Continuous play mode: every tick re-runs the active, playing nodes phase by
phase (source, transform, act, branch, sink) with a pacing delay around each
node so the UI can follow along.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, List, Optional

from omniflow.config import EngineConfig
from omniflow.events import EmitterRegistry
from omniflow.events.events import currently_executing_changed, tick_end, tick_start
from omniflow.execution.cascade_executor import CascadeExecutor
from omniflow.graph.store import GraphStore
from omniflow.models.factory.Nodes import BaseNodeModel, NodeKind
from omniflow.util.const import PHASE_ORDER

logger = logging.getLogger(__name__)


def partition_phases(nodes: List[BaseNodeModel]) -> Dict[NodeKind, List[str]]:
    """Active and playing node ids grouped by phase, in store order."""
    phases: Dict[NodeKind, List[str]] = {kind: [] for kind in PHASE_ORDER}
    for node in nodes:
        if node.is_active and node.is_playing:
            phases[node.kind].append(node.id)
    return phases


class BatchScheduler:
    def __init__(self,
                 store: GraphStore,
                 executor: CascadeExecutor,
                 config: Optional[EngineConfig] = None,
                 emitters: Optional[EmitterRegistry] = None):
        self.store = store
        self.executor = executor
        self.config = config or executor.config
        self.emitters = emitters or executor.emitters
        self.tick_count = 0
        self._currently_executing: Optional[str] = None
        self._loop_task: Optional[asyncio.Task] = None
        self._tick_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def currently_executing(self) -> Optional[str]:
        return self._currently_executing

    async def start(self) -> None:
        """Run one tick right away, then keep ticking every tick_interval."""
        if self.is_running:
            logger.debug("Scheduler already running")
            return
        logger.info("Scheduler started (interval %.2fs)", self.config.tick_interval)
        self._loop_task = asyncio.create_task(self._loop())
        await asyncio.sleep(0)

    async def stop(self) -> None:
        """
        Stop ticking. A tick already in progress finishes; no further tick
        starts. The currently-executing marker is cleared.
        """
        task, self._loop_task = self._loop_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        async with self._tick_lock:
            await self._set_current(None)
        logger.info("Scheduler stopped after %d ticks", self.tick_count)

    async def _loop(self) -> None:
        while True:
            started = time.monotonic()
            try:
                # shielded so that stop() never interrupts a tick half way
                await asyncio.shield(self.run_tick())
            except Exception:
                logger.exception("Tick %d failed; scheduler keeps running", self.tick_count)
            elapsed = time.monotonic() - started
            await asyncio.sleep(max(0.0, self.config.tick_interval - elapsed))

    async def run_tick(self) -> List[str]:
        """Run one phase-ordered pass; returns the node ids in execution order."""
        async with self._tick_lock:
            self.tick_count += 1
            tick = self.tick_count
            phases = partition_phases(self.store.nodes)
            order = [node_id for kind in PHASE_ORDER for node_id in phases[kind]]
            started = time.monotonic()
            logger.debug("Tick %d: %d nodes", tick, len(order))
            await self.emitters.emit(tick_start(tick, order))

            executed: List[str] = []
            for node_id in order:
                if node_id not in self.store:
                    continue
                await self._set_current(node_id)
                await asyncio.sleep(self.config.scaled(self.config.pacing_delay))
                try:
                    if self.config.cascade_on_tick:
                        await self.executor.execute(node_id)
                    else:
                        await self.executor.execute_node(node_id)
                except Exception as e:
                    logger.error("Tick %d: node %s failed: %s", tick, node_id, e)
                executed.append(node_id)
                await asyncio.sleep(self.config.scaled(self.config.pacing_delay))
                await self._set_current(None)

            duration = time.monotonic() - started
            await self.emitters.emit(tick_end(tick, duration))
            logger.debug("Tick %d finished in %.3fs", tick, duration)
            return executed

    async def _set_current(self, node_id: Optional[str]) -> None:
        if self._currently_executing == node_id:
            return
        self._currently_executing = node_id
        await self.emitters.emit(currently_executing_changed(node_id))
