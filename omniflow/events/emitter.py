"""
Event Emission Layer.

Emitters deliver FlowEvents to their destination: UI callbacks, an async
queue, or the logging system. The registry fans out to all of them and
keeps one failing emitter from affecting the others or the engine.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from .events import FlowEvent, FlowEventType

logger = logging.getLogger(__name__)


@runtime_checkable
class FlowEmitter(Protocol):
    @property
    def name(self) -> str:
        ...

    async def emit(self, event: FlowEvent) -> None:
        ...


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


class EmitterRegistry:
    """
    Registry for managing multiple emitters.

    Example:
        registry = EmitterRegistry()
        registry.register(QueueEmitter(output_queue))
        registry.register(LogEmitter())

        await registry.emit(event)  # Emits to both
    """

    def __init__(self, emitters: Optional[List[FlowEmitter]] = None):
        self._emitters: Dict[str, FlowEmitter] = {}
        for emitter in emitters or []:
            self.register(emitter)

    def register(self, emitter: FlowEmitter) -> "EmitterRegistry":
        self._emitters[emitter.name] = emitter
        return self

    def unregister(self, name: str) -> "EmitterRegistry":
        self._emitters.pop(name, None)
        return self

    def get(self, name: str) -> Optional[FlowEmitter]:
        return self._emitters.get(name)

    @property
    def emitters(self) -> List[FlowEmitter]:
        return list(self._emitters.values())

    async def emit(self, event: FlowEvent) -> None:
        """
        Emit an event to all registered emitters, in registration order.

        Exceptions are caught and logged, but don't prevent other emitters
        from receiving the event.
        """
        for emitter in list(self._emitters.values()):
            try:
                await emitter.emit(event)
            except Exception as e:
                logger.warning("Emitter %s failed: %s", emitter.name, e)


class CallbackEmitter:
    """
    Map events onto the UI callbacks a canvas implements.

    Callbacks may be plain functions or coroutines:
        on_execution_status_changed(node_id, status)
        on_currently_executing_changed(node_id | None)
        on_console_append(node_id, line)

    Extra raw-event listeners can be attached with add_callback().
    """

    name = "callback"

    def __init__(self,
                 on_execution_status_changed: Optional[Callable] = None,
                 on_currently_executing_changed: Optional[Callable] = None,
                 on_console_append: Optional[Callable] = None):
        self.on_execution_status_changed = on_execution_status_changed
        self.on_currently_executing_changed = on_currently_executing_changed
        self.on_console_append = on_console_append
        self._callbacks: List[Callable[[FlowEvent], Any]] = []

    def add_callback(self, callback: Callable[[FlowEvent], Any]) -> "CallbackEmitter":
        self._callbacks.append(callback)
        return self

    async def emit(self, event: FlowEvent) -> None:
        if event.event_type is FlowEventType.EXECUTION_STATUS_CHANGED and self.on_execution_status_changed:
            await _maybe_await(self.on_execution_status_changed(event.node_id, event.payload["status"]))
        elif event.event_type is FlowEventType.CURRENTLY_EXECUTING_CHANGED and self.on_currently_executing_changed:
            await _maybe_await(self.on_currently_executing_changed(event.node_id))
        elif event.event_type is FlowEventType.CONSOLE_APPEND and self.on_console_append:
            await _maybe_await(self.on_console_append(event.node_id, event.payload["line"]))

        for callback in self._callbacks:
            try:
                await _maybe_await(callback(event))
            except Exception as e:
                logger.warning("Callback failed: %s", e)


class QueueEmitter:
    """
    Put events on an asyncio queue as {"type": <event type>, "content": {...}}.

    Example:
        queue = asyncio.Queue()
        emitter = QueueEmitter(queue)
        await emitter.emit(event)

        item = await queue.get()
    """

    name = "queue"

    def __init__(self, queue: asyncio.Queue):
        self._queue = queue
        self._closed = False

    async def emit(self, event: FlowEvent) -> None:
        if self._closed:
            return
        await self._queue.put({"type": event.event_type.value, "content": event.to_dict()})

    def close(self) -> None:
        self._closed = True


class LogEmitter:
    """Log events at the level given in LEVELS, debug for anything unlisted."""

    name = "log"

    LEVELS = {
        FlowEventType.CYCLE_DETECTED: logging.WARNING,
        FlowEventType.TICK_START: logging.INFO,
        FlowEventType.TICK_END: logging.INFO,
    }

    def __init__(self, logger_name: str = "omniflow.events", format_json: bool = False):
        self._logger = logging.getLogger(logger_name)
        self._format_json = format_json

    async def emit(self, event: FlowEvent) -> None:
        level = self.LEVELS.get(event.event_type, logging.DEBUG)
        if not self._logger.isEnabledFor(level):
            return
        if self._format_json:
            message = json.dumps(event.to_dict(), default=str)
        else:
            message = self._format_event(event)
        self._logger.log(level, message)

    @staticmethod
    def _format_event(event: FlowEvent) -> str:
        parts = [f"[{event.event_type.value}]"]
        if event.node_id:
            parts.append(f"node={event.node_id}")
        for key in ("status", "line", "tick", "nodes"):
            if key in event.payload:
                parts.append(f"{key}={event.payload[key]}")
        if "duration_ms" in event.payload:
            parts.append(f"duration={event.payload['duration_ms']:.2f}ms")
        return " ".join(parts)
