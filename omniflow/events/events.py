"""
UI-facing Event Definitions.

Every notification the engine sends to its collaborators (canvas, console
panel, tests) is a FlowEvent. Payloads are plain dicts so events can be
serialized as they are.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4


class FlowEventType(Enum):
    # Node run state
    EXECUTION_STATUS_CHANGED = "execution_status_changed"
    CURRENTLY_EXECUTING_CHANGED = "currently_executing_changed"
    CONSOLE_APPEND = "console_append"

    # Cascade diagnostics
    CYCLE_DETECTED = "cycle_detected"

    # Scheduler
    TICK_START = "tick_start"
    TICK_END = "tick_end"


@dataclass
class FlowEvent:
    """
    Attributes:
        event_type: What happened
        node_id: Node the event is about; None for tick events and for a
            cleared currently-executing marker
        payload: Event-specific data (status, line, tick number, ...)
    """
    event_type: FlowEventType
    node_id: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "node_id": self.node_id,
            "payload": self.payload,
        }


def execution_status_changed(node_id: str, status: str) -> FlowEvent:
    return FlowEvent(FlowEventType.EXECUTION_STATUS_CHANGED, node_id, {"status": status})


def currently_executing_changed(node_id: Optional[str]) -> FlowEvent:
    return FlowEvent(FlowEventType.CURRENTLY_EXECUTING_CHANGED, node_id)


def console_append(node_id: str, line: str) -> FlowEvent:
    return FlowEvent(FlowEventType.CONSOLE_APPEND, node_id, {"line": line})


def cycle_detected(node_ids: list[str], trigger_id: str) -> FlowEvent:
    return FlowEvent(FlowEventType.CYCLE_DETECTED, trigger_id, {"nodes": list(node_ids)})


def tick_start(tick: int, node_ids: list[str]) -> FlowEvent:
    return FlowEvent(FlowEventType.TICK_START, payload={"tick": tick, "nodes": list(node_ids)})


def tick_end(tick: int, duration: float) -> FlowEvent:
    return FlowEvent(FlowEventType.TICK_END, payload={"tick": tick, "duration_ms": duration * 1000})
