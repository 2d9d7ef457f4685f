import abc
import asyncio
import logging
from typing import Any, Optional

from omniflow.errors import UnsupportedNodeError
from omniflow.models.factory.Nodes import BaseNodeModel, NodeKind
from omniflow.models.model_handler_result import HandlerResult
from omniflow.models.model_run_context import RunContext
from omniflow.util.js_values import is_truthy
from omniflow.util.telemetry import magic_telemetry

logger = logging.getLogger(__name__)

# (kind, name) -> handler class; filled by Handler.__init_subclass__
HANDLER_REGISTRY: dict[tuple[NodeKind, str], type['Handler']] = {}


def pick(*candidates: Any) -> Any:
    """First truthy candidate, else the last one (the default)."""
    for candidate in candidates[:-1]:
        if is_truthy(candidate):
            return candidate
    return candidates[-1] if candidates else None


class Handler(abc.ABC):
    """
    Computes a node's output data from its resolved inputs.

    Subclasses declare KIND and NAME and register themselves on definition;
    their `process` coroutine is wrapped with telemetry automatically.
    """
    KIND: Optional[NodeKind] = None
    NAME: Optional[str] = None

    def __init__(self,
                 node: BaseNodeModel,
                 ctx: RunContext,
                 debug: bool = False):
        self.node = node
        self.node_id = node.id
        self.ctx = ctx
        self.debug = debug
        self.log_lines: list[str] = []

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        # Automatically decorate the `process` method of the subclass
        if 'process' in cls.__dict__:
            cls.process = magic_telemetry(cls.process)
        if cls.__dict__.get('NAME') and cls.KIND is not None:
            key = (cls.KIND, cls.NAME)
            if key in HANDLER_REGISTRY:
                raise ValueError(f"Handler already registered for {cls.KIND.value}/{cls.NAME}: "
                                 f"{HANDLER_REGISTRY[key].__name__}")
            HANDLER_REGISTRY[key] = cls

    @property
    def config(self):
        return self.ctx.config

    @property
    def previous_output(self) -> dict:
        return self.node.output_data or {}

    def configured(self, key: str, default: Any = None) -> Any:
        """Locally configured slot value; falsy values yield the default."""
        slot = self.node.get_input_slot(key)
        return pick(slot.value if slot else None, default)

    def value(self, inputs: dict, key: str, default: Any = None) -> Any:
        """Resolved input, then local configuration, then the default."""
        return pick(inputs.get(key), self.configured(key), default)

    def log(self, message: str) -> None:
        self.log_lines.append(f"{self.ctx.timestamp()} {message}")

    async def delay(self, seconds: float) -> None:
        """Sleep for a simulated external call, scaled by configuration."""
        scaled = self.config.scaled(seconds)
        if scaled > 0:
            await asyncio.sleep(scaled)

    async def run(self, inputs: dict) -> HandlerResult:
        output = await self.process(inputs)
        return HandlerResult(output_data=output or {}, log_lines=list(self.log_lines))

    @abc.abstractmethod
    async def process(self, inputs: dict) -> dict:
        pass

    def get_debug(self):
        return self.debug


def get_handler(kind: NodeKind, name: str) -> type[Handler]:
    try:
        kind = NodeKind(kind)
    except ValueError:
        raise UnsupportedNodeError(str(kind), name, available_handlers()) from None
    handler = HANDLER_REGISTRY.get((kind, name))
    if handler is None:
        raise UnsupportedNodeError(kind.value, name, available_handlers())
    return handler


def available_handlers() -> list[str]:
    return [f"{kind.value}/{name}" for kind, name in HANDLER_REGISTRY]
