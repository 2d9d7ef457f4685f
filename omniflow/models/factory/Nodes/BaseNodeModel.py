from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class NodeKind(str, Enum):
    """Execution-order categories; also the scheduler phases, in this order."""
    SOURCE = 'source'
    TRANSFORM = 'transform'
    ACT = 'act'
    BRANCH = 'branch'
    SINK = 'sink'


# Type names written by older snapshots
LEGACY_KIND_NAMES = {
    'input': NodeKind.SOURCE,
    'processing': NodeKind.TRANSFORM,
    'crypto_wallet': NodeKind.TRANSFORM,
    'trading_bot': NodeKind.TRANSFORM,
    'action': NodeKind.ACT,
    'crypto_trade': NodeKind.ACT,
    'telegram': NodeKind.ACT,
    'condition': NodeKind.BRANCH,
    'output': NodeKind.SINK,
}


class ExecutionStatus(str, Enum):
    NONE = 'none'
    SUCCESS = 'success'
    ERROR = 'error'


class InputSlot(BaseModel):
    model_config = ConfigDict(extra='allow')

    key: str
    type: str = 'string'
    value: Any = None
    label: Optional[str] = None
    options: Optional[list[Any]] = None


class OutputSlot(BaseModel):
    model_config = ConfigDict(extra='allow')

    key: str
    label: Optional[str] = None
    type: str = 'any'


class BaseNodeModel(BaseModel):
    """
    A node in the flow graph.

    Configured to accept extra fields from JSON without raising errors.
    The snapshot is the source of truth; canvas-only keys ride along.
    """
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    id: str
    kind: NodeKind = Field(validation_alias=AliasChoices('kind', 'type'))
    name: str
    is_active: bool = Field(default=True, alias='isActive')
    is_playing: bool = Field(default=False, alias='isPlaying')
    inputs: list[InputSlot] = Field(default_factory=list)
    outputs: list[OutputSlot] = Field(default_factory=list)
    output_data: Optional[dict[str, Any]] = Field(default=None, alias='outputData')
    console_output: list[str] = Field(default_factory=list, alias='consoleOutput')
    execution_status: ExecutionStatus = Field(default=ExecutionStatus.NONE, alias='executionStatus')
    position: Optional[dict[str, float]] = None

    @field_validator('kind', mode='before')
    @classmethod
    def map_legacy_kind(cls, v):
        if isinstance(v, str) and v in LEGACY_KIND_NAMES:
            return LEGACY_KIND_NAMES[v]
        return v

    @field_validator('console_output', mode='before')
    @classmethod
    def default_console(cls, v):
        return [] if v is None else v

    def get_input_slot(self, key: str) -> Optional[InputSlot]:
        for slot in self.inputs:
            if slot.key == key:
                return slot
        return None

    def get_output_slot(self, key: str) -> Optional[OutputSlot]:
        for slot in self.outputs:
            if slot.key == key:
                return slot
        return None

    def configured_values(self) -> dict[str, Any]:
        """Locally configured input values; None counts as unset."""
        return {slot.key: slot.value for slot in self.inputs if slot.value is not None}
