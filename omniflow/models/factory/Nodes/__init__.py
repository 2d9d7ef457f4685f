from .BaseNodeModel import (
    BaseNodeModel,
    ExecutionStatus,
    InputSlot,
    LEGACY_KIND_NAMES,
    NodeKind,
    OutputSlot,
)

__all__ = [
    "BaseNodeModel",
    "ExecutionStatus",
    "InputSlot",
    "LEGACY_KIND_NAMES",
    "NodeKind",
    "OutputSlot",
]
