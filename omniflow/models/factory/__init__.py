from .EdgeModel import EdgeModel
from .FlowSnapshotModel import FlowSnapshotModel

__all__ = ["EdgeModel", "FlowSnapshotModel"]
