from omniflow.config import EngineConfig, get_preset
from omniflow.errors import (
    GraphIntegrityError,
    NodeNotFoundError,
    OmniflowError,
    ProviderError,
    UnsupportedNodeError,
    ValidationError,
)
from omniflow.execution import BatchScheduler, CascadeExecutor, CascadeReport
from omniflow.flow import FlowRuntime, build_runtime, dump_snapshot, dumps_snapshot, load_snapshot
from omniflow.graph import GraphStore
from omniflow.models.model_run_context import RunContext
from omniflow.node_system import execute_handler

__version__ = '0.1.0'

__all__ = [
    'BatchScheduler',
    'CascadeExecutor',
    'CascadeReport',
    'EngineConfig',
    'FlowRuntime',
    'GraphIntegrityError',
    'GraphStore',
    'NodeNotFoundError',
    'OmniflowError',
    'ProviderError',
    'RunContext',
    'UnsupportedNodeError',
    'ValidationError',
    'build_runtime',
    'dump_snapshot',
    'dumps_snapshot',
    'execute_handler',
    'get_preset',
    'load_snapshot',
]
