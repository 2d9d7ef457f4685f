from omniflow.execution.cascade_executor import CascadeExecutor, CascadeReport, NodeRun
from omniflow.execution.cascade_tracker import CascadeTracker
from omniflow.execution.input_resolver import resolve_inputs
from omniflow.execution.propagator import propagate_outputs
from omniflow.execution.scheduler import BatchScheduler, partition_phases

__all__ = [
    'BatchScheduler',
    'CascadeExecutor',
    'CascadeReport',
    'CascadeTracker',
    'NodeRun',
    'partition_phases',
    'propagate_outputs',
    'resolve_inputs',
]
