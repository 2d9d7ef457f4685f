from .emitter import CallbackEmitter, EmitterRegistry, FlowEmitter, LogEmitter, QueueEmitter
from .events import FlowEvent, FlowEventType

__all__ = [
    'CallbackEmitter',
    'EmitterRegistry',
    'FlowEmitter',
    'FlowEvent',
    'FlowEventType',
    'LogEmitter',
    'QueueEmitter',
]
