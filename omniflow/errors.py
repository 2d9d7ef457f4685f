"""
Exception hierarchy for the flow engine.

Handlers raise these; the cascade executor catches every exception at its
boundary and converts it into node-local error state.
"""


class OmniflowError(Exception):
    """Base class for all engine errors."""


class ValidationError(OmniflowError):
    """A required input is missing or has an unusable value."""

    def __init__(self, message: str, node_id: str = None, key: str = None):
        super().__init__(message)
        self.node_id = node_id
        self.key = key


class UnsupportedNodeError(ValidationError):
    """No handler is registered for a (kind, name) pair."""

    def __init__(self, kind: str, name: str, available: list = None):
        super().__init__(f"Unsupported node: kind={kind!r} name={name!r}")
        self.kind = kind
        self.name = name
        self.available = available or []


class ProviderError(OmniflowError):
    """An external capability (generation, messaging) failed."""

    def __init__(self, message: str, provider: str = None):
        super().__init__(message)
        self.provider = provider


class ProviderUnconfigured(ProviderError):
    pass


class ProviderTimeout(ProviderError):
    def __init__(self, message: str, provider: str = None, timeout_ms: int = None):
        super().__init__(message, provider=provider)
        self.timeout_ms = timeout_ms


class ProviderHttpError(ProviderError):
    def __init__(self, message: str, provider: str = None, status: int = None):
        super().__init__(message, provider=provider)
        self.status = status


class GraphIntegrityError(OmniflowError):
    """An edge references a missing node or an undeclared handle."""

    def __init__(self, message: str, edge_id: str = None):
        super().__init__(message)
        self.edge_id = edge_id


class NodeNotFoundError(OmniflowError, KeyError):
    def __init__(self, node_id: str):
        super().__init__(f"Node not found: {node_id}")
        self.node_id = node_id

    def __str__(self):
        return self.args[0]
