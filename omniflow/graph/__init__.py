from omniflow.graph.store import GraphStore

__all__ = ['GraphStore']
