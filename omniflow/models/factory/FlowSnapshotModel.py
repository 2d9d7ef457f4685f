from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from omniflow.models.factory.EdgeModel import EdgeModel
from omniflow.models.factory.Nodes.BaseNodeModel import BaseNodeModel


class FlowSnapshotModel(BaseModel):
    """
    Flat snapshot of a flow graph.

    Attributes:
        nodes: Nodes in store order
        edges: Edges in store order
    """
    model_config = ConfigDict(extra='ignore')

    nodes: list[BaseNodeModel] = Field(default_factory=list)
    edges: list[EdgeModel] = Field(default_factory=list)

    @model_validator(mode='before')
    @classmethod
    def unwrap_content(cls, data: Any) -> Any:
        # Older exports nest the graph under 'content'
        if isinstance(data, dict) and isinstance(data.get('content'), dict):
            content = data['content']
            return {
                'nodes': content.get('nodes', []),
                'edges': content.get('edges', []),
            }
        return data
