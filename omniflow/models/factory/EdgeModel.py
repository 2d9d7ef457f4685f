from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class EdgeModel(BaseModel):
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    id: str
    source_node_id: str = Field(
        alias='sourceNodeId',
        validation_alias=AliasChoices('sourceNodeId', 'source'),
    )
    source_handle: Optional[str] = Field(default=None, alias='sourceHandle')
    target_node_id: str = Field(
        alias='targetNodeId',
        validation_alias=AliasChoices('targetNodeId', 'target'),
    )
    target_handle: Optional[str] = Field(default=None, alias='targetHandle')
