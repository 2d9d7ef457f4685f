from typing import Any

from pydantic import BaseModel, Field

from omniflow.models.factory.Nodes.BaseNodeModel import ExecutionStatus


class HandlerResult(BaseModel):
    output_data: dict[str, Any] = Field(default_factory=dict)
    log_lines: list[str] = Field(default_factory=list)
    status: ExecutionStatus = ExecutionStatus.SUCCESS
