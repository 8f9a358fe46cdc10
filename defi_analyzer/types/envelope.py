from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field

FAILURE_MESSAGE = "An error occurred while processing your request"


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str = Field(description="JSON-encoded tool payload")


class ToolResponse(BaseModel):
    content: List[TextContent] = Field(description="Tool output blocks")


class ToolCallRequest(BaseModel):
    name: str = Field(description="Tool to invoke")
    arguments: Dict[str, Any] = Field(default_factory=dict, description="Tool arguments")


class ToolFailure(BaseModel):
    success: Literal[False] = False
    error: str = Field(description="What went wrong")
    message: str = Field(default=FAILURE_MESSAGE)
