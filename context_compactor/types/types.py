"""Type definitions for transcript messages and their content blocks."""

import time
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant", "system"]


class TextBlock(BaseModel):
    """Plain text content."""

    type: Literal["text"] = "text"
    text: str = ""


class ToolUseBlock(BaseModel):
    """A tool invocation requested by the model."""

    type: Literal["tool_use"] = "tool_use"
    id: str | None = None
    name: str = ""
    input: Any = None


class ToolResultBlock(BaseModel):
    """Output returned by a tool. The only block subject to soft-trimming."""

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str = ""
    content: str = ""


ContentBlock = Annotated[
    TextBlock | ToolUseBlock | ToolResultBlock,
    Field(discriminator="type"),
]


class Message(BaseModel):
    """One turn of a conversation transcript.

    Attributes:
        role: Author of the turn ("user", "assistant" or "system")
        content: Plain string, or an ordered list of content blocks
        timestamp: Creation time in epoch seconds. Callers keep these
            non-decreasing in transcript order; nothing here enforces it.
    """

    role: Role
    content: str | list[ContentBlock]
    timestamp: float = Field(default_factory=time.time)
