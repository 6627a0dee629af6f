"""Transcript type definitions."""

from .types import ContentBlock, Message, TextBlock, ToolResultBlock, ToolUseBlock

__all__ = [
    "ContentBlock",
    "Message",
    "TextBlock",
    "ToolResultBlock",
    "ToolUseBlock",
]
