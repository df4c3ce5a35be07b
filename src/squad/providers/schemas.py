"""Pydantic schemas for the normalized provider message shape.

Every backend adapter translates to and from these models, so the task
execution engine only ever sees one role/content/tool-call shape no matter
which wire format the backend speaks.
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, Field


class TextContent(BaseModel):
    """A plain-text content part."""

    type: Literal["text"] = "text"
    text: str


class ImageSource(BaseModel):
    """Where an image part's bytes come from."""

    type: Literal["base64", "url"]
    media_type: str | None = Field(default=None, description="e.g. image/png")
    data: str | None = Field(default=None, description="Base64 payload when type='base64'")
    url: str | None = Field(default=None, description="Image URL when type='url'")


class ImageContent(BaseModel):
    """An image content part for vision-capable models."""

    type: Literal["image"] = "image"
    source: ImageSource


ContentPart = Union[TextContent, ImageContent]
MessageContent = Union[str, list[ContentPart]]


class ToolCall(BaseModel):
    """A structured request from the backend to invoke a named tool."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolDefinition(BaseModel):
    """A tool the backend may call: name, description, JSON-schema parameters."""

    name: str
    description: str
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


class Message(BaseModel):
    """A single role-tagged conversation entry."""

    role: Literal["system", "user", "assistant", "tool"] = Field(
        ..., description="Message role"
    )
    content: MessageContent = Field(default="", description="Text or mixed text/image parts")
    tool_call_id: str | None = Field(default=None, description="Set on tool-result messages")
    tool_calls: list[ToolCall] | None = Field(default=None, description="Set on assistant turns")

    def text(self) -> str:
        """Concatenate the text parts of this message's content."""
        if isinstance(self.content, str):
            return self.content
        return "".join(part.text for part in self.content if isinstance(part, TextContent))


class CompletionRequest(BaseModel):
    """Request for one multi-turn completion."""

    messages: list[Message] = Field(..., description="Conversation messages")
    model: str | None = None
    max_tokens: int | None = Field(default=None, ge=1)
    temperature: float | None = Field(default=None, ge=0, le=2)
    system_prompt: str | None = None
    tools: list[ToolDefinition] | None = None


class Usage(BaseModel):
    """Token usage statistics, normalized across backends."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int | None = None
    cache_write_tokens: int | None = None


class CompletionResponse(BaseModel):
    """One completion returned by a backend."""

    content: str = Field(default="", description="Generated text")
    model: str = Field(..., description="Model that generated the response")
    tool_calls: list[ToolCall] | None = None
    usage: Usage | None = None
    stop_reason: str | None = None


class ProviderConfig(BaseModel):
    """Credentials and defaults handed to Provider.init()."""

    api_key: str | None = None
    base_url: str | None = None
    auth_token: str | None = None
    oauth_token: str | None = None
    model: str | None = None
    max_tokens: int | None = Field(default=None, ge=1)
    timeout: float | None = Field(default=None, gt=0, description="Seconds per backend call")
    max_retries: int | None = Field(default=None, ge=1)
