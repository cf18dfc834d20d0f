from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional


# --- Outgoing (request) contract ---

class AnthropicMessage(BaseModel):
    # The Messages API has no "system" role inside the message list
    role: Literal["user", "assistant"]
    content: str


class AnthropicMessagesRequest(BaseModel):
    """Body of POST /v1/messages."""
    model: str
    max_tokens: int
    temperature: float
    system: str = ""
    messages: List[AnthropicMessage]
    tools: List[Dict[str, Any]]


# --- Incoming (response) contract ---

class AnthropicContentBlock(BaseModel):
    """
    A single entry of the heterogeneous `content` sequence. Only the `type`
    tag is checked here; typed blocks below are decoded on demand so that
    block kinds we do not use (e.g. thinking) never fail the response.
    """
    model_config = ConfigDict(extra="allow")

    type: str


class AnthropicTextBlock(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["text"]
    text: str = ""


class AnthropicToolUseBlock(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["tool_use"]
    id: str
    name: str
    # Already-structured arguments; re-serialized to JSON text by the adapter
    input: Dict[str, Any] = Field(default_factory=dict)


class AnthropicMessagesResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    model: Optional[str] = None
    role: str = "assistant"
    content: List[AnthropicContentBlock] = Field(default_factory=list)
    stop_reason: Optional[str] = None
