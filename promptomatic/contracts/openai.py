from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional

# --- Outgoing (request) contract ---

class OpenAIMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class OpenAIChatRequest(BaseModel):
    """Body of POST /v1/chat/completions."""
    model: str
    messages: List[OpenAIMessage]
    temperature: float
    max_tokens: int
    tools: List[Dict[str, Any]]
    tool_choice: Literal["auto"] = "auto"


# --- Incoming (response) contract ---

class OpenAIFunctionCall(BaseModel):
    name: str
    # Arguments arrive as JSON text and are passed on untouched
    arguments: str


class OpenAIToolCall(BaseModel):
    id: str
    type: str = "function"
    function: OpenAIFunctionCall


class OpenAIResponseMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str = "assistant"
    content: Optional[str] = None
    tool_calls: Optional[List[OpenAIToolCall]] = None


class OpenAIChoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    index: int = 0
    message: OpenAIResponseMessage
    finish_reason: Optional[str] = None


class OpenAIChatResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    model: Optional[str] = None
    choices: List[OpenAIChoice] = Field(default_factory=list)
