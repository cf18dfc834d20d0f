from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Literal, List

# --- Transcript Models ---

class Message(BaseModel):
    """One transcript entry. Order matters: the transcript is replayed verbatim every turn."""
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant", "system"]
    content: str


# --- Canonical Internal Models ---

class CanonicalToolCall(BaseModel):
    """
    A vendor-neutral function invocation. `arguments_json` is always the JSON
    text of an object, whatever shape the vendor delivered it in.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    arguments_json: str


class CanonicalResult(BaseModel):
    """
    The single normalized shape every adapter produces for one turn.
    This is the only provider output the router and orchestrator work with.
    """
    model_config = ConfigDict(frozen=True)

    content: str = ""
    tool_calls: List[CanonicalToolCall] = Field(default_factory=list)

    @property
    def first_tool_call(self) -> Optional[CanonicalToolCall]:
        return self.tool_calls[0] if self.tool_calls else None


class ProjectRequirements(BaseModel):
    """Structured requirements delivered by the `generate_final_prompt` tool."""
    model_config = ConfigDict(populate_by_name=True)

    purpose: str
    target_users: str = Field(alias="targetUsers")
    features: List[str]
    data_model: str = Field(alias="dataModel")
    persistence: str
    user_flows: str = Field(alias="userFlows")
    security: str
    constraints: str


# --- Request Models ---

class ChatRequest(BaseModel):
    """Request body of the stateless chat proxy."""
    messages: Optional[List[Message]] = None
    temperature: float = 0.7
    max_tokens: int = Field(default=1000, alias="maxTokens")

    model_config = ConfigDict(populate_by_name=True)


class InterviewMessageBody(BaseModel):
    """A user answer submitted to a running interview."""
    content: str = Field(..., min_length=1)


# --- Response Models ---

class ToolCallFunction(BaseModel):
    name: str
    arguments: str


class ToolCall(BaseModel):
    id: str
    type: Literal["function"] = "function"
    function: ToolCallFunction

    @classmethod
    def from_canonical(cls, call: CanonicalToolCall) -> "ToolCall":
        return cls(id=call.id, function=ToolCallFunction(name=call.name, arguments=call.arguments_json))


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    tool_calls: Optional[List[ToolCall]] = Field(default=None, alias="toolCalls")

    @classmethod
    def from_result(cls, result: CanonicalResult) -> "ChatResponse":
        tool_calls = [ToolCall.from_canonical(call) for call in result.tool_calls] or None
        return cls(content=result.content, tool_calls=tool_calls)


class ErrorResponse(BaseModel):
    error: str


class InterviewSnapshot(BaseModel):
    """Client-facing view of an interview session. The system instruction is never exposed."""
    session_id: str
    state: Literal["initializing", "awaiting_user", "complete", "errored"]
    messages: List[Message]
    error: Optional[str] = None
    error_kind: Optional[str] = None
    requirements: Optional[ProjectRequirements] = None
    final_prompt: Optional[str] = None
