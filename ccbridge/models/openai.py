"""OpenAI Chat Completions wire models.

Request models are strict about what the gateway sends; response and stream
models tolerate unknown fields so that provider extensions do not break
decoding.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# ===================================================================
# Request Models (/chat/completions)
# ===================================================================


class FunctionCall(BaseModel):
    """Name and JSON-encoded arguments of a function call."""

    name: str
    arguments: str


class ChatToolCall(BaseModel):
    """A tool call recorded on an assistant message."""

    id: str
    type: Literal["function"] = "function"
    function: FunctionCall


class ChatMessage(BaseModel):
    """One message of a chat conversation."""

    role: Literal["system", "user", "assistant", "tool"]
    content: str | None = None
    tool_calls: list[ChatToolCall] | None = None
    tool_call_id: str | None = None


class FunctionDefinition(BaseModel):
    """Declaration of a callable function."""

    name: str
    description: str | None = None
    parameters: dict[str, Any] | None = None
    strict: bool | None = None


class FunctionTool(BaseModel):
    """A function tool declaration."""

    type: Literal["function"] = "function"
    function: FunctionDefinition


class StreamOptions(BaseModel):
    """Options that apply to streamed responses."""

    include_usage: bool = True


class ChatCompletionRequest(BaseModel):
    """Request body of POST /chat/completions."""

    model: str
    messages: list[ChatMessage]
    tools: list[FunctionTool] | None = None
    tool_choice: str | dict[str, Any] | None = None
    temperature: float | None = None
    top_p: float | None = None
    stop: list[str] | None = None
    max_completion_tokens: int | None = None
    stream: bool | None = None
    stream_options: StreamOptions | None = None


# ===================================================================
# Response Models
# ===================================================================


class CompletionUsage(BaseModel):
    """Token usage reported by the backend."""

    model_config = ConfigDict(extra="allow")

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ResponseFunctionCall(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    arguments: str | None = None


class ResponseToolCall(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = ""
    type: str = "function"
    function: ResponseFunctionCall = Field(default_factory=ResponseFunctionCall)


class ResponseMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str = "assistant"
    content: str | None = None
    tool_calls: list[ResponseToolCall] | None = None


class ChatChoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    index: int = 0
    message: ResponseMessage = Field(default_factory=ResponseMessage)
    finish_reason: str | None = None


class ChatCompletionResponse(BaseModel):
    """A complete, non-streamed chat completion."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    object: str | None = None
    created: int | None = None
    model: str | None = None
    choices: list[ChatChoice] = Field(default_factory=list)
    usage: CompletionUsage | None = None


# ===================================================================
# Stream Chunk Models
# ===================================================================


class FunctionCallDelta(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None
    arguments: str | None = None


class ToolCallDelta(BaseModel):
    """A fragment of one tool call; ``index`` is the backend's slot index."""

    model_config = ConfigDict(extra="allow")

    index: int | None = None
    id: str | None = None
    type: str | None = None
    function: FunctionCallDelta | None = None


class ChoiceDelta(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str | None = None
    content: str | None = None
    tool_calls: list[ToolCallDelta] | None = None


class StreamChoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    index: int = 0
    delta: ChoiceDelta = Field(default_factory=ChoiceDelta)
    finish_reason: str | None = None


class ChatCompletionChunk(BaseModel):
    """One streamed chat completion chunk."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    object: str | None = None
    created: int | None = None
    model: str | None = None
    choices: list[StreamChoice] = Field(default_factory=list)
    usage: CompletionUsage | None = None
