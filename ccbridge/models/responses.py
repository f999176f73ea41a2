"""OpenAI Responses API wire models (POST /responses)."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# ===================================================================
# Request Models
# ===================================================================


class InputMessage(BaseModel):
    """A conversational message item."""

    type: Literal["message"] = "message"
    role: Literal["system", "user", "assistant"]
    content: str


class FunctionCallItem(BaseModel):
    """A function call previously made by the model."""

    type: Literal["function_call"] = "function_call"
    call_id: str
    name: str
    arguments: str


class FunctionCallOutputItem(BaseModel):
    """The client's result for an earlier function call."""

    type: Literal["function_call_output"] = "function_call_output"
    call_id: str
    output: str


InputItem = Annotated[
    InputMessage | FunctionCallItem | FunctionCallOutputItem,
    Field(discriminator="type"),
]


class ResponsesFunctionTool(BaseModel):
    """Function tool declaration, flat in this API."""

    type: Literal["function"] = "function"
    name: str
    description: str | None = None
    parameters: dict[str, Any] | None = None
    strict: bool | None = None


class ResponsesRequest(BaseModel):
    """Request body of POST /responses."""

    model: str
    input: list[InputItem]
    tools: list[ResponsesFunctionTool] | None = None
    tool_choice: str | dict[str, Any] | None = None
    temperature: float | None = None
    top_p: float | None = None
    max_output_tokens: int | None = None
    stream: bool | None = None
    store: bool | None = None


# ===================================================================
# Response Models
# ===================================================================


class ResponseUsage(BaseModel):
    """Usage block; legacy chat-style counter names are accepted too."""

    model_config = ConfigDict(extra="allow")

    input_tokens: int | None = None
    output_tokens: int | None = None
    prompt_tokens: int | None = None
    completion_tokens: int | None = None

    @property
    def input_count(self) -> int:
        return self.input_tokens or self.prompt_tokens or 0

    @property
    def output_count(self) -> int:
        return self.output_tokens or self.completion_tokens or 0


class OutputContent(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    text: str | None = None


class OutputItem(BaseModel):
    """One item of ``output``: a message, a function call, reasoning, ..."""

    model_config = ConfigDict(extra="allow")

    type: str
    id: str | None = None
    role: str | None = None
    content: list[OutputContent] | None = None
    call_id: str | None = None
    name: str | None = None
    arguments: str | None = None


class IncompleteDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    reason: str | None = None


class ResponseError(BaseModel):
    """Why a response failed."""

    model_config = ConfigDict(extra="allow")

    code: str | int | None = None
    message: str | None = None


class ResponseObject(BaseModel):
    """A complete response object, also carried by lifecycle stream events."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    object: str | None = None
    model: str | None = None
    status: str | None = None
    output: list[OutputItem] = Field(default_factory=list)
    usage: ResponseUsage | None = None
    incomplete_details: IncompleteDetails | None = None
    error: ResponseError | None = None


# ===================================================================
# Stream Event Models
# ===================================================================


class ResponseStreamEvent(BaseModel):
    """Envelope shared by every streamed event; fields depend on ``type``."""

    model_config = ConfigDict(extra="allow")

    type: str
    response: ResponseObject | None = None
    output_index: int | None = None
    item_id: str | None = None
    item: OutputItem | None = None
    delta: str | None = None
    arguments: str | None = None
    # Top-level fields of ``error`` events
    code: str | int | None = None
    message: str | None = None
