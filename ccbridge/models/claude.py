from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    field_validator,
)


StopReason = Literal["end_turn", "tool_use", "max_tokens"]
Role = Literal["user", "assistant", "system", "tool"]

_KNOWN_ROLES = {"user", "assistant", "system", "tool"}
_ROLE_ALIASES = {"tools": "tool"}


def normalize_role(value: Any) -> str:
    """Fold a client-supplied role onto the four known roles.

    Matching is case-insensitive, ``tools`` is an alias of ``tool`` and any
    unrecognised value becomes ``user``.
    """
    role = str(value or "").strip().lower()
    role = _ROLE_ALIASES.get(role, role)
    return role if role in _KNOWN_ROLES else "user"


# ===================================================================
# Error Models
# ===================================================================


class ErrorDetail(BaseModel):
    """Body of a Claude error envelope."""

    type: str
    message: str


class ErrorResponse(BaseModel):
    """The structure of an error response."""

    type: Literal["error"] = "error"
    error: ErrorDetail


# ===================================================================
# Messages API Models (/v1/messages)
# ===================================================================


class TextBlock(BaseModel):
    """A block of text content."""

    type: Literal["text"] = "text"
    text: str


class ToolUseBlock(BaseModel):
    """An invocation of a client-declared tool."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class ToolResultBlock(BaseModel):
    """The result of a tool invocation, sent back by the client."""

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str | list[Any] | dict[str, Any] | None = None
    is_error: bool | None = None


class OtherBlock(BaseModel):
    """Any content block this gateway has no mapping for (images, documents, ...)."""

    model_config = ConfigDict(extra="allow")

    type: str


def _content_block_tag(value: Any) -> str:
    block_type = (
        value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    )
    if block_type in ("text", "tool_use", "tool_result"):
        return str(block_type)
    return "other"


RequestContentBlock = Annotated[
    Annotated[TextBlock, Tag("text")]
    | Annotated[ToolUseBlock, Tag("tool_use")]
    | Annotated[ToolResultBlock, Tag("tool_result")]
    | Annotated[OtherBlock, Tag("other")],
    Discriminator(_content_block_tag),
]

ResponseContentBlock = Annotated[
    TextBlock | ToolUseBlock,
    Field(discriminator="type"),
]


class ClaudeMessage(BaseModel):
    """One conversation turn."""

    role: Role
    content: str | list[RequestContentBlock]

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: Any) -> str:
        return normalize_role(value)


class SystemBlock(BaseModel):
    """A text block of the top-level system prompt."""

    model_config = ConfigDict(extra="allow")

    type: Literal["text"] = "text"
    text: str


class ToolDefinition(BaseModel):
    """A tool the client makes available to the model."""

    name: str
    description: str | None = None
    input_schema: dict[str, Any] = Field(default_factory=dict)


class ToolChoice(BaseModel):
    """How the model may use the declared tools."""

    type: Literal["auto", "any", "tool", "none"]
    name: str | None = None


class MessagesRequest(BaseModel):
    """Request body of POST /v1/messages."""

    model: str
    messages: list[ClaudeMessage]
    system: str | list[SystemBlock] | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    stop_sequences: list[str] | None = None
    stream: bool | None = None
    tools: list[ToolDefinition] | None = None
    tool_choice: ToolChoice | None = None

    def system_text(self) -> str | None:
        """Return the system prompt as one string, or None when absent or empty."""
        if self.system is None:
            return None
        if isinstance(self.system, str):
            return self.system or None
        text = "\n".join(block.text for block in self.system)
        return text or None


class Usage(BaseModel):
    """Token usage counts."""

    input_tokens: int = 0
    output_tokens: int = 0


class MessageResponse(BaseModel):
    """A complete, non-streamed assistant message."""

    id: str
    type: Literal["message"] = "message"
    role: Literal["assistant"] = "assistant"
    model: str | None = None
    content: list[ResponseContentBlock] = Field(default_factory=list)
    stop_reason: StopReason | None = None
    stop_sequence: str | None = None
    usage: Usage = Field(default_factory=Usage)
