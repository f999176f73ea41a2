"""Claude Messages <-> OpenAI Chat Completions."""

import json
from typing import Any, ClassVar

from ccbridge.adapters.base import (
    FlatTurn,
    TranslatingAdapter,
    flatten_message,
    tool_result_text,
)
from ccbridge.core.logging import get_logger
from ccbridge.models.claude import (
    MessageResponse,
    MessagesRequest,
    StopReason,
    TextBlock,
    ToolChoice,
    ToolDefinition,
    ToolUseBlock,
    Usage,
)
from ccbridge.models.openai import (
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    ChatToolCall,
    FunctionCall,
    FunctionDefinition,
    FunctionTool,
    StreamOptions,
)
from ccbridge.streaming import BlockCursor, DeltaDecoder
from ccbridge.utils.identifiers import generate_message_id, generate_tool_use_id
from ccbridge.utils.schema import clean_json_schema


logger = get_logger(__name__)


def convert_tool_choice(tool_choice: ToolChoice | None) -> str | dict[str, Any]:
    """Convert a Claude tool_choice to its Chat Completions form."""
    if tool_choice is None:
        return "auto"
    if tool_choice.type == "any":
        return "required"  # OpenAI uses "required" for "must use a tool"
    if tool_choice.type == "tool":
        return {"type": "function", "function": {"name": tool_choice.name or ""}}
    return tool_choice.type


def parse_tool_arguments(arguments: str | None, tool_name: str) -> dict[str, Any]:
    """Parse complete tool arguments; anything but a JSON object becomes ``{}``."""
    if not arguments:
        return {}
    try:
        parsed = json.loads(arguments)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        return parsed

    logger.warning(
        "tool_arguments_parse_failed",
        tool_name=tool_name,
        arguments=arguments[:200] + "..." if len(arguments) > 200 else arguments,
    )
    return {}


class ChatDeltaDecoder(DeltaDecoder):
    """Decodes ``chat.completion.chunk`` payloads.

    Tool calls missing an id get a generated one, and the ``tool_use`` stop
    reason is only reported at the end of the stream.
    """

    def decode_payload(
        self, data: dict[str, Any], cursor: BlockCursor
    ) -> tuple[list[dict[str, Any]], BlockCursor]:
        chunk = ChatCompletionChunk.model_validate(data)
        self.response_id = self.response_id or chunk.id
        self.model = self.model or chunk.model
        if chunk.usage is not None:
            self.input_tokens = chunk.usage.prompt_tokens
            self.output_tokens = chunk.usage.completion_tokens

        if not chunk.choices:
            return [], cursor

        choice = chunk.choices[0]
        events: list[dict[str, Any]] = []

        if choice.delta.content:
            emitted, cursor = self.emit_text(choice.delta.content, cursor)
            events.extend(emitted)

        for tool_call in choice.delta.tool_calls or []:
            function = tool_call.function
            emitted, cursor = self.merge_tool_fragment(
                tool_call.index if tool_call.index is not None else 0,
                cursor,
                id=tool_call.id,
                name=function.name if function else None,
                arguments=function.arguments if function else None,
            )
            events.extend(emitted)

        if choice.finish_reason:
            self.truncated = choice.finish_reason == "length"

        return events, cursor


class OpenAIChatAdapter(TranslatingAdapter):
    """Adapter for OpenAI-compatible ``/chat/completions`` backends.

    Args:
        strict_tools: Ask the backend to enforce tool schemas exactly
    """

    name: ClassVar[str] = "openai"
    path: ClassVar[str] = "chat/completions"

    def __init__(self, strict_tools: bool = False) -> None:
        self.strict_tools = strict_tools

    def build_backend_body(self, request: MessagesRequest) -> dict[str, Any]:
        messages: list[ChatMessage] = []
        system = request.system_text()
        if system is not None:
            messages.append(ChatMessage(role="system", content=system))
        for message in request.messages:
            messages.extend(self._convert_turn(flatten_message(message)))

        chat_request = ChatCompletionRequest(
            model=request.model,
            messages=messages,
            temperature=request.temperature,
            top_p=request.top_p,
            stop=request.stop_sequences,
            max_completion_tokens=request.max_tokens,
            stream=request.stream,
        )
        if request.stream:
            chat_request.stream_options = StreamOptions(include_usage=True)
        if request.tools:
            chat_request.tools = [self._convert_tool(tool) for tool in request.tools]
            chat_request.tool_choice = convert_tool_choice(request.tool_choice)

        logger.debug(
            "chat_request_mapped",
            model=request.model,
            message_count=len(messages),
            tool_count=len(request.tools or []),
            stream=bool(request.stream),
        )
        return chat_request.model_dump(exclude_none=True)

    def _convert_turn(self, turn: FlatTurn) -> list[ChatMessage]:
        results = [
            ChatMessage(
                role="tool",
                tool_call_id=block.tool_use_id,
                content=tool_result_text(block),
            )
            for block in turn.tool_results
        ]
        if not turn.has_message:
            return results

        message = ChatMessage(role=turn.role, content=turn.text)  # type: ignore[arg-type]
        if turn.tool_calls:
            message.tool_calls = [
                ChatToolCall(
                    id=block.id,
                    function=FunctionCall(
                        name=block.name,
                        arguments=json.dumps(block.input, ensure_ascii=False),
                    ),
                )
                for block in turn.tool_calls
            ]

        if self.tool_results_first:
            return [*results, message]
        return [message, *results]

    def _convert_tool(self, tool: ToolDefinition) -> FunctionTool:
        return FunctionTool(
            function=FunctionDefinition(
                name=tool.name,
                description=tool.description,
                parameters=clean_json_schema(tool.input_schema),
                strict=True if self.strict_tools else None,
            )
        )

    def map_response(self, data: dict[str, Any]) -> MessageResponse:
        completion = ChatCompletionResponse.model_validate(data)
        content: list[TextBlock | ToolUseBlock] = []
        stop_reason: StopReason = "end_turn"

        if completion.choices:
            choice = completion.choices[0]
            if choice.message.content:
                content.append(TextBlock(text=choice.message.content))
            for tool_call in choice.message.tool_calls or []:
                content.append(
                    ToolUseBlock(
                        id=tool_call.id or generate_tool_use_id(),
                        name=tool_call.function.name,
                        input=parse_tool_arguments(
                            tool_call.function.arguments, tool_call.function.name
                        ),
                    )
                )
            if choice.message.tool_calls:
                stop_reason = "tool_use"
            elif choice.finish_reason == "length":
                stop_reason = "max_tokens"

        usage = Usage()
        if completion.usage is not None:
            usage = Usage(
                input_tokens=completion.usage.prompt_tokens,
                output_tokens=completion.usage.completion_tokens,
            )

        return MessageResponse(
            id=generate_message_id(),
            model=completion.model,
            content=content,
            stop_reason=stop_reason,
            usage=usage,
        )

    def create_decoder(self) -> ChatDeltaDecoder:
        return ChatDeltaDecoder()
