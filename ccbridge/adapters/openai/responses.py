"""Claude Messages <-> OpenAI Responses API."""

import json
from typing import Any, ClassVar

from ccbridge.adapters.base import (
    FlatTurn,
    TranslatingAdapter,
    flatten_message,
    tool_result_text,
)
from ccbridge.adapters.openai.chat import parse_tool_arguments
from ccbridge.core.logging import get_logger
from ccbridge.models.claude import (
    MessageResponse,
    MessagesRequest,
    StopReason,
    TextBlock,
    ToolChoice,
    ToolUseBlock,
    Usage,
)
from ccbridge.models.responses import (
    FunctionCallItem,
    FunctionCallOutputItem,
    InputItem,
    InputMessage,
    ResponseObject,
    ResponsesFunctionTool,
    ResponsesRequest,
    ResponseStreamEvent,
)
from ccbridge.streaming import BlockCursor, DeltaDecoder
from ccbridge.utils.identifiers import generate_message_id, generate_tool_use_id
from ccbridge.utils.schema import clean_json_schema


logger = get_logger(__name__)

TRUNCATION_REASONS = {"max_output_tokens"}


def convert_tool_choice(tool_choice: ToolChoice | None) -> str | dict[str, Any]:
    """Convert a Claude tool_choice to its Responses API form."""
    if tool_choice is None:
        return "auto"
    if tool_choice.type == "any":
        return "required"
    if tool_choice.type == "tool":
        return {"type": "function", "name": tool_choice.name or ""}
    return tool_choice.type


def is_truncated(response: ResponseObject) -> bool:
    if response.status != "incomplete":
        return False
    reason = response.incomplete_details.reason if response.incomplete_details else None
    return reason in TRUNCATION_REASONS


class ResponsesDeltaDecoder(DeltaDecoder):
    """Decodes typed Responses API stream events.

    The client answers a tool call by its ``call_id``, so a call is only
    emitted once that id is known. Each completed call is announced with an
    immediate ``tool_use`` stop reason.
    """

    require_tool_id = True
    announce_tool_use_early = True

    def decode_payload(
        self, data: dict[str, Any], cursor: BlockCursor
    ) -> tuple[list[dict[str, Any]], BlockCursor]:
        event = ResponseStreamEvent.model_validate(data)
        slot = event.output_index if event.output_index is not None else 0

        if event.type in ("response.created", "response.in_progress"):
            if event.response is not None:
                self.response_id = self.response_id or event.response.id
                self.model = self.model or event.response.model
            return [], cursor

        if event.type == "response.output_text.delta":
            return self.emit_text(event.delta or "", cursor)

        if event.type == "response.output_item.added":
            item = event.item
            if item is None or item.type != "function_call":
                return [], cursor
            return self.merge_tool_fragment(
                slot,
                cursor,
                id=item.call_id,
                name=item.name,
                arguments=item.arguments,
            )

        if event.type == "response.function_call_arguments.delta":
            return self.merge_tool_fragment(slot, cursor, arguments=event.delta)

        if event.type == "response.output_item.done":
            item = event.item
            pending = self.accumulator.get(slot)
            if item is None or item.type != "function_call" or pending is None:
                return [], cursor
            # Arguments already streamed as deltas are not appended again
            return self.merge_tool_fragment(
                slot,
                cursor,
                id=item.call_id,
                name=item.name,
                arguments=None if pending.arguments else item.arguments,
            )

        if event.type in ("response.completed", "response.incomplete"):
            response = event.response
            if response is not None:
                if response.usage is not None:
                    self.input_tokens = response.usage.input_count
                    self.output_tokens = response.usage.output_count
                self.truncated = is_truncated(response)
            return [], cursor

        if event.type in ("response.failed", "error"):
            error = event.response.error if event.response is not None else None
            if event.response is not None and event.response.usage is not None:
                self.input_tokens = event.response.usage.input_count
                self.output_tokens = event.response.usage.output_count
            logger.warning(
                "backend_stream_failed",
                event_type=event.type,
                response_id=self.response_id,
                error_code=error.code if error else event.code,
                error_message=error.message if error else event.message,
            )
            return [], cursor

        return [], cursor


class OpenAIResponsesAdapter(TranslatingAdapter):
    """Adapter for backends exposing the OpenAI ``/responses`` endpoint."""

    name: ClassVar[str] = "openai_responses"
    path: ClassVar[str] = "responses"

    def build_backend_body(self, request: MessagesRequest) -> dict[str, Any]:
        items: list[InputItem] = []
        system = request.system_text()
        if system is not None:
            items.append(InputMessage(role="system", content=system))
        for message in request.messages:
            items.extend(self._convert_turn(flatten_message(message)))

        responses_request = ResponsesRequest(
            model=request.model,
            input=items,
            temperature=request.temperature,
            top_p=request.top_p,
            max_output_tokens=request.max_tokens,
            stream=request.stream,
            store=False,
        )
        if request.tools:
            responses_request.tools = [
                ResponsesFunctionTool(
                    name=tool.name,
                    description=tool.description,
                    parameters=clean_json_schema(tool.input_schema),
                )
                for tool in request.tools
            ]
            responses_request.tool_choice = convert_tool_choice(request.tool_choice)

        logger.debug(
            "responses_request_mapped",
            model=request.model,
            item_count=len(items),
            tool_count=len(request.tools or []),
            stream=bool(request.stream),
        )
        return responses_request.model_dump(exclude_none=True)

    def _convert_turn(self, turn: FlatTurn) -> list[InputItem]:
        results: list[InputItem] = [
            FunctionCallOutputItem(
                call_id=block.tool_use_id, output=tool_result_text(block)
            )
            for block in turn.tool_results
        ]
        own: list[InputItem] = []
        if turn.text is not None:
            own.append(InputMessage(role=turn.role, content=turn.text))  # type: ignore[arg-type]
        own.extend(
            FunctionCallItem(
                call_id=block.id,
                name=block.name,
                arguments=json.dumps(block.input, ensure_ascii=False),
            )
            for block in turn.tool_calls
        )

        if self.tool_results_first:
            return [*results, *own]
        return [*own, *results]

    def map_response(self, data: dict[str, Any]) -> MessageResponse:
        response = ResponseObject.model_validate(data)
        content: list[TextBlock | ToolUseBlock] = []
        has_tool_calls = False

        for item in response.output:
            if item.type == "message":
                for part in item.content or []:
                    if part.type == "output_text" and part.text:
                        content.append(TextBlock(text=part.text))
            elif item.type == "function_call":
                has_tool_calls = True
                name = item.name or ""
                content.append(
                    ToolUseBlock(
                        id=item.call_id or item.id or generate_tool_use_id(),
                        name=name,
                        input=parse_tool_arguments(item.arguments, name),
                    )
                )

        stop_reason: StopReason = "end_turn"
        if has_tool_calls:
            stop_reason = "tool_use"
        elif is_truncated(response):
            stop_reason = "max_tokens"

        usage = Usage()
        if response.usage is not None:
            usage = Usage(
                input_tokens=response.usage.input_count,
                output_tokens=response.usage.output_count,
            )

        return MessageResponse(
            id=generate_message_id(),
            model=response.model,
            content=content,
            stop_reason=stop_reason,
            usage=usage,
        )

    def create_decoder(self) -> ResponsesDeltaDecoder:
        return ResponsesDeltaDecoder()
