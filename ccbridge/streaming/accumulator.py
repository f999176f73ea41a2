"""Reassembly of tool calls whose arguments arrive in fragments.

Backends stream a tool call as a series of fragments addressed by a slot
index. The accumulator keeps one append-only buffer per slot and tries a
structured parse after every append. A failed parse only means the buffer is
not complete yet.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any


class SlotState(str, Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    COMPLETE = "complete"


_INCOMPLETE = object()


def parse_arguments(text: str) -> Any:
    """Parse an arguments buffer, returning ``_INCOMPLETE`` unless it is a JSON object."""
    try:
        value = json.loads(text)
    except ValueError:
        return _INCOMPLETE
    return value if isinstance(value, dict) else _INCOMPLETE


@dataclass
class ToolCallSlot:
    """Partially received tool call for one backend slot."""

    id: str | None = None
    name: str | None = None
    arguments: str = ""
    state: SlotState = SlotState.EMPTY

    def merge(
        self,
        id: str | None = None,
        name: str | None = None,
        arguments: str | None = None,
    ) -> None:
        if id:
            self.id = id
        if name:
            self.name = name
        if arguments:
            self.arguments += arguments
        self.state = SlotState.ACCUMULATING


@dataclass(frozen=True)
class CompletedToolCall:
    """A tool call whose arguments parsed as a JSON object."""

    slot: int
    id: str | None
    name: str
    input: dict[str, Any]


class ToolCallAccumulator:
    """Per-response map of slot index to partially received tool call.

    Args:
        require_id: Hold a call back until its id has arrived, for dialects
            where the id is what the client will answer with.
    """

    def __init__(self, require_id: bool = False) -> None:
        self.require_id = require_id
        self._slots: dict[int, ToolCallSlot] = {}

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, slot: object) -> bool:
        return slot in self._slots

    def get(self, slot: int) -> ToolCallSlot | None:
        return self._slots.get(slot)

    def add_fragment(
        self,
        slot: int,
        id: str | None = None,
        name: str | None = None,
        arguments: str | None = None,
    ) -> CompletedToolCall | None:
        """Merge a fragment into its slot and return the call once complete.

        A completed slot is removed, so a later unrelated call may reuse the
        same slot index. Fragments carrying nothing never open a slot.
        """
        if not (id or name or arguments) and slot not in self._slots:
            return None
        entry = self._slots.setdefault(slot, ToolCallSlot())
        entry.merge(id=id, name=name, arguments=arguments)
        return self._try_complete(slot, entry)

    def _try_complete(self, slot: int, entry: ToolCallSlot) -> CompletedToolCall | None:
        if not entry.name or not entry.arguments:
            return None
        if self.require_id and not entry.id:
            return None

        parsed = parse_arguments(entry.arguments)
        if parsed is _INCOMPLETE:
            return None

        entry.state = SlotState.COMPLETE
        del self._slots[slot]
        return CompletedToolCall(slot=slot, id=entry.id, name=entry.name, input=parsed)

    def drain(self) -> dict[int, ToolCallSlot]:
        """Remove and return every slot still accumulating."""
        pending, self._slots = self._slots, {}
        return pending
