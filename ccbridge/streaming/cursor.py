from dataclasses import dataclass, replace


@dataclass(frozen=True)
class BlockCursor:
    """Counts of text and tool-use blocks opened so far in one response.

    Both counters only grow. The client-visible index of the next block is
    their sum, so every block in a response gets a distinct index and indices
    increase in emission order whatever the mix of block kinds.
    """

    text: int = 0
    tool_use: int = 0

    @property
    def next_index(self) -> int:
        return self.text + self.tool_use

    def advance_text(self) -> "BlockCursor":
        return replace(self, text=self.text + 1)

    def advance_tool_use(self) -> "BlockCursor":
        return replace(self, tool_use=self.tool_use + 1)
