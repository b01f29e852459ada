"""Typed transcript entries and their content blocks.

Raw transcript JSON carries content either as a plain string or as a list of
blocks tagged by ``type`` ("text", "tool_use", "tool_result"). Blocks are
converted once, at the parse boundary, into the dataclasses below; everything
downstream dispatches on the block class instead of on dict keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"

# Transcript fields on tool input that name a file.
_PATH_FIELDS = ("file_path", "path")


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ToolUseBlock:
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResultBlock:
    content: str | tuple[ContentBlock, ...] = ""

    def text(self) -> str:
        """Return the result as text; nested blocks contribute their text only."""
        if isinstance(self.content, str):
            return self.content
        return "\n".join(b.text for b in self.content if isinstance(b, TextBlock))


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock]


@dataclass(frozen=True)
class Entry:
    """One conversational event from a transcript.

    Attributes:
        index: Line number in the transcript (0-based). Skipped lines still
            consume an index, so indices are stable across re-parses.
        role: ``"user"`` or ``"assistant"``.
        blocks: Content blocks in transcript order.
        timestamp: ISO-8601 timestamp if the transcript recorded one.
        uuid: Transcript-assigned entry id, if any.
        is_sidechain: Internal (non user-facing) entry; never chunked.
    """

    index: int
    role: str
    blocks: tuple[ContentBlock, ...] = ()
    timestamp: str | None = None
    uuid: str | None = None
    is_sidechain: bool = False

    @property
    def is_user(self) -> bool:
        return self.role == ROLE_USER

    @property
    def is_assistant(self) -> bool:
        return self.role == ROLE_ASSISTANT

    def text(self) -> str:
        """Free text of the entry (text blocks only, newline-joined)."""
        return "\n".join(b.text for b in self.blocks if isinstance(b, TextBlock) and b.text)

    def tool_names(self) -> list[str]:
        return [b.name for b in self.blocks if isinstance(b, ToolUseBlock)]

    def file_paths(self) -> list[str]:
        """File paths named by the ``file_path`` / ``path`` fields of tool inputs."""
        paths: list[str] = []
        for block in self.blocks:
            if isinstance(block, ToolUseBlock):
                for key in _PATH_FIELDS:
                    value = block.input.get(key)
                    if isinstance(value, str):
                        paths.append(value)
        return paths

    def tool_results(self) -> str:
        texts = (b.text() for b in self.blocks if isinstance(b, ToolResultBlock))
        return "\n".join(t for t in texts if t)


def block_from_raw(raw: Any) -> ContentBlock | None:
    """Convert one raw JSON content block; unknown or malformed blocks give None."""
    if not isinstance(raw, dict):
        return None
    kind = raw.get("type")
    if kind == "text":
        text = raw.get("text")
        return TextBlock(text=text if isinstance(text, str) else "")
    if kind == "tool_use":
        name = raw.get("name")
        if not isinstance(name, str) or not name:
            return None
        tool_input = raw.get("input")
        return ToolUseBlock(name=name, input=tool_input if isinstance(tool_input, dict) else {})
    if kind == "tool_result":
        content = raw.get("content")
        if isinstance(content, str):
            return ToolResultBlock(content=content)
        if isinstance(content, list):
            return ToolResultBlock(content=blocks_from_raw(content))
        return ToolResultBlock()
    return None


def blocks_from_raw(content: Any) -> tuple[ContentBlock, ...]:
    """Convert message content (string or list of blocks) to typed blocks."""
    if isinstance(content, str):
        return (TextBlock(text=content),) if content else ()
    if isinstance(content, list):
        blocks = (block_from_raw(item) for item in content)
        return tuple(b for b in blocks if b is not None)
    return ()
