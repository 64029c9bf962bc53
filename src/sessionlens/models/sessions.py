"""Session-level models for parsed transcripts."""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Speaker(StrEnum):
    """Who produced a conversation turn."""

    USER = "User"
    ASSISTANT = "Assistant"


class EntryKind(StrEnum):
    """Display shape of a conversation entry."""

    MESSAGE = "message"
    THINKING = "thinking"
    TOOL_USE = "tool_use"
    TOOL_RESULT = "tool_result"


ToolStatus = Literal["success", "error"]


class ConversationEntry(BaseModel):
    """One User or Assistant turn captured from a transcript."""

    index: int
    speaker: Speaker
    timestamp: str = ""
    content: str = ""
    kind: EntryKind = EntryKind.MESSAGE
    tool_name: str | None = None
    tool_input: str | None = None
    tool_output: str | None = None


class ToolOperation(BaseModel):
    """A tool invocation with its outcome."""

    name: str
    status: ToolStatus = "success"
    input: str | None = None
    output: str | None = None


class SessionMetadata(BaseModel):
    """Aggregate flags derived once when a session is assembled."""

    model_config = ConfigDict(frozen=True)

    has_errors: bool = False
    is_long_session: bool = False
    has_loops: bool = False
    tool_count: int = 0
    error_rate: float = Field(default=0.0, ge=0.0, le=1.0)


class ParsedSession(BaseModel):
    """Structured form of one transcript."""

    session_id: str = "unknown"
    project_name: str = "Unknown Project"
    source: str = ""
    duration_seconds: float = Field(default=0.0, ge=0.0)
    conversation: list[ConversationEntry] = Field(default_factory=list)
    tool_operations: list[ToolOperation] = Field(default_factory=list)
    metadata: SessionMetadata = Field(default_factory=SessionMetadata)
    has_struggle: bool = False
    struggle_indicators: list[str] = Field(default_factory=list)

    @property
    def message_count(self) -> int:
        return len(self.conversation)

    @property
    def user_message_count(self) -> int:
        return sum(1 for entry in self.conversation if entry.speaker is Speaker.USER)

    @property
    def assistant_message_count(self) -> int:
        return sum(1 for entry in self.conversation if entry.speaker is Speaker.ASSISTANT)

    @property
    def error_count(self) -> int:
        return sum(1 for op in self.tool_operations if op.status == "error")
