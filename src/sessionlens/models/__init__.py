"""Pydantic models for sessionlens."""

from sessionlens.models.search import SearchOptions, SearchResult, StrugglingSession
from sessionlens.models.sessions import (
    ConversationEntry,
    EntryKind,
    ParsedSession,
    SessionMetadata,
    Speaker,
    ToolOperation,
    ToolStatus,
)

__all__ = [
    "ConversationEntry",
    "EntryKind",
    "ParsedSession",
    "SearchOptions",
    "SearchResult",
    "SessionMetadata",
    "Speaker",
    "StrugglingSession",
    "ToolOperation",
    "ToolStatus",
]
