"""Assemble a ParsedSession from a markdown transcript."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable
from pathlib import Path

from sessionlens.config import Config
from sessionlens.data.classifier import has_error_mentions, struggle_indicators
from sessionlens.data.metadata import (
    UNKNOWN_PROJECT,
    UNKNOWN_SESSION_ID,
    extract_duration,
    extract_project_name,
    extract_session_id,
)
from sessionlens.data.scanner import scan_conversation
from sessionlens.data.tools import extract_tool_operations
from sessionlens.models.sessions import (
    ConversationEntry,
    ParsedSession,
    SessionMetadata,
    ToolOperation,
)

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = Config()


def parse_transcript(text: str, source: str = "", config: Config | None = None) -> ParsedSession:
    """Parse transcript text into a session.

    Never raises on content: each extraction step that fails falls back to
    its empty default and the failure is logged.
    """
    cfg = config or _DEFAULT_CONFIG
    text = text or ""

    session_id = _safely(extract_session_id, source, UNKNOWN_SESSION_ID)
    project_name = _safely(extract_project_name, source, UNKNOWN_PROJECT)
    duration = _safely(extract_duration, text, 0.0)
    conversation: list[ConversationEntry] = _safely(scan_conversation, text, [])
    tool_operations: list[ToolOperation] = _safely(
        lambda body: extract_tool_operations(body, cfg), text, []
    )

    metadata = build_metadata(text, duration, tool_operations, cfg)
    indicators = struggle_indicators(metadata, cfg)

    return ParsedSession(
        session_id=session_id,
        project_name=project_name,
        source=source,
        duration_seconds=max(duration, 0.0),
        conversation=conversation,
        tool_operations=tool_operations,
        metadata=metadata,
        has_struggle=bool(indicators),
        struggle_indicators=indicators,
    )


def parse_transcript_file(path: Path, config: Config | None = None) -> ParsedSession:
    """Read a transcript file and parse it. I/O errors propagate."""
    text = path.read_text(encoding="utf-8", errors="replace")
    return parse_transcript(text, source=path.name, config=config)


def build_metadata(
    text: str,
    duration_seconds: float,
    tool_operations: list[ToolOperation],
    config: Config,
) -> SessionMetadata:
    tool_count = len(tool_operations)
    errors = sum(1 for op in tool_operations if op.status == "error")
    name_counts = Counter(op.name for op in tool_operations)
    return SessionMetadata(
        has_errors=has_error_mentions(text, config.error_mention_threshold),
        is_long_session=duration_seconds > config.long_session_seconds,
        has_loops=any(count > config.loop_threshold for count in name_counts.values()),
        tool_count=tool_count,
        error_rate=errors / max(1, tool_count),
    )


def _safely[T](step: Callable[[str], T], value: str, default: T) -> T:
    try:
        return step(value)
    except Exception:
        logger.exception("Transcript extraction step failed; using default")
        return default
