"""Shared fixtures for sessionlens tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from sessionlens.config import Config
from sessionlens.models.sessions import (
    ConversationEntry,
    ParsedSession,
    SessionMetadata,
    Speaker,
    ToolOperation,
)

SAMPLE_TRANSCRIPT_PATH = (
    Path(__file__).parent / "data" / "-Users-work-development-demo-app_1a2b3c4d.md"
)


@pytest.fixture
def sample_transcript_path() -> Path:
    """Path to the sample markdown transcript."""
    return SAMPLE_TRANSCRIPT_PATH


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_TRANSCRIPT_PATH.read_text(encoding="utf-8")


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def make_session() -> Callable[..., ParsedSession]:
    """Factory for hand-built sessions used by search tests."""

    def _make(
        session_id: str = "s1",
        project_name: str = "Demo",
        duration_seconds: float = 60,
        messages: list[tuple[Speaker, str]] | None = None,
        tool_names: list[str] | None = None,
        struggle_indicators: list[str] | None = None,
    ) -> ParsedSession:
        conversation = [
            ConversationEntry(index=i, speaker=speaker, timestamp="10:00 AM", content=content)
            for i, (speaker, content) in enumerate(messages or [], start=1)
        ]
        operations = [ToolOperation(name=name) for name in tool_names or []]
        indicators = list(struggle_indicators or [])
        return ParsedSession(
            session_id=session_id,
            project_name=project_name,
            duration_seconds=duration_seconds,
            conversation=conversation,
            tool_operations=operations,
            metadata=SessionMetadata(tool_count=len(operations)),
            has_struggle=bool(indicators),
            struggle_indicators=indicators,
        )

    return _make
