"""Session service: holds an immutable snapshot of parsed sessions."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from result import Err, Ok, Result

from sessionlens.data.parser import parse_transcript_file
from sessionlens.models.sessions import ParsedSession

if TYPE_CHECKING:
    from pathlib import Path

    from sessionlens.config import Config

logger = logging.getLogger(__name__)


class SessionService:
    """Service for session lookups over a fixed collection."""

    def __init__(self, sessions: Iterable[ParsedSession] = ()) -> None:
        self._sessions: tuple[ParsedSession, ...] = tuple(sessions)

    @classmethod
    def load_files(
        cls, paths: Iterable[Path], config: Config | None = None
    ) -> Result[SessionService, str]:
        """Parse transcript files into a new service.

        Unreadable files are logged and skipped. Returns Err only when paths
        were given and none of them could be read.
        """
        sessions: list[ParsedSession] = []
        failed = 0
        for path in paths:
            try:
                sessions.append(parse_transcript_file(path, config))
            except OSError:
                logger.warning("Skipping unreadable transcript %s", path, exc_info=True)
                failed += 1
        if failed and not sessions:
            return Err(f"Could not read any of {failed} transcript file(s)")
        return Ok(cls(sessions))

    @property
    def sessions(self) -> tuple[ParsedSession, ...]:
        return self._sessions

    def list_sessions(self, project: str = "") -> list[ParsedSession]:
        """Sessions in load order, optionally limited to a project substring."""
        if not project:
            return list(self._sessions)
        needle = project.lower()
        return [s for s in self._sessions if needle in s.project_name.lower()]

    def get_session(self, session_id: str) -> Result[ParsedSession, str]:
        for session in self._sessions:
            if session.session_id == session_id:
                return Ok(session)
        return Err(f"Session {session_id} not found")

    def get_stats(self) -> dict[str, int]:
        """Aggregate counts across the snapshot."""
        return {
            "total_sessions": len(self._sessions),
            "total_messages": sum(s.message_count for s in self._sessions),
            "total_tool_operations": sum(s.metadata.tool_count for s in self._sessions),
            "struggling_sessions": sum(1 for s in self._sessions if s.has_struggle),
        }
