"""Search service wrapping the in-memory search engine."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from result import Err, Ok, Result

from sessionlens.data.search import find_struggling_sessions, search_sessions
from sessionlens.models.search import SearchOptions, SearchResult, StrugglingSession

if TYPE_CHECKING:
    from sessionlens.config import Config
    from sessionlens.services.session_service import SessionService


class SearchService:
    """Service for ranked session search."""

    def __init__(self, session_service: SessionService, config: Config | None = None) -> None:
        self._sessions = session_service
        self._config = config

    def search(
        self, options: SearchOptions | Mapping[str, Any] | None = None
    ) -> Result[list[SearchResult], str]:
        """Search the loaded sessions. Invalid options come back as Err."""
        try:
            results = search_sessions(self._sessions.sessions, options, self._config)
        except ValidationError as exc:
            messages = "; ".join(error["msg"] for error in exc.errors())
            return Err(f"Invalid search options: {messages}")
        return Ok(results)

    def find_struggling(
        self, limit: int = 5, pattern: str | None = None
    ) -> Result[list[StrugglingSession], str]:
        if limit <= 0:
            return Err("limit must be positive")
        return Ok(
            find_struggling_sessions(self._sessions.sessions, limit, pattern, self._config)
        )
