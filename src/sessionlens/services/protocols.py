"""Protocol definitions for services."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from result import Result

from sessionlens.models.search import SearchOptions, SearchResult, StrugglingSession
from sessionlens.models.sessions import ParsedSession


class SessionServiceProtocol(Protocol):
    """Interface for session lookups."""

    @property
    def sessions(self) -> tuple[ParsedSession, ...]: ...

    def list_sessions(self, project: str = "") -> list[ParsedSession]: ...

    def get_session(self, session_id: str) -> Result[ParsedSession, str]: ...


class SearchServiceProtocol(Protocol):
    """Interface for search operations."""

    def search(
        self, options: SearchOptions | Mapping[str, Any] | None = None
    ) -> Result[list[SearchResult], str]: ...

    def find_struggling(
        self, limit: int = 5, pattern: str | None = None
    ) -> Result[list[StrugglingSession], str]: ...
