"""Search models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

MAX_CONTEXT_LENGTH = 150


class SearchOptions(BaseModel):
    """Filters, keyword and paging for a session search.

    Field names also validate from camelCase (``minDuration``,
    ``strugglePattern``) so tool-call payloads can be passed straight in.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    keyword: str | None = None
    project: str | None = None
    min_duration: float | None = None
    max_duration: float | None = None
    has_struggle: bool | None = None
    struggle_pattern: str | None = None
    limit: int | None = Field(default=None, gt=0)
    offset: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_duration_bounds(self) -> SearchOptions:
        if (
            self.min_duration is not None
            and self.max_duration is not None
            and self.min_duration > self.max_duration
        ):
            raise ValueError("minDuration cannot be greater than maxDuration")
        return self


class SearchResult(BaseModel):
    """One ranked session for a query."""

    session_id: str
    project_name: str = ""
    duration_seconds: float = 0.0
    has_struggle: bool = False
    struggle_indicators: list[str] = Field(default_factory=list)
    relevance_score: float = Field(default=0.0, ge=0.0)
    match_context: str = Field(default="", max_length=MAX_CONTEXT_LENGTH)
    summary: str = ""


class StrugglingSession(BaseModel):
    """A session flagged as difficult, ranked by struggle score."""

    session_id: str
    project_name: str = "Unknown"
    duration: int = 0
    tool_count: int = 0
    error_count: int = 0
    indicators: list[str] = Field(default_factory=list)
    has_struggle: bool = False
    struggle_score: int = 0
