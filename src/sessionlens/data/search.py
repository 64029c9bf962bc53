"""In-memory filtering, keyword ranking and paging over parsed sessions."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from sessionlens.config import Config
from sessionlens.data.classifier import struggle_score
from sessionlens.models.search import (
    MAX_CONTEXT_LENGTH,
    SearchOptions,
    SearchResult,
    StrugglingSession,
)
from sessionlens.models.sessions import ParsedSession, Speaker

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = Config()
_CONTEXT_LEAD = 50
_USER_WEIGHT = 2
_PROJECT_BONUS = 3
_INDICATOR_BONUS = 2


@dataclass(frozen=True, slots=True)
class KeywordMatch:
    """Score and display context for one session against a keyword."""

    score: int
    context: str


def search_sessions(
    sessions: Iterable[ParsedSession] | None,
    options: SearchOptions | Mapping[str, Any] | None = None,
    config: Config | None = None,
) -> list[SearchResult]:
    """Filter, score, sort and page sessions.

    Options are validated before anything else; invalid options raise
    ``pydantic.ValidationError`` and no filtering happens.

    Args:
        sessions: Sessions to search, in ranking tie order. Any iterable is
            accepted and read once; strings and mappings count as no input.
        options: ``SearchOptions`` or a mapping with the same (snake or
            camel case) keys.
        config: Supplies the default page size and context length.

    Returns:
        Results ordered by descending relevance; equal scores keep input order.
    """
    opts = _validated(options)
    cfg = config or _DEFAULT_CONFIG

    snapshot = _as_list(sessions)
    if not snapshot:
        return []

    filtered = filter_sessions(snapshot, opts)

    if opts.keyword:
        results: list[SearchResult] = []
        for session in filtered:
            match = score_keyword(session, opts.keyword, cfg.max_context_length)
            if match.score > 0:
                results.append(_to_result(session, float(match.score), match.context))
    else:
        results = [_to_result(session, 1.0, "") for session in filtered]

    # list.sort is stable: ties keep filter order.
    results.sort(key=lambda result: result.relevance_score, reverse=True)

    offset = opts.offset or 0
    limit = opts.limit if opts.limit is not None else cfg.default_limit
    return results[offset : offset + limit]


def filter_sessions(
    sessions: Iterable[ParsedSession], options: SearchOptions
) -> list[ParsedSession]:
    """Apply the structured filters that are set; they combine with AND."""
    filtered = list(sessions)

    if options.project:
        needle = options.project.lower()
        filtered = [s for s in filtered if s.project_name and needle in s.project_name.lower()]
    if options.min_duration is not None:
        filtered = [s for s in filtered if s.duration_seconds >= options.min_duration]
    if options.max_duration is not None:
        filtered = [s for s in filtered if s.duration_seconds <= options.max_duration]
    if options.has_struggle is not None:
        filtered = [s for s in filtered if s.has_struggle == options.has_struggle]
    if options.struggle_pattern:
        filtered = [s for s in filtered if options.struggle_pattern in s.struggle_indicators]

    return filtered


def score_keyword(
    session: ParsedSession, keyword: str, max_context: int = MAX_CONTEXT_LENGTH
) -> KeywordMatch:
    """Relevance of a session to a keyword.

    User turns count double, a project-name hit adds 3 and each struggle
    indicator containing the keyword adds 2. Matching is literal and
    case-insensitive. The context never exceeds ``MAX_CONTEXT_LENGTH``.
    """
    max_context = min(max_context, MAX_CONTEXT_LENGTH)
    needle = keyword.lower()
    if not needle:
        return KeywordMatch(0, "")

    score = 0
    context = ""
    for entry in session.conversation:
        if not entry.content:
            continue
        lowered = entry.content.lower()
        count = lowered.count(needle)
        if count == 0:
            continue
        score += count * (_USER_WEIGHT if entry.speaker is Speaker.USER else 1)
        if not context:
            context = match_context(entry.content, lowered.index(needle), max_context)

    if session.project_name and needle in session.project_name.lower():
        score += _PROJECT_BONUS
        if not context:
            context = f"Project: {session.project_name}"

    for indicator in session.struggle_indicators:
        if needle in indicator.lower():
            score += _INDICATOR_BONUS
            if not context:
                context = f"Struggle pattern: {indicator}"

    return KeywordMatch(score, context[:max_context])


def match_context(content: str, position: int, max_length: int = MAX_CONTEXT_LENGTH) -> str:
    """Excerpt around ``position``, starting 50 characters before it."""
    start = max(0, position - _CONTEXT_LEAD)
    end = min(len(content), position + max_length - _CONTEXT_LEAD)
    excerpt = content[start:end]
    if len(excerpt) >= max_length:
        excerpt = excerpt[: max_length - 3] + "..."
    return excerpt


def summarize_session(session: ParsedSession) -> str:
    """One-line description; fields with no value are left out."""
    parts = [f"{_round_half_up(session.duration_seconds / 60)}min session"]
    if session.project_name:
        parts.append(f"Project: {session.project_name}")
    if session.metadata.tool_count:
        parts.append(f"{session.metadata.tool_count} tools")
    if session.conversation:
        parts.append(f"{len(session.conversation)} messages")
    if session.has_struggle:
        parts.append("Had struggles")
    return " • ".join(parts)


def find_struggling_sessions(
    sessions: Iterable[ParsedSession],
    limit: int = 5,
    pattern: str | None = None,
    config: Config | None = None,
) -> list[StrugglingSession]:
    """Sessions showing difficulty, longest first.

    ``pattern`` is a case-insensitive regex matched against project names,
    struggle indicators and failed tool operations (as JSON). An invalid
    pattern is ignored.
    """
    cfg = config or _DEFAULT_CONFIG
    candidates = [session for session in _as_list(sessions) if _shows_struggle(session, cfg)]

    if pattern:
        try:
            regex = re.compile(pattern, re.IGNORECASE)
        except re.error as exc:
            logger.warning("Invalid struggle pattern %r: %s", pattern, exc)
        else:
            candidates = [
                session
                for session in candidates
                if regex.search(session.project_name)
                or any(regex.search(indicator) for indicator in session.struggle_indicators)
                or any(
                    regex.search(op.model_dump_json())
                    for op in session.tool_operations
                    if op.status == "error"
                )
            ]

    candidates.sort(key=lambda session: session.duration_seconds, reverse=True)
    return [
        StrugglingSession(
            session_id=session.session_id,
            project_name=session.project_name or "Unknown",
            duration=_round_half_up(session.duration_seconds),
            tool_count=session.metadata.tool_count,
            error_count=session.error_count,
            indicators=list(session.struggle_indicators),
            has_struggle=session.has_struggle,
            struggle_score=struggle_score(session, cfg),
        )
        for session in candidates[: max(limit, 0)]
    ]


def _shows_struggle(session: ParsedSession, config: Config) -> bool:
    return (
        session.has_struggle
        or session.duration_seconds > config.long_session_seconds
        or session.metadata.tool_count > config.many_tools_threshold
        or session.error_count > 0
        or bool(session.struggle_indicators)
    )


def _as_list(sessions: Iterable[ParsedSession] | None) -> list[ParsedSession]:
    if sessions is None or isinstance(sessions, (str, bytes, Mapping)):
        return []
    if not isinstance(sessions, Iterable):
        logger.debug("Ignoring non-iterable sessions input: %s", type(sessions).__name__)
        return []
    return list(sessions)


def _validated(options: SearchOptions | Mapping[str, Any] | None) -> SearchOptions:
    if options is None:
        return SearchOptions()
    if isinstance(options, SearchOptions):
        return options
    return SearchOptions.model_validate(dict(options))


def _to_result(session: ParsedSession, score: float, context: str) -> SearchResult:
    return SearchResult(
        session_id=session.session_id,
        project_name=session.project_name,
        duration_seconds=session.duration_seconds,
        has_struggle=session.has_struggle,
        struggle_indicators=list(session.struggle_indicators),
        relevance_score=score,
        match_context=context,
        summary=summarize_session(session),
    )


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
