"""Heuristic error and struggle classification over transcript text."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sessionlens.config import Config
    from sessionlens.models.sessions import ParsedSession, SessionMetadata

# Text that talks about errors without reporting one. Checked first.
EXCLUSION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"no error",
        r"without error",
        r"fix.*error",
        r"handle.*error",
        r"error.*handling",
        r"error.*message.*for",
    )
)

ERROR_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"<tool_use_error>", re.IGNORECASE),
    re.compile(r"tool.*(?:failed|error)", re.IGNORECASE),
    re.compile(r"operation.*(?:failed|unsuccessful)", re.IGNORECASE),
    re.compile(r"string to replace not found", re.IGNORECASE),
    re.compile(r"file not found", re.IGNORECASE),
    re.compile(r"permission denied", re.IGNORECASE),
    re.compile(r"command not found", re.IGNORECASE),
    re.compile(r"syntax error", re.IGNORECASE),
    re.compile(r"❌"),
    re.compile(r"\bfailed\b", re.IGNORECASE),
    re.compile(r"\berror\b.*:", re.IGNORECASE),
    re.compile(r"unsuccessful", re.IGNORECASE),
)

_ERROR_MENTION_RE = re.compile(r"error|failed|problem", re.IGNORECASE)

REPETITIVE_TOOLS = "repetitive_tools"
LONG_SESSION = "long_session"
HIGH_ERROR_RATE = "high_error_rate"
CONVERSATION_ISSUES = "conversation_issues"


def is_error_context(window: str) -> bool:
    """Whether a text window reports a failure.

    Any exclusion match wins over every error pattern, so a window that says
    "error handling" is never an error even if it also says "failed".
    """
    if not window:
        return False
    if any(pattern.search(window) for pattern in EXCLUSION_PATTERNS):
        return False
    return any(pattern.search(window) for pattern in ERROR_PATTERNS)


def count_error_mentions(text: str) -> int:
    return len(_ERROR_MENTION_RE.findall(text))


def has_error_mentions(text: str, threshold: int = 5) -> bool:
    """Coarse session-wide signal: more than ``threshold`` error-ish words."""
    return count_error_mentions(text) > threshold


def struggle_indicators(metadata: SessionMetadata, config: Config) -> list[str]:
    indicators: list[str] = []
    if metadata.has_loops:
        indicators.append(REPETITIVE_TOOLS)
    if metadata.is_long_session:
        indicators.append(LONG_SESSION)
    if metadata.error_rate > config.high_error_rate:
        indicators.append(HIGH_ERROR_RATE)
    if metadata.has_errors:
        indicators.append(CONVERSATION_ISSUES)
    return indicators


def struggle_score(session: ParsedSession, config: Config) -> int:
    """Rank how much trouble a session shows; higher is worse.

    Duration and tool usage add tiered penalties of up to 3 points each, plus
    one point per failed tool operation and one per struggle indicator.
    """
    score = 0
    duration = session.duration_seconds
    long_session = config.long_session_seconds
    if duration > long_session * 2:
        score += 3
    elif duration > long_session:
        score += 2
    elif duration > long_session / 2:
        score += 1

    tool_count = session.metadata.tool_count
    many_tools = config.many_tools_threshold
    if tool_count > 50:
        score += 3
    elif tool_count > many_tools:
        score += 2
    elif tool_count > 20:
        score += 1

    score += session.error_count
    score += len(session.struggle_indicators)
    return score
