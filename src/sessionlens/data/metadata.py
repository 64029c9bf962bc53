"""Session id, project name and duration extraction."""

from __future__ import annotations

import logging
import re
from pathlib import PurePath

logger = logging.getLogger(__name__)

UNKNOWN_SESSION_ID = "unknown"
UNKNOWN_PROJECT = "Unknown Project"

_PROJECT_RE = re.compile(r"^-(.+?)_[a-f0-9-]+\.md$")
_SESSION_ID_RE = re.compile(r"_([a-f0-9-]+)\.md$")
_PROJECT_PREFIX = "Users/work/development/"

# Tried in order; the first pattern found anywhere in the body wins.
# The bool marks minute-valued patterns.
DURATION_PATTERNS: tuple[tuple[re.Pattern[str], bool], ...] = (
    (re.compile(r"\*\*Duration:\*\*\s*(\d+(?:\.\d+)?)\s*s", re.IGNORECASE), False),
    (re.compile(r"\*\*Duration\*\*:\s*(\d+(?:\.\d+)?)\s*minutes?", re.IGNORECASE), True),
    (re.compile(r"Duration:\s*(\d+(?:\.\d+)?)\s*seconds?", re.IGNORECASE), False),
    (re.compile(r"Session length:\s*(\d+)\s*minutes?", re.IGNORECASE), True),
    (re.compile(r"Total time:\s*(\d+)\s*min", re.IGNORECASE), True),
    (re.compile(r"Runtime:\s*(\d+)s", re.IGNORECASE), False),
)


def extract_session_id(source: str) -> str:
    """Session id from the trailing ``_<hex>.md`` segment of a file name."""
    match = _SESSION_ID_RE.search(_basename(source))
    return match.group(1) if match else UNKNOWN_SESSION_ID


def extract_project_name(source: str) -> str:
    """Project name from a ``-<encoded-path>_<hex>.md`` file name.

    ``-Users-work-development-my-app_ab12.md`` yields ``my/app``: dashes in
    the encoded path become slashes and the development prefix is dropped.
    """
    match = _PROJECT_RE.match(_basename(source))
    if match is None:
        return UNKNOWN_PROJECT
    name = match.group(1).replace("-", "/")
    return name.removeprefix(_PROJECT_PREFIX) or UNKNOWN_PROJECT


def extract_duration(text: str) -> float:
    """Duration in seconds from the first matching duration pattern, else 0."""
    for pattern, in_minutes in DURATION_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        value = float(match.group(1))
        return value * 60 if in_minutes else value
    logger.debug("No duration pattern matched")
    return 0.0


def extract_metadata(source: str, text: str) -> tuple[str, str, float]:
    """Return ``(session_id, project_name, duration_seconds)``."""
    return extract_session_id(source), extract_project_name(source), extract_duration(text)


def _basename(source: str) -> str:
    if not source:
        return ""
    return PurePath(source.replace("\\", "/")).name
