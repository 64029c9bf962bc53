"""Line scanner for the conversation section of a markdown transcript.

The scanner walks the transcript once, top to bottom. Its state is one of
three variants threaded through the loop:

* ``Preamble`` - before the conversation section; lines are ignored.
* ``InConversation`` - accumulating turns; holds at most one open entry.
* ``Closed`` - a terminal section header was seen; the rest is ignored.

All flushing goes through ``_flush`` so an open entry is emitted exactly once,
whether it is closed by the next turn header, a terminal section, or the end
of input. Unrecognized lines never raise; they become content of the open
entry or are dropped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from sessionlens.models.sessions import ConversationEntry, EntryKind, Speaker

logger = logging.getLogger(__name__)

CONVERSATION_HEADER = "## Conversation Flow"
TERMINAL_SECTIONS: frozenset[str] = frozenset(
    {
        "## Tool Operations Summary",
        "## Session Analysis",
        "## Struggles Detected",
        "## Recommendations",
        "## Summary",
        "## Session Summary",
    }
)

TURN_HEADER_RE = re.compile(r"^### (\d+)\.\s+(User|Assistant)\s+\(([^)]+)\)$")
_TOOL_USE_NAME_RE = re.compile(r"(?:🔧\s*)?(?:\*\*)?Tool Use:\s*([^*]+)(?:\*\*)?")
_BOLD_LABEL_RE = re.compile(r"^\s*\*\*([^*]+)\*\*:?\s*")
_PAYLOAD_MARKERS = {"**Input:**": "input", "**Output:**": "output"}
_FENCE_PREFIX = "```"


@dataclass(frozen=True, slots=True)
class Preamble:
    """Before the conversation section."""


@dataclass(frozen=True, slots=True)
class Closed:
    """After the conversation section."""


@dataclass(slots=True)
class OpenEntry:
    """A turn being accumulated."""

    index: int
    speaker: Speaker
    timestamp: str
    kind: EntryKind = EntryKind.MESSAGE
    tool_name: str | None = None
    lines: list[str] = field(default_factory=list)
    payload_section: str | None = None
    payloads: dict[str, list[str]] = field(default_factory=dict)


@dataclass(slots=True)
class InConversation:
    """Inside the conversation section."""

    entry: OpenEntry | None = None
    in_code_block: bool = False


type ScanState = Preamble | InConversation | Closed


def scan_conversation(text: str) -> list[ConversationEntry]:
    """Extract conversation entries from transcript text."""
    entries: list[ConversationEntry] = []
    state: ScanState = Preamble()

    for line in text.split("\n"):
        state = _step(state, line, entries)
        if isinstance(state, Closed):
            break

    if isinstance(state, InConversation):
        _flush(state, entries)
    return entries


def parse_turn_header(line: str) -> tuple[int, Speaker, str] | None:
    """Return ``(index, speaker, time label)`` for a turn header line."""
    match = TURN_HEADER_RE.match(line.strip())
    if match is None:
        return None
    return int(match.group(1)), Speaker(match.group(2)), match.group(3)


def _step(state: ScanState, line: str, entries: list[ConversationEntry]) -> ScanState:
    match state:
        case Closed():
            return state
        case Preamble():
            stripped = line.strip()
            if stripped == CONVERSATION_HEADER:
                return InConversation()
            if TURN_HEADER_RE.match(stripped):
                # Transcripts without a section header start with their first turn.
                return _scan_line(InConversation(), line, entries)
            return state
        case InConversation():
            return _scan_line(state, line, entries)
    return state


def _scan_line(
    state: InConversation, line: str, entries: list[ConversationEntry]
) -> ScanState:
    stripped = line.strip()
    entry = state.entry

    if stripped.startswith("## "):
        if stripped in TERMINAL_SECTIONS:
            _flush(state, entries)
            return Closed()
        _append(state, line)
        return state

    header = parse_turn_header(stripped)
    if header is not None:
        _flush(state, entries)
        index, speaker, timestamp = header
        state.entry = OpenEntry(index=index, speaker=speaker, timestamp=timestamp)
        return state
    if stripped.startswith("### "):
        _append(state, line)
        return state

    if entry is None:
        return state

    if not state.in_code_block:
        if "Tool Use:" in stripped:
            tool_match = _TOOL_USE_NAME_RE.search(stripped)
            if tool_match:
                entry.kind = EntryKind.TOOL_USE
                entry.tool_name = tool_match.group(1).strip()
            return state
        if "Tool Result" in stripped:
            entry.kind = EntryKind.TOOL_RESULT
            return state
        if stripped in _PAYLOAD_MARKERS:
            if entry.kind is EntryKind.TOOL_USE:
                section = _PAYLOAD_MARKERS[stripped]
                entry.payload_section = section
                entry.payloads.setdefault(section, [])
                entry.lines.append(stripped)
            return state

    if stripped.startswith(_FENCE_PREFIX):
        state.in_code_block = not state.in_code_block
        entry.lines.append(stripped)
        return state

    if state.in_code_block:
        _append(state, line.rstrip())
        return state

    if not stripped:
        return state

    if entry.kind is EntryKind.TOOL_RESULT:
        _append(state, line.rstrip())
        return state

    cleaned = _BOLD_LABEL_RE.sub("", line, count=1).rstrip()
    if cleaned.strip():
        _append(state, cleaned)
    return state


def _append(state: InConversation, line: str) -> None:
    entry = state.entry
    if entry is None:
        if line.strip():
            logger.debug("Dropping content outside any turn: %.60s", line.strip())
        return
    if not line.strip() and not state.in_code_block:
        return
    entry.lines.append(line)
    if entry.payload_section is not None:
        entry.payloads[entry.payload_section].append(line)


def _flush(state: InConversation, entries: list[ConversationEntry]) -> None:
    entry = state.entry
    state.entry = None
    state.in_code_block = False
    if entry is None:
        return

    content = "\n".join(entry.lines).strip("\n")
    kind = entry.kind
    if kind is EntryKind.MESSAGE and _looks_like_thinking(content):
        kind = EntryKind.THINKING

    entries.append(
        ConversationEntry(
            index=entry.index,
            speaker=entry.speaker,
            timestamp=entry.timestamp,
            content=content,
            kind=kind,
            tool_name=entry.tool_name,
            tool_input=_payload_text(entry, "input"),
            tool_output=_payload_text(entry, "output"),
        )
    )


def _payload_text(entry: OpenEntry, section: str) -> str | None:
    lines = entry.payloads.get(section)
    if not lines:
        return None
    text = "\n".join(lines).strip()
    return text or None


def _looks_like_thinking(content: str) -> bool:
    stripped = content.strip()
    return stripped.startswith("{") and '"type": "thinking"' in stripped
