"""Map conversation entries to display fragments."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from html import escape

import markdown

from sessionlens.models.sessions import ConversationEntry, EntryKind, ParsedSession, Speaker

logger = logging.getLogger(__name__)

_MD = markdown.Markdown(extensions=["fenced_code", "tables", "nl2br"])
_OUTPUT_LABEL_RE = re.compile(r"^\*\*Output:\*\*", re.MULTILINE)
_OPEN_FENCE_RE = re.compile(r"^```[^\n]*\n?", re.MULTILINE)
_CLOSE_FENCE_RE = re.compile(r"\n?```$", re.MULTILINE)


@dataclass(frozen=True, slots=True)
class EntryFragment:
    """Display-ready form of one conversation entry."""

    label: str
    css_class: str
    time: str
    html: str
    badge: str = ""
    collapsible: bool = False


def render_markdown(text: str) -> str:
    """Convert markdown text to an HTML body fragment."""
    _MD.reset()
    return _MD.convert(text)


def render_entry(entry: ConversationEntry) -> EntryFragment:
    content = entry.content.strip()

    match entry.kind:
        case EntryKind.TOOL_RESULT:
            return EntryFragment(
                label="Tool Result",
                css_class="tool-result",
                time=entry.timestamp,
                html=render_tool_result(content),
                badge="Result",
                collapsible=True,
            )
        case EntryKind.TOOL_USE:
            return EntryFragment(
                label=entry.speaker.value,
                css_class="tool-use",
                time=entry.timestamp,
                html=render_markdown(content) if content else "",
                badge=entry.tool_name or "",
                collapsible=True,
            )
        case EntryKind.THINKING:
            return EntryFragment(
                label="Assistant Thinking",
                css_class="thinking",
                time=entry.timestamp,
                html=render_thinking(content),
            )
        case _:
            css_class = "user" if entry.speaker is Speaker.USER else "assistant"
            return EntryFragment(
                label=entry.speaker.value,
                css_class=css_class,
                time=entry.timestamp,
                html=render_markdown(content) if content else "",
                collapsible=len(content) > 1000 or content.count("\n") >= 15,
            )


def render_session(session: ParsedSession) -> list[EntryFragment]:
    return [render_entry(entry) for entry in session.conversation]


def render_thinking(content: str) -> str:
    """Escaped paragraphs of a thinking payload; plain markdown if not JSON."""
    try:
        payload = json.loads(content)
    except json.JSONDecodeError:
        logger.debug("Thinking entry is not valid JSON; rendering as markdown")
        return render_markdown(content)

    thinking = payload.get("thinking") if isinstance(payload, dict) else None
    if not isinstance(thinking, str):
        return render_markdown(content)
    lines = [line.strip() for line in thinking.split("\n") if line.strip()]
    return "".join(f'<p class="thinking-content">{escape(line)}</p>' for line in lines)


def render_tool_result(content: str) -> str:
    cleaned = _OUTPUT_LABEL_RE.sub("", content, count=1)
    cleaned = _OPEN_FENCE_RE.sub("", cleaned.strip(), count=1)
    cleaned = _CLOSE_FENCE_RE.sub("", cleaned, count=1).strip()
    if not cleaned:
        return "<em>No output</em>"
    escaped = escape(cleaned, quote=False)
    if "\n" in cleaned:
        return f'<div class="tool-result-output"><pre>{escaped}</pre></div>'
    return f'<div class="tool-result-message">{escaped}</div>'
