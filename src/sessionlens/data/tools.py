"""Tool invocation extraction from transcript text."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sessionlens.data.classifier import is_error_context
from sessionlens.models.sessions import ToolOperation

if TYPE_CHECKING:
    from sessionlens.config import Config

logger = logging.getLogger(__name__)

STRUCTURAL_TOOLS: tuple[str, ...] = (
    "run_in_terminal",
    "read_file",
    "create_file",
    "replace_string_in_file",
    "semantic_search",
    "grep_search",
    "file_search",
    "list_dir",
)
KNOWN_TOOLS: tuple[str, ...] = (*STRUCTURAL_TOOLS, "edit_file")

FALLBACK_TOOL_NAME = "conversation"

TABLE_SECTION = "## Tool Operations Summary"
_TABLE_HEADER_MARKER = "| Tool Name |"
_TABLE_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")
_EMPTY_CELLS = frozenset({"", "---"})

_TOOL_USED_RE = re.compile(r"\*\*Tool Used:\*\*\s*`([^`]+)`")
_INVOKE_RE = re.compile(r'<invoke name="([^"]+)">')
_USING_TOOL_RE = re.compile(r"Using tool:\s*(\w+)")
_ASSISTANT_TOOL_RE = re.compile(
    r"###\s+\d+\.\s+Assistant.*?(?:" + "|".join(STRUCTURAL_TOOLS) + ")",
    re.DOTALL,
)
_TURN_RE = re.compile(r"###\s+\d+\.\s+(Assistant|User)")

_INPUT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"<parameter[^>]*>(.*?)</\s*parameter\s*>", re.DOTALL),
    re.compile(r"Input:\s*`([^`]+)`"),
    re.compile(r"\*\*Input:\*\*[ \t]*([^\n]*)"),
)
_OUTPUT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\*\*Output:\*\*[ \t]*([^\n]+)"),
    re.compile(r"(```[\s\S]*?```)"),
    re.compile(r"((?:Output|Result):\s*.*?)(?=\n\n|$)", re.DOTALL),
)


@dataclass(frozen=True, slots=True)
class ToolMatch:
    """A tool name found at ``position`` in the text."""

    position: int
    name: str


type ToolMatcher = Callable[[str], Iterator[ToolMatch]]


def _tool_used_markers(text: str) -> Iterator[ToolMatch]:
    for match in _TOOL_USED_RE.finditer(text):
        yield ToolMatch(match.start(), match.group(1).strip())


def _invoke_tags(text: str) -> Iterator[ToolMatch]:
    for match in _INVOKE_RE.finditer(text):
        yield ToolMatch(match.start(), match.group(1))


def _using_tool_lines(text: str) -> Iterator[ToolMatch]:
    for match in _USING_TOOL_RE.finditer(text):
        yield ToolMatch(match.start(), match.group(1))


def _assistant_builtin_tools(text: str) -> Iterator[ToolMatch]:
    for match in _ASSISTANT_TOOL_RE.finditer(text):
        name = tool_from_context(match.group(0))
        if name is not None:
            yield ToolMatch(match.start(), name)


TOOL_MATCHERS: tuple[ToolMatcher, ...] = (
    _tool_used_markers,
    _invoke_tags,
    _using_tool_lines,
    _assistant_builtin_tools,
)


def tool_from_context(context: str) -> str | None:
    """First known built-in tool identifier mentioned in ``context``."""
    for tool in KNOWN_TOOLS:
        if tool in context:
            return tool
    return None


def find_tool_matches(text: str) -> list[ToolMatch]:
    """Run every matcher family and order the candidates by position."""
    candidates: list[ToolMatch] = []
    for matcher in TOOL_MATCHERS:
        candidates.extend(matcher(text))

    # sorted() is stable, so equal positions keep matcher order.
    return sorted(candidates, key=lambda match: match.position)


def context_window(text: str, position: int, radius: int = 200) -> str:
    start = max(0, position - radius)
    return text[start : position + radius]


def extract_tool_input(context: str) -> str | None:
    return _first_capture(_INPUT_PATTERNS, context)


def extract_tool_output(context: str) -> str | None:
    return _first_capture(_OUTPUT_PATTERNS, context)


def extract_tool_operations(text: str, config: Config) -> list[ToolOperation]:
    """Tool operations for a transcript.

    Rows of a ``## Tool Operations Summary`` table win when present. Otherwise
    every marker match becomes an operation, and with no markers at all each
    turn after the first counts as one.
    """
    table_rows = extract_table_operations(text)
    if table_rows:
        return table_rows

    operations: list[ToolOperation] = []
    for match in find_tool_matches(text):
        window = context_window(text, match.position, config.context_radius)
        operations.append(
            ToolOperation(
                name=match.name,
                status="error" if is_error_context(window) else "success",
                input=extract_tool_input(window),
                output=extract_tool_output(window),
            )
        )

    if operations:
        return operations

    turns = sum(1 for _ in _TURN_RE.finditer(text))
    if turns > 1:
        logger.debug("No tool markers found; counting %d turns as operations", turns - 1)
    return [ToolOperation(name=FALLBACK_TOOL_NAME) for _ in range(max(0, turns - 1))]


def extract_table_operations(text: str) -> list[ToolOperation]:
    """Operations listed in the ``## Tool Operations Summary`` table.

    Columns are tool name, status, input and output. A status other than
    ``success`` is an error; empty and ``---`` cells become ``None``.
    """
    start = text.find(TABLE_SECTION)
    if start == -1:
        return []

    lines = text[start + len(TABLE_SECTION) :].split("\n")
    header_at = None
    for index, line in enumerate(lines):
        if line.strip().startswith("##"):
            break
        if _TABLE_HEADER_MARKER in line:
            header_at = index
            break
    if header_at is None:
        logger.debug("Tool Operations Summary has no table")
        return []

    operations: list[ToolOperation] = []
    # Header and separator rows come first.
    for line in lines[header_at + 2 :]:
        stripped = line.strip()
        if stripped.startswith("##"):
            break
        cells = _table_cells(stripped)
        if len(cells) < 4 or cells[0] in _EMPTY_CELLS or cells[0] == "Tool Name":
            continue
        name, status, tool_input, tool_output = cells[:4]
        operations.append(
            ToolOperation(
                name=name,
                status="success" if status.lower() == "success" else "error",
                input=_cell_value(tool_input),
                output=_cell_value(tool_output),
            )
        )
    return operations


def _table_cells(row: str) -> list[str]:
    if "|" not in row:
        return []
    inner = row.removeprefix("|").removesuffix("|")
    return [cell.strip().replace("\\|", "|") for cell in _TABLE_CELL_SPLIT_RE.split(inner)]


def _cell_value(cell: str) -> str | None:
    return None if cell in _EMPTY_CELLS else cell


def _first_capture(patterns: tuple[re.Pattern[str], ...], context: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(context)
        if match is None:
            continue
        captured = match.group(1).strip()
        if captured:
            return captured
    return None

