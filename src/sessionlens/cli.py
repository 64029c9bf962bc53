"""Typer CLI for sessionlens: parse, search and struggles commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from result import Err, Ok

from sessionlens.config import Config
from sessionlens.data.search import summarize_session
from sessionlens.services.container import ServiceContainer

app = typer.Typer(
    name="sessionlens",
    help="Parse markdown transcripts of AI coding sessions and search them.",
    no_args_is_help=True,
)

PathsArg = Annotated[
    list[Path] | None,
    typer.Argument(help="Transcript files or directories (default: parsed-sessions/)"),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def parse(
    paths: PathsArg = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print full JSON per session")] = False,
) -> None:
    """Parse transcripts and print one summary line per session."""
    container = _build_container(paths)
    for session in container.session_service.sessions:
        if as_json:
            typer.echo(session.model_dump_json(indent=2))
        else:
            typer.echo(f"{session.session_id}  {summarize_session(session)}")


@app.command()
def search(
    paths: PathsArg = None,
    keyword: Annotated[str | None, typer.Option("--keyword", "-k")] = None,
    project: Annotated[str | None, typer.Option("--project", "-p")] = None,
    min_duration: Annotated[float | None, typer.Option("--min-duration")] = None,
    max_duration: Annotated[float | None, typer.Option("--max-duration")] = None,
    has_struggle: Annotated[
        bool | None, typer.Option("--struggle/--no-struggle", show_default=False)
    ] = None,
    struggle_pattern: Annotated[str | None, typer.Option("--pattern")] = None,
    limit: Annotated[int | None, typer.Option("--limit", "-n")] = None,
    offset: Annotated[int | None, typer.Option("--offset")] = None,
) -> None:
    """Filter and rank transcripts."""
    container = _build_container(paths)
    options = {
        "keyword": keyword,
        "project": project,
        "min_duration": min_duration,
        "max_duration": max_duration,
        "has_struggle": has_struggle,
        "struggle_pattern": struggle_pattern,
        "limit": limit,
        "offset": offset,
    }
    match container.search_service.search(options):
        case Ok(results):
            if not results:
                typer.echo("No matching sessions.")
            for result in results:
                typer.echo(f"[{result.relevance_score:g}] {result.session_id}  {result.summary}")
                if result.match_context:
                    typer.echo(f"    {result.match_context}")
        case Err(message):
            typer.echo(message, err=True)
            raise typer.Exit(code=1)


@app.command()
def struggles(
    paths: PathsArg = None,
    limit: Annotated[int, typer.Option("--limit", "-n")] = 5,
    pattern: Annotated[str | None, typer.Option("--pattern", help="Regex filter")] = None,
) -> None:
    """List sessions that show signs of difficulty, longest first."""
    container = _build_container(paths)
    match container.search_service.find_struggling(limit, pattern):
        case Ok(found):
            typer.echo(json.dumps([item.model_dump() for item in found], indent=2))
        case Err(message):
            typer.echo(message, err=True)
            raise typer.Exit(code=1)


def _build_container(paths: list[Path] | None) -> ServiceContainer:
    config = Config()
    targets = _expand_paths(paths or [config.transcripts_dir], config)
    match ServiceContainer.create(config, targets):
        case Ok(container):
            return container
        case Err(message):
            typer.echo(message, err=True)
            raise typer.Exit(code=1)


def _expand_paths(paths: list[Path], config: Config) -> list[Path]:
    expanded: list[Path] = []
    for path in paths:
        if path.is_dir():
            expanded.extend(sorted(path.glob(config.transcript_glob)))
        else:
            expanded.append(path)
    return expanded
