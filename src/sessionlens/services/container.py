"""Service container with DI wiring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from result import Err, Ok, Result

from sessionlens.services.search_service import SearchService
from sessionlens.services.session_service import SessionService

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from sessionlens.config import Config


@dataclass(frozen=True)
class ServiceContainer:
    """Holds all application services. Built once per run, immutable."""

    session_service: SessionService
    search_service: SearchService

    @classmethod
    def create(cls, config: Config, paths: Iterable[Path]) -> Result[ServiceContainer, str]:
        """Parse the given transcripts and wire the services over them."""
        match SessionService.load_files(paths, config):
            case Ok(session_service):
                return Ok(
                    cls(
                        session_service=session_service,
                        search_service=SearchService(session_service, config),
                    )
                )
            case Err(message):
                return Err(message)
