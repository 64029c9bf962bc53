"""Configuration for sessionlens."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class Config:
    """Parser and search configuration.

    Threshold defaults match the markdown transcript exporter's reports;
    override them per run rather than patching constants.
    """

    transcripts_dir: Path = field(default_factory=lambda: Path("parsed-sessions"))
    loop_threshold: int = 3
    long_session_seconds: float = 1800
    error_mention_threshold: int = 5
    high_error_rate: float = 0.3
    many_tools_threshold: int = 30
    context_radius: int = 200
    default_limit: int = 10
    max_context_length: int = 150

    @property
    def transcript_glob(self) -> str:
        return "*.md"
