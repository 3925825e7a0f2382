"""Configuration loading from environment variables and recap.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_CONFIG_FILENAME = "recap.toml"
DEFAULT_WARN_THRESHOLD = 15


@dataclass
class ExtractorConfig:
    """Which extraction backend turns documents into drafts."""

    name: str = "rules"
    model: str | None = None
    max_tokens: int = 4096
    timeout: int = 120


@dataclass
class RecapConfig:
    """Top-level recap configuration."""

    root: Path = field(default_factory=Path.cwd)
    summaries_dir: str = "summaries"
    archive_dir: str = "archive"
    warn_threshold: int = DEFAULT_WARN_THRESHOLD
    default_mode: str | None = None
    extractor: ExtractorConfig = field(default_factory=ExtractorConfig)
    log_level: str = "INFO"

    @property
    def summaries_path(self) -> Path:
        return self.root / self.summaries_dir

    @property
    def archive_path(self) -> Path:
        return self.root / self.archive_dir


def load_config(config_path: Path | None = None) -> RecapConfig:
    """Load configuration from environment variables and optional recap.toml.

    Priority: environment variables > recap.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.recap/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, Path.home() / ".recap" / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    extractor_data = file_data.get("extractor", {})

    return RecapConfig(
        root=Path(os.getenv("RECAP_ROOT", file_data.get("root", str(Path.cwd())))),
        summaries_dir=file_data.get("summaries_dir", "summaries"),
        archive_dir=file_data.get("archive_dir", "archive"),
        warn_threshold=int(
            os.getenv("RECAP_WARN_THRESHOLD", file_data.get("warn_threshold", DEFAULT_WARN_THRESHOLD))
        ),
        default_mode=os.getenv("RECAP_MODE", file_data.get("default_mode")),
        extractor=ExtractorConfig(
            name=os.getenv("RECAP_EXTRACTOR", extractor_data.get("name", "rules")),
            model=os.getenv("RECAP_MODEL", extractor_data.get("model")),
            max_tokens=int(extractor_data.get("max_tokens", 4096)),
            timeout=int(os.getenv("RECAP_TIMEOUT", extractor_data.get("timeout", 120))),
        ),
        log_level=os.getenv("RECAP_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
