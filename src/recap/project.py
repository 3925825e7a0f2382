"""ProjectMemory — the three agent-facing operations over one project root.

Layout:
    <root>/
    ├── summaries/
    │   ├── 00-project-brief.md          # Written once by init_project
    │   ├── handoff-<date>-<topic>.md    # The single Active handoff
    │   └── source-<name>.md             # One per processed document
    └── archive/
        ├── <name>                       # Processed originals (append-only)
        └── handoffs/                    # Superseded handoffs (append-only)
"""

from __future__ import annotations

import logging
from pathlib import Path

import frontmatter

from recap.archive import ArchiveManager, atomic_write_text
from recap.config import RecapConfig
from recap.documents import DocumentExtractor
from recap.errors import ConflictError, PartialWriteDetectedError
from recap.extraction.base import Extractor
from recap.handoff import HandoffWriter, active_handoffs
from recap.records import (
    BRIEF_FILENAME,
    HANDOFF_PREFIX,
    SOURCE_PREFIX,
    OperationResult,
    ProjectBrief,
    SessionFacts,
)
from recap.reporter import StateReport, StateReporter
from recap.templates import Mode

logger = logging.getLogger(__name__)


def build_extractor(config: RecapConfig) -> Extractor:
    """Instantiate the configured extraction backend."""
    name = config.extractor.name
    if name == "rules":
        from recap.extraction.rules import RuleBasedExtractor

        return RuleBasedExtractor()
    if name == "anthropic_api":
        from recap.engines.anthropic_api import AnthropicAPIEngine
        from recap.extraction.llm import LLMExtractor

        kwargs: dict = {"max_tokens": config.extractor.max_tokens, "timeout": config.extractor.timeout}
        if config.extractor.model:
            kwargs["model"] = config.extractor.model
        return LLMExtractor(AnthropicAPIEngine(**kwargs))
    raise ValueError(f"Unknown extractor '{name}'. Available: rules, anthropic_api")


class ProjectMemory:
    """Wires registry, archive, extractor, writer and reporter to a project root."""

    def __init__(self, config: RecapConfig, extractor: Extractor | None = None) -> None:
        self.config = config
        self.summaries_dir = config.summaries_path
        self.archive = ArchiveManager(config.archive_path)
        self.documents = DocumentExtractor(
            self.summaries_dir, self.archive, extractor or build_extractor(config)
        )
        self.handoffs = HandoffWriter(self.summaries_dir, self.archive, config.default_mode)
        self.reporter = StateReporter(self.summaries_dir, config.warn_threshold)

    @property
    def brief_path(self) -> Path:
        return self.summaries_dir / BRIEF_FILENAME

    # ── Setup ─────────────────────────────────────────────────

    def init_project(
        self,
        name: str,
        project_type: str,
        phase: str,
        phases: list[str] | None = None,
    ) -> OperationResult:
        """Create the project brief. It is never rewritten afterwards."""
        if self.brief_path.exists():
            raise ConflictError(f"Project brief already exists: {self.brief_path}")
        brief = ProjectBrief(name=name, project_type=project_type, phase=phase, phases=phases or [])
        self.summaries_dir.mkdir(parents=True, exist_ok=True)
        self.archive.handoffs_dir.mkdir(parents=True, exist_ok=True)
        atomic_write_text(self.brief_path, brief.render())
        logger.info("Created project brief for %s", name)
        return OperationResult(
            paths=[self.brief_path], synopsis=f"Initialized {name} ({project_type}), phase {phase}"
        )

    # ── Agent operations ──────────────────────────────────────

    def process_document(
        self, path: Path | str, mode: Mode | str | None = None, dry_run: bool = False
    ) -> OperationResult:
        return self.documents.process(path, mode or self.config.default_mode, dry_run=dry_run)

    def generate_handoff(
        self, facts: SessionFacts | dict, mode: Mode | str | None = None
    ) -> OperationResult:
        if isinstance(facts, dict):
            facts = SessionFacts.from_dict(facts)
        return self.handoffs.write(facts, mode)

    def report_state(self) -> StateReport:
        return self.reporter.report()

    # ── Invariant check ───────────────────────────────────────

    def check(self, strict: bool = False) -> list[str]:
        """Look for layouts an interrupted write could leave behind.

        Returns human-readable problems; with ``strict`` the first batch is
        raised as PartialWriteDetectedError instead.
        """
        problems: list[str] = []

        handoffs = active_handoffs(self.summaries_dir)
        if len(handoffs) > 1:
            problems.append(
                f"{len(handoffs)} Active handoffs: " + ", ".join(p.name for p in handoffs)
            )
        elif not handoffs and any(self.archive.handoffs_dir.glob(f"{HANDOFF_PREFIX}*.md")):
            problems.append("archived handoffs exist but there is no Active handoff")

        if self.summaries_dir.is_dir():
            for summary in sorted(self.summaries_dir.glob(f"{SOURCE_PREFIX}*.md")):
                archived_as = frontmatter.load(str(summary)).metadata.get("archived_as")
                if not archived_as or not (self.config.root / str(archived_as)).is_file():
                    problems.append(f"{summary.name}: source was never archived ({archived_as})")

        for problem in problems:
            logger.warning("Invariant check: %s", problem)
        if strict and problems:
            raise PartialWriteDetectedError("; ".join(problems))
        return problems
