"""Read-only aggregation of brief, Active handoff and summaries census."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from recap.config import DEFAULT_WARN_THRESHOLD
from recap.handoff import find_active_handoff
from recap.records import BRIEF_FILENAME, read_brief, read_handoff

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionRef:
    date: str
    topic: str


@dataclass(frozen=True)
class StateReport:
    project: str
    project_type: str
    phase: str
    last_session: SessionRef | None
    next_steps: list[str] = field(default_factory=list)
    open_questions: list[str] = field(default_factory=list)
    file_count: int = 0
    warning: bool = False

    def to_dict(self) -> dict:
        return {
            "project": self.project,
            "projectType": self.project_type,
            "phase": self.phase,
            "lastSession": (
                {"date": self.last_session.date, "topic": self.last_session.topic}
                if self.last_session
                else None
            ),
            "nextSteps": list(self.next_steps),
            "openQuestions": list(self.open_questions),
            "fileCount": self.file_count,
            "warning": self.warning,
        }

    def render(self) -> str:
        last = (
            f"{self.last_session.date} ({self.last_session.topic})"
            if self.last_session
            else "(no handoff yet)"
        )
        lines = [
            f"Project: {self.project} [{self.project_type}]",
            f"Phase: {self.phase}",
            f"Last session: {last}",
            "Next steps:",
            *([f"  - {s}" for s in self.next_steps] or ["  (none)"]),
            "Open questions:",
            *([f"  - {q}" for q in self.open_questions] or ["  (none)"]),
            f"Summary files: {self.file_count}",
        ]
        if self.warning:
            lines.append("⚠️ summaries/ is at or above the soft cap; consolidate or archive records")
        return "\n".join(lines)


class StateReporter:
    """Pure read of the project layout. Calling it never changes anything."""

    def __init__(self, summaries_dir: Path, warn_threshold: int = DEFAULT_WARN_THRESHOLD) -> None:
        self.summaries_dir = summaries_dir
        self.warn_threshold = warn_threshold

    def file_count(self) -> int:
        if not self.summaries_dir.is_dir():
            return 0
        return sum(1 for p in self.summaries_dir.glob("*.md") if p.is_file())

    def report(self) -> StateReport:
        brief = read_brief(self.summaries_dir / BRIEF_FILENAME)

        active = find_active_handoff(self.summaries_dir)
        handoff = read_handoff(active) if active else None

        count = self.file_count()
        warning = count >= self.warn_threshold
        if warning:
            logger.warning("summaries/ holds %d records (soft cap: %d)", count, self.warn_threshold)

        return StateReport(
            project=brief.name,
            project_type=brief.project_type,
            phase=brief.phase,
            last_session=SessionRef(handoff.date, handoff.topic) if handoff else None,
            next_steps=handoff.next_steps if handoff else [],
            open_questions=handoff.open_questions if handoff else [],
            file_count=count,
            warning=warning,
        )
