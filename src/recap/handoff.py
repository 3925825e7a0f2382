"""Handoff writer — one Active handoff record at a time.

Rotation order: copy the previous Active record into the archive, commit
the new record, then remove the previous one. A crash before the commit
leaves the old record Active and archived; a crash after it leaves two
Active records, which is reported as PartialWriteDetected.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from recap.archive import ArchiveManager, atomic_write_text
from recap.errors import (
    AmbiguousModeError,
    ConflictError,
    PartialWriteDetectedError,
    SchemaMismatchError,
)
from recap.records import HANDOFF_PREFIX, HandoffRecord, OperationResult, SessionFacts
from recap.templates import Mode

logger = logging.getLogger(__name__)

LIGHT_SESSION_LIMIT = 5


def select_mode(session_count: int) -> Mode:
    """Size heuristic: fewer than 5 sessions ⇒ Light, otherwise Full."""
    return Mode.LIGHT if session_count < LIGHT_SESSION_LIMIT else Mode.FULL


def active_handoffs(summaries_dir: Path) -> list[Path]:
    """All files matching the Active-handoff pattern, sorted by name."""
    if not summaries_dir.is_dir():
        return []
    return sorted(summaries_dir.glob(f"{HANDOFF_PREFIX}*.md"))


def find_active_handoff(summaries_dir: Path) -> Path | None:
    found = active_handoffs(summaries_dir)
    if len(found) > 1:
        raise PartialWriteDetectedError(
            f"{len(found)} Active handoffs in {summaries_dir}: " + ", ".join(p.name for p in found)
        )
    return found[0] if found else None


class HandoffWriter:
    """Snapshot session facts into the single Active handoff record."""

    def __init__(
        self,
        summaries_dir: Path,
        archive: ArchiveManager,
        default_mode: Mode | str | None = None,
    ) -> None:
        self.summaries_dir = summaries_dir
        self.archive = archive
        self.default_mode = default_mode

    def resolve_mode(self, facts: SessionFacts, mode: Mode | str | None) -> Mode:
        if mode is not None:
            return Mode.parse(mode)
        if self.default_mode is not None:
            return Mode.parse(self.default_mode)
        if facts.session_count is not None:
            return select_mode(facts.session_count)
        raise AmbiguousModeError(
            "No handoff mode supplied and none configured; pass light/full or a session_count"
        )

    def write(self, facts: SessionFacts, mode: Mode | str | None = None) -> OperationResult:
        self._validate_facts(facts)
        record = HandoffRecord(facts=facts, mode=self.resolve_mode(facts, mode))
        target = self.summaries_dir / record.filename

        current = self.current()
        if target.exists() and target != current:
            raise ConflictError(f"{target} already exists and is not the Active handoff")
        if current is not None:
            self.archive.check_move(current, self.archive.handoff_target(current))

        paths = [target]
        if current is not None:
            paths.append(self.archive.copy(current, self.archive.handoff_target(current)))
        atomic_write_text(target, record.render())
        if current is not None and current != target:
            current.unlink()

        synopsis = (
            f"Handoff {facts.date} '{facts.topic}': {len(facts.accomplishments)} accomplishments, "
            f"{len(facts.next_steps)} next steps, {len(facts.open_questions)} open questions "
            f"({record.mode.value} mode)"
        )
        if current is not None:
            synopsis += f"; previous handoff archived as {paths[1].name}"
        logger.info("Wrote Active handoff %s", target)
        return OperationResult(paths=paths, synopsis=synopsis)

    def current(self) -> Path | None:
        """The Active handoff, or None before the first write."""
        return find_active_handoff(self.summaries_dir)

    def _validate_facts(self, facts: SessionFacts) -> None:
        if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", facts.date):
            raise SchemaMismatchError(f"Handoff date must be YYYY-MM-DD, got {facts.date!r}")
        if not facts.topic.strip():
            raise SchemaMismatchError("Handoff topic is empty")
