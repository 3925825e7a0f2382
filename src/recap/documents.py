"""Turn a raw document into a source summary and archive the original.

Writing the summary and archiving the original form one unit of work:
the summary is only left on disk once its source sits in the archive.
"""

from __future__ import annotations

import logging
from pathlib import Path

from recap.archive import ArchiveManager, atomic_write_text
from recap.errors import ConflictError, NotFoundError, SchemaMismatchError
from recap.extraction.base import Extractor
from recap.extraction.validate import validate_draft
from recap.records import OperationResult, SourceDocumentSummary
from recap.templates import Family, Mode, schema

logger = logging.getLogger(__name__)


class DocumentExtractor:
    """Turn one raw input document into a schema-conformant summary."""

    def __init__(self, summaries_dir: Path, archive: ArchiveManager, extractor: Extractor) -> None:
        self.summaries_dir = summaries_dir
        self.archive = archive
        self.extractor = extractor

    def process(
        self,
        path: Path | str,
        mode: Mode | str | None,
        family: Family | str = Family.SOURCE_SUMMARY,
        dry_run: bool = False,
    ) -> OperationResult:
        src = Path(path)
        if not src.is_file():
            raise NotFoundError(f"Input document not found: {src}")
        resolved = src.resolve()
        for managed in (self.summaries_dir, self.archive.archive_root):
            if resolved.is_relative_to(managed.resolve()):
                raise ConflictError(f"{src} is a managed record under {managed}, not an input document")
        if mode is None:
            raise SchemaMismatchError(f"No mode given for {src.name}")
        mode = Mode.parse(mode)
        if Family.parse(family) is not Family.SOURCE_SUMMARY:
            raise SchemaMismatchError(f"Documents can only produce SourceSummary records, not {family}")
        schema(Family.SOURCE_SUMMARY, mode)

        text = src.read_text(encoding="utf-8")
        draft = self.extractor.extract(text, title=src.stem, mode=mode)
        validate_draft(draft, text)

        archived = self.archive.source_target(src)
        summary = SourceDocumentSummary(
            title=draft.title,
            source_name=src.name,
            mode=mode,
            literals=draft.literals,
            requirements=draft.requirements,
            decisions=draft.decisions,
            uncertainties=draft.uncertainties,
            notes=draft.notes,
            archived_as=str(archived.relative_to(self.archive.archive_root.parent)),
        )
        summary_path = self.summaries_dir / summary.filename

        if summary_path.exists():
            raise ConflictError(f"Summary {summary_path} already exists for {src.name}")
        self.archive.check_move(src, archived)

        synopsis = (
            f"{summary.title}: {len(summary.requirements)} requirements, "
            f"{len(summary.decisions)} decisions, {len(summary.uncertainties)} uncertainties "
            f"({mode.value} mode, extractor={self.extractor.name})"
        )
        if dry_run:
            return OperationResult(paths=[summary_path, archived], synopsis=f"[dry-run] {synopsis}")

        atomic_write_text(summary_path, summary.render())
        try:
            self.archive.move(src, archived)
        except BaseException:
            summary_path.unlink(missing_ok=True)
            logger.error("Archiving %s failed, rolled back %s", src, summary_path)
            raise

        logger.info("Processed %s -> %s (source archived at %s)", src, summary_path, archived)
        return OperationResult(paths=[summary_path, archived], synopsis=synopsis)
