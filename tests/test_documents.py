"""Tests for document processing (summary + archive as one unit)."""

from __future__ import annotations

import pytest
from pathlib import Path
from unittest.mock import patch

import frontmatter

from recap.archive import ArchiveManager
from recap.documents import DocumentExtractor
from recap.errors import ConflictError, ExtractionError, NotFoundError, SchemaMismatchError
from recap.extraction.base import ExtractionDraft
from recap.extraction.rules import RuleBasedExtractor
from recap.records import Uncertainty


class UntaggedExtractor:
    """Backend that forgets to classify an uncertainty."""

    @property
    def name(self) -> str:
        return "untagged"

    def extract(self, text, *, title, mode) -> ExtractionDraft:
        return ExtractionDraft(title=title, uncertainties=[Uncertainty(text="who owns it")])


@pytest.fixture
def root(tmp_path: Path) -> Path:
    (tmp_path / "summaries").mkdir()
    return tmp_path


@pytest.fixture
def extractor(root: Path) -> DocumentExtractor:
    return DocumentExtractor(
        root / "summaries", ArchiveManager(root / "archive"), RuleBasedExtractor()
    )


@pytest.fixture
def doc(root: Path) -> Path:
    path = root / "inbox" / "api-notes.md"
    path.parent.mkdir()
    path.write_text(
        "# API notes\n\n"
        "The rate limit is 1000 requests/minute.\n"
        "Decision: use Redis instead of Memcached because it persists.\n"
        "TBD: error budget owner.\n",
        encoding="utf-8",
    )
    return path


class TestProcess:
    def test_writes_summary_and_archives_source(self, extractor, doc, root):
        result = extractor.process(doc, "full")

        summary = root / "summaries" / "source-api-notes.md"
        archived = root / "archive" / "api-notes.md"
        assert result.paths == [summary, archived]
        assert summary.exists()
        assert archived.exists()
        assert not doc.exists()
        assert "1 requirements" in result.synopsis

    def test_numeric_literal_verbatim(self, extractor, doc, root):
        extractor.process(doc, "light")
        text = (root / "summaries" / "source-api-notes.md").read_text(encoding="utf-8")
        assert "1000 requests/minute" in text

    def test_frontmatter_bookkeeping(self, extractor, doc, root):
        extractor.process(doc, "full")
        post = frontmatter.load(str(root / "summaries" / "source-api-notes.md"))
        assert post.metadata["family"] == "SourceSummary"
        assert post.metadata["mode"] == "Full"
        assert post.metadata["source"] == "api-notes.md"
        assert post.metadata["archived_as"] == "archive/api-notes.md"

    def test_every_required_section_present(self, extractor, root):
        bare = root / "bare.txt"
        bare.write_text("Nothing actionable here.\n", encoding="utf-8")
        extractor.process(bare, "full")
        text = (root / "summaries" / "source-bare.md").read_text(encoding="utf-8")
        for heading in ["Title", "Key Literals", "Requirements", "Decisions", "Uncertainties"]:
            assert f"## {heading}" in text
        assert "- (none)" in text
        assert "## Notes" not in text

    def test_light_mode_has_no_decisions_section(self, extractor, doc, root):
        extractor.process(doc, "light")
        text = (root / "summaries" / "source-api-notes.md").read_text(encoding="utf-8")
        assert "## Decisions" not in text
        assert "[OPEN] TBD: error budget owner" in text

    def test_uncertainty_tags_rendered(self, extractor, doc, root):
        extractor.process(doc, "full")
        text = (root / "summaries" / "source-api-notes.md").read_text(encoding="utf-8")
        assert "[OPEN]" in text
        assert "rejected: Memcached" in text


class TestErrors:
    def test_not_found(self, extractor, root):
        with pytest.raises(NotFoundError):
            extractor.process(root / "missing.md", "light")

    def test_no_mode(self, extractor, doc):
        with pytest.raises(SchemaMismatchError):
            extractor.process(doc, None)
        assert doc.exists()

    def test_unknown_mode(self, extractor, doc):
        with pytest.raises(SchemaMismatchError):
            extractor.process(doc, "verbose")

    def test_wrong_family(self, extractor, doc):
        with pytest.raises(SchemaMismatchError):
            extractor.process(doc, "light", family="Handoff")

    def test_untagged_uncertainty_aborts_cleanly(self, root, doc):
        extractor = DocumentExtractor(
            root / "summaries", ArchiveManager(root / "archive"), UntaggedExtractor()
        )
        with pytest.raises(ExtractionError):
            extractor.process(doc, "light")
        assert doc.exists()
        assert list((root / "summaries").iterdir()) == []

    def test_archive_conflict_detected_before_write(self, extractor, doc, root):
        (root / "archive").mkdir()
        (root / "archive" / "api-notes.md").write_text("older, different", encoding="utf-8")
        with pytest.raises(ConflictError):
            extractor.process(doc, "light")
        assert doc.exists()
        assert not (root / "summaries" / "source-api-notes.md").exists()

    def test_existing_summary_conflict(self, extractor, doc, root):
        (root / "summaries" / "source-api-notes.md").write_text("x", encoding="utf-8")
        with pytest.raises(ConflictError):
            extractor.process(doc, "light")
        assert doc.exists()

    @pytest.mark.parametrize(
        "relative",
        ["summaries/00-project-brief.md", "summaries/handoff-2024-03-01-auth.md", "archive/old-notes.md"],
    )
    def test_managed_records_are_not_inputs(self, extractor, root, relative):
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("# Managed\n\nThe limit is 5 requests.\n", encoding="utf-8")
        with pytest.raises(ConflictError, match="managed record"):
            extractor.process(path, "light")
        assert path.read_text(encoding="utf-8").startswith("# Managed")
        assert not list((root / "summaries").glob("source-*.md"))

    def test_failed_move_rolls_back_summary(self, extractor, doc, root):
        with patch.object(ArchiveManager, "move", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                extractor.process(doc, "light")
        assert doc.exists()
        assert not (root / "summaries" / "source-api-notes.md").exists()


class TestDryRun:
    def test_dry_run_touches_nothing(self, extractor, doc, root):
        result = extractor.process(doc, "light", dry_run=True)
        assert result.synopsis.startswith("[dry-run]")
        assert doc.exists()
        assert not (root / "summaries" / "source-api-notes.md").exists()
        assert not (root / "archive").exists()
