"""End-to-end tests for ProjectMemory, agent tools and the CLI."""

from __future__ import annotations

import json

import pytest
from pathlib import Path

from recap.__main__ import main
from recap.config import ExtractorConfig, RecapConfig
from recap.errors import ConflictError, PartialWriteDetectedError
from recap.extraction.rules import RuleBasedExtractor
from recap.project import ProjectMemory, build_extractor
from recap.tools.project_tools import get_project_tools


@pytest.fixture
def config(tmp_path: Path) -> RecapConfig:
    return RecapConfig(root=tmp_path)


@pytest.fixture
def project(config: RecapConfig) -> ProjectMemory:
    p = ProjectMemory(config)
    p.init_project("shipit", "CLI tool", "design", ["design", "build"])
    return p


@pytest.fixture
def doc(tmp_path: Path) -> Path:
    path = tmp_path / "limits.txt"
    path.write_text("The rate limit is 1000 requests/minute.\n", encoding="utf-8")
    return path


class TestInit:
    def test_creates_layout(self, project: ProjectMemory, tmp_path: Path):
        assert (tmp_path / "summaries" / "00-project-brief.md").is_file()
        assert (tmp_path / "archive" / "handoffs").is_dir()

    def test_brief_written_once(self, project: ProjectMemory):
        with pytest.raises(ConflictError):
            project.init_project("other", "library", "build")


class TestBuildExtractor:
    def test_rules_default(self, config: RecapConfig):
        assert isinstance(build_extractor(config), RuleBasedExtractor)

    def test_unknown(self, tmp_path: Path):
        config = RecapConfig(root=tmp_path, extractor=ExtractorConfig(name="magic"))
        with pytest.raises(ValueError, match="Unknown extractor"):
            build_extractor(config)


class TestOperations:
    def test_full_session_flow(self, project: ProjectMemory, doc: Path, tmp_path: Path):
        processed = project.process_document(doc, "light")
        assert processed.paths[0].name == "source-limits.md"
        assert "1000 requests/minute" in processed.paths[0].read_text(encoding="utf-8")

        project.generate_handoff(
            {
                "date": "2024-03-01",
                "topic": "auth-flow",
                "accomplishments": [{"description": "Summarized limits", "paths": ["summaries/source-limits.md"]}],
                "next_steps": ["implement token refresh"],
            },
            "light",
        )
        project.generate_handoff({"date": "2024-03-02", "topic": "refresh", "session_count": 6})

        report = project.report_state()
        assert report.last_session.date == "2024-03-02"
        assert report.file_count == 3
        assert report.warning is False
        assert (tmp_path / "archive" / "handoffs" / "handoff-2024-03-01-auth-flow.md").is_file()
        assert project.check() == []

    def test_default_mode_from_config(self, tmp_path: Path, doc: Path):
        p = ProjectMemory(RecapConfig(root=tmp_path, default_mode="full"))
        result = p.process_document(doc)
        assert "Full mode" in result.synopsis


class TestCheck:
    def test_orphan_summary(self, project: ProjectMemory, tmp_path: Path):
        (tmp_path / "summaries" / "source-ghost.md").write_text(
            "---\narchived_as: archive/ghost.txt\n---\n# ghost\n", encoding="utf-8"
        )
        problems = project.check()
        assert len(problems) == 1
        assert "source-ghost.md" in problems[0]
        with pytest.raises(PartialWriteDetectedError):
            project.check(strict=True)

    def test_two_active_handoffs(self, project: ProjectMemory, tmp_path: Path):
        for name in ["handoff-2024-01-01-a.md", "handoff-2024-01-02-b.md"]:
            (tmp_path / "summaries" / name).write_text("x", encoding="utf-8")
        assert any("2 Active handoffs" in p for p in project.check())

    def test_archived_handoffs_without_active(self, project: ProjectMemory, tmp_path: Path):
        project.generate_handoff({"date": "2024-03-01", "topic": "a"}, "light")
        project.generate_handoff({"date": "2024-03-02", "topic": "b"}, "light")
        assert project.check() == []

        (tmp_path / "summaries" / "handoff-2024-03-02-b.md").unlink()
        assert project.check() == ["archived handoffs exist but there is no Active handoff"]
        with pytest.raises(PartialWriteDetectedError):
            project.check(strict=True)

    def test_brief_is_never_archived(self, project: ProjectMemory, tmp_path: Path):
        brief = tmp_path / "summaries" / "00-project-brief.md"
        with pytest.raises(ConflictError):
            project.process_document(brief, "light")
        assert project.report_state().project == "shipit"


class TestProjectTools:
    def test_tool_names(self, project: ProjectMemory):
        assert set(get_project_tools(project)) == {"process_document", "generate_handoff", "report_state"}

    def test_process_document_tool(self, project: ProjectMemory, doc: Path):
        out = get_project_tools(project)["process_document"](str(doc), "light")
        assert "source-limits.md" in out
        assert "archive" in out

    def test_errors_become_text(self, project: ProjectMemory, tmp_path: Path):
        tools = get_project_tools(project)
        assert tools["process_document"](str(tmp_path / "missing.txt"), "light").startswith("[NotFound]")
        assert tools["generate_handoff"]({"date": "2024-03-01", "topic": "x"}).startswith(
            "[AmbiguousMode]"
        )
        assert tools["generate_handoff"]("{not json").startswith("[SchemaMismatch]")

    def test_report_state_json(self, project: ProjectMemory):
        tools = get_project_tools(project)
        tools["generate_handoff"](json.dumps({"date": "2024-03-01", "topic": "auth-flow"}), "light")
        data = json.loads(tools["report_state"]())
        assert data["phase"] == "design"
        assert data["lastSession"] == {"date": "2024-03-01", "topic": "auth-flow"}
        assert data["openQuestions"] == []


class TestCLI:
    @pytest.fixture(autouse=True)
    def isolated(self, monkeypatch, tmp_path: Path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        for key in ["RECAP_ROOT", "RECAP_MODE", "RECAP_EXTRACTOR", "RECAP_WARN_THRESHOLD"]:
            monkeypatch.delenv(key, raising=False)

    def test_init_handoff_status(self, tmp_path: Path, capsys):
        assert main(["--root", str(tmp_path), "init", "shipit", "--type", "CLI tool", "--phase", "design"]) == 0
        facts = tmp_path / "facts.json"
        facts.write_text(json.dumps({"date": "2024-03-01", "topic": "auth-flow"}), encoding="utf-8")
        assert main(["--root", str(tmp_path), "handoff", str(facts), "--mode", "light"]) == 0
        capsys.readouterr()

        assert main(["--root", str(tmp_path), "status", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["projectType"] == "CLI tool"
        assert data["fileCount"] == 2

    def test_error_exit_code(self, tmp_path: Path, capsys):
        assert main(["--root", str(tmp_path), "status"]) == 1
        assert "NotFound:" in capsys.readouterr().err

    def test_process_dry_run(self, tmp_path: Path, doc: Path, capsys):
        assert main(["--root", str(tmp_path), "process", str(doc), "--mode", "full", "--dry-run"]) == 0
        assert "[dry-run]" in capsys.readouterr().out
        assert doc.exists()

    def test_check_ok(self, tmp_path: Path, capsys):
        assert main(["--root", str(tmp_path), "check"]) == 0
        assert "OK" in capsys.readouterr().out
