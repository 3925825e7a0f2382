"""Entry point: python -m recap <command>

- init NAME:      Create summaries/00-project-brief.md
- process PATH:   Summarize a document and archive the original
- handoff FACTS:  Rotate the Active handoff (FACTS is a JSON file, or - for stdin)
- status:         Report project state (read-only)
- check:          Look for leftovers of interrupted writes
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from recap.config import load_config
from recap.errors import RecapError


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="recap", description="Project memory for agent sessions")
    parser.add_argument("--config", type=Path, help="Path to recap.toml")
    parser.add_argument("--root", type=Path, help="Project root (overrides config)")
    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Create the project brief")
    init.add_argument("name")
    init.add_argument("--type", dest="project_type", required=True)
    init.add_argument("--phase", required=True)
    init.add_argument("--phases", default="", help="Comma-separated phase list")

    process = sub.add_parser("process", help="Summarize a document and archive it")
    process.add_argument("path", type=Path)
    process.add_argument("--mode", choices=["light", "full"])
    process.add_argument("--dry-run", action="store_true")

    handoff = sub.add_parser("handoff", help="Write a new Active handoff")
    handoff.add_argument("facts", help="Session facts JSON file, or - for stdin")
    handoff.add_argument("--mode", choices=["light", "full"])

    status = sub.add_parser("status", help="Report project state")
    status.add_argument("--json", action="store_true")

    sub.add_parser("check", help="Check on-disk invariants")
    return parser


def _read_facts(source: str) -> dict:
    raw = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    return json.loads(raw)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    config = load_config(args.config)
    if args.root:
        config.root = args.root
    _setup_logging(config.log_level)

    from recap.project import ProjectMemory

    try:
        project = ProjectMemory(config)
        if args.command == "init":
            phases = [p.strip() for p in args.phases.split(",") if p.strip()]
            print(project.init_project(args.name, args.project_type, args.phase, phases))
        elif args.command == "process":
            print(project.process_document(args.path, args.mode, dry_run=args.dry_run))
        elif args.command == "handoff":
            print(project.generate_handoff(_read_facts(args.facts), args.mode))
        elif args.command == "status":
            report = project.report_state()
            if args.json:
                print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
            else:
                print(report.render())
        elif args.command == "check":
            problems = project.check()
            if problems:
                for problem in problems:
                    print(f"PartialWriteDetected: {problem}", file=sys.stderr)
                return 1
            print("OK")
    except RecapError as e:
        print(f"{e.kind}: {e}", file=sys.stderr)
        return 1
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
