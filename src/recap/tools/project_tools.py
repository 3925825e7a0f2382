"""Agent tools for project-memory access.

These functions are designed to be exposed as tools to the controlling
agent. Each returns plain text: the output paths and synopsis on success,
``[<kind>] <message>`` on failure.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING

from recap.errors import RecapError

if TYPE_CHECKING:
    from recap.project import ProjectMemory


def get_project_tools(project: ProjectMemory) -> dict[str, Callable[..., str]]:
    """Return a dict of tool_name -> callable for the three operations.

    These can be registered as MCP tools or called directly.
    """

    def process_document(path: str, mode: str | None = None) -> str:
        """Summarize a raw document into summaries/ and archive the original."""
        try:
            return str(project.process_document(path, mode))
        except RecapError as e:
            return f"[{e.kind}] {e}"

    def generate_handoff(facts: dict | str, mode: str | None = None) -> str:
        """Archive the current handoff (if any) and write a new Active one.

        ``facts`` holds date, topic, accomplishments, numeric_facts,
        conditional_logic, next_steps, open_questions (dict or JSON string).
        """
        if isinstance(facts, str):
            try:
                facts = json.loads(facts)
            except json.JSONDecodeError as e:
                return f"[SchemaMismatch] facts is not valid JSON: {e}"
        try:
            return str(project.generate_handoff(facts, mode))
        except RecapError as e:
            return f"[{e.kind}] {e}"

    def report_state() -> str:
        """Report project, phase, last session, next steps and open questions."""
        try:
            return json.dumps(project.report_state().to_dict(), ensure_ascii=False, indent=2)
        except RecapError as e:
            return f"[{e.kind}] {e}"

    return {
        "process_document": process_document,
        "generate_handoff": generate_handoff,
        "report_state": report_state,
    }
