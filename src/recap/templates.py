"""Structural schema per (family, mode).

Only structure lives here: which sections a record has, their headings,
and whether each must be present. Prose wording of the templates is not
modelled.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from recap.errors import SchemaMismatchError, UnknownSchemaError

EMPTY_MARKER = "- (none)"


class Family(str, Enum):
    SOURCE_SUMMARY = "SourceSummary"
    HANDOFF = "Handoff"

    @classmethod
    def parse(cls, value: str | Family) -> Family:
        if isinstance(value, cls):
            return value
        key = str(value).replace("-", "").replace("_", "").lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        raise SchemaMismatchError(f"Unknown record family: {value!r}")


class Mode(str, Enum):
    LIGHT = "Light"
    FULL = "Full"

    @classmethod
    def parse(cls, value: str | Mode) -> Mode:
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        raise SchemaMismatchError(f"Unknown mode: {value!r} (expected light or full)")


@dataclass(frozen=True)
class FieldSpec:
    """One section of a record."""

    name: str
    heading: str
    required: bool = True


_TITLE = FieldSpec("title", "Title")
_LITERALS = FieldSpec("literals", "Key Literals")
_REQUIREMENTS = FieldSpec("requirements", "Requirements")
_DECISIONS = FieldSpec("decisions", "Decisions")
_UNCERTAINTIES = FieldSpec("uncertainties", "Uncertainties")
_ACCOMPLISHMENTS = FieldSpec("accomplishments", "Accomplishments")
_NUMERIC_FACTS = FieldSpec("numeric_facts", "Numeric Facts")
_CONDITIONAL_LOGIC = FieldSpec("conditional_logic", "Conditional Logic")
_NEXT_STEPS = FieldSpec("next_steps", "Next Steps")
_OPEN_QUESTIONS = FieldSpec("open_questions", "Open Questions")
_NOTES = FieldSpec("notes", "Notes", required=False)

SCHEMAS: dict[tuple[Family, Mode], tuple[FieldSpec, ...]] = {
    (Family.SOURCE_SUMMARY, Mode.LIGHT): (
        _TITLE,
        _LITERALS,
        _REQUIREMENTS,
        _UNCERTAINTIES,
    ),
    (Family.SOURCE_SUMMARY, Mode.FULL): (
        _TITLE,
        _LITERALS,
        _REQUIREMENTS,
        _DECISIONS,
        _UNCERTAINTIES,
        _NOTES,
    ),
    (Family.HANDOFF, Mode.LIGHT): (
        _ACCOMPLISHMENTS,
        _NEXT_STEPS,
        _OPEN_QUESTIONS,
    ),
    (Family.HANDOFF, Mode.FULL): (
        _ACCOMPLISHMENTS,
        _NUMERIC_FACTS,
        _CONDITIONAL_LOGIC,
        _NEXT_STEPS,
        _OPEN_QUESTIONS,
        _NOTES,
    ),
}


def schema(family: Family | str, mode: Mode | str) -> tuple[FieldSpec, ...]:
    """Return the ordered field list for a (family, mode) pair."""
    try:
        key = (Family(family), Mode(mode))
    except ValueError:
        raise UnknownSchemaError(f"No schema for ({family!r}, {mode!r})") from None
    if key not in SCHEMAS:
        raise UnknownSchemaError(f"No schema for ({family!r}, {mode!r})")
    return SCHEMAS[key]


def render_sections(fields: tuple[FieldSpec, ...], items: dict[str, list[str]]) -> str:
    """Render one ``## heading`` section per field.

    Required fields with no items get the explicit empty marker; optional
    fields with no items are left out.
    """
    blocks: list[str] = []
    for spec in fields:
        lines = [line for line in items.get(spec.name, []) if line.strip()]
        if not lines:
            if not spec.required:
                continue
            body = EMPTY_MARKER
        else:
            body = "\n".join(lines)
        blocks.append(f"## {spec.heading}\n{body}\n")
    return "\n".join(blocks)


def parse_sections(body: str) -> dict[str, list[str]]:
    """Split a markdown body into heading → non-empty content lines."""
    sections: dict[str, list[str]] = {}
    current: list[str] | None = None
    for line in body.splitlines():
        match = re.match(r"^##\s+(.+?)\s*$", line)
        if match:
            current = sections.setdefault(match.group(1), [])
            continue
        if current is not None and line.strip():
            current.append(line.rstrip())
    return sections


def bullet_items(lines: list[str]) -> list[str]:
    """Return bullet texts, dropping the empty marker."""
    items = []
    for line in lines:
        if line.strip() == EMPTY_MARKER:
            continue
        if line.startswith("- "):
            items.append(line[2:].strip())
    return items
