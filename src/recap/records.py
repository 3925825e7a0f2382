"""Record types and their markdown rendering.

Records are markdown files with YAML frontmatter. Frontmatter holds the
scalar bookkeeping (family, mode, date, source); the body holds one
``## heading`` section per schema field, bullets inside.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal

import frontmatter

from recap.errors import NotFoundError
from recap.templates import (
    Family,
    Mode,
    bullet_items,
    parse_sections,
    render_sections,
    schema,
)

UncertaintyTag = Literal["OPEN", "ASSUMED", "MISSING"]
UNCERTAINTY_TAGS: tuple[str, ...] = ("OPEN", "ASSUMED", "MISSING")

BRIEF_FILENAME = "00-project-brief.md"
HANDOFF_PREFIX = "handoff-"
SOURCE_PREFIX = "source-"


def slugify(name: str) -> str:
    """Minimal slug: strip illegal chars, whitespace runs to hyphens."""
    slug = re.sub(r'[<>:"/\\|?*\n\r\t]', "", name)
    slug = re.sub(r"\s+", "-", slug.strip())
    return slug or "unnamed"


@dataclass
class OperationResult:
    """Exact output paths of a successful operation plus a synopsis."""

    paths: list[Path]
    synopsis: str

    def __str__(self) -> str:
        listed = "\n".join(f"- {p}" for p in self.paths)
        return f"{self.synopsis}\n{listed}"


# ── Source document summaries ─────────────────────────────────


@dataclass
class Requirement:
    """A requirement normalized to IF/THEN/BUT/EXCEPT.

    An empty ``if_`` means the requirement is unconditional.
    """

    then: str
    if_: str = ""
    but: str = ""
    except_: str = ""

    def render(self) -> str:
        parts = [f"IF {self.if_}" if self.if_ else "ALWAYS", f"THEN {self.then}"]
        if self.but:
            parts.append(f"BUT {self.but}")
        if self.except_:
            parts.append(f"EXCEPT {self.except_}")
        return " | ".join(parts)

    def texts(self) -> list[str]:
        return [t for t in (self.if_, self.then, self.but, self.except_) if t]


@dataclass
class Decision:
    decision: str
    rationale: str = ""
    rejected: list[str] = field(default_factory=list)

    def render(self) -> str:
        text = self.decision
        if self.rationale:
            text += f" (rationale: {self.rationale})"
        if self.rejected:
            text += f" (rejected: {'; '.join(self.rejected)})"
        return text

    def texts(self) -> list[str]:
        return [self.decision, self.rationale, *self.rejected]


@dataclass
class Uncertainty:
    text: str
    tag: UncertaintyTag | None = None

    def render(self) -> str:
        return f"[{self.tag}] {self.text}"


@dataclass
class SourceDocumentSummary:
    title: str
    source_name: str
    mode: Mode
    literals: list[str] = field(default_factory=list)
    requirements: list[Requirement] = field(default_factory=list)
    decisions: list[Decision] = field(default_factory=list)
    uncertainties: list[Uncertainty] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    archived_as: str = ""
    created: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))

    @property
    def filename(self) -> str:
        return f"{SOURCE_PREFIX}{slugify(Path(self.source_name).stem)}.md"

    def render(self) -> str:
        fields = schema(Family.SOURCE_SUMMARY, self.mode)
        items = {
            "title": [f"- {self.title}"],
            "literals": [f"- {lit}" for lit in self.literals],
            "requirements": [f"- {req.render()}" for req in self.requirements],
            "decisions": [f"- {dec.render()}" for dec in self.decisions],
            "uncertainties": [f"- {unc.render()}" for unc in self.uncertainties],
            "notes": [f"- {note}" for note in self.notes],
        }
        post = frontmatter.Post(
            f"# Source Summary: {self.title}\n\n" + render_sections(fields, items),
            family=Family.SOURCE_SUMMARY.value,
            mode=self.mode.value,
            source=self.source_name,
            archived_as=self.archived_as,
            created=self.created,
        )
        return frontmatter.dumps(post) + "\n"


# ── Handoff records ───────────────────────────────────────────


def _bullet(text: str) -> str:
    """Bullet line; continuation lines are indented under the dash."""
    return "- " + text.replace("\n", "\n  ")


@dataclass
class Accomplishment:
    """Something done in the session, with the exact files it produced."""

    description: str
    paths: list[str] = field(default_factory=list)

    def render(self) -> str:
        if not self.paths:
            return self.description
        return f"{self.description} ({', '.join(f'`{p}`' for p in self.paths)})"


@dataclass
class SessionFacts:
    """What one session produced, as supplied by the controlling agent."""

    date: str
    topic: str
    accomplishments: list[Accomplishment] = field(default_factory=list)
    numeric_facts: list[str] = field(default_factory=list)
    conditional_logic: list[str] = field(default_factory=list)
    next_steps: list[str] = field(default_factory=list)
    open_questions: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    session_count: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> SessionFacts:
        accomplishments = []
        for item in data.get("accomplishments", []):
            if isinstance(item, str):
                accomplishments.append(Accomplishment(description=item))
            else:
                accomplishments.append(
                    Accomplishment(
                        description=item.get("description", ""),
                        paths=list(item.get("paths", [])),
                    )
                )
        count = data.get("session_count")
        return cls(
            date=str(data.get("date", "")),
            topic=str(data.get("topic", "")),
            accomplishments=accomplishments,
            numeric_facts=list(data.get("numeric_facts", [])),
            conditional_logic=list(data.get("conditional_logic", [])),
            next_steps=list(data.get("next_steps", [])),
            open_questions=list(data.get("open_questions", [])),
            notes=list(data.get("notes", [])),
            session_count=int(count) if count is not None else None,
        )


@dataclass
class HandoffRecord:
    facts: SessionFacts
    mode: Mode

    @property
    def filename(self) -> str:
        return f"{HANDOFF_PREFIX}{self.facts.date}-{slugify(self.facts.topic)}.md"

    def render(self) -> str:
        f = self.facts
        fields = schema(Family.HANDOFF, self.mode)
        items = {
            "accomplishments": [f"- {a.render()}" for a in f.accomplishments],
            "numeric_facts": [f"- {n}" for n in f.numeric_facts],
            "conditional_logic": [f"- {c}" for c in f.conditional_logic],
            "next_steps": [_bullet(s) for s in f.next_steps],
            "open_questions": [_bullet(q) for q in f.open_questions],
            "notes": [f"- {n}" for n in f.notes],
        }
        post = frontmatter.Post(
            f"# Handoff: {f.topic} ({f.date})\n\n" + render_sections(fields, items),
            family=Family.HANDOFF.value,
            mode=self.mode.value,
            date=f.date,
            topic=f.topic,
            next_steps=list(f.next_steps),
            open_questions=list(f.open_questions),
        )
        return frontmatter.dumps(post) + "\n"


@dataclass
class ActiveHandoff:
    """What the reporter needs from the Active handoff on disk."""

    path: Path
    date: str
    topic: str
    next_steps: list[str]
    open_questions: list[str]


def read_handoff(path: Path) -> ActiveHandoff:
    """Load the Active handoff.

    Next steps and open questions come from frontmatter, which holds them
    verbatim; the body sections are only read for records without it.
    """
    post = frontmatter.load(str(path))
    sections = parse_sections(post.content)
    meta = post.metadata
    return ActiveHandoff(
        path=path,
        date=str(meta.get("date", "")),
        topic=str(meta.get("topic", "")),
        next_steps=_verbatim_list(meta, "next_steps", sections.get("Next Steps", [])),
        open_questions=_verbatim_list(meta, "open_questions", sections.get("Open Questions", [])),
    )


def _verbatim_list(meta: dict, key: str, section: list[str]) -> list[str]:
    if key in meta:
        return [str(item) for item in meta[key] or []]
    return bullet_items(section)


# ── Project brief ─────────────────────────────────────────────


@dataclass
class ProjectBrief:
    name: str
    project_type: str
    phase: str
    phases: list[str] = field(default_factory=list)

    def render(self) -> str:
        tracker = [
            f"- [{'x' if p == self.phase else ' '}] {p}" for p in (self.phases or [self.phase])
        ]
        post = frontmatter.Post(
            f"# {self.name}\n\n## Project Type\n{self.project_type}\n\n"
            f"## Phase Tracker\n" + "\n".join(tracker) + "\n",
            name=self.name,
            type=self.project_type,
            phase=self.phase,
            phases=list(self.phases),
        )
        return frontmatter.dumps(post) + "\n"


def read_brief(path: Path) -> ProjectBrief:
    if not path.is_file():
        raise NotFoundError(f"Project brief not found: {path}")
    meta = frontmatter.load(str(path)).metadata
    return ProjectBrief(
        name=str(meta.get("name", "")),
        project_type=str(meta.get("type", "")),
        phase=str(meta.get("phase", "")),
        phases=[str(p) for p in meta.get("phases", []) or []],
    )
