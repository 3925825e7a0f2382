"""Extractor protocol and the draft it produces."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from recap.records import Decision, Requirement, Uncertainty
from recap.templates import Mode


@dataclass
class ExtractionDraft:
    """Unvalidated extraction output for one document."""

    title: str
    literals: list[str] = field(default_factory=list)
    requirements: list[Requirement] = field(default_factory=list)
    decisions: list[Decision] = field(default_factory=list)
    uncertainties: list[Uncertainty] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


@runtime_checkable
class Extractor(Protocol):
    """Protocol that all extraction backends must implement."""

    @property
    def name(self) -> str: ...

    def extract(self, text: str, *, title: str, mode: Mode) -> ExtractionDraft:
        """Turn raw document text into a draft summary."""
        ...
