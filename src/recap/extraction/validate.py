"""Mechanical checks every extraction draft must pass before it is written."""

from __future__ import annotations

import re

from recap.errors import ExtractionError
from recap.extraction.base import ExtractionDraft
from recap.records import UNCERTAINTY_TAGS

NUMBER_RE = re.compile(r"(?<![\w.,])\d+(?:[.,]\d+)*")


def numeric_tokens(text: str) -> list[str]:
    """Numeric tokens exactly as written, e.g. ``1,000``, ``2.50`` or the ``1500`` of ``1500ms``."""
    return NUMBER_RE.findall(text)


def validate_draft(draft: ExtractionDraft, source_text: str) -> None:
    """Raise ExtractionError on the first contract violation found."""
    if not draft.title.strip():
        raise ExtractionError("Summary title is empty")

    source_numbers = set(numeric_tokens(source_text))

    for literal in draft.literals:
        if literal not in source_text:
            raise ExtractionError(f"Literal {literal!r} does not appear verbatim in the source")

    for i, req in enumerate(draft.requirements):
        if not req.then.strip():
            raise ExtractionError(f"Requirement {i} has no THEN clause: {req!r}")
        _check_numbers(req.texts(), source_numbers, f"requirement {i}")

    for i, dec in enumerate(draft.decisions):
        if not dec.decision.strip():
            raise ExtractionError(f"Decision {i} is empty")
        _check_numbers(dec.texts(), source_numbers, f"decision {i}")

    for i, unc in enumerate(draft.uncertainties):
        if unc.tag not in UNCERTAINTY_TAGS:
            raise ExtractionError(
                f"Uncertainty {i} ({unc.text!r}) has classification {unc.tag!r}; "
                f"expected exactly one of {', '.join(UNCERTAINTY_TAGS)}"
            )


def _check_numbers(texts: list[str], source_numbers: set[str], where: str) -> None:
    for text in texts:
        for token in numeric_tokens(text):
            if token not in source_numbers:
                raise ExtractionError(
                    f"Numeric token {token!r} in {where} is not present verbatim in the source"
                )
