"""Deterministic line-heuristic extractor.

Good enough for well-structured requirement notes; anything subtle should
go through the LLM backend. Every span it emits is cut from the source
text, never rewritten, so numeric literals survive byte-for-byte.
"""

from __future__ import annotations

import logging
import re

from recap.extraction.base import ExtractionDraft
from recap.records import Decision, Requirement, Uncertainty
from recap.templates import Mode

logger = logging.getLogger(__name__)

_UNITS = (
    r"ms|sec|seconds?|s|minutes?|min|hours?|h|days?|weeks?|months?|years?"
    r"|KB|MB|GB|TB|kB|px|rps|requests|users|items|retries|attempts"
    r"|characters|chars|tokens|bytes|files|lines|times"
)
LITERAL_RE = re.compile(
    r"(?<![\w.,])\d+(?:[.,]\d+)*"
    r"(?:\s?%|\s[A-Za-z]+/[A-Za-z]+|\s?(?:" + _UNITS + r"))?"
    r"(?![\w])"
)

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+(?=[A-Z])")
_BULLET = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+")

_REQUIREMENT_CUES = re.compile(
    r"\b(must|shall|should|required|requires|needs? to|has to|have to|never|always"
    r"|limit|limited to|maximum|minimum|at most|at least|up to)\b",
    re.IGNORECASE,
)
_DECISION_PREFIX = re.compile(r"^(?:decision|decided)\s*:\s*", re.IGNORECASE)
_DECISION_CUES = re.compile(r"\bwe (?:decided|chose|will use|picked)\b", re.IGNORECASE)

_EXPLICIT_TAG = re.compile(r"^(OPEN|ASSUMED|MISSING)\s*[:\-]\s*(.+)$")
_MISSING_CUES = re.compile(
    r"\b(missing|not provided|not specified|not given|unknown value|no value)\b|\?\?\?",
    re.IGNORECASE,
)
_OPEN_CUES = re.compile(
    r"\b(TBD|TODO|open question|unresolved|undecided|to be decided|to be determined)\b",
    re.IGNORECASE,
)
_ASSUMED_CUES = re.compile(
    r"\b(assume|assumed|assuming|assumption|by default|defaults? to)\b", re.IGNORECASE
)

_IF_THEN = re.compile(r"^(?:if|when)\s+(?P<cond>.+?),?\s+then\s+(?P<then>.+)$", re.IGNORECASE)
_IF_COMMA = re.compile(r"^(?:if|when)\s+(?P<cond>[^,]+),\s*(?P<then>.+)$", re.IGNORECASE)
_TRAILING_IF = re.compile(r"^(?P<then>.+?)\s+(?:if|when)\s+(?P<cond>.+)$", re.IGNORECASE)
_EXCEPT = re.compile(r"[,;]?\s+\b(?:except|unless)\b\s+", re.IGNORECASE)
_BUT = re.compile(r"[,;]?\s+\b(?:but|however)\b,?\s+", re.IGNORECASE)

_RATIONALE = re.compile(r"[,;]?\s+\b(?:because|since|rationale:)\s+", re.IGNORECASE)
_REJECTED = re.compile(
    r"[,;]?\s+\b(?:instead of|rather than|rejected:)\s+", re.IGNORECASE
)


def _strip(text: str) -> str:
    return text.strip().rstrip(".;,").strip()


def extract_literals(text: str) -> list[str]:
    """Number(+unit) spans in document order, deduplicated."""
    seen: dict[str, None] = {}
    for match in LITERAL_RE.finditer(text):
        seen.setdefault(match.group(), None)
    return list(seen)


def split_sentences(text: str) -> list[str]:
    sentences: list[str] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or line.startswith("```"):
            continue
        line = _BULLET.sub("", line)
        sentences.extend(s.strip() for s in _SENTENCE_SPLIT.split(line) if s.strip())
    return sentences


def classify_uncertainty(sentence: str) -> Uncertainty | None:
    """Return a tagged uncertainty, or None if the sentence states none."""
    explicit = _EXPLICIT_TAG.match(sentence)
    if explicit:
        return Uncertainty(text=_strip(explicit.group(2)), tag=explicit.group(1))
    if _MISSING_CUES.search(sentence):
        return Uncertainty(text=_strip(sentence), tag="MISSING")
    if _OPEN_CUES.search(sentence) or sentence.endswith("?"):
        return Uncertainty(text=_strip(sentence), tag="OPEN")
    if _ASSUMED_CUES.search(sentence):
        return Uncertainty(text=_strip(sentence), tag="ASSUMED")
    return None


def parse_requirement(sentence: str) -> Requirement:
    """Normalize one requirement sentence into IF/THEN/BUT/EXCEPT."""
    body = _strip(sentence)
    cond = ""
    for pattern in (_IF_THEN, _IF_COMMA, _TRAILING_IF):
        match = pattern.match(body)
        if match:
            cond, body = _strip(match.group("cond")), _strip(match.group("then"))
            break

    except_ = ""
    parts = _EXCEPT.split(body, maxsplit=1)
    if len(parts) == 2:
        body, except_ = _strip(parts[0]), _strip(parts[1])

    but = ""
    parts = _BUT.split(body, maxsplit=1)
    if len(parts) == 2:
        body, but = _strip(parts[0]), _strip(parts[1])

    return Requirement(then=body, if_=cond, but=but, except_=except_)


def parse_decision(sentence: str) -> Decision:
    body = _DECISION_PREFIX.sub("", _strip(sentence))

    rejected: list[str] = []
    parts = _REJECTED.split(body, maxsplit=1)
    if len(parts) == 2:
        body, rest = parts
        rationale_split = _RATIONALE.split(rest, maxsplit=1)
        rejected = [_strip(r) for r in re.split(r",\s*|\s+or\s+", rationale_split[0]) if r.strip()]
        if len(rationale_split) == 2:
            body = f"{body} because {rationale_split[1]}"

    rationale = ""
    parts = _RATIONALE.split(body, maxsplit=1)
    if len(parts) == 2:
        body, rationale = parts[0], _strip(parts[1])

    return Decision(decision=_strip(body), rationale=rationale, rejected=rejected)


class RuleBasedExtractor:
    """Extractor backend using keyword cues and sentence patterns."""

    @property
    def name(self) -> str:
        return "rules"

    def extract(self, text: str, *, title: str, mode: Mode) -> ExtractionDraft:
        draft = ExtractionDraft(title=self._title(text, title))
        draft.literals = extract_literals(text)

        for sentence in split_sentences(text):
            if _DECISION_PREFIX.match(sentence) or _DECISION_CUES.search(sentence):
                draft.decisions.append(parse_decision(sentence))
                continue
            uncertainty = classify_uncertainty(sentence)
            if uncertainty is not None:
                draft.uncertainties.append(uncertainty)
                continue
            if _REQUIREMENT_CUES.search(sentence) or re.match(r"^(if|when)\b", sentence, re.I):
                draft.requirements.append(parse_requirement(sentence))

        logger.debug(
            "Rule extraction for %r: %d requirements, %d decisions, %d uncertainties (%s)",
            draft.title,
            len(draft.requirements),
            len(draft.decisions),
            len(draft.uncertainties),
            mode.value,
        )
        return draft

    def _title(self, text: str, fallback: str) -> str:
        for line in text.splitlines():
            match = re.match(r"^#\s+(.+?)\s*$", line)
            if match:
                return match.group(1)
        return fallback
