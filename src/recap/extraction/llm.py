"""LLM extraction backend — prompt building and response parsing.

The engine is asked for a single JSON object. Parsing is strict: an
uncertainty without a tag stays untagged so validation rejects it rather
than silently defaulting.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING

from recap.errors import ExtractionError
from recap.extraction.base import ExtractionDraft
from recap.records import Decision, Requirement, Uncertainty
from recap.templates import Mode

if TYPE_CHECKING:
    from recap.engines.base import Engine

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You convert raw project documents into structured summaries for an agent
that will resume the project later without reading the original.
Copy every number, unit and identifier exactly as written. Never round,
convert units or paraphrase a quantity.
"""

EXTRACTION_PROMPT_TEMPLATE = """\
Summarize the document below into JSON ({mode} mode).

## Rules
- literals: every numeric or factual literal, copied verbatim (e.g. "1000 requests/minute").
- requirements: each as {{"if": ..., "then": ..., "but": ..., "except": ...}}.
  A requirement with no explicit condition has an empty "if".
- decisions: {{"decision": ..., "rationale": ..., "rejected": [...]}}.{decisions_note}
- uncertainties: {{"text": ..., "tag": "OPEN" | "ASSUMED" | "MISSING"}}
  - OPEN: the document explicitly flags it as unresolved
  - ASSUMED: the document is silent and a default was inferred
  - MISSING: the document references it but the value/content is absent
- notes: short free-form observations (Full mode only).

Output exactly one JSON object with keys
title, literals, requirements, decisions, uncertainties, notes. No prose.

## Document: {title}
{text}
"""


def build_extraction_prompt(text: str, *, title: str, mode: Mode) -> str:
    decisions_note = "" if mode is Mode.FULL else " (may be empty in Light mode)"
    return EXTRACTION_PROMPT_TEMPLATE.format(
        mode=mode.value,
        decisions_note=decisions_note,
        title=title,
        text=text,
    )


def parse_extraction_response(response_text: str, *, fallback_title: str) -> ExtractionDraft:
    """Parse the engine's JSON reply into a draft."""
    data = _load_json_object(response_text)

    requirements = []
    for item in _items(data, "requirements"):
        if isinstance(item, str):
            requirements.append(Requirement(then=item))
            continue
        requirements.append(
            Requirement(
                then=str(item.get("then") or ""),
                if_=str(item.get("if") or ""),
                but=str(item.get("but") or ""),
                except_=str(item.get("except") or ""),
            )
        )

    decisions = []
    for item in _items(data, "decisions"):
        if isinstance(item, str):
            decisions.append(Decision(decision=item))
            continue
        decisions.append(
            Decision(
                decision=str(item.get("decision") or ""),
                rationale=str(item.get("rationale") or ""),
                rejected=_strings(item, "rejected"),
            )
        )

    uncertainties = []
    for item in _items(data, "uncertainties"):
        if isinstance(item, str):
            uncertainties.append(Uncertainty(text=item))
            continue
        tag = item.get("tag")
        uncertainties.append(
            Uncertainty(text=str(item.get("text") or ""), tag=str(tag).upper() if tag else None)
        )

    return ExtractionDraft(
        title=str(data.get("title") or fallback_title),
        literals=_strings(data, "literals"),
        requirements=requirements,
        decisions=decisions,
        uncertainties=uncertainties,
        notes=_strings(data, "notes"),
    )


def _list(data: dict, key: str) -> list:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ExtractionError(f"'{key}' must be a JSON array, got {type(value).__name__}")
    return value


def _items(data: dict, key: str) -> list:
    """Entries of ``data[key]``; each must be a string or an object."""
    items = _list(data, key)
    for i, item in enumerate(items):
        if not isinstance(item, (str, dict)):
            raise ExtractionError(
                f"'{key}' entry {i} must be a string or object, got {type(item).__name__}"
            )
    return items


def _strings(data: dict, key: str) -> list[str]:
    items = _list(data, key)
    for i, item in enumerate(items):
        if not isinstance(item, (str, int, float)) or isinstance(item, bool):
            raise ExtractionError(f"'{key}' entry {i} must be a string, got {type(item).__name__}")
    return [str(item) for item in items]


def _load_json_object(response_text: str) -> dict:
    text = response_text.strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # Engines sometimes wrap the object in prose or a code fence
        match = re.search(r"\{.*\}", text, re.DOTALL)
        if not match:
            raise ExtractionError(f"Extraction response is not JSON: {text[:200]!r}") from None
        try:
            data = json.loads(match.group())
        except json.JSONDecodeError as e:
            raise ExtractionError(f"Extraction response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ExtractionError(f"Extraction response must be a JSON object, got {type(data).__name__}")
    return data


class LLMExtractor:
    """Extractor backend delegating the reading to an Engine."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @property
    def name(self) -> str:
        return f"llm:{self.engine.name}"

    def extract(self, text: str, *, title: str, mode: Mode) -> ExtractionDraft:
        prompt = build_extraction_prompt(text, title=title, mode=mode)
        response = self.engine.send(prompt, system_prompt=SYSTEM_PROMPT)
        if response.cost_usd is not None:
            logger.info("Extraction of %r cost ~$%.4f (%s)", title, response.cost_usd, response.model)
        return parse_extraction_response(response.text, fallback_title=title)
