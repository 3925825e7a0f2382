"""Pluggable extraction: raw document text → ExtractionDraft.

Backends:
    rules.RuleBasedExtractor   # deterministic line heuristics (default)
    llm.LLMExtractor           # prompt an Engine, parse JSON

Whatever the backend, drafts go through validate.validate_draft before
anything is written.
"""
