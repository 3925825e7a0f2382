"""Engine protocol and shared types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass
class EngineResponse:
    """Response from a language-model engine."""

    text: str
    cost_usd: float | None = None
    model: str | None = None
    metadata: dict = field(default_factory=dict)


@runtime_checkable
class Engine(Protocol):
    """Protocol that all engine backends must implement."""

    @property
    def name(self) -> str: ...

    def send(self, message: str, *, system_prompt: str | None = None) -> EngineResponse:
        """Send a single prompt and return the completion."""
        ...
