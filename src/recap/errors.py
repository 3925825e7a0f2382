"""Error taxonomy shared by every recap component.

Each error carries a ``kind`` string so callers (CLI, agent tools) can
report the category verbatim without inspecting the class hierarchy.
"""

from __future__ import annotations


class RecapError(Exception):
    """Base class for all recap errors."""

    kind = "RecapError"


class NotFoundError(RecapError):
    kind = "NotFound"


class UnknownSchemaError(RecapError):
    kind = "UnknownSchema"


class SchemaMismatchError(UnknownSchemaError):
    """Mode or family could not be resolved for the requested operation."""

    kind = "SchemaMismatch"


class AmbiguousModeError(RecapError):
    kind = "AmbiguousMode"


class ConflictError(RecapError):
    """Destination already holds a different file."""

    kind = "Conflict"


class PartialWriteDetectedError(RecapError):
    """The on-disk layout violates an invariant left by an interrupted write."""

    kind = "PartialWriteDetected"


class ExtractionError(RecapError):
    """Extraction output does not satisfy the summary contract."""

    kind = "ExtractionInvalid"
