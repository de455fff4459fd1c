"""Typed failures raised by the matching core.

Every error carries a stable ``code`` so callers (the HTTP API, the CLI)
can branch on the kind of failure instead of matching message text.
"""

from enum import Enum
from typing import Any, Dict, Optional


class IngestionErrorKind(str, Enum):
    """Failure kinds of the résumé ingestion pipeline."""
    INVALID_INPUT = "invalid_input"
    TRANSFER_FAILED = "transfer_failed"
    ANALYSIS_FAILED = "analysis_failed"
    SUPERSEDED = "superseded"


class ApplicationErrorKind(str, Enum):
    """Failure kinds of the application tracker."""
    INVALID_TRANSITION = "invalid_transition"
    DUPLICATE_APPLICATION = "duplicate_application"
    NOT_FOUND = "not_found"


class CareerMatcherError(Exception):
    """Base class for all core failures."""

    code: str = "career_matcher_error"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        return {"error_code": self.code, "message": self.message}


class IngestionError(CareerMatcherError):
    """Résumé ingestion failed; the current profile is left untouched."""

    kind: IngestionErrorKind

    @property
    def code(self) -> str:  # type: ignore[override]
        return f"ingestion.{self.kind.value}"


class InvalidInputError(IngestionError):
    """The document was rejected before any collaborator was called."""
    kind = IngestionErrorKind.INVALID_INPUT


class TransferFailedError(IngestionError):
    """The object-storage collaborator failed or timed out."""
    kind = IngestionErrorKind.TRANSFER_FAILED


class AnalysisFailedError(IngestionError):
    """Text or structured extraction failed, or its output broke the schema."""
    kind = IngestionErrorKind.ANALYSIS_FAILED


class SubmissionSupersededError(IngestionError):
    """A newer submission started before this one completed."""
    kind = IngestionErrorKind.SUPERSEDED


class ApplicationError(CareerMatcherError):
    """Application lifecycle failure; tracker state is left untouched."""

    kind: ApplicationErrorKind

    @property
    def code(self) -> str:  # type: ignore[override]
        return f"application.{self.kind.value}"


class InvalidTransitionError(ApplicationError):
    kind = ApplicationErrorKind.INVALID_TRANSITION


class DuplicateApplicationError(ApplicationError):
    kind = ApplicationErrorKind.DUPLICATE_APPLICATION


class ApplicationNotFoundError(ApplicationError):
    kind = ApplicationErrorKind.NOT_FOUND


class InvalidSortError(CareerMatcherError):
    """An unknown sort key was passed to a catalog query."""

    code = "catalog.invalid_sort"

    def __init__(self, sort_key: Optional[str]):
        super().__init__(f"Unknown sort key: {sort_key!r}", sort_key=sort_key)
        self.sort_key = sort_key
