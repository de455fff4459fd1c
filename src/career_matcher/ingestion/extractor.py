"""Résumé ingestion: validate, transfer, then extract a candidate profile."""

import asyncio
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol, TypeVar

from pydantic import ValidationError

from career_matcher.config import settings
from career_matcher.core.errors import (
    AnalysisFailedError,
    InvalidInputError,
    SubmissionSupersededError,
    TransferFailedError,
)
from career_matcher.core.models import CandidateProfile, Document
from career_matcher.ingestion.collaborators import ObjectStorage, StructuredExtractor, TextExtractor
from career_matcher.ingestion.schema import RESUME_ANALYSIS_SCHEMA, ResumeAnalysis
from career_matcher.utils.logging import get_logger, log_document, log_function_call

logger = get_logger(__name__)

T = TypeVar("T")


class IngestionPhase(str, Enum):
    """Pipeline phases, in execution order."""
    TRANSFER = "transfer"
    ANALYSIS = "analysis"


@dataclass(frozen=True)
class ProgressEvent:
    """Progress of one phase of one submission, in [0, 100]."""
    submission_id: int
    phase: IngestionPhase
    value: int


ProgressListener = Callable[[ProgressEvent], None]


class ProfileSink(Protocol):
    """Receives every successfully extracted profile."""

    def replace_profile(self, profile: CandidateProfile) -> None:
        ...


class _PhaseProgress:
    """
    Monotonic progress for one phase.

    Values reported by collaborators are capped at 99; only ``complete``
    reaches 100. Once the phase is completed or closed, late reports are
    ignored.
    """

    def __init__(self, submission_id: int, phase: IngestionPhase, emit: Callable[[ProgressEvent], None]):
        self.submission_id = submission_id
        self.phase = phase
        self._emit = emit
        self.value = -1
        self.closed = False

    def report(self, value: float) -> None:
        if self.closed:
            return
        self._advance(min(99, max(0, int(value))))

    def complete(self) -> None:
        if self.closed:
            return
        self._advance(100)
        self.closed = True

    def close(self) -> None:
        self.closed = True

    def _advance(self, value: int) -> None:
        if value <= self.value:
            return
        self.value = value
        self._emit(ProgressEvent(self.submission_id, self.phase, value))


class ProfileExtractor:
    """
    Drives résumé ingestion for one candidate session.

    A submission runs two phases, transfer then analysis, each with its own
    progress stream. Starting a new submission supersedes any submission
    still in flight: the older one stops delivering progress and its result
    is discarded.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        text_extractor: TextExtractor,
        structured_extractor: StructuredExtractor,
        profile_sink: Optional[ProfileSink] = None,
        max_upload_bytes: Optional[int] = None,
        timeout: Optional[float] = None
    ):
        self.logger = logger.bind(component="profile_extractor")
        self.storage = storage
        self.text_extractor = text_extractor
        self.structured_extractor = structured_extractor
        self.profile_sink = profile_sink
        self.max_upload_bytes = max_upload_bytes or settings.max_upload_bytes
        self.timeout = timeout if timeout is not None else settings.collaborator_timeout

        self._latest_submission = 0

    @property
    def latest_submission(self) -> int:
        return self._latest_submission

    def is_current(self, submission_id: int) -> bool:
        return submission_id == self._latest_submission

    async def submit(
        self,
        document: Document,
        on_progress: Optional[ProgressListener] = None
    ) -> CandidateProfile:
        """
        Ingest a résumé and make the extracted profile current.

        Args:
            document: Uploaded résumé
            on_progress: Called with every progress event of this submission

        Returns:
            The extracted candidate profile

        Raises:
            InvalidInputError: Unsupported media type or oversized file
            TransferFailedError: Object storage failed or timed out
            AnalysisFailedError: Extraction failed, timed out or broke the schema
            SubmissionSupersededError: A newer submission started meanwhile
        """
        self._validate(document)

        self._latest_submission += 1
        submission_id = self._latest_submission
        log = self.logger.bind(submission_id=submission_id)
        log.info("Résumé submission started", **log_document(document))

        def emit(event: ProgressEvent) -> None:
            if on_progress is not None and self.is_current(submission_id):
                on_progress(event)

        transfer = _PhaseProgress(submission_id, IngestionPhase.TRANSFER, emit)
        transfer.report(0)
        key = self.storage_key(document.filename)
        try:
            reference = await self._call(self.storage.store(document.data, key, transfer.report))
        except Exception as e:
            transfer.close()
            self._ensure_current(submission_id)
            log.error("Résumé transfer failed", key=key, error=str(e), error_type=type(e).__name__)
            raise TransferFailedError(
                f"Could not store résumé {document.filename}", submission_id=submission_id, key=key
            ) from e
        self._ensure_current(submission_id)
        transfer.complete()

        analysis = _PhaseProgress(submission_id, IngestionPhase.ANALYSIS, emit)
        analysis.report(0)
        try:
            text = await self._call(self.text_extractor.extract_text(document.data, document.kind))
            analysis.report(40)
            payload = await self._call(self.structured_extractor.extract(text, RESUME_ANALYSIS_SCHEMA))
            analysis.report(90)
            profile = self._build_profile(payload, reference)
        except Exception as e:
            analysis.close()
            self._ensure_current(submission_id)
            log.error("Résumé analysis failed", error=str(e), error_type=type(e).__name__)
            raise AnalysisFailedError(
                f"Could not analyze résumé {document.filename}", submission_id=submission_id
            ) from e
        self._ensure_current(submission_id)

        # No await from here on: profile replacement and cache invalidation are one step
        if self.profile_sink is not None:
            self.profile_sink.replace_profile(profile)
        analysis.complete()

        log.info(
            "Résumé submission completed",
            **log_function_call("submit", reference=reference),
            skills_count=len(profile.skills),
            experience_years=profile.experience_years,
            education_level=profile.education_level.value
        )
        return profile

    def storage_key(self, filename: str, now: Optional[datetime] = None) -> str:
        """Time-qualified storage key, so re-uploads of one file name never collide."""
        now = now or datetime.now(timezone.utc)
        safe_name = re.sub(r"[^A-Za-z0-9._-]+", "_", filename.rsplit("/", 1)[-1].rsplit("\\", 1)[-1])
        safe_name = safe_name.lstrip(".") or "resume"
        return f"{settings.storage_key_prefix}/{now.strftime('%Y%m%dT%H%M%S%fZ')}-{safe_name}"

    def _validate(self, document: Document) -> None:
        if document.kind is None:
            raise InvalidInputError(
                f"Unsupported file type {document.media_type!r}; upload a PDF or Word document",
                media_type=document.media_type,
            )
        if document.size > self.max_upload_bytes:
            raise InvalidInputError(
                f"File is {document.size} bytes; the limit is {self.max_upload_bytes} bytes",
                size=document.size,
                limit=self.max_upload_bytes,
            )

    def _build_profile(self, payload: Any, reference: str) -> CandidateProfile:
        if not isinstance(payload, dict):
            raise ValueError("Extraction response is not an object")
        try:
            analysis = ResumeAnalysis.model_validate(payload)
        except ValidationError as e:
            raise ValueError(f"Extraction response violates the résumé schema: {e}") from e
        return analysis.to_profile(source_reference=reference)

    def _ensure_current(self, submission_id: int) -> None:
        if not self.is_current(submission_id):
            self.logger.info(
                "Discarding superseded submission",
                submission_id=submission_id,
                latest_submission=self._latest_submission
            )
            raise SubmissionSupersededError(
                f"Submission {submission_id} was superseded by submission {self._latest_submission}",
                submission_id=submission_id,
            )

    async def _call(self, awaitable: Awaitable[T]) -> T:
        # A collaborator that does not answer in time counts as a failure
        return await asyncio.wait_for(awaitable, timeout=self.timeout)
