"""One candidate session: the current profile, its catalog and its applications."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Deque, Dict, Iterable, List, Optional

from career_matcher.config import settings
from career_matcher.core.errors import ApplicationNotFoundError, IngestionError
from career_matcher.core.models import Application, CandidateProfile, Document, JobPosting, utcnow
from career_matcher.ingestion.collaborators import (
    DocumentTextExtractor,
    LocalObjectStorage,
    ObjectStorage,
    StructuredExtractor,
    TextExtractor,
)
from career_matcher.ingestion.extractor import IngestionPhase, ProfileExtractor, ProgressEvent, ProgressListener
from career_matcher.ingestion.structured import KeywordStructuredExtractor, LLMStructuredExtractor
from career_matcher.matching.catalog import MatchCatalog
from career_matcher.matching.scorer import MatchScorer
from career_matcher.tracking.tracker import ApplicationRepository, ApplicationTracker
from career_matcher.utils.logging import get_logger

logger = get_logger(__name__)


class IngestionState(str, Enum):
    IDLE = "idle"
    TRANSFERRING = "transferring"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class IngestionStatus:
    """Latest observable state of résumé ingestion."""
    state: IngestionState = IngestionState.IDLE
    submission_id: Optional[int] = None
    progress: Dict[IngestionPhase, int] = field(
        default_factory=lambda: {IngestionPhase.TRANSFER: 0, IngestionPhase.ANALYSIS: 0}
    )
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    resumes_uploaded: int = 0


class ActivityKind(str, Enum):
    RESUME = "resume"
    MATCH = "match"
    APPLICATION = "application"


@dataclass(frozen=True)
class ActivityEvent:
    """One entry of the candidate's recent activity feed."""
    kind: ActivityKind
    title: str
    description: str
    at: datetime = field(default_factory=utcnow)


class CareerSession:
    """
    Wires ingestion, matching and tracking together for one candidate.

    The catalog is the single owner of the current profile; the extractor
    hands every new profile to it, and the catalog sees application status
    only through the tracker's posting lookup.
    """

    def __init__(
        self,
        storage: Optional[ObjectStorage] = None,
        text_extractor: Optional[TextExtractor] = None,
        structured_extractor: Optional[StructuredExtractor] = None,
        repository: Optional[ApplicationRepository] = None,
        scorer: Optional[MatchScorer] = None
    ):
        self.logger = logger.bind(component="career_session")
        self.tracker = ApplicationTracker(repository=repository)
        self.catalog = MatchCatalog(scorer=scorer, status_lookup=self.tracker.status_for_posting)

        self.extractor = ProfileExtractor(
            storage=storage or LocalObjectStorage(),
            text_extractor=text_extractor or DocumentTextExtractor(),
            structured_extractor=structured_extractor or KeywordStructuredExtractor(),
            profile_sink=self.catalog,
        )
        self.ingestion = IngestionStatus()
        self.activity: Deque[ActivityEvent] = deque(maxlen=settings.activity_log_size)

    @classmethod
    def from_settings(cls, **overrides) -> "CareerSession":
        """Session using the language-model extractor when an API key is configured."""
        if "structured_extractor" not in overrides and (settings.openai_api_key or settings.groq_api_key):
            overrides["structured_extractor"] = LLMStructuredExtractor()
        return cls(**overrides)

    @property
    def profile(self) -> Optional[CandidateProfile]:
        return self.catalog.profile

    async def upload_resume(
        self,
        document: Document,
        on_progress: Optional[ProgressListener] = None
    ) -> CandidateProfile:
        """Submit a résumé, tracking its progress in ``self.ingestion``."""

        def track(event: ProgressEvent) -> None:
            if event.submission_id != self.ingestion.submission_id:
                self.ingestion.submission_id = event.submission_id
                self.ingestion.progress = {IngestionPhase.TRANSFER: 0, IngestionPhase.ANALYSIS: 0}
                self.ingestion.error_code = None
                self.ingestion.error_message = None
            self.ingestion.progress[event.phase] = event.value
            self.ingestion.state = (
                IngestionState.TRANSFERRING if event.phase is IngestionPhase.TRANSFER and event.value < 100
                else IngestionState.ANALYZING
            )
            if on_progress is not None:
                on_progress(event)

        try:
            profile = await self.extractor.submit(document, on_progress=track)
        except IngestionError as e:
            # Invalid input and superseded submissions never touched the visible status
            if e.context.get("submission_id") == self.extractor.latest_submission:
                self.ingestion.state = IngestionState.FAILED
                self.ingestion.error_code = e.code
                self.ingestion.error_message = e.message
            raise

        self.ingestion.state = IngestionState.COMPLETED
        self.ingestion.resumes_uploaded += 1
        self._record(
            ActivityKind.RESUME,
            "Resume analyzed",
            f"{len(profile.skills)} skills extracted and profile updated"
        )
        self._record_high_matches(entry.posting.id for entry in self.catalog.query())
        return profile

    def add_postings(self, postings: Iterable[JobPosting]) -> int:
        postings = list(postings)
        count = self.catalog.add_postings(postings)
        self._record_high_matches(posting.id for posting in postings)
        return count

    def apply(self, job_posting_id: str, notes: str = "", next_step: Optional[str] = None) -> Application:
        """Apply to a posting known to the catalog."""
        if job_posting_id not in self.catalog:
            raise ApplicationNotFoundError(
                f"Job posting {job_posting_id} not found",
                job_posting_id=job_posting_id,
            )
        application = self.tracker.apply(job_posting_id, notes=notes, next_step=next_step)
        posting = self.catalog.get(job_posting_id).posting
        self._record(ActivityKind.APPLICATION, "Application submitted", f"{posting.title} at {posting.company}")
        return application

    def dashboard(self) -> Dict[str, int]:
        """Headline counts for the candidate's dashboard."""
        stats = self.tracker.stats()
        return {
            "resumes_uploaded": self.ingestion.resumes_uploaded,
            "job_matches": len(self.catalog.query()) if self.profile else 0,
            "applications": stats.total,
            "interviews_scheduled": stats.interviews,
        }

    def recent_activity(self, limit: int = 10) -> List[ActivityEvent]:
        """Most recent activity first."""
        return list(self.activity)[::-1][:limit]

    def _record(self, kind: ActivityKind, title: str, description: str) -> None:
        self.activity.append(ActivityEvent(kind=kind, title=title, description=description))

    def _record_high_matches(self, posting_ids: Iterable[str]) -> None:
        for posting_id in dict.fromkeys(posting_ids):
            entry = self.catalog.get(posting_id)
            if entry is None or entry.score is None or entry.score < settings.high_match_threshold:
                continue
            self._record(
                ActivityKind.MATCH,
                "New job match found",
                f"{entry.posting.title} at {entry.posting.company} ({entry.score}% match)"
            )
