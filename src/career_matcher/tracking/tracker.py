"""Application lifecycle tracking."""

from datetime import datetime
from typing import Dict, List, Optional, Protocol

from career_matcher.core.errors import (
    ApplicationNotFoundError,
    DuplicateApplicationError,
    InvalidTransitionError,
)
from career_matcher.core.models import (
    PENDING_STATUSES,
    Application,
    ApplicationStats,
    ApplicationStatus,
    utcnow,
)
from career_matcher.utils.logging import get_logger

logger = get_logger(__name__)


class TransitionEvent:
    """Names of the lifecycle events."""
    MARK_UNDER_REVIEW = "mark_under_review"
    SCHEDULE_INTERVIEW = "schedule_interview"
    REJECT = "reject"
    RECEIVE_OFFER = "receive_offer"


TRANSITIONS: Dict[tuple, ApplicationStatus] = {
    (ApplicationStatus.SUBMITTED, TransitionEvent.MARK_UNDER_REVIEW): ApplicationStatus.UNDER_REVIEW,
    (ApplicationStatus.UNDER_REVIEW, TransitionEvent.SCHEDULE_INTERVIEW): ApplicationStatus.INTERVIEW_SCHEDULED,
    (ApplicationStatus.SUBMITTED, TransitionEvent.REJECT): ApplicationStatus.REJECTED,
    (ApplicationStatus.UNDER_REVIEW, TransitionEvent.REJECT): ApplicationStatus.REJECTED,
    (ApplicationStatus.INTERVIEW_SCHEDULED, TransitionEvent.REJECT): ApplicationStatus.REJECTED,
    (ApplicationStatus.INTERVIEW_SCHEDULED, TransitionEvent.RECEIVE_OFFER): ApplicationStatus.OFFER_RECEIVED,
}


def progress(status: ApplicationStatus) -> int:
    """Progress percentage shown for a status."""
    return status.progress


class ApplicationRepository(Protocol):
    """Optional persistence collaborator for applications."""

    def save(self, application: Application) -> None:
        ...


class ApplicationTracker:
    """Owns every application of a session and enforces its lifecycle."""

    def __init__(self, repository: Optional[ApplicationRepository] = None):
        self.logger = logger.bind(component="application_tracker")
        self.repository = repository

        # Insertion ordered, so later applications for a posting come last
        self.applications: Dict[str, Application] = {}

    def apply(
        self,
        job_posting_id: str,
        notes: str = "",
        next_step: Optional[str] = None,
        applied_at: Optional[datetime] = None
    ) -> Application:
        """
        Create a SUBMITTED application for a posting.

        Raises:
            DuplicateApplicationError: If the posting already has an active application
        """
        active = self._active_for_posting(job_posting_id)
        if active is not None:
            raise DuplicateApplicationError(
                f"Posting {job_posting_id} already has an active application",
                job_posting_id=job_posting_id,
                application_id=active.id,
            )

        timestamp = applied_at or utcnow()
        application = Application(
            job_posting_id=job_posting_id,
            applied_at=timestamp,
            updated_at=timestamp,
            notes=notes,
            next_step=next_step,
        )
        self._commit(application)

        self.logger.info(
            "Application submitted",
            application_id=application.id,
            job_posting_id=job_posting_id
        )
        return application

    def mark_under_review(self, application_id: str) -> Application:
        return self._transition(application_id, TransitionEvent.MARK_UNDER_REVIEW)

    def schedule_interview(self, application_id: str, at: datetime) -> Application:
        return self._transition(application_id, TransitionEvent.SCHEDULE_INTERVIEW, interview_at=at)

    def reject(self, application_id: str) -> Application:
        return self._transition(application_id, TransitionEvent.REJECT)

    def receive_offer(self, application_id: str) -> Application:
        return self._transition(application_id, TransitionEvent.RECEIVE_OFFER)

    def annotate(
        self,
        application_id: str,
        notes: Optional[str] = None,
        next_step: Optional[str] = None
    ) -> Application:
        """
        Update the free-text fields; the status is not touched.

        ``None`` leaves a field unchanged. An empty ``next_step`` clears it.
        """
        application = self.get(application_id)
        changes = {"updated_at": utcnow()}
        if notes is not None:
            changes["notes"] = notes
        if next_step is not None:
            changes["next_step"] = next_step or None
        updated = application.model_copy(update=changes)
        self._commit(updated)
        return updated

    def get(self, application_id: str) -> Application:
        try:
            return self.applications[application_id]
        except KeyError:
            raise ApplicationNotFoundError(
                f"Application {application_id} not found",
                application_id=application_id,
            ) from None

    def list(self, status: Optional[ApplicationStatus] = None) -> List[Application]:
        return [
            app for app in self.applications.values()
            if status is None or app.status == status
        ]

    def status_for_posting(self, job_posting_id: str) -> Optional[ApplicationStatus]:
        """Status of the most recent application for a posting, if any."""
        latest = None
        for application in self.applications.values():
            if application.job_posting_id == job_posting_id:
                latest = application
        return latest.status if latest else None

    def stats(self) -> ApplicationStats:
        """Counts derived from the live application set on every call."""
        applications = list(self.applications.values())
        return ApplicationStats(
            total=len(applications),
            pending=sum(1 for a in applications if a.status in PENDING_STATUSES),
            interviews=sum(1 for a in applications if a.status == ApplicationStatus.INTERVIEW_SCHEDULED),
            offers=sum(1 for a in applications if a.status == ApplicationStatus.OFFER_RECEIVED),
            rejected=sum(1 for a in applications if a.status == ApplicationStatus.REJECTED),
        )

    def _active_for_posting(self, job_posting_id: str) -> Optional[Application]:
        for application in self.applications.values():
            if application.job_posting_id == job_posting_id and not application.is_terminal:
                return application
        return None

    def _transition(self, application_id: str, event: str, **changes) -> Application:
        application = self.get(application_id)
        target = TRANSITIONS.get((application.status, event))

        if target is None:
            self.logger.warning(
                "Rejected invalid transition",
                application_id=application_id,
                status=application.status.value,
                transition=event
            )
            raise InvalidTransitionError(
                f"Cannot {event.replace('_', ' ')} from {application.status.label}",
                application_id=application_id,
                status=application.status.value,
                transition=event,
            )

        updated = application.model_copy(
            update={"status": target, "updated_at": utcnow(), **changes}
        )
        self._commit(updated)

        self.logger.info(
            "Application status changed",
            application_id=application_id,
            from_status=application.status.value,
            to_status=target.value
        )
        return updated

    def _commit(self, application: Application) -> None:
        # Persist first so a failing save leaves the tracker unchanged
        if self.repository is not None:
            self.repository.save(application)
        self.applications[application.id] = application
