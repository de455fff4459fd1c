"""API models for request/response schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from career_matcher.core.models import (
    ApplicationStatus,
    FitLevel,
    JobPosting,
    MatchResult,
)
from career_matcher.matching.catalog import CatalogEntry


class IngestionStatusResponse(BaseModel):
    """Latest résumé ingestion state."""
    state: str = Field(..., description="idle, transferring, analyzing, completed or failed")
    submission_id: Optional[int] = Field(None, description="Latest submission number")
    transfer_progress: int = Field(0, description="Transfer progress in percent")
    analysis_progress: int = Field(0, description="Analysis progress in percent")
    error_code: Optional[str] = Field(None, description="Failure code of the latest submission")
    error_message: Optional[str] = Field(None, description="Failure message of the latest submission")
    resumes_uploaded: int = Field(0, description="Successfully ingested résumés")


class PostingsRequest(BaseModel):
    """Batch of postings to add or replace."""
    postings: List[JobPosting] = Field(..., description="Postings keyed by their id")


class PostingsResponse(BaseModel):
    """Result of a posting upsert."""
    upserted: int = Field(..., description="Postings written by this request")
    total: int = Field(..., description="Postings now in the catalog")


class MatchSummary(BaseModel):
    """One row of the match list."""
    posting_id: str
    title: str
    company: str
    location: str
    employment_type: str
    salary_range: Optional[str] = None
    posted_at: datetime
    score: Optional[int] = Field(None, description="Match score, absent until a profile exists")
    fit_level: Optional[FitLevel] = None
    application_status: Optional[ApplicationStatus] = None

    @classmethod
    def from_entry(cls, entry: CatalogEntry, status: Optional[ApplicationStatus]) -> "MatchSummary":
        posting = entry.posting
        return cls(
            posting_id=posting.id,
            title=posting.title,
            company=posting.company,
            location=posting.location,
            employment_type=posting.employment_type,
            salary_range=posting.salary_range,
            posted_at=posting.posted_at,
            score=entry.score,
            fit_level=entry.result.fit_level if entry.result else None,
            application_status=status,
        )


class MatchDetail(BaseModel):
    """A posting with its full match explanation."""
    posting: JobPosting
    result: Optional[MatchResult] = Field(None, description="Absent until a profile exists")
    application_status: Optional[ApplicationStatus] = None


class ApplicationRequest(BaseModel):
    """Request to apply to a posting."""
    job_posting_id: str = Field(..., description="Posting to apply to")
    notes: str = Field("", description="Free-text notes")
    next_step: Optional[str] = Field(None, description="Next planned step")


class InterviewRequest(BaseModel):
    """Request to schedule an interview."""
    interview_at: datetime = Field(..., description="Interview date and time")


class AnnotationRequest(BaseModel):
    """Update of an application's free-text fields."""
    notes: Optional[str] = Field(None, description="Replacement notes")
    next_step: Optional[str] = Field(None, description="Replacement next step; an empty string clears it")


class DashboardResponse(BaseModel):
    """Headline counts for the candidate."""
    resumes_uploaded: int
    job_matches: int
    applications: int
    interviews_scheduled: int


class ActivityResponse(BaseModel):
    """One recent activity entry."""
    kind: str = Field(..., description="resume, match or application")
    title: str
    description: str
    at: datetime


class HealthCheck(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Check timestamp")
    version: str = Field(..., description="Service version")
    components: Dict[str, str] = Field(..., description="Component status")


class ErrorResponse(BaseModel):
    """Error response model."""
    error_code: str = Field(..., description="Stable error code")
    message: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(..., description="Error timestamp")
