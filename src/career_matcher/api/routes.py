"""API routes for Career Matcher."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile

from career_matcher import __version__
from career_matcher.api.models import (
    ActivityResponse,
    AnnotationRequest,
    ApplicationRequest,
    DashboardResponse,
    HealthCheck,
    IngestionStatusResponse,
    InterviewRequest,
    MatchDetail,
    MatchSummary,
    PostingsRequest,
    PostingsResponse,
)
from career_matcher.config import settings
from career_matcher.core.models import Application, ApplicationStats, ApplicationStatus, CandidateProfile, Document
from career_matcher.ingestion.extractor import IngestionPhase
from career_matcher.matching.catalog import parse_status_filter
from career_matcher.session import CareerSession
from career_matcher.utils.logging import get_logger

logger = get_logger(__name__)

# Create routers
resume_router = APIRouter(prefix="/resume", tags=["resume"])
jobs_router = APIRouter(prefix="/jobs", tags=["jobs"])
matches_router = APIRouter(prefix="/matches", tags=["matches"])
applications_router = APIRouter(prefix="/applications", tags=["applications"])
dashboard_router = APIRouter(prefix="/dashboard", tags=["dashboard"])
health_router = APIRouter(prefix="/health", tags=["health"])


def get_session(request: Request) -> CareerSession:
    """The candidate session created at startup."""
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Session not initialized")
    return session


@resume_router.post("", response_model=CandidateProfile)
async def upload_resume(
    file: UploadFile = File(...),
    session: CareerSession = Depends(get_session)
):
    """Upload a résumé and make its profile current."""
    data = await file.read()
    document = Document(
        filename=file.filename or "resume",
        media_type=file.content_type or "",
        data=data
    )
    return await session.upload_resume(document)


@resume_router.get("/status", response_model=IngestionStatusResponse)
async def get_ingestion_status(session: CareerSession = Depends(get_session)):
    """Progress and outcome of the latest résumé submission."""
    status = session.ingestion
    return IngestionStatusResponse(
        state=status.state.value,
        submission_id=status.submission_id,
        transfer_progress=status.progress[IngestionPhase.TRANSFER],
        analysis_progress=status.progress[IngestionPhase.ANALYSIS],
        error_code=status.error_code,
        error_message=status.error_message,
        resumes_uploaded=status.resumes_uploaded
    )


@resume_router.get("/profile", response_model=CandidateProfile)
async def get_profile(session: CareerSession = Depends(get_session)):
    """The current candidate profile."""
    if session.profile is None:
        raise HTTPException(status_code=404, detail="No résumé has been analyzed yet")
    return session.profile


@jobs_router.post("", response_model=PostingsResponse)
async def upsert_postings(request: PostingsRequest, session: CareerSession = Depends(get_session)):
    """Add postings, replacing any with the same id."""
    upserted = session.add_postings(request.postings)
    logger.info("Postings upserted", upserted=upserted, total=len(session.catalog))
    return PostingsResponse(upserted=upserted, total=len(session.catalog))


@matches_router.get("", response_model=List[MatchSummary])
async def list_matches(
    q: str = Query("", description="Substring of title or company"),
    min_score: Optional[int] = Query(None, ge=0, le=100, description="Score floor"),
    high_match: bool = Query(False, description="Only postings at or above the high-match threshold"),
    status: Optional[str] = Query(None, description="Application status, 'applied' or 'not_applied'"),
    sort: str = Query("score", description="score, company or posted_at"),
    session: CareerSession = Depends(get_session)
):
    """Filtered and sorted match list."""
    try:
        status_filter = parse_status_filter(status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    score_floor = min_score
    if high_match:
        score_floor = max(score_floor or 0, settings.high_match_threshold)

    entries = session.catalog.query(
        search_text=q,
        score_floor=score_floor,
        status_filter=status_filter,
        sort_key=sort
    )
    lookup = session.tracker.status_for_posting
    return [MatchSummary.from_entry(entry, lookup(entry.posting.id)) for entry in entries]


@matches_router.get("/summary")
async def get_match_summary(
    top: int = Query(5, ge=1, le=50),
    session: CareerSession = Depends(get_session)
) -> Dict[str, Any]:
    """Score statistics over the catalog."""
    return session.catalog.summary(top=top)


@matches_router.get("/{posting_id}", response_model=MatchDetail)
async def get_match(posting_id: str, session: CareerSession = Depends(get_session)):
    """One posting with its full match explanation."""
    entry = session.catalog.get(posting_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Job posting {posting_id} not found")
    return MatchDetail(
        posting=entry.posting,
        result=entry.result,
        application_status=session.tracker.status_for_posting(posting_id)
    )


@applications_router.post("", response_model=Application, status_code=201)
async def create_application(request: ApplicationRequest, session: CareerSession = Depends(get_session)):
    """Apply to a posting."""
    return session.apply(request.job_posting_id, notes=request.notes, next_step=request.next_step)


@applications_router.get("", response_model=List[Application])
async def list_applications(
    status: Optional[ApplicationStatus] = Query(None),
    session: CareerSession = Depends(get_session)
):
    """Applications in submission order."""
    return session.tracker.list(status)


@applications_router.get("/stats", response_model=ApplicationStats)
async def get_application_stats(session: CareerSession = Depends(get_session)):
    return session.tracker.stats()


@applications_router.get("/{application_id}", response_model=Application)
async def get_application(application_id: str, session: CareerSession = Depends(get_session)):
    return session.tracker.get(application_id)


@applications_router.post("/{application_id}/review", response_model=Application)
async def mark_under_review(application_id: str, session: CareerSession = Depends(get_session)):
    return session.tracker.mark_under_review(application_id)


@applications_router.post("/{application_id}/interview", response_model=Application)
async def schedule_interview(
    application_id: str,
    request: InterviewRequest,
    session: CareerSession = Depends(get_session)
):
    return session.tracker.schedule_interview(application_id, request.interview_at)


@applications_router.post("/{application_id}/reject", response_model=Application)
async def reject_application(application_id: str, session: CareerSession = Depends(get_session)):
    return session.tracker.reject(application_id)


@applications_router.post("/{application_id}/offer", response_model=Application)
async def receive_offer(application_id: str, session: CareerSession = Depends(get_session)):
    return session.tracker.receive_offer(application_id)


@applications_router.patch("/{application_id}", response_model=Application)
async def annotate_application(
    application_id: str,
    request: AnnotationRequest,
    session: CareerSession = Depends(get_session)
):
    """Update notes or next step without changing the status."""
    return session.tracker.annotate(application_id, notes=request.notes, next_step=request.next_step)


@dashboard_router.get("", response_model=DashboardResponse)
async def get_dashboard(session: CareerSession = Depends(get_session)):
    return DashboardResponse(**session.dashboard())


@dashboard_router.get("/activity", response_model=List[ActivityResponse])
async def get_recent_activity(
    limit: int = Query(10, ge=1, le=50, description="Maximum number of entries"),
    session: CareerSession = Depends(get_session)
):
    """Recent résumé, match and application activity, newest first."""
    return [
        ActivityResponse(kind=event.kind.value, title=event.title, description=event.description, at=event.at)
        for event in session.recent_activity(limit)
    ]


@health_router.get("", response_model=HealthCheck)
async def health_check(request: Request):
    """Health check endpoint."""
    session = getattr(request.app.state, "session", None)
    components = {
        "session": "healthy" if session else "unavailable",
        "catalog": "healthy" if session is not None and len(session.catalog) else "empty",
    }

    return HealthCheck(
        status="healthy" if session else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        components=components
    )


# Export all routers
all_routers = [
    resume_router,
    jobs_router,
    matches_router,
    applications_router,
    dashboard_router,
    health_router
]
