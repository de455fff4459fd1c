"""Tests for the candidate session wiring."""

import asyncio
from unittest.mock import MagicMock

import pytest

from career_matcher import session as session_module
from career_matcher.core.errors import (
    ApplicationNotFoundError,
    InvalidInputError,
    SubmissionSupersededError,
    TransferFailedError,
)
from career_matcher.core.models import ApplicationStatus, Document
from career_matcher.ingestion.extractor import IngestionPhase
from career_matcher.ingestion.structured import KeywordStructuredExtractor
from career_matcher.session import ActivityKind, CareerSession, IngestionState

from conftest import make_analysis, make_posting


@pytest.fixture
def session(storage, text_extractor, structured_extractor):
    session = CareerSession(
        storage=storage,
        text_extractor=text_extractor,
        structured_extractor=structured_extractor
    )
    session.add_postings([make_posting("p1"), make_posting("p2", company="Beta Corp")])
    return session


class TestIngestionStatus:

    @pytest.mark.asyncio
    async def test_successful_upload_scores_the_catalog(self, session, pdf_document):
        assert session.ingestion.state is IngestionState.IDLE
        assert session.catalog.get("p1").result is None

        profile = await session.upload_resume(pdf_document)

        assert session.profile is profile
        assert session.ingestion.state is IngestionState.COMPLETED
        assert session.ingestion.resumes_uploaded == 1
        assert set(session.ingestion.progress.values()) == {100}
        assert session.catalog.get("p1").score == 44

    @pytest.mark.asyncio
    async def test_failed_upload_keeps_previous_profile(self, session, pdf_document, storage):
        previous = await session.upload_resume(pdf_document)
        storage.store.side_effect = ConnectionError("offline")

        with pytest.raises(TransferFailedError):
            await session.upload_resume(pdf_document)

        assert session.profile is previous
        assert session.ingestion.state is IngestionState.FAILED
        assert session.ingestion.error_code == "ingestion.transfer_failed"
        assert session.ingestion.resumes_uploaded == 1

    @pytest.mark.asyncio
    async def test_resubmission_replaces_every_cached_score(self, session, pdf_document, structured_extractor):
        await session.upload_resume(pdf_document)
        assert session.catalog.get("p1").score == 44

        structured_extractor.extract.return_value = make_analysis(
            skills=["React", "TypeScript", "JavaScript", "CSS", "HTML"]
        )
        await session.upload_resume(pdf_document)

        assert [entry.score for entry in session.catalog.query()] == [80, 80]

    @pytest.mark.asyncio
    async def test_superseded_upload_does_not_mark_failure(self, session, storage):
        release = asyncio.Event()

        async def store(data, key, on_progress=None):
            if data == b"old":
                await release.wait()
            return f"file:///{key}"

        storage.store.side_effect = store

        first = asyncio.create_task(session.upload_resume(Document(filename="a.pdf", media_type="pdf", data=b"old")))
        await asyncio.sleep(0)
        await session.upload_resume(Document(filename="b.pdf", media_type="pdf", data=b"new"))
        release.set()

        with pytest.raises(SubmissionSupersededError):
            await first

        assert session.ingestion.state is IngestionState.COMPLETED
        assert session.ingestion.submission_id == 2
        assert session.ingestion.resumes_uploaded == 1

    @pytest.mark.asyncio
    async def test_late_transfer_progress_does_not_revive_a_failed_upload(self, session, storage, pdf_document):
        async def store(data, key, on_progress=None):
            asyncio.get_running_loop().call_later(0.05, on_progress, 70)
            await asyncio.sleep(10)

        storage.store.side_effect = store
        session.extractor.timeout = 0.01

        with pytest.raises(TransferFailedError):
            await session.upload_resume(pdf_document)
        await asyncio.sleep(0.1)

        assert session.ingestion.state is IngestionState.FAILED
        assert session.ingestion.error_code == "ingestion.transfer_failed"
        assert session.ingestion.progress[IngestionPhase.TRANSFER] == 0

    @pytest.mark.asyncio
    async def test_invalid_upload_leaves_status_untouched(self, session):
        with pytest.raises(InvalidInputError):
            await session.upload_resume(Document(filename="a.png", media_type="image/png", data=b"png"))

        assert session.ingestion.state is IngestionState.IDLE
        assert session.ingestion.error_code is None


class TestApplications:

    def test_apply_requires_a_known_posting(self, session):
        with pytest.raises(ApplicationNotFoundError):
            session.apply("unknown")

    def test_applied_postings_are_filterable(self, session):
        session.apply("p2", notes="Applied via referral")

        entries = session.catalog.query(status_filter=ApplicationStatus.SUBMITTED)

        assert [entry.posting.id for entry in entries] == ["p2"]

    @pytest.mark.asyncio
    async def test_dashboard(self, session, pdf_document):
        await session.upload_resume(pdf_document)
        application = session.apply("p1")
        session.tracker.mark_under_review(application.id)
        session.tracker.schedule_interview(application.id, at=application.applied_at)

        assert session.dashboard() == {
            "resumes_uploaded": 1,
            "job_matches": 2,
            "applications": 1,
            "interviews_scheduled": 1,
        }


class TestFromSettings:

    def test_keyword_extractor_without_api_keys(self, monkeypatch):
        monkeypatch.setattr(session_module.settings, "openai_api_key", None)
        monkeypatch.setattr(session_module.settings, "groq_api_key", None)

        session = CareerSession.from_settings()

        assert isinstance(session.extractor.structured_extractor, KeywordStructuredExtractor)

    def test_language_model_extractor_with_api_key(self, monkeypatch):
        fake_extractor = MagicMock()
        monkeypatch.setattr(session_module.settings, "openai_api_key", "sk-test")
        monkeypatch.setattr(session_module, "LLMStructuredExtractor", lambda: fake_extractor)

        session = CareerSession.from_settings()

        assert session.extractor.structured_extractor is fake_extractor


class TestRecentActivity:

    @pytest.mark.asyncio
    async def test_feed_lists_resume_matches_and_applications_newest_first(
        self, session, pdf_document, structured_extractor
    ):
        structured_extractor.extract.return_value = make_analysis(skills=[
            "React", "TypeScript", "JavaScript", "CSS", "HTML", "Next.js", "Tailwind", "GraphQL", "Jest"
        ])
        await session.upload_resume(pdf_document)
        session.apply("p2")

        activity = session.recent_activity()

        assert [event.kind for event in activity] == [
            ActivityKind.APPLICATION, ActivityKind.MATCH, ActivityKind.MATCH, ActivityKind.RESUME
        ]
        assert activity[0].description == "Senior Frontend Developer at Beta Corp"
        assert activity[-1].description == "9 skills extracted and profile updated"
        assert {event.description for event in activity[1:3]} == {
            "Senior Frontend Developer at TechCorp Inc. (100% match)",
            "Senior Frontend Developer at Beta Corp (100% match)",
        }
        assert len(session.recent_activity(limit=2)) == 2

    @pytest.mark.asyncio
    async def test_weak_matches_are_not_announced(self, session, pdf_document):
        await session.upload_resume(pdf_document)
        session.add_postings([make_posting("p3", required_skills=["Go"], preferred_skills=[])])

        assert [event.kind for event in session.recent_activity()] == [ActivityKind.RESUME]
