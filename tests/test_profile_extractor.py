"""Tests for the résumé ingestion pipeline."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from career_matcher.core.errors import (
    AnalysisFailedError,
    InvalidInputError,
    SubmissionSupersededError,
    TransferFailedError,
)
from career_matcher.core.models import Document, DocumentKind, EducationLevel
from career_matcher.ingestion.extractor import IngestionPhase, ProfileExtractor
from career_matcher.ingestion.schema import RESUME_ANALYSIS_SCHEMA

from conftest import make_analysis


@pytest.fixture
def sink():
    return MagicMock()


@pytest.fixture
def extractor(storage, text_extractor, structured_extractor, sink):
    return ProfileExtractor(
        storage=storage,
        text_extractor=text_extractor,
        structured_extractor=structured_extractor,
        profile_sink=sink,
        max_upload_bytes=1024,
        timeout=1.0
    )


def phase_values(events, phase):
    return [event.value for event in events if event.phase is phase]


class TestSuccessfulSubmission:

    @pytest.mark.asyncio
    async def test_profile_is_extracted_and_handed_to_sink(self, extractor, pdf_document, sink, structured_extractor):
        profile = await extractor.submit(pdf_document)

        assert profile.skills == ("React", "TypeScript")
        assert profile.experience_years == 6.0
        assert profile.education_level is EducationLevel.BACHELOR
        assert profile.titles == ("Frontend Developer",)
        assert profile.source_reference == "file:///uploads/resumes/resume.pdf"
        assert profile.extracted_at.tzinfo is not None
        sink.replace_profile.assert_called_once_with(profile)
        structured_extractor.extract.assert_awaited_once()
        assert structured_extractor.extract.await_args.args[1] is RESUME_ANALYSIS_SCHEMA

    @pytest.mark.asyncio
    async def test_collaborators_receive_document_bytes(self, extractor, pdf_document, storage, text_extractor):
        await extractor.submit(pdf_document)

        data, key = storage.store.await_args.args[:2]
        assert data == pdf_document.data
        assert key.startswith("resumes/") and key.endswith("-resume.pdf")
        text_extractor.extract_text.assert_awaited_once_with(pdf_document.data, DocumentKind.PDF)

    @pytest.mark.asyncio
    async def test_transfer_events_precede_analysis_events(self, extractor, pdf_document, storage):
        async def store(data, key, on_progress=None):
            for value in (50, 30, 100):
                on_progress(value)
            return "file:///stored"

        storage.store.side_effect = store
        events = []

        await extractor.submit(pdf_document, on_progress=events.append)

        phases = [event.phase for event in events]
        assert phases == sorted(phases, key=[IngestionPhase.TRANSFER, IngestionPhase.ANALYSIS].index)
        assert phase_values(events, IngestionPhase.TRANSFER) == [0, 50, 99, 100]
        assert phase_values(events, IngestionPhase.ANALYSIS) == [0, 40, 90, 100]
        assert {event.submission_id for event in events} == {1}


class TestInvalidInput:

    @pytest.mark.asyncio
    async def test_png_is_rejected_before_any_collaborator_call(
        self, extractor, storage, text_extractor, structured_extractor, sink
    ):
        document = Document(filename="photo.png", media_type="image/png", data=b"\x89PNG")
        events = []

        with pytest.raises(InvalidInputError) as exc_info:
            await extractor.submit(document, on_progress=events.append)

        assert exc_info.value.code == "ingestion.invalid_input"
        assert storage.store.await_count == 0
        assert text_extractor.extract_text.await_count == 0
        assert structured_extractor.extract.await_count == 0
        assert sink.replace_profile.call_count == 0
        assert events == []
        assert extractor.latest_submission == 0

    @pytest.mark.asyncio
    async def test_oversized_file_is_rejected(self, extractor, storage):
        document = Document(filename="cv.docx", media_type="docx", data=b"x" * 1025)

        with pytest.raises(InvalidInputError) as exc_info:
            await extractor.submit(document)

        assert exc_info.value.context["limit"] == 1024
        assert storage.store.await_count == 0

    @pytest.mark.asyncio
    async def test_file_at_the_size_limit_is_accepted(self, extractor, storage):
        document = Document(filename="cv.docx", media_type="docx", data=b"x" * 1024)

        profile = await extractor.submit(document)

        assert profile.skills == ("React", "TypeScript")
        assert storage.store.await_count == 1


class TestCollaboratorFailures:

    @pytest.mark.asyncio
    async def test_transfer_failure(self, extractor, pdf_document, storage, text_extractor, sink):
        storage.store.side_effect = ConnectionError("bucket unavailable")
        events = []

        with pytest.raises(TransferFailedError) as exc_info:
            await extractor.submit(pdf_document, on_progress=events.append)

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert text_extractor.extract_text.await_count == 0
        assert phase_values(events, IngestionPhase.ANALYSIS) == []
        sink.replace_profile.assert_not_called()

    @pytest.mark.asyncio
    async def test_extraction_failure(self, extractor, pdf_document, structured_extractor, sink):
        structured_extractor.extract.side_effect = RuntimeError("model overloaded")

        with pytest.raises(AnalysisFailedError) as exc_info:
            await extractor.submit(pdf_document)

        assert exc_info.value.code == "ingestion.analysis_failed"
        sink.replace_profile.assert_not_called()

    @pytest.mark.asyncio
    async def test_progress_reported_after_a_transfer_timeout_is_dropped(
        self, storage, text_extractor, structured_extractor, pdf_document
    ):
        async def store(data, key, on_progress=None):
            asyncio.get_running_loop().call_later(0.05, on_progress, 70)
            await asyncio.sleep(10)

        storage.store.side_effect = store
        extractor = ProfileExtractor(storage, text_extractor, structured_extractor, timeout=0.01)
        events = []

        with pytest.raises(TransferFailedError):
            await extractor.submit(pdf_document, on_progress=events.append)
        await asyncio.sleep(0.1)

        assert phase_values(events, IngestionPhase.TRANSFER) == [0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failure", [UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"), None])
    async def test_text_extraction_failure_or_timeout(
        self, storage, text_extractor, structured_extractor, sink, pdf_document, failure
    ):
        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        text_extractor.extract_text.side_effect = failure or hang
        extractor = ProfileExtractor(
            storage, text_extractor, structured_extractor, profile_sink=sink, timeout=0.05
        )
        events = []

        with pytest.raises(AnalysisFailedError):
            await extractor.submit(pdf_document, on_progress=events.append)

        assert structured_extractor.extract.await_count == 0
        assert phase_values(events, IngestionPhase.ANALYSIS) == [0]
        sink.replace_profile.assert_not_called()

    @pytest.mark.asyncio
    async def test_unresponsive_collaborator_times_out(self, storage, text_extractor, structured_extractor, pdf_document):
        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        storage.store.side_effect = hang
        extractor = ProfileExtractor(storage, text_extractor, structured_extractor, timeout=0.01)

        with pytest.raises(TransferFailedError) as exc_info:
            await extractor.submit(pdf_document)

        assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {k: v for k, v in make_analysis().items() if k != "summary"},
        make_analysis(experience_years=True),
        make_analysis(experience_years=-1),
        make_analysis(education_level="Wizard"),
        make_analysis(skills="React"),
        make_analysis(hobbies=["chess"]),
        ["not", "an", "object"],
    ])
    async def test_schema_violations_fail_analysis(self, extractor, pdf_document, structured_extractor, sink, payload):
        structured_extractor.extract.return_value = payload

        with pytest.raises(AnalysisFailedError):
            await extractor.submit(pdf_document)

        sink.replace_profile.assert_not_called()

    @pytest.mark.asyncio
    async def test_free_text_education_label_is_accepted(self, extractor, pdf_document, structured_extractor):
        structured_extractor.extract.return_value = make_analysis(education_level="Master's degree")

        profile = await extractor.submit(pdf_document)

        assert profile.education_level is EducationLevel.MASTER


class TestLastSubmissionWins:

    @pytest.mark.asyncio
    async def test_older_submission_is_superseded(self, extractor, storage, structured_extractor, sink):
        first_document = Document(filename="old.pdf", media_type="pdf", data=b"old resume")
        second_document = Document(filename="new.pdf", media_type="pdf", data=b"new resume")
        release = asyncio.Event()

        async def store(data, key, on_progress=None):
            if data == first_document.data:
                await release.wait()
                on_progress(60)
            return f"file:///{key}"

        storage.store.side_effect = store
        events = []

        first = asyncio.create_task(extractor.submit(first_document, on_progress=events.append))
        await asyncio.sleep(0)

        structured_extractor.extract.return_value = make_analysis(skills=["Python"])
        profile = await extractor.submit(second_document, on_progress=events.append)
        release.set()

        with pytest.raises(SubmissionSupersededError) as exc_info:
            await first

        assert exc_info.value.context["submission_id"] == 1
        assert profile.skills == ("Python",)
        sink.replace_profile.assert_called_once_with(profile)
        assert [(e.submission_id, e.value) for e in events if e.submission_id == 1] == [(1, 0)]
        assert extractor.latest_submission == 2

    @pytest.mark.asyncio
    async def test_failure_of_superseded_submission_is_reported_as_superseded(
        self, extractor, storage, structured_extractor
    ):
        release = asyncio.Event()

        async def store(data, key, on_progress=None):
            if data == b"first":
                await release.wait()
                raise ConnectionError("late failure")
            return "file:///second"

        storage.store.side_effect = store

        first = asyncio.create_task(extractor.submit(Document(filename="a.pdf", media_type="pdf", data=b"first")))
        await asyncio.sleep(0)
        await extractor.submit(Document(filename="b.pdf", media_type="pdf", data=b"second"))
        release.set()

        with pytest.raises(SubmissionSupersededError):
            await first

    @pytest.mark.asyncio
    async def test_invalid_input_does_not_supersede(self, extractor, pdf_document, storage):
        release = asyncio.Event()

        async def store(data, key, on_progress=None):
            await release.wait()
            return "file:///stored"

        storage.store.side_effect = store

        pending = asyncio.create_task(extractor.submit(pdf_document))
        await asyncio.sleep(0)
        with pytest.raises(InvalidInputError):
            await extractor.submit(Document(filename="x.png", media_type="image/png", data=b"png"))
        release.set()

        profile = await pending
        assert profile.skills == ("React", "TypeScript")


def test_storage_key_is_time_qualified_and_sanitized(extractor):
    now = datetime(2024, 2, 29, 13, 45, 7, 123456, tzinfo=timezone.utc)

    key = extractor.storage_key("../My Resume (final).pdf", now=now)

    assert key == "resumes/20240229T134507123456Z-My_Resume_final_.pdf"


@pytest.mark.asyncio
async def test_profile_records_extraction_time(extractor, pdf_document):
    before = datetime.now(timezone.utc)

    profile = await extractor.submit(pdf_document)

    assert before <= profile.extracted_at <= datetime.now(timezone.utc) + timedelta(seconds=1)
