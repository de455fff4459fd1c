"""Shared fixtures for Career Matcher tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from career_matcher.core.models import CandidateProfile, Document, EducationLevel, JobPosting


def make_posting(posting_id: str = "p1", **overrides) -> JobPosting:
    fields = dict(
        id=posting_id,
        title="Senior Frontend Developer",
        company="TechCorp Inc.",
        location="San Francisco, CA",
        required_skills=["React", "TypeScript", "JavaScript", "CSS", "HTML"],
        preferred_skills=["Next.js", "Tailwind", "GraphQL", "Jest"],
        experience_required_years=5,
        education_required=EducationLevel.BACHELOR,
        posted_at=datetime(2024, 1, 15, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return JobPosting(**fields)


def make_analysis(**overrides) -> dict:
    payload = {
        "skills": ["React", "TypeScript"],
        "experience_years": 6,
        "education_level": "Bachelor",
        "job_titles": ["Frontend Developer"],
        "summary": "Frontend developer focused on accessible interfaces.",
        "strengths": ["Communication"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def frontend_profile() -> CandidateProfile:
    return CandidateProfile(
        skills=["React", "TypeScript"],
        experience_years=6,
        education_level=EducationLevel.BACHELOR,
    )


@pytest.fixture
def frontend_posting() -> JobPosting:
    return make_posting()


@pytest.fixture
def pdf_document() -> Document:
    return Document(filename="resume.pdf", media_type="application/pdf", data=b"%PDF-1.4 resume")


@pytest.fixture
def storage():
    mock = AsyncMock()
    mock.store.return_value = "file:///uploads/resumes/resume.pdf"
    return mock


@pytest.fixture
def text_extractor():
    mock = AsyncMock()
    mock.extract_text.return_value = "Frontend developer with 6 years of experience in React and TypeScript."
    return mock


@pytest.fixture
def structured_extractor():
    mock = AsyncMock()
    mock.extract.return_value = make_analysis()
    return mock
