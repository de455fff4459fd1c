"""Core data models for Career Matcher."""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_skill(token: str) -> str:
    """Collapse internal whitespace and strip a skill token."""
    return " ".join(str(token).split())


def skill_key(token: str) -> str:
    """Comparison key for a skill; matching is case-insensitive."""
    return normalize_skill(token).casefold()


def unique_tokens(values) -> Tuple[str, ...]:
    """Normalize tokens, dropping blanks and case-insensitive duplicates."""
    seen = set()
    result = []
    for value in values or ():
        token = normalize_skill(value)
        key = token.casefold()
        if not token or key in seen:
            continue
        seen.add(key)
        result.append(token)
    return tuple(result)


class EducationLevel(str, Enum):
    """Highest completed education, ordered from NONE to DOCTORATE."""
    NONE = "none"
    HIGH_SCHOOL = "high_school"
    ASSOCIATE = "associate"
    BACHELOR = "bachelor"
    MASTER = "master"
    DOCTORATE = "doctorate"

    @property
    def rank(self) -> int:
        return _EDUCATION_ORDER.index(self)

    @property
    def label(self) -> str:
        return _EDUCATION_LABELS[self]

    def __lt__(self, other):
        if not isinstance(other, EducationLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, EducationLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, EducationLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, EducationLevel):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value) -> "EducationLevel":
        """
        Parse an education level from an enum value or a free-text label.

        Accepts labels such as "Bachelor's degree", "PhD" or "High School".

        Raises:
            ValueError: If the label names no known level
        """
        if isinstance(value, cls):
            return value
        text = " ".join(str(value).lower().replace("_", " ").split())
        for level in cls:
            if text == level.value.replace("_", " "):
                return level
        words = re.findall(r"[a-z.']+", text)
        for keywords, level in _EDUCATION_KEYWORDS:
            for keyword in keywords:
                if " " in keyword:
                    if keyword in text:
                        return level
                elif any(word.startswith(keyword) for word in words):
                    return level
        raise ValueError(f"Unknown education level: {value!r}")


_EDUCATION_ORDER = list(EducationLevel)

_EDUCATION_LABELS = {
    EducationLevel.NONE: "None",
    EducationLevel.HIGH_SCHOOL: "High School",
    EducationLevel.ASSOCIATE: "Associate",
    EducationLevel.BACHELOR: "Bachelor",
    EducationLevel.MASTER: "Master",
    EducationLevel.DOCTORATE: "Doctorate",
}

# Checked in order, so "Master" wins over "Bachelor" in "Bachelor's and Master's".
_EDUCATION_KEYWORDS = [
    (("doctor", "phd", "ph.d"), EducationLevel.DOCTORATE),
    (("master", "mba", "m.sc", "msc"), EducationLevel.MASTER),
    (("bachelor", "b.sc", "bsc", "b.a.", "undergraduate"), EducationLevel.BACHELOR),
    (("associate",), EducationLevel.ASSOCIATE),
    (("high school", "ged", "secondary"), EducationLevel.HIGH_SCHOOL),
    (("no degree", "no formal"), EducationLevel.NONE),
]


class DocumentKind(str, Enum):
    """Accepted résumé formats."""
    PDF = "pdf"
    DOC = "doc"
    DOCX = "docx"

    @classmethod
    def from_media_type(cls, media_type: Optional[str]) -> Optional["DocumentKind"]:
        if not media_type:
            return None
        normalized = media_type.split(";")[0].strip().lower()
        return _MEDIA_TYPES.get(normalized)


_MEDIA_TYPES = {
    "pdf": DocumentKind.PDF,
    "application/pdf": DocumentKind.PDF,
    "doc": DocumentKind.DOC,
    "application/msword": DocumentKind.DOC,
    "docx": DocumentKind.DOCX,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": DocumentKind.DOCX,
}


class Document(BaseModel):
    """An uploaded résumé as declared by the client."""
    model_config = ConfigDict(frozen=True)

    filename: str = Field(..., description="Original file name")
    media_type: str = Field(..., description="Declared media type (short name or MIME type)")
    data: bytes = Field(..., repr=False, description="Raw document bytes")

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def kind(self) -> Optional[DocumentKind]:
        return DocumentKind.from_media_type(self.media_type)


class CandidateProfile(BaseModel):
    """Structured résumé profile of one candidate."""
    model_config = ConfigDict(frozen=True)

    skills: Tuple[str, ...] = Field(default_factory=tuple, description="Normalized skill tokens")
    experience_years: float = Field(0, ge=0, description="Total years of professional experience")
    education_level: EducationLevel = Field(EducationLevel.NONE, description="Highest education level")
    titles: Tuple[str, ...] = Field(default_factory=tuple, description="Previous job titles, most recent first")
    summary: str = Field("", description="Professional summary")
    strengths: Tuple[str, ...] = Field(default_factory=tuple, description="Key professional strengths")
    source_reference: Optional[str] = Field(None, description="Opaque storage handle of the résumé")
    extracted_at: datetime = Field(default_factory=utcnow, description="When the profile was extracted")

    @field_validator("skills", "strengths", mode="before")
    @classmethod
    def _dedupe_tokens(cls, value):
        return unique_tokens(value)

    @field_validator("titles", mode="before")
    @classmethod
    def _clean_titles(cls, value):
        return tuple(t for t in (normalize_skill(v) for v in value or ()) if t)

    @field_validator("education_level", mode="before")
    @classmethod
    def _parse_education(cls, value):
        return EducationLevel.parse(value)

    @property
    def skill_keys(self) -> frozenset:
        return frozenset(skill_key(s) for s in self.skills)


class JobPosting(BaseModel):
    """An open role; immutable reference data from the job source."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique posting identifier")
    title: str = Field(..., description="Job title")
    company: str = Field(..., description="Company name")
    location: str = Field("", description="Job location")
    employment_type: str = Field("Full-time", description="Full-time, part-time, contract")
    salary_range: Optional[str] = Field(None, description="Salary range as advertised")
    description: str = Field("", description="Job description")
    required_skills: Tuple[str, ...] = Field(default_factory=tuple, description="Required skills")
    preferred_skills: Tuple[str, ...] = Field(default_factory=tuple, description="Preferred skills")
    experience_required_years: float = Field(0, ge=0, description="Required years of experience")
    education_required: EducationLevel = Field(EducationLevel.NONE, description="Minimum education level")
    posted_at: datetime = Field(default_factory=utcnow, description="Posting date")

    @field_validator("required_skills", "preferred_skills", mode="before")
    @classmethod
    def _dedupe_skills(cls, value):
        return unique_tokens(value)

    @field_validator("education_required", mode="before")
    @classmethod
    def _parse_education(cls, value):
        return EducationLevel.parse(value)

    @field_validator("posted_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class FitLevel(str, Enum):
    """Presentation band of a match score."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @classmethod
    def for_score(cls, score: int) -> "FitLevel":
        if score >= 90:
            return cls.EXCELLENT
        elif score >= 75:
            return cls.GOOD
        elif score >= 60:
            return cls.FAIR
        return cls.POOR


class ScoreBreakdown(BaseModel):
    """Points contributed by each scoring component before rounding."""
    model_config = ConfigDict(frozen=True)

    required: float = Field(..., ge=0, le=60)
    preferred: float = Field(..., ge=0, le=20)
    experience: float = Field(..., ge=0, le=15)
    education: float = Field(..., ge=0, le=5)

    @property
    def total(self) -> float:
        return self.required + self.preferred + self.experience + self.education


class MatchResult(BaseModel):
    """Score and explanation for one (profile, posting) pair."""
    model_config = ConfigDict(frozen=True)

    profile: CandidateProfile
    posting: JobPosting
    score: int = Field(..., ge=0, le=100)
    breakdown: ScoreBreakdown
    matched_required: Tuple[str, ...] = ()
    matched_preferred: Tuple[str, ...] = ()
    missing_required: Tuple[str, ...] = ()
    missing_preferred: Tuple[str, ...] = ()
    reasons: Tuple[str, ...] = ()
    gaps: Tuple[str, ...] = ()

    @computed_field
    @property
    def fit_level(self) -> FitLevel:
        return FitLevel.for_score(self.score)


class ApplicationStatus(str, Enum):
    """Lifecycle states of an application."""
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    REJECTED = "rejected"
    OFFER_RECEIVED = "offer_received"

    @property
    def is_terminal(self) -> bool:
        return self in (ApplicationStatus.REJECTED, ApplicationStatus.OFFER_RECEIVED)

    @property
    def progress(self) -> int:
        return _STATUS_PROGRESS[self]

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


_STATUS_PROGRESS = {
    ApplicationStatus.SUBMITTED: 25,
    ApplicationStatus.UNDER_REVIEW: 50,
    ApplicationStatus.INTERVIEW_SCHEDULED: 75,
    ApplicationStatus.OFFER_RECEIVED: 100,
    ApplicationStatus.REJECTED: 0,
}

PENDING_STATUSES = frozenset({
    ApplicationStatus.SUBMITTED,
    ApplicationStatus.UNDER_REVIEW,
    ApplicationStatus.INTERVIEW_SCHEDULED,
})


class Application(BaseModel):
    """A tracked application; replaced, never edited, on every change."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex, description="Application identifier")
    job_posting_id: str = Field(..., description="Posting this application targets")
    status: ApplicationStatus = Field(ApplicationStatus.SUBMITTED, description="Lifecycle state")
    applied_at: datetime = Field(default_factory=utcnow, description="Submission time")
    updated_at: datetime = Field(default_factory=utcnow, description="Last change time")
    notes: str = Field("", description="Free-text notes")
    next_step: Optional[str] = Field(None, description="Next planned step")
    interview_at: Optional[datetime] = Field(None, description="Scheduled interview time")

    @computed_field
    @property
    def progress(self) -> int:
        return self.status.progress

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


class ApplicationStats(BaseModel):
    """Aggregate counts derived from the live application set."""
    model_config = ConfigDict(frozen=True)

    total: int = 0
    pending: int = 0
    interviews: int = 0
    offers: int = 0
    rejected: int = 0
