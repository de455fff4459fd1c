"""Versioned output contract of the structured-extraction collaborator."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from career_matcher.core.models import CandidateProfile, EducationLevel, utcnow

RESUME_SCHEMA_VERSION = "1.0"

RESUME_ANALYSIS_SCHEMA: Dict[str, Any] = {
    "$id": f"career-matcher/resume-analysis/{RESUME_SCHEMA_VERSION}",
    "type": "object",
    "properties": {
        "skills": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Technical and soft skills mentioned",
        },
        "experience_years": {
            "type": "number",
            "minimum": 0,
            "description": "Total years of professional experience",
        },
        "education_level": {
            "type": "string",
            "enum": [level.label for level in EducationLevel],
            "description": "Highest education level",
        },
        "job_titles": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Previous job titles held",
        },
        "summary": {
            "type": "string",
            "description": "Brief professional summary",
        },
        "strengths": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Key professional strengths identified",
        },
    },
    "required": ["skills", "experience_years", "education_level", "job_titles", "summary", "strengths"],
    "additionalProperties": False,
}


class ResumeAnalysis(BaseModel):
    """Local validation of an extraction response; the collaborator is not trusted."""
    model_config = ConfigDict(extra="forbid", strict=True)

    skills: List[str]
    experience_years: float = Field(..., ge=0)
    education_level: EducationLevel
    job_titles: List[str]
    summary: str
    strengths: List[str]

    @field_validator("experience_years", mode="before")
    @classmethod
    def _reject_booleans(cls, value):
        if isinstance(value, bool):
            raise ValueError("experience_years must be a number")
        if isinstance(value, int):
            return float(value)
        return value

    @field_validator("education_level", mode="before")
    @classmethod
    def _parse_education(cls, value):
        if not isinstance(value, str):
            raise ValueError("education_level must be a string")
        return EducationLevel.parse(value)

    def to_profile(self, source_reference: str, extracted_at: Optional[datetime] = None) -> CandidateProfile:
        return CandidateProfile(
            skills=self.skills,
            experience_years=self.experience_years,
            education_level=self.education_level,
            titles=self.job_titles,
            summary=self.summary,
            strengths=self.strengths,
            source_reference=source_reference,
            extracted_at=extracted_at or utcnow(),
        )
