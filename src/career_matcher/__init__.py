"""
Career Matcher: résumé-to-job matching with application tracking.

This package extracts a structured candidate profile from an uploaded résumé,
scores it against a catalog of job postings with an explainable breakdown,
and tracks the resulting applications through their lifecycle.
"""

__version__ = "0.1.0"

from career_matcher.core.models import (
    Application,
    ApplicationStatus,
    CandidateProfile,
    Document,
    EducationLevel,
    JobPosting,
    MatchResult,
)
from career_matcher.ingestion.extractor import ProfileExtractor
from career_matcher.matching.catalog import MatchCatalog
from career_matcher.matching.scorer import MatchScorer
from career_matcher.session import CareerSession
from career_matcher.tracking.tracker import ApplicationTracker

__all__ = [
    "Application",
    "ApplicationStatus",
    "ApplicationTracker",
    "CandidateProfile",
    "CareerSession",
    "Document",
    "EducationLevel",
    "JobPosting",
    "MatchCatalog",
    "MatchResult",
    "MatchScorer",
    "ProfileExtractor",
]
