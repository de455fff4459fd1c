"""Résumé ingestion pipeline and its collaborators."""

from .collaborators import (
    DocumentTextExtractor,
    LocalObjectStorage,
    ObjectStorage,
    StructuredExtractor,
    TextExtractor
)
from .extractor import IngestionPhase, ProfileExtractor, ProgressEvent
from .schema import RESUME_ANALYSIS_SCHEMA, RESUME_SCHEMA_VERSION, ResumeAnalysis
from .structured import KeywordStructuredExtractor, LLMStructuredExtractor

__all__ = [
    "DocumentTextExtractor",
    "LocalObjectStorage",
    "ObjectStorage",
    "StructuredExtractor",
    "TextExtractor",
    "IngestionPhase",
    "ProfileExtractor",
    "ProgressEvent",
    "RESUME_ANALYSIS_SCHEMA",
    "RESUME_SCHEMA_VERSION",
    "ResumeAnalysis",
    "KeywordStructuredExtractor",
    "LLMStructuredExtractor"
]
