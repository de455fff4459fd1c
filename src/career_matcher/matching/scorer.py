"""Explainable scoring of a candidate profile against a job posting."""

import math
from typing import Dict, List, Tuple

from career_matcher.core.models import (
    CandidateProfile,
    EducationLevel,
    JobPosting,
    MatchResult,
    ScoreBreakdown,
    skill_key,
)


def _plural(count: float, noun: str) -> str:
    text = f"{count:g}"
    return f"{text} {noun}" if count == 1 else f"{text} {noun}s"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


class MatchScorer:
    """
    Scores a profile against a posting.

    Components and their maximum points:
    required skills 60, preferred skills 20, experience 15, education 5.
    """

    def __init__(self):
        self.component_weights: Dict[str, float] = {
            "required": 60.0,
            "preferred": 20.0,
            "experience": 15.0,
            "education": 5.0,
        }

    def score(self, profile: CandidateProfile, posting: JobPosting) -> MatchResult:
        """
        Score a profile against a posting.

        Args:
            profile: Candidate profile extracted from a résumé
            posting: Job posting to compare against

        Returns:
            MatchResult with the rounded score, the skill partition and the
            ordered reasons and gaps
        """
        matched_required, missing_required = self._partition(profile, posting.required_skills)
        matched_preferred, missing_preferred = self._partition(profile, posting.preferred_skills)

        breakdown = ScoreBreakdown(
            required=self._coverage_points(
                len(matched_required), len(posting.required_skills), self.component_weights["required"]
            ),
            preferred=self._coverage_points(
                len(matched_preferred), len(posting.preferred_skills), self.component_weights["preferred"]
            ),
            experience=self._experience_points(profile, posting),
            education=self._education_points(profile, posting),
        )
        score = min(100, max(0, round_half_up(breakdown.total)))

        return MatchResult(
            profile=profile,
            posting=posting,
            score=score,
            breakdown=breakdown,
            matched_required=matched_required,
            matched_preferred=matched_preferred,
            missing_required=missing_required,
            missing_preferred=missing_preferred,
            reasons=tuple(self._build_reasons(profile, posting, matched_required, matched_preferred)),
            gaps=tuple(self._build_gaps(profile, posting, missing_required, missing_preferred)),
        )

    def _partition(
        self,
        profile: CandidateProfile,
        skills: Tuple[str, ...]
    ) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
        """Split posting skills into matched and missing, keeping posting order."""
        candidate_keys = profile.skill_keys
        matched = tuple(s for s in skills if skill_key(s) in candidate_keys)
        missing = tuple(s for s in skills if skill_key(s) not in candidate_keys)
        return matched, missing

    def _coverage_points(self, matched: int, total: int, weight: float) -> float:
        # An empty requirement set is full coverage.
        if total == 0:
            return weight
        return weight * matched / total

    def _experience_points(self, profile: CandidateProfile, posting: JobPosting) -> float:
        weight = self.component_weights["experience"]
        required = posting.experience_required_years
        if profile.experience_years >= required:
            return weight
        return weight * profile.experience_years / required

    def _education_points(self, profile: CandidateProfile, posting: JobPosting) -> float:
        if profile.education_level >= posting.education_required:
            return self.component_weights["education"]
        return 0.0

    def _build_reasons(
        self,
        profile: CandidateProfile,
        posting: JobPosting,
        matched_required: Tuple[str, ...],
        matched_preferred: Tuple[str, ...]
    ) -> List[str]:
        reasons = []

        if matched_required:
            reasons.append(
                f"Matches {len(matched_required)} of {len(posting.required_skills)} "
                f"required skills: {', '.join(matched_required)}"
            )

        if matched_preferred:
            reasons.append(
                f"Matches {len(matched_preferred)} of {len(posting.preferred_skills)} "
                f"preferred skills: {', '.join(matched_preferred)}"
            )

        margin = profile.experience_years - posting.experience_required_years
        if margin > 0:
            reasons.append(
                f"Your {_plural(profile.experience_years, 'year')} of experience exceeds the "
                f"{posting.experience_required_years:g}-year requirement by {_plural(margin, 'year')}"
            )

        if profile.education_level >= posting.education_required:
            if posting.education_required is EducationLevel.NONE:
                reasons.append("No minimum education is required")
            else:
                reasons.append(
                    f"Education ({profile.education_level.label}) meets the "
                    f"{posting.education_required.label} requirement"
                )

        return reasons

    def _build_gaps(
        self,
        profile: CandidateProfile,
        posting: JobPosting,
        missing_required: Tuple[str, ...],
        missing_preferred: Tuple[str, ...]
    ) -> List[str]:
        gaps = [f"Missing required skill: {skill}" for skill in missing_required]
        gaps.extend(f"Missing preferred skill: {skill}" for skill in missing_preferred)

        shortfall = posting.experience_required_years - profile.experience_years
        if shortfall > 0:
            gaps.append(
                f"Experience is {_plural(shortfall, 'year')} short of the "
                f"{posting.experience_required_years:g}-year requirement"
            )

        return gaps


_default_scorer = MatchScorer()


def score(profile: CandidateProfile, posting: JobPosting) -> MatchResult:
    """Score with the default weights."""
    return _default_scorer.score(profile, posting)
