"""Job posting catalog with cached match results."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from career_matcher.core.errors import InvalidSortError
from career_matcher.core.models import (
    ApplicationStatus,
    CandidateProfile,
    FitLevel,
    JobPosting,
    MatchResult,
)
from career_matcher.matching.scorer import MatchScorer
from career_matcher.utils.logging import get_logger

logger = get_logger(__name__)


class SortKey(str, Enum):
    """Orderings supported by catalog queries."""
    SCORE = "score"
    COMPANY = "company"
    POSTED_AT = "posted_at"


class AppliedFilter(str, Enum):
    """Status filters that are not a single application status."""
    NOT_APPLIED = "not_applied"
    APPLIED = "applied"


StatusFilter = Union[ApplicationStatus, AppliedFilter]
StatusLookup = Callable[[str], Optional[ApplicationStatus]]


@dataclass(frozen=True)
class CatalogEntry:
    """A posting with its match result; result is None until a profile exists."""
    posting: JobPosting
    result: Optional[MatchResult]

    @property
    def score(self) -> Optional[int]:
        return self.result.score if self.result else None


def parse_status_filter(value: Union[str, StatusFilter, None]) -> Optional[StatusFilter]:
    """Turn a filter name into an ApplicationStatus or AppliedFilter."""
    if value is None or isinstance(value, (ApplicationStatus, AppliedFilter)):
        return value
    for enum_type in (AppliedFilter, ApplicationStatus):
        try:
            return enum_type(value)
        except ValueError:
            continue
    raise ValueError(f"Unknown application status filter: {value!r}")


class MatchCatalog:
    """Holds job postings and their match results against the current profile."""

    InvalidSort = InvalidSortError

    def __init__(
        self,
        scorer: Optional[MatchScorer] = None,
        status_lookup: Optional[StatusLookup] = None
    ):
        self.logger = logger.bind(component="match_catalog")
        self.scorer = scorer or MatchScorer()
        self.status_lookup: StatusLookup = status_lookup or (lambda posting_id: None)

        self._profile: Optional[CandidateProfile] = None
        self._postings: Dict[str, JobPosting] = {}
        self._results: Dict[str, MatchResult] = {}

    @property
    def profile(self) -> Optional[CandidateProfile]:
        return self._profile

    def replace_profile(self, profile: CandidateProfile) -> None:
        """
        Make ``profile`` current and rescore every posting.

        The old results are dropped before any new one is computed and the
        whole step runs without yielding, so readers never see a mix of old
        and new scores.
        """
        self._profile = profile
        self._results.clear()
        for posting_id, posting in self._postings.items():
            self._results[posting_id] = self.scorer.score(profile, posting)

        self.logger.info(
            "Candidate profile replaced",
            postings_rescored=len(self._results),
            skills_count=len(profile.skills)
        )

    def add_or_replace_posting(self, posting: JobPosting) -> Optional[MatchResult]:
        """Upsert a posting and (re)compute its result against the current profile."""
        replaced = posting.id in self._postings
        self._postings[posting.id] = posting
        self._results.pop(posting.id, None)

        result = None
        if self._profile is not None:
            result = self.scorer.score(self._profile, posting)
            self._results[posting.id] = result

        self.logger.debug(
            "Posting upserted",
            posting_id=posting.id,
            replaced=replaced,
            score=result.score if result else None
        )
        return result

    def add_postings(self, postings: Iterable[JobPosting]) -> int:
        count = 0
        for posting in postings:
            self.add_or_replace_posting(posting)
            count += 1
        return count

    def get(self, posting_id: str) -> Optional[CatalogEntry]:
        posting = self._postings.get(posting_id)
        if posting is None:
            return None
        return CatalogEntry(posting=posting, result=self._results.get(posting_id))

    def postings(self) -> List[JobPosting]:
        return list(self._postings.values())

    def __contains__(self, posting_id: str) -> bool:
        return posting_id in self._postings

    def __len__(self) -> int:
        return len(self._postings)

    def query(
        self,
        search_text: str = "",
        score_floor: Optional[int] = None,
        status_filter: Union[str, StatusFilter, None] = None,
        sort_key: Union[str, SortKey] = SortKey.SCORE
    ) -> List[CatalogEntry]:
        """
        Filter and sort the catalog.

        Args:
            search_text: Case-insensitive substring matched against title and company
            score_floor: Exclude results scoring below this value
            status_filter: Application status, or AppliedFilter for "applied"/"not applied"
            sort_key: One of SortKey's values

        Returns:
            Ordered catalog entries

        Raises:
            InvalidSortError: If sort_key is not a known SortKey
        """
        try:
            sort_key = SortKey(sort_key)
        except ValueError:
            raise InvalidSortError(str(sort_key)) from None
        status_filter = parse_status_filter(status_filter)
        needle = search_text.casefold().strip()

        entries = []
        for posting_id, posting in self._postings.items():
            result = self._results.get(posting_id)

            if needle and needle not in posting.title.casefold() and needle not in posting.company.casefold():
                continue
            if score_floor is not None and (result is None or result.score < score_floor):
                continue
            if status_filter is not None and not self._status_matches(posting_id, status_filter):
                continue

            entries.append(CatalogEntry(posting=posting, result=result))

        entries.sort(key=self._sort_function(sort_key))
        return entries

    def _status_matches(self, posting_id: str, status_filter: StatusFilter) -> bool:
        status = self.status_lookup(posting_id)
        if status_filter is AppliedFilter.NOT_APPLIED:
            return status is None
        if status_filter is AppliedFilter.APPLIED:
            return status is not None
        return status == status_filter

    def _sort_function(self, sort_key: SortKey) -> Callable[[CatalogEntry], Any]:
        if sort_key is SortKey.SCORE:
            # Descending score; unscored postings last; ties by id ascending
            return lambda e: (-(e.score if e.score is not None else -1), e.posting.id)
        if sort_key is SortKey.COMPANY:
            return lambda e: (e.posting.company, e.posting.id)
        return lambda e: (e.posting.posted_at, e.posting.id)

    def summary(self, top: int = 5) -> Dict[str, Any]:
        """Summary statistics over the scored postings."""
        results = [e.result for e in self.query(sort_key=SortKey.SCORE) if e.result is not None]
        fit_counts = {level.value: 0 for level in FitLevel}
        for result in results:
            fit_counts[result.fit_level.value] += 1

        return {
            "total_postings": len(self._postings),
            "scored_postings": len(results),
            "average_score": sum(r.score for r in results) / len(results) if results else 0.0,
            "fit_distribution": fit_counts,
            "top_matches": [
                {
                    "posting_id": r.posting.id,
                    "title": r.posting.title,
                    "company": r.posting.company,
                    "score": r.score,
                    "fit_level": r.fit_level.value
                }
                for r in results[:top]
            ]
        }
