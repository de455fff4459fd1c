"""Tests for the match catalog's queries and cache."""

from datetime import datetime, timedelta, timezone

import pytest

from career_matcher.core.errors import InvalidSortError
from career_matcher.core.models import ApplicationStatus, CandidateProfile, EducationLevel
from career_matcher.matching.catalog import AppliedFilter, MatchCatalog, SortKey, parse_status_filter
from career_matcher.tracking.tracker import ApplicationTracker

from conftest import make_posting

BASE_DATE = datetime(2024, 3, 1, tzinfo=timezone.utc)


@pytest.fixture
def postings():
    return [
        make_posting(
            "b", title="React Developer", company="Digital Agency Pro",
            required_skills=["React", "CSS"], preferred_skills=[],
            experience_required_years=3, posted_at=BASE_DATE - timedelta(days=3),
        ),
        make_posting(
            "a", title="Frontend Engineer", company="Zeta Labs",
            required_skills=["React", "CSS"], preferred_skills=[],
            experience_required_years=3, posted_at=BASE_DATE - timedelta(days=1),
        ),
        make_posting(
            "c", title="Software Engineer", company="Enterprise Solutions",
            required_skills=["Java", "Spring Boot"], preferred_skills=["Kubernetes"],
            experience_required_years=4, posted_at=BASE_DATE - timedelta(days=7),
        ),
    ]


@pytest.fixture
def profile():
    return CandidateProfile(skills=["React", "CSS"], experience_years=5, education_level=EducationLevel.MASTER)


@pytest.fixture
def tracker():
    return ApplicationTracker()


@pytest.fixture
def catalog(postings, profile, tracker):
    catalog = MatchCatalog(status_lookup=tracker.status_for_posting)
    catalog.add_postings(postings)
    catalog.replace_profile(profile)
    return catalog


def ids(entries):
    return [entry.posting.id for entry in entries]


class TestQuerySorting:

    def test_score_sort_breaks_ties_by_id(self, catalog):
        entries = catalog.query(sort_key=SortKey.SCORE)

        assert ids(entries) == ["a", "b", "c"]
        assert entries[0].score == entries[1].score == 100
        assert entries[2].score < 100

    def test_company_sort(self, catalog):
        assert ids(catalog.query(sort_key="company")) == ["b", "c", "a"]

    def test_posted_at_sort_is_ascending(self, catalog):
        assert ids(catalog.query(sort_key="posted_at")) == ["c", "b", "a"]

    def test_unknown_sort_key_is_rejected(self, catalog):
        with pytest.raises(InvalidSortError) as exc_info:
            catalog.query(sort_key="salary")

        assert exc_info.value.code == "catalog.invalid_sort"
        assert MatchCatalog.InvalidSort is InvalidSortError


class TestQueryFilters:

    def test_search_matches_title_or_company_case_insensitively(self, catalog):
        assert ids(catalog.query(search_text="ENGINEER")) == ["a", "c"]
        assert ids(catalog.query(search_text="agency")) == ["b"]

    def test_score_floor(self, catalog):
        assert ids(catalog.query(score_floor=85)) == ["a", "b"]

    def test_filters_are_conjunctive(self, catalog):
        assert ids(catalog.query(search_text="engineer", score_floor=85)) == ["a"]

    def test_status_filters(self, catalog, tracker):
        application = tracker.apply("b")
        tracker.mark_under_review(application.id)

        assert ids(catalog.query(status_filter=ApplicationStatus.UNDER_REVIEW)) == ["b"]
        assert ids(catalog.query(status_filter="submitted")) == []
        assert ids(catalog.query(status_filter=AppliedFilter.APPLIED)) == ["b"]
        assert ids(catalog.query(status_filter="not_applied")) == ["a", "c"]

    def test_status_filter_uses_latest_application(self, catalog, tracker):
        first = tracker.apply("a")
        tracker.reject(first.id)
        tracker.apply("a")

        assert ids(catalog.query(status_filter=ApplicationStatus.SUBMITTED)) == ["a"]
        assert ids(catalog.query(status_filter=ApplicationStatus.REJECTED)) == []

    def test_unknown_status_filter(self):
        with pytest.raises(ValueError):
            parse_status_filter("ghosted")


class TestResultCache:

    def test_postings_without_profile_are_unscored_and_sort_last(self, postings):
        catalog = MatchCatalog()
        catalog.add_postings(postings)

        entries = catalog.query()
        assert [entry.result for entry in entries] == [None, None, None]
        assert ids(entries) == ["a", "b", "c"]
        assert catalog.query(score_floor=0) == []

    def test_replacing_the_profile_rescores_everything(self, catalog):
        before = {entry.posting.id: entry.score for entry in catalog.query()}

        catalog.replace_profile(CandidateProfile(skills=["Java", "Spring Boot", "Kubernetes"], experience_years=10))
        after = {entry.posting.id: entry.score for entry in catalog.query()}

        assert after["c"] > before["c"]
        assert after["a"] < before["a"]
        assert all(entry.result.profile is catalog.profile for entry in catalog.query())

    def test_replacing_a_posting_recomputes_its_result(self, catalog):
        catalog.add_or_replace_posting(make_posting("c", title="Software Engineer", required_skills=["React"]))

        entry = catalog.get("c")
        assert entry.result.matched_required == ("React",)
        assert len(catalog) == 3

    def test_get_unknown_posting(self, catalog):
        assert catalog.get("missing") is None
        assert "missing" not in catalog


class TestSummary:

    def test_summary_counts_fit_levels(self, catalog):
        summary = catalog.summary(top=2)

        assert summary["total_postings"] == 3
        assert summary["scored_postings"] == 3
        assert summary["fit_distribution"]["excellent"] == 2
        assert [match["posting_id"] for match in summary["top_matches"]] == ["a", "b"]
