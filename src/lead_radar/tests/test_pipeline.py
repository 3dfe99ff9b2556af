# src/lead_radar/tests/test_pipeline.py
"""
Unit tests for the Lead Radar pipeline orchestrator.

Tests cover:
- End-to-end run with a single rich result
- Generic results producing an empty, successful result
- Pagination stop on an exhausted query
- Per-query failure isolation and the per-platform query cap
- Credential validation before any search
- Cross-platform deduplication, ranking and per-platform counts
- Rate-limit delays
- Query previews without gateway calls
- Health check and resource cleanup
"""
import random
from unittest.mock import MagicMock

import pytest
import requests

from lead_radar.config import ConfigurationError
from lead_radar.enhancer import LeadEnhancer
from lead_radar.extractor import LeadExtractor
from lead_radar.main import LeadRadarPipeline
from lead_radar.models import CandidateLead, Location, SearchCriteria, SearchResultRecord
from lead_radar.query_builder import QueryBuilder
from lead_radar.scoring import LeadScorer
from lead_radar.search_client import SearchClient


JANE_QUERY = 'site:linkedin.com/in "Technology" "Austin" (email OR contact OR @)'


@pytest.fixture
def jane_record():
    return SearchResultRecord(
        title="Jane Smith - Senior Engineer at Acme Inc",
        snippet="Contact: jane.smith@acme.com, (512) 555-0134",
        url="https://linkedin.com/in/janesmith",
    )


@pytest.fixture
def austin_criteria():
    """Technology leads in Austin on LinkedIn."""
    return SearchCriteria(
        industries=["Technology"],
        location=Location(city="Austin"),
        target_platforms=["linkedin"],
    )


@pytest.fixture
def mock_search_client():
    """Create a mock search client whose credentials are valid."""
    client = MagicMock()
    client.search.return_value = []
    client.get_usage_stats.return_value = {"request_count": 0}
    return client


@pytest.fixture
def sleep():
    return MagicMock()


def make_pipeline(search_client, sleep, **overrides):
    components = {
        "query_builder": QueryBuilder(placeholder_policy="drop"),
        "extractor": LeadExtractor(rng=random.Random(7)),
        "enhancer": LeadEnhancer(llm_client=MagicMock(is_configured=False), limit=0),
        "scorer": LeadScorer(threshold=60),
    }
    components.update(overrides)
    return LeadRadarPipeline(
        search_client=search_client,
        max_queries_per_platform=2,
        page_delay=1.5,
        platform_delay=2.0,
        sleep=sleep,
        **components,
    )


def first_page_only(records):
    """Search side effect returning records on the first page only."""
    def search(query, start_index=1):
        return list(records) if start_index == 1 else []
    return search


class TestRun:
    """Tests for LeadRadarPipeline.run()."""

    @pytest.mark.unit
    def test_single_rich_result(self, mock_search_client, sleep, austin_criteria, jane_record):
        """Test a run that yields one fully populated lead."""
        mock_search_client.search.side_effect = first_page_only([jane_record])
        pipeline = make_pipeline(mock_search_client, sleep)

        result = pipeline.run(austin_criteria)

        assert result.queries_used == (JANE_QUERY,)
        assert result.total_count == 1
        lead = result.leads[0]
        assert lead.name == "Jane Smith"
        assert lead.email == "jane.smith@acme.com"
        assert lead.phone == "(512) 555-0134"
        assert lead.company == "Acme Inc"
        assert lead.job_title == "Senior Engineer"
        assert lead.location == "Austin"
        assert lead.score == 100
        assert lead.source_query == JANE_QUERY
        assert result.per_platform_counts == {"linkedin": 1}
        assert result.criteria == austin_criteria

    @pytest.mark.unit
    def test_generic_result_gives_empty_success(self, mock_search_client, sleep, austin_criteria):
        """Test that a generic listing yields an empty but valid result."""
        mock_search_client.search.side_effect = first_page_only([
            SearchResultRecord(
                title="Jobs in Austin",
                snippet="Browse 120 open roles and apply today.",
                url="https://www.linkedin.com/jobs/search",
            )
        ])
        pipeline = make_pipeline(mock_search_client, sleep)

        result = pipeline.run(austin_criteria)

        assert result.is_empty()
        assert result.leads == ()
        assert result.per_platform_counts == {"linkedin": 0}
        assert pipeline.stats["results_seen"] == 1
        assert pipeline.stats["leads_extracted"] == 0

    @pytest.mark.unit
    def test_pagination_stops_on_empty_page(self, mock_search_client, sleep, austin_criteria):
        """Test that an empty page ends the query."""
        records = [
            SearchResultRecord(title=f"Result {i}", snippet="", url=f"https://a.test/{i}")
            for i in range(10)
        ]
        mock_search_client.search.side_effect = first_page_only(records)
        pipeline = make_pipeline(mock_search_client, sleep)

        pipeline.run(austin_criteria)

        assert mock_search_client.search.call_count == 2
        starts = [c.kwargs["start_index"] for c in mock_search_client.search.call_args_list]
        assert starts == [1, 11]
        assert pipeline.stats["pages_fetched"] == 2

    @pytest.mark.unit
    def test_page_cap(self, mock_search_client, sleep):
        """Test that no more than max_pages_per_query pages are requested."""
        mock_search_client.search.return_value = [
            SearchResultRecord(title="Result", snippet="", url="https://a.test/1")
        ]
        criteria = SearchCriteria(
            industries=["Technology"],
            location=Location(city="Austin"),
            target_platforms=["linkedin"],
            max_pages_per_query=2,
        )
        pipeline = make_pipeline(mock_search_client, sleep)

        pipeline.run(criteria)

        assert mock_search_client.search.call_count == 2

    @pytest.mark.unit
    def test_query_cap_per_platform(self, mock_search_client, sleep):
        """Test that only the first queries of a platform are executed."""
        criteria = SearchCriteria(
            industries=["Technology"],
            location=Location(city="Austin"),
            job_title="CTO",
            target_platforms=["linkedin"],
        )
        pipeline = make_pipeline(mock_search_client, sleep)

        result = pipeline.run(criteria)

        assert len(pipeline.preview(criteria)["linkedin"]) == 3
        assert len(result.queries_used) == 2
        assert pipeline.stats["queries_issued"] == 2

    @pytest.mark.unit
    def test_failed_page_skips_only_that_query(self, mock_search_client, sleep, jane_record):
        """Test that a request failure abandons one query and the run continues."""
        criteria = SearchCriteria(
            industries=["Technology"],
            location=Location(city="Austin"),
            job_title="CTO",
            target_platforms=["linkedin"],
        )
        calls = []

        def search(query, start_index=1):
            calls.append((query, start_index))
            if len(calls) == 1:
                raise requests.exceptions.HTTPError("429 Too Many Requests")
            return [jane_record] if start_index == 1 else []

        mock_search_client.search.side_effect = search
        pipeline = make_pipeline(mock_search_client, sleep)

        result = pipeline.run(criteria)

        assert calls[0][0] != calls[1][0]
        assert [start for _, start in calls] == [1, 1, 11]
        assert result.total_count == 1
        assert pipeline.stats["failed_pages"] == 1

    @pytest.mark.unit
    def test_malformed_search_reply_skips_only_that_query(self, sleep, jane_record):
        """Test that a non-object search reply abandons one query and the run continues."""
        criteria = SearchCriteria(
            industries=["Technology"],
            location=Location(city="Austin"),
            job_title="CTO",
            target_platforms=["linkedin"],
        )
        item = {"title": jane_record.title, "snippet": jane_record.snippet, "link": jane_record.url}
        starts = []

        def get(url, params=None, timeout=None):
            starts.append(params["start"])
            response = MagicMock()
            if len(starts) == 1:
                response.json.return_value = ["unexpected"]
            elif params["start"] == 1:
                response.json.return_value = {"items": [item]}
            else:
                response.json.return_value = {}
            return response

        session = MagicMock()
        session.get.side_effect = get
        client = SearchClient(api_key="key", cx="cx", session=session)
        pipeline = make_pipeline(client, sleep)

        result = pipeline.run(criteria)

        assert starts == [1, 1, 11]
        assert result.total_count == 1
        assert result.leads[0].name == "Jane Smith"
        assert pipeline.stats["failed_pages"] == 1

    @pytest.mark.unit
    def test_missing_credentials_fail_before_search(self, sleep, austin_criteria):
        """Test that a configuration error is raised before any request."""
        session = MagicMock()
        pipeline = make_pipeline(SearchClient(api_key="", cx="", session=session), sleep)

        with pytest.raises(ConfigurationError):
            pipeline.run(austin_criteria)

        session.get.assert_not_called()
        sleep.assert_not_called()

    @pytest.mark.unit
    def test_platform_without_queries(self, mock_search_client, sleep):
        """Test that criteria with no terms search nothing."""
        pipeline = make_pipeline(mock_search_client, sleep)

        result = pipeline.run(SearchCriteria(target_platforms=["linkedin"]))

        mock_search_client.search.assert_not_called()
        assert result.is_empty()
        assert result.queries_used == ()

    @pytest.mark.unit
    def test_criteria_not_modified(self, mock_search_client, sleep, austin_criteria, jane_record):
        """Test that running leaves the criteria unchanged."""
        mock_search_client.search.side_effect = first_page_only([jane_record])
        before = austin_criteria.model_dump()
        pipeline = make_pipeline(mock_search_client, sleep)

        pipeline.run(austin_criteria)

        assert austin_criteria.model_dump() == before

    @pytest.mark.unit
    def test_unexpected_error_recorded_and_raised(self, mock_search_client, sleep, austin_criteria):
        """Test that non-request failures abort the run."""
        mock_search_client.search.side_effect = RuntimeError("boom")
        pipeline = make_pipeline(mock_search_client, sleep)

        with pytest.raises(RuntimeError):
            pipeline.run(austin_criteria)

        assert pipeline.stats["errors"] == ["boom"]


class TestCrossPlatform:
    """Tests for deduplication, ranking and per-platform counts."""

    @pytest.mark.unit
    def test_duplicate_across_platforms(self, mock_search_client, sleep, jane_record):
        """Test that the same contact found twice is kept once."""
        mock_search_client.search.side_effect = first_page_only([jane_record])
        criteria = SearchCriteria(
            industries=["Technology"],
            location=Location(city="Austin"),
            target_platforms=["linkedin", "twitter"],
        )
        pipeline = make_pipeline(mock_search_client, sleep)

        result = pipeline.run(criteria)

        assert result.total_count == 1
        assert result.leads[0].source_platform == "linkedin"
        assert result.per_platform_counts == {"linkedin": 1, "twitter": 0}
        assert len(result.queries_used) == 2

    @pytest.mark.unit
    def test_ranked_by_score(self, mock_search_client, sleep, austin_criteria):
        """Test that final leads are ordered by descending score."""
        mock_search_client.search.side_effect = first_page_only([
            SearchResultRecord(title=str(i), snippet="", url="") for i in range(3)
        ])
        leads = [
            CandidateLead(name="Low Lead", email="low@x.com", score=65, source_platform="linkedin"),
            CandidateLead(name="Top Lead", email="top@x.com", score=90, source_platform="linkedin"),
            CandidateLead(name="Mid Lead", email="mid@x.com", score=75, source_platform="linkedin"),
        ]
        extractor = MagicMock()
        extractor.extract.side_effect = leads
        scorer = MagicMock()
        scorer.score_and_filter.side_effect = lambda batch, criteria: batch
        pipeline = make_pipeline(mock_search_client, sleep, extractor=extractor, scorer=scorer)

        result = pipeline.run(austin_criteria)

        assert [lead.name for lead in result.leads] == ["Top Lead", "Mid Lead", "Low Lead"]


class TestRateLimiting:
    """Tests for delays between requests."""

    @pytest.mark.unit
    def test_delays_after_pages_and_platforms(
        self, mock_search_client, sleep, austin_criteria, jane_record
    ):
        """Test the delay sequence for one query with two page fetches."""
        mock_search_client.search.side_effect = first_page_only([jane_record])
        pipeline = make_pipeline(mock_search_client, sleep)

        pipeline.run(austin_criteria)

        assert [c.args[0] for c in sleep.call_args_list] == [1.5, 1.5, 2.0]


class TestPreview:
    """Tests for preview() and library_preview()."""

    @pytest.mark.unit
    def test_preview_makes_no_requests(self, mock_search_client, sleep):
        """Test that previews never touch the gateway."""
        criteria = SearchCriteria(
            industries=["Technology"],
            location=Location(city="Austin"),
        )
        pipeline = make_pipeline(mock_search_client, sleep)

        preview = pipeline.preview(criteria)
        library = pipeline.library_preview(criteria)

        assert list(preview) == ["linkedin", "reddit", "twitter"]
        assert preview["linkedin"] == [JANE_QUERY]
        assert library
        mock_search_client.search.assert_not_called()
        mock_search_client.validate_credentials.assert_not_called()
        sleep.assert_not_called()


class TestHealthAndCleanup:
    """Tests for health_check() and close()."""

    @pytest.mark.unit
    def test_health_check(self, mock_search_client, sleep):
        """Test component health with valid search credentials."""
        pipeline = make_pipeline(mock_search_client, sleep)

        assert pipeline.health_check() == {"search": True, "llm": False}

    @pytest.mark.unit
    def test_health_check_missing_credentials(self, sleep):
        """Test that missing credentials report the search gateway down."""
        pipeline = make_pipeline(SearchClient(api_key="", cx="", session=MagicMock()), sleep)

        assert pipeline.health_check()["search"] is False

    @pytest.mark.unit
    def test_injected_components_not_closed(self, mock_search_client, sleep):
        """Test that injected clients are left open."""
        with make_pipeline(mock_search_client, sleep):
            pass

        mock_search_client.close.assert_not_called()
