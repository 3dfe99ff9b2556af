# main.py
"""Lead Radar Main Orchestrator.

This module provides the main entry point for the Lead Radar service.
It orchestrates the complete pipeline for each target platform in order:
    1. Build dork queries from the search criteria
    2. Page through the search gateway for the first queries
    3. Extract candidate leads from each result
    4. Optionally enhance the head of each batch with the completion service
    5. Score and validate leads
After all platforms, leads are deduplicated, ranked and returned.

Usage:
    lead-radar --industries Technology --city Austin --platforms linkedin
    lead-radar --industries Dentist --state TX --job-title Owner --preview
"""

import argparse
import json
import sys
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import requests

from .config import ConfigurationError, config
from .dedup import dedupe
from .enhancer import LeadEnhancer
from .extractor import LeadExtractor
from .logging_utils import ContextAdapter, LogContext, get_logger, setup_logging
from .models import (
    CandidateLead,
    DorkQuery,
    LeadGenerationResult,
    Location,
    SearchCriteria,
    SearchResultRecord,
)
from .query_builder import QueryBuilder
from .report import ReportBuilder
from .scoring import LeadScorer
from .search_client import SearchClient


class LeadRadarPipeline:
    """Main orchestrator for the Lead Radar processing pipeline.

    Platforms, queries and pages are processed strictly in sequence with a
    fixed delay after every page fetch and after every platform.

    Attributes:
        query_builder: QueryBuilder for dork construction.
        search_client: SearchClient for the search gateway.
        extractor: LeadExtractor for pattern-based extraction.
        enhancer: LeadEnhancer for optional AI field completion.
        scorer: LeadScorer for scoring and validation.
    """

    def __init__(
        self,
        query_builder: Optional[QueryBuilder] = None,
        search_client: Optional[SearchClient] = None,
        extractor: Optional[LeadExtractor] = None,
        enhancer: Optional[LeadEnhancer] = None,
        scorer: Optional[LeadScorer] = None,
        max_queries_per_platform: Optional[int] = None,
        page_delay: Optional[float] = None,
        platform_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the Lead Radar pipeline.

        Args:
            query_builder: Optional QueryBuilder instance.
            search_client: Optional SearchClient instance.
            extractor: Optional LeadExtractor instance.
            enhancer: Optional LeadEnhancer instance.
            scorer: Optional LeadScorer instance.
            max_queries_per_platform: Queries executed per platform.
                Defaults to config.LEAD_MAX_QUERIES_PER_PLATFORM.
            page_delay: Seconds to wait after each page fetch.
                Defaults to config.LEAD_PAGE_DELAY_SECONDS.
            platform_delay: Seconds to wait after each platform.
                Defaults to config.LEAD_PLATFORM_DELAY_SECONDS.
            sleep: Function used to wait between requests.
        """
        self.logger = ContextAdapter(get_logger(__name__), {})

        # Initialize components (lazy initialization for optional overrides)
        self._query_builder = query_builder
        self._search_client = search_client
        self._extractor = extractor
        self._enhancer = enhancer
        self._scorer = scorer

        # Track ownership for cleanup
        self._owns_search_client = search_client is None
        self._owns_enhancer = enhancer is None

        self.max_queries_per_platform = (
            max_queries_per_platform
            if max_queries_per_platform is not None
            else config.LEAD_MAX_QUERIES_PER_PLATFORM
        )
        self.page_delay = (
            page_delay if page_delay is not None else config.LEAD_PAGE_DELAY_SECONDS
        )
        self.platform_delay = (
            platform_delay
            if platform_delay is not None
            else config.LEAD_PLATFORM_DELAY_SECONDS
        )
        self._sleep = sleep

        self.stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> dict:
        return {
            "start_time": None,
            "end_time": None,
            "queries_issued": 0,
            "pages_fetched": 0,
            "failed_pages": 0,
            "results_seen": 0,
            "leads_extracted": 0,
            "leads_validated": 0,
            "leads_final": 0,
            "errors": [],
        }

    @property
    def query_builder(self) -> QueryBuilder:
        """Get or create the query builder."""
        if self._query_builder is None:
            self._query_builder = QueryBuilder()
        return self._query_builder

    @property
    def search_client(self) -> SearchClient:
        """Get or create the search client."""
        if self._search_client is None:
            self._search_client = SearchClient()
        return self._search_client

    @property
    def extractor(self) -> LeadExtractor:
        """Get or create the lead extractor."""
        if self._extractor is None:
            self._extractor = LeadExtractor()
        return self._extractor

    @property
    def enhancer(self) -> LeadEnhancer:
        """Get or create the lead enhancer."""
        if self._enhancer is None:
            self._enhancer = LeadEnhancer()
        return self._enhancer

    @property
    def scorer(self) -> LeadScorer:
        """Get or create the lead scorer."""
        if self._scorer is None:
            self._scorer = LeadScorer()
        return self._scorer

    def run(self, criteria: SearchCriteria) -> LeadGenerationResult:
        """Execute the complete Lead Radar pipeline.

        Args:
            criteria: The search criteria. It is never modified.

        Returns:
            LeadGenerationResult with leads ranked by descending score. An
            empty result is a successful outcome.

        Raises:
            ConfigurationError: If search credentials are missing. Raised
                before any query is issued.
        """
        self.stats = self._empty_stats()
        self.stats["start_time"] = datetime.now(timezone.utc)

        self.search_client.validate_credentials()

        self.logger.info(
            "Starting Lead Radar pipeline",
            extra={"platforms": list(criteria.target_platforms)}
        )

        try:
            candidates: List[CandidateLead] = []
            queries_used: List[str] = []

            for platform in criteria.target_platforms:
                with LogContext(platform=platform):
                    candidates.extend(
                        self._process_platform(criteria, platform, queries_used)
                    )
                self._sleep(self.platform_delay)

            leads = dedupe(candidates)
            leads.sort(key=lambda lead: lead.score, reverse=True)

            per_platform_counts: Dict[str, int] = {
                platform: 0 for platform in criteria.target_platforms
            }
            for lead in leads:
                per_platform_counts[lead.source_platform] = (
                    per_platform_counts.get(lead.source_platform, 0) + 1
                )

            result = LeadGenerationResult(
                leads=tuple(leads),
                total_count=len(leads),
                criteria=criteria,
                queries_used=tuple(queries_used),
                per_platform_counts=per_platform_counts,
            )

            self.stats["leads_final"] = len(leads)
            self.stats["end_time"] = datetime.now(timezone.utc)
            self._log_summary()

            return result

        except Exception as e:
            self.logger.error(
                f"Pipeline failed with error: {e}",
                extra={"error": str(e)}
            )
            self.stats["errors"].append(str(e))
            self.stats["end_time"] = datetime.now(timezone.utc)
            raise

    def _process_platform(
        self,
        criteria: SearchCriteria,
        platform: str,
        queries_used: List[str],
    ) -> List[CandidateLead]:
        """Run the first queries of one platform and collect valid leads."""
        queries = self.query_builder.build_queries(criteria, platform)
        if not queries:
            self.logger.info("No queries for platform, nothing to search")
            return []

        leads: List[CandidateLead] = []
        for query in queries[:self.max_queries_per_platform]:
            queries_used.append(query)
            self.stats["queries_issued"] += 1
            with LogContext(query=query):
                leads.extend(self._process_query(criteria, platform, query))

        self.logger.info(
            "Platform completed",
            extra={"query_count": len(queries), "lead_count": len(leads)}
        )

        return leads

    def _process_query(
        self,
        criteria: SearchCriteria,
        platform: str,
        query: str,
    ) -> List[CandidateLead]:
        """Page through one query until exhausted, failed or at the page cap."""
        leads: List[CandidateLead] = []

        for page in range(criteria.max_pages_per_query):
            start_index = 1 + page * SearchClient.PAGE_SIZE

            try:
                results = self.search_client.search(query, start_index=start_index)
            except requests.exceptions.RequestException as e:
                self.stats["failed_pages"] += 1
                self.logger.warning(
                    f"Search page failed, skipping rest of query: {e}",
                    extra={"start_index": start_index}
                )
                break

            self.stats["pages_fetched"] += 1
            self._sleep(self.page_delay)

            if not results:
                self.logger.debug(
                    "Query exhausted",
                    extra={"start_index": start_index}
                )
                break

            leads.extend(self._process_page(results, criteria, platform, query))

        return leads

    def _process_page(
        self,
        results: List[SearchResultRecord],
        criteria: SearchCriteria,
        platform: str,
        query: str,
    ) -> List[CandidateLead]:
        """Extract, enhance, score and validate one page of results."""
        self.stats["results_seen"] += len(results)

        batch: List[CandidateLead] = []
        snippets: Dict[str, str] = {}
        for record in results:
            lead = self.extractor.extract(record, criteria, platform, query)
            if lead is not None:
                batch.append(lead)
                snippets[lead.id] = record.combined_text

        self.stats["leads_extracted"] += len(batch)

        self.enhancer.enhance_batch(batch, snippets)
        valid = self.scorer.score_and_filter(batch, criteria)

        self.stats["leads_validated"] += len(valid)
        return valid

    def preview(self, criteria: SearchCriteria) -> Dict[str, List[str]]:
        """Build every platform's queries without calling the search gateway.

        Returns:
            Mapping of platform to its full query list.
        """
        return {
            platform: self.query_builder.build_queries(criteria, platform)
            for platform in criteria.target_platforms
        }

    def library_preview(self, criteria: SearchCriteria) -> List[DorkQuery]:
        """Build the dork pattern library queries without calling the search gateway."""
        return self.query_builder.build_dork_queries(criteria)

    def _log_summary(self) -> None:
        """Log pipeline summary statistics."""
        duration = None
        if self.stats["start_time"] and self.stats["end_time"]:
            duration = (
                self.stats["end_time"] - self.stats["start_time"]
            ).total_seconds()

        self.logger.info(
            "Pipeline completed",
            extra={
                "queries_issued": self.stats["queries_issued"],
                "pages_fetched": self.stats["pages_fetched"],
                "failed_pages": self.stats["failed_pages"],
                "results_seen": self.stats["results_seen"],
                "leads_extracted": self.stats["leads_extracted"],
                "leads_validated": self.stats["leads_validated"],
                "leads_final": self.stats["leads_final"],
                "duration_seconds": duration,
                "search_usage": self.search_client.get_usage_stats(),
                "enhancement": self.enhancer.get_stats(),
            }
        )

    def health_check(self) -> Dict[str, bool]:
        """Check health of the pipeline's external services.

        The search check only verifies credentials so that no query quota
        is spent.

        Returns:
            Dictionary mapping component names to health status.
        """
        health = {"search": False, "llm": False}

        try:
            self.search_client.validate_credentials()
            health["search"] = True
        except ConfigurationError as e:
            self.logger.warning(f"Search health check failed: {e}")

        if self.enhancer.enabled:
            health["llm"] = self.enhancer.llm_client.health_check()

        return health

    def close(self) -> None:
        """Close all pipeline components and release resources."""
        if self._owns_search_client and self._search_client is not None:
            self._search_client.close()

        if self._owns_enhancer and self._enhancer is not None:
            self._enhancer.close()

        self.logger.debug("Pipeline resources closed")

    def __enter__(self) -> "LeadRadarPipeline":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="lead-radar",
        description="Find contact leads with search-engine dork queries",
        epilog="""
Examples:
  %(prog)s --industries Technology --city Austin --platforms linkedin
  %(prog)s --industries Dentist --state TX --job-title Owner --require-email
  %(prog)s --industries Technology --city Austin --preview
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    criteria = parser.add_argument_group("search criteria")
    criteria.add_argument(
        "--industries",
        "-i",
        default="",
        help="Comma-separated industries, primary first (e.g., Technology,SaaS)",
    )
    criteria.add_argument("--city", help="Target city")
    criteria.add_argument("--state", help="Target state or region")
    criteria.add_argument("--country", help="Target country")
    criteria.add_argument("--job-title", "-j", help="Target role (e.g., CTO)")
    criteria.add_argument(
        "--keywords",
        "-k",
        default="",
        help="Comma-separated extra search terms",
    )
    criteria.add_argument(
        "--company-size",
        help="Company size band (e.g., 10-50)",
    )

    search = parser.add_argument_group("search options")
    search.add_argument(
        "--platforms",
        "-p",
        default=None,
        help="Comma-separated platforms or domains (default: linkedin,reddit,twitter)",
    )
    search.add_argument(
        "--time-range",
        "-t",
        choices=["h", "h10", "d", "d3", "w", "m", "y"],
        help="Only return results from the given recency window",
    )
    search.add_argument(
        "--max-pages",
        type=int,
        default=3,
        help="Maximum result pages per query (default: 3)",
    )
    search.add_argument(
        "--require-email",
        action="store_true",
        help="Discard leads without an email address",
    )
    search.add_argument(
        "--require-phone",
        action="store_true",
        help="Discard leads without a phone number",
    )

    output = parser.add_argument_group("output options")
    output.add_argument(
        "--preview",
        action="store_true",
        help="Print the generated queries without searching",
    )
    output.add_argument(
        "--library",
        action="store_true",
        help="With --preview, also print the dork pattern library queries",
    )
    output.add_argument(
        "--health-check",
        action="store_true",
        help="Check service credentials and connectivity, then exit",
    )
    output.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable JSON instead of text",
    )
    output.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def build_criteria(args: argparse.Namespace) -> SearchCriteria:
    """Build SearchCriteria from parsed CLI arguments.

    Raises:
        ValueError: If the arguments do not form valid criteria.
    """
    return SearchCriteria(
        industries=args.industries,
        location=Location(city=args.city, state=args.state, country=args.country),
        job_title=args.job_title,
        keywords=args.keywords,
        company_size=args.company_size,
        target_platforms=args.platforms,
        time_range=args.time_range,
        max_pages_per_query=args.max_pages,
        require_email=args.require_email,
        require_phone=args.require_phone,
    )


def print_preview(
    pipeline: LeadRadarPipeline,
    criteria: SearchCriteria,
    report: ReportBuilder,
    args: argparse.Namespace,
) -> None:
    """Print platform queries and, on request, the dork library queries."""
    preview = pipeline.preview(criteria)
    library = pipeline.library_preview(criteria) if args.library else []

    if args.json:
        payload: Dict[str, object] = {"platforms": preview}
        if args.library:
            payload["library"] = [q.model_dump() for q in library]
            payload["optimized"] = pipeline.query_builder.optimized_query(criteria)
        print(json.dumps(payload, indent=2, default=str))
        return

    print(report.format_preview(preview))
    if args.library:
        print()
        print(report.format_preview({"library": [q.text for q in library]}))
        print(f"Optimized: {pipeline.query_builder.optimized_query(criteria)}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for Lead Radar.

    This function sets up logging, builds the criteria, creates the
    pipeline, and either previews the queries or runs the search.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        level = "DEBUG"
    elif args.json:
        level = "WARNING"
    else:
        level = None
    logger = setup_logging(level=level, service_name="lead-radar")

    try:
        criteria = build_criteria(args)
    except ValueError as e:
        logger.error(f"Invalid search criteria: {e}")
        return 1

    logger.info(
        "Lead Radar starting",
        extra={
            "app_env": config.APP_ENV,
            "platforms": list(criteria.target_platforms),
            "score_threshold": config.LEAD_SCORE_THRESHOLD,
            "ai_enhancement": config.has_completion_credentials,
        }
    )

    report = ReportBuilder()

    try:
        with LeadRadarPipeline() as pipeline:
            if args.health_check:
                health = pipeline.health_check()
                if args.json:
                    print(json.dumps(health, indent=2))
                else:
                    for component, healthy in health.items():
                        print(f"{component}: {'ok' if healthy else 'unavailable'}")
                return 0 if health["search"] else 1

            if args.preview:
                print_preview(pipeline, criteria, report, args)
                return 0

            result = pipeline.run(criteria)

            if args.json:
                print(result.model_dump_json(indent=2))
            else:
                print(report.format_result(result))

            logger.info(
                "Lead Radar completed successfully",
                extra={
                    "total_count": result.total_count,
                    "queries_used": len(result.queries_used),
                }
            )

        return 0

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    except Exception as e:
        logger.exception(f"Lead Radar failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
