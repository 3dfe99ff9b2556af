"""
Lead Radar Test Package.

This package contains unit tests for the Lead Radar service modules.

Test categories:
- test_config.py: Configuration and environment variable loading
- test_logging_utils.py: Formatters, log context and logger setup
- test_models.py: Pydantic model validation
- test_query_builder.py: Platform queries and dork template filling
- test_extractor.py: Pattern-based lead extraction
- test_scoring.py: Lead scoring and validation
- test_dedup.py: Cross-platform deduplication
- test_search_client.py: Search gateway client
- test_llm_client.py: Text-completion gateway client
- test_enhancer.py: Optional AI lead enhancement
- test_report.py: Preview and result formatting
- test_pipeline.py: End-to-end pipeline behaviour with stubbed gateways
- test_main.py: Command-line entry point
"""

__all__ = []
