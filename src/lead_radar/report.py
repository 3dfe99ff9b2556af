# report.py
"""Report Builder module for console output.

This module provides the ReportBuilder class which renders dork previews
and lead generation results as plain text.
"""

from typing import Dict, List, Optional

from .logging_utils import get_logger
from .models import CandidateLead, LeadGenerationResult


class ReportBuilder:
    """Builder for human-readable Lead Radar output.

    Attributes:
        max_rows: Maximum number of leads rendered in a result summary.
    """

    DEFAULT_MAX_ROWS = 25

    # Score thresholds for indicators
    SCORE_HIGH_THRESHOLD = 85
    SCORE_MEDIUM_THRESHOLD = 70

    EMOJI_HIGH = "⭐"
    EMOJI_MEDIUM = "✅"
    EMOJI_LOW = "❔"

    EMOJI_SEARCH = "🔍"
    EMOJI_STATS = "📊"
    EMOJI_TARGET = "🎯"

    def __init__(self, max_rows: Optional[int] = None):
        """Initialize the Report Builder.

        Args:
            max_rows: Optional maximum leads per rendered summary.
                     Defaults to DEFAULT_MAX_ROWS.
        """
        self.logger = get_logger(__name__)
        self.max_rows = max_rows if max_rows is not None else self.DEFAULT_MAX_ROWS

    def format_preview(self, preview: Dict[str, List[str]]) -> str:
        """Format a platform to queries mapping as a numbered listing.

        Args:
            preview: Mapping of platform name to its query strings.

        Returns:
            Plain text preview with the total query count and platform list.
        """
        queries = [query for platform_queries in preview.values() for query in platform_queries]

        lines = [f"{self.EMOJI_SEARCH} Google Dork Queries Generated:", ""]
        for index, query in enumerate(queries, start=1):
            lines.append(f"{index}. {query}")
            lines.append("")

        platforms = ", ".join(self.platform_label(p) for p in preview) or "None"
        lines.append(f"{self.EMOJI_STATS} Total Queries: {len(queries)}")
        lines.append(f"{self.EMOJI_TARGET} Platforms: {platforms}")

        return "\n".join(lines)

    def format_result(self, result: LeadGenerationResult) -> str:
        """Format a run result as a summary followed by one block per lead.

        Args:
            result: The LeadGenerationResult to render.

        Returns:
            Plain text report string.
        """
        counts = ", ".join(
            f"{self.platform_label(platform)}: {count}"
            for platform, count in result.per_platform_counts.items()
        )

        lines = [
            f"{self.EMOJI_TARGET} Lead Radar: {result.total_count} leads "
            f"from {len(result.queries_used)} queries",
            f"Generated: {result.generated_at}",
        ]
        if counts:
            lines.append(f"Per platform: {counts}")

        if result.is_empty():
            lines.append("No leads matched the criteria.")
            return "\n".join(lines)

        for lead in result.top(self.max_rows):
            lines.append("")
            lines.append(self.format_lead_text(lead))

        remaining = result.total_count - self.max_rows
        if remaining > 0:
            lines.append("")
            lines.append(f"... and {remaining} more leads")

        return "\n".join(lines)

    def format_lead_text(self, lead: CandidateLead) -> str:
        """Format a single lead as plain text."""
        lines = [
            f"{self.get_score_emoji(lead.score)} {lead.name} ({lead.score})",
            f"  {lead.job_title} at {lead.company}",
            f"  Location: {lead.location}",
        ]

        if lead.email:
            lines.append(f"  Email: {lead.email}")
        if lead.phone:
            lines.append(f"  Phone: {lead.phone}")
        if lead.source_url:
            lines.append(f"  Source: {lead.source_url}")

        return "\n".join(lines)

    def get_score_emoji(self, score: int) -> str:
        """Get the indicator emoji for a lead score."""
        if score >= self.SCORE_HIGH_THRESHOLD:
            return self.EMOJI_HIGH
        elif score >= self.SCORE_MEDIUM_THRESHOLD:
            return self.EMOJI_MEDIUM
        return self.EMOJI_LOW

    @staticmethod
    def platform_label(platform: str) -> str:
        """Display label for a platform name; domains are shown as-is."""
        labels = {"linkedin": "LinkedIn", "github": "GitHub"}
        if "." in platform:
            return platform
        return labels.get(platform, platform.capitalize())
