# enhancer.py
"""Lead enhancer module for optional AI field completion.

This module provides the LeadEnhancer class which asks the text-completion
service to fill fields the pattern extractor left empty or at their
placeholder values. Enhancement is best effort: every failure is logged and
the pattern-derived lead is kept unchanged.
"""

from typing import Dict, List, Optional

import requests

from .config import config
from .llm_client import LLMClient
from .logging_utils import get_logger
from .models import (
    COMPANY_NOT_SPECIFIED,
    DEFAULT_JOB_TITLE,
    LOCATION_NOT_SPECIFIED,
    CandidateLead,
)
from .scoring import is_generic_name

ENHANCEABLE_FIELDS = ("name", "email", "phone", "company", "job_title", "location")


class LeadEnhancer:
    """Enhancer that merges model-suggested values into candidate leads.

    Attributes:
        limit: How many leads at the head of each batch are sent to the
            model. Zero disables enhancement.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        limit: Optional[int] = None,
    ):
        """Initialize the Lead Enhancer.

        Args:
            llm_client: Optional LLMClient instance. If not provided,
                       a new client will be created using config settings.
            limit: Optional per-batch cap. Defaults to
                   config.LEAD_AI_ENHANCE_LIMIT.
        """
        self.logger = get_logger(__name__)

        self._llm_client = llm_client
        self._owns_client = llm_client is None

        self.limit = limit if limit is not None else config.LEAD_AI_ENHANCE_LIMIT

        self.enhanced_count = 0
        self.failed_count = 0

    @property
    def llm_client(self) -> LLMClient:
        """Get or create the LLM client."""
        if self._llm_client is None:
            self._llm_client = LLMClient()
        return self._llm_client

    @property
    def enabled(self) -> bool:
        """Whether enhancement requests will be made."""
        return self.limit > 0 and self.llm_client.is_configured

    @staticmethod
    def missing_fields(lead: CandidateLead) -> List[str]:
        """List the fields still empty or holding a placeholder value."""
        missing = []
        if is_generic_name(lead.name):
            missing.append("name")
        if not lead.email:
            missing.append("email")
        if not lead.phone:
            missing.append("phone")
        if lead.company == COMPANY_NOT_SPECIFIED:
            missing.append("company")
        if lead.job_title == DEFAULT_JOB_TITLE:
            missing.append("job_title")
        if lead.location == LOCATION_NOT_SPECIFIED:
            missing.append("location")
        return missing

    def enhance(self, lead: CandidateLead, snippet: str) -> CandidateLead:
        """Fill missing fields of one lead in place.

        Args:
            lead: The candidate lead to enhance.
            snippet: Original search-result text the lead came from.

        Returns:
            The same lead, with any usable suggested values merged.
        """
        missing = self.missing_fields(lead)
        if not missing:
            return lead

        current = lead.model_dump(include=set(ENHANCEABLE_FIELDS))

        try:
            suggestions = self.llm_client.enhance_lead(
                lead_fields=current,
                snippet=snippet,
                missing_fields=missing,
            )
        except (ValueError, requests.exceptions.RequestException) as e:
            self.failed_count += 1
            self.logger.warning(
                f"Lead enhancement skipped: {e}",
                extra={"lead_id": lead.id}
            )
            return lead

        merged = self._merge(lead, suggestions, missing)
        self.enhanced_count += 1

        self.logger.info(
            "Lead enhanced",
            extra={"lead_id": lead.id, "merged_fields": merged}
        )

        return lead

    def enhance_batch(
        self,
        leads: List[CandidateLead],
        snippets: Dict[str, str],
    ) -> List[CandidateLead]:
        """Enhance the first ``limit`` leads of a batch.

        Args:
            leads: Leads extracted from one page of results.
            snippets: Mapping of lead id to its source text.

        Returns:
            The input list; enhanced leads are updated in place.
        """
        if not leads or not self.enabled:
            return leads

        for lead in leads[:self.limit]:
            self.enhance(lead, snippets.get(lead.id, ""))

        return leads

    def _merge(
        self,
        lead: CandidateLead,
        suggestions: Dict[str, object],
        requested: List[str],
    ) -> List[str]:
        merged = []
        for field, value in suggestions.items():
            if field not in requested or not isinstance(value, str):
                continue
            value = value.strip()
            if not value:
                continue
            try:
                setattr(lead, field, value)
            except ValueError as e:
                self.logger.debug(
                    f"Rejected suggested value for {field}: {e}",
                    extra={"lead_id": lead.id}
                )
                continue
            merged.append(field)
        return merged

    def get_stats(self) -> dict:
        """Get enhancer counters and configuration."""
        return {
            "limit": self.limit,
            "enhanced": self.enhanced_count,
            "failed": self.failed_count,
        }

    def close(self) -> None:
        """Close the LLM client if it was created by this enhancer."""
        if self._owns_client and self._llm_client is not None:
            self._llm_client.close()
            self._llm_client = None
            self.logger.debug("LeadEnhancer closed")

    def __enter__(self) -> "LeadEnhancer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
