# scoring.py
"""Lead scoring and validation."""

from typing import List, Optional

from .config import config
from .extractor import FALLBACK_NAMES
from .logging_utils import get_logger
from .models import COMPANY_NOT_SPECIFIED, CandidateLead, SearchCriteria

BASE_SCORE = 50
EMAIL_WEIGHT = 25
PHONE_WEIGHT = 20
NAME_WEIGHT = 15
COMPANY_WEIGHT = 10
INDUSTRY_WEIGHT = 10
LOCATION_WEIGHT = 10
JOB_TITLE_WEIGHT = 15


def is_generic_name(name: str) -> bool:
    """Whether a name is empty or one of the fallback placeholders."""
    return not name.strip() or name in FALLBACK_NAMES


class LeadScorer:
    """Scores candidate leads against the criteria and filters weak ones.

    Attributes:
        threshold: Minimum score a lead needs to be kept (default: 60).
    """

    def __init__(self, threshold: Optional[int] = None):
        self.logger = get_logger(__name__)
        self.threshold = (
            threshold if threshold is not None else config.LEAD_SCORE_THRESHOLD
        )

    def score(self, lead: CandidateLead, criteria: SearchCriteria) -> int:
        """Compute a 0-100 quality score for a lead.

        Weights are summed onto the base score and the total is clamped, so
        a fully populated matching lead saturates at 100.
        """
        total = BASE_SCORE

        if lead.email:
            total += EMAIL_WEIGHT
        if lead.phone:
            total += PHONE_WEIGHT
        if not is_generic_name(lead.name):
            total += NAME_WEIGHT
        if lead.company and lead.company != COMPANY_NOT_SPECIFIED:
            total += COMPANY_WEIGHT

        industry = lead.industry.lower()
        if any(ind.lower() in industry for ind in criteria.industries):
            total += INDUSTRY_WEIGHT

        city = criteria.location.city
        if city and city.lower() in lead.location.lower():
            total += LOCATION_WEIGHT

        if criteria.job_title and criteria.job_title.lower() in lead.job_title.lower():
            total += JOB_TITLE_WEIGHT

        return max(0, min(100, total))

    def is_valid(self, lead: CandidateLead, criteria: SearchCriteria) -> bool:
        """Check a scored lead against the threshold and contact requirements."""
        if lead.score < self.threshold:
            return False
        if criteria.require_email and not lead.email:
            return False
        if criteria.require_phone and not lead.phone:
            return False
        return True

    def score_and_filter(
        self,
        leads: List[CandidateLead],
        criteria: SearchCriteria,
    ) -> List[CandidateLead]:
        """Score every lead in place and keep the valid ones.

        Args:
            leads: Candidate leads from one extraction batch.
            criteria: The search criteria.

        Returns:
            Leads that pass validation, in input order.
        """
        kept = []
        for lead in leads:
            lead.score = self.score(lead, criteria)
            if self.is_valid(lead, criteria):
                kept.append(lead)
            else:
                self.logger.debug(
                    "Discarded lead",
                    extra={"lead_id": lead.id, "score": lead.score}
                )

        self.logger.info(
            "Scored lead batch",
            extra={
                "input_count": len(leads),
                "output_count": len(kept),
                "threshold": self.threshold,
            }
        )

        return kept
