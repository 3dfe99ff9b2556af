"""Query builder module for search-engine dork construction.

This module provides the QueryBuilder class which turns SearchCriteria into
platform-scoped query strings and fills the dork pattern library's
placeholder tokens. It performs no I/O.
"""

import re
from typing import Dict, List, Optional, Union

from .config import config
from .dork_patterns import (
    BASIC_DORK_CONTACT,
    BASIC_DORK_SITES,
    CATEGORY_REQUIREMENTS,
    CONTACT_DORKS,
    DORK_PATTERNS,
    GENERIC_CONTACT_FILTER,
    PLATFORM_CONTACT_FILTER,
    PLATFORM_SITES,
    TIME_RANGE_FILTERS,
)
from .logging_utils import get_logger
from .models import DorkCategory, DorkQuery, PlaceholderPolicy, SearchCriteria


class UnresolvedPlaceholderError(ValueError):
    """Raised when a template token has no value under the error policy."""

    def __init__(self, pattern: str, tokens: List[str]):
        self.pattern = pattern
        self.tokens = tokens
        super().__init__(
            f"Unresolved placeholders {', '.join(tokens)} in pattern: {pattern}"
        )


class QueryBuilder:
    """Builder for platform and dork-library search queries.

    Attributes:
        placeholder_policy: How tokens without a criteria value are handled
            when filling dork templates.
    """

    TOKEN_RE = re.compile(r"\{([a-z_]+)\}")
    CLAUSE_SEPARATOR = " AND "

    def __init__(
        self,
        placeholder_policy: Optional[Union[PlaceholderPolicy, str]] = None,
    ):
        """Initialize the query builder.

        Args:
            placeholder_policy: Optional policy override. Defaults to
                config.LEAD_PLACEHOLDER_POLICY.
        """
        self.logger = get_logger(__name__)
        self.placeholder_policy = PlaceholderPolicy(
            placeholder_policy or config.LEAD_PLACEHOLDER_POLICY
        )

    # ------------------------------------------------------------------
    # Platform queries
    # ------------------------------------------------------------------

    def build_queries(self, criteria: SearchCriteria, platform: str) -> List[str]:
        """Build the ordered query strings for one platform.

        Args:
            criteria: The search criteria.
            platform: A known platform name or a domain used verbatim.

        Returns:
            Between zero and four query strings. An empty list means there is
            nothing to search for.
        """
        return [q.text for q in self.build_platform_queries(criteria, platform)]

    def build_platform_queries(
        self,
        criteria: SearchCriteria,
        platform: str,
    ) -> List[DorkQuery]:
        """Build platform queries with their category metadata.

        Args:
            criteria: The search criteria.
            platform: A known platform name or a domain used verbatim.

        Returns:
            List of DorkQuery objects for the platform.
        """
        platform = platform.strip().lower()
        suffix = self.time_range_suffix(criteria)
        site = self.site_filter(platform)

        texts: List[str] = []
        if site is not None:
            for first, second in self._field_pairs(criteria):
                if not (first and second):
                    continue
                text = f'site:{site} "{first}" "{second}" {PLATFORM_CONTACT_FILTER}'
                if text not in texts:
                    texts.append(text)

        category = DorkCategory.PLATFORM.value
        if not texts:
            fallback = self._build_fallback_query(criteria, platform)
            if fallback:
                texts.append(fallback)
                category = "Generic Fallback"

        queries = [
            DorkQuery(
                text=self._with_suffix(text, suffix),
                platform=platform,
                category=category,
            )
            for text in texts
        ]

        self.logger.debug(
            "Built platform queries",
            extra={"platform": platform, "query_count": len(queries)}
        )

        return queries

    def site_filter(self, platform: str) -> Optional[str]:
        """Return the site: filter for a platform with its own rules.

        Known platform names map to their profile sites and any value
        containing a dot is treated as a domain. Other bare names have no
        platform rules and return None.
        """
        platform = platform.strip().lower()
        if platform in PLATFORM_SITES:
            return PLATFORM_SITES[platform]
        if "." in platform:
            return platform
        return None

    def time_range_suffix(self, criteria: SearchCriteria) -> str:
        """Map the criteria's time range to a recency filter token.

        Unknown or missing values map to an empty string.
        """
        if not criteria.time_range:
            return ""
        return TIME_RANGE_FILTERS.get(criteria.time_range.lower(), "")

    def _field_pairs(self, criteria: SearchCriteria) -> List[tuple]:
        industry = criteria.primary_industry
        location = criteria.location.city or criteria.location.state or ""
        role = criteria.job_title or ""
        keyword = criteria.keywords[0] if criteria.keywords else ""
        return [
            (industry, location),
            (role, location),
            (industry, role),
            (keyword, location),
        ]

    def _build_fallback_query(self, criteria: SearchCriteria, platform: str) -> str:
        terms = [
            criteria.primary_industry,
            criteria.location.city or "",
            criteria.job_title or "",
            *criteria.keywords,
        ]
        terms = [t for t in terms if t]
        if not terms or not platform:
            return ""
        domain = platform if "." in platform else f"{platform}.com"
        return f"site:{domain} {' '.join(terms)} {GENERIC_CONTACT_FILTER}"

    @staticmethod
    def _with_suffix(text: str, suffix: str) -> str:
        return f"{text} {suffix}" if suffix else text

    # ------------------------------------------------------------------
    # Dork pattern library
    # ------------------------------------------------------------------

    def placeholder_values(self, criteria: SearchCriteria) -> Dict[str, str]:
        """Map every known template token to its criteria value (may be empty)."""
        location = criteria.location
        return {
            "industry": criteria.primary_industry,
            "company_type": criteria.primary_industry,
            "role": criteria.job_title or "",
            "location": location.city or location.state or location.country or "",
            "city": location.city or "",
            "state": location.state or "",
            "domain": criteria.keywords[0] if criteria.keywords else "",
        }

    def fill_placeholders(
        self,
        pattern: str,
        criteria: SearchCriteria,
        policy: Optional[Union[PlaceholderPolicy, str]] = None,
    ) -> str:
        """Replace template tokens with criteria values.

        Args:
            pattern: Template containing ``{token}`` placeholders.
            criteria: The search criteria supplying values.
            policy: Optional override of the builder's placeholder policy.

        Returns:
            The filled pattern. Under the drop policy every ``AND`` clause
            still holding a token is removed, which may leave an empty string.

        Raises:
            UnresolvedPlaceholderError: Under the error policy when a token
                has no value.
        """
        policy = PlaceholderPolicy(policy) if policy else self.placeholder_policy
        values = self.placeholder_values(criteria)

        def substitute(match: "re.Match") -> str:
            value = values.get(match.group(1))
            return value if value else match.group(0)

        filled = self.TOKEN_RE.sub(substitute, pattern)
        unresolved = self.TOKEN_RE.findall(filled)
        if not unresolved:
            return filled

        if policy == PlaceholderPolicy.LEAVE:
            return filled
        if policy == PlaceholderPolicy.ERROR:
            raise UnresolvedPlaceholderError(pattern, sorted(set(unresolved)))

        clauses = [
            clause for clause in filled.split(self.CLAUSE_SEPARATOR)
            if not self.TOKEN_RE.search(clause)
        ]
        return self.CLAUSE_SEPARATOR.join(clauses).strip()

    def build_dork_queries(self, criteria: SearchCriteria) -> List[DorkQuery]:
        """Build queries from every category of the dork pattern library.

        Args:
            criteria: The search criteria.

        Returns:
            List of DorkQuery objects in category order. Patterns that
            resolve to nothing are skipped.
        """
        suffix = self.time_range_suffix(criteria)
        queries: List[DorkQuery] = []

        for category, patterns in DORK_PATTERNS.items():
            for pattern in patterns:
                text = self.fill_placeholders(pattern.pattern, criteria)
                if not text:
                    self.logger.debug(
                        "Skipped dork pattern with no resolvable clauses",
                        extra={"pattern": pattern.name}
                    )
                    continue

                text += self._category_requirement(category, criteria)

                queries.append(
                    DorkQuery(
                        text=self._with_suffix(text, suffix),
                        platform=pattern.sites[0] if pattern.sites else "web",
                        category=category.value,
                        description=pattern.description,
                    )
                )

        return queries

    def _category_requirement(
        self,
        category: DorkCategory,
        criteria: SearchCriteria,
    ) -> str:
        if category == DorkCategory.CONTACT_INFO:
            requirement = f" AND ({' OR '.join(CONTACT_DORKS)})"
            if criteria.location.city:
                requirement += f" AND {self.build_location_filter(criteria)}"
            return requirement
        clause = CATEGORY_REQUIREMENTS.get(category)
        return f" AND {clause}" if clause else ""

    def build_location_filter(self, criteria: SearchCriteria) -> str:
        """Build an OR-group of the quoted city, state and country."""
        location = criteria.location
        parts = [
            f'"{value}"'
            for value in (location.city, location.state, location.country)
            if value
        ]
        return f"({' OR '.join(parts)})" if parts else ""

    def build_basic_query(self, criteria: SearchCriteria) -> str:
        """Build the catch-all profile dork used when the library yields nothing."""
        query = BASIC_DORK_SITES

        if criteria.industries:
            industries = " OR ".join(f'"{ind}"' for ind in criteria.industries)
            query += f" AND ({industries})"
        if criteria.job_title:
            query += f' AND "{criteria.job_title}"'
        if criteria.location.city:
            query += f' AND "{criteria.location.city}"'

        query += f" AND {BASIC_DORK_CONTACT}"
        return self._with_suffix(query, self.time_range_suffix(criteria))

    def optimized_query(self, criteria: SearchCriteria) -> str:
        """Return the first library query, or the basic dork as a fallback."""
        queries = self.build_dork_queries(criteria)
        if queries:
            return queries[0].text
        return self.build_basic_query(criteria)
