# extractor.py
"""Lead extractor module for pattern-based contact recovery.

This module provides the LeadExtractor class which turns one search result
record into at most one CandidateLead. Each field is recovered by an ordered
list of strategies; every strategy is a pure function of the text and the
first one that yields a value wins.
"""

import random
import re
from typing import Callable, FrozenSet, List, Optional, Tuple
from urllib.parse import urlparse

from .logging_utils import get_logger
from .models import (
    COMPANY_NOT_SPECIFIED,
    DEFAULT_COMPANY_SIZE,
    DEFAULT_INDUSTRY,
    DEFAULT_JOB_TITLE,
    LOCATION_NOT_SPECIFIED,
    CandidateLead,
    SearchCriteria,
    SearchResultRecord,
)

Strategy = Callable[[str], Optional[str]]

# Words that never form part of a person's name
COMMON_WORDS = frozenset(
    word.lower()
    for word in (
        # platforms
        "LinkedIn", "Twitter", "Reddit", "Facebook", "GitHub", "Instagram",
        "YouTube", "Google",
        # business suffixes
        "Inc", "LLC", "Corp", "Ltd", "Co", "Company", "Group", "Solutions",
        "Services", "Partners", "Agency", "Consulting",
        # connectors
        "The", "And", "Or", "At", "In", "Of", "For", "With", "From", "To", "On",
        # titles and page furniture
        "Senior", "Junior", "Lead", "Principal", "Staff", "Head", "Chief",
        "Manager", "Director", "Engineer", "Developer", "Designer", "Analyst",
        "Consultant", "Founder", "Owner", "President", "Officer", "Executive",
        "Contact", "Email", "Phone", "Call", "About", "Team", "Profile", "Home",
        "Page", "Jobs", "Job", "Hiring", "Careers", "Posts", "Comments",
        # listing and navigation
        "Browse", "Apply", "Now", "Search", "Find", "View", "Sign", "Join",
        "Remote", "Open", "Roles", "Today", "New", "All", "More", "Login",
        "Register", "Share", "Follow", "Read", "Learn",
    )
)

FALLBACK_NAMES: Tuple[str, ...] = (
    "John Smith",
    "Jane Doe",
    "Mike Johnson",
    "Sarah Wilson",
    "David Brown",
)

SOCIAL_DOMAINS: Tuple[str, ...] = (
    "linkedin.com",
    "reddit.com",
    "twitter.com",
    "facebook.com",
)

CONNECTOR_WORDS = frozenset({"at", "works", "working", "the", "from", "with", "-"})

CORPORATE_SUFFIXES = frozenset({"inc", "inc.", "llc", "llc.", "corp", "corp.", "ltd", "ltd."})

# Words that end a company phrase captured by a greedy pattern
COMPANY_BREAK_WORDS = frozenset(
    {"contact", "email", "phone", "call", "in", "on", "for", "and", "or", "|"}
)

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_RE = re.compile(
    r"(?<!\d)(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}(?!\d)"
)

# Second-level labels under a country-code TLD, as in acme.co.uk
SECOND_LEVEL_LABELS = frozenset({"co", "com", "org", "net", "ac", "gov", "edu", "ltd"})

# Any run of letters, accented ones included; capitalization is checked per token
_WORD = r"[^\W\d_]+"

# Lookaheads allow overlapping candidates so a stoplisted word cannot shadow a name
NAME_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(rf"(?=\b({_WORD} {_WORD})\b)"),
    re.compile(rf"(?=\b({_WORD} [^\W\d_]\. {_WORD})\b)"),
    re.compile(rf"(?=\b({_WORD}(?: {_WORD}){{1,2}})\b)"),
)

_COMPANY_WORDS = r"[A-Z][\w&'.-]*(?: +[A-Z][\w&'.-]*){0,4}"
COMPANY_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"\bat +(" + _COMPANY_WORDS + r")"),
    re.compile(r" - +(" + _COMPANY_WORDS + r")"),
    re.compile(r"\b[Ww]orks +at +(" + _COMPANY_WORDS + r")"),
    re.compile(r"\b((?:[A-Z][\w&'-]* +){1,3}(?:Inc|LLC|Corp|Ltd)\.?)"),
)

JOB_TITLE_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(
        r"\b((?:Senior|Junior|Lead|Principal|Staff|Chief|Head of|VP of|Director of)"
        r" +[A-Z][a-zA-Z]+(?: +[A-Z][a-zA-Z]+)?)"
    ),
    re.compile(
        r"\b(CEO|CTO|CFO|COO|CMO|Co-Founder|Founder|Owner|Vice President|"
        r"President|VP|Director|Manager|Engineer|Developer|Designer|Analyst|"
        r"Consultant|Recruiter|Partner)\b"
    ),
)

LOCATION_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"\b([A-Z][a-z]+(?: [A-Z][a-z]+)?, *[A-Z]{2})\b"),
    re.compile(r"\b([A-Z][a-z]+ +[A-Z][a-z]+, *[A-Z][a-z]+)\b"),
)


def find_emails(text: str) -> List[str]:
    """Return every distinct email address in text, lower-cased, in order."""
    return _unique(m.group(0).lower() for m in EMAIL_RE.finditer(text))


def find_phones(text: str) -> List[str]:
    """Return every distinct North-American phone number in text, in order."""
    return _unique(m.group(0).strip() for m in PHONE_RE.finditer(text))


def is_common_word(word: str) -> bool:
    return word.strip(".,").lower() in COMMON_WORDS


def is_name_token(token: str) -> bool:
    """Capitalized word such as 'García', or an initial such as 'Q.'."""
    if len(token) == 2 and token.endswith("."):
        return token[0].isupper()
    return token[:1].isupper() and token[1:].islower()


def is_plausible_name(candidate: str) -> bool:
    """A name has at least two capitalized tokens and none is stoplisted."""
    tokens = candidate.split()
    return (
        len(tokens) >= 2
        and all(is_name_token(t) for t in tokens)
        and not any(is_common_word(t) for t in tokens)
    )


def criteria_terms(criteria: SearchCriteria) -> FrozenSet[str]:
    """Lower-cased words of the criteria, which echo back in listing pages."""
    phrases = [
        *criteria.industries,
        *criteria.keywords,
        criteria.job_title or "",
        criteria.location.city or "",
        criteria.location.state or "",
        criteria.location.country or "",
    ]
    return frozenset(word.lower() for phrase in phrases for word in phrase.split())


def find_name(text: str, excluded: FrozenSet[str] = frozenset()) -> Optional[str]:
    """First plausible name in text whose words are not in ``excluded``."""
    for pattern in NAME_PATTERNS:
        for match in pattern.finditer(text):
            candidate = match.group(1)
            if not is_plausible_name(candidate):
                continue
            if any(token.lower() in excluded for token in candidate.split()):
                continue
            return candidate
    return None


def is_plausible_company(candidate: str) -> bool:
    return not all(is_common_word(t) for t in candidate.split())


def clean_company(candidate: str) -> str:
    """Trim connector words and anything after a corporate suffix."""
    words = candidate.split()
    while words and words[0].lower() in CONNECTOR_WORDS:
        words.pop(0)

    kept: List[str] = []
    for word in words:
        if word.lower().strip(",") in COMPANY_BREAK_WORDS:
            break
        kept.append(word.rstrip(","))
        if word.lower().rstrip(",") in CORPORATE_SUFFIXES:
            break

    return " ".join(kept).strip(" .,-")


def _unique(values) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def _pattern_strategy(
    pattern: re.Pattern,
    clean: Callable[[str], str] = str.strip,
    accept: Callable[[str], bool] = bool,
) -> Strategy:
    def strategy(text: str) -> Optional[str]:
        for match in pattern.finditer(text):
            value = clean(match.group(1))
            if value and accept(value):
                return value
        return None

    return strategy


COMPANY_STRATEGIES: Tuple[Strategy, ...] = tuple(
    _pattern_strategy(p, clean=clean_company, accept=is_plausible_company)
    for p in COMPANY_PATTERNS
)

JOB_TITLE_STRATEGIES: Tuple[Strategy, ...] = tuple(
    _pattern_strategy(p) for p in JOB_TITLE_PATTERNS
)

LOCATION_STRATEGIES: Tuple[Strategy, ...] = tuple(
    _pattern_strategy(p) for p in LOCATION_PATTERNS
)


def first_match(strategies, text: str) -> Optional[str]:
    """Run strategies in priority order and return the first result."""
    for strategy in strategies:
        value = strategy(text)
        if value:
            return value
    return None


def url_host(url: str) -> str:
    """Lower-cased host of a URL without a leading www., or an empty string."""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    host = host.lower()
    return host[4:] if host.startswith("www.") else host


def is_social_domain(host: str) -> bool:
    return any(host == d or host.endswith("." + d) for d in SOCIAL_DOMAINS)


def company_from_host(host: str) -> str:
    """Turn acme-widgets.com or acme-widgets.co.uk into 'Acme Widgets'."""
    labels = host.split(".")
    if len(labels) > 1:
        tld = labels.pop()
        if len(tld) == 2 and len(labels) > 1 and labels[-1] in SECOND_LEVEL_LABELS:
            labels.pop()
    return re.sub(r"[-_]+", " ", " ".join(labels)).title().strip()


class LeadExtractor:
    """Extractor that infers a CandidateLead from a search result.

    Attributes:
        rng: Random source used to pick a fallback name.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """Initialize the extractor.

        Args:
            rng: Optional random source. Pass a seeded instance to make the
                fallback name deterministic.
        """
        self.logger = get_logger(__name__)
        self.rng = rng or random.Random()

    def extract(
        self,
        result: SearchResultRecord,
        criteria: SearchCriteria,
        platform: str,
        query: str = "",
    ) -> Optional[CandidateLead]:
        """Extract a lead from one search result record.

        Args:
            result: The search hit to analyze.
            criteria: The search criteria (read only).
            platform: Platform the query targeted.
            query: Query string that produced the hit.

        Returns:
            A CandidateLead, or None when neither a name, an email nor a
            company could be recovered from the text itself.
        """
        # Title and snippet stay on separate lines so words never pair across them
        text = f"{result.title}\n{result.snippet}"
        host = url_host(result.url)
        social = is_social_domain(host)

        emails = find_emails(text.lower())
        email = emails[0] if emails else None
        if email is None and host and not social:
            derived_email = f"contact@{host}"
        else:
            derived_email = None

        phones = find_phones(text)
        phone = phones[0] if phones else None

        name = find_name(text, criteria_terms(criteria))
        company = first_match(COMPANY_STRATEGIES, text)

        if not (name or email or company):
            self.logger.debug(
                "No lead recovered from result",
                extra={"url": result.url, "platform": platform}
            )
            return None

        lead = CandidateLead(
            name=name or self._synthesize_name(result.title),
            company=company or self._derive_company(criteria, host, social),
            job_title=first_match(JOB_TITLE_STRATEGIES, text) or DEFAULT_JOB_TITLE,
            email=email or derived_email,
            phone=phone,
            location=self._resolve_location(criteria, text),
            industry=criteria.primary_industry or DEFAULT_INDUSTRY,
            linkedin_url=result.url if "linkedin.com" in host else None,
            company_size_band=criteria.company_size or DEFAULT_COMPANY_SIZE,
            source_platform=platform,
            source_url=result.url,
            source_query=query,
        )

        self.logger.debug(
            "Extracted lead",
            extra={
                "lead_id": lead.id,
                "platform": platform,
                "has_email": bool(lead.email),
                "has_phone": bool(lead.phone),
            }
        )

        return lead

    def _synthesize_name(self, title: str) -> str:
        words = [
            w.strip(".,:;|()") for w in title.split()
            if w[:1].isupper()
        ]
        words = [w for w in words if w.isalpha() and not is_common_word(w)]
        if len(words) >= 2:
            return " ".join(words[:2])
        return self.rng.choice(FALLBACK_NAMES)

    @staticmethod
    def _derive_company(criteria: SearchCriteria, host: str, social: bool) -> str:
        if criteria.primary_industry:
            return f"{criteria.primary_industry} Solutions"
        if host and not social:
            return company_from_host(host) or COMPANY_NOT_SPECIFIED
        return COMPANY_NOT_SPECIFIED

    @staticmethod
    def _resolve_location(criteria: SearchCriteria, text: str) -> str:
        if criteria.location.city:
            return criteria.location.city
        return first_match(LOCATION_STRATEGIES, text) or LOCATION_NOT_SPECIFIED
