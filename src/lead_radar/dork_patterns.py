"""Static catalog of search-engine dork templates.

Templates use ``{industry}``, ``{role}``, ``{location}``, ``{city}``,
``{state}``, ``{company_type}`` and ``{domain}`` tokens that the query
builder fills from the search criteria.
"""

from typing import Dict, Tuple

from .models import DorkCategory, DorkPattern

DORK_PATTERNS: Dict[DorkCategory, Tuple[DorkPattern, ...]] = {
    DorkCategory.CONTACT_INFO: (
        DorkPattern(
            name="Email Directories",
            pattern='intext:"@{domain}" AND intext:"{role}" AND intext:"{location}"',
            description="Find email addresses with specific roles and locations",
        ),
        DorkPattern(
            name="Contact Pages",
            pattern='inurl:contact AND intext:"{industry}" AND intext:"{location}"',
            description="Contact pages for specific industries",
        ),
        DorkPattern(
            name="Staff Directories",
            pattern=(
                'intext:"staff directory" OR intext:"employee directory" '
                'AND intext:"{company_type}"'
            ),
            description="Employee directories for companies",
        ),
    ),
    DorkCategory.PROFESSIONAL: (
        DorkPattern(
            name="LinkedIn Profiles",
            pattern=(
                'site:linkedin.com/in AND intext:"{role}" AND intext:"{location}" '
                'AND intext:"{industry}"'
            ),
            description="LinkedIn profiles matching criteria",
            sites=("linkedin.com",),
        ),
        DorkPattern(
            name="Company About Pages",
            pattern=(
                'inurl:about AND intext:"team" AND intext:"{industry}" '
                'AND intext:"{location}"'
            ),
            description="Company about pages with team information",
        ),
        DorkPattern(
            name="Professional Bios",
            pattern=(
                'intext:"biography" OR intext:"bio" AND intext:"{role}" '
                'AND intext:"{location}"'
            ),
            description="Professional biographies",
        ),
    ),
    DorkCategory.DIRECTORIES: (
        DorkPattern(
            name="Business Listings",
            pattern=(
                'site:yellowpages.com OR site:yelp.com AND intext:"{industry}" '
                'AND intext:"{location}"'
            ),
            description="Business directory listings",
            sites=("yellowpages.com", "yelp.com", "google.com/maps"),
        ),
        DorkPattern(
            name="Chamber of Commerce",
            pattern=(
                'site:chamber.com OR intext:"chamber of commerce" '
                'AND intext:"{location}" AND intext:"{industry}"'
            ),
            description="Chamber of commerce listings",
        ),
    ),
    DorkCategory.SOCIAL: (
        DorkPattern(
            name="Twitter Profiles",
            pattern=(
                'site:twitter.com AND intext:"{role}" AND intext:"{location}" '
                'AND intext:"email"'
            ),
            description="Twitter profiles with contact info",
            sites=("twitter.com",),
        ),
        DorkPattern(
            name="Facebook Business Pages",
            pattern=(
                'site:facebook.com AND intext:"{industry}" AND intext:"{location}" '
                'AND intext:"contact"'
            ),
            description="Facebook business pages",
            sites=("facebook.com",),
        ),
    ),
    DorkCategory.WEBSITES: (
        DorkPattern(
            name="Team Pages",
            pattern=(
                'inurl:team OR inurl:staff OR inurl:about AND intext:"{role}" '
                'AND intext:"{location}"'
            ),
            description="Company team and staff pages",
        ),
        DorkPattern(
            name="Press Releases",
            pattern=(
                'intext:"press release" AND intext:"{company_type}" '
                'AND intext:"{location}" AND intext:"contact"'
            ),
            description="Press releases with contact information",
        ),
    ),
}

CONTACT_DORKS: Tuple[str, ...] = (
    'intext:"email" AND intext:"phone"',
    'intext:"contact us" AND intext:"@"',
    'intext:"reach out" AND intext:"call"',
    'inurl:contact AND intext:"@"',
    'intext:"get in touch" AND intext:"phone"',
)

# Requirement clause appended to every pattern of a category
CATEGORY_REQUIREMENTS: Dict[DorkCategory, str] = {
    DorkCategory.PROFESSIONAL: '(intext:"email" OR intext:"@" OR intext:"contact")',
    DorkCategory.DIRECTORIES: '(intext:"phone" OR intext:"email" OR intext:"contact")',
    DorkCategory.WEBSITES: '(intext:"@" OR intext:"email")',
}

# site: filter used for each recognized platform name
PLATFORM_SITES: Dict[str, str] = {
    "linkedin": "linkedin.com/in",
    "reddit": "reddit.com",
    "twitter": "twitter.com",
    "github": "github.com",
}

PLATFORM_CONTACT_FILTER = "(email OR contact OR @)"
GENERIC_CONTACT_FILTER = "(email OR contact)"

BASIC_DORK_SITES = "site:linkedin.com/in OR site:about.me"
BASIC_DORK_CONTACT = '(intext:"email" OR intext:"@") AND (intext:"phone" OR intext:"contact")'

# Search-engine recency filters
TIME_RANGE_FILTERS: Dict[str, str] = {
    "h": "qdr:h",
    "h10": "qdr:h",
    "d": "qdr:d",
    "d3": "qdr:d3",
    "w": "qdr:w",
    "m": "qdr:m",
    "y": "qdr:y",
}

# Google Custom Search dateRestrict equivalents (the API has no hour granularity)
DATE_RESTRICTS: Dict[str, str] = {
    "qdr:h": "d1",
    "qdr:d": "d1",
    "qdr:d3": "d3",
    "qdr:w": "w1",
    "qdr:m": "m1",
    "qdr:y": "y1",
}
