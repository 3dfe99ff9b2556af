"""Pydantic models for Lead Radar data structures."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

DEFAULT_TARGET_PLATFORMS: Tuple[str, ...] = ("linkedin", "reddit", "twitter")

# Sentinel values written when a field could not be extracted
COMPANY_NOT_SPECIFIED = "Company Not Specified"
LOCATION_NOT_SPECIFIED = "Location Not Specified"
DEFAULT_JOB_TITLE = "Professional"
DEFAULT_INDUSTRY = "Professional Services"
DEFAULT_COMPANY_SIZE = "Not Specified"


class PlaceholderPolicy(str, Enum):
    """What to do with a template token that has no criteria value."""

    DROP = "drop"
    LEAVE = "leave"
    ERROR = "error"


class DorkCategory(str, Enum):
    """Enumeration of dork pattern categories."""

    CONTACT_INFO = "Contact Information"
    PROFESSIONAL = "Professional Networks"
    DIRECTORIES = "Business Directories"
    SOCIAL = "Social Media"
    WEBSITES = "Company Websites"
    PLATFORM = "Platform Search"


class Location(BaseModel):
    """Geographic part of the search criteria."""

    model_config = ConfigDict(frozen=True)

    city: Optional[str] = Field(default=None, description="City name")
    state: Optional[str] = Field(default=None, description="State or region")
    country: Optional[str] = Field(default=None, description="Country name")

    @field_validator("city", "state", "country")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Normalize whitespace-only values to None."""
        if v is None:
            return None
        v = v.strip()
        return v or None


class SearchCriteria(BaseModel):
    """Read-only input describing which leads to look for."""

    model_config = ConfigDict(frozen=True)

    industries: Tuple[str, ...] = Field(
        default=(), description="Target industries, primary first"
    )
    location: Location = Field(default_factory=Location)
    job_title: Optional[str] = Field(default=None, description="Target role")
    keywords: Tuple[str, ...] = Field(default=(), description="Extra search terms")
    company_size: Optional[str] = Field(
        default=None, description="Free-form company size band, e.g. 10-50"
    )
    target_platforms: Tuple[str, ...] = Field(
        default=DEFAULT_TARGET_PLATFORMS, description="Platforms to search, in order"
    )
    time_range: Optional[str] = Field(
        default=None, description="Recency filter: h, h10, d, d3, w, m or y"
    )
    max_pages_per_query: int = Field(default=3, ge=1)
    require_email: bool = Field(default=False)
    require_phone: bool = Field(default=False)

    @field_validator("industries", "keywords", mode="before")
    @classmethod
    def clean_terms(cls, v):
        """Drop blank entries while keeping order."""
        if v is None:
            return ()
        if isinstance(v, str):
            v = v.split(",")
        return tuple(s.strip() for s in v if s and s.strip())

    @field_validator("target_platforms", mode="before")
    @classmethod
    def default_platforms(cls, v):
        """Fall back to the default platforms when none are given."""
        if v is None:
            return DEFAULT_TARGET_PLATFORMS
        if isinstance(v, str):
            v = v.split(",")
        platforms = tuple(p.strip().lower() for p in v if p and p.strip())
        return platforms or DEFAULT_TARGET_PLATFORMS

    @field_validator("job_title", "company_size", "time_range")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Normalize whitespace-only values to None."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def primary_industry(self) -> str:
        """First industry, or an empty string."""
        return self.industries[0] if self.industries else ""


class DorkPattern(BaseModel):
    """A query template with placeholder tokens."""

    model_config = ConfigDict(frozen=True)

    name: str
    pattern: str
    description: str = ""
    sites: Tuple[str, ...] = ()


class DorkQuery(BaseModel):
    """A generated query string scoped to a platform."""

    text: str = Field(..., description="Query text sent to the search engine")
    platform: str = Field(..., description="Platform or site the query targets")
    category: str = Field(default=DorkCategory.PLATFORM.value)
    description: str = Field(default="")


class SearchResultRecord(BaseModel):
    """One ranked hit returned by the search gateway."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(default="")
    snippet: str = Field(default="")
    url: str = Field(default="", validation_alias=AliasChoices("url", "link"))

    @field_validator("title", "snippet", "url", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        """Treat missing API fields as empty strings."""
        return "" if v is None else v

    @property
    def combined_text(self) -> str:
        """Title and snippet joined for pattern scanning."""
        return f"{self.title} {self.snippet}"


class CandidateLead(BaseModel):
    """A contact record inferred from a single search result."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: f"lead-{uuid.uuid4().hex}")
    name: str = Field(default="")
    company: str = Field(default=COMPANY_NOT_SPECIFIED)
    job_title: str = Field(default=DEFAULT_JOB_TITLE)
    email: Optional[str] = Field(default=None)
    phone: Optional[str] = Field(default=None)
    location: str = Field(default=LOCATION_NOT_SPECIFIED)
    industry: str = Field(default=DEFAULT_INDUSTRY)
    linkedin_url: Optional[str] = Field(default=None)
    company_size_band: str = Field(default=DEFAULT_COMPANY_SIZE)
    score: int = Field(default=0, ge=0, le=100)
    source_platform: str = Field(default="")
    source_url: str = Field(default="")
    source_query: str = Field(default="", description="Query that produced this lead")

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v) -> int:
        """Clamp scores into the 0-100 range."""
        return max(0, min(100, int(v)))

    @property
    def dedup_key(self) -> str:
        """Email when present, otherwise name and company."""
        if self.email:
            return self.email.lower()
        return f"{self.name}-{self.company}"


class LeadGenerationResult(BaseModel):
    """Final ranked lead list with provenance."""

    model_config = ConfigDict(frozen=True)

    leads: Tuple[CandidateLead, ...] = Field(default=())
    total_count: int = Field(default=0)
    criteria: SearchCriteria
    generated_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    queries_used: Tuple[str, ...] = Field(default=())
    per_platform_counts: Dict[str, int] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        """Check if the run produced no leads."""
        return self.total_count == 0

    def top(self, n: int) -> List[CandidateLead]:
        """Return the n highest-scored leads."""
        return list(self.leads[:n])
