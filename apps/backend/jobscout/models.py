"""
Data model for the README job pipeline.

All records are immutable dataclasses. A table is parsed once, a posting is
built once by the extractor and rebuilt (never mutated) by the harmonizer.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .heuristics import INTERNSHIP_MARKERS


class TableFormat(str, Enum):
    """Detected table format of a document."""
    HTML = "html"
    MARKDOWN = "markdown"
    MIXED = "mixed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ParsedTable:
    """A table block with rows aligned to its headers."""
    headers: Tuple[str, ...]
    rows: Tuple[Tuple[str, ...], ...]
    format: TableFormat
    category: str = "Other"

    def __post_init__(self):
        headers = tuple(self.headers)
        width = len(headers)
        rows = tuple(_fit_row(row, width) for row in self.rows)
        object.__setattr__(self, 'headers', headers)
        object.__setattr__(self, 'rows', rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.headers)


def _fit_row(row: Sequence[str], width: int) -> Tuple[str, ...]:
    """Pad short rows with empty cells and truncate long ones."""
    cells = tuple(row[:width])
    if len(cells) < width:
        cells = cells + ("",) * (width - len(cells))
    return cells


@dataclass(frozen=True)
class ColumnMapping:
    """Zero-based column index per semantic field."""
    company: Optional[int] = None
    role: Optional[int] = None
    location: Optional[int] = None
    link: Optional[int] = None
    date_posted: Optional[int] = None
    notes: Optional[int] = None

    @property
    def is_job_table(self) -> bool:
        return self.company is not None or self.role is not None

    @classmethod
    def from_headers(cls, headers: Sequence[str]) -> "ColumnMapping":
        from .column_mapper import ColumnMapper
        return ColumnMapper().map(headers)


@dataclass(frozen=True)
class LinkClassification:
    """Either a company link or a named aggregator link."""
    kind: str
    name: Optional[str] = None

    COMPANY = "company"
    AGGREGATOR = "aggregator"

    @classmethod
    def company(cls) -> "LinkClassification":
        return cls(kind=cls.COMPANY)

    @classmethod
    def aggregator(cls, name: str) -> "LinkClassification":
        return cls(kind=cls.AGGREGATOR, name=name)

    @property
    def is_aggregator(self) -> bool:
        return self.kind == self.AGGREGATOR


@dataclass(frozen=True)
class ContentMetadata:
    """Page-level inference produced once per source document."""
    inferred_category: str
    is_aggregator_source: bool = False
    aggregator_name: Optional[str] = None
    confidence: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'confidence', max(0.0, min(1.0, float(self.confidence))))


@dataclass(frozen=True)
class JobPosting:
    """
    A single job posting extracted from a table row.

    Build instances with ``JobPosting.create`` so strings are trimmed,
    blank links become None and country/internship are derived.
    """
    company: str
    role: str
    location: str
    country: str = "USA"
    category: str = "Other"
    company_website: Optional[str] = None
    company_link: Optional[str] = None
    aggregator_link: Optional[str] = None
    aggregator_name: Optional[str] = None
    date_posted: Optional[str] = None
    notes: Optional[str] = None
    is_faang: bool = False
    is_internship: bool = False
    # Fixed when the posting is created; link moves never change it
    key: Optional[str] = None

    @classmethod
    def create(
        cls,
        company: str,
        role: str,
        location: str = "",
        country: Optional[str] = None,
        category: str = "Other",
        company_website: Optional[str] = None,
        company_link: Optional[str] = None,
        aggregator_link: Optional[str] = None,
        aggregator_name: Optional[str] = None,
        date_posted: Optional[str] = None,
        notes: Optional[str] = None,
        is_faang: bool = False,
        is_internship: Optional[bool] = None,
    ) -> "JobPosting":
        role = (role or "").strip()
        location = (location or "").strip()
        if is_internship is None:
            lowered = role.lower()
            is_internship = any(marker in lowered for marker in INTERNSHIP_MARKERS)
        company_link = _clean_optional(company_link)
        aggregator_link = _clean_optional(aggregator_link)
        return cls(
            company=(company or "").strip(),
            role=role,
            location=location,
            country=country or extract_country(location),
            category=category,
            company_website=_clean_optional(company_website),
            company_link=company_link,
            aggregator_link=aggregator_link,
            aggregator_name=_clean_optional(aggregator_name),
            date_posted=_clean_optional(date_posted),
            notes=_clean_optional(notes),
            is_faang=is_faang,
            is_internship=is_internship,
            key=company_link or aggregator_link,
        )

    @property
    def identity_key(self) -> Optional[str]:
        """Dedup/upsert key: the company link, else the aggregator link, as extracted."""
        return self.key or self.company_link or self.aggregator_link

    def with_changes(self, **changes: Any) -> "JobPosting":
        return replace(self, **changes)

    @property
    def parsed_date(self) -> Optional[date]:
        """Posting date when ``date_posted`` holds a normalized ISO date."""
        if not self.date_posted:
            return None
        try:
            return datetime.strptime(self.date_posted, '%Y-%m-%d').date()
        except ValueError:
            return None

    @property
    def sort_date(self) -> date:
        return self.parsed_date or date.min

    def to_dict(self) -> Dict[str, Any]:
        """Record handed to persistence and UI collaborators."""
        return {
            "identityKey": self.identity_key,
            "company": self.company,
            "role": self.role,
            "location": self.location,
            "country": self.country,
            "category": self.category,
            "companyWebsite": self.company_website,
            "companyLink": self.company_link,
            "aggregatorLink": self.aggregator_link,
            "aggregatorName": self.aggregator_name,
            "datePosted": self.date_posted,
            "notes": self.notes,
            "isFAANG": self.is_faang,
            "isInternship": self.is_internship,
        }

    def __str__(self) -> str:
        text = f"{self.company} - {self.role} ({self.location})"
        if self.date_posted:
            text += f" [Posted: {self.date_posted}]"
        if self.notes:
            text += f" - {self.notes}"
        return text


@dataclass
class HarmonizationResult:
    """Harmonized postings plus diagnostics for the UI."""
    jobs: List[JobPosting]
    inferred_category: str
    errors: List[str] = field(default_factory=list)


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# Checked in order; first hit wins
COUNTRY_KEYWORDS = [
    ('Canada', ['canada']),
    ('UK', ['uk', 'united kingdom', 'england', 'london']),
    ('Germany', ['germany', 'berlin', 'munich']),
    ('India', ['india', 'bangalore', 'hyderabad', 'mumbai']),
    ('Ireland', ['ireland', 'dublin']),
    ('Australia', ['australia', 'sydney', 'melbourne']),
    ('Singapore', ['singapore']),
    ('Japan', ['japan', 'tokyo']),
    ('Netherlands', ['netherlands', 'amsterdam']),
    ('France', ['france', 'paris']),
    ('Israel', ['israel', 'tel aviv']),
    ('China', ['china', 'beijing', 'shanghai']),
    ('Mexico', ['mexico']),
    ('Brazil', ['brazil', 'são paulo', 'sao paulo']),
    ('Spain', ['spain', 'madrid', 'barcelona']),
    ('Italy', ['italy', 'milan', 'rome']),
    ('Poland', ['poland', 'warsaw', 'krakow']),
    ('Sweden', ['sweden', 'stockholm']),
    ('Switzerland', ['switzerland', 'zurich']),
]


def extract_country(location: str) -> str:
    """Best-effort country for a location string, defaulting to USA."""
    loc = (location or "").lower()

    for country, keywords in COUNTRY_KEYWORDS:
        if any(re.search(rf"\b{re.escape(keyword)}\b", loc) for keyword in keywords):
            return country

    # US states, US cities and bare "Remote" all land here
    return "USA"
