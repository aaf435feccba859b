"""
Post-extraction harmonization.

Normalizes dates, moves links into the right slots and replaces
uninformative categories with the category inferred for the whole page.
"""

import re
import asyncio
import logging
import unicodedata
from typing import List, Optional, Sequence

from . import link_classifier
from .categories import JobCategory
from .config import PipelineConfig, get_config
from .content_analyzer import ContentAnalyzer, ContentClassifier, analyze_deterministically
from .date_normalizer import DateNormalizer
from .heuristics import GENERIC_CATEGORY_EXACT, GENERIC_CATEGORY_PATTERNS, GENERIC_CATEGORY_REGEXES
from .models import ContentMetadata, HarmonizationResult, JobPosting, LinkClassification
from .monitoring import MetricsCollector, get_metrics

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Other"
WHITESPACE = re.compile(r'\s+')


def normalize_category(category: Optional[str]) -> str:
    """Drop emoji and symbols, collapse whitespace; empty becomes "Other"."""
    kept = []
    for char in category or '':
        kind = unicodedata.category(char)
        if char.isspace() or kind[0] in ('L', 'N', 'P', 'Z'):
            kept.append(char)
    text = WHITESPACE.sub(' ', ''.join(kept)).strip()
    return text or DEFAULT_CATEGORY


def is_generic_category(category: str) -> bool:
    lowered = (category or '').strip().lower()
    if lowered in GENERIC_CATEGORY_EXACT:
        return True
    if any(pattern in lowered for pattern in GENERIC_CATEGORY_PATTERNS):
        return True
    return any(regex.search(lowered) for regex in GENERIC_CATEGORY_REGEXES)


def normalize_date(text: Optional[str], normalizer: Optional[DateNormalizer] = None) -> Optional[str]:
    if not text:
        return None
    return (normalizer or DateNormalizer()).normalize(text)


def classify_link(url: str) -> LinkClassification:
    return link_classifier.classify(url)


def harmonize_job(job: JobPosting, metadata: ContentMetadata,
                  normalizer: Optional[DateNormalizer] = None) -> JobPosting:
    """Harmonize one posting against page-level metadata. Pure."""
    changes = {}

    if job.date_posted:
        normalized = normalize_date(job.date_posted, normalizer)
        if normalized:
            changes['date_posted'] = normalized

    company_link = job.company_link
    company_website = job.company_website
    aggregator_link = job.aggregator_link
    aggregator_name = job.aggregator_name

    if company_link:
        classification = classify_link(company_link)
        if classification.is_aggregator:
            if not aggregator_link:
                aggregator_link = company_link
                aggregator_name = aggregator_name or classification.name
            company_link = None
        elif link_classifier.is_company_homepage(company_link):
            company_website = company_website or company_link
            company_link = None

    if not company_website and company_link:
        company_website = link_classifier.extract_company_homepage(company_link)

    if metadata.is_aggregator_source and not aggregator_name:
        aggregator_name = metadata.aggregator_name

    changes.update(
        company_link=company_link,
        company_website=company_website,
        aggregator_link=aggregator_link,
        aggregator_name=aggregator_name,
    )

    category = normalize_category(job.category)
    if category == DEFAULT_CATEGORY or is_generic_category(category):
        category = normalize_category(metadata.inferred_category)
    changes['category'] = category

    return job.with_changes(**changes)


def harmonize_deterministic(jobs: Sequence[JobPosting],
                            normalizer: Optional[DateNormalizer] = None) -> List[JobPosting]:
    """Harmonize without page context; generic categories become "Other"."""
    metadata = ContentMetadata(inferred_category=DEFAULT_CATEGORY)
    normalizer = normalizer or DateNormalizer()
    return [harmonize_job(job, metadata, normalizer) for job in jobs]


def sample_headers(jobs: Sequence[JobPosting]) -> List[str]:
    """Header hints handed to the classifier."""
    headers = ["Company", "Role", "Location"]
    if jobs:
        headers.append(jobs[0].category)
    return headers


class Harmonizer:
    """Applies page-level context to extracted postings."""

    def __init__(self, classifier: Optional[ContentClassifier] = None,
                 timeout: Optional[float] = None,
                 normalizer: Optional[DateNormalizer] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.classifier = classifier
        self.timeout = timeout if timeout is not None else get_config().classifier_timeout
        self.normalizer = normalizer
        self.metrics = metrics or get_metrics()

    @classmethod
    def from_config(cls, config: Optional[PipelineConfig] = None) -> "Harmonizer":
        config = config or get_config()
        return cls(classifier=ContentAnalyzer.from_config(config), timeout=config.classifier_timeout)

    async def harmonize(self, jobs: Sequence[JobPosting], page_title: str, page_url: str,
                        page_description: Optional[str] = None) -> HarmonizationResult:
        """
        Harmonize all postings from one page.

        A failing or slow classifier never fails the call: the keyword
        inference over the page title is used and the failure is reported in
        ``errors``.
        """
        errors = []
        metadata = await self._page_metadata(jobs, page_title, page_url, page_description, errors)

        normalizer = self.normalizer or DateNormalizer()
        harmonized = [harmonize_job(job, metadata, normalizer) for job in jobs]

        logger.info(
            f"Harmonized {len(harmonized)} jobs from {page_url} "
            f"(category: {metadata.inferred_category}, errors: {len(errors)})"
        )
        return HarmonizationResult(
            jobs=harmonized,
            inferred_category=normalize_category(metadata.inferred_category),
            errors=errors,
        )

    async def _page_metadata(self, jobs: Sequence[JobPosting], page_title: str, page_url: str,
                             page_description: Optional[str], errors: List[str]) -> ContentMetadata:
        headers = sample_headers(jobs)

        if self.classifier is None:
            return analyze_deterministically(page_title, page_url, page_description, headers)

        try:
            metadata = await asyncio.wait_for(
                self.classifier.classify(page_title, page_url, page_description, headers),
                timeout=self.timeout,
            )
            self.metrics.record_classifier_call(success=True)
            return metadata
        except asyncio.TimeoutError:
            message = f"Content classifier timed out after {self.timeout}s"
        except Exception as e:
            message = f"Content classifier failed: {e}"

        logger.warning(f"{message}; using keyword inference for {page_url}")
        errors.append(message)
        self.metrics.record_classifier_call(success=False)
        self.metrics.record_classifier_fallback()

        fallback = analyze_deterministically(page_title, page_url, page_description, headers)
        return ContentMetadata(
            inferred_category=JobCategory.infer(page_title).value,
            is_aggregator_source=fallback.is_aggregator_source,
            aggregator_name=fallback.aggregator_name,
            confidence=fallback.confidence,
        )
