"""
Unit tests for post-extraction harmonization.
"""

import asyncio
from datetime import date

import pytest

from jobscout.date_normalizer import DateNormalizer
from jobscout.harmonizer import (
    Harmonizer,
    harmonize_deterministic,
    harmonize_job,
    is_generic_category,
    normalize_category,
    sample_headers,
)
from jobscout.models import ContentMetadata, JobPosting
from jobscout.monitoring import MetricsCollector


NORMALIZER = DateNormalizer(reference=date(2025, 6, 10))


def make_job(**overrides):
    fields = dict(
        company="Acme",
        role="Software Engineer",
        location="Remote",
        company_link="https://acme.com/jobs/1",
    )
    fields.update(overrides)
    return JobPosting.create(**fields)


class StubClassifier:
    """Classifier returning a fixed answer and recording its calls."""

    def __init__(self, metadata=None, error=None, delay=0):
        self.metadata = metadata
        self.error = error
        self.delay = delay
        self.calls = []

    async def classify(self, title, url, description=None, sample_headers=()):
        self.calls.append((title, url, description, list(sample_headers)))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.metadata


class TestCategoryRules:
    """Test category normalization and generic detection."""

    def test_normalize_strips_emoji(self):
        assert normalize_category("📋 Daily List") == "Daily List"
        assert normalize_category("🚀  Backend   Roles ✨") == "Backend Roles"

    def test_normalize_keeps_punctuation(self):
        assert normalize_category("AI/ML (Research)") == "AI/ML (Research)"

    def test_normalize_empty(self):
        assert normalize_category("") == "Other"
        assert normalize_category("🔥🔥") == "Other"
        assert normalize_category(None) == "Other"

    @pytest.mark.parametrize("category", [
        "Daily List", "Jobs", "see more", "Summer Internships", "New Grad",
        "Fall 2025", "Listings", "2026",
    ])
    def test_generic(self, category):
        assert is_generic_category(category)

    @pytest.mark.parametrize("category", ["Data Engineering", "Backend", "Machine Learning"])
    def test_specific(self, category):
        assert not is_generic_category(category)


class TestHarmonizeJob:
    """Test the pure per-job harmonization step."""

    def test_generic_category_replaced(self):
        job = make_job(category="📋 Daily List")
        metadata = ContentMetadata(inferred_category="Data Engineering")

        assert harmonize_job(job, metadata, NORMALIZER).category == "Data Engineering"

    def test_specific_category_kept(self):
        job = make_job(category="Backend")
        metadata = ContentMetadata(inferred_category="Data Engineering")

        assert harmonize_job(job, metadata, NORMALIZER).category == "Backend"

    def test_other_category_replaced(self):
        job = make_job(category="Other")
        metadata = ContentMetadata(inferred_category="Security")

        assert harmonize_job(job, metadata, NORMALIZER).category == "Security"

    def test_date_normalized(self):
        job = make_job(date_posted="2d")
        result = harmonize_job(job, ContentMetadata(inferred_category="Other"), NORMALIZER)

        assert result.date_posted == "2025-06-08"

    def test_unparsable_date_kept(self):
        job = make_job(date_posted="Rolling")
        result = harmonize_job(job, ContentMetadata(inferred_category="Other"), NORMALIZER)

        assert result.date_posted == "Rolling"

    def test_aggregator_company_link_moved(self):
        job = make_job(company_link="https://jobs.lever.co/acme/1")
        result = harmonize_job(job, ContentMetadata(inferred_category="Other"), NORMALIZER)

        assert result.company_link is None
        assert result.aggregator_link == "https://jobs.lever.co/acme/1"
        assert result.aggregator_name == "Lever"

    def test_aggregator_company_link_does_not_overwrite(self):
        job = make_job(
            company_link="https://jobs.lever.co/acme/1",
            aggregator_link="https://simplify.jobs/p/1",
            aggregator_name="Simplify",
        )
        result = harmonize_job(job, ContentMetadata(inferred_category="Other"), NORMALIZER)

        assert result.company_link is None
        assert result.aggregator_link == "https://simplify.jobs/p/1"
        assert result.aggregator_name == "Simplify"

    def test_homepage_becomes_website(self):
        job = make_job(company_link="https://acme.com/", aggregator_link="https://jobright.ai/jobs/1")
        result = harmonize_job(job, ContentMetadata(inferred_category="Other"), NORMALIZER)

        assert result.company_link is None
        assert result.company_website == "https://acme.com/"

    def test_identity_key_survives_homepage_move(self):
        job = make_job(company_link="https://acme.com/")
        result = harmonize_job(job, ContentMetadata(inferred_category="Other"), NORMALIZER)

        assert result.company_link is None
        assert result.aggregator_link is None
        assert result.identity_key == "https://acme.com/"
        assert result.to_dict()["identityKey"] == "https://acme.com/"

    def test_identity_key_survives_discarded_aggregator_link(self):
        first = make_job(company_link="https://jobs.lever.co/acme/1", aggregator_link="https://simplify.jobs/p/1")
        second = make_job(company_link="https://jobs.lever.co/acme/2", aggregator_link="https://simplify.jobs/p/1")
        metadata = ContentMetadata(inferred_category="Other")

        keys = [harmonize_job(job, metadata, NORMALIZER).identity_key for job in (first, second)]

        assert keys == ["https://jobs.lever.co/acme/1", "https://jobs.lever.co/acme/2"]

    def test_website_backfilled_from_posting_link(self):
        job = make_job(company_link="https://acme.com/careers/42")
        result = harmonize_job(job, ContentMetadata(inferred_category="Other"), NORMALIZER)

        assert result.company_link == "https://acme.com/careers/42"
        assert result.company_website == "https://acme.com"

    def test_page_aggregator_name_adopted(self):
        job = make_job()
        metadata = ContentMetadata(
            inferred_category="Other",
            is_aggregator_source=True,
            aggregator_name="Simplify",
        )

        assert harmonize_job(job, metadata, NORMALIZER).aggregator_name == "Simplify"

    def test_internship_not_rederived(self):
        job = make_job(role="Software Engineer", category="Summer Internships")
        result = harmonize_job(job, ContentMetadata(inferred_category="Backend"), NORMALIZER)

        assert result.category == "Backend"
        assert result.is_internship is False

    def test_input_not_mutated(self):
        job = make_job(category="Jobs", date_posted="2d")
        harmonize_job(job, ContentMetadata(inferred_category="Backend"), NORMALIZER)

        assert job.category == "Jobs"
        assert job.date_posted == "2d"


class TestHarmonizeDeterministic:
    """Test harmonization without page context."""

    def test_generic_becomes_other(self):
        jobs = harmonize_deterministic([make_job(category="Daily List"), make_job(category="Backend")], NORMALIZER)

        assert [job.category for job in jobs] == ["Other", "Backend"]


class TestHarmonizer:
    """Test async harmonization with a content classifier."""

    @pytest.mark.asyncio
    async def test_classifier_category_used(self):
        classifier = StubClassifier(ContentMetadata(inferred_category="Data Engineering", confidence=0.9))
        harmonizer = Harmonizer(classifier=classifier, timeout=1, normalizer=NORMALIZER,
                                metrics=MetricsCollector())

        result = await harmonizer.harmonize(
            [make_job(category="📋 Daily List")], "Daily Jobs", "https://github.com/x/jobs",
        )

        assert result.jobs[0].category == "Data Engineering"
        assert result.inferred_category == "Data Engineering"
        assert result.errors == []
        assert classifier.calls[0][3] == ["Company", "Role", "Location", "📋 Daily List"]

    @pytest.mark.asyncio
    async def test_classifier_failure_falls_back(self):
        metrics = MetricsCollector()
        classifier = StubClassifier(error=RuntimeError("boom"))
        harmonizer = Harmonizer(classifier=classifier, timeout=1, normalizer=NORMALIZER, metrics=metrics)

        result = await harmonizer.harmonize(
            [make_job(category="Jobs")], "Machine Learning Internships", "https://github.com/x/jobs",
        )

        assert result.inferred_category == "Machine Learning"
        assert result.jobs[0].category == "Machine Learning"
        assert len(result.errors) == 1
        assert "boom" in result.errors[0]
        assert metrics.get_stats()['counters']['classifier_fallback'] == 1

    @pytest.mark.asyncio
    async def test_classifier_timeout_falls_back(self):
        classifier = StubClassifier(ContentMetadata(inferred_category="Design"), delay=1)
        harmonizer = Harmonizer(classifier=classifier, timeout=0.01, normalizer=NORMALIZER,
                                metrics=MetricsCollector())

        result = await harmonizer.harmonize([make_job()], "Security Jobs", "https://github.com/x/jobs")

        assert result.inferred_category == "Security"
        assert "timed out" in result.errors[0]

    @pytest.mark.asyncio
    async def test_without_classifier(self):
        harmonizer = Harmonizer(classifier=None, timeout=1, normalizer=NORMALIZER, metrics=MetricsCollector())

        result = await harmonizer.harmonize(
            [make_job(category="Other")], "Backend Engineer Jobs", "https://simplify.jobs/list",
        )

        assert result.inferred_category == "Backend"
        assert result.jobs[0].category == "Backend"
        assert result.jobs[0].aggregator_name == "Simplify"
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_empty_jobs(self):
        harmonizer = Harmonizer(classifier=None, timeout=1, metrics=MetricsCollector())
        result = await harmonizer.harmonize([], "Jobs", "https://example.com")

        assert result.jobs == []

    def test_sample_headers(self):
        assert sample_headers([]) == ["Company", "Role", "Location"]
        assert sample_headers([make_job(category="Backend")])[-1] == "Backend"
