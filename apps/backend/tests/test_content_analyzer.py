"""
Unit tests for page-level content analysis.
"""

import json

import httpx
import pytest

from jobscout.categories import JobCategory
from jobscout.config import PipelineConfig
from jobscout.content_analyzer import ContentAnalyzer, analyze_deterministically
from jobscout.exceptions import ClassifierError


def chat_reply(content, status_code=200):
    """MockTransport handler answering with a chat-completions envelope."""
    requests = []

    def handler(request):
        requests.append(json.loads(request.content))
        return httpx.Response(status_code, json={
            "choices": [{"message": {"role": "assistant", "content": content}}]
        })

    return handler, requests


def make_analyzer(handler, high_confidence=0.8):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ContentAnalyzer(
        api_key="test-key",
        model="test/model",
        url="https://llm.example.com/v1/chat/completions",
        high_confidence=high_confidence,
        client=client,
    )


class TestDeterministicAnalysis:
    """Test keyword-based page metadata."""

    def test_specific_category_with_job_keyword(self):
        metadata = analyze_deterministically("Data Scientist Jobs", "https://github.com/x/jobs")

        assert metadata.inferred_category == "Data Science"
        assert not metadata.is_aggregator_source
        assert metadata.confidence == pytest.approx(0.8)

    def test_aggregator_page(self):
        metadata = analyze_deterministically("Backend Engineer Jobs", "https://simplify.jobs/l/backend")

        assert metadata.is_aggregator_source
        assert metadata.aggregator_name == "Simplify"
        assert metadata.confidence == pytest.approx(0.9)

    def test_generic_page(self):
        metadata = analyze_deterministically("My README", "https://github.com/x/readme")

        assert metadata.inferred_category == "Other"
        assert metadata.confidence == pytest.approx(0.5)

    def test_description_used(self):
        metadata = analyze_deterministically("Openings", "https://x.dev", description="iOS and Android roles")
        assert metadata.inferred_category == "Mobile Development"


class TestContentAnalyzer:
    """Test the LLM-backed classifier."""

    @pytest.mark.asyncio
    async def test_confident_result_skips_llm(self):
        handler, requests = chat_reply("{}")
        analyzer = make_analyzer(handler)

        metadata = await analyzer.classify("Backend Engineer Jobs", "https://simplify.jobs/l/backend")

        assert metadata.inferred_category == "Backend"
        assert requests == []

    @pytest.mark.asyncio
    async def test_llm_reply_used(self):
        handler, requests = chat_reply(
            '```json\n{"category": "machine learning", "is_aggregator": true, "confidence": 0.95}\n```'
        )
        analyzer = make_analyzer(handler)

        metadata = await analyzer.classify("My README", "https://github.com/x/readme",
                                           sample_headers=["Company", "Role"])

        assert metadata.inferred_category == JobCategory.MACHINE_LEARNING.value
        assert metadata.is_aggregator_source is True
        assert metadata.confidence == pytest.approx(0.95)
        assert requests[0]["model"] == "test/model"
        assert requests[0]["temperature"] == 0
        assert "Company, Role" in requests[0]["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_unknown_category_maps_to_other(self):
        handler, _ = chat_reply('{"category": "Basket Weaving", "is_aggregator": false, "confidence": 0.7}')
        analyzer = make_analyzer(handler)

        metadata = await analyzer.classify("My README", "https://github.com/x/readme")

        assert metadata.inferred_category == "Other"

    @pytest.mark.asyncio
    async def test_unparsable_reply_falls_back(self):
        handler, _ = chat_reply("I am not sure what this page is.")
        analyzer = make_analyzer(handler)

        metadata = await analyzer.classify("My README", "https://github.com/x/readme")

        assert metadata.inferred_category == "Other"
        assert metadata.confidence == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_invalid_reply_shape_falls_back(self):
        handler, _ = chat_reply('{"is_aggregator": "maybe"}')
        analyzer = make_analyzer(handler)

        metadata = await analyzer.classify("My README", "https://github.com/x/readme")

        assert metadata.confidence == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_http_error_propagates(self):
        handler, _ = chat_reply("{}", status_code=500)
        analyzer = make_analyzer(handler)

        with pytest.raises(httpx.HTTPStatusError):
            await analyzer.classify("My README", "https://github.com/x/readme")

    @pytest.mark.asyncio
    async def test_malformed_envelope_raises(self):
        analyzer = make_analyzer(lambda request: httpx.Response(200, json={"error": "nope"}))

        with pytest.raises(ClassifierError):
            await analyzer.classify("My README", "https://github.com/x/readme")


class TestFromConfig:
    """Test building an analyzer from configuration."""

    def test_no_api_key(self, monkeypatch):
        monkeypatch.delenv('OPENROUTER_API_KEY', raising=False)
        assert ContentAnalyzer.from_config(PipelineConfig()) is None

    def test_disabled(self, monkeypatch):
        monkeypatch.setenv('OPENROUTER_API_KEY', 'key')
        monkeypatch.setenv('JOBSCOUT_ENABLE_HARMONIZATION', 'false')
        assert ContentAnalyzer.from_config(PipelineConfig()) is None

    def test_enabled(self, monkeypatch):
        monkeypatch.setenv('OPENROUTER_API_KEY', 'key')
        monkeypatch.setenv('JOBSCOUT_ENABLE_HARMONIZATION', 'true')
        monkeypatch.setenv('JOBSCOUT_CLASSIFIER_MODEL', 'some/model')
        monkeypatch.setenv('JOBSCOUT_HIGH_CONFIDENCE', '0.6')

        analyzer = ContentAnalyzer.from_config(PipelineConfig())

        assert analyzer.api_key == 'key'
        assert analyzer.model == 'some/model'
        assert analyzer.high_confidence == 0.6
