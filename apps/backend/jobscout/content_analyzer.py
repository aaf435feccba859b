"""
Page-level content analysis.

Infers the category of a job page and whether it comes from an aggregator.
A deterministic keyword pass runs first; when it is not confident enough an
OpenRouter-compatible chat model is asked instead.
"""

import re
import json
import logging
from typing import Optional, Protocol, Sequence

import httpx
from pydantic import BaseModel, ValidationError

from . import link_classifier
from .categories import JobCategory
from .config import PipelineConfig
from .exceptions import ClassifierError
from .heuristics import PAGE_JOB_KEYWORDS
from .models import ContentMetadata

logger = logging.getLogger(__name__)

JSON_OBJECT = re.compile(r'\{[\s\S]*\}')


class ContentClassifier(Protocol):
    """Anything that can infer page metadata; implementations may raise."""

    async def classify(self, title: str, url: str, description: Optional[str] = None,
                       sample_headers: Sequence[str] = ()) -> ContentMetadata:
        ...


class ClassifierReply(BaseModel):
    """Expected JSON body of the model's answer."""
    category: str
    is_aggregator: bool = False
    confidence: float = 0.5


def analyze_deterministically(title: str, url: str, description: Optional[str] = None,
                              sample_headers: Sequence[str] = ()) -> ContentMetadata:
    """Keyword-based page metadata. Never raises."""
    classification = link_classifier.classify(url)
    category = JobCategory.infer(f"{title or ''} {description or ''}")

    confidence = 0.5
    if category != JobCategory.OTHER:
        confidence += 0.2
    if classification.is_aggregator:
        confidence += 0.1
    lowered_title = (title or '').lower()
    if any(keyword in lowered_title for keyword in PAGE_JOB_KEYWORDS):
        confidence += 0.1

    return ContentMetadata(
        inferred_category=category.value,
        is_aggregator_source=classification.is_aggregator,
        aggregator_name=classification.name,
        confidence=min(confidence, 1.0),
    )


class ContentAnalyzer:
    """Deterministic analysis with an LLM second opinion."""

    def __init__(self, api_key: str, model: str, url: str,
                 high_confidence: float = 0.8, timeout: float = 10.0,
                 client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self.model = model
        self.url = url
        self.high_confidence = high_confidence
        self.timeout = timeout
        self.client = client

    @classmethod
    def from_config(cls, config: PipelineConfig) -> Optional["ContentAnalyzer"]:
        """Analyzer for ``config``, or None when only deterministic analysis is wanted."""
        if not config.llm_enabled:
            logger.info("LLM content analysis disabled, using deterministic analysis only")
            return None
        return cls(
            api_key=config.api_key,
            model=config.classifier_model,
            url=config.classifier_url,
            high_confidence=config.high_confidence,
            timeout=config.classifier_timeout,
        )

    async def classify(self, title: str, url: str, description: Optional[str] = None,
                       sample_headers: Sequence[str] = ()) -> ContentMetadata:
        deterministic = analyze_deterministically(title, url, description, sample_headers)
        if deterministic.confidence > self.high_confidence:
            logger.debug(f"Deterministic analysis confident ({deterministic.confidence:.2f}) for {url}")
            return deterministic

        prompt = self._build_prompt(title, url, description, sample_headers)
        content = await self._call_ai(prompt)

        try:
            reply = self._parse_reply(content)
        except ClassifierError as e:
            logger.warning(f"Unusable classifier reply for {url}: {e}")
            return deterministic

        category = JobCategory.from_label(reply.category)
        return ContentMetadata(
            inferred_category=category.value,
            is_aggregator_source=reply.is_aggregator or deterministic.is_aggregator_source,
            aggregator_name=deterministic.aggregator_name,
            confidence=reply.confidence,
        )

    def _build_prompt(self, title: str, url: str, description: Optional[str],
                      sample_headers: Sequence[str]) -> str:
        categories = ', '.join(JobCategory.labels())
        headers = ', '.join(h for h in sample_headers if h) or 'none'
        return f"""Classify the job listing page below.

Title: {title}
URL: {url}
Description: {description or 'none'}
Table headers: {headers}

Pick the category from: {categories}
Decide whether the page is a third-party aggregator (job board, ATS or
curated list) rather than a single employer's careers page.

Return ONLY valid JSON in this exact format:
{{"category": "string", "is_aggregator": true or false, "confidence": 0.0-1.0}}"""

    async def _call_ai(self, prompt: str) -> str:
        """Call the chat-completions endpoint and return the message text."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": "You classify job listing pages. Return only valid JSON."},
                {"role": "user", "content": prompt}
            ],
            "temperature": 0,
            "max_tokens": 200
        }

        if self.client is not None:
            response = await self.client.post(self.url, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=payload, headers=headers)
        response.raise_for_status()

        try:
            return response.json()['choices'][0]['message']['content'] or ''
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ClassifierError(f"Malformed provider response: {e}") from e

    @staticmethod
    def _parse_reply(content: str) -> ClassifierReply:
        # Replies may be wrapped in code fences or prose
        match = JSON_OBJECT.search(content or '')
        if not match:
            raise ClassifierError("No JSON object in reply")
        try:
            return ClassifierReply(**json.loads(match.group(0)))
        except (ValueError, TypeError, ValidationError) as e:
            raise ClassifierError(f"Invalid reply JSON: {e}") from e
