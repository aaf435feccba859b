"""
Pipeline configuration.

Read from the environment (a local .env is loaded by get_config). Controls the
optional LLM content classifier used during harmonization.
"""

import os
import logging
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CLASSIFIER_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_CLASSIFIER_MODEL = "anthropic/claude-3-haiku"


class PipelineConfig:
    """Environment-backed settings for the pipeline."""

    def __init__(self):
        self.api_key = os.getenv('OPENROUTER_API_KEY', '').strip() or None
        self.classifier_url = os.getenv('JOBSCOUT_CLASSIFIER_URL', DEFAULT_CLASSIFIER_URL)
        self.classifier_model = os.getenv('JOBSCOUT_CLASSIFIER_MODEL', DEFAULT_CLASSIFIER_MODEL)
        self.classifier_timeout = self._parse_float('JOBSCOUT_CLASSIFIER_TIMEOUT', 10.0)
        self.enable_harmonization = os.getenv('JOBSCOUT_ENABLE_HARMONIZATION', 'true').lower() == 'true'
        self.high_confidence = self._parse_float('JOBSCOUT_HIGH_CONFIDENCE', 0.8)

        logger.info(
            f"PipelineConfig: llm={'on' if self.llm_enabled else 'off'}, "
            f"model={self.classifier_model}, timeout={self.classifier_timeout}s, "
            f"high_confidence={self.high_confidence}"
        )

    @property
    def llm_enabled(self) -> bool:
        return self.enable_harmonization and self.api_key is not None

    @staticmethod
    def _parse_float(name: str, default: float) -> float:
        raw = os.getenv(name)
        if raw is None or not raw.strip():
            return default
        try:
            return float(raw)
        except ValueError:
            logger.warning(f"Invalid {name}={raw!r}, using {default}")
            return default


# Singleton instance
_config: Optional[PipelineConfig] = None


def get_config() -> PipelineConfig:
    """Get singleton pipeline config instance."""
    global _config
    if _config is None:
        load_dotenv()
        _config = PipelineConfig()
    return _config


def reset_config() -> None:
    """Drop the cached config so the environment is read again."""
    global _config
    _config = None
