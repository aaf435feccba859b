"""
Document-level pipeline.

Wires parsing, extraction and harmonization together for one README and
hands the results to persistence as plain dictionaries.
"""

import logging
from typing import Dict, List, Optional, Sequence

from .harmonizer import Harmonizer
from .job_extractor import JobExtractor
from .models import HarmonizationResult, JobPosting
from .monitoring import MetricsCollector, get_metrics
from .table_parser import TableParser

logger = logging.getLogger(__name__)


class DocumentPipeline:
    """Runs one document through parse, extract and harmonize."""

    def __init__(self, harmonizer: Optional[Harmonizer] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.metrics = metrics or get_metrics()
        self.parser = TableParser()
        self.extractor = JobExtractor(metrics=self.metrics)
        self.harmonizer = harmonizer or Harmonizer.from_config()

    def extract(self, text: str) -> List[JobPosting]:
        tables = self.parser.parse_tables(text)
        return self.extractor.extract_jobs(tables)

    async def process(self, text: str, page_title: str, page_url: str,
                      page_description: Optional[str] = None) -> HarmonizationResult:
        """
        Extract and harmonize every posting in ``text``.

        Returns:
            HarmonizationResult with the harmonized postings, the page
            category and any classifier errors
        """
        jobs = self.extract(text)
        if not jobs:
            logger.info(f"No jobs found in {page_url}")
            return HarmonizationResult(jobs=[], inferred_category="Other")
        return await self.harmonizer.harmonize(jobs, page_title, page_url, page_description)

    @staticmethod
    def to_records(jobs: Sequence[JobPosting]) -> List[Dict]:
        """Persistence records, each carrying its ``identityKey``."""
        return [job.to_dict() for job in jobs]
