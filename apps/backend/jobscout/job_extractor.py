"""
Row-to-posting extraction.

Turns parsed tables into JobPosting records: maps columns, resolves ditto
rows, recovers and classifies links, flags big-tech employers and drops
rows that cannot be linked to an application.
"""

import logging
from typing import List, Optional, Sequence

from . import link_classifier
from .column_mapper import ColumnMapper
from .heuristics import (
    DITTO_MARKERS,
    DITTO_PREFIXES,
    FAANG_COMPANIES,
    FIRE_MARKERS,
    HEADER_ECHO_VALUES,
)
from .models import JobPosting, ParsedTable
from .monitoring import MetricsCollector, get_metrics
from .table_parser import TableParser, clean_cell_content, extract_links

logger = logging.getLogger(__name__)


def is_ditto(cell: str) -> bool:
    """True when a company cell means "same company as the row above"."""
    value = (cell or '').strip()
    if not value:
        return True
    if any(value.startswith(prefix) for prefix in DITTO_PREFIXES):
        return True
    return value in DITTO_MARKERS


def has_fire_marker(cell: str) -> bool:
    return any(marker in (cell or '') for marker in FIRE_MARKERS)


def strip_fire_markers(text: str) -> str:
    for marker in FIRE_MARKERS:
        text = text.replace(marker, '')
    return ' '.join(text.split())


def is_faang_company(company: str) -> bool:
    return company.strip().lower() in FAANG_COMPANIES


def _cell(row: Sequence[str], index: Optional[int]) -> str:
    if index is None or index >= len(row):
        return ''
    return row[index] or ''


class JobExtractor:
    """Extracts job postings from parsed tables."""

    def __init__(self, mapper: Optional[ColumnMapper] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.mapper = mapper or ColumnMapper()
        self.metrics = metrics or get_metrics()

    def extract_jobs(self, tables: Sequence[ParsedTable]) -> List[JobPosting]:
        """
        Extract postings from every job table.

        Postings keep document order. Within one call no two postings share
        an identity key; the first occurrence wins.
        """
        jobs = []
        seen_keys = set()
        skipped_tables = 0

        for table in tables:
            mapping = self.mapper.map(table.headers)
            if not mapping.is_job_table:
                logger.debug(f"Skipping non-job table with headers {list(table.headers)}")
                skipped_tables += 1
                continue

            for job in self._extract_table(table, mapping):
                key = job.identity_key
                if key in seen_keys:
                    logger.debug(f"Dropping duplicate posting {key}")
                    self.metrics.record_row_dropped('duplicate')
                    continue
                seen_keys.add(key)
                jobs.append(job)

        self.metrics.record_tables(parsed=len(tables) - skipped_tables, skipped=skipped_tables)
        self.metrics.record_jobs_extracted(len(jobs))
        logger.info(f"Extracted {len(jobs)} jobs from {len(tables)} tables ({skipped_tables} skipped)")
        return jobs

    def _extract_table(self, table: ParsedTable, mapping) -> List[JobPosting]:
        jobs = []
        last_company = ''
        last_is_faang = False

        for row in table.rows:
            raw_company = _cell(row, mapping.company)
            raw_role = _cell(row, mapping.role)

            if is_ditto(clean_cell_content(raw_company)):
                company = last_company
                is_faang = last_is_faang
            else:
                company = strip_fire_markers(clean_cell_content(raw_company))
                is_faang = has_fire_marker(raw_company) or is_faang_company(company)
                last_company = company
                last_is_faang = is_faang

            role = clean_cell_content(raw_role)

            if not company or not role:
                logger.debug(f"Skipping row without company or role: {list(row)}")
                self.metrics.record_row_dropped('incomplete')
                continue

            if (company.lower() == HEADER_ECHO_VALUES['company']
                    or role.lower() == HEADER_ECHO_VALUES['role']):
                self.metrics.record_row_dropped('header_echo')
                continue

            links = (
                extract_links(_cell(row, mapping.link))
                + extract_links(raw_role)
                + extract_links(raw_company)
            )
            company_link, aggregator_link, aggregator_name = link_classifier.separate_links(links)

            if not company_link and not aggregator_link:
                logger.debug(f"Dropping unlinkable row: {company} - {role}")
                self.metrics.record_row_dropped('no_link')
                continue

            jobs.append(JobPosting.create(
                company=company,
                role=role,
                location=clean_cell_content(_cell(row, mapping.location)),
                category=table.category,
                company_link=company_link,
                aggregator_link=aggregator_link,
                aggregator_name=aggregator_name,
                date_posted=clean_cell_content(_cell(row, mapping.date_posted)),
                notes=clean_cell_content(_cell(row, mapping.notes)),
                is_faang=is_faang,
            ))

        return jobs


def parse_job_postings(text: str, parser: Optional[TableParser] = None,
                       extractor: Optional[JobExtractor] = None) -> List[JobPosting]:
    """Parse every table in ``text`` and extract its postings."""
    parser = parser or TableParser()
    extractor = extractor or JobExtractor()
    return extractor.extract_jobs(parser.parse_tables(text))
