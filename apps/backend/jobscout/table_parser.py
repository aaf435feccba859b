"""
Deterministic table parser for job README documents.

Detects whether a document carries HTML tables, Markdown pipe tables or
both, and extracts every table together with the category implied by the
nearest preceding heading. Links inside cells are preserved as
``text[[LINK:url]]`` markers so the extractor can recover them later.
"""

import re
import logging
from typing import List, Optional, Sequence, Tuple, Union

from bs4 import BeautifulSoup

from .exceptions import PipelineError
from .heuristics import (
    CATEGORY_FILLER_PATTERNS,
    CATEGORY_FILLER_TOKENS,
    CATEGORY_MAX_WORDS,
    INACTIVE_HEADING_MARKERS,
)
from .models import ParsedTable, TableFormat

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Other"

# Format detection
HTML_TABLE_OPEN = re.compile(r'<table[^>]*>', re.IGNORECASE)
MARKDOWN_TABLE_ROW = re.compile(r'\|[^|\n]+\|[^|\n]+\|')
MARKDOWN_SEPARATOR = re.compile(r'\|[ \t]*:?-+:?[ \t]*\|')

# Document structure
HTML_TABLE_BLOCK = re.compile(r'<table[^>]*>([\s\S]*?)</table>', re.IGNORECASE)
HTML_HEADING = re.compile(r'<h([1-6])[^>]*>([\s\S]*?)</h\1>', re.IGNORECASE)
MARKDOWN_HEADING_LINE = re.compile(r'^[ \t]*(#+)(.*)$', re.MULTILINE)
ANCHOR_LINK = re.compile(r'\[([^\]]+)\]\([^)]*\)')

# Cell content
LINK_MARKER = re.compile(r'\[\[LINK:([^\]]+)\]\]')
STASHED_LINK = re.compile(r'\[\[STASH:(\d+)\]\]')
MARKDOWN_IMAGE = re.compile(r'!\[([^\]]*)\]\([^)]*\)')
MARKDOWN_LINK = re.compile(r'\[([^\]]*)\]\(\s*([^)\s]+)(?:\s+"[^"]*")?\s*\)')
MARKDOWN_EMPHASIS = re.compile(r'(\*\*|__)(.*?)\1')
SEPARATOR_CELL = re.compile(r'^:?-+:?$')
FILLER_CELL = re.compile(r'^[-–—:\s]*$')
UNESCAPED_PIPE = re.compile(r'(?<!\\)\|')
WHITESPACE = re.compile(r'\s+')

_filler_alternatives = sorted(
    [re.escape(token) for token in CATEGORY_FILLER_TOKENS] + CATEGORY_FILLER_PATTERNS,
    key=len,
    reverse=True,
)
CATEGORY_FILLER = re.compile(
    r'(?<!\w)(?:' + '|'.join(_filler_alternatives) + r')(?!\w)',
    re.IGNORECASE,
)


def extract_links(cell: str) -> List[str]:
    """All URLs embedded in a cell as link markers, in order."""
    return [url.strip() for url in LINK_MARKER.findall(cell or '')]


def clean_cell_content(cell: str) -> str:
    """Cell text for display: markers and Markdown emphasis removed."""
    text = LINK_MARKER.sub('', cell or '')
    text = MARKDOWN_EMPHASIS.sub(r'\2', text)
    return WHITESPACE.sub(' ', text).strip()


def is_inactive_heading(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in INACTIVE_HEADING_MARKERS)


def shorten_category(heading: str) -> str:
    """
    Reduce a section heading to a short category label.

    Keeps the first three words, drops filler tokens from them and falls
    back to the untouched three-word window when nothing is left.
    """
    window = ' '.join(heading.split()[:CATEGORY_MAX_WORDS])
    shortened = WHITESPACE.sub(' ', CATEGORY_FILLER.sub(' ', window)).strip()
    if not shortened:
        shortened = window
    return shortened or DEFAULT_CATEGORY


def _collapse(text: str) -> str:
    return WHITESPACE.sub(' ', text).strip()


def _markdown_heading_text(raw: str) -> str:
    return _collapse(ANCHOR_LINK.sub(r'\1', raw))


def _html_fragment_text(fragment: str) -> str:
    """Text of an HTML fragment with anchors rewritten to link markers."""
    soup = BeautifulSoup(fragment, 'html.parser')
    return _element_text(soup)


def _element_text(element) -> str:
    for anchor in element.find_all('a', href=True):
        text = anchor.get_text(' ', strip=True)
        anchor.replace_with(f"{text}[[LINK:{anchor['href'].strip()}]]")
    return _collapse(element.get_text(' '))


class TableParser:
    """Regex-and-soup parser for HTML and Markdown tables."""

    def detect_format(self, text: str) -> TableFormat:
        """Report which table dialects the document contains."""
        text = text or ''
        has_html = HTML_TABLE_OPEN.search(text) is not None
        has_markdown = (
            MARKDOWN_SEPARATOR.search(text) is not None
            and MARKDOWN_TABLE_ROW.search(text) is not None
        )

        if has_html and has_markdown:
            return TableFormat.MIXED
        if has_html:
            return TableFormat.HTML
        if has_markdown:
            return TableFormat.MARKDOWN
        return TableFormat.UNKNOWN

    def parse_tables(
        self,
        text: str,
        format: Optional[Union[TableFormat, str]] = None,
    ) -> List[ParsedTable]:
        """
        Extract all tables from ``text``.

        Mixed documents prefer HTML tables; Markdown is parsed only when no
        HTML table was found.
        """
        text = text or ''
        detected = self._coerce_format(format) if format is not None else self.detect_format(text)

        if detected == TableFormat.HTML:
            tables = self._parse_html_tables(text)
        elif detected == TableFormat.MARKDOWN:
            tables = self._parse_markdown_tables(text)
        elif detected == TableFormat.MIXED:
            tables = self._parse_html_tables(text)
            if not tables:
                logger.debug("Mixed document has no usable HTML tables, parsing Markdown")
                tables = self._parse_markdown_tables(text)
        else:
            tables = []

        logger.info(f"Parsed {len(tables)} tables (format: {detected.value})")
        return tables

    # Convenience wrappers so callers holding a parser need no extra import
    def extract_links(self, cell: str) -> List[str]:
        return extract_links(cell)

    def clean_cell_content(self, cell: str) -> str:
        return clean_cell_content(cell)

    @staticmethod
    def _coerce_format(format: Union[TableFormat, str]) -> TableFormat:
        try:
            return TableFormat(format)
        except ValueError:
            raise PipelineError(f"Unsupported table format: {format!r}")

    # HTML

    def _parse_html_tables(self, text: str) -> List[ParsedTable]:
        headings = self._extract_headings(text)
        tables = []

        for match in HTML_TABLE_BLOCK.finditer(text):
            category = self._category_at(match.start(), headings)
            table = self._parse_html_table(match.group(1), category)
            if table is not None:
                tables.append(table)

        return tables

    def _extract_headings(self, text: str) -> List[Tuple[int, str]]:
        """Position-ordered (offset, text) for HTML and Markdown headings."""
        headings = []

        for match in HTML_HEADING.finditer(text):
            heading = _html_fragment_text(match.group(2))
            heading = LINK_MARKER.sub('', heading).strip()
            if heading and not is_inactive_heading(heading):
                headings.append((match.start(), heading))

        for match in MARKDOWN_HEADING_LINE.finditer(text):
            heading = _markdown_heading_text(match.group(2))
            if heading and not is_inactive_heading(heading):
                headings.append((match.start(), heading))

        headings.sort(key=lambda item: item[0])
        return headings

    @staticmethod
    def _category_at(position: int, headings: Sequence[Tuple[int, str]]) -> str:
        category = DEFAULT_CATEGORY
        for offset, heading in headings:
            if offset >= position:
                break
            category = heading
        return shorten_category(category)

    def _parse_html_table(self, block: str, category: str) -> Optional[ParsedTable]:
        soup = BeautifulSoup(block, 'html.parser')

        header_cells = soup.find_all('th')
        headers = [_element_text(cell) for cell in header_cells]
        headers_from_th = bool(headers)

        rows = []
        for index, tr in enumerate(soup.find_all('tr')):
            cells = tr.find_all(['td', 'th'], recursive=False)
            if headers_from_th and not tr.find('td', recursive=False):
                # The <th> row already supplied the headers
                continue

            values = [_element_text(cell) for cell in cells]

            if not headers and index == 0:
                headers = values
                continue

            if not values or all(FILLER_CELL.match(value) for value in values):
                continue

            rows.append(values)

        if not headers:
            logger.debug("Skipping HTML table without headers")
            return None

        return ParsedTable(
            headers=tuple(headers),
            rows=tuple(tuple(row) for row in rows),
            format=TableFormat.HTML,
            category=category,
        )

    # Markdown

    def _parse_markdown_tables(self, text: str) -> List[ParsedTable]:
        tables = []
        category = DEFAULT_CATEGORY

        headers = None
        table_category = category
        rows = []
        in_table = False

        def emit():
            if headers:
                tables.append(ParsedTable(
                    headers=tuple(headers),
                    rows=tuple(tuple(row) for row in rows),
                    format=TableFormat.MARKDOWN,
                    category=table_category,
                ))

        for line in text.splitlines():
            trimmed = line.strip()
            is_heading = trimmed.startswith('#')
            is_table_row = not is_heading and trimmed.count('|') >= 2

            if is_table_row:
                cells = self._parse_markdown_row(trimmed)

                if all(not cell or SEPARATOR_CELL.match(cell) for cell in cells):
                    in_table = True
                    continue

                if headers is None:
                    headers = cells
                    table_category = category
                else:
                    in_table = True
                    if any(cells):
                        rows.append(cells)
                continue

            if in_table:
                emit()
            # A lone pipe line without a body is not a table
            headers, rows, in_table = None, [], False

            if is_heading:
                heading = _markdown_heading_text(trimmed.lstrip('#'))
                if heading and not is_inactive_heading(heading):
                    category = shorten_category(heading)

        if in_table:
            emit()

        return tables

    def _parse_markdown_row(self, line: str) -> List[str]:
        if line.startswith('|'):
            line = line[1:]
        if line.endswith('|') and not line.endswith('\\|'):
            line = line[:-1]

        return [
            self._markdown_cell_content(part.replace('\\|', '|'))
            for part in UNESCAPED_PIPE.split(line)
        ]

    @staticmethod
    def _markdown_cell_content(cell: str) -> str:
        result = MARKDOWN_IMAGE.sub(r'\1', cell.strip())
        result = MARKDOWN_LINK.sub(r'\1[[LINK:\2]]', result)

        # Some READMEs mix raw HTML (apply buttons, <br>) into Markdown cells
        if '<' in result or '&' in result:
            # Markdown URLs are not HTML; keep "&copy=" style query params intact
            stashed = []

            def stash(match):
                stashed.append(match.group(0))
                return f"[[STASH:{len(stashed) - 1}]]"

            result = _html_fragment_text(LINK_MARKER.sub(stash, result))
            result = STASHED_LINK.sub(lambda m: stashed[int(m.group(1))], result)

        return _collapse(result)
