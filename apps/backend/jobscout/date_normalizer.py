"""
Date normalizer.

Turns the free-text "Date Posted" / "Age" cells found in README tables
("3d", "2 weeks ago", "Dec 27", "12/27/24", ...) into ISO YYYY-MM-DD.
"""

import re
import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

# Year-less dates further than this in the future belong to last year
FUTURE_TOLERANCE = timedelta(days=30)

# (strptime format, has_year) in priority order
FIXED_FORMATS = [
    ('%b %d', False),           # Dec 27
    ('%b %d, %Y', True),        # Dec 27, 2024
    ('%B %d', False),           # December 27
    ('%B %d, %Y', True),        # December 27, 2024
    ('%m/%d', False),           # 12/27
    ('%m/%d/%y', True),         # 12/27/24
    ('%m/%d/%Y', True),         # 12/27/2024
    ('%Y-%m-%d', True),         # 2024-12-27
    ('%d-%b-%Y', True),         # 27-Dec-2024
]

# Exact relative words
RELATIVE_WORDS = {
    'today': relativedelta(),
    'now': relativedelta(),
    'just now': relativedelta(),
    'yesterday': relativedelta(days=1),
    'last week': relativedelta(weeks=1),
    'last month': relativedelta(months=1),
}

# Anchored shorthand: "15d", "2w", "1mo", "3m", "1y"/"1yr"
SHORTHAND_PATTERNS = [
    (re.compile(r'^(\d+)d$'), 'days'),
    (re.compile(r'^(\d+)w$'), 'weeks'),
    (re.compile(r'^(\d+)mo$'), 'months'),
    (re.compile(r'^(\d+)y(?:r)?$'), 'years'),
]

# "Nm" means months only for N > 0; "0m" reads as minutes
SHORTHAND_MONTHS = re.compile(r'^(\d+)m$')

SHORTHAND_HOURS = re.compile(r'^\d+h$')

VERBOSE_PATTERNS = [
    (re.compile(r'(\d+)\s*days?\s*ago'), 'days'),
    (re.compile(r'(\d+)\s*weeks?\s*ago'), 'weeks'),
    (re.compile(r'(\d+)\s*months?\s*ago'), 'months'),
]


class DateNormalizer:
    """
    Normalizes date expressions against a fixed reference instant.

    Relative expressions are tried first, then fixed formats. The result is
    always a zero-padded ISO date or None, never a partial guess.
    """

    def __init__(self, reference: Optional[Union[datetime, date]] = None):
        if reference is None:
            reference = datetime.now()
        if isinstance(reference, datetime):
            reference = reference.date()
        self.reference = reference

    def normalize(self, text: Optional[str]) -> Optional[str]:
        """Normalize ``text`` to YYYY-MM-DD, or None if nothing parses."""
        parsed = self.parse(text)
        if parsed is None:
            return None
        return parsed.strftime('%Y-%m-%d')

    def parse(self, text: Optional[str]) -> Optional[date]:
        if not text:
            return None
        trimmed = text.strip()
        if not trimmed:
            return None

        parsed = self._parse_relative(trimmed)
        if parsed is not None:
            return parsed

        parsed = self._parse_fixed(trimmed)
        if parsed is None:
            logger.debug(f"Could not parse date '{trimmed}'")
        return parsed

    def _parse_relative(self, text: str) -> Optional[date]:
        lowered = text.lower()

        if lowered in RELATIVE_WORDS:
            return self.reference - RELATIVE_WORDS[lowered]

        for pattern, unit in SHORTHAND_PATTERNS:
            match = pattern.match(lowered)
            if match:
                return self._ago(int(match.group(1)), unit)

        match = SHORTHAND_MONTHS.match(lowered)
        if match and int(match.group(1)) > 0:
            return self._ago(int(match.group(1)), 'months')

        for pattern, unit in VERBOSE_PATTERNS:
            match = pattern.search(lowered)
            if match:
                return self._ago(int(match.group(1)), unit)

        # Sub-day precision is not tracked
        if 'ago' in lowered and ('hour' in lowered or 'minute' in lowered):
            return self.reference
        if SHORTHAND_HOURS.match(lowered):
            return self.reference

        return None

    def _ago(self, amount: int, unit: str) -> Optional[date]:
        try:
            return self.reference - relativedelta(**{unit: amount})
        except (OverflowError, ValueError):
            logger.debug(f"Relative date out of range: {amount} {unit}")
            return None

    def _parse_fixed(self, text: str) -> Optional[date]:
        for fmt, has_year in FIXED_FORMATS:
            if has_year:
                try:
                    return datetime.strptime(text, fmt).date()
                except ValueError:
                    continue

            # Parse with the reference year attached so Feb 29 stays valid
            try:
                parsed = datetime.strptime(f"{text} {self.reference.year}", f"{fmt} %Y").date()
            except ValueError:
                continue
            if parsed > self.reference + FUTURE_TOLERANCE:
                try:
                    parsed = parsed.replace(year=parsed.year - 1)
                except ValueError:
                    # Feb 29 has no counterpart last year
                    return None
            return parsed

        return None
