"""
Column mapper.

Maps a table's header row to semantic field slots using the alias sets in
``heuristics.COLUMN_ALIASES``.
"""

import logging
from typing import Dict, List, Optional, Sequence

from .heuristics import COLUMN_ALIASES
from .models import ColumnMapping

logger = logging.getLogger(__name__)


class ColumnMapper:
    """Fuzzy header matcher."""

    def __init__(self, aliases: Optional[Dict[str, List[str]]] = None):
        self.aliases = aliases or COLUMN_ALIASES

    def map(self, headers: Sequence[str]) -> ColumnMapping:
        """
        Resolve each field to the first header containing one of its aliases.

        Fields are resolved in alias-table order and a header claimed by an
        earlier field is never reassigned.
        """
        lowered = [(header or '').lower() for header in headers]
        claimed = set()
        indices = {}

        for field_name, patterns in self.aliases.items():
            index = self._find_index(lowered, patterns, claimed)
            if index is not None:
                claimed.add(index)
            indices[field_name] = index

        mapping = ColumnMapping(**indices)
        logger.debug(f"Mapped headers {list(headers)} -> {mapping}")
        return mapping

    @staticmethod
    def _find_index(headers: List[str], patterns: List[str], claimed: set) -> Optional[int]:
        for index, header in enumerate(headers):
            if index in claimed:
                continue
            if any(pattern in header for pattern in patterns):
                return index
        return None
