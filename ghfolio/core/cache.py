"""In-memory summary cache keyed by repository full name.

Entries never expire and are never evicted; a cache lives as long as the
object that owns it. Call `reset()` to start cold.
"""
from __future__ import annotations
from typing import Dict, Iterator, Optional

from .models import SummaryRecord


class SummaryCache:
    """Summary records keyed by `owner/name`.

    Pass one instance to every pipeline run that should share results; a new
    instance is a cold cache.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, SummaryRecord] = {}

    def get(self, full_name: str) -> Optional[SummaryRecord]:
        """Look up a cached record.

        Args:
            full_name: Repository full name, e.g. "octocat/alpha".

        Returns:
            The stored record, or None on a miss.
        """
        return self._entries.get(full_name)

    def put(self, full_name: str, record: SummaryRecord) -> None:
        """Store `record` under `full_name`, replacing any previous entry.

        Args:
            full_name: Repository full name used as the key.
            record: The summary record to keep.
        """
        self._entries[full_name] = record

    def reset(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __contains__(self, full_name: object) -> bool:
        return full_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
