"""Combines several sources into one deduplicated, sorted record list"""

import logging
from typing import List, Sequence

from ..record import DNSRecord, sort_targets
from .base import Source

log = logging.getLogger(__name__)


class MultiSource(Source):
    """Calls every source in order; any failure aborts the whole call"""

    def __init__(self, sources: Sequence[Source]):
        self.sources = list(sources)

    def endpoints(self) -> List[DNSRecord]:
        collected = []
        for source in self.sources:
            collected.extend(source.endpoints())
        return dedup(collected)


def dedup(records: List[DNSRecord]) -> List[DNSRecord]:
    """Sort targets of every record and drop structurally identical records, keeping the first"""
    seen = set()
    result = []
    for record in records:
        record.targets = sort_targets(record.targets)
        key = record.key()
        if key in seen:
            log.debug(f"Removing duplicate endpoint {record}")
            continue
        seen.add(key)
        result.append(record)
    return result
