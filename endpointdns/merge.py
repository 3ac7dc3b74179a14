"""Groups classified record changes into one provider write per DNS name"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .record import DNSRecord


@dataclass
class ResourceRecord:
    """One target of a merged name"""
    address: str
    rtype: str
    ttl: Optional[int] = None
    rclass: str = 'IN'


@dataclass
class Resource:
    """All targets a provider should hold for one DNS name"""
    domain: str
    records: List[ResourceRecord] = field(default_factory=list)

    @property
    def targets(self) -> List[str]:
        return [r.address for r in self.records]

    def __str__(self) -> str:
        entries = ', '.join(f'{r.rtype} {r.address}' for r in self.records)
        return f'{self.domain} [{entries}]'


def convert_targets(record: DNSRecord) -> List[ResourceRecord]:
    return [ResourceRecord(t, record.record_type, record.ttl) for t in record.targets]


def merge_changes(changes: List[DNSRecord]) -> List[Resource]:
    """
    Merge records by DNS name

    Targets of every record in a group are concatenated, duplicates included.
    Groups come out in the order their name was first seen.
    """
    merged: Dict[str, Resource] = {}
    for record in changes:
        resource = merged.get(record.dns_name)
        if resource is None:
            resource = merged[record.dns_name] = Resource(record.dns_name)
        resource.records.extend(convert_targets(record))
    return list(merged.values())
