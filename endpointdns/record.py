"""DNS record intents produced by the sources and consumed by providers"""

import ipaddress
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

RECORD_TYPE_A = 'A'
RECORD_TYPE_CNAME = 'CNAME'
RECORD_TYPE_SRV = 'SRV'
RECORD_TYPE_TXT = 'TXT'

# Label carrying '<kind>/<namespace>/<name>' of the resource a record came from
RESOURCE_LABEL_KEY = 'resource'
# Label set by the registry on observed records
OWNER_LABEL_KEY = 'owner'

TTL_MINIMUM = 1
TTL_MAXIMUM = 2 ** 31 - 1


def is_ip_address(target: str) -> bool:
    """True if target is an IPv4 or IPv6 literal"""
    try:
        ipaddress.ip_address(target)
    except ValueError:
        return False
    return True


def suitable_type(target: str) -> str:
    """Record type a plain target string contributes to"""
    if is_ip_address(target):
        return RECORD_TYPE_A
    return RECORD_TYPE_CNAME


def sort_targets(targets: List[str]) -> List[str]:
    """Deterministic target order: IP literals numerically, then hostnames lexically"""
    def key(target):
        try:
            ip = ipaddress.ip_address(target)
        except ValueError:
            return (1, 0, 0, target)
        return (0, ip.version, int(ip), target)
    return sorted(targets, key=key)


@dataclass
class DNSRecord:
    """Desired DNS name/type/targets intent"""
    dns_name: str
    record_type: str
    targets: List[str] = field(default_factory=list)
    ttl: Optional[int] = None
    labels: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.dns_name = self.dns_name.rstrip('.')

    @property
    def ttl_configured(self) -> bool:
        return self.ttl is not None

    def key(self) -> Tuple[str, str, Tuple[str, ...], Optional[int]]:
        """Structural identity used for deduplication"""
        return (
            self.dns_name.lower(),
            self.record_type,
            tuple(sort_targets(self.targets)),
            self.ttl,
        )

    def same_targets(self, other: 'DNSRecord') -> bool:
        return sort_targets(self.targets) == sort_targets(other.targets)

    def __str__(self) -> str:
        ttl = f' ttl={self.ttl}' if self.ttl_configured else ''
        return f"{self.dns_name}{ttl} IN {self.record_type} {' '.join(self.targets)} {self.labels}"


@dataclass
class Changes:
    """Records classified by the plan"""
    create: List[DNSRecord] = field(default_factory=list)
    update_old: List[DNSRecord] = field(default_factory=list)
    update_new: List[DNSRecord] = field(default_factory=list)
    delete: List[DNSRecord] = field(default_factory=list)

    def has_changes(self) -> bool:
        return bool(self.create or self.update_old or self.update_new or self.delete)


def merge_records(records: List[DNSRecord]) -> List[DNSRecord]:
    """
    One record per name and type, the way a provider stores them

    Targets are concatenated without duplicates; ttl and labels come from the
    first record of each group.
    """
    merged: Dict[Tuple[str, str], DNSRecord] = {}
    for record in records:
        key = (record.dns_name.lower(), record.record_type)
        existing = merged.get(key)
        if existing is None:
            merged[key] = DNSRecord(record.dns_name, record.record_type, list(dict.fromkeys(record.targets)),
                                    record.ttl, dict(record.labels))
            continue
        for target in record.targets:
            if target not in existing.targets:
                existing.targets.append(target)
    return list(merged.values())
