"""DNS provider clients"""

from typing import Dict, Iterable, List, Optional, Tuple

from ..record import DNSRecord


def group_records(entries: Iterable[Tuple[str, str, Optional[int], str]]) -> List[DNSRecord]:
    """Fold (name, type, ttl, target) rows into one record per name, type and ttl"""
    grouped: Dict[Tuple[str, str, Optional[int]], DNSRecord] = {}
    for name, rtype, ttl, target in entries:
        name = name.rstrip('.')
        key = (name.lower(), rtype, ttl)
        if key not in grouped:
            grouped[key] = DNSRecord(name, rtype, [], ttl)
        grouped[key].targets.append(target)
    return list(grouped.values())
