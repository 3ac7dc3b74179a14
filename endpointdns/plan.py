"""Desired vs. current record diff"""

import logging
from typing import Callable, Dict, List, Sequence, Tuple

from .errors import ConfigurationError
from .record import Changes, DNSRecord, merge_records

log = logging.getLogger(__name__)

Policy = Callable[[Changes], Changes]


def sync_policy(changes: Changes) -> Changes:
    """Allow everything"""
    return changes


def upsert_only_policy(changes: Changes) -> Changes:
    """Never delete"""
    return Changes(create=changes.create, update_old=changes.update_old, update_new=changes.update_new)


def create_only_policy(changes: Changes) -> Changes:
    """Only add records that do not exist yet"""
    return Changes(create=changes.create)


POLICIES: Dict[str, Policy] = {
    'sync': sync_policy,
    'upsert-only': upsert_only_policy,
    'create-only': create_only_policy,
}


def policy_by_name(name: str) -> Policy:
    try:
        return POLICIES[name]
    except KeyError:
        raise ConfigurationError(f"unknown policy {name!r}, expected one of {', '.join(POLICIES)}") from None


def _key(record: DNSRecord) -> Tuple[str, str]:
    return (record.dns_name.lower(), record.record_type)


class Plan:
    """Classifies desired records against current ones into create/update/delete"""

    def __init__(self, current: List[DNSRecord], desired: List[DNSRecord], policies: Sequence[Policy] = ()):
        self.current = merge_records(current)
        self.desired = merge_records(desired)
        self.policies = list(policies)

    def calculate(self) -> Changes:
        changes = Changes()
        current_by_key = {_key(r): r for r in self.current}
        desired_keys = set()

        for desired in self.desired:
            desired_keys.add(_key(desired))
            current = current_by_key.get(_key(desired))
            if current is None:
                changes.create.append(desired)
                continue
            if desired.same_targets(current) and (not desired.ttl_configured or desired.ttl == current.ttl):
                continue
            changes.update_old.append(current)
            for key, value in current.labels.items():
                desired.labels.setdefault(key, value)
            changes.update_new.append(desired)

        for current in self.current:
            if _key(current) not in desired_keys:
                changes.delete.append(current)

        for policy in self.policies:
            changes = policy(changes)
        return changes
