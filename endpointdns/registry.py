"""
Record ownership

The TXT registry writes one TXT record next to every record it creates:

    "heritage=endpointdns,endpointdns/owner=<owner id>,endpointdns/resource=service/default/web"

Only records whose TXT names this instance as owner are ever updated or
deleted, so several controllers can share a zone.
"""

import logging
from typing import Dict, List, Optional

from .errors import ConfigurationError
from .provider import Provider
from .record import OWNER_LABEL_KEY, RECORD_TYPE_TXT, RESOURCE_LABEL_KEY, Changes, DNSRecord

log = logging.getLogger(__name__)

HERITAGE = 'endpointdns'
LABEL_PREFIX = 'endpointdns/'


def serialize_labels(labels: Dict[str, str]) -> str:
    parts = [f'heritage={HERITAGE}']
    for key in sorted(labels):
        parts.append(f'{LABEL_PREFIX}{key}={labels[key]}')
    return ','.join(parts)


def parse_labels(text: str) -> Optional[Dict[str, str]]:
    """Labels stored in an ownership TXT value, None if it is not one of ours"""
    text = text.strip('"')
    parts = text.split(',')
    if not parts or parts[0] != f'heritage={HERITAGE}':
        return None
    labels = {}
    for part in parts[1:]:
        key, sep, value = part.partition('=')
        if not sep or not key.startswith(LABEL_PREFIX):
            log.debug(f"Ignoring malformed ownership label {part!r}")
            continue
        labels[key[len(LABEL_PREFIX):]] = value
    return labels


class NoopRegistry:
    """Passes everything through; every record is considered ours"""

    def __init__(self, provider: Provider):
        self.provider = provider

    def records(self) -> List[DNSRecord]:
        return self.provider.records()

    def apply_changes(self, changes: Changes):
        self.provider.apply_changes(changes)


class TXTRegistry:
    """Ownership kept in TXT records named <prefix><record name>"""

    def __init__(self, provider: Provider, prefix: str, owner_id: str):
        if not owner_id:
            raise ConfigurationError("owner id cannot be empty")
        self.provider = provider
        self.prefix = prefix
        self.owner_id = owner_id

    def txt_name(self, dns_name: str) -> str:
        return self.prefix + dns_name

    def endpoint_name(self, txt_name: str) -> Optional[str]:
        if self.prefix and not txt_name.lower().startswith(self.prefix.lower()):
            return None
        return txt_name[len(self.prefix):]

    def records(self) -> List[DNSRecord]:
        """
        Provider records with owner/resource labels; ownership TXT values are hidden

        A TXT record can hold our ownership value next to unrelated values
        (SPF, site verification). Those stay visible as a plain TXT record and
        never carry ownership labels themselves.
        """
        records = self.provider.records()
        labels_by_name: Dict[str, Dict[str, str]] = {}
        endpoints = []
        for record in records:
            if record.record_type == RECORD_TYPE_TXT and record.targets:
                name = self.endpoint_name(record.dns_name)
                foreign = []
                for target in record.targets:
                    labels = parse_labels(target)
                    if labels is not None and name is not None:
                        labels_by_name[name.lower()] = labels
                    else:
                        foreign.append(target)
                if foreign:
                    endpoints.append(DNSRecord(record.dns_name, record.record_type, foreign,
                                               record.ttl, dict(record.labels)))
                continue
            endpoints.append(record)

        for record in endpoints:
            if record.record_type == RECORD_TYPE_TXT:
                continue
            record.labels.update(labels_by_name.get(record.dns_name.lower(), {}))
        return endpoints

    def ownership_record(self, record: DNSRecord) -> DNSRecord:
        labels = {OWNER_LABEL_KEY: self.owner_id}
        if RESOURCE_LABEL_KEY in record.labels:
            labels[RESOURCE_LABEL_KEY] = record.labels[RESOURCE_LABEL_KEY]
        return DNSRecord(self.txt_name(record.dns_name), RECORD_TYPE_TXT, [serialize_labels(labels)])

    def _owned(self, records: List[DNSRecord]) -> List[DNSRecord]:
        owned = []
        for record in records:
            owner = record.labels.get(OWNER_LABEL_KEY)
            if owner != self.owner_id:
                log.debug(f"Skipping {record} because owner id does not match, found: {owner!r}, "
                          f"required: {self.owner_id!r}")
                continue
            owned.append(record)
        return owned

    def _with_ownership(self, records: List[DNSRecord]) -> List[DNSRecord]:
        result = list(records)
        seen = set()
        for record in records:
            txt = self.ownership_record(record)
            if txt.dns_name.lower() in seen:
                continue
            seen.add(txt.dns_name.lower())
            result.append(txt)
        return result

    def apply_changes(self, changes: Changes):
        for record in changes.create:
            record.labels[OWNER_LABEL_KEY] = self.owner_id

        filtered = Changes(
            create=self._with_ownership(changes.create),
            update_old=self._with_ownership(self._owned(changes.update_old)),
            update_new=self._with_ownership(self._owned(changes.update_new)),
            delete=self._with_ownership(self._owned(changes.delete)),
        )
        self.provider.apply_changes(filtered)
