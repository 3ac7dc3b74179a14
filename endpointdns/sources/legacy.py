"""Annotation dialects of older DNS controllers, enabled with COMPATIBILITY"""

from typing import List

from ..record import DNSRecord
from .base import endpoints_for_hostname, split_annotation, targets_from_load_balancer

MATE_ANNOTATION_KEY = 'zalando.org/dnsname'
MOLECULE_LABEL_KEY = 'dns'
MOLECULE_LABEL_VALUE = 'route53'
MOLECULE_ANNOTATION_KEY = 'domainName'


def legacy_endpoints_from_mate_service(svc) -> List[DNSRecord]:
    hostname = (svc.metadata.annotations or {}).get(MATE_ANNOTATION_KEY)
    if not hostname:
        return []
    return endpoints_for_hostname(hostname.strip(), targets_from_load_balancer(svc.status), None)


def legacy_endpoints_from_molecule_service(svc) -> List[DNSRecord]:
    # Services opt in through a label
    if (svc.metadata.labels or {}).get(MOLECULE_LABEL_KEY) != MOLECULE_LABEL_VALUE:
        return []
    hostnames = split_annotation((svc.metadata.annotations or {}).get(MOLECULE_ANNOTATION_KEY))
    targets = targets_from_load_balancer(svc.status)
    records = []
    for hostname in hostnames:
        records.extend(endpoints_for_hostname(hostname, targets, None))
    return records


LEGACY_HANDLERS = {
    'mate': legacy_endpoints_from_mate_service,
    'molecule': legacy_endpoints_from_molecule_service,
}


def legacy_endpoints_from_service(svc, compatibility: str) -> List[DNSRecord]:
    handler = LEGACY_HANDLERS.get(compatibility)
    if handler is None:
        return []
    return handler(svc)
